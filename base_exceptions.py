import sys
from datetime import datetime
from typing import List, Optional


class RunAbortedError(Exception):
    """Raised when a startup precondition fails and the whole run must stop"""
    exit_code = 1

    def __init__(self, message="Run aborted"):
        self.message = message
        super().__init__(self.message)

    def display_abort_message(self):
        """Display a formatted abort message and exit with a non-zero status"""
        print("\n" + "="*80)
        print("🛑 PharmOutcomes Auto-Entry Aborted 🛑")
        print(f"✨ Reason: {self.message}")
        current_time = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        print(f"✨ Aborted at: {current_time}")
        print("="*80 + "\n")
        sys.exit(self.exit_code)


class MissingConfigurationError(RunAbortedError):
    """Raised when required credentials or paths are not configured"""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(
            "Missing required configuration: " + ", ".join(self.missing)
        )


class InputFileMissingError(RunAbortedError):
    """Raised when the input CSV does not exist"""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        super().__init__(f"Input file not found: {path}")
