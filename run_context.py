"""
run_context.py

Process-wide state created once at startup and read-only afterwards.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def new_run_timestamp(now: Optional[datetime] = None) -> str:
    """Timestamp that names this run's output files"""
    return (now or datetime.now()).strftime(TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class RunContext:
    """
    The authenticated session handle, run identity, clock and operating flags.

    driver is the form driver bound to the logged-in browser page.
    """
    driver: Any
    secret: str
    timestamp: str = field(default_factory=new_run_timestamp)
    started_at: float = field(default_factory=time.monotonic)
    dry_run: bool = False
    pause_before_submit: bool = False

    def elapsed_seconds(self) -> float:
        return round(max(0.0, time.monotonic() - self.started_at), 3)
