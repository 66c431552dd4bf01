"""
outcome_sink.py

Append-only CSV log of record outcomes, one file per run.
"""

import csv
import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from records import OutcomeRecord

logger = logging.getLogger(__name__)


class OutcomeSink:
    """
    Writes <output_dir>/<timestamp>.csv.

    The file is created on the first append with a header taken from the first
    outcome's field names; every later append adds exactly one row. String
    fields are double-quoted, the numeric time column is not.
    """

    def __init__(self, output_dir: Union[str, Path], timestamp: str):
        self.output_dir = Path(output_dir)
        self.path = self.output_dir / f"{timestamp}.csv"
        self.rows_written = 0
        self._fieldnames: Optional[List[str]] = None

    def append(self, outcome: OutcomeRecord) -> None:
        row = outcome.to_row()
        write_header = self._fieldnames is None

        if write_header:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            self._fieldnames = list(row.keys())
            logger.info(f"Writing outcomes to {self.path}")
        else:
            extra = [key for key in row if key not in self._fieldnames]
            if extra:
                logger.warning(f"Dropping columns not in the outcome header: {', '.join(extra)}")

        frame = pd.DataFrame([row], columns=self._fieldnames)
        frame.to_csv(
            self.path,
            mode='w' if write_header else 'a',
            header=write_header,
            index=False,
            quoting=csv.QUOTE_NONNUMERIC,
            encoding='utf-8',
        )
        self.rows_written += 1
        logger.debug(f"Outcome row {self.rows_written} appended: {outcome.status}")
