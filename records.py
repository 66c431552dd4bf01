"""
records.py

Input and outcome records, and the CSV record source.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple, Union

import pandas as pd

from base_exceptions import InputFileMissingError

logger = logging.getLogger(__name__)

# CSV column -> InputRecord attribute, in the order columns are written when
# a record was not read from a file
COLUMN_MAP = {
    'searchName': 'search_name',
    'date': 'date',
    'dob': 'dob',
    'staffName': 'staff_name',
    'staffRole': 'staff_role',
    'symptom': 'symptom',
    'levyStatus': 'levy_status',
    'searchMedication': 'search_medication',
    'quantity': 'quantity',
    'firstName': 'first_name',
    'lastName': 'last_name',
    'gender': 'gender',
    'postcode': 'postcode',
    'address': 'address',
    'practice': 'practice',
}


@dataclass(frozen=True)
class InputRecord:
    """One row of the input table: a patient and a consultation"""
    search_name: str = ""
    date: str = ""
    dob: str = ""
    staff_name: str = ""
    staff_role: str = ""
    symptom: str = ""
    levy_status: str = ""
    search_medication: str = ""
    quantity: str = ""
    first_name: str = ""
    last_name: str = ""
    gender: str = ""
    postcode: str = ""
    address: str = ""
    practice: str = ""
    # original columns in file order, including ones not mapped above
    source_row: Tuple[Tuple[str, str], ...] = field(default=(), repr=False, compare=False)

    @classmethod
    def from_row(cls, row: Dict[str, object]) -> "InputRecord":
        cleaned = {
            str(key).strip(): "" if value is None else str(value)
            for key, value in row.items()
        }
        known = {attr: cleaned.get(column, "") for column, attr in COLUMN_MAP.items()}
        return cls(**known, source_row=tuple(cleaned.items()))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_row(self) -> Dict[str, str]:
        if self.source_row:
            return dict(self.source_row)
        return {column: getattr(self, attr) for column, attr in COLUMN_MAP.items()}


@dataclass(frozen=True)
class OutcomeRecord:
    """An input record labelled with its terminal status and elapsed run time"""
    record: InputRecord
    status: str
    time: float

    def to_row(self) -> Dict[str, Union[str, float]]:
        row: Dict[str, Union[str, float]] = dict(self.record.to_row())
        row['status'] = self.status
        row['time'] = self.time
        return row


def read_input_records(path: Union[str, Path]) -> List[InputRecord]:
    """
    Read every data row of a CSV file as an InputRecord.

    Every cell is read as a string and blank cells become "".

    Raises:
        InputFileMissingError: if the file does not exist.
    """
    input_path = Path(path)
    if not input_path.is_file():
        logger.error(f"Input file not found: {input_path}")
        raise InputFileMissingError(str(input_path))

    try:
        frame = pd.read_csv(input_path, dtype=str, keep_default_na=False, encoding='utf-8-sig')
    except pd.errors.EmptyDataError:
        logger.warning(f"Input file is empty: {input_path}")
        return []

    missing = [column for column in COLUMN_MAP if column not in frame.columns.str.strip()]
    if missing:
        logger.warning(f"Input file has no column(s): {', '.join(missing)}; using blanks")

    records = [InputRecord.from_row(row) for row in frame.to_dict(orient='records')]
    logger.info(f"Read {len(records)} records from {input_path}")
    return records
