import dataclasses
import pathlib
import typing

import pandas as pd
from stairval.notepad import Notepad

from .reading import Reading

# Column aliases used by OCR exports and hand-made sheets → Reading fields
RENAME_MAP = {
    "timestamp": "time",
    "value_tn": "value",
    "tn": "value",
    "value_tp": "value_secondary",
    "tp": "value_secondary",
    "identifier": "identifier_primary",
    "identifier_tn": "identifier_primary",
    "identifier_tp": "identifier_secondary",
    "is_rule_matched": "rule_matched",
}

REQUIRED_COLUMNS = {"time", "value"}

OUTPUT_COLUMNS = [
    "id",
    "time",
    "value",
    "value_secondary",
    "identifier_primary",
    "identifier_secondary",
    "rule_matched",
]


def load_readings_table(table_path: typing.Union[str, pathlib.Path]) -> pd.DataFrame:
    """
    Read a readings table (.xlsx via openpyxl, or .csv) into a DataFrame:
      - first row = header, first sheet only
      - every cell read as text so values keep their units/annotations
      - headers normalized to snake_case lowercase, aliases from RENAME_MAP applied
    """
    path = pathlib.Path(table_path)
    suffix = path.suffix.lower()
    if suffix in {".xlsx", ".xlsm"}:
        df = pd.read_excel(path, sheet_name=0, header=0, dtype=str, engine="openpyxl")
    elif suffix == ".csv":
        df = pd.read_csv(path, header=0, dtype=str, keep_default_na=False)
    else:
        raise ValueError(f"Unsupported table format {suffix!r}: expected .xlsx or .csv")

    df.columns = (
        df.columns.astype(str)
        .str.strip()
        .str.replace(r"\s*\(.*?\)", "", regex=True)  # drop any "(…)"
        .str.replace(r"[\s/]+", "_", regex=True)  # spaces and slashes → underscore
        .str.lower()
    )
    return df.rename(
        columns={orig: target for orig, target in RENAME_MAP.items() if orig in df.columns}
    )


def _cell(row: pd.Series, column: str) -> typing.Optional[str]:
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _to_bool(value: typing.Optional[str]) -> bool:
    # anything not clearly true counts as false
    return value is not None and value.strip().lower() in {"1", "true", "t", "yes", "y"}


def readings_from_table(df: pd.DataFrame, notepad: Notepad) -> list[Reading]:
    """
    Build Reading objects from a normalized table.
    Returns [] if a required column is missing; invalid rows are reported and skipped.
    """
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        notepad.add_error(f"Readings table: missing required columns: {sorted(missing)}")
        return []

    readings: list[Reading] = []
    for position, (_, row) in enumerate(df.iterrows(), start=1):
        fields = {
            "time": _cell(row, "time") or "",
            "value": _cell(row, "value") or "",
            "value_secondary": _cell(row, "value_secondary"),
            "identifier_primary": _cell(row, "identifier_primary"),
            "identifier_secondary": _cell(row, "identifier_secondary"),
            "rule_matched": _to_bool(_cell(row, "rule_matched")),
        }
        row_id = _cell(row, "id")
        if row_id is not None:
            fields["id"] = row_id
        try:
            readings.append(Reading(**fields))
        except ValueError as exception:
            notepad.add_error(f"Readings table, row {position}: {exception}")
    return readings


def readings_to_table(readings: typing.Sequence[Reading]) -> pd.DataFrame:
    """Render readings as a table with OUTPUT_COLUMNS, in input order."""
    return pd.DataFrame(
        [dataclasses.asdict(reading) for reading in readings],
        columns=OUTPUT_COLUMNS,
    )
