from __future__ import annotations

import io
import json
import logging
import re
import time
from typing import Any, Dict, List, Tuple, Type

import pandas as pd

from survey_crosstab.core.categories import CategoryEnum, Gender, Job, MaritalStatus, Prefecture, PurchaseStatus
from survey_crosstab.core.errors import MissingOption, RecordParseError
from survey_crosstab.core.records import Record
from survey_crosstab.core.sources import read_source_text

logger = logging.getLogger(__name__)

# Fixed columns of the response export, in file order.
STATIC_COLUMNS: List[str] = [
    "id",
    "user_id",
    "campaign_id",
    "price",
    "bonus_point",
    "status",
    "created_at",
    "updated at",
    "email",
    "nickname",
    "gender",
    "birth_year",
    "job",
    "prefecture",
    "marital_status",
    "children",
    "household_income_min",
    "household_income_max",
]

# column -> Record attribute
_TEXT_COLUMNS: Dict[str, str] = {
    "id": "id",
    "user_id": "user_id",
    "campaign_id": "campaign_id",
    "created_at": "created_at",
    "updated at": "updated_at",
    "email": "email",
    "nickname": "nickname",
}

_INT_COLUMNS: List[str] = [
    "price",
    "bonus_point",
    "birth_year",
    "children",
    "household_income_min",
    "household_income_max",
]

_ENUM_COLUMNS: Dict[str, Type[CategoryEnum]] = {
    "status": PurchaseStatus,
    "gender": Gender,
    "job": Job,
    "prefecture": Prefecture,
    "marital_status": MaritalStatus,
}

_DIGITS_RE = re.compile(r"\d")


# ---------------------------------------------------------------------------
# Column helpers
# ---------------------------------------------------------------------------

def is_custom_column(name: str) -> bool:
    """Dynamic columns are the ones whose name carries the numeric question id."""
    return name not in STATIC_COLUMNS and _DIGITS_RE.search(name) is not None


def custom_key_of(column: str) -> int:
    return int("".join(_DIGITS_RE.findall(column)))


def parse_custom_value(raw: Any) -> Any:
    """
    '' -> None; a JSON array literal -> list of str; anything else stays text.
    """
    if raw is None:
        return None
    text = str(raw)
    if text == "":
        return None
    if text.lstrip().startswith("["):
        try:
            parsed = json.loads(text)
        except ValueError:
            return text
        if isinstance(parsed, list):
            return [item if isinstance(item, str) else json.dumps(item, ensure_ascii=False) for item in parsed]
    return text


def _parse_int(column: str, raw: Any, row: int) -> int:
    try:
        return int(str(raw).strip())
    except ValueError as exc:
        raise RecordParseError(f"Row {row}: column '{column}' expects an integer, got {raw!r}.") from exc


def _parse_enum(column: str, category: Type[CategoryEnum], raw: Any, row: int) -> CategoryEnum:
    try:
        return category.from_label(raw)
    except MissingOption as exc:
        raise RecordParseError(f"Row {row}: column '{column}' has unknown value {raw!r}.") from exc


# ---------------------------------------------------------------------------
# Row parsing
# ---------------------------------------------------------------------------

def parse_row(values: Dict[str, Any], row: int) -> Record:
    """
    Turn one mapping of column -> raw text into a Record.
    `row` is the 1-based line in the source file (header is line 1).
    """
    kwargs: Dict[str, Any] = {}
    for column, attr in _TEXT_COLUMNS.items():
        kwargs[attr] = "" if values.get(column) is None else str(values[column])
    for column in _INT_COLUMNS:
        kwargs[column] = _parse_int(column, values.get(column), row)
    for column, category in _ENUM_COLUMNS.items():
        kwargs[column] = _parse_enum(column, category, values.get(column), row)

    kwargs["custom_values"] = {
        custom_key_of(column): parse_custom_value(raw)
        for column, raw in values.items()
        if is_custom_column(column)
    }
    return Record(**kwargs)


def records_from_frame(df: pd.DataFrame) -> List[Record]:
    """
    Build records from a DataFrame read with every column as text.

    Expected columns:
      - all of STATIC_COLUMNS
      - any number of custom columns whose name contains the question id (e.g. 'field3')
    """
    missing = [c for c in STATIC_COLUMNS if c not in df.columns]
    if missing:
        raise RecordParseError(f"Response data is missing required columns: {missing}")

    by_key: Dict[int, str] = {}
    for column in df.columns:
        if not is_custom_column(column):
            continue
        key = custom_key_of(column)
        if key in by_key:
            raise RecordParseError(f"Columns '{by_key[key]}' and '{column}' both map to custom field {key}.")
        by_key[key] = column

    return [parse_row(row, idx + 2) for idx, row in enumerate(df.to_dict(orient="records"))]


def parse_records_csv(text: str) -> List[Record]:
    """
    Parse a response export. Header names must be unique: pandas would
    rename a repeated 'field1' to 'field1.1', whose digits read as key 11.
    """
    try:
        header = pd.read_csv(io.StringIO(text), header=None, nrows=1, dtype=str, keep_default_na=False)
        df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise RecordParseError(f"Malformed CSV: {exc}") from exc

    names = [str(c).strip() for c in header.iloc[0].tolist()]
    duplicated = sorted({n for n in names if names.count(n) > 1})
    if duplicated:
        raise RecordParseError(f"Response data has duplicated columns: {duplicated}")

    df.columns = names
    return records_from_frame(df)


def load_records(source: str) -> List[Record]:
    """Read and parse the response CSV at a local path or http(s) URL."""
    logger.info("Loading responses: %s", source)
    records = parse_records_csv(read_source_text(source, error_cls=RecordParseError))
    logger.info("Parsed %d response rows.", len(records))
    return records


def timed_load_records(source: str) -> Tuple[List[Record], float]:
    """
    Load responses and return them with the elapsed seconds.
    """
    t0 = time.perf_counter()
    records = load_records(source)
    return records, (time.perf_counter() - t0)
