from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from survey_crosstab.core.categories import CategoryEnum, Language
from survey_crosstab.core.errors import ConfigError, InvalidRecord, MissingOption
from survey_crosstab.core.fields import STATIC_CATEGORIES, CROSSTAB_STATIC_FIELDS, StaticField
from survey_crosstab.core.labels import get_text
from survey_crosstab.core.metadata_loader import FieldSchema
from survey_crosstab.core.records import Record
from survey_crosstab.core.sources import read_source_text

logger = logging.getLogger(__name__)

NUL = "\u0000"


class FilterMode(str, Enum):
    IGNORE = "ignore"
    INCLUDE = "include"


@dataclass(frozen=True)
class FilterCriterion:
    category: StaticField
    value: CategoryEnum

    def matches(self, record: Record, reference_year: int) -> bool:
        return record.category_value(self.category, reference_year) == self.value


@dataclass
class FilterConfig:
    """
    Either an ignore list (drop a record on its first matching criterion) or an
    include list (keep a record only if every category group has a match).
    The two modes are never combined.
    """
    mode: FilterMode
    criteria: List[FilterCriterion] = field(default_factory=list)

    def by_category(self) -> Dict[StaticField, List[FilterCriterion]]:
        groups: Dict[StaticField, List[FilterCriterion]] = {}
        for criterion in self.criteria:
            groups.setdefault(criterion.category, []).append(criterion)
        return groups

    @classmethod
    def from_pairs(cls, mode: str, pairs: Iterable[Sequence[str]]) -> "FilterConfig":
        try:
            resolved_mode = FilterMode(str(mode).strip().lower())
        except ValueError as exc:
            raise ConfigError(f"Unknown filter mode {mode!r}; expected 'ignore' or 'include'.") from exc
        return cls(mode=resolved_mode, criteria=build_criteria(pairs))


# ---------------------------------------------------------------------------
# Criterion construction
# ---------------------------------------------------------------------------

def _category_aliases(static_field: StaticField) -> List[str]:
    names = [static_field.value, static_field.name]
    names.extend(STATIC_CATEGORIES[static_field].category_names())
    for lng in Language:
        names.append(get_text(f"title.{static_field.value}", lng))
    for crosstab_field, title in CROSSTAB_STATIC_FIELDS:
        if crosstab_field == static_field:
            names.append(title)
            names.extend(get_text(f"crosstab.{title}", lng) for lng in Language)
    return names


_CATEGORY_LOOKUP: Dict[str, StaticField] = {}
for _field in STATIC_CATEGORIES:
    for _name in _category_aliases(_field):
        _CATEGORY_LOOKUP.setdefault(_name.strip().casefold(), _field)


def resolve_category(name: str) -> StaticField:
    """
    Map a category name (canonical, English or Japanese field title or
    category name) to the static field it filters on.
    """
    found = _CATEGORY_LOOKUP.get(str(name).strip().casefold())
    if found is None:
        raise MissingOption(f"Unknown filter category {name!r}.")
    return found


def build_criteria(pairs: Iterable[Sequence[str]]) -> List[FilterCriterion]:
    """
    Resolve (category-name, value-name) pairs. Any unknown name aborts the
    whole configuration with MissingOption.
    """
    criteria: List[FilterCriterion] = []
    for pair in pairs:
        if len(pair) != 2:
            raise ConfigError(f"Filter criterion must be a (category, value) pair, got {pair!r}.")
        category_name, value_name = pair
        static_field = resolve_category(category_name)
        value = STATIC_CATEGORIES[static_field].from_label(value_name)
        criteria.append(FilterCriterion(category=static_field, value=value))
    return criteria


def parse_filter_config(document: Any) -> FilterConfig:
    """
    Expected structure:
      {"mode": "ignore" | "include",
       "criteria": [["gender", "Male"], {"category": "job", "value": "学生"}, ...]}
    """
    if isinstance(document, (str, bytes)):
        try:
            document = json.loads(document)
        except ValueError as exc:
            raise ConfigError(f"Filter configuration is not valid JSON: {exc}") from exc
    if not isinstance(document, dict) or "mode" not in document:
        raise ConfigError("Filter configuration must be an object with a 'mode' key.")

    raw_criteria = document.get("criteria") or []
    if not isinstance(raw_criteria, list):
        raise ConfigError("'criteria' must be a list.")

    pairs: List[Tuple[str, str]] = []
    for item in raw_criteria:
        if isinstance(item, dict):
            pairs.append((item.get("category", ""), item.get("value", "")))
        else:
            pairs.append(tuple(item))
    return FilterConfig.from_pairs(document["mode"], pairs)


def load_filter_config(source: str) -> FilterConfig:
    config = parse_filter_config(read_source_text(source, error_cls=ConfigError))
    logger.info("Loaded %s filter with %d criteria from %s", config.mode.value, len(config.criteria), source)
    return config


# ---------------------------------------------------------------------------
# Per-record steps
# ---------------------------------------------------------------------------

def validate_birth_year(record: Record, reference_year: int, row: Optional[int] = None) -> None:
    """
    Reject a record whose age at `reference_year` would be negative.
    `row` is the 0-based data row; the error reports it 1-based with the header counted.
    """
    if record.age(reference_year) < 0:
        raise InvalidRecord(
            field="birth_year",
            value=str(record.birth_year),
            row=row + 2 if row is not None else None,
        )


def normalize_missing_custom_fields(record: Record, schema: FieldSchema) -> None:
    for key in schema.keys():
        record.custom_values.setdefault(key, None)


def passes_ignore_rules(record: Record, criteria: Sequence[FilterCriterion], reference_year: int) -> bool:
    for criterion in criteria:
        if criterion.matches(record, reference_year):
            return False
    return True


def passes_include_rules(
    record: Record,
    criteria_by_category: Optional[Dict[StaticField, List[FilterCriterion]]],
    reference_year: int,
) -> bool:
    if not criteria_by_category:
        return True
    for group in criteria_by_category.values():
        if not group:
            continue
        if not any(c.matches(record, reference_year) for c in group):
            return False
    return True


def _strip_nul(value: Any) -> Any:
    if isinstance(value, str):
        return value.replace(NUL, "")
    if isinstance(value, list):
        return [_strip_nul(v) for v in value]
    return value


def clean_text(record: Record) -> None:
    for key, value in record.custom_values.items():
        record.custom_values[key] = _strip_nul(value)


def apply_filters(
    records: List[Record],
    schema: FieldSchema,
    filter_config: Optional[FilterConfig],
    reference_year: int,
) -> List[Record]:
    """
    Run every record through validate -> normalize -> filter -> clean.

    Records are updated in place. A birth-year violation aborts the whole batch.
    """
    kept: List[Record] = []
    groups = filter_config.by_category() if filter_config and filter_config.mode == FilterMode.INCLUDE else None

    for row, record in enumerate(records):
        validate_birth_year(record, reference_year, row)
        normalize_missing_custom_fields(record, schema)

        if filter_config is None:
            keep = True
        elif filter_config.mode == FilterMode.IGNORE:
            keep = passes_ignore_rules(record, filter_config.criteria, reference_year)
        else:
            keep = passes_include_rules(record, groups, reference_year)

        if keep:
            clean_text(record)
            kept.append(record)

    logger.info("Filtering kept %d of %d records.", len(kept), len(records))
    return kept
