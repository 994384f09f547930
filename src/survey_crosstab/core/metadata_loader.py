from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from survey_crosstab.core.errors import SchemaParseError, UnknownField
from survey_crosstab.core.sources import read_source_text

logger = logging.getLogger(__name__)

# In-memory cache of parsed schemas, keyed by source (path or URL)
_SCHEMA_CACHE: Dict[str, "FieldSchema"] = {}

_DIGITS_RE = re.compile(r"\d")


class CustomFieldVariant(str, Enum):
    """Question types, valued by the tag used in the schema document."""
    DROPDOWN = "dropdown"
    RADIO = "radio"
    MULTI_SELECT = "checkbox"
    TEXT = "text"
    TEXTAREA = "textarea"
    HTML = "html"

    @property
    def has_options(self) -> bool:
        return self in (CustomFieldVariant.DROPDOWN, CustomFieldVariant.RADIO, CustomFieldVariant.MULTI_SELECT)


@dataclass(frozen=True)
class CustomFieldDef:
    """
    One question defined by the schema.

    `options` maps option key -> option label and preserves the order in
    which the schema declares them. It is empty for Text/TextArea/Html.
    """
    key: int
    question_key: str
    label: str
    variant: CustomFieldVariant
    required: bool = False
    options: Dict[str, str] = field(default_factory=dict)
    html: str = ""


class FieldSchema:
    """
    Immutable map of custom-field key -> definition, iterated in ascending key order.
    """

    def __init__(self, fields: Optional[List[CustomFieldDef]] = None) -> None:
        ordered = sorted(fields or [], key=lambda f: f.key)
        self._fields: Dict[int, CustomFieldDef] = {f.key: f for f in ordered}

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self):
        return iter(self._fields.values())

    def keys(self) -> List[int]:
        return list(self._fields.keys())

    def get(self, key: int) -> CustomFieldDef:
        try:
            return self._fields[key]
        except KeyError as exc:
            raise UnknownField(f"Custom field {key} is not defined in the schema.") from exc

    def discrete_keys(self) -> List[int]:
        """Keys of fields with an option table (Dropdown, Radio, MultiSelect)."""
        return [k for k, f in self._fields.items() if f.variant.has_options]

    def keys_except_html(self) -> List[int]:
        return [k for k, f in self._fields.items() if f.variant != CustomFieldVariant.HTML]


# ---------------------------------------------------------------------------
# Schema document parsing
# ---------------------------------------------------------------------------

def extract_field_key(question_key: str) -> Optional[int]:
    """
    Numeric id of a question: every digit in the key, concatenated.
    'field12' -> 12, 'q1_3' -> 13, 'intro' -> None.
    """
    digits = "".join(_DIGITS_RE.findall(str(question_key)))
    if not digits:
        return None
    return int(digits)


def _parse_options(raw: Any, question_key: str) -> Dict[str, str]:
    if not isinstance(raw, list):
        raise SchemaParseError(f"Question {question_key}: 'Options' must be a list.")
    options: Dict[str, str] = {}
    for opt in raw:
        if not isinstance(opt, dict) or "Value" not in opt or "Label" not in opt:
            raise SchemaParseError(f"Question {question_key}: every option needs 'Value' and 'Label'.")
        options[str(opt["Value"])] = str(opt["Label"])
    return options


def _parse_element(element: Any) -> Optional[CustomFieldDef]:
    if not isinstance(element, dict):
        raise SchemaParseError(f"Schema element must be an object, got {type(element).__name__}.")

    question_key = element.get("QuestionKey")
    if not isinstance(question_key, str):
        raise SchemaParseError("Schema element is missing 'QuestionKey'.")

    type_tag = element.get("Type")
    try:
        variant = CustomFieldVariant(type_tag)
    except ValueError as exc:
        raise SchemaParseError(f"Question {question_key}: unknown type {type_tag!r}.") from exc

    key = extract_field_key(question_key)
    if key is None:
        logger.warning("Skipping question %r: no numeric id in its key.", question_key)
        return None

    options: Dict[str, str] = {}
    if variant.has_options:
        if "Options" not in element:
            raise SchemaParseError(f"Question {question_key}: '{variant.value}' requires 'Options'.")
        options = _parse_options(element["Options"], question_key)

    return CustomFieldDef(
        key=key,
        question_key=question_key,
        label=str(element.get("Label") or ""),
        variant=variant,
        required=bool(element.get("Required", False)),
        options=options,
        html=str(element.get("Html") or ""),
    )


def parse_schema(document: Union[str, bytes, Dict[str, Any]]) -> FieldSchema:
    """
    Build a FieldSchema from a schema document.

    Expected structure:
      {"Pages": [{"Elements": [
          {"QuestionKey": "field1", "Label": "...", "Required": true,
           "Type": "dropdown|radio|checkbox|text|textarea|html",
           "Options": [{"Value": "1", "Label": "..."}],   # dropdown/radio/checkbox
           "Html": "..."}                                  # html
      ]}]}

    Elements whose key carries no digits are skipped. When two elements
    resolve to the same numeric id, the later one wins.
    """
    if isinstance(document, (str, bytes)):
        try:
            document = json.loads(document)
        except ValueError as exc:
            raise SchemaParseError(f"Schema document is not valid JSON: {exc}") from exc

    if not isinstance(document, dict) or not isinstance(document.get("Pages"), list):
        raise SchemaParseError("Schema document must be an object with a 'Pages' list.")

    by_key: Dict[int, CustomFieldDef] = {}
    for page in document["Pages"]:
        if not isinstance(page, dict) or not isinstance(page.get("Elements"), list):
            raise SchemaParseError("Every page must be an object with an 'Elements' list.")
        for element in page["Elements"]:
            parsed = _parse_element(element)
            if parsed is None:
                continue
            if parsed.key in by_key:
                logger.warning("Question id %d defined more than once; keeping %r.", parsed.key, parsed.question_key)
            by_key[parsed.key] = parsed

    schema = FieldSchema(list(by_key.values()))
    logger.info("Parsed schema with %d custom fields (%d with options).", len(schema), len(schema.discrete_keys()))
    return schema


def load_schema(source: str, refresh: bool = False) -> FieldSchema:
    """
    Load and parse the schema document at `source` (local path or http(s) URL),
    cached in memory per source.
    """
    if source in _SCHEMA_CACHE and not refresh:
        return _SCHEMA_CACHE[source]

    logger.info("Loading schema document: %s", source)
    schema = parse_schema(read_source_text(source, error_cls=SchemaParseError))
    _SCHEMA_CACHE[source] = schema
    return schema
