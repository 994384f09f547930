"""
Field addressing.

A FieldReference names one column of the report, wherever its values come
from:
  - STATIC    a built-in attribute of every response (gender, job, id, ...)
  - CUSTOM    a question defined by the schema, addressed by numeric key
  - COMPUTED  a column of a pre-aggregated summary table (label, value, ...)

All lookups (titles, variants, multi-valued-ness) dispatch on this one type.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Type

from survey_crosstab.core.categories import (
    AgeRange1060,
    AgeRange1070,
    CategoryEnum,
    ChildrenRange,
    FamilyStatus,
    Gender,
    Job,
    Language,
    MaritalStatus,
    Prefecture,
    PurchaseStatus,
    Region,
    YearlyIncomeRange,
)
from survey_crosstab.core.errors import UnsupportedField
from survey_crosstab.core.labels import get_text
from survey_crosstab.core.metadata_loader import CustomFieldVariant, FieldSchema


class StaticField(str, Enum):
    ID = "id"
    USER_ID = "user_id"
    CREATED_AT = "created_at"
    GENDER = "gender"
    JOB = "job"
    PREFECTURE = "prefecture"
    REGION = "region"
    MARITAL_STATUS = "marital_status"
    CHILDREN = "children"
    MARITAL_STATUS_AND_CHILDREN = "marital_status_and_children"
    YEARLY_INCOME = "yearly_income"
    AGE = "age"
    AGE_GROUP = "age_group"
    AGE_GROUP_1060 = "age_group_1060"
    AGE_GROUP_1070 = "age_group_1070"
    PURCHASE_STATUS = "purchase_status"

    @property
    def category(self) -> Optional[Type[CategoryEnum]]:
        """Enumeration backing this field, or None for free-form attributes."""
        return STATIC_CATEGORIES.get(self)


STATIC_CATEGORIES: Dict[StaticField, Type[CategoryEnum]] = {
    StaticField.GENDER: Gender,
    StaticField.JOB: Job,
    StaticField.PREFECTURE: Prefecture,
    StaticField.REGION: Region,
    StaticField.MARITAL_STATUS: MaritalStatus,
    StaticField.CHILDREN: ChildrenRange,
    StaticField.MARITAL_STATUS_AND_CHILDREN: FamilyStatus,
    StaticField.YEARLY_INCOME: YearlyIncomeRange,
    StaticField.AGE_GROUP_1060: AgeRange1060,
    StaticField.AGE_GROUP_1070: AgeRange1070,
    StaticField.PURCHASE_STATUS: PurchaseStatus,
}

# Built-in fields that take part in crosstabs, in report order, with the
# machine-readable title used in crosstab headers.
CROSSTAB_STATIC_FIELDS: List[Tuple[StaticField, str]] = [
    (StaticField.AGE_GROUP_1060, "age_range"),
    (StaticField.GENDER, "gender"),
    (StaticField.MARITAL_STATUS, "marital_status"),
    (StaticField.CHILDREN, "children"),
    (StaticField.JOB, "job"),
    (StaticField.REGION, "region"),
    (StaticField.YEARLY_INCOME, "household_income"),
]
_CROSSTAB_TITLES: Dict[StaticField, str] = dict(CROSSTAB_STATIC_FIELDS)


class ComputedColumn(str, Enum):
    LABEL = "label"
    VALUE = "value"
    DISPLAY = "display"
    GRAPH_LABEL = "graph_label"
    PERCENTAGE = "percentage"


@dataclass(frozen=True)
class ComputedKind:
    """One column of the summary table aggregated over `source`."""
    source: StaticField
    column: ComputedColumn


class FieldKind(Enum):
    STATIC = 0
    CUSTOM = 1
    COMPUTED = 2


@dataclass(frozen=True)
class FieldReference:
    kind: FieldKind
    static_field: Optional[StaticField] = None
    custom_key: Optional[int] = None
    computed_kind: Optional[ComputedKind] = None

    @classmethod
    def of_static(cls, static_field: StaticField) -> "FieldReference":
        return cls(kind=FieldKind.STATIC, static_field=static_field)

    @classmethod
    def of_custom(cls, key: int) -> "FieldReference":
        return cls(kind=FieldKind.CUSTOM, custom_key=int(key))

    @classmethod
    def of_computed(cls, source: StaticField, column: ComputedColumn) -> "FieldReference":
        return cls(kind=FieldKind.COMPUTED, computed_kind=ComputedKind(source, column))

    @property
    def is_static(self) -> bool:
        return self.kind == FieldKind.STATIC

    @property
    def is_custom(self) -> bool:
        return self.kind == FieldKind.CUSTOM

    @property
    def is_computed(self) -> bool:
        return self.kind == FieldKind.COMPUTED

    def sort_key(self) -> Tuple[int, int, int]:
        """Total order: static fields in declaration order, then custom by key, then computed."""
        if self.kind == FieldKind.STATIC:
            return (0, _STATIC_ORDER[self.static_field], 0)
        if self.kind == FieldKind.CUSTOM:
            return (1, self.custom_key, 0)
        ck = self.computed_kind
        return (2, _STATIC_ORDER[ck.source], _COMPUTED_ORDER[ck.column])

    def __str__(self) -> str:
        if self.kind == FieldKind.STATIC:
            return self.static_field.value
        if self.kind == FieldKind.CUSTOM:
            return f"field{self.custom_key}"
        return f"{self.computed_kind.source.value}.{self.computed_kind.column.value}"


_STATIC_ORDER: Dict[StaticField, int] = {f: i for i, f in enumerate(StaticField)}
_COMPUTED_ORDER: Dict[ComputedColumn, int] = {c: i for i, c in enumerate(ComputedColumn)}


# ---------------------------------------------------------------------------
# Resolution against the active schema
# ---------------------------------------------------------------------------

def field_title(ref: FieldReference, schema: FieldSchema, lng: Language) -> str:
    """Human-readable column title."""
    if ref.is_static:
        return get_text(f"title.{ref.static_field.value}", lng)
    if ref.is_custom:
        return schema.get(ref.custom_key).label
    ck = ref.computed_kind
    if ck.column == ComputedColumn.LABEL:
        return get_text(f"computed.label.{ck.source.value}", lng)
    return get_text(f"computed.{ck.column.value}", lng)


def field_variants(ref: FieldReference, schema: FieldSchema, lng: Language) -> List[str]:
    """
    Ordered variant labels of a discrete field. Static fields follow their
    enumeration's declaration order, custom fields the schema's option order.
    """
    if ref.is_static:
        category = ref.static_field.category
        if category is None:
            raise UnsupportedField(f"Static field '{ref}' has no discrete variants.")
        return category.labels(lng)
    if ref.is_custom:
        definition = schema.get(ref.custom_key)
        if not definition.variant.has_options:
            raise UnsupportedField(
                f"Custom field {ref.custom_key} ({definition.variant.value}) has no discrete options."
            )
        return list(definition.options.values())
    raise UnsupportedField(f"Computed field '{ref}' cannot be tabulated.")


def field_option_keys(ref: FieldReference, schema: FieldSchema) -> List[str]:
    """Option keys of a discrete custom field, aligned with field_variants()."""
    if not ref.is_custom:
        raise UnsupportedField(f"'{ref}' is not a custom field.")
    definition = schema.get(ref.custom_key)
    if not definition.variant.has_options:
        raise UnsupportedField(f"Custom field {ref.custom_key} has no discrete options.")
    return list(definition.options.keys())


def is_multi_valued(ref: FieldReference, schema: FieldSchema) -> bool:
    """True for MultiSelect custom fields. Unknown custom keys raise UnknownField."""
    if not ref.is_custom:
        return False
    return schema.get(ref.custom_key).variant == CustomFieldVariant.MULTI_SELECT


def custom_type_text(variant: CustomFieldVariant, lng: Language) -> str:
    key = {
        CustomFieldVariant.DROPDOWN: "type.pulldown",
        CustomFieldVariant.RADIO: "type.radio",
        CustomFieldVariant.MULTI_SELECT: "type.multiselect",
        CustomFieldVariant.TEXT: "type.text",
        CustomFieldVariant.TEXTAREA: "type.textarea",
        CustomFieldVariant.HTML: "type.html",
    }[variant]
    return get_text(key, lng)


# ---------------------------------------------------------------------------
# Crosstab header cells: title, type, label
# ---------------------------------------------------------------------------

def crosstab_title(ref: FieldReference) -> str:
    if ref.is_custom:
        return f"field{ref.custom_key}"
    if ref.is_static and ref.static_field in _CROSSTAB_TITLES:
        return _CROSSTAB_TITLES[ref.static_field]
    raise UnsupportedField(f"'{ref}' is not a crosstab field.")


def crosstab_type(ref: FieldReference, schema: FieldSchema, lng: Language) -> str:
    if ref.is_custom:
        return custom_type_text(schema.get(ref.custom_key).variant, lng)
    if ref.is_static and ref.static_field in _CROSSTAB_TITLES:
        return get_text("type.pulldown", lng)
    raise UnsupportedField(f"'{ref}' is not a crosstab field.")


def crosstab_label(ref: FieldReference, schema: FieldSchema, lng: Language) -> str:
    if ref.is_custom:
        return schema.get(ref.custom_key).label
    if ref.is_static and ref.static_field in _CROSSTAB_TITLES:
        return get_text(f"crosstab.{_CROSSTAB_TITLES[ref.static_field]}", lng)
    raise UnsupportedField(f"'{ref}' is not a crosstab field.")
