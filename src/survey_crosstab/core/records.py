from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

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
from survey_crosstab.core.fields import FieldReference, StaticField
from survey_crosstab.core.metadata_loader import FieldSchema

NULL_TEXT = "NULL"


@dataclass
class Record:
    """
    One survey response.

    Static attributes are typed. `custom_values` maps custom-field key to the
    raw answer: str, int, float, bool, a list of str (multi-select), or None.
    """
    id: str = ""
    user_id: str = ""
    campaign_id: str = ""
    price: int = 0
    bonus_point: int = 0
    status: PurchaseStatus = PurchaseStatus.PURCHASED
    created_at: str = ""
    updated_at: str = ""
    email: str = ""
    nickname: str = ""
    gender: Gender = Gender.FEMALE
    birth_year: int = 1990
    job: Job = Job.OTHERS
    prefecture: Prefecture = Prefecture.TOKYO
    marital_status: MaritalStatus = MaritalStatus.SINGLE
    children: int = 0
    household_income_min: int = 0
    household_income_max: int = 0
    custom_values: Dict[int, Any] = field(default_factory=dict)

    # -----------------------------------------------------------------------
    # Derived attributes
    # -----------------------------------------------------------------------

    def age(self, reference_year: int) -> int:
        return reference_year - self.birth_year

    def age_group(self, reference_year: int) -> int:
        return (max(self.age(reference_year), 0) // 10) * 10

    def age_range_1060(self, reference_year: int) -> AgeRange1060:
        return AgeRange1060.from_age(max(self.age(reference_year), 0))

    def age_range_1070(self, reference_year: int) -> AgeRange1070:
        return AgeRange1070.from_age(max(self.age(reference_year), 0))

    @property
    def region(self) -> Region:
        return self.prefecture.region

    @property
    def children_range(self) -> ChildrenRange:
        return ChildrenRange.from_count(self.children)

    @property
    def income_range(self) -> YearlyIncomeRange:
        return YearlyIncomeRange.from_income(self.household_income_min, self.household_income_max)

    @property
    def family_status(self) -> FamilyStatus:
        return FamilyStatus.from_status(self.marital_status, self.children)

    def category_value(self, static_field: StaticField, reference_year: int) -> CategoryEnum:
        """Enumeration member this record falls into for a categorical static field."""
        getter = _CATEGORY_GETTERS.get(static_field)
        if getter is None:
            raise UnsupportedField(f"Static field '{static_field.value}' is not categorical.")
        return getter(self, reference_year)

    # -----------------------------------------------------------------------
    # String rendering
    # -----------------------------------------------------------------------

    def static_value(self, static_field: StaticField, lng: Language, reference_year: int) -> str:
        if static_field == StaticField.ID:
            return self.id
        if static_field == StaticField.USER_ID:
            return self.user_id
        if static_field == StaticField.CREATED_AT:
            return self.created_at
        if static_field == StaticField.AGE:
            return str(self.age(reference_year))
        if static_field == StaticField.AGE_GROUP:
            suffix = "代" if lng == Language.JA else "s"
            return f"{self.age_group(reference_year)}{suffix}"
        return self.category_value(static_field, reference_year).display(lng)

    def value_as_text(
        self,
        ref: FieldReference,
        lng: Language,
        reference_year: int,
        schema: Optional[FieldSchema] = None,
    ) -> str:
        """
        Raw-table text of one field. When `schema` is given, custom keys it
        does not define raise UnknownField instead of rendering as NULL.
        """
        if ref.is_static:
            return self.static_value(ref.static_field, lng, reference_year)
        if ref.is_custom:
            if schema is not None:
                schema.get(ref.custom_key)
            return render_custom_value(self.custom_values.get(ref.custom_key))
        raise UnsupportedField(f"Computed field '{ref}' has no per-record value.")


_CATEGORY_GETTERS: Dict[StaticField, Callable[[Record, int], CategoryEnum]] = {
    StaticField.PURCHASE_STATUS: lambda r, year: r.status,
    StaticField.GENDER: lambda r, year: r.gender,
    StaticField.JOB: lambda r, year: r.job,
    StaticField.PREFECTURE: lambda r, year: r.prefecture,
    StaticField.REGION: lambda r, year: r.region,
    StaticField.MARITAL_STATUS: lambda r, year: r.marital_status,
    StaticField.CHILDREN: lambda r, year: r.children_range,
    StaticField.MARITAL_STATUS_AND_CHILDREN: lambda r, year: r.family_status,
    StaticField.YEARLY_INCOME: lambda r, year: r.income_range,
    StaticField.AGE_GROUP_1060: lambda r, year: r.age_range_1060(year),
    StaticField.AGE_GROUP_1070: lambda r, year: r.age_range_1070(year),
}


def render_custom_value(value: Any) -> str:
    """
    Text form of a custom answer as it appears in raw tables:
    None -> NULL, list -> ["a","b"], bool -> true/false, numbers as-is.
    """
    if value is None:
        return NULL_TEXT
    if isinstance(value, list):
        if not value:
            return "[]"
        return '["' + '","'.join(render_custom_value(v) for v in value) + '"]'
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def scalar_text(value: Any) -> Optional[str]:
    """Stringified form used to match a scalar answer against option keys and labels."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)
