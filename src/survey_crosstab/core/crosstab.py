from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Union

from survey_crosstab.core.distribution import DistributionEngine, DistributionResult, percentages
from survey_crosstab.core.fields import (
    CROSSTAB_STATIC_FIELDS,
    FieldReference,
    StaticField,
    crosstab_label,
    crosstab_title,
    crosstab_type,
    field_option_keys,
    field_title,
    is_multi_valued,
)
from survey_crosstab.core.labels import get_text
from survey_crosstab.core.tables import Column, Header, ReportTable, TableLayout

logger = logging.getLogger(__name__)

Number = Union[int, float]

# Columns of the raw response tables, before the custom fields.
RAW_FIELDS_BASIC: List[StaticField] = [
    StaticField.ID,
    StaticField.USER_ID,
    StaticField.CREATED_AT,
    StaticField.GENDER,
    StaticField.PREFECTURE,
    StaticField.REGION,
    StaticField.AGE,
    StaticField.AGE_GROUP,
    StaticField.JOB,
    StaticField.MARITAL_STATUS,
    StaticField.CHILDREN,
    StaticField.YEARLY_INCOME,
]

RAW_FIELDS_EXTENDED: List[StaticField] = [
    StaticField.ID,
    StaticField.USER_ID,
    StaticField.CREATED_AT,
    StaticField.GENDER,
    StaticField.PREFECTURE,
    StaticField.REGION,
    StaticField.AGE,
    StaticField.AGE_GROUP,
    StaticField.AGE_GROUP_1060,
    StaticField.AGE_GROUP_1070,
    StaticField.JOB,
    StaticField.MARITAL_STATUS,
    StaticField.CHILDREN,
    StaticField.MARITAL_STATUS_AND_CHILDREN,
    StaticField.YEARLY_INCOME,
]


class CrosstabMode(Enum):
    COUNT = "count"
    PERCENTAGE = "percentage"


class CrosstabBuilder:
    """
    Assembles report tables from a DistributionEngine.

    Candidate fields are the built-in categorical fields in report order,
    followed by every custom field with an option table in ascending key order.
    """

    def __init__(self, engine: DistributionEngine) -> None:
        self.engine = engine
        self.schema = engine.schema
        self.lng = engine.lng
        self._self_cache: Dict[FieldReference, DistributionResult] = {}

    def candidate_fields(self) -> List[FieldReference]:
        fields = [FieldReference.of_static(f) for f, _ in CROSSTAB_STATIC_FIELDS]
        fields.extend(FieldReference.of_custom(k) for k in self.schema.discrete_keys())
        return fields

    def _self_distribution(self, ref: FieldReference) -> DistributionResult:
        if ref not in self._self_cache:
            self._self_cache[ref] = self.engine.self_distribution(ref)
        return self._self_cache[ref]

    # -----------------------------------------------------------------------
    # Crosstab tables
    # -----------------------------------------------------------------------

    def self_distribution_table(self, ref: FieldReference) -> ReportTable:
        dist = self._self_distribution(ref)
        columns = [
            Column(Header(crosstab_title(ref), True)),
            Column(Header(crosstab_type(ref, self.schema, self.lng), True)),
            Column(Header(crosstab_label(ref, self.schema, self.lng), True)),
            Column(
                Header(get_text("options", self.lng), True),
                [get_text("count", self.lng), get_text("percentage", self.lng)],
            ),
        ]
        for variant, freq, perc in zip(dist.variant_order, dist.freq, dist.perc):
            columns.append(Column(Header(variant, True), [str(freq), f"{perc:.2f}%"]))
        return ReportTable(columns=columns, layout=TableLayout.SPACE_AND_HIGHLIGHT_ON_4)

    def crosstab_matrix(
        self,
        base: FieldReference,
        secondary: FieldReference,
        mode: CrosstabMode = CrosstabMode.COUNT,
    ) -> List[List[Number]]:
        """
        matrix[i][j]: base variant i among records whose secondary answer is variant j.
        In PERCENTAGE mode each column j is a share of its own total.
        """
        base_variants = self.engine.variant_order(base)
        matrix: List[List[Number]] = [[] for _ in base_variants]
        for row in self._secondary_rows(base, secondary, mode):
            for i, value in enumerate(row):
                matrix[i].append(value)
        return matrix

    def _secondary_rows(
        self,
        base: FieldReference,
        secondary: FieldReference,
        mode: CrosstabMode,
    ) -> List[List[Number]]:
        """One list per secondary variant, aligned with the base variants."""
        rows: List[List[Number]] = []
        for match_value in self._match_values(secondary):
            if mode == CrosstabMode.COUNT:
                rows.append(self.engine.conditional_distribution(base, secondary, match_value))
            else:
                rows.append(self.engine.conditional_percentages(base, secondary, match_value))
        return rows

    def _match_values(self, ref: FieldReference) -> List[str]:
        # Custom variants are matched by option key so that two options
        # sharing a label still get their own row.
        if ref.is_custom:
            return field_option_keys(ref, self.schema)
        return [m.name for m in ref.static_field.category.get_all()]

    def crosstab_table(
        self,
        base: FieldReference,
        secondary: FieldReference,
        mode: CrosstabMode = CrosstabMode.COUNT,
    ) -> ReportTable:
        """
        Secondary field down the rows, base variants across the columns.

        Columns: secondary title (cells: type, label) | options | count |
        percentage | one highlighted column per base variant.
        """
        sec = self._self_distribution(secondary)
        columns = [
            Column(
                Header(crosstab_title(secondary), False),
                [crosstab_type(secondary, self.schema, self.lng), crosstab_label(secondary, self.schema, self.lng)],
            ),
            Column(Header(get_text("options", self.lng), False), list(sec.variant_order)),
            Column(Header(get_text("count", self.lng), False), [str(n) for n in sec.freq]),
            Column(Header(get_text("percentage", self.lng), False), [f"{p:.2f}%" for p in sec.perc]),
        ]

        base_variants = self.engine.variant_order(base)
        data_columns = [Column(Header(v, True)) for v in base_variants]
        for row in self._secondary_rows(base, secondary, mode):
            for col, value in zip(data_columns, row):
                col.contents.append(str(value) if mode == CrosstabMode.COUNT else f"{value:.2f}")

        columns.extend(data_columns)
        return ReportTable(columns=columns, layout=TableLayout.PLAIN)

    def build_tables(self, mode: CrosstabMode = CrosstabMode.COUNT) -> List[ReportTable]:
        """
        For every candidate base field: its self-distribution table, then one
        crosstab table per candidate secondary field (the base itself included).
        """
        fields = self.candidate_fields()
        tables: List[ReportTable] = []
        for base in fields:
            tables.append(self.self_distribution_table(base))
            for secondary in fields:
                tables.append(self.crosstab_table(base, secondary, mode))
        logger.info("Built %d crosstab tables (%s) over %d fields.", len(tables), mode.value, len(fields))
        return tables

    # -----------------------------------------------------------------------
    # Custom field summaries and raw tables
    # -----------------------------------------------------------------------

    def custom_field_summaries(self) -> List[ReportTable]:
        """
        One table per custom field with options: option label, count, and
        count as a share of all records.
        """
        tables: List[ReportTable] = []
        for key in self.schema.discrete_keys():
            ref = FieldReference.of_custom(key)
            dist = self._self_distribution(ref)
            perc = percentages(dist.freq, dist.total)
            tables.append(
                ReportTable(
                    columns=[
                        Column(Header(get_text("options", self.lng)), list(dist.variant_order)),
                        Column(Header(get_text("count", self.lng)), [str(n) for n in dist.freq]),
                        Column(Header(get_text("percentage", self.lng)), [f"{p:.2f}%" for p in perc]),
                    ],
                    meta=[
                        crosstab_title(ref),
                        crosstab_type(ref, self.schema, self.lng),
                        crosstab_label(ref, self.schema, self.lng),
                    ],
                )
            )
        return tables

    def raw_table(self, extended: bool = False) -> ReportTable:
        """
        One row per record. Multi-select fields get their answer column plus
        one 0/1 column per option.
        """
        static_fields = RAW_FIELDS_EXTENDED if extended else RAW_FIELDS_BASIC
        refs = [FieldReference.of_static(f) for f in static_fields]
        refs.extend(FieldReference.of_custom(k) for k in self.schema.keys_except_html())

        columns: List[Column] = []
        for ref in refs:
            columns.extend(self._raw_columns(ref))
        return ReportTable(columns=columns)

    def _raw_columns(self, ref: FieldReference) -> List[Column]:
        records = self.engine.records
        year = self.engine.reference_year
        base = Column(
            Header(field_title(ref, self.schema, self.lng), False),
            [r.value_as_text(ref, self.lng, year, self.schema) for r in records],
        )
        if not is_multi_valued(ref, self.schema):
            return [base]

        # Flags reuse the engine's buckets so they agree with the distributions.
        hits_per_record = self.engine.bucket_indices(ref)
        columns = [base]
        for i, label in enumerate(self.engine.variant_order(ref)):
            flags = ["1" if hits and i in hits else "0" for hits in hits_per_record]
            columns.append(Column(Header(label, True), flags))
        return columns
