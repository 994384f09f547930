from __future__ import annotations

import logging
from typing import Dict, List, Optional

from survey_crosstab.core.distribution import DistributionEngine
from survey_crosstab.core.errors import UnsupportedField
from survey_crosstab.core.fields import ComputedColumn, FieldReference, StaticField, field_title
from survey_crosstab.core.labels import get_text
from survey_crosstab.core.tables import Column, Header, ReportTable

logger = logging.getLogger(__name__)

# Demographics summarised as label / value / display.
SIMPLE_SUMMARY_FIELDS: List[StaticField] = [
    StaticField.AGE_GROUP_1060,
    StaticField.AGE_GROUP_1070,
    StaticField.GENDER,
    StaticField.MARITAL_STATUS,
    StaticField.CHILDREN,
]

# Demographics summarised as label / value / graph label / percentage.
GRAPH_SUMMARY_FIELDS: List[StaticField] = [
    StaticField.JOB,
    StaticField.REGION,
    StaticField.YEARLY_INCOME,
]

_HIGHLIGHTED = {ComputedColumn.LABEL, ComputedColumn.VALUE}


def summary_columns(source: StaticField) -> List[FieldReference]:
    """Computed fields making up the summary table of `source`, in column order."""
    if source in SIMPLE_SUMMARY_FIELDS:
        kinds = [ComputedColumn.LABEL, ComputedColumn.VALUE, ComputedColumn.DISPLAY]
    elif source in GRAPH_SUMMARY_FIELDS:
        kinds = [ComputedColumn.LABEL, ComputedColumn.VALUE, ComputedColumn.GRAPH_LABEL, ComputedColumn.PERCENTAGE]
    else:
        raise UnsupportedField(f"No summary table is defined for '{source.value}'.")
    return [FieldReference.of_computed(source, kind) for kind in kinds]


def computed_values(engine: DistributionEngine, ref: FieldReference) -> List[str]:
    """Cell values of one computed column, one per variant of its source field."""
    if not ref.is_computed:
        raise UnsupportedField(f"'{ref}' is not a computed field.")

    kind = ref.computed_kind
    dist = engine.self_distribution(FieldReference.of_static(kind.source))

    if kind.column == ComputedColumn.LABEL:
        return list(dist.variant_order)
    if kind.column == ComputedColumn.VALUE:
        return [str(n) for n in dist.freq]
    if kind.column == ComputedColumn.DISPLAY:
        template = get_text("computed.display_format", engine.lng)
        return [template.format(n=n) for n in dist.freq]
    if kind.column == ComputedColumn.GRAPH_LABEL:
        return [f"{label}(n={n})" for label, n in zip(dist.variant_order, dist.freq)]

    # Share of all records, not of answered ones.
    total = dist.total
    return [f"{(n / total * 100.0) if total else 0.0:.1f}%" for n in dist.freq]


def computed_footer(engine: DistributionEngine, ref: FieldReference) -> Optional[str]:
    column = ref.computed_kind.column
    if column == ComputedColumn.LABEL:
        return get_text("total", engine.lng)
    if column == ComputedColumn.VALUE:
        return str(engine.total)
    if column == ComputedColumn.PERCENTAGE:
        return "100.0%"
    return ""


def summary_table(engine: DistributionEngine, source: StaticField) -> ReportTable:
    columns: List[Column] = []
    for ref in summary_columns(source):
        columns.append(
            Column(
                header=Header(field_title(ref, engine.schema, engine.lng), ref.computed_kind.column in _HIGHLIGHTED),
                contents=computed_values(engine, ref),
                footer=computed_footer(engine, ref),
            )
        )
    return ReportTable(columns=columns)


def summary_tables(engine: DistributionEngine) -> Dict[StaticField, ReportTable]:
    """Every demographic summary, keyed by the field it summarises."""
    tables = {source: summary_table(engine, source) for source in SIMPLE_SUMMARY_FIELDS + GRAPH_SUMMARY_FIELDS}
    logger.info("Built %d demographic summary tables over %d records.", len(tables), engine.total)
    return tables
