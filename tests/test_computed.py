"""Tests for the demographic summary (graph) tables."""

import pytest

from survey_crosstab.core.categories import Job, Language
from survey_crosstab.core.computed import (
    computed_values,
    summary_columns,
    summary_table,
    summary_tables,
)
from survey_crosstab.core.distribution import DistributionEngine
from survey_crosstab.core.errors import UnsupportedField
from survey_crosstab.core.fields import ComputedColumn, FieldReference, StaticField


def test_summary_columns():
    assert [str(r) for r in summary_columns(StaticField.GENDER)] == [
        "gender.label", "gender.value", "gender.display",
    ]
    assert [str(r) for r in summary_columns(StaticField.JOB)] == [
        "job.label", "job.value", "job.graph_label", "job.percentage",
    ]
    with pytest.raises(UnsupportedField):
        summary_columns(StaticField.PREFECTURE)


def test_simple_summary_table(engine):
    table = summary_table(engine, StaticField.GENDER)

    assert table.headers == ["Gender label", "Value", "Display value"]
    assert [c.header.highlight for c in table.columns] == [True, True, False]

    frame = table.to_frame()
    assert frame.values.tolist() == [
        ["Female", "2", "2"],
        ["Male", "1", "1"],
        ["Total", "3", ""],
    ]


def test_display_values_are_localized(three_records, schema):
    engine = DistributionEngine(three_records, schema, lng=Language.JA, reference_year=2024)
    table = summary_table(engine, StaticField.MARITAL_STATUS)

    assert table.headers == ["未既婚ラベル", "値", "表示用値"]
    assert table.column("表示用値").contents == ["2件", "1件"]
    assert table.column("未既婚ラベル").footer == "計"


def test_graph_summary_table(engine):
    table = summary_table(engine, StaticField.JOB)

    assert table.headers == ["Job label", "Value", "Graph label", "Percentage"]
    others = Job.get_all().index(Job.OTHERS)
    assert table.column("Graph label").contents[others] == "Others(n=3)"
    assert table.column("Graph label").contents[0] == "Full-time Housewife(n=0)"
    assert table.column("Percentage").contents[others] == "100.0%"
    assert table.column("Percentage").footer == "100.0%"
    assert table.column("Graph label").footer == ""


def test_percentages_on_empty_records(schema):
    engine = DistributionEngine([], schema)
    ref = FieldReference.of_computed(StaticField.REGION, ComputedColumn.PERCENTAGE)
    assert set(computed_values(engine, ref)) == {"0.0%"}


def test_computed_values_reject_other_fields(engine):
    with pytest.raises(UnsupportedField):
        computed_values(engine, FieldReference.of_static(StaticField.GENDER))


def test_summary_tables(engine):
    tables = summary_tables(engine)
    assert list(tables) == [
        StaticField.AGE_GROUP_1060,
        StaticField.AGE_GROUP_1070,
        StaticField.GENDER,
        StaticField.MARITAL_STATUS,
        StaticField.CHILDREN,
        StaticField.JOB,
        StaticField.REGION,
        StaticField.YEARLY_INCOME,
    ]
