"""Tests for record validation, normalization and ignore/include filtering."""

import json

import pytest

from survey_crosstab.core.categories import AgeRange1060, ChildrenRange, Gender, Region
from survey_crosstab.core.errors import ConfigError, InvalidRecord, MissingOption
from survey_crosstab.core.fields import StaticField
from survey_crosstab.core.record_filter import (
    FilterConfig,
    FilterCriterion,
    FilterMode,
    apply_filters,
    clean_text,
    load_filter_config,
    normalize_missing_custom_fields,
    parse_filter_config,
    passes_ignore_rules,
    passes_include_rules,
    resolve_category,
    validate_birth_year,
)
from survey_crosstab.core.records import Record

YEAR = 2024


def _ids(records):
    return [r.id for r in records]


def test_no_filter_keeps_everything_and_normalizes(three_records, schema):
    kept = apply_filters(three_records, schema, None, YEAR)

    assert _ids(kept) == ["1", "2", "3"]
    for record in kept:
        assert set(record.custom_values) == {1, 2, 3, 4, 5}
    assert kept[0].custom_values[3] is None


def test_ignore_drops_records_matching_any_criterion(three_records, schema):
    config = FilterConfig.from_pairs("ignore", [("gender", "Male")])
    assert _ids(apply_filters(three_records, schema, config, YEAR)) == ["1", "3"]


def test_ignore_with_several_categories(three_records, schema):
    config = FilterConfig.from_pairs("ignore", [("gender", "Male"), ("children", "0")])
    assert _ids(apply_filters(three_records, schema, config, YEAR)) == ["3"]


def test_include_requires_a_match_in_every_category(three_records, schema):
    config = FilterConfig.from_pairs("include", [("gender", "Female"), ("children", "2")])
    assert _ids(apply_filters(three_records, schema, config, YEAR)) == ["3"]


def test_include_ors_values_within_a_category(three_records, schema):
    config = FilterConfig.from_pairs("include", [("gender", "Female"), ("gender", "Male")])
    assert _ids(apply_filters(three_records, schema, config, YEAR)) == ["1", "2", "3"]


def test_include_without_criteria_keeps_everything(three_records, schema):
    config = FilterConfig.from_pairs("include", [])
    assert len(apply_filters(three_records, schema, config, YEAR)) == 3


def test_filtering_is_idempotent(three_records, schema):
    config = FilterConfig.from_pairs("ignore", [("gender", "Male"), ("children", "2")])
    once = apply_filters(three_records, schema, config, YEAR)
    twice = apply_filters(list(once), schema, config, YEAR)
    assert _ids(once) == _ids(twice)


def test_negative_age_aborts_with_row(schema):
    records = [Record(id="ok", birth_year=1990), Record(id="bad", birth_year=2030)]
    with pytest.raises(InvalidRecord) as excinfo:
        apply_filters(records, schema, None, YEAR)

    assert excinfo.value.field == "birth_year"
    assert excinfo.value.row == 3
    assert str(excinfo.value) == "Invalid birth_year: 2030 at row 3"


def test_born_in_reference_year_is_valid(schema):
    assert len(apply_filters([Record(birth_year=YEAR)], schema, None, YEAR)) == 1


def test_clean_text_strips_nul_characters():
    record = Record(custom_values={3: "fi\u0000ne", 1: ["A\u0000", "B"], 5: None})
    clean_text(record)
    assert record.custom_values == {3: "fine", 1: ["A", "B"], 5: None}


def test_only_kept_records_are_cleaned(schema):
    dropped = Record(id="x", gender=Gender.MALE, custom_values={3: "a\u0000"})
    kept = Record(id="y", gender=Gender.FEMALE, custom_values={3: "b\u0000"})
    config = FilterConfig.from_pairs("ignore", [("gender", "Male")])

    apply_filters([dropped, kept], schema, config, YEAR)

    assert kept.custom_values[3] == "b"
    assert dropped.custom_values[3] == "a\u0000"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("gender", StaticField.GENDER),
        ("Gender", StaticField.GENDER),
        ("性別", StaticField.GENDER),
        ("地域", StaticField.REGION),
        ("age_range", StaticField.AGE_GROUP_1060),
        ("household_income", StaticField.YEARLY_INCOME),
        ("Marital Status and Children", StaticField.MARITAL_STATUS_AND_CHILDREN),
    ],
)
def test_resolve_category(name, expected):
    assert resolve_category(name) == expected


def test_unknown_names_are_rejected():
    with pytest.raises(MissingOption):
        FilterConfig.from_pairs("ignore", [("shoe size", "42")])
    with pytest.raises(MissingOption):
        FilterConfig.from_pairs("ignore", [("gender", "other")])
    with pytest.raises(ConfigError):
        FilterConfig.from_pairs("exclude", [])


def test_parse_filter_config_accepts_pairs_and_objects():
    document = json.dumps(
        {
            "mode": "include",
            "criteria": [{"category": "性別", "value": "男性"}, ["地域", "関西"], ["children", "4 or above"]],
        },
        ensure_ascii=False,
    )
    config = parse_filter_config(document)

    assert config.mode == FilterMode.INCLUDE
    assert [(c.category, c.value) for c in config.criteria] == [
        (StaticField.GENDER, Gender.MALE),
        (StaticField.REGION, Region.KANSAI),
        (StaticField.CHILDREN, ChildrenRange.ABOVE_4),
    ]


@pytest.mark.parametrize("document", ["{", "[]", {"criteria": []}, {"mode": "ignore", "criteria": "gender"}])
def test_malformed_filter_config(document):
    with pytest.raises(ConfigError):
        parse_filter_config(document)


def test_load_filter_config(tmp_path):
    path = tmp_path / "filter.json"
    path.write_text(json.dumps({"mode": "ignore", "criteria": [["job", "学生"]]}), encoding="utf-8")

    config = load_filter_config(str(path))

    assert config.mode == FilterMode.IGNORE
    assert len(config.criteria) == 1


def test_normalizing_a_complete_record_changes_nothing(schema):
    values = {1: ["A"], 2: "r", 3: "text", 4: "", 5: "2"}
    record = Record(custom_values=dict(values))

    normalize_missing_custom_fields(record, schema)

    assert record.custom_values == values


def test_empty_include_group_is_skipped():
    record = Record(gender=Gender.MALE, children=0)
    assert passes_include_rules(record, {StaticField.GENDER: []}, YEAR) is True

    groups = {
        StaticField.GENDER: [],
        StaticField.CHILDREN: [FilterCriterion(StaticField.CHILDREN, ChildrenRange.GROUP_2)],
    }
    assert passes_include_rules(record, groups, YEAR) is False


def test_ignore_stops_at_first_matching_criterion():
    # AGE is not categorical, so evaluating the second criterion would raise.
    criteria = [
        FilterCriterion(StaticField.GENDER, Gender.FEMALE),
        FilterCriterion(StaticField.AGE, AgeRange1060.GROUP_30S),
    ]
    assert passes_ignore_rules(Record(gender=Gender.FEMALE), criteria, YEAR) is False


def test_birth_year_error_without_row():
    with pytest.raises(InvalidRecord) as excinfo:
        validate_birth_year(Record(birth_year=2030), YEAR)

    assert excinfo.value.row is None
    assert str(excinfo.value) == "Invalid birth_year: 2030 at row unknown"
