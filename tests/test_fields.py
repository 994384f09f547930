"""Tests for schema parsing and field resolution."""

import pytest

from survey_crosstab.core.categories import Language
from survey_crosstab.core.errors import SchemaParseError, UnknownField, UnsupportedField
from survey_crosstab.core.fields import (
    ComputedColumn,
    FieldReference,
    StaticField,
    crosstab_label,
    crosstab_title,
    crosstab_type,
    field_title,
    field_variants,
    is_multi_valued,
)
from survey_crosstab.core.metadata_loader import (
    CustomFieldVariant,
    extract_field_key,
    load_schema,
    parse_schema,
)
from survey_crosstab.core.records import Record


def test_schema_keys_sorted_and_keyless_elements_skipped(schema):
    assert schema.keys() == [1, 2, 3, 4, 5]
    assert schema.discrete_keys() == [1, 2, 5]
    assert schema.keys_except_html() == [1, 2, 3, 5]
    assert schema.get(4).html == "<p>Thanks</p>"


def test_options_keep_schema_order(schema):
    field1 = schema.get(1)
    assert field1.variant == CustomFieldVariant.MULTI_SELECT
    assert list(field1.options.items()) == [("A", "Apple"), ("B", "Banana"), ("C", "Cherry")]
    assert schema.get(2).required is True
    assert schema.get(1).required is False


def test_extract_field_key():
    assert extract_field_key("field12") == 12
    assert extract_field_key("q1_3") == 13
    assert extract_field_key("intro") is None


@pytest.mark.parametrize(
    "document",
    [
        "not json",
        {"pages": []},
        {"Pages": [{"Elements": [{"QuestionKey": "field1", "Type": "slider"}]}]},
        {"Pages": [{"Elements": [{"QuestionKey": "field1", "Type": "radio"}]}]},
        {"Pages": [{"Elements": [{"QuestionKey": "field1", "Type": "radio", "Options": [{"Value": "1"}]}]}]},
    ],
)
def test_malformed_schema_raises(document):
    with pytest.raises(SchemaParseError):
        parse_schema(document)


def test_load_schema_from_path(schema_path):
    schema = load_schema(str(schema_path), refresh=True)
    assert schema.discrete_keys() == [1, 2, 5]


def test_field_reference_equality_and_order():
    assert FieldReference.of_custom(3) == FieldReference.of_custom(3)
    assert FieldReference.of_static(StaticField.GENDER) != FieldReference.of_custom(3)
    refs = [
        FieldReference.of_custom(5),
        FieldReference.of_computed(StaticField.GENDER, ComputedColumn.VALUE),
        FieldReference.of_static(StaticField.JOB),
        FieldReference.of_custom(1),
        FieldReference.of_static(StaticField.GENDER),
    ]
    ordered = sorted(refs, key=FieldReference.sort_key)
    assert [str(r) for r in ordered] == ["gender", "job", "field1", "field5", "gender.value"]


def test_static_variants_and_titles(schema):
    gender = FieldReference.of_static(StaticField.GENDER)
    assert field_variants(gender, schema, Language.JA) == ["女性", "男性"]
    assert field_title(gender, schema, Language.JA) == "性別"
    assert field_title(FieldReference.of_static(StaticField.PREFECTURE), schema, Language.JA) == "現住所"


def test_custom_variants_follow_option_order(schema):
    assert field_variants(FieldReference.of_custom(1), schema, Language.EN) == ["Apple", "Banana", "Cherry"]
    assert is_multi_valued(FieldReference.of_custom(1), schema)
    assert not is_multi_valued(FieldReference.of_custom(2), schema)
    assert not is_multi_valued(FieldReference.of_static(StaticField.GENDER), schema)


def test_undefined_custom_keys_raise(schema):
    unknown = FieldReference.of_custom(99)
    with pytest.raises(UnknownField):
        is_multi_valued(unknown, schema)
    with pytest.raises(UnknownField):
        Record().value_as_text(unknown, Language.EN, 2024, schema)
    assert Record().value_as_text(unknown, Language.EN, 2024) == "NULL"


def test_non_discrete_fields_are_rejected(schema):
    with pytest.raises(UnsupportedField):
        field_variants(FieldReference.of_custom(3), schema, Language.EN)
    with pytest.raises(UnsupportedField):
        field_variants(FieldReference.of_static(StaticField.AGE), schema, Language.EN)
    with pytest.raises(UnsupportedField):
        field_variants(FieldReference.of_computed(StaticField.JOB, ComputedColumn.LABEL), schema, Language.EN)
    with pytest.raises(UnknownField):
        field_variants(FieldReference.of_custom(99), schema, Language.EN)


def test_crosstab_headers(schema):
    age = FieldReference.of_static(StaticField.AGE_GROUP_1060)
    assert crosstab_title(age) == "age_range"
    assert crosstab_type(age, schema, Language.JA) == "プルダウン"
    assert crosstab_label(age, schema, Language.JA) == "年代"

    snacks = FieldReference.of_custom(1)
    assert crosstab_title(snacks) == "field1"
    assert crosstab_type(snacks, schema, Language.JA) == "マルチセレクト"
    assert crosstab_type(FieldReference.of_custom(5), schema, Language.JA) == "ラジオボタン"
    assert crosstab_label(snacks, schema, Language.JA) == "Snacks"
