"""Tests for reading response exports into typed records."""

import pytest

from survey_crosstab.core import sources
from survey_crosstab.core.categories import (
    Gender,
    Job,
    MaritalStatus,
    Prefecture,
    PurchaseStatus,
    Region,
    YearlyIncomeRange,
)
from survey_crosstab.core.data_loader import (
    is_custom_column,
    load_records,
    parse_custom_value,
    parse_records_csv,
    timed_load_records,
)
from survey_crosstab.core.errors import RecordParseError, SchemaParseError


def test_parse_records_csv(responses_csv):
    first, second, third = parse_records_csv(responses_csv)

    assert first.id == "100"
    assert first.status == PurchaseStatus.PURCHASED
    assert first.gender == Gender.FEMALE
    assert first.job == Job.STUDENT
    assert first.prefecture == Prefecture.TOKYO
    assert first.marital_status == MaritalStatus.SINGLE
    assert first.updated_at == "2024-01-02 10:00:00"
    assert first.income_range == YearlyIncomeRange.GROUP_3_TO_4_MIL
    assert first.custom_values == {1: ["A", "C"], 2: "r", 3: None, 5: "1"}

    assert second.gender == Gender.MALE
    assert second.job == Job.EMPLOYEE_TECH
    assert second.region == Region.KANSAI
    assert second.children == 2
    assert second.custom_values[1] == ["B"]

    assert third.gender == Gender.FEMALE
    assert third.prefecture == Prefecture.HOKKAIDO
    assert third.custom_values == {1: None, 2: None, 3: "fine", 5: None}


def test_custom_columns_need_a_numeric_id():
    assert is_custom_column("field12")
    assert not is_custom_column("household_income_min")
    assert not is_custom_column("updated at")
    assert not is_custom_column("comment")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", None),
        (None, None),
        ("plain", "plain"),
        ('["a", 1]', ["a", "1"]),
        ("[]", []),
        ("[not json", "[not json"),
        ('{"a": 1}', '{"a": 1}'),
    ],
)
def test_parse_custom_value(raw, expected):
    assert parse_custom_value(raw) == expected


def test_bad_integer_reports_the_row(make_csv):
    text = make_csv({}, {"birth_year": "nineteen"})
    with pytest.raises(RecordParseError, match="Row 3"):
        parse_records_csv(text)


def test_unknown_category_value_is_rejected(make_csv):
    with pytest.raises(RecordParseError, match="gender"):
        parse_records_csv(make_csv({"gender": "unknown"}))


def test_missing_static_columns():
    with pytest.raises(RecordParseError, match="missing required columns"):
        parse_records_csv("id,gender\n1,female\n")


def _with_extra_column(text: str, name: str, value: str) -> str:
    header, *rows = text.rstrip("\n").split("\n")
    return "\n".join([f"{header},{name}"] + [f"{row},{value}" for row in rows]) + "\n"


def test_duplicated_header_is_rejected(make_csv):
    # pandas alone would rename the second one to 'field1.1', i.e. key 11.
    text = _with_extra_column(make_csv({}), "field1", "A")
    with pytest.raises(RecordParseError, match="duplicated columns: \\['field1'\\]"):
        parse_records_csv(text)


def test_columns_sharing_a_custom_key_are_rejected(make_csv):
    text = _with_extra_column(make_csv({}), "q_1", "A")
    with pytest.raises(RecordParseError, match="both map to custom field 1"):
        parse_records_csv(text)


def test_load_records_from_path(responses_path):
    records = load_records(str(responses_path))
    assert [r.id for r in records] == ["100", "101", "102"]

    timed, elapsed = timed_load_records(str(responses_path))
    assert len(timed) == 3
    assert elapsed >= 0


def test_missing_file(tmp_path):
    with pytest.raises(RecordParseError, match="Could not read"):
        load_records(str(tmp_path / "absent.csv"))


class _FakeResponse:
    def __init__(self, status_code, content):
        self.status_code = status_code
        self.content = content
        self.text = content.decode("utf-8", errors="replace")


class _FakeSession:
    def __init__(self, response):
        self.response = response
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        return self.response


def test_read_source_over_http(monkeypatch, responses_csv):
    session = _FakeSession(_FakeResponse(200, ("\ufeff" + responses_csv).encode("utf-8")))
    monkeypatch.setattr(sources, "_get_session", lambda: session)

    records = load_records("https://example.com/export.csv")

    assert session.requested == ["https://example.com/export.csv"]
    assert len(records) == 3


def test_http_error_status(monkeypatch):
    session = _FakeSession(_FakeResponse(503, b"unavailable"))
    monkeypatch.setattr(sources, "_get_session", lambda: session)

    with pytest.raises(SchemaParseError, match="status=503"):
        sources.read_source_text("https://example.com/meta.json", error_cls=SchemaParseError)
