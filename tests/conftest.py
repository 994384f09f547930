"""Shared fixtures for the survey crosstab tests."""

import json
from pathlib import Path

import pytest

from survey_crosstab.core.categories import Gender, Language, MaritalStatus
from survey_crosstab.core.distribution import DistributionEngine
from survey_crosstab.core.metadata_loader import FieldSchema, parse_schema
from survey_crosstab.core.records import Record

REFERENCE_YEAR = 2024


@pytest.fixture
def schema_document() -> dict:
    """Schema with one question of every kind, spread over two pages."""
    return {
        "Pages": [
            {
                "Elements": [
                    {
                        "QuestionKey": "field2",
                        "Label": "Favourite colour",
                        "Required": True,
                        "Type": "dropdown",
                        "Options": [
                            {"Value": "r", "Label": "Red"},
                            {"Value": "g", "Label": "Green"},
                        ],
                    },
                    {
                        "QuestionKey": "field1",
                        "Label": "Snacks",
                        "Type": "checkbox",
                        "Options": [
                            {"Value": "A", "Label": "Apple"},
                            {"Value": "B", "Label": "Banana"},
                            {"Value": "C", "Label": "Cherry"},
                        ],
                    },
                    {"QuestionKey": "intro", "Type": "html", "Html": "<p>Welcome</p>"},
                ]
            },
            {
                "Elements": [
                    {"QuestionKey": "field3", "Label": "Comments", "Type": "textarea"},
                    {"QuestionKey": "field4", "Label": "Notice", "Type": "html", "Html": "<p>Thanks</p>"},
                    {
                        "QuestionKey": "field5",
                        "Label": "Satisfied?",
                        "Type": "radio",
                        "Options": [
                            {"Value": "1", "Label": "Yes"},
                            {"Value": "2", "Label": "No"},
                        ],
                    },
                ]
            },
        ]
    }


@pytest.fixture
def schema(schema_document: dict) -> FieldSchema:
    return parse_schema(schema_document)


@pytest.fixture
def schema_path(tmp_path: Path, schema_document: dict) -> Path:
    path = tmp_path / "meta.json"
    path.write_text(json.dumps(schema_document, ensure_ascii=False), encoding="utf-8")
    return path


@pytest.fixture
def three_records() -> list:
    """Female/0 children, Male/2 children, Female/2 children."""
    return [
        Record(id="1", gender=Gender.FEMALE, children=0, birth_year=1990,
               custom_values={1: ["A", "C"], 2: "r", 5: "1"}),
        Record(id="2", gender=Gender.MALE, children=2, birth_year=1980, marital_status=MaritalStatus.MARRIED,
               custom_values={1: ["B"], 2: "g", 5: "2"}),
        Record(id="3", gender=Gender.FEMALE, children=2, birth_year=2001, marital_status=MaritalStatus.MARRIED,
               custom_values={1: [], 2: "Green", 5: None}),
    ]


@pytest.fixture
def engine(three_records: list, schema: FieldSchema) -> DistributionEngine:
    for record in three_records:
        for key in schema.keys():
            record.custom_values.setdefault(key, None)
    return DistributionEngine(three_records, schema, lng=Language.EN, reference_year=REFERENCE_YEAR)


CSV_HEADER = (
    "id,user_id,campaign_id,price,bonus_point,status,created_at,updated at,email,nickname,"
    "gender,birth_year,job,prefecture,marital_status,children,household_income_min,"
    "household_income_max,field1,field2,field3,field5"
)


def csv_row(**overrides) -> str:
    values = {
        "id": "100",
        "user_id": "u1",
        "campaign_id": "c1",
        "price": "1000",
        "bonus_point": "10",
        "status": "purchased",
        "created_at": "2024-01-01 10:00:00",
        "updated at": "2024-01-02 10:00:00",
        "email": "a@example.com",
        "nickname": "nick",
        "gender": "female",
        "birth_year": "1990",
        "job": "学生",
        "prefecture": "東京都",
        "marital_status": "single",
        "children": "0",
        "household_income_min": "3000000",
        "household_income_max": "3999999",
        "field1": '"[""A"",""C""]"',
        "field2": "r",
        "field3": "",
        "field5": "1",
    }
    values.update(overrides)
    return ",".join(values[c] for c in CSV_HEADER.split(","))


@pytest.fixture
def make_csv():
    """Build a response CSV from per-row column overrides."""
    def _make(*overrides: dict) -> str:
        return CSV_HEADER + "\n" + "\n".join(csv_row(**o) for o in overrides) + "\n"
    return _make


@pytest.fixture
def responses_csv(make_csv) -> str:
    return make_csv(
        {},
        dict(id="101", gender="male", birth_year="1975", job="会社員（技術系）", prefecture="大阪府",
             marital_status="married", children="2", household_income_min="8000000",
             household_income_max="8999999", field1='"[""B""]"', field2="g", field3="good", field5="2"),
        dict(id="102", gender="女", birth_year="1960", prefecture="北海道", field1="", field2="",
             field3="fine", field5=""),
    )


@pytest.fixture
def responses_path(tmp_path: Path, responses_csv: str) -> Path:
    path = tmp_path / "input.csv"
    path.write_text(responses_csv, encoding="utf-8")
    return path
