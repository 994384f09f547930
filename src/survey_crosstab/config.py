from __future__ import annotations

import os
from datetime import date
from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Root of the project (repo root)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Data directories
DATA_DIR = PROJECT_ROOT / "data"
OUTPUT_DIR = DATA_DIR / "output"          # generated workbooks

# Default file names looked up under DATA_DIR when no source is configured
DEFAULT_SCHEMA_NAME = "meta.json"
DEFAULT_RESPONSES_NAME = "input.csv"
DEFAULT_OUTPUT_NAME = "output.xlsx"

# ---------------------------------------------------------------------------
# App identity
# ---------------------------------------------------------------------------

APP_NAME = "Survey Crosstab Report"
APP_VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Report defaults
#
# All of these can be overridden per run (ReportConfig) or from the UI.
# Sources may be local paths or http(s) URLs.
# ---------------------------------------------------------------------------

# "en" or "ja"; anything else falls back to "en"
REPORT_LANGUAGE = os.getenv("SURVEY_REPORT_LANGUAGE", "ja").strip()

# Year ages are computed against (defaults to the current year)
_year_env = os.getenv("SURVEY_REPORT_YEAR", "").strip()
REPORT_YEAR = int(_year_env) if _year_env.isdigit() else date.today().year

SCHEMA_SOURCE = os.getenv("SURVEY_SCHEMA_SOURCE", "").strip() or str(DATA_DIR / DEFAULT_SCHEMA_NAME)
RESPONSES_SOURCE = os.getenv("SURVEY_RESPONSES_SOURCE", "").strip() or str(DATA_DIR / DEFAULT_RESPONSES_NAME)

# Optional JSON filter document: {"mode": "ignore"|"include", "criteria": [[category, value], ...]}
FILTER_CONFIG_SOURCE = os.getenv("SURVEY_FILTER_CONFIG", "").strip()
