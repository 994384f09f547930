from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from survey_crosstab.config import (
    FILTER_CONFIG_SOURCE,
    REPORT_LANGUAGE,
    REPORT_YEAR,
    RESPONSES_SOURCE,
    SCHEMA_SOURCE,
)
from survey_crosstab.core.categories import Language
from survey_crosstab.core.computed import summary_tables
from survey_crosstab.core.crosstab import CrosstabBuilder, CrosstabMode
from survey_crosstab.core.data_loader import parse_records_csv, timed_load_records
from survey_crosstab.core.distribution import DistributionEngine
from survey_crosstab.core.fields import StaticField
from survey_crosstab.core.metadata_loader import FieldSchema, load_schema, parse_schema
from survey_crosstab.core.record_filter import FilterConfig, apply_filters, load_filter_config
from survey_crosstab.core.records import Record
from survey_crosstab.core.tables import ReportTable

logger = logging.getLogger(__name__)


@dataclass
class ReportConfig:
    """
    Settings for one report run.

    filter_config wins over filter_source when both are given.
    """
    language: Language = Language.EN
    reference_year: int = REPORT_YEAR
    schema_source: str = ""
    responses_source: str = ""
    filter_source: str = ""
    filter_config: Optional[FilterConfig] = None

    @classmethod
    def from_env(cls) -> "ReportConfig":
        return cls(
            language=Language.from_code(REPORT_LANGUAGE),
            reference_year=REPORT_YEAR,
            schema_source=SCHEMA_SOURCE,
            responses_source=RESPONSES_SOURCE,
            filter_source=FILTER_CONFIG_SOURCE,
        )

    def resolve_filter(self) -> Optional[FilterConfig]:
        if self.filter_config is not None:
            return self.filter_config
        if self.filter_source:
            return load_filter_config(self.filter_source)
        return None


@dataclass
class ReportSection:
    """A named group of tables; one worksheet in the exported workbook."""
    name: str
    tables: List[ReportTable] = field(default_factory=list)


@dataclass
class ReportDataset:
    """Filtered records plus everything needed to tabulate them."""
    config: ReportConfig
    schema: FieldSchema
    records: List[Record]
    n_loaded: int
    engine: DistributionEngine = field(init=False)
    builder: CrosstabBuilder = field(init=False)

    def __post_init__(self) -> None:
        self.engine = DistributionEngine(
            self.records,
            self.schema,
            lng=self.config.language,
            reference_year=self.config.reference_year,
        )
        self.builder = CrosstabBuilder(self.engine)

    @property
    def n_filtered_out(self) -> int:
        return self.n_loaded - len(self.records)

    def crosstab_tables(self, mode: CrosstabMode = CrosstabMode.COUNT) -> List[ReportTable]:
        return self.builder.build_tables(mode)

    def summary_tables(self) -> Dict[StaticField, ReportTable]:
        return summary_tables(self.engine)

    def custom_field_summaries(self) -> List[ReportTable]:
        return self.builder.custom_field_summaries()

    def raw_table(self, extended: bool = False) -> ReportTable:
        return self.builder.raw_table(extended=extended)

    def sections(self) -> List[ReportSection]:
        """Every table of the report, grouped in workbook order."""
        return [
            ReportSection("rawdata", [self.raw_table(extended=False)]),
            ReportSection("rawdata_extended", [self.raw_table(extended=True)]),
            ReportSection("user_graph", list(self.summary_tables().values())),
            ReportSection("aggregate", self.custom_field_summaries()),
            ReportSection("crosstab(n)", self.crosstab_tables(CrosstabMode.COUNT)),
            ReportSection("crosstab(%)", self.crosstab_tables(CrosstabMode.PERCENTAGE)),
        ]


def _filtered_dataset(config: ReportConfig, schema: FieldSchema, records: List[Record]) -> ReportDataset:
    # Resolve the filter before touching any record so a bad criterion aborts early.
    filter_config = config.resolve_filter()
    n_loaded = len(records)
    kept = apply_filters(records, schema, filter_config, config.reference_year)
    return ReportDataset(config=config, schema=schema, records=kept, n_loaded=n_loaded)


def build_dataset(config: Optional[ReportConfig] = None) -> ReportDataset:
    """Load schema and responses from the configured sources, then filter them."""
    config = config or ReportConfig.from_env()
    schema = load_schema(config.schema_source)
    records, elapsed = timed_load_records(config.responses_source)
    logger.info("Loaded %d responses in %.2fs", len(records), elapsed)
    return _filtered_dataset(config, schema, records)


def build_dataset_from_text(schema_text: str, responses_csv: str, config: ReportConfig) -> ReportDataset:
    """Same as build_dataset, for documents already in memory (e.g. uploads)."""
    schema = parse_schema(schema_text)
    records = parse_records_csv(responses_csv)
    return _filtered_dataset(config, schema, records)
