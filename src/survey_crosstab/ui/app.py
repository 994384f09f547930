from __future__ import annotations

import time
import traceback
from typing import List, Optional, Tuple

import streamlit as st

from survey_crosstab.config import (
    APP_NAME,
    APP_VERSION,
    DEFAULT_OUTPUT_NAME,
    REPORT_LANGUAGE,
    REPORT_YEAR,
    RESPONSES_SOURCE,
    SCHEMA_SOURCE,
)
from survey_crosstab.core.categories import Language
from survey_crosstab.core.crosstab import CrosstabMode
from survey_crosstab.core.errors import SurveyCrosstabError
from survey_crosstab.core.export import workbook_bytes
from survey_crosstab.core.fields import crosstab_title
from survey_crosstab.core.record_filter import FilterConfig
from survey_crosstab.core.report import (
    ReportConfig,
    ReportDataset,
    build_dataset,
    build_dataset_from_text,
)
from survey_crosstab.core.tables import ReportTable

_DATASET_KEY = "report_dataset"

FILTER_MODES = ["none", "ignore", "include"]


def _parse_criteria_lines(text: str) -> List[Tuple[str, str]]:
    """One 'category,value' pair per line; blank lines are ignored."""
    pairs: List[Tuple[str, str]] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        category, _, value = line.partition(",")
        pairs.append((category.strip(), value.strip()))
    return pairs


def _show_table(table: ReportTable) -> None:
    for line in table.meta:
        st.caption(line)
    st.dataframe(table.to_frame(), use_container_width=True, hide_index=True)


def _render_inputs() -> Tuple[ReportConfig, Optional[bytes], Optional[bytes]]:
    with st.expander("Inputs", expanded=True):
        col1, col2 = st.columns(2)

        with col1:
            lang_code = st.selectbox(
                "Report language",
                options=[lng.value for lng in Language],
                index=[lng.value for lng in Language].index(Language.from_code(REPORT_LANGUAGE).value),
            )
            year = st.number_input("Reference year (ages are computed against it)", value=int(REPORT_YEAR), step=1)
            schema_upload = st.file_uploader("Schema document (JSON)", type=["json"])
            responses_upload = st.file_uploader("Responses (CSV)", type=["csv"])

        with col2:
            schema_source = st.text_input("…or schema path / URL", value=SCHEMA_SOURCE)
            responses_source = st.text_input("…or responses path / URL", value=RESPONSES_SOURCE)
            mode = st.selectbox("Filter mode", options=FILTER_MODES, index=0)
            criteria_text = st.text_area(
                "Filter criteria (one 'category,value' per line, e.g. gender,Male)",
                value="",
                height=120,
                disabled=(mode == "none"),
            )

    filter_config = None
    if mode != "none":
        filter_config = FilterConfig.from_pairs(mode, _parse_criteria_lines(criteria_text))

    config = ReportConfig(
        language=Language.from_code(lang_code),
        reference_year=int(year),
        schema_source=schema_source.strip(),
        responses_source=responses_source.strip(),
        filter_config=filter_config,
    )
    schema_bytes = schema_upload.getvalue() if schema_upload is not None else None
    responses_bytes = responses_upload.getvalue() if responses_upload is not None else None
    return config, schema_bytes, responses_bytes


def _build(config: ReportConfig, schema_bytes: Optional[bytes], responses_bytes: Optional[bytes]) -> ReportDataset:
    if schema_bytes is not None and responses_bytes is not None:
        return build_dataset_from_text(
            schema_bytes.decode("utf-8-sig"),
            responses_bytes.decode("utf-8-sig"),
            config,
        )
    return build_dataset(config)


def _render_build_button() -> None:
    try:
        config, schema_bytes, responses_bytes = _render_inputs()
    except SurveyCrosstabError as cerr:
        st.error(f"Filter configuration rejected: {cerr}")
        return

    if st.button("Build report", key="build_report_btn"):
        status = st.status("Loading inputs…", expanded=True)
        t0 = time.perf_counter()
        try:
            dataset = _build(config, schema_bytes, responses_bytes)
            status.write(
                f"Loaded {dataset.n_loaded} responses, kept {len(dataset.records)} "
                f"({dataset.n_filtered_out} filtered out) in {time.perf_counter() - t0:0.2f}s"
            )
            status.write(f"Custom fields in schema: {len(dataset.schema)}")
            status.update(label="Done.", state="complete")
            st.session_state[_DATASET_KEY] = dataset

        except SurveyCrosstabError as err:
            status.update(label="Report build failed.", state="error")
            st.error(f"Report build failed: {err}")
            st.text_area("Traceback", value=traceback.format_exc(), height=260)

        except Exception as e:
            status.update(label="Unexpected error.", state="error")
            st.error("Unexpected error while building the report.")
            st.code(repr(e))
            st.text_area("Traceback", value=traceback.format_exc(), height=260)


def _render_summaries(dataset: ReportDataset) -> None:
    with st.expander("Demographic summaries", expanded=True):
        tables = dataset.summary_tables()
        cols = st.columns(2)
        for i, (source, table) in enumerate(tables.items()):
            with cols[i % 2]:
                st.subheader(source.value)
                _show_table(table)


def _render_custom_fields(dataset: ReportDataset) -> None:
    with st.expander("Custom questions", expanded=False):
        tables = dataset.custom_field_summaries()
        if not tables:
            st.write("The schema defines no questions with options.")
        for table in tables:
            _show_table(table)


def _render_crosstab(dataset: ReportDataset) -> None:
    with st.expander("Crosstab", expanded=False):
        builder = dataset.builder
        fields = builder.candidate_fields()
        base = st.selectbox("Base field", options=fields, format_func=crosstab_title, key="ct_base")
        mode = st.radio("Values", options=list(CrosstabMode), format_func=lambda m: m.value, horizontal=True)

        _show_table(builder.self_distribution_table(base))
        for secondary in fields:
            _show_table(builder.crosstab_table(base, secondary, mode))


def _render_raw(dataset: ReportDataset) -> None:
    with st.expander("Raw data", expanded=False):
        extended = st.checkbox("Include bucketed age and family columns", value=False)
        _show_table(dataset.raw_table(extended=extended))


def _render_download(dataset: ReportDataset) -> None:
    try:
        payload = workbook_bytes(dataset.sections())
    except Exception:
        st.error("Error while writing the workbook.")
        st.text_area("Traceback", value=traceback.format_exc(), height=200)
        return

    st.download_button(
        "Download workbook",
        data=payload,
        file_name=DEFAULT_OUTPUT_NAME,
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


def run_app() -> None:
    st.set_page_config(page_title=APP_NAME, page_icon="📊", layout="wide")
    st.title(APP_NAME)
    st.caption(f"Version {APP_VERSION}")

    _render_build_button()

    dataset: Optional[ReportDataset] = st.session_state.get(_DATASET_KEY)
    if dataset is None:
        st.info("Provide a schema and responses, then build the report.")
        return

    _render_summaries(dataset)
    _render_custom_fields(dataset)
    _render_crosstab(dataset)
    _render_raw(dataset)
    _render_download(dataset)
