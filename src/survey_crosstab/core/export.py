from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO, List, Union

import pandas as pd

from survey_crosstab.core.report import ReportSection
from survey_crosstab.core.tables import ReportTable, TableLayout

logger = logging.getLogger(__name__)

# Excel refuses longer sheet names.
MAX_SHEET_NAME = 31

# Blank rows left between two stacked tables.
TABLE_GAP = 1


def _write_table(writer: pd.ExcelWriter, sheet: str, table: ReportTable, row: int) -> int:
    """Write `table` at `row` and return the first free row below it."""
    for line in table.meta:
        pd.DataFrame([[line]]).to_excel(writer, sheet_name=sheet, startrow=row, header=False, index=False)
        row += 1

    df = table.to_frame()
    if df.shape[1] == 0:
        return row

    if table.layout == TableLayout.SPACE_AND_HIGHLIGHT_ON_4 and df.shape[1] > 4:
        df.iloc[:, :4].to_excel(writer, sheet_name=sheet, startrow=row, startcol=0, index=False)
        df.iloc[:, 4:].to_excel(writer, sheet_name=sheet, startrow=row, startcol=5, index=False)
    else:
        df.to_excel(writer, sheet_name=sheet, startrow=row, startcol=0, index=False)

    return row + len(df) + 1 + TABLE_GAP


def write_workbook(sections: List[ReportSection], target: Union[str, Path, BinaryIO]) -> None:
    """
    Write each section to its own worksheet, tables stacked top to bottom.
    Cell values are written as text; no styling or charts.
    """
    if isinstance(target, (str, Path)):
        Path(target).parent.mkdir(parents=True, exist_ok=True)

    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        for section in sections:
            sheet = section.name[:MAX_SHEET_NAME]
            # Make sure the sheet exists even when the section has no tables.
            pd.DataFrame().to_excel(writer, sheet_name=sheet, index=False)
            row = 0
            for table in section.tables:
                row = _write_table(writer, sheet, table, row)
            logger.info("Wrote sheet %s with %d tables.", sheet, len(section.tables))


def workbook_bytes(sections: List[ReportSection]) -> bytes:
    buffer = io.BytesIO()
    write_workbook(sections, buffer)
    return buffer.getvalue()
