from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import pandas as pd


class TableLayout(Enum):
    PLAIN = "plain"
    # Leave a gap after the first four (header) columns and highlight the rest.
    SPACE_AND_HIGHLIGHT_ON_4 = "space_and_highlight_on_4"


@dataclass
class Header:
    text: str
    highlight: bool = False


@dataclass
class Column:
    header: Header
    contents: List[str] = field(default_factory=list)
    footer: Optional[str] = None


@dataclass
class ReportTable:
    """
    A table handed to the report writer: an ordered list of columns, plus
    optional meta lines (title, type, label) printed above it.
    """
    columns: List[Column]
    meta: List[str] = field(default_factory=list)
    layout: TableLayout = TableLayout.PLAIN

    @property
    def headers(self) -> List[str]:
        return [c.header.text for c in self.columns]

    @property
    def n_rows(self) -> int:
        return max((len(c.contents) for c in self.columns), default=0)

    def column(self, header_text: str) -> Column:
        """First column whose header reads `header_text`."""
        for col in self.columns:
            if col.header.text == header_text:
                return col
        raise KeyError(header_text)

    def to_frame(self) -> pd.DataFrame:
        """
        Cells as a DataFrame of strings. Short columns are padded with "" and,
        when any column has a footer, footers become the last row.
        """
        n_rows = self.n_rows
        data = [c.contents + [""] * (n_rows - len(c.contents)) for c in self.columns]
        if any(c.footer is not None for c in self.columns):
            for values, col in zip(data, self.columns):
                values.append(col.footer if col.footer is not None else "")
            n_rows += 1

        rows = [[values[i] for values in data] for i in range(n_rows)]
        return pd.DataFrame(rows, columns=self.headers, dtype=str)
