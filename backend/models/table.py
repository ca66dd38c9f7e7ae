"""
Value objects for converted 3GPP tables.

This module defines the immutable records produced by the sheet parsers:
cell indices and rectangles, table metadata, and the nested
row/column tree recovered from a bordered table region.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from openpyxl.utils import get_column_letter, column_index_from_string

# Excel cell name, e.g. A1, C12, AB1001
EXCEL_CELL_NAME_PATTERN = re.compile(r'^([A-Z]+)([0-9]+)$')


@dataclass(frozen=True)
class ExcelCellIndex:
    """0-based row/column index of a single cell."""

    row: int
    column: int

    def __post_init__(self):
        if self.row < 0 or self.column < 0:
            raise ValueError(f"Invalid cell index ({self.row}, {self.column}), must be non-negative")

    @classmethod
    def of(cls, row: int, column: int) -> 'ExcelCellIndex':
        return cls(row, column)

    @classmethod
    def from_name(cls, name: str) -> 'ExcelCellIndex':
        """
        Parse an Excel cell name to the 0-based index pair.

        For example: A1 -> (0, 0), C12 -> (11, 2), AB1001 -> (1000, 27)

        Raises:
            ValueError: If the name is not a plain column-letters + row-number reference
        """
        match = EXCEL_CELL_NAME_PATTERN.match(name.strip().upper()) if isinstance(name, str) else None
        if not match:
            raise ValueError(f"Unrecognizable Excel cell name '{name}'")

        col_str, row_str = match.groups()
        row = int(row_str)
        if row < 1:
            raise ValueError(f"Unrecognizable Excel cell name '{name}'")

        return cls(row - 1, column_index_from_string(col_str) - 1)

    @property
    def name(self) -> str:
        return f"{get_column_letter(self.column + 1)}{self.row + 1}"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ExcelRect:
    """
    Rectangle region [begin_row, end_row) x [begin_col, end_col).

    Both ranges are half-open and must be non-empty.
    """

    begin_row: int
    end_row: int
    begin_col: int
    end_col: int

    def __post_init__(self):
        if not (0 <= self.begin_row < self.end_row and 0 <= self.begin_col < self.end_col):
            raise ValueError(
                f"Invalid rectangle rows [{self.begin_row}, {self.end_row}) "
                f"columns [{self.begin_col}, {self.end_col})"
            )

    @classmethod
    def of(cls, top_left: str, bottom_right: str) -> 'ExcelRect':
        """Build a rectangle from two inclusive corner cell names, e.g. ("A5", "G48")."""
        first = ExcelCellIndex.from_name(top_left)
        last = ExcelCellIndex.from_name(bottom_right)
        return cls(first.row, last.row + 1, first.column, last.column + 1)

    @property
    def top_left(self) -> ExcelCellIndex:
        return ExcelCellIndex(self.begin_row, self.begin_col)

    @property
    def bottom_right(self) -> ExcelCellIndex:
        return ExcelCellIndex(self.end_row - 1, self.end_col - 1)

    def __str__(self) -> str:
        return f"{self.top_left}:{self.bottom_right}"


@dataclass(frozen=True)
class TableMetadata:
    """Identification of a 3GPP table and the region holding its data."""

    # e.g. "36.101" + "h50" + "5.5A.1-1"
    spec_name: str
    spec_version: str
    table_serial_number: str
    table_title: str
    data_rect: ExcelRect

    @property
    def begin_row(self) -> int:
        return self.data_rect.begin_row

    @property
    def end_row(self) -> int:
        return self.data_rect.end_row

    @property
    def begin_col(self) -> int:
        return self.data_rect.begin_col

    @property
    def end_col(self) -> int:
        return self.data_rect.end_col

    def to_dict(self) -> Dict[str, str]:
        return {
            'spec_name': self.spec_name,
            'spec_version': self.spec_version,
            'table_serial_number': self.table_serial_number,
            'table_title': self.table_title,
            'top_left': str(self.data_rect.top_left),
            'bottom_right': str(self.data_rect.bottom_right),
        }


@dataclass(frozen=True)
class TableColumn:
    """
    One logical column of a table row.

    A leaf column holds the non-empty strings of its cells; a parent column
    holds nested logical rows.
    """

    values: Optional[Tuple[str, ...]] = None
    rows: Optional[Tuple['TableRow', ...]] = None

    def __post_init__(self):
        if (self.values is None) == (self.rows is None):
            raise ValueError("A table column is either a leaf or a parent")
        if self.rows is not None and not self.rows:
            raise ValueError("A parent column needs at least one row")

    @classmethod
    def leaf(cls, values: Sequence[str]) -> 'TableColumn':
        return cls(values=tuple(values))

    @classmethod
    def parent(cls, rows: Sequence['TableRow']) -> 'TableColumn':
        return cls(rows=tuple(rows))

    @classmethod
    def empty(cls) -> 'TableColumn':
        return cls(values=())

    @property
    def is_leaf(self) -> bool:
        return self.values is not None

    @property
    def is_empty(self) -> bool:
        return self.values == ()


@dataclass(frozen=True)
class TableRow:
    columns: Tuple[TableColumn, ...] = ()

    @classmethod
    def from_columns(cls, columns: Sequence[TableColumn]) -> 'TableRow':
        return cls(tuple(columns))


@dataclass(frozen=True)
class TableData:
    """All logical rows parsed from a table region."""

    rows: Tuple[TableRow, ...] = ()

    @classmethod
    def from_rows(cls, rows: Sequence[TableRow]) -> 'TableData':
        return cls(tuple(rows))

    def flatten(self, separator: str = '\n') -> List[List[str]]:
        """
        Expand nested parent columns into flat records.

        Every combination of a row's column alternatives becomes one record;
        a leaf contributes its strings joined by ``separator``. Records may
        differ in length when sibling sub-rows have different widths.
        """
        records = []
        for row in self.rows:
            records.extend(_flatten_row(row, separator))
        return records

    def stats(self) -> Dict[str, int]:
        leaf_count = 0
        max_depth = 0

        stack = [(row, 1) for row in self.rows]
        while stack:
            row, depth = stack.pop()
            max_depth = max(max_depth, depth)
            for column in row.columns:
                if column.is_leaf:
                    leaf_count += 1
                else:
                    stack.extend((child, depth + 1) for child in column.rows)

        return {
            'rows': len(self.rows),
            'records': len(self.flatten()),
            'leaf_columns': leaf_count,
            'max_depth': max_depth,
        }


def _flatten_row(row: TableRow, separator: str) -> List[List[str]]:
    records: List[List[str]] = [[]]
    for column in row.columns:
        if column.is_leaf:
            alternatives = [[separator.join(column.values)]]
        else:
            alternatives = []
            for child in column.rows:
                alternatives.extend(_flatten_row(child, separator))
        records = [prefix + alternative for prefix in records for alternative in alternatives]
    return records


@dataclass(frozen=True)
class ConvertedTable:
    """A fully parsed workbook: metadata plus table data."""

    metadata: TableMetadata
    data: TableData
    source: Optional[str] = field(default=None, compare=False)
