"""
Sheet utilities for reading cell text and cell borders.

All indices in this module are 0-based (row, column) pairs, while openpyxl
itself is 1-based. Border lookups treat the top border of a cell and the
bottom border of the cell above it as the same line, and likewise for
left/right borders.
"""

import logging
from datetime import date, datetime, time
from typing import Dict, Iterable, Optional, Set, Tuple

from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.worksheet.worksheet import Worksheet

from backend.models.table import ExcelCellIndex
from services.exceptions import UnsupportedCellError

logger = logging.getLogger(__name__)

# Rich text runs with these alignments are footnote markers
SCRIPT_ALIGNMENTS = ('superscript', 'subscript')


class SheetGrid:
    """
    Read-only 0-based view of a worksheet.

    openpyxl's ``Worksheet.cell()`` creates missing cells and recomputes the
    used range on every ``max_row`` access, so the range is captured once
    and lookups outside it return None.

    Merged ranges are indexed by cell. openpyxl copies the bottom/right
    sides of a merge onto its anchor and spreads the anchor's sides over
    the edge cells, so lines strictly inside a merge must be ignored.
    """

    def __init__(self, worksheet: Worksheet):
        if worksheet is None:
            raise ValueError("Worksheet must not be None")
        self.worksheet = worksheet
        self.title = worksheet.title
        self.row_count = worksheet.max_row
        self.column_count = worksheet.max_column

        # (row, column) -> 0-based inclusive (min_row, max_row, min_col, max_col)
        self._merged: Dict[Tuple[int, int], Tuple[int, int, int, int]] = {}
        for merged in worksheet.merged_cells.ranges:
            bounds = (merged.min_row - 1, merged.max_row - 1, merged.min_col - 1, merged.max_col - 1)
            for row, column in merged.cells:
                self._merged[row - 1, column - 1] = bounds
        if self._merged:
            logger.debug(f"Sheet '{self.title}' has {len(worksheet.merged_cells.ranges)} merged ranges")

    def in_same_merge(self, first: Tuple[int, int], second: Tuple[int, int]) -> bool:
        """Check whether two cells belong to the same merged range."""
        bounds = self._merged.get(first)
        return bounds is not None and bounds == self._merged.get(second)

    def has_row(self, row: int) -> bool:
        return 0 <= row < self.row_count

    def has_cell(self, row: int, column: int) -> bool:
        return self.has_row(row) and 0 <= column < self.column_count

    def cell(self, row: int, column: int):
        """Return the openpyxl cell at (row, column), or None outside the used range."""
        if not self.has_cell(row, column):
            return None
        return self.worksheet.cell(row=row + 1, column=column + 1)


def parse_excel_cell_name(name: str) -> ExcelCellIndex:
    """
    Parse a cell name used by Excel to the 0-based row/column index pair.

    For example: A1 -> (0, 0), C12 -> (11, 2), AA70 -> (69, 26)
    """
    return ExcelCellIndex.from_name(name)


def safe_get_cell_string(grid: Optional[SheetGrid], index: ExcelCellIndex) -> str:
    """
    Get the display text of a cell.

    Args:
        grid: Sheet to read from
        index: 0-based cell index

    Returns:
        Cell text with superscript/subscript runs removed and surrounding
        whitespace stripped; "" for missing or blank cells.

    Raises:
        ValueError: If the grid is missing
        UnsupportedCellError: If the cell holds a formula
    """
    if grid is None:
        raise ValueError("Sheet must not be None")
    if index is None:
        raise ValueError("Cell index must not be None")

    cell = grid.cell(index.row, index.column)
    if cell is None:
        return ''

    if cell.data_type == 'f':
        raise UnsupportedCellError(
            f"Formula cell at {index} in sheet '{grid.title}' is not supported",
            details={'sheet': grid.title, 'cell': str(index)}
        )

    return _format_value(cell.value).strip()


def _format_value(value) -> str:
    if value is None:
        return ''
    if isinstance(value, CellRichText):
        return _rich_text_to_string(value)
    if isinstance(value, bool):
        return 'TRUE' if value else 'FALSE'
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def _rich_text_to_string(rich_text: CellRichText) -> str:
    parts = []
    for block in rich_text:
        if isinstance(block, TextBlock):
            if block.font is not None and block.font.vertAlign in SCRIPT_ALIGNMENTS:
                logger.debug(f"Dropping {block.font.vertAlign} run '{block.text}'")
                continue
            parts.append(block.text)
        else:
            parts.append(str(block))
    return ''.join(parts)


def _has_side(side) -> bool:
    return side is not None and side.style is not None


def _has_top_border_at(grid: SheetGrid, row: int, column: int) -> bool:
    if row > 0 and grid.in_same_merge((row - 1, column), (row, column)):
        return False
    cell = grid.cell(row, column)
    if cell is not None and _has_side(cell.border.top):
        return True
    above = grid.cell(row - 1, column) if row > 0 else None
    return above is not None and _has_side(above.border.bottom)


def _has_left_border_at(grid: SheetGrid, row: int, column: int) -> bool:
    if column > 0 and grid.in_same_merge((row, column - 1), (row, column)):
        return False
    cell = grid.cell(row, column)
    if cell is not None and _has_side(cell.border.left):
        return True
    before = grid.cell(row, column - 1) if column > 0 else None
    return before is not None and _has_side(before.border.right)


def get_columns_with_top_border(grid: SheetGrid, row: int, columns: Iterable[int]) -> Set[int]:
    """Return the subset of ``columns`` whose cell at ``row`` has a top border."""
    return {column for column in columns if _has_top_border_at(grid, row, column)}


def has_top_border(grid: SheetGrid, row: int, columns: Iterable[int]) -> bool:
    """Check whether a top border at ``row`` spans every one of ``columns``."""
    return all(_has_top_border_at(grid, row, column) for column in columns)


def get_rows_with_left_border(grid: SheetGrid, rows: Iterable[int], column: int) -> Set[int]:
    """Return the subset of ``rows`` whose cell at ``column`` has a left border."""
    return {row for row in rows if _has_left_border_at(grid, row, column)}


def has_left_border(grid: SheetGrid, rows: Iterable[int], column: int) -> bool:
    """Check whether a left border at ``column`` spans every one of ``rows``."""
    return all(_has_left_border_at(grid, row, column) for row in rows)
