"""
Table sheet parser.

3GPP tables pasted into Excel keep their structure only as cell borders:
merged-looking cells spanning several sub-rows, sub-tables nested inside a
row, and logical columns spanning several physical columns. This module
recovers that structure by recursively splitting the data region:

1. A region is split into logical rows at horizontal borders running across
   its full width.
2. Within a logical row, columns crossed by internal horizontal borders are
   grouped and parsed recursively as nested rows (parent columns); the
   remaining columns are split into leaf columns at vertical borders running
   its full height.
3. A leaf column holds the non-empty strings of all its cells.

Every region visited must be enclosed by borders on all four sides.
"""

import logging
from typing import Dict, List

from openpyxl.workbook.workbook import Workbook

from backend.models.table import ExcelCellIndex, TableColumn, TableData, TableMetadata, TableRow
from services.exceptions import SheetFormatError
from services.sheet_utils import (
    SheetGrid, safe_get_cell_string, has_top_border, has_left_border,
    get_columns_with_top_border, get_rows_with_left_border
)

logger = logging.getLogger(__name__)

TABLE_SHEET_NAME = 'Table'


def _check(condition: bool, message: str, **details):
    if not condition:
        raise SheetFormatError(message, details=details or None)


def parse(workbook: Workbook, metadata: TableMetadata, sheet_name: str = TABLE_SHEET_NAME) -> TableData:
    """
    Parse the data region of the table sheet into logical rows.

    Args:
        workbook: Workbook loaded by openpyxl (with rich_text=True to drop footnote markers)
        metadata: Metadata giving the data region
        sheet_name: Name of the table sheet

    Returns:
        TableData with one TableRow per top-level logical row

    Raises:
        SheetFormatError: If the sheet is missing, the data region lies outside
            the sheet, or the borders do not describe a valid table
    """
    _check(sheet_name in workbook.sheetnames, f"Unable to find {sheet_name} sheet.", sheet=sheet_name)
    grid = SheetGrid(workbook[sheet_name])

    for row in range(metadata.begin_row, metadata.end_row):
        _check(
            grid.has_row(row),
            f"Invalid table sheet, row {row} doesn't exist while metadata says the end row is {metadata.end_row}",
            row=row
        )
        for column in range(metadata.begin_col, metadata.end_col):
            _check(
                grid.has_cell(row, column),
                f"Invalid table sheet, column {column} at row {row} doesn't exist while metadata says "
                f"the end column is {metadata.end_col}",
                row=row, column=column
            )

    logger.info(f"Parsing table region {metadata.data_rect} of sheet '{sheet_name}'")
    rows = _parse_rows(grid, metadata.begin_row, metadata.end_row, metadata.begin_col, metadata.end_col)
    logger.info(f"Parsed {len(rows)} logical rows")
    return TableData.from_rows(rows)


def _parse_rows(grid: SheetGrid, begin_row: int, end_row: int,
                begin_col: int, end_col: int) -> List[TableRow]:
    """
    Parse a region consisting of one or more logical rows.

    The region must be enclosed by borders and split by at least one
    horizontal border across its full width.
    """
    _check_region(grid, begin_row, end_row, begin_col, end_col)
    all_columns = range(begin_col, end_col)
    _check(
        any(has_top_border(grid, row, all_columns) for row in range(begin_row + 1, end_row)),
        f"Invalid region rows [{begin_row}, {end_row}) columns [{begin_col}, {end_col}), "
        f"no horizontal border splits it into rows",
        begin_row=begin_row, end_row=end_row, begin_col=begin_col, end_col=end_col
    )

    parsed_rows = []
    sub_begin_row = begin_row
    for row in range(begin_row + 1, end_row + 1):
        if has_top_border(grid, row, all_columns):
            parsed_rows.append(_parse_one_row(grid, sub_begin_row, row, begin_col, end_col))
            sub_begin_row = row
    return parsed_rows


def _parse_one_row(grid: SheetGrid, begin_row: int, end_row: int,
                   begin_col: int, end_col: int) -> TableRow:
    """
    Parse a region consisting of exactly one logical row.

    Columns crossed by an internal horizontal border are split further; runs
    of adjacent columns with the same split state are parsed together.
    """
    _check_region(grid, begin_row, end_row, begin_col, end_col)
    all_columns = range(begin_col, end_col)
    for row in range(begin_row + 1, end_row):
        _check(
            not has_top_border(grid, row, all_columns),
            f"Invalid row rows [{begin_row}, {end_row}) columns [{begin_col}, {end_col}), "
            f"row {row} has a border across the full width",
            row=row
        )

    split_by_column: Dict[int, bool] = {
        column: any(has_top_border(grid, row, [column]) for row in range(begin_row + 1, end_row))
        for column in all_columns
    }

    parsed_columns: List[TableColumn] = []
    sub_begin_col = begin_col
    for column in range(begin_col + 1, end_col + 1):
        # Last column, or the split state changes here
        if column == end_col or split_by_column[column] != split_by_column[sub_begin_col]:
            if split_by_column[sub_begin_col]:
                parsed_columns.append(
                    TableColumn.parent(_parse_rows(grid, begin_row, end_row, sub_begin_col, column))
                )
            else:
                parsed_columns.extend(_parse_leaf_columns(grid, begin_row, end_row, sub_begin_col, column))
            sub_begin_col = column
    return TableRow.from_columns(parsed_columns)


def _parse_leaf_columns(grid: SheetGrid, begin_row: int, end_row: int,
                        begin_col: int, end_col: int) -> List[TableColumn]:
    """
    Parse a region consisting only of leaf columns.

    The region must contain no horizontal borders; it is split at vertical
    borders running its full height, so one leaf may cover several physical
    columns.
    """
    _check_region(grid, begin_row, end_row, begin_col, end_col)
    all_columns = range(begin_col, end_col)
    for row in range(begin_row + 1, end_row):
        _check(
            not get_columns_with_top_border(grid, row, all_columns),
            f"Invalid leaf columns rows [{begin_row}, {end_row}) columns [{begin_col}, {end_col}), "
            f"row {row} has an internal horizontal border",
            row=row
        )

    all_rows = range(begin_row, end_row)
    parsed_columns = []
    sub_begin_col = begin_col
    for column in range(begin_col + 1, end_col + 1):
        if len(get_rows_with_left_border(grid, all_rows, column)) == len(all_rows):
            parsed_columns.append(_parse_one_leaf_column(grid, begin_row, end_row, sub_begin_col, column))
            sub_begin_col = column
    return parsed_columns


def _parse_one_leaf_column(grid: SheetGrid, begin_row: int, end_row: int,
                           begin_col: int, end_col: int) -> TableColumn:
    _check_region(grid, begin_row, end_row, begin_col, end_col)

    values = []
    for row in range(begin_row, end_row):
        for column in range(begin_col, end_col):
            text = safe_get_cell_string(grid, ExcelCellIndex(row, column))
            if text:
                values.append(text)
    return TableColumn.leaf(values)


def _check_region(grid: SheetGrid, begin_row: int, end_row: int, begin_col: int, end_col: int):
    """Check that a region is non-empty and enclosed by borders on all sides."""
    _check(grid is not None, "Sheet must not be None")
    _check(
        0 <= begin_row < end_row and 0 <= begin_col < end_col,
        f"Invalid region rows [{begin_row}, {end_row}) columns [{begin_col}, {end_col})"
    )

    all_columns = range(begin_col, end_col)
    _check(
        has_top_border(grid, begin_row, all_columns),
        f"Invalid region, there is no top border from {_name(begin_row, begin_col)} "
        f"to {_name(begin_row, end_col - 1)}",
        row=begin_row
    )
    _check(
        has_top_border(grid, end_row, all_columns),
        f"Invalid region, there is no bottom border from {_name(end_row - 1, begin_col)} "
        f"to {_name(end_row - 1, end_col - 1)}",
        row=end_row
    )

    all_rows = range(begin_row, end_row)
    _check(
        has_left_border(grid, all_rows, begin_col),
        f"Invalid region, there is no left border from {_name(begin_row, begin_col)} "
        f"to {_name(end_row - 1, begin_col)}",
        column=begin_col
    )
    _check(
        has_left_border(grid, all_rows, end_col),
        f"Invalid region, there is no right border from {_name(begin_row, end_col - 1)} "
        f"to {_name(end_row - 1, end_col - 1)}",
        column=end_col
    )


def _name(row: int, column: int) -> str:
    return str(ExcelCellIndex(row, column))
