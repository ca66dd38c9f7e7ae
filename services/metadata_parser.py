"""
Metadata sheet parser.

The metadata sheet is a list of key/value rows identifying the 3GPP table
(spec name, version, serial number, title) and the cells bounding its data
region on the table sheet.
"""

import logging
from typing import Dict

from openpyxl.workbook.workbook import Workbook

from backend.models.table import ExcelCellIndex, ExcelRect, TableMetadata
from services.exceptions import MetadataError
from services.sheet_utils import SheetGrid, safe_get_cell_string

logger = logging.getLogger(__name__)

METADATA_SHEET_NAME = 'Metadata'

# Keys are only searched for within the first columns of the sheet
METADATA_SHEET_MAX_COLUMN = 20

KEY_SPEC_NAME = 'Spec'
KEY_SPEC_VERSION = 'Version'
KEY_SERIAL_NUMBER = 'Number'
KEY_TITLE = 'Title'
KEY_TOP_LEFT = 'Top left'
KEY_BOTTOM_RIGHT = 'Bottom right'

ALL_KEYS = (KEY_SPEC_NAME, KEY_SPEC_VERSION, KEY_SERIAL_NUMBER,
            KEY_TITLE, KEY_TOP_LEFT, KEY_BOTTOM_RIGHT)
REQUIRED_KEYS = (KEY_SPEC_NAME, KEY_SPEC_VERSION, KEY_SERIAL_NUMBER,
                 KEY_TOP_LEFT, KEY_BOTTOM_RIGHT)


def parse(workbook: Workbook, sheet_name: str = METADATA_SHEET_NAME) -> TableMetadata:
    """
    Parse table metadata from the metadata sheet of a workbook.

    Args:
        workbook: Workbook loaded by openpyxl
        sheet_name: Name of the metadata sheet

    Returns:
        TableMetadata with the data region taken from "Top left"/"Bottom right"

    Raises:
        MetadataError: If the sheet or a required key is missing, a key is
            repeated or has no value, or the data region is invalid
    """
    if sheet_name not in workbook.sheetnames:
        raise MetadataError(f"Unable to find {sheet_name} sheet.", details={'sheet': sheet_name})

    grid = SheetGrid(workbook[sheet_name])
    entries = _read_entries(grid)

    missing = [key for key in REQUIRED_KEYS if key not in entries]
    if missing:
        raise MetadataError(
            f"Metadata sheet is missing required keys: {', '.join(missing)}",
            details={'missing': missing}
        )

    try:
        data_rect = ExcelRect.of(entries[KEY_TOP_LEFT], entries[KEY_BOTTOM_RIGHT])
    except ValueError as e:
        raise MetadataError(
            f"Invalid data region {entries[KEY_TOP_LEFT]}:{entries[KEY_BOTTOM_RIGHT]}: {e}",
            details={'top_left': entries[KEY_TOP_LEFT], 'bottom_right': entries[KEY_BOTTOM_RIGHT]}
        ) from e

    metadata = TableMetadata(
        spec_name=entries[KEY_SPEC_NAME],
        spec_version=entries[KEY_SPEC_VERSION],
        table_serial_number=entries[KEY_SERIAL_NUMBER],
        table_title=entries.get(KEY_TITLE, ''),
        data_rect=data_rect,
    )
    logger.info(f"Parsed metadata for table {metadata.table_serial_number} "
                f"of {metadata.spec_name} {metadata.spec_version}, data region {data_rect}")
    return metadata


def _read_entries(grid: SheetGrid) -> Dict[str, str]:
    entries: Dict[str, str] = {}
    max_column = min(grid.column_count, METADATA_SHEET_MAX_COLUMN)

    for row in range(grid.row_count):
        for column in range(max_column):
            key = safe_get_cell_string(grid, ExcelCellIndex(row, column))
            if key not in ALL_KEYS:
                continue

            if key in entries:
                raise MetadataError(
                    f"Duplicate metadata key '{key}' at {ExcelCellIndex(row, column)}",
                    details={'key': key}
                )

            value = _value_right_of(grid, row, column)
            if not value:
                raise MetadataError(
                    f"Metadata key '{key}' at {ExcelCellIndex(row, column)} has no value",
                    details={'key': key}
                )

            logger.debug(f"Metadata {key} = {value!r}")
            entries[key] = value
            break

    return entries


def _value_right_of(grid: SheetGrid, row: int, column: int) -> str:
    for next_column in range(column + 1, grid.column_count):
        value = safe_get_cell_string(grid, ExcelCellIndex(row, next_column))
        if value:
            return value
    return ''
