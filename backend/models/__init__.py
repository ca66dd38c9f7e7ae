"""Models package for the 3GPP table converter."""
from backend.models.table import (
    ExcelCellIndex, ExcelRect, TableMetadata,
    TableColumn, TableRow, TableData, ConvertedTable
)

__all__ = [
    'ExcelCellIndex', 'ExcelRect', 'TableMetadata',
    'TableColumn', 'TableRow', 'TableData', 'ConvertedTable'
]
