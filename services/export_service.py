"""
Export Service - Serialize converted tables.

Two output formats are supported:
- json: nested document mirroring the logical row/column tree
- csv: flattened records, one per combination of nested sub-rows
"""

import csv
import io
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from backend.models.table import ConvertedTable, TableColumn, TableRow

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ('json', 'csv')

# Response header carrying table stats alongside CSV output
STATS_HEADER = 'X-Table-Stats'


class ExportService:
    """Serialize ConvertedTable records to JSON or CSV."""

    def __init__(self, indent: Optional[int] = 2, value_separator: str = '\n'):
        """
        Args:
            indent: JSON indentation (None for compact output)
            value_separator: Separator joining multi-cell leaf values in CSV output
        """
        self.indent = indent
        self.value_separator = value_separator

    def to_dict(self, table: ConvertedTable) -> Dict[str, Any]:
        return {
            'source': table.source,
            'metadata': table.metadata.to_dict(),
            'rows': [self._row_to_dict(row) for row in table.data.rows],
            'stats': table.data.stats(),
        }

    def _row_to_dict(self, row: TableRow) -> Dict[str, Any]:
        return {'columns': [self._column_to_dict(column) for column in row.columns]}

    def _column_to_dict(self, column: TableColumn) -> Dict[str, Any]:
        if column.is_leaf:
            return {'values': list(column.values)}
        return {'rows': [self._row_to_dict(row) for row in column.rows]}

    def to_json(self, table: ConvertedTable) -> str:
        return json.dumps(self.to_dict(table), indent=self.indent, ensure_ascii=False)

    def to_records(self, table: ConvertedTable) -> List[List[str]]:
        return table.data.flatten(self.value_separator)

    def to_csv(self, table: ConvertedTable) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator='\n')
        writer.writerows(self.to_records(table))
        return buffer.getvalue()

    def render(self, table: ConvertedTable, fmt: str = 'json') -> str:
        """Render a table in the given format ('json' or 'csv')."""
        fmt = fmt.lower()
        if fmt == 'json':
            return self.to_json(table)
        if fmt == 'csv':
            return self.to_csv(table)
        raise ValueError(f"Unsupported output format: {fmt}. Supported formats: {', '.join(SUPPORTED_FORMATS)}")

    def write(self, table: ConvertedTable, path: Union[str, Path], fmt: Optional[str] = None) -> Path:
        """
        Write a table to a file.

        Args:
            table: Converted table
            path: Output path
            fmt: Output format; inferred from the file suffix when omitted

        Returns:
            Path of the written file
        """
        path = Path(path)
        if fmt is None:
            fmt = path.suffix.lstrip('.').lower() or 'json'

        content = self.render(table, fmt)
        path.parent.mkdir(parents=True, exist_ok=True)
        # csv module handles newlines itself
        with open(path, 'w', encoding='utf-8', newline='') as f:
            f.write(content)

        logger.info(f"Wrote {fmt} output to {path}")
        return path
