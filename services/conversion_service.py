"""
Conversion Service - Framework-agnostic business logic.

This module opens 3GPP table workbooks, parses their metadata and table
sheets, and hands the result to the export service. Progress is reported
through an optional callback so the CLI and the API can share it.
"""

import logging
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, List, Optional, Union
from zipfile import BadZipFile

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.workbook import Workbook

from backend.models.table import ConvertedTable, TableMetadata
from services import metadata_parser, table_parser
from services.exceptions import ConversionError
from services.export_service import ExportService

logger = logging.getLogger(__name__)

# Default configuration (can be overridden)
DEFAULT_METADATA_SHEET = metadata_parser.METADATA_SHEET_NAME
DEFAULT_TABLE_SHEET = table_parser.TABLE_SHEET_NAME
WORKBOOK_EXTENSIONS = ('.xlsx', '.xlsm')

ProgressCallback = Callable[[str, float, str], None]


class ConversionService:
    """
    Convert 3GPP table workbooks into ConvertedTable records.
    """

    def __init__(
        self,
        progress_callback: Optional[ProgressCallback] = None,
        metadata_sheet: str = DEFAULT_METADATA_SHEET,
        table_sheet: str = DEFAULT_TABLE_SHEET,
        exporter: Optional[ExportService] = None
    ):
        """
        Initialize conversion service.

        Args:
            progress_callback: Optional callback for progress updates
                              Signature: callback(stage: str, percent: float, message: str)
            metadata_sheet: Name of the sheet holding table metadata
            table_sheet: Name of the sheet holding table data
            exporter: Export service used by convert_directory
        """
        self.progress_callback = progress_callback or (lambda *args: None)
        self.metadata_sheet = metadata_sheet
        self.table_sheet = table_sheet
        self.exporter = exporter or ExportService()

    def _emit_progress(self, stage: str, percent: float, message: str):
        """Emit progress update via callback."""
        self.progress_callback(stage, percent, message)
        logger.info(f"Progress: {stage} ({percent:.1f}%) - {message}")

    def load_workbook(self, source: Union[str, Path, BinaryIO]) -> Workbook:
        """
        Open a workbook keeping formulas and rich text.

        Formulas are kept (data_only=False) so formula cells can be rejected
        rather than silently read as cached values.

        Raises:
            ConversionError: If the file cannot be read as a workbook
        """
        try:
            return openpyxl.load_workbook(source, data_only=False, rich_text=True)
        except (OSError, KeyError, BadZipFile, InvalidFileException) as e:
            raise ConversionError(f"Unable to read Excel from '{source}': {e}",
                                  details={'source': str(source)}) from e

    def read_metadata(self, source: Union[str, Path, BinaryIO]) -> TableMetadata:
        """Open a workbook and parse only its metadata sheet."""
        workbook = self.load_workbook(source)
        try:
            return metadata_parser.parse(workbook, self.metadata_sheet)
        finally:
            workbook.close()

    def convert_file(self, source: Union[str, Path, BinaryIO], source_name: Optional[str] = None) -> ConvertedTable:
        """
        Main conversion workflow.

        Args:
            source: Path or binary file object of the workbook
            source_name: Name recorded as the table's source (defaults to the file name)

        Returns:
            ConvertedTable with metadata and parsed table data
        """
        if source_name is None and isinstance(source, (str, Path)):
            source_name = Path(source).name

        self._emit_progress('loading', 0, f"Opening workbook {source_name or ''}".strip())
        workbook = self.load_workbook(source)
        try:
            return self.convert_workbook(workbook, source_name)
        finally:
            workbook.close()

    def convert_workbook(self, workbook: Workbook, source_name: Optional[str] = None) -> ConvertedTable:
        """Parse an already opened workbook."""
        self._emit_progress('metadata', 20, f"Reading sheet '{self.metadata_sheet}'")
        metadata = metadata_parser.parse(workbook, self.metadata_sheet)

        self._emit_progress('table', 40, f"Parsing region {metadata.data_rect} of sheet '{self.table_sheet}'")
        data = table_parser.parse(workbook, metadata, self.table_sheet)

        self._emit_progress('complete', 100,
                            f"Table {metadata.table_serial_number}: {len(data.rows)} rows")
        return ConvertedTable(metadata=metadata, data=data, source=source_name)

    def convert_directory(self, input_dir: Union[str, Path], output_dir: Union[str, Path],
                          fmt: str = 'json') -> Dict[str, Any]:
        """
        Convert every workbook in a directory.

        Failures are collected per file; the batch keeps going.

        Returns:
            Dictionary with 'converted' (list of output paths) and
            'failed' (mapping of file name to error message)
        """
        input_path = Path(input_dir)
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        files = sorted(
            p for p in input_path.iterdir()
            if p.is_file() and p.suffix.lower() in WORKBOOK_EXTENSIONS and not p.name.startswith('~$')
        )
        logger.info(f"Found {len(files)} workbooks in {input_path}")

        result: Dict[str, Any] = {'converted': [], 'failed': {}}
        converted: List[str] = result['converted']

        for idx, file_path in enumerate(files):
            self._emit_progress('batch', 100 * idx / max(len(files), 1), f"Converting {file_path.name}")
            try:
                table = self.convert_file(file_path)
                target = output_path / f"{file_path.stem}.{fmt}"
                self.exporter.write(table, target, fmt)
                converted.append(str(target))
            except ConversionError as e:
                logger.error(f"Conversion of {file_path.name} failed: {e}")
                result['failed'][file_path.name] = e.message
            except OSError as e:
                logger.error(f"Writing output for {file_path.name} failed: {e}")
                result['failed'][file_path.name] = f"Unable to write output: {e}"

        self._emit_progress('batch', 100, f"Converted {len(converted)}/{len(files)} workbooks")
        return result
