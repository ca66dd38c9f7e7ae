"""
Convert router - Handle Excel file uploads and return converted tables.

Conversion is fast enough to run inside the request, so uploads are
converted synchronously and the result is returned directly.
"""

import json
import os
import logging
import tempfile
import shutil
from pathlib import Path

from fastapi import APIRouter, UploadFile, File, Depends, Query, status
from fastapi.responses import PlainTextResponse

from api.config import settings
from api.dependencies import (
    get_conversion_service, get_current_user, verify_file_extension, verify_file_size
)
from api.schemas.table_schema import ConversionResponse, TableMetadataResponse
from services.conversion_service import ConversionService
from services.export_service import ExportService, STATS_HEADER

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix='/convert', tags=['convert'])


def _spool_upload(file: UploadFile) -> str:
    """Copy an upload to a temporary file and check its size."""
    verify_file_extension(file.filename)

    fd, temp_path = tempfile.mkstemp(
        suffix=Path(file.filename).suffix.lower(),
        dir=settings.TEMP_UPLOAD_DIR
    )
    try:
        with os.fdopen(fd, 'wb') as tmp:
            shutil.copyfileobj(file.file, tmp)

        file_size = os.path.getsize(temp_path)
        verify_file_size(file_size)
    except Exception:
        os.unlink(temp_path)
        raise

    logger.info(f"File saved to {temp_path} ({file_size / 1024:.1f} KB)")
    return temp_path


@router.post('', response_model=ConversionResponse, response_model_exclude_none=True,
             status_code=status.HTTP_200_OK)
def convert_excel_file(
    file: UploadFile = File(..., description="Excel file to convert (.xlsx or .xlsm)"),
    output_format: str = Query('json', alias='format', pattern='^(json|csv)$',
                               description="Output format: json or csv"),
    service: ConversionService = Depends(get_conversion_service),
    current_user: str = Depends(get_current_user)
):
    """
    Upload an Excel file and convert its table.

    **Workflow:**
    1. Validate file type and size
    2. Parse the metadata sheet and the bordered table region
    3. Return the nested table as JSON, or flattened records as CSV

    **Returns:**
    - 200 with the converted table; CSV responses carry the stats in the X-Table-Stats header
    - 400/413 for invalid uploads
    - 422 when the workbook does not follow the expected layout
    """
    logger.info(f"Convert request from {current_user}: {file.filename} as {output_format}")

    temp_path = _spool_upload(file)
    try:
        table = service.convert_file(temp_path, source_name=file.filename)
    finally:
        os.unlink(temp_path)

    exporter = ExportService(value_separator=settings.CSV_VALUE_SEPARATOR)
    if output_format == 'csv':
        return PlainTextResponse(exporter.to_csv(table), media_type='text/csv',
                                 headers={STATS_HEADER: json.dumps(table.data.stats())})
    return exporter.to_dict(table)


@router.post('/metadata', response_model=TableMetadataResponse)
def read_excel_metadata(
    file: UploadFile = File(..., description="Excel file to inspect (.xlsx or .xlsm)"),
    service: ConversionService = Depends(get_conversion_service),
    current_user: str = Depends(get_current_user)
):
    """
    Upload an Excel file and return only its table metadata.
    """
    logger.info(f"Metadata request from {current_user}: {file.filename}")

    temp_path = _spool_upload(file)
    try:
        metadata = service.read_metadata(temp_path)
    finally:
        os.unlink(temp_path)

    return metadata.to_dict()
