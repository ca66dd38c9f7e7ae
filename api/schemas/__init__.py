"""
Pydantic schemas for request/response validation.

This package contains all Pydantic models used for API request validation
and response serialization.
"""

from api.schemas.common import ErrorResponse, HealthCheckResponse
from api.schemas.table_schema import (
    TableMetadataResponse, TableColumnResponse, TableRowResponse,
    TableStatsResponse, ConversionResponse
)

__all__ = [
    # Common
    'ErrorResponse',
    'HealthCheckResponse',

    # Table
    'TableMetadataResponse',
    'TableColumnResponse',
    'TableRowResponse',
    'TableStatsResponse',
    'ConversionResponse',
]
