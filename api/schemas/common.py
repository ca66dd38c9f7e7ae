"""
Common Pydantic schemas used across the API.

Error bodies returned by the exception handlers, and the health check.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


class ErrorResponse(BaseModel):
    """Body of 422 conversion errors and 500 server errors."""

    error: str = Field(..., description="Error message")
    detail: Optional[Dict[str, Any]] = Field(None, description="Offending sheet, cell, row or column")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Error timestamp")
    path: Optional[str] = Field(None, description="Request path")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "error": "Invalid table sheet",
            "detail": {"row": 12, "column": 3},
            "timestamp": "2025-10-15T12:00:00Z",
            "path": "/api/convert"
        }
    })


class HealthCheckResponse(BaseModel):
    """Service status for /health."""

    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="Health check timestamp")
    version: str = Field(..., description="API version")
    upload_dir: str = Field(..., description="Temporary upload directory status")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "status": "healthy",
            "timestamp": "2025-10-15T12:00:00Z",
            "version": "1.0.0",
            "upload_dir": "writable"
        }
    })
