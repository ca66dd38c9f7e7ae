"""
Table-related Pydantic schemas.

This module contains schemas for converted table metadata and the nested
row/column tree.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class TableMetadataResponse(BaseModel):
    """Metadata of a converted table."""

    spec_name: str = Field(..., description="3GPP spec name, e.g. 38.101-3")
    spec_version: str = Field(..., description="Spec version, e.g. 17.7.0")
    table_serial_number: str = Field(..., description="Table number within the 3GPP document")
    table_title: str = Field("", description="Table title")
    top_left: str = Field(..., description="Top-left cell of the data region")
    bottom_right: str = Field(..., description="Bottom-right cell of the data region")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "spec_name": "38.101-3",
            "spec_version": "17.7.0",
            "table_serial_number": "5.3B.1.3-1",
            "table_title": "EN-DC configurations and bandwidth combination sets",
            "top_left": "A5",
            "bottom_right": "G48"
        }
    })


class TableColumnResponse(BaseModel):
    """A logical column: either leaf values or nested rows."""

    values: Optional[List[str]] = Field(None, description="Cell strings of a leaf column")
    rows: Optional[List['TableRowResponse']] = Field(None, description="Nested rows of a parent column")


class TableRowResponse(BaseModel):
    """A logical row."""

    columns: List[TableColumnResponse] = Field(default_factory=list, description="Columns of the row")


TableColumnResponse.model_rebuild()


class TableStatsResponse(BaseModel):
    """Summary of a converted table."""

    rows: int = Field(..., description="Top-level logical rows")
    records: int = Field(..., description="Flattened records")
    leaf_columns: int = Field(..., description="Leaf columns across all nesting levels")
    max_depth: int = Field(..., description="Maximum row nesting depth")


class ConversionResponse(BaseModel):
    """Converted table response schema."""

    source: Optional[str] = Field(None, description="Uploaded file name")
    metadata: TableMetadataResponse
    rows: List[TableRowResponse] = Field(default_factory=list, description="Top-level logical rows")
    stats: TableStatsResponse
