"""
Exceptions raised while converting 3GPP workbooks.

Sheet format problems subclass ValueError so callers that only care about
"bad input" can catch the builtin.
"""

from typing import Optional, Dict, Any


class ConversionError(Exception):
    """Base exception for all conversion errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SheetFormatError(ConversionError, ValueError):
    """Raised when a sheet does not follow the expected layout."""
    pass


class MetadataError(SheetFormatError):
    """Raised when the metadata sheet is missing or incomplete."""
    pass


class UnsupportedCellError(SheetFormatError):
    """Raised for cells the converter cannot read, e.g. formulas."""
    pass
