"""
FastAPI dependencies and upload checks.

Provides the conversion service configured from settings, optional API-key
authentication, and the extension/size checks applied to uploads before
they are parsed.
"""

import logging
from pathlib import Path
from fastapi import Depends, HTTPException, Header, status

from api.config import settings
from services.conversion_service import ConversionService

logger = logging.getLogger(__name__)


def get_conversion_service() -> ConversionService:
    """Conversion service reading the sheet names configured in settings."""
    return ConversionService(
        metadata_sheet=settings.METADATA_SHEET_NAME,
        table_sheet=settings.TABLE_SHEET_NAME
    )


def get_api_key(
    x_api_key: str = Header(None, alias=settings.API_KEY_HEADER)
) -> str:
    """
    Check the API key header when ENABLE_API_KEY_AUTH is on.

    Returns:
        The key, or "public" when authentication is disabled

    Raises:
        HTTPException: 401 without a key, 403 for a key not in API_KEYS
    """
    if not settings.ENABLE_API_KEY_AUTH:
        return "public"

    if not x_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {settings.API_KEY_HEADER} header",
            headers={"WWW-Authenticate": "ApiKey"}
        )

    if x_api_key not in settings.API_KEYS:
        logger.warning("Rejected request with unknown API key")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid API key"
        )

    return x_api_key


def get_current_user(api_key: str = Depends(get_api_key)) -> str:
    """Caller identity for logs; never the full key."""
    if api_key == "public":
        return api_key
    return f"key:{api_key[:4]}"


def verify_file_size(file_size: int) -> bool:
    """
    Reject uploads larger than MAX_FILE_SIZE_MB.

    Raises:
        HTTPException: 413 if the file is too large
    """
    limit = settings.MAX_FILE_SIZE_MB * 1024 * 1024
    if file_size > limit:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Workbook is {file_size / 1024 / 1024:.1f} MB, "
                   f"the limit is {settings.MAX_FILE_SIZE_MB} MB"
        )
    return True


def verify_file_extension(filename: str) -> bool:
    """
    Accept only workbook extensions listed in ALLOWED_EXTENSIONS.

    Raises:
        HTTPException: 400 for any other extension
    """
    ext = Path(filename or '').suffix.lower()
    allowed = [e.lower() for e in settings.ALLOWED_EXTENSIONS]

    if ext not in allowed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot convert '{filename}': expected one of {', '.join(allowed)}"
        )
    return True
