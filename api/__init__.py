"""
FastAPI application for the 3GPP table converter.

This package contains the REST API for converting uploaded Excel
workbooks.
"""

__version__ = "1.0.0"
