"""
Pytest configuration and fixtures for the 3GPP table converter tests.
"""

import pytest

from tests.builders import (
    build_workbook, draw_simple_table, draw_wide_table, draw_broken_table,
    draw_deep_table, draw_merged_simple_table
)


@pytest.fixture
def simple_workbook():
    """Workbook holding the simple nested table in A1:C4."""
    return build_workbook(draw_simple_table, 'A1', 'C4')


@pytest.fixture
def wide_workbook():
    """Workbook holding the wide table in A1:C4."""
    return build_workbook(draw_wide_table, 'A1', 'C4')


@pytest.fixture
def broken_workbook():
    """Workbook whose nested columns have no common split border."""
    return build_workbook(draw_broken_table, 'A1', 'C4')


@pytest.fixture
def simple_workbook_file(tmp_path, simple_workbook):
    """The simple workbook saved to disk."""
    path = tmp_path / 'table_simple.xlsx'
    simple_workbook.save(path)
    return path


@pytest.fixture
def broken_workbook_file(tmp_path, broken_workbook):
    """The broken workbook saved to disk."""
    path = tmp_path / 'table_broken.xlsx'
    broken_workbook.save(path)
    return path


@pytest.fixture
def deep_workbook():
    """Workbook holding a table nested three levels deep in A1:D5."""
    return build_workbook(draw_deep_table, 'A1', 'D5')


@pytest.fixture
def merged_workbook_file(tmp_path):
    """The simple table with merged spanning cells, saved to disk."""
    path = tmp_path / 'table_merged.xlsx'
    build_workbook(draw_merged_simple_table, 'A1', 'C4').save(path)
    return path
