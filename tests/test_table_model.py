"""
Unit tests for the table value objects.

Tests cover Excel cell name conversion, rectangles, column invariants and
flattening of nested rows.
"""

import pytest
from backend.models.table import (
    ExcelCellIndex, ExcelRect, TableMetadata, TableColumn, TableRow, TableData
)


class TestExcelCellIndex:
    """Test ExcelCellIndex construction and naming."""

    def test_to_name(self):
        assert str(ExcelCellIndex.of(11, 0)) == 'A12'
        assert str(ExcelCellIndex.of(98, 2)) == 'C99'
        assert str(ExcelCellIndex.of(1000, 27)) == 'AB1001'

    def test_negative_index(self):
        with pytest.raises(ValueError):
            ExcelCellIndex.of(-1, 0)
        with pytest.raises(ValueError):
            ExcelCellIndex.of(0, -1)

    def test_from_name(self):
        assert ExcelCellIndex.from_name('A12') == ExcelCellIndex(11, 0)
        assert ExcelCellIndex.from_name('C99') == ExcelCellIndex(98, 2)
        assert ExcelCellIndex.from_name('AB1001') == ExcelCellIndex(1000, 27)
        assert ExcelCellIndex.from_name('aa70') == ExcelCellIndex(69, 26)

    def test_from_name_invalid(self):
        for name in ('12A', 'A', '123', 'A0', 'Sheet1!A1', ''):
            with pytest.raises(ValueError):
                ExcelCellIndex.from_name(name)

    def test_value_equality(self):
        assert ExcelCellIndex(3, 4) == ExcelCellIndex.of(3, 4)
        assert len({ExcelCellIndex(3, 4), ExcelCellIndex(3, 4), ExcelCellIndex(4, 3)}) == 2


class TestExcelRect:
    """Test ExcelRect construction."""

    def test_of_corner_names(self):
        rect = ExcelRect.of('A5', 'G48')
        assert (rect.begin_row, rect.end_row, rect.begin_col, rect.end_col) == (4, 48, 0, 7)
        assert str(rect) == 'A5:G48'

    def test_single_cell(self):
        rect = ExcelRect.of('B2', 'B2')
        assert (rect.begin_row, rect.end_row, rect.begin_col, rect.end_col) == (1, 2, 1, 2)

    def test_inverted_corners(self):
        with pytest.raises(ValueError):
            ExcelRect.of('G48', 'A5')

    def test_metadata_exposes_region(self):
        metadata = TableMetadata('36.101', 'h70', '5.6A.1-2', '', ExcelRect(3, 11, 0, 32))
        assert metadata.begin_row == 3
        assert metadata.end_row == 11
        assert metadata.begin_col == 0
        assert metadata.end_col == 32
        assert metadata.to_dict()['bottom_right'] == 'AF11'


class TestTableColumn:
    """Test leaf/parent column invariants."""

    def test_empty_is_leaf(self):
        assert TableColumn.empty() == TableColumn.leaf([])
        assert TableColumn.empty().is_leaf
        assert TableColumn.empty().is_empty

    def test_parent_requires_rows(self):
        with pytest.raises(ValueError):
            TableColumn.parent([])

    def test_leaf_or_parent(self):
        with pytest.raises(ValueError):
            TableColumn()

    def test_structural_equality(self):
        first = TableRow.from_columns([TableColumn.leaf(['DC_7A_n7A']), TableColumn.empty()])
        second = TableRow.from_columns([TableColumn.leaf(('DC_7A_n7A',)), TableColumn.leaf([])])
        assert first == second


class TestFlatten:
    """Test flattening of nested rows into records."""

    def test_nested_rows(self):
        data = TableData.from_rows([
            TableRow.from_columns([
                TableColumn.leaf(['DC_41A_n41A']),
                TableColumn.parent([
                    TableRow.from_columns([TableColumn.leaf(['20']), TableColumn.empty()]),
                    TableRow.from_columns([TableColumn.empty(), TableColumn.leaf(['20'])]),
                ]),
                TableColumn.leaf(['120']),
            ]),
        ])

        assert data.flatten() == [
            ['DC_41A_n41A', '20', '', '120'],
            ['DC_41A_n41A', '', '20', '120'],
        ]

    def test_multi_value_leaf(self):
        data = TableData.from_rows([
            TableRow.from_columns([TableColumn.leaf(['a', 'b'])]),
        ])
        assert data.flatten() == [['a\nb']]
        assert data.flatten(' ') == [['a b']]

    def test_ragged_sub_rows(self):
        data = TableData.from_rows([
            TableRow.from_columns([
                TableColumn.leaf(['CA_1A-1A-3A']),
                TableColumn.parent([
                    TableRow.from_columns([TableColumn.leaf(['1']), TableColumn.leaf(['See CA_1A-1A'])]),
                    TableRow.from_columns([TableColumn.leaf(['3']), TableColumn.empty(), TableColumn.leaf(['Yes'])]),
                ]),
            ]),
        ])
        assert data.flatten() == [
            ['CA_1A-1A-3A', '1', 'See CA_1A-1A'],
            ['CA_1A-1A-3A', '3', '', 'Yes'],
        ]

    def test_stats(self):
        data = TableData.from_rows([
            TableRow.from_columns([TableColumn.leaf(['x'])]),
            TableRow.from_columns([
                TableColumn.leaf(['y']),
                TableColumn.parent([
                    TableRow.from_columns([TableColumn.leaf(['1'])]),
                    TableRow.from_columns([TableColumn.leaf(['2'])]),
                ]),
            ]),
        ])
        assert data.stats() == {'rows': 2, 'records': 3, 'leaf_columns': 4, 'max_depth': 2}

    def test_empty_table(self):
        assert TableData().flatten() == []
        assert TableData().stats() == {'rows': 0, 'records': 0, 'leaf_columns': 0, 'max_depth': 0}
