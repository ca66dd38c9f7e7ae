"""
Tests for the convert-3gpp-excel command line interface.
"""

import json
from unittest import mock

import pytest
import requests
from click.testing import CliRunner

from scripts import convert_cli
from scripts.convert_cli import cli
from services.conversion_service import ConversionService
from services.export_service import ExportService


@pytest.fixture
def runner():
    return CliRunner()


class TestConvertCommand:
    """Test the convert command in direct mode."""

    def test_convert_to_file(self, runner, tmp_path, simple_workbook_file):
        output = tmp_path / 'table.json'
        result = runner.invoke(cli, ['convert', '--file', str(simple_workbook_file), '--output', str(output)])

        assert result.exit_code == 0, result.output
        document = json.loads(output.read_text(encoding='utf-8'))
        assert document['metadata']['spec_name'] == '38.101-3'
        assert document['stats']['records'] == 3

    def test_convert_to_stdout(self, runner, simple_workbook_file):
        result = runner.invoke(cli, ['convert', '-f', str(simple_workbook_file)])

        assert result.exit_code == 0, result.output
        assert '"CA_3A"' in result.output
        assert 'Flattened records: 3' in result.output

    def test_format_from_suffix(self, runner, tmp_path, simple_workbook_file):
        output = tmp_path / 'table.csv'
        result = runner.invoke(cli, ['convert', '-f', str(simple_workbook_file), '-o', str(output)])

        assert result.exit_code == 0, result.output
        assert output.read_text(encoding='utf-8').splitlines() == [
            'CA_1A,"5, 10",40',
            'CA_3A,20,',
            'CA_3A,10,1',
        ]

    def test_explicit_format(self, runner, simple_workbook_file):
        result = runner.invoke(cli, ['convert', '-f', str(simple_workbook_file), '--format', 'csv'])
        assert result.exit_code == 0, result.output
        assert 'CA_3A,10,1' in result.output

    def test_broken_table(self, runner, broken_workbook_file):
        result = runner.invoke(cli, ['convert', '-f', str(broken_workbook_file)])
        assert result.exit_code == 1
        assert 'Conversion failed' in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ['convert', '-f', str(tmp_path / 'missing.xlsx')])
        assert result.exit_code == 1
        assert 'missing.xlsx' in result.output

    def test_unwritable_output(self, runner, tmp_path, simple_workbook_file):
        blocker = tmp_path / 'blocker'
        blocker.write_text('a file, not a directory')
        result = runner.invoke(cli, ['convert', '-f', str(simple_workbook_file),
                                     '-o', str(blocker / 'table.json')])

        assert result.exit_code == 1
        assert 'Unable to write' in result.output
        assert isinstance(result.exception, SystemExit)


class TestInspectCommand:
    """Test the inspect command."""

    def test_inspect(self, runner, simple_workbook_file):
        result = runner.invoke(cli, ['inspect', '--file', str(simple_workbook_file)])

        assert result.exit_code == 0, result.output
        assert '5.3B.1.3-1' in result.output
        assert 'A1:C4' in result.output

    def test_inspect_without_metadata(self, runner, tmp_path, simple_workbook):
        del simple_workbook['Metadata']
        path = tmp_path / 'no_metadata.xlsx'
        simple_workbook.save(path)

        result = runner.invoke(cli, ['inspect', '--file', str(path)])
        assert result.exit_code == 1
        assert 'Metadata' in result.output

    def test_inspect_missing_file(self, runner, tmp_path):
        result = runner.invoke(cli, ['inspect', '--file', str(tmp_path / 'missing.xlsx')])
        assert result.exit_code == 1


class TestBatchCommand:
    """Test the batch command."""

    def test_batch(self, runner, tmp_path, simple_workbook_file):
        output_dir = tmp_path / 'out'
        result = runner.invoke(cli, ['batch', '-i', str(tmp_path), '-o', str(output_dir), '--format', 'csv'])

        assert result.exit_code == 0, result.output
        assert (output_dir / 'table_simple.csv').exists()

    def test_batch_with_failures(self, runner, tmp_path, simple_workbook_file, broken_workbook_file):
        output_dir = tmp_path / 'out'
        result = runner.invoke(cli, ['batch', '-i', str(tmp_path), '-o', str(output_dir)])

        assert result.exit_code == 1
        assert (output_dir / 'table_simple.json').exists()
        assert 'table_broken.xlsx' in result.output

    def test_batch_missing_input_dir(self, runner, tmp_path):
        result = runner.invoke(cli, ['batch', '-i', str(tmp_path / 'missing'), '-o', str(tmp_path / 'out')])
        assert result.exit_code == 1
        assert 'Batch conversion failed' in result.output

    def test_batch_unwritable_output(self, runner, tmp_path, simple_workbook_file):
        output_dir = tmp_path / 'out'
        (output_dir / 'table_simple.json').mkdir(parents=True)
        result = runner.invoke(cli, ['batch', '-i', str(tmp_path), '-o', str(output_dir)])

        assert result.exit_code == 1
        assert 'Unable to write output' in result.output
        assert isinstance(result.exception, SystemExit)


class TestApiMode:
    """Test the convert command against a mocked backend."""

    def test_convert_via_api(self, runner, tmp_path, simple_workbook_file):
        direct_output = tmp_path / 'direct.json'
        runner.invoke(cli, ['convert', '-f', str(simple_workbook_file), '-o', str(direct_output)])
        server_body = ExportService(indent=None).to_json(ConversionService().convert_file(simple_workbook_file))

        response = mock.Mock(status_code=200, text=server_body)
        response.json.return_value = json.loads(server_body)
        api_output = tmp_path / 'api.json'

        with mock.patch.object(convert_cli.requests, 'post', return_value=response) as post:
            result = runner.invoke(cli, ['convert', '-f', str(simple_workbook_file), '-o', str(api_output),
                                         '--api-url', 'http://backend:8000/'])

        assert result.exit_code == 0, result.output
        assert post.call_args.args[0] == 'http://backend:8000/api/convert'
        assert post.call_args.kwargs['params'] == {'format': 'json'}
        # Compact server JSON is written with the direct mode layout
        assert api_output.read_text(encoding='utf-8') == direct_output.read_text(encoding='utf-8')
        assert 'Flattened records: 3' in result.output

    def test_convert_csv_via_api(self, runner, simple_workbook_file):
        stats = {'rows': 2, 'records': 3, 'leaf_columns': 8, 'max_depth': 2}
        response = mock.Mock(status_code=200, text='CA_1A,"5, 10",40\n',
                             headers={'X-Table-Stats': json.dumps(stats)})

        with mock.patch.object(convert_cli.requests, 'post', return_value=response):
            result = runner.invoke(cli, ['convert', '-f', str(simple_workbook_file), '--format', 'csv',
                                         '--api-url', 'http://backend:8000'])

        assert result.exit_code == 0, result.output
        assert 'CA_1A,"5, 10",40' in result.output
        assert 'Flattened records: 3' in result.output

    def test_api_missing_file(self, runner, tmp_path):
        with mock.patch.object(convert_cli.requests, 'post') as post:
            result = runner.invoke(cli, ['convert', '-f', str(tmp_path / 'missing.xlsx'),
                                         '--api-url', 'http://backend:8000'])

        assert result.exit_code == 1
        assert 'Unable to read' in result.output
        post.assert_not_called()

    def test_api_error(self, runner, simple_workbook_file):
        response = mock.Mock(status_code=422, text='{"error": "bad table"}')

        with mock.patch.object(convert_cli.requests, 'post', return_value=response):
            result = runner.invoke(cli, ['convert', '-f', str(simple_workbook_file),
                                         '--api-url', 'http://backend:8000'])

        assert result.exit_code == 1
        assert 'bad table' in result.output

    def test_network_error(self, runner, simple_workbook_file):
        with mock.patch.object(convert_cli.requests, 'post',
                               side_effect=requests.exceptions.ConnectionError('refused')):
            result = runner.invoke(cli, ['convert', '-f', str(simple_workbook_file),
                                         '--api-url', 'http://backend:8000'])

        assert result.exit_code == 1
        assert 'Network error' in result.output
