#!/usr/bin/env python3
"""
3GPP Excel Table Converter CLI - Dual Mode

This script can operate in two modes:
1. Direct mode (default): Converts locally using services
2. API mode: Uploads the workbook to the FastAPI backend

Usage:
    # Direct mode (uses services directly)
    convert-3gpp-excel convert --file table_5.3B.1.3-1.xlsx --output table.json

    # Flattened CSV output
    convert-3gpp-excel convert --file table_5.3B.1.3-1.xlsx --format csv

    # API mode (uses FastAPI backend)
    convert-3gpp-excel convert --file table.xlsx --api-url http://localhost:8000

    # Metadata only
    convert-3gpp-excel inspect --file table.xlsx

    # Whole directory
    convert-3gpp-excel batch --input-dir tables/ --output-dir out/
"""

import json
import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click
import requests
from dotenv import load_dotenv

from services.conversion_service import ConversionService
from services.exceptions import ConversionError
from services.export_service import ExportService, STATS_HEADER, SUPPORTED_FORMATS

# Load environment variables
load_dotenv()

logger = logging.getLogger('convert_cli')


def setup_logging():
    """Configure logging from LOG_LEVEL / LOG_FILE; console output goes to stderr."""
    log_level = os.getenv('LOG_LEVEL', 'WARNING')
    log_file = os.getenv('LOG_FILE')

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def echo_stats(stats: dict):
    click.echo("\nStatistics:", err=True)
    click.echo(f"  Logical rows: {stats.get('rows', 0)}", err=True)
    click.echo(f"  Flattened records: {stats.get('records', 0)}", err=True)
    click.echo(f"  Leaf columns: {stats.get('leaf_columns', 0)}", err=True)
    click.echo(f"  Max nesting depth: {stats.get('max_depth', 0)}", err=True)


def echo_progress(stage: str, percent: float, message: str):
    bar_length = 40
    filled = int(bar_length * percent / 100)
    bar = '█' * filled + '░' * (bar_length - filled)
    click.echo(f"\r[{bar}] {percent:.1f}% - {stage}: {message}", nl=False, err=True)


@click.group()
@click.version_option(package_name='convert-3gpp-excel')
def cli():
    """Convert bordered 3GPP table workbooks to JSON or CSV."""
    setup_logging()


@cli.command('convert')
@click.option('--file', '-f', 'file_path', required=True, type=click.Path(),
              help='Path to Excel file to convert')
@click.option('--output', '-o', type=click.Path(),
              help='Output file (default: stdout)')
@click.option('--format', '-t', 'fmt', type=click.Choice(SUPPORTED_FORMATS),
              help='Output format (default: from output suffix, else json)')
@click.option('--api-url', envvar='API_URL', help='FastAPI backend URL (enables API mode)')
def convert_cmd(file_path: str, output: Optional[str], fmt: Optional[str], api_url: Optional[str]):
    """Convert one workbook."""
    if fmt is None:
        suffix = Path(output).suffix.lstrip('.').lower() if output else ''
        fmt = suffix if suffix in SUPPORTED_FORMATS else 'json'

    if api_url:
        click.echo(f"🌐 API Mode: Using backend at {api_url}", err=True)
        content = convert_via_api(api_url, file_path, fmt)
    else:
        content = convert_direct(file_path, fmt)

    if output:
        try:
            Path(output).parent.mkdir(parents=True, exist_ok=True)
            with open(output, 'w', encoding='utf-8', newline='') as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Writing {output} failed: {e}")
            click.echo(f"✗ Unable to write {output}: {e}", err=True)
            sys.exit(1)
        click.echo(f"\n✓ Wrote {fmt} output to {output}", err=True)
    else:
        click.echo(content)


@cli.command('inspect')
@click.option('--file', '-f', 'file_path', required=True, type=click.Path(),
              help='Path to Excel file to inspect')
def inspect_cmd(file_path: str):
    """Print the metadata of a workbook."""
    try:
        metadata = ConversionService().read_metadata(file_path)
    except ConversionError as e:
        logger.error(f"Inspect failed: {e}")
        click.echo(f"✗ Inspect failed: {e}", err=True)
        sys.exit(1)

    click.echo(f"Spec:          {metadata.spec_name}")
    click.echo(f"Version:       {metadata.spec_version}")
    click.echo(f"Table:         {metadata.table_serial_number}")
    click.echo(f"Title:         {metadata.table_title}")
    click.echo(f"Data region:   {metadata.data_rect}")


@cli.command('batch')
@click.option('--input-dir', '-i', required=True, type=click.Path(),
              help='Directory containing Excel files')
@click.option('--output-dir', '-o', required=True, type=click.Path(),
              help='Directory for converted files')
@click.option('--format', '-t', 'fmt', type=click.Choice(SUPPORTED_FORMATS), default='json',
              show_default=True, help='Output format')
def batch_cmd(input_dir: str, output_dir: str, fmt: str):
    """Convert every workbook in a directory."""
    service = ConversionService(progress_callback=echo_progress)
    try:
        result = service.convert_directory(input_dir, output_dir, fmt)
    except OSError as e:
        logger.error(f"Batch conversion failed: {e}")
        click.echo(f"✗ Batch conversion failed: {e}", err=True)
        sys.exit(1)
    click.echo(err=True)

    click.echo(f"\n✓ Converted: {len(result['converted'])}", err=True)
    for path in result['converted']:
        click.echo(f"  {path}", err=True)

    if result['failed']:
        click.echo(f"\n✗ Failed: {len(result['failed'])}", err=True)
        for name, error in result['failed'].items():
            click.echo(f"  {name}: {error}", err=True)
        sys.exit(1)


# ============================================================================
# Direct Mode Implementation (Uses Services Directly)
# ============================================================================

def convert_direct(file_path: str, fmt: str) -> str:
    """Convert file locally and return the rendered output."""
    try:
        service = ConversionService()
        table = service.convert_file(file_path)
    except ConversionError as e:
        logger.error(f"Conversion failed: {e}")
        click.echo(f"✗ Conversion failed: {e}", err=True)
        sys.exit(1)

    echo_stats(table.data.stats())
    return ExportService().render(table, fmt)


# ============================================================================
# API Mode Implementation (Uses FastAPI Backend)
# ============================================================================

def convert_via_api(api_url: str, file_path: str, fmt: str) -> str:
    """Upload file to the FastAPI backend and return the converted output."""
    click.echo(f"📤 Uploading {file_path} to {api_url}...", err=True)

    headers = {}
    api_key = os.getenv('API_KEY')
    if api_key:
        headers['X-API-Key'] = api_key

    try:
        with open(file_path, 'rb') as f:
            files = {
                'file': (Path(file_path).name, f,
                         'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet')
            }
            response = requests.post(
                f"{api_url.rstrip('/')}/api/convert",
                files=files,
                params={'format': fmt},
                headers=headers,
                timeout=60
            )
    except requests.exceptions.RequestException as e:
        click.echo(f"❌ Network error: {e}", err=True)
        sys.exit(1)
    except OSError as e:
        click.echo(f"❌ Unable to read {file_path}: {e}", err=True)
        sys.exit(1)

    if response.status_code != 200:
        click.echo(f"❌ Conversion failed ({response.status_code}): {response.text}", err=True)
        sys.exit(1)

    if fmt == 'json':
        data = response.json()
        echo_stats(data.get('stats', {}))
        # Same layout as direct mode
        return json.dumps(data, indent=2, ensure_ascii=False)

    stats_header = response.headers.get(STATS_HEADER)
    if stats_header:
        echo_stats(json.loads(stats_header))
    return response.text


if __name__ == '__main__':
    cli()
