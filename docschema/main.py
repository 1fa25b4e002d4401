"""Command line entry point for docschema."""

import sys
from pathlib import Path
from typing import Optional

import click

from .adapter import get_schema
from .config.config_loader import load_config
from .reporting.generator import SchemaReportGenerator, render_text
from .utils.exceptions import DocSchemaError
from .utils.helpers import DOCUMENT_FORMATS, dumps_schema, load_documents
from .utils.logger import setup_logger
from .__version__ import __version__

logger = setup_logger()


def print_version(ctx, param, value):
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"docschema version {__version__}")
    ctx.exit()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    '--version', '-V',
    is_flag=True,
    callback=print_version,
    expose_value=False,
    is_eager=True,
    help='Show version and exit'
)
@click.argument(
    'inputs',
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    '--config',
    '-c',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to configuration file'
)
@click.option(
    '--ns',
    help='Namespace of the sample, e.g. db.collection (default: first input file name)'
)
@click.option(
    '--format', 'input_format',
    type=click.Choice(DOCUMENT_FORMATS),
    help='Input format: JSON array/document, JSON lines, or auto-detect'
)
@click.option(
    '--max-values',
    type=click.IntRange(min=1),
    help='Maximum number of sample values written per field and type'
)
@click.option(
    '--skip-invalid',
    is_flag=True,
    help='Skip documents that are not objects or hold unknown value types'
)
@click.option(
    '--output',
    '-o',
    type=click.Path(file_okay=False, path_type=Path),
    help='Output directory for reports (default: print JSON schema to stdout)'
)
@click.option(
    '--report-format',
    type=click.Choice(['json', 'text']),
    multiple=True,
    help='Report format (can be specified multiple times)'
)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
    help='Logging level'
)
@click.option(
    '--log-file',
    type=click.Path(dir_okay=False, path_type=Path),
    help='Also write logs to this file'
)
@click.option(
    '--json-logs',
    is_flag=True,
    help='Use structured JSON log format'
)
def main(
    inputs: tuple,
    config: Optional[Path],
    ns: Optional[str],
    input_format: Optional[str],
    max_values: Optional[int],
    skip_invalid: bool,
    output: Optional[Path],
    report_format: tuple,
    log_level: Optional[str],
    log_file: Optional[Path],
    json_logs: bool
):
    """
    Infer a probabilistic schema from sample documents.

    INPUTS are files holding a JSON array, a single JSON document, or one
    document per line. MongoDB Extended JSON ($oid, $date, ...) is read
    as BSON values.
    """
    global logger
    try:
        config_dict = load_config(config)
    except DocSchemaError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    logging_config = config_dict['logging']
    log_path = log_file or logging_config.get('file')
    logger = setup_logger(
        log_level=log_level or logging_config['level'],
        log_file=Path(log_path) if log_path else None,
        console_output=logging_config['console'],
        json_format=json_logs or logging_config['json'],
    )

    schema_config = config_dict['schema']
    input_config = config_dict['input']
    reporting_config = dict(config_dict['reporting'])

    namespace = ns or schema_config.get('namespace') or inputs[0].stem
    fmt = input_format or input_config['format']
    skip = skip_invalid or input_config['skip_invalid']
    limit = max_values or schema_config.get('max_values')

    try:
        def documents():
            for path in inputs:
                logger.info(f"Reading documents from {path}")
                yield from load_documents(path, fmt)

        schema = get_schema(namespace, documents(), skip_invalid=skip, max_values=limit)

        if output is None:
            if 'text' in report_format:
                click.echo(render_text(schema), nl=False)
            else:
                click.echo(dumps_schema(schema.serialize(), indent=reporting_config['indent']))
            return

        reporting_config['output_directory'] = str(output)
        if report_format:
            reporting_config['output_format'] = list(report_format)
        for report_file in SchemaReportGenerator(reporting_config).generate(schema):
            click.echo(str(report_file))

    except DocSchemaError as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)


# Entry point for CLI
if __name__ == '__main__':
    main()
