"""Report generation for inferred schemas."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from ..schema import Schema
from ..utils.exceptions import ReportGenerationError
from ..utils.helpers import dumps_schema, sanitize_namespace

logger = logging.getLogger(__name__)

INDENT = "  "


def render_text(schema: Schema) -> str:
    """
    Render a schema as an indented tree.

    Each field line shows its presence probability followed by the
    probability of every type it was seen as.
    """
    lines = [f"{schema.ns or 'schema'} ({schema.count} documents)"]
    _render_fields(schema.serialize()['fields'], lines, depth=1)
    return "\n".join(lines) + "\n"


def _format_types(types: List[Dict[str, Any]]) -> str:
    return ", ".join(f"{t['name']} {t['probability']:.1%}" for t in types)


def _render_fields(fields: List[Dict[str, Any]], lines: List[str], depth: int) -> None:
    for field in fields:
        prefix = INDENT * depth
        if 'fields' in field:
            lines.append(f"{prefix}{field['name']}: {field['probability']:.1%} Document")
            _render_fields(field['fields'], lines, depth + 1)
            continue
        lines.append(
            f"{prefix}{field['name']}: {field['probability']:.1%} [{_format_types(field['types'])}]"
        )
        _render_types(field['types'], lines, depth + 1)


def _render_types(types: List[Dict[str, Any]], lines: List[str], depth: int) -> None:
    prefix = INDENT * depth
    for schema_type in types:
        if schema_type['name'] == 'Document':
            lines.append(f"{prefix}<Document>")
            _render_fields(schema_type['fields'], lines, depth + 1)
        elif schema_type['name'] == 'Array':
            average = schema_type['average_length']
            lines.append(
                f"{prefix}<Array> avg length {average:.1f} "
                f"[{_format_types(schema_type['types'])}]"
            )
            _render_types(schema_type['types'], lines, depth + 1)


class SchemaReportGenerator:
    """Write inferred schemas to report files."""

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize report generator.

        Args:
            config: Reporting configuration
        """
        self.config = config
        self.output_dir = Path(config.get('output_directory', './reports'))
        self.formats = config.get('output_format', ['json'])
        self.indent = config.get('indent', 2)

    def generate(self, schema: Schema) -> List[Path]:
        """
        Generate reports in configured formats.

        Args:
            schema: Schema to report on

        Returns:
            List of generated report file paths

        Raises:
            ReportGenerationError: If a report cannot be written
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        stem = f"schema_{sanitize_namespace(schema.ns)}_{timestamp}"

        generated_files = []
        for format_type in self.formats:
            if format_type == 'json':
                content = dumps_schema(schema.serialize(), indent=self.indent)
                generated_files.append(self._write(stem + ".json", content))
            elif format_type == 'text':
                generated_files.append(self._write(stem + ".txt", render_text(schema)))
            else:
                logger.warning(f"Unknown report format: {format_type}")

        return generated_files

    def _write(self, filename: str, content: str) -> Path:
        file_path = self.output_dir / filename
        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise ReportGenerationError(f"Failed to write report {file_path}: {e}")
        logger.info(f"Schema report generated: {file_path}")
        return file_path
