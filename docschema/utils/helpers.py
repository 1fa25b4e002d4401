"""Helper utility functions."""

from pathlib import Path
from typing import Any, Dict, List, Optional

from bson import json_util
from bson.errors import BSONError

from .exceptions import InvalidInputError

DOCUMENT_FORMATS = ('auto', 'json', 'jsonl')


def parse_documents(text: str, fmt: str = 'auto') -> List[Any]:
    """
    Parse documents from Extended JSON text.

    Args:
        text: A JSON array, a single JSON document, or one document per line
        fmt: 'json', 'jsonl', or 'auto' to detect from the content

    Returns:
        List of parsed documents, BSON types restored from Extended JSON

    Raises:
        InvalidInputError: If the text cannot be parsed
    """
    if fmt not in DOCUMENT_FORMATS:
        raise InvalidInputError(f"Unknown document format: {fmt}")

    stripped = text.strip()
    if not stripped:
        return []

    if fmt == 'auto':
        try:
            return _as_document_list(json_util.loads(stripped))
        except (ValueError, BSONError):
            # Several top-level values: treat as JSON lines
            fmt = 'jsonl'

    if fmt == 'json':
        try:
            return _as_document_list(json_util.loads(stripped))
        except (ValueError, BSONError) as e:
            raise InvalidInputError(f"Invalid JSON input: {e}")

    documents = []
    for lineno, line in enumerate(stripped.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            documents.append(json_util.loads(line))
        except (ValueError, BSONError) as e:
            raise InvalidInputError(f"Invalid JSON on line {lineno}: {e}")
    return documents


def _as_document_list(parsed: Any) -> List[Any]:
    if isinstance(parsed, list):
        return parsed
    return [parsed]


def load_documents(path: Path, fmt: str = 'auto') -> List[Any]:
    """
    Read documents from a file.

    Args:
        path: File holding JSON, JSON lines or MongoDB Extended JSON
        fmt: Document format, see :func:`parse_documents`

    Returns:
        List of parsed documents
    """
    try:
        text = Path(path).read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidInputError(f"Cannot read documents from {path}: {e}")
    return parse_documents(text, fmt)


def dumps_schema(data: Dict[str, Any], indent: Optional[int] = 2) -> str:
    """
    Dump a serialized schema as relaxed Extended JSON.

    BSON values kept in value samples (ObjectId, Decimal128, ...) keep
    their type information; anything else falls back to ``str``.
    """
    return json_util.dumps(
        data,
        json_options=json_util.RELAXED_JSON_OPTIONS,
        indent=indent,
        default=str,
    )


def sanitize_namespace(ns: Optional[str]) -> str:
    """
    Make a namespace safe for use in a file name.

    Args:
        ns: Namespace such as ``db.collection``

    Returns:
        Sanitized namespace, 'schema' when empty
    """
    if not ns:
        return "schema"
    sanitized = "".join(c if c.isalnum() or c in ('_', '-', '.') else '_' for c in ns)
    return sanitized.strip('_') or "schema"

