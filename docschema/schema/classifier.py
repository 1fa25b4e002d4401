"""Classification of raw document values into canonical type tags."""

import datetime
import decimal
import re
import uuid
from collections.abc import Mapping
from enum import Enum
from typing import Any, Dict

from ..utils.exceptions import InvalidInputError, SchemaClassificationError

# Same limit as the MongoDB server; parsing recurses once per level
MAX_NESTING_DEPTH = 100


class TypeTag(Enum):
    """Canonical value types seen in JSON and BSON documents."""
    DOUBLE = "Double"
    NUMBER = "Number"
    STRING = "String"
    BOOLEAN = "Boolean"
    NULL = "Null"
    UNDEFINED = "Undefined"
    DATE = "Date"
    REGEXP = "RegExp"
    OBJECTID = "ObjectID"
    BINARY = "Binary"
    SYMBOL = "Symbol"
    CODE = "Code"
    DBREF = "DBRef"
    TIMESTAMP = "Timestamp"
    LONG = "Long"
    MINKEY = "MinKey"
    MAXKEY = "MaxKey"
    ARRAY = "Array"
    DOCUMENT = "Document"


CONSTANT_TAGS = frozenset({
    TypeTag.NULL, TypeTag.UNDEFINED, TypeTag.MINKEY, TypeTag.MAXKEY,
})

STRUCTURAL_TAGS = frozenset({TypeTag.ARRAY, TypeTag.DOCUMENT})

NUMERIC_TAGS = frozenset({TypeTag.NUMBER, TypeTag.DOUBLE, TypeTag.LONG})

STRING_TAGS = frozenset({TypeTag.STRING, TypeTag.SYMBOL})

# BSON element type numbers, exposed by pymongo's bson classes as ``_type_marker``
BSON_TYPE_MARKERS: Dict[int, TypeTag] = {
    5: TypeTag.BINARY,
    7: TypeTag.OBJECTID,
    9: TypeTag.DATE,
    11: TypeTag.REGEXP,
    13: TypeTag.CODE,
    14: TypeTag.SYMBOL,
    17: TypeTag.TIMESTAMP,
    18: TypeTag.LONG,
    19: TypeTag.DOUBLE,
    100: TypeTag.DBREF,
    127: TypeTag.MAXKEY,
    255: TypeTag.MINKEY,
}


def classify(value: Any) -> TypeTag:
    """
    Return the type tag of a raw value.

    BSON wrapper types are matched on their type marker before any
    builtin check, since several of them subclass ``int``, ``str`` or
    ``bytes``.

    Args:
        value: Raw value taken from a document

    Returns:
        Matching type tag

    Raises:
        SchemaClassificationError: If no tag matches the value
    """
    if value is None:
        return TypeTag.NULL

    marker = getattr(type(value), '_type_marker', None)
    if marker in BSON_TYPE_MARKERS:
        return BSON_TYPE_MARKERS[marker]

    if isinstance(value, bool):
        return TypeTag.BOOLEAN
    if isinstance(value, int):
        return TypeTag.NUMBER
    if isinstance(value, float):
        return TypeTag.NUMBER if value.is_integer() else TypeTag.DOUBLE
    if isinstance(value, decimal.Decimal):
        return TypeTag.DOUBLE
    if isinstance(value, str):
        return TypeTag.STRING
    if isinstance(value, (bytes, bytearray, uuid.UUID)):
        return TypeTag.BINARY
    if isinstance(value, (datetime.datetime, datetime.date)):
        return TypeTag.DATE
    if isinstance(value, re.Pattern):
        return TypeTag.REGEXP
    if isinstance(value, (list, tuple)):
        return TypeTag.ARRAY
    if isinstance(value, Mapping):
        return TypeTag.DOCUMENT

    raise SchemaClassificationError(
        f"Unrecognized type {type(value).__name__!r} for value {value!r}"
    )


def validate_document(document: Mapping, max_depth: int = MAX_NESTING_DEPTH) -> None:
    """
    Classify every value of a document, recursively, without recording anything.

    Args:
        document: Document about to be parsed
        max_depth: Deepest nesting level accepted; top-level values are level 1

    Raises:
        SchemaClassificationError: On the first value that matches no tag
        InvalidInputError: If documents or arrays nest deeper than ``max_depth``
    """
    pending = [(value, 1) for value in document.values()]
    while pending:
        value, depth = pending.pop()
        tag = classify(value)
        if tag not in STRUCTURAL_TAGS:
            continue
        if depth >= max_depth and len(value):
            raise InvalidInputError(
                f"Document nests deeper than {max_depth} levels"
            )
        members = value.values() if tag is TypeTag.DOCUMENT else value
        pending.extend((member, depth + 1) for member in members)
