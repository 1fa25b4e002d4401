"""Probabilistic schema inference engine."""

from .classifier import TypeTag, classify
from .field import Field, FieldCollection
from .schema import Schema, SchemaState
from .types import (
    ArrayType,
    ConstantType,
    DocumentType,
    PrimitiveType,
    SchemaType,
    TypeCollection,
)

__all__ = [
    "TypeTag",
    "classify",
    "Field",
    "FieldCollection",
    "Schema",
    "SchemaState",
    "SchemaType",
    "ConstantType",
    "PrimitiveType",
    "ArrayType",
    "DocumentType",
    "TypeCollection",
]
