"""Infer probabilistic schemas from samples of JSON and BSON documents."""

from .__version__ import __version__
from .adapter import get_schema, iter_documents
from .schema import Field, Schema, TypeTag, classify

__all__ = [
    "__version__",
    "get_schema",
    "iter_documents",
    "Field",
    "Schema",
    "TypeTag",
    "classify",
]
