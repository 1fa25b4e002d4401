"""The schema root: drives one ingestion and commit cycle per document."""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, Optional

from .classifier import validate_document
from .field import FieldCollection
from ..__version__ import __version__
from ..utils.exceptions import InvalidInputError, SchemaStateError

logger = logging.getLogger(__name__)

SCHEMA_FORMAT = "docschema"


class SchemaState(Enum):
    """Lifecycle of a schema between documents."""
    EMPTY = "empty"
    INGESTING = "ingesting"
    FINALIZING = "finalizing"
    READY = "ready"


class Schema:
    """The top level schema of a sample of documents."""

    def __init__(self, ns: Optional[str] = None, max_values: Optional[int] = None):
        """
        Initialize an empty schema.

        Args:
            ns: Namespace the documents were sampled from (e.g. ``db.collection``)
            max_values: Cap on value samples in serialized output
        """
        self.ns = ns
        self.max_values = max_values
        self.count = 0
        self.fields = FieldCollection(parent=self)
        self.state = SchemaState.EMPTY

    def parse(self, document: Mapping, done: Optional[Callable[[], None]] = None) -> None:
        """
        Absorb one document and commit the whole tree.

        Every value is classified before any statistic is touched, so a
        document that cannot be classified leaves the schema unchanged.

        Args:
            document: Document to add to the sample
            done: Called once the document has been committed

        Raises:
            InvalidInputError: If the document is not a mapping or nests too deep
            SchemaClassificationError: If a value has no known type
            SchemaStateError: If another document is still being parsed
        """
        if self.state in (SchemaState.INGESTING, SchemaState.FINALIZING):
            raise SchemaStateError(
                f"Cannot parse a document while the schema is {self.state.value}"
            )
        if not isinstance(document, Mapping):
            raise InvalidInputError(
                f"Expected a document, got {type(document).__name__}"
            )
        validate_document(document)

        self.state = SchemaState.INGESTING
        self.count += 1
        for key, value in document.items():
            self.fields.ingest(key, value)

        self.state = SchemaState.FINALIZING
        self.fields.commit()
        self.state = SchemaState.READY

        if done is not None:
            done()

    def commit(self) -> None:
        """Recompute every derived statistic; a no-op on an empty schema."""
        if self.state is SchemaState.INGESTING:
            raise SchemaStateError("Cannot commit while a document is being ingested")
        if self.count == 0:
            return
        self.fields.commit()

    def stream(self, documents: Iterable[Mapping]) -> Iterator[Mapping]:
        """Parse documents one at a time, yielding each once it is committed."""
        for document in documents:
            self.parse(document)
            yield document

    def serialize(self) -> Dict[str, Any]:
        return {
            'format': SCHEMA_FORMAT,
            'version': __version__,
            'ns': self.ns,
            'count': self.count,
            'fields': self.fields.serialize(self.max_values),
        }

    def __repr__(self) -> str:
        return f"<Schema ns={self.ns!r} count={self.count} fields={len(self.fields)}>"
