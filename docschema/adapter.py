"""Feed documents from arrays, iterators or stream-like objects into a schema."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Iterator, Optional

from .schema import Schema
from .utils.exceptions import InvalidInputError, SchemaClassificationError

logger = logging.getLogger(__name__)


def iter_documents(source: Any) -> Iterator[Any]:
    """
    Turn a document source into an iterator.

    Args:
        source: List, tuple, iterator or generator of documents, or any
            object exposing a ``stream()`` method returning one of those

    Returns:
        Iterator over the documents

    Raises:
        InvalidInputError: If the source cannot yield documents
    """
    stream = getattr(source, 'stream', None)
    if callable(stream) and not isinstance(source, Schema):
        source = stream()

    if isinstance(source, (str, bytes, bytearray, Mapping)) or not isinstance(source, Iterable):
        raise InvalidInputError(
            f"Unknown input type for documents: {type(source).__name__}"
        )
    return iter(source)


def get_schema(
    ns: Optional[str],
    source: Any,
    done: Optional[Callable[[Schema], None]] = None,
    skip_invalid: bool = False,
    max_values: Optional[int] = None,
) -> Schema:
    """
    Infer the schema of a sample of documents.

    Documents are parsed strictly one after the other, each one committed
    before the next is pulled from the source.

    Args:
        ns: Namespace of the sample
        source: Documents; see :func:`iter_documents`
        done: Called with the schema once the source is exhausted
        skip_invalid: Log and skip documents that are not mappings or hold
            unclassifiable values instead of raising
        max_values: Cap on value samples in serialized output

    Returns:
        The populated schema
    """
    documents = iter_documents(source)
    schema = Schema(ns=ns, max_values=max_values)
    skipped = 0

    for position, document in enumerate(documents):
        try:
            schema.parse(document)
        except (InvalidInputError, SchemaClassificationError) as e:
            if not skip_invalid:
                raise
            skipped += 1
            logger.warning(
                f"Skipping document #{position}: {e}",
                extra={'ns': ns},
            )

    logger.info(
        f"Parsed {schema.count} document(s) for {ns or 'schema'}"
        + (f", skipped {skipped}" if skipped else "")
    )
    if done is not None:
        done(schema)
    return schema
