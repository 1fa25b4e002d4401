"""Field nodes: statistics for one key at one nesting level."""

import logging
from collections import OrderedDict
from typing import Any, Dict, Iterator, List, Optional, Union

from .classifier import TypeTag
from .types import TypeSetMixin
from ..utils.exceptions import SchemaStateError

logger = logging.getLogger(__name__)


class Field(TypeSetMixin):
    """
    Like a property: one key of a document, with every type it was seen as.

    ``count`` is the number of documents the key appeared in,
    ``probability`` the share of its parent's documents that carried it.
    Missing occurrences are accounted for by an ``Undefined`` type that is
    added or removed on every commit.
    """

    def __init__(self, name: Any, parent: Any = None, title: Optional[str] = None):
        self.name = name
        # human friendly name when documents use shortened keys
        self.title = title if title is not None else str(name)
        self.parent = parent
        self.count = 0
        self.probability = 0.0
        self.unique = 0
        self._init_type_set()

    @property
    def type(self) -> Union[None, str, List[str]]:
        """The tag name if a single type was seen, the list of names otherwise."""
        if len(self.types) == 0:
            return None
        if len(self.types) == 1:
            return self.types.at(0).name
        return self.types.names

    @property
    def total(self) -> int:
        """Number of occurrences we would have seen if the field were always set."""
        if self.probability == 1 or self.parent is None:
            return self.count
        return self.parent.count

    @property
    def has_duplicates(self) -> bool:
        return self.unique < self.count

    @property
    def observed_tags(self) -> List[TypeTag]:
        return [t.tag for t in self.types if t.tag is not TypeTag.UNDEFINED]

    @property
    def values(self):
        """
        Flat sample of primitive values in arrival order.

        A field only ever seen as a document mirrors its nested fields instead.
        """
        if self.observed_tags == [TypeTag.DOCUMENT]:
            return self.types.get(TypeTag.DOCUMENT).fields
        return list(self._values)

    def ingest(self, value: Any) -> None:
        """Record one occurrence of this field's value."""
        self._ingest_value(value)
        self.count += 1

    def commit(self) -> None:
        """
        We've finished parsing a document. Finalize every probability, keep
        the Undefined type in line with the missing occurrences, sort the
        types and commit the fields nested under them.

        Raises:
            SchemaStateError: If the parent has not counted any document yet
        """
        parent_count = self.parent.count if self.parent is not None else 0
        if parent_count <= 0:
            raise SchemaStateError(
                f"Cannot commit field {self.name!r} before its parent has counted a document"
            )
        if self.count > parent_count:
            raise SchemaStateError(
                f"Field {self.name!r} seen {self.count} times in {parent_count} documents"
            )

        self.probability = self.count / parent_count
        total = self.total
        self._reconcile_undefined(total)

        self.types.finalize(total)
        self.unique = sum(t.unique for t in self.types)

    def _reconcile_undefined(self, total: int) -> None:
        undefined = self.types.get(TypeTag.UNDEFINED)
        missing = total - self.count
        if missing <= 0:
            if undefined is not None:
                logger.debug(
                    f"Removing extraneous Undefined for {self.name!r}",
                    extra={'field': self.title},
                )
                self.types.remove(TypeTag.UNDEFINED)
            return
        if undefined is None:
            logger.debug(f"Adding Undefined for {self.name!r}", extra={'field': self.title})
            undefined = self.types.add(TypeTag.UNDEFINED)
        undefined.count = missing

    def serialize(self, max_values: Optional[int] = None) -> Dict[str, Any]:
        result = {
            'name': self.name,
            'title': self.title,
            'count': self.count,
            'total': self.total,
            'probability': self.probability,
            'unique': self.unique,
            'has_duplicates': self.has_duplicates,
            'type': self.type,
        }
        if self.observed_tags == [TypeTag.DOCUMENT]:
            result['fields'] = self.types.get(TypeTag.DOCUMENT).fields.serialize(max_values)
        else:
            result['values'] = self._values[:max_values]
            result['types'] = self.types.serialize(max_values)
        return result

    def __repr__(self) -> str:
        return f"<Field {self.name!r} count={self.count}>"


class FieldCollection:
    """Fields of a schema or embedded document, in first-seen order."""

    def __init__(self, parent: Any = None):
        self.parent = parent
        self._fields: "OrderedDict[Any, Field]" = OrderedDict()

    def __iter__(self) -> Iterator[Field]:
        return iter(list(self._fields.values()))

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: Any) -> bool:
        return name in self._fields

    def get(self, name: Any) -> Optional[Field]:
        return self._fields.get(name)

    @property
    def names(self) -> List[Any]:
        return list(self._fields.keys())

    def ingest(self, name: Any, value: Any) -> Field:
        """Record one occurrence of ``name``, creating its field on first sight."""
        field = self._fields.get(name)
        if field is None:
            field = Field(name, parent=self.parent)
            self._fields[name] = field
        field.ingest(value)
        return field

    def commit(self) -> None:
        for field in self._fields.values():
            field.commit()

    def serialize(self, max_values: Optional[int] = None) -> List[Dict[str, Any]]:
        return [field.serialize(max_values) for field in self._fields.values()]
