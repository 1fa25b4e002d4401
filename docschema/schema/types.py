"""Type nodes: statistics for one (field, type tag) pair."""

import logging
from collections import OrderedDict
from typing import Any, Dict, Iterator, List, Optional, Union

from .classifier import (
    CONSTANT_TAGS,
    NUMERIC_TAGS,
    STRING_TAGS,
    TypeTag,
    classify,
)
from .values import NumericValueStore, StringValueStore, ValueStore
from ..utils.exceptions import SchemaStateError

logger = logging.getLogger(__name__)


class SchemaType:
    """Base class for the statistics kept for one observed type of a field."""

    def __init__(self, tag: TypeTag, parent: Any = None):
        self.tag = tag
        self.parent = parent
        self.count = 0
        self.probability = 0.0
        self.unique = 0

    @property
    def name(self) -> str:
        return self.tag.value

    @property
    def has_duplicates(self) -> bool:
        return self.count > 1

    def analyze(self, value: Any) -> None:
        raise NotImplementedError

    def _compute_unique(self) -> int:
        return 0

    def finalize(self, total: int) -> None:
        """
        Recompute derived statistics against the owner's expected total.

        Args:
            total: Number of occurrences the owner would have if always set

        Raises:
            SchemaStateError: If the owner's total is not known yet
        """
        if not total or total <= 0:
            raise SchemaStateError(
                f"Cannot finalize type {self.name} before its owner total is known"
            )
        self.probability = self.count / total
        self.unique = self._compute_unique()

    def serialize(self, max_values: Optional[int] = None) -> Dict[str, Any]:
        return {
            'name': self.name,
            'count': self.count,
            'probability': self.probability,
            'unique': self.unique,
            'has_duplicates': self.has_duplicates,
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} count={self.count}>"


class ConstantType(SchemaType):
    """Types that carry no value of their own: Null, Undefined, MinKey, MaxKey."""

    def analyze(self, value: Any) -> None:
        if self.tag is TypeTag.UNDEFINED:
            raise SchemaStateError("Undefined is inferred on commit and cannot be observed")
        self.count += 1

    def _compute_unique(self) -> int:
        # absence is not a value
        if self.tag is TypeTag.UNDEFINED:
            return 0
        return min(self.count, 1)


class PrimitiveType(SchemaType):
    """Scalar types that keep every observed value."""

    def __init__(self, tag: TypeTag, parent: Any = None):
        super().__init__(tag, parent)
        if tag in STRING_TAGS:
            self.values = StringValueStore()
        elif tag in NUMERIC_TAGS:
            self.values = NumericValueStore()
        else:
            self.values = ValueStore()

    @property
    def has_duplicates(self) -> bool:
        return self.unique < len(self.values)

    def analyze(self, value: Any) -> None:
        self.values.add(value)
        self.count += 1

    def _compute_unique(self) -> int:
        return self.values.unique

    def serialize(self, max_values: Optional[int] = None) -> Dict[str, Any]:
        result = super().serialize(max_values)
        result.update(self.values.serialize(max_values))
        return result


class DocumentType(SchemaType):
    """An embedded document; owns the fields of its members."""

    def __init__(self, tag: TypeTag = TypeTag.DOCUMENT, parent: Any = None):
        super().__init__(tag, parent)
        from .field import FieldCollection
        self.fields = FieldCollection(parent=self)

    def analyze(self, value: Any) -> None:
        self.count += 1
        for key, member in value.items():
            self.fields.ingest(key, member)

    def finalize(self, total: int) -> None:
        super().finalize(total)
        self.fields.commit()

    def serialize(self, max_values: Optional[int] = None) -> Dict[str, Any]:
        result = super().serialize(max_values)
        result['fields'] = self.fields.serialize(max_values)
        return result


class TypeSetMixin:
    """
    Shared behaviour of nodes owning a set of types: fields and arrays.

    Values of every element or occurrence are classified into
    ``self.types``; primitive ones are also kept, in arrival order, in a
    flat sample.
    """

    def _init_type_set(self) -> None:
        self.types = TypeCollection(parent=self)
        self._values: List[Any] = []

    def _ingest_value(self, value: Any) -> SchemaType:
        schema_type = self.types.add_to_type(value)
        if isinstance(schema_type, PrimitiveType):
            self._values.append(value)
        return schema_type

    @property
    def fields(self) -> Optional["FieldCollection"]:
        """Nested fields of the document (or array of documents) type, if any."""
        document = self.types.get(TypeTag.DOCUMENT)
        if document is not None:
            return document.fields
        array = self.types.get(TypeTag.ARRAY)
        if array is not None:
            return array.fields
        return None


class ArrayType(TypeSetMixin, SchemaType):
    """
    An array occurrence of a field.

    Element types are pooled across every array seen for the field, so
    their probabilities are relative to the total number of elements.
    """

    def __init__(self, tag: TypeTag = TypeTag.ARRAY, parent: Any = None):
        super().__init__(tag, parent)
        self._init_type_set()
        self.lengths: List[int] = []

    @property
    def average_length(self) -> Optional[float]:
        if not self.lengths:
            return None
        return sum(self.lengths) / len(self.lengths)

    @property
    def total_elements(self) -> int:
        return sum(t.count for t in self.types)

    @property
    def values(self) -> List[Any]:
        return list(self._values)

    def analyze(self, value: Any) -> None:
        self.count += 1
        self.lengths.append(len(value))
        for element in value:
            self._ingest_value(element)

    def finalize(self, total: int) -> None:
        super().finalize(total)
        pooled = self.total_elements
        if pooled:
            self.types.finalize(pooled)

    def serialize(self, max_values: Optional[int] = None) -> Dict[str, Any]:
        result = super().serialize(max_values)
        result['lengths'] = list(self.lengths)
        result['average_length'] = self.average_length
        result['total_elements'] = self.total_elements
        result['types'] = self.types.serialize(max_values)
        result['values'] = self._values[:max_values]
        return result


TYPE_CLASSES: Dict[TypeTag, type] = {
    tag: ConstantType if tag in CONSTANT_TAGS else PrimitiveType
    for tag in TypeTag
}
TYPE_CLASSES[TypeTag.ARRAY] = ArrayType
TYPE_CLASSES[TypeTag.DOCUMENT] = DocumentType


def create_type(tag: TypeTag, parent: Any = None) -> SchemaType:
    """Instantiate the type node registered for ``tag``."""
    klass = TYPE_CLASSES.get(tag)
    if klass is None:
        raise SchemaStateError(f"No value type for {tag!r}")
    return klass(tag, parent)


class TypeCollection:
    """Types seen for one field or array, at most one per tag."""

    def __init__(self, parent: Any = None):
        self.parent = parent
        self._types: "OrderedDict[TypeTag, SchemaType]" = OrderedDict()

    def __iter__(self) -> Iterator[SchemaType]:
        return iter(list(self._types.values()))

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, tag: Union[TypeTag, str]) -> bool:
        return self.get(tag) is not None

    def get(self, tag: Union[TypeTag, str]) -> Optional[SchemaType]:
        if isinstance(tag, str):
            try:
                tag = TypeTag(tag)
            except ValueError:
                return None
        return self._types.get(tag)

    def at(self, index: int) -> SchemaType:
        return list(self._types.values())[index]

    @property
    def names(self) -> List[str]:
        return [t.name for t in self._types.values()]

    def add(self, tag: TypeTag) -> SchemaType:
        schema_type = create_type(tag, parent=self.parent)
        self._types[tag] = schema_type
        return schema_type

    def remove(self, tag: TypeTag) -> Optional[SchemaType]:
        return self._types.pop(tag, None)

    def add_to_type(self, value: Any) -> SchemaType:
        """Classify a value and record it on the matching type, creating it if new."""
        tag = classify(value)
        schema_type = self._types.get(tag)
        if schema_type is None:
            logger.debug(f"Adding type {tag.value} to {self.parent!r}")
            schema_type = self.add(tag)
        schema_type.analyze(value)
        return schema_type

    def finalize(self, total: int) -> None:
        for schema_type in self._types.values():
            schema_type.finalize(total)
        self.sort()

    def sort(self) -> None:
        """Order by descending probability, with Undefined always last."""
        ordered = sorted(
            self._types.values(),
            key=lambda t: (t.tag is TypeTag.UNDEFINED, -t.probability),
        )
        self._types = OrderedDict((t.tag, t) for t in ordered)

    def serialize(self, max_values: Optional[int] = None) -> List[Dict[str, Any]]:
        return [t.serialize(max_values) for t in self._types.values()]
