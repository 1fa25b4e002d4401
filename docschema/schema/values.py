"""Per-type stores of observed raw values."""

import decimal
import statistics
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple


def count_distinct(values: Iterable[Any]) -> int:
    """
    Count distinct values.

    Hashable values go through a set; unhashable ones (``bson.Regex``,
    nested containers) fall back to equality comparison.
    """
    seen = set()
    unhashable: List[Any] = []
    for value in values:
        try:
            seen.add(value)
        except TypeError:
            if not any(value == other for other in unhashable):
                unhashable.append(value)
    return len(seen) + len(unhashable)


class ValueStore:
    """Ordered sample of every raw value observed for one type."""

    def __init__(self):
        self._values: List[Any] = []

    def add(self, value: Any) -> None:
        self._values.append(value)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self):
        return iter(self._values)

    @property
    def unique(self) -> int:
        # Recomputed on read; only needed when a document is committed
        return count_distinct(self._values)

    def sample(self, limit: Optional[int] = None) -> List[Any]:
        return self._values[:limit]

    def serialize(self, limit: Optional[int] = None) -> Dict[str, Any]:
        return {'values': self.sample(limit)}


class StringValueStore(ValueStore):
    """Frequency table of string values, in first-seen order."""

    def __init__(self):
        super().__init__()
        self._counts: Counter = Counter()

    def add(self, value: Any) -> None:
        super().add(value)
        self._counts[value] += 1

    @property
    def unique(self) -> int:
        return len(self._counts)

    def ranked(self) -> Tuple[List[Any], List[int]]:
        """
        Distinct values sorted by descending occurrence count.

        Returns:
            Parallel lists of values and counts; ties keep first-seen order
        """
        ordered = sorted(self._counts.items(), key=lambda item: -item[1])
        return [value for value, _ in ordered], [count for _, count in ordered]

    def serialize(self, limit: Optional[int] = None) -> Dict[str, Any]:
        values, counts = self.ranked()
        if limit is not None:
            values, counts = values[:limit], counts[:limit]
        return {'values': values, 'counts': counts}


def _float_or_none(summarize: Callable[[List[Any]], Any], numbers: List[Any]) -> Any:
    """Apply a float summary, or return None when an integer is out of float range."""
    try:
        return summarize(numbers)
    except OverflowError:
        return None


class NumericValueStore(ValueStore):
    """Numeric sample with min, max, mean and median summaries."""

    @staticmethod
    def _as_number(value: Any) -> Any:
        # Decimal128 has no arithmetic of its own
        if hasattr(value, 'to_decimal'):
            value = value.to_decimal()
        if isinstance(value, decimal.Decimal):
            return float(value)
        return value

    def summary(self) -> Dict[str, Optional[float]]:
        if not self._values:
            return {'min': None, 'max': None, 'mean': None, 'median': None}
        numbers = [self._as_number(v) for v in self._values]
        return {
            'min': min(numbers),
            'max': max(numbers),
            'mean': _float_or_none(statistics.fmean, numbers),
            # median sorts its own copy, the stored sample keeps arrival order
            'median': _float_or_none(statistics.median, numbers),
        }

    def serialize(self, limit: Optional[int] = None) -> Dict[str, Any]:
        result = super().serialize(limit)
        result.update(self.summary())
        return result
