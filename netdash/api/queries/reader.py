"""
Columnar result reading.

Typed, default-safe access to InfluxDB column/value rows, plus helpers
that walk a validated response and map rows into records.
"""

import logging
import math
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, TypeVar

import pandas as pd

from ..schemas import ColumnarResponse, Series
from .constants import UNKNOWN_ENTITY

logger = logging.getLogger("netdash.queries")

T = TypeVar("T")


def _is_finite(value) -> bool:
    # ints beyond float range overflow in isfinite
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def finite_number_or_none(value: Any) -> Optional[float]:
    """Return value as a finite number, or None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value if _is_finite(value) else None
    if isinstance(value, str):
        try:
            parsed = float(value)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


class ColumnValueReader:
    """
    Column-name-indexed access to a single row.

    The name->index map is built once per reader; callers reading many
    rows of the same series should use `for_row` to reuse it.
    """

    def __init__(self, columns: Sequence[str], values: Sequence[Any], _index: Optional[Dict[str, int]] = None):
        self._columns = list(columns)
        self._values = values
        if _index is None:
            _index = {name: i for i, name in enumerate(self._columns)}
        self._index = _index

    def for_row(self, values: Sequence[Any]) -> "ColumnValueReader":
        """Reader over another row of the same columns, sharing the index map."""
        return ColumnValueReader(self._columns, values, self._index)

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    def has(self, key: str) -> bool:
        return key in self._index

    def raw(self, key: str) -> Any:
        idx = self._index.get(key)
        if idx is None:
            logger.debug(f'Column "{key}" not found. Available: {", ".join(self._columns)}')
            return None
        if idx >= len(self._values):
            return None
        return self._values[idx]

    __call__ = raw

    def number(self, key: str, default: float = 0) -> float:
        """Finite number at key; numeric strings are parsed, anything else yields default."""
        parsed = finite_number_or_none(self.raw(key))
        return default if parsed is None else parsed

    def string(self, key: str, default: str = "") -> str:
        value = self.raw(key)
        return default if value is None else str(value)

    def boolean(self, key: str, default: bool = False) -> bool:
        value = self.raw(key)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.lower()
            if lowered == "true":
                return True
            if lowered == "false":
                return False
            return default
        if isinstance(value, (int, float)):
            return value != 0 if _is_finite(value) else default
        return default


def iter_series(response: Any, statement: int = 0) -> Iterator[Series]:
    """Yield the series of one statement; missing results/series yield nothing."""
    yield from ColumnarResponse.parse(response).series_for(statement)


def iter_rows(series: Series) -> Iterator[ColumnValueReader]:
    """Yield a reader per row, all sharing one index map."""
    if not series.values:
        return
    reader = ColumnValueReader(series.columns, series.values[0])
    for row in series.values:
        yield reader.for_row(row)


def parse_results(response: Any, mapper: Callable[[ColumnValueReader], T]) -> List[T]:
    """Map every row of the first series (plain, ungrouped queries)."""
    for series in iter_series(response):
        return [mapper(row) for row in iter_rows(series)]
    return []


def parse_group_by_results(
    response: Any,
    mapper: Callable[[ColumnValueReader, Dict[str, str]], T],
) -> List[T]:
    """Map every row of every series, passing the series tags along."""
    results = []
    for series in iter_series(response):
        for row in iter_rows(series):
            results.append(mapper(row, series.tags))
    return results


def parse_grouped_results(
    response: Any,
    mapper: Callable[[Dict[str, str], ColumnValueReader], T],
) -> List[T]:
    """Map the first row of each series, for GROUP BY queries with LAST()/single aggregates."""
    results = []
    for series in iter_series(response):
        row = series.values[0] if series.values else []
        results.append(mapper(series.tags, ColumnValueReader(series.columns, row)))
    return results


def parse_series_to_objects(series: Series) -> List[Dict[str, Any]]:
    """Rows as dicts keyed by column name, for ad-hoc queries like events."""
    return [dict(zip(series.columns, row)) for row in series.values]


def series_to_frame(response: Any, entity_tag: str, fields: Sequence[str]) -> pd.DataFrame:
    """
    Flatten a grouped response into a long DataFrame.

    Args:
        response: Columnar response grouped by `entity_tag`
        entity_tag: Tag that identifies the entity of each series
        fields: Numeric columns to extract (invalid values become NaN)

    Returns:
        DataFrame with columns: entity, time, <fields...>
    """
    records = []
    for series in iter_series(response):
        entity = series.tags.get(entity_tag) or UNKNOWN_ENTITY
        for row in iter_rows(series):
            record = {"entity": entity, "time": row.raw("time")}
            for field in fields:
                record[field] = row.number(field, default=math.nan)
            records.append(record)

    if not records:
        return pd.DataFrame(columns=["entity", "time", *fields])
    return pd.DataFrame(records)
