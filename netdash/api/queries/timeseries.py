"""
Multi-entity time-series aggregation.

Merges many per-entity series (one per AP, WAN port, radio...) into one
denormalized table with a row per timestamp and fields per entity, the
shape chart collaborators consume.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

import pandas as pd

from .constants import COMPOSITE_KEY_DELIMITER, COMPOSITE_KEY_ESCAPE, UNKNOWN_ENTITY
from .reader import ColumnValueReader, iter_rows, iter_series

logger = logging.getLogger("netdash.queries")

RowMapper = Callable[[ColumnValueReader, List[str], str], Dict[str, float]]


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One time bucket: a timestamp plus field -> number (read-only)."""

    time: Any
    values: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def __getitem__(self, key: str):
        if key == "time":
            return self.time
        return self.values[key]

    def get(self, key: str, default=None):
        return self.values.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return {"time": self.time, **self.values}


class AggregatedSeries(NamedTuple):
    data: List[TimeSeriesPoint]
    entities: List[str]


def time_sort_key(value: Any) -> Tuple[int, Any]:
    """
    Ordering key for InfluxDB timestamps.

    Epoch numbers sort as-is, RFC3339 strings by parsed instant (seconds);
    unparseable values go last in string order.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, float(value))
    if not isinstance(value, str):
        return (1, str(value))
    # Out-of-range instants ("t1" parses to year 1) overflow nanoseconds
    try:
        parsed = pd.to_datetime(value, utc=True, errors="coerce")
        if parsed is pd.NaT:
            return (1, str(value))
        return (0, parsed.value / 1e9)
    except (ValueError, TypeError, OverflowError):
        return (1, str(value))


def composite_key(parts: Sequence[str]) -> str:
    """
    Join tag values with "|", escaping "|" and "\\" inside each value.

    ("x|y", "z") and ("x", "y|z") stay distinct: "x\\|y|z" vs "x|y\\|z".
    """
    escaped = [
        part.replace(COMPOSITE_KEY_ESCAPE, COMPOSITE_KEY_ESCAPE * 2)
        .replace(COMPOSITE_KEY_DELIMITER, COMPOSITE_KEY_ESCAPE + COMPOSITE_KEY_DELIMITER)
        for part in parts
    ]
    return COMPOSITE_KEY_DELIMITER.join(escaped)


def resolve_entity_key(tags: Mapping[str, str], entity_tag: Union[str, Sequence[str]]) -> Optional[str]:
    """
    Entity key for a series.

    A single tag falls back to "unknown" when absent. A composite key joins
    the tag values via composite_key() and is None when every component is empty.
    """
    if isinstance(entity_tag, str):
        return tags.get(entity_tag) or UNKNOWN_ENTITY

    parts = [tags.get(tag) or "" for tag in entity_tag]
    if all(part == "" for part in parts):
        return None
    return composite_key(parts)


def aggregate_multi_entity_timeseries(
    response: Any,
    entity_tag: Union[str, Sequence[str]],
    row_mapper: RowMapper,
    point_filter: Optional[Callable[[TimeSeriesPoint], bool]] = None,
    value_filter: Optional[Callable[[float, str], bool]] = None,
) -> AggregatedSeries:
    """
    Aggregate time series from multiple entities into one time-indexed table.

    Args:
        response: Columnar response with one series per entity
        entity_tag: Tag name, or ordered tag names for a composite key
        row_mapper: (row, columns, entity_key) -> {field_name: value}
        point_filter: Optional predicate on finished points, e.g. filter_zero_points
        value_filter: Optional (value, field_name) predicate; failing fields are
            dropped and a row where every field fails is skipped

    Returns:
        AggregatedSeries(data sorted ascending by time, deduplicated entity keys)
    """
    buckets: Dict[Any, Dict[str, float]] = {}
    entities: Dict[str, None] = {}

    for series in iter_series(response):
        entity_key = resolve_entity_key(series.tags, entity_tag)
        if entity_key is None:
            continue
        entities.setdefault(entity_key, None)

        for row in iter_rows(series):
            time = row.raw("time")
            if time is None:
                logger.debug(f"Skipping row without time for entity {entity_key!r}")
                continue

            mapped = row_mapper(row, series.columns, entity_key)
            if value_filter:
                mapped = {k: v for k, v in mapped.items() if value_filter(v, k)}
                if not mapped:
                    continue

            buckets.setdefault(time, {}).update(mapped)

    data = [
        TimeSeriesPoint(time=time, values=values)
        for time, values in sorted(buckets.items(), key=lambda item: time_sort_key(item[0]))
    ]
    if point_filter:
        data = [point for point in data if point_filter(point)]

    return AggregatedSeries(data=data, entities=list(entities))


def filter_zero_points(point: TimeSeriesPoint) -> bool:
    """Keep points where at least one numeric value is above zero."""
    return any(
        isinstance(v, (int, float)) and not isinstance(v, bool) and v > 0
        for v in point.values.values()
    )
