"""
Counter and rate reconciliation for byte telemetry.

UnPoller stores bandwidth in two forms:
1. Cumulative counters (rx_bytes, tx_bytes) - total bytes since device boot
2. Pre-calculated rates (rx_bytes_r, "rx_bytes-r") - bytes/sec at collection time

Rules enforced here:
- Never sum counters across time: bytes in window = LAST - FIRST, clamped at 0
  so a device reboot (counter reset) reads as 0 instead of a negative total
- Never sum rate fields across time: current rate = last sample, average
  rate = mean per entity, then summed across entities
- Sources without rate fields (uap_vaps) get a rate trend from the
  non-negative derivative of each counter over a 1s base, summed across
  entities per timestamp
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence

import numpy as np
import pandas as pd

from .constants import (
    BANDWIDTH_FIELDS,
    DEFAULT_INTERVAL,
    RANGE_INTERVALS,
)
from .reader import ColumnValueReader, finite_number_or_none, iter_rows, iter_series
from .safety import escape_identifier
from .timeseries import composite_key, time_sort_key

logger = logging.getLogger("netdash.queries")


class BandwidthPoint(NamedTuple):
    time: Any
    rx: float
    tx: float


class TrafficTotals(NamedTuple):
    rx: float
    tx: float


@dataclass(frozen=True)
class BandwidthTotal:
    """Bytes transferred by one entity (client, VLAN...) over a window."""

    id: str
    name: str
    rx: float
    tx: float
    total: float
    meta: Optional[Dict[str, str]] = None


def parse_bandwidth_value(value: Any) -> float:
    """Finite number or 0. Negatives pass through for delta math; callers clamp."""
    parsed = finite_number_or_none(value)
    return 0 if parsed is None else parsed


def counter_delta(first: Any, last: Any) -> float:
    """Bytes transferred between two counter samples; resets clamp to 0."""
    return max(0, parse_bandwidth_value(last) - parse_bandwidth_value(first))


def interval_for_range(time_range: str, overrides: Optional[Mapping[str, str]] = None) -> str:
    """
    GROUP BY time() bucket width for a lookback window.

    Shorter windows get finer buckets; unknown ranges get DEFAULT_INTERVAL.
    """
    if overrides and time_range in overrides:
        return overrides[time_range]
    return RANGE_INTERVALS.get(time_range, DEFAULT_INTERVAL)


def bandwidth_fields_for(source: str) -> Dict[str, Any]:
    """Counter/rate field names for a measurement family (clients, wan, ...)."""
    try:
        return BANDWIDTH_FIELDS[source]
    except KeyError:
        raise ValueError(f"Unknown bandwidth source: {source}") from None


def rate_field_expr(source: str, direction: str) -> Optional[str]:
    """Quoted rate field for use in SELECT, or None when the source has no rate fields."""
    rate = bandwidth_fields_for(source)["rate"]
    if rate is None:
        return None
    return f'"{escape_identifier(rate[direction])}"'


def _clamped(row: ColumnValueReader, field: str) -> float:
    return max(0, row.number(field))


def parse_bandwidth_totals(
    response: Any,
    id_tag: str,
    name_tag: Optional[str] = None,
    rx_field: str = "rx",
    tx_field: str = "tx",
    meta_tags: Sequence[str] = (),
    include_zero: bool = False,
) -> List[BandwidthTotal]:
    """
    Bandwidth totals from a grouped LAST() - FIRST() query.

    Args:
        response: Columnar response, one series per entity, one row each
        id_tag: Tag used as the entity id
        name_tag: Tag used as display name (falls back to id_tag, then "Unknown")
        rx_field, tx_field: Delta columns
        meta_tags: Tags copied into BandwidthTotal.meta when present
        include_zero: Keep entities with no traffic

    Returns:
        Totals sorted by total bytes, descending
    """
    totals = []
    for series in iter_series(response):
        row = next(iter_rows(series), None)
        if row is None:
            continue

        rx = _clamped(row, rx_field)
        tx = _clamped(row, tx_field)
        tags = series.tags
        meta = {tag: tags[tag] for tag in meta_tags if tags.get(tag)}

        totals.append(BandwidthTotal(
            id=tags.get(id_tag, ""),
            name=tags.get(name_tag or id_tag) or tags.get(id_tag) or "Unknown",
            rx=rx,
            tx=tx,
            total=rx + tx,
            meta=meta or None,
        ))

    if not include_zero:
        totals = [t for t in totals if t.total > 0]
    totals.sort(key=lambda t: t.total, reverse=True)
    return totals


def aggregate_bandwidth_by_time(
    response: Any,
    rx_field: str = "rx",
    tx_field: str = "tx",
) -> List[BandwidthPoint]:
    """
    Sum per-entity MEAN(rate) buckets into one network-wide rate per timestamp.

    Used with GROUP BY time(), <entity>; empty (all-zero) samples are skipped.
    """
    buckets: Dict[Any, List[float]] = {}
    for series in iter_series(response):
        for row in iter_rows(series):
            time = row.raw("time")
            if not time:
                continue
            rx = row.number(rx_field)
            tx = row.number(tx_field)
            if rx == 0 and tx == 0:
                continue
            bucket = buckets.setdefault(time, [0, 0])
            bucket[0] += rx
            bucket[1] += tx

    return [
        BandwidthPoint(time=time, rx=rx, tx=tx)
        for time, (rx, tx) in sorted(buckets.items(), key=lambda item: time_sort_key(item[0]))
    ]


def build_traffic_map(
    response: Any,
    key_tag: str,
    rx_field: str = "rx_bytes",
    tx_field: str = "tx_bytes",
) -> Dict[str, TrafficTotals]:
    """
    Lookup of LAST - FIRST traffic by tag value (e.g. client MAC).

    Series without the key tag are skipped; negative deltas clamp to 0.
    """
    traffic = {}
    for series in iter_series(response):
        key = series.tags.get(key_tag, "")
        if not key:
            continue
        row = ColumnValueReader(series.columns, series.values[0] if series.values else [])
        traffic[key] = TrafficTotals(rx=_clamped(row, rx_field), tx=_clamped(row, tx_field))
    return traffic


def build_traffic_map_composite(
    response: Any,
    key_tags: Sequence[str],
    rx_field: str = "rx_bytes",
    tx_field: str = "tx_bytes",
) -> Dict[str, TrafficTotals]:
    """
    Like build_traffic_map, keyed by several tags joined via composite_key().

    e.g. ["device_name", "radio", "bssid"] -> "Office|na|aa:bb:cc:dd:ee:ff"
    """
    traffic = {}
    for series in iter_series(response):
        parts = [series.tags.get(tag, "") for tag in key_tags]
        if all(part == "" for part in parts):
            continue
        row = ColumnValueReader(series.columns, series.values[0] if series.values else [])
        traffic[composite_key(parts)] = TrafficTotals(
            rx=_clamped(row, rx_field), tx=_clamped(row, tx_field)
        )
    return traffic


def _with_timestamps(frame: pd.DataFrame) -> pd.DataFrame:
    """Copy of frame with a parsed UTC `ts` column, unparseable times dropped."""
    frame = frame.copy()
    if pd.api.types.is_numeric_dtype(frame["time"]):
        frame["ts"] = pd.to_datetime(frame["time"], unit="s", utc=True, errors="coerce")
    else:
        frame["ts"] = pd.to_datetime(frame["time"], utc=True, errors="coerce")
    return frame.dropna(subset=["ts"]).sort_values(["entity", "ts"], kind="stable")


def counter_deltas_from_frame(frame: pd.DataFrame, field: str) -> Dict[str, float]:
    """
    Bytes transferred per entity from raw counter samples.

    Args:
        frame: Long DataFrame with columns entity, time, <field> (see series_to_frame)
        field: Counter column

    Returns:
        {entity: max(0, last - first)}
    """
    if frame.empty:
        return {}

    frame = _with_timestamps(frame).dropna(subset=[field])
    deltas = {}
    for entity, group in frame.groupby("entity", sort=False):
        values = group[field].to_numpy()
        deltas[entity] = float(max(0.0, values[-1] - values[0]))
    return deltas


def current_rate(frame: pd.DataFrame, field: str) -> float:
    """Last rate sample of each entity, summed across entities."""
    if frame.empty:
        return 0.0
    frame = _with_timestamps(frame).dropna(subset=[field])
    if frame.empty:
        return 0.0
    return float(frame.groupby("entity", sort=False)[field].last().sum())


def average_rate(frame: pd.DataFrame, field: str) -> float:
    """Mean rate per entity, then summed across entities."""
    if frame.empty:
        return 0.0
    means = frame.dropna(subset=[field]).groupby("entity", sort=False)[field].mean()
    return float(means.sum()) if not means.empty else 0.0


def non_negative_derivative(frame: pd.DataFrame, field: str, unit_seconds: float = 1) -> pd.DataFrame:
    """
    Rate trend from counters: per-entity derivative per `unit_seconds`, summed per timestamp.

    Each entity is differentiated against its own previous sample, so an entity
    missing a sample never shows up as a jump in a cross-entity sum. Negative
    steps (counter resets) are dropped, never emitted as negative rates.

    Returns:
        DataFrame with columns: time (UTC timestamps), value
    """
    empty = pd.DataFrame(columns=["time", "value"])
    if frame.empty:
        return empty

    frame = _with_timestamps(frame).dropna(subset=[field])
    entities = frame["entity"]
    elapsed = frame["ts"].groupby(entities, sort=False).diff().dt.total_seconds().to_numpy(dtype=float)
    counters = pd.to_numeric(frame[field], errors="coerce")
    deltas = counters.groupby(entities, sort=False).diff().to_numpy(dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        rates = deltas / elapsed * unit_seconds

    keep = np.isfinite(rates) & (rates >= 0)
    logger.debug(f"non_negative_derivative({field}): kept {int(keep.sum())} steps")
    if not keep.any():
        return empty

    steps = frame.loc[keep, ["ts"]].assign(value=rates[keep])
    summed = steps.groupby("ts")["value"].sum().sort_index()
    return pd.DataFrame({"time": summed.index, "value": summed.to_numpy()})
