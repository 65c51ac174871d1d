"""
Shared sorting for tables and lists.

Tri-state column sorting: none -> asc -> desc -> none. Missing values
always go last, whatever the direction.
"""

import locale
import math
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Callable, List, Mapping, Optional, Sequence

ASC = "asc"
DESC = "desc"


@dataclass(frozen=True)
class SortConfig:
    key: Optional[str] = None
    direction: Optional[str] = None  # "asc", "desc" or None


@dataclass(frozen=True)
class SortableColumn:
    key: str
    sort_value: Optional[Callable[[Any], Any]] = None


def next_sort_state(current: SortConfig, new_key: str) -> SortConfig:
    """
    Next state after the user selects `new_key`.

    A different column starts ascending; the same column cycles
    asc -> desc -> unsorted.
    """
    if current.key != new_key:
        return SortConfig(new_key, ASC)
    if current.direction == ASC:
        return SortConfig(new_key, DESC)
    if current.direction == DESC:
        return SortConfig(None, None)
    return SortConfig(new_key, ASC)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def _lookup(item: Any, key: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(key)
    return getattr(item, key, None)


def compare_values(a: Any, b: Any) -> int:
    """Numbers by subtraction, everything else as case-insensitive locale strings."""
    if _is_number(a) and _is_number(b):
        diff = a - b
        return (diff > 0) - (diff < 0)
    return locale.strcoll(str(a).lower(), str(b).lower())


def sort_data(
    data: Sequence[Any],
    key: Optional[str],
    direction: Optional[str],
    columns: Sequence[SortableColumn] = (),
) -> List[Any]:
    """
    Sorted copy of `data`; the input is never mutated.

    Args:
        data: Items (mappings or objects)
        key: Column key, None for input order
        direction: "asc", "desc" or None for input order
        columns: Column definitions; a column's sort_value overrides field lookup

    Returns:
        New list, stable for equal values, missing values last
    """
    items = list(data)
    if not key or direction not in (ASC, DESC):
        return items

    column = next((c for c in columns if c.key == key), None)
    if column is not None and column.sort_value is not None:
        extract = column.sort_value
    else:
        extract = lambda item: _lookup(item, key)  # noqa: E731

    present = []
    missing = []
    for item in items:
        value = extract(item)
        if _is_missing(value):
            missing.append(item)
        else:
            present.append((value, item))

    present.sort(key=cmp_to_key(lambda x, y: compare_values(x[0], y[0])), reverse=direction == DESC)
    return [item for _, item in present] + missing


class SortableTable:
    """Sort state for one table view."""

    def __init__(
        self,
        columns: Sequence[SortableColumn] = (),
        default_key: Optional[str] = None,
        default_direction: str = ASC,
    ):
        self.columns = list(columns)
        self.config = SortConfig(default_key, default_direction if default_key else None)

    def handle_sort(self, key: str) -> SortConfig:
        self.config = next_sort_state(self.config, key)
        return self.config

    def sorted(self, data: Sequence[Any]) -> List[Any]:
        return sort_data(data, self.config.key, self.config.direction, self.columns)
