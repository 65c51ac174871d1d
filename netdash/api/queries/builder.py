"""
InfluxQL statement builder.

Small composable pieces for the SELECT subset the dashboard issues:

    SELECT <fields> FROM <measurement | (subquery)> [WHERE ...] [GROUP BY ...]
    [fill(...)] [ORDER BY time DESC] [LIMIT n]

Every caller-supplied value goes through safety.py before it reaches the
statement: durations and intervals are validated, tag values escaped as
string literals, tag names escaped as quoted identifiers.
"""

from typing import Iterable, NamedTuple, Optional, Sequence, Union

from .safety import (
    ValidationError,
    escape_identifier,
    escape_string_literal,
    validate_identifier_token,
    validate_time_range_token,
)

FILL_MODES = ("none", "null", "previous", "linear")


class Subquery(NamedTuple):
    """Inner SELECT used as a FROM source; build it with build_select."""

    statement: str


def quote_identifier(name: str) -> str:
    """Double-quoted identifier, e.g. rx_bytes-r -> "rx_bytes-r"."""
    return f'"{escape_identifier(name)}"'


def quote_literal(value) -> str:
    """Single-quoted string literal with embedded quotes doubled."""
    return f"'{escape_string_literal(value)}'"


def time_filter(duration: str) -> str:
    """Lookback predicate: time > now() - <duration>."""
    return f"time > now() - {validate_time_range_token(duration)}"


def tag_equals(tag: str, value) -> str:
    """Exact tag match: "tag" = 'value'."""
    return f"{quote_identifier(tag)} = {quote_literal(value)}"


def fill_clause(fill: Union[str, int, float]) -> str:
    """fill(none|null|previous|linear|<number>)."""
    if isinstance(fill, bool):
        raise ValidationError(f"Invalid fill mode: {fill!r}", fill)
    if isinstance(fill, (int, float)):
        return f"fill({fill})"
    if fill in FILL_MODES:
        return f"fill({fill})"
    raise ValidationError(f"Invalid fill mode: {fill!r}", fill)


def group_by_clause(tags: Sequence[str] = (), interval: Optional[str] = None) -> str:
    """GROUP BY [time(<interval>)], "tag", ... or "" when there is nothing to group by."""
    parts = []
    if interval is not None:
        parts.append(f"time({validate_time_range_token(interval)})")
    parts.extend(quote_identifier(tag) for tag in tags)
    if not parts:
        return ""
    return "GROUP BY " + ", ".join(parts)


def build_select(
    fields: Sequence[str],
    measurement: Union[str, Subquery],
    where: Iterable[str] = (),
    group_by: Sequence[str] = (),
    interval: Optional[str] = None,
    fill: Optional[Union[str, int, float]] = None,
    order_desc: bool = False,
    limit: Optional[int] = None,
) -> str:
    """
    Assemble a SELECT statement.

    Args:
        fields: Field expressions built by this module's callers (not user input)
        measurement: Measurement name, validated as a bare identifier, or a Subquery
        where: Predicates joined with AND; build them with time_filter/tag_equals
        group_by: Tag names to group by
        interval: GROUP BY time() bucket width
        fill: Fill mode for empty buckets
        order_desc: Append ORDER BY time DESC
        limit: Append LIMIT n

    Returns:
        Single-line InfluxQL statement

    Raises:
        ValidationError: On an invalid measurement, interval, fill mode or limit
    """
    if not fields:
        raise ValidationError("At least one field is required")
    if isinstance(measurement, Subquery):
        source = f"({measurement.statement})"
    else:
        source = validate_identifier_token(measurement)

    clauses = [f"SELECT {', '.join(fields)}", f"FROM {source}"]

    predicates = [p for p in where if p]
    if predicates:
        clauses.append("WHERE " + " AND ".join(predicates))

    group = group_by_clause(group_by, interval)
    if group:
        clauses.append(group)
    if fill is not None:
        clauses.append(fill_clause(fill))
    if order_desc:
        clauses.append("ORDER BY time DESC")
    if limit is not None:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ValidationError(f"Invalid limit: {limit!r}", limit)
        clauses.append(f"LIMIT {limit}")

    return " ".join(clauses)


def counter_delta_field(field: str, alias: str) -> str:
    """LAST(f) - FIRST(f) AS alias: bytes transferred over the WHERE window."""
    quoted = quote_identifier(field)
    return f"LAST({quoted}) - FIRST({quoted}) AS {quote_identifier(alias)}"


def aggregate_field(function: str, field: str, alias: str) -> str:
    """<function>("field") AS alias, e.g. MEAN("rx_bytes-r") AS rx."""
    validate_identifier_token(function)
    return f"{function.upper()}({quote_identifier(field)}) AS {quote_identifier(alias)}"


def derivative_field(field: str, alias: str, aggregate: str = "max") -> str:
    """
    Per-second rate from a counter: NON_NEGATIVE_DERIVATIVE(MAX("f"), 1s).

    Use aggregate="sum" over a per-entity MAX subquery to rate several
    counters together.
    """
    validate_identifier_token(aggregate)
    inner = f"{aggregate.upper()}({quote_identifier(field)})"
    return f"NON_NEGATIVE_DERIVATIVE({inner}, 1s) AS {quote_identifier(alias)}"
