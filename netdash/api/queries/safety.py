"""
Query safety primitives.

Escaping and token validation applied to every user- or config-supplied
value before it is interpolated into an InfluxQL statement.
"""

import re
from typing import Any

TIME_RANGE_PATTERN = re.compile(r"\d+[mhd]", re.ASCII)
IDENTIFIER_PATTERN = re.compile(r"[a-zA-Z_][a-zA-Z0-9_-]*", re.ASCII)

# Statements that can modify data or schema, matched as whole words
BLOCKED_KEYWORDS = [
    "DROP",
    "DELETE",
    "CREATE",
    "ALTER",
    "GRANT",
    "REVOKE",
    "INSERT",
    "INTO",  # SELECT INTO writes a new measurement
    "KILL",
]

_CROSS_DATABASE_PATTERN = re.compile(r"FROM\s+[\"']?\w+[\"']?\s*\.\.", re.IGNORECASE)


class ValidationError(ValueError):
    """A query token or statement failed validation before dispatch."""

    def __init__(self, message: str, token: Any = None):
        super().__init__(message)
        self.token = token


def escape_string_literal(value: Any) -> str:
    """Escape a value for use inside a single-quoted InfluxQL literal."""
    return str(value).replace("'", "''")


def escape_identifier(value: Any) -> str:
    """Escape a value for use inside a double-quoted InfluxQL identifier."""
    return str(value).replace('"', '""')


def validate_time_range_token(value: Any) -> str:
    """
    Validate a lookback token such as "5m", "24h" or "7d".

    Returns:
        The token unchanged

    Raises:
        ValidationError: token is not an integer followed by m, h or d
    """
    if not isinstance(value, str) or not TIME_RANGE_PATTERN.fullmatch(value):
        raise ValidationError(f"Invalid time range: {value!r}", token=value)
    return value


def validate_identifier_token(value: Any) -> str:
    """
    Validate a bare measurement, field or tag name.

    Returns:
        The token unchanged

    Raises:
        ValidationError: token does not match [a-zA-Z_][a-zA-Z0-9_-]*
    """
    if not isinstance(value, str) or not IDENTIFIER_PATTERN.fullmatch(value):
        raise ValidationError(f"Invalid identifier: {value!r}", token=value)
    return value


def validate_read_only_query(query: Any) -> str:
    """
    Reject anything but plain SELECT/SHOW statements.

    Returns:
        The query unchanged

    Raises:
        ValidationError: with the reason the statement was refused
    """
    if not query or not isinstance(query, str):
        raise ValidationError("Query must be a non-empty string", token=query)

    normalized = " ".join(query.split()).upper()
    if not (normalized.startswith("SELECT ") or normalized.startswith("SHOW ")):
        raise ValidationError("Only SELECT and SHOW queries are allowed", token=query)

    for keyword in BLOCKED_KEYWORDS:
        if re.search(rf"\b{keyword}\b", query, re.IGNORECASE):
            raise ValidationError(f"Forbidden keyword: {keyword}", token=query)

    if _CROSS_DATABASE_PATTERN.search(query):
        raise ValidationError("Cross-database queries are not allowed", token=query)

    return query
