"""
netdash API Schemas - Pydantic Models for telemetry store responses

Columnar response shape returned by the InfluxDB 1.x HTTP query endpoint:
{"results": [{"statement_id": 0, "series": [{"name", "tags", "columns", "values"}]}]}
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator, model_validator

logger = logging.getLogger("netdash.queries")


class Series(BaseModel):
    name: Optional[str] = None
    tags: Dict[str, str] = {}
    columns: List[str] = []
    values: List[List[Any]] = []

    @field_validator("columns", mode="before")
    @classmethod
    def none_columns(cls, v):
        return v or []

    @field_validator("values", mode="before")
    @classmethod
    def none_values(cls, v):
        return [row if row is not None else [] for row in (v or [])]

    @field_validator("tags", mode="before")
    @classmethod
    def stringify_tags(cls, v):
        if not v:
            return {}
        return {str(k): ("" if val is None else str(val)) for k, val in v.items()}

    @model_validator(mode="after")
    def align_rows(self):
        """Pad short rows with None and truncate long rows to the column count."""
        width = len(self.columns)
        aligned = []
        for row in self.values:
            if len(row) != width:
                logger.debug(f"Series {self.name!r}: row has {len(row)} values for {width} columns")
                row = (row + [None] * width)[:width]
            aligned.append(row)
        self.values = aligned
        return self


class StatementResult(BaseModel):
    statement_id: Optional[int] = None
    series: List[Series] = []
    error: Optional[str] = None

    @field_validator("series", mode="before")
    @classmethod
    def none_series(cls, v):
        return v or []


class ColumnarResponse(BaseModel):
    results: List[StatementResult] = []

    @field_validator("results", mode="before")
    @classmethod
    def none_results(cls, v):
        return v or []

    @classmethod
    def parse(cls, payload: Any) -> "ColumnarResponse":
        """Validate a raw payload; an already-validated response passes through."""
        if isinstance(payload, cls):
            return payload
        return cls.model_validate(payload or {})

    def series_for(self, statement: int = 0) -> List[Series]:
        """Series of one statement, empty when the statement is absent."""
        if statement >= len(self.results):
            return []
        return self.results[statement].series
