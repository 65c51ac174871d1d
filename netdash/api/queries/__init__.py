"""
Query Modules

InfluxQL querying utilities split by concern:
- safety.py: Escaping, token validation and the read-only statement guard
- builder.py: SELECT statement assembly
- catalog.py: Canned dashboard queries
- reader.py: Typed column access and response parsers
- timeseries.py: Multi-entity time-series aggregation
- rates.py: Counter deltas, rate fields and traffic maps
"""

# Safety
from .safety import (
    ValidationError,
    escape_identifier,
    escape_string_literal,
    validate_identifier_token,
    validate_read_only_query,
    validate_time_range_token,
)

# Statement building
from .builder import build_select, tag_equals, time_filter

# Response reading
from .reader import (
    ColumnValueReader,
    iter_series,
    parse_group_by_results,
    parse_grouped_results,
    parse_results,
    parse_series_to_objects,
    series_to_frame,
)

# Time series
from .timeseries import (
    AggregatedSeries,
    TimeSeriesPoint,
    aggregate_multi_entity_timeseries,
    composite_key,
    filter_zero_points,
)

# Counters and rates
from .rates import (
    BandwidthPoint,
    BandwidthTotal,
    TrafficTotals,
    aggregate_bandwidth_by_time,
    average_rate,
    build_traffic_map,
    build_traffic_map_composite,
    counter_delta,
    counter_deltas_from_frame,
    current_rate,
    interval_for_range,
    non_negative_derivative,
    parse_bandwidth_totals,
    parse_bandwidth_value,
)

# Constants
from .constants import BANDWIDTH_FIELDS, RANGE_INTERVALS

__all__ = [
    # Safety
    'ValidationError',
    'escape_identifier',
    'escape_string_literal',
    'validate_identifier_token',
    'validate_read_only_query',
    'validate_time_range_token',

    # Statement building
    'build_select',
    'tag_equals',
    'time_filter',

    # Response reading
    'ColumnValueReader',
    'iter_series',
    'parse_group_by_results',
    'parse_grouped_results',
    'parse_results',
    'parse_series_to_objects',
    'series_to_frame',

    # Time series
    'AggregatedSeries',
    'TimeSeriesPoint',
    'aggregate_multi_entity_timeseries',
    'composite_key',
    'filter_zero_points',

    # Counters and rates
    'BandwidthPoint',
    'BandwidthTotal',
    'TrafficTotals',
    'aggregate_bandwidth_by_time',
    'average_rate',
    'build_traffic_map',
    'build_traffic_map_composite',
    'counter_delta',
    'counter_deltas_from_frame',
    'current_rate',
    'interval_for_range',
    'non_negative_derivative',
    'parse_bandwidth_totals',
    'parse_bandwidth_value',

    # Constants
    'BANDWIDTH_FIELDS',
    'RANGE_INTERVALS',
]
