"""
Dashboard Controller

Composes query building, dispatch and parsing for every dashboard view.
The transport is injected as query_fn(query) -> columnar response dict;
whatever it raises propagates unchanged. All methods return plain Python
data structures that are easy to debug and test.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from ..api.queries import catalog
from ..api.queries.rates import (
    BandwidthPoint,
    BandwidthTotal,
    aggregate_bandwidth_by_time,
    build_traffic_map_composite,
    interval_for_range,
    non_negative_derivative,
    parse_bandwidth_totals,
)
from ..api.queries.reader import parse_grouped_results, series_to_frame
from ..api.queries.safety import validate_read_only_query
from ..api.queries.timeseries import AggregatedSeries, aggregate_multi_entity_timeseries, filter_zero_points
from ..api.schemas import ColumnarResponse
from ..core.config import DashboardConfig
from .ssid import NormalizedSSID, VAPRecord, normalize_ssids, vap_from_reader
from .wifi import is_valid_signal

logger = logging.getLogger("netdash.dashboard")

QueryFn = Callable[[str], Any]


class DashboardController:
    """Dashboard data preparation over an injected query transport."""

    def __init__(self, query_fn: QueryFn, config: Optional[DashboardConfig] = None):
        self.query_fn = query_fn
        self.config = config or DashboardConfig()

    def _run(self, query: str) -> ColumnarResponse:
        logger.debug(f"Query: {query}")
        response = ColumnarResponse.parse(self.query_fn(query))
        for result in response.results:
            if result.error:
                logger.warning(f"Statement {result.statement_id} returned error: {result.error}")
        return response

    def _interval(self, time_range: str, interval: Optional[str]) -> str:
        return interval or interval_for_range(time_range, self.config.range_intervals)

    def run_query(self, query: str) -> ColumnarResponse:
        """Ad-hoc statement; only read-only SELECT/SHOW is dispatched."""
        return self._run(validate_read_only_query(query))

    # ------------------------------------------------------------------
    # Bandwidth
    # ------------------------------------------------------------------

    def get_top_consumers(
        self,
        time_range: Optional[str] = None,
        guest: Optional[bool] = None,
        limit: Optional[int] = None,
    ) -> List[BandwidthTotal]:
        """Clients ranked by bytes transferred (LAST - FIRST) over the window."""
        time_range = time_range or self.config.traffic_total_range
        if limit is None:
            limit = self.config.top_consumers_limit

        response = self._run(catalog.top_consumers_query(time_range, guest))
        totals = parse_bandwidth_totals(response, id_tag="mac", name_tag="name", meta_tags=["vlan"])
        logger.debug(f"Top consumers ({time_range}): {len(totals)} clients with traffic")
        return totals[:limit]

    def get_bandwidth_by_vlan(self, time_range: Optional[str] = None) -> List[BandwidthTotal]:
        time_range = time_range or self.config.traffic_total_range
        return parse_bandwidth_totals(self._run(catalog.bandwidth_by_vlan_query(time_range)), id_tag="vlan")

    def get_client_bandwidth_trend(self, time_range: str, interval: Optional[str] = None) -> List[BandwidthPoint]:
        query = catalog.client_bandwidth_trend_query(time_range, self._interval(time_range, interval))
        return aggregate_bandwidth_by_time(self._run(query))

    def get_guest_bandwidth_trend(self, time_range: str, interval: Optional[str] = None) -> List[BandwidthPoint]:
        query = catalog.client_bandwidth_trend_query(time_range, self._interval(time_range, interval), guest=True)
        return aggregate_bandwidth_by_time(self._run(query))

    def get_wan_bandwidth_trend(self, time_range: str, interval: Optional[str] = None) -> List[BandwidthPoint]:
        query = catalog.wan_bandwidth_trend_query(time_range, self._interval(time_range, interval))
        return aggregate_bandwidth_by_time(self._run(query))

    def get_multi_wan_history(self, duration: str = "1h", interval: Optional[str] = None) -> AggregatedSeries:
        """Per-interface WAN rates as {ifname}_rx / {ifname}_tx fields."""
        query = catalog.multi_wan_history_query(duration, self._interval(duration, interval))

        def row_mapper(row, columns, ifname):
            return {
                f"{ifname}_rx": row.number("rx_rate"),
                f"{ifname}_tx": row.number("tx_rate"),
            }

        return aggregate_multi_entity_timeseries(
            self._run(query), "ifname", row_mapper, point_filter=filter_zero_points
        )

    # ------------------------------------------------------------------
    # Access points
    # ------------------------------------------------------------------

    def get_all_ap_clients_history(self, duration: str = "3h", interval: Optional[str] = None) -> AggregatedSeries:
        query = catalog.all_ap_clients_history_query(duration, self._interval(duration, interval))
        return aggregate_multi_entity_timeseries(
            self._run(query),
            "name",
            lambda row, columns, ap: {ap: row.number("num_sta")},
            point_filter=filter_zero_points,
        )

    def get_all_ap_signal_history(self, duration: str = "3h", interval: Optional[str] = None) -> AggregatedSeries:
        """Average client signal per AP; invalid-signal samples are dropped per field."""
        placeholder = self.config.signal_invalid_placeholder
        query = catalog.all_ap_signal_history_query(duration, self._interval(duration, interval), placeholder)
        return aggregate_multi_entity_timeseries(
            self._run(query),
            "device_name",
            lambda row, columns, ap: {ap: row.number("avg_signal")},
            value_filter=lambda value, field: is_valid_signal(value, placeholder),
        )

    def get_all_ap_bandwidth_history(self, duration: str = "3h", interval: Optional[str] = None) -> AggregatedSeries:
        query = catalog.all_ap_bandwidth_history_query(duration, self._interval(duration, interval))

        def row_mapper(row, columns, ap):
            return {
                f"{ap}_rx": max(0, row.number("rx_rate")),
                f"{ap}_tx": max(0, row.number("tx_rate")),
            }

        return aggregate_multi_entity_timeseries(
            self._run(query), "name", row_mapper, point_filter=filter_zero_points
        )

    # ------------------------------------------------------------------
    # SSIDs / VAPs
    # ------------------------------------------------------------------

    def _get_vaps(self, essid: Optional[str] = None, ap_name: Optional[str] = None) -> List[VAPRecord]:
        # Current state and traffic are separate statements: LAST() for state,
        # LAST - FIRST over the traffic window for bytes
        state = self._run(catalog.vap_state_query(essid, ap_name, self.config.current_data_window))
        traffic_response = self._run(catalog.vap_traffic_query(essid, ap_name, self.config.traffic_total_range))
        traffic = build_traffic_map_composite(traffic_response, catalog.VAP_TAGS)

        vaps = parse_grouped_results(
            state, lambda tags, row: vap_from_reader(tags, row, traffic, essid=essid or "")
        )
        logger.debug(f"Loaded {len(vaps)} VAPs (essid={essid!r}, ap_name={ap_name!r})")
        return vaps

    def get_ssid_vaps(self, essid: str) -> List[VAPRecord]:
        """Every VAP broadcasting one SSID, with traffic totals."""
        return self._get_vaps(essid=essid)

    def get_ap_vaps(self, ap_name: Optional[str] = None) -> List[VAPRecord]:
        """VAPs of one AP, or of all APs."""
        return self._get_vaps(ap_name=ap_name)

    def get_ssid_summaries(
        self,
        ap_name: Optional[str] = None,
        include_empty: bool = False,
        sort_by: str = "clients",
        descending: Optional[bool] = None,
    ) -> List[NormalizedSSID]:
        return normalize_ssids(
            self.get_ap_vaps(ap_name),
            include_empty=include_empty,
            sort_by=sort_by,
            descending=descending,
            signal_placeholder=self.config.signal_invalid_placeholder,
        )

    def get_vap_rate_trend(self, duration: str = "1h", essid: Optional[str] = None) -> Dict[str, pd.DataFrame]:
        """
        Rate trend for VAPs from raw counters (uap_vaps has no rate fields).

        Returns:
            {"rx": DataFrame(time, value), "tx": DataFrame(time, value)} in bytes/sec
        """
        response = self._run(catalog.vap_counter_samples_query(duration, essid))
        frame = series_to_frame(response, "bssid", ["rx_bytes", "tx_bytes"])
        return {
            "rx": non_negative_derivative(frame, "rx_bytes"),
            "tx": non_negative_derivative(frame, "tx_bytes"),
        }
