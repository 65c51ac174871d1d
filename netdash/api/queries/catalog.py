"""
Canned dashboard queries.

One function per statement the dashboard issues. Names, tag values and
windows are validated/escaped through builder.py; field selections follow
the counter/rate rules in rates.py (LAST - FIRST for totals, MEAN of rate
fields per entity for trends, derivative where no rate field exists).
"""

from typing import Optional

from .builder import (
    Subquery,
    aggregate_field,
    build_select,
    counter_delta_field,
    derivative_field,
    quote_identifier,
    tag_equals,
    time_filter,
)
from .constants import CURRENT_DATA_WINDOW, SIGNAL_INVALID_PLACEHOLDER, TRAFFIC_TOTAL_RANGE
from .rates import bandwidth_fields_for
from .safety import ValidationError

# GROUP BY for VAP queries; vap_key() joins the same three tags
VAP_TAGS = ("device_name", "radio", "bssid")


def signal_filter(placeholder: float = SIGNAL_INVALID_PLACEHOLDER) -> str:
    """WHERE predicate excluding invalid-signal samples (placeholder and above)."""
    if isinstance(placeholder, bool) or not isinstance(placeholder, (int, float)):
        raise ValidationError(f"Invalid signal placeholder: {placeholder!r}", placeholder)
    return f"avg_client_signal < {placeholder:g}"


def _guest_filter(guest: Optional[bool]) -> Optional[str]:
    if guest is None:
        return None
    return tag_equals("is_guest", "true" if guest else "false")


def _counter_totals(source: str):
    counter = bandwidth_fields_for(source)["counter"]
    return [counter_delta_field(counter["rx"], "rx"), counter_delta_field(counter["tx"], "tx")]


def _mean_rates(source: str):
    rate = bandwidth_fields_for(source)["rate"]
    return [aggregate_field("mean", rate["rx"], "rx"), aggregate_field("mean", rate["tx"], "tx")]


# ---------------------------------------------------------------------------
# Bandwidth (clients, VLANs, WAN)
# ---------------------------------------------------------------------------

def top_consumers_query(time_range: str, guest: Optional[bool] = None) -> str:
    """Bytes per client over the window; guest=True/False narrows to guests/non-guests."""
    return build_select(
        _counter_totals("clients"),
        "clients",
        where=[time_filter(time_range), _guest_filter(guest)],
        group_by=["mac", "name", "vlan"],
    )


def bandwidth_by_vlan_query(time_range: str) -> str:
    return build_select(
        _counter_totals("clients"),
        "clients",
        where=[time_filter(time_range)],
        group_by=["vlan"],
    )


def client_bandwidth_trend_query(time_range: str, interval: str, guest: Optional[bool] = None) -> str:
    """MEAN of the per-client rate fields per bucket; summed across clients after parsing."""
    return build_select(
        _mean_rates("clients"),
        "clients",
        where=[time_filter(time_range), _guest_filter(guest)],
        group_by=["mac"],
        interval=interval,
    )


def wan_bandwidth_trend_query(time_range: str, interval: str) -> str:
    return build_select(
        _mean_rates("wan"),
        "usg_wan_ports",
        where=[time_filter(time_range)],
        group_by=["ifname"],
        interval=interval,
    )


def multi_wan_history_query(duration: str, interval: str) -> str:
    """Per-interface WAN rates, one series per ifname."""
    rate = bandwidth_fields_for("wan")["rate"]
    return build_select(
        [aggregate_field("mean", rate["rx"], "rx_rate"), aggregate_field("mean", rate["tx"], "tx_rate")],
        "usg_wan_ports",
        where=[time_filter(duration)],
        group_by=["ifname"],
        interval=interval,
        fill=0,
    )


def wan_uplink_history_query(duration: str, interval: str) -> str:
    rate = bandwidth_fields_for("wan")["rate"]
    return build_select(
        [aggregate_field("mean", rate["rx"], "rx_rate"), aggregate_field("mean", rate["tx"], "tx_rate")],
        "usg_wan_ports",
        where=[time_filter(duration), f"{quote_identifier('is_uplink')} = true"],
        interval=interval,
        fill=0,
    )


# ---------------------------------------------------------------------------
# Access points
# ---------------------------------------------------------------------------

def all_ap_clients_history_query(duration: str, interval: str) -> str:
    return build_select(
        [aggregate_field("mean", "num_sta", "num_sta")],
        "uap",
        where=[time_filter(duration)],
        group_by=["name"],
        interval=interval,
        fill="previous",
    )


def all_ap_signal_history_query(
    duration: str,
    interval: str,
    placeholder: float = SIGNAL_INVALID_PLACEHOLDER,
) -> str:
    return build_select(
        [aggregate_field("mean", "avg_client_signal", "avg_signal")],
        "uap_vaps",
        where=[time_filter(duration), signal_filter(placeholder)],
        group_by=["device_name"],
        interval=interval,
        fill="previous",
    )


def all_ap_bandwidth_history_query(duration: str, interval: str) -> str:
    """uap has only counters; per-second rates come from the derivative."""
    return build_select(
        [derivative_field("rx_bytes", "rx_rate"), derivative_field("tx_bytes", "tx_rate")],
        "uap",
        where=[time_filter(duration)],
        group_by=["name"],
        interval=interval,
        fill="none",
    )


def ap_signal_history_query(
    ap_name: str,
    duration: str,
    interval: str,
    placeholder: float = SIGNAL_INVALID_PLACEHOLDER,
) -> str:
    return build_select(
        [aggregate_field("mean", "avg_client_signal", "avg_signal")],
        "uap_vaps",
        where=[time_filter(duration), tag_equals("device_name", ap_name), signal_filter(placeholder)],
        interval=interval,
        fill="previous",
    )


# ---------------------------------------------------------------------------
# SSIDs / VAPs
# ---------------------------------------------------------------------------

VAP_STATE_FIELDS = [
    "LAST(channel) AS channel",
    "LAST(num_sta) AS num_sta",
    "LAST(satisfaction) AS satisfaction",
    "LAST(avg_client_signal) AS avg_client_signal",
    "LAST(ccq) AS ccq",
    "LAST(tx_power) AS tx_power",
]


def vap_state_query(
    essid: Optional[str] = None,
    ap_name: Optional[str] = None,
    window: str = CURRENT_DATA_WINDOW,
) -> str:
    """
    Latest state per VAP, grouped by device_name/radio/bssid plus essid and is_guest.

    Narrow with essid (one SSID across APs) or ap_name (one AP's SSIDs).
    """
    return build_select(
        VAP_STATE_FIELDS,
        "uap_vaps",
        where=[
            time_filter(window),
            tag_equals("essid", essid) if essid is not None else None,
            tag_equals("device_name", ap_name) if ap_name is not None else None,
        ],
        group_by=[*VAP_TAGS, "essid", "is_guest"],
    )


def vap_traffic_query(
    essid: Optional[str] = None,
    ap_name: Optional[str] = None,
    time_range: str = TRAFFIC_TOTAL_RANGE,
) -> str:
    """LAST - FIRST bytes per VAP; feed to build_traffic_map_composite(VAP_TAGS)."""
    counter = bandwidth_fields_for("uap_vaps")["counter"]
    return build_select(
        [counter_delta_field(counter["rx"], "rx_bytes"), counter_delta_field(counter["tx"], "tx_bytes")],
        "uap_vaps",
        where=[
            time_filter(time_range),
            tag_equals("essid", essid) if essid is not None else None,
            tag_equals("device_name", ap_name) if ap_name is not None else None,
        ],
        group_by=list(VAP_TAGS),
    )


def ssid_clients_history_query(essid: str, duration: str, interval: str) -> str:
    return build_select(
        [aggregate_field("sum", "num_sta", "clients")],
        "uap_vaps",
        where=[time_filter(duration), tag_equals("essid", essid)],
        interval=interval,
        fill="previous",
    )


def ssid_bandwidth_history_query(essid: str, duration: str, interval: str) -> str:
    """
    SSID rate trend: MAX counter per VAP per bucket, then the derivative of their SUM.

    A derivative of MAX across all VAPs would follow only the largest counter.
    """
    counter = bandwidth_fields_for("uap_vaps")["counter"]
    per_vap = build_select(
        [aggregate_field("max", counter["rx"], counter["rx"]), aggregate_field("max", counter["tx"], counter["tx"])],
        "uap_vaps",
        where=[time_filter(duration), tag_equals("essid", essid)],
        group_by=["bssid"],
        interval=interval,
    )
    return build_select(
        [
            derivative_field(counter["rx"], "rx_rate", aggregate="sum"),
            derivative_field(counter["tx"], "tx_rate", aggregate="sum"),
        ],
        Subquery(per_vap),
        where=[time_filter(duration)],
        interval=interval,
        fill="none",
    )


def ssid_quality_history_query(
    essid: str,
    duration: str,
    interval: str,
    placeholder: float = SIGNAL_INVALID_PLACEHOLDER,
) -> str:
    return build_select(
        [
            aggregate_field("mean", "avg_client_signal", "avg_signal"),
            aggregate_field("mean", "satisfaction", "satisfaction"),
        ],
        "uap_vaps",
        where=[time_filter(duration), tag_equals("essid", essid), signal_filter(placeholder)],
        interval=interval,
        fill="previous",
    )


def vap_counter_samples_query(duration: str, essid: Optional[str] = None) -> str:
    """Raw counter samples per VAP for local rate math (series_to_frame)."""
    counter = bandwidth_fields_for("uap_vaps")["counter"]
    return build_select(
        [quote_identifier(counter["rx"]), quote_identifier(counter["tx"])],
        "uap_vaps",
        where=[time_filter(duration), tag_equals("essid", essid) if essid is not None else None],
        group_by=list(VAP_TAGS),
    )
