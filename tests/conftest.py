"""Pytest configuration and shared fixtures"""
from unittest.mock import Mock

import pytest

from netdash.core.config import DashboardConfig
from netdash.dashboard.ssid import VAPRecord


def make_response(*series, error=None):
    """Wrap series dicts in a single-statement columnar response."""
    result = {"statement_id": 0, "series": list(series)}
    if error:
        result["error"] = error
    return {"results": [result]}


@pytest.fixture
def empty_response():
    """Response with no series (nothing matched the WHERE clause)"""
    return {"results": [{"statement_id": 0}]}


@pytest.fixture
def ap_clients_response():
    """Client counts for two APs, rows deliberately out of time order"""
    return make_response(
        {
            "name": "uap",
            "tags": {"name": "Office"},
            "columns": ["time", "num_sta"],
            "values": [
                ["2024-01-01T00:10:00Z", 4],
                ["2024-01-01T00:00:00Z", 3],
                ["2024-01-01T00:05:00Z", 0],
            ],
        },
        {
            "name": "uap",
            "tags": {"name": "Living Room"},
            "columns": ["time", "num_sta"],
            "values": [
                ["2024-01-01T00:05:00Z", 0],
                ["2024-01-01T00:00:00Z", 7],
                ["2024-01-01T00:10:00Z", 9],
            ],
        },
    )


@pytest.fixture
def top_consumers_response():
    """LAST - FIRST totals per client, including a counter reset and an idle client"""
    return make_response(
        {
            "name": "clients",
            "tags": {"mac": "aa:aa:aa:aa:aa:01", "name": "laptop", "vlan": "10"},
            "columns": ["time", "rx", "tx"],
            "values": [["1970-01-01T00:00:00Z", 5000, 1000]],
        },
        {
            "name": "clients",
            "tags": {"mac": "aa:aa:aa:aa:aa:02", "name": "", "vlan": "20"},
            "columns": ["time", "rx", "tx"],
            "values": [["1970-01-01T00:00:00Z", 20000, 500]],
        },
        {
            "name": "clients",
            "tags": {"mac": "aa:aa:aa:aa:aa:03", "name": "rebooted-tv", "vlan": "10"},
            "columns": ["time", "rx", "tx"],
            "values": [["1970-01-01T00:00:00Z", -60, 300]],
        },
        {
            "name": "clients",
            "tags": {"mac": "aa:aa:aa:aa:aa:04", "name": "idle", "vlan": ""},
            "columns": ["time", "rx", "tx"],
            "values": [["1970-01-01T00:00:00Z", 0, 0]],
        },
    )


@pytest.fixture
def vap_state_response():
    """Current VAP state: HomeNet on two APs plus an empty guest SSID"""
    return make_response(
        {
            "name": "uap_vaps",
            "tags": {
                "device_name": "Living Room", "radio": "na", "bssid": "b1",
                "essid": "HomeNet", "is_guest": "false",
            },
            "columns": ["time", "channel", "num_sta", "satisfaction", "avg_client_signal", "ccq", "tx_power"],
            "values": [["2024-01-01T00:00:00Z", 36, 30, 90, -55, 900, 20]],
        },
        {
            "name": "uap_vaps",
            "tags": {
                "device_name": "Office", "radio": "ng", "bssid": "b2",
                "essid": "HomeNet", "is_guest": "false",
            },
            "columns": ["time", "channel", "num_sta", "satisfaction", "avg_client_signal", "ccq", "tx_power"],
            "values": [["2024-01-01T00:00:00Z", 6, 10, 80, -65, 800, 17]],
        },
        {
            "name": "uap_vaps",
            "tags": {
                "device_name": "Office", "radio": "na", "bssid": "b3",
                "essid": "Guests", "is_guest": "true",
            },
            "columns": ["time", "channel", "num_sta", "satisfaction", "avg_client_signal", "ccq", "tx_power"],
            "values": [["2024-01-01T00:00:00Z", 44, 0, 0, -1, 0, 17]],
        },
    )


@pytest.fixture
def vap_traffic_response():
    """LAST - FIRST bytes per VAP; the Office HomeNet counter reset mid-window"""
    return make_response(
        {
            "name": "uap_vaps",
            "tags": {"device_name": "Living Room", "radio": "na", "bssid": "b1"},
            "columns": ["time", "rx_bytes", "tx_bytes"],
            "values": [["1970-01-01T00:00:00Z", 1000, 4000]],
        },
        {
            "name": "uap_vaps",
            "tags": {"device_name": "Office", "radio": "ng", "bssid": "b2"},
            "columns": ["time", "rx_bytes", "tx_bytes"],
            "values": [["1970-01-01T00:00:00Z", -500, 200]],
        },
    )


@pytest.fixture
def homenet_vaps():
    """Two HomeNet VAPs on different APs and bands"""
    return [
        VAPRecord(
            ap_name="Living Room", essid="HomeNet", radio="na", channel=36,
            num_sta=30, rx_bytes=1000, tx_bytes=4000, satisfaction=90, avg_client_signal=-55,
        ),
        VAPRecord(
            ap_name="Office", essid="HomeNet", radio="ng", channel=6,
            num_sta=10, rx_bytes=0, tx_bytes=200, satisfaction=80, avg_client_signal=-65,
        ),
    ]


@pytest.fixture
def config():
    """Default dashboard configuration"""
    return DashboardConfig()


@pytest.fixture
def query_fn():
    """Mock transport returning an empty response unless a test overrides it"""
    return Mock(return_value={"results": [{"statement_id": 0}]})


@pytest.fixture
def response():
    """Factory: response(*series) -> single-statement columnar response"""
    return make_response
