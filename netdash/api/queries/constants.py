"""
Query constants and field mappings.

Centralized UnPoller measurement/field naming so query builders and
parsers agree on which column is a counter, which is a rate, and which
signal field carries dBm.
"""

COMPOSITE_KEY_DELIMITER = "|"
COMPOSITE_KEY_ESCAPE = "\\"
UNKNOWN_ENTITY = "unknown"

# Default lookback for "total transferred" (LAST - FIRST) queries
TRAFFIC_TOTAL_RANGE = "24h"
# Window for "current state" queries: WHERE time > now() - 5m
CURRENT_DATA_WINDOW = "5m"

# UniFi reports -1 dBm when a VAP has no connected clients; 0 is equally bogus
SIGNAL_INVALID_PLACEHOLDER = -1

# Bucket width per lookback window, chosen for chart readability
RANGE_INTERVALS = {
    "1h": "2m",
    "3h": "5m",
    "6h": "10m",
    "12h": "15m",
    "24h": "30m",
    "7d": "2h",
    "30d": "6h",
}
DEFAULT_INTERVAL = "5m"

# Counter fields are cumulative since boot, rate fields are bytes/sec at sample time.
# UnPoller is inconsistent: some tables hyphenate the rate field, which then needs quoting.
BANDWIDTH_FIELDS = {
    "clients": {
        "table": "clients",
        "counter": {"rx": "rx_bytes", "tx": "tx_bytes"},
        "rate": {"rx": "rx_bytes_r", "tx": "tx_bytes_r"},
    },
    "wan": {
        "table": "usg_wan_ports",
        "counter": {"rx": "rx_bytes", "tx": "tx_bytes"},
        "rate": {"rx": "rx_bytes-r", "tx": "tx_bytes-r"},
    },
    "switch_ports": {
        "table": "usw_ports",
        "counter": {"rx": "rx_bytes", "tx": "tx_bytes"},
        "rate": {"rx": "rx_bytes-r", "tx": "tx_bytes-r"},
    },
    "uap_vaps": {
        "table": "uap_vaps",
        "counter": {"rx": "rx_bytes", "tx": "tx_bytes"},
        "rate": None,  # derive from counters with non_negative_derivative
    },
}

# Which source column holds dBm and which holds percent, per table.
# UniFi calls the dBm value "signal" and the 0-100 quality "rssi" on clients.
SIGNAL_FIELD_MAP = {
    "clients": {"dbm": "signal", "percent": "rssi"},
    "uap_vaps": {"dbm": "avg_client_signal", "percent": None},
}
