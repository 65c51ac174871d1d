"""
WiFi band, channel and signal helpers.
"""

import logging
from typing import Optional, Tuple

from ..api.queries.constants import SIGNAL_FIELD_MAP, SIGNAL_INVALID_PLACEHOLDER
from ..api.queries.reader import ColumnValueReader
from ..core.config import SatisfactionThresholds, SignalThresholds

logger = logging.getLogger("netdash.dashboard")

BAND_2G = "2.4GHz"
BAND_5G = "5GHz"
BAND_6G = "6GHz"
WIFI_BANDS = (BAND_2G, BAND_5G, BAND_6G)

# UnPoller radio tag values
RADIO_TAG_BANDS = {
    "ng": BAND_2G,
    "na": BAND_5G,
    "6e": BAND_6G,
}


def wifi_band(channel: int) -> str:
    """Band for a channel number (2.4GHz 1-14, 5GHz 36-177, above that 6GHz)."""
    if 1 <= channel <= 14:
        return BAND_2G
    if 36 <= channel <= 177:
        return BAND_5G
    if channel > 177:
        return BAND_6G
    return BAND_5G


def band_from_radio_tag(radio: Optional[str]) -> Optional[str]:
    """Band for an UnPoller radio tag, None when the tag is unknown."""
    return RADIO_TAG_BANDS.get((radio or "").lower())


def band_for_radio(radio: Optional[str], channel: Optional[int] = None) -> str:
    """Band from the radio tag, falling back to the channel number, then 5GHz."""
    band = band_from_radio_tag(radio)
    if band:
        return band
    if channel:
        return wifi_band(channel)
    return BAND_5G


def is_valid_signal(signal: float, placeholder: float = SIGNAL_INVALID_PLACEHOLDER) -> bool:
    """False for the "no client signal" sentinels (0 and the placeholder) and anything above."""
    return signal < placeholder and signal != 0


def client_signal_fields(row: ColumnValueReader, table: str = "clients") -> Tuple[float, float]:
    """
    Read (dBm, percent) signal values through the per-table field map.

    A positive dBm reading means the source swapped its fields again; it is
    logged and returned as-is rather than guessed at.
    """
    mapping = SIGNAL_FIELD_MAP[table]
    dbm = row.number(mapping["dbm"])
    percent = row.number(mapping["percent"]) if mapping["percent"] else 0

    if dbm > 0:
        logger.warning(
            f"{table}.{mapping['dbm']} reported {dbm}, expected dBm (<= 0); "
            f"signal field mapping may have changed"
        )
    return dbm, percent


def get_signal_quality(
    dbm: float,
    thresholds=None,
    placeholder: float = SIGNAL_INVALID_PLACEHOLDER,
) -> str:
    """
    Quality label for a client signal.

    Args:
        dbm: Signal in dBm
        thresholds: SignalThresholds (defaults apply when omitted)
        placeholder: Invalid-signal sentinel, see is_valid_signal

    Returns:
        'excellent', 'good', 'fair', 'poor' or 'no_data' for invalid readings
    """
    if not is_valid_signal(dbm, placeholder):
        return "no_data"
    if thresholds is None:
        thresholds = SignalThresholds()
    if dbm >= thresholds.excellent:
        return "excellent"
    if dbm >= thresholds.good:
        return "good"
    if dbm >= thresholds.fair:
        return "fair"
    return "poor"


def get_satisfaction_status(satisfaction: Optional[float], thresholds=None) -> str:
    """Status label for a 0-100 experience score; 'no_data' when missing or zero."""
    if not satisfaction:
        return "no_data"
    if thresholds is None:
        thresholds = SatisfactionThresholds()
    if satisfaction >= thresholds.excellent:
        return "excellent"
    if satisfaction >= thresholds.good:
        return "good"
    if satisfaction >= thresholds.warning:
        return "warning"
    return "poor"
