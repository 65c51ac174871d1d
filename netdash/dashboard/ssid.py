"""
SSID normalization and aggregation.

Groups per-(AP, radio) VAP records into one summary per network name.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from ..api.queries.constants import SIGNAL_INVALID_PLACEHOLDER
from ..api.queries.rates import TrafficTotals
from ..api.queries.reader import ColumnValueReader
from ..api.queries.timeseries import composite_key
from .sort import SortableColumn, sort_data
from .wifi import WIFI_BANDS, band_for_radio, is_valid_signal

logger = logging.getLogger("netdash.dashboard")


@dataclass(frozen=True)
class VAPRecord:
    """One SSID broadcast on one radio of one access point."""

    ap_name: str
    essid: str
    radio: str = ""
    channel: int = 0
    is_guest: bool = False
    num_sta: int = 0
    rx_bytes: float = 0
    tx_bytes: float = 0
    satisfaction: float = 0
    avg_client_signal: float = 0
    bssid: str = ""


@dataclass(frozen=True)
class NormalizedSSID:
    essid: str
    is_guest: bool
    aps: List[str]
    client_count: int
    rx_bytes: float
    tx_bytes: float
    channels: Dict[str, List[int]]
    satisfaction: Optional[float] = None  # mean over VAPs with clients, None without samples
    avg_signal: Optional[float] = None    # dBm, same rule

    @property
    def total_bytes(self) -> float:
        return self.rx_bytes + self.tx_bytes


@dataclass
class _SSIDAccumulator:
    essid: str
    is_guest: bool
    aps: set = field(default_factory=set)
    client_count: int = 0
    rx_bytes: float = 0
    tx_bytes: float = 0
    channels: Dict[str, set] = field(default_factory=lambda: {band: set() for band in WIFI_BANDS})
    satisfaction: List[float] = field(default_factory=list)
    signal: List[float] = field(default_factory=list)

    def add(self, vap: VAPRecord, signal_placeholder: float):
        self.aps.add(vap.ap_name)
        self.client_count += vap.num_sta
        self.rx_bytes += vap.rx_bytes
        self.tx_bytes += vap.tx_bytes

        if vap.channel:
            self.channels[band_for_radio(vap.radio, vap.channel)].add(vap.channel)

        # Quality samples only count where clients are actually connected
        if vap.num_sta > 0:
            if vap.satisfaction > 0:
                self.satisfaction.append(vap.satisfaction)
            if is_valid_signal(vap.avg_client_signal, signal_placeholder):
                self.signal.append(vap.avg_client_signal)

    def finish(self) -> NormalizedSSID:
        return NormalizedSSID(
            essid=self.essid,
            is_guest=self.is_guest,
            aps=sorted(self.aps),
            client_count=self.client_count,
            rx_bytes=self.rx_bytes,
            tx_bytes=self.tx_bytes,
            channels={band: sorted(chans) for band, chans in self.channels.items()},
            satisfaction=sum(self.satisfaction) / len(self.satisfaction) if self.satisfaction else None,
            avg_signal=sum(self.signal) / len(self.signal) if self.signal else None,
        )


SSID_SORT_COLUMNS = [
    SortableColumn("clients", lambda s: s.client_count),
    SortableColumn("name", lambda s: s.essid),
    SortableColumn("traffic", lambda s: s.total_bytes),
]


def normalize_ssids(
    vaps: Sequence[VAPRecord],
    include_empty: bool = False,
    ap_name: Optional[str] = None,
    sort_by: str = "clients",
    descending: Optional[bool] = None,
    signal_placeholder: float = SIGNAL_INVALID_PLACEHOLDER,
) -> List[NormalizedSSID]:
    """
    Normalize VAPs into aggregated SSIDs.

    Args:
        vaps: VAP records (one per AP radio per SSID)
        include_empty: Also return SSIDs with no connected clients
        ap_name: Only aggregate VAPs of this AP
        sort_by: "clients" (default), "name" or "traffic"
        descending: Sort direction; default descending, except "name" ascending
        signal_placeholder: Invalid-signal sentinel excluded from signal averages

    Returns:
        List of NormalizedSSID
    """
    groups: Dict[str, _SSIDAccumulator] = {}

    for vap in vaps:
        if ap_name and vap.ap_name != ap_name:
            continue
        if not vap.essid:
            continue
        # Zero-client VAPs still contribute APs and channels; include_empty only filters the output
        entry = groups.get(vap.essid)
        if entry is None:
            entry = groups[vap.essid] = _SSIDAccumulator(essid=vap.essid, is_guest=vap.is_guest)
        entry.add(vap, signal_placeholder)

    result = [entry.finish() for entry in groups.values()]
    if not include_empty:
        result = [s for s in result if s.client_count > 0]

    if sort_by not in {c.key for c in SSID_SORT_COLUMNS}:
        logger.debug(f"Unknown SSID sort key {sort_by!r}, sorting by clients")
        sort_by = "clients"
    if descending is None:
        descending = sort_by != "name"

    return sort_data(result, sort_by, "desc" if descending else "asc", SSID_SORT_COLUMNS)


def get_ssid_stats(vaps: Sequence[VAPRecord], essid: str) -> Optional[NormalizedSSID]:
    """Aggregated stats for one SSID, including it even with no clients."""
    for ssid in normalize_ssids(vaps, include_empty=True):
        if ssid.essid == essid:
            return ssid
    return None


def get_ssid_client_count(vaps: Sequence[VAPRecord], essid: str) -> int:
    return sum(v.num_sta for v in vaps if v.essid == essid)


def get_unique_ssids(vaps: Sequence[VAPRecord]) -> List[str]:
    return sorted({v.essid for v in vaps if v.essid})


def filter_vaps_by_ssid(vaps: Sequence[VAPRecord], essid: str) -> List[VAPRecord]:
    return [v for v in vaps if v.essid == essid]


def group_vaps_by_ap(vaps: Sequence[VAPRecord]) -> Dict[str, List[VAPRecord]]:
    groups: Dict[str, List[VAPRecord]] = {}
    for vap in vaps:
        groups.setdefault(vap.ap_name, []).append(vap)
    return groups


def vap_key(ap_name: str, radio: str, bssid: str) -> str:
    """Composite key matching build_traffic_map_composite(["device_name", "radio", "bssid"])."""
    return composite_key([ap_name, radio, bssid])


def vap_from_reader(
    tags: Mapping[str, str],
    row: ColumnValueReader,
    traffic: Optional[Mapping[str, TrafficTotals]] = None,
    essid: str = "",
) -> VAPRecord:
    """
    Build a VAPRecord from a uap_vaps row grouped by device_name/radio/bssid.

    Byte totals come from the LAST - FIRST traffic map, not the raw counters.
    """
    ap_name = tags.get("device_name", "")
    radio = tags.get("radio", "")
    bssid = tags.get("bssid", "")
    totals = (traffic or {}).get(vap_key(ap_name, radio, bssid))

    return VAPRecord(
        ap_name=ap_name,
        essid=tags.get("essid") or row.string("essid") or essid,
        radio=radio,
        bssid=bssid,
        channel=int(row.number("channel")),
        is_guest=tags.get("is_guest") == "true" or row.boolean("is_guest"),
        num_sta=int(row.number("num_sta")),
        rx_bytes=totals.rx if totals else 0,
        tx_bytes=totals.tx if totals else 0,
        satisfaction=row.number("satisfaction"),
        avg_client_signal=row.number("avg_client_signal"),
    )
