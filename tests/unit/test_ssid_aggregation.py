"""Unit tests for SSID normalization and WiFi helpers"""
import logging

import pytest

from netdash.api.queries.reader import ColumnValueReader, parse_grouped_results
from netdash.api.queries.rates import TrafficTotals, build_traffic_map_composite
from netdash.dashboard.ssid import (
    VAPRecord,
    filter_vaps_by_ssid,
    get_ssid_client_count,
    get_ssid_stats,
    get_unique_ssids,
    group_vaps_by_ap,
    normalize_ssids,
    vap_from_reader,
    vap_key,
)
from netdash.dashboard.wifi import (
    band_for_radio,
    client_signal_fields,
    get_satisfaction_status,
    get_signal_quality,
    is_valid_signal,
    wifi_band,
)


class TestNormalizeSSIDs:
    """Test grouping VAP records into one summary per network name"""

    def test_homenet_across_two_aps(self, homenet_vaps):
        """Two APs, two bands, one SSID"""
        ssids = normalize_ssids(homenet_vaps)

        assert len(ssids) == 1
        homenet = ssids[0]
        assert homenet.essid == "HomeNet"
        assert homenet.client_count == 40
        assert homenet.aps == ["Living Room", "Office"]
        assert homenet.channels["2.4GHz"] == [6]
        assert homenet.channels["5GHz"] == [36]
        assert homenet.channels["6GHz"] == []

    def test_traffic_and_quality_aggregated(self, homenet_vaps):
        homenet = normalize_ssids(homenet_vaps)[0]
        assert homenet.rx_bytes == 1000
        assert homenet.tx_bytes == 4200
        assert homenet.total_bytes == 5200
        assert homenet.satisfaction == 85
        assert homenet.avg_signal == -60

    def test_quality_ignores_vaps_without_clients(self):
        vaps = [
            VAPRecord(ap_name="A", essid="Net", num_sta=5, satisfaction=90, avg_client_signal=-50),
            VAPRecord(ap_name="B", essid="Net", num_sta=0, satisfaction=10, avg_client_signal=-90),
        ]
        ssid = normalize_ssids(vaps)[0]
        assert ssid.satisfaction == 90
        assert ssid.avg_signal == -50

    def test_invalid_signal_sentinels_excluded(self):
        vaps = [
            VAPRecord(ap_name="A", essid="Net", num_sta=5, avg_client_signal=-1),
            VAPRecord(ap_name="B", essid="Net", num_sta=5, avg_client_signal=0),
        ]
        ssid = normalize_ssids(vaps)[0]
        assert ssid.avg_signal is None
        assert ssid.satisfaction is None

    def test_empty_ssids_excluded_by_default(self):
        vaps = [
            VAPRecord(ap_name="A", essid="Busy", num_sta=3),
            VAPRecord(ap_name="A", essid="Idle", num_sta=0),
        ]
        assert [s.essid for s in normalize_ssids(vaps)] == ["Busy"]
        assert {s.essid for s in normalize_ssids(vaps, include_empty=True)} == {"Busy", "Idle"}

    def test_blank_essid_skipped(self):
        vaps = [VAPRecord(ap_name="A", essid="", num_sta=3)]
        assert normalize_ssids(vaps, include_empty=True) == []

    def test_ap_filter(self, homenet_vaps):
        ssid = normalize_ssids(homenet_vaps, ap_name="Office")[0]
        assert ssid.aps == ["Office"]
        assert ssid.client_count == 10

    def test_radio_tag_wins_over_channel(self):
        """A 6 GHz radio reporting a low channel number is still 6 GHz"""
        vaps = [VAPRecord(ap_name="A", essid="Net", radio="6e", channel=5, num_sta=1)]
        assert normalize_ssids(vaps)[0].channels["6GHz"] == [5]

    def test_zero_channel_not_recorded(self):
        vaps = [VAPRecord(ap_name="A", essid="Net", radio="na", channel=0, num_sta=1)]
        channels = normalize_ssids(vaps)[0].channels
        assert all(chans == [] for chans in channels.values())


class TestSSIDSorting:
    """Test the sort options of normalize_ssids"""

    @pytest.fixture
    def vaps(self):
        return [
            VAPRecord(ap_name="A", essid="bravo", num_sta=5, rx_bytes=10),
            VAPRecord(ap_name="A", essid="Alpha", num_sta=1, rx_bytes=500),
            VAPRecord(ap_name="A", essid="charlie", num_sta=9, rx_bytes=50),
        ]

    def test_default_clients_descending(self, vaps):
        assert [s.essid for s in normalize_ssids(vaps)] == ["charlie", "bravo", "Alpha"]

    def test_name_ascending_case_insensitive(self, vaps):
        assert [s.essid for s in normalize_ssids(vaps, sort_by="name")] == ["Alpha", "bravo", "charlie"]

    def test_traffic_descending(self, vaps):
        assert [s.essid for s in normalize_ssids(vaps, sort_by="traffic")] == ["Alpha", "charlie", "bravo"]

    def test_explicit_direction(self, vaps):
        ssids = normalize_ssids(vaps, sort_by="clients", descending=False)
        assert [s.essid for s in ssids] == ["Alpha", "bravo", "charlie"]

    def test_unknown_sort_key_falls_back_to_clients(self, vaps):
        assert [s.essid for s in normalize_ssids(vaps, sort_by="colour")] == ["charlie", "bravo", "Alpha"]


class TestSSIDHelpers:
    """Test lookup and grouping helpers"""

    def test_get_ssid_stats_includes_empty(self):
        vaps = [VAPRecord(ap_name="A", essid="Idle", num_sta=0)]
        stats = get_ssid_stats(vaps, "Idle")
        assert stats is not None
        assert stats.client_count == 0
        assert get_ssid_stats(vaps, "Missing") is None

    def test_client_count_and_unique(self, homenet_vaps):
        vaps = homenet_vaps + [VAPRecord(ap_name="Office", essid="Guests", num_sta=2)]
        assert get_ssid_client_count(vaps, "HomeNet") == 40
        assert get_unique_ssids(vaps) == ["Guests", "HomeNet"]
        assert len(filter_vaps_by_ssid(vaps, "Guests")) == 1

    def test_group_by_ap(self, homenet_vaps):
        groups = group_vaps_by_ap(homenet_vaps)
        assert set(groups) == {"Living Room", "Office"}

    def test_vap_key(self):
        assert vap_key("Office", "na", "aa:bb") == "Office|na|aa:bb"
        assert vap_key("Lab|1", "na", "aa") != vap_key("Lab", "1|na", "aa")


class TestVapFromReader:
    """Test building VAP records from grouped query rows"""

    def test_records_from_state_and_traffic(self, vap_state_response, vap_traffic_response):
        traffic = build_traffic_map_composite(vap_traffic_response, ["device_name", "radio", "bssid"])
        vaps = parse_grouped_results(vap_state_response, lambda tags, row: vap_from_reader(tags, row, traffic))

        living_room, office, guests = vaps
        assert living_room == VAPRecord(
            ap_name="Living Room", essid="HomeNet", radio="na", bssid="b1", channel=36,
            num_sta=30, rx_bytes=1000, tx_bytes=4000, satisfaction=90, avg_client_signal=-55,
        )
        # Counter reset clamps rx to 0
        assert (office.rx_bytes, office.tx_bytes) == (0, 200)
        assert guests.is_guest is True
        assert (guests.rx_bytes, guests.tx_bytes) == (0, 0)

    def test_essid_fallback(self):
        row = ColumnValueReader(["time", "num_sta"], ["t", 2])
        vap = vap_from_reader({"device_name": "A"}, row, essid="Fallback")
        assert vap.essid == "Fallback"
        assert vap.num_sta == 2

    def test_pipeline_matches_homenet_example(self, vap_state_response, vap_traffic_response):
        traffic = build_traffic_map_composite(vap_traffic_response, ["device_name", "radio", "bssid"])
        vaps = parse_grouped_results(vap_state_response, lambda tags, row: vap_from_reader(tags, row, traffic))
        ssids = normalize_ssids(vaps)
        assert [s.essid for s in ssids] == ["HomeNet"]
        assert ssids[0].client_count == 40


class TestWifiHelpers:
    """Test band, signal and status helpers"""

    @pytest.mark.parametrize("channel,band", [(1, "2.4GHz"), (14, "2.4GHz"), (36, "5GHz"), (165, "5GHz"), (181, "6GHz")])
    def test_wifi_band(self, channel, band):
        assert wifi_band(channel) == band

    def test_band_for_radio(self):
        assert band_for_radio("ng", 149) == "2.4GHz"
        assert band_for_radio("NA") == "5GHz"
        assert band_for_radio("unknown", 11) == "2.4GHz"
        assert band_for_radio(None) == "5GHz"

    @pytest.mark.parametrize("signal,valid", [(-65, True), (-2, True), (-1, False), (0, False), (5, False)])
    def test_is_valid_signal(self, signal, valid):
        assert is_valid_signal(signal) is valid

    def test_custom_placeholder(self):
        assert not is_valid_signal(-95, placeholder=-95)

    def test_client_signal_fields_mapping(self):
        row = ColumnValueReader(["signal", "rssi"], [-61, 44])
        assert client_signal_fields(row) == (-61, 44)

    def test_positive_dbm_flagged(self, caplog):
        row = ColumnValueReader(["signal", "rssi"], [44, -61])
        with caplog.at_level(logging.WARNING, logger="netdash.dashboard"):
            assert client_signal_fields(row) == (44, -61)
        assert "expected dBm" in caplog.text

    def test_vap_table_has_no_percent_field(self):
        row = ColumnValueReader(["avg_client_signal"], [-70])
        assert client_signal_fields(row, table="uap_vaps") == (-70, 0)

    @pytest.mark.parametrize("dbm,label", [(-45, "excellent"), (-55, "good"), (-65, "fair"), (-80, "poor"), (-1, "no_data")])
    def test_signal_quality(self, dbm, label):
        assert get_signal_quality(dbm) == label

    def test_signal_quality_uses_placeholder(self):
        assert get_signal_quality(-1.5) == "excellent"
        assert get_signal_quality(-1.5, placeholder=-2) == "no_data"

    @pytest.mark.parametrize("score,label", [(95, "excellent"), (85, "good"), (72, "warning"), (30, "poor"), (0, "no_data"), (None, "no_data")])
    def test_satisfaction_status(self, score, label):
        assert get_satisfaction_status(score) == label


def test_traffic_totals_is_tuple():
    assert TrafficTotals(1, 2) == (1, 2)
