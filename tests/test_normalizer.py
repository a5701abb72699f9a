"""Tests del normalizador de snapshots.

Ejecutar:
    pytest tests/test_normalizer.py -v
"""

import pytest

from router_monitor.core.domain import ConnectionSource, ParseError
from router_monitor.core.validation.raw_snapshot import coerce_counter
from router_monitor.ingest.normalizer import COUNTER_CONVENTIONS, normalize


# =============================================================================
# CONVENCIÓN DE CONTADORES
# =============================================================================

class TestCounterConvention:
    """La tabla tx/rx → download/upload por fuente."""

    def test_cellular_rx_is_download(self):
        convention = COUNTER_CONVENTIONS[ConnectionSource.CELLULAR]
        assert convention.apply(tx=50, rx=100) == (100, 50)

    @pytest.mark.parametrize(
        "source", [ConnectionSource.WIFI_OFFLOAD, ConnectionSource.ETHERNET_OFFLOAD]
    )
    def test_offloads_are_reversed(self, source):
        assert COUNTER_CONVENTIONS[source].apply(tx=30, rx=10) == (30, 10)

    def test_conventions_are_read_only(self):
        with pytest.raises(TypeError):
            COUNTER_CONVENTIONS[ConnectionSource.CELLULAR] = None  # type: ignore[index]

    def test_wifi_offload_example(self, raw_snapshot_factory):
        """rx=100/tx=50 celular + tx=30/rx=10 wifi → 130/60."""
        raw = raw_snapshot_factory(cell_rx=100, cell_tx=50, wifi_tx=30, wifi_rx=10)
        snap = normalize(raw, 1_000)

        assert snap.cellular.download == 100
        assert snap.cellular.upload == 50
        assert snap.wifi_offload.download == 30
        assert snap.wifi_offload.upload == 10
        assert snap.aggregate_download == 130
        assert snap.aggregate_upload == 60

    def test_ethernet_offload_is_reversed(self, raw_snapshot_factory):
        raw = raw_snapshot_factory(cell_rx=100, cell_tx=50, eth_tx=7, eth_rx=3)
        snap = normalize(raw, 1_000)

        assert snap.ethernet_offload.download == 7
        assert snap.ethernet_offload.upload == 3
        assert snap.aggregate_download == 107
        assert snap.aggregate_upload == 53

    def test_both_offloads_are_summed(self, raw_snapshot_factory):
        raw = raw_snapshot_factory(
            cell_rx=100, cell_tx=50,
            wifi_tx=30, wifi_rx=10, wifi_active=True,
            eth_tx=7, eth_rx=3, eth_active=True,
        )
        snap = normalize(raw, 1_000)

        assert snap.aggregate_download == 137
        assert snap.aggregate_upload == 63
        assert snap.offload_active is True


# =============================================================================
# PARSING LAXO
# =============================================================================

class TestLenientParsing:
    """Contadores ausentes o no parseables valen 0."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("1234", 1234),
            (1234, 1234),
            (12.9, 12),
            ("12.9", 12),
            ("  42 bytes", 42),
            ("", 0),
            ("abc", 0),
            (None, 0),
            (-5, 0),
            ("-5", 0),
            (True, 0),
            ({"a": 1}, 0),
            (float("nan"), 0),
        ],
    )
    def test_coerce_counter(self, value, expected):
        assert coerce_counter(value) == expected

    def test_missing_fields_are_zero(self):
        snap = normalize({"wwan": {}}, 5)

        assert snap.cellular.download == 0
        assert snap.cellular.upload == 0
        assert snap.cellular.session_duration == 0
        assert snap.cellular.signal.rsrp is None
        assert snap.aggregate_download == 0
        assert snap.lifetime_bytes is None

    def test_absent_offloads_are_none(self, raw_snapshot_factory):
        snap = normalize(raw_snapshot_factory(cell_rx=1, cell_tx=2), 5)

        assert snap.wifi_offload is None
        assert snap.ethernet_offload is None
        assert snap.offload_active is False
        assert snap.active_source is ConnectionSource.CELLULAR

    def test_offload_without_counters(self):
        raw = {"wwan": {}, "wifi": {"offload": {"enabled": True}}}
        snap = normalize(raw, 5)

        assert snap.wifi_offload.download == 0
        assert snap.wifi_offload.active is False

    def test_lifetime_bytes_include_roaming(self, raw_snapshot_factory):
        snap = normalize(raw_snapshot_factory(lifetime=5_000, roaming=250), 5)
        assert snap.lifetime_bytes == 5_250


# =============================================================================
# PREDICADOS DE "ACTIVO"
# =============================================================================

class TestActivePredicates:

    def test_wifi_offload_active(self, raw_snapshot_factory):
        snap = normalize(raw_snapshot_factory(wifi_tx=1, wifi_rx=1, wifi_active=True), 5)

        assert snap.wifi_offload.active is True
        assert snap.wifi_offload.ssid == "CafeNet"
        assert snap.active_source is ConnectionSource.WIFI_OFFLOAD

    def test_wifi_offload_needs_ssid(self):
        raw = {"wwan": {}, "wifi": {"offload": {"enabled": True, "status": "On", "connectionSsid": ""}}}
        assert normalize(raw, 5).wifi_offload.active is False

    def test_wifi_offload_needs_status_on(self):
        raw = {"wwan": {}, "wifi": {"offload": {"enabled": True, "status": "Off", "connectionSsid": "x"}}}
        assert normalize(raw, 5).wifi_offload.active is False

    def test_ethernet_offload_active(self, raw_snapshot_factory):
        snap = normalize(raw_snapshot_factory(eth_tx=1, eth_rx=1, eth_active=True), 5)

        assert snap.ethernet_offload.active is True
        assert snap.active_source is ConnectionSource.ETHERNET_OFFLOAD

    def test_ethernet_offload_zero_address_is_inactive(self):
        raw = {"wwan": {}, "ethernet": {"offload": {"enabled": True, "on": True, "ipv4Addr": "0.0.0.0"}}}
        assert normalize(raw, 5).ethernet_offload.active is False

    def test_inactive_offload_still_counts(self, raw_snapshot_factory):
        snap = normalize(raw_snapshot_factory(cell_rx=10, wifi_tx=5, wifi_rx=1), 5)

        assert snap.wifi_offload.active is False
        assert snap.aggregate_download == 15


# =============================================================================
# PUREZA Y ERRORES
# =============================================================================

class TestPurityAndErrors:

    def test_idempotent(self, raw_snapshot_factory):
        raw = raw_snapshot_factory(cell_rx="100", cell_tx=50, wifi_tx=30, wifi_rx=10, lifetime=999)
        assert normalize(raw, 1234) == normalize(raw, 1234)

    def test_does_not_mutate_input(self, raw_snapshot_factory):
        raw = raw_snapshot_factory(cell_rx="100")
        normalize(raw, 1)
        assert raw["wwan"]["dataTransferredRx"] == "100"

    @pytest.mark.parametrize("raw", [None, [], "text", 42, {}, {"wwan": "x"}])
    def test_malformed_snapshot(self, raw):
        with pytest.raises(ParseError):
            normalize(raw, 1)

    def test_sub_object_of_wrong_shape(self):
        with pytest.raises(ParseError):
            normalize({"wwan": {}, "wifi": {"offload": "broken"}}, 1)
