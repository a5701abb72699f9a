"""Tests de la capa de display: opciones persistidas, teclas y render."""

import io
from unittest.mock import MagicMock

import pytest

from router_monitor.core.domain import BandwidthSample, SpeedResult, StorageError
from router_monitor.core.validation.device_status import project_device_status
from router_monitor.dashboard import (
    DashboardView,
    DisplayOptions,
    DisplayOptionsStore,
    TerminalRenderer,
    format_bytes,
    handle_key,
    histogram,
    render_lines,
)
from router_monitor.dashboard.display_options import SETTINGS_KEY
from router_monitor.infrastructure.persistence import SettingsRepository
from router_monitor.ingest.normalizer import normalize


@pytest.fixture
def repository(engine):
    return SettingsRepository(engine)


@pytest.fixture
def view(raw_snapshot_factory):
    snapshot = normalize(raw_snapshot_factory(cell_rx=3 * 1024**2, cell_tx=1024, lifetime=5 * 1024**3), 0)
    return DashboardView.build(
        snapshot,
        SpeedResult(download_bps=2048.0, upload_bps=512.0),
        {"5m": 1536, "15m": None, "1h": None},
        history=tuple(BandwidthSample(i, float(i * 100), 10.0) for i in range(6)),
    )


# =============================================================================
# OPCIONES DE DISPLAY
# =============================================================================

class TestDisplayOptions:

    def test_defaults(self):
        options = DisplayOptions()
        assert options.show_network is True
        assert options.show_bandwidth is True
        assert options.show_history is False
        assert options.show_device is False
        assert options.show_verbose is False

    def test_from_dict_merges_over_defaults(self):
        options = DisplayOptions.from_dict({"show_history": True, "bogus": 1, "show_device": "yes"})
        assert options.show_history is True
        assert options.show_device is False
        assert options.show_network is True

    def test_from_dict_ignores_non_objects(self):
        assert DisplayOptions.from_dict(["x"]) == DisplayOptions()

    def test_toggle_persists(self, repository):
        store = DisplayOptionsStore(repository)
        store.toggle("show_history")

        assert repository.get_json(SETTINGS_KEY)["show_history"] is True
        assert DisplayOptionsStore(repository).load().show_history is True

    def test_reset(self, repository):
        store = DisplayOptionsStore(repository)
        store.toggle("show_device")
        store.reset()

        assert repository.get_json(SETTINGS_KEY) is None
        assert store.current == DisplayOptions()

    def test_storage_failure_keeps_toggle(self):
        repository = MagicMock()
        repository.set_json.side_effect = StorageError("settings.set")
        store = DisplayOptionsStore(repository)

        assert store.toggle("show_verbose").show_verbose is True
        assert store.current.show_verbose is True


class TestHandleKey:

    @pytest.mark.parametrize(
        "key,flag",
        [("n", "show_network"), ("b", "show_bandwidth"), ("h", "show_history"),
         ("d", "show_device"), ("v", "show_verbose")],
    )
    def test_toggle_keys_refresh(self, key, flag):
        store = DisplayOptionsStore(None)
        before = getattr(store.current, flag)
        refresh, quit_ = MagicMock(), MagicMock()

        assert handle_key(key, store, refresh, quit_) is True
        assert getattr(store.current, flag) is (not before)
        refresh.assert_called_once()
        quit_.assert_not_called()

    def test_quit(self):
        refresh, quit_ = MagicMock(), MagicMock()
        assert handle_key("q", DisplayOptionsStore(None), refresh, quit_) is True
        quit_.assert_called_once()
        refresh.assert_not_called()

    def test_unknown_key(self):
        refresh = MagicMock()
        assert handle_key("x", DisplayOptionsStore(None), refresh, MagicMock()) is False
        refresh.assert_not_called()


# =============================================================================
# RENDER
# =============================================================================

class TestFormatting:

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, "0 B"),
            (None, "---"),
            (512, "512 B"),
            (1024, "1 KB"),
            (1536, "1.5 KB"),
            (1024**2 * 2.25, "2.25 MB"),
            (1024**3, "1 GB"),
            (1024**5, "1024 TB"),
        ],
    )
    def test_format_bytes(self, value, expected):
        assert format_bytes(value) == expected

    def test_histogram_shape(self):
        rows = histogram([0, 1, 2, 3, 4, 5])
        assert len(rows) == 5
        assert all(len(row) == 6 for row in rows)
        # la columna del máximo se llena hasta arriba
        assert rows[0][-1] == "█"
        assert rows[-1][0] == " "

    def test_histogram_thresholds(self):
        # max 100 → altura 5; 10 → altura 0.5 (media celda en la fila base)
        rows = histogram([100, 10, 3])
        assert rows[-1] == "█▄▁"

    def test_histogram_empty(self):
        assert histogram([]) == []


class TestRenderLines:

    def test_sections_follow_options(self, view):
        lines = "\n".join(render_lines(view, DisplayOptions()))

        assert "Network   Cellular" in lines
        assert "Lifetime 5 GB" in lines
        assert "5m :    1.5 KB" in lines
        assert "2 KB/s" in lines
        assert "History (" not in lines

    def test_lifetime_windows_fill_missing_aggregate(self, raw_snapshot_factory):
        snapshot = normalize(raw_snapshot_factory(lifetime=10_000), 0)
        view = DashboardView.build(
            snapshot, None, {"5m": None, "15m": 2048},
            lifetime_usage_by_window={"5m": 1024, "15m": 4096},
        )

        assert view.backfilled_windows == ("5m",)
        assert view.effective_usage_by_window() == {"5m": 1024, "15m": 2048}
        lines = "\n".join(render_lines(view, DisplayOptions()))
        assert "5m*:      1 KB" in lines
        assert "15m:      2 KB" in lines
        assert "gap back-filled" in lines

    def test_no_lifetime_block_without_data(self, view):
        lines = "\n".join(render_lines(view, DisplayOptions()))
        assert "Lifetime (billing counter)" not in lines
        assert "*:" not in lines

    def test_history_needs_flag(self, view):
        lines = render_lines(view, DisplayOptions(show_history=True))
        assert any(line.startswith("History (6 samples)") for line in lines)

    def test_network_hidden(self, view):
        lines = render_lines(view, DisplayOptions(show_network=False))
        assert not any(line.startswith("Network") for line in lines)

    def test_offload_warning(self, raw_snapshot_factory):
        snapshot = normalize(raw_snapshot_factory(wifi_tx=1, wifi_rx=1, wifi_active=True), 0)
        lines = "\n".join(render_lines(DashboardView.build(snapshot, None, {}), DisplayOptions()))

        assert "WiFi offload" in lines
        assert "may be inaccurate" in lines

    def test_verbose_shows_stats(self, view):
        lines = render_lines(view, DisplayOptions(show_verbose=True), stats={"polls": 3})
        assert any("polls=3" in line for line in lines)

    def test_terminal_renderer_repaints(self):
        stream = io.StringIO()
        renderer = TerminalRenderer(stream)
        renderer.paint(["a", "b"])

        assert stream.getvalue().startswith("\033[H")
        assert "a\033[K\nb\033[K" in stream.getvalue()


# =============================================================================
# DEVICE STATUS
# =============================================================================

class TestDeviceStatus:

    def test_projection(self):
        raw = {
            "wwan": {},
            "general": {"model": "LM1200", "devTemperature": "41", "upTime": 3725},
            "power": {"PMState": "Online"},
            "wifi": {"SSID": "Home", "status": "On", "maxClientLimit": 15},
            "router": {"clientList": [
                {"name": "*", "IP": "192.168.2.10", "MAC": "aa", "source": "PrimaryAP"},
                {"name": "laptop", "IP": "192.168.2.11", "MAC": "bb", "source": "GuestAP"},
                {"name": "gone", "IP": ""},
            ]},
        }
        device = project_device_status(raw)

        assert device.model == "LM1200"
        assert device.temperature_c == 41
        assert device.power_state == "Online"
        assert len(device.clients) == 2
        assert device.clients[0].name is None
        assert device.clients[1].primary_ap is False

    def test_bad_shape_is_none(self):
        assert project_device_status({"router": {"clientList": "nope"}}) is None
        assert project_device_status("x") is None

    def test_device_section(self, raw_snapshot_factory):
        raw = raw_snapshot_factory()
        raw["general"] = {"model": "LM1200", "devTemperature": 40, "upTime": 61}
        view = DashboardView.build(normalize(raw, 0), None, {}, device=project_device_status(raw))

        lines = "\n".join(render_lines(view, DisplayOptions(show_device=True)))
        assert "Device    LM1200" in lines
        assert "Uptime 1m 1s" in lines
