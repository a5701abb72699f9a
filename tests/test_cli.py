"""Tests del entry point: arranque, autenticación inicial y modo --once."""

from unittest.mock import patch

import pytest

from router_monitor import cli
from router_monitor.core.domain import AuthError
from router_monitor.resilience.retry import RetryConfig
from router_monitor.source.snapshot_source import ScriptedSnapshotSource


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.setenv("ROUTER_MONITOR_ENV_FILE", str(tmp_path / "missing.env"))
    monkeypatch.setenv("STARTUP_AUTH_ATTEMPTS", "2")
    monkeypatch.setenv("RETENTION_DAYS", "7")
    with patch("router_monitor.resilience.retry.time.sleep"):
        yield


@pytest.fixture
def scripted(monkeypatch):
    source = ScriptedSnapshotSource()

    class _FakeHttpSource:
        @staticmethod
        def from_settings(settings):
            return source

    monkeypatch.setattr(cli, "HttpSnapshotSource", _FakeHttpSource)
    return source


class TestAuthenticateAtStartup:

    def test_succeeds_after_retry(self):
        source = ScriptedSnapshotSource()
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise AuthError("not yet")

        source.reauthenticate = flaky
        cli.authenticate_at_startup(source, RetryConfig(max_attempts=3, retryable_exceptions=(AuthError,)))

        assert len(calls) == 2

    def test_exhausted(self):
        source = ScriptedSnapshotSource()
        source.reauth_error = AuthError("rejected")

        with pytest.raises(AuthError):
            cli.authenticate_at_startup(source, RetryConfig(max_attempts=3, retryable_exceptions=(AuthError,)))
        assert source.reauth_calls == 3


class TestMain:

    def test_once_prints_dashboard(self, scripted, raw_snapshot_factory, capsys):
        scripted.push(raw_snapshot_factory(cell_rx=2048, cell_tx=1024, lifetime=10_000))

        assert cli.main(["--once", "--database-url", "sqlite://"]) == 0

        out = capsys.readouterr().out
        assert "Network   Cellular" in out
        assert scripted.reauth_calls == 1
        assert scripted.fetch_calls == 1

    def test_empty_database_url_uses_settings(self, scripted, raw_snapshot_factory, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite://")
        scripted.push(raw_snapshot_factory(cell_rx=1))

        assert cli.main(["--once", "--database-url", ""]) == 0

    def test_once_reports_failed_poll(self, scripted, capsys):
        scripted.push({"not": "a snapshot"})

        assert cli.main(["--once", "--database-url", "sqlite://"]) == 1
        assert "ParseError" in capsys.readouterr().out

    def test_startup_auth_failure_exits_1(self, scripted, capsys):
        scripted.reauth_error = AuthError("login rejected")

        assert cli.main(["--once", "--database-url", "sqlite://"]) == 1

        assert scripted.reauth_calls == 2
        assert scripted.fetch_calls == 0
        assert "Could not authenticate" in capsys.readouterr().err
