"""CLI entry point for the router monitor."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from dataclasses import replace
from typing import List, Optional

from common.config import Settings, get_settings
from common.db import get_engine

from .core.domain.errors import AuthError, StorageError
from .dashboard.display_options import DisplayOptions, DisplayOptionsStore, handle_key
from .dashboard.keyboard import KeyboardListener
from .dashboard.render import TerminalRenderer, render_error, render_lines
from .infrastructure.persistence import SettingsRepository, SqlTimeSeriesStore, ensure_schema
from .ingest.gap_interpolator import GapConfig, GapInterpolator
from .poller import PollCycle, PollerState, PollLoop, PollOutcome
from .resilience.retry import RetryConfig, retry_with_backoff
from .source.http_source import HttpSnapshotSource
from .source.snapshot_source import SnapshotSource

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="LTE router stats monitor (poll, store, dashboard)")
    p.add_argument("--interval-ms", type=int, default=None, help="poll interval (default POLL_INTERVAL_MS)")
    p.add_argument("--database-url", default=None, help="SQLAlchemy URL (default DATABASE_URL)")
    p.add_argument("--once", action="store_true", help="poll once, print the dashboard and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="start with the verbose section enabled")
    p.add_argument("--reset-settings", action="store_true", help="forget persisted display options")
    p.add_argument("--no-keyboard", action="store_true", help="do not read key toggles from stdin")
    p.add_argument("--log-file", default="router-monitor.log", help="log file for interactive mode")
    return p.parse_args(argv)


def _configure_logging(level: str, log_file: Optional[str]) -> None:
    # The dashboard owns the terminal; logs go to a file unless running once.
    handler: logging.Handler = logging.FileHandler(log_file) if log_file else logging.StreamHandler()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[handler],
    )


def authenticate_at_startup(source: SnapshotSource, config: RetryConfig) -> None:
    """Bounded consecutive auth attempts. Raises AuthError once exhausted."""

    @retry_with_backoff(config=config)
    def _authenticate() -> None:
        source.reauthenticate()

    _authenticate()


def _retention_sweep(store: SqlTimeSeriesStore, settings: Settings) -> None:
    if settings.retention_days <= 0:
        return
    cutoff = int(time.time() * 1000) - settings.retention_days * DAY_MS
    try:
        store.delete_older_than(cutoff)
    except StorageError as e:
        logger.warning("[STORE] Retention sweep failed: %s", e)


def _outcome_lines(outcome: PollOutcome, options: DisplayOptionsStore, cycle: PollCycle) -> List[str]:
    current = options.current
    stats = cycle.stats.to_dict() if current.show_verbose else None
    if outcome.ok and outcome.view is not None:
        return render_lines(outcome.view, current, stats=stats)
    return render_error(f"{type(outcome.error).__name__}: {outcome.error}")


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    _configure_logging(settings.log_level, None if args.once else args.log_file)

    interval_ms = args.interval_ms or settings.poll_interval_ms
    logger.info("Router monitor started")
    logger.info(
        "Config: router=%s interval=%dms history=%d retention=%dd",
        settings.router_base_url, interval_ms, settings.history_samples, settings.retention_days,
    )

    engine = get_engine(settings, url=args.database_url or None)
    ensure_schema(engine)
    store = SqlTimeSeriesStore(engine)

    options = DisplayOptionsStore(
        SettingsRepository(engine), defaults=DisplayOptions(show_verbose=args.verbose)
    )
    if args.reset_settings:
        options.reset()
    else:
        options.load()

    _retention_sweep(store, settings)

    source = HttpSnapshotSource.from_settings(settings)
    try:
        authenticate_at_startup(
            source,
            RetryConfig.from_env(
                max_attempts=settings.startup_auth_attempts,
                retryable_exceptions=(AuthError,),
            ),
        )
    except AuthError as e:
        logger.error("Startup authentication failed: %s", e)
        print(f"Could not authenticate against {settings.router_base_url}: {e}", file=sys.stderr)
        source.close()
        engine.dispose()
        return 1

    state = PollerState(history_size=settings.history_samples)
    try:
        state.seed_from_store(store)
    except StorageError as e:
        logger.warning("[POLL] History seeding skipped: %s", e)

    cycle = PollCycle(
        source,
        store,
        state,
        gap_interpolator=GapInterpolator(
            store, replace(GapConfig.from_env(), poll_interval_ms=interval_ms)
        ),
    )

    try:
        if args.once:
            outcome = cycle.run_once()
            print("\n".join(_outcome_lines(outcome, options, cycle)))
            return 0 if outcome.ok else 1
        _run_interactive(cycle, options, interval_ms, keyboard=not args.no_keyboard)
        return 0
    finally:
        source.close()
        engine.dispose()


def _run_interactive(
    cycle: PollCycle,
    options: DisplayOptionsStore,
    interval_ms: int,
    keyboard: bool,
) -> None:
    renderer = TerminalRenderer()
    loop = PollLoop(
        cycle,
        interval_ms,
        on_outcome=lambda outcome: renderer.paint(_outcome_lines(outcome, options, cycle)),
    )
    listener = KeyboardListener(lambda key: handle_key(key, options, loop.request_refresh, loop.stop))

    if keyboard:
        listener.start()
    renderer.start()
    try:
        loop.run()
    except KeyboardInterrupt:
        loop.stop()
    finally:
        listener.stop()
        renderer.stop()
        logger.info("Router monitor stopped %s", cycle.stats)


if __name__ == "__main__":
    raise SystemExit(main())
