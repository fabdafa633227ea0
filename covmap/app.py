"""
covmap entry point.

Two modes:
  - window (default): Qt map that refreshes from the feed every
    ``refresh_interval_s`` seconds
  - headless (``--once``): fetch or load once, print a JSON summary, exit

Usage
-----
    covmap
    covmap --snapshot saved_feed.json
    covmap --once --feed-url https://disease.sh/v3/covid-19/jhucsse
"""
from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from .config import MapConfig, load_config
from .ingest import FeedError
from .ingest.jhu_client import fetch_jhu_records, load_records_file
from .logger import setup_logging
from .session import MapSession, SessionStatus

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="covmap",
        description="Live COVID-19 case point map (JHU CSSE feed).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON config file merged over the built-in defaults.",
    )
    parser.add_argument(
        "--feed-url",
        default=None,
        help="Feed endpoint returning a JSON array of per-location records.",
    )
    parser.add_argument(
        "--snapshot",
        type=Path,
        default=None,
        help="Load records from a saved JSON file instead of fetching.",
    )
    parser.add_argument(
        "--refresh",
        type=float,
        default=None,
        help="Refresh interval in seconds (window mode).",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Load once, print a JSON summary and exit (no window).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Verbose logging.",
    )
    return parser


def resolve_config(args: argparse.Namespace) -> MapConfig:
    """Config file + environment, then command-line flags on top."""
    cfg = load_config(args.config)
    overrides = {}
    if args.feed_url:
        overrides["feed_url"] = args.feed_url
    if args.refresh is not None:
        overrides["refresh_interval_s"] = args.refresh
    if overrides:
        cfg = dataclasses.replace(cfg, **overrides).validate()
    return cfg


def run_once(cfg: MapConfig, snapshot: Optional[Path]) -> int:
    session = MapSession(config=cfg)
    session.begin_fetch()
    try:
        if snapshot is not None:
            records = load_records_file(snapshot)
        else:
            records = fetch_jhu_records(
                cfg.feed_url, timeout=cfg.timeout_s, retries=cfg.retries,
            )
    except FeedError as exc:
        session.fail(str(exc))
    else:
        session.load(records)

    print(json.dumps(session.summary(), indent=2))
    return 0 if session.status is SessionStatus.READY else 1


def run_window(cfg: MapConfig, snapshot: Optional[Path]) -> int:
    from PyQt5 import QtCore, QtGui, QtWidgets

    from .gui.map_widget import PointMapWidget
    from .ingest.feed_scheduler import FeedScheduler

    app = QtWidgets.QApplication(sys.argv[:1])
    app.setStyle("Fusion")

    palette = QtGui.QPalette()
    palette.setColor(QtGui.QPalette.Window, QtGui.QColor("#060a10"))
    palette.setColor(QtGui.QPalette.WindowText, QtGui.QColor("#c0d0e0"))
    palette.setColor(QtGui.QPalette.Base, QtGui.QColor("#080c14"))
    palette.setColor(QtGui.QPalette.Text, QtGui.QColor("#c0d0e0"))
    app.setPalette(palette)

    session = MapSession(config=cfg)
    widget = PointMapWidget(session, cfg)
    widget.setWindowTitle("covmap")
    widget.resize(1280, 760)

    scheduler = FeedScheduler(cfg, snapshot=snapshot, parent=widget)
    scheduler.fetch_started.connect(session.begin_fetch)
    scheduler.records_ready.connect(session.load)
    scheduler.fetch_failed.connect(session.fail)

    widget.show()
    scheduler.start()

    # ── Ctrl+C / SIGTERM shutdown ──
    # The Qt event loop blocks Python signal delivery; a short timer lets
    # the interpreter run the handler.
    def _sigint_handler(*_args):
        log.info("Signal received, shutting down")
        scheduler.stop()
        widget.close()

    signal.signal(signal.SIGINT, _sigint_handler)
    signal.signal(signal.SIGTERM, _sigint_handler)
    _sig_timer = QtCore.QTimer()
    _sig_timer.timeout.connect(lambda: None)
    _sig_timer.start(200)

    return app.exec_()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.debug else logging.INFO)

    try:
        cfg = resolve_config(args)
    except (OSError, ValueError) as exc:
        log.error("Invalid configuration: %s", exc)
        return 2

    if args.once:
        return run_once(cfg, args.snapshot)
    return run_window(cfg, args.snapshot)


if __name__ == "__main__":
    sys.exit(main())
