"""
Feed scheduler — periodic refresh of the case feed.

Runs on the Qt event loop using QTimer.  Each refresh fetches on a daemon
thread and hands the result back to the GUI thread through a queued
call, so the map session only ever sees data on the GUI thread.

Data flow
─────────
  QTimer tick
    → fetch_jhu_records()      (background thread)
    → records_ready(list)      (GUI thread)  → MapSession.load
    → fetch_failed(str)        (GUI thread)  → MapSession.fail

Usage
-----
    scheduler = FeedScheduler(config)
    scheduler.records_ready.connect(session.load)
    scheduler.fetch_failed.connect(session.fail)
    scheduler.start()
"""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional

from PyQt5 import QtCore

from ..config import MapConfig
from . import FeedError
from .jhu_client import fetch_jhu_records, load_records_file

log = logging.getLogger(__name__)


class FeedScheduler(QtCore.QObject):
    """Periodic feed poller.

    Signals
    -------
    fetch_started()
        Emitted on the GUI thread when a fetch is issued.
    records_ready(list)
        Emitted with the raw feed records of a completed fetch.
    fetch_failed(str)
        Emitted with a description when a fetch fails.
    """

    fetch_started = QtCore.pyqtSignal()
    records_ready = QtCore.pyqtSignal(object)   # list[dict]
    fetch_failed = QtCore.pyqtSignal(str)

    def __init__(
        self,
        config: Optional[MapConfig] = None,
        snapshot: Optional[Path] = None,
        parent: Optional[QtCore.QObject] = None,
    ):
        super().__init__(parent)
        self._config = config or MapConfig()
        self._snapshot = snapshot
        self._in_flight = False
        self._lock = threading.Lock()

        self._timer = QtCore.QTimer(self)
        self._timer.setInterval(int(self._config.refresh_interval_s * 1000))
        self._timer.timeout.connect(self.poll)
        self._running = False

    # ── Control ───────────────────────────────────────────────────────

    def start(self) -> None:
        """Fetch immediately, then every ``refresh_interval_s``."""
        if self._running:
            return
        self._running = True
        self.poll()
        if self._snapshot is None:
            self._timer.start()
        log.info(
            "FeedScheduler started (%s, every %ds)",
            self._snapshot or self._config.feed_url[:80],
            self._timer.interval() // 1000,
        )

    def stop(self) -> None:
        self._running = False
        self._timer.stop()
        log.info("FeedScheduler stopped")

    # ── Polling ───────────────────────────────────────────────────────

    def poll(self) -> None:
        with self._lock:
            if self._in_flight:
                log.debug("Feed fetch still in flight, skipping tick")
                return
            self._in_flight = True
        self.fetch_started.emit()
        threading.Thread(
            target=self._fetch, daemon=True, name="feed-poll"
        ).start()

    def _source(self) -> Callable[[], List[dict]]:
        if self._snapshot is not None:
            return lambda: load_records_file(self._snapshot)
        cfg = self._config
        return lambda: fetch_jhu_records(
            cfg.feed_url, timeout=cfg.timeout_s, retries=cfg.retries,
        )

    def _fetch(self) -> None:
        """Fetch the feed (background thread)."""
        try:
            records = self._source()()
            QtCore.QMetaObject.invokeMethod(
                self, "_emit_records",
                QtCore.Qt.QueuedConnection,
                QtCore.Q_ARG(object, records),
            )
        except FeedError as exc:
            log.error("Feed fetch error: %s", exc)
            QtCore.QMetaObject.invokeMethod(
                self, "_emit_failure",
                QtCore.Qt.QueuedConnection,
                QtCore.Q_ARG(str, str(exc)),
            )
        finally:
            with self._lock:
                self._in_flight = False

    @QtCore.pyqtSlot(object)
    def _emit_records(self, records: object) -> None:
        self.records_ready.emit(records)

    @QtCore.pyqtSlot(str)
    def _emit_failure(self, message: str) -> None:
        self.fetch_failed.emit(message)
