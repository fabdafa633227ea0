"""
Country flag images for the tooltip.

Flags are fetched once per URL on a daemon thread and handed back to the
GUI thread through a queued call, the same way the feed scheduler delivers
records.  ``pixmap()`` never blocks: it returns the cached image or None
and starts a download in the background.

Usage
-----
    flags = FlagCache()
    flags.flag_ready.connect(on_flag)
    pix = flags.pixmap(url)     # None until flag_ready(url) fires
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, Optional, Set

import requests
from PyQt5 import QtCore, QtGui

from ..ingest import fetch_with_retry

log = logging.getLogger(__name__)


class FlagCache(QtCore.QObject):
    """URL → QPixmap cache with background loading.

    Signals
    -------
    flag_ready(str)
        Emitted on the GUI thread with the URL of a newly cached flag.
    """

    flag_ready = QtCore.pyqtSignal(str)

    def __init__(self, timeout_s: float = 5.0, parent: Optional[QtCore.QObject] = None):
        super().__init__(parent)
        self._timeout = timeout_s
        self._pixmaps: Dict[str, Optional[QtGui.QPixmap]] = {}
        self._pending: Set[str] = set()
        self._lock = threading.Lock()

    def pixmap(self, url: str) -> Optional[QtGui.QPixmap]:
        """Cached flag for *url*, or None (a download is started if needed)."""
        if url in self._pixmaps:
            return self._pixmaps[url]
        with self._lock:
            if url in self._pending:
                return None
            self._pending.add(url)
        threading.Thread(
            target=self._download, args=(url,), daemon=True, name="flag-fetch"
        ).start()
        return None

    def _download(self, url: str) -> None:
        """Fetch *url* (background thread)."""
        try:
            data = fetch_with_retry(
                url, headers={"Accept": "image/*"},
                timeout=self._timeout, retries=0,
            ).content
        except requests.RequestException as exc:
            log.debug("Flag %s unavailable: %s", url, exc)
            data = b""
        QtCore.QMetaObject.invokeMethod(
            self, "store",
            QtCore.Qt.QueuedConnection,
            QtCore.Q_ARG(str, url),
            QtCore.Q_ARG(object, data),
        )

    @QtCore.pyqtSlot(str, object)
    def store(self, url: str, data: object) -> None:
        """Decode *data* and cache it for *url*.  Empty or bad data caches a miss."""
        with self._lock:
            self._pending.discard(url)
        pix = QtGui.QPixmap()
        if not data or not pix.loadFromData(data):
            self._pixmaps[url] = None
            return
        self._pixmaps[url] = pix
        self.flag_ready.emit(url)
