"""
JHU CSSE per-location feed client.

Fetches the latest per-province / per-country snapshot published through the
disease.sh API (the successor of corona.lmao.ninja) and returns the raw JSON
records unchanged.  Validation and conversion happen in
``covmap.geo.features``; this module only guarantees the payload is a list.

Record shape
------------
    {
      "country": "Italy",
      "province": "null",
      "county": null,
      "updatedAt": "2023-03-10 04:21:03",
      "stats": {"confirmed": 1000, "deaths": 50, "recovered": null},
      "coordinates": {"latitude": "41.87194", "longitude": "12.56738"}
    }

Usage
-----
    from covmap.ingest.jhu_client import fetch_jhu_records
    records = fetch_jhu_records()
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Union

import requests

from ..config import DEFAULT_FEED_URL
from . import FeedError, fetch_with_retry

log = logging.getLogger(__name__)


def _check_payload(data, source: str) -> List[dict]:
    if not isinstance(data, list):
        raise FeedError(
            f"{source}: expected a JSON array, got {type(data).__name__}"
        )
    return data


def fetch_jhu_records(
    url: str = DEFAULT_FEED_URL,
    timeout: float = 15.0,
    retries: int = 2,
) -> List[dict]:
    """Fetch the feed and return its list of raw records.

    Raises
    ------
    FeedError
        Network failure after retries, non-JSON body, or a body that is
        not a JSON array.
    """
    try:
        resp = fetch_with_retry(url, timeout=timeout, retries=retries)
    except requests.RequestException as exc:
        raise FeedError(f"feed fetch failed: {exc}") from exc
    try:
        data = resp.json()
    except ValueError as exc:
        raise FeedError(f"feed body is not JSON: {exc}") from exc

    records = _check_payload(data, url[:80])
    log.info("JHU feed: %d records from %s", len(records), url[:80])
    return records


def load_records_file(path: Union[str, Path]) -> List[dict]:
    """Read a saved feed snapshot (same JSON array shape) from disk."""
    p = Path(path)
    try:
        with p.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise FeedError(f"cannot read snapshot {p}: {exc}") from exc

    records = _check_payload(data, str(p))
    log.info("Snapshot %s: %d records", p, len(records))
    return records
