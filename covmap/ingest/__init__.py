"""Epidemiological feed ingestion."""
from __future__ import annotations

import logging
import time
from typing import Dict, Optional

import requests

from .. import __version__

log = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 20  # seconds
USER_AGENT = f"covmap/{__version__}"


class FeedError(RuntimeError):
    """The feed could not be fetched or did not have the expected shape."""


def fetch_with_retry(
    url: str,
    *,
    params: Optional[dict] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = _DEFAULT_TIMEOUT,
    retries: int = 2,
    backoff: float = 2.0,
) -> requests.Response:
    """GET *url*, retrying transient failures.

    Connection errors, timeouts and 5xx responses are retried up to
    *retries* times with a linear backoff.  A 4xx is raised immediately
    since repeating the request cannot fix it.  When every attempt fails
    the last error is raised.
    """
    send_headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    if headers:
        send_headers.update(headers)

    attempts = retries + 1
    last_exc: Optional[Exception] = None
    for attempt in range(1, attempts + 1):
        t0 = time.monotonic()
        try:
            resp = requests.get(
                url, params=params, headers=send_headers, timeout=timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            last_exc = exc
            log.warning("Network error on %s (attempt %d/%d): %s",
                        url[:80], attempt, attempts, exc)
        else:
            log.debug("GET %s -> %d in %.2fs",
                      url[:80], resp.status_code, time.monotonic() - t0)
            if resp.status_code < 500:
                resp.raise_for_status()
                return resp
            last_exc = requests.HTTPError(
                f"HTTP {resp.status_code} from {url[:80]}", response=resp,
            )
            log.warning("HTTP %d from %s (attempt %d/%d)",
                        resp.status_code, url[:80], attempt, attempts)

        if attempt < attempts:
            time.sleep(backoff * attempt)

    raise last_exc or requests.ConnectionError(
        f"{url[:80]}: failed after {attempts} attempts"
    )
