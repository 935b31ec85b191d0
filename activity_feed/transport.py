"""
HTTP transport for the upstream feed API.
"""
import logging
import threading
from typing import Any, Optional

import requests

from config.settings import settings

logger = logging.getLogger("feed.transport")


class HTTPTransport:
    """
    Thin JSON-over-HTTP wrapper around a requests session.

    Raises requests exceptions (connection errors, HTTPError for non-2xx
    statuses) and ValueError for bodies that are not JSON; the feed client
    normalizes all of them.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_concurrent_requests: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.feed_api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._session = session or requests.Session()
        # Caps parallel upstream calls across all fan-outs
        self._semaphore = threading.Semaphore(
            max_concurrent_requests or settings.max_concurrent_requests
        )

    def get_json(self, path: str) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        with self._semaphore:
            logger.debug(f"GET {url}")
            response = self._session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()

    def close(self) -> None:
        self._session.close()
