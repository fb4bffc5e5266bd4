"""
Throttled, fire-and-forget lookup of the public IP address.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

import requests

from wsc.utils.log import get_logger

logger = get_logger(__name__)

LOADING = "loading"
ERROR = "error"


class ExternalIPMonitor:
    """
    Keeps the last known external IP, refreshed from a polling loop.

    ``maybe_refresh`` returns immediately; the HTTP request runs on a daemon
    thread. A failed lookup keeps the previous value, except that the
    initial ``LOADING`` placeholder is replaced by ``ERROR``.
    """
    def __init__(
        self,
        url: str = "https://api.ipify.org",
        interval_s: float = 10.0,
        timeout_s: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.url = url
        self.interval_s = interval_s
        self.timeout_s = timeout_s
        self.clock = clock
        self.value = LOADING
        self._last_check: float | None = None

    def maybe_refresh(self) -> threading.Thread | None:
        """
        Spawn a lookup if the last one started at least ``interval_s`` ago.

        Returns the worker thread, or None when throttled.
        """
        now = self.clock()
        if self._last_check is not None and now - self._last_check < self.interval_s:
            return None
        self._last_check = now
        worker = threading.Thread(target=self._lookup, name="wsc-external-ip", daemon=True)
        worker.start()
        return worker

    def _lookup(self) -> None:
        try:
            response = requests.get(self.url, timeout=self.timeout_s)
            response.raise_for_status()
            self.value = response.text.strip()
        except requests.RequestException as e:
            logger.warning("External IP lookup via %s failed: %s", self.url, e)
            if self.value == LOADING:
                self.value = ERROR
