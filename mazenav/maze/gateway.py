"""
Remote maze authority client.

The authority is the only source of truth for position, death and victory.
Three calls exist: `start`, `discover` and `move`. Start and move return a
fresh pair of capability endpoints that must be used for the next calls.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import List, Optional

import requests
from requests.exceptions import ConnectionError, RequestException, Timeout

from mazenav.configs.maze import DEFAULT_TIMEOUT_S

from .schemas import (
    Cell,
    GatewayProtocolError,
    GatewayResponse,
    IllegalMoveError,
    NetworkOrTimeoutError,
)

logger = logging.getLogger(__name__)


class MazeGateway(ABC):
    """Contract consumed by the explorers and the navigator."""

    @abstractmethod
    def start(self, player_name: str) -> GatewayResponse:
        ...

    @abstractmethod
    def discover(self, discover_endpoint: str) -> List[Cell]:
        ...

    @abstractmethod
    def move(self, move_endpoint: str, x: int, y: int) -> GatewayResponse:
        ...

    def close(self) -> None:
        """Release transport resources; nothing to do for in-process gateways."""


class HttpMazeGateway(MazeGateway):
    """
    HTTP transport for the maze authority (form-encoded requests, JSON answers).

    `timeout_s` bounds each whole call: connecting, sending and reading the full
    body. The request runs on a small worker pool and the caller stops waiting once
    the budget is spent; a late answer is dropped.
    """

    def __init__(self, api_url: str, timeout_s: float = DEFAULT_TIMEOUT_S, session: Optional[requests.Session] = None):
        self.api_url = api_url.rstrip("/")
        self.timeout_s = timeout_s
        self.http = session or requests.Session()
        self._pool = ThreadPoolExecutor(max_workers=4, thread_name_prefix="maze-http")
        logger.info("[INIT] HttpMazeGateway -> api_url=%s, timeout=%.1fs", self.api_url, self.timeout_s)

    def close(self) -> None:
        self._pool.shutdown(wait=False)
        close = getattr(self.http, "close", None)
        if close is not None:
            close()

    def start(self, player_name: str) -> GatewayResponse:
        url = f"{self.api_url}/start-game/"
        resp = self._send("POST", url, data={"player": player_name})
        self._raise_for_status(resp, url)
        return GatewayResponse.from_json(self._json(resp, url))

    def discover(self, discover_endpoint: str) -> List[Cell]:
        resp = self._send("GET", discover_endpoint)
        self._raise_for_status(resp, discover_endpoint)
        payload = self._json(resp, discover_endpoint)
        if not isinstance(payload, list):
            raise GatewayProtocolError(f"discover returned {type(payload).__name__}, expected a list")
        return [Cell.from_json(item) for item in payload]

    def move(self, move_endpoint: str, x: int, y: int) -> GatewayResponse:
        resp = self._send("POST", move_endpoint, data={"position_x": x, "position_y": y})
        if 400 <= resp.status_code < 500:
            raise IllegalMoveError(f"move to ({x}, {y}) refused: HTTP {resp.status_code} {resp.text[:200]}")
        self._raise_for_status(resp, move_endpoint)
        return GatewayResponse.from_json(self._json(resp, move_endpoint))

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        logger.debug("[Gateway] %s %s", method, url)
        # Without stream=True, requests reads the whole body before returning.
        future = self._pool.submit(self.http.request, method, url, timeout=self.timeout_s, **kwargs)
        try:
            return future.result(timeout=self.timeout_s)
        except FutureTimeout as e:
            future.cancel()
            logger.error("[Gateway] %s %s exceeded the %.1fs budget", method, url, self.timeout_s)
            raise NetworkOrTimeoutError(f"timeout after {self.timeout_s}s: {url}") from e
        except Timeout as e:
            logger.error("[Gateway] %s %s timed out after %.1fs", method, url, self.timeout_s)
            raise NetworkOrTimeoutError(f"timeout after {self.timeout_s}s: {url}") from e
        except ConnectionError as e:
            logger.error("[Gateway] cannot connect to %s: %s", url, e)
            raise NetworkOrTimeoutError(f"connection failed: {url}") from e
        except RequestException as e:
            logger.error("[Gateway] %s %s failed: %s", method, url, e)
            raise NetworkOrTimeoutError(str(e)) from e

    @staticmethod
    def _raise_for_status(resp: requests.Response, url: str) -> None:
        if not 200 <= resp.status_code < 300:
            logger.error("[Gateway] %s returned HTTP %d: %s", url, resp.status_code, resp.text[:200])
            raise NetworkOrTimeoutError(f"HTTP {resp.status_code} from {url}")

    @staticmethod
    def _json(resp: requests.Response, url: str):
        try:
            return resp.json()
        except ValueError as e:
            logger.error("[Gateway] unparseable response from %s: %s", url, resp.text[:200])
            raise GatewayProtocolError(f"invalid JSON from {url}") from e
