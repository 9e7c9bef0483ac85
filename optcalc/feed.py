"""
Live volatility feed: Deribit DVOL over a one-shot WebSocket exchange.

Each fetch opens a connection, sends one JSON-RPC request, waits for one
reply under a hard deadline, and closes the connection on every exit
path.  ``VolatilityPoller`` repeats that cycle per asset on a fixed
period as independent asyncio tasks.

External deps: websockets (transport).
"""

import asyncio
import functools
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from enum import Enum
from typing import Callable, Iterable, Optional

import websockets
from websockets.exceptions import WebSocketException

from . import config as cfg
from .exceptions import FeedError

logger = logging.getLogger(__name__)


class FeedState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    AWAITING_RESPONSE = "awaiting_response"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass(frozen=True)
class VolatilitySample:
    value: float  # percent, 2 dp
    observed_at: datetime


# ---------------------------------------------------------------------------
# Wire format
# ---------------------------------------------------------------------------


def build_request(asset: str, request_id: int = 1) -> dict:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": cfg.DVOL_METHOD,
        "params": {"currency": asset},
    }


def truncate_2dp(value) -> float:
    try:
        exact = Decimal(str(value))
    except InvalidOperation:
        raise FeedError(f"non-numeric volatility value {value!r}") from None
    if not exact.is_finite():
        raise FeedError(f"non-finite volatility value {value!r}")
    try:
        return float(exact.quantize(Decimal("0.01"), rounding=ROUND_DOWN))
    except InvalidOperation:
        raise FeedError(f"volatility value out of range {value!r}") from None


def parse_response(raw, asset: str = "") -> VolatilitySample:
    """
    Turn one reply into a sample taken from the last ``[timestamp, value]``
    entry.  Error payloads and malformed replies raise FeedError.
    """
    try:
        payload = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
    except ValueError:
        raise FeedError("reply is not valid JSON", asset) from None
    if not isinstance(payload, dict):
        raise FeedError("reply is not a JSON object", asset)

    if payload.get("error"):
        error = payload["error"]
        message = error.get("message") if isinstance(error, dict) else str(error)
        raise FeedError(f"feed error: {message or 'unknown error'}", asset)

    result = payload.get("result")
    if not isinstance(result, list) or not result:
        raise FeedError("reply carries no volatility data", asset)

    last = result[-1]
    if not isinstance(last, (list, tuple)) or len(last) < 2:
        raise FeedError(f"malformed volatility entry {last!r}", asset)

    timestamp, value = last[0], last[1]
    try:
        observed_at = datetime.fromtimestamp(float(timestamp) / 1000.0, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        raise FeedError(f"malformed timestamp {timestamp!r}", asset) from None
    return VolatilitySample(value=truncate_2dp(value), observed_at=observed_at)


# ---------------------------------------------------------------------------
# One-shot client
# ---------------------------------------------------------------------------


class VolatilityFeedClient:
    """
    One request/response cycle at a time:
    IDLE -> CONNECTING -> AWAITING_RESPONSE -> RESOLVED | FAILED -> IDLE.

    ``connect`` is any coroutine function returning a connection with
    async ``send``, ``recv`` and ``close``; defaults to websockets.connect
    with a short ``close_timeout`` so closing never outlives the deadline
    by more than ``DVOL_CLOSE_TIMEOUT``.
    """

    def __init__(
        self,
        url: str = cfg.DVOL_URL,
        timeout: float = cfg.DVOL_TIMEOUT,
        connect: Optional[Callable] = None,
    ):
        self.url = url
        self.timeout = timeout
        if connect is None:
            connect = functools.partial(
                websockets.connect, close_timeout=cfg.DVOL_CLOSE_TIMEOUT
            )
        self._connect = connect
        self._conn = None
        self._request_id = 0
        self.state = FeedState.IDLE
        self.last_outcome: Optional[FeedState] = None

    async def fetch(self, asset: str) -> VolatilitySample:
        asset = asset.upper()
        if self.state is not FeedState.IDLE:
            raise FeedError("a request is already outstanding", asset)

        self.state = FeedState.CONNECTING
        try:
            sample = await asyncio.wait_for(self._exchange(asset), self.timeout)
        except asyncio.TimeoutError:
            self._settle(FeedState.FAILED)
            raise FeedError(
                f"no reply for {asset} within {self.timeout:.1f}s", asset
            ) from None
        except FeedError:
            self._settle(FeedState.FAILED)
            raise
        except (OSError, WebSocketException) as exc:
            self._settle(FeedState.FAILED)
            raise FeedError(f"transport error: {exc}", asset) from exc
        else:
            self._settle(FeedState.RESOLVED)
            logger.debug("DVOL %s = %.2f", asset, sample.value)
        finally:
            await self._close()
            self.state = FeedState.IDLE
        return sample

    def _settle(self, outcome: FeedState):
        self.state = outcome
        self.last_outcome = outcome

    async def _exchange(self, asset: str) -> VolatilitySample:
        self._conn = await self._connect(self.url)
        self._request_id += 1
        await self._conn.send(json.dumps(build_request(asset, self._request_id)))
        self.state = FeedState.AWAITING_RESPONSE
        raw = await self._conn.recv()
        return parse_response(raw, asset)

    async def _close(self):
        conn, self._conn = self._conn, None
        if conn is None:
            return
        try:
            await conn.close()
        except (OSError, WebSocketException) as exc:
            logger.debug("error closing DVOL connection: %s", exc)


# ---------------------------------------------------------------------------
# Periodic polling
# ---------------------------------------------------------------------------


class VolatilityPoller:
    """
    Polls DVOL for each started asset on a fixed period.

    Only assets in ``supported_assets`` are polled.  A failed cycle keeps
    the previous sample and waits for the next tick.  ``stop`` cancels the
    in-flight cycle; no callback fires after it returns.
    """

    def __init__(
        self,
        client_factory: Callable[[], VolatilityFeedClient] = VolatilityFeedClient,
        supported_assets: Iterable[str] = cfg.DVOL_ASSETS,
        interval: float = cfg.DVOL_POLL_INTERVAL,
        on_sample: Optional[Callable[[str, VolatilitySample], None]] = None,
        on_error: Optional[Callable[[str, FeedError], None]] = None,
    ):
        self.client_factory = client_factory
        self.supported_assets = frozenset(a.upper() for a in supported_assets)
        self.interval = interval
        self.on_sample = on_sample
        self.on_error = on_error
        self._samples: dict[str, VolatilitySample] = {}
        self._tasks: dict[str, asyncio.Task] = {}

    def supports(self, asset: str) -> bool:
        return asset.upper() in self.supported_assets

    def latest(self, asset: str) -> Optional[VolatilitySample]:
        return self._samples.get(asset.upper())

    @property
    def assets(self) -> list[str]:
        return sorted(a for a, t in self._tasks.items() if not t.done())

    def start(self, asset: str) -> bool:
        """Begin polling ``asset``.  Returns False for unsupported assets."""
        asset = asset.upper()
        if not self.supports(asset):
            logger.info("live volatility not available for %s", asset)
            return False
        task = self._tasks.get(asset)
        if task is not None and not task.done():
            return True
        self._tasks[asset] = asyncio.get_running_loop().create_task(
            self._run(asset), name=f"dvol-{asset}"
        )
        return True

    async def stop(self, asset: Optional[str] = None):
        if asset is None:
            names = list(self._tasks)
        else:
            names = [asset.upper()] if asset.upper() in self._tasks else []
        tasks = [self._tasks.pop(name) for name in names]
        for task in tasks:
            task.cancel()
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for task, result in zip(tasks, results):
            if task.cancelled():
                continue
            if isinstance(result, BaseException):
                logger.error(
                    "DVOL polling for %s ended with an error",
                    task.get_name(),
                    exc_info=result,
                )

    async def switch(self, asset: Optional[str]) -> bool:
        """Stop everything, then poll ``asset`` if it is supported."""
        await self.stop()
        if not asset:
            return False
        return self.start(asset)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.stop()

    async def _run(self, asset: str):
        client = self.client_factory()
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            await self._cycle(asset, client)
            next_tick += self.interval
            await asyncio.sleep(max(0.0, next_tick - loop.time()))

    async def _cycle(self, asset: str, client: VolatilityFeedClient):
        try:
            sample = await client.fetch(asset)
        except FeedError as exc:
            logger.warning("DVOL update failed for %s: %s", asset, exc)
            self._notify(self.on_error, asset, exc)
            return
        self._samples[asset] = sample
        self._notify(self.on_sample, asset, sample)

    def _notify(self, callback, asset, payload):
        if callback is None:
            return
        try:
            callback(asset, payload)
        except Exception:
            logger.exception("DVOL callback failed for %s", asset)
