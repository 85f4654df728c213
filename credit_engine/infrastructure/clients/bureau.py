"""Credit bureau gateways: deterministic double, latency simulator and HTTP client"""

import asyncio
import logging
import random
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Mapping, Optional

import httpx

from credit_engine.config import settings as default_settings
from credit_engine.domain.exceptions import BureauRecordNotFoundError, BureauUnavailableError
from credit_engine.domain.models import BureauSnapshot
from credit_engine.infrastructure.observability.metrics import (
    bureau_failures_counter,
    bureau_latency_histogram,
    bureau_retries_counter,
)

BUREAU_SCORE_MIN = 300
BUREAU_SCORE_MAX = 850


class BureauGateway(ABC):
    """
    Lookup of one applicant's bureau snapshot.

    Subclasses implement `_fetch`; `lookup` wraps it with latency metrics,
    failure counting and structured logs. A lookup is all-or-nothing: it
    returns a complete snapshot or raises.
    """

    async def lookup(self, document_id: str) -> BureauSnapshot:
        """
        Raises:
            BureauUnavailableError: bureau unreachable, timed out or answered garbage
            BureauRecordNotFoundError: unknown document, strict gateways only
        """
        start_time = time.perf_counter()
        try:
            snapshot = await self._fetch(document_id)
        except BureauUnavailableError as e:
            bureau_failures_counter.inc()
            logging.error(f"Bureau lookup failed: {e}", extra={"document_id": document_id})
            raise
        finally:
            bureau_latency_histogram.observe(time.perf_counter() - start_time)

        logging.info(
            "Bureau lookup completed",
            extra={
                "document_id": document_id,
                "blacklisted": snapshot.blacklisted,
                "historical_score": snapshot.historical_score,
                "active_credits": snapshot.active_credits,
                "recent_delinquency": snapshot.recent_delinquency,
            },
        )
        return snapshot

    @abstractmethod
    async def _fetch(self, document_id: str) -> BureauSnapshot:
        raise NotImplementedError


class StaticBureauGateway(BureauGateway):
    """Canned snapshots, zero latency. Unknown documents get the neutral record."""

    def __init__(self, snapshots: Mapping[str, BureauSnapshot] | None = None, failing: Iterable[str] = ()):
        self.snapshots = dict(snapshots or {})
        self.failing = set(failing)
        self.calls: list[str] = []

    async def _fetch(self, document_id: str) -> BureauSnapshot:
        self.calls.append(document_id)
        if document_id in self.failing:
            raise BureauUnavailableError(f"Bureau unavailable for document {document_id}")
        return self.snapshots.get(document_id, BureauSnapshot.neutral())


class SimulatedBureauGateway(BureauGateway):
    """
    Stand-in for a real bureau with network-like latency.

    Documents on the blacklist get a low score, many active credits and a
    delinquency; "regular history" documents get a mid score with a 40%
    chance of delinquency; anyone else looks like a healthy customer.

    Each of the four sub-queries sleeps 5-50ms and they run concurrently.
    Values are drawn before sleeping so a seeded instance is reproducible.
    """

    def __init__(
        self,
        blacklist: Iterable[str] = (),
        regular_history: Iterable[str] = (),
        seed: Optional[int] = None,
        latency_min_ms: int = 5,
        latency_max_ms: int = 50,
    ):
        self.blacklist = frozenset(blacklist)
        self.regular_history = frozenset(regular_history)
        self.random = random.Random(seed)
        self.latency_min_ms = latency_min_ms
        self.latency_max_ms = max(latency_min_ms, latency_max_ms)

    def _latency(self) -> float:
        return self.random.randint(self.latency_min_ms, self.latency_max_ms) / 1000

    async def _answer(self, value: Any) -> Any:
        await asyncio.sleep(self._latency())
        return value

    def _blacklisted(self, document_id: str) -> bool:
        return document_id in self.blacklist

    def _historical_score(self, document_id: str) -> int:
        if document_id in self.blacklist:
            return self.random.randint(300, 449)
        if document_id in self.regular_history:
            return self.random.randint(550, 649)
        return self.random.randint(650, 849)

    def _active_credits(self, document_id: str) -> int:
        if document_id in self.blacklist:
            return self.random.randint(5, 10)
        if document_id in self.regular_history:
            return self.random.randint(2, 4)
        return self.random.randint(0, 2)

    def _recent_delinquency(self, document_id: str) -> bool:
        if document_id in self.blacklist:
            return True
        if document_id in self.regular_history:
            return self.random.random() < 0.4
        return False

    async def _fetch(self, document_id: str) -> BureauSnapshot:
        blacklisted, score, credits, delinquency = await asyncio.gather(
            self._answer(self._blacklisted(document_id)),
            self._answer(self._historical_score(document_id)),
            self._answer(self._active_credits(document_id)),
            self._answer(self._recent_delinquency(document_id)),
        )
        return BureauSnapshot(
            blacklisted=blacklisted,
            historical_score=score,
            active_credits=credits,
            recent_delinquency=delinquency,
        )


_NOT_FOUND = object()


class HttpBureauGateway(BureauGateway):
    """
    Client for an external credit bureau REST API.

    The four sub-queries (blacklist, score, active credits, delinquency) are
    issued concurrently. Each is retried at most once on a transport error,
    timeout or 5xx. A 404 on any of them means the bureau has no file for the
    document.
    """

    SUB_QUERIES = {
        "blacklist": "blacklisted",
        "score": "historical_score",
        "active-credits": "active_credits",
        "delinquency": "recent_delinquency",
    }

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        strict_unknown: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or default_settings.bureau_api_base
        self.timeout = timeout or default_settings.http_timeout_seconds
        retries = default_settings.bureau_max_retries if max_retries is None else max_retries
        self.max_retries = max(0, min(retries, 1))
        self.strict_unknown = default_settings.bureau_strict_unknown if strict_unknown is None else strict_unknown
        self.transport = transport

    async def _get(self, client: httpx.AsyncClient, document_id: str, path: str, key: str) -> Any:
        attempt = 0
        while True:
            try:
                response = await client.get(f"/bureau/{document_id}/{path}")
                if response.status_code == 404:
                    return _NOT_FOUND
                response.raise_for_status()
                return response.json()[key]

            except httpx.HTTPStatusError as e:
                if e.response.status_code < 500 or attempt >= self.max_retries:
                    raise BureauUnavailableError(f"Bureau API error on {path}: {e.response.status_code}") from e
            except httpx.TimeoutException as e:
                if attempt >= self.max_retries:
                    raise BureauUnavailableError(f"Bureau API timeout on {path} after {self.timeout}s") from e
            except httpx.TransportError as e:
                if attempt >= self.max_retries:
                    raise BureauUnavailableError(f"Bureau API unreachable on {path}: {e}") from e
            except httpx.HTTPError as e:
                raise BureauUnavailableError(f"Unreadable bureau response on {path}: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise BureauUnavailableError(f"Invalid bureau data on {path}: {e}") from e

            attempt += 1
            bureau_retries_counter.inc()
            logging.warning(f"Retrying bureau sub-query {path}", extra={"document_id": document_id, "attempt": attempt})

    async def _fetch(self, document_id: str) -> BureauSnapshot:
        async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
            results = await asyncio.gather(
                *(self._get(client, document_id, path, key) for path, key in self.SUB_QUERIES.items()),
                return_exceptions=True,
            )

        # All four or nothing; never hand partial bureau data to scoring
        for result in results:
            if isinstance(result, BaseException):
                raise result

        if any(result is _NOT_FOUND for result in results):
            if self.strict_unknown:
                raise BureauRecordNotFoundError(f"Bureau has no record for document {document_id}")
            return BureauSnapshot.neutral()

        return self._parse(dict(zip(self.SUB_QUERIES.values(), results)))

    @staticmethod
    def _parse(data: Dict[str, Any]) -> BureauSnapshot:
        try:
            score = data["historical_score"]
            if score is not None:
                score = int(score)
                if not BUREAU_SCORE_MIN <= score <= BUREAU_SCORE_MAX:
                    raise ValueError(f"historical score {score} outside {BUREAU_SCORE_MIN}-{BUREAU_SCORE_MAX}")
            active_credits = int(data["active_credits"])
            if active_credits < 0:
                raise ValueError(f"negative active credit count {active_credits}")
            return BureauSnapshot(
                blacklisted=_flag(data, "blacklisted"),
                historical_score=score,
                active_credits=active_credits,
                recent_delinquency=_flag(data, "recent_delinquency"),
            )
        except (KeyError, ValueError, TypeError) as e:
            raise BureauUnavailableError(f"Invalid bureau data: {e}") from e


def _flag(data: Dict[str, Any], key: str) -> bool:
    value = data[key]
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be a boolean, got {value!r}")
    return value


def create_bureau_gateway(config=default_settings) -> BureauGateway:
    """Build the gateway selected by `bureau_mode`; called once at startup"""
    if config.bureau_mode == "http":
        return HttpBureauGateway(
            base_url=config.bureau_api_base,
            timeout=config.http_timeout_seconds,
            max_retries=config.bureau_max_retries,
            strict_unknown=config.bureau_strict_unknown,
        )
    if config.bureau_mode == "simulated":
        return SimulatedBureauGateway(
            blacklist=config.bureau_blacklist,
            regular_history=config.bureau_regular_history,
            seed=config.bureau_seed,
            latency_min_ms=config.bureau_latency_min_ms,
            latency_max_ms=config.bureau_latency_max_ms,
        )
    raise ValueError(f"Unknown bureau_mode '{config.bureau_mode}', expected 'simulated' or 'http'")
