"""Retry/backoff policy around the remote gateway."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from tenacity import AsyncRetrying, RetryCallState, RetryError, retry_if_exception_type, stop_after_attempt, wait_fixed

from wilayah_harvest.common.errors import FatalFetchError
from wilayah_harvest.common.http import HttpRequestError, RetryConfig
from wilayah_harvest.common.logging import log_event
from wilayah_harvest.common.models import HarvestStats, LevelNode, PostalEntry
from wilayah_harvest.harvest.gateway import RemoteGateway
from wilayah_harvest.harvest.postal import parse_postal_entries

LOGGER = logging.getLogger(__name__)


class RetryingFetcher:
    """Primary queries are fatal once retries run out; postal queries degrade to empty."""

    def __init__(
        self,
        gateway: RemoteGateway,
        *,
        retry: RetryConfig | None = None,
        logger: logging.Logger | None = None,
        stats: HarvestStats | None = None,
    ) -> None:
        self.gateway = gateway
        self.retry = retry or RetryConfig()
        self.logger = logger or LOGGER
        self.stats = stats if stats is not None else HarvestStats()

    def _before_sleep(self, what: str, level: str | None, parent: str | None) -> Callable[[RetryCallState], None]:
        def _log(state: RetryCallState) -> None:
            exc = state.outcome.exception() if state.outcome is not None else None
            log_event(
                self.logger,
                f"{what} failed, retrying: {exc}",
                severity=logging.WARNING,
                event="FETCH_RETRY",
                status="retry",
                region_level=level,
                parent=parent,
                attempt=state.attempt_number,
                error_code=getattr(exc, "error_code", None),
            )

        return _log

    async def _call(
        self,
        what: str,
        call: Callable[..., Awaitable[list[dict[str, Any]]]],
        *args: Any,
        level: str | None = None,
        parent: str | None = None,
    ) -> list[dict[str, Any]]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry.max_attempts),
            wait=wait_fixed(self.retry.delay_seconds),
            retry=retry_if_exception_type(HttpRequestError),
            before_sleep=self._before_sleep(what, level, parent),
            reraise=True,
        )
        self.stats.fetches += 1
        # Must be the coroutine function itself: tenacity calls a plain
        # callable synchronously and would hand back the unawaited coroutine.
        return await retrying(call, *args)

    async def fetch_periods(self) -> list[dict[str, Any]]:
        try:
            return await self._call("period discovery", self.gateway.list_periods)
        except (HttpRequestError, RetryError) as exc:
            raise FatalFetchError(f"Period discovery failed after {self.retry.max_attempts} attempts") from exc

    async def fetch_children(self, level: LevelNode, parent_code: str, period_code: str) -> list[dict[str, Any]]:
        try:
            return await self._call(
                f"{level.name} query",
                self.gateway.list_children,
                level,
                parent_code,
                period_code,
                level=level.name,
                parent=parent_code,
            )
        except (HttpRequestError, RetryError) as exc:
            log_event(
                self.logger,
                f"giving up on {level.name} children of {parent_code}",
                severity=logging.ERROR,
                event="FETCH_FAILED",
                status="error",
                region_level=level.name,
                parent=parent_code,
                attempt=self.retry.max_attempts,
                error_code=FatalFetchError.error_code,
            )
            raise FatalFetchError(
                f"{level.name} children of {parent_code} unreachable after {self.retry.max_attempts} attempts"
            ) from exc

    async def fetch_postal(self, level: LevelNode, parent_code: str, period_code: str) -> list[PostalEntry]:
        try:
            payload = await self._call(
                f"{level.postal_name} postal query",
                self.gateway.list_postal,
                level,
                parent_code,
                period_code,
                level=level.name,
                parent=parent_code,
            )
        except (HttpRequestError, RetryError) as exc:
            self.stats.postal_skips += 1
            log_event(
                self.logger,
                f"skipping postal codes for {level.name} children of {parent_code}: {exc}",
                severity=logging.WARNING,
                event="POSTAL_SKIPPED",
                status="degraded",
                region_level=level.name,
                parent=parent_code,
                attempt=self.retry.max_attempts,
                error_code=getattr(exc, "error_code", None),
            )
            return []
        return parse_postal_entries(payload)
