"""
Retry Controller Module
=======================

Linear backoff retries for failed requests. The attempt number travels in
the request context so it survives the trip back through the queue.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from michelin_maps.ingestion.config import DEFAULT_NON_RETRYABLE_STATUSES, CollectorConfig
from michelin_maps.ingestion.crawler import Collector, QueueFull, Request, Response

logger = logging.getLogger(__name__)

FORBIDDEN = 403


@dataclass
class RetryPolicy:
    """
    When and how long to wait before fetching a failed request again.

    A request is fetched at most ``max_retry`` times. The wait before
    attempt n+1 is ``n * base_delay``.
    """

    max_retry: int = 3
    base_delay: float = 2.0
    non_retryable_statuses: frozenset[int] = field(
        default_factory=lambda: frozenset(DEFAULT_NON_RETRYABLE_STATUSES)
    )

    @classmethod
    def from_config(cls, config: CollectorConfig) -> RetryPolicy:
        return cls(
            max_retry=config.max_retry,
            base_delay=config.delay,
            non_retryable_statuses=frozenset(config.non_retryable_statuses),
        )

    def is_permanent(self, status_code: int | None) -> bool:
        """Statuses that no amount of retrying will fix. 403 always is."""
        if not status_code:
            return False
        return status_code == FORBIDDEN or status_code in self.non_retryable_statuses

    def should_retry(self, status_code: int | None, attempt: int) -> bool:
        return not self.is_permanent(status_code) and attempt < self.max_retry

    def backoff(self, attempt: int) -> float:
        return attempt * self.base_delay


class RetryController:
    """
    Error handler that re-queues failed requests according to a RetryPolicy.

    Usage:
        controller = RetryController(RetryPolicy.from_config(config))
        controller.attach(collector)
    """

    def __init__(self, policy: RetryPolicy) -> None:
        self.policy = policy
        self.retried = 0
        self.given_up = 0

    def attach(self, collector: Collector) -> None:
        """Register the request and error hooks on a collector."""
        collector.on_request(self.on_request)
        collector.on_error(self.on_error)

    def on_request(self, request: Request) -> None:
        request.ctx.setdefault("attempt", 1)

    async def on_error(self, response: Response, error: Exception) -> None:
        request = response.request
        attempt = request.attempt
        status_code = response.status_code or None

        if getattr(error, "permanent", False) or self.policy.is_permanent(status_code):
            logger.warning(
                f"Not retrying {request.url}: {error} "
                f"(attempt {attempt}, headers={response.headers})"
            )
            self.given_up += 1
            return

        if not self.policy.should_retry(status_code, attempt):
            logger.error(
                f"Giving up on {request.url} after {attempt} attempts: {error} "
                f"(status {status_code}, headers={response.headers})"
            )
            self.given_up += 1
            return

        request.collector.clear_cache(request)

        backoff = self.policy.backoff(attempt)
        logger.warning(
            f"Request failed: {error}. Retrying {request.url} in {backoff:.1f}s "
            f"(attempt {attempt}/{self.policy.max_retry})"
        )
        if await self._sleep(request, backoff):
            logger.info(f"Retry of {request.url} abandoned, crawl cancelled")
            return

        request.ctx["attempt"] = attempt + 1
        try:
            request.collector.retry(request)
        except QueueFull as e:
            logger.error(f"Could not re-queue {request.url}: {e}")
            self.given_up += 1
            return
        self.retried += 1

    @staticmethod
    async def _sleep(request: Request, seconds: float) -> bool:
        """Sleep, waking early on cancellation. Returns True if cancelled."""
        cancel = request.collector.crawler.cancel_event
        if cancel is None:
            await asyncio.sleep(seconds)
            return False
        try:
            await asyncio.wait_for(cancel.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True
