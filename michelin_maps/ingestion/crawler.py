"""
Web Crawler Module
==================

Queue-driven HTTP fetching with per-host politeness delays, an on-disk
response cache and domain restriction.

A Crawler owns the shared state (queue, cache, rate limiter, HTTP client).
Collectors hang off a crawler and carry their own request/response/error
callbacks, so a listing collector and its detail clone can feed the same
queue while reacting differently to what comes back.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin, urlsplit

import httpx

from michelin_maps.ingestion.config import CollectorConfig
from michelin_maps.ingestion.storage import ResponseCache

logger = logging.getLogger(__name__)

# Headers that describe the wire encoding rather than the decoded body we cache
_UNCACHED_HEADERS = {"content-encoding", "content-length", "transfer-encoding"}

_request_ids = itertools.count(1)


class CrawlerError(Exception):
    """Base class for crawler errors."""


class QueueFull(CrawlerError):
    """Raised when the request queue has reached max_queued_urls."""


class FetchError(CrawlerError):
    """A request that failed at the network level or returned a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None, permanent: bool = False) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.permanent = permanent


class OffsiteRedirect(CrawlerError):
    """Raised when a redirect points at a host outside allowed_domains."""


@dataclass
class Request:
    """A queued GET request and the context travelling with it."""

    url: str
    collector: Collector = field(repr=False)
    ctx: dict[str, Any] = field(default_factory=dict)
    referer: str | None = None
    id: int = field(default_factory=lambda: next(_request_ids))

    @property
    def host(self) -> str:
        return urlsplit(self.url).netloc.lower()

    @property
    def attempt(self) -> int:
        """Fetch attempt number, starting at 1."""
        return int(self.ctx.get("attempt", 1))


@dataclass
class Response:
    """A fetched (or cached) response."""

    request: Request
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    from_cache: bool = False

    @property
    def url(self) -> str:
        return self.request.url

    @property
    def ctx(self) -> dict[str, Any]:
        return self.request.ctx

    @property
    def success(self) -> bool:
        """Check if the response has a 2xx status."""
        return 200 <= self.status_code < 300

    @property
    def encoding(self) -> str:
        content_type = ""
        for name, value in self.headers.items():
            if name.lower() == "content-type":
                content_type = value
                break
        for param in content_type.split(";")[1:]:
            key, _, value = param.strip().partition("=")
            if key.lower() == "charset" and value:
                return value.strip("\"'")
        return "utf-8"

    @property
    def text(self) -> str:
        try:
            return self.body.decode(self.encoding, errors="replace")
        except LookupError:
            return self.body.decode("utf-8", errors="replace")

    def absolute_url(self, href: str) -> str:
        """Resolve a link found on this page."""
        return urljoin(self.url, href.strip())


RequestCallback = Callable[[Request], Awaitable[None] | None]
ResponseCallback = Callable[[Response], Awaitable[None] | None]
ErrorCallback = Callable[[Response, Exception], Awaitable[None] | None]


async def _call(callback: Callable[..., Any], *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


@dataclass
class CrawlStats:
    """Counters for one crawler run."""

    requests: int = 0
    fetched: int = 0
    cache_hits: int = 0
    failed: int = 0
    skipped: int = 0
    dropped: int = 0


class HostRateLimiter:
    """
    Per-host politeness delay.

    Consecutive requests to the same host are spaced by at least
    ``delay + uniform(0, random_delay)`` seconds. Different hosts do not
    wait on each other.
    """

    def __init__(self, delay: float, random_delay: float = 0.0) -> None:
        self.delay = delay
        self.random_delay = random_delay
        self._locks: dict[str, asyncio.Lock] = {}
        self._last_request: dict[str, float] = {}

    def _pause(self) -> float:
        if self.random_delay > 0:
            return self.delay + random.uniform(0, self.random_delay)
        return self.delay

    async def wait(self, host: str) -> None:
        """Block until a request to ``host`` is allowed."""
        lock = self._locks.setdefault(host, asyncio.Lock())
        async with lock:
            last = self._last_request.get(host)
            if last is not None:
                remaining = last + self._pause() - time.monotonic()
                if remaining > 0:
                    await asyncio.sleep(remaining)
            self._last_request[host] = time.monotonic()


class Collector:
    """
    A set of callbacks bound to a crawler.

    Callbacks may be plain functions or coroutines. They run in
    registration order.
    """

    def __init__(self, crawler: Crawler, name: str = "collector") -> None:
        self.crawler = crawler
        self.name = name
        self._request_callbacks: list[RequestCallback] = []
        self._response_callbacks: list[ResponseCallback] = []
        self._error_callbacks: list[ErrorCallback] = []

    def __repr__(self) -> str:
        return f"<Collector(name='{self.name}')>"

    def on_request(self, callback: RequestCallback) -> RequestCallback:
        self._request_callbacks.append(callback)
        return callback

    def on_response(self, callback: ResponseCallback) -> ResponseCallback:
        self._response_callbacks.append(callback)
        return callback

    def on_error(self, callback: ErrorCallback) -> ErrorCallback:
        self._error_callbacks.append(callback)
        return callback

    def clone(self, name: str | None = None) -> Collector:
        """A new collector sharing this one's cache, limits and queue, with no callbacks."""
        return Collector(self.crawler, name=name or f"{self.name}-clone")

    def enqueue(self, url: str, ctx: dict[str, Any] | None = None, referer: str | None = None) -> bool:
        """
        Queue a URL to be fetched and handled by this collector.

        Returns:
            False if the URL was skipped (foreign domain or already visited)

        Raises:
            QueueFull: If the queue is at capacity
        """
        return self.crawler.enqueue(url, self, ctx=ctx, referer=referer)

    def clear_cache(self, request: Request) -> bool:
        return self.crawler.clear_cache(request)

    def retry(self, request: Request) -> None:
        """Queue the same request again, bypassing the visited check."""
        self.crawler.requeue(request)

    async def _emit_request(self, request: Request) -> None:
        for callback in self._request_callbacks:
            await _call(callback, request)

    async def _emit_response(self, response: Response) -> None:
        for callback in self._response_callbacks:
            await _call(callback, response)

    async def _emit_error(self, response: Response, error: Exception) -> None:
        for callback in self._error_callbacks:
            await _call(callback, response, error)


class Crawler:
    """
    Fixed pool of async workers over a bounded FIFO queue.

    Features:
    - Per-host delay with random jitter
    - SHA-1 keyed response cache; cache hits skip the delay
    - Requests and redirects outside allowed_domains are skipped
    - Random User-Agent per request and Referer from the enqueuing page
    - Each URL is visited once unless explicitly retried
    """

    def __init__(
        self,
        config: CollectorConfig,
        cache: ResponseCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.cache = cache or ResponseCache(config.cache_path)
        self.allowed_domains = {domain.lower() for domain in config.allowed_domains}
        self.stats = CrawlStats()
        self.cancel_event: asyncio.Event | None = None

        self._transport = transport
        self._queue: asyncio.Queue[Request] = asyncio.Queue(maxsize=config.max_queued_urls)
        self._visited: set[str] = set()
        self._rate_limiter = HostRateLimiter(config.delay, config.random_delay)
        self._client: httpx.AsyncClient | None = None

    def collector(self, name: str = "collector") -> Collector:
        return Collector(self, name=name)

    @property
    def queued(self) -> int:
        return self._queue.qsize()

    def is_allowed(self, url: str) -> bool:
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https"):
            return False
        return parts.netloc.lower() in self.allowed_domains

    def enqueue(
        self,
        url: str,
        collector: Collector,
        ctx: dict[str, Any] | None = None,
        referer: str | None = None,
    ) -> bool:
        """Queue a request for ``collector``. See Collector.enqueue."""
        if not self.is_allowed(url):
            logger.debug(f"Skipping {url}: host not in allowed domains")
            self.stats.skipped += 1
            return False
        if url in self._visited:
            logger.debug(f"Skipping {url}: already visited")
            self.stats.skipped += 1
            return False

        self._put(Request(url=url, collector=collector, ctx=dict(ctx or {}), referer=referer))
        self._visited.add(url)
        return True

    def requeue(self, request: Request) -> None:
        self._put(request)

    def _put(self, request: Request) -> None:
        try:
            self._queue.put_nowait(request)
        except asyncio.QueueFull as e:
            raise QueueFull(
                f"Request queue is full ({self.config.max_queued_urls} URLs), cannot add {request.url}"
            ) from e

    def clear_cache(self, request: Request) -> bool:
        """Evict the cached response for a request, if any."""
        return self.cache.delete(request.url)

    async def run(self, cancel: asyncio.Event | None = None) -> CrawlStats:
        """
        Process the queue until it is empty or ``cancel`` is set.

        On cancellation, in-flight requests finish, anything still queued is
        dropped and retry sleeps return early.

        Returns:
            Counters for this run
        """
        self.cancel_event = cancel or asyncio.Event()

        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=self.config.request_timeout,
            follow_redirects=True,
            event_hooks={"request": [self._check_host]},
        ) as client:
            self._client = client
            workers = [
                asyncio.create_task(self._worker(i)) for i in range(self.config.worker_count)
            ]
            drained = asyncio.create_task(self._queue.join())
            cancelled = asyncio.create_task(self.cancel_event.wait())
            try:
                await asyncio.wait({drained, cancelled}, return_when=asyncio.FIRST_COMPLETED)
                if self.cancel_event.is_set():
                    dropped = self._drain()
                    logger.info(f"Crawl cancelled, dropped {dropped} queued requests")
                    await self._queue.join()
            finally:
                for task in (*workers, drained, cancelled):
                    task.cancel()
                await asyncio.gather(*workers, drained, cancelled, return_exceptions=True)
                self._client = None

        return self.stats

    def _drain(self) -> int:
        dropped = 0
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._queue.task_done()
            dropped += 1
        self.stats.dropped += dropped
        return dropped

    async def _worker(self, worker_id: int) -> None:
        while True:
            request = await self._queue.get()
            try:
                if self.cancel_event is not None and self.cancel_event.is_set():
                    self.stats.dropped += 1
                    continue
                await self._process(request)
            except Exception:
                logger.exception(f"Worker {worker_id} failed while handling {request.url}")
            finally:
                self._queue.task_done()

    async def _process(self, request: Request) -> None:
        collector = request.collector
        self.stats.requests += 1
        await collector._emit_request(request)

        response, error = await self._fetch(request)
        if error is None:
            await collector._emit_response(response)
        else:
            self.stats.failed += 1
            await collector._emit_error(response, error)

    async def _fetch(self, request: Request) -> tuple[Response, FetchError | None]:
        cached = self.cache.get(request.url)
        if cached is not None:
            self.stats.cache_hits += 1
            logger.debug(f"Cache hit for {request.url}")
            response = Response(
                request=request,
                status_code=cached.status_code,
                headers=cached.headers,
                body=cached.body,
                from_cache=True,
            )
        else:
            response_or_error = await self._download(request)
            if isinstance(response_or_error, FetchError):
                return Response(request=request, status_code=0), response_or_error
            response = response_or_error

        if not response.success:
            return response, FetchError(
                f"HTTP {response.status_code} for {request.url}", response.status_code
            )
        return response, None

    async def _check_host(self, http_request: httpx.Request) -> None:
        # Runs for every hop, so redirects cannot leave allowed_domains
        url = str(http_request.url)
        if not self.is_allowed(url):
            raise OffsiteRedirect(f"Redirected to {url}, host not in allowed domains")

    async def _download(self, request: Request) -> Response | FetchError:
        if self._client is None:
            raise CrawlerError("Crawler.run() must be active to fetch")

        await self._rate_limiter.wait(request.host)

        headers = {"User-Agent": random.choice(self.config.user_agents)}
        if request.referer:
            headers["Referer"] = request.referer

        try:
            http_response = await self._client.get(request.url, headers=headers)
        except OffsiteRedirect as e:
            logger.warning(f"Not following redirect from {request.url}: {e}")
            return FetchError(str(e), permanent=True)
        except httpx.TimeoutException:
            logger.debug(f"Timeout fetching {request.url} after {self.config.request_timeout}s")
            return FetchError(f"Timeout after {self.config.request_timeout}s")
        except httpx.HTTPError as e:
            logger.debug(f"HTTP error fetching {request.url}: {e}")
            return FetchError(str(e) or type(e).__name__)

        self.stats.fetched += 1
        stored_headers = {
            name: value
            for name, value in http_response.headers.items()
            if name.lower() not in _UNCACHED_HEADERS
        }
        try:
            self.cache.put(
                request.url,
                http_response.status_code,
                stored_headers,
                http_response.content,
                reason=http_response.reason_phrase,
            )
        except OSError as e:
            logger.warning(f"Failed to cache response for {request.url}: {e}")

        return Response(
            request=request,
            status_code=http_response.status_code,
            headers=stored_headers,
            body=http_response.content,
        )
