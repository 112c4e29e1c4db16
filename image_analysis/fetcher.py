"""ImageFetcher — bounded-retry HTTP GET with domain-aware timeouts."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx

from image_analysis.config import Config
from image_analysis.constants import (
    DEFAULT_SLOW_DOMAINS,
    FETCH_ALLOWED_SCHEMES,
    FETCH_CHUNK_SIZE,
    FETCH_MAX_ATTEMPTS,
    FETCH_MAX_BYTES,
    FETCH_REFERER,
    FETCH_RETRY_DELAY,
    FETCH_TIMEOUT,
    FETCH_USER_AGENT,
    IMAGE_CONTENT_TYPE_PREFIX,
    MSG_FETCH_ATTEMPT,
    MSG_FETCH_RETRY,
    SLOW_DOMAIN_TIMEOUT,
)
from image_analysis.errors import (
    FetchContentTypeError,
    FetchError,
    FetchHttpError,
    FetchNetworkError,
    FetchTimeoutError,
    FetchTooLargeError,
    InvalidImageUrlError,
)
from image_analysis.models import FetchResult

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-delay retry budget. Every fetch failure is retryable."""

    max_attempts: int = FETCH_MAX_ATTEMPTS
    delay_seconds: float = FETCH_RETRY_DELAY

    def attempts(self) -> range:
        return range(1, self.max_attempts + 1)

    def is_last(self, attempt: int) -> bool:
        return attempt >= self.max_attempts


# ── pure helpers (module-level so tests can import them directly) ──────────────


def parse_image_url(url: str) -> httpx.URL:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError) as exc:
        raise InvalidImageUrlError(url) from exc
    match (parsed.scheme, parsed.host):
        case (scheme, host) if scheme in FETCH_ALLOWED_SCHEMES and host:
            return parsed
        case _:
            raise InvalidImageUrlError(url)


def is_slow_domain(host: str, slow_domains: tuple[str, ...]) -> bool:
    host = host.lower()
    return any(host == d or host.endswith("." + d) for d in slow_domains)


def media_type(content_type: Optional[str]) -> Optional[str]:
    """'image/PNG; charset=binary' → 'image/png'."""
    match content_type:
        case str() as ct if ct.strip():
            return ct.split(";", 1)[0].strip().lower()
        case _:
            return None


def to_fetch_error(exc: Exception, timeout: float) -> FetchError:
    match exc:
        case FetchError():
            return exc
        case httpx.TimeoutException():
            return FetchTimeoutError(timeout)
        case httpx.HTTPStatusError():
            return FetchHttpError(exc.response.status_code)
        case _:
            return FetchNetworkError(str(exc) or type(exc).__name__)


# ── fetcher ───────────────────────────────────────────────────────────────────


class ImageFetcher:
    """Downloads an image URL, retrying every failure with a fixed delay."""

    def __init__(
        self,
        timeout: float = FETCH_TIMEOUT,
        slow_domain_timeout: float = SLOW_DOMAIN_TIMEOUT,
        slow_domains: tuple[str, ...] = (DEFAULT_SLOW_DOMAINS,),
        retry: RetryPolicy = RetryPolicy(),
        max_bytes: int = FETCH_MAX_BYTES,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._timeout = timeout
        self._slow_domain_timeout = slow_domain_timeout
        self._slow_domains = slow_domains
        self._retry = retry
        self._max_bytes = max_bytes
        self._transport = transport
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: Config) -> "ImageFetcher":
        return cls(
            timeout=config.fetch_timeout,
            slow_domain_timeout=config.slow_domain_timeout,
            slow_domains=config.slow_domains,
            retry=RetryPolicy(
                max_attempts=config.fetch_max_attempts,
                delay_seconds=config.fetch_retry_delay,
            ),
        )

    def timeout_for(self, url: str) -> float:
        host = parse_image_url(url).host
        match is_slow_domain(host, self._slow_domains):
            case True:
                return self._slow_domain_timeout
            case False:
                return self._timeout

    async def fetch(self, url: str) -> FetchResult:
        timeout = self.timeout_for(url)
        last_error: Exception | None = None

        async with httpx.AsyncClient(
            transport=self._transport,
            follow_redirects=True,
            headers={"User-Agent": FETCH_USER_AGENT, "Referer": FETCH_REFERER},
        ) as client:
            for attempt in self._retry.attempts():
                logger.info(MSG_FETCH_ATTEMPT, attempt, self._retry.max_attempts, url)
                try:
                    return await self._attempt(client, url, timeout)
                except (httpx.HTTPError, FetchError) as exc:
                    last_error = exc
                    if self._retry.is_last(attempt):
                        break
                    logger.warning(MSG_FETCH_RETRY, self._retry.delay_seconds, exc)
                    await self._sleep(self._retry.delay_seconds)

        match last_error:
            case FetchError():
                raise last_error
            case _:
                raise to_fetch_error(last_error, timeout) from last_error

    async def _attempt(
        self, client: httpx.AsyncClient, url: str, timeout: float
    ) -> FetchResult:
        async with client.stream("GET", url, timeout=timeout) as response:
            response.raise_for_status()

            raw_type = response.headers.get("content-type")
            content_type = media_type(raw_type)
            match content_type:
                case str() as ct if ct.startswith(IMAGE_CONTENT_TYPE_PREFIX):
                    pass
                case _:
                    raise FetchContentTypeError(raw_type)

            declared = response.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > self._max_bytes:
                raise FetchTooLargeError(self._max_bytes)

            body = bytearray()
            async for chunk in response.aiter_bytes(FETCH_CHUNK_SIZE):
                body.extend(chunk)
                if len(body) > self._max_bytes:
                    raise FetchTooLargeError(self._max_bytes)

        return FetchResult(data=bytes(body), content_type=content_type, size_bytes=len(body))
