"""Rate-limited async HTTP client shared by the remote store adapters."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from httpx_retries import Retry, RetryTransport

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from housingsync.config.http_resilience import ResilienceConfig, RetryPolicy

log = getLogger(__name__)


def build_retry(policy: RetryPolicy) -> Retry:
    return Retry(
        total=policy.total,
        backoff_factor=policy.backoff_factor,
        max_backoff_wait=policy.max_backoff_wait,
        respect_retry_after_header=policy.respect_retry_after_header,
        allowed_methods=tuple(policy.allowed_methods),
        status_forcelist=tuple(policy.status_forcelist),
        retry_on_exceptions=policy.retry_on_exceptions,
        backoff_jitter=policy.backoff_jitter,
    )


def build_limiter(config: ResilienceConfig) -> AsyncLimiter | None:
    if config.ratelimit is None:
        return None
    return AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)


class RequestOptions(TypedDict, total=False):
    params: Mapping[str, str | int] | None
    headers: Mapping[str, str] | None
    json: object


class ResilientClient:
    """One async client per round trip.

    Requests wait on the rate limiter before they are sent. Retries happen in
    the transport, so a retried read still counts as a single call here.
    Pass ``limiter`` to share one budget between clients opened on the same
    event loop. ``transport`` replaces the network layer underneath the retries.
    """

    def __init__(
        self,
        config: ResilienceConfig,
        *,
        limiter: AsyncLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter = limiter if limiter is not None else build_limiter(config)
        self._client = httpx.AsyncClient(
            base_url=config.base_url or "",
            timeout=config.timeout_seconds,
            headers={"User-Agent": config.user_agent},
            transport=RetryTransport(transport=transport, retry=build_retry(config.retry)),
            event_hooks={"response": [self._log_response]},
        )

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: str,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        if self._limiter is None:
            return await self._client.request(method, url, **kwargs)
        async with self._limiter:
            return await self._client.request(method, url, **kwargs)

    async def _log_response(self, response: httpx.Response) -> None:
        # runs once per call, after the transport has given up retrying
        request = response.request
        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            log.warning(
                "%s still rate limited on %s %s", self.config.name, request.method, request.url
            )
            return
        log.debug(
            "%s %s %s -> %s", self.config.name, request.method, request.url, response.status_code
        )
