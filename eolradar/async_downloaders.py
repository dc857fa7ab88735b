"""Async loader that refreshes both feeds concurrently.

Uses ``aiohttp`` so the schedule and security feeds are probed and
downloaded at the same time.  The two resources own disjoint cache files,
so no coordination between them is needed.  Retry, backoff and cache
semantics are identical to the synchronous ``ValidationCache`` path.

Usage from synchronous code::

    from eolradar.async_downloaders import load_feeds_parallel
    results = load_feeds_parallel(CheckerConfig())
    schedule = results.schedule_or_raise()
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import aiohttp
from requests.structures import CaseInsensitiveDict
from tenacity import AsyncRetrying

from .cache import ValidationCache, Validator
from .config import SCHEDULE, SECURITY, CheckerConfig, ResourceConfig
from .downloaders import FETCH_TIMEOUT, MAX_ATTEMPTS, RETRY_BASE_DELAY, FetchResponse, retrying
from .exceptions import FetchTimeoutError, HTTPStatusError, TransientNetworkError
from .schemas import ScheduleMapping, SecurityDatabase, parse_schedule, parse_security_database

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "User-Agent": "EOLRadar/0.1 (+https://github.com/)",
    "Accept": "application/json",
}

VALIDATORS: dict[str, Validator] = {
    SCHEDULE: parse_schedule,
    SECURITY: parse_security_database,
}


@dataclass
class FeedResults:
    """Outcome of a parallel load.

    Attributes:
        schedule: Validated release schedule, if it loaded.
        security: Validated vulnerability database, if it loaded.
        errors: Resource name → the typed error that stopped it.
    """

    schedule: ScheduleMapping | None = None
    security: SecurityDatabase | None = None
    errors: dict[str, Exception] = field(default_factory=dict)

    def schedule_or_raise(self) -> ScheduleMapping:
        if SCHEDULE in self.errors:
            raise self.errors[SCHEDULE]
        return self.schedule or {}

    def security_or_raise(self) -> SecurityDatabase:
        if SECURITY in self.errors:
            raise self.errors[SECURITY]
        return self.security or {}


# ─── Individual async fetchers ───────────────────────────────────────────────


async def async_fetch(
    session: aiohttp.ClientSession,
    url: str,
    method: str = "GET",
    timeout: float = FETCH_TIMEOUT,
) -> FetchResponse:
    """Async version of downloaders.fetch.

    The request runs under ``ClientTimeout(total=timeout)``; when it
    elapses aiohttp cancels the request and releases the connection.
    """
    try:
        async with session.request(method, url, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
            content = b"" if method.upper() == "HEAD" else await resp.read()
            return FetchResponse(
                url=url,
                status_code=resp.status,
                reason=resp.reason or "",
                headers=CaseInsensitiveDict(resp.headers),
                content=content,
            )
    except asyncio.TimeoutError as e:
        raise FetchTimeoutError(f"Timed out after {timeout:g}s fetching {url}") from e
    except aiohttp.ClientError as e:
        raise TransientNetworkError(f"Request to {url} failed: {e}") from e


async def async_fetch_with_retry(
    session: aiohttp.ClientSession,
    url: str,
    method: str = "GET",
    max_attempts: int = MAX_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY,
    timeout: float = FETCH_TIMEOUT,
) -> FetchResponse:
    """Async version of downloaders.fetch_with_retry."""
    async for attempt in AsyncRetrying(**retrying(max_attempts, base_delay)):
        with attempt:
            response = await async_fetch(session, url, method=method, timeout=timeout)
            if not response.ok:
                raise HTTPStatusError(response.status_code, response.reason, url)
    return response


async def fetch_with_cache_async(
    cache: ValidationCache,
    resource: ResourceConfig,
    validator: Validator,
    session: aiohttp.ClientSession,
) -> Any:
    """Async version of ValidationCache.fetch_with_cache."""

    async def _fetch(method: str) -> FetchResponse:
        return await async_fetch_with_retry(
            session,
            resource.url,
            method=method,
            max_attempts=cache.max_attempts,
            base_delay=cache.base_delay,
            timeout=cache.timeout,
        )

    cached_etag = cache.load_token(resource)
    logger.debug("Fetching: %s", resource.url)

    try:
        upstream_etag = (await _fetch("HEAD")).etag

        if cache.is_fresh(resource, cached_etag, upstream_etag):
            logger.debug("Using cached version: %s", resource.payload_file)
            return cache.validate(resource, cache.load_payload(resource), validator)

        logger.debug("Downloading fresh data from %s", resource.url)
        payload = (await _fetch("GET")).content
    except TransientNetworkError as e:
        return cache.fallback(resource, validator, e)

    data = cache.validate(resource, payload, validator)
    cache.store(resource, payload, upstream_etag)
    return data


# ─── Orchestrator ────────────────────────────────────────────────────────────


async def _gather(cache: ValidationCache, config: CheckerConfig, session: aiohttp.ClientSession) -> FeedResults:
    resources = config.resources()
    tasks = [fetch_with_cache_async(cache, r, VALIDATORS[r.name], session) for r in resources]
    outcomes = await asyncio.gather(*tasks, return_exceptions=True)

    results = FeedResults()
    for resource, outcome in zip(resources, outcomes):
        if isinstance(outcome, Exception):
            logger.debug("%s load failed: %s", resource.name, outcome)
            results.errors[resource.name] = outcome
        elif resource.name == SCHEDULE:
            results.schedule = outcome
        else:
            results.security = outcome
    return results


async def _load_all(config: CheckerConfig, session: aiohttp.ClientSession | None = None) -> FeedResults:
    cache = ValidationCache(
        config.cache_dir,
        max_attempts=config.max_attempts,
        base_delay=config.retry_delay,
        timeout=config.timeout,
    )
    if session is not None:
        return await _gather(cache, config, session)
    async with aiohttp.ClientSession(headers=DEFAULT_HEADERS) as s:
        return await _gather(cache, config, s)


def load_feeds_parallel(config: CheckerConfig, session: aiohttp.ClientSession | None = None) -> FeedResults:
    """Synchronous wrapper that loads both feeds concurrently via asyncio.

    Args:
        config: Active configuration (cache directory, URLs, retry policy).
        session: Optional aiohttp session; one is created when omitted.

    Returns:
        ``FeedResults``; per-resource failures are kept in ``errors`` and
        re-raised by ``schedule_or_raise`` / ``security_or_raise``.
    """
    return asyncio.run(_load_all(config, session=session))
