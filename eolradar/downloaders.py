"""HTTP fetch helpers for the EOLRadar feeds.

``fetch`` performs exactly one request with an overall deadline;
``fetch_with_retry`` wraps it with bounded retries and linear backoff.
All network I/O is isolated here; the cache and resolvers work with
in-memory payloads.
"""

import io
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any

import requests
from requests.structures import CaseInsensitiveDict
from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt, wait_incrementing

from .exceptions import FetchTimeoutError, HTTPStatusError, TransientNetworkError

logger = logging.getLogger(__name__)

SCHEDULE_URL = "https://raw.githubusercontent.com/nodejs/Release/main/schedule.json"
SECURITY_URL = "https://raw.githubusercontent.com/nodejs/security-wg/main/vuln/core/index.json"

FETCH_TIMEOUT = 10.0  # seconds, measured from request start
MAX_ATTEMPTS = 3
RETRY_BASE_DELAY = 1.0  # seconds; attempt n waits n * base
CHUNK_SIZE = 16 * 1024


@dataclass
class FetchResponse:
    """A fully-read HTTP response.

    The body is read inside the deadline and the connection is released
    before this object is handed out, so callers never hold sockets.
    """

    url: str
    status_code: int
    reason: str = ""
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    content: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    @property
    def etag(self) -> str | None:
        value = self.headers.get("ETag")
        return value.strip() if value else None


def requests_session() -> requests.Session:
    """Create a requests session with the EOLRadar headers.

    Returns:
        Configured ``requests.Session``.
    """
    s = requests.Session()
    s.headers.update(
        {
            "User-Agent": "EOLRadar/0.1 (+https://github.com/)",
            "Accept": "application/json",
        }
    )
    return s


def _watchdog(response: requests.Response, delay: float, expired: threading.Event) -> threading.Timer:
    """Shut the response down once ``delay`` seconds have passed.

    ``urllib3``'s ``HTTPResponse.shutdown`` unblocks a read that is waiting
    on the socket, so a body trickled in byte by byte cannot outlive the
    deadline.
    """

    def _expire() -> None:
        expired.set()
        response.raw.shutdown()

    timer = threading.Timer(max(delay, 0.0), _expire)
    timer.daemon = True
    timer.start()
    return timer


def fetch(
    session: requests.Session,
    url: str,
    method: str = "GET",
    timeout: float = FETCH_TIMEOUT,
) -> FetchResponse:
    """Perform one HTTP request bounded by an overall deadline.

    The body is streamed under a watchdog timer that interrupts the read
    when ``timeout`` seconds have passed since the request started; the
    deadline is also checked between chunks.  The response is closed on
    every exit path.

    Args:
        session: Requests session.
        url: URL to fetch.
        method: HTTP method (``GET`` or ``HEAD``).
        timeout: Seconds allowed from request start to a fully-read body.

    Returns:
        The read ``FetchResponse``; the HTTP status is not judged here.

    Raises:
        FetchTimeoutError: The deadline elapsed.
        TransientNetworkError: Any other transport failure.
    """
    deadline = time.monotonic() + timeout
    expired = threading.Event()
    timed_out = f"Timed out after {timeout:g}s fetching {url}"
    try:
        with session.request(method, url, stream=True, timeout=timeout) as r:
            buf = io.BytesIO()
            if method.upper() != "HEAD":
                watchdog = _watchdog(r, deadline - time.monotonic(), expired)
                try:
                    for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                        if expired.is_set() or time.monotonic() > deadline:
                            raise FetchTimeoutError(timed_out)
                        if chunk:
                            buf.write(chunk)
                finally:
                    watchdog.cancel()
                # a shut-down stream can end early without raising
                if expired.is_set():
                    raise FetchTimeoutError(timed_out)
            return FetchResponse(
                url=url,
                status_code=r.status_code,
                reason=r.reason or "",
                headers=CaseInsensitiveDict(r.headers),
                content=buf.getvalue(),
            )
    except requests.Timeout as e:
        raise FetchTimeoutError(timed_out) from e
    except requests.RequestException as e:
        if expired.is_set():
            raise FetchTimeoutError(timed_out) from e
        raise TransientNetworkError(f"Request to {url} failed: {e}") from e


def _log_retry(retry_state: RetryCallState) -> None:
    """Log a failed attempt before tenacity sleeps."""
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    max_attempts = getattr(retry_state.retry_object.stop, "max_attempt_number", "?")
    logger.warning(
        "Fetch attempt %d/%s failed: %s. Retrying...",
        retry_state.attempt_number,
        max_attempts,
        exc,
    )


def retrying(
    max_attempts: int = MAX_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY,
    **kwargs: Any,
) -> dict[str, Any]:
    """Build the tenacity arguments shared by the sync and async fetchers.

    Args:
        max_attempts: Total attempts, including the first.
        base_delay: Wait after attempt ``n`` is ``n * base_delay`` seconds.
        **kwargs: Extra tenacity arguments (e.g. ``sleep``).

    Returns:
        Keyword arguments for ``Retrying`` / ``AsyncRetrying``.
    """
    return {
        "stop": stop_after_attempt(max_attempts),
        "wait": wait_incrementing(start=base_delay, increment=base_delay),
        "retry": retry_if_exception_type(TransientNetworkError),
        "before_sleep": _log_retry,
        "reraise": True,
        **kwargs,
    }


def fetch_with_retry(
    session: requests.Session,
    url: str,
    method: str = "GET",
    max_attempts: int = MAX_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY,
    timeout: float = FETCH_TIMEOUT,
) -> FetchResponse:
    """Fetch a URL, retrying timeouts, transport errors and HTTP errors.

    Args:
        session: Requests session.
        url: URL to fetch.
        method: HTTP method.
        max_attempts: Total attempts (default 3).
        base_delay: Linear backoff unit in seconds (default 1.0).
        timeout: Per-attempt deadline in seconds.

    Returns:
        The first successful ``FetchResponse``.

    Raises:
        TransientNetworkError: The final attempt's error, unchanged.
    """
    for attempt in Retrying(**retrying(max_attempts, base_delay)):
        with attempt:
            response = fetch(session, url, method=method, timeout=timeout)
            if not response.ok:
                raise HTTPStatusError(response.status_code, response.reason, url)
    return response
