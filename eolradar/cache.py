"""ETag-validated local cache for the EOLRadar feeds.

Each resource owns two files: the raw JSON payload and the ETag it was
served with.  A cheap ``HEAD`` probe tells us whether upstream changed;
only then is the full document downloaded.  When the network is
unavailable the last good payload is used, but a payload that fails
validation is never trusted.
"""

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import requests

from .config import ResourceConfig
from .downloaders import FETCH_TIMEOUT, MAX_ATTEMPTS, RETRY_BASE_DELAY, fetch_with_retry, requests_session
from .exceptions import ExhaustedRetryError, SchemaValidationError, TransientNetworkError

logger = logging.getLogger(__name__)

T = TypeVar("T")
Validator = Callable[[bytes], T]


def _atomic_write(path: Path, data: bytes) -> None:
    """Write a file via write-then-rename so readers never see half a file."""
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_bytes(data)
    tmp.replace(path)


class ValidationCache:
    """Fetch-with-cache for named resources.

    Attributes:
        cache_dir: Directory holding payload and ETag files.
        session: Requests session used for probes and downloads; the async
            loader only uses the storage helpers and never opens one.
        max_attempts: Attempts per network operation.
        base_delay: Linear backoff unit in seconds.
        timeout: Per-attempt deadline in seconds.
    """

    def __init__(
        self,
        cache_dir: Path,
        session: requests.Session | None = None,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = RETRY_BASE_DELAY,
        timeout: float = FETCH_TIMEOUT,
    ):
        self.cache_dir = Path(cache_dir)
        self._session = session
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.timeout = timeout
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    @property
    def session(self) -> requests.Session:
        """Requests session, created on first synchronous fetch."""
        if self._session is None:
            self._session = requests_session()
        return self._session

    # ── storage slots ────────────────────────────────────────────────────

    def load_token(self, resource: ResourceConfig) -> str | None:
        """Return the stored ETag for a resource, or ``None``."""
        if not resource.token_file.exists():
            return None
        etag = resource.token_file.read_text(encoding="utf-8", errors="replace").strip()
        logger.debug("Loaded cached ETag for %s: %s", resource.name, etag)
        return etag or None

    def has_payload(self, resource: ResourceConfig) -> bool:
        return resource.payload_file.exists()

    def load_payload(self, resource: ResourceConfig) -> bytes:
        return resource.payload_file.read_bytes()

    def store(self, resource: ResourceConfig, payload: bytes, etag: str | None) -> None:
        """Persist a payload and, if given, its ETag.

        The payload lands first so an ETag on disk always describes the
        payload next to it.  Without an upstream ETag the previous token
        file is left as it is.
        """
        resource.payload_file.parent.mkdir(parents=True, exist_ok=True)
        _atomic_write(resource.payload_file, payload)
        if etag is not None:
            _atomic_write(resource.token_file, etag.encode("utf-8"))
            logger.debug("Saved new ETag for %s: %s", resource.name, etag)

    # ── decision steps ───────────────────────────────────────────────────

    def is_fresh(self, resource: ResourceConfig, cached_etag: str | None, upstream_etag: str | None) -> bool:
        """Whether the local payload matches upstream and can be used as-is."""
        return upstream_etag is not None and upstream_etag == cached_etag and self.has_payload(resource)

    def validate(self, resource: ResourceConfig, payload: bytes, validator: Validator) -> Any:
        try:
            return validator(payload)
        except SchemaValidationError as e:
            if e.resource is None:
                e.resource = resource.name
            raise

    def fallback(self, resource: ResourceConfig, validator: Validator, cause: TransientNetworkError) -> Any:
        """Serve the stale payload after a network failure, or give up.

        Raises:
            ExhaustedRetryError: no payload was ever cached.
            SchemaValidationError: the stale payload is corrupt.
        """
        if not self.has_payload(resource):
            raise ExhaustedRetryError(resource.name, cause) from cause
        logger.warning("Network error (%s), using stale cache: %s", cause, resource.payload_file)
        return self.validate(resource, self.load_payload(resource), validator)

    # ── entry point ──────────────────────────────────────────────────────

    def fetch_with_cache(self, resource: ResourceConfig, validator: Validator) -> Any:
        """Return validated data for a resource, downloading only when changed.

        Args:
            resource: Resource to load.
            validator: Parses and schema-checks a payload, raising
                ``SchemaValidationError`` on mismatch.

        Returns:
            Whatever ``validator`` returns for the payload in use.

        Raises:
            ExhaustedRetryError: network failed and nothing is cached.
            SchemaValidationError: the payload in use is invalid.
        """
        cached_etag = self.load_token(resource)
        logger.debug("Fetching: %s", resource.url)

        try:
            head = self._fetch(resource.url, "HEAD")
            upstream_etag = head.etag

            if self.is_fresh(resource, cached_etag, upstream_etag):
                logger.debug("Using cached version: %s", resource.payload_file)
                return self.validate(resource, self.load_payload(resource), validator)

            logger.debug("Downloading fresh data from %s", resource.url)
            payload = self._fetch(resource.url, "GET").content
        except TransientNetworkError as e:
            return self.fallback(resource, validator, e)

        data = self.validate(resource, payload, validator)
        self.store(resource, payload, upstream_etag)
        return data

    def _fetch(self, url: str, method: str):
        return fetch_with_retry(
            self.session,
            url,
            method=method,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            timeout=self.timeout,
        )
