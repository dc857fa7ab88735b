"""High-level entry points wiring the cache, schemas and resolvers together."""

import datetime as dt

import requests

from .cache import ValidationCache
from .config import CheckerConfig
from .schedule import is_end_of_life
from .schemas import ScheduleMapping, SecurityDatabase, VulnerabilityRecord, parse_schedule, parse_security_database
from .vulnerability import list_vulnerabilities


class SecurityChecker:
    """Answers "is this version EOL?" and "which advisories affect it?".

    Each query loads the relevant feed through the ``ValidationCache``,
    so records are always materialized fresh from the cached payload.

    Attributes:
        config: Active configuration.
        cache: Cache used to load both feeds.
    """

    def __init__(self, config: CheckerConfig | None = None, session: requests.Session | None = None):
        self.config = config or CheckerConfig()
        self.cache = ValidationCache(
            self.config.cache_dir,
            session=session,
            max_attempts=self.config.max_attempts,
            base_delay=self.config.retry_delay,
            timeout=self.config.timeout,
        )

    def load_schedule(self) -> ScheduleMapping:
        return self.cache.fetch_with_cache(self.config.schedule, parse_schedule)

    def load_security_database(self) -> SecurityDatabase:
        return self.cache.fetch_with_cache(self.config.security, parse_security_database)

    def is_end_of_life(self, version: str, today: dt.date | None = None) -> bool:
        return is_end_of_life(version, self.load_schedule(), today=today)

    def list_vulnerabilities(self, version: str, platform: str) -> list[VulnerabilityRecord]:
        return list_vulnerabilities(version, platform, self.load_security_database())
