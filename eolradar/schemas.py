"""Pydantic record models for the release-schedule and vulnerability feeds.

Both feeds are JSON objects keyed by a version range (schedule) or an
advisory id (security).  Parsing preserves the document's key order, which
the version matcher relies on for first-match tie-breaking.
"""

import datetime as dt
import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from .config import SCHEDULE, SECURITY
from .exceptions import SchemaValidationError
from .versions import is_valid_range

Severity = Literal["critical", "high", "medium", "low", "unknown"]
SEVERITIES: tuple[str, ...] = ("critical", "high", "medium", "low", "unknown")


class ScheduleRecord(BaseModel):
    """Support window for one release line.

    Attributes:
        start: Release date of the line.
        end: End-of-life date.  ``None`` means the line has no declared end
            yet (current or unreleased) and is never treated as expired.
        lts: Date the line entered long-term support.
        maintenance: Date the line entered maintenance.
        codename: LTS codename, e.g. ``Hydrogen``.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    start: dt.date
    end: dt.date | None = None
    lts: str | None = None
    maintenance: str | None = None
    codename: str | None = None


class VulnerabilityRecord(BaseModel):
    """One advisory from the vulnerability feed.

    ``cve`` accepts a bare string for single-CVE advisories.  Upstream
    occasionally publishes advisories before a CVE is assigned, so an empty
    list is valid.  ``vulnerable`` and ``patched`` must parse as npm
    ranges; an advisory whose ranges cannot be parsed fails validation.
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    cve: list[str]
    vulnerable: str
    patched: str
    severity: Severity = "unknown"
    description: str | None = None
    overview: str | None = None
    affected_environments: list[str] | None = Field(default=None, alias="affectedEnvironments")
    ref: str | None = None

    @field_validator("cve", mode="before")
    @classmethod
    def _wrap_single_cve(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("vulnerable", "patched")
    @classmethod
    def _check_range(cls, v: str) -> str:
        if not is_valid_range(v):
            raise ValueError(f"not a valid version range: {v!r}")
        return v

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, v: Any) -> Any:
        if v is None:
            return "unknown"
        if isinstance(v, str):
            return v.strip().lower() or "unknown"
        return v

    @property
    def summary(self) -> str:
        """Human description, preferring ``description`` over ``overview``."""
        return self.description or self.overview or ""


ScheduleMapping = dict[str, ScheduleRecord]
SecurityDatabase = dict[str, VulnerabilityRecord]

_SCHEDULE_ADAPTER = TypeAdapter(ScheduleMapping)
_SECURITY_ADAPTER = TypeAdapter(SecurityDatabase)


def _validate(adapter: TypeAdapter, payload: str | bytes, resource: str) -> Any:
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SchemaValidationError(f"not valid JSON: {e}", resource) from e
    try:
        return adapter.validate_python(data)
    except ValidationError as e:
        raise SchemaValidationError(str(e), resource) from e


def parse_schedule(payload: str | bytes) -> ScheduleMapping:
    """Parse and validate a release-schedule document.

    Args:
        payload: Raw JSON document, as served.

    Returns:
        Mapping of version range to ``ScheduleRecord`` in document order.

    Raises:
        SchemaValidationError: on malformed JSON or a record mismatch.
    """
    return _validate(_SCHEDULE_ADAPTER, payload, SCHEDULE)


def parse_security_database(payload: str | bytes) -> SecurityDatabase:
    """Parse and validate a vulnerability document.

    Args:
        payload: Raw JSON document, as served.

    Returns:
        Mapping of advisory key to ``VulnerabilityRecord`` in document order.

    Raises:
        SchemaValidationError: on malformed JSON or a record mismatch.
    """
    return _validate(_SECURITY_ADAPTER, payload, SECURITY)
