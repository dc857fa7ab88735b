"""Exceptions raised by EOLRadar.

Every failure the core can produce is a subclass of ``EOLRadarError`` so
that callers (the CLI, or any embedding application) can decide how to
present it and which exit code to use.  The core never exits the process.
"""


class EOLRadarError(Exception):
    """Base exception for all EOLRadar operations."""


class ConfigurationError(EOLRadarError):
    """Raised when a configuration file is missing fields or invalid."""


# ── Network ──────────────────────────────────────────────────────────────────


class TransientNetworkError(EOLRadarError):
    """A single fetch attempt failed at the transport level."""


class FetchTimeoutError(TransientNetworkError):
    """The request did not complete before its deadline."""


class HTTPStatusError(TransientNetworkError):
    """Upstream answered with a non-success HTTP status.

    Attributes:
        status_code: HTTP status returned by the server.
        url: URL that was requested.
    """

    def __init__(self, status_code: int, reason: str, url: str):
        super().__init__(f"HTTP {status_code}: {reason} ({url})")
        self.status_code = status_code
        self.url = url


class ExhaustedRetryError(EOLRadarError):
    """All fetch attempts failed and there is no cached copy to fall back on.

    Attributes:
        resource: Name of the resource that could not be loaded.
    """

    def __init__(self, resource: str, cause: BaseException):
        super().__init__(f"Failed to fetch {resource} data and no cache available: {cause}")
        self.resource = resource


# ── Data ─────────────────────────────────────────────────────────────────────


class SchemaValidationError(EOLRadarError):
    """A payload is not valid JSON or does not match the record schema.

    Attributes:
        resource: Name of the resource being validated, if known.
    """

    def __init__(self, message: str, resource: str | None = None):
        prefix = f"Invalid {resource} data: " if resource else ""
        super().__init__(f"{prefix}{message}")
        self.resource = resource


class UnresolvedVersionError(EOLRadarError):
    """No schedule or vulnerability record applies to the queried version."""


class InvalidVersionError(UnresolvedVersionError):
    """The queried version is not a parseable semantic version."""


class UnsupportedPlatformError(EOLRadarError):
    """The platform identifier is not one the vulnerability feed knows."""
