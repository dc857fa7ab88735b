"""EOLRadar — Node.js end-of-life and vulnerability checker.

This package provides the core logic for fetching and caching the Node.js
release schedule and security advisory feeds, and for resolving a version
against them.
"""

__version__ = "0.1.0"

from .checker import SecurityChecker
from .config import CheckerConfig, ResourceConfig, load_config
from .exceptions import (
    EOLRadarError,
    ExhaustedRetryError,
    InvalidVersionError,
    SchemaValidationError,
    TransientNetworkError,
    UnresolvedVersionError,
)
from .schedule import is_end_of_life
from .vulnerability import list_vulnerabilities

__all__ = [
    "__version__",
    "SecurityChecker",
    "CheckerConfig",
    "ResourceConfig",
    "load_config",
    "EOLRadarError",
    "ExhaustedRetryError",
    "InvalidVersionError",
    "SchemaValidationError",
    "TransientNetworkError",
    "UnresolvedVersionError",
    "is_end_of_life",
    "list_vulnerabilities",
]
