"""Shared fixtures and fake HTTP sessions for the EOLRadar tests."""

import json
import logging
import threading

import pytest
import requests

from eolradar.config import ResourceConfig

SCHEDULE_DATA = {
    "v16": {
        "start": "2021-04-20",
        "lts": "2021-10-26",
        "maintenance": "2022-10-18",
        "end": "2023-09-11",
        "codename": "Gallium",
    },
    "v18": {
        "start": "2022-04-19",
        "lts": "2022-10-25",
        "maintenance": "2023-10-18",
        "end": "2025-04-30",
        "codename": "Hydrogen",
    },
    "v24": {"start": "2025-04-22"},
}

SECURITY_DATA = {
    "1": {
        "cve": ["CVE-2023-0001"],
        "vulnerable": ">=16.0.0 <16.20.1",
        "patched": ">=16.20.1",
        "severity": "high",
        "overview": "HTTP request smuggling",
    },
    "2": {
        "cve": ["CVE-2023-0002"],
        "vulnerable": "<18.17.1",
        "patched": ">=18.17.1",
        "severity": "medium",
        "description": "Permission model bypass on Windows",
        "affectedEnvironments": ["win32"],
    },
}

SCHEDULE_JSON = json.dumps(SCHEDULE_DATA)
SECURITY_JSON = json.dumps(SECURITY_DATA)


class FakeRaw:
    """Stands in for the ``urllib3`` response behind ``requests.Response.raw``."""

    def __init__(self):
        self.shut_down = threading.Event()

    def shutdown(self):
        self.shut_down.set()


class FakeResponse:
    """Stands in for ``requests.Response`` used as a context manager."""

    def __init__(self, status_code=200, body=b"", headers=None, reason="OK", chunks=None):
        self.raw = FakeRaw()
        self.status_code = status_code
        self.reason = reason
        self.headers = headers or {}
        self._chunks = chunks if chunks is not None else ([body] if body else [])
        self.closed = False
        self.read_called = False

    def iter_content(self, chunk_size=1):
        self.read_called = True
        yield from self._chunks

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False


class FakeSession:
    """Queue-driven fake ``requests.Session``.

    Responses (or exceptions to raise) are queued per HTTP method.  When a
    queue runs dry, ``default`` is used; ``None`` means the test did not
    expect the call.
    """

    def __init__(self, default=None):
        self.queues = {"HEAD": [], "GET": []}
        self.default = default
        self.calls = []

    def queue(self, method, *items):
        self.queues[method].extend(items)
        return self

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        queue = self.queues[method]
        item = queue.pop(0) if queue else self.default
        if item is None:
            raise AssertionError(f"unexpected {method} {url}")
        if isinstance(item, Exception):
            raise item
        return item

    def count(self, method):
        return sum(1 for m, _, _ in self.calls if m == method)


def offline_session():
    return FakeSession(default=requests.ConnectionError("network unreachable"))


@pytest.fixture
def schedule_resource(tmp_path):
    return ResourceConfig.in_dir(tmp_path, "schedule", "https://example.test/schedule.json")


@pytest.fixture
def security_resource(tmp_path):
    return ResourceConfig.in_dir(tmp_path, "security", "https://example.test/security.json")


@pytest.fixture(autouse=True)
def _reset_eolradar_logger():
    yield
    logger = logging.getLogger("eolradar")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
