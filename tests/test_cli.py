"""Unit tests for eolradar.cli — argument handling, exit codes and output."""

import logging
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from conftest import SCHEDULE_JSON, SECURITY_JSON
from eolradar import cli
from eolradar.async_downloaders import FeedResults
from eolradar.cli import EXIT_ERROR, EXIT_FAIL, EXIT_OK, build_parser, detect_node_version, main
from eolradar.exceptions import EOLRadarError, ExhaustedRetryError, TransientNetworkError
from eolradar.schemas import parse_schedule, parse_security_database

# ── Helpers ──────────────────────────────────────────────────────────────────


def _results(**overrides):
    data = {
        "schedule": parse_schedule(SCHEDULE_JSON),
        "security": parse_security_database(SECURITY_JSON),
    }
    data.update(overrides)
    return FeedResults(**data)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    monkeypatch.delenv("EOLRADAR_SKIP_CHECK", raising=False)
    monkeypatch.delenv("DEBUG", raising=False)
    monkeypatch.setenv("EOLRADAR_CACHE_DIR", str(tmp_path))


@pytest.fixture
def feeds():
    with patch.object(cli, "load_feeds_parallel", return_value=_results()) as mock_load:
        yield mock_load


# ── build_parser ─────────────────────────────────────────────────────────────


class TestBuildParser:
    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.node_version is None
        assert args.platform is None
        assert args.config is None
        assert args.verbose is False

    def test_positional_version(self):
        args = build_parser().parse_args(["v20.1.0", "--platform", "darwin", "-v"])
        assert args.node_version == "v20.1.0"
        assert args.platform == "darwin"
        assert args.verbose is True


# ── detect_node_version ──────────────────────────────────────────────────────


class TestDetectNodeVersion:
    def test_reads_node_output(self):
        completed = MagicMock(stdout="v20.10.0\n")
        with patch("eolradar.cli.subprocess.run", return_value=completed) as mock_run:
            assert detect_node_version() == "v20.10.0"
        assert mock_run.call_args[0][0] == ["node", "--version"]

    def test_missing_node(self):
        with patch("eolradar.cli.subprocess.run", side_effect=FileNotFoundError("node")):
            with pytest.raises(EOLRadarError, match="Node.js version"):
                detect_node_version()

    def test_node_fails(self):
        err = subprocess.CalledProcessError(1, ["node", "--version"])
        with patch("eolradar.cli.subprocess.run", side_effect=err):
            with pytest.raises(EOLRadarError):
                detect_node_version()


# ── main ─────────────────────────────────────────────────────────────────────


class TestMain:
    def test_pass(self, feeds, capsys):
        assert main(["v24.1.0", "--platform", "linux"]) == EXIT_OK
        out = capsys.readouterr().out
        assert "Current Node.js version: v24.1.0" in out
        assert "Platform: linux" in out
        assert "[PASS] Node.js v24.1.0 has no known vulnerabilities." in out

    def test_end_of_life(self, feeds, capsys):
        assert main(["v16.20.1", "--platform", "linux"]) == EXIT_FAIL
        err = capsys.readouterr().err
        assert "[FAIL] Node.js version is end-of-life." in err

    def test_vulnerable(self, capsys):
        schedule = parse_schedule('{"v18": {"start": "2022-04-19", "end": "2999-01-01"}}')
        with patch.object(cli, "load_feeds_parallel", return_value=_results(schedule=schedule)):
            assert main(["v18.0.0", "--platform", "win32"]) == EXIT_FAIL
        err = capsys.readouterr().err
        assert "[VULNERABLE] Node.js v18.0.0 has 1 known CVE(s):" in err
        assert "CVE-2023-0002 (MEDIUM)" in err

    def test_platform_scoped_advisory_skipped(self, capsys):
        schedule = parse_schedule('{"v18": {"start": "2022-04-19", "end": "2999-01-01"}}')
        with patch.object(cli, "load_feeds_parallel", return_value=_results(schedule=schedule)):
            assert main(["v18.0.0", "--platform", "linux"]) == EXIT_OK

    def test_unknown_version_is_error(self, feeds, capsys):
        assert main(["v99.0.0", "--platform", "linux"]) == EXIT_ERROR
        assert "Could not load version information for v99.0.0" in capsys.readouterr().err

    def test_invalid_platform_is_error(self, feeds, capsys):
        assert main(["v24.1.0", "--platform", "plan9"]) == EXIT_ERROR
        feeds.assert_not_called()
        assert "Unsupported platform" in capsys.readouterr().err

    def test_feed_failure_is_error(self, capsys):
        err = ExhaustedRetryError("schedule", TransientNetworkError("down"))
        results = FeedResults(errors={"schedule": err})
        with patch.object(cli, "load_feeds_parallel", return_value=results):
            assert main(["v24.1.0", "--platform", "linux"]) == EXIT_ERROR
        assert "Failed to fetch schedule data" in capsys.readouterr().err

    def test_unexpected_error_is_error(self, capsys):
        with patch.object(cli, "load_feeds_parallel", side_effect=RuntimeError("boom")):
            assert main(["v24.1.0", "--platform", "linux"]) == EXIT_ERROR
        assert "boom" in capsys.readouterr().err

    def test_skip_env(self, feeds, monkeypatch, capsys):
        monkeypatch.setenv("EOLRADAR_SKIP_CHECK", "1")
        assert main(["v16.0.0"]) == EXIT_OK
        feeds.assert_not_called()
        assert "[SKIP]" in capsys.readouterr().err

    def test_detects_version_when_omitted(self, feeds, capsys):
        with patch.object(cli, "detect_node_version", return_value="v24.1.0"):
            assert main(["--platform", "linux"]) == EXIT_OK
        assert "Current Node.js version: v24.1.0" in capsys.readouterr().out

    def test_cache_dir_override(self, feeds, tmp_path):
        target = tmp_path / "override"
        main(["v24.1.0", "--platform", "linux", "--cache-dir", str(target)])
        config = feeds.call_args[0][0]
        assert config.cache_dir == target

    def test_config_file(self, feeds, tmp_path):
        path = tmp_path / "eolradar.yml"
        path.write_text("max_attempts: 5\nretry_delay: 0\n")
        main(["v24.1.0", "--platform", "linux", "--config", str(path)])
        config = feeds.call_args[0][0]
        assert config.max_attempts == 5

    def test_bad_config_file_is_error(self, feeds, tmp_path, capsys):
        assert main(["v24.1.0", "--platform", "linux", "--config", str(tmp_path / "nope.yml")]) == EXIT_ERROR
        assert "Cannot read config file" in capsys.readouterr().err

    def test_verbose_enables_debug(self, feeds):
        main(["v24.1.0", "--platform", "linux", "-v"])
        assert logging.getLogger("eolradar").level == logging.DEBUG
