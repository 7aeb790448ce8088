"""Tests for the freestate command line."""

from __future__ import annotations

from pathlib import Path

import orjson
import pytest
from typer.testing import CliRunner

from freestate.cli.typer_app import app
from freestate.shared.constants import CLIDefaults
from tests.fakes import FakeResponse, FakeSession

runner = CliRunner()

DRIVE_LINK = "https://drive.google.com/file/d/abc123XYZ/view?usp=sharing"


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Config pointing every database and log file into tmp_path."""
    path = tmp_path / "config.toml"
    path.write_text(
        "[app]\n"
        f'data_dir = "{tmp_path.as_posix()}/data"\n'
        "[logging]\n"
        f'file = "{tmp_path.as_posix()}/logs/freestate.log"\n'
        "console_output = false\n"
        "[api]\n"
        'base_url = "http://proxy.test/api"\n'
        "max_retries = 0\n"
    )
    return path


def invoke(config_file: Path, *args: str):
    # Quiet logs keep stdout parseable on runners that mix in stderr
    return runner.invoke(app, ["--config", str(config_file), "--log-level", "CRITICAL", *args])


def envelope(output: str) -> dict:
    return orjson.loads(output)


class TestGlobalOptions:
    """Test cases for the main callback."""

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert result.output.startswith("freestate v")

    def test_missing_config_file_is_rejected(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["--config", str(tmp_path / "absent.toml"), "cache", "stats"])

        assert result.exit_code != 0


class TestImages:
    """Test cases for ``images resolve``."""

    def test_resolve_json(self, config_file: Path) -> None:
        result = invoke(config_file, "--json", "images", "resolve", DRIVE_LINK)

        assert result.exit_code == 0
        body = envelope(result.stdout)
        assert body["success"] is True
        assert body["command"] == "images resolve"
        assert body["data"]["file_id"] == "abc123XYZ"
        assert body["data"]["url"] == "https://drive.google.com/uc?export=view&id=abc123XYZ"
        assert body["data"]["proxy_url"] == "http://proxy.test/api/image?fileId=abc123XYZ"

    def test_resolve_text(self, config_file: Path) -> None:
        result = invoke(config_file, "images", "resolve", DRIVE_LINK)

        assert result.exit_code == 0
        assert "uc?export=view&id=abc123XYZ" in result.stdout


class TestCache:
    """Test cases for ``cache stats`` and ``cache clear``."""

    def test_stats_on_empty_cache(self, config_file: Path) -> None:
        result = invoke(config_file, "--json", "cache", "stats")

        assert result.exit_code == 0
        assert envelope(result.stdout)["data"]["total"] == 0

    def test_clear(self, config_file: Path) -> None:
        result = invoke(config_file, "--json", "cache", "clear", "--expired-only")

        assert result.exit_code == 0
        assert envelope(result.stdout)["data"] == {"removed": 0, "expired_only": True}

    def test_disabled_cache(self, config_file: Path) -> None:
        config_file.write_text(config_file.read_text() + "[cache]\nenabled = false\n")

        result = invoke(config_file, "--json", "cache", "stats")

        assert result.exit_code == CLIDefaults.EXIT_ERROR
        body = envelope(result.stdout)
        assert body["success"] is False
        assert body["data"]["error_code"] == "CONFIG_ERROR"


class TestSync:
    """Test cases for the sync commands."""

    def test_queue_then_status(self, config_file: Path) -> None:
        # Given an action queued from the command line
        queued = invoke(config_file, "--json", "sync", "queue", "favorite", "--data", '{"id": "c1"}')
        assert queued.exit_code == 0
        assert envelope(queued.stdout)["data"]["type"] == "favorite"

        # When the status is read without probing
        status = invoke(config_file, "--json", "sync", "status", "--no-probe")

        # Then the action is pending
        assert status.exit_code == 0
        data = envelope(status.stdout)["data"]
        assert data["pending"] == 1
        assert data["status"] == "idle"

    def test_queue_rejects_bad_json(self, config_file: Path) -> None:
        result = invoke(config_file, "sync", "queue", "favorite", "--data", "{not json")

        assert result.exit_code == 2
        assert "Invalid JSON for --data" in result.output


class TestSheets:
    """Test cases for ``sheets fetch``."""

    def test_sheet_without_records_fails(self, config_file: Path) -> None:
        result = invoke(config_file, "--json", "sheets", "fetch", "users")

        assert result.exit_code == CLIDefaults.EXIT_ERROR
        body = envelope(result.stdout)
        assert body["success"] is False
        assert body["data"]["context"]["error_code"] == "INVALID_SHEET_TYPE"
        assert body["errors"][0].startswith("Data error:")

    def test_fetch_from_network(self, config_file: Path, mocker) -> None:
        # Given the proxy serves a companies sheet
        session = FakeSession(FakeResponse(200, "Company_ID,Name\nc1,Acme\n"))
        mocker.patch("freestate.services.http.client.aiohttp.TCPConnector")
        mocker.patch("freestate.services.http.client.aiohttp.ClientSession", return_value=session)

        # When
        result = invoke(config_file, "--json", "sheets", "fetch", "companies")

        # Then
        assert result.exit_code == 0
        data = envelope(result.stdout)["data"]
        assert data["source"] == "network"
        assert data["stale"] is False
        assert [record["name"] for record in data["records"]] == ["Acme"]
        assert session.calls[0]["url"] == "http://proxy.test/api/sheets/companies?format=csv"
