"""Tests for the command line entry point."""

from pathlib import Path

import pytest

from slack_bridge.__main__ import main, parse_args, run_bridge


class TestParseArgs:
    def test_defaults(self) -> None:
        args = parse_args([])
        assert args.config == Path("config/config.yaml")
        assert args.debug is False
        assert args.dry_run is False
        assert args.format == "console"

    def test_flags(self) -> None:
        args = parse_args(["-c", "/tmp/bridge.yaml", "--debug", "--dry-run", "--format", "json"])
        assert args.config == Path("/tmp/bridge.yaml")
        assert args.debug is True
        assert args.dry_run is True
        assert args.format == "json"

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            parse_args(["--version"])
        assert "slack-bridge" in capsys.readouterr().out


class TestRunBridge:
    async def test_dry_run(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("slack:\n  token: xoxb-1\nlogging:\n  format: console\n")
        assert await run_bridge(path, dry_run=True) == 0

    async def test_missing_config(self, tmp_path: Path) -> None:
        assert await run_bridge(tmp_path / "missing.yaml") == 1

    async def test_invalid_config(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("slack:\n  token: bogus\n")
        assert await run_bridge(path, dry_run=True) == 1


def test_main_dry_run(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("slack:\n  token: xoxb-1\n")
    assert main(["-c", str(path), "--dry-run"]) == 0
