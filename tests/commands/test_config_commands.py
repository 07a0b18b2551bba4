"""Tests for the config command group."""

from pathlib import Path

from click.testing import CliRunner

from envpromote.cli.cli import cli
from envpromote.core.config import PromoteConfig, load_config
from envpromote.core.context import PromoteContext


def test_config_set_writes_file(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    ctx = PromoteContext.for_test(config_path=config_path)

    result = CliRunner().invoke(cli, ["config", "set", "timeout", "30m"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert load_config(config_path).timeout_seconds == 1800.0


def test_config_set_host_kind(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    ctx = PromoteContext.for_test(config_path=config_path)

    result = CliRunner().invoke(cli, ["config", "set", "hosts.git.example.com", "gitea"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert load_config(config_path).hosts == {"git.example.com": "gitea"}


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    config_path = tmp_path / "config.toml"
    ctx = PromoteContext.for_test(config_path=config_path)

    result = CliRunner().invoke(cli, ["config", "set", "hosts.git.example.com", "svn"], obj=ctx)

    assert result.exit_code == 1
    assert "Unknown git server kind" in result.output
    assert not config_path.exists()


def test_config_get(tmp_path: Path) -> None:
    ctx = PromoteContext.for_test(config=PromoteConfig(timeout_seconds=1800.0))

    result = CliRunner().invoke(cli, ["config", "get", "timeout"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert result.output.strip() == "30m"


def test_config_get_unknown_key() -> None:
    ctx = PromoteContext.for_test()

    result = CliRunner().invoke(cli, ["config", "get", "colour"], obj=ctx)

    assert result.exit_code == 1


def test_config_list(tmp_path: Path) -> None:
    ctx = PromoteContext.for_test(config=PromoteConfig(hosts={"git.example.com": "gitea"}))

    result = CliRunner().invoke(cli, ["config", "list"], obj=ctx)

    assert result.exit_code == 0, result.output
    assert "poll_interval=20s" in result.output
    assert "timeout=1h" in result.output
    assert "hosts.git.example.com=gitea" in result.output
