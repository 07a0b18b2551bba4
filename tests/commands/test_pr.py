"""Tests for the pr command group."""

from pathlib import Path

from click.testing import CliRunner

from envpromote.cli.cli import cli
from envpromote.core.context import PromoteContext
from envpromote.gateway.git.fake import FakeGitWorkingCopy
from envpromote.gateway.git_hosting.fake import FakeGitProvider


def test_pr_comment_posts_to_pull_request(tmp_path: Path) -> None:
    provider = FakeGitProvider()
    git = FakeGitWorkingCopy(
        remote_urls={(tmp_path, "origin"): "git@github.com:acme/environment-staging.git"}
    )
    ctx = PromoteContext.for_test(git=git, provider=provider)

    result = CliRunner().invoke(
        cli, ["pr", "comment", "--repo", str(tmp_path), "-n", "12", "-c", "ship it"], obj=ctx
    )

    assert result.exit_code == 0, result.output
    assert provider.comments == [(12, "ship it")]
    assert "acme/environment-staging #12" in result.output


def test_pr_comment_rejects_blank_comment() -> None:
    provider = FakeGitProvider()
    ctx = PromoteContext.for_test(provider=provider)

    result = CliRunner().invoke(
        cli,
        ["pr", "comment", "--remote-url", "https://github.com/acme/env", "-n", "3", "-c", "  "],
        obj=ctx,
    )

    assert result.exit_code == 2
    assert provider.comments == []
