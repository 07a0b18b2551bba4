from pathlib import Path

import click

from envpromote.core.context import PromoteContext
from envpromote.core.output import user_output
from envpromote.gateway.credentials.abc import CredentialsNotFoundError
from envpromote.gateway.git_hosting.errors import ProviderError
from envpromote.gateway.git_hosting.types import PullRequestHandle


@click.group("pr")
def pr_group() -> None:
    """Work with environment pull requests."""


@pr_group.command("comment")
@click.option("--number", "-n", type=int, required=True, help="Pull request number")
@click.option("--comment", "-c", "text", required=True, help="Comment to add to the pull request")
@click.option("--remote-url", help="Repository URL (defaults to origin of --repo)")
@click.option(
    "--repo",
    "repo_path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Local checkout used to look up the remote URL",
)
@click.pass_obj
def pr_comment(
    ctx: PromoteContext,
    number: int,
    text: str,
    remote_url: str | None,
    repo_path: Path,
) -> None:
    """Add a comment to a pull request."""
    if not text.strip():
        raise click.UsageError("no comment provided")
    if remote_url is None:
        try:
            remote_url = ctx.git.get_remote_url(repo_path)
        except RuntimeError as e:
            raise click.ClickException(str(e)) from e

    try:
        provider = ctx.provider_for_url(remote_url)
    except (ValueError, CredentialsNotFoundError) as e:
        raise click.ClickException(str(e)) from e

    repository = provider.repository
    handle = PullRequestHandle(
        url=f"{repository.host_url}/{repository.full_name} #{number}",
        number=number,
        repository=repository,
        head_branch="",
        base_branch="",
        head_commit_sha="",
    )
    try:
        provider.add_comment(handle, text)
    except ProviderError as e:
        raise click.ClickException(str(e)) from e
    user_output(f"Commented on {handle.url}")
