"""`envpromote promote`: open a promotion pull request and wait for it to land."""

import getpass
import json
import re
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import click

from envpromote.core.context import PromoteContext
from envpromote.core.durations import DurationParseError, format_duration, parse_duration
from envpromote.core.output import machine_output, user_output
from envpromote.gateway.credentials.abc import CredentialsNotFoundError
from envpromote.manifest.types import ManifestMutation
from envpromote.promotion.engine import PromotionEngine
from envpromote.promotion.types import PromotionRequest, PromotionResult


def _current_username() -> str:
    try:
        return getpass.getuser()
    except (OSError, KeyError):
        return "unknown"


@dataclass(frozen=True)
class PullRequestText:
    branch: str
    title: str
    body: str


def default_pull_request_text(mutation: ManifestMutation, username: str) -> PullRequestText:
    """Branch name, title and body used when the caller does not supply them."""
    name = mutation.dependency_name
    version = mutation.target_version
    body = (
        f"The command `envpromote promote` was run by {username} "
        "and it generated this Pull Request"
    )
    if mutation.operation == "remove":
        return PullRequestText(
            branch=sanitize_branch_name(f"delete-{name}"),
            title=f"Delete application {name} from this environment",
            body=body,
        )
    if mutation.operation == "add":
        return PullRequestText(
            branch=sanitize_branch_name(f"add-{name}-{version}"),
            title=f"Add application {name} version {version}",
            body=body,
        )
    return PullRequestText(
        branch=sanitize_branch_name(f"promote-{name}-{version}"),
        title=f"Promote {name} to version {version}",
        body=body,
    )


def sanitize_branch_name(name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._/-]+", "-", name).strip("-./")
    return re.sub(r"\.{2,}", ".", cleaned)


def _split_name_version(value: str, option: str) -> tuple[str, str]:
    name, sep, version = value.partition("=")
    if not sep or not name or not version:
        raise click.BadParameter(f"expected NAME=VERSION, got '{value}'", param_hint=option)
    return name, version


def _build_mutation(
    add: str | None,
    upgrade: str | None,
    remove: str | None,
    repository: str | None,
    alias: str | None,
) -> ManifestMutation:
    options = (("--add", add), ("--upgrade", upgrade), ("--remove", remove))
    chosen = [flag for flag, value in options if value]
    if len(chosen) != 1:
        raise click.UsageError("Specify exactly one of --add, --upgrade or --remove")

    if add is not None:
        name, version = _split_name_version(add, "--add")
        return ManifestMutation.add(name, version, repository=repository, alias=alias)
    if repository is not None or alias is not None:
        raise click.UsageError("--repository and --alias only apply to --add")
    if upgrade is not None:
        name, version = _split_name_version(upgrade, "--upgrade")
        return ManifestMutation.upgrade(name, version)
    assert remove is not None
    return ManifestMutation.remove(remove)


def _duration_option(value: str | None, default: float, option: str) -> float:
    if value is None:
        return default
    try:
        return parse_duration(value)
    except DurationParseError as e:
        raise click.BadParameter(str(e), param_hint=option) from e


@contextmanager
def _cancel_on_interrupt(cancel: threading.Event) -> Iterator[None]:
    """Turn Ctrl-C into a cancellation of the running promotion."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def handler(signum: int, frame: object) -> None:
        user_output(click.style("Interrupted, stopping...", fg="yellow"))
        cancel.set()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _result_payload(result: PromotionResult) -> dict[str, object]:
    handle = result.handle
    return {
        "outcome": result.outcome,
        "pull_request_url": handle.url if handle is not None else None,
        "pull_request_number": handle.number if handle is not None else None,
        "merge_commit_sha": handle.merge_commit_sha if handle is not None else None,
        "last_ci_status": result.last_ci_status,
        "merge_attempts": result.merge_attempts,
        "elapsed": format_duration(result.elapsed_seconds),
        "no_changes": result.is_no_changes,
        "error": str(result.last_error) if result.last_error is not None else None,
    }


@click.command("promote")
@click.option(
    "--repo",
    "repo_path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Local checkout of the environment repository",
)
@click.option("--remote-url", help="Environment repository URL (defaults to the origin remote)")
@click.option("--add", metavar="NAME=VERSION", help="Add a dependency at VERSION")
@click.option("--upgrade", metavar="NAME=VERSION", help="Change a dependency to VERSION")
@click.option("--remove", metavar="NAME", help="Remove a dependency")
@click.option("--repository", help="Chart repository URL written for --add")
@click.option("--alias", help="Alias written for --add")
@click.option("--branch", help="Branch name for the pull request")
@click.option("--title", help="Pull request title")
@click.option("--body", help="Pull request description")
@click.option("--base", help="Branch the pull request targets")
@click.option("--manifest", "manifest_path", help="Manifest path inside the repository")
@click.option("--poll-interval", help="Time between status checks, e.g. 20s")
@click.option("--timeout", help="How long to wait for the merge, e.g. 1h")
@click.option("--no-merge", is_flag=True, help="Only watch the pull request; never merge it")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON on stdout")
@click.pass_obj
def promote_cmd(
    ctx: PromoteContext,
    repo_path: Path,
    remote_url: str | None,
    add: str | None,
    upgrade: str | None,
    remove: str | None,
    repository: str | None,
    alias: str | None,
    branch: str | None,
    title: str | None,
    body: str | None,
    base: str | None,
    manifest_path: str | None,
    poll_interval: str | None,
    timeout: str | None,
    no_merge: bool,
    as_json: bool,
) -> None:
    """Promote a dependency change to an environment through a pull request.

    Edits the manifest in the checkout, pushes a branch, opens a pull request
    and waits until it is merged, closed, or the timeout passes.
    """
    mutation = _build_mutation(add, upgrade, remove, repository, alias)
    defaults = default_pull_request_text(mutation, _current_username())
    config = ctx.config

    if remote_url is None:
        try:
            remote_url = ctx.git.get_remote_url(repo_path)
        except RuntimeError as e:
            raise click.ClickException(str(e)) from e
    try:
        provider = ctx.provider_for_url(remote_url)
    except (ValueError, CredentialsNotFoundError) as e:
        raise click.ClickException(str(e)) from e

    try:
        request = PromotionRequest(
            repository_checkout_path=repo_path,
            branch_name=branch or defaults.branch,
            title=title or defaults.title,
            description=body if body is not None else defaults.body,
            mutation=mutation,
            poll_interval_seconds=_duration_option(
                poll_interval, config.poll_interval_seconds, "--poll-interval"
            ),
            timeout_seconds=_duration_option(timeout, config.timeout_seconds, "--timeout"),
            auto_merge_enabled=config.auto_merge and not no_merge,
            base_branch=base or config.base_branch,
            manifest_path=manifest_path or config.manifest_path,
        )
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    user_output(f"Promoting: {mutation.describe()} in {provider.repository.full_name}")
    engine = PromotionEngine(git=ctx.git, provider=provider, time=ctx.time)
    cancel = threading.Event()
    with _cancel_on_interrupt(cancel):
        result = engine.promote(request, cancel=cancel)

    if as_json:
        machine_output(json.dumps(_result_payload(result), indent=2))

    if result.succeeded:
        user_output(click.style(result.summary(), fg="green"))
        return
    if result.is_no_changes:
        user_output(click.style(result.summary(), fg="yellow"))
        return
    user_output(click.style(result.summary(), fg="red"))
    raise SystemExit(1)
