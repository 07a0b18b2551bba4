"""Type definitions for git-hosting operations."""

import re
from dataclasses import dataclass
from typing import Literal

HostKind = Literal["github", "gitlab", "gitea", "bitbucket"]
HOST_KINDS: tuple[HostKind, ...] = ("github", "gitlab", "gitea", "bitbucket")

# Normalized last-commit CI status across all backends
CIStatus = Literal["pending", "success", "failure", "error", "unknown"]

_SCP_URL = re.compile(r"^(?:[\w.-]+@)?(?P<host>[\w.-]+):(?P<path>[^/].*)$")
_HTTP_URL = re.compile(r"^(?P<scheme>https?|ssh|git)://(?:[^@/]+@)?(?P<host>[^/@]+)/(?P<path>.+)$")


@dataclass(frozen=True)
class RepositoryRef:
    """Owner/name coordinates of a repository on a git host."""

    host: str  # e.g. "github.com"
    owner: str  # user, organization, or GitLab group path ("group/subgroup")
    name: str
    scheme: str = "https"

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def host_url(self) -> str:
        return f"{self.scheme}://{self.host}"


def parse_repository_url(url: str) -> RepositoryRef:
    """Parse an https or scp-style git URL into a RepositoryRef.

    Examples:
        https://github.com/acme/environment-staging.git
        git@gitlab.com:group/sub/environment-prod.git

    Raises:
        ValueError: If the URL has no owner/name path
    """
    text = url.strip()
    match = _HTTP_URL.match(text)
    scheme = "https"
    if match is not None:
        if match.group("scheme") == "http":
            scheme = "http"
    else:
        match = _SCP_URL.match(text)
    if match is None:
        msg = f"Unrecognized git repository URL: {url}"
        raise ValueError(msg)

    path = match.group("path").strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    owner, _, name = path.rpartition("/")
    if not owner or not name:
        msg = f"Git repository URL has no owner/name path: {url}"
        raise ValueError(msg)
    return RepositoryRef(host=match.group("host"), owner=owner, name=name, scheme=scheme)


@dataclass(frozen=True)
class PullRequestHandle:
    """Last known state of a promotion pull request.

    Handles are immutable; GitProvider.refresh_status returns a new handle.
    `merged` is tri-state: None until a provider response has said either way.
    Once merged, or closed without being merged, the handle is terminal.
    """

    url: str
    number: int
    repository: RepositoryRef
    head_branch: str
    base_branch: str
    head_commit_sha: str
    merged: bool | None = None
    closed: bool = False
    merge_commit_sha: str | None = None

    @property
    def is_merged(self) -> bool:
        return self.merged is True

    @property
    def is_closed_without_merge(self) -> bool:
        return self.closed and self.merged is not True

    @property
    def is_terminal(self) -> bool:
        return self.is_merged or self.is_closed_without_merge
