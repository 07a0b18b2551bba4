"""Select and construct the GitProvider adapter for a repository."""

from collections.abc import Callable, Mapping

from envpromote.gateway.credentials.abc import CredentialResolver
from envpromote.gateway.git_hosting.abc import GitProvider
from envpromote.gateway.git_hosting.bitbucket import BitbucketProvider
from envpromote.gateway.git_hosting.errors import UnknownHostKindError
from envpromote.gateway.git_hosting.gitea import GiteaProvider
from envpromote.gateway.git_hosting.github import GitHubProvider
from envpromote.gateway.git_hosting.gitlab import GitLabProvider
from envpromote.gateway.git_hosting.types import HOST_KINDS, HostKind, RepositoryRef

WELL_KNOWN_HOSTS: dict[str, HostKind] = {
    "github.com": "github",
    "gitlab.com": "gitlab",
    "bitbucket.org": "bitbucket",
}

_ADAPTERS: dict[HostKind, Callable[[RepositoryRef, str], GitProvider]] = {
    "github": GitHubProvider.from_token,
    "gitlab": GitLabProvider.from_token,
    "gitea": GiteaProvider.from_token,
    "bitbucket": BitbucketProvider.from_token,
}


def detect_host_kind(host: str, overrides: Mapping[str, str]) -> HostKind:
    """Resolve the backend kind for `host`.

    Configured overrides win over the well-known public hosts, so a mirror of
    gitlab.com behind a Gitea frontend can still be described.

    Raises:
        UnknownHostKindError: If the host is neither configured nor well known
    """
    configured = overrides.get(host)
    if configured is not None:
        return validate_host_kind(configured)
    if host in WELL_KNOWN_HOSTS:
        return WELL_KNOWN_HOSTS[host]
    msg = (
        f"No git server kind is known for host {host}\n"
        f"Configure it with: envpromote config set hosts.{host} <{'|'.join(HOST_KINDS)}>"
    )
    raise UnknownHostKindError(msg)


def validate_host_kind(value: str) -> HostKind:
    for kind in HOST_KINDS:
        if value == kind:
            return kind
    msg = f"Unknown git server kind '{value}' (expected one of: {', '.join(HOST_KINDS)})"
    raise UnknownHostKindError(msg)


def create_git_provider(
    repository: RepositoryRef,
    *,
    kind: HostKind,
    credentials: CredentialResolver,
) -> GitProvider:
    """Build the adapter for `kind`, authenticated with a token for the host.

    Raises:
        CredentialsNotFoundError: If no token is available for the host
    """
    token = credentials.resolve_token(repository.host)
    return _ADAPTERS[kind](repository, token)
