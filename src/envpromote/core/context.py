"""Dependency container threaded through the CLI."""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from envpromote.core.config import PromoteConfig, default_config_path, load_config
from envpromote.gateway.credentials.abc import CredentialResolver
from envpromote.gateway.git.abc import GitWorkingCopy
from envpromote.gateway.git_hosting.abc import GitProvider
from envpromote.gateway.git_hosting.factory import create_git_provider, detect_host_kind
from envpromote.gateway.git_hosting.types import HostKind, RepositoryRef, parse_repository_url
from envpromote.gateway.time.abc import Time

ProviderFactory = Callable[[RepositoryRef, HostKind], GitProvider]


@dataclass(frozen=True)
class PromoteContext:
    """Immutable context holding all dependencies for envpromote commands.

    Created at CLI entry point; tests inject one built with for_test().
    """

    git: GitWorkingCopy
    time: Time
    credentials: CredentialResolver
    provider_factory: ProviderFactory
    config: PromoteConfig
    config_path: Path

    def provider_for_url(self, remote_url: str) -> GitProvider:
        """Build the git-hosting adapter for a repository URL.

        Raises:
            ValueError: If the URL cannot be parsed or the host kind is unknown
            CredentialsNotFoundError: If no token is available for the host
        """
        repository = parse_repository_url(remote_url)
        kind = detect_host_kind(repository.host, self.config.hosts)
        return self.provider_factory(repository, kind)

    @staticmethod
    def for_test(
        *,
        git: GitWorkingCopy | None = None,
        time: Time | None = None,
        credentials: CredentialResolver | None = None,
        provider: GitProvider | None = None,
        config: PromoteConfig | None = None,
        config_path: Path | None = None,
    ) -> "PromoteContext":
        """Create a context wired with fakes; any argument overrides its fake.

        When `provider` is given, every repository URL resolves to it.
        """
        from envpromote.gateway.credentials.fake import FakeCredentialResolver
        from envpromote.gateway.git.fake import FakeGitWorkingCopy
        from envpromote.gateway.git_hosting.fake import FakeGitProvider
        from envpromote.gateway.time.fake import FakeTime

        resolved_provider = provider if provider is not None else FakeGitProvider()

        def factory(repository: RepositoryRef, kind: HostKind) -> GitProvider:
            return resolved_provider

        return PromoteContext(
            git=git if git is not None else FakeGitWorkingCopy(),
            time=time if time is not None else FakeTime(),
            credentials=credentials if credentials is not None else FakeCredentialResolver(),
            provider_factory=factory,
            config=config if config is not None else PromoteConfig(),
            config_path=(
                config_path if config_path is not None else Path("/nonexistent/config.toml")
            ),
        )


def create_context() -> PromoteContext:
    """Create the production context from the environment and config file."""
    from envpromote.gateway.credentials.real import EnvCredentialResolver, resolver_for_host_kind
    from envpromote.gateway.git.real import RealGitWorkingCopy
    from envpromote.gateway.time.real import RealTime

    config_path = default_config_path()
    config = load_config(config_path)
    credentials = EnvCredentialResolver()

    def factory(repository: RepositoryRef, kind: HostKind) -> GitProvider:
        return create_git_provider(repository, kind=kind, credentials=resolver_for_host_kind(kind))

    return PromoteContext(
        git=RealGitWorkingCopy(),
        time=RealTime(),
        credentials=credentials,
        provider_factory=factory,
        config=config,
        config_path=config_path,
    )
