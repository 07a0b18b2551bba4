"""Production credential resolvers.

Tokens never live in the envpromote config file. They come from the
environment, or for GitHub hosts from the gh CLI's own login.
"""

import logging
import os
import re
from collections.abc import Mapping, Sequence

from envpromote.core.subprocess_utils import run_subprocess_with_context
from envpromote.gateway.credentials.abc import CredentialResolver, CredentialsNotFoundError
from envpromote.gateway.git_hosting.types import HostKind

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "ENVPROMOTE_TOKEN"


def host_token_env_var(host: str) -> str:
    """Environment variable holding the token for one host.

    Example: git.example.com:3000 -> ENVPROMOTE_TOKEN_GIT_EXAMPLE_COM_3000
    """
    return f"{TOKEN_ENV_VAR}_{re.sub(r'[^A-Za-z0-9]', '_', host).upper()}"


class EnvCredentialResolver(CredentialResolver):
    """Reads ENVPROMOTE_TOKEN_<HOST>, falling back to ENVPROMOTE_TOKEN."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def resolve_token(self, host: str) -> str:
        for name in (host_token_env_var(host), TOKEN_ENV_VAR):
            token = self._environ.get(name, "").strip()
            if token:
                logger.debug("Using token from $%s for %s", name, host)
                return token
        msg = f"No token for {host}: set ${host_token_env_var(host)} or ${TOKEN_ENV_VAR}"
        raise CredentialsNotFoundError(msg)


class GhCliCredentialResolver(CredentialResolver):
    """Asks `gh auth token` for the token of a GitHub host."""

    def resolve_token(self, host: str) -> str:
        try:
            result = run_subprocess_with_context(
                cmd=["gh", "auth", "token", "--hostname", host],
                operation_context=f"fetch GitHub token for {host}",
            )
        except RuntimeError as e:
            raise CredentialsNotFoundError(str(e)) from e
        token = result.stdout.strip()
        if not token:
            msg = f"Empty token returned from gh auth for {host}"
            raise CredentialsNotFoundError(msg)
        return token


class ChainCredentialResolver(CredentialResolver):
    """Tries each resolver in order and returns the first token found."""

    def __init__(self, resolvers: Sequence[CredentialResolver]) -> None:
        self._resolvers = list(resolvers)

    def resolve_token(self, host: str) -> str:
        failures: list[str] = []
        for resolver in self._resolvers:
            try:
                return resolver.resolve_token(host)
            except CredentialsNotFoundError as e:
                failures.append(str(e))
        msg = f"No credentials found for {host}:\n" + "\n".join(f"  - {f}" for f in failures)
        raise CredentialsNotFoundError(msg)


def resolver_for_host_kind(
    kind: HostKind, environ: Mapping[str, str] | None = None
) -> CredentialResolver:
    """Environment tokens for every host; GitHub hosts also try `gh auth token`."""
    env = EnvCredentialResolver(environ)
    if kind == "github":
        return ChainCredentialResolver([env, GhCliCredentialResolver()])
    return env
