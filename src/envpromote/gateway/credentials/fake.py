from envpromote.gateway.credentials.abc import CredentialResolver, CredentialsNotFoundError


class FakeCredentialResolver(CredentialResolver):
    """Returns pre-configured tokens and records which hosts were asked for."""

    def __init__(self, tokens: dict[str, str] | None = None) -> None:
        self._tokens = tokens if tokens is not None else {}
        self._resolved_hosts: list[str] = []

    def resolve_token(self, host: str) -> str:
        self._resolved_hosts.append(host)
        if host not in self._tokens:
            msg = f"No token for {host}"
            raise CredentialsNotFoundError(msg)
        return self._tokens[host]

    @property
    def resolved_hosts(self) -> list[str]:
        return list(self._resolved_hosts)
