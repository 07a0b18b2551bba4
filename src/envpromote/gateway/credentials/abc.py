from abc import ABC, abstractmethod


class CredentialsNotFoundError(Exception):
    """No API token is available for a git host."""


class CredentialResolver(ABC):
    """Supplies API tokens for git hosts."""

    @abstractmethod
    def resolve_token(self, host: str) -> str:
        """Return the API token for `host`.

        Raises:
            CredentialsNotFoundError: If no token is configured for the host
        """
        ...
