"""Error taxonomy for git-hosting calls."""


class ProviderError(Exception):
    """Base class for failures talking to a git host.

    Attributes:
        operation: Short description of the call that failed
        status_code: HTTP status when the host answered, else None
    """

    def __init__(self, message: str, *, operation: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code


class ProviderTransientError(ProviderError):
    """Network, server or API failure that may succeed if retried."""


class ProviderFatalError(ProviderError):
    """Authentication or authorization was rejected; retrying will not help."""


class UnknownHostKindError(ValueError):
    """No backend kind is known for a git host."""
