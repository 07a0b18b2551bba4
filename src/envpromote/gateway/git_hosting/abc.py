"""Abstract base class for git-hosting pull request operations."""

from abc import ABC, abstractmethod

from envpromote.gateway.git_hosting.types import (
    CIStatus,
    HostKind,
    PullRequestHandle,
    RepositoryRef,
)


class GitProvider(ABC):
    """Capability set the promotion engine needs from a git host.

    One implementation exists per backend kind. Every method may raise
    ProviderTransientError (retry may help) or ProviderFatalError
    (authentication rejected). Implementations keep no session state
    between calls.
    """

    @property
    @abstractmethod
    def kind(self) -> HostKind: ...

    @property
    @abstractmethod
    def repository(self) -> RepositoryRef: ...

    @abstractmethod
    def create_pull_request(
        self, *, base: str, head: str, title: str, body: str
    ) -> PullRequestHandle:
        """Open a pull request from `head` into `base`.

        Returns:
            Handle for the new pull request, state open
        """
        ...

    @abstractmethod
    def refresh_status(self, handle: PullRequestHandle) -> PullRequestHandle:
        """Re-fetch merged/closed flags and the head commit SHA.

        Returns:
            New handle reflecting the provider's current view
        """
        ...

    @abstractmethod
    def last_commit_ci_status(self, handle: PullRequestHandle) -> CIStatus:
        """Combined CI status of the handle's head commit."""
        ...

    @abstractmethod
    def merge_pull_request(self, handle: PullRequestHandle, message: str) -> None:
        """Merge the pull request with `message` as the merge commit message.

        Merging an already-merged pull request is not an error.
        """
        ...

    @abstractmethod
    def add_comment(self, handle: PullRequestHandle, text: str) -> None:
        """Add a comment to the pull request conversation."""
        ...

    @abstractmethod
    def create_webhook(self, *, url: str, secret: str) -> None:
        """Register a push/pull-request webhook on the repository."""
        ...
