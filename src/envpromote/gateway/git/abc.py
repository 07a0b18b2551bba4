"""Abstract base class for the git operations a promotion needs."""

from abc import ABC, abstractmethod
from pathlib import Path


class GitWorkingCopy(ABC):
    """Commit-and-push primitive over a local checkout.

    All implementations (real and fake) must implement this interface.
    """

    @abstractmethod
    def commit_and_push(
        self, cwd: Path, *, branch: str, message: str, remote: str = "origin"
    ) -> None:
        """Commit every change in `cwd` onto `branch` and push it to `remote`.

        The branch is created (or reset) at the current HEAD before committing.

        Raises:
            RuntimeError: If any git command fails
        """
        ...

    @abstractmethod
    def get_remote_url(self, cwd: Path, remote: str = "origin") -> str:
        """Return the fetch URL configured for `remote`.

        Raises:
            RuntimeError: If the remote does not exist
        """
        ...
