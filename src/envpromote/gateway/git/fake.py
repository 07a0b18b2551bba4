"""Fake implementation of the git working-copy gateway for testing."""

from dataclasses import dataclass
from pathlib import Path

from envpromote.gateway.git.abc import GitWorkingCopy


@dataclass(frozen=True)
class PushRecord:
    """Record of a commit_and_push call.

    Attributes:
        cwd: Working copy that was committed
        branch: Branch that was pushed
        message: Commit message
        remote: Remote pushed to
    """

    cwd: Path
    branch: str
    message: str
    remote: str


class FakeGitWorkingCopy(GitWorkingCopy):
    """Records pushes instead of running git.

    Constructor Injection:
    ---------------------
    - push_raises: Exception raised by commit_and_push()
    - remote_urls: Mapping of (cwd, remote) -> URL for get_remote_url()

    Mutation Tracking:
    -----------------
    - pushes: List of PushRecord, one per successful call
    """

    def __init__(
        self,
        *,
        push_raises: Exception | None = None,
        remote_urls: dict[tuple[Path, str], str] | None = None,
    ) -> None:
        self._push_raises = push_raises
        self._remote_urls = remote_urls if remote_urls is not None else {}
        self._pushes: list[PushRecord] = []

    def commit_and_push(
        self, cwd: Path, *, branch: str, message: str, remote: str = "origin"
    ) -> None:
        if self._push_raises is not None:
            raise self._push_raises
        self._pushes.append(PushRecord(cwd=cwd, branch=branch, message=message, remote=remote))

    def get_remote_url(self, cwd: Path, remote: str = "origin") -> str:
        key = (cwd, remote)
        if key not in self._remote_urls:
            msg = f"No such remote '{remote}'"
            raise RuntimeError(msg)
        return self._remote_urls[key]

    @property
    def pushes(self) -> list[PushRecord]:
        return list(self._pushes)
