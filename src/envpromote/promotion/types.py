"""Type definitions for promotion requests and results."""

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from envpromote.gateway.git_hosting.types import CIStatus, PullRequestHandle
from envpromote.manifest.types import ManifestMutation
from envpromote.promotion.errors import NoChangesError

PromotionOutcome = Literal[
    "merged",
    "closed_without_merge",
    "timed_out",
    "publish_failed",
    # authentication was rejected while polling
    "aborted",
]

DEFAULT_MANIFEST_PATH = "env/requirements.yaml"
DEFAULT_MERGE_COMMIT_MESSAGE = "envpromote automatically merged promotion PR"


@dataclass(frozen=True)
class PromotionRequest:
    """Everything needed to promote one manifest change.

    The caller owns `repository_checkout_path` exclusively for the duration of
    the promotion; concurrent promotions must use separate checkouts.
    """

    repository_checkout_path: Path
    branch_name: str
    title: str
    description: str
    mutation: ManifestMutation
    poll_interval_seconds: float
    timeout_seconds: float
    auto_merge_enabled: bool = True
    base_branch: str = "main"
    manifest_path: str = DEFAULT_MANIFEST_PATH
    merge_commit_message: str = DEFAULT_MERGE_COMMIT_MESSAGE

    def __post_init__(self) -> None:
        if self.poll_interval_seconds <= 0:
            msg = f"poll_interval_seconds must be positive, got {self.poll_interval_seconds}"
            raise ValueError(msg)
        if self.timeout_seconds < 0:
            msg = f"timeout_seconds must not be negative, got {self.timeout_seconds}"
            raise ValueError(msg)
        if not self.branch_name:
            msg = "branch_name must not be empty"
            raise ValueError(msg)
        if not self.title.strip():
            msg = "title must not be empty"
            raise ValueError(msg)


@dataclass(frozen=True)
class PromotionResult:
    """Terminal outcome of one promotion.

    `handle` is the pull request as last observed, None when publishing
    failed before a pull request existed.
    """

    outcome: PromotionOutcome
    handle: PullRequestHandle | None
    last_error: Exception | None
    elapsed_seconds: float
    last_ci_status: CIStatus | None = None
    merge_attempts: int = 0

    @property
    def succeeded(self) -> bool:
        return self.outcome == "merged"

    @property
    def is_no_changes(self) -> bool:
        return self.outcome == "publish_failed" and isinstance(self.last_error, NoChangesError)

    def summary(self) -> str:
        """One-paragraph description suitable for showing to a user."""
        if self.outcome == "merged":
            assert self.handle is not None
            ref = self.handle.merge_commit_sha or self.handle.head_commit_sha
            return f"Pull request {self.handle.url} is merged ({ref})"
        if self.outcome == "closed_without_merge":
            assert self.handle is not None
            return f"Promotion failed as pull request {self.handle.url} is closed without merging"
        if self.outcome == "timed_out":
            url = self.handle.url if self.handle is not None else "<unknown>"
            status = self.last_ci_status or "unknown"
            return (
                f"Timed out waiting for pull request {url} to merge. "
                f"Waited {self.elapsed_seconds:.0f}s, last CI status: {status}"
            )
        if self.outcome == "aborted":
            url = self.handle.url if self.handle is not None else "<unknown>"
            return f"Stopped watching pull request {url}: {self.last_error}"
        if self.is_no_changes:
            return f"No changes to promote: {self.last_error}"
        return f"Failed to publish promotion: {self.last_error}"
