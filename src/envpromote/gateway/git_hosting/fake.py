"""Scripted in-memory GitProvider for testing the promotion engine."""

from dataclasses import dataclass, replace
from typing import TypeVar

from envpromote.gateway.git_hosting.abc import GitProvider
from envpromote.gateway.git_hosting.errors import ProviderError
from envpromote.gateway.git_hosting.types import (
    CIStatus,
    HostKind,
    PullRequestHandle,
    RepositoryRef,
)

DEFAULT_REPOSITORY = RepositoryRef(host="github.com", owner="acme", name="environment-staging")


@dataclass(frozen=True)
class FakePullRequestState:
    """What the fake host reports for the pull request on one refresh."""

    merged: bool | None = False
    closed: bool = False
    head_commit_sha: str | None = None


OPEN = FakePullRequestState()
MERGED = FakePullRequestState(merged=True, closed=True)
CLOSED = FakePullRequestState(merged=False, closed=True)

FAKE_MERGE_COMMIT_SHA = "f00dfeed"


@dataclass(frozen=True)
class CreatePullRequestCall:
    base: str
    head: str
    title: str
    body: str


@dataclass(frozen=True)
class MergeCall:
    number: int
    message: str
    head_commit_sha: str


class FakeGitProvider(GitProvider):
    """In-memory fake that replays scripted responses.

    Constructor Injection:
    ---------------------
    - refresh_responses: consumed one per refresh_status() call; the last
      entry repeats once the script is exhausted. A ProviderError entry is
      raised instead of returned.
    - ci_responses: same, for last_commit_ci_status()
    - merge_errors: consumed one per merge_pull_request() call; None (or an
      exhausted script) means the merge succeeds
    - create_error: raised by create_pull_request()

    A successful merge makes every later refresh report the pull request as
    merged, the way a real host would.

    Mutation Tracking:
    -----------------
    - created_pull_requests, merge_calls, comments, webhooks
    - refresh_count, ci_query_count
    """

    def __init__(
        self,
        *,
        repository: RepositoryRef = DEFAULT_REPOSITORY,
        kind: HostKind = "github",
        refresh_responses: list[FakePullRequestState | ProviderError] | None = None,
        ci_responses: list[CIStatus | ProviderError] | None = None,
        merge_errors: list[ProviderError | None] | None = None,
        create_error: ProviderError | None = None,
        pr_number: int = 1,
        initial_sha: str = "abc123",
    ) -> None:
        self._repository = repository
        self._kind = kind
        self._refresh_responses = list(refresh_responses) if refresh_responses else [OPEN]
        self._ci_responses: list[CIStatus | ProviderError] = (
            list(ci_responses) if ci_responses else ["pending"]
        )
        self._merge_errors = list(merge_errors) if merge_errors else []
        self._create_error = create_error
        self._pr_number = pr_number
        self._initial_sha = initial_sha

        self._merged_by_us = False
        self._refresh_count = 0
        self._ci_query_count = 0
        self._created: list[CreatePullRequestCall] = []
        self._merge_calls: list[MergeCall] = []
        self._comments: list[tuple[int, str]] = []
        self._webhooks: list[tuple[str, str]] = []

    @property
    def kind(self) -> HostKind:
        return self._kind

    @property
    def repository(self) -> RepositoryRef:
        return self._repository

    def create_pull_request(
        self, *, base: str, head: str, title: str, body: str
    ) -> PullRequestHandle:
        self._created.append(CreatePullRequestCall(base=base, head=head, title=title, body=body))
        if self._create_error is not None:
            raise self._create_error
        return PullRequestHandle(
            url=f"{self._repository.host_url}/{self._repository.full_name}/pull/{self._pr_number}",
            number=self._pr_number,
            repository=self._repository,
            head_branch=head,
            base_branch=base,
            head_commit_sha=self._initial_sha,
        )

    def refresh_status(self, handle: PullRequestHandle) -> PullRequestHandle:
        response = _next(self._refresh_responses, self._refresh_count)
        self._refresh_count += 1
        if isinstance(response, ProviderError):
            raise response
        if self._merged_by_us:
            response = MERGED
        return replace(
            handle,
            merged=response.merged,
            closed=response.closed,
            head_commit_sha=response.head_commit_sha or handle.head_commit_sha,
            merge_commit_sha=FAKE_MERGE_COMMIT_SHA if response.merged else None,
        )

    def last_commit_ci_status(self, handle: PullRequestHandle) -> CIStatus:
        response = _next(self._ci_responses, self._ci_query_count)
        self._ci_query_count += 1
        if isinstance(response, ProviderError):
            raise response
        return response

    def merge_pull_request(self, handle: PullRequestHandle, message: str) -> None:
        index = len(self._merge_calls)
        self._merge_calls.append(
            MergeCall(number=handle.number, message=message, head_commit_sha=handle.head_commit_sha)
        )
        error = self._merge_errors[index] if index < len(self._merge_errors) else None
        if error is not None:
            raise error
        self._merged_by_us = True

    def add_comment(self, handle: PullRequestHandle, text: str) -> None:
        self._comments.append((handle.number, text))

    def create_webhook(self, *, url: str, secret: str) -> None:
        self._webhooks.append((url, secret))

    @property
    def created_pull_requests(self) -> list[CreatePullRequestCall]:
        return list(self._created)

    @property
    def merge_calls(self) -> list[MergeCall]:
        return list(self._merge_calls)

    @property
    def comments(self) -> list[tuple[int, str]]:
        return list(self._comments)

    @property
    def webhooks(self) -> list[tuple[str, str]]:
        return list(self._webhooks)

    @property
    def refresh_count(self) -> int:
        return self._refresh_count

    @property
    def ci_query_count(self) -> int:
        return self._ci_query_count


T = TypeVar("T")


def _next(script: list[T], index: int) -> T:
    return script[index] if index < len(script) else script[-1]
