"""BitBucket Cloud adapter (2.0 REST API)."""

from typing import Any

from envpromote.gateway.git_hosting.abc import GitProvider
from envpromote.gateway.git_hosting.http import HostingApiClient, unexpected_response
from envpromote.gateway.git_hosting.merging import merge_unless_merged
from envpromote.gateway.git_hosting.types import (
    CIStatus,
    HostKind,
    PullRequestHandle,
    RepositoryRef,
)

BITBUCKET_API_URL = "https://api.bitbucket.org/2.0"


def aggregate_build_states(states: list[str]) -> CIStatus:
    """Combine per-build states into one status; failures dominate."""
    if not states:
        return "unknown"
    if "FAILED" in states:
        return "failure"
    if "STOPPED" in states:
        return "error"
    if "INPROGRESS" in states:
        return "pending"
    if all(state == "SUCCESSFUL" for state in states):
        return "success"
    return "unknown"


class BitbucketProvider(GitProvider):
    def __init__(self, *, repository: RepositoryRef, client: HostingApiClient) -> None:
        self._repository = repository
        self._client = client

    @classmethod
    def from_token(cls, repository: RepositoryRef, token: str) -> "BitbucketProvider":
        client = HostingApiClient(
            base_url=BITBUCKET_API_URL,
            headers={"Authorization": f"Bearer {token}"},
        )
        return cls(repository=repository, client=client)

    @property
    def kind(self) -> HostKind:
        return "bitbucket"

    @property
    def repository(self) -> RepositoryRef:
        return self._repository

    @property
    def _repo_path(self) -> str:
        return f"repositories/{self._repository.full_name}"

    def create_pull_request(
        self, *, base: str, head: str, title: str, body: str
    ) -> PullRequestHandle:
        operation = f"create pull request for branch '{head}'"
        data = self._client.post(
            f"{self._repo_path}/pullrequests",
            {
                "title": title,
                "description": body,
                "source": {"branch": {"name": head}},
                "destination": {"branch": {"name": base}},
            },
            operation=operation,
        )
        return self._to_handle(data, operation=operation)

    def refresh_status(self, handle: PullRequestHandle) -> PullRequestHandle:
        operation = f"query pull request {handle.url}"
        data = self._client.get(
            f"{self._repo_path}/pullrequests/{handle.number}", operation=operation
        )
        return self._to_handle(data, operation=operation)

    def last_commit_ci_status(self, handle: PullRequestHandle) -> CIStatus:
        operation = f"query build statuses of {handle.head_commit_sha}"
        data = self._client.get(
            f"{self._repo_path}/commit/{handle.head_commit_sha}/statuses", operation=operation
        )
        try:
            states = [value["state"] for value in data.get("values", [])]
        except (AttributeError, KeyError, TypeError) as e:
            raise unexpected_response(operation, e) from e
        return aggregate_build_states(states)

    def merge_pull_request(self, handle: PullRequestHandle, message: str) -> None:
        def merge() -> None:
            self._client.post(
                f"{self._repo_path}/pullrequests/{handle.number}/merge",
                {"message": message, "merge_strategy": "merge_commit"},
                operation=f"merge pull request {handle.url}",
            )

        merge_unless_merged(self, handle, merge)

    def add_comment(self, handle: PullRequestHandle, text: str) -> None:
        self._client.post(
            f"{self._repo_path}/pullrequests/{handle.number}/comments",
            {"content": {"raw": text}},
            operation=f"comment on pull request {handle.url}",
        )

    def create_webhook(self, *, url: str, secret: str) -> None:
        self._client.post(
            f"{self._repo_path}/hooks",
            {
                "description": "envpromote",
                "url": url,
                "active": True,
                "secret": secret,
                "events": [
                    "repo:push",
                    "pullrequest:created",
                    "pullrequest:updated",
                    "pullrequest:fulfilled",
                ],
            },
            operation=f"create webhook on {self._repository.full_name}",
        )

    def _to_handle(self, data: Any, *, operation: str) -> PullRequestHandle:
        try:
            state = data["state"]
            return PullRequestHandle(
                url=data["links"]["html"]["href"],
                number=int(data["id"]),
                repository=self._repository,
                head_branch=data["source"]["branch"]["name"],
                base_branch=data["destination"]["branch"]["name"],
                head_commit_sha=data["source"]["commit"]["hash"],
                merged=state == "MERGED",
                closed=state != "OPEN",
                merge_commit_sha=(data.get("merge_commit") or {}).get("hash"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise unexpected_response(operation, e) from e
