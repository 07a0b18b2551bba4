"""GitHub (github.com and GitHub Enterprise) adapter."""

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

_CI_STATES: dict[str, CIStatus] = {
    "pending": "pending",
    "success": "success",
    "failure": "failure",
    "error": "error",
}


def github_api_url(repository: RepositoryRef) -> str:
    if repository.host == "github.com":
        return "https://api.github.com"
    return f"{repository.host_url}/api/v3"


class GitHubProvider(GitProvider):
    """GitHub REST v3 implementation."""

    def __init__(self, *, repository: RepositoryRef, client: HostingApiClient) -> None:
        self._repository = repository
        self._client = client

    @classmethod
    def from_token(cls, repository: RepositoryRef, token: str) -> "GitHubProvider":
        client = HostingApiClient(
            base_url=github_api_url(repository),
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
            },
        )
        return cls(repository=repository, client=client)

    @property
    def kind(self) -> HostKind:
        return "github"

    @property
    def repository(self) -> RepositoryRef:
        return self._repository

    @property
    def _repo_path(self) -> str:
        return f"repos/{self._repository.full_name}"

    def create_pull_request(
        self, *, base: str, head: str, title: str, body: str
    ) -> PullRequestHandle:
        operation = f"create pull request for branch '{head}'"
        data = self._client.post(
            f"{self._repo_path}/pulls",
            {"title": title, "head": head, "base": base, "body": body},
            operation=operation,
        )
        return self._to_handle(data, operation=operation)

    def refresh_status(self, handle: PullRequestHandle) -> PullRequestHandle:
        operation = f"query pull request {handle.url}"
        data = self._client.get(f"{self._repo_path}/pulls/{handle.number}", operation=operation)
        return self._to_handle(data, operation=operation)

    def last_commit_ci_status(self, handle: PullRequestHandle) -> CIStatus:
        operation = f"query commit status of {handle.head_commit_sha}"
        data = self._client.get(
            f"{self._repo_path}/commits/{handle.head_commit_sha}/status", operation=operation
        )
        try:
            if data.get("total_count", 0) == 0:
                return "unknown"
            return _CI_STATES.get(data["state"], "unknown")
        except (AttributeError, KeyError, TypeError) as e:
            raise unexpected_response(operation, e) from e

    def merge_pull_request(self, handle: PullRequestHandle, message: str) -> None:
        def merge() -> None:
            self._client.put(
                f"{self._repo_path}/pulls/{handle.number}/merge",
                {"commit_message": message, "sha": handle.head_commit_sha},
                operation=f"merge pull request {handle.url}",
            )

        merge_unless_merged(self, handle, merge)

    def add_comment(self, handle: PullRequestHandle, text: str) -> None:
        self._client.post(
            f"{self._repo_path}/issues/{handle.number}/comments",
            {"body": text},
            operation=f"comment on pull request {handle.url}",
        )

    def create_webhook(self, *, url: str, secret: str) -> None:
        self._client.post(
            f"{self._repo_path}/hooks",
            {
                "name": "web",
                "active": True,
                "events": ["push", "pull_request"],
                "config": {"url": url, "content_type": "json", "secret": secret},
            },
            operation=f"create webhook on {self._repository.full_name}",
        )

    def _to_handle(self, data: Any, *, operation: str) -> PullRequestHandle:
        try:
            return PullRequestHandle(
                url=data["html_url"],
                number=int(data["number"]),
                repository=self._repository,
                head_branch=data["head"]["ref"],
                base_branch=data["base"]["ref"],
                head_commit_sha=data["head"]["sha"],
                merged=bool(data.get("merged", False)),
                closed=data["state"] == "closed",
                merge_commit_sha=data.get("merge_commit_sha") if data.get("merged") else None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise unexpected_response(operation, e) from e
