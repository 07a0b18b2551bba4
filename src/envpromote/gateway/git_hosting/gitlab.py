"""GitLab adapter (merge requests over the v4 REST API)."""

import urllib.parse
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

# GitLab pipeline statuses -> normalized CI status
_PIPELINE_STATES: dict[str, CIStatus] = {
    "created": "pending",
    "waiting_for_resource": "pending",
    "preparing": "pending",
    "pending": "pending",
    "running": "pending",
    "scheduled": "pending",
    "manual": "pending",
    "success": "success",
    "failed": "failure",
    "canceled": "error",
}


class GitLabProvider(GitProvider):
    def __init__(self, *, repository: RepositoryRef, client: HostingApiClient) -> None:
        self._repository = repository
        self._client = client

    @classmethod
    def from_token(cls, repository: RepositoryRef, token: str) -> "GitLabProvider":
        client = HostingApiClient(
            base_url=f"{repository.host_url}/api/v4",
            headers={"PRIVATE-TOKEN": token},
        )
        return cls(repository=repository, client=client)

    @property
    def kind(self) -> HostKind:
        return "gitlab"

    @property
    def repository(self) -> RepositoryRef:
        return self._repository

    @property
    def _project_path(self) -> str:
        return "projects/" + urllib.parse.quote(self._repository.full_name, safe="")

    def create_pull_request(
        self, *, base: str, head: str, title: str, body: str
    ) -> PullRequestHandle:
        operation = f"create merge request for branch '{head}'"
        data = self._client.post(
            f"{self._project_path}/merge_requests",
            {
                "source_branch": head,
                "target_branch": base,
                "title": title,
                "description": body,
            },
            operation=operation,
        )
        return self._to_handle(data, operation=operation)

    def refresh_status(self, handle: PullRequestHandle) -> PullRequestHandle:
        operation = f"query merge request {handle.url}"
        data = self._client.get(
            f"{self._project_path}/merge_requests/{handle.number}", operation=operation
        )
        return self._to_handle(data, operation=operation)

    def last_commit_ci_status(self, handle: PullRequestHandle) -> CIStatus:
        operation = f"query pipeline status of {handle.head_commit_sha}"
        data = self._client.get(
            f"{self._project_path}/repository/commits/{handle.head_commit_sha}",
            operation=operation,
        )
        try:
            pipeline = data.get("last_pipeline")
            status = pipeline.get("status") if pipeline else data.get("status")
        except AttributeError as e:
            raise unexpected_response(operation, e) from e
        if status is None:
            return "unknown"
        return _PIPELINE_STATES.get(status, "unknown")

    def merge_pull_request(self, handle: PullRequestHandle, message: str) -> None:
        def merge() -> None:
            self._client.put(
                f"{self._project_path}/merge_requests/{handle.number}/merge",
                {"merge_commit_message": message, "sha": handle.head_commit_sha},
                operation=f"merge merge request {handle.url}",
            )

        merge_unless_merged(self, handle, merge)

    def add_comment(self, handle: PullRequestHandle, text: str) -> None:
        self._client.post(
            f"{self._project_path}/merge_requests/{handle.number}/notes",
            {"body": text},
            operation=f"comment on merge request {handle.url}",
        )

    def create_webhook(self, *, url: str, secret: str) -> None:
        self._client.post(
            f"{self._project_path}/hooks",
            {
                "url": url,
                "token": secret,
                "push_events": True,
                "merge_requests_events": True,
            },
            operation=f"create webhook on {self._repository.full_name}",
        )

    def _to_handle(self, data: Any, *, operation: str) -> PullRequestHandle:
        try:
            state = data["state"]
            return PullRequestHandle(
                url=data["web_url"],
                number=int(data["iid"]),
                repository=self._repository,
                head_branch=data["source_branch"],
                base_branch=data["target_branch"],
                head_commit_sha=data["sha"],
                merged=state == "merged",
                closed=state in ("closed", "merged", "locked"),
                merge_commit_sha=data.get("merge_commit_sha"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise unexpected_response(operation, e) from e
