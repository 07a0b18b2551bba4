"""Publish a manifest change as a pull request.

Mutates the manifest inside the caller's checkout, commits and pushes the
promotion branch, then opens the pull request. The checkout is left as is
afterwards; cleaning it up is the caller's job.
"""

import logging

from envpromote.gateway.git.abc import GitWorkingCopy
from envpromote.gateway.git_hosting.abc import GitProvider
from envpromote.gateway.git_hosting.types import PullRequestHandle
from envpromote.manifest.mutator import MalformedManifestError, apply_mutation
from envpromote.promotion.errors import GitOperationError, ManifestNotFoundError, NoChangesError
from envpromote.promotion.types import PromotionRequest

logger = logging.getLogger(__name__)


def commit_message_for(title: str) -> str:
    """Commit message used for a promotion: the first line of its title."""
    return title.strip().splitlines()[0]


class BranchPublisher:
    def __init__(self, *, git: GitWorkingCopy, provider: GitProvider) -> None:
        self._git = git
        self._provider = provider

    def publish(self, request: PromotionRequest) -> PullRequestHandle:
        """Apply the mutation, push the branch and open the pull request.

        Raises:
            ManifestNotFoundError: If the manifest file does not exist
            MalformedManifestError: If the manifest cannot be parsed
            NoChangesError: If the mutation does not change the manifest
            GitOperationError: If committing or pushing fails
            ProviderError: If the pull request cannot be created
        """
        manifest = request.repository_checkout_path / request.manifest_path
        if not manifest.is_file():
            checkout = request.repository_checkout_path
            msg = f"Manifest {request.manifest_path} not found in {checkout}"
            raise ManifestNotFoundError(msg)

        # bytes in and out so line endings survive untouched
        try:
            original = manifest.read_bytes().decode("utf-8")
        except UnicodeDecodeError as e:
            msg = f"Manifest {request.manifest_path} is not valid UTF-8: {e}"
            raise MalformedManifestError(msg) from e
        updated = apply_mutation(original, request.mutation)
        if updated == original:
            msg = f"{request.mutation.describe()} leaves {request.manifest_path} unchanged"
            raise NoChangesError(msg)

        manifest.write_bytes(updated.encode("utf-8"))
        logger.debug("Applied '%s' to %s", request.mutation.describe(), manifest)

        try:
            self._git.commit_and_push(
                request.repository_checkout_path,
                branch=request.branch_name,
                message=commit_message_for(request.title),
            )
        except RuntimeError as e:
            raise GitOperationError(str(e)) from e

        handle = self._provider.create_pull_request(
            base=request.base_branch,
            head=request.branch_name,
            title=request.title,
            body=request.description,
        )
        logger.info(
            "Created pull request %s",
            handle.url,
            extra={"component": "branch_publisher", "pr_url": handle.url},
        )
        return handle
