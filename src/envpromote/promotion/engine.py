"""Single entry point for promoting a manifest change through a pull request."""

import logging
import threading

from envpromote.gateway.git.abc import GitWorkingCopy
from envpromote.gateway.git_hosting.abc import GitProvider
from envpromote.gateway.git_hosting.errors import ProviderError
from envpromote.gateway.time.abc import Time
from envpromote.manifest.mutator import ManifestError
from envpromote.promotion.errors import PublishError
from envpromote.promotion.poller import PollState, PromotionPoller
from envpromote.promotion.publisher import BranchPublisher
from envpromote.promotion.types import PromotionOutcome, PromotionRequest, PromotionResult

logger = logging.getLogger(__name__)

_OUTCOMES: dict[PollState, PromotionOutcome] = {
    "merged": "merged",
    "closed_without_merge": "closed_without_merge",
    "timed_out": "timed_out",
    "aborted": "aborted",
}


class PromotionEngine:
    """Publishes the promotion branch, then polls the pull request to completion.

    Nothing is rolled back: a pull request that is published but not merged
    stays open for manual follow-up, and branches are never deleted.
    """

    def __init__(self, *, git: GitWorkingCopy, provider: GitProvider, time: Time) -> None:
        self._git = git
        self._provider = provider
        self._time = time

    def promote(
        self, request: PromotionRequest, *, cancel: threading.Event | None = None
    ) -> PromotionResult:
        started = self._time.monotonic()
        publisher = BranchPublisher(git=self._git, provider=self._provider)
        try:
            handle = publisher.publish(request)
        except (PublishError, ManifestError, ProviderError, OSError) as e:
            logger.warning("Promotion of '%s' not published: %s", request.mutation.describe(), e)
            return PromotionResult(
                outcome="publish_failed",
                handle=None,
                last_error=e,
                elapsed_seconds=self._time.monotonic() - started,
            )

        poller = PromotionPoller(
            provider=self._provider,
            time=self._time,
            poll_interval_seconds=request.poll_interval_seconds,
            timeout_seconds=request.timeout_seconds,
            auto_merge_enabled=request.auto_merge_enabled,
            merge_commit_message=request.merge_commit_message,
        )
        outcome = poller.run(handle, cancel=cancel)

        return PromotionResult(
            outcome=_OUTCOMES[outcome.state],
            handle=outcome.handle,
            last_error=outcome.last_error,
            elapsed_seconds=self._time.monotonic() - started,
            last_ci_status=outcome.last_ci_status,
            merge_attempts=outcome.merge_attempts,
        )
