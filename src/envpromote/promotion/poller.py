"""State machine that drives an open promotion pull request to a terminal state.

States: open -> merged | closed_without_merge | timed_out | aborted.
Terminal states are sinks: once reached, further ticks do nothing.

Each tick refreshes the pull request, stops if it was merged or closed, and
otherwise looks at the CI status of the head commit, merging when it is
green and auto-merge is on. Transient provider failures never end the loop;
they are logged and the next tick tries again. Failing CI does not end the
loop either, since a fix can still be pushed to the same branch. Only the
timeout, cancellation, or a rejected credential stop it early.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Literal

from envpromote.gateway.git_hosting.abc import GitProvider
from envpromote.gateway.git_hosting.errors import ProviderFatalError
from envpromote.gateway.git_hosting.types import CIStatus, PullRequestHandle
from envpromote.gateway.time.abc import Time

logger = logging.getLogger(__name__)

PollState = Literal["open", "merged", "closed_without_merge", "timed_out", "aborted"]

TERMINAL_STATES: frozenset[PollState] = frozenset(
    {"merged", "closed_without_merge", "timed_out", "aborted"}
)

_COMPONENT = "promotion_poller"


@dataclass(frozen=True)
class PollOutcome:
    state: PollState
    handle: PullRequestHandle
    last_ci_status: CIStatus | None
    elapsed_seconds: float
    merge_attempts: int
    last_error: Exception | None


class PollSession:
    """Polling state for a single pull request.

    Owns the handle exclusively; nothing else mutates it while polling.
    """

    def __init__(
        self,
        *,
        provider: GitProvider,
        handle: PullRequestHandle,
        auto_merge_enabled: bool,
        merge_commit_message: str,
    ) -> None:
        self._provider = provider
        self._handle = handle
        self._auto_merge_enabled = auto_merge_enabled
        self._merge_commit_message = merge_commit_message
        self._state: PollState = "open"
        self._last_ci_status: CIStatus | None = None
        self._last_error: Exception | None = None
        self._merge_attempts = 0
        self._merge_failure_logged = False

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def handle(self) -> PullRequestHandle:
        return self._handle

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    @property
    def last_ci_status(self) -> CIStatus | None:
        return self._last_ci_status

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    @property
    def merge_attempts(self) -> int:
        return self._merge_attempts

    def tick(self) -> PollState:
        """Run one poll step and return the resulting state."""
        if self.is_terminal:
            return self._state

        if not self._refresh():
            return self._state
        if self._observe_terminal_flags():
            return self._state

        status = self._query_ci_status()
        if status is None:
            return self._state

        if status in ("failure", "error"):
            logger.warning(
                "Pull request %s last commit has status %s for ref %s",
                self._handle.url,
                status,
                self._handle.head_commit_sha,
            )
        elif status == "success" and self._auto_merge_enabled:
            if self._try_merge():
                # confirm right away instead of waiting a full interval
                if self._refresh():
                    self._observe_terminal_flags()
        return self._state

    def time_out(self, reason: str) -> None:
        if self.is_terminal:
            return
        logger.info("Giving up on pull request %s: %s", self._handle.url, reason)
        self._transition("timed_out")

    # ------------------------------------------------------------------

    def _refresh(self) -> bool:
        try:
            self._handle = self._provider.refresh_status(self._handle)
        except ProviderFatalError as e:
            self._abort(e)
            return False
        except Exception as e:
            # unrecognized failures count as transient
            self._last_error = e
            logger.warning(
                "Failed to query the pull request status for %s: %s", self._handle.url, e
            )
            return False
        return True

    def _observe_terminal_flags(self) -> bool:
        # merged wins when a host reports merged and closed together
        if self._handle.is_merged:
            self._transition("merged")
            return True
        if self._handle.closed:
            logger.warning("Pull request %s is closed", self._handle.url)
            self._transition("closed_without_merge")
            return True
        return False

    def _query_ci_status(self) -> CIStatus | None:
        try:
            status = self._provider.last_commit_ci_status(self._handle)
        except ProviderFatalError as e:
            self._abort(e)
            return None
        except Exception as e:
            self._last_error = e
            logger.warning(
                "Failed to query the last commit status for %s ref %s: %s",
                self._handle.url,
                self._handle.head_commit_sha,
                e,
            )
            return None
        self._last_ci_status = status
        return status

    def _try_merge(self) -> bool:
        self._merge_attempts += 1
        try:
            self._provider.merge_pull_request(self._handle, self._merge_commit_message)
        except ProviderFatalError as e:
            self._abort(e)
            return False
        except Exception as e:
            self._last_error = e
            if not self._merge_failure_logged:
                self._merge_failure_logged = True
                logger.warning("Failed to merge the pull request %s: %s", self._handle.url, e)
            else:
                logger.debug(
                    "Merge attempt %d of %s failed: %s", self._merge_attempts, self._handle.url, e
                )
            return False
        logger.debug("Merge of %s requested", self._handle.url)
        return True

    def _abort(self, error: ProviderFatalError) -> None:
        self._last_error = error
        logger.error("Git host rejected credentials for %s: %s", self._handle.url, error)
        self._transition("aborted")

    def _transition(self, new_state: PollState) -> None:
        old_state = self._state
        self._state = new_state
        logger.info(
            "Pull request %s: %s -> %s",
            self._handle.url,
            old_state,
            new_state,
            extra={
                "component": _COMPONENT,
                "pr_url": self._handle.url,
                "old_state": old_state,
                "new_state": new_state,
            },
        )


class PromotionPoller:
    """Polls a pull request until it is merged, closed, or the timeout passes."""

    def __init__(
        self,
        *,
        provider: GitProvider,
        time: Time,
        poll_interval_seconds: float,
        timeout_seconds: float,
        auto_merge_enabled: bool,
        merge_commit_message: str,
    ) -> None:
        self._provider = provider
        self._time = time
        self._poll_interval = poll_interval_seconds
        self._timeout = timeout_seconds
        self._auto_merge_enabled = auto_merge_enabled
        self._merge_commit_message = merge_commit_message

    def start(self, handle: PullRequestHandle) -> PollSession:
        return PollSession(
            provider=self._provider,
            handle=handle,
            auto_merge_enabled=self._auto_merge_enabled,
            merge_commit_message=self._merge_commit_message,
        )

    def run(
        self, handle: PullRequestHandle, *, cancel: threading.Event | None = None
    ) -> PollOutcome:
        """Poll until a terminal state is reached.

        Returns within timeout + poll interval. Setting `cancel` ends the
        current or next wait and produces timed_out.
        """
        session = self.start(handle)
        started = self._time.monotonic()
        deadline = started + self._timeout
        logger.info("Waiting for pull request %s to merge", handle.url)

        while True:
            session.tick()
            if session.is_terminal:
                break
            remaining = deadline - self._time.monotonic()
            if remaining <= 0:
                session.time_out(f"no terminal state after {self._timeout:.0f}s")
                break
            if self._time.wait(min(self._poll_interval, remaining), cancel):
                session.time_out("cancelled")
                break

        return PollOutcome(
            state=session.state,
            handle=session.handle,
            last_ci_status=session.last_ci_status,
            elapsed_seconds=self._time.monotonic() - started,
            merge_attempts=session.merge_attempts,
            last_error=session.last_error,
        )
