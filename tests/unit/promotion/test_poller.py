"""Tests for the pull request polling state machine."""

import logging
import threading

import pytest

from envpromote.gateway.git_hosting.errors import ProviderFatalError, ProviderTransientError
from envpromote.gateway.git_hosting.fake import (
    CLOSED,
    FAKE_MERGE_COMMIT_SHA,
    MERGED,
    OPEN,
    FakeGitProvider,
    FakePullRequestState,
)
from envpromote.gateway.git_hosting.types import PullRequestHandle
from envpromote.gateway.time.fake import FakeTime
from envpromote.promotion.poller import PromotionPoller


def _poller(
    provider: FakeGitProvider,
    time: FakeTime,
    *,
    interval: float = 10.0,
    timeout: float = 100.0,
    auto_merge: bool = True,
) -> PromotionPoller:
    return PromotionPoller(
        provider=provider,
        time=time,
        poll_interval_seconds=interval,
        timeout_seconds=timeout,
        auto_merge_enabled=auto_merge,
        merge_commit_message="automatic merge",
    )


def _handle(provider: FakeGitProvider) -> PullRequestHandle:
    return provider.create_pull_request(base="main", head="promote-a", title="t", body="b")


def _transient() -> ProviderTransientError:
    return ProviderTransientError("503 from host", operation="query", status_code=503)


def _fatal() -> ProviderFatalError:
    return ProviderFatalError("401 from host", operation="query", status_code=401)


# ============================================================================
# Terminal states
# ============================================================================


def test_merges_once_ci_is_green() -> None:
    provider = FakeGitProvider(ci_responses=["pending", "success"])
    time = FakeTime()

    outcome = _poller(provider, time).run(_handle(provider))

    assert outcome.state == "merged"
    assert outcome.handle.merge_commit_sha == FAKE_MERGE_COMMIT_SHA
    assert outcome.merge_attempts == 1
    assert outcome.last_ci_status == "success"
    assert outcome.elapsed_seconds == 10.0
    assert provider.merge_calls[0].message == "automatic merge"
    # the merge is confirmed on the same tick
    assert provider.refresh_count == 3


def test_human_closing_the_pull_request_ends_polling() -> None:
    provider = FakeGitProvider(refresh_responses=[OPEN, OPEN, CLOSED])
    time = FakeTime()

    outcome = _poller(provider, time).run(_handle(provider))

    assert outcome.state == "closed_without_merge"
    assert provider.merge_calls == []
    assert time.sleep_calls == [10.0, 10.0]


@pytest.mark.parametrize(
    "state",
    [MERGED, FakePullRequestState(merged=True, closed=False)],
)
def test_merged_takes_precedence_over_closed(state: FakePullRequestState) -> None:
    provider = FakeGitProvider(refresh_responses=[state])

    outcome = _poller(provider, FakeTime()).run(_handle(provider))

    assert outcome.state == "merged"
    assert provider.ci_query_count == 0


def test_terminal_state_is_a_sink() -> None:
    provider = FakeGitProvider(refresh_responses=[MERGED, CLOSED])
    session = _poller(provider, FakeTime()).start(_handle(provider))

    assert session.tick() == "merged"
    assert session.tick() == "merged"
    session.time_out("late")

    assert session.state == "merged"
    assert provider.refresh_count == 1


def test_merged_by_human_without_auto_merge() -> None:
    provider = FakeGitProvider(refresh_responses=[OPEN, OPEN, MERGED], ci_responses=["success"])

    outcome = _poller(provider, FakeTime(), auto_merge=False).run(_handle(provider))

    assert outcome.state == "merged"
    assert provider.merge_calls == []
    assert outcome.merge_attempts == 0


# ============================================================================
# Timeouts and cancellation
# ============================================================================


def test_failing_ci_times_out_without_merging() -> None:
    provider = FakeGitProvider(ci_responses=["failure"])
    time = FakeTime()

    outcome = _poller(provider, time, interval=10.0, timeout=20.0).run(_handle(provider))

    assert outcome.state == "timed_out"
    assert outcome.elapsed_seconds == 20.0
    assert outcome.last_ci_status == "failure"
    assert provider.merge_calls == []
    assert provider.refresh_count == 3


@pytest.mark.parametrize(
    ("timeout", "interval"),
    [(0.0, 5.0), (25.0, 10.0), (30.0, 10.0), (3600.0, 20.0), (7.0, 60.0)],
)
def test_elapsed_time_is_bounded_by_timeout_plus_interval(timeout: float, interval: float) -> None:
    provider = FakeGitProvider()

    outcome = _poller(provider, FakeTime(), interval=interval, timeout=timeout).run(
        _handle(provider)
    )

    assert outcome.state == "timed_out"
    assert timeout <= outcome.elapsed_seconds <= timeout + interval


def test_cancel_during_wait_ends_as_timed_out() -> None:
    provider = FakeGitProvider()
    cancel = threading.Event()
    time = FakeTime(cancel_after_waits=1)

    outcome = _poller(provider, time).run(_handle(provider), cancel=cancel)

    assert outcome.state == "timed_out"
    assert provider.refresh_count == 1
    assert cancel.is_set()


def test_cancel_before_start_runs_a_single_tick() -> None:
    provider = FakeGitProvider()
    cancel = threading.Event()
    cancel.set()

    outcome = _poller(provider, FakeTime()).run(_handle(provider), cancel=cancel)

    assert outcome.state == "timed_out"
    assert provider.refresh_count == 1


# ============================================================================
# Errors
# ============================================================================


def test_transient_refresh_errors_keep_polling() -> None:
    provider = FakeGitProvider(refresh_responses=[_transient(), _transient(), MERGED])

    outcome = _poller(provider, FakeTime()).run(_handle(provider))

    assert outcome.state == "merged"
    assert isinstance(outcome.last_error, ProviderTransientError)
    assert provider.refresh_count == 3


def test_transient_ci_errors_keep_polling() -> None:
    provider = FakeGitProvider(ci_responses=[_transient(), "success"])

    outcome = _poller(provider, FakeTime()).run(_handle(provider))

    assert outcome.state == "merged"
    assert provider.ci_query_count == 2


class _FlakyProvider(FakeGitProvider):
    def __init__(self) -> None:
        super().__init__(ci_responses=["success"])
        self._failed = False

    def refresh_status(self, handle: PullRequestHandle) -> PullRequestHandle:
        if not self._failed:
            self._failed = True
            raise KeyError("state")
        return super().refresh_status(handle)


def test_unrecognized_errors_are_treated_as_transient() -> None:
    provider = _FlakyProvider()

    outcome = _poller(provider, FakeTime()).run(_handle(provider))

    assert outcome.state == "merged"
    assert isinstance(outcome.last_error, KeyError)


def test_fatal_error_aborts_immediately() -> None:
    provider = FakeGitProvider(ci_responses=[_fatal()])
    time = FakeTime()

    outcome = _poller(provider, time).run(_handle(provider))

    assert outcome.state == "aborted"
    assert isinstance(outcome.last_error, ProviderFatalError)
    assert time.sleep_calls == []


def test_fatal_merge_error_aborts() -> None:
    provider = FakeGitProvider(ci_responses=["success"], merge_errors=[_fatal()])

    outcome = _poller(provider, FakeTime()).run(_handle(provider))

    assert outcome.state == "aborted"
    assert outcome.merge_attempts == 1


def test_failed_merges_are_retried_and_warned_once(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="envpromote")
    provider = FakeGitProvider(
        ci_responses=["success"], merge_errors=[_transient(), _transient(), None]
    )

    outcome = _poller(provider, FakeTime()).run(_handle(provider))

    assert outcome.state == "merged"
    assert outcome.merge_attempts == 3
    warnings = [
        r for r in caplog.records if r.levelno == logging.WARNING and "Failed to merge" in r.message
    ]
    assert len(warnings) == 1


def test_failing_ci_can_recover() -> None:
    provider = FakeGitProvider(ci_responses=["failure", "error", "success"])

    outcome = _poller(provider, FakeTime()).run(_handle(provider))

    assert outcome.state == "merged"
    assert outcome.elapsed_seconds == 20.0


def test_merge_uses_latest_head_commit() -> None:
    provider = FakeGitProvider(
        refresh_responses=[FakePullRequestState(head_commit_sha="def456")],
        ci_responses=["success"],
    )

    _poller(provider, FakeTime()).run(_handle(provider))

    assert provider.merge_calls[0].head_commit_sha == "def456"


def test_state_transitions_are_logged_with_fields(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="envpromote")
    provider = FakeGitProvider(refresh_responses=[CLOSED])

    _poller(provider, FakeTime()).run(_handle(provider))

    transitions = [r for r in caplog.records if getattr(r, "component", None) == "promotion_poller"]
    assert len(transitions) == 1
    assert transitions[0].__dict__["old_state"] == "open"
    assert transitions[0].__dict__["new_state"] == "closed_without_merge"
    assert transitions[0].__dict__["pr_url"].endswith("/pull/1")
