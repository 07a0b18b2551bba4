"""Idempotent merge shared by the REST adapters."""

import logging
from collections.abc import Callable

from envpromote.gateway.git_hosting.abc import GitProvider
from envpromote.gateway.git_hosting.errors import ProviderTransientError
from envpromote.gateway.git_hosting.types import PullRequestHandle

logger = logging.getLogger(__name__)


def merge_unless_merged(
    provider: GitProvider,
    handle: PullRequestHandle,
    merge: Callable[[], None],
) -> None:
    """Run `merge`, treating "already merged" rejections as success.

    Hosts answer a merge of a merged pull request with assorted 4xx codes, so
    on a transient failure the pull request is re-read and the error is only
    re-raised if it is still unmerged.
    """
    if handle.is_merged:
        return
    try:
        merge()
    except ProviderTransientError:
        refreshed = provider.refresh_status(handle)
        if refreshed.is_merged:
            logger.debug("Pull request %s was already merged", handle.url)
            return
        raise
