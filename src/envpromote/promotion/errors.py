"""Errors raised while publishing a promotion branch."""


class PublishError(Exception):
    """Base class for failures before a pull request exists."""


class NoChangesError(PublishError):
    """The mutation left the manifest byte-identical; nothing to promote.

    Callers usually treat this as a skip rather than a failure.
    """


class ManifestNotFoundError(PublishError):
    """The manifest file is missing from the environment checkout."""


class GitOperationError(PublishError):
    """Committing or pushing the promotion branch failed."""
