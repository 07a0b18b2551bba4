"""Production implementation of the git working-copy gateway using subprocess."""

import os
from pathlib import Path

from envpromote.core.subprocess_utils import run_subprocess_with_context
from envpromote.gateway.git.abc import GitWorkingCopy

# Network operations must not hang a promotion forever
_GIT_NETWORK_TIMEOUT = 120.0


def _git_env() -> dict[str, str]:
    env = dict(os.environ)
    # Never prompt for credentials; fail instead
    env["GIT_TERMINAL_PROMPT"] = "0"
    return env


class RealGitWorkingCopy(GitWorkingCopy):
    def commit_and_push(
        self, cwd: Path, *, branch: str, message: str, remote: str = "origin"
    ) -> None:
        run_subprocess_with_context(
            cmd=["git", "checkout", "-B", branch],
            operation_context=f"create branch '{branch}'",
            cwd=cwd,
        )
        run_subprocess_with_context(
            cmd=["git", "add", "-A"],
            operation_context="stage all changes",
            cwd=cwd,
        )
        run_subprocess_with_context(
            cmd=["git", "commit", "-m", message],
            operation_context="create commit",
            cwd=cwd,
        )
        run_subprocess_with_context(
            cmd=["git", "push", "-u", remote, branch],
            operation_context=f"push branch '{branch}' to remote '{remote}'",
            cwd=cwd,
            env=_git_env(),
            timeout=_GIT_NETWORK_TIMEOUT,
        )

    def get_remote_url(self, cwd: Path, remote: str = "origin") -> str:
        result = run_subprocess_with_context(
            cmd=["git", "remote", "get-url", remote],
            operation_context=f"get URL of remote '{remote}'",
            cwd=cwd,
        )
        return result.stdout.strip()
