"""Subprocess helpers that turn failures into errors with useful context."""

import logging
import subprocess
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)


def run_subprocess_with_context(
    *,
    cmd: list[str],
    operation_context: str,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run `cmd`, capturing output, and raise with context on failure.

    Args:
        cmd: Command and arguments
        operation_context: What the command is doing, used in error messages
        cwd: Working directory
        env: Full environment for the child process (None inherits ours)
        timeout: Seconds before the command is killed

    Returns:
        The completed process (returncode 0)

    Raises:
        RuntimeError: If the command is missing, times out, or exits non-zero
    """
    logger.debug("Running %s (cwd=%s)", " ".join(cmd), cwd)
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
    except FileNotFoundError as e:
        msg = f"Failed to {operation_context}: command not found: {cmd[0]}"
        raise RuntimeError(msg) from e
    except subprocess.TimeoutExpired as e:
        msg = f"Failed to {operation_context}: timed out after {timeout}s"
        raise RuntimeError(msg) from e

    if result.returncode != 0:
        stderr = result.stderr.strip()
        msg = f"Failed to {operation_context}: exit code {result.returncode}"
        if stderr:
            msg += f"\n{stderr}"
        raise RuntimeError(msg)
    return result
