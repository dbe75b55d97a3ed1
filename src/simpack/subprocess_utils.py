"""Subprocess utilities for running external build tools.

This module wraps subprocess so that every tool simpack shells out to
(npx-hosted Node tools, git) runs the same way: no console window on
Windows, stdin redirected unless text is piped in, and a ToolInvocationError
carrying the tool's stderr when the command fails.
"""

import logging
import subprocess
import sys
from pathlib import Path
from typing import Any, Optional

from .errors import ToolInvocationError

logger = logging.getLogger(__name__)


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def safe_run(cmd: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
    """Execute subprocess.run with platform-specific flags.

    Applies CREATE_NO_WINDOW on Windows and redirects stdin to DEVNULL
    unless the caller passes stdin or input explicitly.

    Args:
        cmd: Command and arguments (same as subprocess.run)
        **kwargs: Additional arguments passed to subprocess.run

    Returns:
        CompletedProcess result from subprocess.run
    """
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    if "stdin" not in kwargs and "input" not in kwargs:
        kwargs["stdin"] = subprocess.DEVNULL

    return subprocess.run(cmd, **kwargs)


def run_tool(
    cmd: list[str],
    input_text: Optional[str] = None,
    cwd: Optional[Path] = None,
    env: Optional[dict[str, str]] = None,
) -> str:
    """Run an external tool and return its stdout.

    Args:
        cmd: Command and arguments
        input_text: Text piped to the tool's stdin, if any
        cwd: Working directory for the tool
        env: Full environment for the tool (defaults to the current one)

    Returns:
        The tool's standard output, decoded as UTF-8

    Raises:
        ToolInvocationError: If the tool cannot be started or exits non-zero
    """
    logger.debug("Running tool: %s", " ".join(cmd))
    run_kwargs: dict[str, Any] = {"capture_output": True, "text": True, "encoding": "utf-8", "cwd": cwd, "env": env}
    # stdin stays DEVNULL unless text is piped in
    if input_text is not None:
        run_kwargs["input"] = input_text
    try:
        result = safe_run(cmd, **run_kwargs)
    except FileNotFoundError as e:
        raise ToolInvocationError(f"Tool not found: {cmd[0]} ({e})", cmd, None) from e

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise ToolInvocationError(
            f"{cmd[0]} exited with code {result.returncode}: {stderr}",
            cmd,
            result.returncode,
            stderr,
        )
    return result.stdout
