"""Subprocess helpers."""

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional


logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result from running a command."""
    returncode: int
    stdout: str = ""
    stderr: str = ""


def run_command(
    cmd: List[str],
    check: bool = True,
    capture_output: bool = True,
    timeout: Optional[int] = None,
    **kwargs
) -> CommandResult:
    """Run a command and wait for it.

    With ``capture_output=False`` the child inherits this process' standard
    streams, which is what interactive containers need.
    """
    logger.debug(f"Running command: {' '.join(cmd)}")

    try:
        completed = subprocess.run(
            cmd,
            stdout=subprocess.PIPE if capture_output else None,
            stderr=subprocess.PIPE if capture_output else None,
            timeout=timeout,
            **kwargs
        )
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out after {timeout}s: {cmd[0]}")
        raise

    result = CommandResult(
        returncode=completed.returncode,
        stdout=completed.stdout.decode() if completed.stdout else "",
        stderr=completed.stderr.decode() if completed.stderr else "",
    )

    if check and completed.returncode != 0:
        error = subprocess.CalledProcessError(completed.returncode, cmd)
        error.stdout = result.stdout
        error.stderr = result.stderr
        raise error

    return result
