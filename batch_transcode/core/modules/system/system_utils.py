"""
System utilities for batch_transcode.

This module provides system-level utilities including:
- Subprocess execution (captured and line-streamed)
- Best-effort file removal for cleanup paths
"""

import shlex
import subprocess
from pathlib import Path
from typing import Callable, List

from ....utils.logging import get_logger

logger = get_logger("system_utils")

# (command, line callback) -> exit code
ProcessRunner = Callable[[List[str], Callable[[str], None]], int]


def run_command(cmd: List[str], timeout: int = 30, capture_output: bool = True,
                text: bool = True, check: bool = False) -> subprocess.CompletedProcess:
    """
    Standardized subprocess command runner with consistent error handling.

    Args:
        cmd: Command as list of strings
        timeout: Timeout in seconds (default: 30)
        capture_output: Whether to capture stdout/stderr (default: True)
        text: Whether to use text mode (default: True)
        check: Whether to raise exception on non-zero exit (default: False)

    Returns:
        CompletedProcess object
    """
    try:
        return subprocess.run(
            cmd,
            capture_output=capture_output,
            text=text,
            timeout=timeout,
            check=check
        )
    except subprocess.TimeoutExpired:
        logger.error(f"Command timed out after {timeout}s: {' '.join(cmd[:3])}...")
        raise


def stream_command(cmd: List[str], on_line: Callable[[str], None]) -> int:
    """
    Run ``cmd`` to completion, handing every line of combined stdout/stderr to ``on_line``.

    No timeout is applied: a hung process blocks the caller.

    Returns:
        The process exit code
    """
    logger.debug("Command: " + " ".join(shlex.quote(c) for c in cmd))
    process = subprocess.Popen(
        cmd,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        errors="replace",
        bufsize=1,
    )
    try:
        for line in process.stdout:
            line = line.rstrip()
            if line:
                on_line(line)
    finally:
        process.stdout.close()
        returncode = process.wait()
    return returncode


def remove_file_quietly(path: Path, what: str = "file") -> bool:
    """
    Best-effort removal. Failures are logged as warnings and never raised.

    Returns:
        True if the file was removed, False if it was absent or removal failed
    """
    try:
        if not path.exists():
            return False
        path.unlink()
        logger.debug(f"Removed {what}: {path}")
        return True
    except OSError as e:
        logger.warn(f"Could not remove {what} {path}: {e}")
        return False
