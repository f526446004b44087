"""
Source share availability check for batch_transcode.

Runs once before any work: if the source root cannot be reached the whole
batch is aborted. Network shares are detected only for diagnostics.
"""

import os
import platform
import subprocess
from pathlib import Path

from ....utils.logging import get_logger
from .system_utils import run_command

logger = get_logger("network_utils")


class ShareAvailabilityChecker:
    """Verifies that a root directory is reachable."""

    def __init__(self):
        self._is_windows = platform.system() == "Windows"

    def check(self, root: Path) -> bool:
        """
        Check that ``root`` exists and is a listable directory.

        Logs INFO on success and ERROR (with the cause) on failure.
        """
        try:
            if not root.is_dir():
                reason = "path does not exist" if not root.exists() else "not a directory"
                logger.error(f"Source root is not accessible: {root} ({reason})")
                return False
            with os.scandir(root) as entries:
                next(entries, None)
        except OSError as e:
            logger.error(f"Source root is not accessible: {root} ({e})")
            return False

        kind = "network share" if self.is_network_path(root) else "local path"
        logger.info(f"Source root is accessible: {root}")
        logger.debug(f"Source root {root} detected as {kind}")
        return True

    def is_network_path(self, path: Path) -> bool:
        """Detect if a path is on a network drive (UNC / NFS / SMB)."""
        path_str = str(path)
        if path_str.startswith('\\\\') or path_str.startswith('//'):
            return True

        if self._is_windows:
            drive_letter = path_str[0:2] if len(path_str) >= 2 else ''
            if drive_letter.endswith(':'):
                try:
                    result = run_command(['net', 'use', drive_letter], timeout=5)
                    return result.returncode == 0 and 'Microsoft Windows Network' in result.stdout
                except (subprocess.SubprocessError, OSError):
                    pass
            return False

        try:
            result = run_command(['df', '-T', path_str], timeout=5)
            return any(fs_type in result.stdout.lower() for fs_type in ['nfs', 'cifs', 'smb'])
        except (subprocess.SubprocessError, OSError):
            return False
