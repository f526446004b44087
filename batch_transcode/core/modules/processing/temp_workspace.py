"""
Scratch directory housekeeping.

Stale files left in the scratch root by an interrupted run are only deleted
after the operator confirms twice.
"""

from pathlib import Path
from typing import List

from ....utils.logging import format_size, get_logger
from ..interface.user_interface import ConfirmationProvider, prompt_user_confirmation

logger = get_logger("temp_workspace")


class TempWorkspaceManager:
    """Inspects and (with double confirmation) clears the scratch root."""

    def __init__(self, temp_root: Path, confirm: ConfirmationProvider = prompt_user_confirmation):
        self.temp_root = temp_root
        self.confirm = confirm

    def list_stale_files(self) -> List[Path]:
        """Files directly under the scratch root (non-recursive)."""
        if not self.temp_root.is_dir():
            return []
        return sorted(p for p in self.temp_root.iterdir() if p.is_file())

    def clear_stale_files(self) -> int:
        """
        Offer to delete leftover scratch files.

        Returns:
            Number of files removed (0 when nothing was found or the operator declined)
        """
        stale = self.list_stale_files()
        if not stale:
            logger.debug(f"Scratch root is empty: {self.temp_root}")
            return 0

        total_size = sum(self._size(p) for p in stale)
        logger.warn(f"Found {len(stale)} file(s) ({format_size(total_size)}) in scratch root {self.temp_root}")
        for path in stale:
            logger.info(f"  stale: {path.name}")

        if not self.confirm(f"Delete {len(stale)} file(s) from {self.temp_root}?"):
            logger.info("Scratch cleanup declined; leaving files untouched")
            return 0
        if not self.confirm(f"Are you sure? {len(stale)} file(s) will be permanently deleted"):
            logger.info("Scratch cleanup declined at second confirmation; leaving files untouched")
            return 0

        removed = 0
        for path in stale:
            try:
                path.unlink()
                removed += 1
            except OSError as e:
                logger.warn(f"Could not delete stale scratch file {path}: {e}")
        logger.cleanup(f"Removed {removed}/{len(stale)} stale scratch file(s)")
        return removed

    @staticmethod
    def _size(path: Path) -> int:
        try:
            return path.stat().st_size
        except OSError:
            return 0
