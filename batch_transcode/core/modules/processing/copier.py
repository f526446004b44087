"""
Staging copies into scratch storage.

Source trees often live on network shares; a copy is only trusted once the
destination exists with exactly the source's byte length.
"""

import shutil
from pathlib import Path

from ....utils.logging import format_size, get_logger
from ..errors import StagingError
from ..system.retry_policy import RetryPolicy
from ..system.system_utils import remove_file_quietly

logger = get_logger("copier")


class RetryableCopier:
    """Copies a file and verifies completeness, retrying on failure."""

    def __init__(self, retry_policy: RetryPolicy):
        self.retry_policy = retry_policy

    def copy(self, source: Path, destination: Path) -> Path:
        """
        Copy ``source`` to ``destination``.

        Raises:
            StagingError: once the retry budget is exhausted
        """
        return self.retry_policy.run(
            lambda: self._copy_once(source, destination),
            description=f"Copy {source.name} to scratch",
            retry_on=(StagingError,),
            log=logger,
        )

    def _copy_once(self, source: Path, destination: Path) -> Path:
        try:
            expected = source.stat().st_size
            if destination.exists():
                destination.unlink()
            destination.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"Copying {source} -> {destination} ({format_size(expected)})")
            shutil.copy2(str(source), str(destination))
        except OSError as e:
            remove_file_quietly(destination, "partial staged copy")
            raise StagingError(f"copy error: {e}") from e

        self.verify(source, destination, expected)
        return destination

    @staticmethod
    def verify(source: Path, destination: Path, expected: int):
        """Raise StagingError unless ``destination`` holds ``expected`` bytes."""
        try:
            actual = destination.stat().st_size
        except OSError as e:
            raise StagingError(f"staged copy missing: {destination} ({e})") from e
        if actual != expected:
            raise StagingError(
                f"incomplete copy of {source.name}: {actual} of {expected} bytes")
