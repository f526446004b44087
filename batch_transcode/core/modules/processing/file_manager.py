"""
File discovery and output naming for batch_transcode.

This module provides centralized:
- Recursive discovery of eligible video files (extension allow-list, size floor)
- Hidden file and resource-fork filtering
- Deterministic output paths derived from the input's relative location
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from ....utils.logging import format_size, get_logger

# Module logger
logger = get_logger("file_manager")

DEFAULT_EXTENSIONS = ("mkv", "mp4", "avi", "mov", "wmv", "m4v", "ts")


@dataclass(frozen=True)
class VideoFile:
    """A discovered input file. Immutable once enumerated."""
    path: Path
    size: int
    relative_path: Path

    @property
    def name(self) -> str:
        return self.path.name


@dataclass
class FileDiscoveryResult:
    """Result of file discovery operation."""
    files_to_transcode: List[VideoFile]
    skipped_files: List[Tuple[Path, str]] = field(default_factory=list)  # (file, reason)
    hidden_files_skipped: int = 0
    total_files_found: int = 0


def normalize_extensions(extensions: Iterable[str]) -> Tuple[str, ...]:
    """Lower-case extensions without leading dots: (".MKV", "mp4") -> ("mkv", "mp4")."""
    return tuple(sorted({ext.strip().lower().lstrip(".") for ext in extensions if ext.strip()}))


def build_output_path(video: VideoFile, output_root: Path, suffix: str = "_optimized",
                      extension: str = ".mkv") -> Path:
    """
    Deterministic final path for ``video``.

    ``<output_root>/<relative dir>/<stem><suffix><extension>``; depends only on
    the arguments, never on processing order or run history.
    """
    if not extension.startswith("."):
        extension = "." + extension
    relative = video.relative_path
    return output_root / relative.parent / f"{relative.stem}{suffix}{extension}"


class FileManager:
    """Enumerates eligible video files under a source root."""

    def __init__(self, extensions: Sequence[str] = DEFAULT_EXTENSIONS, min_size: int = 0,
                 exclude_dirs: Optional[Sequence[Path]] = None):
        self.extensions = normalize_extensions(extensions)
        self.min_size = min_size
        self.exclude_dirs = [Path(d).resolve() for d in (exclude_dirs or [])]

    def discover_video_files(self, base_path: Path) -> FileDiscoveryResult:
        """
        Discover video files below ``base_path`` (recursive, sorted by path).

        Args:
            base_path: Directory to search

        Returns:
            FileDiscoveryResult with eligible files and the reasons others were skipped
        """
        if not base_path.is_dir():
            raise ValueError(f"Path not found: {base_path}")

        eligible: List[VideoFile] = []
        skipped: List[Tuple[Path, str]] = []
        hidden = 0
        total = 0

        for dirpath, dirnames, filenames in os.walk(base_path):
            current = Path(dirpath)
            # Prune output/scratch roots nested inside the source tree
            dirnames[:] = sorted(d for d in dirnames
                                 if not self._is_excluded(current / d) and not d.startswith('.'))
            for filename in sorted(filenames):
                path = current / filename
                if path.suffix.lower().lstrip(".") not in self.extensions:
                    continue
                total += 1
                if filename.startswith('.'):
                    hidden += 1
                    continue
                try:
                    size = path.stat().st_size
                except OSError as e:
                    skipped.append((path, f"stat failed: {e}"))
                    continue
                if size < self.min_size:
                    skipped.append((path, f"below minimum size ({format_size(size)})"))
                    continue
                eligible.append(VideoFile(
                    path=path.resolve(),
                    size=size,
                    relative_path=path.relative_to(base_path),
                ))

        eligible.sort(key=lambda v: str(v.relative_path))
        logger.debug(f"Found {total} candidate files with extensions {list(self.extensions)}")
        return FileDiscoveryResult(
            files_to_transcode=eligible,
            skipped_files=skipped,
            hidden_files_skipped=hidden,
            total_files_found=total,
        )

    def _is_excluded(self, directory: Path) -> bool:
        try:
            resolved = directory.resolve()
        except OSError:
            return False
        return any(resolved == excluded for excluded in self.exclude_dirs)
