"""
Per-file processing pipeline for batch_transcode.

Each file moves through:
    check existing output -> prepare scratch -> stage input -> encode
    -> promote -> cleanup
and always ends as a ProcessingResult (Success, Skipped or Failed). Nothing
raised while handling one file escapes to the batch loop.
"""

import os
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional

from ....utils.logging import format_duration, format_size, get_logger
from ..encoder_config import build_encoder_arguments, profile_tokens
from ..errors import PromotionError
from ..system.system_utils import remove_file_quietly
from .copier import RetryableCopier
from .file_manager import VideoFile, build_output_path
from .results import ProcessingResult
from .transcoding_engine import RetryableEncoderInvoker

logger = get_logger("job_processor")

PARTIAL_SUFFIX = ".partial"


@dataclass(frozen=True)
class ScratchPaths:
    """Scratch artifacts owned by one input file."""
    staged_input: Path
    encoder_output: Path


class FileProcessingPipeline:
    """Stage → encode → verify → promote → cleanup for one file at a time."""

    def __init__(self, output_root: Path, temp_root: Path, profile: Mapping[str, Any],
                 copier: RetryableCopier, encoder: RetryableEncoderInvoker,
                 skip_existing: bool = True, output_suffix: str = "_optimized",
                 output_extension: str = ".mkv",
                 clock: Callable[[], float] = time.monotonic):
        self.output_root = output_root
        self.temp_root = temp_root
        self.profile = profile
        self.copier = copier
        self.encoder = encoder
        self.skip_existing = skip_existing
        self.output_suffix = output_suffix
        self.output_extension = output_extension
        self.clock = clock
        self._profile_arguments: Optional[List[str]] = None

    def output_path_for(self, video: VideoFile) -> Path:
        return build_output_path(video, self.output_root, self.output_suffix, self.output_extension)

    def scratch_paths_for(self, video: VideoFile) -> ScratchPaths:
        return ScratchPaths(
            staged_input=self.temp_root / video.path.name,
            encoder_output=self.temp_root / self.output_path_for(video).name,
        )

    @staticmethod
    def partial_path_for(output_path: Path) -> Path:
        """Sibling the verified output is moved to before it replaces ``output_path``."""
        return output_path.with_name(output_path.name + PARTIAL_SUFFIX)

    def profile_arguments(self) -> List[str]:
        """Profile tokens, computed once per pipeline."""
        if self._profile_arguments is None:
            self._profile_arguments = profile_tokens(self.profile)
        return self._profile_arguments

    def process(self, video: VideoFile) -> ProcessingResult:
        """Run one file through the pipeline. Never raises."""
        start = self.clock()
        scratch: Optional[ScratchPaths] = None
        partial: Optional[Path] = None

        try:
            output_path = self.output_path_for(video)
            if self.skip_existing and output_path.exists():
                logger.info(f"SKIP {video.name}: output already exists at {output_path}")
                return ProcessingResult.skipped(video.name, video.size)

            scratch = self.scratch_paths_for(video)
            partial = self.partial_path_for(output_path)
            logger.info(f"Processing {video.relative_path} ({format_size(video.size)})")

            self._prepare_scratch(scratch, partial, output_path)
            self.copier.copy(video.path, scratch.staged_input)

            arguments = build_encoder_arguments(self.profile, scratch.staged_input, scratch.encoder_output,
                                                tokens=self.profile_arguments())
            optimized_size = self.encoder.encode(arguments, scratch.encoder_output)

            self._promote(scratch.encoder_output, partial, output_path)
            remove_file_quietly(scratch.staged_input, "staged input")
        except Exception as e:
            duration = self.clock() - start
            logger.error(f"FAILED {video.name}: {type(e).__name__}: {e}")
            if scratch is not None:
                self._discard_partial_artifacts(scratch, partial)
            return ProcessingResult.failed(video.name, video.size, duration)

        duration = self.clock() - start
        result = ProcessingResult.success(video.name, video.size, optimized_size, duration)
        logger.info(f"SUCCESS {video.name}: {format_size(video.size)} -> {format_size(optimized_size)} "
                    f"({result.compression_ratio:.2f}% saved) in {format_duration(duration)}")
        return result

    def _prepare_scratch(self, scratch: ScratchPaths, partial: Path, output_path: Path):
        if scratch.encoder_output.exists():
            logger.debug(f"Removing stale scratch output {scratch.encoder_output}")
            scratch.encoder_output.unlink()
        remove_file_quietly(partial, "stale partial output")
        self.temp_root.mkdir(parents=True, exist_ok=True)
        output_path.parent.mkdir(parents=True, exist_ok=True)

    def _promote(self, encoder_output: Path, partial: Path, output_path: Path):
        # An existing output stays in place until the replacement is complete beside it
        try:
            shutil.move(str(encoder_output), str(partial))
            os.replace(str(partial), str(output_path))
        except OSError as e:
            raise PromotionError(f"could not move {encoder_output} to {output_path}: {e}") from e
        logger.info(f"Promoted {encoder_output.name} -> {output_path}")

    def _discard_partial_artifacts(self, scratch: ScratchPaths, partial: Optional[Path]):
        remove_file_quietly(scratch.encoder_output, "partial encoder output")
        remove_file_quietly(scratch.staged_input, "staged input")
        if partial is not None:
            remove_file_quietly(partial, "partial final output")
