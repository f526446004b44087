"""
Main batch orchestration module for batch_transcode.

This module coordinates a run using the modular components:
- Scratch workspace housekeeping
- Source share availability check
- File discovery
- Sequential per-file pipeline
- Summary report and notification
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..config import TranscodeConfig, get_config
from ..utils.logging import (
    configure_log_file, create_progress_bar, format_size, get_logger,
    set_debug_mode, set_timestamps_enabled,
)
from .modules.encoder_config import EncodingProfile
from .modules.errors import AccessError, ConfigError
from .modules.interface.reporting import CsvReportWriter, create_notifier
from .modules.interface.user_interface import (
    ConfirmationProvider, auto_confirm, format_completion_message, prompt_user_confirmation,
)
from .modules.processing.copier import RetryableCopier
from .modules.processing.file_manager import FileManager, VideoFile
from .modules.processing.job_processor import FileProcessingPipeline
from .modules.processing.results import BatchSummary
from .modules.processing.temp_workspace import TempWorkspaceManager
from .modules.processing.transcoding_engine import RetryableEncoderInvoker
from .modules.system.network_utils import ShareAvailabilityChecker
from .modules.system.retry_policy import RetryPolicy

# Module logger
logger = get_logger("transcode_main")

NOTIFICATION_SUBJECT = "Batch transcode complete"


def default_report_path(config: TranscodeConfig, now: Optional[datetime] = None) -> Path:
    """Report beside the log file, stamped with the run start time."""
    now = now or datetime.now()
    log_file = Path(config.log_file)
    return log_file.with_name(f"{log_file.stem}_report_{now.strftime('%Y%m%d_%H%M%S')}.csv")


class BatchOrchestrator:
    """Drives the pipeline over every eligible file under the source root."""

    def __init__(self, config: TranscodeConfig,
                 confirm: ConfirmationProvider = prompt_user_confirmation,
                 pipeline: Optional[FileProcessingPipeline] = None,
                 profile: Optional[EncodingProfile] = None,
                 share_checker: Optional[ShareAvailabilityChecker] = None,
                 report_writer=None, notifier=None,
                 show_progress: bool = True):
        self.config = config
        self.profile = profile or self._load_profile(config)
        self.workspace = TempWorkspaceManager(config.temp_root, confirm)
        self.share_checker = share_checker or ShareAvailabilityChecker()
        self.file_manager = FileManager(
            extensions=config.extensions,
            min_size=config.min_file_size,
            exclude_dirs=[config.output_root, config.temp_root],
        )
        self.pipeline = pipeline or self._build_pipeline(config, self.profile)
        self.report_writer = report_writer or CsvReportWriter(
            config.report_file or default_report_path(config))
        self.notifier = notifier or create_notifier(config.smtp_from, config.smtp_to, config.smtp_server)
        self.show_progress = show_progress

    @staticmethod
    def _load_profile(config: TranscodeConfig) -> EncodingProfile:
        if config.profile_file:
            return EncodingProfile.from_file(config.profile_file)
        return EncodingProfile()

    @staticmethod
    def _build_pipeline(config: TranscodeConfig, profile: EncodingProfile) -> FileProcessingPipeline:
        retry = RetryPolicy(max_attempts=config.max_retries, delay=config.retry_delay)
        return FileProcessingPipeline(
            output_root=config.output_root,
            temp_root=config.temp_root,
            profile=profile,
            copier=RetryableCopier(retry),
            encoder=RetryableEncoderInvoker(config.encoder_path, retry,
                                            min_output_size=config.min_output_size),
            skip_existing=config.skip_existing,
            output_suffix=config.output_suffix,
            output_extension=config.output_extension,
        )

    def prepare(self) -> None:
        """
        Pre-flight: scratch housekeeping, reachability check, directory creation.

        Raises:
            AccessError: source root unreachable (nothing has been created yet)
        """
        self.workspace.clear_stale_files()

        if not self.share_checker.check(self.config.source_root):
            raise AccessError(f"Source root is not accessible: {self.config.source_root}")

        self.config.output_root.mkdir(parents=True, exist_ok=True)
        self.config.temp_root.mkdir(parents=True, exist_ok=True)

    def discover(self, limit: Optional[int] = None) -> List[VideoFile]:
        result = self.file_manager.discover_video_files(self.config.source_root)
        files = result.files_to_transcode
        if result.hidden_files_skipped:
            logger.info(f"Skipped {result.hidden_files_skipped} hidden/resource-fork file(s)")
        for path, reason in result.skipped_files:
            logger.debug(f"SKIP {path.name} ({reason})")
        if limit:
            files = files[:limit]
        total = sum(v.size for v in files)
        logger.discovery(f"Found {len(files)} eligible video file(s) ({format_size(total)})")
        return files

    def process_files(self, files: List[VideoFile]) -> BatchSummary:
        if self.config.workers > 1:
            logger.warn(f"workers={self.config.workers} requested; files are processed one at a time")

        summary = BatchSummary()
        with create_progress_bar(files, total=len(files), desc="Transcoding", unit="file",
                                 disable=not self.show_progress) as progress:
            for index, video in enumerate(progress, 1):
                logger.info(f"[{index}/{len(files)}] {video.relative_path}")
                summary.results.append(self.pipeline.process(video))
        return summary

    def finish(self, summary: BatchSummary) -> str:
        try:
            self.report_writer.write(summary)
        except OSError as e:
            logger.error(f"Could not write report: {e}")
        message = format_completion_message(summary)
        for line in message.splitlines():
            logger.info(line)
        self.notifier.send(NOTIFICATION_SUBJECT, message)
        return message

    def run(self, limit: Optional[int] = None) -> BatchSummary:
        """
        Full batch: prepare, discover, process sequentially, report, notify.

        Raises:
            AccessError: source root unreachable; no file is processed and no report is written
        """
        self.pipeline.profile_arguments()  # surface invalid profile values before any work
        try:
            self.prepare()
        except AccessError as e:
            logger.error(f"Aborting run: {e}")
            raise

        summary = self.process_files(self.discover(limit))
        self.finish(summary)
        return summary

    def dry_run(self, limit: Optional[int] = None) -> List[VideoFile]:
        """List eligible files and their targets without touching anything."""
        if not self.share_checker.check(self.config.source_root):
            raise AccessError(f"Source root is not accessible: {self.config.source_root}")
        files = self.discover(limit)
        for video in files:
            target = self.pipeline.output_path_for(video)
            state = "exists" if target.exists() else "new"
            logger.info(f"  {video.relative_path} -> {target} [{state}]")
        return files


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Batch Transcode - resilient HandBrakeCLI batch transcoding")

    paths = parser.add_argument_group("paths")
    paths.add_argument("--source", type=Path, help="Source root to scan for video files")
    paths.add_argument("--output", type=Path, help="Output root (relative layout is preserved)")
    paths.add_argument("--temp", type=Path, help="Local scratch directory for staging")
    paths.add_argument("--encoder", help="Path to HandBrakeCLI (default: HandBrakeCLI on PATH)")
    paths.add_argument("--log-file", type=Path, help="Log file (shared safely between runs)")
    paths.add_argument("--report", type=Path, help="CSV report path (default: beside the log file)")
    paths.add_argument("--profile", type=Path, help="JSON encoding profile")
    paths.add_argument("--env-file", type=Path, help="Explicit .env file to read settings from")

    tuning = parser.add_argument_group("tuning")
    tuning.add_argument("--max-retries", type=int, help="Attempts per copy/encode (default: 3)")
    tuning.add_argument("--retry-delay", type=float, help="Seconds between attempts (default: 30)")
    tuning.add_argument("--min-size", type=int, help="Ignore source files smaller than this many bytes")
    tuning.add_argument("--min-output-size", type=int,
                        help="Reject encoder outputs at or below this many bytes")
    tuning.add_argument("--no-skip-existing", action="store_true",
                        help="Re-encode files whose output already exists")
    tuning.add_argument("--workers", type=int, help="Worker count (files are processed sequentially)")

    run = parser.add_argument_group("run")
    run.add_argument("--yes", action="store_true", help="Auto-confirm scratch directory cleanup")
    run.add_argument("--dry-run", action="store_true", help="Show what would be processed")
    run.add_argument("--limit", type=int, help="Limit number of files to process")
    run.add_argument("--debug", action="store_true", help="Enable debug output")
    run.add_argument("--no-timestamps", action="store_true", help="Disable timestamps in console output")
    run.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    return parser


def config_from_args(args: argparse.Namespace) -> TranscodeConfig:
    return get_config(
        env_path=args.env_file,
        source_root=args.source,
        output_root=args.output,
        temp_root=args.temp,
        encoder_path=args.encoder,
        log_file=args.log_file,
        report_file=args.report,
        profile_file=args.profile,
        max_retries=args.max_retries,
        retry_delay=args.retry_delay,
        min_file_size=args.min_size,
        min_output_size=args.min_output_size,
        skip_existing=False if args.no_skip_existing else None,
        workers=args.workers,
        debug=True if args.debug else None,
    ).validate()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the batch transcoding application."""
    args = build_parser().parse_args(argv)

    if args.no_timestamps:
        set_timestamps_enabled(False)

    try:
        config = config_from_args(args)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    if config.debug:
        set_debug_mode(True)
    configure_log_file(config.log_file)

    confirm = auto_confirm if args.yes else prompt_user_confirmation
    try:
        orchestrator = BatchOrchestrator(config, confirm=confirm, show_progress=not args.no_progress)
        if args.dry_run:
            orchestrator.dry_run(args.limit)
            return 0
        summary = orchestrator.run(args.limit)
    except AccessError:
        return 1
    except ConfigError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    return 0 if summary.failed == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
