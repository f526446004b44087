"""
User interface module for batch_transcode.

This module handles user interaction including:
- Confirmation prompts (injectable, so unattended runs and tests never block)
- Completion message formatting
"""

from typing import Callable

from ....utils.logging import format_duration, format_size
from ..processing.results import ProcessingStatus

# Returns True when the operator accepts the prompt
ConfirmationProvider = Callable[[str], bool]


def prompt_user_confirmation(message: str, auto_yes: bool = False) -> bool:
    """Prompt user for confirmation. A closed stdin counts as "no"."""
    if auto_yes:
        print(f"{message} [auto-yes]")
        return True

    while True:
        try:
            response = input(f"{message} [y/N]: ").strip().lower()
        except EOFError:
            return False
        if response in ['y', 'yes']:
            return True
        elif response in ['n', 'no', '']:
            return False
        else:
            print("Please enter 'y' or 'n'")


def auto_confirm(message: str) -> bool:
    """Confirmation provider that accepts everything (``--yes``)."""
    return prompt_user_confirmation(message, auto_yes=True)


def decline_all(message: str) -> bool:
    """Confirmation provider that declines everything."""
    return False


def format_completion_message(summary) -> str:
    """Human-readable end-of-run message for the log and the notifier."""
    lines = [
        "Batch transcode complete",
        f"  Files processed: {summary.files_processed}",
        f"  Succeeded: {summary.succeeded}  Failed: {summary.failed}  Skipped: {summary.skipped}",
        f"  Total saved: {format_size(summary.total_bytes_saved)}",
        f"  Average compression: {summary.average_compression_ratio:.2f}%",
        f"  Elapsed: {format_duration(summary.total_processing_time)}",
    ]
    failed = [r.file_name for r in summary.results if r.status == ProcessingStatus.FAILED]
    if failed:
        lines.append("  Failed files:")
        lines.extend(f"    - {name}" for name in failed)
    return "\n".join(lines)
