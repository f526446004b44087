"""
Transcoding engine module for batch_transcode.

Runs the external encoder (HandBrakeCLI) as an opaque subprocess:
- Executable presence check (missing executable fails fast, no retry)
- Combined stdout/stderr forwarded line by line to the log
- Exit code and output-size verification
- Bounded retries via RetryPolicy
"""

import os
import shutil
from pathlib import Path
from typing import List, Optional

from ....utils.logging import format_size, get_logger
from ..errors import EncodeError, EncoderNotFoundError
from ..system.retry_policy import RetryPolicy
from ..system.system_utils import ProcessRunner, remove_file_quietly, stream_command

logger = get_logger("transcoding_engine")

# Smallest output accepted as a real encode; anything below is treated as truncated
MIN_OUTPUT_SIZE_BYTES = 1024 * 1024


def resolve_executable(encoder_path: str) -> Optional[Path]:
    """Return the encoder's path if it exists as a file or can be found on PATH."""
    candidate = Path(encoder_path)
    if candidate.is_file():
        return candidate
    found = shutil.which(encoder_path)
    return Path(found) if found else None


class RetryableEncoderInvoker:
    """Invokes the encoder and verifies what it produced."""

    def __init__(self, encoder_path: str, retry_policy: RetryPolicy,
                 min_output_size: int = MIN_OUTPUT_SIZE_BYTES,
                 runner: ProcessRunner = stream_command):
        self.encoder_path = encoder_path
        self.retry_policy = retry_policy
        self.min_output_size = min_output_size
        self.runner = runner

    def encode(self, arguments: List[str], expected_output: Path) -> int:
        """
        Run the encoder until it yields a plausible ``expected_output``.

        Returns:
            Size in bytes of the verified output

        Raises:
            EncoderNotFoundError: executable missing (not retried)
            EncodeError: every attempt failed
        """
        executable = resolve_executable(self.encoder_path)
        if executable is None:
            logger.error(f"Encoder executable not found: {self.encoder_path}")
            raise EncoderNotFoundError(f"Encoder executable not found: {self.encoder_path}")

        command = [str(executable)] + list(arguments)
        return self.retry_policy.run(
            lambda: self._encode_once(command, expected_output),
            description=f"Encode {expected_output.name}",
            retry_on=(EncodeError,),
            log=logger,
        )

    def _encode_once(self, command: List[str], expected_output: Path) -> int:
        # Never let a previous attempt's output pass verification
        remove_file_quietly(expected_output, "previous encoder output")

        logger.info(f"Encoding -> {expected_output.name}")
        try:
            exit_code = self.runner(command, logger.encoder)
        except OSError as e:
            raise EncodeError(f"could not start encoder: {e}") from e

        if exit_code != 0:
            raise EncodeError(f"encoder exited with code {exit_code}")
        return self.verify_output(expected_output)

    def verify_output(self, output: Path) -> int:
        """Raise EncodeError unless ``output`` exists and exceeds the minimum size."""
        try:
            size = os.path.getsize(output)
        except OSError:
            raise EncodeError(f"encoder reported success but produced no output: {output}")
        if size <= self.min_output_size:
            raise EncodeError(
                f"encoder output {output.name} is implausibly small "
                f"({format_size(size)} <= {format_size(self.min_output_size)})")
        logger.info(f"Encoder output verified: {output.name} ({format_size(size)})")
        return size
