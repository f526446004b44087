"""Exception hierarchy for batch_transcode.

AccessError is the only run-level failure; every other TranscodeError is
scoped to a single file and ends up as a Failed ProcessingResult.
"""


class TranscodeError(Exception):
    """Base exception for batch_transcode."""


class ConfigError(TranscodeError):
    """Invalid or inconsistent configuration."""


class AccessError(TranscodeError):
    """Source root is unreachable; the whole run is aborted."""


class StagingError(TranscodeError):
    """Copy into scratch storage failed or was incomplete."""


class EncodeError(TranscodeError):
    """Encoder exited nonzero or produced a missing/undersized output."""


class EncoderNotFoundError(EncodeError):
    """Encoder executable does not exist. Never retried."""


class PromotionError(TranscodeError):
    """Moving the verified output to its final path failed."""
