"""
Batch Transcode - resilient batch video transcoding with HandBrakeCLI.
"""

__version__ = "1.0.0"

from .config import TranscodeConfig, get_config, load_env_file

__all__ = [
    "TranscodeConfig",
    "get_config",
    "load_env_file",
]
