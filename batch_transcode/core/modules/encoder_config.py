"""
Encoding profile → HandBrakeCLI argument list.

A profile is an ordered mapping of setting name to value. Every recognised
setting is a member of ``ProfileSetting`` with its own value coercion and
token emission rule; unrecognised names are kept in the profile so they can be
reported, but they never produce tokens.
"""

import json
from collections import OrderedDict
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Union

from ...utils.logging import get_logger
from .errors import ConfigError

logger = get_logger("encoder_config")

ALL_SUBTITLES = "--all-subtitles"
FILTER_OFF = "off"

ProfileValue = Union[str, bool, int, List[str]]


class ProfileSetting(Enum):
    """Recognised profile keys."""
    ENCODER = "encoder"
    QUALITY = "quality"
    PEAK_FRAME_RATE = "peak_frame_rate"
    MAX_WIDTH = "max_width"
    MAX_HEIGHT = "max_height"
    AUDIO_ENCODERS = "audio_encoders"
    SUBTITLE_LANG_LIST = "subtitle_lang_list"
    CROP = "crop"
    DECOMB = "decomb"
    DETELECINE = "detelecine"
    DEINTERLACE = "deinterlace"
    DENOISE = "denoise"
    SHARPEN = "sharpen"
    CHAPTER_MARKERS = "chapter_markers"
    FORMAT = "format"
    ALIGN_AV = "align_av"

    @classmethod
    def lookup(cls, key: str) -> Optional["ProfileSetting"]:
        try:
            return cls(key)
        except ValueError:
            return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "yes", "1", "on"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "no", "0", "off", ""):
        return False
    if isinstance(value, int):
        return value != 0
    raise ValueError(f"expected a boolean, got {value!r}")


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError(f"expected an integer, got {value!r}")
    return int(value)


def _as_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(v) for v in value]


def _flag_pair(name: str) -> Callable[[Any], List[str]]:
    return lambda value: [f"--{name}"] if _as_bool(value) else [f"--no-{name}"]


def _option(flag: str) -> Callable[[Any], List[str]]:
    return lambda value: [flag, str(value)]


def _quality(value: Any) -> List[str]:
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    float(value)
    return ["-q", str(value)]


def _dimension(flag: str) -> Callable[[Any], List[str]]:
    def emit(value: Any) -> List[str]:
        size = _as_int(value)
        return [flag, str(size)] if size != 0 else []
    return emit


def _filter(name: str) -> Callable[[Any], List[str]]:
    def emit(value: Any) -> List[str]:
        text = str(value)
        return [] if text.strip().lower() == FILTER_OFF else [f"--{name}", text]
    return emit


_EMITTERS: Dict[ProfileSetting, Callable[[Any], List[str]]] = {
    ProfileSetting.ENCODER: _option("-e"),
    ProfileSetting.QUALITY: _quality,
    ProfileSetting.PEAK_FRAME_RATE: lambda value: ["--pfr"] if _as_bool(value) else ["--cfr"],
    ProfileSetting.MAX_WIDTH: _dimension("-X"),
    ProfileSetting.MAX_HEIGHT: _dimension("-Y"),
    ProfileSetting.AUDIO_ENCODERS: lambda value: ["-E", ",".join(_as_list(value))],
    ProfileSetting.SUBTITLE_LANG_LIST: lambda value: [
        "--subtitle-lang-list", ",".join(_as_list(value)), ALL_SUBTITLES],
    ProfileSetting.CROP: _option("--crop"),
    ProfileSetting.DECOMB: _flag_pair("decomb"),
    ProfileSetting.DETELECINE: _flag_pair("detelecine"),
    ProfileSetting.DEINTERLACE: _flag_pair("deinterlace"),
    ProfileSetting.DENOISE: _filter("denoise"),
    ProfileSetting.SHARPEN: _filter("sharpen"),
    ProfileSetting.CHAPTER_MARKERS: lambda value: ["--markers"] if _as_bool(value) else ["--no-markers"],
    ProfileSetting.FORMAT: _option("-f"),
    ProfileSetting.ALIGN_AV: _flag_pair("align-av"),
}


DEFAULT_PROFILE: Dict[str, ProfileValue] = {
    "encoder": "x265",
    "quality": 22,
    "peak_frame_rate": True,
    "max_width": 1920,
    "max_height": 1080,
    "audio_encoders": ["copy"],
    "subtitle_lang_list": "eng",
    "crop": "0:0:0:0",
    "decomb": False,
    "detelecine": False,
    "deinterlace": False,
    "denoise": FILTER_OFF,
    "sharpen": FILTER_OFF,
    "chapter_markers": True,
    "format": "av_mkv",
    "align_av": True,
}


class EncodingProfile(Mapping):
    """Ordered, read-only mapping of encoder settings fixed for a whole run."""

    def __init__(self, settings: Optional[Mapping[str, Any]] = None):
        self._settings: "OrderedDict[str, Any]" = OrderedDict(
            DEFAULT_PROFILE if settings is None else settings)

    @classmethod
    def from_file(cls, path: Path) -> "EncodingProfile":
        """Load a profile from a JSON object file (key order is preserved)."""
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f, object_pairs_hook=OrderedDict)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not load encoding profile {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Encoding profile {path} must be a JSON object")
        return cls(data)

    def __getitem__(self, key: str) -> Any:
        return self._settings[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._settings)

    def __len__(self) -> int:
        return len(self._settings)

    def unrecognized_keys(self) -> List[str]:
        return [key for key in self._settings if ProfileSetting.lookup(key) is None]

    def __repr__(self) -> str:
        return f"EncodingProfile({dict(self._settings)!r})"


def profile_tokens(profile: Mapping[str, Any]) -> List[str]:
    """Tokens for the profile settings alone, in profile order."""
    tokens: List[str] = []
    for key, value in profile.items():
        setting = ProfileSetting.lookup(key)
        if setting is None:
            logger.warn(f"Unrecognized encoding profile setting '{key}' ignored")
            continue
        try:
            tokens.extend(_EMITTERS[setting](value))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for profile setting '{key}': {e}") from e
    return tokens


def build_encoder_arguments(profile: Mapping[str, Any], input_file: Path,
                            output_file: Path, tokens: Optional[List[str]] = None) -> List[str]:
    """
    Full HandBrakeCLI argument list (without the executable itself).

    Always ``-i <input> -o <output>`` first and ``--all-subtitles`` last.
    """
    if tokens is None:
        tokens = profile_tokens(profile)
    return ["-i", str(input_file), "-o", str(output_file)] + list(tokens) + [ALL_SUBTITLES]
