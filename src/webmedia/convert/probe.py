"""
Gather media properties from mediainfo.

mediainfo is run with ``--Full --Output=JSON``. Its output is a tree of tracks, each
tagged with an ``@type`` (General, Video, Audio, Image, ...). A property is taken from
the first track of the requested type whose value for the field parses as a number.
"""
import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional

from webmedia.utils import constants, logger, system_util
from webmedia.utils.errors import ToolInvocationError
from webmedia.utils.logger import LogLevel

# A frame side of zero or less is as good as unknown
_DIMENSION_FIELDS = ("width", "height")

ALL_FIELDS = tuple(constants.MEDIAINFO_FIELDS)


@dataclass(frozen=True)
class MediaProperties:
    """Numeric properties of one track. ``None`` means unknown."""
    bit_rate: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    duration_ms: Optional[int] = None
    display_aspect_ratio: Optional[float] = None


def _tracks(doc: Any):
    media = doc.get("media") if isinstance(doc, dict) else None
    tracks = media.get("track") if isinstance(media, dict) else None
    if isinstance(tracks, dict):
        tracks = [tracks]
    return tracks or []


def query_numeric(doc: Any, track_type: str, field: str) -> Optional[float]:
    """Return the first numeric ``field`` value among tracks of ``track_type``."""
    for track in _tracks(doc):
        if not isinstance(track, dict) or track.get("@type") != track_type:
            continue
        value = track.get(field)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        if isinstance(value, str):
            number = _as_number(value)
            if number is not None:
                return number
    return None


def _as_number(text: str) -> Optional[float]:
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _convert(attr: str, value: float):
    if attr == "duration_ms":
        # mediainfo reports seconds in its JSON output
        return int(round(value * 1000))
    if attr == "display_aspect_ratio":
        return value
    return int(value)


def mediainfo(path: Path) -> dict:
    """Run mediainfo against ``path`` and return the parsed JSON document."""
    cmd = [constants.MEDIAINFO_BIN, "--Full", "--Output=JSON", str(path)]
    logger.log("probe.run", LogLevel.DEBUG, file=path)
    result = system_util.run_cmd(cmd)
    if not result.ok:
        raise ToolInvocationError(constants.MEDIAINFO_BIN, cmd, result.returncode, result.stderr)
    try:
        return json.loads(result.stdout)
    except ValueError as e:
        raise ToolInvocationError(constants.MEDIAINFO_BIN, cmd, result.returncode,
                                  f"unreadable output: {e}") from e


def probe(path: Path, track_type: str, fields: Iterable[str] = ALL_FIELDS) -> MediaProperties:
    """
    Probe ``path`` for the numeric properties of its ``track_type`` track.

    Fields that are absent or not numeric are left as ``None`` and reported with a
    ``probe.missing_field`` warning; only a failure to run mediainfo is fatal.

    Args:
        path: Source media file
        track_type: mediainfo track type, e.g. ``"Video"`` or ``"Image"``
        fields: MediaProperties attribute names to look up

    Returns:
        MediaProperties with the requested fields filled in where known

    Raises:
        ToolInvocationError: mediainfo is missing, failed, or printed garbage
    """
    doc = mediainfo(path)
    values = {}
    for attr in fields:
        key = constants.MEDIAINFO_FIELDS[attr]
        value = query_numeric(doc, track_type, key)
        if value is not None and attr in _DIMENSION_FIELDS and value <= 0:
            value = None
        if value is None:
            logger.log("probe.missing_field", LogLevel.WARN, file=path, track=track_type, field=key)
            continue
        values[attr] = _convert(attr, value)
    return MediaProperties(**values)
