"""
Encode decisions for web derivatives.

Every function here is pure: its result depends only on its arguments and the
constants in :mod:`webmedia.utils.constants`. Unknown inputs are passed as ``None``;
each function either documents a fallback for them or raises MissingMetadataError.
"""
import math
from typing import Optional, Tuple

from webmedia.utils import constants
from webmedia.utils.errors import MissingMetadataError


def round_half_away(x: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    r = math.floor(abs(x) + 0.5)
    return int(r) if x >= 0 else -int(r)


def max_bit_rate(height: Optional[int]) -> int:
    """Bitrate cap in bits/sec for a video of the given height. Height is required."""
    if height is None:
        raise MissingMetadataError("Height")
    for bound, rate in constants.BIT_RATE_TIERS:
        if height < bound:
            return rate
    return constants.TOP_BIT_RATE


def capped_rate(measured: Optional[int], max_rate: int) -> int:
    """Target rate: the measured rate, never above ``max_rate``. Unknown -> ``max_rate``."""
    if measured is None:
        return max_rate
    return min(measured, max_rate)


def needs_reencode(measured: Optional[int], max_rate: int, has_watermark: bool) -> bool:
    """
    Whether the primary rendition has to go through the encoder.

    Compositing a watermark always needs an encode. Otherwise only sources more than
    REENCODE_TOLERANCE over the cap are re-encoded; an unknown rate is left alone.
    """
    if has_watermark:
        return True
    if measured is None:
        return False
    return measured > max_rate * constants.REENCODE_TOLERANCE


def alternate_rate(rate: int) -> int:
    return int(rate * constants.ALTERNATE_RATE_FACTOR)


def scale_to_fit(width: Optional[int], height: Optional[int],
                 max_width: int, max_height: int) -> Tuple[int, int]:
    """Shrink (never enlarge) ``width`` x ``height`` to fit the box, keeping aspect."""
    if width is None or width <= 0:
        raise MissingMetadataError("Width")
    if height is None or height <= 0:
        raise MissingMetadataError("Height")
    scale = min(1, max_width / width, max_height / height)
    return round_half_away(width * scale), round_half_away(height * scale)


def poster_timestamp(duration_ms: Optional[int]) -> int:
    """
    Seek offset in seconds for the poster frame.

    Half the duration, capped at POSTER_OFFSET so long media is sampled near the
    start. Unknown duration -> 0 (first frame).
    """
    if duration_ms is None:
        return 0
    return min(constants.POSTER_OFFSET, duration_ms // 2000)
