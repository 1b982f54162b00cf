"""Build ffmpeg filter graphs for watermark compositing."""
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from webmedia.utils import constants
from webmedia.utils.errors import MissingMetadataError
from .policy import round_half_away


@dataclass(frozen=True)
class FilterSpec:
    watermark: Path
    width: int
    height: int
    pad: int
    overlay_width: int
    overlay_height: int = -1
    scale_source: bool = True

    @property
    def expression(self) -> str:
        if self.scale_source:
            src = f"[0:v]scale=w={self.width}:h={self.height} [src]"
        else:
            src = "[0:v]null [src]"
        return ", ".join([
            src,
            f"[1:v]scale=w={self.overlay_width}:h={self.overlay_height} [ovrl]",
            f"[src][ovrl]overlay=x={self.pad}:y={self.pad}",
        ])

    def args(self) -> List[str]:
        """ffmpeg arguments: the watermark as a second input plus the graph."""
        return ["-i", str(self.watermark), "-filter_complex", self.expression]


def build_overlay(watermark: Optional[Path], width: Optional[int], height: Optional[int],
                  scale_source: bool = True) -> Optional[FilterSpec]:
    """
    Overlay ``watermark`` in the top-left corner of a ``width`` x ``height`` frame.

    The padding is 1/20th of the shorter side and the watermark is scaled to twice
    the padding wide, keeping its own aspect ratio. Returns None without a watermark.
    """
    if watermark is None:
        return None
    if width is None or width <= 0:
        raise MissingMetadataError("Width")
    if height is None or height <= 0:
        raise MissingMetadataError("Height")
    pad = round_half_away(min(width, height) / constants.WATERMARK_PAD_DIVISOR)
    return FilterSpec(
        watermark=watermark,
        width=round_half_away(width),
        height=round_half_away(height),
        pad=pad,
        overlay_width=pad * 2,
        scale_source=scale_source,
    )
