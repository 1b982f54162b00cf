"""Media conversion for web delivery.

This package provides two levels of functionality:
- probe, policy, filters, core: mediainfo probing, encode decisions, watermark filter
  graphs and atomic ffmpeg runs
- batch: tree walking, per-file dispatch and freshness tracking
"""

from .probe import (
    MediaProperties,
    probe,
    query_numeric,
)
from .policy import (
    capped_rate,
    max_bit_rate,
    needs_reencode,
    poster_timestamp,
    round_half_away,
    scale_to_fit,
)
from .filters import (
    FilterSpec,
    build_overlay,
)
from .core import (
    build_ffmpeg_cmd,
    run_ffmpeg,
)
from .batch import (
    ArtifactRole,
    FileOutcome,
    MediaKind,
    RunStats,
    classify,
    convert_one,
    convert_tree,
    iter_source_files,
)

__all__ = [
    # Probing
    "MediaProperties",
    "probe",
    "query_numeric",
    # Policy
    "max_bit_rate",
    "capped_rate",
    "needs_reencode",
    "scale_to_fit",
    "poster_timestamp",
    "round_half_away",
    # Filters
    "FilterSpec",
    "build_overlay",
    # Transcoding
    "build_ffmpeg_cmd",
    "run_ffmpeg",
    # Tree conversion
    "MediaKind",
    "ArtifactRole",
    "FileOutcome",
    "RunStats",
    "classify",
    "convert_one",
    "convert_tree",
    "iter_source_files",
]
