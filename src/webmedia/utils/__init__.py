"""
A module providing constants, utility functions, and logging mechanisms
for media conversion tasks.

This module includes the policy constants and environment configuration used by the
converter, helpers for running external tools and for checking output freshness, and
a structured, thread-safe logger.
"""

from .constants import (
    ACTION_DRY_RUN,
    ACTION_ENCODED,
    ACTION_FRESH,
    ACTION_LINKED,
    FFMPEG_BIN,
    IMAGE_MAX_HEIGHT,
    IMAGE_MAX_WIDTH,
    MEDIAINFO_BIN,
    OUTPUT_FOLDER,
    WORKERS,
)
from .errors import MissingMetadataError, ToolInvocationError, WebMediaError
from .logger import LogLevel

__all__ = [
    "FFMPEG_BIN",
    "MEDIAINFO_BIN",
    "WORKERS",
    "OUTPUT_FOLDER",
    "IMAGE_MAX_WIDTH",
    "IMAGE_MAX_HEIGHT",
    "ACTION_FRESH",
    "ACTION_ENCODED",
    "ACTION_LINKED",
    "ACTION_DRY_RUN",
    "WebMediaError",
    "ToolInvocationError",
    "MissingMetadataError",
    "LogLevel",
]
