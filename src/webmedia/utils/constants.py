"""
Constants and configuration settings for media conversion.

This module contains the fixed policy values used when converting media for the
web: bitrate tiers for video, the bounding box for still images, the poster frame
offset cap and the codec settings for each derivative. External tool names and
run settings can be overridden through the environment (or a ``.env`` file).
"""

import os
from types import MappingProxyType

from dotenv import load_dotenv

load_dotenv()

# External tools
FFMPEG_BIN = os.getenv("WEBMEDIA_FFMPEG", "ffmpeg")
MEDIAINFO_BIN = os.getenv("WEBMEDIA_MEDIAINFO", "mediainfo")

# Run settings
WORKERS = int(os.getenv("WEBMEDIA_WORKERS", "1"))
OUTPUT_FOLDER = os.getenv("WEBMEDIA_OUTPUT", "output")
LOG_FILE = os.getenv("WEBMEDIA_LOG_FILE")

# Video bitrate tiers: (height below, max bits/sec). Heights at or above the last
# bound get TOP_BIT_RATE.
BIT_RATE_TIERS = (
    (400, 800_000),
    (720, 1_200_000),
)
TOP_BIT_RATE = 2_000_000

# A source within this factor of its cap is published as-is
REENCODE_TOLERANCE = 1.2

# The alternate rendition gets this much headroom over the primary rate
ALTERNATE_RATE_FACTOR = 1.5

# Still image bounding box
IMAGE_MAX_WIDTH = 1920
IMAGE_MAX_HEIGHT = 1080

# Poster frames are taken at half the duration, but never later than this (seconds)
POSTER_OFFSET = 150

# Watermark padding is min(width, height) / WATERMARK_PAD_DIVISOR
WATERMARK_PAD_DIVISOR = 20

AUDIO_BIT_RATE = "192k"

# Derivative extensions
POSTER_EXTENSION = ".jpg"
VIDEO_ALTERNATE_EXTENSION = ".ogv"
AUDIO_ALTERNATE_EXTENSION = ".ogg"

# mediainfo track types
TRACK_VIDEO = "Video"
TRACK_IMAGE = "Image"

# MediaProperties attribute -> mediainfo JSON key
MEDIAINFO_FIELDS = MappingProxyType({
    "bit_rate": "BitRate",
    "width": "Width",
    "height": "Height",
    "duration_ms": "Duration",
    "display_aspect_ratio": "DisplayAspectRatio",
})

# Artifact actions
ACTION_FRESH = "FRESH"
ACTION_ENCODED = "ENCODED"
ACTION_LINKED = "LINKED"
ACTION_DRY_RUN = "DRY-RUN"
