"""
A media conversion package for publishing a tree of audio, video and images to the web.

This module provides a set of utilities for mirroring a source media tree into a
web-deliverable output tree. Work that is already up to date is skipped, video bitrate
is capped by resolution, images are scaled to fit, and an optional watermark can be
composited over video frames and images.

The module is organized into several categories:
- Converting files (probing, policy, ffmpeg filter graphs, transcoding, tree walking).
- Utility functions for configuration, logging, system commands and file freshness.
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
