"""
Freshness checks and atomic installation helpers for output files.

An output file is fresh when it exists and is at least as new as its source. Outputs
only ever appear at their final path through a rename, so an interrupted run never
leaves a truncated file where a reader could mistake it for a finished one.
"""
import os
from pathlib import Path

from webmedia.utils import logger
from webmedia.utils.logger import LogLevel


def is_fresh(src: Path, dst: Path) -> bool:
    """True if ``dst`` exists and was modified no earlier than ``src``."""
    try:
        dst_mtime = dst.stat().st_mtime_ns
    except FileNotFoundError:
        return False
    return dst_mtime >= src.stat().st_mtime_ns


def is_stale(src: Path, dst: Path, create_parent: bool = True) -> bool:
    """
    True if ``dst`` must be rebuilt from ``src``.

    A stale destination gets its parent directory created (unless ``create_parent``
    is False, as in a dry run) and a progress line is logged.
    """
    if is_fresh(src, dst):
        return False
    if create_parent:
        dst.parent.mkdir(parents=True, exist_ok=True)
    logger.log("artifact.stale", LogLevel.INFO, src=src, dst=dst)
    return True


def temp_path_for(dst: Path) -> Path:
    """
    Temporary sibling of ``dst`` that keeps the real extension last.

    ``clip.mp4`` becomes ``clip.mp4.tmp.mp4`` so tools that pick a format from the
    file name still see ``.mp4``.
    """
    if dst.suffix:
        return dst.with_name(f"{dst.name}.tmp{dst.suffix}")
    return dst.with_name(f"{dst.name}.tmp")


def link_file(src: Path, dst: Path) -> None:
    """Hard-link ``src`` to ``dst`` via a temporary name and an atomic rename."""
    tmp = temp_path_for(dst)
    tmp.unlink(missing_ok=True)
    os.link(src, tmp)
    tmp.replace(dst)
    logger.log("artifact.link", LogLevel.DEBUG, src=src, dst=dst)
