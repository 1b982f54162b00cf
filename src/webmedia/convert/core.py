"""
Run ffmpeg and install its output atomically.

ffmpeg always writes to a temporary sibling of the destination (``<dst>.tmp.<ext>``,
keeping the real extension last for format detection). Only a zero exit status moves
it onto the destination; on failure the temporary file is left for inspection and the
destination is untouched.
"""
from pathlib import Path
from typing import List, Sequence

from webmedia.utils import constants, logger, system_util
from webmedia.utils.errors import ToolInvocationError
from webmedia.utils.file_util import temp_path_for
from webmedia.utils.logger import LogLevel


def build_ffmpeg_cmd(extra_args: Sequence[str], src: Path, out: Path) -> List[str]:
    """Build the ffmpeg command line reading ``src`` and writing ``out``."""
    return [
        constants.FFMPEG_BIN,
        "-hide_banner",
        "-loglevel", "error",
        "-i", str(src),
        *[str(a) for a in extra_args],
        "-y", str(out),
    ]


def run_ffmpeg(extra_args: Sequence[str], src: Path, dst: Path) -> None:
    """
    Transcode ``src`` to ``dst`` with ``extra_args`` between input and output.

    Args:
        extra_args: Codec, filter and seek arguments
        src: Source media file
        dst: Final destination; its extension selects the output format

    Raises:
        ValueError: ``dst`` has no extension
        ToolInvocationError: ffmpeg is missing or exited non-zero
    """
    if not dst.suffix:
        raise ValueError(f"destination needs an extension: {dst}")
    tmp = temp_path_for(dst)
    cmd = build_ffmpeg_cmd(extra_args, src, tmp)

    logger.log("ffmpeg.run", LogLevel.DEBUG, cmd=" ".join(cmd))
    result = system_util.run_cmd(cmd)
    if not result.ok:
        logger.log("ffmpeg.failed", LogLevel.ERROR,
                   file=src, dst=dst, exit_code=result.returncode, tmp=tmp,
                   error=result.stderr[-200:])
        raise ToolInvocationError(constants.FFMPEG_BIN, cmd, result.returncode, result.stderr)

    tmp.replace(dst)
    logger.log("artifact.encode", LogLevel.DEBUG, src=src, dst=dst)
