"""
Publish media trees for the web: mirror each input directory into an output tree,
transcoding audio, video and images into web-friendly derivatives.

Only outputs older than their source are rebuilt, so the command can be re-run after
adding or editing files and will redo just the affected work.
"""

import argparse
import os
import sys
import time
from pathlib import Path
from typing import List, Optional

import webmedia as webmedia_module
from webmedia import convert
from webmedia.utils import LogLevel, logger, system_util, time_util
from webmedia.utils.constants import FFMPEG_BIN, LOG_FILE, MEDIAINFO_BIN, OUTPUT_FOLDER, WORKERS
from webmedia.utils.errors import WebMediaError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webconvert",
        description="Convert media trees for web delivery. MP3s get an Ogg Vorbis alternate, MP4s get a "
                    "bitrate-capped H.264 primary, an Ogg Theora alternate and a JPEG poster frame, and "
                    "JPEGs are scaled to fit 1920x1080. Everything else is hard-linked.",
        epilog="Example: webconvert -o public -w logo.png media/",
    )
    parser.add_argument("dirs", nargs="+", metavar="DIR", help="Input directories, processed in order")
    parser.add_argument("-o", "--output", default=OUTPUT_FOLDER,
                        help="Output directory (default: ./output or $WEBMEDIA_OUTPUT)")
    parser.add_argument("-w", "--watermark", help="Composite this image over every video and image")
    parser.add_argument("--workers", type=int, default=WORKERS,
                        help="Files to convert concurrently (default: 1 or $WEBMEDIA_WORKERS)")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be rebuilt without writing anything")
    parser.add_argument("--log-file", default=LOG_FILE,
                        help="Also append log lines to this file (default: $WEBMEDIA_LOG_FILE)")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {webmedia_module.__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logger.set_log_level(LogLevel.DEBUG if args.debug else LogLevel.INFO)
    if args.log_file:
        logger.set_log_file(Path(args.log_file).expanduser().resolve())
    try:
        return _run(args)
    finally:
        logger.set_log_file(None)


def _run(args: argparse.Namespace) -> int:
    if args.workers < 1:
        logger.log("startup.error", LogLevel.ERROR, msg="--workers must be at least 1", workers=args.workers)
        return 2

    system_util.which_or_die(FFMPEG_BIN)
    system_util.which_or_die(MEDIAINFO_BIN)

    roots = [Path(d).expanduser().resolve() for d in args.dirs]
    for root in roots:
        if not root.is_dir():
            logger.log("startup.error", LogLevel.ERROR, msg="Input directory does not exist", root=root)
            return 2

    watermark = None
    if args.watermark:
        watermark = Path(args.watermark).expanduser().resolve()
        if not watermark.is_file():
            logger.log("startup.error", LogLevel.ERROR, msg="Watermark image does not exist", path=watermark)
            return 2

    out_root = Path(args.output).expanduser().resolve()
    if not args.dry_run:
        out_root.mkdir(parents=True, exist_ok=True)

    logger.log(
        "convert.start",
        LogLevel.INFO,
        pid=os.getpid(),
        roots=",".join(str(r) for r in roots),
        output=out_root,
        watermark=watermark,
        workers=args.workers,
        dry_run=args.dry_run,
    )

    start_time = time.time()
    try:
        stats = convert.convert_tree(roots, out_root, watermark=watermark,
                                     workers=args.workers, dry_run=args.dry_run)
    except (WebMediaError, OSError) as e:
        logger.log("convert.failed", LogLevel.ERROR, error=str(e),
                   runtime=time_util.format_runtime(time.time() - start_time))
        return 1

    logger.log(
        "convert.end",
        LogLevel.INFO,
        pid=os.getpid(),
        runtime=time_util.format_runtime(time.time() - start_time),
        files=stats.files,
        skipped=stats.skipped,
        encoded=stats.encoded,
        linked=stats.linked,
        fresh=stats.fresh,
        dry_run=stats.planned,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
