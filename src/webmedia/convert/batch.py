"""
This module walks input trees and brings each file's web derivatives up to date.

Every source file is classified by extension and handed to the matching handler:

- audio (``.mp3``): an ``.ogg`` alternate is encoded and the original is hard-linked.
- video (``.mp4``): a ``.jpg`` poster frame, the primary ``.mp4`` (re-encoded at a capped
  bitrate or hard-linked) and an ``.ogv`` alternate rendition.
- image (``.jpg``/``.jpeg``): scaled to fit 1920x1080 and optionally watermarked, or
  hard-linked when nothing needs to change.
- anything else is hard-linked unchanged.

Each output is checked for freshness on its own, so a re-run only rebuilds what is out
of date. The first fatal error stops the run.
"""
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, List, Optional, Sequence

from tqdm import tqdm

from webmedia.utils import constants, file_util, logger
from webmedia.utils.constants import ACTION_DRY_RUN, ACTION_ENCODED, ACTION_FRESH, ACTION_LINKED
from webmedia.utils.errors import MissingMetadataError
from webmedia.utils.logger import LogLevel
from . import core, filters, policy
from .probe import ALL_FIELDS, MediaProperties, probe


class MediaKind(Enum):
    AUDIO = "audio"
    VIDEO = "video"
    IMAGE = "image"
    PASSTHROUGH = "passthrough"


class ArtifactRole(Enum):
    PRIMARY = "primary"
    POSTER = "poster"
    ALTERNATE = "alternate"


# Case-sensitive: "clip.MP4" is passed through untouched
EXTENSION_KINDS = MappingProxyType({
    ".mp3": MediaKind.AUDIO,
    ".mp4": MediaKind.VIDEO,
    ".jpg": MediaKind.IMAGE,
    ".jpeg": MediaKind.IMAGE,
})

AV_SYNC_ARGS = ("-fps_mode", "passthrough", "-af", "aresample=async=1")


@dataclass(frozen=True)
class ArtifactOutcome:
    dest: Path
    role: ArtifactRole
    action: str


@dataclass
class FileOutcome:
    source: Path
    kind: MediaKind
    artifacts: List[ArtifactOutcome] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        """True when every artifact was already fresh."""
        return all(a.action == ACTION_FRESH for a in self.artifacts)


@dataclass
class RunStats:
    """Totals for one run, built up from each file's outcome."""
    files: int = 0
    skipped: int = 0
    kinds: Counter = field(default_factory=Counter)
    actions: Counter = field(default_factory=Counter)

    def add(self, outcome: FileOutcome) -> None:
        self.files += 1
        self.kinds[outcome.kind.value] += 1
        if outcome.skipped:
            self.skipped += 1
        for artifact in outcome.artifacts:
            self.actions[artifact.action] += 1

    @property
    def encoded(self) -> int:
        return self.actions[ACTION_ENCODED]

    @property
    def linked(self) -> int:
        return self.actions[ACTION_LINKED]

    @property
    def fresh(self) -> int:
        return self.actions[ACTION_FRESH]

    @property
    def planned(self) -> int:
        return self.actions[ACTION_DRY_RUN]


def classify(path: Path) -> MediaKind:
    """Map a file to its media kind by (case-sensitive) extension."""
    return EXTENSION_KINDS.get(path.suffix, MediaKind.PASSTHROUGH)


def iter_source_files(root: Path) -> List[Path]:
    """Find all non-hidden files under ``root``, in a stable order."""
    return sorted(p for p in root.rglob("*") if p.is_file() and not p.name.startswith("."))


def output_path(src: Path, src_root: Path, out_root: Path) -> Path:
    """Mirror ``src``'s position under ``src_root`` into ``out_root``."""
    return out_root / src.relative_to(src_root)


class _FileJob:
    """Per-file state: the source, run options and the artifacts handled so far."""

    def __init__(self, src: Path, watermark: Optional[Path], dry_run: bool):
        self.src = src
        self.watermark = watermark
        self.dry_run = dry_run
        self.artifacts: List[ArtifactOutcome] = []
        self._info: Optional[MediaProperties] = None

    def stale(self, dst: Path, role: ArtifactRole) -> bool:
        if file_util.is_stale(self.src, dst, create_parent=not self.dry_run):
            return True
        self.artifacts.append(ArtifactOutcome(dst, role, ACTION_FRESH))
        return False

    def info(self, track_type: str, fields: Iterable[str] = ALL_FIELDS) -> MediaProperties:
        if self._info is None:
            self._info = probe(self.src, track_type, fields)
        return self._info

    def encode(self, role: ArtifactRole, dst: Path, args: Sequence[str]) -> None:
        if self.dry_run:
            logger.log("artifact.plan", LogLevel.INFO, action="encode", dst=dst, args=" ".join(map(str, args)))
            self.artifacts.append(ArtifactOutcome(dst, role, ACTION_DRY_RUN))
            return
        core.run_ffmpeg(args, self.src, dst)
        self.artifacts.append(ArtifactOutcome(dst, role, ACTION_ENCODED))

    def link(self, role: ArtifactRole, dst: Path) -> None:
        if self.dry_run:
            logger.log("artifact.plan", LogLevel.INFO, action="link", dst=dst)
            self.artifacts.append(ArtifactOutcome(dst, role, ACTION_DRY_RUN))
            return
        file_util.link_file(self.src, dst)
        self.artifacts.append(ArtifactOutcome(dst, role, ACTION_LINKED))


def _convert_audio(job: _FileJob, dst: Path) -> None:
    alternate = dst.with_suffix(constants.AUDIO_ALTERNATE_EXTENSION)
    if job.stale(alternate, ArtifactRole.ALTERNATE):
        job.encode(ArtifactRole.ALTERNATE, alternate,
                   ["-vn", "-c:a", "libvorbis", "-b:a", constants.AUDIO_BIT_RATE])
    if job.stale(dst, ArtifactRole.PRIMARY):
        job.link(ArtifactRole.PRIMARY, dst)


def _convert_video(job: _FileJob, dst: Path) -> None:
    poster = dst.with_suffix(constants.POSTER_EXTENSION)
    alternate = dst.with_suffix(constants.VIDEO_ALTERNATE_EXTENSION)

    stale = {
        ArtifactRole.POSTER: job.stale(poster, ArtifactRole.POSTER),
        ArtifactRole.PRIMARY: job.stale(dst, ArtifactRole.PRIMARY),
        ArtifactRole.ALTERNATE: job.stale(alternate, ArtifactRole.ALTERNATE),
    }
    if not any(stale.values()):
        return

    info = job.info(constants.TRACK_VIDEO)
    overlay = filters.build_overlay(job.watermark, info.width, info.height)
    wm = overlay.args() if overlay else []

    if stale[ArtifactRole.POSTER]:
        offset = policy.poster_timestamp(info.duration_ms)
        job.encode(ArtifactRole.POSTER, poster, [*wm, "-ss", str(offset), "-frames:v", "1"])

    if not (stale[ArtifactRole.PRIMARY] or stale[ArtifactRole.ALTERNATE]):
        return

    max_rate = policy.max_bit_rate(info.height)
    rate = policy.capped_rate(info.bit_rate, max_rate)

    if stale[ArtifactRole.PRIMARY]:
        if policy.needs_reencode(info.bit_rate, max_rate, overlay is not None):
            job.encode(ArtifactRole.PRIMARY, dst, [
                *wm, *AV_SYNC_ARGS,
                "-c:a", "aac", "-b:a", constants.AUDIO_BIT_RATE,
                "-c:v", "libx264", "-b:v", str(rate),
            ])
        else:
            job.link(ArtifactRole.PRIMARY, dst)

    if stale[ArtifactRole.ALTERNATE]:
        job.encode(ArtifactRole.ALTERNATE, alternate, [
            *wm, *AV_SYNC_ARGS,
            "-c:a", "libvorbis", "-b:a", constants.AUDIO_BIT_RATE,
            "-c:v", "libtheora", "-b:v", str(policy.alternate_rate(rate)),
        ])


def _convert_image(job: _FileJob, dst: Path) -> None:
    if not job.stale(dst, ArtifactRole.PRIMARY):
        return

    info = job.info(constants.TRACK_IMAGE, fields=("width", "height"))
    if (info.width is None or info.height is None) and job.watermark is None:
        logger.log("image.unknown_size", LogLevel.WARN, file=job.src, msg="publishing unchanged")
        job.link(ArtifactRole.PRIMARY, dst)
        return

    width, height = policy.scale_to_fit(info.width, info.height,
                                        constants.IMAGE_MAX_WIDTH, constants.IMAGE_MAX_HEIGHT)
    overlay = filters.build_overlay(job.watermark, width, height)
    if overlay:
        job.encode(ArtifactRole.PRIMARY, dst, overlay.args())
    elif width < info.width or height < info.height:
        job.encode(ArtifactRole.PRIMARY, dst, ["-vf", f"scale=w={width}:h={height}"])
    else:
        job.link(ArtifactRole.PRIMARY, dst)


def _convert_passthrough(job: _FileJob, dst: Path) -> None:
    if job.stale(dst, ArtifactRole.PRIMARY):
        job.link(ArtifactRole.PRIMARY, dst)


def convert_one(src: Path, src_root: Path, out_root: Path,
                watermark: Optional[Path] = None, dry_run: bool = False) -> FileOutcome:
    """Bring every derivative of a single source file up to date."""
    dst = output_path(src, src_root, out_root)
    kind = classify(src)
    job = _FileJob(src, watermark, dry_run)

    try:
        if kind is MediaKind.AUDIO:
            _convert_audio(job, dst)
        elif kind is MediaKind.VIDEO:
            _convert_video(job, dst)
        elif kind is MediaKind.IMAGE:
            _convert_image(job, dst)
        elif kind is MediaKind.PASSTHROUGH:
            _convert_passthrough(job, dst)
        else:
            raise AssertionError(f"unhandled media kind: {kind}")
    except MissingMetadataError as e:
        if e.path is not None:
            raise
        raise MissingMetadataError(e.field, src) from e

    outcome = FileOutcome(src, kind, job.artifacts)
    logger.log("file.done", LogLevel.DEBUG, file=src, kind=kind.value, skipped=outcome.skipped,
               actions=",".join(a.action for a in outcome.artifacts))
    return outcome


def _convert_files(files: List[Path], src_root: Path, out_root: Path, stats: RunStats,
                   watermark: Optional[Path], workers: int, dry_run: bool) -> None:
    if workers <= 1:
        for src in tqdm(files, desc=src_root.name or str(src_root), unit="file", disable=None):
            stats.add(convert_one(src, src_root, out_root, watermark, dry_run))
        return

    with ThreadPoolExecutor(max_workers=workers) as ex:
        futs = {ex.submit(convert_one, src, src_root, out_root, watermark, dry_run): src for src in files}
        try:
            for fut in tqdm(as_completed(futs), total=len(futs), desc=src_root.name or str(src_root),
                            unit="file", disable=None):
                stats.add(fut.result())
        except BaseException:
            for fut in futs:
                fut.cancel()
            raise


def convert_tree(roots: Sequence[Path], out_root: Path, watermark: Optional[Path] = None,
                 workers: int = 1, dry_run: bool = False) -> RunStats:
    """
    Convert every file under each of ``roots`` into ``out_root``.

    Roots are processed in the order given. Within a root, files are converted one at
    a time unless ``workers`` > 1, in which case a bounded thread pool converts
    independent files concurrently.

    Args:
        roots: Input directories
        out_root: Output directory; each root's layout is mirrored directly under it
        watermark: Image to composite over every video and image, if any
        workers: Number of files to convert concurrently
        dry_run: Report stale outputs without writing anything

    Returns:
        RunStats totals for the whole run

    Raises:
        ToolInvocationError: mediainfo or ffmpeg failed
        MissingMetadataError: a required property of a source is unknown
        OSError: a directory, link or rename could not be made
    """
    stats = RunStats()
    for root in roots:
        files = iter_source_files(root)
        logger.log("convert.root", LogLevel.INFO, root=root, files=len(files))
        _convert_files(files, root, out_root, stats, watermark, workers, dry_run)
    return stats
