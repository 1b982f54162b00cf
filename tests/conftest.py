"""Shared test fixtures for webmedia."""

import json
import os
import time
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from webmedia.utils import constants, logger, system_util
from webmedia.utils.logger import LogLevel
from webmedia.utils.system_util import CommandResult

# Source files are dated an hour back so anything written during a test is newer
PAST = time.time() - 3600


class FakeTools:
    """Stands in for mediainfo and ffmpeg by replacing system_util.run_cmd.

    mediainfo answers with the tracks registered for a path. ffmpeg writes a small
    file at the requested output path, or a partial one and a non-zero exit when
    ``ffmpeg_exit`` is set.
    """

    def __init__(self):
        self.calls: List[List[str]] = []
        self.tracks: Dict[str, List[dict]] = {}
        self.ffmpeg_exit = 0
        self.mediainfo_exit = 0
        self.mediainfo_stdout: Optional[str] = None

    def set_tracks(self, path: Path, *tracks: dict) -> None:
        self.tracks[str(path)] = list(tracks)

    def __call__(self, cmd: List[str]) -> CommandResult:
        self.calls.append(list(cmd))
        if cmd[0] == constants.MEDIAINFO_BIN:
            if self.mediainfo_exit:
                return CommandResult(self.mediainfo_exit, "", "mediainfo: cannot open file")
            if self.mediainfo_stdout is not None:
                return CommandResult(0, self.mediainfo_stdout, "")
            doc = {"media": {"@ref": cmd[-1], "track": self.tracks.get(cmd[-1], [])}}
            return CommandResult(0, json.dumps(doc), "")
        if cmd[0] == constants.FFMPEG_BIN:
            out = Path(cmd[-1])
            if self.ffmpeg_exit:
                out.write_bytes(b"partial")
                return CommandResult(self.ffmpeg_exit, "", "Conversion failed!\n")
            out.write_bytes(b"encoded " + cmd[cmd.index("-i") + 1].encode())
            return CommandResult(0, "", "")
        raise AssertionError(f"unexpected command: {cmd}")

    @property
    def ffmpeg_calls(self) -> List[List[str]]:
        return [c for c in self.calls if c[0] == constants.FFMPEG_BIN]

    @property
    def mediainfo_calls(self) -> List[List[str]]:
        return [c for c in self.calls if c[0] == constants.MEDIAINFO_BIN]

    def ffmpeg_call_for(self, dst: Path) -> List[str]:
        """The ffmpeg command that wrote ``dst`` (via its temp file)."""
        for call in self.ffmpeg_calls:
            if call[-1].startswith(str(dst) + ".tmp"):
                return call
        raise AssertionError(f"no ffmpeg call wrote {dst}")


def video_track(bit_rate=1_000_000, width=1280, height=720, duration_s="10.000"):
    track = {"@type": "Video"}
    for key, value in (("BitRate", bit_rate), ("Width", width), ("Height", height), ("Duration", duration_s)):
        if value is not None:
            track[key] = str(value)
    return track


def image_track(width=800, height=600):
    track = {"@type": "Image"}
    if width is not None:
        track["Width"] = str(width)
    if height is not None:
        track["Height"] = str(height)
    return track


def make_file(path: Path, data: bytes = b"data", mtime: float = PAST) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture(autouse=True)
def _reset_logger():
    logger.set_log_level(LogLevel.INFO)
    yield
    logger.set_log_level(LogLevel.INFO)
    logger.set_log_file(None)


@pytest.fixture
def tools(monkeypatch) -> FakeTools:
    fake = FakeTools()
    monkeypatch.setattr(system_util, "run_cmd", fake)
    return fake


@pytest.fixture
def src_root(tmp_path: Path) -> Path:
    root = tmp_path.resolve() / "in"
    root.mkdir()
    return root


@pytest.fixture
def out_root(tmp_path: Path) -> Path:
    return tmp_path.resolve() / "out"


@pytest.fixture
def media_tree(src_root: Path, tools: FakeTools) -> Path:
    """A source tree with one file of each kind plus a hidden file."""
    clip = make_file(src_root / "clips" / "clip.mp4")
    tools.set_tracks(clip, {"@type": "General"}, video_track(bit_rate=5_000_000, height=720))
    make_file(src_root / "music" / "song.mp3")
    photo = make_file(src_root / "photos" / "photo.jpg")
    tools.set_tracks(photo, image_track(3840, 2160))
    make_file(src_root / "docs" / "notes.txt")
    make_file(src_root / "docs" / ".DS_Store")
    return src_root
