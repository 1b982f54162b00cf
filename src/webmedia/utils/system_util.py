"""
Utility functions for running external tools and verifying they are installed.

Functions:
    - run_cmd: Runs a command as a child process, waits for it on every exit path
      and returns its exit status with captured output.
    - which_or_die: Checks for a binary on the system's PATH and terminates the
      process if it is unavailable.
"""
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import List

from webmedia.utils.errors import ToolInvocationError
from webmedia.utils.logger import safe_print


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_cmd(cmd: List[str]) -> CommandResult:
    """Run a command and return its result.

    Output is decoded as UTF-8; bytes that do not decode become U+FFFD.

    Raises:
        ToolInvocationError: the binary could not be started.
    """
    try:
        with subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                              encoding="utf-8", errors="replace") as p:
            out, err = p.communicate()
    except OSError as e:
        raise ToolInvocationError(cmd[0], cmd, stderr=str(e)) from e
    return CommandResult(p.returncode, out, err)


def which_or_die(binary: str):
    """Check if a binary exists on PATH, exit if not found."""
    if shutil.which(binary) is None:
        safe_print(f"ERROR: '{binary}' not found on PATH. Install it first (e.g. apt install ffmpeg mediainfo).",
                   file=sys.stderr)
        sys.exit(2)
