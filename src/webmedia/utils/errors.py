"""Exceptions raised while converting media."""
from pathlib import Path
from typing import Optional, Sequence


class WebMediaError(Exception):
    """Base exception for conversion failures."""

    pass


class ToolInvocationError(WebMediaError):
    """An external tool could not be started or exited non-zero."""

    def __init__(self, tool: str, cmd: Sequence[str], returncode: Optional[int] = None, stderr: str = ""):
        self.tool = tool
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr
        if returncode is None:
            msg = f"{tool}: could not run ({stderr.strip() or 'not found'})"
        else:
            tail = stderr.strip().splitlines()[-1:] if stderr.strip() else []
            msg = f"{tool} exited with code {returncode}"
            if tail:
                msg += f": {tail[0]}"
        super().__init__(msg)


class MissingMetadataError(WebMediaError):
    """A metadata field required for an encode decision is unknown."""

    def __init__(self, field: str, path: Optional[Path] = None):
        self.field = field
        self.path = path
        where = f" for {path}" if path else ""
        super().__init__(f"required metadata field '{field}' is unknown{where}")
