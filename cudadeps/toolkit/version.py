# SPDX-FileCopyrightText: 2026 cudadeps contributors
#
# SPDX-License-Identifier: Apache-2.0

import dataclasses
import functools
import re
import subprocess
from typing import Optional, Union

from packaging.version import InvalidVersion, Version

from ..exceptions import ParseError

# "Cuda compilation tools, release 10.2, V10.2.89"
_TOOL_VERSION_RE = re.compile(
    r"release (\d+)\.(\d+)(?:,\s*V(\d+)\.(\d+)(?:\.(\d+))?)?"
)


@functools.total_ordering
@dataclasses.dataclass(frozen=True, eq=False)
class ToolkitVersion:
    """A CUDA toolkit version. ``patch`` is ``None`` for bare releases."""

    major: int
    minor: int
    patch: Optional[int] = None

    @classmethod
    def from_string(cls, text: Union[str, "ToolkitVersion"]) -> "ToolkitVersion":
        """Parse a plain dotted version such as ``"10.2"`` or ``"10.2.89"``."""
        if isinstance(text, ToolkitVersion):
            return text
        try:
            version = Version(str(text).strip())
        except InvalidVersion as e:
            raise ParseError(f"Invalid toolkit version: {text!r}") from e
        release = version.release
        if len(release) < 2:
            release = release + (0,)
        patch = release[2] if len(release) > 2 else None
        return cls(release[0], release[1], patch)

    @property
    def release(self) -> "ToolkitVersion":
        return ToolkitVersion(self.major, self.minor)

    def same_release(self, other: "ToolkitVersion") -> bool:
        return (self.major, self.minor) == (other.major, other.minor)

    def _key(self):
        return (self.major, self.minor, self.patch or 0)

    def __eq__(self, other):
        if not isinstance(other, ToolkitVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other):
        if not isinstance(other, ToolkitVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self):
        return hash(self._key())

    def __str__(self) -> str:
        if self.patch is None:
            return f"{self.major}.{self.minor}"
        return f"{self.major}.{self.minor}.{self.patch}"


def parse(text: str) -> ToolkitVersion:
    """Extract the toolkit version from the output of ``<tool> --version``.

    The precise ``V<major>.<minor>.<patch>`` token is preferred over the
    ``release <major>.<minor>`` one when both are present.

    Raises:
        ParseError: if the text holds no recognizable version.
    """
    match = _TOOL_VERSION_RE.search(text)
    if match is None:
        raise ParseError(f"Could not parse CUDA version from tool output: {text!r}")
    major, minor, v_major, v_minor, v_patch = match.groups()
    if v_major is not None:
        return ToolkitVersion(
            int(v_major), int(v_minor), None if v_patch is None else int(v_patch)
        )
    return ToolkitVersion(int(major), int(minor))


def compare(a: ToolkitVersion, b: ToolkitVersion) -> int:
    """Return -1, 0 or 1 as ``a`` sorts before, equal to or after ``b``."""
    return (a > b) - (a < b)


def same_release(a: ToolkitVersion, b: ToolkitVersion) -> bool:
    return a.same_release(b)


def read_tool_version(path: str) -> ToolkitVersion:
    txt = subprocess.check_output([path, "--version"], text=True)
    return parse(txt)
