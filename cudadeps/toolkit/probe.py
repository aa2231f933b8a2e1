# SPDX-FileCopyrightText: 2026 cudadeps contributors
#
# SPDX-License-Identifier: Apache-2.0

"""
Locating toolkit binaries and libraries below a set of installation prefixes.

Nothing in here raises when a file is missing: every lookup returns ``None``
and callers decide whether that is fatal.
"""

import os
import sys
from typing import Iterable, List, Optional, Sequence, Union

from .version import ToolkitVersion

WINDOWS = "windows"
APPLE = "darwin"
LINUX = "linux"

# from this release on, Windows libraries carry only the major version
WINDOWS_SHORT_TAG_RELEASE = ToolkitVersion(10, 1)

Roots = Union[str, os.PathLike, Sequence[Union[str, os.PathLike]]]


def current_system() -> str:
    if sys.platform.startswith("win") or sys.platform == "cygwin":
        return WINDOWS
    if sys.platform == "darwin":
        return APPLE
    return LINUX


def release_tag(version: ToolkitVersion) -> str:
    """The suffix Windows DLLs of a CUDA release carry, e.g. ``"92"`` or ``"10"``."""
    if version.release >= WINDOWS_SHORT_TAG_RELEASE:
        return str(version.major)
    return f"{version.major}{version.minor}"


def _as_list(roots: Roots) -> List[str]:
    if isinstance(roots, (str, os.PathLike)):
        return [os.fspath(roots)]
    return [os.fspath(root) for root in roots]


def _unique(names: Iterable[str]) -> List[str]:
    seen = []
    for name in names:
        if name not in seen:
            seen.append(name)
    return seen


class PathProbe:
    """Platform-aware file lookup.

    Args:
        system: one of ``"windows"``, ``"darwin"`` or ``"linux"``; defaults to
            the running platform. Tests pass it explicitly to simulate others.
    """

    def __init__(self, system: Optional[str] = None):
        self.system = system or current_system()

    @property
    def is_windows(self) -> bool:
        return self.system == WINDOWS

    def binary_name(self, name: str) -> str:
        return f"{name}.exe" if self.is_windows else name

    def library_name(self, name: str) -> str:
        if self.is_windows:
            return f"{name}.dll"
        elif self.system == APPLE:
            return f"lib{name}.dylib"
        return f"lib{name}.so"

    def static_library_name(self, name: str) -> str:
        return f"{name}.lib" if self.is_windows else f"lib{name}.a"

    def library_names(
        self, name: str, versions: Sequence[ToolkitVersion] = ()
    ) -> List[str]:
        """File names to try for a shared library, version-suffixed ones first."""
        names = []
        for v in versions:
            if self.is_windows:
                names += [
                    f"{name}64_{release_tag(v)}.dll",
                    f"{name}64_{v.major}{v.minor}.dll",
                    f"{name}64_{v.major}.dll",
                ]
            elif self.system == APPLE:
                if v.patch is not None:
                    names.append(f"lib{name}.{v.major}.{v.minor}.{v.patch}.dylib")
                names += [
                    f"lib{name}.{v.major}.{v.minor}.dylib",
                    f"lib{name}.{v.major}.dylib",
                ]
            else:
                if v.patch is not None:
                    names.append(f"lib{name}.so.{v.major}.{v.minor}.{v.patch}")
                names += [
                    f"lib{name}.so.{v.major}.{v.minor}",
                    f"lib{name}.so.{v.major}",
                ]
        if self.is_windows:
            names.append(f"{name}64.dll")
        names.append(self.library_name(name))
        return _unique(names)

    def _library_dirs(self, root: str) -> List[str]:
        if self.is_windows:
            subdirs = ["bin", os.path.join("lib", "x64"), "lib"]
        else:
            subdirs = ["lib64", "lib"]
        return [os.path.join(root, subdir) for subdir in subdirs] + [root]

    def _first_file(self, candidates: Iterable[str]) -> Optional[str]:
        for path in candidates:
            if os.path.isfile(path):
                return path
        return None

    def find_binary(self, roots: Roots, name: str) -> Optional[str]:
        filename = self.binary_name(name)
        return self._first_file(
            os.path.join(root, subdir, filename)
            for root in _as_list(roots)
            for subdir in ("bin", "")
        )

    def find_library(
        self, roots: Roots, name: str, versions: Sequence[ToolkitVersion] = ()
    ) -> Optional[str]:
        filenames = self.library_names(name, versions)
        return self._first_file(
            os.path.join(libdir, filename)
            for root in _as_list(roots)
            for libdir in self._library_dirs(root)
            for filename in filenames
        )

    def find_static_library(self, roots: Roots, name: str) -> Optional[str]:
        filename = self.static_library_name(name)
        if self.is_windows:
            subdirs = [os.path.join("lib", "x64"), "lib"]
        else:
            subdirs = ["lib64", "lib"]
        return self._first_file(
            os.path.join(root, subdir, filename)
            for root in _as_list(roots)
            for subdir in subdirs
        )

    def find_file(self, roots: Roots, relative_path: str) -> Optional[str]:
        return self._first_file(
            os.path.join(root, relative_path) for root in _as_list(roots)
        )
