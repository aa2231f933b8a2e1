# SPDX-FileCopyrightText: 2026 cudadeps contributors
#
# SPDX-License-Identifier: Apache-2.0

import glob
import os
import shutil
import subprocess
from typing import Callable, List, Mapping, Optional, Sequence

from ..exceptions import ParseError
from . import env as toolkit_env
from .core import ToolkitDescriptor, logger
from .probe import WINDOWS, PathProbe, current_system
from .version import ToolkitVersion, read_tool_version

# nvToolsExt has been at ABI version 1 for every toolkit release
NVTX_VERSION = ToolkitVersion(1, 0)

LIBDEVICE_PATHS = (
    os.path.join("nvvm", "libdevice", "libdevice.10.bc"),
    os.path.join("share", "libdevice", "libdevice.10.bc"),
)


def _versioned_dirs(pattern: str, prefix: str) -> List[str]:
    """Directories matching ``pattern``, newest CUDA version first."""
    found = []
    for path in glob.glob(pattern):
        suffix = os.path.basename(path)[len(prefix):]
        try:
            found.append((ToolkitVersion.from_string(suffix), path))
        except ParseError:
            continue
    return [path for _, path in sorted(found, reverse=True)]


def default_toolkit_dirs(
    environ: Optional[Mapping[str, str]] = None, system: Optional[str] = None
) -> List[str]:
    """Conventional installation prefixes for the given platform."""
    if environ is None:
        environ = os.environ
    if (system or current_system()) == WINDOWS:
        program_files = environ.get("ProgramFiles", r"C:\Program Files")
        base = os.path.join(program_files, "NVIDIA GPU Computing Toolkit", "CUDA")
        return _versioned_dirs(os.path.join(base, "v*"), "v")
    return ["/usr/local/cuda", "/opt/cuda"] + _versioned_dirs(
        "/usr/local/cuda-*", "cuda-"
    )


def find_toolkit_roots(
    environ: Optional[Mapping[str, str]] = None,
    system: Optional[str] = None,
    default_dirs: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    Collect candidate CUDA installation prefixes, in order of precedence:
    1. the CUDA_HOME-style environment variables
    2. the prefixes of ``nvcc`` and ``nvdisasm`` found on PATH
    3. conventional installation directories
    """
    if environ is None:
        environ = os.environ
    candidates = []
    for var in toolkit_env.CUDA_HOME_VARS:
        value = environ.get(var)
        if value:
            logger.debug(f"Considering CUDA installation from {var}={value}")
            candidates.append(value)

    for tool in ("nvcc", "nvdisasm"):
        path = shutil.which(tool, path=environ.get("PATH", ""))
        if path is not None:
            candidates.append(os.path.dirname(os.path.dirname(os.path.realpath(path))))

    if default_dirs is None:
        default_dirs = default_toolkit_dirs(environ, system)
    candidates += default_dirs

    roots = []
    for candidate in candidates:
        candidate = os.path.normpath(candidate)
        if os.path.isdir(candidate) and candidate not in roots:
            roots.append(candidate)
    return roots


class LocalResolver:
    """Assemble a toolkit descriptor from a pre-existing local installation."""

    def __init__(
        self,
        probe: Optional[PathProbe] = None,
        find_roots: Callable[[], Sequence[str]] = find_toolkit_roots,
        read_version: Callable[[str], ToolkitVersion] = read_tool_version,
    ):
        self.probe = probe or PathProbe()
        self.find_roots = find_roots
        self.read_version = read_version

    def find_libdevice(self, dirs: Sequence[str]) -> Optional[str]:
        for path in LIBDEVICE_PATHS:
            found = self.probe.find_file(dirs, path)
            if found is not None:
                return found
        return None

    def find_libcudadevrt(self, dirs: Sequence[str]) -> Optional[str]:
        return self.probe.find_static_library(dirs, "cudadevrt")

    def resolve(self) -> Optional[ToolkitDescriptor]:
        logger.debug("Trying to use local installation...")

        cuda_dirs = list(self.find_roots())
        if not cuda_dirs:
            logger.debug("Could not find any CUDA installation directory")
            return None

        nvdisasm = self.probe.find_binary(cuda_dirs, "nvdisasm")
        if nvdisasm is None:
            logger.debug("Could not find nvdisasm")
            return None
        try:
            cuda_version = self.read_version(nvdisasm)
        except (OSError, subprocess.SubprocessError, ParseError) as e:
            logger.debug(f"Could not determine the version of {nvdisasm}: {e}")
            return None

        cupti_dirs = [
            path
            for path in (os.path.join(d, "extras", "CUPTI") for d in cuda_dirs)
            if os.path.isdir(path)
        ]
        libcupti = self.probe.find_library(
            cuda_dirs + cupti_dirs, "cupti", [cuda_version]
        )
        libnvtx = self.probe.find_library(cuda_dirs, "nvToolsExt", [NVTX_VERSION])

        libcudadevrt = self.find_libcudadevrt(cuda_dirs)
        if libcudadevrt is None:
            logger.debug("Could not find libcudadevrt")
            return None
        libdevice = self.find_libdevice(cuda_dirs)
        if libdevice is None:
            logger.debug("Could not find libdevice")
            return None

        logger.debug(f"Found local CUDA {cuda_version} at {', '.join(cuda_dirs)}")
        return ToolkitDescriptor(
            dirs=tuple(cuda_dirs),
            version=cuda_version,
            nvdisasm=nvdisasm,
            libcupti=libcupti or "",
            libnvtx=libnvtx or "",
            libdevice=libdevice,
            libcudadevrt=libcudadevrt,
        )
