# SPDX-FileCopyrightText: 2026 cudadeps contributors
#
# SPDX-License-Identifier: Apache-2.0

import dataclasses
from pathlib import Path
from typing import FrozenSet, Optional

import pytest

from cudadeps.compatibility import Compat
from cudadeps.toolkit import version as toolkit_version
from cudadeps.toolkit.core import logger
from cudadeps.toolkit.version import ToolkitVersion

NVDISASM_OUTPUT = """nvdisasm: NVIDIA (R) CUDA disassembler
Copyright (c) 2005-2019 NVIDIA Corporation
Built on Wed_Oct_23_19:23:35_PDT_2019
Cuda compilation tools, release {major}.{minor}, V{major}.{minor}.{patch}
"""


def touch(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def nvdisasm_output(version: str) -> str:
    v = ToolkitVersion.from_string(version)
    return NVDISASM_OUTPUT.format(major=v.major, minor=v.minor, patch=v.patch or 0)


def read_fake_version(path: str) -> ToolkitVersion:
    """Fake nvdisasm binaries contain the text the real one prints."""
    return toolkit_version.parse(Path(path).read_text())


def make_bundle(root: Path, version: str = "10.2.89", system: str = "linux") -> Path:
    """Lay out a packaged toolkit bundle."""
    v = ToolkitVersion.from_string(version)
    if system == "windows":
        tag = str(v.major) if v.release >= ToolkitVersion(10, 1) else f"{v.major}{v.minor}"
        touch(root / "bin" / "nvdisasm.exe", nvdisasm_output(version))
        touch(root / "bin" / f"cupti64_{tag}.dll")
        touch(root / "bin" / "nvToolsExt64_1.dll")
        touch(root / "lib" / "cudadevrt.lib")
    else:
        touch(root / "bin" / "nvdisasm", nvdisasm_output(version))
        touch(root / "lib" / "libcupti.so")
        touch(root / "lib" / "libnvToolsExt.so")
        touch(root / "lib" / "libcudadevrt.a")
    touch(root / "share" / "libdevice" / "libdevice.10.bc")
    return root


def make_local_install(root: Path, version: str = "10.1.243") -> Path:
    """Lay out a local Linux toolkit installation as the CUDA installer does."""
    v = ToolkitVersion.from_string(version)
    touch(root / "bin" / "nvdisasm", nvdisasm_output(version))
    touch(root / "lib64" / "libcudadevrt.a")
    touch(root / "lib64" / "libnvToolsExt.so.1")
    touch(root / "extras" / "CUPTI" / "lib64" / f"libcupti.so.{v.major}.{v.minor}")
    touch(root / "nvvm" / "libdevice" / "libdevice.10.bc")
    return root


class FakeDriver:
    def __init__(self, release: str = "10.2", functional: bool = True):
        self._release = ToolkitVersion.from_string(release)
        self._functional = functional
        self.queries = 0

    def functional(self, verbose: bool = False) -> bool:
        self.queries += 1
        return self._functional

    def release(self) -> ToolkitVersion:
        return self._release


@dataclasses.dataclass
class FakeBackend:
    name: str = "LLVM"
    version: Optional[ToolkitVersion] = ToolkitVersion(8, 0)
    expected_version: Optional[ToolkitVersion] = ToolkitVersion(8, 0)
    cap: FrozenSet[ToolkitVersion] = frozenset(
        ToolkitVersion.from_string(v) for v in ("3.5", "5.0", "6.0", "7.0", "7.5")
    )
    ptx: FrozenSet[ToolkitVersion] = frozenset(
        ToolkitVersion.from_string(v) for v in ("6.0", "6.1", "6.3", "6.4")
    )

    def compat(self) -> Compat:
        return Compat(cap=self.cap, ptx=self.ptx)


@pytest.fixture
def log_records(caplog):
    """The cudadeps logger does not propagate to root; hook caplog in directly."""
    logger.addHandler(caplog.handler)
    try:
        yield caplog
    finally:
        logger.removeHandler(caplog.handler)
