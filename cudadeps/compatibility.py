# SPDX-FileCopyrightText: 2026 cudadeps contributors
#
# SPDX-License-Identifier: Apache-2.0

"""
Device capabilities and PTX ISA versions supported by a toolchain.

Both the code generation backend and the CUDA toolkit limit which devices can
be targeted and which PTX ISA can be emitted; only what both support is usable.
"""

import dataclasses
from typing import AbstractSet, Dict, Optional, Protocol, Tuple

from .exceptions import NoCompatibility
from .toolkit.version import ToolkitVersion

_v = ToolkitVersion.from_string

# device capability -> (first toolkit release supporting it, last one or None)
CUDA_CAP_DB: Dict[ToolkitVersion, Tuple[ToolkitVersion, Optional[ToolkitVersion]]] = {
    _v("2.0"): (_v("3.0"), _v("8.0")),
    _v("2.1"): (_v("3.2"), _v("8.0")),
    _v("3.0"): (_v("4.2"), _v("10.2")),
    _v("3.2"): (_v("6.0"), _v("10.2")),
    _v("3.5"): (_v("5.0"), _v("11.8")),
    _v("3.7"): (_v("6.5"), _v("11.8")),
    _v("5.0"): (_v("6.0"), None),
    _v("5.2"): (_v("7.0"), None),
    _v("5.3"): (_v("7.5"), None),
    _v("6.0"): (_v("8.0"), None),
    _v("6.1"): (_v("8.0"), None),
    _v("6.2"): (_v("8.0"), None),
    _v("7.0"): (_v("9.0"), None),
    _v("7.2"): (_v("9.2"), None),
    _v("7.5"): (_v("10.0"), None),
    _v("8.0"): (_v("11.0"), None),
    _v("8.6"): (_v("11.1"), None),
    _v("8.7"): (_v("11.4"), None),
    _v("8.9"): (_v("11.8"), None),
    _v("9.0"): (_v("11.8"), None),
}

# PTX ISA version -> first toolkit release able to assemble it
CUDA_PTX_DB: Dict[ToolkitVersion, ToolkitVersion] = {
    _v("3.0"): _v("4.1"),
    _v("3.1"): _v("5.0"),
    _v("3.2"): _v("5.5"),
    _v("4.0"): _v("6.0"),
    _v("4.1"): _v("6.5"),
    _v("4.2"): _v("7.0"),
    _v("4.3"): _v("7.5"),
    _v("5.0"): _v("8.0"),
    _v("6.0"): _v("9.0"),
    _v("6.1"): _v("9.1"),
    _v("6.2"): _v("9.2"),
    _v("6.3"): _v("10.0"),
    _v("6.4"): _v("10.1"),
    _v("6.5"): _v("10.2"),
    _v("7.0"): _v("11.0"),
    _v("7.1"): _v("11.1"),
    _v("7.2"): _v("11.2"),
    _v("7.3"): _v("11.3"),
    _v("7.4"): _v("11.4"),
    _v("7.5"): _v("11.5"),
    _v("7.6"): _v("11.6"),
    _v("7.7"): _v("11.7"),
    _v("7.8"): _v("11.8"),
    _v("8.0"): _v("12.0"),
}


@dataclasses.dataclass(frozen=True)
class Compat:
    """Device capabilities and PTX ISA versions one component supports."""

    cap: AbstractSet[ToolkitVersion]
    ptx: AbstractSet[ToolkitVersion]


@dataclasses.dataclass(frozen=True)
class CompatibilityRange:
    """What the whole toolchain supports, both sorted ascending and non-empty."""

    capabilities: Tuple[ToolkitVersion, ...]
    isa_versions: Tuple[ToolkitVersion, ...]


class CodegenBackend(Protocol):
    """The code generator device code is compiled with."""

    name: str

    @property
    def version(self) -> Optional[ToolkitVersion]: ...

    @property
    def expected_version(self) -> Optional[ToolkitVersion]:
        """The backend version the host environment was built against."""
        ...

    def compat(self) -> Compat: ...


class UnrestrictedBackend:
    """A backend that can target everything any toolkit supports."""

    name = "unrestricted"
    version = None
    expected_version = None

    def compat(self) -> Compat:
        return Compat(cap=frozenset(CUDA_CAP_DB), ptx=frozenset(CUDA_PTX_DB))


def toolkit_compat(release: ToolkitVersion) -> Compat:
    """Return which capabilities and PTX ISA versions a toolkit release supports."""
    release = release.release
    cap = frozenset(
        cap
        for cap, (first, last) in CUDA_CAP_DB.items()
        if first <= release and (last is None or release <= last)
    )
    ptx = frozenset(ptx for ptx, first in CUDA_PTX_DB.items() if first <= release)
    return Compat(cap=cap, ptx=ptx)


def reconcile(toolchain: Compat, toolkit: Compat) -> CompatibilityRange:
    """
    Intersect what the code generator and the toolkit support.

    Raises:
        NoCompatibility: if no device capability or no PTX ISA is supported by both.
    """
    capabilities = tuple(sorted(set(toolchain.cap) & set(toolkit.cap)))
    if not capabilities:
        raise NoCompatibility("Your toolchain does not support any device capability")

    isa_versions = tuple(sorted(set(toolchain.ptx) & set(toolkit.ptx)))
    if not isa_versions:
        raise NoCompatibility("Your toolchain does not support any PTX ISA")

    return CompatibilityRange(capabilities=capabilities, isa_versions=isa_versions)


def verlist(versions) -> str:
    return ", ".join(str(v) for v in versions)
