# SPDX-FileCopyrightText: 2026 cudadeps contributors
#
# SPDX-License-Identifier: Apache-2.0

"""
Packaged CUDA toolkits: versioned bundles that are fetched on demand.

Bundles follow a fixed layout, so paths inside them are assembled directly
instead of searched for::

    bin/nvdisasm[.exe]
    bin/*.dll                      (Windows)
    lib/lib*.so, lib/lib*.dylib    (elsewhere)
    lib/libcudadevrt.a, lib/cudadevrt.lib
    share/libdevice/libdevice.10.bc
"""

import concurrent.futures
import dataclasses
import os
import pathlib
import subprocess
import threading
from importlib.metadata import entry_points
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Union

from filelock import FileLock

from ..exceptions import PackagingDefect, ParseError
from .core import ToolkitDescriptor, logger
from .probe import PathProbe, release_tag
from .version import ToolkitVersion, read_tool_version

ENTRY_POINT_GROUP = "cudadeps.toolkits"

FetchOperation = Callable[[], Union[str, os.PathLike]]


@dataclasses.dataclass(frozen=True)
class Fetched:
    root: str


@dataclasses.dataclass(frozen=True)
class FetchFailed:
    reason: str


FetchResult = Union[Fetched, FetchFailed]


class ArtifactRegistry:
    """Maps toolkit releases to the operation that fetches their bundle.

    Fetch operations take no arguments, return the root directory of the
    unpacked bundle and are only invoked once their release is selected.
    """

    def __init__(
        self, entries: Optional[Mapping[Union[str, ToolkitVersion], FetchOperation]] = None
    ):
        self._entries: Dict[ToolkitVersion, FetchOperation] = {}
        for version, fetch in (entries or {}).items():
            self.register(version, fetch)

    @classmethod
    def from_entry_points(cls, group: str = ENTRY_POINT_GROUP) -> "ArtifactRegistry":
        """
        Build a registry from installed distributions advertising toolkit bundles,
        e.g. in their pyproject.toml::

            [project.entry-points."cudadeps.toolkits"]
            "10.2" = "cuda_bundle_102:fetch"
        """
        registry = cls()
        for ep in entry_points(group=group):
            try:
                registry.register(ep.name, ep.load())
            except Exception as e:
                logger.warning(f"Ignoring toolkit bundle entry point {ep.name!r}: {e}")
        return registry

    def register(self, version: Union[str, ToolkitVersion], fetch: FetchOperation) -> None:
        self._entries[ToolkitVersion.from_string(version)] = fetch

    def versions(self) -> List[ToolkitVersion]:
        """Registered versions, newest first."""
        return sorted(self._entries, reverse=True)

    def select(
        self,
        explicit_version: Optional[ToolkitVersion] = None,
        driver_ceiling: Optional[ToolkitVersion] = None,
    ) -> "ArtifactRegistry":
        """Return the entries eligible for use, as a new registry.

        An explicit version keeps only that entry and disregards the driver.
        Otherwise entries newer than what the driver supports are dropped.
        """
        if explicit_version is not None:
            keep = lambda version: version == explicit_version  # noqa: E731
        elif driver_ceiling is not None:
            keep = lambda version: version <= driver_ceiling  # noqa: E731
        else:
            keep = lambda version: True  # noqa: E731
        return ArtifactRegistry(
            {version: fetch for version, fetch in self._entries.items() if keep(version)}
        )

    def __getitem__(self, version: ToolkitVersion) -> FetchOperation:
        return self._entries[version]

    def __contains__(self, version) -> bool:
        return version in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ToolkitVersion]:
        return iter(self.versions())


def with_timeout(fetch: FetchOperation, timeout: float) -> FetchOperation:
    """
    Wrap ``fetch`` so it raises TimeoutError after ``timeout`` seconds.

    The abandoned fetch is not interrupted; it finishes in a daemon thread,
    which does not keep the process alive.
    """

    def timed_fetch():
        future: concurrent.futures.Future = concurrent.futures.Future()

        def run():
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(fetch())
            except BaseException as e:
                future.set_exception(e)

        threading.Thread(target=run, name="cudadeps-fetch", daemon=True).start()
        try:
            return future.result(timeout=timeout)
        except concurrent.futures.TimeoutError as e:
            raise TimeoutError(f"fetch did not finish within {timeout} seconds") from e

    return timed_fetch


def locked(fetch: FetchOperation, lock_path: pathlib.Path) -> FetchOperation:
    """Wrap ``fetch`` so it holds a cross-process lock for as long as it runs."""

    def locked_fetch():
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        with FileLock(lock_path, thread_local=False):
            return fetch()

    return locked_fetch


def attempt_fetch(
    version: ToolkitVersion,
    fetch: FetchOperation,
    lock_dir: Optional[pathlib.Path] = None,
    timeout: Optional[float] = None,
) -> FetchResult:
    """Run one fetch operation, turning any failure into a FetchFailed.

    The lock is taken by whichever thread runs the fetch, so it stays held
    even when the caller stops waiting after ``timeout`` seconds.
    """
    if lock_dir is not None:
        fetch = locked(fetch, lock_dir / f"cuda-{version}.lock")
    if timeout is not None:
        fetch = with_timeout(fetch, timeout)
    try:
        root = fetch()
    except Exception as e:
        return FetchFailed(f"{type(e).__name__}: {e}")
    return Fetched(os.fspath(root))


class PackagedResolver:
    def __init__(
        self,
        probe: Optional[PathProbe] = None,
        read_version: Callable[[str], ToolkitVersion] = read_tool_version,
        lock_dir: Optional[pathlib.Path] = None,
        fetch_timeout: Optional[float] = None,
    ):
        self.probe = probe or PathProbe()
        self.read_version = read_version
        self.lock_dir = lock_dir
        self.fetch_timeout = fetch_timeout

    def resolve(
        self,
        registry: ArtifactRegistry,
        explicit_version: Optional[ToolkitVersion] = None,
        driver_ceiling: Optional[ToolkitVersion] = None,
    ) -> Optional[ToolkitDescriptor]:
        logger.debug("Trying to use packaged toolkits...")

        candidates = registry.select(explicit_version, driver_ceiling)
        for release in candidates.versions():
            result = attempt_fetch(
                release, candidates[release], self.lock_dir, self.fetch_timeout
            )
            if isinstance(result, FetchFailed):
                logger.debug(f"Could not fetch CUDA {release}: {result.reason}")
                continue
            descriptor = self.assemble(release, result.root)
            logger.debug(f"Using CUDA {descriptor.version} from a bundle at {result.root}")
            return descriptor

        logger.debug("Could not find a compatible packaged toolkit.")
        return None

    def _required(self, path: str, what: str) -> str:
        if not os.path.isfile(path):
            raise PackagingDefect(f"Toolkit bundle is missing {what} at {path}")
        return path

    def assemble(self, release: ToolkitVersion, root: str) -> ToolkitDescriptor:
        """Build the descriptor for a bundle of ``release`` unpacked at ``root``."""
        probe = self.probe
        libdir = os.path.join(root, "bin" if probe.is_windows else "lib")

        def get_library(name: str) -> str:
            path = os.path.join(libdir, probe.library_name(name))
            return path if os.path.isfile(path) else ""

        nvdisasm = self._required(
            os.path.join(root, "bin", probe.binary_name("nvdisasm")), "nvdisasm"
        )
        try:
            version = self.read_version(nvdisasm)
        except (OSError, subprocess.SubprocessError, ParseError) as e:
            raise PackagingDefect(f"Could not determine the version of {nvdisasm}") from e

        if probe.is_windows:
            libcupti = get_library(f"cupti64_{release_tag(release)}")
            libnvtx = get_library("nvToolsExt64_1")
        else:
            libcupti = get_library("cupti")
            libnvtx = get_library("nvToolsExt")

        libcudadevrt = self._required(
            os.path.join(root, "lib", probe.static_library_name("cudadevrt")),
            "libcudadevrt",
        )
        libdevice = self._required(
            os.path.join(root, "share", "libdevice", "libdevice.10.bc"), "libdevice"
        )

        return ToolkitDescriptor(
            dirs=(root,),
            version=version,
            nvdisasm=nvdisasm,
            libcupti=libcupti,
            libnvtx=libnvtx,
            libdevice=libdevice,
            libcudadevrt=libcudadevrt,
        )
