# SPDX-FileCopyrightText: 2026 cudadeps contributors
#
# SPDX-License-Identifier: Apache-2.0

"""
Once-only resolution of the CUDA toolkit.

An :class:`InitializationGate` starts out unresolved. The first caller needing
toolkit information runs the resolution; callers arriving meanwhile block until
it is done. The outcome, failed or ready, never changes afterwards.
"""

import dataclasses
import enum
import threading
from typing import Optional, Tuple

from .compatibility import (
    CodegenBackend,
    CompatibilityRange,
    UnrestrictedBackend,
    reconcile,
    toolkit_compat,
    verlist,
)
from .driver import Driver, NvmlDriver
from .exceptions import (
    BackendVersionMismatch,
    NotFunctionalError,
    ReentrantResolutionError,
)
from .toolkit import env as toolkit_env
from .toolkit.core import ToolkitDescriptor, logger
from .toolkit.local import LocalResolver
from .toolkit.packaged import ArtifactRegistry, PackagedResolver
from .toolkit.probe import PathProbe
from .toolkit.version import ToolkitVersion, read_tool_version

MINIMUM_RELEASE = ToolkitVersion(9, 0)


class ResolutionStatus(enum.Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    FAILED = "failed"
    READY = "ready"


@dataclasses.dataclass(frozen=True)
class ResolutionState:
    status: ResolutionStatus = ResolutionStatus.UNRESOLVED
    descriptor: Optional[ToolkitDescriptor] = None
    compatibility: Optional[CompatibilityRange] = None
    reason: Optional[str] = None
    error: Optional[BaseException] = None

    @property
    def resolved(self) -> bool:
        return self.status in (ResolutionStatus.READY, ResolutionStatus.FAILED)


def _failed(reason: str) -> ResolutionState:
    return ResolutionState(ResolutionStatus.FAILED, reason=reason)


class InitializationGate:
    """Owns the resolution state of one CUDA toolkit lookup.

    Args:
        driver: reports whether a driver is usable and which release it supports.
        backend: the code generator; limits the device capabilities and PTX ISA.
        registry: packaged toolkits; discovered from entry points when omitted.
        config: resolution settings; read from the environment when omitted.
        probe: file lookup, shared by both resolvers unless they are given.
        read_version: reads the toolkit version from the ``nvdisasm`` binary.
        packaged_resolver: overrides the packaged resolution strategy.
        local_resolver: overrides the local resolution strategy.
    """

    def __init__(
        self,
        driver: Optional[Driver] = None,
        backend: Optional[CodegenBackend] = None,
        registry: Optional[ArtifactRegistry] = None,
        config: Optional[toolkit_env.ResolverConfig] = None,
        probe: Optional[PathProbe] = None,
        read_version=read_tool_version,
        packaged_resolver: Optional[PackagedResolver] = None,
        local_resolver: Optional[LocalResolver] = None,
    ):
        self.driver = driver if driver is not None else NvmlDriver()
        self.backend = backend if backend is not None else UnrestrictedBackend()
        self.registry = registry
        self.config = config
        self.probe = probe or PathProbe()
        self.read_version = read_version
        self.packaged_resolver = packaged_resolver
        self.local_resolver = local_resolver
        self._state = ResolutionState()
        self._cond = threading.Condition()
        self._resolving_thread: Optional[int] = None

    @property
    def state(self) -> ResolutionState:
        return self._state

    def attempt(self, verbose: bool = False) -> ResolutionState:
        """Run the resolution unless it already ran, and return its outcome."""
        state = self._state
        if state.resolved:
            return state

        with self._cond:
            while self._state.status is ResolutionStatus.RESOLVING:
                if self._resolving_thread == threading.get_ident():
                    raise ReentrantResolutionError(
                        "The CUDA toolkit was queried while it was being resolved"
                    )
                self._cond.wait()
            if self._state.status is not ResolutionStatus.UNRESOLVED:
                return self._state
            self._state = ResolutionState(ResolutionStatus.RESOLVING)
            self._resolving_thread = threading.get_ident()

        try:
            state = self._resolve(verbose)
        except BaseException as e:
            self._publish(ResolutionState(ResolutionStatus.FAILED, reason=str(e), error=e))
            raise
        self._publish(state)
        return state

    def _publish(self, state: ResolutionState) -> None:
        with self._cond:
            self._state = state
            self._resolving_thread = None
            self._cond.notify_all()

    def _make_packaged_resolver(self, config) -> PackagedResolver:
        if self.packaged_resolver is not None:
            return self.packaged_resolver
        return PackagedResolver(
            probe=self.probe,
            read_version=self.read_version,
            lock_dir=config.cache_dir,
            fetch_timeout=config.fetch_timeout,
        )

    def _make_local_resolver(self) -> LocalResolver:
        if self.local_resolver is not None:
            return self.local_resolver
        return LocalResolver(probe=self.probe, read_version=self.read_version)

    def _resolve(self, verbose: bool) -> ResolutionState:
        config = self.config or toolkit_env.ResolverConfig.from_env()

        # if the driver is unusable, expect it to have logged why
        if not self.driver.functional(verbose):
            return _failed("cudadeps did not initialize because the CUDA driver failed to")

        backend = self.backend
        if backend.version != backend.expected_version:
            raise BackendVersionMismatch(
                f"{backend.name} {backend.version} is incompatible with "
                f"the expected {backend.name} {backend.expected_version}"
            )

        driver_release = self.driver.release()

        descriptor = None
        if config.use_packaged:
            registry = self.registry
            if registry is None:
                registry = ArtifactRegistry.from_entry_points()
            descriptor = self._make_packaged_resolver(config).resolve(
                registry, config.cuda_version, driver_release
            )
        if descriptor is None:
            descriptor = self._make_local_resolver().resolve()
        if descriptor is None:
            return _failed("Could not find a suitable CUDA installation")

        release = descriptor.release
        if release < MINIMUM_RELEASE:
            logger.warning(
                f"cudadeps only supports CUDA {MINIMUM_RELEASE} or higher "
                f"(your toolkit provides CUDA {release})"
            )
        elif release > driver_release:
            logger.warning(
                f"You are using CUDA toolkit {release} with a driver that only supports "
                f"up to {driver_release}. It is recommended to upgrade your driver, "
                "or switch to a packaged toolkit."
            )

        compatibility = reconcile(backend.compat(), toolkit_compat(release))
        logger.debug(
            f"Toolchain with {backend.name} {backend.version}, CUDA driver "
            f"{driver_release} and toolkit {descriptor.version} supports devices "
            f"{verlist(compatibility.capabilities)}; "
            f"PTX {verlist(compatibility.isa_versions)}"
        )
        return ResolutionState(
            ResolutionStatus.READY, descriptor=descriptor, compatibility=compatibility
        )

    def functional(self, verbose: bool = False) -> bool:
        """
        Check whether a usable CUDA toolkit was found.

        Intended for code that only conditionally uses the GPU. With ``verbose``
        the reason for a failure is logged.
        """
        state = self.attempt(verbose)
        if state.status is ResolutionStatus.READY:
            return True
        if verbose:
            logger.error(state.reason)
        return False

    def ensure_ready(self) -> ResolutionState:
        if not self.functional(verbose=True):
            raise NotFunctionalError("cudadeps is not functional") from self._state.error
        return self._state

    def installation_roots(self) -> Tuple[str, ...]:
        return self.ensure_ready().descriptor.dirs

    def toolkit_version(self) -> ToolkitVersion:
        return self.ensure_ready().descriptor.version

    def toolkit_release(self) -> ToolkitVersion:
        return self.ensure_ready().descriptor.release

    def disassembler_path(self) -> str:
        return self.ensure_ready().descriptor.nvdisasm

    def profiling_library_path(self) -> str:
        return self.ensure_ready().descriptor.libcupti

    def markers_library_path(self) -> str:
        return self.ensure_ready().descriptor.libnvtx

    def bitcode_file_path(self) -> str:
        return self.ensure_ready().descriptor.libdevice

    def device_runtime_archive_path(self) -> str:
        return self.ensure_ready().descriptor.libcudadevrt

    def supported_device_capabilities(self) -> Tuple[ToolkitVersion, ...]:
        return self.ensure_ready().compatibility.capabilities

    def supported_instruction_set_versions(self) -> Tuple[ToolkitVersion, ...]:
        return self.ensure_ready().compatibility.isa_versions
