# SPDX-FileCopyrightText: 2026 cudadeps contributors
#
# SPDX-License-Identifier: Apache-2.0

"""
CUDA driver queries.

The driver reports the newest CUDA release it can run; toolkits newer than that
cannot be used with it.
"""

import contextlib
import threading
from typing import Optional, Protocol

import pynvml

from .exceptions import NotFunctionalError
from .toolkit.core import logger
from .toolkit.version import ToolkitVersion


class Driver(Protocol):
    def functional(self, verbose: bool = False) -> bool: ...

    def release(self) -> ToolkitVersion: ...


def decode_driver_version(raw: int) -> ToolkitVersion:
    """
    Convert the integer NVML reports into a release.

    Returns:
        ToolkitVersion: e.g. ``10.2`` for ``10020``
    """
    return ToolkitVersion(raw // 1000, (raw % 1000) // 10)


class NvmlDriver:
    """Driver information obtained through NVML, queried once per instance."""

    def __init__(self):
        self._lock = threading.Lock()
        self._queried = False
        self._release: Optional[ToolkitVersion] = None
        self._reason: Optional[str] = None

    def _query(self) -> None:
        with self._lock:
            if self._queried:
                return
            self._queried = True
            try:
                pynvml.nvmlInit()
                try:
                    try:
                        raw = pynvml.nvmlSystemGetCudaDriverVersion_v2()
                    except pynvml.NVMLError:
                        # Fallback to the v1 API if the v2 API is not available
                        raw = pynvml.nvmlSystemGetCudaDriverVersion()
                finally:
                    with contextlib.suppress(pynvml.NVMLError):
                        pynvml.nvmlShutdown()
            except pynvml.NVMLError as e:
                self._reason = f"NVML could not query the CUDA driver: {e}"
                return
            self._release = decode_driver_version(raw)

    def functional(self, verbose: bool = False) -> bool:
        self._query()
        if self._release is None:
            if verbose:
                logger.error(self._reason)
            return False
        return True

    def release(self) -> ToolkitVersion:
        if not self.functional(verbose=True):
            raise NotFunctionalError("The CUDA driver is not functional")
        return self._release
