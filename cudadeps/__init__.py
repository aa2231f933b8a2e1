"""
Copyright (c) 2026 by cudadeps contributors.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

  http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

"""
cudadeps: discovering the CUDA toolkit a GPU library depends on

The toolkit is looked up lazily, the first time any of the functions below is
called, and the result is kept for the lifetime of the process.
"""
import threading
from typing import Optional, Tuple

from ._build_meta import __version__ as __version__
from .compatibility import CompatibilityRange as CompatibilityRange
from .compatibility import UnrestrictedBackend as UnrestrictedBackend
from .exceptions import BackendVersionMismatch as BackendVersionMismatch
from .exceptions import CudaDepsError as CudaDepsError
from .exceptions import NoCompatibility as NoCompatibility
from .exceptions import NotFunctionalError as NotFunctionalError
from .exceptions import PackagingDefect as PackagingDefect
from .gate import InitializationGate as InitializationGate
from .gate import ResolutionStatus as ResolutionStatus
from .toolkit import ArtifactRegistry as ArtifactRegistry
from .toolkit import ToolkitVersion as ToolkitVersion

_gate: Optional[InitializationGate] = None
_gate_lock = threading.Lock()


def get_gate() -> InitializationGate:
    """Return the process-wide gate, creating it with default collaborators."""
    global _gate
    with _gate_lock:
        if _gate is None:
            _gate = InitializationGate()
        return _gate


def set_gate(gate: InitializationGate) -> None:
    """Replace the process-wide gate, e.g. to inject a backend or a registry.

    Only meaningful before the toolkit has been looked up.
    """
    global _gate
    with _gate_lock:
        _gate = gate


def functional(verbose: bool = False) -> bool:
    """
    Check if a CUDA toolkit has been found and is ready to use.

    This call is intended for packages that conditionally use an available GPU.
    Pass ``verbose=True`` to log why the toolkit is not usable.
    """
    return get_gate().functional(verbose)


def installation_roots() -> Tuple[str, ...]:
    """Installation prefix directories of the CUDA toolkit in use."""
    return get_gate().installation_roots()


def toolkit_version() -> ToolkitVersion:
    """Version of the CUDA toolkit in use."""
    return get_gate().toolkit_version()


def toolkit_release() -> ToolkitVersion:
    """The major.minor release part of :func:`toolkit_version`."""
    return get_gate().toolkit_release()


def disassembler_path() -> str:
    return get_gate().disassembler_path()


def profiling_library_path() -> str:
    return get_gate().profiling_library_path()


def markers_library_path() -> str:
    return get_gate().markers_library_path()


def bitcode_file_path() -> str:
    return get_gate().bitcode_file_path()


def device_runtime_archive_path() -> str:
    return get_gate().device_runtime_archive_path()


def supported_device_capabilities() -> Tuple[ToolkitVersion, ...]:
    return get_gate().supported_device_capabilities()


def supported_instruction_set_versions() -> Tuple[ToolkitVersion, ...]:
    return get_gate().supported_instruction_set_versions()
