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

# NOTE: Do not "from .toolkit.env import xxx".
# Do "from .toolkit import env as toolkit_env" and use "toolkit_env.xxx" instead,
# so that tests can override the environment.

import dataclasses
import os
import pathlib
import warnings
from typing import Mapping, Optional

from ..exceptions import ConfigurationError, ParseError
from .version import ToolkitVersion

_FALSE_VALUES = ("0", "false", "no", "off")

# locations consulted for a local toolkit, most specific first
CUDA_HOME_VARS = ("CUDA_HOME", "CUDA_PATH", "CUDA_ROOT", "CUDA_TOOLKIT_ROOT_DIR")


def _parse_bool(name: str, value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    value = value.strip().lower()
    if value in _FALSE_VALUES:
        return False
    if value in ("1", "true", "yes", "on"):
        return True
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


def _parse_version(name: str, value: Optional[str]) -> Optional[ToolkitVersion]:
    if not value:
        return None
    try:
        return ToolkitVersion.from_string(value)
    except ParseError as e:
        raise ConfigurationError(f"{name} is not a valid CUDA version: {value!r}") from e


def _parse_timeout(name: str, value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        timeout = float(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number of seconds, got {value!r}") from e
    if timeout <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value!r}")
    return timeout


def _flag_at_import(name: str, default: bool) -> bool:
    """Read a boolean setting without failing the import of cudadeps."""
    try:
        return _parse_bool(name, os.getenv(name), default)
    except ConfigurationError as e:
        warnings.warn(f"{e}; using {default}", RuntimeWarning, stacklevel=2)
        return default


CUDADEPS_BASE_DIR: pathlib.Path = pathlib.Path(
    os.getenv("CUDADEPS_WORKSPACE_BASE", pathlib.Path.home().as_posix())
)
CUDADEPS_CACHE_DIR: pathlib.Path = pathlib.Path(
    os.getenv("CUDADEPS_CACHE_DIR", (CUDADEPS_BASE_DIR / ".cache" / "cudadeps").as_posix())
)
CUDADEPS_LOGGING_LEVEL: str = os.getenv("CUDADEPS_LOGGING_LEVEL", "info")
CUDADEPS_LOG_FILE: bool = _flag_at_import("CUDADEPS_LOG_FILE", False)


@dataclasses.dataclass(frozen=True)
class ResolverConfig:
    """Settings steering toolkit resolution.

    Attributes:
        cuda_version: force packaged resolution to exactly this version,
            ignoring the driver ceiling.
        use_packaged: try packaged toolkits before a local installation.
        cache_dir: where fetch lock files are kept.
        fetch_timeout: seconds one bundle fetch may take, ``None`` for no limit.
    """

    cuda_version: Optional[ToolkitVersion] = None
    use_packaged: bool = True
    cache_dir: pathlib.Path = CUDADEPS_CACHE_DIR
    fetch_timeout: Optional[float] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ResolverConfig":
        if environ is None:
            environ = os.environ
        cache_dir = environ.get("CUDADEPS_CACHE_DIR")
        return cls(
            cuda_version=_parse_version(
                "CUDADEPS_CUDA_VERSION", environ.get("CUDADEPS_CUDA_VERSION")
            ),
            use_packaged=_parse_bool(
                "CUDADEPS_USE_PACKAGED", environ.get("CUDADEPS_USE_PACKAGED"), True
            ),
            cache_dir=pathlib.Path(cache_dir) if cache_dir else CUDADEPS_CACHE_DIR,
            fetch_timeout=_parse_timeout(
                "CUDADEPS_FETCH_TIMEOUT", environ.get("CUDADEPS_FETCH_TIMEOUT")
            ),
        )
