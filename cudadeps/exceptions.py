# SPDX-FileCopyrightText: 2026 cudadeps contributors
#
# SPDX-License-Identifier: Apache-2.0

"""Errors raised while locating and validating the CUDA toolkit."""


class CudaDepsError(RuntimeError):
    """Base class for conditions that cannot be worked around."""


class ConfigurationError(CudaDepsError):
    """An environment setting could not be interpreted."""


class ReentrantResolutionError(CudaDepsError):
    """Toolkit information was requested while that same thread was resolving it."""


class ToolkitInitializationError(CudaDepsError):
    """The resolved toolkit configuration is unusable."""


class NoCompatibility(ToolkitInitializationError):
    """The toolchain and the toolkit share no device capability or PTX ISA."""


class BackendVersionMismatch(ToolkitInitializationError):
    """The code generation backend is not the one the host environment expects."""


class ParseError(ValueError):
    """No toolkit version could be extracted from a version string."""


class NotFunctionalError(AssertionError):
    pass


class PackagingDefect(AssertionError):
    """A fetched toolkit bundle lacks a file every bundle must contain."""
