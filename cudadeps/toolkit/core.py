# SPDX-FileCopyrightText: 2026 cudadeps contributors
#
# SPDX-License-Identifier: Apache-2.0

import dataclasses
import logging
import os
import pathlib
from typing import Tuple

from . import env as toolkit_env
from .version import ToolkitVersion

_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d - cudadeps: %(message)s"


class CudaDepsLogger(logging.Logger):
    def __init__(self, name, level=None, log_file=None, log_dir=None):
        super().__init__(name)
        if level is None:
            level = toolkit_env.CUDADEPS_LOGGING_LEVEL
        if log_file is None:
            log_file = toolkit_env.CUDADEPS_LOG_FILE
        if log_dir is None:
            log_dir = toolkit_env.CUDADEPS_CACHE_DIR

        self.addHandler(logging.StreamHandler())
        self.handlers[0].setFormatter(logging.Formatter(_LOG_FORMAT))
        try:
            self.setLevel(level.upper())
        except ValueError:
            self.setLevel(logging.INFO)
            self.warning(f"Unknown logging level {level!r}, using info")
        if log_file:
            try:
                os.makedirs(log_dir, exist_ok=True)
                file_handler = logging.FileHandler(pathlib.Path(log_dir) / "cudadeps.log")
            except OSError as e:
                self.warning(f"Not writing a log file to {log_dir}: {e}")
            else:
                file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
                self.addHandler(file_handler)


logger = CudaDepsLogger("cudadeps")


@dataclasses.dataclass(frozen=True)
class ToolkitDescriptor:
    """Everything known about the toolkit in use.

    ``dirs`` lists the installation prefixes in search order. ``libcupti``
    and ``libnvtx`` are empty strings when they were not found; the other
    paths always point at existing files.
    """

    dirs: Tuple[str, ...]
    version: ToolkitVersion
    nvdisasm: str
    libcupti: str
    libnvtx: str
    libdevice: str
    libcudadevrt: str

    @property
    def release(self) -> ToolkitVersion:
        return self.version.release
