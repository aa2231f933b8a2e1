# SPDX-FileCopyrightText: 2026 cudadeps contributors
#
# SPDX-License-Identifier: Apache-2.0

# Re-export
from . import env as env
from .core import ToolkitDescriptor as ToolkitDescriptor
from .core import logger as logger
from .local import LocalResolver as LocalResolver
from .local import find_toolkit_roots as find_toolkit_roots
from .packaged import ArtifactRegistry as ArtifactRegistry
from .packaged import Fetched as Fetched
from .packaged import FetchFailed as FetchFailed
from .packaged import PackagedResolver as PackagedResolver
from .packaged import with_timeout as with_timeout
from .probe import PathProbe as PathProbe
from .probe import release_tag as release_tag
from .version import ToolkitVersion as ToolkitVersion
