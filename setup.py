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

import os
from pathlib import Path

import setuptools

root = Path(__file__).parent.resolve()


def write_if_different(path: Path, content: str) -> None:
    if path.exists() and path.read_text() == content:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def get_version():
    package_version = (root / "version.txt").read_text().strip()
    local_version = os.environ.get("CUDADEPS_LOCAL_VERSION")
    if local_version is None:
        return package_version
    return f"{package_version}+{local_version}"


def generate_build_meta() -> None:
    build_meta_str = f"__version__ = {get_version()!r}\n"
    write_if_different(root / "cudadeps" / "_build_meta.py", build_meta_str)


install_requires = [
    "packaging>=24.2",
    "filelock",
    "pynvml",
]
generate_build_meta()

setuptools.setup(
    name="cudadeps",
    version=get_version(),
    description="Locate and validate the CUDA toolkit used by a GPU library",
    license="Apache-2.0",
    packages=setuptools.find_packages(include=["cudadeps", "cudadeps.*"]),
    python_requires=">=3.10",
    install_requires=install_requires,
    extras_require={"test": ["pytest"]},
)
