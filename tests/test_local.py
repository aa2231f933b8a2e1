# SPDX-FileCopyrightText: 2026 cudadeps contributors
#
# SPDX-License-Identifier: Apache-2.0

import os

import pytest

from cudadeps.toolkit.local import LocalResolver, find_toolkit_roots
from cudadeps.toolkit.probe import PathProbe
from cudadeps.toolkit.version import ToolkitVersion

from conftest import make_local_install, read_fake_version, touch


def make_resolver(*roots, read_version=read_fake_version):
    return LocalResolver(
        probe=PathProbe("linux"),
        find_roots=lambda: [str(root) for root in roots],
        read_version=read_version,
    )


def test_find_roots_order(tmp_path):
    home = tmp_path / "cuda-home"
    path = tmp_path / "cuda-path"
    default = tmp_path / "default"
    for d in (home, path, default):
        d.mkdir()
    environ = {"CUDA_PATH": str(path), "CUDA_HOME": str(home), "PATH": ""}
    roots = find_toolkit_roots(environ, default_dirs=[str(default), str(home)])
    assert roots == [str(home), str(path), str(default)]


def test_find_roots_drops_missing(tmp_path):
    environ = {"CUDA_HOME": str(tmp_path / "missing"), "PATH": ""}
    assert find_toolkit_roots(environ, default_dirs=[]) == []


def test_find_roots_from_path(tmp_path):
    nvcc = touch(tmp_path / "cuda" / "bin" / "nvcc")
    os.chmod(nvcc, 0o755)
    environ = {"PATH": str(tmp_path / "cuda" / "bin")}
    roots = find_toolkit_roots(environ, system="linux", default_dirs=[])
    assert roots == [os.path.realpath(tmp_path / "cuda")]


def test_resolve_local_install(tmp_path):
    root = make_local_install(tmp_path / "cuda", "10.1.243")
    descriptor = make_resolver(root).resolve()
    assert descriptor is not None
    assert descriptor.dirs == (str(root),)
    assert descriptor.version == ToolkitVersion(10, 1, 243)
    assert descriptor.nvdisasm == str(root / "bin" / "nvdisasm")
    assert descriptor.libcupti == str(root / "extras" / "CUPTI" / "lib64" / "libcupti.so.10.1")
    assert descriptor.libnvtx == str(root / "lib64" / "libnvToolsExt.so.1")
    assert descriptor.libcudadevrt == str(root / "lib64" / "libcudadevrt.a")
    assert descriptor.libdevice == str(root / "nvvm" / "libdevice" / "libdevice.10.bc")


def test_optional_libraries_may_be_missing(tmp_path):
    root = make_local_install(tmp_path / "cuda")
    (root / "lib64" / "libnvToolsExt.so.1").unlink()
    descriptor = make_resolver(root).resolve()
    assert descriptor.libnvtx == ""


def test_split_installation(tmp_path):
    # e.g. distribution packages spreading the toolkit over two prefixes
    tools = tmp_path / "tools"
    libs = tmp_path / "libs"
    touch(tools / "bin" / "nvdisasm")
    touch(libs / "lib" / "libcudadevrt.a")
    touch(libs / "share" / "libdevice" / "libdevice.10.bc")
    resolver = make_resolver(tools, libs, read_version=lambda path: ToolkitVersion(10, 2))
    descriptor = resolver.resolve()
    assert descriptor.dirs == (str(tools), str(libs))
    assert descriptor.libcudadevrt == str(libs / "lib" / "libcudadevrt.a")


def test_no_roots():
    assert make_resolver().resolve() is None


def test_missing_nvdisasm_skips_version(tmp_path):
    root = make_local_install(tmp_path / "cuda")
    (root / "bin" / "nvdisasm").unlink()

    def read_version(path):
        pytest.fail("version must not be read without nvdisasm")

    assert make_resolver(root, read_version=read_version).resolve() is None


@pytest.mark.parametrize(
    "missing",
    [
        os.path.join("lib64", "libcudadevrt.a"),
        os.path.join("nvvm", "libdevice", "libdevice.10.bc"),
    ],
)
def test_missing_required_file(tmp_path, missing):
    root = make_local_install(tmp_path / "cuda")
    (root / missing).unlink()
    assert make_resolver(root).resolve() is None


def test_unreadable_version(tmp_path):
    root = make_local_install(tmp_path / "cuda")
    (root / "bin" / "nvdisasm").write_text("garbage")
    assert make_resolver(root).resolve() is None
