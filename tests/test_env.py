# SPDX-FileCopyrightText: 2026 cudadeps contributors
#
# SPDX-License-Identifier: Apache-2.0

from pathlib import Path

import logging
import warnings

import pytest

from cudadeps.exceptions import ConfigurationError
from cudadeps.toolkit import env as toolkit_env
from cudadeps.toolkit.core import CudaDepsLogger
from cudadeps.toolkit.version import ToolkitVersion


def test_defaults():
    config = toolkit_env.ResolverConfig.from_env({})
    assert config.cuda_version is None
    assert config.use_packaged
    assert config.cache_dir == toolkit_env.CUDADEPS_CACHE_DIR
    assert config.fetch_timeout is None


def test_from_env(tmp_path):
    config = toolkit_env.ResolverConfig.from_env(
        {
            "CUDADEPS_CUDA_VERSION": "9.2",
            "CUDADEPS_USE_PACKAGED": "false",
            "CUDADEPS_CACHE_DIR": str(tmp_path),
            "CUDADEPS_FETCH_TIMEOUT": "30",
        }
    )
    assert config.cuda_version == ToolkitVersion(9, 2)
    assert not config.use_packaged
    assert config.cache_dir == Path(tmp_path)
    assert config.fetch_timeout == 30.0


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv("CUDADEPS_CUDA_VERSION", "10.1")
    assert toolkit_env.ResolverConfig.from_env().cuda_version == ToolkitVersion(10, 1)


@pytest.mark.parametrize(
    "name, value",
    [
        ("CUDADEPS_CUDA_VERSION", "latest"),
        ("CUDADEPS_USE_PACKAGED", "maybe"),
        ("CUDADEPS_FETCH_TIMEOUT", "soon"),
        ("CUDADEPS_FETCH_TIMEOUT", "-1"),
    ],
)
def test_invalid_settings(name, value):
    with pytest.raises(ConfigurationError):
        toolkit_env.ResolverConfig.from_env({name: value})


def test_invalid_flag_does_not_break_import(monkeypatch):
    monkeypatch.setenv("CUDADEPS_LOG_FILE", "sometimes")
    with pytest.warns(RuntimeWarning, match="CUDADEPS_LOG_FILE"):
        assert toolkit_env._flag_at_import("CUDADEPS_LOG_FILE", False) is False


def test_valid_flag_read_quietly(monkeypatch):
    monkeypatch.setenv("CUDADEPS_LOG_FILE", "1")
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert toolkit_env._flag_at_import("CUDADEPS_LOG_FILE", False) is True


def test_logger_writes_log_file(tmp_path):
    log = CudaDepsLogger("cudadeps.test.file", level="debug", log_file=True, log_dir=tmp_path)
    try:
        assert log.level == logging.DEBUG
        assert len(log.handlers) == 2
        log.info("hello")
        log.handlers[1].flush()
        assert "hello" in (tmp_path / "cudadeps.log").read_text()
    finally:
        for handler in log.handlers:
            handler.close()


def test_logger_tolerates_unwritable_log_dir(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    log = CudaDepsLogger("cudadeps.test.blocked", log_file=True, log_dir=blocker / "logs")
    assert len(log.handlers) == 1


def test_logger_unknown_level():
    assert CudaDepsLogger("cudadeps.test.level", level="loud").level == logging.INFO
