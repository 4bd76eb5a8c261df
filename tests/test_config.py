"""Tests for configuration loading."""

from __future__ import annotations

import pytest

from arlo_cloud import const
from arlo_cloud.config import ArloConfig, load_config
from arlo_cloud.errors import ArloConfigError


def test_defaults():
    config = load_config(env={})
    assert config == ArloConfig()
    assert config.base_url == const.DEFAULT_BASE_URL
    assert config.command_timeout == 30.0


def test_yaml_file(tmp_path):
    path = tmp_path / "arlo.yaml"
    path.write_text(
        "base_url: https://example.test/hmsweb/\n"
        "label: my-app\n"
        "command_timeout: 5\n"
        "resubscribe_interval: null\n"
    )

    config = load_config(path, env={})

    assert config.base_url == "https://example.test/hmsweb"
    assert config.label == "my-app"
    assert config.command_timeout == 5.0
    assert config.resubscribe_interval is None


def test_env_overrides_file(tmp_path):
    path = tmp_path / "arlo.yaml"
    path.write_text("label: from-file\nrequest_timeout: 3\n")

    config = load_config(
        path, env={"ARLO_LABEL": "from-env", "ARLO_COMMAND_TIMEOUT": "none"}
    )

    assert config.label == "from-env"
    assert config.request_timeout == 3.0
    assert config.command_timeout is None


def test_missing_file(tmp_path):
    with pytest.raises(ArloConfigError, match="File not found"):
        load_config(tmp_path / "missing.yaml", env={})


def test_unknown_keys(tmp_path):
    path = tmp_path / "arlo.yaml"
    path.write_text("password: hunter2\n")
    with pytest.raises(ArloConfigError, match="Unknown config keys"):
        load_config(path, env={})


def test_non_mapping(tmp_path):
    path = tmp_path / "arlo.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ArloConfigError, match="mapping"):
        load_config(path, env={})


@pytest.mark.parametrize("value", ["abc", "0", "-1"])
def test_invalid_numbers(value):
    with pytest.raises(ArloConfigError):
        load_config(env={"ARLO_REQUEST_TIMEOUT": value})


def test_empty_label_rejected():
    with pytest.raises(ArloConfigError):
        load_config(env={"ARLO_LABEL": ""})
