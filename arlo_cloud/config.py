"""Client configuration loaded from YAML and the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from . import const
from .errors import ArloConfigError

ENV_PREFIX = "ARLO_"


@dataclass(frozen=True)
class ArloConfig:
    """Tunables for an Arlo cloud session.

    Attributes:
        base_url: Root of the web service API.
        label: Prefix used when generating transaction ids.
        request_timeout: Total timeout for request/response calls (seconds).
        connect_timeout: Timeout for opening the push channel (seconds).
        command_timeout: How long a pending transaction may wait for its
            reply before it fails with ``ArloCommandTimeout``. ``None``
            waits forever.
        resubscribe_interval: Period for refreshing base station
            subscriptions while the push channel is up. ``None`` disables.
    """

    base_url: str = const.DEFAULT_BASE_URL
    label: str = const.DEFAULT_LABEL
    request_timeout: float = 15.0
    connect_timeout: float = 15.0
    command_timeout: float | None = 30.0
    resubscribe_interval: float | None = 60.0


_FLOAT_FIELDS = {"request_timeout", "connect_timeout"}
_OPTIONAL_FLOAT_FIELDS = {"command_timeout", "resubscribe_interval"}


def _coerce(name: str, value: Any) -> Any:
    if name in _OPTIONAL_FLOAT_FIELDS and value in (None, "", "none", "None"):
        return None
    if name in _FLOAT_FIELDS | _OPTIONAL_FLOAT_FIELDS:
        try:
            number = float(value)
        except (TypeError, ValueError) as err:
            raise ArloConfigError(f"{name} must be a number, got {value!r}") from err
        if number <= 0:
            raise ArloConfigError(f"{name} must be positive, got {number}")
        return number
    if not isinstance(value, str) or not value:
        raise ArloConfigError(f"{name} must be a non-empty string")
    return value.rstrip("/") if name == "base_url" else value


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file with error handling."""
    if not path.exists():
        raise ArloConfigError(f"File not found: {path}")
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as err:
        raise ArloConfigError(f"Invalid YAML in {path}: {err}") from err
    if not isinstance(data, dict):
        raise ArloConfigError(f"{path} must contain a mapping")
    return data


def load_config(
    path: str | Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> ArloConfig:
    """Build a config from an optional YAML file plus ``ARLO_*`` overrides.

    Environment values win over file values. Unknown file keys are rejected.
    """
    env = os.environ if env is None else env
    known = {f.name for f in fields(ArloConfig)}
    values: dict[str, Any] = {}

    if path is not None:
        data = _load_yaml(Path(path))
        unknown = set(data) - known
        if unknown:
            raise ArloConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        values.update(data)

    for name in known:
        env_value = env.get(ENV_PREFIX + name.upper())
        if env_value is not None:
            values[name] = env_value

    return replace(
        ArloConfig(), **{name: _coerce(name, value) for name, value in values.items()}
    )
