"""Resource grammar and outbound command builders for the Arlo cloud."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from . import const


class ResourceKind(Enum):
    """Routing key derived from a message resource path."""

    CAMERAS = "cameras"
    MODES = "modes"
    SUBSCRIPTION = "subscription"
    CAMERA = "camera"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ResourceKey:
    """Parsed resource path."""

    kind: ResourceKind
    device_id: str | None = None


_EXACT: dict[str, ResourceKind] = {
    const.RESOURCE_CAMERAS: ResourceKind.CAMERAS,
    const.RESOURCE_MODES: ResourceKind.MODES,
}

_PREFIXED: tuple[tuple[str, ResourceKind], ...] = (
    (const.RESOURCE_SUBSCRIPTIONS + "/", ResourceKind.SUBSCRIPTION),
    (const.RESOURCE_CAMERAS + "/", ResourceKind.CAMERA),
)


def parse_resource(resource: str | None) -> ResourceKey:
    """Parse a resource path into a typed routing key.

    Grammar, tried in order:
        "cameras"              -> CAMERAS
        "modes"                -> MODES
        "subscriptions/<id>"   -> SUBSCRIPTION
        "cameras/<id>"         -> CAMERA
    Anything else, including an empty ``<id>``, is UNKNOWN.
    """
    if not resource:
        return ResourceKey(ResourceKind.UNKNOWN)

    kind = _EXACT.get(resource)
    if kind is not None:
        return ResourceKey(kind)

    for prefix, kind in _PREFIXED:
        if resource.startswith(prefix):
            device_id = resource[len(prefix) :]
            if not device_id:
                break
            return ResourceKey(kind, device_id)

    return ResourceKey(ResourceKind.UNKNOWN)


def web_client_id(user_id: str) -> str:
    """Return the sender id the web client uses for commands."""
    return f"{user_id}{const.WEB_CLIENT_SUFFIX}"


def build_trans_id(
    label: str,
    device_id: str,
    kind: str,
    *,
    timestamp_ms: int | None = None,
) -> str:
    """Build a transaction id of the form ``<label>-<device>!<kind>-<millis>``."""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{label}-{device_id}!{kind}-{timestamp_ms}"


def build_command(
    *,
    user_id: str,
    to: str,
    resource: str,
    properties: dict[str, Any],
    trans_id: str | None = None,
    action: str = const.ACTION_SET,
    publish: bool = True,
) -> dict[str, Any]:
    """Build an outbound command payload."""
    body: dict[str, Any] = {
        const.FROM: web_client_id(user_id),
        const.TO: to,
        const.ACTION: action,
        const.RESOURCE: resource,
        const.PUBLISH: publish,
    }
    if trans_id is not None:
        body[const.TRANS_ID] = trans_id
    body[const.PROPERTIES] = properties
    return body


def build_snapshot_command(
    *, user_id: str, base_station_id: str, camera_id: str, trans_id: str
) -> dict[str, Any]:
    """Build the full-frame snapshot request for a camera."""
    return build_command(
        user_id=user_id,
        to=base_station_id,
        resource=f"{const.RESOURCE_CAMERAS}/{camera_id}",
        trans_id=trans_id,
        properties={const.ACTIVITY_STATE: const.ACTIVITY_SNAPSHOT},
    )


def build_stream_command(
    *, user_id: str, base_station_id: str, camera_id: str, trans_id: str
) -> dict[str, Any]:
    """Build the user stream start request for a camera."""
    return build_command(
        user_id=user_id,
        to=base_station_id,
        resource=f"{const.RESOURCE_CAMERAS}/{camera_id}",
        trans_id=trans_id,
        properties={
            const.ACTIVITY_STATE: const.ACTIVITY_STREAM,
            "cameraId": camera_id,
        },
    )


def build_mode_command(
    *, user_id: str, base_station_id: str, mode: str, trans_id: str | None = None
) -> dict[str, Any]:
    """Build a mode change request for a base station."""
    return build_command(
        user_id=user_id,
        to=base_station_id,
        resource=const.RESOURCE_MODES,
        trans_id=trans_id,
        properties={const.MODE_ACTIVE: mode},
    )


def build_subscribe_command(*, user_id: str, base_station_id: str) -> dict[str, Any]:
    """Build the request that attaches a base station to our push channel."""
    return build_command(
        user_id=user_id,
        to=base_station_id,
        resource=f"{const.RESOURCE_SUBSCRIPTIONS}/{web_client_id(user_id)}",
        properties={"devices": [base_station_id]},
        publish=False,
    )
