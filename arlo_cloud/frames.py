"""Push channel frame decoding.

The subscribe endpoint speaks a loose dialect of server-sent events. Frames
arrive either as

    event: message
    data: {"resource": "cameras/ABC", ...}

or as a bare JSON object. Both shapes are normalized into
``{"event": "message", "data": {...}}`` before a ``PushMessage`` is built.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from . import const
from .errors import ArloFrameError

_LOGGER = logging.getLogger(__name__)

EVENT_MESSAGE = "message"


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class PushMessage:
    """One structured message received over the push channel."""

    resource: str
    action: str | None = None
    from_id: str | None = None
    to_id: str | None = None
    trans_id: str | None = None
    properties: Any = None
    error: Any = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> PushMessage:
        """Build a message from the inner ``data`` object of a frame."""
        resource = data.get(const.RESOURCE)
        return cls(
            resource=resource if isinstance(resource, str) else "",
            action=_str_or_none(data.get(const.ACTION)),
            from_id=_str_or_none(data.get(const.FROM)),
            to_id=_str_or_none(data.get(const.TO)),
            trans_id=_str_or_none(data.get(const.TRANS_ID)),
            properties=data.get(const.PROPERTIES),
            error=data.get(const.ERROR),
            raw=data,
        )


def _to_text(raw: bytes | str) -> str:
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as err:
            raise ArloFrameError("Frame is not valid UTF-8") from err
    return raw


def _load_object(text: str) -> dict[str, Any]:
    try:
        obj = json.loads(text)
    except ValueError as err:
        raise ArloFrameError(f"Frame payload is not JSON: {err}") from err
    if not isinstance(obj, dict):
        raise ArloFrameError("Frame payload is not a JSON object")
    return obj


def decode_frame(raw: bytes | str) -> dict[str, Any]:
    """Normalize one raw frame into ``{"event": ..., "data": {...}}``.

    Raises:
        ArloFrameError: If the frame is empty, not JSON, or has no data field.
    """
    text = _to_text(raw).strip()
    if not text:
        raise ArloFrameError("Empty frame")

    if text.startswith("{"):
        obj = _load_object(text)
        if isinstance(obj.get("event"), str) and isinstance(obj.get("data"), dict):
            return obj
        return {"event": EVENT_MESSAGE, "data": obj}

    event = EVENT_MESSAGE
    data_lines: list[str] = []
    for line in text.splitlines():
        if not line or line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        name = name.strip()
        if name == "event":
            event = value.strip() or EVENT_MESSAGE
        elif name == "data":
            data_lines.append(value)
        # id:, retry: and unknown fields carry nothing we route on

    if not data_lines:
        raise ArloFrameError("Frame has no data field")

    return {"event": event, "data": _load_object("\n".join(data_lines))}


def parse_frame(raw: bytes | str) -> PushMessage | None:
    """Parse a raw frame, returning None when it must be dropped."""
    try:
        frame = decode_frame(raw)
    except ArloFrameError as err:
        _LOGGER.debug("Dropping malformed frame (%s): %r", err, raw)
        return None

    if frame["event"] != EVENT_MESSAGE:
        _LOGGER.debug("Ignoring %s event", frame["event"])
        return None

    return PushMessage.from_data(frame["data"])
