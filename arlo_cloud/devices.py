"""Device model and registry for base stations and cameras."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

from . import const

_LOGGER = logging.getLogger(__name__)


class DeviceEventType(Enum):
    """Events delivered to devices by the message router."""

    UPDATE = "update"
    SNAPSHOT_AVAILABLE = "fullFrameSnapshotAvailable"
    MODE_CHANGED = "modeChanged"
    SUBSCRIBED = "subscribed"


@dataclass(frozen=True)
class DeviceEvent:
    """A single event addressed to one device."""

    type: DeviceEventType
    device_id: str
    data: Any = None


DeviceListener = Callable[[DeviceEvent], None]


class ArloDevice:
    """Common state and listener handling for every device variant."""

    device_type: str = ""

    def __init__(self, info: dict[str, Any]) -> None:
        self.device_id: str = info["deviceId"]
        self.raw: dict[str, Any] = dict(info)
        self.parent_id: str | None = None
        self.cloud_id: str | None = None
        self.name: str | None = None
        self.is_subscribed = False
        self.attributes: dict[str, Any] = {}
        self._listeners: list[tuple[DeviceEventType | None, DeviceListener]] = []
        self.update_info(info)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.device_id}>"

    def update_info(self, info: dict[str, Any]) -> None:
        """Refresh descriptive fields from a device-list entry."""
        self.raw.update(info)
        self.parent_id = info.get("parentId") or self.parent_id
        self.cloud_id = info.get("xCloudId") or info.get("cloudId") or self.cloud_id
        self.name = info.get("deviceName") or self.name

    def add_listener(
        self,
        callback: DeviceListener,
        event_type: DeviceEventType | None = None,
    ) -> Callable[[], None]:
        """Register a listener, optionally for a single event type.

        Returns:
            A callable that removes the listener.
        """
        entry = (event_type, callback)
        self._listeners.append(entry)

        def _remove() -> None:
            if entry in self._listeners:
                self._listeners.remove(entry)

        return _remove

    def handle_event(self, event: DeviceEvent) -> None:
        """Apply an event to local state and notify listeners."""
        self._apply(event)
        for event_type, callback in list(self._listeners):
            if event_type is not None and event_type is not event.type:
                continue
            try:
                callback(event)
            except Exception as err:
                _LOGGER.exception(
                    "[%s] Listener error for %s: %s",
                    self.device_id,
                    event.type.value,
                    err,
                )

    def _apply(self, event: DeviceEvent) -> None:
        if event.type is DeviceEventType.UPDATE and isinstance(event.data, dict):
            self.attributes.update(event.data)
        elif event.type is DeviceEventType.SUBSCRIBED:
            self.is_subscribed = True


class ArloBaseStation(ArloDevice):
    """Hub relaying commands to its cameras."""

    device_type = const.TYPE_BASESTATION

    def __init__(self, info: dict[str, Any]) -> None:
        self.mode: str | None = None
        super().__init__(info)

    @property
    def is_armed(self) -> bool:
        return self.mode == const.MODE_ARMED

    def _apply(self, event: DeviceEvent) -> None:
        super()._apply(event)
        if event.type is DeviceEventType.MODE_CHANGED:
            self.mode = event.data


class ArloCamera(ArloDevice):
    """Camera attached to a base station."""

    device_type = const.TYPE_CAMERA

    def __init__(self, info: dict[str, Any]) -> None:
        self.last_snapshot_url: str | None = None
        super().__init__(info)

    def _apply(self, event: DeviceEvent) -> None:
        super()._apply(event)
        if event.type is DeviceEventType.SNAPSHOT_AVAILABLE:
            self.last_snapshot_url = event.data


_VARIANTS: dict[str, type[ArloDevice]] = {
    const.TYPE_BASESTATION: ArloBaseStation,
    const.TYPE_CAMERA: ArloCamera,
}


def device_from_info(info: dict[str, Any]) -> ArloDevice | None:
    """Create the device variant matching ``info["deviceType"]``."""
    variant = _VARIANTS.get(info.get("deviceType", ""))
    if variant is None or not info.get("deviceId"):
        return None
    return variant(info)


class DeviceRegistry:
    """Devices of one session, keyed by device id."""

    def __init__(self) -> None:
        self._devices: dict[str, ArloDevice] = {}

    def __contains__(self, device_id: object) -> bool:
        return isinstance(device_id, str) and device_id in self._devices

    def __len__(self) -> int:
        return len(self._devices)

    def __iter__(self) -> Iterator[ArloDevice]:
        return iter(list(self._devices.values()))

    def add(self, device: ArloDevice) -> None:
        self._devices[device.device_id] = device

    def get(self, device_id: str | None) -> ArloDevice | None:
        if not isinstance(device_id, str):
            return None
        return self._devices.get(device_id)

    def base_stations(self) -> list[ArloBaseStation]:
        return [d for d in self._devices.values() if isinstance(d, ArloBaseStation)]

    def cameras(self) -> list[ArloCamera]:
        return [d for d in self._devices.values() if isinstance(d, ArloCamera)]

    def parent_of(self, device: ArloDevice) -> ArloDevice | None:
        """Return the base station owning ``device``.

        A device without a parent is its own relay (e.g. a base station).
        """
        if device.parent_id is None or device.parent_id == device.device_id:
            return device
        return self.get(device.parent_id)

    def load(self, device_list: Iterable[dict[str, Any]]) -> list[ArloDevice]:
        """Populate the registry from a device-list response.

        Base stations are loaded before cameras. Known ids are updated in
        place so existing listeners survive a refresh.

        Returns:
            Devices that were not registered before.
        """
        entries = [info for info in device_list if isinstance(info, dict)]
        ordered = [e for e in entries if e.get("deviceType") == const.TYPE_BASESTATION]
        ordered += [e for e in entries if e.get("deviceType") != const.TYPE_BASESTATION]

        added: list[ArloDevice] = []
        for info in ordered:
            existing = self.get(info.get("deviceId"))
            if existing is not None:
                existing.update_info(info)
                continue
            device = device_from_info(info)
            if device is None:
                _LOGGER.debug(
                    "Skipping unsupported device type %s", info.get("deviceType")
                )
                continue
            self.add(device)
            added.append(device)
        return added

    def dispatch(self, device_id: str | None, event: DeviceEvent) -> bool:
        """Deliver ``event`` to a registered device.

        Returns:
            False if the device is unknown.
        """
        device = self.get(device_id)
        if device is None:
            return False
        device.handle_event(event)
        return True
