"""Route push channel messages to devices and pending transactions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

from . import const
from .devices import DeviceEvent, DeviceEventType, DeviceRegistry
from .frames import PushMessage
from .protocol import ResourceKey, ResourceKind, parse_resource
from .transactions import TransactionTable

_LOGGER = logging.getLogger(__name__)


class RouteOutcome(Enum):
    """Which routing branch handled a message."""

    BULK_UPDATE = "bulk_update"
    MODE_UPDATE = "mode_update"
    SUBSCRIPTION = "subscription"
    CAMERA_UPDATE = "camera_update"
    SNAPSHOT_AVAILABLE = "snapshot_available"
    TRANSACTION = "transaction"
    DROPPED = "dropped"


class MessageRouter:
    """Dispatch parsed messages by resource kind."""

    def __init__(self, devices: DeviceRegistry, transactions: TransactionTable) -> None:
        self._devices = devices
        self._transactions = transactions
        self._routes: dict[
            ResourceKind, Callable[[PushMessage, ResourceKey], RouteOutcome]
        ] = {
            ResourceKind.CAMERAS: self._route_cameras,
            ResourceKind.MODES: self._route_modes,
            ResourceKind.SUBSCRIPTION: self._route_subscription,
            ResourceKind.CAMERA: self._route_camera,
        }

    def route(self, message: PushMessage) -> RouteOutcome:
        """Route one message. Never raises."""
        key = parse_resource(message.resource)
        handler = self._routes.get(key.kind)
        if handler is None:
            _LOGGER.debug("Dropping message for resource %r", message.resource)
            return RouteOutcome.DROPPED
        return handler(message, key)

    def _route_cameras(self, message: PushMessage, key: ResourceKey) -> RouteOutcome:
        if not isinstance(message.properties, list):
            return RouteOutcome.DROPPED

        for info in message.properties:
            if not isinstance(info, dict):
                continue
            device_id = info.get(const.SERIAL_NUMBER)
            if not isinstance(device_id, str):
                continue
            self._devices.dispatch(
                device_id, DeviceEvent(DeviceEventType.UPDATE, device_id, info)
            )
        return RouteOutcome.BULK_UPDATE

    def _route_modes(self, message: PushMessage, key: ResourceKey) -> RouteOutcome:
        if not isinstance(message.properties, dict):
            return RouteOutcome.DROPPED
        mode = message.properties.get(const.MODE_ACTIVE)
        if mode is None or message.from_id not in self._devices:
            return RouteOutcome.DROPPED

        self._devices.dispatch(
            message.from_id,
            DeviceEvent(DeviceEventType.MODE_CHANGED, message.from_id, mode),
        )
        return RouteOutcome.MODE_UPDATE

    def _route_subscription(
        self, message: PushMessage, key: ResourceKey
    ) -> RouteOutcome:
        # Acks name the web client in the path and the base station in "from".
        device_id = key.device_id if key.device_id in self._devices else message.from_id
        if device_id not in self._devices:
            return RouteOutcome.DROPPED

        self._devices.dispatch(
            device_id, DeviceEvent(DeviceEventType.SUBSCRIBED, device_id)
        )
        return RouteOutcome.SUBSCRIPTION

    def _route_camera(self, message: PushMessage, key: ResourceKey) -> RouteOutcome:
        device_id = key.device_id
        properties = message.properties
        if device_id not in self._devices or not isinstance(properties, dict):
            return RouteOutcome.DROPPED

        if message.action == const.ACTION_SNAPSHOT_AVAILABLE:
            self._devices.dispatch(
                device_id,
                DeviceEvent(
                    DeviceEventType.SNAPSHOT_AVAILABLE,
                    device_id,
                    properties.get(const.SNAPSHOT_URL),
                ),
            )
            return RouteOutcome.SNAPSHOT_AVAILABLE

        if (
            message.action == const.ACTION_IS
            and properties.get(const.ACTIVITY_STATE) == const.ACTIVITY_SNAPSHOT
        ):
            if not self._transactions.resolve(
                message.trans_id, message.error, message
            ):
                _LOGGER.debug("No pending transaction for %s", message.trans_id)
            return RouteOutcome.TRANSACTION

        self._devices.dispatch(
            device_id, DeviceEvent(DeviceEventType.UPDATE, device_id, properties)
        )
        return RouteOutcome.CAMERA_UPDATE
