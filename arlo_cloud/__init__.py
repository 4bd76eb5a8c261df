"""Push channel session core for Arlo cloud cameras."""

__version__ = "0.1.0"

from .config import ArloConfig, load_config
from .devices import (
    ArloBaseStation,
    ArloCamera,
    ArloDevice,
    DeviceEvent,
    DeviceEventType,
    DeviceRegistry,
)
from .errors import (
    ArloAuthenticationError,
    ArloClientError,
    ArloCommandError,
    ArloCommandTimeout,
    ArloConfigError,
    ArloConnectionError,
    ArloDeviceNotFound,
    ArloFrameError,
    ArloResponseError,
    ArloTimeout,
)
from .frames import PushMessage, decode_frame, parse_frame
from .http import ArloAuth, ArloHttpClient
from .protocol import ResourceKey, ResourceKind, build_trans_id, parse_resource
from .router import MessageRouter, RouteOutcome
from .session import ArloSession, SessionState
from .stream import (
    ArloEventStreamClient,
    ArloStreamMessage,
    ArloStreamMessageType,
    connect_event_stream,
)
from .transactions import TransactionTable

__all__ = [
    "ArloAuth",
    "ArloAuthenticationError",
    "ArloBaseStation",
    "ArloCamera",
    "ArloClientError",
    "ArloCommandError",
    "ArloCommandTimeout",
    "ArloConfig",
    "ArloConfigError",
    "ArloConnectionError",
    "ArloDevice",
    "ArloDeviceNotFound",
    "ArloEventStreamClient",
    "ArloFrameError",
    "ArloHttpClient",
    "ArloResponseError",
    "ArloSession",
    "ArloStreamMessage",
    "ArloStreamMessageType",
    "ArloTimeout",
    "DeviceEvent",
    "DeviceEventType",
    "DeviceRegistry",
    "MessageRouter",
    "PushMessage",
    "ResourceKey",
    "ResourceKind",
    "RouteOutcome",
    "SessionState",
    "TransactionTable",
    "__version__",
    "build_trans_id",
    "connect_event_stream",
    "decode_frame",
    "load_config",
    "parse_frame",
    "parse_resource",
]
