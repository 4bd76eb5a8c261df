"""Service endpoints and wire vocabulary for the Arlo cloud."""

from __future__ import annotations

from typing import Final

DEFAULT_BASE_URL: Final = "https://arlo.netgear.com/hmsweb"

PATH_LOGIN: Final = "/login"
PATH_DEVICES: Final = "/users/devices"
PATH_SUBSCRIBE: Final = "/client/subscribe"
PATH_NOTIFY: Final = "/users/devices/notify/"
PATH_SNAPSHOT: Final = "/users/devices/fullFrameSnapshot"
PATH_STREAM: Final = "/users/devices/startStream"

# Message fields
FROM: Final = "from"
TO: Final = "to"
ACTION: Final = "action"
RESOURCE: Final = "resource"
PUBLISH: Final = "publish"
TRANS_ID: Final = "transId"
PROPERTIES: Final = "properties"
ERROR: Final = "error"

XCLOUD_ID: Final = "xCloudId"

RESOURCE_CAMERAS: Final = "cameras"
RESOURCE_MODES: Final = "modes"
RESOURCE_SUBSCRIPTIONS: Final = "subscriptions"

ACTION_SET: Final = "set"
ACTION_IS: Final = "is"
ACTION_SNAPSHOT_AVAILABLE: Final = "fullFrameSnapshotAvailable"

ACTIVITY_STATE: Final = "activityState"
ACTIVITY_SNAPSHOT: Final = "fullFrameSnapshot"
ACTIVITY_STREAM: Final = "startUserStream"

SNAPSHOT_URL: Final = "presignedFullFrameSnapshotUrl"
SERIAL_NUMBER: Final = "serialNumber"
MODE_ACTIVE: Final = "active"

TYPE_BASESTATION: Final = "basestation"
TYPE_CAMERA: Final = "camera"

MODE_DISARMED: Final = "mode0"
MODE_ARMED: Final = "mode1"

DEFAULT_LABEL: Final = "arlo-cloud-core"

# The web client identifies itself as "<userId>_web" in every command
WEB_CLIENT_SUFFIX: Final = "_web"
