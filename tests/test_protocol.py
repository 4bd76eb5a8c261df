"""Tests for the resource grammar and command builders."""

from __future__ import annotations

import pytest

from arlo_cloud.protocol import (
    ResourceKey,
    ResourceKind,
    build_command,
    build_mode_command,
    build_snapshot_command,
    build_stream_command,
    build_subscribe_command,
    build_trans_id,
    parse_resource,
)


class TestParseResource:
    """Tests for parse_resource()."""

    @pytest.mark.parametrize(
        ("resource", "expected"),
        [
            ("cameras", ResourceKey(ResourceKind.CAMERAS)),
            ("modes", ResourceKey(ResourceKind.MODES)),
            ("subscriptions/base1", ResourceKey(ResourceKind.SUBSCRIPTION, "base1")),
            (
                "subscriptions/user1_web",
                ResourceKey(ResourceKind.SUBSCRIPTION, "user1_web"),
            ),
            ("cameras/cam1", ResourceKey(ResourceKind.CAMERA, "cam1")),
            ("cameras/", ResourceKey(ResourceKind.UNKNOWN)),
            ("subscriptions/", ResourceKey(ResourceKind.UNKNOWN)),
            ("basestation/base1", ResourceKey(ResourceKind.UNKNOWN)),
            ("camerasX", ResourceKey(ResourceKind.UNKNOWN)),
            ("", ResourceKey(ResourceKind.UNKNOWN)),
            (None, ResourceKey(ResourceKind.UNKNOWN)),
        ],
    )
    def test_grammar(self, resource, expected):
        assert parse_resource(resource) == expected

    def test_camera_id_keeps_remaining_path(self):
        """Test the camera id is everything after the prefix."""
        assert parse_resource("cameras/a/b").device_id == "a/b"


class TestBuilders:
    """Tests for outbound command builders."""

    def test_trans_id_format(self):
        assert (
            build_trans_id("node-arlo", "cam1", "snapshot", timestamp_ms=1234)
            == "node-arlo-cam1!snapshot-1234"
        )

    def test_trans_id_uses_current_time(self):
        trans_id = build_trans_id("label", "cam1", "stream")
        prefix, _, millis = trans_id.rpartition("-")
        assert prefix == "label-cam1!stream"
        assert millis.isdigit()

    def test_build_command_omits_missing_trans_id(self):
        body = build_command(
            user_id="user1", to="base1", resource="modes", properties={"active": "mode1"}
        )
        assert "transId" not in body
        assert body["from"] == "user1_web"
        assert body["publish"] is True

    def test_snapshot_command(self):
        body = build_snapshot_command(
            user_id="user1", base_station_id="base1", camera_id="cam1", trans_id="t1"
        )
        assert body == {
            "from": "user1_web",
            "to": "base1",
            "action": "set",
            "resource": "cameras/cam1",
            "publish": True,
            "transId": "t1",
            "properties": {"activityState": "fullFrameSnapshot"},
        }

    def test_stream_command(self):
        body = build_stream_command(
            user_id="user1", base_station_id="base1", camera_id="cam1", trans_id="t2"
        )
        assert body["properties"] == {
            "activityState": "startUserStream",
            "cameraId": "cam1",
        }
        assert body["transId"] == "t2"

    def test_mode_command(self):
        body = build_mode_command(user_id="user1", base_station_id="base1", mode="mode1")
        assert body["resource"] == "modes"
        assert body["properties"] == {"active": "mode1"}

    def test_subscribe_command(self):
        body = build_subscribe_command(user_id="user1", base_station_id="base1")
        assert body["resource"] == "subscriptions/user1_web"
        assert body["properties"] == {"devices": ["base1"]}
        assert body["publish"] is False
