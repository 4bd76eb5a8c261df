"""Tests for push channel frame decoding."""

from __future__ import annotations

import json

import pytest

from arlo_cloud.errors import ArloFrameError
from arlo_cloud.frames import PushMessage, decode_frame, parse_frame

PAYLOAD = {
    "resource": "cameras/cam1",
    "action": "is",
    "from": "base1",
    "to": "user1_web",
    "transId": "arlo-cloud-core-cam1!snapshot-1",
    "properties": {"activityState": "fullFrameSnapshot"},
}


class TestDecodeFrame:
    """Tests for decode_frame()."""

    def test_event_prefixed_frame(self):
        """Test the event/data prefix is rewritten to a JSON object."""
        raw = f"event: message\ndata: {json.dumps(PAYLOAD)}"
        assert decode_frame(raw) == {"event": "message", "data": PAYLOAD}

    def test_event_prefixed_matches_bare_payload(self):
        """Test the normalized data equals parsing the bare payload."""
        payload = json.dumps({"resource": "modes", "properties": {"active": "mode1"}})
        frame = decode_frame(f"event: message\ndata: {payload}\n\n")
        assert frame["data"] == json.loads(payload)

    def test_bytes_frame(self):
        """Test raw bytes are accepted."""
        raw = f"event: message\ndata: {json.dumps(PAYLOAD)}".encode()
        assert decode_frame(raw)["data"] == PAYLOAD

    def test_bare_json_frame(self):
        """Test bare JSON is wrapped as a message event."""
        assert decode_frame(json.dumps(PAYLOAD)) == {"event": "message", "data": PAYLOAD}

    def test_already_normalized_frame(self):
        """Test a JSON frame that already has event/data is kept."""
        frame = {"event": "message", "data": PAYLOAD}
        assert decode_frame(json.dumps(frame)) == frame

    def test_data_without_space(self):
        """Test data field without a space after the colon."""
        raw = 'event: message\ndata:{"resource": "modes"}'
        assert decode_frame(raw)["data"] == {"resource": "modes"}

    def test_multiline_data_joined(self):
        """Test multiple data lines are joined before parsing."""
        raw = 'event: message\ndata: {"resource":\ndata: "modes"}'
        assert decode_frame(raw)["data"] == {"resource": "modes"}

    def test_comments_and_id_ignored(self):
        """Test SSE comments and id fields do not break parsing."""
        raw = ': keepalive\nid: 42\nevent: message\ndata: {"resource": "modes"}'
        assert decode_frame(raw)["data"] == {"resource": "modes"}

    def test_crlf_line_endings(self):
        """Test CRLF separated fields."""
        raw = 'event: message\r\ndata: {"resource": "modes"}\r\n'
        assert decode_frame(raw)["data"] == {"resource": "modes"}

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "   ",
            "event: message",
            "event: message\ndata: {not json",
            "event: message\ndata: [1, 2]",
            "{broken",
            "[1, 2]",
            b"\xff\xfe",
        ],
    )
    def test_malformed_frames_raise(self, raw):
        """Test malformed frames raise ArloFrameError."""
        with pytest.raises(ArloFrameError):
            decode_frame(raw)


class TestParseFrame:
    """Tests for parse_frame()."""

    def test_parse_message_fields(self):
        """Test all message fields are mapped."""
        msg = parse_frame(f"event: message\ndata: {json.dumps(PAYLOAD)}")

        assert isinstance(msg, PushMessage)
        assert msg.resource == "cameras/cam1"
        assert msg.action == "is"
        assert msg.from_id == "base1"
        assert msg.to_id == "user1_web"
        assert msg.trans_id == "arlo-cloud-core-cam1!snapshot-1"
        assert msg.properties == {"activityState": "fullFrameSnapshot"}
        assert msg.error is None
        assert msg.raw == PAYLOAD

    def test_optional_fields_default(self):
        """Test missing optional fields become None."""
        msg = parse_frame('{"resource": "modes"}')
        assert msg is not None
        assert msg.action is None
        assert msg.trans_id is None
        assert msg.properties is None

    def test_non_string_resource(self):
        """Test a non-string resource becomes an empty path."""
        msg = parse_frame('{"resource": 5}')
        assert msg is not None
        assert msg.resource == ""

    def test_non_string_ids_become_none(self):
        """Test ids of the wrong JSON type are treated as absent."""
        msg = parse_frame(
            '{"resource": "modes", "from": ["base1"], "to": 7,'
            ' "transId": {"id": 1}, "action": null}'
        )
        assert msg is not None
        assert msg.from_id is None
        assert msg.to_id is None
        assert msg.trans_id is None
        assert msg.action is None
        assert msg.raw["from"] == ["base1"]

    def test_malformed_returns_none(self):
        """Test malformed frames are dropped without raising."""
        assert parse_frame("event: message\ndata: {oops") is None

    def test_other_event_ignored(self):
        """Test non-message events are dropped."""
        assert parse_frame('event: ping\ndata: {"resource": "modes"}') is None

    def test_message_is_frozen(self):
        """Test that messages are immutable."""
        msg = PushMessage(resource="modes")
        with pytest.raises(AttributeError):
            msg.resource = "cameras"  # type: ignore[misc]
