"""Pytest configuration and fixtures for arlo_cloud tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from arlo_cloud.devices import DeviceRegistry
from arlo_cloud.router import MessageRouter
from arlo_cloud.transactions import TransactionTable

BASE_STATION_INFO: dict[str, Any] = {
    "deviceId": "base1",
    "deviceType": "basestation",
    "deviceName": "Hallway",
    "xCloudId": "cloud-base1",
}

CAMERA_INFO: dict[str, Any] = {
    "deviceId": "cam1",
    "deviceType": "camera",
    "deviceName": "Garden",
    "parentId": "base1",
    "xCloudId": "cloud-base1",
}


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


@pytest.fixture
def mock_response() -> AsyncMock:
    """Create a mock aiohttp ClientResponse."""
    response = AsyncMock()
    response.__aenter__.return_value = response
    response.__aexit__.return_value = None
    return response


@pytest.fixture
def registry() -> DeviceRegistry:
    """Registry holding one base station and one camera."""
    devices = DeviceRegistry()
    devices.load([CAMERA_INFO, BASE_STATION_INFO])
    return devices


@pytest.fixture
def transactions() -> TransactionTable:
    return TransactionTable()


@pytest.fixture
def router(registry: DeviceRegistry, transactions: TransactionTable) -> MessageRouter:
    return MessageRouter(registry, transactions)


def create_mock_response(
    status: int = 200,
    json_data: Any = None,
    text_data: str | None = None,
    read_data: bytes | None = None,
) -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        json_data: Data to return from json() call
        text_data: Data to return from text() call
        read_data: Data to return from read() call

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status

    if json_data is not None:
        response.json.return_value = json_data
    if text_data is not None:
        response.text.return_value = text_data
    if read_data is not None:
        response.read.return_value = read_data

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


class AsyncIteratorMock:
    """Helper class to create a proper async iterator mock."""

    def __init__(self, items: list, *, raise_on_iter: Exception | None = None):
        self._items = items
        self._index = 0
        self._raise_on_iter = raise_on_iter

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._index >= len(self._items):
            if self._raise_on_iter is not None:
                raise self._raise_on_iter
            raise StopAsyncIteration
        item = self._items[self._index]
        self._index += 1
        return item
