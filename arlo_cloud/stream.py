"""Push channel (server-sent events) transport for the Arlo cloud."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import aiohttp

from .errors import (
    ArloAuthenticationError,
    ArloConnectionError,
    ArloResponseError,
    ArloTimeout,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

_LOGGER = logging.getLogger(__name__)


async def connect_event_stream(
    session: aiohttp.ClientSession,
    url: str,
    *,
    headers: dict[str, str] | None = None,
    timeout: float = 15.0,
) -> aiohttp.ClientResponse:
    """Open the long-lived event stream GET request.

    Only the connection phase is bounded by ``timeout``; reads never time out.
    """
    request_headers = {"Accept": "text/event-stream"}
    if headers:
        request_headers.update(headers)

    try:
        resp = await asyncio.wait_for(
            session.get(
                url,
                headers=request_headers,
                timeout=aiohttp.ClientTimeout(total=None, sock_connect=timeout),
            ),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise ArloTimeout("Event stream connection timed out") from err
    except aiohttp.ClientError as err:
        raise ArloConnectionError("Event stream connection failed") from err

    if resp.status != 200:
        resp.release()
        if resp.status in (401, 403):
            raise ArloAuthenticationError(resp.status, "Event stream token rejected")
        raise ArloResponseError(
            resp.status, "Event stream failed with non-200 response"
        )
    return resp


def _is_complete_json(line: str) -> bool:
    if not line.lstrip().startswith("{"):
        return False
    try:
        json.loads(line)
    except ValueError:
        return False
    return True


class ArloStreamMessageType(Enum):
    """Normalized push channel message types."""

    TEXT = "text"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class ArloStreamMessage:
    """Normalized push channel payload."""

    type: ArloStreamMessageType
    data: str | None = None
    error: BaseException | None = None


class ArloEventStreamClient:
    """Wrapper around an aiohttp streaming response yielding raw frames."""

    def __init__(self) -> None:
        self._resp: aiohttp.ClientResponse | None = None

    @property
    def connected(self) -> bool:
        return self._resp is not None

    async def connect(
        self,
        session: aiohttp.ClientSession,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: float = 15.0,
    ) -> None:
        """Open the push channel."""
        self._resp = await connect_event_stream(
            session, url, headers=headers, timeout=timeout
        )

    async def close(self) -> None:
        """Close the push channel."""
        if self._resp is not None:
            self._resp.close()
            self._resp = None

    def __aiter__(self) -> AsyncIterator[ArloStreamMessage]:
        if self._resp is None:
            raise ArloConnectionError("Event stream is not connected")
        return self._iter_messages()

    async def _iter_messages(self) -> AsyncIterator[ArloStreamMessage]:
        if self._resp is None:
            raise ArloConnectionError("Event stream is not connected")

        buffer: list[str] = []
        try:
            async for raw_line in self._resp.content:
                line = raw_line.decode("utf-8", errors="replace").rstrip("\r\n")
                if not line:
                    if buffer:
                        yield ArloStreamMessage(
                            ArloStreamMessageType.TEXT, "\n".join(buffer)
                        )
                        buffer = []
                    continue
                if not buffer and _is_complete_json(line):
                    # Bare JSON frames are not always followed by a blank line
                    yield ArloStreamMessage(ArloStreamMessageType.TEXT, line)
                    continue
                buffer.append(line)
        except asyncio.CancelledError:
            raise
        except Exception as err:
            _LOGGER.debug("Event stream read failed: %s", err)
            yield ArloStreamMessage(ArloStreamMessageType.ERROR, error=err)
            return

        if buffer:
            yield ArloStreamMessage(ArloStreamMessageType.TEXT, "\n".join(buffer))
        # Normal iteration completion means the service closed the stream.
        yield ArloStreamMessage(ArloStreamMessageType.CLOSED)
