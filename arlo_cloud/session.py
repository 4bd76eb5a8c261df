"""Push channel session for the Arlo cloud.

This module ties the pieces together:
- Push channel lifecycle (connect, first-frame readiness, disconnect)
- Frame parsing and message routing, strictly in arrival order
- Device bootstrap and base station subscriptions
- Snapshot/stream commands correlated through transaction ids

There is no automatic reconnect. When the push channel drops, the session
moves to ``disconnected`` and reports the fault through ``on_error``; callers
decide whether to call ``connect()`` again.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

import aiohttp

from . import const
from .config import ArloConfig
from .devices import ArloBaseStation, ArloCamera, ArloDevice, DeviceRegistry
from .errors import (
    ArloClientError,
    ArloConnectionError,
    ArloDeviceNotFound,
)
from .frames import PushMessage, parse_frame
from .http import ArloHttpClient
from .protocol import (
    build_mode_command,
    build_snapshot_command,
    build_stream_command,
    build_subscribe_command,
    build_trans_id,
    web_client_id,
)
from .router import MessageRouter
from .stream import ArloEventStreamClient, ArloStreamMessageType
from .transactions import TransactionTable

_LOGGER = logging.getLogger(__name__)


class SessionState(Enum):
    """Push channel connection states."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"


class ArloSession:
    """One authenticated account with its push channel, devices and commands.

    Usage:
        async with aiohttp.ClientSession() as http_session:
            session = ArloSession.create(http_session)
            session.on_device_found(print)
            await session.login("user@example.com", "secret")
            ...
            message = await session.get_snapshot("CAMERA_SERIAL")
            await session.close()
    """

    def __init__(
        self,
        http: ArloHttpClient,
        *,
        config: ArloConfig | None = None,
        user_id: str | None = None,
        bootstrap_on_ready: bool = True,
    ) -> None:
        self.http = http
        self.config = config or ArloConfig()
        self.user_id = user_id
        self._bootstrap_on_ready = bootstrap_on_ready

        self.devices = DeviceRegistry()
        self.transactions = TransactionTable()
        self.router = MessageRouter(self.devices, self.transactions)

        # Connection state
        self._stream: ArloEventStreamClient | None = None
        self._state = SessionState.DISCONNECTED
        self._listen_task: asyncio.Task[None] | None = None
        self._ready_task: asyncio.Task[None] | None = None
        self._resubscribe_task: asyncio.Task[None] | None = None
        self._closing = False

        # Callbacks
        self._ready_callback: Callable[[], Awaitable[None] | None] | None = None
        self._connection_state_callback: Callable[[SessionState], None] | None = None
        self._error_callback: Callable[[BaseException], None] | None = None
        self._device_found_callback: Callable[[ArloDevice], None] | None = None

    @classmethod
    def create(
        cls,
        session: aiohttp.ClientSession,
        config: ArloConfig | None = None,
        **kwargs: Any,
    ) -> ArloSession:
        """Build a session and its HTTP client from one aiohttp session."""
        config = config or ArloConfig()
        http = ArloHttpClient(
            session,
            base_url=config.base_url,
            request_timeout=config.request_timeout,
        )
        return cls(http, config=config, **kwargs)

    # -------------------------------------------------------------------------
    # Public API: Connection Management
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Get current push channel state."""
        return self._state

    @property
    def is_subscribed(self) -> bool:
        """True once the push channel has delivered its first frame."""
        return self._state is SessionState.SUBSCRIBED

    async def login(self, email: str, password: str) -> bool:
        """Authenticate, then open the push channel.

        Raises:
            ArloAuthenticationError: If the credentials are rejected.
        """
        auth = await self.http.login(email, password)
        self.user_id = auth.user_id
        _LOGGER.info("[%s] Logged in", self.user_id)
        return await self.connect()

    async def connect(self) -> bool:
        """Open the push channel and start the listener.

        Returns:
            True if the channel opened, False otherwise. Failures are also
            reported through the ``on_error`` callback.
        """
        if self.http.token is None:
            _LOGGER.error("Cannot connect push channel: not logged in")
            return False

        if self._state is not SessionState.DISCONNECTED:
            _LOGGER.debug("[%s] Push channel already %s", self.user_id, self._state.value)
            return True

        self._closing = False
        self._set_state(SessionState.CONNECTING)

        stream = ArloEventStreamClient()
        try:
            await stream.connect(
                self.http.session,
                self.http.subscribe_url(),
                headers=self.http.auth_headers(),
                timeout=self.config.connect_timeout,
            )
        except ArloClientError as err:
            _LOGGER.warning("[%s] Push channel connection failed: %s", self.user_id, err)
            self._set_state(SessionState.DISCONNECTED)
            self._notify_error(err)
            return False

        self._stream = stream
        _LOGGER.info("[%s] Push channel open, starting listener", self.user_id)
        self._listen_task = asyncio.create_task(self._listen(stream))
        return True

    async def close(self) -> None:
        """Close the push channel and cancel pending transactions."""
        _LOGGER.info("[%s] Closing session", self.user_id)
        self._closing = True

        for task in (self._resubscribe_task, self._ready_task, self._listen_task):
            if task is None or task is asyncio.current_task():
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as err:
                _LOGGER.debug("[%s] Task ended with %s", self.user_id, err)
        self._resubscribe_task = None
        self._ready_task = None
        self._listen_task = None

        await self._close_stream()
        self.transactions.clear()
        self._set_state(SessionState.DISCONNECTED)

    # -------------------------------------------------------------------------
    # Public API: Callbacks
    # -------------------------------------------------------------------------

    def on_ready(self, callback: Callable[[], Awaitable[None] | None]) -> None:
        """Register callback fired once per connection, on the first frame.

        Runs after device bootstrap when ``bootstrap_on_ready`` is set.
        """
        self._ready_callback = callback

    def on_connection_state_changed(
        self, callback: Callable[[SessionState], None]
    ) -> None:
        """Register callback for push channel state changes."""
        self._connection_state_callback = callback

    def on_error(self, callback: Callable[[BaseException], None]) -> None:
        """Register callback for connection faults and bootstrap failures."""
        self._error_callback = callback

    def on_device_found(self, callback: Callable[[ArloDevice], None]) -> None:
        """Register callback for devices added by bootstrap."""
        self._device_found_callback = callback

    # -------------------------------------------------------------------------
    # Public API: Devices
    # -------------------------------------------------------------------------

    async def refresh_devices(self) -> list[ArloDevice]:
        """Load the device list into the registry.

        Returns:
            Newly registered devices.
        """
        added = self.devices.load(await self.http.fetch_devices())
        _LOGGER.info(
            "[%s] %d devices registered (%d new)",
            self.user_id,
            len(self.devices),
            len(added),
        )
        for device in added:
            self._call(self._device_found_callback, device)
        return added

    async def subscribe(self, base_station: ArloBaseStation | str) -> None:
        """Attach a base station to this session's push channel."""
        device = self._device(base_station)
        body = build_subscribe_command(
            user_id=self._require_user(), base_station_id=device.device_id
        )
        await self.http.notify(device.device_id, device.cloud_id, body)
        _LOGGER.debug("[%s] Subscription sent to %s", self.user_id, device.device_id)

    async def subscribe_all(self) -> None:
        """Subscribe every registered base station, logging failures."""
        for base_station in self.devices.base_stations():
            try:
                await self.subscribe(base_station)
            except ArloClientError as err:
                _LOGGER.warning(
                    "[%s] Subscribe to %s failed: %s",
                    self.user_id,
                    base_station.device_id,
                    err,
                )

    # -------------------------------------------------------------------------
    # Public API: Commands
    # -------------------------------------------------------------------------

    async def get_snapshot(
        self,
        camera: ArloCamera | str,
        *,
        label: str | None = None,
        timeout: float | None = None,
    ) -> PushMessage | None:
        """Request a full-frame snapshot and wait for its confirmation.

        Returns:
            The confirming push message, or None if the service rejected the
            request. The image URL itself arrives later as a
            ``SNAPSHOT_AVAILABLE`` device event.

        Raises:
            ArloCommandTimeout: If no confirmation arrives within ``timeout``
                (defaults to ``config.command_timeout``).
            ArloCommandError: If the confirmation carries an error.
        """
        device = self._device(camera)
        parent = self._parent(device)
        trans_id = build_trans_id(
            label or self.config.label, device.device_id, "snapshot"
        )
        body = build_snapshot_command(
            user_id=self._require_user(),
            base_station_id=parent.device_id,
            camera_id=device.device_id,
            trans_id=trans_id,
        )

        # Registered before the POST so a fast reply cannot overtake it.
        future = self.transactions.expect(
            trans_id,
            timeout=timeout if timeout is not None else self.config.command_timeout,
        )
        try:
            accepted = await self.http.request_snapshot(parent.cloud_id, body)
        except BaseException:
            self.transactions.discard(trans_id)
            future.cancel()
            raise

        if not accepted:
            _LOGGER.warning(
                "[%s] Snapshot request for %s rejected", self.user_id, device.device_id
            )
            self.transactions.discard(trans_id)
            future.cancel()
            return None

        _LOGGER.debug("[%s] Snapshot pending: %s", self.user_id, trans_id)
        return await future

    async def get_stream(
        self, camera: ArloCamera | str, *, label: str | None = None
    ) -> dict[str, Any] | None:
        """Start a user stream; returns the service response data or None."""
        device = self._device(camera)
        parent = self._parent(device)
        body = build_stream_command(
            user_id=self._require_user(),
            base_station_id=parent.device_id,
            camera_id=device.device_id,
            trans_id=build_trans_id(
                label or self.config.label, device.device_id, "stream"
            ),
        )
        result = await self.http.request_stream(parent.cloud_id, body)
        if result is None:
            _LOGGER.warning(
                "[%s] Stream request for %s rejected", self.user_id, device.device_id
            )
        return result

    async def notify(self, device: ArloDevice | str, body: dict[str, Any]) -> Any:
        """Send a generic command to ``device``."""
        target = self._device(device)
        payload = dict(body)
        payload[const.FROM] = web_client_id(self._require_user())
        payload[const.TO] = target.device_id
        return await self.http.notify(target.device_id, target.cloud_id, payload)

    async def set_mode(self, base_station: ArloBaseStation | str, mode: str) -> Any:
        """Switch a base station to ``mode``."""
        device = self._device(base_station)
        body = build_mode_command(
            user_id=self._require_user(),
            base_station_id=device.device_id,
            mode=mode,
            trans_id=build_trans_id(self.config.label, device.device_id, "mode"),
        )
        return await self.http.notify(device.device_id, device.cloud_id, body)

    async def arm(self, base_station: ArloBaseStation | str) -> Any:
        return await self.set_mode(base_station, const.MODE_ARMED)

    async def disarm(self, base_station: ArloBaseStation | str) -> Any:
        return await self.set_mode(base_station, const.MODE_DISARMED)

    async def download_snapshot(self, url: str) -> bytes:
        """Fetch snapshot image bytes from a presigned URL."""
        return await self.http.download_snapshot(url)

    # -------------------------------------------------------------------------
    # Internal: Connection State Machine
    # -------------------------------------------------------------------------

    def _set_state(self, state: SessionState) -> None:
        """Update connection state and notify callback."""
        if self._state is not state:
            _LOGGER.debug(
                "[%s] State: %s → %s", self.user_id, self._state.value, state.value
            )
            self._state = state
            self._call(self._connection_state_callback, state)

    def _notify_error(self, err: BaseException) -> None:
        self._call(self._error_callback, err)

    def _call(self, callback: Callable[..., Any] | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as err:
            _LOGGER.exception("[%s] Callback error: %s", self.user_id, err)

    async def _close_stream(self) -> None:
        if self._stream is not None:
            try:
                await self._stream.close()
            except Exception as err:
                _LOGGER.debug("[%s] Stream close failed: %s", self.user_id, err)
            self._stream = None

    async def _handle_disconnect(self, fault: BaseException) -> None:
        if self._resubscribe_task is not None:
            self._resubscribe_task.cancel()
            self._resubscribe_task = None
        await self._cancel_ready()
        await self._close_stream()
        self._set_state(SessionState.DISCONNECTED)
        self._notify_error(fault)

    async def _cancel_ready(self) -> None:
        """Stop a bootstrap still running for the previous connection."""
        task, self._ready_task = self._ready_task, None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as err:
            _LOGGER.debug("[%s] Ready task ended with %s", self.user_id, err)

    # -------------------------------------------------------------------------
    # Internal: Push Channel Listener
    # -------------------------------------------------------------------------

    async def _listen(self, stream: ArloEventStreamClient) -> None:
        """Consume frames until the channel closes."""
        frame_count = 0
        fault: BaseException | None = None

        try:
            async for msg in stream:
                if msg.type is ArloStreamMessageType.TEXT:
                    frame_count += 1
                    if self._state is SessionState.CONNECTING:
                        self._on_first_frame()
                    self._handle_frame(msg.data or "")

                elif msg.type is ArloStreamMessageType.CLOSED:
                    _LOGGER.info("[%s] Push channel closed by service", self.user_id)
                    fault = ArloConnectionError("Push channel closed by service")
                    break

                elif msg.type is ArloStreamMessageType.ERROR:
                    _LOGGER.warning("[%s] Push channel error: %s", self.user_id, msg.error)
                    fault = ArloConnectionError("Push channel failed")
                    fault.__cause__ = msg.error
                    break

        except asyncio.CancelledError:
            _LOGGER.debug(
                "[%s] Listener cancelled (%d frames)", self.user_id, frame_count
            )
            raise
        except Exception as err:
            _LOGGER.exception("[%s] Unexpected listener error: %s", self.user_id, err)
            fault = err

        if fault is None:
            fault = ArloConnectionError("Push channel ended")
        if not self._closing:
            await self._handle_disconnect(fault)

    def _handle_frame(self, data: str) -> None:
        message = parse_frame(data)
        if message is None:
            return
        try:
            outcome = self.router.route(message)
        except Exception as err:
            # One bad frame must not end the listener
            _LOGGER.exception(
                "[%s] Routing failed for %r: %s", self.user_id, message.resource, err
            )
            return
        _LOGGER.debug(
            "[%s] %s %s -> %s",
            self.user_id,
            message.resource,
            message.action,
            outcome.value,
        )

    def _on_first_frame(self) -> None:
        self._set_state(SessionState.SUBSCRIBED)
        if self._ready_task is not None and not self._ready_task.done():
            self._ready_task.cancel()
        self._ready_task = asyncio.create_task(self._run_ready())

    async def _run_ready(self) -> None:
        """Bootstrap devices and run the ready callback."""
        try:
            if self._bootstrap_on_ready:
                await self.refresh_devices()
                await self.subscribe_all()
                if (
                    self.config.resubscribe_interval is not None
                    and self._resubscribe_task is None
                ):
                    self._resubscribe_task = asyncio.create_task(
                        self._resubscribe_loop(self.config.resubscribe_interval)
                    )
            if self._ready_callback is not None:
                result = self._ready_callback()
                if inspect.iscoroutine(result):
                    await result
        except asyncio.CancelledError:
            raise
        except Exception as err:
            _LOGGER.exception("[%s] Ready handling failed: %s", self.user_id, err)
            self._notify_error(err)

    async def _resubscribe_loop(self, interval: float) -> None:
        """Keep base stations attached while the channel is up."""
        try:
            while self._state is SessionState.SUBSCRIBED:
                await asyncio.sleep(interval)
                if self._state is not SessionState.SUBSCRIBED:
                    break
                await self.subscribe_all()
        except asyncio.CancelledError:
            _LOGGER.debug("[%s] Resubscribe loop cancelled", self.user_id)
            raise

    # -------------------------------------------------------------------------
    # Internal: Helpers
    # -------------------------------------------------------------------------

    def _require_user(self) -> str:
        if self.user_id is None:
            raise ArloClientError("Session is not logged in")
        return self.user_id

    def _device(self, device: ArloDevice | str) -> ArloDevice:
        if isinstance(device, ArloDevice):
            return device
        found = self.devices.get(device)
        if found is None:
            raise ArloDeviceNotFound(device)
        return found

    def _parent(self, device: ArloDevice) -> ArloDevice:
        parent = self.devices.parent_of(device)
        if parent is None:
            raise ArloDeviceNotFound(device.parent_id or device.device_id)
        return parent
