"""Pending transaction tracking for asynchronous device commands.

Commands such as "take a snapshot" are acknowledged over HTTP but complete
later, when the push channel delivers a message echoing the command's
``transId``. The table keeps a one-shot handler per outstanding id.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .errors import ArloCommandError, ArloCommandTimeout

if TYPE_CHECKING:
    from .frames import PushMessage

_LOGGER = logging.getLogger(__name__)

TransactionHandler = Callable[[Any, "PushMessage | None"], None]


@dataclass(slots=True)
class _Pending:
    handler: TransactionHandler
    timer: asyncio.TimerHandle | None = None
    future: asyncio.Future | None = None


class TransactionTable:
    """Map of transaction id to a completion handler invoked at most once."""

    def __init__(self) -> None:
        self._pending: dict[str, _Pending] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, trans_id: object) -> bool:
        return isinstance(trans_id, str) and trans_id in self._pending

    @property
    def pending(self) -> list[str]:
        """Ids still awaiting a reply."""
        return list(self._pending)

    def register(
        self,
        trans_id: str,
        handler: TransactionHandler,
        *,
        timeout: float | None = None,
    ) -> None:
        """Store a one-shot handler for ``trans_id``.

        An existing handler for the same id is replaced without being called.
        With ``timeout`` set, the entry expires with ``ArloCommandTimeout``
        (requires a running event loop).
        """
        previous = self._pending.pop(trans_id, None)
        if previous is not None:
            _LOGGER.debug("Replacing pending handler for %s", trans_id)
            if previous.timer is not None:
                previous.timer.cancel()

        entry = _Pending(handler=handler)
        if timeout is not None:
            loop = asyncio.get_running_loop()
            entry.timer = loop.call_later(timeout, self.expire, trans_id)
        self._pending[trans_id] = entry

    def resolve(
        self, trans_id: str | None, error: Any, message: PushMessage | None
    ) -> bool:
        """Invoke and remove the handler for ``trans_id``.

        Returns:
            True if a handler was pending, False otherwise.
        """
        if not isinstance(trans_id, str):
            return False
        entry = self._pending.pop(trans_id, None)
        if entry is None:
            return False

        if entry.timer is not None:
            entry.timer.cancel()

        try:
            entry.handler(error, message)
        except Exception as err:
            _LOGGER.exception("Transaction handler for %s failed: %s", trans_id, err)
        return True

    def discard(self, trans_id: str) -> bool:
        """Drop ``trans_id`` without invoking its handler."""
        entry = self._pending.pop(trans_id, None)
        if entry is None:
            return False
        if entry.timer is not None:
            entry.timer.cancel()
        return True

    def expire(self, trans_id: str) -> bool:
        """Resolve ``trans_id`` with a timeout outcome."""
        if trans_id in self._pending:
            _LOGGER.warning("Transaction %s timed out", trans_id)
        return self.resolve(trans_id, ArloCommandTimeout(trans_id), None)

    def expect(self, trans_id: str, *, timeout: float | None = None) -> asyncio.Future:
        """Register ``trans_id`` and return a future for its reply.

        The future resolves with the reply ``PushMessage``; it fails with
        ``ArloCommandError`` when the reply carries an error and with
        ``ArloCommandTimeout`` when ``timeout`` elapses first.
        """
        future: asyncio.Future = asyncio.get_running_loop().create_future()

        def _complete(error: Any, message: PushMessage | None) -> None:
            if future.done():
                return
            if isinstance(error, ArloCommandTimeout):
                future.set_exception(error)
            elif error:
                future.set_exception(ArloCommandError(error))
            else:
                future.set_result(message)

        self.register(trans_id, _complete, timeout=timeout)
        self._pending[trans_id].future = future
        return future

    def clear(self) -> None:
        """Drop every pending transaction on shutdown.

        Futures from ``expect`` are cancelled; plain handlers receive
        ``ArloCommandTimeout`` so none is left waiting.
        """
        pending, self._pending = self._pending, {}
        if pending:
            _LOGGER.debug("Clearing %d pending transactions", len(pending))

        for trans_id, entry in pending.items():
            if entry.timer is not None:
                entry.timer.cancel()
            if entry.future is not None:
                entry.future.cancel()
                continue
            try:
                entry.handler(ArloCommandTimeout(trans_id), None)
            except Exception as err:
                _LOGGER.exception(
                    "Transaction handler for %s failed: %s", trans_id, err
                )
