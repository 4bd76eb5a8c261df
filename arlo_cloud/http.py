"""HTTP client for Arlo cloud request/response endpoints."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode

import aiohttp

from . import const
from .errors import (
    ArloAuthenticationError,
    ArloConnectionError,
    ArloResponseError,
    ArloTimeout,
)

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ArloAuth:
    """Result of a successful login."""

    token: str
    user_id: str
    raw: dict[str, Any] = field(default_factory=dict, repr=False)


class ArloHttpClient:
    """HTTP client wrapper for the Arlo web service."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        base_url: str = const.DEFAULT_BASE_URL,
        request_timeout: float = 15.0,
    ) -> None:
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._timeout = request_timeout
        self._token: str | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        return self._session

    @property
    def token(self) -> str | None:
        return self._token

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self._token:
            headers["Authorization"] = self._token
        if extra:
            headers.update(extra)
        return headers

    def subscribe_url(self) -> str:
        """URL of the push channel for the current token."""
        return f"{self._url(const.PATH_SUBSCRIBE)}?{urlencode({'token': self._token or ''})}"

    def auth_headers(self) -> dict[str, str]:
        """Headers carrying the current token."""
        return self._headers()

    async def _get_json(self, url: str, what: str) -> Any:
        try:
            async with self._session.get(
                url,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                if resp.status != 200:
                    raise ArloResponseError(
                        resp.status, f"{what} failed with non-200 response"
                    )
                body = await resp.json()
                _LOGGER.debug("GET %s -> %s", url, body)
                return body
        except TimeoutError as err:
            raise ArloTimeout(f"{what} request timed out") from err
        except aiohttp.ClientError as err:
            raise ArloConnectionError(f"{what} request failed") from err

    async def _post_json(
        self,
        url: str,
        body: dict[str, Any],
        what: str,
        *,
        headers: dict[str, str] | None = None,
        raise_on_error: bool = True,
    ) -> Any:
        _LOGGER.debug("POST %s %s", url, body)
        try:
            async with self._session.post(
                url,
                json=body,
                headers=self._headers(headers),
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                if resp.status != 200:
                    if not raise_on_error:
                        return None
                    if resp.status in (401, 403):
                        raise ArloAuthenticationError(
                            resp.status, f"{what} was not authorized"
                        )
                    raise ArloResponseError(
                        resp.status, f"{what} failed with non-200 response"
                    )
                data = await resp.json()
                _LOGGER.debug("POST %s -> %s", url, data)
                return data
        except TimeoutError as err:
            raise ArloTimeout(f"{what} request timed out") from err
        except aiohttp.ClientError as err:
            raise ArloConnectionError(f"{what} request failed") from err

    async def login(self, email: str, password: str) -> ArloAuth:
        """Authenticate and remember the token for later calls.

        Raises:
            ArloAuthenticationError: If the service rejects the credentials.
        """
        body = await self._post_json(
            self._url(const.PATH_LOGIN),
            {"email": email, "password": password},
            "Login",
        )
        if not isinstance(body, dict) or body.get("success") is not True:
            raise ArloAuthenticationError(200, "Login rejected by service")

        data = body.get("data") or {}
        token = data.get("token")
        user_id = data.get("userId")
        if not token or not user_id:
            raise ArloAuthenticationError(200, "Login response missing token")

        self._token = token
        return ArloAuth(token=token, user_id=user_id, raw=data)

    async def fetch_devices(self) -> list[dict[str, Any]]:
        """Fetch the account's device list."""
        body = await self._get_json(self._url(const.PATH_DEVICES), "Device list")
        if not isinstance(body, dict) or body.get("success") is not True:
            _LOGGER.warning("Device list request unsuccessful: %s", body)
            return []
        data = body.get("data")
        return data if isinstance(data, list) else []

    async def notify(
        self, device_id: str, cloud_id: str | None, body: dict[str, Any]
    ) -> Any:
        """Send a generic notify command to a device."""
        return await self._post_json(
            self._url(const.PATH_NOTIFY + device_id),
            body,
            "Notify",
            headers={const.XCLOUD_ID: cloud_id} if cloud_id else None,
        )

    async def request_snapshot(self, cloud_id: str | None, body: dict[str, Any]) -> bool:
        """Ask for a full-frame snapshot.

        Returns:
            True if the service accepted the command.
        """
        data = await self._post_json(
            self._url(const.PATH_SNAPSHOT),
            body,
            "Snapshot",
            headers={const.XCLOUD_ID: cloud_id} if cloud_id else None,
            raise_on_error=False,
        )
        return isinstance(data, dict) and data.get("success") is True

    async def request_stream(
        self, cloud_id: str | None, body: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Ask for a user stream; returns the response data on success."""
        data = await self._post_json(
            self._url(const.PATH_STREAM),
            body,
            "Stream",
            headers={const.XCLOUD_ID: cloud_id} if cloud_id else None,
            raise_on_error=False,
        )
        if not isinstance(data, dict) or data.get("success") is not True:
            return None
        result = data.get("data")
        return result if isinstance(result, dict) else {}

    async def download_snapshot(self, url: str) -> bytes:
        """Download snapshot image bytes from a presigned URL."""
        try:
            async with self._session.get(
                url,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                if resp.status != 200:
                    raise ArloResponseError(
                        resp.status, "Snapshot download failed with non-200 response"
                    )
                return await resp.read()
        except TimeoutError as err:
            raise ArloTimeout("Snapshot download timed out") from err
        except aiohttp.ClientError as err:
            raise ArloConnectionError("Snapshot download failed") from err
