# File: helpers/remote_store.py
"""Client for the remote completion store.

The remote store is the account-backed copy of a user's progress. It offers:
- GET  /api/completions         -> {"completions": [{gameId, rating, completedAt}]}
- POST /api/complete            <- {gameId, rating}
- POST /api/achievement-image   <- {console, label, imageUrl}

Every call raises RemoteStoreError on a non-2xx status or an unexpected
payload; aiohttp.ClientError and TimeoutError propagate. Callers on the
progression path treat all of these as fire-and-forget failures.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from homeassistant.exceptions import HomeAssistantError

from .. import const

if TYPE_CHECKING:
    from aiohttp import ClientSession

    from ..type_defs import RemoteCompletion


class RemoteStoreError(HomeAssistantError):
    """Raised when the remote completion store rejects or garbles a request."""

    def __init__(self, path: str, detail: str) -> None:
        """Initialize RemoteStoreError.

        Args:
            path: API path that failed
            detail: Status or payload description
        """
        self.path = path
        self.detail = detail
        super().__init__(f"Remote store request to {path} failed: {detail}")


class RemoteCompletionStore:
    """Thin async wrapper around the remote completion API."""

    def __init__(
        self,
        session: ClientSession,
        base_url: str,
        token: str | None = None,
        timeout: float = const.REMOTE_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the client.

        Args:
            session: Shared aiohttp session (async_get_clientsession)
            base_url: Site root, e.g. "https://iivg.example.com"
            token: Optional bearer token
            timeout: Per-request timeout in seconds
        """
        self._session = session
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        """Return the normalized site root."""
        return self._base_url

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(
        self, method: str, path: str, payload: dict[str, Any] | None = None
    ) -> Any:
        url = f"{self._base_url}{path}"
        async with asyncio.timeout(self._timeout):
            async with self._session.request(
                method, url, json=payload, headers=self._headers()
            ) as response:
                if response.status >= 400:
                    raise RemoteStoreError(path, f"HTTP {response.status}")
                return await response.json(content_type=None)

    async def async_fetch_completions(self) -> list[RemoteCompletion]:
        """Return the user's remote completions, skipping malformed rows."""
        payload = await self._request("GET", const.REMOTE_PATH_COMPLETIONS)
        if not isinstance(payload, dict):
            raise RemoteStoreError(
                const.REMOTE_PATH_COMPLETIONS, "unexpected response shape"
            )

        rows = payload.get(const.JSON_COMPLETIONS)
        if not isinstance(rows, list):
            return []

        completions: list[RemoteCompletion] = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            entry_id = row.get(const.JSON_GAME_ID)
            rating = row.get(const.JSON_RATING)
            if not isinstance(entry_id, str) or not isinstance(rating, int):
                continue
            completed_at = row.get(const.JSON_COMPLETED_AT)
            completions.append(
                {
                    const.DATA_COMPLETION_ENTRY_ID: entry_id,
                    const.DATA_COMPLETION_RATING: rating,
                    const.DATA_COMPLETION_COMPLETED_AT: (
                        completed_at if isinstance(completed_at, str) else None
                    ),
                }
            )
        return completions

    async def async_save_completion(self, entry_id: str, rating: int) -> None:
        """Upsert one completion remotely."""
        await self._request(
            "POST",
            const.REMOTE_PATH_COMPLETE,
            {const.JSON_GAME_ID: entry_id, const.JSON_RATING: rating},
        )

    async def async_save_artifact_url(
        self, category: str, tier_label: str, url: str
    ) -> None:
        """Store the rendered certificate URL for an earned tier."""
        await self._request(
            "POST",
            const.REMOTE_PATH_ACHIEVEMENT_IMAGE,
            {
                const.JSON_CONSOLE: category,
                const.JSON_LABEL: tier_label,
                const.JSON_IMAGE_URL: url,
            },
        )
