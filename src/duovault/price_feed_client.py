"""Async HTTP price feed for latest-answer oracle endpoints."""

from __future__ import annotations

from typing import Any

import httpx


# ---------------------------------------------------------------------------
# Exception hierarchy
# ---------------------------------------------------------------------------


class PriceFeedError(Exception):
    """Base exception for price feed lookups."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PriceFeedNotFoundError(PriceFeedError):
    """404 — unknown feed."""


class PriceFeedServerError(PriceFeedError):
    """5xx — server-side error (retryable by the caller)."""


class PriceFeedConnectionError(PriceFeedError):
    """Network/DNS failure."""


class PriceFeedTimeoutError(PriceFeedError):
    """Request timeout."""


class PriceFeedPayloadError(PriceFeedError):
    """Response body is missing or has a malformed ``answer``."""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class HttpPriceFeed:
    """Latest-answer client: ``GET {host}/feeds/{feed_id}/latest``.

    Expected body::

        {"answer": 200000000000, "roundId": 42, "updatedAt": 1700000000}

    ``answer`` is returned as-is (an integer already scaled by the feed's
    decimals); everything else is passed through as metadata.
    """

    def __init__(self, host: str, feed_id: str, api_key: str | None = None) -> None:
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._feed_id = feed_id
        self._client = httpx.AsyncClient(
            base_url=host.rstrip("/"),
            headers=headers,
            timeout=httpx.Timeout(connect=5.0, read=10.0, write=5.0, pool=5.0),
        )

    def __repr__(self) -> str:
        return f"HttpPriceFeed({str(self._client.base_url)!r}, {self._feed_id!r})"

    async def _request(self, endpoint: str) -> Any:
        try:
            response = await self._client.request("GET", endpoint)
        except httpx.ConnectError as exc:
            raise PriceFeedConnectionError(str(exc)) from exc
        except httpx.TimeoutException as exc:
            raise PriceFeedTimeoutError(str(exc)) from exc

        if response.status_code >= 400:
            body = response.text
            if response.status_code == 404:
                raise PriceFeedNotFoundError(body, status_code=404)
            if response.status_code >= 500:
                raise PriceFeedServerError(body, status_code=response.status_code)
            raise PriceFeedError(body, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise PriceFeedPayloadError(f"invalid JSON: {exc}") from exc

    async def latest_price(self) -> tuple[int, dict[str, Any]]:
        """Return ``(answer, metadata)`` for the configured feed."""
        data = await self._request(f"/feeds/{self._feed_id}/latest")
        if not isinstance(data, dict) or "answer" not in data:
            raise PriceFeedPayloadError("response has no answer field")
        raw = data["answer"]
        if isinstance(raw, bool):
            raise PriceFeedPayloadError(f"answer is not an integer: {raw!r}")
        try:
            answer = int(raw)
        except (TypeError, ValueError) as exc:
            raise PriceFeedPayloadError(f"answer is not an integer: {raw!r}") from exc
        metadata = {k: v for k, v in data.items() if k != "answer"}
        return answer, metadata

    async def close(self) -> None:
        await self._client.aclose()
