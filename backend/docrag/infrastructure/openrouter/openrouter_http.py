"""Shared HTTP plumbing for the OpenRouter chat and embedding adapters."""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


class OpenRouterHTTP:
    """Base for adapters that POST JSON to the OpenRouter API.

    Pass the container's shared ``http_client`` to reuse its connection
    pool; without one, a short-lived client is opened per request.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        app_name: str = "DocRAG",
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 120.0,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._app_name = app_name
        self._http_client = http_client
        self._timeout_seconds = timeout_seconds

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "X-Title": self._app_name,
        }

    async def _post(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        """POST ``payload`` to ``{base_url}{path}``.

        Raises:
            httpx.HTTPError: The request never produced a response.
        """
        url = f"{self._base_url}{path}"
        if self._http_client is not None:
            return await self._http_client.post(url, headers=self._headers(), json=payload)
        async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
            return await client.post(url, headers=self._headers(), json=payload)


def error_message(response: httpx.Response) -> str:
    """The provider's ``error.message`` if the body carries one, else the raw text."""
    try:
        data = response.json()
    except ValueError:
        return response.text
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return response.text
