"""HTTP clients for the chat completion and daily background services."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol

import httpx
from pydantic import ValidationError

from ..core.config import Settings
from ..core.errors import TransportError
from ..core.logger import mask_secret
from .schemas import BackgroundImageResponse, ChatCompletionResponse, ChatRequestOptions


logger = logging.getLogger("homedash.chat")
bg_logger = logging.getLogger("homedash.background")


class HttpResponse(Protocol):
    status_code: int

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class HttpClient(Protocol):
    """Network capability; ``httpx.AsyncClient`` satisfies it."""

    async def post(
        self,
        url: str,
        *,
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse: ...

    async def get(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> HttpResponse: ...

    async def aclose(self) -> None: ...


def _decode_json(response: HttpResponse, service: str) -> Any:
    if not 200 <= response.status_code < 300:
        raise TransportError(
            f"{service} request failed: {response.status_code}",
            status_code=response.status_code,
        )
    try:
        return response.json()
    except ValueError as exc:
        snippet = response.text[:200]
        raise TransportError(f"Non-JSON response from {service}: {snippet}") from exc


class ChatCompletionClient:
    """Async client issuing one chat completion per call."""

    def __init__(
        self,
        options: ChatRequestOptions,
        *,
        base_url: str,
        endpoint: str = "/chat/completions",
        http: HttpClient | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.options = options
        self.url = base_url.rstrip("/") + "/" + endpoint.lstrip("/")
        self._owns_http = http is None
        self._http: HttpClient = http if http is not None else httpx.AsyncClient(
            timeout=httpx.Timeout(connect=15.0, read=timeout, write=15.0, pool=None)
        )

    @classmethod
    def from_settings(cls, settings: Settings, *, http: HttpClient | None = None) -> "ChatCompletionClient":
        options = ChatRequestOptions(
            model=settings.chat_model,
            system_prompt=settings.chat_system_prompt,
            temperature=settings.chat_temperature,
            top_p=settings.chat_top_p,
            max_tokens=settings.chat_max_tokens,
            frequency_penalty=settings.chat_frequency_penalty,
            presence_penalty=settings.chat_presence_penalty,
        )
        return cls(
            options,
            base_url=settings.chat_base_url,
            endpoint=settings.chat_endpoint,
            http=http,
            timeout=settings.chat_timeout_seconds,
        )

    async def complete(self, credential: str, user_content: str) -> Optional[str]:
        """Return the assistant text, or ``None`` when the response carries none."""
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
        }
        payload = self.options.to_payload(user_content)
        try:
            response = await self._http.post(self.url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise TransportError("Timeout while waiting for the assistant.") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"Chat request failed: {exc}") from exc
        logger.info(
            "Chat completion answered",
            extra={"status": response.status_code, "credential": mask_secret(credential)},
        )
        data = _decode_json(response, "chat")
        try:
            parsed = ChatCompletionResponse.model_validate(data)
        except ValidationError as exc:
            raise TransportError("Unexpected chat response shape.", details=exc.error_count()) from exc
        return parsed.content

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()


class BackgroundImageClient:
    """Fetch a random landscape photo URL."""

    def __init__(
        self,
        *,
        url: str,
        access_key: str | None,
        query: str = "minimal,abstract",
        http: HttpClient | None = None,
        timeout: float = 15.0,
    ) -> None:
        self.url = url
        self.access_key = access_key
        self.query = query
        self._owns_http = http is None
        self._http: HttpClient = http if http is not None else httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings, *, http: HttpClient | None = None) -> "BackgroundImageClient":
        return cls(
            url=settings.background_url,
            access_key=settings.background_access_key,
            query=settings.background_query,
            http=http,
            timeout=settings.background_timeout_seconds,
        )

    async def fetch_image_url(self, resource_key: str = "") -> str:
        if not self.access_key:
            raise TransportError("No background access key configured.")
        params = {
            "query": self.query,
            "orientation": "landscape",
            "w": 1920,
            "h": 1080,
        }
        headers = {"Authorization": f"Client-ID {self.access_key}"}
        try:
            response = await self._http.get(self.url, params=params, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"Background request failed: {exc}") from exc
        data = _decode_json(response, "background")
        try:
            parsed = BackgroundImageResponse.model_validate(data)
        except ValidationError as exc:
            raise TransportError("Unexpected background response shape.", details=exc.error_count()) from exc
        bg_logger.info("Fetched background image", extra={"resource": resource_key or "background"})
        return parsed.urls.full

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()
