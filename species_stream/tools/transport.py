from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncContextManager, AsyncIterator, Protocol

import httpx

from species_stream.config import settings

REFRESH_TOKEN_HEADER = "x-lishka-user-refresh-token"


class TransportError(RuntimeError):
    """The stream could not be opened or broke while being read."""


@dataclass
class StreamRequest:
    path: str
    method: str = "GET"
    params: dict[str, Any] = field(default_factory=dict)
    form: dict[str, str] | None = None
    accept: str = "*/*"


class StreamTransport(Protocol):
    def open(self, request: StreamRequest) -> AsyncContextManager[AsyncIterator[str]]:
        ...


class HttpStreamTransport:
    """Open streamed backend responses with httpx and yield decoded text chunks."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        access_token: str | None = None,
        refresh_token: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.access_token = settings.access_token if access_token is None else access_token
        self.refresh_token = settings.refresh_token if refresh_token is None else refresh_token
        self._client = http_client

    def url_for(self, request: StreamRequest) -> str:
        return f"{self.base_url}/{request.path.lstrip('/')}"

    def headers_for(self, request: StreamRequest) -> dict[str, str]:
        headers = {"Accept": request.accept}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if self.refresh_token:
            headers[REFRESH_TOKEN_HEADER] = self.refresh_token
        return headers

    @asynccontextmanager
    async def open(self, request: StreamRequest) -> AsyncIterator[AsyncIterator[str]]:
        owns_client = self._client is None
        client = self._client or httpx.AsyncClient(
            timeout=httpx.Timeout(
                settings.stream_timeout_seconds,
                connect=settings.stream_connect_timeout_seconds,
            ),
            follow_redirects=True,
        )
        try:
            async with client.stream(
                request.method,
                self.url_for(request),
                params=request.params or None,
                data=request.form,
                headers=self.headers_for(request),
            ) as response:
                if not response.is_success:
                    raise TransportError(f"HTTP {response.status_code}: {response.reason_phrase}")
                if response.status_code == 204:
                    raise TransportError("Failed to create stream: response has no body")
                yield response.aiter_text()
        except httpx.HTTPError as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        finally:
            if owns_client:
                await client.aclose()
