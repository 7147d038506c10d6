from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest

from species_stream.streaming.session import StreamSession
from species_stream.tools.transport import (
    REFRESH_TOKEN_HEADER,
    HttpStreamTransport,
    StreamRequest,
    TransportError,
)

BASE_URL = "http://backend.test"


class _ChunkedBody(httpx.AsyncByteStream):
    def __init__(self, chunks: list[bytes]):
        self._chunks = chunks

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk


def _transport(handler, **kwargs) -> tuple[HttpStreamTransport, httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    transport = HttpStreamTransport(
        base_url=BASE_URL,
        access_token=kwargs.get("access_token", "access-123"),
        refresh_token=kwargs.get("refresh_token", "refresh-456"),
        http_client=client,
    )
    return transport, client


@pytest.mark.asyncio
async def test_open_sends_auth_headers_and_yields_text():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, stream=_ChunkedBody([b'{"type":"init"}\n', b'{"type":"complete"}\n']))

    transport, client = _transport(handler)
    async with client:
        async with transport.open(StreamRequest(path="/fish/toxic/stream", accept="text/event-stream")) as chunks:
            text = "".join([chunk async for chunk in chunks])

    assert text == '{"type":"init"}\n{"type":"complete"}\n'
    request = captured[0]
    assert str(request.url) == f"{BASE_URL}/fish/toxic/stream"
    assert request.headers["Accept"] == "text/event-stream"
    assert request.headers["Authorization"] == "Bearer access-123"
    assert request.headers[REFRESH_TOKEN_HEADER] == "refresh-456"


def test_headers_skip_missing_tokens():
    transport = HttpStreamTransport(base_url=BASE_URL, access_token="", refresh_token="")

    headers = transport.headers_for(StreamRequest(path="fish/stream"))

    assert headers == {"Accept": "*/*"}


@pytest.mark.asyncio
async def test_non_success_status_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    transport, client = _transport(handler)
    async with client:
        with pytest.raises(TransportError, match="HTTP 503: Service Unavailable"):
            async with transport.open(StreamRequest(path="fish/stream")):
                pass


@pytest.mark.asyncio
async def test_network_failure_surfaces_in_session_state():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport, client = _transport(handler)
    async with client:
        session = StreamSession("fish", transport=transport)
        await session.start()

    assert session.state.error == "ConnectError: connection refused"
    assert session.state.is_streaming is False


@pytest.mark.asyncio
async def test_multibyte_characters_split_across_chunks():
    body = '{"type":"fish","data":{"scientific_name":"Salmo trutta","name":"Truite de rivière"}}\n'.encode()
    cut = body.index("è".encode()) + 1

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={"Content-Type": "application/x-ndjson; charset=utf-8"},
            stream=_ChunkedBody([body[:cut], body[cut:], b'{"type":"complete","total_found":1}\n']),
        )

    transport, client = _transport(handler)
    async with client:
        session = StreamSession("fish", transport=transport)
        await session.start()

    state = session.state
    assert state.newly_discovered[0].name == "Truite de rivière"
    assert state.is_complete is True
    assert state.stats.found == 1


@pytest.mark.asyncio
async def test_area_stream_end_to_end():
    captured: list[httpx.Request] = []
    frames = [
        b'data: {"type":"init","message":"Locating FAO areas"}\n\n',
        b'data: {"type":"status","message":"Found 1 area","fao_areas":[{"fao_code":"37.1.1",',
        b'"major_code":"37","fao_name":"Balearic"}]}\n\n',
        b'data: {"type":"fish","data":{"id":5,"name":"Dentex","scientific_name":"Dentex dentex"}}\n\n',
        b'data: {"type":"progress","percentage":50,"checked":10,"total":20}\n\n',
        b'data: {"type":"complete","message":"Done","total_found":1,"total_checked":20}\n\n',
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, stream=_ChunkedBody(frames))

    transport, client = _transport(handler)
    async with client:
        session = StreamSession("area", transport=transport)
        await session.start(latitude=39.5, longitude=2.6)

    request = captured[0]
    assert request.url.path == "/fao/fish/stream"
    assert request.url.params["latitude"] == "39.5"
    assert request.url.params["longitude"] == "2.6"

    state = session.state
    assert state.areas[0]["fao_name"] == "Balearic"
    assert state.newly_discovered[0].slug == "dentex-dentex"
    assert state.newly_discovered[0].id == "5"
    assert state.status_message == "Done"
    assert (state.stats.checked, state.stats.total, state.stats.found) == (20, 20, 1)


@pytest.mark.asyncio
async def test_search_session_posts_form():
    captured: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(
            200,
            stream=_ChunkedBody(
                [
                    b'{"type":"session_created","session_id":"s-1"}\n',
                    b'{"type":"chunk","content":"Try a "}\n{"type":"chunk","content":"spoon lure."}\n',
                    b'{"type":"complete"}\n',
                ]
            ),
        )

    transport, client = _transport(handler)
    async with client:
        session = StreamSession("search", transport=transport)
        await session.start(message="Best lure for pike?", use_location_context=True)

    request = captured[0]
    assert request.method == "POST"
    assert request.url.path == "/search-agent/sessions"
    form = parse_qs(request.content.decode())
    assert form["message"] == ["Best lure for pike?"]
    assert form["use_location_context"] == ["true"]
    assert form["use_imperial_units"] == ["false"]

    assert session.state.remote_session_id == "s-1"
    assert session.state.transcript == "Try a spoon lure."
    assert session.state.is_complete is True
