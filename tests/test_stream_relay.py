import anyio
import httpx
import pytest

from cinestream.config import ProxySettings
from cinestream.core.stream_proxy import StreamRequest, stream

CHUNK = 64 * 1024
PAYLOAD = b"\x11" * (CHUNK * 4)


@pytest.fixture
def upstream(monkeypatch):
    """
    Serve PAYLOAD as video/mp4 and record every client and response the
    streamer opens.
    """
    opened = {"clients": [], "responses": []}

    async def _record(response):
        opened["responses"].append(response)

    def _factory():
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(
                lambda request: httpx.Response(
                    200, content=PAYLOAD, headers={"content-type": "video/mp4"}
                )
            ),
            event_hooks={"response": [_record]},
        )
        opened["clients"].append(client)
        return client

    monkeypatch.setattr("cinestream.utils.http_client.build_async_client", _factory)
    return opened


def _request():
    return StreamRequest(url="http://cdn.example.com/video.mp4", range_header=None, timeout=5.0)


def test_stopping_the_relay_closes_upstream(upstream):
    async def _run():
        resp = await stream(_request(), ProxySettings())
        body = resp.body_iterator
        first = await body.__anext__()
        await body.aclose()
        return first

    first = anyio.run(_run)

    assert len(first) == CHUNK
    assert upstream["responses"][0].is_closed
    assert upstream["clients"][0].is_closed


def test_client_disconnect_mid_body_closes_upstream(upstream):
    sent = []

    async def _run():
        resp = await stream(_request(), ProxySettings())
        disconnected = anyio.Event()

        async def receive():
            await disconnected.wait()
            return {"type": "http.disconnect"}

        async def send(message):
            sent.append(message)
            if message["type"] == "http.response.body" and message.get("body"):
                # the player stops reading after the first chunk
                disconnected.set()
                await anyio.sleep(30)

        with anyio.fail_after(2):
            await resp({"type": "http", "method": "GET", "path": "/"}, receive, send)

    anyio.run(_run)

    bodies = [m for m in sent if m["type"] == "http.response.body" and m.get("body")]
    assert len(bodies) == 1
    assert upstream["responses"][0].is_closed
    assert upstream["clients"][0].is_closed


def test_full_relay_closes_upstream(upstream):
    async def _run():
        resp = await stream(_request(), ProxySettings())
        return b"".join([chunk async for chunk in resp.body_iterator])

    assert anyio.run(_run) == PAYLOAD
    assert upstream["responses"][0].is_closed
    assert upstream["clients"][0].is_closed
