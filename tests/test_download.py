import asyncio

import httpx
import pytest

from coverscraper.errors import DownloadError
from coverscraper.utils.download import DOWNLOAD_HEADERS, download_image, make_client

from conftest import ImageServer

URL = "https://img.example/dune123.png"


class BrokenStream(httpx.AsyncByteStream):
    async def __aiter__(self):
        yield b"partial"
        raise httpx.ReadError("connection reset")


def _download(handler, url, filepath):
    async def go():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await download_image(client, url, filepath)
    return asyncio.run(go())


def test_download_writes_body(tmp_path) -> None:
    server = ImageServer({URL: b"\x89PNG data"})
    target = tmp_path / "b1.png"

    assert _download(server, URL, target) == target
    assert target.read_bytes() == b"\x89PNG data"
    assert server.requests == [URL]


def test_http_error_leaves_no_file(tmp_path) -> None:
    target = tmp_path / "b1.jpg"
    with pytest.raises(DownloadError) as info:
        _download(ImageServer(), URL, target)
    assert not target.exists()
    assert info.value.url == URL


def test_empty_body_leaves_no_file(tmp_path) -> None:
    target = tmp_path / "b1.png"
    with pytest.raises(DownloadError):
        _download(ImageServer({URL: b""}), URL, target)
    assert not target.exists()


def test_interrupted_stream_removes_partial_file(tmp_path) -> None:
    target = tmp_path / "b1.png"

    def handler(request):
        return httpx.Response(200, stream=BrokenStream())

    with pytest.raises(DownloadError):
        _download(handler, URL, target)
    assert not target.exists()


def test_network_error_is_download_error(tmp_path) -> None:
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(DownloadError):
        _download(handler, URL, tmp_path / "b1.png")
    assert list(tmp_path.iterdir()) == []


def test_write_error_is_download_error(tmp_path) -> None:
    target = tmp_path / "no-such-dir" / "b1.png"
    with pytest.raises(DownloadError):
        _download(ImageServer({URL: b"data"}), URL, target)
    assert not target.exists()


def test_client_sends_desktop_user_agent() -> None:
    async def go():
        client = make_client()
        try:
            return client.headers["User-Agent"]
        finally:
            await client.aclose()

    assert asyncio.run(go()) == DOWNLOAD_HEADERS["User-Agent"]
