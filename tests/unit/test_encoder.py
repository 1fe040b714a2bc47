"""Unit tests for the image source encoder."""

import base64
import io

import httpx
import pytest
from PIL import Image

from pagebinder.errors import (
    SourcePathTraversalError,
    SourceTooLargeError,
    SourceUnavailableError,
    UnsupportedFormatError,
)
from pagebinder.pdf.encoder import ImageEncoder, reencode_jpeg


@pytest.mark.asyncio
class TestEncode:
    async def test_bytes(self, make_png):
        payload = await ImageEncoder().encode(make_png(320, 240))
        assert (payload.source_width, payload.source_height) == (320, 240)
        assert payload.format == "PNG"

    async def test_local_path(self, corpus_dir):
        payload = await ImageEncoder().encode(corpus_dir / "wide.png")
        assert (payload.source_width, payload.source_height) == (400, 200)

    async def test_path_string(self, corpus_dir):
        payload = await ImageEncoder().encode(str(corpus_dir / "tall.png"))
        assert payload.aspect == 0.5

    async def test_missing_file(self, corpus_dir):
        with pytest.raises(SourceUnavailableError):
            await ImageEncoder().encode(corpus_dir / "missing.png")

    async def test_not_an_image(self, corpus_dir):
        with pytest.raises(UnsupportedFormatError):
            await ImageEncoder().encode(corpus_dir / "notes.txt")

    async def test_corrupt_bytes(self):
        with pytest.raises(UnsupportedFormatError):
            await ImageEncoder().encode(b"\x89PNG" + b"\0" * 100)

    async def test_base_dir_relative(self, corpus_dir):
        payload = await ImageEncoder(base_dir=corpus_dir).encode("wide.png")
        assert payload.source_width == 400

    async def test_base_dir_blocks_traversal(self, corpus_dir):
        with pytest.raises(SourcePathTraversalError):
            await ImageEncoder(base_dir=corpus_dir).encode("../../etc/passwd")

    async def test_too_large(self, make_png):
        with pytest.raises(SourceTooLargeError):
            await ImageEncoder(max_bytes=10).encode(make_png(50, 50))

    async def test_data_uri(self, make_png):
        uri = "data:image/png;base64," + base64.b64encode(make_png(10, 20)).decode()
        payload = await ImageEncoder().encode(uri)
        assert (payload.source_width, payload.source_height) == (10, 20)

    async def test_data_uri_not_base64(self):
        with pytest.raises(UnsupportedFormatError):
            await ImageEncoder().encode("data:text/plain,hello")

    async def test_remote_url(self, make_png):
        image = make_png(64, 32)

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/img.png"
            return httpx.Response(200, content=image)

        encoder = ImageEncoder(transport=httpx.MockTransport(handler))
        payload = await encoder.encode("https://cdn.example.com/img.png")
        assert payload.data == image
        assert payload.aspect == 2.0

    async def test_remote_url_404(self):
        encoder = ImageEncoder(transport=httpx.MockTransport(lambda r: httpx.Response(404)))
        with pytest.raises(SourceUnavailableError):
            await encoder.encode("https://cdn.example.com/missing.png")

    async def test_remote_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused")

        encoder = ImageEncoder(transport=httpx.MockTransport(handler))
        with pytest.raises(SourceUnavailableError):
            await encoder.encode("http://offline.example.com/a.png")


class TestReencodeJpeg:
    def test_produces_jpeg(self, make_png):
        out = reencode_jpeg(make_png(100, 50), quality=50)
        img = Image.open(io.BytesIO(out))
        assert img.format == "JPEG"
        assert img.size == (100, 50)

    def test_alpha_is_flattened(self):
        buf = io.BytesIO()
        Image.new("RGBA", (20, 20), (0, 0, 255, 128)).save(buf, format="PNG")
        out = reencode_jpeg(buf.getvalue(), quality=70)
        assert Image.open(io.BytesIO(out)).mode == "RGB"

    def test_lower_quality_is_smaller(self):
        img = Image.effect_noise((200, 200), 64).convert("RGB")
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        assert len(reencode_jpeg(buf.getvalue(), 10)) < len(reencode_jpeg(buf.getvalue(), 95))
