"""Tests for background image loading."""

import base64
import io

import httpx
import pytest
from PIL import Image

from core.errors import RenderError
from factories import png_data_uri
from rendering import backgrounds
from rendering.backgrounds import (
    decode_background,
    is_placeholder,
    load_background,
    placeholder_background,
    read_background_size,
)

pytestmark = pytest.mark.unit


def _png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class TestPlaceholder:
    def test_marker_detection(self):
        assert is_placeholder("/placeholder.svg")
        assert is_placeholder("https://app.example.com/placeholder.svg?v=2")
        assert not is_placeholder("https://cdn.example.com/bg.png")

    async def test_placeholder_uses_canvas_size(self):
        image = await load_background("/placeholder.svg", canvas_size=(1000, 700))
        assert image.size == (1000, 700)
        assert image.mode == "RGB"

    async def test_placeholder_default_size(self):
        image = await load_background("/placeholder.svg")
        assert image.size == (800, 600)

    def test_placeholder_is_not_blank(self):
        image = placeholder_background(400, 300)
        assert len(image.getcolors(maxcolors=100_000)) > 2


class TestDataUri:
    async def test_png_keeps_natural_size(self):
        image = await load_background(png_data_uri(640, 480, "navy"))
        assert image.size == (640, 480)
        assert image.getpixel((10, 10)) == (0, 0, 128)

    async def test_transparency_flattened_onto_white(self):
        transparent = Image.new("RGBA", (20, 10), (255, 0, 0, 0))
        encoded = base64.b64encode(_png_bytes(transparent)).decode("ascii")
        image = await load_background(f"data:image/png;base64,{encoded}")
        assert image.mode == "RGB"
        assert image.getpixel((5, 5)) == (255, 255, 255)

    async def test_not_an_image_raises(self):
        encoded = base64.b64encode(b"definitely not a png").decode("ascii")
        with pytest.raises(RenderError, match="decoded"):
            await load_background(f"data:image/png;base64,{encoded}")

    async def test_malformed_uri_raises(self):
        with pytest.raises(RenderError):
            await load_background("data:image/png;base64")

    @pytest.mark.parametrize("ref", ["", "   ", None])
    async def test_blank_reference_raises(self, ref):
        with pytest.raises(RenderError):
            await load_background(ref)


class TestLocalFile:
    async def test_reads_file(self, tmp_path):
        path = tmp_path / "background.png"
        Image.new("RGB", (300, 200), "white").save(path)
        image = await load_background(str(path))
        assert image.size == (300, 200)

    async def test_missing_file_raises(self, tmp_path):
        with pytest.raises(RenderError, match="not found"):
            await load_background(str(tmp_path / "missing.png"))


class TestRemote:
    @pytest.fixture
    def remote(self, monkeypatch):
        """Route background fetches through a mock transport."""
        responses: dict[str, httpx.Response] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.get(str(request.url), httpx.Response(404))

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

        async def fake_client() -> httpx.AsyncClient:
            return client

        monkeypatch.setattr(backgrounds, "get_background_client", fake_client)
        return responses

    async def test_fetches_remote_image(self, remote):
        remote["https://cdn.example.com/bg.png"] = httpx.Response(
            200,
            content=_png_bytes(Image.new("RGB", (1200, 900), "white")),
            headers={"content-type": "image/png"},
        )
        assert await read_background_size("https://cdn.example.com/bg.png") == (
            1200,
            900,
        )

    async def test_http_error_raises_render_error(self, remote):
        with pytest.raises(RenderError, match="HTTP 404"):
            await load_background("https://cdn.example.com/missing.png")


class TestSvg:
    def test_svg_rasterized_at_canvas_size(self):
        try:
            import cairosvg  # noqa: F401
        except OSError:
            pytest.skip("Cairo library not installed")

        svg = (
            b'<svg xmlns="http://www.w3.org/2000/svg" width="80" height="60">'
            b'<rect width="80" height="60" fill="#ff0000"/></svg>'
        )
        image = decode_background(svg, "image/svg+xml", (160, 120))
        assert image.size == (160, 120)
        assert image.getpixel((80, 60)) == (255, 0, 0)

    def test_empty_payload_raises(self):
        with pytest.raises(RenderError, match="empty"):
            decode_background(b"")
