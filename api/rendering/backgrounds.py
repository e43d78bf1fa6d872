"""Background image loading.

A template's ``background_image`` is an opaque reference. Supported forms:

- ``data:`` URIs (base64 or URL-encoded)
- ``http(s)://`` URLs, fetched through a shared connection-pooled client
- local filesystem paths
- anything containing ``placeholder.svg``, which resolves to a generated
  placeholder certificate at the template's canvas size

SVG payloads are rasterized with CairoSVG. Every failure is raised as
``RenderError`` so that no partial certificate is ever emitted.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import logging
from pathlib import Path
from urllib.parse import unquote_to_bytes

import httpx
from PIL import Image, ImageDraw

from core.config import get_settings
from core.errors import RenderError
from rendering.fonts import raster_font

logger = logging.getLogger(__name__)

PLACEHOLDER_MARKER = "placeholder.svg"
DEFAULT_CANVAS_SIZE = (800, 600)
MAX_BACKGROUND_BYTES = 20 * 1024 * 1024

_background_http_client: httpx.AsyncClient | None = None
_background_client_lock = asyncio.Lock()


async def get_background_client() -> httpx.AsyncClient:
    """Get or create the shared HTTP client for remote backgrounds."""
    global _background_http_client

    if _background_http_client is not None and not _background_http_client.is_closed:
        return _background_http_client

    async with _background_client_lock:
        if (
            _background_http_client is not None
            and not _background_http_client.is_closed
        ):
            return _background_http_client

        settings = get_settings()
        _background_http_client = httpx.AsyncClient(
            timeout=settings.http_timeout,
            follow_redirects=True,
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
        )
        return _background_http_client


async def close_background_client() -> None:
    """Close the shared background HTTP client (called on application shutdown)."""
    global _background_http_client
    if _background_http_client is not None and not _background_http_client.is_closed:
        await _background_http_client.aclose()
    _background_http_client = None


def is_placeholder(ref: str) -> bool:
    return PLACEHOLDER_MARKER in ref


def placeholder_background(width: int, height: int) -> Image.Image:
    """Generated stand-in background: soft gradient, double border, title."""
    image = Image.new("RGB", (width, height), "#ffffff")
    draw = ImageDraw.Draw(image)

    top, bottom = (248, 250, 252), (226, 232, 240)
    for y in range(height):
        t = y / max(height - 1, 1)
        color = tuple(round(a + (b - a) * t) for a, b in zip(top, bottom))
        draw.line([(0, y), (width, y)], fill=color)

    unit = min(width, height)
    outer = max(round(unit * 0.033), 1)
    inner = max(round(unit * 0.06), outer + 2)
    draw.rectangle(
        [outer, outer, width - 1 - outer, height - 1 - outer],
        outline="#1a365d",
        width=max(round(unit * 0.013), 1),
    )
    draw.rectangle(
        [inner, inner, width - 1 - inner, height - 1 - inner],
        outline="#c5a572",
        width=max(round(unit * 0.003), 1),
    )

    title_font = raster_font("Georgia", "bold", max(round(height * 0.05), 8))
    draw.text(
        (width / 2, height * 0.18),
        "CERTIFICATE OF COMPLETION",
        font=title_font,
        fill="#1a365d",
        anchor="mm",
    )
    return image


def _decode_data_uri(ref: str) -> tuple[str, bytes]:
    header, sep, data = ref.partition(",")
    if not sep:
        raise RenderError("Malformed data URI background")
    media_type = header[len("data:") :].split(";")[0] or "text/plain"
    try:
        if ";base64" in header:
            payload = base64.b64decode(data, validate=False)
        else:
            payload = unquote_to_bytes(data)
    except (binascii.Error, ValueError) as e:
        raise RenderError("Background data URI is not valid base64") from e
    return media_type, payload


async def _fetch_remote(url: str) -> tuple[str, bytes]:
    client = await get_background_client()
    try:
        response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.warning(
            "background.fetch.rejected",
            extra={"url": url, "status": e.response.status_code},
        )
        raise RenderError(
            f"Background image request failed with HTTP {e.response.status_code}"
        ) from e
    except httpx.HTTPError as e:
        logger.warning("background.fetch.failed", extra={"url": url, "error": str(e)})
        raise RenderError("Background image could not be fetched") from e

    if len(response.content) > MAX_BACKGROUND_BYTES:
        raise RenderError("Background image is too large")
    media_type = response.headers.get("content-type", "").split(";")[0].strip()
    return media_type, response.content


def _read_local(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise RenderError(f"Background image not found: {path.name}") from e


def _looks_like_svg(media_type: str, payload: bytes) -> bool:
    if media_type == "image/svg+xml":
        return True
    head = payload[:512].lstrip().lower()
    return head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in head)


def _rasterize_svg(payload: bytes, canvas_size: tuple[int, int] | None) -> bytes:
    try:
        import cairosvg
    except OSError as e:
        if "cairo" in str(e).lower():
            raise RenderError(
                "SVG backgrounds require the Cairo library. "
                "On macOS: brew install cairo. "
                "On Ubuntu/Debian: apt-get install libcairo2-dev. "
                "On Alpine: apk add cairo-dev."
            ) from e
        raise

    kwargs = {}
    if canvas_size is not None:
        kwargs = {"output_width": canvas_size[0], "output_height": canvas_size[1]}
    try:
        return cairosvg.svg2png(bytestring=payload, **kwargs)
    except (ValueError, SyntaxError, OSError) as e:
        raise RenderError("Background SVG could not be rendered") from e


def decode_background(
    payload: bytes, media_type: str = "", canvas_size: tuple[int, int] | None = None
) -> Image.Image:
    """Decode image bytes (any Pillow format, or SVG) into an RGB image."""
    if not payload:
        raise RenderError("Background image is empty")
    if _looks_like_svg(media_type, payload):
        payload = _rasterize_svg(payload, canvas_size)

    try:
        with Image.open(io.BytesIO(payload)) as image:
            image.load()
            if image.mode in ("RGBA", "LA", "P"):
                rgba = image.convert("RGBA")
                flattened = Image.new("RGB", rgba.size, "#ffffff")
                flattened.paste(rgba, mask=rgba.getchannel("A"))
                return flattened
            return image.convert("RGB")
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise RenderError("Background image could not be decoded") from e


async def load_background(
    ref: str | None, *, canvas_size: tuple[int, int] | None = None
) -> Image.Image:
    """Resolve a background reference to a decoded RGB image.

    ``canvas_size`` sizes the generated placeholder and SVG rasterization;
    raster payloads keep their natural dimensions.

    Raises:
        RenderError: If the reference is blank, unreachable or undecodable.
    """
    if not ref or not ref.strip():
        raise RenderError("Template has no background image")
    ref = ref.strip()
    loop = asyncio.get_running_loop()

    if is_placeholder(ref):
        width, height = canvas_size or DEFAULT_CANVAS_SIZE
        return await loop.run_in_executor(None, placeholder_background, width, height)

    if ref.startswith("data:"):
        media_type, payload = _decode_data_uri(ref)
    elif ref.startswith(("http://", "https://")):
        media_type, payload = await _fetch_remote(ref)
    else:
        media_type = ""
        payload = await loop.run_in_executor(None, _read_local, Path(ref))

    image = await loop.run_in_executor(
        None, decode_background, payload, media_type, canvas_size
    )
    logger.debug(
        "background.loaded",
        extra={"width": image.width, "height": image.height, "media_type": media_type},
    )
    return image


async def read_background_size(ref: str | None) -> tuple[int, int]:
    """Natural pixel dimensions of a background reference."""
    image = await load_background(ref)
    return image.size
