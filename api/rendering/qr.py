"""Verification URL construction and QR bitmap synthesis.

Every certificate embeds a QR code pointing at
``{base_url}/verify/{verification_id}``. The code is encoded once per URL
(error-correction level H, 4-module quiet zone) and the module matrix is
rendered to any pixel size on demand, so the preview, raster and document
renderers never repeat URL construction or encoding.
"""

import io
import logging
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import quote, unquote, urlsplit

import qrcode
from PIL import Image
from qrcode.exceptions import DataOverflowError

from core.config import get_settings
from core.errors import EncodingError, ValidationError

logger = logging.getLogger(__name__)

VERIFY_PATH = "/verify/"
QR_BORDER = 4


def build_verification_url(verification_id: str, base_url: str | None = None) -> str:
    """Public verification URL for ``verification_id``."""
    if not verification_id or not verification_id.strip():
        raise ValidationError("Verification ID is required")
    if base_url is None:
        base_url = get_settings().verification_base_url
    return f"{base_url.rstrip('/')}{VERIFY_PATH}{quote(verification_id, safe='')}"


def parse_verification_id(url: str) -> str:
    """Extract the verification ID from a verification URL.

    Raises:
        ValueError: If the URL has no ``/verify/{id}`` segment.
    """
    path = urlsplit(url).path
    index = path.rfind(VERIFY_PATH)
    if index == -1:
        raise ValueError(f"Not a verification URL: {url!r}")
    verification_id = unquote(path[index + len(VERIFY_PATH) :])
    if not verification_id or "/" in verification_id:
        raise ValueError(f"Not a verification URL: {url!r}")
    return verification_id


@dataclass(frozen=True)
class VerificationQr:
    """An encoded verification URL, renderable at any size."""

    url: str
    # Dark/light modules including the quiet zone
    modules: tuple[tuple[bool, ...], ...]

    @property
    def module_count(self) -> int:
        return len(self.modules)

    def render(self, size: int) -> Image.Image:
        """Square RGB bitmap of exactly ``size`` x ``size`` pixels."""
        if size < self.module_count:
            raise EncodingError(
                f"QR size {size}px is smaller than the code "
                f"({self.module_count} modules)"
            )

        count = self.module_count
        matrix = Image.new("1", (count, count), 1)
        pixels = matrix.load()
        for y, row in enumerate(self.modules):
            for x, dark in enumerate(row):
                if dark:
                    pixels[x, y] = 0

        return matrix.convert("RGB").resize(
            (size, size), Image.Resampling.NEAREST
        )


@lru_cache(maxsize=1024)
def _encode_url(url: str) -> VerificationQr:
    code = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=1,
        border=QR_BORDER,
    )
    code.add_data(url)
    try:
        code.make(fit=True)
    except (DataOverflowError, ValueError) as e:
        logger.warning("qr.encode.failed", extra={"url": url, "error": str(e)})
        raise EncodingError("Verification URL is too long for a QR code") from e

    modules = tuple(tuple(bool(cell) for cell in row) for row in code.get_matrix())
    return VerificationQr(url=url, modules=modules)


def encode_verification(
    verification_id: str, base_url: str | None = None
) -> VerificationQr:
    return _encode_url(build_verification_url(verification_id, base_url))


def render_qr_png(
    verification_id: str, size: int, base_url: str | None = None
) -> bytes:
    """Standalone QR code PNG (used for QR-only downloads)."""
    image = encode_verification(verification_id, base_url).render(size)
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG")
    except OSError as e:
        raise EncodingError("Failed to encode QR code image") from e
    return buffer.getvalue()
