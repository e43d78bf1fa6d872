"""Pixel-exact PNG certificate compositing.

The raster canvas is the template's own pixel grid, so template coordinates
are used as-is: the background is stretched to ``canvas_width x
canvas_height``, the QR code is pasted centred on ``qr_position`` and the
name is drawn with Pillow's ``"mm"`` anchor (middle/middle) on
``name_position``.
"""

import io

from PIL import Image, ImageDraw

from core.errors import EncodingError, RenderError
from rendering.artifact import RenderedCertificate
from rendering.colors import parse_rgb
from rendering.coordinates import CoordinateMapper, CoordinateSpace
from rendering.fonts import raster_font
from rendering.qr import VerificationQr
from schemas import Template


def fit_qr(qr: VerificationQr, size: int) -> Image.Image:
    """QR bitmap of ``size`` px, downsampled when smaller than the code."""
    image = qr.render(max(size, qr.module_count))
    if image.width != size:
        image = image.resize((size, size), Image.Resampling.LANCZOS)
    return image


def compose_raster(
    template: Template,
    name: str,
    qr: VerificationQr,
    background: Image.Image,
    *,
    font_dir: str = "",
) -> tuple[Image.Image, CoordinateMapper]:
    mapper = CoordinateMapper(template)
    layout = mapper.layout(CoordinateSpace.RASTER)
    size = (template.canvas_width, template.canvas_height)

    try:
        canvas = background.convert("RGB")
        if canvas.size != size:
            canvas = canvas.resize(size, Image.Resampling.LANCZOS)
        else:
            canvas = canvas.copy()
    except (OSError, ValueError) as e:
        raise RenderError("Background image could not be composited") from e

    qr_box = layout.qr_box
    qr_px = max(round(qr_box.width), 1)
    canvas.paste(fit_qr(qr, qr_px), (round(qr_box.left), round(qr_box.top)))

    style = template.name_style
    font = raster_font(
        style.font_family, style.font_weight, style.font_size, font_dir
    )
    draw = ImageDraw.Draw(canvas)
    draw.text(
        (layout.name_anchor.x, layout.name_anchor.y),
        name,
        font=font,
        fill=parse_rgb(style.color),
        anchor="mm",
    )
    return canvas, mapper


def render_raster(
    template: Template,
    name: str,
    qr: VerificationQr,
    background: Image.Image,
    *,
    font_dir: str = "",
) -> RenderedCertificate:
    """Render a certificate PNG at the template's native resolution."""
    canvas, mapper = compose_raster(
        template, name, qr, background, font_dir=font_dir
    )

    buffer = io.BytesIO()
    try:
        canvas.save(buffer, format="PNG", optimize=True)
    except OSError as e:
        raise EncodingError("Failed to encode certificate PNG") from e

    return RenderedCertificate(
        content=buffer.getvalue(),
        media_type="image/png",
        layout=mapper.layout(CoordinateSpace.RASTER),
    )
