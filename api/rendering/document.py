"""Print-ready PDF certificate compositing at exact physical dimensions.

The page is ``canvas_width x canvas_height`` template pixels converted to
millimetres at 96 DPI. Layout is computed top-left in millimetres by the
coordinate mapper and flipped to ReportLab's bottom-left origin only when
drawing. Text uses PDF base-14 fonts so no font needs to be embedded.
"""

import io

from PIL import Image
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from core.errors import RenderError
from rendering.artifact import RenderedCertificate
from rendering.colors import parse_rgb
from rendering.coordinates import CoordinateMapper, CoordinateSpace
from rendering.fonts import pdf_font_name
from rendering.qr import VerificationQr
from rendering.raster import fit_qr
from schemas import Template


def name_baseline(font_name: str, font_size: float, center_y: float) -> float:
    """Baseline (bottom-left origin, points) that centres text on ``center_y``.

    The text box spans ``[baseline + descent, baseline + ascent]``.
    """
    ascent, descent = pdfmetrics.getAscentDescent(font_name, font_size)
    return center_y - (ascent + descent) / 2


def render_document(
    template: Template,
    name: str,
    qr: VerificationQr,
    background: Image.Image,
    *,
    qr_scale: int = 3,
) -> RenderedCertificate:
    """Render a single-page certificate PDF.

    The QR bitmap is encoded at ``qr_size * qr_scale`` pixels before being
    placed, so it stays sharp when printed.
    """
    mapper = CoordinateMapper(template)
    layout = mapper.layout(CoordinateSpace.DOCUMENT)
    page_width, page_height = layout.width * mm, layout.height * mm

    style = template.name_style
    font_name = pdf_font_name(style.font_family, style.font_weight)
    qr_image = fit_qr(qr, max(round(template.qr_size * qr_scale), 1))

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(page_width, page_height))
    pdf.setTitle(f"Certificate - {name}")

    try:
        pdf.drawImage(
            ImageReader(background.convert("RGB")),
            0,
            0,
            width=page_width,
            height=page_height,
            preserveAspectRatio=False,
        )

        qr_box = layout.qr_box
        pdf.drawImage(
            ImageReader(qr_image),
            qr_box.left * mm,
            page_height - (qr_box.top + qr_box.height) * mm,
            width=qr_box.width * mm,
            height=qr_box.height * mm,
        )

        r, g, b = parse_rgb(style.color)
        pdf.setFillColorRGB(r / 255, g / 255, b / 255)
        pdf.setFont(font_name, layout.font_size)
        pdf.drawCentredString(
            layout.name_anchor.x * mm,
            name_baseline(
                font_name, layout.font_size, page_height - layout.name_anchor.y * mm
            ),
            name,
        )

        pdf.showPage()
        pdf.save()
    except (OSError, ValueError) as e:
        raise RenderError("Failed to compose certificate document") from e

    return RenderedCertificate(
        content=buffer.getvalue(),
        media_type="application/pdf",
        layout=layout,
    )
