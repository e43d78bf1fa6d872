"""Interactive preview rendering and the drag editor state machine.

The preview is an HTML fragment whose container keeps the template's aspect
ratio. Every element is positioned in percentages of the container and the
name's font size in container-width units (``cqw``), so the fragment scales
to any width without drifting from the exported layouts.

``PreviewEditor`` owns the drag state of one editor session:

    Idle --pointer_down(element)--> Dragging(element) --pointer_up--> Idle

Only one element drags at a time; pointer moves are mapped back to template
space and clamped to the canvas.
"""

import base64
import io
import logging
from dataclasses import dataclass
from enum import StrEnum

from PIL import Image

from core.templates import templates
from rendering.artifact import RenderedCertificate
from rendering.colors import css_hex
from rendering.coordinates import (
    CertificateLayout,
    CoordinateMapper,
    CoordinateSpace,
    clamp_position,
)
from rendering.fonts import css_font_stack, is_bold
from rendering.qr import VerificationQr
from schemas import Position, Template

logger = logging.getLogger(__name__)

PREVIEW_QR_SIZE = 200
PREVIEW_PARTIAL = "partials/certificate_preview.html"


class DragTarget(StrEnum):
    NAME = "name"
    QR = "qr"


def image_data_uri(image: Image.Image) -> str:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


@dataclass(frozen=True)
class PreviewLayout:
    """Everything the preview partial needs, in container fractions."""

    layout: CertificateLayout
    aspect_ratio: str
    background_src: str | None
    name: str
    color: str
    font_stack: str
    font_weight: str
    qr_src: str | None

    @property
    def font_size_cqw(self) -> float:
        return self.layout.font_size * 100


def build_preview_layout(
    template: Template,
    name: str,
    qr: VerificationQr | None,
    background_src: str | None,
) -> PreviewLayout:
    mapper = CoordinateMapper(template)
    style = template.name_style
    return PreviewLayout(
        layout=mapper.layout(CoordinateSpace.PREVIEW),
        aspect_ratio=f"{template.canvas_width} / {template.canvas_height}",
        background_src=background_src,
        name=name,
        color=css_hex(style.color),
        font_stack=css_font_stack(style.font_family),
        font_weight="700" if is_bold(style.font_weight) else "400",
        qr_src=image_data_uri(qr.render(PREVIEW_QR_SIZE)) if qr else None,
    )


def render_preview_html(
    template: Template,
    name: str,
    qr: VerificationQr | None,
    background_src: str | None,
    *,
    session_token: str | None = None,
    dragging: DragTarget | None = None,
    dirty: bool = False,
) -> RenderedCertificate:
    """Render the preview fragment.

    ``background_src`` must be something a browser can load (data URI or
    URL); ``None`` renders the empty-state placeholder.
    """
    preview = build_preview_layout(template, name, qr, background_src)
    html = templates.get_template(PREVIEW_PARTIAL).render(
        preview=preview,
        template=template,
        session_token=session_token,
        dragging=dragging.value if dragging else None,
        dirty=dirty,
    )
    return RenderedCertificate(
        content=html.encode("utf-8"),
        media_type="text/html",
        layout=preview.layout,
    )


class PreviewEditor:
    """Drag state and unsaved edits of a single preview session."""

    def __init__(self, template: Template) -> None:
        self.saved = template
        self.template = template
        self.dragging: DragTarget | None = None

    @property
    def has_background(self) -> bool:
        return bool(self.template.background_image.strip())

    @property
    def is_dirty(self) -> bool:
        return self.template != self.saved

    def pointer_down(self, target: DragTarget) -> bool:
        """Start dragging ``target``; refused while another element drags."""
        if not self.has_background:
            return False
        if self.dragging is not None and self.dragging != target:
            logger.debug(
                "preview.drag.refused",
                extra={"dragging": self.dragging.value, "requested": target.value},
            )
            return False
        self.dragging = target
        return True

    def pointer_move(
        self, x: float, y: float, container_width: float, container_height: float
    ) -> Position | None:
        """Move the dragged element to the pointer; no-op when idle."""
        if self.dragging is None:
            return None

        template = self.template
        point = CoordinateMapper(template).from_container(
            x, y, container_width, container_height
        )
        candidate = Position(x=point.x, y=point.y)

        if self.dragging is DragTarget.QR:
            position = clamp_position(
                candidate,
                template.canvas_width,
                template.canvas_height,
                margin=template.qr_size / 2,
            )
            self.template = template.model_copy(update={"qr_position": position})
        else:
            position = clamp_position(
                candidate, template.canvas_width, template.canvas_height
            )
            self.template = template.model_copy(update={"name_position": position})
        return position

    def pointer_up(self) -> None:
        self.dragging = None

    def update(self, template: Template) -> None:
        """Replace the working template (e.g. after a background swap)."""
        self.template = template
        self.dragging = None

    def reset(self) -> Template:
        """Discard unsaved edits."""
        self.template = self.saved
        self.dragging = None
        return self.template

    def mark_saved(self, template: Template) -> None:
        self.saved = template
        self.template = template
