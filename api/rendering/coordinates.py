"""Template-space to renderer-space coordinate mapping.

Every template field is expressed in template space, the fixed
``[0, canvas_width] x [0, canvas_height]`` pixel grid of the background image.
Renderers never store their own coordinates; they derive them here:

- preview:  fractions of the container, ``(x / canvas_width, y / canvas_height)``
- raster:   identity, a ``canvas_width x canvas_height`` pixel canvas
- document: millimetres at 96 DPI, ``(x * PX_TO_MM, y * PX_TO_MM)``

All three spaces use a top-left origin. The PDF renderer flips to
ReportLab's bottom-left origin at draw time only.
"""

import math
from dataclasses import dataclass
from enum import StrEnum

from schemas import Position, Template

# 25.4 mm per inch / 96 px per inch
PX_TO_MM = 0.264583
MM_TO_PT = 72 / 25.4
PX_TO_PT = PX_TO_MM * MM_TO_PT


class CoordinateSpace(StrEnum):
    PREVIEW = "preview"
    RASTER = "raster"
    DOCUMENT = "document"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Box:
    """An axis-aligned box described by its centre."""

    center: Point
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.center.x - self.width / 2

    @property
    def top(self) -> float:
        return self.center.y - self.height / 2


@dataclass(frozen=True)
class CertificateLayout:
    """Where a renderer places the name and QR code, in its native units.

    ``font_size`` is a fraction of the container width for the preview,
    pixels for the raster export and points for the document export.
    """

    space: CoordinateSpace
    width: float
    height: float
    name_anchor: Point
    qr_box: Box
    font_size: float

    def relative(self, point: Point) -> Point:
        """Position of ``point`` relative to the canvas bounds, in [0, 1]."""
        return Point(point.x / self.width, point.y / self.height)

    @property
    def relative_name(self) -> Point:
        return self.relative(self.name_anchor)

    @property
    def relative_qr(self) -> Point:
        return self.relative(self.qr_box.center)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into ``[low, high]``; NaN collapses to ``low``."""
    if math.isnan(value):
        return low
    if low > high:
        return (low + high) / 2
    return max(low, min(value, high))


def clamp_position(
    position: Position, width: float, height: float, margin: float = 0.0
) -> Position:
    """Clamp an anchor into the canvas, keeping ``margin`` pixels of clearance.

    When the margin cannot fit (an element larger than the canvas) the
    anchor is centred on that axis.
    """
    return Position(
        x=clamp(position.x, margin, width - margin),
        y=clamp(position.y, margin, height - margin),
    )


class CoordinateMapper:
    """Maps one template's anchor points into each renderer's native space."""

    def __init__(self, template: Template) -> None:
        self.template = template
        self.canvas_width = float(template.canvas_width)
        self.canvas_height = float(template.canvas_height)

    # --- preview (fraction of container) ---

    def to_preview(self, position: Position | Point) -> Point:
        return Point(
            position.x / self.canvas_width,
            position.y / self.canvas_height,
        )

    def from_preview(self, fraction_x: float, fraction_y: float) -> Point:
        """Inverse of ``to_preview``."""
        return Point(fraction_x * self.canvas_width, fraction_y * self.canvas_height)

    def from_container(
        self, x: float, y: float, container_width: float, container_height: float
    ) -> Point:
        """Template-space point under a pointer in a container of any size."""
        return self.from_preview(x / container_width, y / container_height)

    # --- raster (identity) ---

    def to_raster(self, position: Position | Point) -> Point:
        return Point(float(position.x), float(position.y))

    # --- document (millimetres) ---

    def to_document(self, position: Position | Point) -> Point:
        return Point(position.x * PX_TO_MM, position.y * PX_TO_MM)

    @property
    def page_size_mm(self) -> tuple[float, float]:
        return self.canvas_width * PX_TO_MM, self.canvas_height * PX_TO_MM

    # --- layouts ---

    def layout(self, space: CoordinateSpace) -> CertificateLayout:
        template = self.template
        qr_size = float(template.qr_size)
        font_size = float(template.name_style.font_size)

        if space is CoordinateSpace.PREVIEW:
            return CertificateLayout(
                space=space,
                width=1.0,
                height=1.0,
                name_anchor=self.to_preview(template.name_position),
                qr_box=Box(
                    self.to_preview(template.qr_position),
                    qr_size / self.canvas_width,
                    qr_size / self.canvas_height,
                ),
                font_size=font_size / self.canvas_width,
            )

        if space is CoordinateSpace.RASTER:
            return CertificateLayout(
                space=space,
                width=self.canvas_width,
                height=self.canvas_height,
                name_anchor=self.to_raster(template.name_position),
                qr_box=Box(self.to_raster(template.qr_position), qr_size, qr_size),
                font_size=font_size,
            )

        page_width, page_height = self.page_size_mm
        return CertificateLayout(
            space=space,
            width=page_width,
            height=page_height,
            name_anchor=self.to_document(template.name_position),
            qr_box=Box(
                self.to_document(template.qr_position),
                qr_size * PX_TO_MM,
                qr_size * PX_TO_MM,
            ),
            font_size=font_size * PX_TO_PT,
        )
