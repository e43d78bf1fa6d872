"""Certificate template business logic.

This module owns the template rules:
- Missing fields get the designer defaults (800x600 canvas, centred name,
  bottom-right QR, 36px bold Georgia in navy)
- Anchor points are always clamped into the canvas (NaN collapses to 0)
- A background swap re-derives the canvas size from the new image and clamps,
  never rescales, existing positions

Every renderer receives a ``Template`` produced by ``normalize_template``.
"""

import logging
import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from core.errors import NotFoundError, ValidationError
from core.store import RecordStore
from rendering.backgrounds import read_background_size
from rendering.coordinates import clamp_position
from repositories.template_repository import TemplateRepository
from schemas import NameStyle, Position, Template, TemplateInput

logger = logging.getLogger(__name__)

DEFAULT_CANVAS_WIDTH = 800
DEFAULT_CANVAS_HEIGHT = 600
DEFAULT_NAME_POSITION = Position(x=400, y=300)
DEFAULT_QR_POSITION = Position(x=650, y=500)
DEFAULT_QR_SIZE = 100


def default_template(name: str = "") -> Template:
    """Unsaved draft for the designer; has no background yet."""
    return Template(
        name=name,
        background_image="",
        canvas_width=DEFAULT_CANVAS_WIDTH,
        canvas_height=DEFAULT_CANVAS_HEIGHT,
        name_position=DEFAULT_NAME_POSITION,
        qr_position=DEFAULT_QR_POSITION,
        qr_size=DEFAULT_QR_SIZE,
        name_style=NameStyle(),
    )


def _positive_int(value: Any, field: str, default: int) -> int:
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field} must be a number") from e
    if math.isnan(number) or math.isinf(number) or number <= 0:
        raise ValidationError(f"{field} must be a positive number")
    return max(round(number), 1)


def _position(value: Any, field: str, default: Position) -> Position:
    if value is None:
        return default
    if isinstance(value, Position):
        return value
    if isinstance(value, Mapping):
        try:
            return Position(x=float(value.get("x", 0)), y=float(value.get("y", 0)))
        except (TypeError, ValueError) as e:
            raise ValidationError(f"{field} must have numeric x and y") from e
    raise ValidationError(f"{field} must be an object with x and y")


def _name_style(value: Any) -> NameStyle:
    if value is None:
        return NameStyle()
    if isinstance(value, NameStyle):
        raw = value.model_dump()
    elif isinstance(value, Mapping):
        raw = {k: v for k, v in value.items() if v is not None}
    else:
        raise ValidationError("name_style must be an object")

    try:
        style = NameStyle.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(
            "Invalid name style",
            details=[
                f"{'.'.join(map(str, err['loc']))}: {err['msg']}"
                for err in e.errors()
            ],
        ) from e
    return style


def normalize_template(raw: Mapping[str, Any] | BaseModel) -> Template:
    """Validate a template and fill in defaults.

    Raises:
        ValidationError: If the background is missing, or the canvas, QR or
            font size is non-positive.
    """
    data = raw.model_dump() if isinstance(raw, BaseModel) else dict(raw)

    background = data.get("background_image")
    if not isinstance(background, str) or not background.strip():
        raise ValidationError("Template needs a background image")

    width = _positive_int(
        data.get("canvas_width"), "canvas_width", DEFAULT_CANVAS_WIDTH
    )
    height = _positive_int(
        data.get("canvas_height"), "canvas_height", DEFAULT_CANVAS_HEIGHT
    )
    qr_size = _positive_int(data.get("qr_size"), "qr_size", DEFAULT_QR_SIZE)

    name_position = clamp_position(
        _position(
            data.get("name_position"), "name_position", DEFAULT_NAME_POSITION
        ),
        width,
        height,
    )
    qr_position = clamp_position(
        _position(data.get("qr_position"), "qr_position", DEFAULT_QR_POSITION),
        width,
        height,
    )

    template_id = data.get("id")
    return Template(
        id=str(template_id) if template_id is not None else None,
        name=data.get("name") or "",
        background_image=background.strip(),
        canvas_width=width,
        canvas_height=height,
        name_position=name_position,
        qr_position=qr_position,
        qr_size=qr_size,
        name_style=_name_style(data.get("name_style")),
        created_at=data.get("created_at"),
    )


def rescale_for_new_background(
    template: Template, new_width: int, new_height: int
) -> Template:
    """Adopt new canvas dimensions, clamping anchors into the new bounds."""
    width = _positive_int(new_width, "canvas_width", DEFAULT_CANVAS_WIDTH)
    height = _positive_int(new_height, "canvas_height", DEFAULT_CANVAS_HEIGHT)

    return template.model_copy(
        update={
            "canvas_width": width,
            "canvas_height": height,
            "name_position": clamp_position(template.name_position, width, height),
            "qr_position": clamp_position(
                template.qr_position, width, height, margin=template.qr_size / 2
            ),
        }
    )


async def replace_background(template: Template, background_ref: str) -> Template:
    """Swap the background and re-derive the canvas from its natural size.

    Raises:
        RenderError: If the new background cannot be loaded.
    """
    if not background_ref or not background_ref.strip():
        raise ValidationError("Template needs a background image")

    width, height = await read_background_size(background_ref)
    swapped = template.model_copy(update={"background_image": background_ref.strip()})
    result = rescale_for_new_background(swapped, width, height)

    logger.info(
        "template.background.replaced",
        extra={
            "template_id": template.id,
            "old_size": f"{template.canvas_width}x{template.canvas_height}",
            "new_size": f"{width}x{height}",
        },
    )
    return result


# --- store operations ---


async def create_template(
    store: RecordStore, data: TemplateInput | Template
) -> Template:
    template = normalize_template(data)
    row = await TemplateRepository(store).create(template)
    created = normalize_template(row)
    logger.info("template.created", extra={"template_id": created.id})
    return created


async def save_template(
    store: RecordStore, template_id: str, data: TemplateInput | Template
) -> Template:
    """Overwrite every layout field of an existing template.

    Fields absent from ``data`` are reset to their defaults, not kept.
    """
    template = normalize_template(data)
    row = await TemplateRepository(store).overwrite(template_id, template)
    if row is None:
        raise NotFoundError(f"Template {template_id} not found")
    logger.info("template.saved", extra={"template_id": template_id})
    return normalize_template(row)


async def get_template(store: RecordStore, template_id: str) -> Template:
    row = await TemplateRepository(store).get_by_id(template_id)
    if row is None:
        raise NotFoundError(f"Template {template_id} not found")
    return normalize_template(row)


async def get_latest_template(store: RecordStore) -> Template | None:
    """Most recently created template, used when none is specified."""
    row = await TemplateRepository(store).get_latest()
    return normalize_template(row) if row else None


async def list_templates(store: RecordStore) -> list[Template]:
    templates: list[Template] = []
    for row in await TemplateRepository(store).list_all():
        try:
            templates.append(normalize_template(row))
        except ValidationError as e:
            logger.warning(
                "template.invalid_row",
                extra={"template_id": row.get("id"), "error": e.message},
            )
    return templates


async def delete_template(store: RecordStore, template_id: str) -> None:
    """Delete a template. Certificates already rendered from it are unaffected."""
    deleted = await TemplateRepository(store).delete(template_id)
    if not deleted:
        raise NotFoundError(f"Template {template_id} not found")
    logger.info("template.deleted", extra={"template_id": template_id})
