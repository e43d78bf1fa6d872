"""Repository for certificate template operations.

Rows use the store's column names (``background_url``, ``template_width``,
``template_height``) and hold ``name_style`` as a camelCase JSON object.
The repository maps them to and from the field names used everywhere else;
normalization happens in the templates service.
"""

from typing import Any

from core.store import RecordStore, Row
from repositories.utils import log_slow_query
from schemas import Template

TABLE = "certificate_templates"

_COLUMN_TO_FIELD = {
    "background_url": "background_image",
    "template_width": "canvas_width",
    "template_height": "canvas_height",
}


def template_from_row(row: Row) -> dict[str, Any]:
    """Raw (un-normalized) template fields from a stored row."""
    return {_COLUMN_TO_FIELD.get(key, key): value for key, value in row.items()}


def template_to_row(template: Template) -> dict[str, Any]:
    """Column values for a full overwrite of a template row."""
    return {
        "name": template.name,
        "background_url": template.background_image,
        "template_width": template.canvas_width,
        "template_height": template.canvas_height,
        "name_position": template.name_position.model_dump(),
        "qr_position": template.qr_position.model_dump(),
        "qr_size": template.qr_size,
        "name_style": template.name_style.model_dump(by_alias=True),
    }


class TemplateRepository:
    """Repository for template records."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    @log_slow_query("get_template_by_id")
    async def get_by_id(self, template_id: str) -> dict[str, Any] | None:
        row = await self.store.select_one(TABLE, {"id": template_id})
        return template_from_row(row) if row else None

    @log_slow_query("get_latest_template")
    async def get_latest(self) -> dict[str, Any] | None:
        rows = await self.store.select(
            TABLE, order="created_at", descending=True, limit=1
        )
        return template_from_row(rows[0]) if rows else None

    @log_slow_query("list_templates")
    async def list_all(self) -> list[dict[str, Any]]:
        rows = await self.store.select(TABLE, order="created_at", descending=True)
        return [template_from_row(row) for row in rows]

    @log_slow_query("create_template")
    async def create(self, template: Template) -> dict[str, Any]:
        row = await self.store.insert(TABLE, template_to_row(template))
        return template_from_row(row)

    @log_slow_query("overwrite_template")
    async def overwrite(self, template_id: str, template: Template) -> dict[str, Any] | None:
        """Replace every layout field of an existing template."""
        rows = await self.store.update(
            TABLE, {"id": template_id}, template_to_row(template)
        )
        return template_from_row(rows[0]) if rows else None

    @log_slow_query("delete_template")
    async def delete(self, template_id: str) -> bool:
        rows = await self.store.delete(TABLE, {"id": template_id})
        return bool(rows)
