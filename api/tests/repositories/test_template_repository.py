"""Tests for template row mapping and the template repository."""

import pytest

from factories import TemplateFactory, TemplateRowFactory
from repositories.template_repository import (
    TemplateRepository,
    template_from_row,
    template_to_row,
)

pytestmark = pytest.mark.unit


class TestRowMapping:
    def test_from_row_renames_columns(self):
        data = template_from_row(
            {"id": 1, "background_url": "bg.png", "template_width": 10, "qr_size": 5}
        )
        assert data == {
            "id": 1,
            "background_image": "bg.png",
            "canvas_width": 10,
            "qr_size": 5,
        }

    def test_to_row_uses_store_columns(self):
        row = template_to_row(TemplateFactory.build(canvas_width=1000))
        assert row["template_width"] == 1000
        assert "canvas_width" not in row
        assert set(row["name_style"]) == {"fontSize", "color", "fontFamily", "fontWeight"}

    def test_to_row_omits_generated_columns(self):
        row = template_to_row(TemplateFactory.build())
        assert "id" not in row
        assert "created_at" not in row


class TestTemplateRepository:
    async def test_overwrite_missing_returns_none(self, store):
        repo = TemplateRepository(store)
        assert await repo.overwrite("missing", TemplateFactory.build()) is None

    async def test_get_latest(self, store):
        store.seed("certificate_templates", TemplateRowFactory(name="A"))
        store.seed("certificate_templates", TemplateRowFactory(name="B"))
        latest = await TemplateRepository(store).get_latest()
        assert latest["name"] == "B"
        assert "background_image" in latest
