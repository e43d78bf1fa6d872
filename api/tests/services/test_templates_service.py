"""Tests for template normalization and template store operations."""

import math

import pytest

from core.errors import NotFoundError, ValidationError
from factories import PositionFactory, TemplateFactory, TemplateRowFactory, png_data_uri
from schemas import NameStyle, Position, TemplateInput
from services.templates_service import (
    DEFAULT_NAME_POSITION,
    DEFAULT_QR_POSITION,
    create_template,
    default_template,
    delete_template,
    get_latest_template,
    get_template,
    list_templates,
    normalize_template,
    replace_background,
    rescale_for_new_background,
    save_template,
)

pytestmark = pytest.mark.unit


class TestNormalizeTemplate:
    def test_fills_defaults(self):
        template = normalize_template({"background_image": "/placeholder.svg"})

        assert (template.canvas_width, template.canvas_height) == (800, 600)
        assert template.name_position == DEFAULT_NAME_POSITION
        assert template.qr_position == DEFAULT_QR_POSITION
        assert template.qr_size == 100
        assert template.name_style == NameStyle()
        assert template.name_style.font_size == 36
        assert template.name_style.font_family == "Georgia"

    @pytest.mark.parametrize("background", [None, "", "   ", 42])
    def test_requires_background(self, background):
        with pytest.raises(ValidationError, match="background"):
            normalize_template({"background_image": background})

    @pytest.mark.parametrize(
        ("field", "value"),
        [
            ("canvas_width", 0),
            ("canvas_height", -600),
            ("canvas_width", math.nan),
            ("canvas_height", math.inf),
            ("qr_size", 0),
            ("canvas_width", "wide"),
        ],
    )
    def test_rejects_bad_dimensions(self, field, value):
        with pytest.raises(ValidationError, match=field):
            normalize_template({"background_image": "bg.png", field: value})

    def test_rounds_fractional_dimensions(self):
        template = normalize_template(
            {"background_image": "bg.png", "canvas_width": 1023.6, "qr_size": 80.2}
        )
        assert template.canvas_width == 1024
        assert template.qr_size == 80

    def test_clamps_positions_into_canvas(self):
        template = normalize_template(
            {
                "background_image": "bg.png",
                "name_position": {"x": 9999, "y": -5},
                "qr_position": {"x": -1, "y": 601},
            }
        )
        assert template.name_position == Position(x=800, y=0)
        assert template.qr_position == Position(x=0, y=600)

    def test_nan_position_collapses_to_origin(self):
        template = normalize_template(
            {"background_image": "bg.png", "name_position": {"x": math.nan, "y": 10}}
        )
        assert template.name_position == Position(x=0, y=10)

    def test_rejects_non_numeric_position(self):
        with pytest.raises(ValidationError, match="name_position"):
            normalize_template(
                {"background_image": "bg.png", "name_position": {"x": "left"}}
            )

    def test_partial_camel_case_style(self):
        template = normalize_template(
            {"background_image": "bg.png", "name_style": {"fontSize": 48}}
        )
        assert template.name_style.font_size == 48
        assert template.name_style.color == "#1a365d"
        assert template.name_style.font_weight == "bold"

    def test_invalid_style_has_details(self):
        with pytest.raises(ValidationError) as exc_info:
            normalize_template(
                {"background_image": "bg.png", "name_style": {"fontSize": 0}}
            )
        assert exc_info.value.details
        assert "fontSize" in exc_info.value.details[0]

    def test_is_idempotent(self):
        template = TemplateFactory.build()
        assert normalize_template(normalize_template(template)) == normalize_template(
            template
        )

    def test_accepts_input_model(self):
        body = TemplateInput(name="Cohort", background_image="bg.png", qr_size=120)
        template = normalize_template(body)
        assert template.name == "Cohort"
        assert template.qr_size == 120

    def test_id_is_string(self):
        template = normalize_template({"id": 17, "background_image": "bg.png"})
        assert template.id == "17"

    def test_default_template_is_a_draft(self):
        draft = default_template()
        assert draft.background_image == ""
        with pytest.raises(ValidationError):
            normalize_template(draft)


class TestBackgroundSwap:
    def test_rescale_clamps_instead_of_scaling(self):
        template = TemplateFactory.build(
            name_position=PositionFactory.build(x=700, y=500),
            qr_position=PositionFactory.build(x=100, y=100),
            qr_size=100,
        )
        swapped = rescale_for_new_background(template, 400, 300)

        assert (swapped.canvas_width, swapped.canvas_height) == (400, 300)
        assert swapped.name_position == Position(x=400, y=300)
        # Already inside the new bounds: unchanged
        assert swapped.qr_position == Position(x=100, y=100)

    def test_rescale_keeps_qr_inside(self):
        template = TemplateFactory.build(
            qr_position=PositionFactory.build(x=650, y=500), qr_size=100
        )
        swapped = rescale_for_new_background(template, 400, 300)
        assert swapped.qr_position == Position(x=350, y=250)

    async def test_replace_background_adopts_natural_size(self):
        template = TemplateFactory.build()
        swapped = await replace_background(template, png_data_uri(1200, 900))

        assert (swapped.canvas_width, swapped.canvas_height) == (1200, 900)
        assert swapped.name_position == template.name_position
        assert swapped.background_image.startswith("data:image/png")

    async def test_replace_background_requires_reference(self):
        with pytest.raises(ValidationError):
            await replace_background(TemplateFactory.build(), "  ")


class TestStoreOperations:
    async def test_create_maps_to_store_columns(self, store):
        created = await create_template(
            store,
            TemplateInput(
                name="Cohort",
                background_image="/placeholder.svg",
                name_style=NameStyle(font_size=40),
            ),
        )

        assert created.id is not None
        row = store.rows("certificate_templates")[0]
        assert row["background_url"] == "/placeholder.svg"
        assert row["template_width"] == 800
        assert row["name_style"]["fontSize"] == 40
        assert created.name_style.font_size == 40

    async def test_get_template(self, store):
        row = store.seed("certificate_templates", TemplateRowFactory(qr_size=90))
        template = await get_template(store, row["id"])
        assert template.qr_size == 90
        assert template.canvas_width == 800

    async def test_get_missing_template(self, store):
        with pytest.raises(NotFoundError):
            await get_template(store, "missing")

    async def test_latest_is_most_recent(self, store):
        store.seed("certificate_templates", TemplateRowFactory(name="Old"))
        store.seed("certificate_templates", TemplateRowFactory(name="New"))
        latest = await get_latest_template(store)
        assert latest.name == "New"

    async def test_latest_when_empty(self, store):
        assert await get_latest_template(store) is None

    async def test_save_is_full_overwrite(self, store):
        row = store.seed(
            "certificate_templates",
            TemplateRowFactory(qr_size=150, name_position={"x": 10, "y": 10}),
        )
        saved = await save_template(
            store, row["id"], TemplateInput(name="Renamed", background_image="bg.png")
        )

        assert saved.name == "Renamed"
        assert saved.qr_size == 100
        assert saved.name_position == DEFAULT_NAME_POSITION

    async def test_save_missing_template(self, store):
        with pytest.raises(NotFoundError):
            await save_template(
                store, "missing", TemplateInput(name="X", background_image="bg.png")
            )

    async def test_list_skips_invalid_rows(self, store):
        store.seed("certificate_templates", TemplateRowFactory(name="Good"))
        store.seed("certificate_templates", TemplateRowFactory(background_url=""))
        templates = await list_templates(store)
        assert [template.name for template in templates] == ["Good"]

    async def test_delete(self, store):
        row = store.seed("certificate_templates", TemplateRowFactory())
        await delete_template(store, row["id"])
        assert store.rows("certificate_templates") == []
        with pytest.raises(NotFoundError):
            await delete_template(store, row["id"])
