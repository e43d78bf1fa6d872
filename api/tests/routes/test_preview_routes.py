"""Tests for the template designer page and HTMX editing endpoints."""

import re

import pytest

from factories import TemplateRowFactory, png_data_uri

pytestmark = pytest.mark.unit


def _token(html: str) -> str:
    match = re.search(r'data-session="([^"]+)"', html)
    assert match is not None
    return match.group(1)


@pytest.fixture
def template_row(store):
    return store.seed("certificate_templates", TemplateRowFactory(name="Spring Cohort"))


@pytest.fixture
async def session_url(client, template_row):
    response = await client.get(f"/preview/{template_row['id']}")
    return f"/preview/sessions/{_token(response.text)}"


class TestPages:
    async def test_new_template_page(self, client):
        response = await client.get("/preview/new")

        assert response.status_code == 200
        assert "New template" in response.text
        assert "Upload a background image to start designing" in response.text

    async def test_existing_template_page(self, client, template_row):
        response = await client.get(f"/preview/{template_row['id']}")

        assert response.status_code == 200
        assert "Spring Cohort" in response.text
        assert "preview-qr" in response.text
        assert _token(response.text)

    async def test_missing_template(self, client):
        response = await client.get("/preview/missing")
        assert response.status_code == 404


class TestDragging:
    async def test_drag_name(self, client, session_url):
        down = await client.post(f"{session_url}/pointer-down", data={"element": "name"})
        move = await client.post(
            f"{session_url}/pointer-move",
            data={"x": "100", "y": "75", "width": "400", "height": "300"},
        )
        up = await client.post(f"{session_url}/pointer-up")

        assert down.status_code == 200
        assert 'data-dragging="name"' in down.text
        assert "name (200.0, 150.0)" in move.text
        assert "unsaved changes" in move.text
        assert 'data-dragging=""' in up.text

    async def test_second_element_refused(self, client, session_url):
        await client.post(f"{session_url}/pointer-down", data={"element": "name"})
        response = await client.post(
            f"{session_url}/pointer-down", data={"element": "qr"}
        )
        assert response.headers["x-preview-drag"] == "refused"

    async def test_unknown_element_is_422(self, client, session_url):
        response = await client.post(
            f"{session_url}/pointer-down", data={"element": "logo"}
        )
        assert response.status_code == 422

    async def test_zero_container_is_422(self, client, session_url):
        response = await client.post(
            f"{session_url}/pointer-move",
            data={"x": "1", "y": "1", "width": "0", "height": "300"},
        )
        assert response.status_code == 422

    async def test_reset(self, client, session_url):
        await client.post(f"{session_url}/pointer-down", data={"element": "name"})
        await client.post(
            f"{session_url}/pointer-move",
            data={"x": "0", "y": "0", "width": "800", "height": "600"},
        )
        response = await client.post(f"{session_url}/reset")
        assert "name (400.0, 300.0)" in response.text
        assert "unsaved changes" not in response.text

    async def test_expired_session(self, client):
        response = await client.post("/preview/sessions/expired/pointer-up")
        assert response.status_code == 404


class TestSaving:
    async def test_save_overwrites_template(self, client, store, template_row, session_url):
        await client.post(f"{session_url}/pointer-down", data={"element": "qr"})
        await client.post(
            f"{session_url}/pointer-move",
            data={"x": "100", "y": "100", "width": "800", "height": "600"},
        )

        response = await client.post(f"{session_url}/save")

        assert response.status_code == 200
        assert response.headers["hx-trigger"] == "template-saved"
        assert response.headers["x-template-id"] == template_row["id"]
        [row] = store.rows("certificate_templates")
        assert row["qr_position"] == {"x": 100.0, "y": 100.0}

    async def test_new_template_background_then_save(self, client, store):
        page = await client.get("/preview/new")
        session_url = f"/preview/sessions/{_token(page.text)}"

        swapped = await client.post(
            f"{session_url}/background",
            data={"background_image": png_data_uri(1000, 700)},
        )
        saved = await client.post(f"{session_url}/save")

        assert "1000 &times; 700 px" in swapped.text
        assert saved.status_code == 200
        [row] = store.rows("certificate_templates")
        assert (row["template_width"], row["template_height"]) == (1000, 700)

    async def test_save_without_background_is_422(self, client):
        page = await client.get("/preview/new")
        response = await client.post(f"/preview/sessions/{_token(page.text)}/save")
        assert response.status_code == 422
