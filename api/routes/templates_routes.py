"""Certificate template endpoints.

Route ordering note: the literal ``/latest`` segment is defined before the
parameterized ``/{template_id}`` routes to prevent routing conflicts.
"""

from fastapi import APIRouter, HTTPException, Response

from core.store import Store
from schemas import BackgroundSwapRequest, Template, TemplateInput
from services.templates_service import (
    create_template,
    delete_template,
    get_latest_template,
    get_template,
    list_templates,
    replace_background,
    save_template,
)

router = APIRouter(prefix="/api/templates", tags=["templates"])


# --- Collection endpoints ---


@router.get("", response_model=list[Template])
async def list_templates_endpoint(store: Store) -> list[Template]:
    """All templates, most recent first."""
    return await list_templates(store)


@router.post(
    "",
    response_model=Template,
    status_code=201,
    responses={422: {"description": "Invalid template"}},
)
async def create_template_endpoint(body: TemplateInput, store: Store) -> Template:
    """Create a template. Missing layout fields get the designer defaults."""
    return await create_template(store, body)


# --- Literal path routes (before parameterized) ---


@router.get(
    "/latest",
    response_model=Template,
    responses={404: {"description": "No templates yet"}},
)
async def get_latest_template_endpoint(store: Store) -> Template:
    template = await get_latest_template(store)
    if template is None:
        raise HTTPException(status_code=404, detail="No templates yet")
    return template


# --- Parameterized routes ---


@router.get(
    "/{template_id}",
    response_model=Template,
    responses={404: {"description": "Template not found"}},
)
async def get_template_endpoint(template_id: str, store: Store) -> Template:
    return await get_template(store, template_id)


@router.put(
    "/{template_id}",
    response_model=Template,
    responses={
        404: {"description": "Template not found"},
        422: {"description": "Invalid template"},
    },
)
async def save_template_endpoint(
    template_id: str, body: TemplateInput, store: Store
) -> Template:
    """Overwrite a template. This is a full replacement, not a patch."""
    return await save_template(store, template_id, body)


@router.post(
    "/{template_id}/background",
    response_model=Template,
    responses={
        404: {"description": "Template not found"},
        422: {"description": "Background could not be loaded"},
    },
)
async def replace_background_endpoint(
    template_id: str, body: BackgroundSwapRequest, store: Store
) -> Template:
    """Swap the background, re-derive the canvas size and clamp positions."""
    template = await get_template(store, template_id)
    swapped = await replace_background(template, body.background_image)
    return await save_template(store, template_id, swapped)


@router.delete(
    "/{template_id}",
    status_code=204,
    responses={404: {"description": "Template not found"}},
)
async def delete_template_endpoint(template_id: str, store: Store) -> Response:
    await delete_template(store, template_id)
    return Response(status_code=204)
