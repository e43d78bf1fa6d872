"""Template designer: preview page and HTMX drag-editing endpoints.

The page opens a preview session; every pointer event posts to the session
and gets the re-rendered preview fragment back.
"""

import logging

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse

from core.store import Store
from core.templates import templates
from schemas import DragTargetName, Template
from services import preview_service
from services.templates_service import default_template, get_template

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/preview", tags=["preview"])


async def _page(request: Request, template: Template) -> HTMLResponse:
    session = preview_service.open_session(template)
    preview_html = await preview_service.render_session(session)
    return templates.TemplateResponse(
        request,
        "pages/preview.html",
        {
            "template": template,
            "session_token": session.token,
            "preview_html": preview_html,
        },
    )


async def _fragment(
    session: preview_service.PreviewSession, headers: dict[str, str] | None = None
) -> HTMLResponse:
    return HTMLResponse(await preview_service.render_session(session), headers=headers)


# --- Pages (literal /new before parameterized) ---


@router.get("/new", response_class=HTMLResponse)
async def new_template_page(request: Request) -> HTMLResponse:
    """Designer for a new template (empty state until a background is set)."""
    return await _page(request, default_template())


@router.get("/{template_id}", response_class=HTMLResponse)
async def template_page(
    request: Request, template_id: str, store: Store
) -> HTMLResponse:
    """Designer for an existing template."""
    return await _page(request, await get_template(store, template_id))


# --- Session fragments ---


@router.post("/sessions/{token}/pointer-down", response_class=HTMLResponse)
async def pointer_down(token: str, element: DragTargetName = Form()) -> HTMLResponse:
    session = preview_service.get_session(token)
    if not preview_service.pointer_down(session, element):
        return await _fragment(session, {"X-Preview-Drag": "refused"})
    return await _fragment(session)


@router.post("/sessions/{token}/pointer-move", response_class=HTMLResponse)
async def pointer_move(
    token: str,
    x: float = Form(),
    y: float = Form(),
    width: float = Form(gt=0),
    height: float = Form(gt=0),
) -> HTMLResponse:
    session = preview_service.get_session(token)
    preview_service.pointer_move(session, x, y, width, height)
    return await _fragment(session)


@router.post("/sessions/{token}/pointer-up", response_class=HTMLResponse)
async def pointer_up(token: str) -> HTMLResponse:
    session = preview_service.get_session(token)
    preview_service.pointer_up(session)
    return await _fragment(session)


@router.post("/sessions/{token}/background", response_class=HTMLResponse)
async def change_background(
    token: str, background_image: str = Form(min_length=1)
) -> HTMLResponse:
    """Swap the draft's background; positions are clamped, not rescaled."""
    session = preview_service.get_session(token)
    await preview_service.change_background(session, background_image)
    return await _fragment(session)


@router.post("/sessions/{token}/reset", response_class=HTMLResponse)
async def reset(token: str) -> HTMLResponse:
    session = preview_service.get_session(token)
    preview_service.reset(session)
    return await _fragment(session)


@router.post("/sessions/{token}/save", response_class=HTMLResponse)
async def save(token: str, store: Store) -> HTMLResponse:
    """Persist the edited layout (full overwrite through the store)."""
    session = preview_service.get_session(token)
    saved = await preview_service.save(store, session)
    return await _fragment(
        session, {"HX-Trigger": "template-saved", "X-Template-Id": str(saved.id)}
    )
