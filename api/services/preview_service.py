"""Preview editor sessions.

Each open designer gets its own ``PreviewEditor`` (drag state machine plus
unsaved edits), held in a process-local registry keyed by an opaque token.
Sessions are not shared between workers; a designer whose session was evicted
simply reopens the page.
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass, field

from cachetools import LRUCache

from core.errors import NotFoundError
from core.store import RecordStore
from rendering.backgrounds import load_background
from rendering.preview import (
    DragTarget,
    PreviewEditor,
    image_data_uri,
    render_preview_html,
)
from rendering.qr import encode_verification
from schemas import Position, Template
from services.certificates_service import SAMPLE_NAME, SAMPLE_VERIFICATION_ID
from services.templates_service import (
    create_template,
    normalize_template,
    replace_background,
    save_template,
)

logger = logging.getLogger(__name__)

MAX_SESSIONS = 256

# Browser-loadable references are passed through; everything else is inlined
_PASSTHROUGH_PREFIXES = ("data:", "http://", "https://")


@dataclass
class PreviewSession:
    token: str
    editor: PreviewEditor
    template_id: str | None = None
    _background_src: dict[str, str | None] = field(default_factory=dict)

    async def background_src(self) -> str | None:
        """Browser-loadable source for the current background, cached per ref."""
        template = self.editor.template
        ref = template.background_image.strip()
        if not ref:
            return None
        if ref.startswith(_PASSTHROUGH_PREFIXES):
            return ref
        if ref not in self._background_src:
            image = await load_background(
                ref, canvas_size=(template.canvas_width, template.canvas_height)
            )
            loop = asyncio.get_running_loop()
            self._background_src[ref] = await loop.run_in_executor(
                None, image_data_uri, image
            )
        return self._background_src[ref]


# Least recently used sessions are evicted once the registry is full
_sessions: LRUCache[str, PreviewSession] = LRUCache(maxsize=MAX_SESSIONS)


def open_session(template: Template) -> PreviewSession:
    token = secrets.token_urlsafe(16)
    session = PreviewSession(
        token=token, editor=PreviewEditor(template), template_id=template.id
    )
    _sessions[token] = session
    logger.debug("preview.session.opened", extra={"template_id": template.id})
    return session


def get_session(token: str) -> PreviewSession:
    session = _sessions.get(token)
    if session is None:
        raise NotFoundError("Preview session expired. Reload the designer.")
    return session


def close_session(token: str) -> None:
    _sessions.pop(token, None)


def clear_sessions() -> None:
    _sessions.clear()


async def render_session(session: PreviewSession) -> str:
    """Current preview fragment for a session."""
    editor = session.editor
    qr = encode_verification(SAMPLE_VERIFICATION_ID)
    rendered = render_preview_html(
        editor.template,
        SAMPLE_NAME,
        qr,
        await session.background_src(),
        session_token=session.token,
        dragging=editor.dragging,
        dirty=editor.is_dirty,
    )
    return rendered.content.decode("utf-8")


def pointer_down(session: PreviewSession, element: str) -> bool:
    return session.editor.pointer_down(DragTarget(element))


def pointer_move(
    session: PreviewSession, x: float, y: float, width: float, height: float
) -> Position | None:
    return session.editor.pointer_move(x, y, width, height)


def pointer_up(session: PreviewSession) -> None:
    session.editor.pointer_up()


def reset(session: PreviewSession) -> Template:
    return session.editor.reset()


async def save(store: RecordStore, session: PreviewSession) -> Template:
    """Persist the edited template (full overwrite, or create when new).

    Raises:
        ValidationError: If the draft has no background yet.
    """
    draft = normalize_template(session.editor.template)
    if session.template_id is None:
        saved = await create_template(store, draft)
        session.template_id = saved.id
    else:
        saved = await save_template(store, session.template_id, draft)

    session.editor.mark_saved(saved)
    logger.info(
        "preview.session.saved",
        extra={"template_id": saved.id, "token": session.token},
    )
    return saved


async def change_background(session: PreviewSession, background_ref: str) -> Template:
    """Swap the draft's background; the canvas follows the new image size."""
    template = await replace_background(session.editor.template, background_ref)
    session.editor.update(template)
    return template
