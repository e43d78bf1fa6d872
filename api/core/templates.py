"""Jinja2 template engine shared by the preview and verification pages.

Route modules import the module-level ``templates`` instance directly.
The ``pct`` filter renders a [0, 1] fraction as a CSS percentage with enough
precision that the preview never drifts from the exported layouts.
"""

from pathlib import Path

from fastapi.templating import Jinja2Templates

_templates_dir = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(_templates_dir))


def _pct(fraction: float) -> str:
    return f"{fraction * 100:.4f}%"


templates.env.filters["pct"] = _pct
