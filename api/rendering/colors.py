"""Name label colour parsing shared by the renderers."""

import logging

from PIL import ImageColor

logger = logging.getLogger(__name__)

FALLBACK_RGB = (0, 0, 0)


def parse_rgb(color: str | None) -> tuple[int, int, int]:
    """Parse a CSS hex, ``rgb()`` or named colour.

    Unparseable values fall back to black with a warning; rendering never
    fails on a colour.
    """
    try:
        rgb = ImageColor.getrgb((color or "").strip())
    except ValueError:
        logger.warning("color.unparseable", extra={"color": color})
        return FALLBACK_RGB
    return rgb[0], rgb[1], rgb[2]


def css_hex(color: str | None) -> str:
    r, g, b = parse_rgb(color)
    return f"#{r:02x}{g:02x}{b:02x}"
