"""Logical font table shared by the three renderers.

Templates name fonts the way a browser would ("Georgia", "Arial"). Export
targets cannot assume those fonts exist, so each logical name resolves to a
generic family, and each renderer turns the family into something it can
always draw:

- preview:  a CSS font stack
- raster:   a TrueType face found on disk, else Pillow's bundled default
- document: a PDF base-14 font (always available in every PDF viewer)

Unknown families fall back to sans-serif. Resolution never raises.
"""

import logging
from enum import StrEnum
from functools import lru_cache
from pathlib import Path

from PIL import ImageFont
from reportlab.pdfbase import pdfmetrics

logger = logging.getLogger(__name__)


class FontFamily(StrEnum):
    SANS = "sans-serif"
    SERIF = "serif"
    MONO = "monospace"


LOGICAL_FONTS: dict[str, FontFamily] = {
    "arial": FontFamily.SANS,
    "helvetica": FontFamily.SANS,
    "verdana": FontFamily.SANS,
    "sans-serif": FontFamily.SANS,
    "georgia": FontFamily.SERIF,
    "times new roman": FontFamily.SERIF,
    "times": FontFamily.SERIF,
    "serif": FontFamily.SERIF,
    "courier new": FontFamily.MONO,
    "courier": FontFamily.MONO,
    "monospace": FontFamily.MONO,
}

CSS_FONT_STACKS: dict[FontFamily, str] = {
    FontFamily.SANS: "Helvetica, Arial, sans-serif",
    FontFamily.SERIF: "Times, 'Times New Roman', Georgia, serif",
    FontFamily.MONO: "Courier, 'Courier New', monospace",
}

PDF_FONTS: dict[tuple[FontFamily, bool], str] = {
    (FontFamily.SANS, False): "Helvetica",
    (FontFamily.SANS, True): "Helvetica-Bold",
    (FontFamily.SERIF, False): "Times-Roman",
    (FontFamily.SERIF, True): "Times-Bold",
    (FontFamily.MONO, False): "Courier",
    (FontFamily.MONO, True): "Courier-Bold",
}

TRUETYPE_CANDIDATES: dict[tuple[FontFamily, bool], tuple[str, ...]] = {
    (FontFamily.SANS, False): (
        "DejaVuSans.ttf",
        "LiberationSans-Regular.ttf",
        "Arial.ttf",
        "arial.ttf",
    ),
    (FontFamily.SANS, True): (
        "DejaVuSans-Bold.ttf",
        "LiberationSans-Bold.ttf",
        "Arial Bold.ttf",
        "arialbd.ttf",
    ),
    (FontFamily.SERIF, False): (
        "DejaVuSerif.ttf",
        "LiberationSerif-Regular.ttf",
        "Times New Roman.ttf",
        "times.ttf",
    ),
    (FontFamily.SERIF, True): (
        "DejaVuSerif-Bold.ttf",
        "LiberationSerif-Bold.ttf",
        "Times New Roman Bold.ttf",
        "timesbd.ttf",
    ),
    (FontFamily.MONO, False): (
        "DejaVuSansMono.ttf",
        "LiberationMono-Regular.ttf",
        "Courier New.ttf",
        "cour.ttf",
    ),
    (FontFamily.MONO, True): (
        "DejaVuSansMono-Bold.ttf",
        "LiberationMono-Bold.ttf",
        "Courier New Bold.ttf",
        "courbd.ttf",
    ),
}

SYSTEM_FONT_DIRS: tuple[str, ...] = (
    "/usr/share/fonts",
    "/usr/local/share/fonts",
    "/Library/Fonts",
    "/System/Library/Fonts",
    "C:/Windows/Fonts",
)

_BOLD_KEYWORDS = {"bold", "bolder", "black", "heavy", "extrabold", "semibold"}


def resolve_family(font_family: str | None) -> FontFamily:
    """Map a logical font name (or CSS stack) to a generic family."""
    for candidate in (font_family or "").split(","):
        key = candidate.strip().strip("'\"").lower()
        if key in LOGICAL_FONTS:
            return LOGICAL_FONTS[key]
    return FontFamily.SANS


def is_bold(font_weight: str | int | None) -> bool:
    if font_weight is None:
        return False
    value = str(font_weight).strip().lower()
    if value.isdigit():
        return int(value) >= 600
    return value in _BOLD_KEYWORDS


def css_font_stack(font_family: str | None) -> str:
    return CSS_FONT_STACKS[resolve_family(font_family)]


def _pdf_font_available(font_name: str) -> bool:
    try:
        pdfmetrics.getFont(font_name)
    except (KeyError, ValueError):
        return False
    return True


def pdf_font_name(font_family: str | None, font_weight: str | int | None) -> str:
    """PDF base-14 font for a logical family and weight."""
    font_name = PDF_FONTS[(resolve_family(font_family), is_bold(font_weight))]
    if _pdf_font_available(font_name):
        return font_name
    logger.warning("font.pdf.unavailable", extra={"font": font_name})
    return "Helvetica"


@lru_cache(maxsize=8)
def _index_font_files(search_dirs: tuple[str, ...]) -> dict[str, Path]:
    """Map lower-cased font file names to paths under ``search_dirs``."""
    index: dict[str, Path] = {}
    for directory in search_dirs:
        root = Path(directory)
        if not root.is_dir():
            continue
        for path in root.rglob("*.tt[fc]"):
            index.setdefault(path.name.lower(), path)
    return index


@lru_cache(maxsize=64)
def raster_font(
    font_family: str | None,
    font_weight: str | int | None,
    size: int,
    font_dir: str = "",
) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """TrueType face for PNG exports, checked for availability.

    ``font_dir`` is searched before the system font directories.
    """
    key = (resolve_family(font_family), is_bold(font_weight))
    search_dirs = ((font_dir,) if font_dir else ()) + SYSTEM_FONT_DIRS
    index = _index_font_files(search_dirs)

    for file_name in TRUETYPE_CANDIDATES[key]:
        path = index.get(file_name.lower())
        try:
            if path is not None:
                return ImageFont.truetype(str(path), size)
            # FreeType can resolve some names on its own (e.g. Windows, macOS)
            return ImageFont.truetype(file_name, size)
        except OSError:
            continue

    logger.warning(
        "font.raster.fallback",
        extra={"family": key[0].value, "bold": key[1], "size": size},
    )
    return ImageFont.load_default(size=size)
