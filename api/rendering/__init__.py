"""Rendering module for presentation concerns.

This module handles all certificate presentation logic:
- Template-space to renderer-space coordinate mapping
- Verification QR encoding
- Background loading
- Preview (HTML), raster (PNG) and document (PDF) compositing

This separates presentation concerns from business logic in services.
"""

from rendering.artifact import RenderedCertificate
from rendering.backgrounds import load_background, read_background_size
from rendering.coordinates import (
    PX_TO_MM,
    CertificateLayout,
    CoordinateMapper,
    CoordinateSpace,
)
from rendering.document import render_document
from rendering.preview import DragTarget, PreviewEditor, render_preview_html
from rendering.qr import (
    VerificationQr,
    build_verification_url,
    encode_verification,
    parse_verification_id,
    render_qr_png,
)
from rendering.raster import render_raster

__all__ = [
    "PX_TO_MM",
    "CertificateLayout",
    "CoordinateMapper",
    "CoordinateSpace",
    "DragTarget",
    "PreviewEditor",
    "RenderedCertificate",
    "VerificationQr",
    "build_verification_url",
    "encode_verification",
    "load_background",
    "parse_verification_id",
    "read_background_size",
    "render_document",
    "render_preview_html",
    "render_qr_png",
    "render_raster",
]
