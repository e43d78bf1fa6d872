"""Renderer output shared by the preview, raster and document renderers."""

from dataclasses import dataclass

from rendering.coordinates import CertificateLayout


@dataclass(frozen=True)
class RenderedCertificate:
    """Artifact bytes plus the layout the renderer actually used."""

    content: bytes
    media_type: str
    layout: CertificateLayout

    @property
    def extension(self) -> str:
        return {
            "application/pdf": "pdf",
            "image/png": "png",
            "text/html": "html",
        }[self.media_type]
