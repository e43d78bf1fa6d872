"""Pydantic schemas for templates, participants and API request/response bodies."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# ============ Template Schemas ============


class Position(BaseModel):
    """An anchor point in template space (canvas pixels)."""

    x: float
    y: float


class NameStyle(BaseModel):
    """Style of the participant name label.

    Stored as a JSON object with camelCase keys (``fontSize``, ``fontFamily``),
    accepted from API clients in either case.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    font_size: int = Field(default=36, gt=0, le=1000)
    color: str = "#1a365d"
    font_family: str = "Georgia"
    font_weight: str = "bold"


class Template(BaseModel):
    """A normalized certificate template.

    Instances are produced by ``services.templates_service.normalize_template``
    and always have their anchors inside the canvas.
    """

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str | None = None
    name: str = ""
    background_image: str
    canvas_width: int = Field(gt=0)
    canvas_height: int = Field(gt=0)
    name_position: Position
    qr_position: Position
    qr_size: int = Field(gt=0)
    name_style: NameStyle
    created_at: datetime | None = None


class TemplateInput(BaseModel):
    """Template create/overwrite payload. Missing fields get editor defaults."""

    name: str = Field(min_length=1, max_length=200)
    background_image: str | None = None
    canvas_width: int | None = None
    canvas_height: int | None = None
    name_position: Position | None = None
    qr_position: Position | None = None
    qr_size: int | None = None
    name_style: NameStyle | None = None


class BackgroundSwapRequest(BaseModel):
    """Replace a template's background; canvas size is re-derived from the image."""

    background_image: str = Field(min_length=1)


# ============ Participant Schemas ============


class Participant(BaseModel):
    """A certificate recipient as stored in the record store."""

    model_config = ConfigDict(from_attributes=True, coerce_numbers_to_str=True)

    id: str
    name: str
    email: str | None = None
    college: str | None = None
    role: str = "Participant"
    verification_id: str
    certificate_url: str | None = None
    certificate_generated_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_generated(self) -> bool:
        return self.certificate_url is not None


class ParticipantCreate(BaseModel):
    """Request to add a participant."""

    name: str = Field(max_length=200)
    email: str | None = Field(default=None, max_length=320)
    college: str | None = Field(default=None, max_length=200)
    role: str | None = Field(default=None, max_length=100)
    # Only honoured for bulk imports that carry their own IDs
    verification_id: str | None = Field(default=None, max_length=100)

    @field_validator("name", "email", "college", "role", "verification_id")
    @classmethod
    def strip_whitespace(cls, v: str | None) -> str | None:
        if v is None:
            return None
        cleaned = v.strip()
        return cleaned


class ParticipantBulkRequest(BaseModel):
    participants: list[ParticipantCreate] = Field(min_length=1, max_length=5000)


class BulkResult(BaseModel):
    """Outcome summary of a bulk operation."""

    success_count: int = 0
    failed_count: int = 0
    duplicate_count: int = 0
    messages: list[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success_count + self.failed_count + self.duplicate_count

    @property
    def summary(self) -> str:
        text = f"Processed {self.total}: {self.success_count} succeeded"
        if self.failed_count:
            text += f", {self.failed_count} failed"
        if self.duplicate_count:
            text += f", {self.duplicate_count} duplicates skipped"
        return text


class VerificationResult(BaseModel):
    """Result of looking up a verification ID."""

    is_valid: bool
    participant: Participant | None = None
    verification_url: str
    message: str


# ============ Export Schemas ============

ExportFormat = Literal["pdf", "png"]


class BulkExportRequest(BaseModel):
    """Bulk export of every listed participant (all participants when omitted)."""

    template_id: str | None = None
    participant_ids: list[str] | None = None
    format: ExportFormat = "pdf"


class BulkQrExportRequest(BaseModel):
    participant_ids: list[str] | None = None
    size: int = Field(default=600, ge=200, le=2000)


# ============ Preview Editor Schemas ============

DragTargetName = Literal["name", "qr"]


# ============ Health Schemas ============


class HealthResponse(BaseModel):
    status: str
    service: str


class DetailedHealthResponse(BaseModel):
    status: str
    service: str
    store: bool
