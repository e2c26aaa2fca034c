"""Schemas for inspection submissions."""

from typing import Any, Literal

from pydantic import BaseModel, Field

INSPECTION_STATUSES: tuple[str, ...] = ("draft", "submitted", "approved", "rejected")

# Outcomes only a reviewer may set.
REVIEW_STATUSES: tuple[str, ...] = ("approved", "rejected")

InspectionStatus = Literal["draft", "submitted", "approved", "rejected"]


class Signature(BaseModel):
    """Signature captured on the device; the signer is always the session user."""

    data_url: str
    timestamp: str
    inspector_id: str
    inspector_name: str


class SignatureInput(BaseModel):
    data_url: str = Field(..., min_length=1)
    timestamp: str | None = None


class DriveExport(BaseModel):
    status: Literal["pending", "success", "failed"]
    file_id: str | None = None
    exported_at: str | None = None
    error: str | None = None


class Inspection(BaseModel):
    id: str
    form_type: str
    form_template_id: str
    inspector_id: str
    inspector_name: str
    data: dict[str, Any]
    signature: Signature | None = None
    status: InspectionStatus = "draft"
    submitted_at: str | None = None
    created_at: str
    updated_at: str
    google_drive_export: DriveExport | None = None


class InspectionCreateRequest(BaseModel):
    """Body for POST /inspections. Any status other than "submitted" saves a draft."""

    form_type: str = Field(..., min_length=1)
    form_template_id: str = Field(..., min_length=1)
    data: dict[str, Any]
    signature: SignatureInput | None = None
    status: str = "draft"


class InspectionUpdateRequest(BaseModel):
    data: dict[str, Any] | None = None
    signature: SignatureInput | None = None
    status: str | None = None


class InspectionResponse(BaseModel):
    inspection: Inspection
    message: str | None = None


class InspectionDeletedResponse(BaseModel):
    message: str = "Inspection deleted successfully"


class InspectionsListResponse(BaseModel):
    inspections: list[Inspection]
    total: int
    page: int
    total_pages: int
