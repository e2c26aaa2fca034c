"""
Inspection submissions.

Inspectors only ever see and change their own inspections, and only while they are drafts.
Reviewers (admins) may set the approved or rejected outcome.
"""

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from hse_inspect.core.errors import (
    NotFoundError,
    PermissionDeniedError,
    RoleMismatchError,
    ValidationFailedError,
)
from hse_inspect.schemas.inspection import (
    INSPECTION_STATUSES,
    REVIEW_STATUSES,
    DriveExport,
    Inspection,
    InspectionCreateRequest,
    InspectionsListResponse,
    InspectionUpdateRequest,
    Signature,
    SignatureInput,
)
from hse_inspect.schemas.permissions import Permission, Role
from hse_inspect.schemas.user import User
from hse_inspect.services import audit as audit_actions
from hse_inspect.services.audit import AuditService, as_utc, paginate, parse_timestamp
from hse_inspect.services.permissions import has_permission
from hse_inspect.store.base import INSPECTIONS, KeyValueStore
from hse_inspect.store.repositories import InspectionRepository

logger = logging.getLogger(__name__)

_EPOCH_MIN = datetime.min.replace(tzinfo=UTC)


def _require(user: User, permission: Permission) -> None:
    if not has_permission(user, permission):
        raise PermissionDeniedError(
            "Forbidden - Insufficient permissions", required=[permission.value]
        )


def _check_owner(user: User, inspection: Inspection, verb: str) -> None:
    if user.role == Role.INSPECTOR and inspection.inspector_id != user.id:
        raise PermissionDeniedError(f"Forbidden - You can only {verb} your own inspections")


def _signed_by(user: User, signature: SignatureInput) -> Signature:
    """The signer is the session user whatever the client sent."""
    _require(user, Permission.ADD_DIGITAL_SIGNATURE)
    return Signature(
        data_url=signature.data_url,
        timestamp=signature.timestamp or datetime.now(UTC).isoformat(),
        inspector_id=user.id,
        inspector_name=user.name,
    )


class InspectionService:
    def __init__(self, store: KeyValueStore, audit: AuditService) -> None:
        self.inspections = InspectionRepository(store)
        self.audit = audit

    def list_inspections(
        self,
        user: User,
        *,
        form_type: str | None = None,
        status: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> InspectionsListResponse:
        """Newest first. Inspectors get their own records only."""
        filtered = self.inspections.list_all()
        if user.role == Role.INSPECTOR:
            filtered = [i for i in filtered if i.inspector_id == user.id]
        if form_type:
            filtered = [i for i in filtered if i.form_type == form_type]
        if status:
            filtered = [i for i in filtered if i.status == status]
        if start or end:
            lower = as_utc(start) if start else None
            upper = as_utc(end) if end else None
            windowed = []
            for inspection in filtered:
                created = parse_timestamp(inspection.created_at)
                if created is None:
                    continue
                if lower and created < lower:
                    continue
                if upper and created > upper:
                    continue
                windowed.append(inspection)
            filtered = windowed
        filtered.sort(key=lambda i: parse_timestamp(i.created_at) or _EPOCH_MIN, reverse=True)
        items, total_pages = paginate(filtered, page, limit)
        return InspectionsListResponse(
            inspections=items, total=len(filtered), page=page, total_pages=total_pages
        )

    def get_inspection(self, user: User, inspection_id: str) -> Inspection:
        inspection = self.inspections.get(inspection_id)
        if inspection is None:
            raise NotFoundError("Inspection not found")
        _check_owner(user, inspection, "view")
        return inspection

    def create_inspection(self, user: User, body: InspectionCreateRequest) -> Inspection:
        """Saved as submitted only when asked; anything else is a draft."""
        status = "submitted" if body.status == "submitted" else "draft"
        now = datetime.now(UTC).isoformat()
        inspection = Inspection(
            id=str(uuid4()),
            form_type=body.form_type,
            form_template_id=body.form_template_id,
            inspector_id=user.id,
            inspector_name=user.name,
            data=body.data,
            signature=_signed_by(user, body.signature) if body.signature else None,
            status=status,
            submitted_at=now if status == "submitted" else None,
            created_at=now,
            updated_at=now,
            google_drive_export=DriveExport(status="pending") if status == "submitted" else None,
        )
        self.inspections.add(inspection)
        self.audit.record(
            audit_actions.INSPECTION_CREATED,
            actor=user,
            details={
                "inspection_id": inspection.id,
                "form_type": inspection.form_type,
                "status": inspection.status,
            },
        )
        logger.info("Inspection created: id=%s status=%s by=%s", inspection.id, status, user.id)
        return inspection

    def update_inspection(
        self, user: User, inspection_id: str, body: InspectionUpdateRequest
    ) -> Inspection:
        if body.status is not None and body.status not in INSPECTION_STATUSES:
            raise ValidationFailedError("Invalid status", valid_types=list(INSPECTION_STATUSES))
        if body.status in REVIEW_STATUSES and user.role != Role.ADMIN:
            raise RoleMismatchError(
                "Forbidden - Insufficient role permissions",
                required=[Role.ADMIN.value],
                current=user.role.value,
            )
        if body.data is not None or body.signature is not None:
            _require(user, Permission.EDIT_INSPECTIONS)
        signature = _signed_by(user, body.signature) if body.signature else None

        def apply(inspection: Inspection) -> Inspection:
            _check_owner(user, inspection, "edit")
            if user.role == Role.INSPECTOR and inspection.status != "draft":
                raise ValidationFailedError("Cannot edit submitted inspections")
            now = datetime.now(UTC).isoformat()
            updates: dict[str, Any] = {"updated_at": now}
            if body.data is not None:
                updates["data"] = body.data
            if signature is not None:
                updates["signature"] = signature
            if body.status is not None:
                updates["status"] = body.status
                if body.status == "submitted" and inspection.status != "submitted":
                    updates["submitted_at"] = now
                    updates["google_drive_export"] = DriveExport(status="pending")
            return inspection.model_copy(update=updates)

        updated = self.inspections.mutate(inspection_id, apply)
        if updated is None:
            raise NotFoundError("Inspection not found")
        self.audit.record(
            audit_actions.INSPECTION_UPDATED,
            actor=user,
            details={"inspection_id": updated.id, "status": updated.status},
        )
        return updated

    def delete_inspection(self, user: User, inspection_id: str) -> Inspection:
        """Only drafts can be deleted."""
        with self.inspections.store.lock(INSPECTIONS):
            inspection = self.inspections.get(inspection_id)
            if inspection is None:
                raise NotFoundError("Inspection not found")
            _check_owner(user, inspection, "delete")
            if inspection.status != "draft":
                raise ValidationFailedError("Can only delete draft inspections")
            self.inspections.delete(inspection_id)
        self.audit.record(
            audit_actions.INSPECTION_DELETED,
            actor=user,
            details={"inspection_id": inspection.id, "form_type": inspection.form_type},
        )
        logger.info("Inspection deleted: id=%s by=%s", inspection_id, user.id)
        return inspection
