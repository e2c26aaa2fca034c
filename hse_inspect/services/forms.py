"""Admin-managed inspection form templates."""

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from hse_inspect.core.errors import NotFoundError, ValidationFailedError
from hse_inspect.schemas.form import (
    FORM_TYPES,
    FormCategory,
    FormCategoryInput,
    FormCreateRequest,
    FormItem,
    FormsListResponse,
    FormTemplate,
    FormUpdateRequest,
)
from hse_inspect.schemas.user import User
from hse_inspect.services import audit as audit_actions
from hse_inspect.services.audit import AuditService
from hse_inspect.store.base import KeyValueStore
from hse_inspect.store.repositories import FormTemplateRepository

logger = logging.getLogger(__name__)


def build_categories(categories: list[FormCategoryInput]) -> list[FormCategory]:
    """Give every category and item an id and an order; supplied ones are kept."""
    built = []
    for index, category in enumerate(categories):
        items = [
            FormItem(
                id=item.id or str(uuid4()),
                label=item.label,
                type=item.type,
                required=item.required,
                options=item.options,
                placeholder=item.placeholder,
                validation=item.validation,
                order=item.order if item.order is not None else item_index,
            )
            for item_index, item in enumerate(category.items)
        ]
        built.append(
            FormCategory(
                id=category.id or str(uuid4()),
                name=category.name,
                order=category.order if category.order is not None else index,
                items=items,
            )
        )
    return built


class FormService:
    def __init__(self, store: KeyValueStore, audit: AuditService) -> None:
        self.forms = FormTemplateRepository(store)
        self.audit = audit

    def list_forms(
        self, *, form_type: str | None = None, is_active: bool | None = None
    ) -> FormsListResponse:
        forms = self.forms.list_all()
        if form_type:
            forms = [f for f in forms if f.type == form_type]
        if is_active is not None:
            forms = [f for f in forms if f.is_active == is_active]
        return FormsListResponse(forms=forms, total=len(forms))

    def get_form(self, form_id: str) -> FormTemplate:
        form = self.forms.get(form_id)
        if form is None:
            raise NotFoundError("Form not found")
        return form

    def create_form(self, actor: User, body: FormCreateRequest) -> FormTemplate:
        if body.type not in FORM_TYPES:
            raise ValidationFailedError("Invalid form type", valid_types=list(FORM_TYPES))
        now = datetime.now(UTC).isoformat()
        form = FormTemplate(
            id=str(uuid4()),
            name=body.name,
            type=body.type,
            description=body.description,
            categories=build_categories(body.categories),
            is_active=True,
            created_by=actor.id,
            created_at=now,
            updated_at=now,
            version=1,
        )
        self.forms.add(form)
        self.audit.record(
            audit_actions.FORM_CREATED,
            actor=actor,
            details={"form_id": form.id, "form_name": form.name, "form_type": form.type},
        )
        logger.info("Form template created: id=%s type=%s by=%s", form.id, form.type, actor.id)
        return form

    def update_form(self, actor: User, form_id: str, body: FormUpdateRequest) -> FormTemplate:
        """New categories replace the old set and bump the version; other fields do not."""

        def apply(form: FormTemplate) -> FormTemplate:
            updates: dict[str, Any] = {"updated_at": datetime.now(UTC).isoformat()}
            if body.name is not None:
                updates["name"] = body.name
            if body.description is not None:
                updates["description"] = body.description
            if body.is_active is not None:
                updates["is_active"] = body.is_active
            if body.categories is not None:
                updates["categories"] = build_categories(body.categories)
                updates["version"] = form.version + 1
            return form.model_copy(update=updates)

        updated = self.forms.mutate(form_id, apply)
        if updated is None:
            raise NotFoundError("Form not found")
        self.audit.record(
            audit_actions.FORM_UPDATED,
            actor=actor,
            details={"form_id": updated.id, "form_name": updated.name, "version": updated.version},
        )
        return updated

    def deactivate_form(self, actor: User, form_id: str) -> FormTemplate:
        """Soft delete. Inspections that reference the template keep resolving it."""
        updated = self.forms.mutate(
            form_id,
            lambda f: f.model_copy(
                update={"is_active": False, "updated_at": datetime.now(UTC).isoformat()}
            ),
        )
        if updated is None:
            raise NotFoundError("Form not found")
        self.audit.record(
            audit_actions.FORM_DELETED,
            actor=actor,
            details={"form_id": updated.id, "form_name": updated.name},
        )
        logger.info("Form template deactivated: id=%s by=%s", form_id, actor.id)
        return updated
