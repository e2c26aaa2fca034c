"""Admin form templates (admin role with canManageForms)."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from hse_inspect.api.deps import FormServiceDep
from hse_inspect.api.v1.guard import guard
from hse_inspect.schemas.errors import ErrorResponse
from hse_inspect.schemas.form import (
    FormCreateRequest,
    FormResponse,
    FormsListResponse,
    FormUpdateRequest,
)
from hse_inspect.schemas.permissions import Permission, Role
from hse_inspect.schemas.user import User

router = APIRouter(responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}})

FormAdmin = Annotated[User, Depends(guard(Role.ADMIN, Permission.MANAGE_FORMS))]


@router.get("", response_model=FormsListResponse)
def list_forms(
    _admin: FormAdmin,
    forms: FormServiceDep,
    type: str | None = None,
    is_active: bool | None = None,
) -> FormsListResponse:
    return forms.list_forms(form_type=type, is_active=is_active)


@router.post(
    "",
    response_model=FormResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
def create_form(body: FormCreateRequest, admin: FormAdmin, forms: FormServiceDep) -> FormResponse:
    form = forms.create_form(admin, body)
    return FormResponse(form=form, message="Form template created successfully")


@router.get("/{form_id}", response_model=FormResponse, responses={404: {"model": ErrorResponse}})
def get_form(form_id: str, _admin: FormAdmin, forms: FormServiceDep) -> FormResponse:
    return FormResponse(form=forms.get_form(form_id))


@router.put(
    "/{form_id}",
    response_model=FormResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def update_form(
    form_id: str,
    body: FormUpdateRequest,
    admin: FormAdmin,
    forms: FormServiceDep,
) -> FormResponse:
    form = forms.update_form(admin, form_id, body)
    return FormResponse(form=form, message="Form template updated successfully")


@router.delete("/{form_id}", response_model=FormResponse, responses={404: {"model": ErrorResponse}})
def deactivate_form(form_id: str, admin: FormAdmin, forms: FormServiceDep) -> FormResponse:
    """Soft delete: the template is kept with is_active False."""
    form = forms.deactivate_form(admin, form_id)
    return FormResponse(form=form, message="Form template deactivated successfully")
