"""Schemas for admin-managed inspection form templates."""

from typing import Literal

from pydantic import BaseModel, Field

FORM_TYPES: tuple[str, ...] = (
    "fire-extinguisher",
    "first-aid",
    "hse-inspection",
    "monthly-statistic",
    "custom",
)

FormItemType = Literal["text", "number", "checkbox", "radio", "select", "date", "textarea", "signature"]


class FormItemValidation(BaseModel):
    min: float | None = None
    max: float | None = None
    pattern: str | None = None


class FormItem(BaseModel):
    id: str
    label: str
    type: FormItemType = "text"
    required: bool = False
    options: list[str] | None = Field(default=None, description="Choices for select and radio items.")
    placeholder: str | None = None
    validation: FormItemValidation | None = None
    order: int


class FormCategory(BaseModel):
    id: str
    name: str
    order: int
    items: list[FormItem] = Field(default_factory=list)


class FormTemplate(BaseModel):
    id: str
    name: str
    type: Literal["fire-extinguisher", "first-aid", "hse-inspection", "monthly-statistic", "custom"]
    description: str = ""
    categories: list[FormCategory] = Field(default_factory=list)
    is_active: bool = True
    created_by: str
    created_at: str
    updated_at: str
    version: int = 1


class FormItemInput(BaseModel):
    """An item as sent by the form builder. id is kept on update, generated when absent."""

    id: str | None = None
    label: str = Field(..., min_length=1, max_length=500)
    type: FormItemType = "text"
    required: bool = False
    options: list[str] | None = None
    placeholder: str | None = None
    validation: FormItemValidation | None = None
    order: int | None = None


class FormCategoryInput(BaseModel):
    id: str | None = None
    name: str = Field(..., min_length=1, max_length=255)
    order: int | None = None
    items: list[FormItemInput] = Field(default_factory=list)


class FormCreateRequest(BaseModel):
    """Body for POST /admin/forms. type is checked by the service so the caller gets the valid choices."""

    name: str = Field(..., min_length=1, max_length=255)
    type: str
    description: str = ""
    categories: list[FormCategoryInput]


class FormUpdateRequest(BaseModel):
    """Body for PUT /admin/forms/{id}. New categories replace the old ones and bump the version."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    categories: list[FormCategoryInput] | None = None
    is_active: bool | None = None


class FormResponse(BaseModel):
    form: FormTemplate
    message: str | None = None


class FormsListResponse(BaseModel):
    forms: list[FormTemplate]
    total: int
