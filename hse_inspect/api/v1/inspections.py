"""Inspection submissions. Every route needs canViewInspections; inspectors are scoped to their own."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from hse_inspect.api.deps import InspectionServiceDep
from hse_inspect.api.v1.guard import guard
from hse_inspect.schemas.errors import ErrorResponse
from hse_inspect.schemas.inspection import (
    InspectionCreateRequest,
    InspectionDeletedResponse,
    InspectionResponse,
    InspectionsListResponse,
    InspectionUpdateRequest,
)
from hse_inspect.schemas.permissions import Permission
from hse_inspect.schemas.user import User

router = APIRouter(responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}})

InspectionViewer = Annotated[User, Depends(guard(required_permission=Permission.VIEW_INSPECTIONS))]
InspectionCreator = Annotated[
    User,
    Depends(
        guard(
            required_permission=[Permission.VIEW_INSPECTIONS, Permission.CREATE_INSPECTIONS],
            require_all=True,
        )
    ),
]


@router.get("", response_model=InspectionsListResponse)
def list_inspections(
    user: InspectionViewer,
    inspections: InspectionServiceDep,
    form_type: str | None = None,
    status_filter: Annotated[str | None, Query(alias="status")] = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> InspectionsListResponse:
    return inspections.list_inspections(
        user,
        form_type=form_type,
        status=status_filter,
        start=start_date,
        end=end_date,
        page=page,
        limit=limit,
    )


@router.post(
    "",
    response_model=InspectionResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
def create_inspection(
    body: InspectionCreateRequest,
    user: InspectionCreator,
    inspections: InspectionServiceDep,
) -> InspectionResponse:
    inspection = inspections.create_inspection(user, body)
    return InspectionResponse(inspection=inspection, message="Inspection created successfully")


@router.get(
    "/{inspection_id}", response_model=InspectionResponse, responses={404: {"model": ErrorResponse}}
)
def get_inspection(
    inspection_id: str, user: InspectionViewer, inspections: InspectionServiceDep
) -> InspectionResponse:
    return InspectionResponse(inspection=inspections.get_inspection(user, inspection_id))


@router.put(
    "/{inspection_id}",
    response_model=InspectionResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def update_inspection(
    inspection_id: str,
    body: InspectionUpdateRequest,
    user: InspectionViewer,
    inspections: InspectionServiceDep,
) -> InspectionResponse:
    """Data and signature changes also need canEditInspections; approve/reject is admin-only."""
    inspection = inspections.update_inspection(user, inspection_id, body)
    return InspectionResponse(inspection=inspection, message="Inspection updated successfully")


@router.delete(
    "/{inspection_id}",
    response_model=InspectionDeletedResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def delete_inspection(
    inspection_id: str, user: InspectionViewer, inspections: InspectionServiceDep
) -> InspectionDeletedResponse:
    inspections.delete_inspection(user, inspection_id)
    return InspectionDeletedResponse()
