"""Appointment router - FastAPI endpoints for booking"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...database import get_db
from ...shared.pagination import PaginationParams
from ..availability.router import get_pagination
from .schemas import AppointmentCreate, AppointmentFilters, AppointmentPage, AppointmentResponse
from .service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(
    data: AppointmentCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment, checking staff availability and existing bookings"""
    return AppointmentResponse.model_validate(service.create(data))


@router.get("", response_model=AppointmentPage)
async def list_appointments(
    user_id: Optional[str] = Query(None),
    salon_staff_id: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    pagination: PaginationParams = Depends(get_pagination),
    service: AppointmentService = Depends(get_appointment_service),
):
    page = service.list_appointments(
        AppointmentFilters(user_id=user_id, salon_staff_id=salon_staff_id, status=status_filter),
        pagination,
    )
    return AppointmentPage(
        **{**page, "data": [AppointmentResponse.model_validate(a) for a in page["data"]]}
    )


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.model_validate(service.get(appointment_id))


@router.post("/{appointment_id}/cancel", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: str,
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.model_validate(service.cancel(appointment_id))
