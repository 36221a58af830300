"""Appointment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AppointmentCreate(BaseModel):
    """
    Schema for booking an appointment.

    start_at/end_at are salon-local wall-clock times. When salon_staff_id is
    set the booking is checked against that staff member's weekly
    availability and existing appointments.
    """

    user_id: str
    service_id: str
    salon_staff_id: Optional[str] = None
    note: str = ""
    start_at: datetime
    end_at: datetime
    payment_type: str
    amount: float
    is_paid: bool = False


class AppointmentFilters(BaseModel):
    user_id: Optional[str] = None
    salon_staff_id: Optional[str] = None
    status: Optional[str] = None


class AppointmentResponse(BaseModel):
    id: str
    user_id: str
    service_id: str
    salon_staff_id: Optional[str] = None
    note: Optional[str] = None
    start_at: datetime
    end_at: datetime
    payment_type: str
    amount: float
    is_paid: bool
    status: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AppointmentPage(BaseModel):
    data: list[AppointmentResponse]
    total: int
    page: int
    limit: int
    totalPages: int
