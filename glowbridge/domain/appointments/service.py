"""Appointment service - Booking against staff weekly availability"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...database import atomic
from ...errors import ConflictError, NotFoundError, ValidationError
from ...models import Appointment
from ...shared.pagination import PaginationParams
from ...shared.validators import DAY_NAMES
from ..availability.service import StaffAvailabilityService
from ..availability.time_calculator import day_of_week_for, time_of_day
from .repository import CANCELLED, AppointmentRepository
from .schemas import AppointmentCreate, AppointmentFilters

logger = logging.getLogger(__name__)


class AppointmentService:
    """
    Creates and manages appointments.

    A booking with a staff member must sit inside one of that member's
    available weekly slots and must not overlap another non-cancelled
    appointment. Both checks run in the same transaction as the insert,
    with the staff row locked, so two concurrent requests cannot both
    claim the same time.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = datetime.now):
        self.db = db
        self.repo = AppointmentRepository()
        self.availability = StaffAvailabilityService(db)
        self.clock = clock

    @staticmethod
    def _wall_clock(value: datetime) -> datetime:
        # Appointment times are salon-local; offsets are dropped, not converted
        return value.replace(tzinfo=None)

    @staticmethod
    def _require_whole_minutes(value: datetime, field: str) -> None:
        # Weekly slots have minute precision
        if value.second or value.microsecond:
            raise ValidationError(
                f"{field} must be on a whole minute",
                details={"field": field, "value": value.isoformat()},
            )

    def _reserve_staff(
        self, salon_staff_id: str, salon_id: str, start_at: datetime, end_at: datetime
    ) -> None:
        staff = self.repo.lock_staff(self.db, salon_staff_id)
        if not staff:
            raise NotFoundError("Salon staff")
        if staff.salon_id != salon_id:
            raise ValidationError(
                "Service and staff member belong to different salons",
                details={"service_salon_id": salon_id, "staff_salon_id": staff.salon_id},
            )

        if start_at.date() != end_at.date():
            raise ValidationError("Appointments with a staff member cannot cross midnight")

        day_of_week = day_of_week_for(start_at)
        start, end = time_of_day(start_at), time_of_day(end_at)

        if not self.availability.is_staff_free(salon_staff_id, day_of_week, start, end):
            logger.warning(
                f"⚠️ Booking rejected: staff {salon_staff_id} not available "
                f"{DAY_NAMES[day_of_week]} {start}-{end}"
            )
            raise ConflictError(
                "Staff member is not available at the requested time",
                details={"day_of_week": day_of_week, "start_time": start, "end_time": end},
            )

        clashes = self.repo.find_overlapping(self.db, salon_staff_id, start_at, end_at)
        if clashes:
            logger.warning(
                f"⚠️ Booking rejected: staff {salon_staff_id} already booked "
                f"({len(clashes)} overlapping appointment(s))"
            )
            raise ConflictError(
                "Staff member already has an appointment at this time",
                details={"conflicting_appointment_ids": [a.id for a in clashes]},
            )

    def create(self, data: AppointmentCreate) -> Appointment:
        start_at = self._wall_clock(data.start_at)
        end_at = self._wall_clock(data.end_at)

        self._require_whole_minutes(start_at, "start_at")
        self._require_whole_minutes(end_at, "end_at")
        if end_at <= start_at:
            raise ValidationError("Appointment end time must be after start time")
        if start_at <= self.clock():
            raise ValidationError("Appointment must start in the future")
        if data.amount < 0:
            raise ValidationError("Amount cannot be negative")

        service = self.repo.get_service(self.db, data.service_id)
        if not service:
            raise NotFoundError("Service")

        with atomic(self.db, "Failed to create appointment"):
            if data.salon_staff_id:
                self._reserve_staff(data.salon_staff_id, service.salon_id, start_at, end_at)

            appointment = self.repo.create(
                self.db,
                commit=False,
                user_id=data.user_id,
                service_id=data.service_id,
                salon_staff_id=data.salon_staff_id,
                note=data.note,
                start_at=start_at,
                end_at=end_at,
                payment_type=data.payment_type,
                amount=data.amount,
                is_paid=data.is_paid,
            )

        self.db.refresh(appointment)
        logger.info(
            f"✅ Booked appointment {appointment.id} "
            f"({start_at:%Y-%m-%d %H:%M}-{end_at:%H:%M}, staff {data.salon_staff_id or 'unassigned'})"
        )
        return appointment

    def get(self, appointment_id: str) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment")
        return appointment

    def list_appointments(
        self,
        filters: Optional[AppointmentFilters] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> dict:
        return self.repo.find_page(self.db, filters, pagination)

    def cancel(self, appointment_id: str) -> Appointment:
        """Cancel an appointment; its time becomes bookable again"""
        appointment = self.get(appointment_id)
        if appointment.status == CANCELLED:
            return appointment
        if appointment.status == "completed":
            raise ConflictError("Completed appointments cannot be cancelled")

        appointment = self.repo.update_status(self.db, appointment, CANCELLED)
        logger.info(f"🚫 Cancelled appointment {appointment_id}")
        return appointment
