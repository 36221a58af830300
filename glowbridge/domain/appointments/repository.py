"""Appointment repository - Database operations for appointments"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...database import store_errors
from ...models import Appointment, SalonStaff, Service
from ...shared.pagination import PaginationParams, create_page, resolve_pagination
from .schemas import AppointmentFilters

CANCELLED = "cancelled"


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def create(db: Session, commit: bool = True, **appointment_data) -> Appointment:
        with store_errors(db, "Failed to create appointment"):
            appointment = Appointment(**appointment_data)
            db.add(appointment)
            if commit:
                db.commit()
                db.refresh(appointment)
            else:
                db.flush()
            return appointment

    @staticmethod
    def get_by_id(db: Session, appointment_id: str) -> Optional[Appointment]:
        with store_errors(db, "Failed to find appointment by id"):
            return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def find_page(
        db: Session,
        filters: Optional[AppointmentFilters] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> dict:
        """Paginated appointments, soonest first"""
        filters = filters or AppointmentFilters()
        pagination = resolve_pagination(pagination)
        with store_errors(db, "Failed to list appointments"):
            query = db.query(Appointment)

            if filters.user_id:
                query = query.filter(Appointment.user_id == filters.user_id)
            if filters.salon_staff_id:
                query = query.filter(Appointment.salon_staff_id == filters.salon_staff_id)
            if filters.status:
                query = query.filter(Appointment.status == filters.status)

            total = query.count()
            rows = (
                query.order_by(Appointment.start_at.asc())
                .offset(pagination.offset)
                .limit(pagination.limit)
                .all()
            )
            return create_page(rows, total, pagination)

    @staticmethod
    def update_status(db: Session, appointment: Appointment, status: str) -> Appointment:
        with store_errors(db, "Failed to update appointment"):
            appointment.status = status
            db.commit()
            db.refresh(appointment)
            return appointment

    @staticmethod
    def get_service(db: Session, service_id: str) -> Optional[Service]:
        with store_errors(db, "Failed to find service by id"):
            return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def lock_staff(db: Session, salon_staff_id: str) -> Optional[SalonStaff]:
        """
        Fetch a staff row with SELECT ... FOR UPDATE.

        Concurrent bookings for the same staff member queue on this lock until
        the booking transaction ends. SQLite ignores FOR UPDATE but only ever
        allows one writer.
        """
        with store_errors(db, "Failed to lock salon staff"):
            return (
                db.query(SalonStaff)
                .filter(SalonStaff.id == salon_staff_id)
                .with_for_update()
                .first()
            )

    @staticmethod
    def find_overlapping(
        db: Session, salon_staff_id: str, start_at: datetime, end_at: datetime
    ) -> list[Appointment]:
        """Non-cancelled appointments of a staff member that intersect [start_at, end_at)"""
        with store_errors(db, "Failed to check overlapping appointments"):
            return (
                db.query(Appointment)
                .filter(
                    Appointment.salon_staff_id == salon_staff_id,
                    Appointment.status != CANCELLED,
                    Appointment.start_at < end_at,
                    Appointment.end_at > start_at,
                )
                .all()
            )
