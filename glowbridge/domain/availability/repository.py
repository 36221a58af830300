"""Staff availability repository - Database operations for weekly slots

No business rules live here: callers are trusted to pass validated,
canonical ("HH:MM" zero-padded) times, which is what makes the string
comparisons in the search queries chronological.
"""

import logging
from typing import Any, Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Query, Session

from ...database import store_errors
from ...models import Salon, SalonStaff, StaffAvailability, User
from ...shared.pagination import PaginationParams, create_page, resolve_pagination
from .schemas import (
    AvailableStaffSearch,
    StaffAvailabilityFilters,
    StaffAvailabilityResponse,
    StaffAvailabilitySearch,
    StaffAvailabilityWithStaff,
    WeeklyAvailability,
)

logger = logging.getLogger(__name__)

SLOT_FIELDS = ("salon_staff_id", "day_of_week", "start_time", "end_time", "is_available")


def _contains_pattern(text: str) -> str:
    """ILIKE pattern for a literal substring match"""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _staff_name_expr():
    """Staff display name: salon_staff.name, else the linked user's full name"""
    user_full_name = func.nullif(
        func.trim(func.coalesce(User.first_name, "") + " " + func.coalesce(User.last_name, "")),
        "",
    )
    return func.coalesce(func.nullif(SalonStaff.name, ""), user_full_name)


def _identity_query(db: Session):
    """Slots outer-joined with staff, user and salon. Returns (query, staff_name_expr)."""
    staff_name = _staff_name_expr()
    query = (
        db.query(
            StaffAvailability,
            staff_name.label("staff_name"),
            func.coalesce(SalonStaff.email, User.email).label("staff_email"),
            User.first_name,
            User.last_name,
            User.contact_number,
            User.role,
            Salon.id.label("salon_id"),
            Salon.name.label("salon_name"),
        )
        .outerjoin(SalonStaff, StaffAvailability.salon_staff_id == SalonStaff.id)
        .outerjoin(User, SalonStaff.user_id == User.id)
        .outerjoin(Salon, SalonStaff.salon_id == Salon.id)
    )
    return query, staff_name


def _to_identity(row) -> StaffAvailabilityWithStaff:
    slot = row[0]
    return StaffAvailabilityWithStaff(
        id=slot.id,
        salon_staff_id=slot.salon_staff_id,
        day_of_week=slot.day_of_week,
        start_time=slot.start_time,
        end_time=slot.end_time,
        is_available=slot.is_available,
        staff_name=row.staff_name,
        staff_email=row.staff_email,
        first_name=row.first_name,
        last_name=row.last_name,
        contact_number=row.contact_number,
        role=row.role,
        salon_id=row.salon_id,
        salon_name=row.salon_name,
    )


DAY_THEN_START = (StaffAvailability.day_of_week.asc(), StaffAvailability.start_time.asc())


def _apply_filters(query: Query, filters: StaffAvailabilityFilters) -> Query:
    if filters.salon_staff_id:
        query = query.filter(StaffAvailability.salon_staff_id == filters.salon_staff_id)
    if filters.day_of_week is not None:
        query = query.filter(StaffAvailability.day_of_week == filters.day_of_week)
    if filters.is_available is not None:
        query = query.filter(StaffAvailability.is_available.is_(filters.is_available))
    return query


def _paginate(query: Query, pagination: PaginationParams, order_by: list) -> tuple[list, int]:
    total = query.order_by(None).count()
    rows = query.order_by(*order_by).offset(pagination.offset).limit(pagination.limit).all()
    return rows, total


class StaffAvailabilityRepository:
    """Repository for staff availability database operations"""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    def create(db: Session, commit: bool = True, **slot_data) -> StaffAvailability:
        """Insert one slot"""
        with store_errors(db, "Failed to create staff availability"):
            slot = StaffAvailability(
                **{k: v for k, v in slot_data.items() if k in SLOT_FIELDS and v is not None}
            )
            db.add(slot)
            if commit:
                db.commit()
                db.refresh(slot)
            else:
                db.flush()
            return slot

    @staticmethod
    def create_bulk(
        db: Session, slots: list[dict[str, Any]], commit: bool = True
    ) -> list[StaffAvailability]:
        """Insert all slots in one transaction; nothing is kept if any insert fails"""
        if not slots:
            return []

        with store_errors(db, "Failed to create bulk staff availability"):
            rows = [
                StaffAvailability(
                    **{k: v for k, v in data.items() if k in SLOT_FIELDS and v is not None}
                )
                for data in slots
            ]
            db.add_all(rows)
            db.flush()
            if commit:
                db.commit()
            logger.info(f"📅 Inserted {len(rows)} availability slots")
            return rows

    @staticmethod
    def update(
        db: Session, availability_id: str, updates: dict[str, Any], commit: bool = True
    ) -> Optional[StaffAvailability]:
        """Apply only the provided fields. Returns None when the slot does not exist."""
        with store_errors(db, "Failed to update staff availability"):
            slot = db.query(StaffAvailability).filter(StaffAvailability.id == availability_id).first()
            if not slot:
                return None

            changes = {k: v for k, v in updates.items() if k in SLOT_FIELDS and v is not None}
            if not changes:
                return slot

            for key, value in changes.items():
                setattr(slot, key, value)

            if commit:
                db.commit()
                db.refresh(slot)
            else:
                db.flush()
            return slot

    @staticmethod
    def delete_by_id(db: Session, availability_id: str, commit: bool = True) -> Optional[str]:
        with store_errors(db, "Failed to delete staff availability"):
            deleted = (
                db.query(StaffAvailability)
                .filter(StaffAvailability.id == availability_id)
                .delete(synchronize_session="fetch")
            )
            if commit:
                db.commit()
            return availability_id if deleted else None

    @staticmethod
    def delete_by_staff(db: Session, salon_staff_id: str, commit: bool = True) -> int:
        """Remove every slot of a staff member. Returns the number of rows removed."""
        with store_errors(db, "Failed to delete staff availability"):
            deleted = (
                db.query(StaffAvailability)
                .filter(StaffAvailability.salon_staff_id == salon_staff_id)
                .delete(synchronize_session="fetch")
            )
            if commit:
                db.commit()
            return deleted

    @staticmethod
    def delete_by_staff_and_day(
        db: Session, salon_staff_id: str, day_of_week: int, commit: bool = True
    ) -> bool:
        with store_errors(db, "Failed to delete staff availability for specific day"):
            deleted = (
                db.query(StaffAvailability)
                .filter(
                    StaffAvailability.salon_staff_id == salon_staff_id,
                    StaffAvailability.day_of_week == day_of_week,
                )
                .delete(synchronize_session="fetch")
            )
            if commit:
                db.commit()
            return deleted > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def find_by_id(db: Session, availability_id: str) -> Optional[StaffAvailability]:
        with store_errors(db, "Failed to find staff availability by id"):
            return db.query(StaffAvailability).filter(StaffAvailability.id == availability_id).first()

    @staticmethod
    def find_by_staff(db: Session, salon_staff_id: str) -> list[StaffAvailability]:
        """All slots of a staff member, by day then start time"""
        with store_errors(db, "Failed to find staff availability by salon staff ID"):
            return (
                db.query(StaffAvailability)
                .filter(StaffAvailability.salon_staff_id == salon_staff_id)
                .order_by(*DAY_THEN_START)
                .all()
            )

    @staticmethod
    def find_by_day(db: Session, day_of_week: int) -> list[StaffAvailability]:
        """Available slots on a given day, by start time"""
        with store_errors(db, "Failed to find staff availability by day of week"):
            return (
                db.query(StaffAvailability)
                .filter(
                    StaffAvailability.day_of_week == day_of_week,
                    StaffAvailability.is_available.is_(True),
                )
                .order_by(StaffAvailability.start_time.asc())
                .all()
            )

    @staticmethod
    def staff_exists(db: Session, salon_staff_id: str) -> bool:
        with store_errors(db, "Failed to check salon staff existence"):
            return (
                db.query(SalonStaff.id).filter(SalonStaff.id == salon_staff_id).first() is not None
            )

    @staticmethod
    def find_staff_name(db: Session, salon_staff_id: str) -> Optional[str]:
        with store_errors(db, "Failed to look up staff name"):
            row = (
                db.query(_staff_name_expr().label("staff_name"))
                .select_from(SalonStaff)
                .outerjoin(User, SalonStaff.user_id == User.id)
                .filter(SalonStaff.id == salon_staff_id)
                .first()
            )
            return row.staff_name if row else None

    @staticmethod
    def find_weekly(db: Session, salon_staff_id: str) -> WeeklyAvailability:
        """Group a staff member's slots by day of week"""
        slots = StaffAvailabilityRepository.find_by_staff(db, salon_staff_id)
        staff_name = StaffAvailabilityRepository.find_staff_name(db, salon_staff_id)

        availability: dict[int, list[StaffAvailabilityResponse]] = {}
        for slot in slots:
            availability.setdefault(slot.day_of_week, []).append(
                StaffAvailabilityResponse.model_validate(slot)
            )

        return WeeklyAvailability(
            salon_staff_id=salon_staff_id, staff_name=staff_name, availability=availability
        )

    @staticmethod
    def find_with_identity(
        db: Session, filters: Optional[StaffAvailabilityFilters] = None
    ) -> list[StaffAvailabilityWithStaff]:
        """Slots with staff and salon details, by day then start time"""
        with store_errors(db, "Failed to find staff availability with staff details"):
            query, _ = _identity_query(db)
            rows = (
                _apply_filters(query, filters or StaffAvailabilityFilters())
                .order_by(*DAY_THEN_START)
                .all()
            )
            return [_to_identity(row) for row in rows]

    @staticmethod
    def find_with_identity_page(
        db: Session,
        filters: Optional[StaffAvailabilityFilters] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> dict:
        """Paginated variant of find_with_identity"""
        pagination = resolve_pagination(pagination)
        with store_errors(db, "Failed to find staff availability with staff details"):
            query, _ = _identity_query(db)
            query = _apply_filters(query, filters or StaffAvailabilityFilters())
            rows, total = _paginate(query, pagination, list(DAY_THEN_START))
            return create_page([_to_identity(row) for row in rows], total, pagination)

    @staticmethod
    def find_all(
        db: Session,
        filters: Optional[StaffAvailabilityFilters] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> dict:
        """Paginated slots without identity details"""
        pagination = resolve_pagination(pagination)
        with store_errors(db, "Failed to find staff availability with filters"):
            query = _apply_filters(
                db.query(StaffAvailability), filters or StaffAvailabilityFilters()
            )
            rows, total = _paginate(query, pagination, list(DAY_THEN_START))
            return create_page(rows, total, pagination)

    @staticmethod
    def search(
        db: Session,
        criteria: Optional[StaffAvailabilitySearch] = None,
        pagination: Optional[PaginationParams] = None,
        match_any_name: bool = False,
    ) -> dict:
        """
        Paginated search over slots with identity details.

        A time range matches any slot that overlaps it, endpoints included
        (slot.start_time <= time_end and slot.end_time >= time_start). With
        match_any_name, staff_name and salon_name are OR-ed instead of AND-ed.
        """
        criteria = criteria or StaffAvailabilitySearch()
        pagination = resolve_pagination(pagination)
        with store_errors(db, "Failed to search staff availability"):
            query, staff_name = _identity_query(db)

            name_conditions = []
            if criteria.staff_name:
                name_conditions.append(
                    staff_name.ilike(_contains_pattern(criteria.staff_name), escape="\\")
                )
            if criteria.salon_name:
                name_conditions.append(
                    Salon.name.ilike(_contains_pattern(criteria.salon_name), escape="\\")
                )
            if name_conditions:
                combine = or_ if match_any_name else and_
                query = query.filter(combine(*name_conditions))

            if criteria.day_of_week is not None:
                query = query.filter(StaffAvailability.day_of_week == criteria.day_of_week)

            if criteria.time_start and criteria.time_end:
                query = query.filter(
                    StaffAvailability.start_time <= criteria.time_end,
                    StaffAvailability.end_time >= criteria.time_start,
                )
            elif criteria.time_start:
                query = query.filter(StaffAvailability.end_time >= criteria.time_start)
            elif criteria.time_end:
                query = query.filter(StaffAvailability.start_time <= criteria.time_end)

            if criteria.is_available is not None:
                query = query.filter(StaffAvailability.is_available.is_(criteria.is_available))

            rows, total = _paginate(
                query,
                pagination,
                [
                    StaffAvailability.day_of_week.asc(),
                    StaffAvailability.start_time.asc(),
                    staff_name.asc(),
                ],
            )
            return create_page([_to_identity(row) for row in rows], total, pagination)

    @staticmethod
    def search_available_in_window(
        db: Session, criteria: AvailableStaffSearch, pagination: Optional[PaginationParams] = None
    ) -> dict:
        """
        Available slots that cover the whole requested window on a day.

        Containment, not overlap: slot.start_time <= time_start and
        slot.end_time >= time_end. Ordered by start time, then staff name.
        """
        pagination = resolve_pagination(pagination)
        with store_errors(db, "Failed to search available staff"):
            query, staff_name = _identity_query(db)
            query = query.filter(
                StaffAvailability.is_available.is_(True),
                StaffAvailability.day_of_week == criteria.day_of_week,
                StaffAvailability.start_time <= criteria.time_start,
                StaffAvailability.end_time >= criteria.time_end,
            )

            if criteria.staff_name:
                query = query.filter(
                    staff_name.ilike(_contains_pattern(criteria.staff_name), escape="\\")
                )
            if criteria.salon_name:
                query = query.filter(
                    Salon.name.ilike(_contains_pattern(criteria.salon_name), escape="\\")
                )

            rows, total = _paginate(
                query, pagination, [StaffAvailability.start_time.asc(), staff_name.asc()]
            )
            return create_page([_to_identity(row) for row in rows], total, pagination)

    @staticmethod
    def has_covering_slot(
        db: Session, salon_staff_id: str, day_of_week: int, time_start: str, time_end: str
    ) -> bool:
        """True if the staff member has an available slot covering the window"""
        with store_errors(db, "Failed to check staff availability"):
            return (
                db.query(StaffAvailability.id)
                .filter(
                    StaffAvailability.salon_staff_id == salon_staff_id,
                    StaffAvailability.day_of_week == day_of_week,
                    StaffAvailability.is_available.is_(True),
                    StaffAvailability.start_time <= time_start,
                    StaffAvailability.end_time >= time_end,
                )
                .first()
                is not None
            )
