"""Staff availability service - Validation and derived availability queries"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ... import config
from ...database import atomic
from ...errors import NotFoundError, ValidationError
from ...models import StaffAvailability
from ...shared.pagination import PaginationParams
from ...shared.validators import DAY_NAMES, require_fields, require_text, validate_day_of_week
from .repository import StaffAvailabilityRepository
from .schemas import (
    AvailableStaffSearch,
    StaffAvailabilityCreate,
    StaffAvailabilityFilters,
    StaffAvailabilitySearch,
    StaffAvailabilityUpdate,
    StaffAvailabilityWithStaff,
    WeeklyAvailability,
    WeeklySlotInput,
)
from .time_calculator import (
    add_minutes,
    normalize_time,
    range_contains,
    validate_time_order,
)

logger = logging.getLogger(__name__)


class StaffAvailabilityService:
    """
    Service layer for weekly staff availability.

    Every temporal rule is enforced here, before anything is written: day of
    week in 0..6, "HH:MM" times, start strictly before end. Times are stored
    in canonical zero-padded form.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = StaffAvailabilityRepository()

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_staff_id(salon_staff_id: Optional[str]) -> str:
        return require_text(salon_staff_id, "salon_staff_id")

    def _require_existing_staff(self, salon_staff_id: str) -> None:
        if not self.repo.staff_exists(self.db, salon_staff_id):
            raise NotFoundError("Salon staff")

    @staticmethod
    def _validated_window(start_time: str, end_time: str) -> tuple[str, str]:
        start = normalize_time(start_time, "start_time")
        end = normalize_time(end_time, "end_time")
        validate_time_order(start, end)
        return start, end

    def _build_template(self, salon_staff_id: str, slots: list[WeeklySlotInput]) -> list[dict]:
        """Validate every slot of a weekly template and return insert-ready rows"""
        salon_staff_id = self._require_staff_id(salon_staff_id)
        if not slots:
            raise ValidationError("At least one availability slot is required")

        rows = []
        for index, slot in enumerate(slots):
            if slot.day_of_week is None or slot.day_of_week < 0 or slot.day_of_week > 6:
                raise ValidationError(
                    f"Invalid day of week: {slot.day_of_week}",
                    details={"index": index, "field": "day_of_week"},
                )
            start, end = self._validated_window(slot.start_time, slot.end_time)
            rows.append(
                {
                    "salon_staff_id": salon_staff_id,
                    "day_of_week": slot.day_of_week,
                    "start_time": start,
                    "end_time": end,
                    "is_available": True if slot.is_available is None else slot.is_available,
                }
            )

        self._require_existing_staff(salon_staff_id)
        return rows

    # ------------------------------------------------------------------
    # Single slot CRUD
    # ------------------------------------------------------------------

    def create(self, data: StaffAvailabilityCreate) -> StaffAvailability:
        """Create one weekly slot"""
        require_fields(
            data.model_dump(), ["salon_staff_id", "day_of_week", "start_time", "end_time"]
        )
        day_of_week = validate_day_of_week(data.day_of_week)
        start, end = self._validated_window(data.start_time, data.end_time)
        self._require_existing_staff(data.salon_staff_id)

        slot = self.repo.create(
            self.db,
            salon_staff_id=data.salon_staff_id,
            day_of_week=day_of_week,
            start_time=start,
            end_time=end,
            is_available=data.is_available,
        )
        logger.info(
            f"✅ Created availability {slot.id} for staff {data.salon_staff_id}: "
            f"{DAY_NAMES[day_of_week]} {start}-{end}"
        )
        return slot

    def get(self, availability_id: str) -> StaffAvailability:
        slot = self.repo.find_by_id(self.db, availability_id)
        if not slot:
            raise NotFoundError("Staff Availability")
        return slot

    def update(self, availability_id: str, data: StaffAvailabilityUpdate) -> StaffAvailability:
        """
        Apply a partial update.

        When only one of start_time/end_time is given it is checked against
        the stored counterpart, so an update can never invert a slot.
        """
        if not availability_id:
            raise ValidationError("Staff availability ID is required")

        updates = data.model_dump(exclude_unset=True, exclude_none=True)

        if "day_of_week" in updates:
            validate_day_of_week(updates["day_of_week"])
        if "salon_staff_id" in updates:
            updates["salon_staff_id"] = self._require_staff_id(updates["salon_staff_id"])
            self._require_existing_staff(updates["salon_staff_id"])

        if "start_time" in updates:
            updates["start_time"] = normalize_time(updates["start_time"], "start_time")
        if "end_time" in updates:
            updates["end_time"] = normalize_time(updates["end_time"], "end_time")

        if "start_time" in updates and "end_time" in updates:
            validate_time_order(updates["start_time"], updates["end_time"])
        elif "start_time" in updates or "end_time" in updates:
            existing = self.get(availability_id)
            validate_time_order(
                updates.get("start_time", existing.start_time),
                updates.get("end_time", existing.end_time),
            )

        slot = self.repo.update(self.db, availability_id, updates)
        if not slot:
            raise NotFoundError("Staff Availability")
        return slot

    def delete(self, availability_id: str) -> str:
        deleted_id = self.repo.delete_by_id(self.db, availability_id)
        if not deleted_id:
            raise NotFoundError("Staff Availability")
        logger.info(f"🗑️ Deleted availability {deleted_id}")
        return deleted_id

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_staff_availability(self, salon_staff_id: str) -> list[StaffAvailability]:
        return self.repo.find_by_staff(self.db, self._require_staff_id(salon_staff_id))

    def get_weekly_availability(self, salon_staff_id: str) -> WeeklyAvailability:
        return self.repo.find_weekly(self.db, self._require_staff_id(salon_staff_id))

    def get_availability_by_day(self, day_of_week: int) -> list[StaffAvailability]:
        return self.repo.find_by_day(self.db, validate_day_of_week(day_of_week))

    def get_availability_with_staff(
        self, filters: Optional[StaffAvailabilityFilters] = None
    ) -> list[StaffAvailabilityWithStaff]:
        filters = filters or StaffAvailabilityFilters()
        if filters.day_of_week is not None:
            validate_day_of_week(filters.day_of_week)
        return self.repo.find_with_identity(self.db, filters)

    def list_with_staff(
        self,
        filters: Optional[StaffAvailabilityFilters] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> dict:
        filters = filters or StaffAvailabilityFilters()
        if filters.day_of_week is not None:
            validate_day_of_week(filters.day_of_week)
        return self.repo.find_with_identity_page(self.db, filters, pagination)

    def find_all(
        self,
        filters: Optional[StaffAvailabilityFilters] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> dict:
        filters = filters or StaffAvailabilityFilters()
        if filters.day_of_week is not None:
            validate_day_of_week(filters.day_of_week)
        return self.repo.find_all(self.db, filters, pagination)

    # ------------------------------------------------------------------
    # Weekly templates
    # ------------------------------------------------------------------

    def create_weekly_template(
        self, salon_staff_id: str, slots: list[WeeklySlotInput]
    ) -> list[StaffAvailability]:
        """Validate all slots, then insert them in one transaction"""
        rows = self._build_template(salon_staff_id, slots)
        created = self.repo.create_bulk(self.db, rows)
        logger.info(f"📅 Created weekly availability for staff {salon_staff_id} ({len(created)} slots)")
        return created

    def create_default_weekly_template(
        self,
        salon_staff_id: str,
        start_time: Optional[str] = None,
        end_time: Optional[str] = None,
    ) -> list[StaffAvailability]:
        """One slot per day, Sunday through Saturday, all marked available"""
        start_time = start_time or config.DEFAULT_SHIFT_START
        end_time = end_time or config.DEFAULT_SHIFT_END
        slots = [
            WeeklySlotInput(day_of_week=day, start_time=start_time, end_time=end_time)
            for day in range(7)
        ]
        return self.create_weekly_template(salon_staff_id, slots)

    def replace_weekly_template(
        self, salon_staff_id: str, slots: list[WeeklySlotInput]
    ) -> list[StaffAvailability]:
        """
        Replace a staff member's whole week.

        The delete and the inserts commit together; if anything fails the
        previous week is left untouched.
        """
        rows = self._build_template(salon_staff_id, slots)

        with atomic(self.db, "Failed to replace weekly availability"):
            removed = self.repo.delete_by_staff(self.db, salon_staff_id, commit=False)
            created = self.repo.create_bulk(self.db, rows, commit=False)

        logger.info(
            f"🔄 Replaced weekly availability for staff {salon_staff_id}: "
            f"{removed} removed, {len(created)} created"
        )
        return created

    def clear_staff_availability(self, salon_staff_id: str) -> int:
        removed = self.repo.delete_by_staff(self.db, self._require_staff_id(salon_staff_id))
        logger.info(f"🗑️ Cleared {removed} availability slots for staff {salon_staff_id}")
        return removed

    def clear_day(self, salon_staff_id: str, day_of_week: int) -> bool:
        salon_staff_id = self._require_staff_id(salon_staff_id)
        day_of_week = validate_day_of_week(day_of_week)
        removed = self.repo.delete_by_staff_and_day(self.db, salon_staff_id, day_of_week)
        if removed:
            logger.info(f"🗑️ Cleared {DAY_NAMES[day_of_week]} availability for staff {salon_staff_id}")
        return removed

    # ------------------------------------------------------------------
    # Searches
    # ------------------------------------------------------------------

    def find_free_staff_exact_window(
        self, day_of_week: int, start_time: str, end_time: str
    ) -> list[StaffAvailabilityWithStaff]:
        """
        Staff whose available slot fully contains [start_time, end_time].

        A staff member free 09:00-12:00 matches 10:00-11:00 but not
        08:00-11:00, even though the latter overlaps.
        """
        day_of_week = validate_day_of_week(day_of_week)
        start, end = self._validated_window(start_time, end_time)

        candidates = self.repo.find_with_identity(
            self.db, StaffAvailabilityFilters(day_of_week=day_of_week, is_available=True)
        )
        return [c for c in candidates if range_contains(c.start_time, c.end_time, start, end)]

    def search(
        self,
        criteria: Optional[StaffAvailabilitySearch] = None,
        pagination: Optional[PaginationParams] = None,
    ) -> dict:
        criteria = (criteria or StaffAvailabilitySearch()).model_copy()

        if criteria.day_of_week is not None:
            validate_day_of_week(criteria.day_of_week)
        if criteria.time_start:
            criteria.time_start = normalize_time(criteria.time_start, "time_start")
        if criteria.time_end:
            criteria.time_end = normalize_time(criteria.time_end, "time_end")
        if criteria.time_start and criteria.time_end:
            validate_time_order(criteria.time_start, criteria.time_end)

        return self.repo.search(self.db, criteria, pagination)

    def search_available_for_booking(
        self, criteria: AvailableStaffSearch, pagination: Optional[PaginationParams] = None
    ) -> dict:
        if criteria.day_of_week is None:
            raise ValidationError("Day of week is required")
        if not criteria.time_start or not criteria.time_end:
            raise ValidationError("Start time and end time are required")

        day_of_week = validate_day_of_week(criteria.day_of_week)
        start = normalize_time(criteria.time_start, "time_start")
        end = normalize_time(criteria.time_end, "time_end")
        validate_time_order(start, end)

        normalized = criteria.model_copy(
            update={"day_of_week": day_of_week, "time_start": start, "time_end": end}
        )
        return self.repo.search_available_in_window(self.db, normalized, pagination)

    def find_free_staff_at_time(
        self,
        day_of_week: int,
        time_slot: str,
        duration_minutes: int = 60,
        pagination: Optional[PaginationParams] = None,
    ) -> dict:
        """
        Staff free for `duration_minutes` starting at `time_slot`.

        This is the query appointment scheduling uses. The window may not
        cross midnight.
        """
        day_of_week = validate_day_of_week(day_of_week)
        start = normalize_time(time_slot, "time_slot")

        if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
            raise ValidationError("Duration must be a whole number of minutes")
        if duration_minutes <= 0:
            raise ValidationError("Duration must be positive")
        if duration_minutes > config.MAX_BOOKING_DURATION_MINUTES:
            raise ValidationError(
                f"Duration cannot exceed {config.MAX_BOOKING_DURATION_MINUTES} minutes"
            )

        end = add_minutes(start, duration_minutes)

        return self.search_available_for_booking(
            AvailableStaffSearch(day_of_week=day_of_week, time_start=start, time_end=end),
            pagination,
        )

    def quick_search(self, query: str, pagination: Optional[PaginationParams] = None) -> dict:
        """Match the query against staff name or salon name"""
        text = require_text(query, "Search query")
        return self.repo.search(
            self.db,
            StaffAvailabilitySearch(staff_name=text, salon_name=text),
            pagination,
            match_any_name=True,
        )

    def schedule_for_staff_name(
        self, staff_name: str, pagination: Optional[PaginationParams] = None
    ) -> dict:
        name = require_text(staff_name, "Staff name")
        return self.repo.search(
            self.db, StaffAvailabilitySearch(staff_name=name, is_available=True), pagination
        )

    def is_staff_free(
        self, salon_staff_id: str, day_of_week: int, start_time: str, end_time: str
    ) -> bool:
        """True if one of the staff member's available slots covers the window"""
        salon_staff_id = self._require_staff_id(salon_staff_id)
        day_of_week = validate_day_of_week(day_of_week)
        start, end = self._validated_window(start_time, end_time)
        return self.repo.has_covering_slot(self.db, salon_staff_id, day_of_week, start, end)
