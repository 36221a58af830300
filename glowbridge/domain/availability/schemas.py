"""Staff availability schemas - Pydantic models for requests and results

Request models only check types; the service owns day-range, time-format
and ordering rules so the same checks apply to every caller.
"""

from typing import Optional

from pydantic import BaseModel, Field


class StaffAvailabilityCreate(BaseModel):
    """Schema for creating one weekly slot"""

    salon_staff_id: str
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool = True


class StaffAvailabilityUpdate(BaseModel):
    """Schema for a partial update; only fields that are set are applied"""

    salon_staff_id: Optional[str] = None
    day_of_week: Optional[int] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_available: Optional[bool] = None


class WeeklySlotInput(BaseModel):
    """One entry of a weekly template"""

    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool = True


class WeeklyAvailabilityCreate(BaseModel):
    salon_staff_id: str
    availability: list[WeeklySlotInput]


class WeeklyAvailabilityReplace(BaseModel):
    availability: list[WeeklySlotInput]


class DefaultWeeklyTemplate(BaseModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class StaffAvailabilityFilters(BaseModel):
    salon_staff_id: Optional[str] = None
    day_of_week: Optional[int] = None
    is_available: Optional[bool] = None


class StaffAvailabilitySearch(BaseModel):
    """
    Free-form search.

    time_start/time_end match any slot that overlaps the range; names are
    case-insensitive substring matches.
    """

    staff_name: Optional[str] = None
    salon_name: Optional[str] = None
    day_of_week: Optional[int] = None
    time_start: Optional[str] = None
    time_end: Optional[str] = None
    is_available: Optional[bool] = None


class AvailableStaffSearch(BaseModel):
    """Booking search: the slot must cover the whole [time_start, time_end] window"""

    day_of_week: int
    time_start: str
    time_end: str
    staff_name: Optional[str] = None
    salon_name: Optional[str] = None


class StaffAvailabilityResponse(BaseModel):
    id: str
    salon_staff_id: str
    day_of_week: int
    start_time: str
    end_time: str
    is_available: bool

    class Config:
        from_attributes = True


class StaffAvailabilityWithStaff(StaffAvailabilityResponse):
    """A slot joined with the staff member's and salon's identity"""

    staff_name: Optional[str] = None
    staff_email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    contact_number: Optional[str] = None
    role: Optional[str] = None
    salon_id: Optional[str] = None
    salon_name: Optional[str] = None


class WeeklyAvailability(BaseModel):
    salon_staff_id: str
    staff_name: Optional[str] = None
    # day_of_week -> slots ordered by start_time; days without slots are absent
    availability: dict[int, list[StaffAvailabilityResponse]] = Field(default_factory=dict)


class StaffAvailabilityPage(BaseModel):
    data: list[StaffAvailabilityResponse]
    total: int
    page: int
    limit: int
    totalPages: int


class StaffAvailabilityWithStaffPage(BaseModel):
    data: list[StaffAvailabilityWithStaff]
    total: int
    page: int
    limit: int
    totalPages: int
