"""Staff availability router - FastAPI endpoints for weekly availability"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ... import config
from ...database import get_db
from ...shared.pagination import PaginationParams
from .schemas import (
    DefaultWeeklyTemplate,
    StaffAvailabilityCreate,
    StaffAvailabilityFilters,
    StaffAvailabilityPage,
    StaffAvailabilityResponse,
    StaffAvailabilitySearch,
    StaffAvailabilityUpdate,
    StaffAvailabilityWithStaff,
    StaffAvailabilityWithStaffPage,
    WeeklyAvailability,
    WeeklyAvailabilityCreate,
    WeeklyAvailabilityReplace,
)
from .service import StaffAvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/staff-availability", tags=["Staff Availability"])


def get_staff_availability_service(db: Session = Depends(get_db)) -> StaffAvailabilityService:
    """Dependency injection for StaffAvailabilityService"""
    return StaffAvailabilityService(db)


def get_pagination(
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_LIMIT, ge=1, le=config.MAX_PAGE_LIMIT),
) -> PaginationParams:
    return PaginationParams(page=page, limit=limit)


def _slots(rows) -> list[StaffAvailabilityResponse]:
    return [StaffAvailabilityResponse.model_validate(row) for row in rows]


# ============================================================================
# COLLECTION AND SEARCH
# ============================================================================


@router.get("", response_model=StaffAvailabilityWithStaffPage)
async def list_staff_availability(
    salon_staff_id: Optional[str] = Query(None),
    day_of_week: Optional[int] = Query(None),
    is_available: Optional[bool] = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    """Filtered list of slots with staff and salon details"""
    return service.list_with_staff(
        StaffAvailabilityFilters(
            salon_staff_id=salon_staff_id, day_of_week=day_of_week, is_available=is_available
        ),
        pagination,
    )


@router.get("/slots", response_model=StaffAvailabilityPage)
async def list_slots(
    salon_staff_id: Optional[str] = Query(None),
    day_of_week: Optional[int] = Query(None),
    is_available: Optional[bool] = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    """Paginated slots without identity details"""
    page = service.find_all(
        StaffAvailabilityFilters(
            salon_staff_id=salon_staff_id, day_of_week=day_of_week, is_available=is_available
        ),
        pagination,
    )
    return StaffAvailabilityPage(**{**page, "data": _slots(page["data"])})


@router.get("/search", response_model=StaffAvailabilityWithStaffPage)
async def search_staff_availability(
    staff_name: Optional[str] = Query(None),
    salon_name: Optional[str] = Query(None),
    day_of_week: Optional[int] = Query(None),
    time_start: Optional[str] = Query(None),
    time_end: Optional[str] = Query(None),
    is_available: Optional[bool] = Query(None),
    pagination: PaginationParams = Depends(get_pagination),
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    """Search slots by staff/salon name, day and overlapping time range"""
    criteria = StaffAvailabilitySearch(
        staff_name=staff_name,
        salon_name=salon_name,
        day_of_week=day_of_week,
        time_start=time_start,
        time_end=time_end,
        is_available=is_available,
    )
    return service.search(criteria, pagination)


@router.get("/quick-search", response_model=StaffAvailabilityWithStaffPage)
async def quick_search_staff(
    q: str = Query(""),
    pagination: PaginationParams = Depends(get_pagination),
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    """Match a single query against staff name or salon name"""
    return service.quick_search(q, pagination)


@router.get("/schedule", response_model=StaffAvailabilityWithStaffPage)
async def get_staff_schedule(
    staff_name: str = Query(""),
    pagination: PaginationParams = Depends(get_pagination),
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    """Available slots for staff whose name matches"""
    return service.schedule_for_staff_name(staff_name, pagination)


@router.get("/available", response_model=StaffAvailabilityWithStaffPage)
async def find_available_staff_at_time(
    day_of_week: int = Query(...),
    time_slot: str = Query(...),
    duration: int = Query(60),
    pagination: PaginationParams = Depends(get_pagination),
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    """Staff free for `duration` minutes starting at `time_slot`"""
    return service.find_free_staff_at_time(day_of_week, time_slot, duration, pagination)


@router.get("/free", response_model=list[StaffAvailabilityWithStaff])
async def find_free_staff_for_window(
    day_of_week: int = Query(...),
    start_time: str = Query(...),
    end_time: str = Query(...),
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    """Staff whose slot fully contains [start_time, end_time]"""
    return service.find_free_staff_exact_window(day_of_week, start_time, end_time)


@router.get("/day/{day_of_week}", response_model=list[StaffAvailabilityResponse])
async def get_availability_by_day(
    day_of_week: int,
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    return _slots(service.get_availability_by_day(day_of_week))


# ============================================================================
# PER-STAFF OPERATIONS
# ============================================================================


@router.get("/staff/{salon_staff_id}", response_model=list[StaffAvailabilityResponse])
async def get_staff_availability(
    salon_staff_id: str,
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    return _slots(service.get_staff_availability(salon_staff_id))


@router.get("/staff/{salon_staff_id}/weekly", response_model=WeeklyAvailability)
async def get_weekly_availability(
    salon_staff_id: str,
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    return service.get_weekly_availability(salon_staff_id)


@router.post(
    "/staff/{salon_staff_id}/default",
    response_model=list[StaffAvailabilityResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_default_weekly_availability(
    salon_staff_id: str,
    data: Optional[DefaultWeeklyTemplate] = None,
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    """Seed a staff member with one slot per day using the default shift hours"""
    data = data or DefaultWeeklyTemplate()
    return _slots(
        service.create_default_weekly_template(salon_staff_id, data.start_time, data.end_time)
    )


@router.delete("/staff/{salon_staff_id}")
async def clear_staff_availability(
    salon_staff_id: str,
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    removed = service.clear_staff_availability(salon_staff_id)
    return {"message": "Staff availability cleared", "deletedCount": removed}


@router.delete("/staff/{salon_staff_id}/day/{day_of_week}")
async def clear_day_availability(
    salon_staff_id: str,
    day_of_week: int,
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    removed = service.clear_day(salon_staff_id, day_of_week)
    return {"message": "Day availability cleared" if removed else "No availability found", "deleted": removed}


@router.post(
    "/weekly",
    response_model=list[StaffAvailabilityResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_weekly_availability(
    data: WeeklyAvailabilityCreate,
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    return _slots(service.create_weekly_template(data.salon_staff_id, data.availability))


@router.put("/weekly/{salon_staff_id}", response_model=list[StaffAvailabilityResponse])
async def replace_weekly_availability(
    salon_staff_id: str,
    data: WeeklyAvailabilityReplace,
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    """Replace the whole week in one transaction"""
    return _slots(service.replace_weekly_template(salon_staff_id, data.availability))


# ============================================================================
# SINGLE SLOT CRUD
# ============================================================================


@router.post("", response_model=StaffAvailabilityResponse, status_code=status.HTTP_201_CREATED)
async def create_staff_availability(
    data: StaffAvailabilityCreate,
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    return StaffAvailabilityResponse.model_validate(service.create(data))


@router.get("/{availability_id}", response_model=StaffAvailabilityResponse)
async def get_staff_availability_slot(
    availability_id: str,
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    return StaffAvailabilityResponse.model_validate(service.get(availability_id))


@router.put("/{availability_id}", response_model=StaffAvailabilityResponse)
async def update_staff_availability(
    availability_id: str,
    data: StaffAvailabilityUpdate,
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    return StaffAvailabilityResponse.model_validate(service.update(availability_id, data))


@router.delete("/{availability_id}")
async def delete_staff_availability(
    availability_id: str,
    service: StaffAvailabilityService = Depends(get_staff_availability_service),
):
    service.delete(availability_id)
    return {"message": "Staff availability deleted successfully"}
