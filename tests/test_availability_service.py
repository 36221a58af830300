import pytest

from glowbridge.domain.availability.schemas import (
    AvailableStaffSearch,
    StaffAvailabilityCreate,
    StaffAvailabilityFilters,
    StaffAvailabilitySearch,
    StaffAvailabilityUpdate,
    WeeklySlotInput,
)
from glowbridge.domain.availability.service import StaffAvailabilityService
from glowbridge.errors import (
    NotFoundError,
    StoreError,
    TimeFormatError,
    TimeOrderError,
    TimeRangeError,
    ValidationError,
)
from glowbridge.models import StaffAvailability


@pytest.fixture
def service(db_session):
    return StaffAvailabilityService(db_session)


def _create(staff, day=2, start="09:00", end="17:00", **kwargs):
    return StaffAvailabilityCreate(
        salon_staff_id=staff.id, day_of_week=day, start_time=start, end_time=end, **kwargs
    )


def _week(*entries):
    return [WeeklySlotInput(day_of_week=d, start_time=s, end_time=e) for d, s, e in entries]


class TestCreate:
    def test_stores_canonical_times(self, service, staff):
        slot = service.create(_create(staff, start="9:30", end="12:00"))

        assert slot.start_time == "09:30"
        assert slot.end_time == "12:00"
        assert slot.is_available is True

    @pytest.mark.parametrize("start,end", [("10:00", "10:00"), ("11:00", "10:00")])
    def test_rejects_empty_or_inverted_window(self, service, staff, db_session, start, end):
        with pytest.raises(ValidationError, match="Start time must be before end time"):
            service.create(_create(staff, start=start, end=end))

        assert db_session.query(StaffAvailability).count() == 0

    def test_rejects_bad_time_format(self, service, staff):
        with pytest.raises(TimeFormatError, match="Invalid end_time format: 25:00"):
            service.create(_create(staff, end="25:00"))

    @pytest.mark.parametrize("day", [-1, 7])
    def test_rejects_day_out_of_range(self, service, staff, day):
        with pytest.raises(
            ValidationError, match=r"Day of week must be between 0 \(Sunday\) and 6 \(Saturday\)"
        ):
            service.create(_create(staff, day=day))

    @pytest.mark.parametrize("day", [0, 6])
    def test_accepts_week_boundaries(self, service, staff, day):
        assert service.create(_create(staff, day=day)).day_of_week == day

    def test_requires_staff_id(self, service):
        data = StaffAvailabilityCreate(
            salon_staff_id="", day_of_week=1, start_time="09:00", end_time="10:00"
        )
        with pytest.raises(ValidationError, match="Missing required fields: salon_staff_id"):
            service.create(data)

    def test_rejects_unknown_staff(self, service, db_session):
        data = StaffAvailabilityCreate(
            salon_staff_id="ghost", day_of_week=1, start_time="09:00", end_time="10:00"
        )
        with pytest.raises(NotFoundError, match="Salon staff not found"):
            service.create(data)
        with pytest.raises(NotFoundError):
            service.create_default_weekly_template("ghost")

        assert db_session.query(StaffAvailability).count() == 0


class TestUpdateAndDelete:
    def test_partial_update_is_checked_against_stored_times(self, service, staff, make_slot):
        slot = make_slot(staff, 2, "09:00", "12:00")

        with pytest.raises(TimeOrderError):
            service.update(slot.id, StaffAvailabilityUpdate(start_time="13:00"))

        with pytest.raises(TimeOrderError):
            service.update(slot.id, StaffAvailabilityUpdate(end_time="08:00"))

        assert service.get(slot.id).start_time == "09:00"

    def test_partial_update_applies_given_fields(self, service, staff, make_slot):
        slot = make_slot(staff, 2, "09:00", "12:00")

        updated = service.update(slot.id, StaffAvailabilityUpdate(end_time="9:45", is_available=False))

        assert updated.end_time == "09:45"
        assert updated.start_time == "09:00"
        assert updated.is_available is False

    def test_update_rejects_bad_day(self, service, staff, make_slot):
        slot = make_slot(staff, 2, "09:00", "12:00")

        with pytest.raises(ValidationError):
            service.update(slot.id, StaffAvailabilityUpdate(day_of_week=9))

    def test_update_rejects_unknown_staff(self, service, staff, make_slot):
        slot = make_slot(staff, 2, "09:00", "12:00")

        with pytest.raises(NotFoundError, match="Salon staff not found"):
            service.update(slot.id, StaffAvailabilityUpdate(salon_staff_id="ghost"))

        assert service.get(slot.id).salon_staff_id == staff.id

    def test_update_moves_slot_to_existing_staff(self, service, staff, make_staff, make_slot):
        slot = make_slot(staff, 2, "09:00", "12:00")
        bea = make_staff(name="Bea Cruz")

        updated = service.update(slot.id, StaffAvailabilityUpdate(salon_staff_id=bea.id))

        assert updated.salon_staff_id == bea.id

    def test_missing_slot(self, service):
        with pytest.raises(NotFoundError, match="Staff Availability not found"):
            service.get("missing")
        with pytest.raises(NotFoundError):
            service.update("missing", StaffAvailabilityUpdate(is_available=False))
        with pytest.raises(NotFoundError):
            service.delete("missing")

    def test_delete(self, service, staff, make_slot):
        slot_id = make_slot(staff, 2, "09:00", "12:00").id

        assert service.delete(slot_id) == slot_id
        with pytest.raises(NotFoundError):
            service.get(slot_id)


class TestWeeklyTemplates:
    def test_default_template_covers_every_day_in_order(self, service, staff):
        service.create_default_weekly_template(staff.id)

        slots = service.get_staff_availability(staff.id)

        assert [s.day_of_week for s in slots] == list(range(7))
        assert all((s.start_time, s.end_time) == ("09:00", "17:00") for s in slots)
        assert all(s.is_available for s in slots)

    def test_default_template_custom_hours(self, service, staff):
        created = service.create_default_weekly_template(staff.id, "10:00", "18:30")

        assert len(created) == 7
        assert {(s.start_time, s.end_time) for s in created} == {("10:00", "18:30")}

    def test_one_invalid_slot_persists_nothing(self, service, staff, db_session):
        slots = _week((1, "09:00", "12:00"), (2, "09:00", "12:00"), (3, "14:00", "13:00"))

        with pytest.raises(TimeOrderError):
            service.create_weekly_template(staff.id, slots)

        assert db_session.query(StaffAvailability).count() == 0

    def test_invalid_day_reports_its_position(self, service, staff):
        slots = _week((1, "09:00", "12:00"), (8, "09:00", "12:00"))

        with pytest.raises(ValidationError, match="Invalid day of week: 8") as exc_info:
            service.create_weekly_template(staff.id, slots)

        assert exc_info.value.details["index"] == 1

    def test_empty_template_rejected(self, service, staff):
        with pytest.raises(ValidationError, match="At least one availability slot is required"):
            service.create_weekly_template(staff.id, [])

    def test_replace_swaps_the_whole_week(self, service, staff):
        service.create_default_weekly_template(staff.id)

        service.replace_weekly_template(
            staff.id, _week((1, "10:00", "14:00"), (1, "15:00", "19:00"))
        )

        weekly = service.get_weekly_availability(staff.id)
        assert list(weekly.availability) == [1]
        assert [s.end_time for s in weekly.availability[1]] == ["14:00", "19:00"]

    def test_invalid_replacement_keeps_previous_week(self, service, staff):
        service.create_default_weekly_template(staff.id)

        with pytest.raises(ValidationError):
            service.replace_weekly_template(staff.id, _week((1, "10:00", "9:00")))

        assert len(service.get_staff_availability(staff.id)) == 7

    def test_store_failure_during_replace_keeps_previous_week(self, service, staff, monkeypatch):
        service.create_default_weekly_template(staff.id)

        def failing_create_bulk(db, slots, commit=True):
            raise StoreError("Failed to create bulk staff availability")

        monkeypatch.setattr(service.repo, "create_bulk", failing_create_bulk)

        with pytest.raises(StoreError):
            service.replace_weekly_template(staff.id, _week((1, "10:00", "14:00")))

        slots = service.get_staff_availability(staff.id)
        assert len(slots) == 7
        assert {(s.start_time, s.end_time) for s in slots} == {("09:00", "17:00")}

    def test_clear(self, service, staff):
        service.create_default_weekly_template(staff.id)

        assert service.clear_day(staff.id, 3) is True
        assert service.clear_day(staff.id, 3) is False
        assert service.clear_staff_availability(staff.id) == 6


class TestSearches:
    def test_exact_window_uses_containment(self, service, staff, make_slot):
        make_slot(staff, 2, "09:00", "12:00")

        inside = service.find_free_staff_exact_window(2, "10:00", "11:00")
        straddling = service.find_free_staff_exact_window(2, "08:00", "11:00")

        assert [r.salon_staff_id for r in inside] == [staff.id]
        assert straddling == []

    def test_free_at_time_within_slot(self, service, staff, make_slot):
        make_slot(staff, 2, "09:00", "17:00")

        fits = service.find_free_staff_at_time(2, "10:00", 45)
        runs_over = service.find_free_staff_at_time(2, "16:30", 60)

        assert [r.staff_name for r in fits["data"]] == ["Alice Smith"]
        assert runs_over["total"] == 0

    @pytest.mark.parametrize("minutes", [60, 30])
    def test_free_at_time_cannot_reach_midnight(self, service, minutes):
        with pytest.raises(TimeRangeError):
            service.find_free_staff_at_time(2, "23:30", minutes)

    @pytest.mark.parametrize(
        "minutes,message",
        [(0, "Duration must be positive"), (-15, "Duration must be positive"), (481, "cannot exceed 480")],
    )
    def test_free_at_time_duration_bounds(self, service, minutes, message):
        with pytest.raises(ValidationError, match=message):
            service.find_free_staff_at_time(2, "10:00", minutes)

    def test_free_at_time_rejects_bad_day(self, service):
        with pytest.raises(ValidationError):
            service.find_free_staff_at_time(7, "10:00", 30)

    def test_booking_search_normalizes_times(self, service, staff, make_slot):
        make_slot(staff, 2, "09:00", "17:00")

        page = service.search_available_for_booking(
            AvailableStaffSearch(day_of_week=2, time_start="9:00", time_end="9:30")
        )

        assert page["total"] == 1

    def test_search_validates_time_range(self, service):
        with pytest.raises(TimeOrderError):
            service.search(StaffAvailabilitySearch(time_start="12:00", time_end="11:00"))

    def test_quick_search_and_schedule(self, service, staff, make_staff, make_slot):
        make_slot(staff, 1, "09:00", "12:00")
        make_slot(staff, 2, "09:00", "12:00", is_available=False)
        make_slot(make_staff(name="Bea Cruz"), 1, "13:00", "17:00")

        assert service.quick_search("studio")["total"] == 3
        assert service.quick_search("alice")["total"] == 2
        assert service.schedule_for_staff_name("alice")["total"] == 1

        with pytest.raises(ValidationError, match="Search query is required"):
            service.quick_search("   ")

    def test_with_staff_filters(self, service, staff, make_staff, make_slot):
        make_slot(staff, 1, "09:00", "12:00")
        make_slot(make_staff(name="Bea Cruz"), 1, "13:00", "17:00", is_available=False)

        rows = service.get_availability_with_staff(
            StaffAvailabilityFilters(day_of_week=1, is_available=True)
        )

        assert [(r.staff_name, r.salon_name) for r in rows] == [("Alice Smith", "Glow Studio")]
        with pytest.raises(ValidationError):
            service.get_availability_with_staff(StaffAvailabilityFilters(day_of_week=8))

    def test_is_staff_free(self, service, staff, make_slot):
        make_slot(staff, 2, "09:00", "12:00")

        assert service.is_staff_free(staff.id, 2, "9:00", "12:00")
        assert not service.is_staff_free(staff.id, 2, "11:00", "12:30")
        assert not service.is_staff_free(staff.id, 3, "09:00", "10:00")
