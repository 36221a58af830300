from datetime import datetime, timedelta, timezone

import pytest

from glowbridge.domain.appointments.schemas import AppointmentCreate, AppointmentFilters
from glowbridge.domain.appointments.service import AppointmentService
from glowbridge.errors import ConflictError, NotFoundError, ValidationError
from glowbridge.models import Appointment, Salon

# 2030-01-01 is a Tuesday (day_of_week 2)
TUESDAY = datetime(2030, 1, 1)
NOW = datetime(2029, 12, 31, 12, 0)


@pytest.fixture
def service(db_session):
    return AppointmentService(db_session, clock=lambda: NOW)


@pytest.fixture
def tuesday_shift(staff, make_slot):
    make_slot(staff, 2, "09:00", "17:00")
    return staff


@pytest.fixture
def book(customer, haircut):
    """Factory building an AppointmentCreate for TUESDAY between two "HH:MM" times"""

    def _book(start, end, staff=None, day=TUESDAY, **kwargs):
        start_h, start_m = map(int, start.split(":"))
        end_h, end_m = map(int, end.split(":"))
        fields = dict(
            user_id=customer.id,
            service_id=haircut.id,
            salon_staff_id=staff.id if staff else None,
            start_at=day.replace(hour=start_h, minute=start_m),
            end_at=day.replace(hour=end_h, minute=end_m),
            payment_type="card",
            amount=45.0,
        )
        fields.update(kwargs)
        return AppointmentCreate(**fields)

    return _book


class TestBooking:
    def test_books_inside_an_available_slot(self, service, book, tuesday_shift):
        appointment = service.create(book("10:00", "11:00", tuesday_shift))

        assert appointment.id
        assert appointment.status == "pending"
        assert appointment.salon_staff_id == tuesday_shift.id

    def test_rejects_time_outside_weekly_availability(self, service, book, tuesday_shift, db_session):
        with pytest.raises(ConflictError, match="not available") as exc_info:
            service.create(book("16:30", "17:30", tuesday_shift))

        assert exc_info.value.status_code == 409
        assert db_session.query(Appointment).count() == 0

    def test_rejects_day_without_availability(self, service, book, tuesday_shift):
        wednesday = TUESDAY + timedelta(days=1)

        with pytest.raises(ConflictError):
            service.create(book("10:00", "11:00", tuesday_shift, day=wednesday))

    def test_unavailable_slot_does_not_count(self, service, book, staff, make_slot):
        make_slot(staff, 2, "09:00", "17:00", is_available=False)

        with pytest.raises(ConflictError):
            service.create(book("10:00", "11:00", staff))

    def test_rejects_overlapping_appointment(self, service, book, tuesday_shift, db_session):
        first = service.create(book("10:00", "11:00", tuesday_shift))

        with pytest.raises(ConflictError, match="already has an appointment") as exc_info:
            service.create(book("10:30", "11:30", tuesday_shift))

        assert exc_info.value.details["conflicting_appointment_ids"] == [first.id]
        assert db_session.query(Appointment).count() == 1

    def test_back_to_back_appointments_are_allowed(self, service, book, tuesday_shift):
        service.create(book("10:00", "11:00", tuesday_shift))
        second = service.create(book("11:00", "12:00", tuesday_shift))

        assert second.start_at == TUESDAY.replace(hour=11)

    def test_cancelled_appointment_frees_the_time(self, service, book, tuesday_shift):
        first = service.create(book("10:00", "11:00", tuesday_shift))
        service.cancel(first.id)

        rebooked = service.create(book("10:00", "11:00", tuesday_shift))

        assert rebooked.id != first.id

    def test_other_staff_are_independent(self, service, book, tuesday_shift, make_staff, make_slot):
        bea = make_staff(name="Bea Cruz")
        make_slot(bea, 2, "09:00", "17:00")

        service.create(book("10:00", "11:00", tuesday_shift))
        assert service.create(book("10:00", "11:00", bea)).salon_staff_id == bea.id

    def test_unassigned_booking_skips_staff_checks(self, service, book):
        appointment = service.create(book("21:00", "22:00"))

        assert appointment.salon_staff_id is None

    def test_timezone_offset_is_dropped(self, service, book, tuesday_shift):
        aware = TUESDAY.replace(hour=10, tzinfo=timezone(timedelta(hours=5, minutes=30)))

        appointment = service.create(
            book("10:00", "11:00", tuesday_shift, start_at=aware, end_at=aware + timedelta(hours=1))
        )

        assert appointment.start_at == TUESDAY.replace(hour=10)


class TestBookingValidation:
    def test_end_must_follow_start(self, service, book):
        with pytest.raises(ValidationError, match="end time must be after start time"):
            service.create(book("11:00", "10:00"))

    def test_must_start_in_the_future(self, service, book):
        with pytest.raises(ValidationError, match="must start in the future"):
            service.create(book("10:00", "11:00", day=datetime(2029, 12, 31)))

    def test_negative_amount(self, service, book):
        with pytest.raises(ValidationError, match="Amount cannot be negative"):
            service.create(book("10:00", "11:00", amount=-1))

    def test_unknown_service(self, service, book):
        with pytest.raises(NotFoundError, match="Service not found"):
            service.create(book("10:00", "11:00", service_id="missing"))

    def test_unknown_staff(self, service, book):
        with pytest.raises(NotFoundError, match="Salon staff not found"):
            service.create(book("10:00", "11:00", salon_staff_id="missing"))

    def test_seconds_past_shift_end_are_rejected(self, service, book, tuesday_shift, db_session):
        data = book("16:30", "17:00", tuesday_shift)
        data = data.model_copy(update={"end_at": TUESDAY.replace(hour=17, second=45)})

        with pytest.raises(ValidationError, match="end_at must be on a whole minute"):
            service.create(data)

        assert db_session.query(Appointment).count() == 0

    def test_start_must_be_on_a_whole_minute(self, service, book):
        data = book("10:00", "11:00")
        data = data.model_copy(update={"start_at": TUESDAY.replace(hour=10, microsecond=1)})

        with pytest.raises(ValidationError, match="start_at must be on a whole minute"):
            service.create(data)

    def test_staff_from_another_salon(self, service, book, db_session, make_staff, make_slot):
        other_salon = Salon(name="Other Place")
        db_session.add(other_salon)
        db_session.commit()
        outsider = make_staff(name="Cora Diaz", salon_obj=other_salon)
        make_slot(outsider, 2, "09:00", "17:00")

        with pytest.raises(ValidationError, match="different salons"):
            service.create(book("10:00", "11:00", outsider))

        assert db_session.query(Appointment).count() == 0

    def test_cannot_cross_midnight(self, service, book, tuesday_shift):
        data = book("23:00", "23:30", tuesday_shift)
        data = data.model_copy(update={"end_at": TUESDAY + timedelta(days=1, hours=1)})

        with pytest.raises(ValidationError, match="cannot cross midnight"):
            service.create(data)


class TestLifecycle:
    def test_get_and_list(self, service, book, tuesday_shift):
        later = service.create(book("14:00", "15:00", tuesday_shift))
        earlier = service.create(book("09:00", "10:00", tuesday_shift))

        assert service.get(later.id).id == later.id

        page = service.list_appointments(AppointmentFilters(salon_staff_id=tuesday_shift.id))
        assert [a.id for a in page["data"]] == [earlier.id, later.id]
        assert page["total"] == 2

    def test_get_missing(self, service):
        with pytest.raises(NotFoundError, match="Appointment not found"):
            service.get("missing")

    def test_cancel_is_idempotent(self, service, book):
        appointment = service.create(book("10:00", "11:00"))

        assert service.cancel(appointment.id).status == "cancelled"
        assert service.cancel(appointment.id).status == "cancelled"

        page = service.list_appointments(AppointmentFilters(status="cancelled"))
        assert page["total"] == 1

    def test_completed_appointment_cannot_be_cancelled(self, service, book, db_session):
        appointment = service.create(book("10:00", "11:00"))
        appointment.status = "completed"
        db_session.commit()

        with pytest.raises(ConflictError):
            service.cancel(appointment.id)
