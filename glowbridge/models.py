import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a UUID primary key"""
    return str(uuid.uuid4())


class Salon(Base):
    __tablename__ = "salons"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    contact_number = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    staff = relationship("SalonStaff", back_populates="salon", cascade="all, delete-orphan")


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    contact_number = Column(String(50), nullable=True)
    role = Column(String(50), default="customer", nullable=False)  # customer, staff, salon_owner, admin
    created_at = Column(DateTime, server_default=func.now())


class SalonStaff(Base):
    __tablename__ = "salon_staff"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True, index=True)
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)
    # Display name; falls back to the linked user's name when empty
    name = Column(String(255), nullable=True, index=True)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    salon = relationship("Salon", back_populates="staff")
    user = relationship("User")
    availability = relationship(
        "StaffAvailability", back_populates="staff", cascade="all, delete-orphan"
    )


class StaffAvailability(Base):
    """One recurring weekly window in which a staff member can take bookings"""

    __tablename__ = "staff_availability"

    id = Column(String(36), primary_key=True, default=generate_id)
    salon_staff_id = Column(String(36), ForeignKey("salon_staff.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False, index=True)  # 0 = Sunday ... 6 = Saturday
    start_time = Column(String(5), nullable=False)  # HH:MM, zero-padded
    end_time = Column(String(5), nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)

    staff = relationship("SalonStaff", back_populates="availability")


class Service(Base):
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_id)
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Float, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False)
    salon_staff_id = Column(String(36), ForeignKey("salon_staff.id"), nullable=True, index=True)
    note = Column(Text, nullable=True)
    start_at = Column(DateTime, nullable=False, index=True)
    end_at = Column(DateTime, nullable=False)
    payment_type = Column(String(50), nullable=False)  # cash, card, online
    amount = Column(Float, nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False)
    status = Column(
        String(20), default="pending", nullable=False, index=True
    )  # pending, confirmed, cancelled, completed
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User")
    service = relationship("Service")
    staff = relationship("SalonStaff")
