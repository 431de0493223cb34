# hall_booking/models.py
import datetime
import enum
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship

from hall_booking.database import Base


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class WorkStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"


ADMIN_DEPARTMENT_SHORT_NAME = "ADMIN"


class Institution(Base):
    __tablename__ = "institutions"
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    short_name = Column(String(50), nullable=True)
    logo_url = Column(String(1000), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    departments = relationship("Department", back_populates="institution")
    halls = relationship("Hall", back_populates="institution")


class Department(Base):
    __tablename__ = "departments"
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    short_name = Column(String(50), nullable=False, index=True)
    # Nullable for legacy/global departments
    institution_id = Column(String(36), ForeignKey("institutions.id"), nullable=True, index=True)

    institution = relationship("Institution", back_populates="departments")


class Hall(Base):
    __tablename__ = "halls"
    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(1000), nullable=True)
    stage_size = Column(String(100), nullable=True)
    seating_capacity = Column(Integer, nullable=True)
    hall_type = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    institution_id = Column(String(36), ForeignKey("institutions.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)

    institution = relationship("Institution", back_populates="halls")


class User(Base):
    __tablename__ = "users"
    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    role = Column(String(50), nullable=False, default="department_user")
    institution_id = Column(String(36), ForeignKey("institutions.id"), nullable=True)
    department_id = Column(String(36), ForeignKey("departments.id"), nullable=True)
    theme_preference = Column(String(50), default="hindusthan")
    created_at = Column(DateTime, default=utcnow)

    institution = relationship("Institution")
    department = relationship("Department")


class Booking(Base):
    __tablename__ = "bookings"
    id = Column(String(36), primary_key=True, default=new_id)
    hall_id = Column(String(36), ForeignKey("halls.id"), nullable=False, index=True)
    department_id = Column(String(36), ForeignKey("departments.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    booking_date = Column(Date, nullable=False, index=True)
    # Half-open [start_time, end_time); NULL means unbounded
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    event_time = Column(String(100), nullable=True)  # legacy free text

    event_title = Column(String(255), nullable=True)
    event_description = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    work_status = Column(String(20), nullable=False, default=WorkStatus.PENDING.value)
    rejection_reason = Column(Text, nullable=True)
    approved_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    approved_at = Column(DateTime, nullable=True)

    final_file_url = Column(String(1000), nullable=True)
    photography_drive_link = Column(String(1000), nullable=True)

    # Event payload, carried through unchanged
    media_coordinator_name = Column(String(255), nullable=True)
    contact_no = Column(String(50), nullable=True)
    chief_guest_name = Column(String(255), nullable=True)
    chief_guest_designation = Column(String(255), nullable=True)
    chief_guest_organization = Column(String(255), nullable=True)
    chief_guest_photo_url = Column(String(1000), nullable=True)
    event_partner_organization = Column(String(255), nullable=True)
    event_partner_details = Column(Text, nullable=True)
    event_partner_logo_url = Column(String(1000), nullable=True)
    event_coordinator_name = Column(String(255), nullable=True)
    event_convenor_details = Column(Text, nullable=True)
    in_house_guest = Column(Text, nullable=True)
    is_ac = Column(Boolean, default=False)
    is_fan = Column(Boolean, default=False)
    is_photography = Column(Boolean, default=False)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    hall = relationship("Hall")
    department = relationship("Department")
    user = relationship("User", foreign_keys=[user_id])


class PressRelease(Base):
    __tablename__ = "press_releases"
    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    department_id = Column(String(36), ForeignKey("departments.id"), nullable=False)
    booking_id = Column(String(36), ForeignKey("bookings.id", ondelete="SET NULL"), nullable=True)
    coordinator_name = Column(String(255), nullable=False)
    event_title = Column(String(255), nullable=False)
    event_date = Column(Date, nullable=False)
    english_writeup = Column(Text, nullable=True)
    tamil_writeup = Column(Text, nullable=True)
    photo_description = Column(Text, nullable=True)
    photos = Column(JSON, default=list)
    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    created_at = Column(DateTime, default=utcnow)

    user = relationship("User")
    department = relationship("Department")


class Setting(Base):
    __tablename__ = "settings"
    key = Column(String(255), primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    updated_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
