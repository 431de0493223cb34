# hall_booking/schemas.py
from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Any, List, Literal, Optional
from datetime import date, time, datetime

from hall_booking.permissions import Role


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# Users

class UserCreate(BaseModel):
    email: EmailStr
    password: str
    full_name: str
    role: Role = Role.DEPARTMENT_USER
    institution_id: Optional[str] = None
    department_id: Optional[str] = None

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class UserUpdate(BaseModel):
    full_name: Optional[str] = None
    role: Optional[Role] = None
    institution_id: Optional[str] = None
    department_id: Optional[str] = None
    password: Optional[str] = None
    theme_preference: Optional[str] = None

class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str

class UserResponse(ORMModel):
    id: str
    email: str
    full_name: Optional[str] = None
    role: str
    institution_id: Optional[str] = None
    department_id: Optional[str] = None
    theme_preference: Optional[str] = None
    created_at: Optional[datetime] = None


# Institutions, departments, halls

class InstitutionCreate(BaseModel):
    name: str
    short_name: Optional[str] = None
    logo_url: Optional[str] = None

class InstitutionResponse(ORMModel):
    id: str
    name: str
    short_name: Optional[str] = None
    logo_url: Optional[str] = None

class DepartmentCreate(BaseModel):
    name: str
    short_name: str
    institution_id: Optional[str] = None

class DepartmentResponse(ORMModel):
    id: str
    name: str
    short_name: str
    institution_id: Optional[str] = None

class HallCreate(BaseModel):
    name: str
    institution_id: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    stage_size: Optional[str] = None
    seating_capacity: Optional[int] = None
    hall_type: Optional[str] = None
    is_active: bool = True

class HallUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    stage_size: Optional[str] = None
    seating_capacity: Optional[int] = None
    hall_type: Optional[str] = None
    is_active: Optional[bool] = None

class HallResponse(ORMModel):
    id: str
    name: str
    institution_id: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    stage_size: Optional[str] = None
    seating_capacity: Optional[int] = None
    hall_type: Optional[str] = None
    is_active: bool


# Bookings

class BookingCreate(BaseModel):
    hall_id: str
    booking_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    event_time: Optional[str] = None
    event_title: Optional[str] = None
    event_description: Optional[str] = None

    # Event payload, stored as-is
    media_coordinator_name: Optional[str] = None
    contact_no: Optional[str] = None
    chief_guest_name: Optional[str] = None
    chief_guest_designation: Optional[str] = None
    chief_guest_organization: Optional[str] = None
    chief_guest_photo_url: Optional[str] = None
    event_partner_organization: Optional[str] = None
    event_partner_details: Optional[str] = None
    event_partner_logo_url: Optional[str] = None
    event_coordinator_name: Optional[str] = None
    event_convenor_details: Optional[str] = None
    in_house_guest: Optional[str] = None
    is_ac: bool = False
    is_fan: bool = False
    is_photography: bool = False

class BookingUpdate(BaseModel):
    event_title: Optional[str] = None
    event_description: Optional[str] = None
    event_time: Optional[str] = None
    booking_date: Optional[date] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None

class BookingStatusUpdate(BaseModel):
    status: Literal["approved", "rejected"]
    rejection_reason: Optional[str] = None

class FinalDesignUpdate(BaseModel):
    final_file_url: str

class PhotographyLinkUpdate(BaseModel):
    photography_drive_link: str

class BookingResponse(ORMModel):
    id: str
    hall_id: str
    department_id: str
    user_id: str
    booking_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    event_time: Optional[str] = None
    event_title: Optional[str] = None
    event_description: Optional[str] = None
    status: str
    work_status: str
    rejection_reason: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    final_file_url: Optional[str] = None
    photography_drive_link: Optional[str] = None
    is_ac: Optional[bool] = None
    is_fan: Optional[bool] = None
    is_photography: Optional[bool] = None
    created_at: Optional[datetime] = None

class AvailabilityResponse(BaseModel):
    hall_id: str
    booking_date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    available: bool


# Press releases

class PressReleaseCreate(BaseModel):
    coordinator_name: str
    event_title: str
    event_date: date
    booking_id: Optional[str] = None
    english_writeup: Optional[str] = None
    tamil_writeup: Optional[str] = None
    photo_description: Optional[str] = None
    photos: List[str] = []

class PressReleaseStatusUpdate(BaseModel):
    status: Literal["pending", "approved", "rejected"]

class PressReleaseResponse(ORMModel):
    id: str
    user_id: str
    department_id: str
    booking_id: Optional[str] = None
    coordinator_name: str
    event_title: str
    event_date: date
    english_writeup: Optional[str] = None
    tamil_writeup: Optional[str] = None
    photo_description: Optional[str] = None
    photos: Optional[List[str]] = None
    status: str
    created_at: Optional[datetime] = None


# Settings

class SettingUpdate(BaseModel):
    value: Any

class SettingResponse(ORMModel):
    key: str
    value: Any
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None
