# hall_booking/routes/bookings.py
from datetime import date, time
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.orm import Session

from hall_booking import database, models, schemas
from hall_booking.auth import get_current_actor
from hall_booking.errors import NotFoundError
from hall_booking.lifecycle import BookingLifecycle, LifecycleResult
from hall_booking.notifications import NotificationDispatcher
from hall_booking.permissions import Action, Actor
from hall_booking.scoping import ViewRequest, authorize_booking, scope_filter

router = APIRouter(
    prefix="/bookings",
    tags=["Bookings"]
)


def get_lifecycle(db: Session = Depends(database.get_db)) -> BookingLifecycle:
    return BookingLifecycle(db)

def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher

# Notifications go out after the response; their outcome never changes it
def queue_notifications(result: LifecycleResult, background_tasks: BackgroundTasks, dispatcher: NotificationDispatcher):
    if result.intents:
        background_tasks.add_task(dispatcher.dispatch, list(result.intents))


# ✅ List Bookings (scoped by role)
@router.get("/", response_model=List[schemas.BookingResponse])
def list_bookings(
    mine: bool = False,
    hall_id: Optional[str] = None,
    booking_date: Optional[date] = None,
    status: Optional[str] = None,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(get_current_actor),
):
    view = ViewRequest(mine=mine, hall_id=hall_id, booking_date=booking_date, status=status)
    predicate = scope_filter(actor, view)
    query = predicate.apply(db.query(models.Booking))
    return query.order_by(models.Booking.booking_date.desc(), models.Booking.start_time).all()

# ✅ Check a Slot
@router.get("/availability", response_model=schemas.AvailabilityResponse)
def check_availability(
    hall_id: str,
    booking_date: date,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    available = lifecycle.check_availability(hall_id, booking_date, start_time, end_time)
    return {
        "hall_id": hall_id,
        "booking_date": booking_date,
        "start_time": start_time,
        "end_time": end_time,
        "available": available,
    }

# ✅ Get One Booking
@router.get("/{booking_id}", response_model=schemas.BookingResponse)
def get_booking(
    booking_id: str,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    booking = lifecycle.get_booking(booking_id)
    # Same visibility as the listing: without hall/date a department user sees only their own
    predicate = scope_filter(actor, ViewRequest())
    if not predicate.matches(booking):
        raise NotFoundError("Booking not found", details={"booking_id": booking_id})
    return booking

# ✅ Request or Block a Hall
@router.post("/", response_model=schemas.BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    booking_data: schemas.BookingCreate,
    background_tasks: BackgroundTasks,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    actor: Actor = Depends(get_current_actor),
):
    result = lifecycle.create_booking(actor, booking_data)
    queue_notifications(result, background_tasks, dispatcher)
    return result.booking

# ✅ Approve / Reject (Principal, Super Admin)
@router.patch("/{booking_id}/status", response_model=schemas.BookingResponse)
def update_booking_status(
    booking_id: str,
    payload: schemas.BookingStatusUpdate,
    background_tasks: BackgroundTasks,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    actor: Actor = Depends(get_current_actor),
):
    token = authorize_booking(actor, lifecycle.get_booking(booking_id), Action.APPROVE_BOOKING)
    result = lifecycle.transition_status(
        actor, booking_id, payload.status, payload.rejection_reason, scope_token=token
    )
    queue_notifications(result, background_tasks, dispatcher)
    return result.booking

# ✅ Edit Event Details (Principal, Super Admin)
@router.put("/{booking_id}", response_model=schemas.BookingResponse)
def edit_booking(
    booking_id: str,
    fields: schemas.BookingUpdate,
    background_tasks: BackgroundTasks,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    actor: Actor = Depends(get_current_actor),
):
    token = authorize_booking(actor, lifecycle.get_booking(booking_id), Action.EDIT_BOOKING)
    result = lifecycle.edit_booking(actor, booking_id, fields, scope_token=token)
    queue_notifications(result, background_tasks, dispatcher)
    return result.booking

# ✅ Delete / Cancel (Principal, Super Admin)
@router.delete("/{booking_id}")
def delete_booking(
    booking_id: str,
    background_tasks: BackgroundTasks,
    reason: Optional[str] = None,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    actor: Actor = Depends(get_current_actor),
):
    token = authorize_booking(actor, lifecycle.get_booking(booking_id), Action.DELETE_BOOKING)
    result = lifecycle.delete_booking(actor, booking_id, reason, scope_token=token)
    queue_notifications(result, background_tasks, dispatcher)
    return {"message": "Booking deleted successfully"}

# ✅ Designing Team - Upload Final Design
@router.put("/{booking_id}/final-design", response_model=schemas.BookingResponse)
def upload_final_design(
    booking_id: str,
    payload: schemas.FinalDesignUpdate,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    return lifecycle.set_final_design(actor, booking_id, payload.final_file_url).booking

# ✅ Photography Team - Drive Link
@router.put("/{booking_id}/photography-link", response_model=schemas.BookingResponse)
def update_photography_link(
    booking_id: str,
    payload: schemas.PhotographyLinkUpdate,
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
    actor: Actor = Depends(get_current_actor),
):
    return lifecycle.set_photography_link(actor, booking_id, payload.photography_drive_link).booking
