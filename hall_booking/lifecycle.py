# hall_booking/lifecycle.py
"""
Booking state machine.

Status moves pending -> approved/rejected; privileged roles create bookings
directly as approved (hall blocking). ``work_status`` is a separate axis
driven by the designing and photography teams and never touches ``status``.

Every operation commits before returning and hands back the notification
intents it produced; sending them is the caller's business and can never
undo the committed change.

Institution scope for approve/edit/delete is validated once by
``scoping.authorize_booking``; the engine only checks that the token it is
given was issued for this actor and booking.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, time
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from hall_booking import models, notifications, schemas
from hall_booking.availability import AvailabilityChecker, slot_lock, validate_interval
from hall_booking.errors import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from hall_booking.models import BookingStatus, WorkStatus, utcnow
from hall_booking.permissions import Action, Actor, require
from hall_booking.scoping import ScopeToken

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("event_title", "event_description", "event_time", "booking_date", "start_time", "end_time")


@dataclass
class LifecycleResult:
    booking: Optional[models.Booking]
    intents: List[notifications.NotificationIntent] = field(default_factory=list)


class BookingLifecycle:
    def __init__(self, db: Session, availability: Optional[AvailabilityChecker] = None):
        self.db = db
        self.availability = availability or AvailabilityChecker(db)

    # Lookups

    def get_booking(self, booking_id: str) -> models.Booking:
        booking = self.db.get(models.Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking not found", details={"booking_id": booking_id})
        return booking

    def _get_hall(self, hall_id: str) -> models.Hall:
        hall = self.db.get(models.Hall, hall_id)
        if hall is None:
            raise NotFoundError("Hall not found", details={"hall_id": hall_id})
        return hall

    def resolve_department(self, actor: Actor, hall: models.Hall) -> str:
        """The actor's own department, else the ADMIN department of the hall's institution."""
        if actor.department_id:
            return actor.department_id

        admin_departments = self.db.query(models.Department).filter(
            models.Department.short_name == models.ADMIN_DEPARTMENT_SHORT_NAME,
            or_(
                models.Department.institution_id == hall.institution_id,
                models.Department.institution_id.is_(None),
            ),
        ).all()
        # Prefer the institution's own ADMIN department over a global one
        admin_departments.sort(key=lambda d: d.institution_id is None)
        if not admin_departments:
            raise ConfigurationError(
                'No "ADMIN" department found for admin booking',
                details={"institution_id": hall.institution_id},
            )
        return admin_departments[0].id

    def _check_token(self, actor: Actor, booking_id: str, scope_token: Optional[ScopeToken]) -> None:
        if scope_token is None or not scope_token.covers(actor, booking_id):
            raise AuthorizationError("Missing or mismatched scope token", details={"booking_id": booking_id})

    def _intent(self, kind: str, booking: models.Booking, reason: Optional[str] = None):
        recipient = booking.user.email if booking.user is not None else ""
        note = notifications.build_notification(kind, booking, recipient, reason=reason)
        return notifications.NotificationIntent(kind=kind, booking_id=booking.id, notification=note)

    # Transitions

    def create_booking(self, actor: Actor, data: schemas.BookingCreate) -> LifecycleResult:
        hall = self._get_hall(data.hall_id)
        require(actor, Action.CREATE_BOOKING, hall.institution_id)
        if not hall.is_active:
            raise ValidationError("Hall is not active", details={"hall_id": hall.id})
        validate_interval(data.start_time, data.end_time)

        initial_status = BookingStatus.APPROVED if actor.auto_approves else BookingStatus.PENDING

        with slot_lock(self.db, hall.id, data.booking_date):
            if self.availability.check_conflict(hall.id, data.booking_date, data.start_time, data.end_time):
                raise ConflictError(
                    "Hall is already booked for this time slot",
                    details={
                        "hall_id": hall.id,
                        "booking_date": data.booking_date.isoformat(),
                    },
                )
            department_id = self.resolve_department(actor, hall)

            booking = models.Booking(
                **data.model_dump(),
                department_id=department_id,
                user_id=actor.id,
                status=initial_status.value,
                work_status=WorkStatus.PENDING.value,
            )
            if initial_status == BookingStatus.APPROVED:
                booking.approved_by = actor.id
                booking.approved_at = utcnow()
            self.db.add(booking)
            self.db.commit()

        logger.info("Booking %s created by %s (%s) as %s", booking.id, actor.id, actor.role.value, booking.status)
        return LifecycleResult(booking, [self._intent(booking.status, booking)])

    def transition_status(
        self,
        actor: Actor,
        booking_id: str,
        new_status: str,
        reason: Optional[str] = None,
        *,
        scope_token: Optional[ScopeToken],
    ) -> LifecycleResult:
        require(actor, Action.APPROVE_BOOKING)
        if new_status not in (BookingStatus.APPROVED.value, BookingStatus.REJECTED.value):
            raise ValidationError(f"Cannot transition a booking to '{new_status}'")
        booking = self.get_booking(booking_id)
        self._check_token(actor, booking.id, scope_token)

        # No conflict re-check: overlapping pending bookings may all be approved
        booking.status = new_status
        booking.rejection_reason = reason if new_status == BookingStatus.REJECTED.value else None
        booking.approved_by = actor.id
        booking.approved_at = utcnow()
        self.db.commit()

        logger.info("Booking %s %s by %s", booking.id, new_status, actor.id)
        return LifecycleResult(booking, [self._intent(new_status, booking, reason)])

    def edit_booking(
        self,
        actor: Actor,
        booking_id: str,
        fields: schemas.BookingUpdate,
        *,
        scope_token: Optional[ScopeToken],
    ) -> LifecycleResult:
        require(actor, Action.EDIT_BOOKING)
        booking = self.get_booking(booking_id)
        self._check_token(actor, booking.id, scope_token)

        changes = {k: v for k, v in fields.model_dump(exclude_unset=True).items() if k in EDITABLE_FIELDS}
        if changes.get("booking_date", booking.booking_date) is None:
            raise ValidationError("booking_date cannot be cleared")
        start: Optional[time] = changes.get("start_time", booking.start_time)
        end: Optional[time] = changes.get("end_time", booking.end_time)
        validate_interval(start, end)

        # TODO: decide with product whether admin edits should be conflict-checked
        for key, value in changes.items():
            setattr(booking, key, value)
        self.db.commit()

        logger.info("Booking %s edited by %s: %s", booking.id, actor.id, sorted(changes))
        return LifecycleResult(booking, [self._intent(notifications.UPDATED, booking)])

    def delete_booking(
        self,
        actor: Actor,
        booking_id: str,
        reason: Optional[str] = None,
        *,
        scope_token: Optional[ScopeToken],
    ) -> LifecycleResult:
        require(actor, Action.DELETE_BOOKING)
        booking = self.get_booking(booking_id)
        self._check_token(actor, booking.id, scope_token)

        # Rendered before the row is gone, queued only once the delete commits
        intent = self._intent(notifications.CANCELLED, booking, reason)

        self.db.query(models.PressRelease).filter(models.PressRelease.booking_id == booking.id).update(
            {models.PressRelease.booking_id: None}, synchronize_session=False
        )
        self.db.delete(booking)
        self.db.commit()

        logger.info("Booking %s deleted by %s", booking_id, actor.id)
        return LifecycleResult(None, [intent])

    # Work-status side channel

    def set_final_design(self, actor: Actor, booking_id: str, final_file_url: str) -> LifecycleResult:
        booking = self.get_booking(booking_id)
        require(actor, Action.UPLOAD_FINAL_DESIGN, booking.hall.institution_id)
        if not final_file_url:
            raise ValidationError("final_file_url is required")

        booking.final_file_url = final_file_url
        booking.work_status = WorkStatus.COMPLETED.value
        self.db.commit()
        logger.info("Final design uploaded for booking %s by %s", booking.id, actor.id)
        return LifecycleResult(booking)

    def set_photography_link(self, actor: Actor, booking_id: str, link: str) -> LifecycleResult:
        booking = self.get_booking(booking_id)
        require(actor, Action.UPDATE_PHOTOGRAPHY_LINK, booking.hall.institution_id)
        if not link:
            raise ValidationError("photography_drive_link is required")

        booking.photography_drive_link = link
        self.db.commit()
        logger.info("Photography link set for booking %s by %s", booking.id, actor.id)
        return LifecycleResult(booking)

    # Read side

    def check_availability(self, hall_id: str, booking_date: date, start: Optional[time], end: Optional[time]) -> bool:
        self._get_hall(hall_id)
        return self.availability.check_availability(hall_id, booking_date, start, end)
