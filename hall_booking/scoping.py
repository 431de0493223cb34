# hall_booking/scoping.py
"""
Role-scoped visibility for bookings, halls, institutions and departments.

The planner returns predicates rather than rows so the same rules serve
listing endpoints and single-record authorization. ``authorize_booking``
checks institution scope once and hands the lifecycle engine a
``ScopeToken`` proving it.
"""
from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from sqlalchemy.orm import Query

from hall_booking import models
from hall_booking.errors import AuthorizationError
from hall_booking.permissions import SERVICE_TEAM_ROLES, Action, Actor, Role, can_perform


@dataclass(frozen=True)
class ViewRequest:
    mine: bool = False
    hall_id: Optional[str] = None
    booking_date: Optional[date] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class BookingPredicate:
    user_id: Optional[str] = None
    institution_id: Optional[str] = None
    hall_id: Optional[str] = None
    booking_date: Optional[date] = None
    statuses: Optional[Tuple[str, ...]] = None

    @property
    def unrestricted(self) -> bool:
        return self == BookingPredicate()

    def apply(self, query: Query) -> Query:
        if self.institution_id is not None:
            query = query.join(models.Hall, models.Booking.hall_id == models.Hall.id).filter(
                models.Hall.institution_id == self.institution_id
            )
        if self.user_id is not None:
            query = query.filter(models.Booking.user_id == self.user_id)
        if self.hall_id is not None:
            query = query.filter(models.Booking.hall_id == self.hall_id)
        if self.booking_date is not None:
            query = query.filter(models.Booking.booking_date == self.booking_date)
        if self.statuses is not None:
            query = query.filter(models.Booking.status.in_(self.statuses))
        return query

    def matches(self, booking: models.Booking) -> bool:
        if self.institution_id is not None and booking.hall.institution_id != self.institution_id:
            return False
        if self.user_id is not None and booking.user_id != self.user_id:
            return False
        if self.hall_id is not None and booking.hall_id != self.hall_id:
            return False
        if self.booking_date is not None and booking.booking_date != self.booking_date:
            return False
        if self.statuses is not None and booking.status not in self.statuses:
            return False
        return True


_APPROVED_ONLY = (models.BookingStatus.APPROVED.value,)


def scope_filter(actor: Actor, view: ViewRequest) -> BookingPredicate:
    """Return the booking filter ``actor`` is allowed for ``view``."""
    statuses = (view.status,) if view.status else None
    requested = dict(hall_id=view.hall_id, booking_date=view.booking_date)

    if view.mine:
        return BookingPredicate(user_id=actor.id, statuses=statuses, **requested)

    if actor.role == Role.SUPER_ADMIN:
        return BookingPredicate(statuses=statuses, **requested)

    if actor.role == Role.PRINCIPAL:
        return BookingPredicate(institution_id=_own_institution(actor), statuses=statuses, **requested)

    if actor.role == Role.DEPARTMENT_USER:
        # Asking for a specific hall or day shows every booking in that slot,
        # so the calendar can show what is taken.
        if view.hall_id is not None or view.booking_date is not None:
            return BookingPredicate(statuses=statuses, **requested)
        return BookingPredicate(user_id=actor.id, statuses=statuses)

    if actor.role in (Role.DESIGNING_TEAM, Role.PHOTOGRAPHY_TEAM):
        if view.status and view.status not in _APPROVED_ONLY:
            raise AuthorizationError(f"Role '{actor.role.value}' only sees approved bookings")
        return BookingPredicate(statuses=_APPROVED_ONLY, **requested)

    raise AuthorizationError(f"Role '{actor.role.value}' may not list bookings")


def _own_institution(actor: Actor) -> str:
    # Institution-scoped roles see nothing until an institution is assigned
    if actor.institution_id is None:
        raise AuthorizationError(
            f"Role '{actor.role.value}' has no institution assigned",
            details={"role": actor.role.value},
        )
    return actor.institution_id


def hall_filter(actor: Actor, query: Query) -> Query:
    if actor.is_super_admin:
        return query
    query = query.filter(models.Hall.is_active.is_(True))
    if actor.role in SERVICE_TEAM_ROLES:
        return query
    return query.filter(models.Hall.institution_id == _own_institution(actor))


def institution_filter(actor: Actor, query: Query) -> Query:
    if actor.is_super_admin or actor.role in SERVICE_TEAM_ROLES:
        return query
    return query.filter(models.Institution.id == _own_institution(actor))


@dataclass(frozen=True)
class ScopeToken:
    """Proof that ``actor_id`` may act on ``booking_id`` within ``institution_id``."""

    actor_id: str
    booking_id: str
    institution_id: Optional[str]

    def covers(self, actor: Actor, booking_id: str) -> bool:
        return self.actor_id == actor.id and self.booking_id == booking_id


def authorize_booking(actor: Actor, booking: models.Booking, action: Action) -> ScopeToken:
    """Validate that ``actor`` may apply ``action`` to ``booking`` and issue a token."""
    institution_id = booking.hall.institution_id
    if not can_perform(actor, action, institution_id):
        raise AuthorizationError(
            "Booking is outside your scope",
            details={"booking_id": booking.id, "action": action.value},
        )
    return ScopeToken(actor_id=actor.id, booking_id=booking.id, institution_id=institution_id)
