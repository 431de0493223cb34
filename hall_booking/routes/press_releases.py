# hall_booking/routes/press_releases.py
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hall_booking import database, models, schemas
from hall_booking.auth import requires
from hall_booking.errors import NotFoundError, ValidationError
from hall_booking.permissions import Action, Actor, require

router = APIRouter(
    prefix="/press-releases",
    tags=["Press Releases"]
)


# ✅ Department - Submit a Press Release
@router.post("/", response_model=schemas.PressReleaseResponse, status_code=status.HTTP_201_CREATED)
def submit_press_release(
    payload: schemas.PressReleaseCreate,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.SUBMIT_PRESS_RELEASE)),
):
    if not actor.department_id:
        raise ValidationError("A department is required to submit a press release")

    if payload.booking_id:
        booking = db.get(models.Booking, payload.booking_id)
        if not booking or (booking.user_id != actor.id and not actor.is_super_admin):
            raise NotFoundError("Booking not found", details={"booking_id": payload.booking_id})

    press_release = models.PressRelease(
        **payload.model_dump(),
        user_id=actor.id,
        department_id=actor.department_id,
        status=models.BookingStatus.PENDING.value,
    )
    db.add(press_release)
    db.commit()
    db.refresh(press_release)
    return press_release

# ✅ Department - My Press Releases
@router.get("/mine", response_model=List[schemas.PressReleaseResponse])
def list_my_press_releases(
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.VIEW_OWN_PRESS_RELEASES)),
):
    return (
        db.query(models.PressRelease)
        .filter(models.PressRelease.user_id == actor.id)
        .order_by(models.PressRelease.created_at.desc())
        .all()
    )

# ✅ Press Release Team - Approved Releases (all institutions)
@router.get("/approved", response_model=List[schemas.PressReleaseResponse])
def list_approved_press_releases(
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.REVIEW_PRESS_RELEASE)),
):
    return (
        db.query(models.PressRelease)
        .filter(models.PressRelease.status == models.BookingStatus.APPROVED.value)
        .order_by(models.PressRelease.event_date.desc())
        .all()
    )

# ✅ Principal / Super Admin - Moderation Queue
@router.get("/", response_model=List[schemas.PressReleaseResponse])
def list_press_releases(
    status: Optional[str] = None,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.MODERATE_PRESS_RELEASE)),
):
    query = db.query(models.PressRelease)
    if not actor.is_super_admin:
        query = query.join(models.Department, models.PressRelease.department_id == models.Department.id).filter(
            models.Department.institution_id == actor.institution_id
        )
    if status:
        query = query.filter(models.PressRelease.status == status)
    return query.order_by(models.PressRelease.created_at.desc()).all()

@router.put("/{press_release_id}/status", response_model=schemas.PressReleaseResponse)
def update_press_release_status(
    press_release_id: str,
    payload: schemas.PressReleaseStatusUpdate,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.MODERATE_PRESS_RELEASE)),
):
    press_release = db.get(models.PressRelease, press_release_id)
    if not press_release:
        raise NotFoundError("Press release not found", details={"press_release_id": press_release_id})
    require(actor, Action.MODERATE_PRESS_RELEASE, press_release.department.institution_id)

    press_release.status = payload.status
    db.commit()
    db.refresh(press_release)
    return press_release
