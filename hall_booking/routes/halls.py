# hall_booking/routes/halls.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hall_booking import database, models, schemas
from hall_booking.auth import get_current_actor, requires
from hall_booking.errors import ConflictError, NotFoundError
from hall_booking.permissions import Action, Actor
from hall_booking.scoping import hall_filter

router = APIRouter(
    prefix="/halls",
    tags=["Halls"]
)


def _get_hall(db: Session, hall_id: str) -> models.Hall:
    hall = db.get(models.Hall, hall_id)
    if not hall:
        raise NotFoundError("Hall not found", details={"hall_id": hall_id})
    return hall

# List Halls (super_admin also sees inactive ones)
@router.get("/", response_model=List[schemas.HallResponse])
def list_halls(db: Session = Depends(database.get_db), actor: Actor = Depends(get_current_actor)):
    return hall_filter(actor, db.query(models.Hall)).order_by(models.Hall.name).all()

@router.get("/{hall_id}", response_model=schemas.HallResponse)
def get_hall(hall_id: str, db: Session = Depends(database.get_db), actor: Actor = Depends(get_current_actor)):
    hall = hall_filter(actor, db.query(models.Hall)).filter(models.Hall.id == hall_id).first()
    if not hall:
        raise NotFoundError("Hall not found", details={"hall_id": hall_id})
    return hall

# Admin Only - Create a Hall
@router.post("/", response_model=schemas.HallResponse, status_code=status.HTTP_201_CREATED)
def create_hall(
    hall: schemas.HallCreate,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.MANAGE_HALLS)),
):
    if not db.get(models.Institution, hall.institution_id):
        raise NotFoundError("Institution not found", details={"institution_id": hall.institution_id})

    new_hall = models.Hall(**hall.model_dump())
    db.add(new_hall)
    db.commit()
    db.refresh(new_hall)
    return new_hall

# Admin Only - Update a Hall (is_active=False deactivates it)
@router.put("/{hall_id}", response_model=schemas.HallResponse)
def update_hall(
    hall_id: str,
    hall: schemas.HallUpdate,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.MANAGE_HALLS)),
):
    hall_to_update = _get_hall(db, hall_id)
    for key, value in hall.model_dump(exclude_unset=True).items():
        setattr(hall_to_update, key, value)

    db.commit()
    db.refresh(hall_to_update)
    return hall_to_update

# Admin Only - Delete a Hall nobody has booked
@router.delete("/{hall_id}")
def delete_hall(
    hall_id: str,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.MANAGE_HALLS)),
):
    hall_to_delete = _get_hall(db, hall_id)
    booking_count = db.query(models.Booking).filter(models.Booking.hall_id == hall_id).count()
    if booking_count:
        raise ConflictError(
            "Hall has bookings; deactivate it instead",
            code="hall_in_use",
            details={"hall_id": hall_id, "bookings": booking_count},
        )

    db.delete(hall_to_delete)
    db.commit()
    return {"message": "Hall deleted successfully"}
