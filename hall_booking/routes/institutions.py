# hall_booking/routes/institutions.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hall_booking import database, models, schemas
from hall_booking.auth import get_current_actor, requires
from hall_booking.errors import NotFoundError
from hall_booking.permissions import Action, Actor
from hall_booking.scoping import institution_filter

router = APIRouter(
    prefix="/institutions",
    tags=["Institutions"]
)


@router.get("/", response_model=List[schemas.InstitutionResponse])
def list_institutions(db: Session = Depends(database.get_db), actor: Actor = Depends(get_current_actor)):
    return institution_filter(actor, db.query(models.Institution)).order_by(models.Institution.name).all()

@router.post("/", response_model=schemas.InstitutionResponse, status_code=status.HTTP_201_CREATED)
def create_institution(
    institution: schemas.InstitutionCreate,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.MANAGE_INSTITUTIONS)),
):
    new_institution = models.Institution(**institution.model_dump())
    db.add(new_institution)
    db.commit()
    db.refresh(new_institution)
    return new_institution

@router.put("/{institution_id}", response_model=schemas.InstitutionResponse)
def update_institution(
    institution_id: str,
    institution: schemas.InstitutionCreate,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.MANAGE_INSTITUTIONS)),
):
    existing = db.get(models.Institution, institution_id)
    if not existing:
        raise NotFoundError("Institution not found", details={"institution_id": institution_id})
    for key, value in institution.model_dump().items():
        setattr(existing, key, value)
    db.commit()
    db.refresh(existing)
    return existing

# Super Admin Only; references to the institution are not checked
@router.delete("/{institution_id}")
def delete_institution(
    institution_id: str,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.MANAGE_INSTITUTIONS)),
):
    existing = db.get(models.Institution, institution_id)
    if not existing:
        raise NotFoundError("Institution not found", details={"institution_id": institution_id})
    db.delete(existing)
    db.commit()
    return {"message": "Institution deleted successfully"}
