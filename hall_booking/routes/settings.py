# hall_booking/routes/settings.py
from typing import Any, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from hall_booking import database, models, schemas
from hall_booking.auth import requires
from hall_booking.permissions import Action, Actor

router = APIRouter(
    prefix="/settings",
    tags=["Settings"]
)

REGISTRATION_ACTIVE = "registration_active"

DEFAULTS = {
    REGISTRATION_ACTIVE: True,
}


def get_setting(db: Session, key: str) -> Any:
    row = db.get(models.Setting, key)
    return row.value if row is not None else DEFAULTS.get(key)

def is_registration_active(db: Session) -> bool:
    return bool(get_setting(db, REGISTRATION_ACTIVE))


# Public - the register page asks before showing the form
@router.get("/registration")
def registration_status(db: Session = Depends(database.get_db)):
    return {"registration_active": is_registration_active(db)}

@router.get("/", response_model=List[schemas.SettingResponse])
def list_settings(
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.VIEW_SETTINGS)),
):
    stored = {row.key: row for row in db.query(models.Setting).all()}
    rows = [stored.get(key) or {"key": key, "value": value} for key, value in DEFAULTS.items()]
    rows += [row for key, row in stored.items() if key not in DEFAULTS]
    return rows

@router.put("/{key}", response_model=schemas.SettingResponse)
def update_setting(
    key: str,
    payload: schemas.SettingUpdate,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.MANAGE_SETTINGS)),
):
    row = db.get(models.Setting, key)
    if row is None:
        row = models.Setting(key=key)
        db.add(row)
    row.value = payload.value
    row.updated_by = actor.id
    db.commit()
    db.refresh(row)
    return row
