# hall_booking/routes/departments.py
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from hall_booking import database, models, schemas
from hall_booking.auth import requires
from hall_booking.errors import NotFoundError
from hall_booking.permissions import Action, Actor

router = APIRouter(
    prefix="/departments",
    tags=["Departments"]
)


# Public - registration needs the department list before anyone is logged in
@router.get("/", response_model=List[schemas.DepartmentResponse])
def list_departments(institution_id: str = None, db: Session = Depends(database.get_db)):
    query = db.query(models.Department)
    if institution_id:
        query = query.filter(models.Department.institution_id == institution_id)
    return query.order_by(models.Department.name).all()

@router.post("/", response_model=schemas.DepartmentResponse, status_code=status.HTTP_201_CREATED)
def create_department(
    department: schemas.DepartmentCreate,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.MANAGE_DEPARTMENTS)),
):
    new_department = models.Department(**department.model_dump())
    db.add(new_department)
    db.commit()
    db.refresh(new_department)
    return new_department

@router.put("/{department_id}", response_model=schemas.DepartmentResponse)
def update_department(
    department_id: str,
    department: schemas.DepartmentCreate,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.MANAGE_DEPARTMENTS)),
):
    existing = db.get(models.Department, department_id)
    if not existing:
        raise NotFoundError("Department not found", details={"department_id": department_id})
    for key, value in department.model_dump().items():
        setattr(existing, key, value)
    db.commit()
    db.refresh(existing)
    return existing

@router.delete("/{department_id}")
def delete_department(
    department_id: str,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(requires(Action.MANAGE_DEPARTMENTS)),
):
    existing = db.get(models.Department, department_id)
    if not existing:
        raise NotFoundError("Department not found", details={"department_id": department_id})
    db.delete(existing)
    db.commit()
    return {"message": "Department deleted successfully"}
