# hall_booking/routes/users.py
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from hall_booking import models, schemas, database, auth
from hall_booking.errors import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from hall_booking.permissions import Action, Actor, Role
from hall_booking.routes.settings import is_registration_active

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Users"]
)


def _create_user(db: Session, user: schemas.UserCreate, role: Role) -> models.User:
    existing_user = db.query(models.User).filter(models.User.email == user.email).first()
    if existing_user:
        raise ValidationError("Email already registered", code="email_taken", details={"email": user.email})

    if user.department_id and not db.get(models.Department, user.department_id):
        raise NotFoundError("Department not found", details={"department_id": user.department_id})

    new_user = models.User(
        email=user.email,
        password_hash=auth.get_password_hash(user.password),
        full_name=user.full_name,
        role=role.value,
        institution_id=user.institution_id,
        department_id=user.department_id,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    return new_user


# ✅ Self Registration (always a department user)
@router.post("/register", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED)
def register_user(user: schemas.UserCreate, db: Session = Depends(database.get_db)):
    if not is_registration_active(db):
        raise AuthorizationError("Registration is currently closed", code="registration_closed")
    new_user = _create_user(db, user, Role.DEPARTMENT_USER)
    logger.info("User %s registered", new_user.email)
    return new_user

# ✅ Admin - Create a User with any Role
@router.post("/", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user: schemas.UserCreate,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(auth.requires(Action.MANAGE_USERS)),
):
    return _create_user(db, user, user.role)

# ✅ User Login (JWT)
@router.post("/login")
def login_user(user: schemas.UserLogin, db: Session = Depends(database.get_db)):
    db_user = db.query(models.User).filter(models.User.email == user.email).first()
    if not db_user or not auth.verify_password(user.password, db_user.password_hash):
        raise AuthenticationError("Invalid credentials")

    access_token = auth.create_access_token(db_user.id, db_user.role)
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": schemas.UserResponse.model_validate(db_user),
    }

@router.get("/me", response_model=schemas.UserResponse)
def read_me(current_user: models.User = Depends(auth.get_current_user)):
    return current_user

@router.post("/change-password")
def change_password(
    payload: schemas.ChangePasswordRequest,
    db: Session = Depends(database.get_db),
    current_user: models.User = Depends(auth.get_current_user),
):
    if not auth.verify_password(payload.old_password, current_user.password_hash):
        raise ValidationError("Incorrect old password", code="wrong_password")

    current_user.password_hash = auth.get_password_hash(payload.new_password)
    db.commit()
    return {"message": "Password changed successfully"}

# ✅ Admin - List Users
@router.get("/", response_model=List[schemas.UserResponse])
def list_users(
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(auth.requires(Action.MANAGE_USERS)),
):
    return db.query(models.User).order_by(models.User.created_at.desc()).all()

# ✅ Update a User (admins: anyone; everyone else: own theme only)
@router.put("/{user_id}", response_model=schemas.UserResponse)
def update_user(
    user_id: str,
    payload: schemas.UserUpdate,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(auth.get_current_actor),
):
    changes = payload.model_dump(exclude_unset=True)
    if actor.role != Role.SUPER_ADMIN and not (actor.id == user_id and set(changes) <= {"theme_preference"}):
        raise AuthorizationError("You may only change your own theme preference", details={"user_id": user_id})

    user = db.get(models.User, user_id)
    if not user:
        raise NotFoundError("User not found", details={"user_id": user_id})

    password = changes.pop("password", None)
    if password is not None and password.strip():
        user.password_hash = auth.get_password_hash(password)
    if "role" in changes and changes["role"] is not None:
        changes["role"] = changes["role"].value
    for key, value in changes.items():
        setattr(user, key, value)

    db.commit()
    db.refresh(user)
    return user

# ✅ Admin - Delete a User
@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    db: Session = Depends(database.get_db),
    actor: Actor = Depends(auth.requires(Action.MANAGE_USERS)),
):
    if user_id == actor.id:
        raise ValidationError("Cannot delete your own account")

    user = db.get(models.User, user_id)
    if not user:
        raise NotFoundError("User not found", details={"user_id": user_id})

    db.delete(user)
    db.commit()
    return {"message": "User deleted successfully"}
