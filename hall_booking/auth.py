# hall_booking/auth.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from hall_booking import database, models
from hall_booking.config import settings
from hall_booking.permissions import Action, Actor, require

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer tokens are issued by POST /users/login
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="users/login")

_UNAUTHORIZED = {
    "status_code": status.HTTP_401_UNAUTHORIZED,
    "detail": "Could not validate credentials",
    "headers": {"WWW-Authenticate": "Bearer"},
}


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a signed JWT for a user.

    ``sub`` carries the user id; ``role`` is informational only, the role is
    always re-read from the database when the token is used.
    """
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims = {
        "sub": user_id,
        "role": role,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def decode_access_token(token: str) -> str:
    """Return the user id in ``token`` or raise 401."""
    try:
        claims = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(**_UNAUTHORIZED)
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(**_UNAUTHORIZED)
    return user_id


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(database.get_db)) -> models.User:
    user = db.get(models.User, decode_access_token(token))
    if user is None:
        raise HTTPException(**_UNAUTHORIZED)
    return user

# The role and scope are read once here and trusted for the rest of the request
def get_current_actor(current_user: models.User = Depends(get_current_user)) -> Actor:
    try:
        return Actor.from_user(current_user)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Unknown role '{current_user.role}'",
        )

# Dependency factory: deny unless the actor's role allows the action
def requires(action: Action):
    def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        require(actor, action)
        return actor
    return dependency
