from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from classhub.core.app_logger import get_logger
from classhub.core.security import TokenExpired, TokenInvalid, decode_token, device_key_matches
from classhub.db.session import get_db
from classhub.models.users import User

logger = get_logger("auth")

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid Authorization header",
        )

    try:
        payload = decode_token(credentials.credentials)
    except TokenExpired:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except TokenInvalid:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    # fresh row: status and role come from the database, not the claims
    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user",
        )
    if not user.is_active:
        logger.info("Rejected request from blocked user %s", user.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is blocked")

    return user


@dataclass
class AttendanceActor:
    """Either an authenticated user or a trusted attendance device."""
    user: Optional[User] = None
    is_device: bool = False


def get_attendance_actor(
    request: Request,
    x_device_key: Optional[str] = Header(default=None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> AttendanceActor:
    # only mounted on the two attendance write routes
    if request.method == "POST" and device_key_matches(x_device_key):
        return AttendanceActor(is_device=True)
    return AttendanceActor(user=get_current_user(credentials, db))
