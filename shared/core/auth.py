from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
from fastapi import status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, ExpiredSignatureError, jwt
from sqlalchemy.orm import Session
from shared.models.users import Users
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole
from shared.core.config import settings
from shared.helpers.json_response_helper import error_response
from shared.core.schemas import UserToken
from shared.core.database import get_db

security = HTTPBearer()


def create_access_token(data: dict, expires_minutes: Optional[int] = None):
    payload = data.copy()
    expires = datetime.now(timezone.utc) + timedelta(
        minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES)
    payload['exp'] = expires

    return jwt.encode(payload, settings.JWT_SECRET,
                      algorithm=settings.JWT_ALGORITHM)


def create_user_token(user: Users) -> str:
    return create_access_token({
        "user_id": str(user.id),
        "role": user.role,
        "name": user.name,
        "locations": list(user.locations or []),
    })


def verify_token(token: str) -> UserToken:
    """Verify and decode a JWT token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET,
                             algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        return error_response(
            message="Token has expired",
            status_code=str(AppStatusCode.AUTHENTICATION_TOKEN_EXPIRED),
            http_status=status.HTTP_401_UNAUTHORIZED
        )
    except JWTError:
        return error_response(
            message="Invalid or expired token",
            status_code=str(AppStatusCode.AUTHENTICATION_TOKEN_INVALID),
            http_status=status.HTTP_401_UNAUTHORIZED
        )

    if not payload.get("user_id") or not payload.get("role"):
        return error_response(
            message="Invalid token structure",
            status_code=str(AppStatusCode.AUTHENTICATION_TOKEN_INVALID),
            http_status=status.HTTP_401_UNAUTHORIZED
        )
    return UserToken(**payload)


def validate_current_token(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
):
    token = credentials.credentials
    # decoded token → contains user_id and role
    user_data = verify_token(token)

    # Fetch the user from the database
    user = db.query(Users).filter(Users.id == _as_uuid(user_data.user_id)).first()

    if not user:
        return error_response(
            message="User not found",
            status_code=str(AppStatusCode.AUTHENTICATION_USER_INVALID),
            http_status=status.HTTP_401_UNAUTHORIZED
        )

    if not user.is_active:
        return error_response(
            message="User is not active. Access denied",
            status_code=str(AppStatusCode.AUTHENTICATION_USER_INACTIVE),
            http_status=status.HTTP_403_FORBIDDEN
        )

    # role is read from the directory so a demoted user loses access immediately
    user_data.role = user.role
    user_data.status = "active"
    return user_data


def _as_uuid(value: str):
    try:
        return UUID(str(value))
    except ValueError:
        return error_response(
            message="Invalid token structure",
            status_code=str(AppStatusCode.AUTHENTICATION_TOKEN_INVALID),
            http_status=status.HTTP_401_UNAUTHORIZED
        )


def require_roles(*roles: UserRole):
    allowed = {r.value for r in roles}

    def _guard(current_user: UserToken = Depends(validate_current_token)):
        if current_user.role not in allowed:
            return error_response(
                message=f"Access forbidden: {', '.join(sorted(allowed))} only",
                status_code=str(AppStatusCode.AUTHENTICATION_UNAUTHORIZED_ACCESS),
                http_status=status.HTTP_403_FORBIDDEN
            )
        return current_user

    return _guard


allow_admin = require_roles(UserRole.ADMIN)
allow_staff = require_roles(UserRole.STAFF)
allow_client = require_roles(UserRole.CLIENT)
allow_staff_or_admin = require_roles(UserRole.STAFF, UserRole.ADMIN)
allow_client_or_admin = require_roles(UserRole.CLIENT, UserRole.ADMIN)
