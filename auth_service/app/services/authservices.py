import logging
from datetime import datetime, timezone
from fastapi import status
from sqlalchemy.orm import Session

from shared.core import auth
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import error_response
from shared.helpers.match_helper import clean_identifier, split_locations, unique_locations
from shared.models.users import Users
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole
from ..schemas import authschemas

logger = logging.getLogger(__name__)


def _invalid_credentials(message: str = "Invalid credentials"):
    return error_response(
        message=message,
        status_code=str(AppStatusCode.AUTHENTICATION_CREDENTIALS_INVALID),
        http_status=status.HTTP_401_UNAUTHORIZED
    )


#### LOGIN ###

def login(db: Session, request: authschemas.LoginRequest) -> authschemas.LoginResponse:
    if request.role == UserRole.ADMIN or (request.role is None and request.email):
        user = db.query(Users).filter(
            Users.email == request.email.lower(),
            Users.role == UserRole.ADMIN.value).first()
        if not user or not user.verify_password(request.password):
            return _invalid_credentials()
    else:
        user = db.query(Users).filter(
            Users.unique_code == clean_identifier(request.unique_code)).first()
        if not user or user.role == UserRole.ADMIN.value:
            return _invalid_credentials("Invalid user code")
        if request.role and user.role != request.role.value:
            return _invalid_credentials("Invalid user code")
        if not user.verify_login_pin(request.login_pin):
            return _invalid_credentials("Invalid PIN")

    if not user.is_active:
        return error_response(
            message="User is not active. Access denied",
            status_code=str(AppStatusCode.AUTHENTICATION_USER_INACTIVE),
            http_status=status.HTTP_403_FORBIDDEN
        )

    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)

    logger.info(f"{user.role} {user.id} signed in")
    return authschemas.LoginResponse(
        token=auth.create_user_token(user),
        user=authschemas.LoginUser(
            id=user.id,
            role=user.role,
            name=user.name,
            locations=list(user.locations or []),
        ),
    )


def get_me(db: Session, current_user: UserToken) -> Users:
    user = db.query(Users).filter(Users.id == auth._as_uuid(current_user.user_id)).first()
    if not user:
        return error_response(
            message="User not found",
            status_code=str(AppStatusCode.AUTHENTICATION_USER_INVALID),
            http_status=status.HTTP_401_UNAUTHORIZED
        )
    return user


#### REGISTER ###

def register_user(db: Session, request: authschemas.RegisterRequest) -> authschemas.RegisterResponse:
    """Create or override a single identity: admins keyed by email, everyone else by code."""
    if request.role == UserRole.ADMIN:
        email = request.email.lower()
        user = db.query(Users).filter(Users.email == email).first()
    else:
        code = clean_identifier(request.unique_code)
        user = db.query(Users).filter(Users.unique_code == code).first()

    # role changes go through the roster uploads, which guard pending reviews
    if user and user.role != request.role.value:
        return error_response(
            message="Identity already belongs to a user with a different role",
            status_code=str(AppStatusCode.DUPLICATE_ADD_ERROR),
            http_status=status.HTTP_409_CONFLICT
        )

    if request.role != UserRole.ADMIN and request.email:
        owner = db.query(Users).filter(Users.email == request.email.lower()).first()
        if owner and (user is None or owner.id != user.id):
            return error_response(
                message="Email already belongs to another user",
                status_code=str(AppStatusCode.DUPLICATE_ADD_ERROR),
                http_status=status.HTTP_409_CONFLICT
            )

    created = user is None
    if created:
        if request.role == UserRole.ADMIN and not request.password:
            return error_response(
                message="Password is required for new admins",
                status_code=str(AppStatusCode.REQUIRED_VALIDATION_ERROR),
                http_status=status.HTTP_400_BAD_REQUEST
            )
        if request.role != UserRole.ADMIN and not request.login_pin:
            return error_response(
                message="Login PIN is required for new users",
                status_code=str(AppStatusCode.REQUIRED_VALIDATION_ERROR),
                http_status=status.HTTP_400_BAD_REQUEST
            )
        user = Users(role=request.role.value)
        db.add(user)

    user.name = request.name
    user.role = request.role.value
    if request.role == UserRole.ADMIN:
        user.email = email
        if request.password:
            user.set_password(request.password)
    else:
        user.unique_code = code
        if request.email:
            user.email = request.email.lower()
        if request.login_pin:
            user.set_login_pin(request.login_pin)

    locations = unique_locations(request.locations or [])
    if not locations and request.mapped_location:
        locations = unique_locations(split_locations(request.mapped_location))
    user.locations = locations
    user.mapped_location = request.mapped_location
    if request.phone:
        user.phone = request.phone
    if request.company:
        user.company = request.company

    db.commit()
    db.refresh(user)

    logger.info(f"{'Created' if created else 'Updated'} {user.role} {user.id}")
    return authschemas.RegisterResponse(
        id=user.id,
        type="create" if created else "update",
        message="User created successfully" if created else "User updated successfully",
    )
