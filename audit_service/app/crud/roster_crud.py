# app/crud/roster_crud.py
import logging
from typing import List, Optional
from uuid import UUID
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.core.schemas import BulkUploadError, BulkUploadResponse
from shared.helpers.json_response_helper import error_response
from shared.helpers.match_helper import location_matches, split_locations, unique_locations
from shared.models.users import Users
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole
from ..enum.audit_enum import EntryStatus
from ..models.inventory_entries import InventoryEntry
from ..schemas.admin_schemas import RosterImport, UserUpdate

logger = logging.getLogger(__name__)


def _pending_reviews(db: Session, *criteria) -> int:
    """Entries still waiting on an approver that matches the given user criteria."""
    return (
        db.query(InventoryEntry)
        .join(Users, InventoryEntry.assigned_client_id == Users.id)
        .filter(InventoryEntry.status == EntryStatus.PENDING_CLIENT.value, *criteria)
        .count()
    )


def _roster_locations(row: RosterImport) -> List[str]:
    locations = unique_locations(row.locations)
    if not locations and row.mapped_location:
        locations = unique_locations(split_locations(row.mapped_location))
    return locations


def bulk_upsert_roster(db: Session, rows: List[RosterImport], role: UserRole,
                      row_numbers: Optional[List[int]] = None) -> BulkUploadResponse:
    """Insert or update staff/client identities keyed by unique code."""
    inserted, updated = 0, 0
    bulk_error_list = []
    seen = {}

    for index, row in enumerate(rows):
        row_no = row_numbers[index] if row_numbers else index + 1
        errors = []

        obj = seen.get(row.unique_code) or db.query(Users).filter(
            Users.unique_code == row.unique_code).first()

        if obj and obj.role == UserRole.ADMIN.value:
            errors.append("Staff ID belongs to an admin account")
        elif (obj and obj.role == UserRole.CLIENT.value and role != UserRole.CLIENT
              and _pending_reviews(db, Users.id == obj.id)):
            errors.append("Client still has entries awaiting review")
        if not obj and not row.login_pin:
            errors.append("Login PIN is required for new users")

        if errors:
            bulk_error_list.append(BulkUploadError(row=row_no, errors=errors))
            continue

        locations = _roster_locations(row)

        if not obj:
            obj = Users(unique_code=row.unique_code, role=role.value)
            db.add(obj)
            inserted += 1
        elif row.unique_code not in seen:
            updated += 1

        obj.name = row.name
        obj.role = role.value
        obj.locations = locations
        obj.mapped_location = row.mapped_location
        if row.login_pin:
            obj.set_login_pin(row.login_pin)
        if row.phone:
            obj.phone = row.phone
        if row.company:
            obj.company = row.company
        seen[row.unique_code] = obj

    db.commit()
    logger.info(
        f"{role.value} roster upload: {inserted} inserted, {updated} updated, {len(bulk_error_list)} rejected")
    return BulkUploadResponse(inserted=inserted, updated=updated, validations=bulk_error_list)


def get_users(db: Session, role: Optional[UserRole] = None, search: Optional[str] = None,
              skip: int = 0, limit: Optional[int] = None):
    query = db.query(Users)
    if role:
        query = query.filter(Users.role == role.value)
    if search:
        term = f"%{search.lower()}%"
        query = query.filter(Users.name.ilike(term) | Users.unique_code.ilike(term))

    total = query.count()
    query = query.order_by(Users.created_at.desc(), Users.name)
    if skip:
        query = query.offset(skip)
    if limit:
        query = query.limit(limit)
    return {"users": query.all(), "total": total}


def get_user(db: Session, user_id: UUID) -> Users:
    user = db.query(Users).filter(Users.id == user_id).first()
    if not user:
        return error_response(
            message="User not found",
            status_code=str(AppStatusCode.NOT_FOUND),
            http_status=404
        )
    return user


def update_user(db: Session, user_id: UUID, data: UserUpdate) -> Users:
    user = get_user(db, user_id)

    changes = data.model_dump(exclude_unset=True)
    if changes.get("is_active") is False and user.is_active and _pending_reviews(db, Users.id == user.id):
        return error_response(
            message="User still has entries awaiting review",
            status_code=str(AppStatusCode.OPERATION_ERROR),
            http_status=409
        )
    if changes.get("name"):
        user.name = changes["name"]
    if changes.get("login_pin"):
        if user.role == UserRole.ADMIN.value:
            return error_response(
                message="Admins sign in with a password, not a PIN",
                status_code=str(AppStatusCode.REQUIRED_VALIDATION_ERROR),
                http_status=400
            )
        user.set_login_pin(changes["login_pin"])
    if changes.get("locations") is not None:
        user.locations = unique_locations(changes["locations"])
        # an explicit list replaces the legacy free-text location
        user.mapped_location = None
    for field in ("phone", "company", "is_active"):
        if field in changes and changes[field] is not None:
            setattr(user, field, changes[field])

    db.commit()
    db.refresh(user)
    return user


def delete_users_by_role(db: Session, role: UserRole) -> int:
    if _pending_reviews(db, Users.role == role.value):
        return error_response(
            message=f"Some {role.value} users still have entries awaiting review",
            status_code=str(AppStatusCode.OPERATION_ERROR),
            http_status=409
        )
    try:
        deleted = db.query(Users).filter(Users.role == role.value).delete(
            synchronize_session=False)
        db.commit()
    except IntegrityError:
        db.rollback()
        return error_response(
            message=f"Some {role.value} users are still referenced by inventory entries",
            status_code=str(AppStatusCode.OPERATION_ERROR),
            http_status=409
        )
    logger.info(f"Deleted {deleted} {role.value} users")
    return deleted


def get_eligible_clients(db: Session, location: str) -> List[Users]:
    """Active clients whose locations cover the given location, ordered by name."""
    if not location or not location.strip():
        return []
    clients = (
        db.query(Users)
        .filter(Users.role == UserRole.CLIENT.value, Users.is_active == True)
        .order_by(Users.name, Users.unique_code)
        .all()
    )
    eligible = [
        c for c in clients
        if location_matches(location, c.locations, c.mapped_location)
    ]
    logger.info(f"Found {len(eligible)} eligible clients for '{location.strip()}'")
    return eligible
