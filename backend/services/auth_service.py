from datetime import datetime, timezone
from typing import Optional
import logging

from bson import ObjectId
from bson.errors import InvalidId
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.errors import AuthenticationError, ValidationError, DownstreamError
from core.password_policy import validate_password, PasswordPolicyError
from core.security import get_password_hash, verify_password, create_access_token
from db.models.admin_user import AdminUser as AdminUserModel
from db.mongodb import get_mongo_db
from db.session import get_or_use_session
from schemas.auth_schema import AdminUser, AdminUserInDB
from utils.db import safe_commit
from utils.timing import timeit

logger = logging.getLogger(__name__)


class PasswordUpdateError(Exception):
    """The identity store refused a password change."""


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _use_mongo():
    mongo = get_mongo_db()
    if settings.USE_MONGO and mongo is not None:
        return mongo
    return None


def _from_row(row: AdminUserModel) -> AdminUserInDB:
    return AdminUserInDB(
        admin_id=str(row.id),
        email=row.email,
        full_name=row.full_name,
        is_active=row.is_active,
        hashed_password=row.hashed_password,
    )


def _from_doc(doc: dict) -> AdminUserInDB:
    return AdminUserInDB(
        admin_id=str(doc["_id"]),
        email=doc["email"],
        full_name=doc.get("full_name"),
        is_active=bool(doc.get("is_active", True)),
        hashed_password=doc.get("hashed_password", ""),
    )


async def get_admin_by_email(email: str, db: AsyncSession = None) -> Optional[AdminUserInDB]:
    """Look up an admin identity by email (trimmed, case-insensitive)."""
    email = normalize_email(email)
    if not email:
        return None
    mongo = _use_mongo()
    if mongo is not None:
        doc = await mongo.admin_users.find_one({"email": email})
        return _from_doc(doc) if doc else None
    async with get_or_use_session(db) as _db:
        result = await _db.execute(select(AdminUserModel).where(AdminUserModel.email == email))
        row = result.scalars().first()
        return _from_row(row) if row else None


async def authenticate_admin(email: str, password: str, db: AsyncSession = None) -> Optional[AdminUserInDB]:
    admin = await get_admin_by_email(email, db)
    if not admin or not admin.is_active:
        return None
    if not verify_password(password, admin.hashed_password):
        return None
    return admin


@timeit("login_admin")
async def login_admin(email: str, password: str, db: AsyncSession = None) -> dict:
    admin = await authenticate_admin(email, password, db)
    if not admin:
        raise AuthenticationError("Invalid email or password")
    token = create_access_token({"sub": admin.email, "admin_id": admin.admin_id, "role": "admin"})
    logger.info(f"Admin {admin.admin_id} signed in")
    return {"access_token": token, "token_type": "bearer"}


async def update_admin_password(admin_id: str, new_password: str, db: AsyncSession = None, commit: bool = True) -> None:
    """Set a new password on an admin identity.

    With ``commit=False`` the change is only flushed, so the caller can make it
    part of a larger transaction. Raises PasswordUpdateError when the policy
    rejects the password or no active identity has this id.
    """
    try:
        validate_password(new_password)
    except PasswordPolicyError as e:
        raise PasswordUpdateError(str(e)) from e

    hashed = get_password_hash(new_password)
    mongo = _use_mongo()
    if mongo is not None:
        try:
            oid = ObjectId(admin_id)
        except (InvalidId, TypeError) as e:
            raise PasswordUpdateError(f"Unknown admin id {admin_id}") from e
        result = await mongo.admin_users.update_one(
            {"_id": oid, "is_active": True},
            {"$set": {"hashed_password": hashed, "password_changed_at": _utcnow()}},
        )
        if result.matched_count == 0:
            raise PasswordUpdateError(f"Unknown admin id {admin_id}")
        return

    async with get_or_use_session(db) as _db:
        row = await _db.get(AdminUserModel, int(admin_id))
        if not row or not row.is_active:
            raise PasswordUpdateError(f"Unknown admin id {admin_id}")
        row.hashed_password = hashed
        row.password_changed_at = _utcnow()
        if commit:
            await safe_commit(_db, server_error_message="Failed to update password")
        else:
            await _db.flush()


@timeit("change_admin_password")
async def change_admin_password(admin: AdminUser, current_password: str, new_password: str, db: AsyncSession = None) -> dict:
    """Rotate the signed-in admin's password after re-authenticating them."""
    if not current_password or not new_password:
        raise ValidationError("Current and new password required")
    if not await authenticate_admin(admin.email, current_password, db):
        raise ValidationError("Current password is incorrect")
    try:
        await update_admin_password(admin.admin_id, new_password, db)
    except PasswordUpdateError as e:
        raise ValidationError(str(e)) from e
    logger.info(f"Admin {admin.admin_id} changed password")
    return {"success": True, "message": "Password updated successfully"}


async def create_admin(email: str, password: str, full_name: str = None, db: AsyncSession = None) -> AdminUser:
    """Create an admin, or re-activate an existing one with a new password."""
    email = normalize_email(email)
    if not email:
        raise ValidationError("Email is required")
    try:
        validate_password(password)
    except PasswordPolicyError as e:
        raise ValidationError(str(e)) from e
    hashed = get_password_hash(password)

    mongo = _use_mongo()
    if mongo is not None:
        await mongo.admin_users.update_one(
            {"email": email},
            {
                "$set": {"hashed_password": hashed, "is_active": True, "full_name": full_name, "password_changed_at": _utcnow()},
                "$setOnInsert": {"email": email, "created_at": _utcnow()},
            },
            upsert=True,
        )
        doc = await mongo.admin_users.find_one({"email": email})
        if not doc:
            raise DownstreamError("Failed to create admin")
        return AdminUser(**_from_doc(doc).model_dump())

    async with get_or_use_session(db) as _db:
        row = (await _db.execute(select(AdminUserModel).where(AdminUserModel.email == email))).scalars().first()
        if row:
            row.hashed_password = hashed
            row.is_active = True
            row.password_changed_at = _utcnow()
            if full_name:
                row.full_name = full_name
        else:
            row = AdminUserModel(email=email, full_name=full_name, hashed_password=hashed, is_active=True)
            _db.add(row)
        await safe_commit(_db, client_error_message="Admin already exists", server_error_message="Failed to create admin")
        await _db.refresh(row)
        return AdminUser(**_from_row(row).model_dump())
