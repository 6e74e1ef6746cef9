"""One-time-code password reset for admin accounts.

Three steps, each an independent request:

- send:   issue a 6-digit code for an existing admin email, store it with a
          fixed expiry and mail it out.
- verify: check that an unused, unexpired code matches; read-only.
- reset:  re-check the code, rotate the admin password, consume the code.

Expiry is enforced lazily by comparing ``expires_at`` with the current time at
check time. Codes are never deleted. Issuing a new code does not retire older
ones, so several codes for one email can be valid at once.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Any
import logging
import secrets

from sqlalchemy import select, update, desc
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.errors import AppError, ValidationError, NotFoundError, InvalidOrExpiredError, DownstreamError
from core.password_policy import validate_password, PasswordPolicyError
from db.models.password_reset_otp import PasswordResetOTP
from db.mongodb import get_mongo_db
from db.session import get_or_use_session
from services.auth_service import get_admin_by_email, update_admin_password, normalize_email
from utils.db import safe_commit
from utils.email import send_otp_email
from utils.timing import timeit

logger = logging.getLogger(__name__)

OTP_LENGTH = 6
OTP_MIN = 100000
OTP_MAX = 999999


def _utcnow() -> datetime:
    """Naive UTC now; patched in tests to move the clock."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_otp() -> str:
    """Uniform over [100000, 999999]; codes never start with a zero."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def is_wellformed_otp(otp_code: str) -> bool:
    return len(otp_code) == OTP_LENGTH and otp_code.isascii() and otp_code.isdigit()


def _use_mongo():
    mongo = get_mongo_db()
    if settings.USE_MONGO and mongo is not None:
        return mongo
    return None


async def _find_eligible_otp_id(email: str, otp_code: str, now: datetime, db: Optional[AsyncSession] = None, mongo=None) -> Optional[Any]:
    """Id of the newest unused, unexpired code matching email and code."""
    if mongo is not None:
        doc = await mongo.password_reset_otps.find_one(
            {"email": email, "otp_code": otp_code, "used": False, "expires_at": {"$gte": now}},
            sort=[("created_at", -1), ("_id", -1)],
        )
        return doc["_id"] if doc else None
    result = await db.execute(
        select(PasswordResetOTP.id)
        .where(
            PasswordResetOTP.email == email,
            PasswordResetOTP.otp_code == otp_code,
            PasswordResetOTP.used.is_(False),
            PasswordResetOTP.expires_at >= now,
        )
        .order_by(desc(PasswordResetOTP.created_at), desc(PasswordResetOTP.id))
        .limit(1)
    )
    return result.scalars().first()


def _check_code(otp_code: str) -> None:
    if not is_wellformed_otp(otp_code):
        raise ValidationError("OTP must be a 6-digit code")


@timeit("request_password_reset")
async def request_password_reset(email: str, db: AsyncSession = None, ip_address: str = "", user_agent: str = "") -> dict:
    """Issue a new OTP for an admin email and deliver it by email.

    The code is never part of the response. If delivery fails the stored code
    is left in place; it simply goes unused.
    """
    try:
        email = normalize_email(email)
        if not email:
            raise ValidationError("Missing required fields")

        admin = await get_admin_by_email(email, db)
        if not admin or not admin.is_active:
            raise NotFoundError("Email not found")

        otp_code = generate_otp()
        now = _utcnow()
        expires_at = now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES)

        mongo = _use_mongo()
        try:
            if mongo is not None:
                await mongo.password_reset_otps.insert_one({
                    "email": email,
                    "otp_code": otp_code,
                    "created_at": now,
                    "expires_at": expires_at,
                    "used": False,
                    "ip_address": ip_address,
                    "user_agent": user_agent,
                })
            else:
                async with get_or_use_session(db) as _db:
                    _db.add(PasswordResetOTP(
                        email=email,
                        otp_code=otp_code,
                        created_at=now,
                        expires_at=expires_at,
                        used=False,
                        ip_address=(ip_address or "")[:64],
                        user_agent=(user_agent or "")[:512],
                    ))
                    await safe_commit(_db, server_error_message="Failed to generate OTP")
        except AppError:
            raise
        except Exception as e:
            logger.error(f"OTP storage error for {email}: {e}")
            raise DownstreamError("Failed to generate OTP") from e

        sent = await send_otp_email(email, otp_code, settings.OTP_EXPIRE_MINUTES)
        if not sent:
            raise DownstreamError("Failed to send OTP email")

        logger.info(f"Password reset OTP issued for {email}")
        return {"success": True, "message": "OTP sent to your email"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error requesting password reset: {e}")
        raise DownstreamError() from e


@timeit("verify_password_reset_otp")
async def verify_password_reset_otp(email: str, otp_code: str, db: AsyncSession = None) -> dict:
    """Check a code without consuming it."""
    try:
        email = normalize_email(email)
        otp_code = (otp_code or "").strip()
        if not email:
            raise ValidationError("Missing required fields")
        if not otp_code:
            raise ValidationError("OTP code required")
        _check_code(otp_code)

        now = _utcnow()
        mongo = _use_mongo()
        if mongo is not None:
            otp_id = await _find_eligible_otp_id(email, otp_code, now, mongo=mongo)
        else:
            async with get_or_use_session(db) as _db:
                otp_id = await _find_eligible_otp_id(email, otp_code, now, db=_db)
        if otp_id is None:
            raise InvalidOrExpiredError()
        return {"success": True, "message": "OTP verified successfully"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error verifying password reset OTP: {e}")
        raise DownstreamError() from e


@timeit("reset_password_with_otp")
async def reset_password_with_otp(email: str, otp_code: str, new_password: str, db: AsyncSession = None) -> dict:
    """Consume a code and rotate the admin password.

    The code is claimed with a conditional update (only if still unused), so
    two concurrent resets cannot both win. The claim only sticks if the
    password update succeeds; otherwise the code stays usable for a retry.
    """
    try:
        email = normalize_email(email)
        otp_code = (otp_code or "").strip()
        if not email:
            raise ValidationError("Missing required fields")
        if not otp_code or not new_password:
            raise ValidationError("OTP and new password required")
        _check_code(otp_code)
        try:
            validate_password(new_password)
        except PasswordPolicyError as e:
            raise ValidationError(str(e)) from e

        now = _utcnow()
        mongo = _use_mongo()
        if mongo is not None:
            await _reset_mongo(mongo, email, otp_code, new_password, now)
        else:
            async with get_or_use_session(db) as _db:
                await _reset_sql(_db, email, otp_code, new_password, now)

        logger.info(f"Password reset completed for {email}")
        return {"success": True, "message": "Password reset successfully"}
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Error resetting password with OTP: {e}")
        raise DownstreamError() from e


async def _reset_sql(_db: AsyncSession, email: str, otp_code: str, new_password: str, now: datetime) -> None:
    otp_id = await _find_eligible_otp_id(email, otp_code, now, db=_db)
    if otp_id is None:
        raise InvalidOrExpiredError()

    admin = await get_admin_by_email(email, _db)
    if not admin or not admin.is_active:
        raise NotFoundError("User not found")

    claimed = await _db.execute(
        update(PasswordResetOTP)
        .where(
            PasswordResetOTP.id == otp_id,
            PasswordResetOTP.used.is_(False),
            PasswordResetOTP.expires_at >= now,
        )
        .values(used=True)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount == 0:
        # Lost the race to a concurrent reset
        await _db.rollback()
        raise InvalidOrExpiredError()

    try:
        await update_admin_password(admin.admin_id, new_password, _db, commit=False)
    except Exception as e:
        await _db.rollback()
        logger.error(f"Password update error for admin {admin.admin_id}: {e}")
        raise DownstreamError("Failed to update password") from e

    await safe_commit(_db, server_error_message="Failed to update password")


async def _reset_mongo(mongo, email: str, otp_code: str, new_password: str, now: datetime) -> None:
    otp_id = await _find_eligible_otp_id(email, otp_code, now, mongo=mongo)
    if otp_id is None:
        raise InvalidOrExpiredError()

    admin = await get_admin_by_email(email)
    if not admin or not admin.is_active:
        raise NotFoundError("User not found")

    claimed = await mongo.password_reset_otps.update_one(
        {"_id": otp_id, "used": False, "expires_at": {"$gte": now}},
        {"$set": {"used": True}},
    )
    if claimed.modified_count == 0:
        raise InvalidOrExpiredError()

    try:
        await update_admin_password(admin.admin_id, new_password)
    except Exception as e:
        # Release the claim so the code can be retried
        await mongo.password_reset_otps.update_one({"_id": otp_id}, {"$set": {"used": False}})
        logger.error(f"Password update error for admin {admin.admin_id}: {e}")
        raise DownstreamError("Failed to update password") from e
