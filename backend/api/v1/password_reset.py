from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import ValidationError
from db.session import get_db_session
from services.password_reset_service import (
    request_password_reset,
    verify_password_reset_otp,
    reset_password_with_otp,
)
from utils.responses import no_store_json

router = APIRouter()

ACTIONS = ("send", "verify", "reset")


def _field(payload: dict, name: str) -> str:
    value = payload.get(name)
    if value is None:
        return ""
    return str(value).strip()


def client_metadata(request: Request) -> tuple[str, str]:
    """Originating address and user agent, kept for audit only."""
    user_agent = request.headers.get("user-agent") or ""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip_address = forwarded.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else ""
    return ip_address, user_agent


@router.post("/functions/send-otp-email")
async def otp_action(payload: dict, request: Request, db: AsyncSession = Depends(get_db_session)):
    """Single send / verify / reset endpoint selected by ``action``."""
    email = _field(payload, "email")
    action = _field(payload, "action")
    if not email or not action:
        raise ValidationError("Missing required fields")
    if action not in ACTIONS:
        raise ValidationError("Invalid action")

    if action == "send":
        ip_address, user_agent = client_metadata(request)
        result = await request_password_reset(email, db, ip_address=ip_address, user_agent=user_agent)
    elif action == "verify":
        result = await verify_password_reset_otp(email, _field(payload, "otp"), db)
    else:
        # Passwords are not trimmed
        new_password = payload.get("newPassword")
        result = await reset_password_with_otp(email, _field(payload, "otp"), new_password if isinstance(new_password, str) else "", db)
    return no_store_json(result)


@router.post("/forgot-password")
async def forgot_password(payload: dict, request: Request, db: AsyncSession = Depends(get_db_session)):
    ip_address, user_agent = client_metadata(request)
    return no_store_json(await request_password_reset(_field(payload, "email"), db, ip_address=ip_address, user_agent=user_agent))


@router.post("/verify-otp")
async def verify_otp(payload: dict, db: AsyncSession = Depends(get_db_session)):
    return no_store_json(await verify_password_reset_otp(_field(payload, "email"), _field(payload, "otp"), db))


@router.post("/reset-password")
async def reset_password(payload: dict, db: AsyncSession = Depends(get_db_session)):
    new_password = payload.get("new_password")
    return no_store_json(await reset_password_with_otp(
        _field(payload, "email"),
        _field(payload, "otp"),
        new_password if isinstance(new_password, str) else "",
        db,
    ))
