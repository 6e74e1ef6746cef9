from fastapi import Depends
from core.errors import AuthenticationError, AppError
from core.security import oauth2_scheme, verify_token
from schemas.auth_schema import AdminUser
from services.auth_service import get_admin_by_email
from db.session import get_db_session
from sqlalchemy.ext.asyncio import AsyncSession
import logging

logger = logging.getLogger(__name__)

async def admin_required(token: str = Depends(oauth2_scheme), db: AsyncSession = Depends(get_db_session)) -> AdminUser:
    payload = verify_token(token)
    if not payload or payload.get("role") != "admin":
        raise AuthenticationError()

    try:
        admin = await get_admin_by_email(payload.get("sub"), db)
    except AppError:
        raise
    except Exception as e:
        # No DB, no admin: tokens alone never grant access
        logger.error(f"admin_required lookup failed: {e}")
        raise AuthenticationError() from e

    if not admin or not admin.is_active:
        raise AuthenticationError()
    return AdminUser(**admin.model_dump())
