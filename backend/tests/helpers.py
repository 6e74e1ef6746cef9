"""Shared test helpers; fixtures live in conftest.py."""
from unittest.mock import AsyncMock

from faker import Faker
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.security import get_password_hash
from db.models.admin_user import AdminUser as AdminUserModel
from db.models.password_reset_otp import PasswordResetOTP
from schemas.auth_schema import AdminUser

fake = Faker()

ADMIN_EMAIL = "admin@x.com"
ADMIN_PASSWORD = "oldpassword123"


async def make_admin(db_session: AsyncSession, email: str = ADMIN_EMAIL, password: str = ADMIN_PASSWORD, is_active: bool = True) -> AdminUser:
    row = AdminUserModel(
        email=email,
        full_name=fake.name(),
        hashed_password=get_password_hash(password),
        is_active=is_active,
    )
    db_session.add(row)
    await db_session.commit()
    await db_session.refresh(row)
    # Plain schema so tests never touch expired ORM state after a rollback
    return AdminUser(admin_id=str(row.id), email=row.email, full_name=row.full_name, is_active=row.is_active)


def sent_code(mocked: AsyncMock) -> str:
    """OTP code passed to the most recent send_otp_email call."""
    return mocked.await_args.args[1]


async def otp_rows(db_session: AsyncSession, email: str = ADMIN_EMAIL):
    db_session.expire_all()
    result = await db_session.execute(
        select(PasswordResetOTP).where(PasswordResetOTP.email == email).order_by(PasswordResetOTP.id)
    )
    return result.scalars().all()


async def stored_password_hash(db_session: AsyncSession, email: str = ADMIN_EMAIL) -> str:
    db_session.expire_all()
    result = await db_session.execute(select(AdminUserModel.hashed_password).where(AdminUserModel.email == email))
    return result.scalar_one()
