from db.session import Base, engine
from db.models.admin_user import AdminUser  # noqa: F401
from db.models.password_reset_otp import PasswordResetOTP  # noqa: F401
from db.models.site_setting import SiteSetting  # noqa: F401
import logging

logger = logging.getLogger(__name__)

async def initialize_database():
    """Create tables only. Admin accounts are created with create_admin.py."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")
        raise
