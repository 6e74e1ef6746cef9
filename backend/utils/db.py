import logging

from sqlalchemy.exc import IntegrityError

from core.errors import DownstreamError, ValidationError

logger = logging.getLogger(__name__)


async def safe_commit(session, client_error_message: str = "Invalid request", server_error_message: str = "Internal server error"):
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ValidationError(client_error_message) from e
    except Exception as e:
        logger.error(f"Commit failed: {e}")
        await session.rollback()
        raise DownstreamError(server_error_message) from e
