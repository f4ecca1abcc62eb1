from typing import Optional

from fastapi import Depends, Request, UploadFile
from starlette.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.config import settings
from forum.core.db import get_db
from forum.core.errors import AuthError, ForbiddenError
from forum.core.logger import get_logger
from forum.models.session import ForumSession
from forum.services.attachments import AttachmentHandler
from forum.services.session_service import SessionManager

logger = get_logger(__name__)

session_manager = SessionManager()
attachment_handler = AttachmentHandler()


def get_session_manager() -> SessionManager:
    return session_manager


def get_attachment_handler() -> AttachmentHandler:
    return attachment_handler


async def get_optional_session(
    request: Request,
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
) -> Optional[ForumSession]:
    """
    Resolve the session cookie to a live session, or None.
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    return await sessions.get(db, token)


async def get_current_session(
    session: Optional[ForumSession] = Depends(get_optional_session),
) -> ForumSession:
    """
    Require a logged-in user.
    """
    if session is None:
        logger.debug("Rejected request without a valid session")
        raise AuthError("Authentication required")
    return session


async def get_current_admin(
    session: ForumSession = Depends(get_current_session),
) -> ForumSession:
    """
    Ensure the current session belongs to an admin.
    """
    if not session.is_admin:
        logger.warning("Non-admin user=%s denied admin endpoint", session.user_id)
        raise ForbiddenError("Admin access required")
    return session


async def save_upload(
    image: Optional[UploadFile],
    handler: AttachmentHandler,
) -> Optional[str]:
    """
    Store an optional multipart image part and return its URL.

    Browsers send an empty part with no filename when nothing was chosen.
    """
    if image is None or not image.filename:
        return None
    content = await image.read()
    return await run_in_threadpool(handler.store, content, image.filename, image.content_type)
