from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.config import settings
from forum.core.logger import get_logger
from forum.models.session import ForumSession
from forum.models.user import User
from forum.security.security import generate_session_token

logger = get_logger(__name__)


class SessionManager:
    """
    Server-side sessions with a fixed lifetime counted from issuance.
    """

    def __init__(self, max_age: Optional[timedelta] = None) -> None:
        if max_age is None:
            max_age = timedelta(days=settings.SESSION_MAX_AGE_DAYS)
        self.max_age = max_age

    @property
    def max_age_seconds(self) -> int:
        return int(self.max_age.total_seconds())

    async def create(self, db: AsyncSession, user: User) -> ForumSession:
        now = datetime.utcnow()
        session = ForumSession(
            token=generate_session_token(),
            user_id=user.id,
            username=user.username,
            is_admin=bool(user.is_admin),
            created_at=now,
            expires_at=now + self.max_age,
        )
        db.add(session)
        await db.commit()
        logger.debug("Created session for user=%s expires=%s", user.id, session.expires_at.isoformat())
        return session

    async def get(self, db: AsyncSession, token: Optional[str]) -> Optional[ForumSession]:
        """
        Return the live session for a token, or None. Expired sessions are removed.
        """
        if not token:
            return None

        session = await db.get(ForumSession, token)
        if session is None:
            return None

        if session.expires_at <= datetime.utcnow():
            logger.info("Session expired for user=%s", session.user_id)
            await db.delete(session)
            await db.commit()
            return None

        return session

    async def destroy(self, db: AsyncSession, token: Optional[str]) -> None:
        if not token:
            return
        await db.execute(delete(ForumSession).where(ForumSession.token == token))
        await db.commit()
        logger.debug("Session destroyed")

    async def purge_expired(self, db: AsyncSession) -> int:
        res = await db.execute(
            delete(ForumSession).where(ForumSession.expires_at <= datetime.utcnow())
        )
        await db.commit()
        removed = res.rowcount or 0
        if removed:
            logger.info("Purged %s expired sessions", removed)
        return removed

