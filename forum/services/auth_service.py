from typing import List

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.config import settings
from forum.core.errors import AuthError, ConflictError, NotFoundError, ValidationError
from forum.core.logger import get_logger
from forum.models.user import User
from forum.security.security import hash_password, verify_password

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
DUPLICATE_USER = "Username or email already exists"


class AuthService:
    async def register(
        self,
        db: AsyncSession,
        username: str,
        email: str,
        password: str,
    ) -> User:
        """
        Create a non-admin user.

        Raises ConflictError when the username or the email is already taken.
        """
        if not username or not email or not password:
            raise ValidationError("All fields required")

        logger.info("Register attempt: username=%s email=%s", username, email)

        existing = await db.execute(
            select(User.id).where(
                or_(User.username == username, User.email == email)
            )
        )
        if existing.scalars().first() is not None:
            logger.warning("Registration failed: username or email taken: %s / %s", username, email)
            raise ConflictError(DUPLICATE_USER)

        user = User(
            username=username,
            email=email,
            hashed_password=hash_password(password),
            is_admin=False,
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # lost a race with a concurrent registration
            await db.rollback()
            logger.warning("Registration hit unique constraint: %s / %s", username, email)
            raise ConflictError(DUPLICATE_USER)
        await db.refresh(user)

        logger.info("User registered id=%s username=%s", user.id, user.username)
        return user

    async def authenticate(
        self,
        db: AsyncSession,
        username: str,
        password: str,
    ) -> User:
        """
        Return the user for valid credentials.

        Unknown username and wrong password fail with the same AuthError.
        """
        logger.info("Login attempt for username=%s", username)

        result = await db.execute(select(User).where(User.username == username))
        user = result.scalars().first()

        if not user or not password or not verify_password(password, user.hashed_password):
            logger.warning("Login failed for username=%s", username)
            raise AuthError(INVALID_CREDENTIALS)

        logger.info("User logged in id=%s username=%s", user.id, user.username)
        return user

    async def get_user(self, db: AsyncSession, user_id: int) -> User:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalars().first()
        if not user:
            raise NotFoundError("User not found")
        return user

    async def set_admin_flag(
        self,
        db: AsyncSession,
        user_id: int,
        value: bool,
    ) -> User:
        user = await self.get_user(db, user_id)
        user.is_admin = bool(value)
        await db.commit()
        logger.info("Admin flag set user=%s is_admin=%s", user.id, user.is_admin)
        return user

    async def toggle_admin_flag(
        self,
        db: AsyncSession,
        user_id: int,
        acting_user_id: int,
    ) -> User:
        """
        Flip a user's admin flag. An admin cannot demote themselves.
        """
        user = await self.get_user(db, user_id)

        if user.id == acting_user_id and user.is_admin:
            raise ValidationError("You cannot remove your own admin role")

        user.is_admin = not user.is_admin
        await db.commit()
        logger.info(
            "Admin flag toggled user=%s is_admin=%s by admin=%s",
            user.id,
            user.is_admin,
            acting_user_id,
        )
        return user

    async def list_users(self, db: AsyncSession, admin: bool = False) -> List[User]:
        """
        Public listing is ordered by username; the admin listing is newest first.
        """
        if admin:
            stmt = select(User).order_by(User.created_at.desc(), User.id.desc())
        else:
            stmt = select(User).order_by(User.username.asc())
        res = await db.execute(stmt)
        return list(res.scalars())

    async def ensure_default_admin(self, db: AsyncSession) -> None:
        result = await db.execute(
            select(User.id).where(User.username == settings.DEFAULT_ADMIN_USERNAME)
        )
        if result.scalars().first() is not None:
            return

        db.add(
            User(
                username=settings.DEFAULT_ADMIN_USERNAME,
                email=settings.DEFAULT_ADMIN_EMAIL,
                hashed_password=hash_password(settings.DEFAULT_ADMIN_PASSWORD),
                is_admin=True,
            )
        )
        await db.commit()
        logger.info("Seeded default admin user %s", settings.DEFAULT_ADMIN_USERNAME)
