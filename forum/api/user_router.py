from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.db import get_db
from forum.api.deps import get_current_session
from forum.schemas.user import UserPublic
from forum.services.auth_service import AuthService


class UserRouter:
    def __init__(self) -> None:
        self.router = APIRouter(
            prefix="/users",
            tags=["users"],
        )
        self.service = AuthService()
        self._register_routes()

    def _register_routes(self) -> None:
        self.router.get("", response_model=List[UserPublic])(self.list_users)

    async def list_users(
        self,
        db: AsyncSession = Depends(get_db),
        session=Depends(get_current_session),
    ):
        """
        All users ordered by username, for picking a message recipient.
        Does not return the password hash or admin status.
        """
        users = await self.service.list_users(db)
        return [UserPublic.model_validate(u) for u in users]
