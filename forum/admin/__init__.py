from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.db import get_db
from forum.core.logger import get_logger
from forum.api.deps import get_current_admin
from forum.models.session import ForumSession
from forum.schemas.forum import SuccessResponse
from forum.schemas.user import UserAdminRead
from forum.services.auth_service import AuthService
from forum.services.forum_service import ForumService

logger = get_logger(__name__)

auth_service = AuthService()
forum_service = ForumService()

admin_router = APIRouter(prefix="/admin", tags=["admin"])


@admin_router.get("/users", response_model=List[UserAdminRead])
async def admin_list_users(
    db: AsyncSession = Depends(get_db),
    admin: ForumSession = Depends(get_current_admin),
):
    """
    List all users, newest first, including email and admin flag.
    """
    users = await auth_service.list_users(db, admin=True)
    return [UserAdminRead.model_validate(u) for u in users]


@admin_router.post("/users/{user_id}/toggle-admin", response_model=SuccessResponse)
async def admin_toggle_user_admin(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    admin: ForumSession = Depends(get_current_admin),
):
    await auth_service.toggle_admin_flag(db, user_id, acting_user_id=admin.user_id)
    return SuccessResponse()


@admin_router.delete("/posts/{post_id}", response_model=SuccessResponse)
async def admin_delete_post(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    admin: ForumSession = Depends(get_current_admin),
):
    logger.info("Admin %s deleting post %s", admin.user_id, post_id)
    await forum_service.delete_post(db, post_id)
    return SuccessResponse()


@admin_router.delete("/threads/{thread_id}", response_model=SuccessResponse)
async def admin_delete_thread(
    thread_id: int,
    db: AsyncSession = Depends(get_db),
    admin: ForumSession = Depends(get_current_admin),
):
    """
    Delete a thread. Its posts are not removed.
    """
    logger.info("Admin %s deleting thread %s", admin.user_id, thread_id)
    await forum_service.delete_thread(db, thread_id)
    return SuccessResponse()
