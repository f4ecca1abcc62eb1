from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.db import get_db
from forum.core.errors import ValidationError
from forum.api.deps import get_attachment_handler, get_current_session, save_upload
from forum.models.session import ForumSession
from forum.schemas.forum import (
    CategoryRead,
    PostCreated,
    PostRead,
    ThreadCreate,
    ThreadCreated,
    ThreadRead,
)
from forum.services.attachments import AttachmentHandler
from forum.services.forum_service import ForumService


class ForumRouter:
    """
    APIRouter for categories, threads and posts.
    """

    def __init__(self) -> None:
        self.router = APIRouter(tags=["forum"])
        self.service = ForumService()
        self._register_routes()

    def _register_routes(self) -> None:
        self.router.get("/categories", response_model=List[CategoryRead])(self.list_categories)
        self.router.get("/threads/{category_id}", response_model=List[ThreadRead])(self.list_threads)
        self.router.post("/threads", response_model=ThreadCreated)(self.create_thread)
        self.router.get("/posts/{thread_id}", response_model=List[PostRead])(self.list_posts)
        self.router.post("/posts", response_model=PostCreated)(self.create_post)

    async def list_categories(self, db: AsyncSession = Depends(get_db)):
        return await self.service.list_categories(db)

    async def list_threads(
        self,
        category_id: int,
        db: AsyncSession = Depends(get_db),
    ):
        """
        Threads in a category, most recently active first.
        """
        return await self.service.list_threads(db, category_id)

    async def create_thread(
        self,
        data: ThreadCreate,
        db: AsyncSession = Depends(get_db),
        session: ForumSession = Depends(get_current_session),
    ):
        thread = await self.service.create_thread(
            db,
            category_id=data.category_id,
            title=data.title,
            author_id=session.user_id,
        )
        return ThreadCreated(threadId=thread.id)

    async def list_posts(
        self,
        thread_id: int,
        db: AsyncSession = Depends(get_db),
    ):
        return await self.service.list_posts(db, thread_id)

    async def create_post(
        self,
        threadId: Optional[int] = Form(None),
        content: Optional[str] = Form(None),
        image: Optional[UploadFile] = File(None),
        db: AsyncSession = Depends(get_db),
        session: ForumSession = Depends(get_current_session),
        attachments: AttachmentHandler = Depends(get_attachment_handler),
    ):
        """
        Reply to a thread. Multipart form with an optional image part.
        """
        if not threadId or content is None or not content.strip():
            raise ValidationError("Thread ID and content required")

        # check the thread before writing any file
        await self.service.get_thread(db, threadId)
        image_url = await save_upload(image, attachments)

        post = await self.service.create_post(
            db,
            thread_id=threadId,
            author_id=session.user_id,
            content=content,
            image_url=image_url,
        )
        return PostCreated(postId=post.id, imageUrl=post.image_url)
