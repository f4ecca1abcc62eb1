from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.errors import NotFoundError, ValidationError
from forum.core.logger import get_logger
from forum.models.forum import Category, Post, Thread
from forum.models.user import User

logger = get_logger(__name__)

DEFAULT_CATEGORIES = [
    ("General Discussion", "Talk about anything!"),
    ("Homework Help", "Get help with your assignments"),
    ("School Events", "Discuss upcoming events"),
    ("Sports", "Talk about sports and activities"),
    ("Off Topic", "Anything goes!"),
]


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class ForumService:
    async def list_categories(self, db: AsyncSession) -> List[Category]:
        res = await db.execute(select(Category).order_by(Category.name.asc(), Category.id.asc()))
        return list(res.scalars())

    async def ensure_default_categories(self, db: AsyncSession) -> int:
        """
        Seed the default categories when none exist. Returns how many were added.
        """
        count = (await db.execute(select(func.count(Category.id)))).scalar_one()
        if count:
            return 0

        for name, description in DEFAULT_CATEGORIES:
            db.add(Category(name=name, description=description))
        await db.commit()
        logger.info("Seeded %s default categories", len(DEFAULT_CATEGORIES))
        return len(DEFAULT_CATEGORIES)

    async def list_threads(self, db: AsyncSession, category_id: int) -> List[Dict[str, Any]]:
        """
        Threads of a category, most recently active first.

        Each row carries the author's username, the number of posts and
        last_activity (newest post time, or the thread's creation time).
        """
        post_count = (
            select(func.count(Post.id))
            .where(Post.thread_id == Thread.id)
            .correlate(Thread)
            .scalar_subquery()
        )
        last_post_at = (
            select(func.max(Post.created_at))
            .where(Post.thread_id == Thread.id)
            .correlate(Thread)
            .scalar_subquery()
        )

        stmt = (
            select(
                Thread.id,
                Thread.category_id,
                Thread.title,
                Thread.author_id,
                Thread.created_at,
                Thread.updated_at,
                User.username.label("author_name"),
                post_count.label("post_count"),
                func.coalesce(last_post_at, Thread.created_at, type_=DateTime).label("last_activity"),
            )
            .join(User, User.id == Thread.author_id)
            .where(Thread.category_id == category_id)
            .order_by(Thread.updated_at.desc(), Thread.id.desc())
        )
        res = await db.execute(stmt)
        return [dict(row) for row in res.mappings()]

    async def get_thread(self, db: AsyncSession, thread_id: int) -> Thread:
        thread = await db.get(Thread, thread_id)
        if thread is None:
            raise NotFoundError("Thread not found")
        return thread

    async def create_thread(
        self,
        db: AsyncSession,
        category_id: int,
        title: str,
        author_id: int,
    ) -> Thread:
        if not category_id or _is_blank(title):
            raise ValidationError("Category and title required")

        if await db.get(Category, category_id) is None:
            raise NotFoundError("Category not found")

        now = datetime.utcnow()
        thread = Thread(
            category_id=category_id,
            title=title.strip(),
            author_id=author_id,
            created_at=now,
            updated_at=now,
        )
        db.add(thread)
        await db.commit()
        await db.refresh(thread)
        logger.info("Thread created id=%s category=%s author=%s", thread.id, category_id, author_id)
        return thread

    async def list_posts(self, db: AsyncSession, thread_id: int) -> List[Dict[str, Any]]:
        """
        Posts of a thread in chronological order, with author usernames.
        """
        stmt = (
            select(
                Post.id,
                Post.thread_id,
                Post.author_id,
                Post.content,
                Post.image_url,
                Post.created_at,
                User.username.label("author_name"),
            )
            .join(User, User.id == Post.author_id)
            .where(Post.thread_id == thread_id)
            .order_by(Post.created_at.asc(), Post.id.asc())
        )
        res = await db.execute(stmt)
        return [dict(row) for row in res.mappings()]

    async def create_post(
        self,
        db: AsyncSession,
        thread_id: int,
        author_id: int,
        content: str,
        image_url: Optional[str] = None,
    ) -> Post:
        """
        Add a reply and bump the thread's updated_at.

        The bump is a separate statement after the post is committed; a failure
        between the two leaves updated_at stale but the post intact.
        """
        if not thread_id or _is_blank(content):
            raise ValidationError("Thread ID and content required")

        await self.get_thread(db, thread_id)

        post = Post(
            thread_id=thread_id,
            author_id=author_id,
            content=content,
            image_url=image_url,
        )
        db.add(post)
        await db.commit()
        await db.refresh(post)

        await db.execute(
            update(Thread)
            .where(Thread.id == thread_id)
            .values(updated_at=max(datetime.utcnow(), post.created_at))
        )
        await db.commit()

        logger.info("Post created id=%s thread=%s author=%s image=%s", post.id, thread_id, author_id, bool(image_url))
        return post

    async def delete_post(self, db: AsyncSession, post_id: int) -> None:
        res = await db.execute(delete(Post).where(Post.id == post_id))
        if not res.rowcount:
            await db.rollback()
            raise NotFoundError("Post not found")
        await db.commit()
        logger.info("Post deleted id=%s", post_id)

    async def delete_thread(self, db: AsyncSession, thread_id: int) -> None:
        """
        Delete the thread row only; its posts are left in place.
        """
        res = await db.execute(delete(Thread).where(Thread.id == thread_id))
        if not res.rowcount:
            await db.rollback()
            raise NotFoundError("Thread not found")
        await db.commit()
        logger.info("Thread deleted id=%s", thread_id)
