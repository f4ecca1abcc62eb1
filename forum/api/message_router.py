from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.db import get_db
from forum.core.errors import NotFoundError, ValidationError
from forum.api.deps import get_attachment_handler, get_current_session, save_upload
from forum.models.session import ForumSession
from forum.models.user import User
from forum.schemas.message import (
    ConversationMessageRead,
    ConversationPreview,
    MessageCreated,
    MessageRead,
)
from forum.services.attachments import AttachmentHandler
from forum.services.message_service import MessageService, group_conversations


class MessageRouter:
    """
    APIRouter for direct messages.
    """

    def __init__(self) -> None:
        self.router = APIRouter(
            prefix="/messages",
            tags=["messages"],
        )
        self.service = MessageService()
        self._register_routes()

    def _register_routes(self) -> None:
        self.router.get("", response_model=List[MessageRead])(self.list_messages)
        self.router.get(
            "/conversations",
            response_model=List[ConversationPreview],
        )(self.list_conversations)
        self.router.get(
            "/conversation/{user_id}",
            response_model=List[ConversationMessageRead],
        )(self.get_conversation)
        self.router.post("", response_model=MessageCreated)(self.send_message)

    async def list_messages(
        self,
        db: AsyncSession = Depends(get_db),
        session: ForumSession = Depends(get_current_session),
    ):
        """
        All messages sent or received by the current user, newest first.
        """
        return await self.service.list_messages_for_user(db, session.user_id)

    async def list_conversations(
        self,
        db: AsyncSession = Depends(get_db),
        session: ForumSession = Depends(get_current_session),
    ):
        """
        One preview per conversation partner, most recent first.
        """
        messages = await self.service.list_messages_for_user(db, session.user_id)
        return group_conversations(messages, session.user_id)

    async def get_conversation(
        self,
        user_id: int = Path(..., description="The other participant"),
        db: AsyncSession = Depends(get_db),
        session: ForumSession = Depends(get_current_session),
    ):
        """
        Both directions of the conversation, oldest first. Marks inbound messages read.
        """
        return await self.service.list_conversation(db, session.user_id, user_id)

    async def send_message(
        self,
        recipientId: Optional[int] = Form(None),
        content: Optional[str] = Form(None),
        image: Optional[UploadFile] = File(None),
        db: AsyncSession = Depends(get_db),
        session: ForumSession = Depends(get_current_session),
        attachments: AttachmentHandler = Depends(get_attachment_handler),
    ):
        if not recipientId or content is None or not content.strip():
            raise ValidationError("Recipient and content required")
        if recipientId == session.user_id:
            raise ValidationError("You cannot message yourself")

        if await db.get(User, recipientId) is None:
            raise NotFoundError("Recipient not found")
        image_url = await save_upload(image, attachments)

        message = await self.service.send_message(
            db,
            sender_id=session.user_id,
            recipient_id=recipientId,
            content=content,
            image_url=image_url,
        )
        return MessageCreated(messageId=message.id, imageUrl=message.image_url)
