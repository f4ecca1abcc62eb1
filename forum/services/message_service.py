from typing import Any, Dict, List, Optional

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from forum.core.errors import NotFoundError, ValidationError
from forum.core.logger import get_logger
from forum.models.message import Message
from forum.models.user import User

logger = get_logger(__name__)


def group_conversations(
    messages: List[Dict[str, Any]],
    viewer_id: int,
) -> List[Dict[str, Any]]:
    """
    Collapse a viewer's newest-first message list into one entry per partner.

    Each entry keeps the most recent message as a preview and is unread when
    any message from that partner to the viewer is still unread. Entries keep
    the order of their newest message.
    """
    conversations: Dict[int, Dict[str, Any]] = {}
    for msg in messages:
        outbound = msg["sender_id"] == viewer_id
        partner_id = msg["recipient_id"] if outbound else msg["sender_id"]
        partner_name = msg["recipient_name"] if outbound else msg["sender_name"]

        entry = conversations.get(partner_id)
        if entry is None:
            entry = {
                "user_id": partner_id,
                "username": partner_name,
                "last_message": msg,
                "unread": False,
            }
            conversations[partner_id] = entry

        if msg["recipient_id"] == viewer_id and not msg["read"]:
            entry["unread"] = True

    return list(conversations.values())


class MessageService:
    async def list_messages_for_user(self, db: AsyncSession, user_id: int) -> List[Dict[str, Any]]:
        """
        Every message the user sent or received, newest first.
        """
        sender = aliased(User)
        recipient = aliased(User)
        stmt = (
            select(
                Message.id,
                Message.sender_id,
                Message.recipient_id,
                Message.content,
                Message.image_url,
                Message.created_at,
                Message.read,
                sender.username.label("sender_name"),
                recipient.username.label("recipient_name"),
            )
            .join(sender, sender.id == Message.sender_id)
            .join(recipient, recipient.id == Message.recipient_id)
            .where(or_(Message.sender_id == user_id, Message.recipient_id == user_id))
            .order_by(Message.created_at.desc(), Message.id.desc())
        )
        res = await db.execute(stmt)
        return [dict(row) for row in res.mappings()]

    async def list_conversation(
        self,
        db: AsyncSession,
        viewer_id: int,
        other_id: int,
    ) -> List[Dict[str, Any]]:
        """
        Messages between viewer and other in both directions, oldest first.

        Afterwards every message from other to viewer is marked read. The
        returned rows show the read state as it was before marking.
        """
        sender = aliased(User)
        stmt = (
            select(
                Message.id,
                Message.sender_id,
                Message.recipient_id,
                Message.content,
                Message.image_url,
                Message.created_at,
                Message.read,
                sender.username.label("sender_name"),
            )
            .join(sender, sender.id == Message.sender_id)
            .where(
                or_(
                    and_(Message.sender_id == viewer_id, Message.recipient_id == other_id),
                    and_(Message.sender_id == other_id, Message.recipient_id == viewer_id),
                )
            )
            .order_by(Message.created_at.asc(), Message.id.asc())
        )
        res = await db.execute(stmt)
        messages = [dict(row) for row in res.mappings()]

        marked = await db.execute(
            update(Message)
            .where(
                Message.recipient_id == viewer_id,
                Message.sender_id == other_id,
                Message.read.is_(False),
            )
            .values(read=True)
        )
        await db.commit()
        if marked.rowcount:
            logger.debug("Marked %s messages read for user=%s from user=%s", marked.rowcount, viewer_id, other_id)

        return messages

    async def send_message(
        self,
        db: AsyncSession,
        sender_id: int,
        recipient_id: int,
        content: str,
        image_url: Optional[str] = None,
    ) -> Message:
        if not recipient_id or content is None or not content.strip():
            raise ValidationError("Recipient and content required")
        if recipient_id == sender_id:
            raise ValidationError("You cannot message yourself")

        if await db.get(User, recipient_id) is None:
            raise NotFoundError("Recipient not found")

        message = Message(
            sender_id=sender_id,
            recipient_id=recipient_id,
            content=content,
            image_url=image_url,
            read=False,
        )
        db.add(message)
        await db.commit()
        await db.refresh(message)
        logger.info("Message sent id=%s from=%s to=%s image=%s", message.id, sender_id, recipient_id, bool(image_url))
        return message
