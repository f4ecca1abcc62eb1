from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class MessageRead(BaseModel):
    """Message with both participants' usernames (inbox listing)."""
    id: int
    sender_id: int
    recipient_id: int
    content: str
    image_url: Optional[str]
    created_at: datetime
    read: bool
    sender_name: str
    recipient_name: str


class ConversationMessageRead(BaseModel):
    """Message inside a two-person conversation."""
    id: int
    sender_id: int
    recipient_id: int
    content: str
    image_url: Optional[str]
    created_at: datetime
    read: bool
    sender_name: str


class ConversationPreview(BaseModel):
    user_id: int
    username: str
    last_message: MessageRead
    unread: bool


class MessageCreated(BaseModel):
    success: bool = True
    messageId: int
    imageUrl: Optional[str]
