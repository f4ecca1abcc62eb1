from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field, StringConstraints


class CategoryRead(BaseModel):
    id: int
    name: str
    description: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class ThreadCreate(BaseModel):
    """Body for POST /threads (client sends camelCase)."""
    category_id: int = Field(alias="categoryId")
    title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]

    class Config:
        populate_by_name = True


class ThreadRead(BaseModel):
    """Thread with author and activity aggregates."""
    id: int
    category_id: int
    title: str
    author_id: int
    created_at: datetime
    updated_at: datetime
    author_name: str
    post_count: int
    last_activity: datetime


class ThreadCreated(BaseModel):
    success: bool = True
    threadId: int


class PostRead(BaseModel):
    id: int
    thread_id: int
    author_id: int
    content: str
    image_url: Optional[str]
    created_at: datetime
    author_name: str


class PostCreated(BaseModel):
    success: bool = True
    postId: int
    imageUrl: Optional[str]


class SuccessResponse(BaseModel):
    success: bool = True
