from datetime import datetime

from pydantic import BaseModel


class SessionUser(BaseModel):
    """Identity of the logged-in user, as returned by /me and /login."""
    userId: int
    username: str
    isAdmin: bool


class RegisterResponse(BaseModel):
    success: bool = True
    userId: int
    username: str


class LoginResponse(SessionUser):
    success: bool = True


class UserPublic(BaseModel):
    id: int
    username: str
    email: str
    created_at: datetime

    class Config:
        from_attributes = True


class UserAdminRead(UserPublic):
    is_admin: bool
