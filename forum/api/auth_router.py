from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from forum.core.config import settings
from forum.core.db import get_db
from forum.core.errors import AuthError
from forum.core.logger import get_logger
from forum.models.session import ForumSession
from forum.schemas.auth import LoginRequest, RegisterRequest
from forum.schemas.forum import SuccessResponse
from forum.schemas.user import LoginResponse, RegisterResponse, SessionUser
from forum.services.auth_service import AuthService
from forum.services.session_service import SessionManager
from forum.api.deps import get_optional_session, get_session_manager

logger = get_logger(__name__)

auth_service = AuthService()

router = APIRouter(tags=["auth"])


def _set_session_cookie(response: Response, session: ForumSession, sessions: SessionManager) -> None:
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.token,
        max_age=sessions.max_age_seconds,
        httponly=True,
        secure=settings.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


@router.post("/register", response_model=RegisterResponse)
async def register(
    data: RegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Register a new user and log them in.
    """
    user = await auth_service.register(db, data.username, data.email, data.password)
    session = await sessions.create(db, user)
    _set_session_cookie(response, session, sessions)
    return RegisterResponse(userId=user.id, username=user.username)


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Authenticate with username and password and start a session.
    """
    user = await auth_service.authenticate(db, data.username, data.password)
    session = await sessions.create(db, user)
    _set_session_cookie(response, session, sessions)
    return LoginResponse(userId=user.id, username=user.username, isAdmin=bool(user.is_admin))


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    await sessions.destroy(db, request.cookies.get(settings.SESSION_COOKIE_NAME))
    logger.info("Logout requested")
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    return SuccessResponse()


@router.get("/me", response_model=SessionUser)
async def get_me(session: Optional[ForumSession] = Depends(get_optional_session)):
    """
    Return the identity bound to the current session.
    """
    if session is None:
        raise AuthError("Not authenticated")
    return SessionUser(userId=session.user_id, username=session.username, isAdmin=bool(session.is_admin))
