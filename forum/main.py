from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from forum.core.config import settings
from forum.core.logger import configure_logging, get_logger

# Configure logging
configure_logging()
logger = get_logger(__name__)

from forum.core.db import async_session_factory, init_models
from forum.core.errors import register_error_handlers
from forum.models.user import User  # noqa: F401
from forum.models.forum import Category, Thread, Post  # noqa: F401
from forum.models.message import Message  # noqa: F401
from forum.models.session import ForumSession  # noqa: F401
from forum.services.auth_service import AuthService
from forum.services.forum_service import ForumService
from forum.api.deps import attachment_handler, session_manager
from forum.api.auth_router import router as auth_router
from forum.api.forum_router import ForumRouter
from forum.api.message_router import MessageRouter
from forum.api.user_router import UserRouter
from forum.admin import admin_router


forum_router = ForumRouter()
message_router = MessageRouter()
user_router = UserRouter()

app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
)

register_error_handlers(app)

app.include_router(auth_router, prefix="/api")
app.include_router(forum_router.router, prefix="/api")
app.include_router(message_router.router, prefix="/api")
app.include_router(user_router.router, prefix="/api")
app.include_router(admin_router, prefix="/api")

attachment_handler.ensure_upload_dir()
app.mount(
    settings.UPLOAD_URL_PREFIX,
    StaticFiles(directory=str(attachment_handler.upload_dir)),
    name="uploads",
)


@app.on_event("startup")
async def on_startup():
    logger.info("Creating database tables (startup)")
    await init_models()

    async with async_session_factory() as db:
        await AuthService().ensure_default_admin(db)
        await ForumService().ensure_default_categories(db)
        await session_manager.purge_expired(db)
    logger.info("Database ready (startup)")


@app.get("/health")
async def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("forum.main:app", host="0.0.0.0", port=3000)
