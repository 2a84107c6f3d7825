import chat_api.db.base  # noqa: F401

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi_mcp import FastApiMCP

from chat_api.core.config import settings
from chat_api.api.routes.health import router as health_router
from chat_api.api.routes.auth import router as auth_router
from chat_api.api.routes.me import router as me_router

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from chat_api.api.routes.friends import router as friends_router
from chat_api.api.routes.users import router as users_router

from chat_api.api.routes.chats import router as chats_router
from chat_api.api.routes.notifications import router as notifications_router

from chat_api.api.routes.messages import router as messages_router
from chat_api.api.routes.realtime import router as realtime_router
from chat_api.core.errors import InternalFailure
from chat_api.services.attachments import build_attachment_store
from chat_api.services.realtime import RealtimeHub


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.realtime.drain()


app = FastAPI(title="Chat API", version="0.1.0", lifespan=lifespan)
app.state.realtime = RealtimeHub()
app.state.attachment_store = build_attachment_store()

local_cors_origin_regex = (
    r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"
    if settings.env in {"local", "test"}
    else None
)


@app.exception_handler(InternalFailure)
async def internal_failure_handler(request: Request, exc: InternalFailure):
    logger.error("Internal failure for %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"detail": "Internal server error"}, status_code=500)


# Storage and unexpected faults never expose SQL, paths or tracebacks, in any env.
@app.exception_handler(SQLAlchemyError)
async def storage_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Storage failure for %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"detail": "Internal server error"}, status_code=500)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception for %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse({"detail": "Internal server error"}, status_code=500)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_origin_regex=local_cors_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(me_router)
app.include_router(users_router)
app.include_router(friends_router)
app.include_router(chats_router)
app.include_router(notifications_router)
app.include_router(messages_router)
app.include_router(realtime_router)

mcp = FastApiMCP(app)
mcp.mount_http()
