"""Shared request dependencies: identity from cookies."""
import uuid
from typing import Annotated

from fastapi import Depends, Request, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from simtrack.core.config import get_settings
from simtrack.core.security import verify_session_token
from simtrack.db.session import get_db
from simtrack.models.user import User

settings = get_settings()


async def get_current_user_optional(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User | None:
    """Return current user if auth cookie is valid; else None."""
    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        return None
    user_id = verify_session_token(token)
    if user_id is None:
        return None
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


def get_session_id(request: Request) -> str | None:
    return request.cookies.get(settings.session_cookie_name)


def get_or_create_session_id(request: Request) -> str:
    sid = get_session_id(request)
    if not sid:
        sid = str(uuid.uuid4())
    return sid


def ensure_session_cookie(request: Request, response: Response, session_id: str | None) -> None:
    if session_id and not request.cookies.get(settings.session_cookie_name):
        response.set_cookie(
            key=settings.session_cookie_name,
            value=session_id,
            max_age=settings.session_cookie_max_age,
            httponly=True,
            samesite="lax",
        )
