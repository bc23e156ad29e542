"""FastAPI dependencies: optional caller from the access token, gateway/oracle per request, window params."""

import re
from typing import Annotated

from fastapi import Depends, Query, Request
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ci_api.core.auth import decode_token, extract_token
from ci_api.core.errors import InvalidTokenError, NotFoundError
from ci_api.db.session import get_db
from ci_api.models.repository import Repository
from ci_api.models.user import User
from ci_api.services.access_control import AccessControl
from ci_api.services.pagination import resolve_window
from ci_api.services.queries import QueryGateway

ENCODED_SLASH = re.compile("%2F", re.IGNORECASE)


async def get_current_caller(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db)],
) -> User | None:
    """None for anonymous requests. A header that is present but unusable is an error, not anonymous."""
    try:
        token = extract_token(request.headers.get("Authorization"))
    except ValueError:
        raise InvalidTokenError()
    if token is None:
        return None
    try:
        payload = decode_token(token)
    except JWTError:
        raise InvalidTokenError()
    user_id_str = payload.get("sub")
    if not user_id_str:
        raise InvalidTokenError()
    try:
        user_id = int(user_id_str)
    except ValueError:
        raise InvalidTokenError()
    r = await session.execute(select(User).where(User.id == user_id))
    user = r.scalar_one_or_none()
    if not user:
        raise InvalidTokenError()
    return user


def get_query(session: Annotated[AsyncSession, Depends(get_db)]) -> QueryGateway:
    return QueryGateway(session)


def get_access_control(session: Annotated[AsyncSession, Depends(get_db)]) -> AccessControl:
    return AccessControl(session)


def get_window(
    limit: Annotated[int | None, Query(description="Max items per page")] = None,
    offset: Annotated[int | None, Query(description="Number of items to skip")] = None,
) -> tuple[int, int]:
    """(offset, limit) after applying the default/max limit policy."""
    return resolve_window(limit, offset)


async def find_visible_repository(
    query: QueryGateway,
    access: AccessControl,
    caller: User | None,
    ref: str,
    login_required: bool = False,
) -> Repository:
    """
    Repository by id or slug; missing and invisible both raise the same NotFoundError.
    With login_required, an anonymous caller gets that answer too.
    """
    if login_required and caller is None:
        raise NotFoundError("repository")
    repository = await query.find_repository(ref)
    if repository is None or not await access.visible(caller, repository):
        raise NotFoundError("repository")
    return repository


def path_segment(value: str) -> str:
    """Path param as routed (slashes kept as %2F) back to its plain value."""
    return ENCODED_SLASH.sub("/", value)


def get_repository_ref(ref: str) -> str:
    return path_segment(ref)


def get_branch_name(name: str) -> str:
    return path_segment(name)


def request_href(request: Request) -> str:
    """Path (with the caller's percent-encoding) plus query string; base for @href and pagination links."""
    raw_path = request.scope.get("raw_path")
    path = raw_path.split(b"?", 1)[0].decode("latin-1") if raw_path else request.url.path
    query = request.url.query
    return f"{path}?{query}" if query else path


Caller = Annotated[User | None, Depends(get_current_caller)]
Gateway = Annotated[QueryGateway, Depends(get_query)]
Access = Annotated[AccessControl, Depends(get_access_control)]
Window = Annotated[tuple[int, int], Depends(get_window)]
RepositoryRef = Annotated[str, Depends(get_repository_ref)]
BranchName = Annotated[str, Depends(get_branch_name)]
