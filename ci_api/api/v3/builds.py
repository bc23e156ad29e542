"""Builds API: paginated builds of a repository, single build."""

from typing import Annotated

from fastapi import APIRouter, Query, Request

from ci_api.api.deps import Access, Caller, Gateway, RepositoryRef, Window, find_visible_repository, request_href
from ci_api.core.errors import NotFoundError
from ci_api.services.rendering import render_build, render_collection

router = APIRouter(tags=["builds"])


def _split_list(value: str | None) -> list[str] | None:
    """Comma-separated query value -> list, None when absent or blank."""
    if not value:
        return None
    items = [v.strip() for v in value.split(",") if v.strip()]
    return items or None


@router.get(
    "/repo/{ref}/builds",
    summary="List builds",
    responses={404: {"description": "Repository not found (or insufficient access)"}},
)
async def list_builds(
    request: Request,
    ref: RepositoryRef,
    caller: Caller,
    query: Gateway,
    access: Access,
    window: Window,
    branch_name: Annotated[str | None, Query(alias="branch.name")] = None,
    state: str | None = None,
    event_type: str | None = None,
) -> dict:
    """Builds of the repository, newest first. Filters narrow both the items and the count."""
    repository = await find_visible_repository(query, access, caller, ref)
    offset, limit = window
    page = await query.list_builds(
        repository,
        offset,
        limit,
        branch_name=branch_name,
        states=_split_list(state),
        event_types=_split_list(event_type),
    )
    return render_collection("builds", request_href(request), page, render_build)


@router.get(
    "/build/{build_id}",
    summary="Find build",
    responses={404: {"description": "Build not found (or insufficient access)"}},
)
async def find_build(build_id: int, caller: Caller, query: Gateway, access: Access) -> dict:
    build = await query.find_build(build_id)
    if build is None or not await access.visible(caller, build.repository):
        raise NotFoundError("build")
    return render_build(build)
