"""Branches API: paginated branches of a repository, single branch by name."""

from fastapi import APIRouter, Request

from ci_api.api.deps import (
    Access,
    BranchName,
    Caller,
    Gateway,
    RepositoryRef,
    Window,
    find_visible_repository,
    request_href,
)
from ci_api.core.errors import NotFoundError
from ci_api.services.rendering import render_branch, render_collection

router = APIRouter(tags=["branches"])


@router.get(
    "/repo/{ref}/branches",
    summary="List branches",
    responses={404: {"description": "Repository not found (or insufficient access)"}},
)
async def list_branches(
    request: Request,
    ref: RepositoryRef,
    caller: Caller,
    query: Gateway,
    access: Access,
    window: Window,
    exists_on_github: bool | None = None,
) -> dict:
    repository = await find_visible_repository(query, access, caller, ref)
    offset, limit = window
    page = await query.list_branches(repository, offset, limit, exists_on_github=exists_on_github)
    return render_collection("branches", request_href(request), page, render_branch)


@router.get(
    "/repo/{ref}/branch/{name}",
    summary="Find branch",
    responses={404: {"description": "Repository or branch not found"}},
)
async def find_branch(
    ref: RepositoryRef,
    name: BranchName,
    caller: Caller,
    query: Gateway,
    access: Access,
) -> dict:
    repository = await find_visible_repository(query, access, caller, ref)
    branch = await query.find_branch(repository, name)
    if branch is None:
        raise NotFoundError("branch")
    return render_branch(branch)
