"""Repository endpoint: find by id or slug."""

from fastapi import APIRouter

from ci_api.api.deps import Access, Caller, Gateway, RepositoryRef, find_visible_repository
from ci_api.services.rendering import render_repository

router = APIRouter(tags=["repositories"])


@router.get(
    "/repo/{ref}",
    summary="Find repository",
    responses={404: {"description": "Repository not found (or insufficient access)"}},
)
async def find_repository(ref: RepositoryRef, caller: Caller, query: Gateway, access: Access) -> dict:
    repository = await find_visible_repository(query, access, caller, ref)
    return render_repository(repository)
