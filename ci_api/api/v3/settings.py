"""Settings API: settings of a repository, single setting by name. Both require a logged-in caller."""

from fastapi import APIRouter, Request

from ci_api.api.deps import Access, Caller, Gateway, RepositoryRef, find_visible_repository, request_href
from ci_api.core.errors import NotFoundError
from ci_api.services.rendering import render_setting, render_settings

router = APIRouter(tags=["settings"])


@router.get(
    "/repo/{ref}/settings",
    summary="List settings",
    responses={404: {"description": "Repository not found (or insufficient access)"}},
)
async def list_settings(
    request: Request,
    ref: RepositoryRef,
    caller: Caller,
    query: Gateway,
    access: Access,
) -> dict:
    repository = await find_visible_repository(query, access, caller, ref, login_required=True)
    return render_settings(request_href(request), await query.list_settings(repository))


@router.get(
    "/repo/{ref}/setting/{name}",
    summary="Find setting",
    responses={404: {"description": "Repository or setting not found"}},
)
async def find_setting(ref: RepositoryRef, name: str, caller: Caller, query: Gateway, access: Access) -> dict:
    repository = await find_visible_repository(query, access, caller, ref, login_required=True)
    setting = await query.find_setting(repository, name)
    if setting is None:
        raise NotFoundError("setting")
    return render_setting(setting)
