"""Crons API: per-branch cron schedules (create/replace, find, list, delete)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

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
from ci_api.db.session import get_db
from ci_api.models.grant import Capability
from ci_api.schemas.cron import CronCreate as CronCreateBody
from ci_api.services.audit import log_action
from ci_api.services.cron_create import CronCreate, CronCreateContext
from ci_api.services.rendering import render_collection, render_cron

router = APIRouter(tags=["crons"])


@router.get(
    "/repo/{ref}/crons",
    summary="List crons",
    responses={404: {"description": "Repository not found (or insufficient access)"}},
)
async def list_crons(
    request: Request,
    ref: RepositoryRef,
    caller: Caller,
    query: Gateway,
    access: Access,
    window: Window,
) -> dict:
    repository = await find_visible_repository(query, access, caller, ref)
    offset, limit = window
    page = await query.list_crons(repository, offset, limit)
    return render_collection("crons", request_href(request), page, render_cron)


@router.get(
    "/repo/{ref}/branch/{name}/cron",
    summary="Find cron of a branch",
    responses={404: {"description": "Repository, branch or cron not found"}},
)
async def find_branch_cron(
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
    cron = await query.find_cron_for_branch(branch)
    if cron is None:
        raise NotFoundError("cron")
    return render_cron(cron)


@router.post(
    "/repo/{ref}/branch/{name}/cron",
    status_code=201,
    summary="Create cron",
    responses={
        403: {"description": "Insufficient access"},
        404: {"description": "Repository or branch not found (or insufficient access)"},
        409: {"description": "Concurrent create for the same branch"},
        422: {"description": "Branch not on GitHub, or invalid interval"},
    },
)
async def create_cron(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db)],
    ref: RepositoryRef,
    name: BranchName,
    caller: Caller,
    query: Gateway,
    access: Access,
    body: CronCreateBody | None = None,
) -> dict:
    """Create the branch's cron, replacing (and revoking grants of) any existing one."""
    body = body or CronCreateBody()
    ctx = await CronCreate(query, access).execute(
        CronCreateContext(caller, ref, name, body.interval, body.run_only_when_new_commit)
    )
    cron = ctx.cron
    await log_action(
        session,
        user_id=caller.id,
        action="create",
        resource="cron",
        resource_id=str(cron.id),
        details={"interval": cron.interval, "replaced_cron_id": ctx.replaced.id if ctx.replaced else None},
        ip_address=request.client.host if request.client else None,
    )
    await session.commit()
    return render_cron(cron)


@router.get(
    "/cron/{cron_id}",
    summary="Find cron",
    responses={404: {"description": "Cron not found (or insufficient access)"}},
)
async def find_cron(cron_id: int, caller: Caller, query: Gateway, access: Access) -> dict:
    cron = await query.find_cron(cron_id)
    if cron is None or not await access.permissions(caller, cron).allows(Capability.READ):
        raise NotFoundError("cron")
    return render_cron(cron)


@router.delete(
    "/cron/{cron_id}",
    status_code=204,
    summary="Delete cron",
    responses={
        403: {"description": "Insufficient access"},
        404: {"description": "Cron not found (or insufficient access)"},
    },
)
async def delete_cron(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db)],
    cron_id: int,
    caller: Caller,
    query: Gateway,
    access: Access,
) -> Response:
    cron = await query.find_cron(cron_id)
    permissions = access.permissions(caller, cron) if cron is not None else None
    if permissions is None or not await permissions.allows(Capability.READ):
        raise NotFoundError("cron")
    await permissions.delete()
    await query.delete_cron(cron)
    await log_action(
        session,
        user_id=caller.id if caller else None,
        action="delete",
        resource="cron",
        resource_id=str(cron_id),
        ip_address=request.client.host if request.client else None,
    )
    await session.commit()
    return Response(status_code=204)
