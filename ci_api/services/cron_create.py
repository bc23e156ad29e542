"""
Cron creation as an ordered pipeline of named stages.

Order is part of the contract: existence and visibility first, then domain
validation, then authorization, and only then any write. The first failing
stage aborts the run; later stages never execute.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from ci_api.core.errors import ApiError, AuthorizationError, DomainValidationError, NotFoundError
from ci_api.models.branch import Branch
from ci_api.models.cron import Cron, Interval
from ci_api.models.grant import Capability
from ci_api.models.repository import Repository
from ci_api.models.user import User
from ci_api.services.access_control import AccessControlProtocol
from ci_api.services.queries import CronQueryProtocol

logger = logging.getLogger(__name__)

UPSTREAM_MISSING_MESSAGE = "Crons can only be set up for branches existing on GitHub!"
INVALID_INTERVAL_MESSAGE = 'Invalid value for interval. Interval must be "daily", "weekly" or "monthly"!'
VALID_INTERVALS = tuple(i.value for i in Interval)


class Continue:
    def __repr__(self) -> str:
        return "CONTINUE"


CONTINUE = Continue()


class Fail:
    def __init__(self, error: ApiError) -> None:
        self.error = error

    def __repr__(self) -> str:
        return f"Fail({self.error.error_type}: {self.error.message})"


StageResult = Continue | Fail


class CronCreateContext:
    """Inputs plus whatever earlier stages resolved."""

    def __init__(
        self,
        caller: User | None,
        repository_ref: str,
        branch_name: str,
        interval: Any,
        run_only_when_new_commit: Any = None,
    ) -> None:
        self.caller = caller
        self.repository_ref = repository_ref
        self.branch_name = branch_name
        self.interval = interval
        self.run_only_when_new_commit = run_only_when_new_commit
        self.repository: Repository | None = None
        self.branch: Branch | None = None
        self.replaced: Cron | None = None
        self.cron: Cron | None = None


class CronCreate:
    required_capability = Capability.CREATE_CRON

    def __init__(self, query: CronQueryProtocol, access: AccessControlProtocol) -> None:
        self.query = query
        self.access = access

    @property
    def stages(self) -> list[tuple[str, Callable[[CronCreateContext], Awaitable[StageResult]]]]:
        return [
            ("resolve_repository", self.resolve_repository),
            ("resolve_branch", self.resolve_branch),
            ("check_upstream", self.check_upstream),
            ("validate_interval", self.validate_interval),
            ("authorize", self.authorize),
            ("replace_existing", self.replace_existing),
            ("create", self.create),
        ]

    async def run(
        self,
        caller: User | None,
        repository_ref: str,
        branch_name: str,
        interval: Any,
        run_only_when_new_commit: Any = None,
    ) -> Cron:
        ctx = await self.execute(
            CronCreateContext(caller, repository_ref, branch_name, interval, run_only_when_new_commit)
        )
        return ctx.cron

    async def execute(self, ctx: CronCreateContext) -> CronCreateContext:
        """Run every stage in order; raise the error of the first one that fails."""
        for name, stage in self.stages:
            result = await stage(ctx)
            if isinstance(result, Fail):
                logger.info(
                    "Cron create stopped at %s: user_id=%s repo=%s branch=%s error=%s",
                    name,
                    ctx.caller.id if ctx.caller else None,
                    ctx.repository_ref,
                    ctx.branch_name,
                    result.error.error_type,
                )
                raise result.error
        return ctx

    async def resolve_repository(self, ctx: CronCreateContext) -> StageResult:
        # Anonymous callers and invisible repositories get the same answer as a missing one
        if ctx.caller is None:
            return Fail(NotFoundError("repository"))
        repository = await self.query.find_repository(ctx.repository_ref)
        if repository is None or not await self.access.visible(ctx.caller, repository):
            return Fail(NotFoundError("repository"))
        ctx.repository = repository
        return CONTINUE

    async def resolve_branch(self, ctx: CronCreateContext) -> StageResult:
        branch = await self.query.find_branch(ctx.repository, ctx.branch_name)
        if branch is None:
            return Fail(NotFoundError("branch"))
        ctx.branch = branch
        return CONTINUE

    async def check_upstream(self, ctx: CronCreateContext) -> StageResult:
        if not ctx.branch.exists_on_github:
            return Fail(DomainValidationError(UPSTREAM_MISSING_MESSAGE))
        return CONTINUE

    async def validate_interval(self, ctx: CronCreateContext) -> StageResult:
        if ctx.interval not in VALID_INTERVALS:
            return Fail(DomainValidationError(INVALID_INTERVAL_MESSAGE))
        return CONTINUE

    async def authorize(self, ctx: CronCreateContext) -> StageResult:
        permissions = self.access.permissions(ctx.caller, ctx.repository)
        if not await permissions.allows(self.required_capability):
            return Fail(AuthorizationError(self.required_capability.value, "repository"))
        return CONTINUE

    async def replace_existing(self, ctx: CronCreateContext) -> StageResult:
        existing = await self.query.find_cron_for_branch(ctx.branch)
        if existing is None:
            return CONTINUE
        # Revoke first so no grant outlives its cron
        try:
            await self.access.permissions(ctx.caller, existing).delete()
        except AuthorizationError as e:
            return Fail(e)
        await self.query.delete_cron(existing)
        ctx.replaced = existing
        logger.info("Cron %s replaced on branch_id=%s", existing.id, ctx.branch.id)
        return CONTINUE

    async def create(self, ctx: CronCreateContext) -> StageResult:
        cron = await self.query.create_cron(ctx.branch, ctx.interval, bool(ctx.run_only_when_new_commit))
        await self.access.grant(ctx.caller, cron, Capability.DELETE)
        ctx.cron = cron
        logger.info(
            "Cron %s created: branch_id=%s interval=%s user_id=%s",
            cron.id,
            ctx.branch.id,
            cron.interval,
            ctx.caller.id,
        )
        return CONTINUE
