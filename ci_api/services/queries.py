"""
Query gateway: named lookups, paged listings and cron writes over an AsyncSession.

Listings apply their filters to one base statement that feeds both the count and
the slice, so ``Page.total_count`` always matches the filtered set.
"""

from __future__ import annotations

import calendar
import logging
from datetime import datetime, timedelta, timezone
from typing import Protocol

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ci_api.core.errors import ConflictError
from ci_api.models.branch import Branch
from ci_api.models.build import Build
from ci_api.models.cron import Cron, Interval
from ci_api.models.repository import Repository
from ci_api.models.setting import SETTING_DEFAULTS, RepositorySetting
from ci_api.services.pagination import Page

logger = logging.getLogger(__name__)


def add_months(value: datetime, months: int) -> datetime:
    """Same day-of-month `months` later, clamped to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_run_after(start: datetime, interval: str) -> datetime:
    if interval == Interval.DAILY.value:
        return start + timedelta(days=1)
    if interval == Interval.WEEKLY.value:
        return start + timedelta(days=7)
    if interval == Interval.MONTHLY.value:
        return add_months(start, 1)
    raise ValueError(f"unknown interval: {interval}")


class CronQueryProtocol(Protocol):
    """The gateway surface the cron-create pipeline needs."""

    async def find_repository(self, ref: str) -> Repository | None: ...

    async def find_branch(self, repository: Repository, name: str) -> Branch | None: ...

    async def find_cron_for_branch(self, branch: Branch) -> Cron | None: ...

    async def create_cron(self, branch: Branch, interval: str, run_only_when_new_commit: bool) -> Cron: ...

    async def delete_cron(self, cron: Cron) -> None: ...


class QueryGateway:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _page(self, base: Select, offset: int, limit: int) -> Page:
        count_q = select(func.count()).select_from(base.order_by(None).subquery())
        total = (await self.session.execute(count_q)).scalar() or 0
        r = await self.session.execute(base.offset(offset).limit(limit))
        return Page(items=list(r.scalars().all()), total_count=total, offset=offset, limit=limit)

    # Repositories

    async def find_repository(self, ref: str) -> Repository | None:
        """Look up by numeric id or by owner/name slug."""
        ref = (ref or "").strip()
        if ref.isdigit():
            q = select(Repository).where(Repository.id == int(ref))
        else:
            owner_name, sep, name = ref.partition("/")
            if not sep or not owner_name or not name:
                return None
            q = select(Repository).where(Repository.owner_name == owner_name, Repository.name == name)
        r = await self.session.execute(q)
        return r.scalar_one_or_none()

    # Branches

    async def find_branch(self, repository: Repository, name: str) -> Branch | None:
        r = await self.session.execute(
            select(Branch)
            .options(selectinload(Branch.repository))
            .where(Branch.repository_id == repository.id, Branch.name == name)
        )
        return r.scalar_one_or_none()

    async def list_branches(
        self,
        repository: Repository,
        offset: int,
        limit: int,
        exists_on_github: bool | None = None,
    ) -> Page:
        base = (
            select(Branch)
            .options(selectinload(Branch.repository))
            .where(Branch.repository_id == repository.id)
        )
        if exists_on_github is not None:
            base = base.where(Branch.exists_on_github == exists_on_github)
        base = base.order_by(Branch.exists_on_github.desc(), Branch.name.asc())
        return await self._page(base, offset, limit)

    # Builds

    def _build_options(self, q: Select) -> Select:
        return q.options(
            selectinload(Build.repository),
            selectinload(Build.branch),
            selectinload(Build.commit),
        )

    async def find_build(self, build_id: int) -> Build | None:
        r = await self.session.execute(self._build_options(select(Build).where(Build.id == build_id)))
        return r.scalar_one_or_none()

    async def list_builds(
        self,
        repository: Repository,
        offset: int,
        limit: int,
        branch_name: str | None = None,
        states: list[str] | None = None,
        event_types: list[str] | None = None,
    ) -> Page:
        """Builds of a repository, newest first."""
        base = select(Build).where(Build.repository_id == repository.id)
        if branch_name is not None:
            base = base.join(Branch, Build.branch_id == Branch.id).where(Branch.name == branch_name)
        if states:
            base = base.where(Build.state.in_(states))
        if event_types:
            base = base.where(Build.event_type.in_(event_types))
        base = self._build_options(base).order_by(Build.id.desc())
        return await self._page(base, offset, limit)

    # Crons

    def _cron_options(self, q: Select) -> Select:
        return q.options(selectinload(Cron.branch).selectinload(Branch.repository))

    async def find_cron(self, cron_id: int) -> Cron | None:
        r = await self.session.execute(self._cron_options(select(Cron).where(Cron.id == cron_id)))
        return r.scalar_one_or_none()

    async def find_cron_for_branch(self, branch: Branch) -> Cron | None:
        r = await self.session.execute(self._cron_options(select(Cron).where(Cron.branch_id == branch.id)))
        return r.scalar_one_or_none()

    async def list_crons(self, repository: Repository, offset: int, limit: int) -> Page:
        base = self._cron_options(
            select(Cron)
            .join(Branch, Cron.branch_id == Branch.id)
            .where(Branch.repository_id == repository.id)
            .order_by(Cron.id.asc())
        )
        return await self._page(base, offset, limit)

    async def create_cron(self, branch: Branch, interval: str, run_only_when_new_commit: bool) -> Cron:
        """Insert a cron for the branch. A concurrent insert for the same branch -> ConflictError."""
        now = datetime.now(timezone.utc)
        cron = Cron(
            branch=branch,
            interval=interval,
            run_only_when_new_commit=run_only_when_new_commit,
            created_at=now,
            next_run=next_run_after(now, interval),
        )
        self.session.add(cron)
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.warning("Cron create conflict for branch_id=%s: %s", branch.id, e)
            raise ConflictError("cron") from e
        return cron

    async def delete_cron(self, cron: Cron) -> None:
        # Flush now: the unit of work would otherwise insert a replacement before deleting
        await self.session.delete(cron)
        await self.session.flush()

    # Settings

    async def _stored_settings(self, repository: Repository) -> dict[str, RepositorySetting]:
        r = await self.session.execute(
            select(RepositorySetting).where(RepositorySetting.repository_id == repository.id)
        )
        return {row.name: row for row in r.scalars().all()}

    def _default_setting(self, repository: Repository, name: str) -> RepositorySetting:
        # Transient, never added to the session
        return RepositorySetting(repository_id=repository.id, name=name, value=SETTING_DEFAULTS[name])

    async def find_setting(self, repository: Repository, name: str) -> RepositorySetting | None:
        """Stored value or the default; None for a name that is not a known setting."""
        if name not in SETTING_DEFAULTS:
            return None
        stored = await self._stored_settings(repository)
        return stored.get(name) or self._default_setting(repository, name)

    async def list_settings(self, repository: Repository) -> list[RepositorySetting]:
        stored = await self._stored_settings(repository)
        return [stored.get(name) or self._default_setting(repository, name) for name in SETTING_DEFAULTS]
