"""
Access control oracle: answers capability questions for a caller over a resource
and performs grant/revoke side effects.

The caller is always passed in explicitly; nothing here reads request state.
"""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ci_api.core.errors import AuthorizationError
from ci_api.models.cron import Cron
from ci_api.models.grant import Capability, Grant
from ci_api.models.permission import Permission
from ci_api.models.repository import Repository
from ci_api.models.user import User

logger = logging.getLogger(__name__)


def resource_type_of(resource: object) -> str:
    if isinstance(resource, Repository):
        return "repository"
    if isinstance(resource, Cron):
        return "cron"
    raise TypeError(f"no permissions defined for {type(resource).__name__}")


class PermissionsProtocol(Protocol):
    async def allows(self, capability: Capability) -> bool: ...

    async def require(self, capability: Capability) -> Grant: ...

    async def delete(self) -> None: ...


class AccessControlProtocol(Protocol):
    """What services depend on; tests substitute fakes."""

    async def visible(self, caller: User | None, repository: Repository) -> bool: ...

    def permissions(self, caller: User | None, resource: object) -> PermissionsProtocol: ...

    async def grant(self, caller: User, resource: object, capability: Capability) -> Grant: ...


class Permissions:
    """Capabilities of one caller over one resource."""

    resource_type = "resource"

    def __init__(self, access: "AccessControl", caller: User | None, resource: object) -> None:
        self.access = access
        self.caller = caller
        self.resource = resource

    async def allows(self, capability: Capability) -> bool:
        raise NotImplementedError

    async def require(self, capability: Capability) -> Grant:
        """Return the (transient) grant backing the capability or raise AuthorizationError."""
        if not await self.allows(capability):
            logger.info(
                "Access denied: user_id=%s capability=%s %s_id=%s",
                self.caller.id if self.caller else None,
                capability.value,
                self.resource_type,
                getattr(self.resource, "id", None),
            )
            raise AuthorizationError(capability.value, self.resource_type)
        return Grant(
            user_id=self.caller.id if self.caller else None,
            resource_type=self.resource_type,
            resource_id=getattr(self.resource, "id", None),
            capability=capability.value,
        )

    async def delete(self) -> None:
        """Authorize deleting the resource and revoke every grant tied to it. The row itself stays."""
        await self.require(Capability.DELETE)
        await self.access.revoke_all(self.resource)


class RepositoryPermissions(Permissions):
    resource_type = "repository"

    async def allows(self, capability: Capability) -> bool:
        repository: Repository = self.resource
        if capability == Capability.READ:
            return await self.access.visible(self.caller, repository)
        if capability == Capability.CREATE_CRON:
            return await self.access.can_write(self.caller, repository.id)
        return False

    async def create_cron(self) -> Grant:
        return await self.require(Capability.CREATE_CRON)


class CronPermissions(Permissions):
    """Needs cron.branch loaded (for the owning repository)."""

    resource_type = "cron"

    async def allows(self, capability: Capability) -> bool:
        cron: Cron = self.resource
        repository_id = cron.branch.repository_id
        if capability == Capability.READ:
            return await self.access.visible(self.caller, cron.branch.repository)
        if capability == Capability.DELETE:
            if await self.access.can_write(self.caller, repository_id):
                return True
            return await self.access.holds_grant(self.caller, cron, Capability.DELETE)
        return False


PERMISSIONS_BY_TYPE: dict[type, type[Permissions]] = {
    Repository: RepositoryPermissions,
    Cron: CronPermissions,
}


class AccessControl:
    """Database-backed oracle over permissions and grants rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _permission_row(self, caller: User | None, repository_id: int) -> Permission | None:
        if caller is None:
            return None
        r = await self.session.execute(
            select(Permission).where(
                Permission.user_id == caller.id,
                Permission.repository_id == repository_id,
            )
        )
        return r.scalar_one_or_none()

    async def visible(self, caller: User | None, repository: Repository) -> bool:
        if not repository.private:
            return True
        row = await self._permission_row(caller, repository.id)
        return bool(row and (row.pull or row.push or row.admin))

    async def can_write(self, caller: User | None, repository_id: int) -> bool:
        row = await self._permission_row(caller, repository_id)
        return bool(row and (row.push or row.admin))

    def permissions(self, caller: User | None, resource: object) -> Permissions:
        try:
            permissions_class = PERMISSIONS_BY_TYPE[type(resource)]
        except KeyError:
            raise TypeError(f"no permissions defined for {type(resource).__name__}") from None
        return permissions_class(self, caller, resource)

    async def holds_grant(self, caller: User | None, resource: object, capability: Capability) -> bool:
        if caller is None:
            return False
        r = await self.session.execute(
            select(Grant.id).where(
                Grant.user_id == caller.id,
                Grant.resource_type == resource_type_of(resource),
                Grant.resource_id == resource.id,
                Grant.capability == capability.value,
            )
        )
        return r.first() is not None

    async def grant(self, caller: User, resource: object, capability: Capability) -> Grant:
        row = Grant(
            user_id=caller.id,
            resource_type=resource_type_of(resource),
            resource_id=resource.id,
            capability=capability.value,
        )
        self.session.add(row)
        await self.session.flush()
        return row

    async def revoke_all(self, resource: object) -> None:
        """Drop every grant on the resource, whoever holds it."""
        await self.session.execute(
            delete(Grant).where(
                Grant.resource_type == resource_type_of(resource),
                Grant.resource_id == resource.id,
            )
        )
        await self.session.flush()
