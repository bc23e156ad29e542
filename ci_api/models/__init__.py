from ci_api.models.user import User
from ci_api.models.repository import Repository
from ci_api.models.permission import Permission
from ci_api.models.branch import Branch
from ci_api.models.commit import Commit
from ci_api.models.build import Build
from ci_api.models.cron import Cron, Interval
from ci_api.models.grant import Capability, Grant
from ci_api.models.audit_log import AuditLog
from ci_api.models.setting import SETTING_DEFAULTS, RepositorySetting

__all__ = [
    "User",
    "Repository",
    "Permission",
    "Branch",
    "Commit",
    "Build",
    "Cron",
    "Interval",
    "Capability",
    "Grant",
    "AuditLog",
    "RepositorySetting",
    "SETTING_DEFAULTS",
]
