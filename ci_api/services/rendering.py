"""
Resource envelopes: each entity renders to a dict carrying ``@type`` / ``@href``.

Embedded associations use the minimal representation so one response never
pulls in whole related resources. Missing optional values render as None.
"""

from datetime import datetime, timezone
from typing import Any, Callable
from urllib.parse import quote

from ci_api.config import settings
from ci_api.models.branch import Branch
from ci_api.models.build import Build
from ci_api.models.commit import Commit
from ci_api.models.cron import Cron
from ci_api.models.repository import Repository
from ci_api.models.setting import RepositorySetting
from ci_api.services import pagination
from ci_api.services.pagination import Page


def format_time(value: datetime | None) -> str | None:
    """UTC ISO 8601 with a Z suffix, second precision. Naive datetimes are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def repository_href(repository_id: int) -> str:
    return f"{settings.api_prefix}/repo/{repository_id}"


def branch_href(repository_id: int, name: str) -> str:
    """The branch name is one path segment, so slashes in it are encoded."""
    return f"{repository_href(repository_id)}/branch/{quote(name, safe='')}"


def build_href(build_id: int) -> str:
    return f"{settings.api_prefix}/build/{build_id}"


def cron_href(cron_id: int) -> str:
    return f"{settings.api_prefix}/cron/{cron_id}"


def render_repository_minimal(repository: Repository) -> dict[str, Any]:
    return {
        "@type": "repository",
        "@href": repository_href(repository.id),
        "id": repository.id,
        "slug": repository.slug,
    }


def render_repository(repository: Repository) -> dict[str, Any]:
    return {
        "@type": "repository",
        "@href": repository_href(repository.id),
        "id": repository.id,
        "name": repository.name,
        "slug": repository.slug,
        "private": repository.private,
        "default_branch": {
            "@type": "branch",
            "@href": branch_href(repository.id, repository.default_branch),
            "name": repository.default_branch,
        },
    }


def render_branch_minimal(branch: Branch) -> dict[str, Any]:
    """Name and a pointer to the last build only."""
    return {
        "@type": "branch",
        "@href": branch_href(branch.repository_id, branch.name),
        "name": branch.name,
        "last_build": {"@href": build_href(branch.last_build_id)} if branch.last_build_id else None,
    }


def render_branch(branch: Branch) -> dict[str, Any]:
    """Needs branch.repository loaded."""
    return {
        "@type": "branch",
        "@href": branch_href(branch.repository_id, branch.name),
        "name": branch.name,
        "repository": render_repository_minimal(branch.repository),
        "default_branch": branch.name == branch.repository.default_branch,
        "exists_on_github": branch.exists_on_github,
        "last_build": (
            {"@type": "build", "@href": build_href(branch.last_build_id), "id": branch.last_build_id}
            if branch.last_build_id
            else None
        ),
    }


def render_commit(commit: Commit) -> dict[str, Any]:
    return {
        "@type": "commit",
        "id": commit.id,
        "sha": commit.sha,
        "ref": commit.ref,
        "message": commit.message,
        "compare_url": commit.compare_url,
        "committed_at": format_time(commit.committed_at),
    }


def render_build(build: Build) -> dict[str, Any]:
    """Needs build.repository, build.branch and build.commit loaded."""
    return {
        "@type": "build",
        "@href": build_href(build.id),
        "id": build.id,
        "number": build.number,
        "state": build.state,
        "duration": build.duration,
        "event_type": build.event_type,
        "previous_state": build.previous_state,
        "started_at": format_time(build.started_at),
        "finished_at": format_time(build.finished_at),
        "repository": render_repository_minimal(build.repository),
        "branch": render_branch_minimal(build.branch) if build.branch else None,
        "commit": render_commit(build.commit) if build.commit else None,
    }


def render_cron(cron: Cron) -> dict[str, Any]:
    """Needs cron.branch and cron.branch.repository loaded."""
    branch = cron.branch
    return {
        "@type": "cron",
        "@href": cron_href(cron.id),
        "id": cron.id,
        "repository": render_repository_minimal(branch.repository),
        "branch": {
            "@type": "branch",
            "@href": branch_href(branch.repository_id, branch.name),
            "name": branch.name,
        },
        "interval": cron.interval,
        "run_only_when_new_commit": cron.run_only_when_new_commit,
        "last_run": format_time(cron.last_run),
        "next_run": format_time(cron.next_run),
        "created_at": format_time(cron.created_at),
    }


def setting_href(repository_id: int, name: str) -> str:
    return f"{repository_href(repository_id)}/setting/{name}"


def render_setting(setting: RepositorySetting) -> dict[str, Any]:
    return {
        "@type": "setting",
        "@href": setting_href(setting.repository_id, setting.name),
        "name": setting.name,
        "value": setting.value,
    }


def render_settings(href: str, items: list[RepositorySetting]) -> dict[str, Any]:
    """Every known setting, stored or default. Not paginated."""
    return {
        "@type": "settings",
        "@href": href,
        "settings": [render_setting(s) for s in items],
    }


def render_collection(
    type_name: str,
    href: str,
    page: Page,
    render_item: Callable[[Any], dict[str, Any]],
) -> dict[str, Any]:
    """
    Collection envelope: ``@type``/``@href``/``@pagination`` plus the rendered items
    under the collection's type name. ``page.total_count`` must describe the same
    (filtered) set the items were taken from.
    """
    links = pagination.compute(href, page.offset, page.limit, page.total_count)
    return {
        "@type": type_name,
        "@href": href,
        "@pagination": links.to_payload(),
        type_name: [render_item(item) for item in page.items],
    }
