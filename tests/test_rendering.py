"""Tests for resource envelopes: build embedding, null optionals, collection shape."""

from datetime import datetime, timezone
from types import SimpleNamespace

from ci_api.services.pagination import Page, paginate
from ci_api.services.rendering import format_time, render_branch_minimal, render_build, render_collection


def _repository():
    return SimpleNamespace(id=7, owner_name="svenfuchs", name="minimal", slug="svenfuchs/minimal")


def _build(**overrides):
    data = dict(
        id=42,
        number="3",
        state="configured",
        duration=None,
        event_type="push",
        previous_state="passed",
        started_at=datetime(2010, 11, 12, 13, 0, tzinfo=timezone.utc),
        finished_at=None,
        repository=_repository(),
        branch=SimpleNamespace(repository_id=7, name="master", last_build_id=42),
        commit=SimpleNamespace(
            id=5,
            sha="add057e66c3e1d59ef1f",
            ref="refs/heads/master",
            message="unignore Gemfile.lock",
            compare_url="https://github.com/svenfuchs/minimal/compare/master...develop",
            committed_at=datetime(2010, 11, 12, 12, 55, tzinfo=timezone.utc),
        ),
    )
    data.update(overrides)
    return SimpleNamespace(**data)


def test_render_build_embeds_minimal_associations():
    out = render_build(_build())
    assert out["@type"] == "build"
    assert out["@href"] == "/v3/build/42"
    assert out["repository"] == {
        "@type": "repository",
        "@href": "/v3/repo/7",
        "id": 7,
        "slug": "svenfuchs/minimal",
    }
    assert out["branch"] == {
        "@type": "branch",
        "@href": "/v3/repo/7/branch/master",
        "name": "master",
        "last_build": {"@href": "/v3/build/42"},
    }
    assert out["commit"]["sha"] == "add057e66c3e1d59ef1f"
    assert out["commit"]["committed_at"] == "2010-11-12T12:55:00Z"


def test_render_build_absent_optionals_are_null_not_omitted():
    out = render_build(_build())
    assert "duration" in out and out["duration"] is None
    assert "finished_at" in out and out["finished_at"] is None
    assert out["started_at"] == "2010-11-12T13:00:00Z"


def test_render_build_without_branch_or_commit():
    out = render_build(_build(branch=None, commit=None))
    assert out["branch"] is None
    assert out["commit"] is None


def test_branch_without_builds_has_null_last_build():
    out = render_branch_minimal(SimpleNamespace(repository_id=1, name="dev", last_build_id=None))
    assert out["last_build"] is None


def test_format_time_naive_is_utc():
    assert format_time(datetime(2020, 1, 2, 3, 4, 5)) == "2020-01-02T03:04:05Z"
    assert format_time(None) is None


def test_render_collection_shape():
    page = Page(items=[_build()], total_count=3, offset=0, limit=1)
    out = render_collection("builds", "/v3/repo/7/builds?limit=1", page, render_build)
    assert list(out) == ["@type", "@href", "@pagination", "builds"]
    assert out["@type"] == "builds"
    assert out["@href"] == "/v3/repo/7/builds?limit=1"
    assert out["@pagination"]["count"] == 3
    assert out["@pagination"]["next"]["@href"] == "/v3/repo/7/builds?limit=1&offset=1"
    assert len(out["builds"]) == 1


def test_render_collection_filter_without_matches_is_empty():
    builds = [_build(id=1), _build(id=2)]
    page = paginate(builds, 0, 25, item_filter=lambda b: b.branch.name == "missing")
    out = render_collection("builds", "/v3/repo/7/builds?branch.name=missing", page, render_build)
    assert out["builds"] == []
    assert out["@pagination"]["count"] == 0
    assert out["@pagination"]["is_last"] is True


def test_branch_href_encodes_slashes():
    out = render_branch_minimal(SimpleNamespace(repository_id=1, name="feature/cron", last_build_id=None))
    assert out["@href"] == "/v3/repo/1/branch/feature%2Fcron"
    assert out["name"] == "feature/cron"
