"""Tests for builds API: paginated envelope, branch filter, private repositories, window params."""

import pytest
from httpx import AsyncClient

NOT_FOUND_REPOSITORY = {
    "@type": "error",
    "error_type": "not_found",
    "error_message": "repository not found (or insufficient access)",
    "resource_type": "repository",
}


def _expected_envelope(repo_id: int, build_id: int) -> dict:
    return {
        "@type": "builds",
        "@href": f"/v3/repo/{repo_id}/builds?limit=1",
        "@pagination": {
            "limit": 1,
            "offset": 0,
            "count": 3,
            "is_first": True,
            "is_last": False,
            "next": {"@href": f"/v3/repo/{repo_id}/builds?limit=1&offset=1", "offset": 1, "limit": 1},
            "prev": None,
            "first": {"@href": f"/v3/repo/{repo_id}/builds?limit=1", "offset": 0, "limit": 1},
            "last": {"@href": f"/v3/repo/{repo_id}/builds?limit=1&offset=2", "offset": 2, "limit": 1},
        },
        "builds": [
            {
                "@type": "build",
                "@href": f"/v3/build/{build_id}",
                "id": build_id,
                "number": "3",
                "state": "configured",
                "duration": None,
                "event_type": "push",
                "previous_state": "passed",
                "started_at": "2010-11-12T13:00:00Z",
                "finished_at": None,
                "repository": {
                    "@type": "repository",
                    "@href": f"/v3/repo/{repo_id}",
                    "id": repo_id,
                    "slug": "svenfuchs/minimal",
                },
                "branch": {
                    "@type": "branch",
                    "@href": f"/v3/repo/{repo_id}/branch/master",
                    "name": "master",
                    "last_build": {"@href": f"/v3/build/{build_id}"},
                },
                "commit": {
                    "@type": "commit",
                    "id": 1,
                    "sha": "add057e66c3e1d59ef1f",
                    "ref": "refs/heads/master",
                    "message": "unignore Gemfile.lock",
                    "compare_url": "https://github.com/svenfuchs/minimal/compare/master...develop",
                    "committed_at": "2010-11-12T12:55:00Z",
                },
            }
        ],
    }


@pytest.mark.asyncio
async def test_builds_by_slug(client: AsyncClient, seed):
    resp = await client.get("/v3/repo/svenfuchs%2Fminimal/builds")
    assert resp.status_code == 200
    data = resp.json()
    assert data["@type"] == "builds"
    assert [b["number"] for b in data["builds"]] == ["3", "2", "1"]
    assert data["@pagination"]["limit"] == 25


@pytest.mark.asyncio
async def test_builds_unknown_slug_not_found(client: AsyncClient, seed):
    resp = await client.get("/v3/repo/svenfuchs%2Fminimal1/builds")
    assert resp.status_code == 404
    assert resp.json() == NOT_FOUND_REPOSITORY


@pytest.mark.asyncio
async def test_builds_public_repository_envelope(client: AsyncClient, seed):
    resp = await client.get(f"/v3/repo/{seed.repo_id}/builds?limit=1")
    assert resp.status_code == 200
    expected = _expected_envelope(seed.repo_id, seed.last_build_id)
    expected["builds"][0]["commit"]["id"] = seed.commit_id
    assert resp.json() == expected


@pytest.mark.asyncio
async def test_builds_private_repository_with_access(client: AsyncClient, seed, owner_headers):
    resp = await client.get(f"/v3/repo/{seed.private_repo_id}/builds?limit=1", headers=owner_headers)
    assert resp.status_code == 200
    assert resp.json()["@pagination"]["count"] == 1


@pytest.mark.asyncio
async def test_builds_private_repository_accepts_token_scheme(client: AsyncClient, seed):
    resp = await client.get(
        f"/v3/repo/{seed.private_repo_id}/builds",
        headers={"Authorization": f"token {seed.owner_token}"},
    )
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_builds_private_repository_looks_missing(client: AsyncClient, seed, stranger_headers):
    """No credential and no permission both answer exactly like an absent repository."""
    anonymous = await client.get(f"/v3/repo/{seed.private_repo_id}/builds")
    stranger = await client.get(f"/v3/repo/{seed.private_repo_id}/builds", headers=stranger_headers)
    missing = await client.get("/v3/repo/999999/builds")
    for resp in (anonymous, stranger, missing):
        assert resp.status_code == 404
        assert resp.json() == NOT_FOUND_REPOSITORY


@pytest.mark.asyncio
async def test_builds_branch_name_filter(client: AsyncClient, seed):
    resp = await client.get(f"/v3/repo/{seed.repo_id}/builds?branch.name=master&limit=1")
    assert resp.status_code == 200
    data = resp.json()
    assert data["builds"][0]["branch"]["name"] == "master"
    assert data["@pagination"]["next"]["@href"] == (
        f"/v3/repo/{seed.repo_id}/builds?branch.name=master&limit=1&offset=1"
    )


@pytest.mark.asyncio
async def test_builds_branch_name_filter_without_matches(client: AsyncClient, seed):
    resp = await client.get(f"/v3/repo/{seed.repo_id}/builds?branch.name=missing&limit=1")
    assert resp.status_code == 200
    data = resp.json()
    assert data["builds"] == []
    assert data["@pagination"]["count"] == 0
    assert data["@pagination"]["is_last"] is True


@pytest.mark.asyncio
async def test_builds_state_filter(client: AsyncClient, seed):
    resp = await client.get(f"/v3/repo/{seed.repo_id}/builds?state=passed")
    data = resp.json()
    assert data["@pagination"]["count"] == 2
    assert {b["state"] for b in data["builds"]} == {"passed"}


@pytest.mark.asyncio
async def test_builds_offset_beyond_total(client: AsyncClient, seed):
    resp = await client.get(f"/v3/repo/{seed.repo_id}/builds?limit=1&offset=10")
    assert resp.status_code == 200
    data = resp.json()
    assert data["builds"] == []
    assert data["@pagination"]["is_last"] is True
    assert data["@pagination"]["next"] is None
    assert data["@pagination"]["prev"]["offset"] == 9


@pytest.mark.asyncio
async def test_builds_limit_clamped_to_max(client: AsyncClient, seed):
    resp = await client.get(f"/v3/repo/{seed.repo_id}/builds?limit=1000")
    assert resp.status_code == 200
    assert resp.json()["@pagination"]["limit"] == 100


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["limit=0", "offset=-1", "limit=abc"])
async def test_builds_wrong_window_params(client: AsyncClient, seed, query: str):
    resp = await client.get(f"/v3/repo/{seed.repo_id}/builds?{query}")
    assert resp.status_code == 400
    data = resp.json()
    assert data["@type"] == "error"
    assert data["error_type"] == "wrong_params"


@pytest.mark.asyncio
async def test_builds_invalid_token(client: AsyncClient, seed):
    resp = await client.get(
        f"/v3/repo/{seed.repo_id}/builds",
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert resp.status_code == 401
    assert resp.json()["error_type"] == "invalid_token"


@pytest.mark.asyncio
async def test_find_build(client: AsyncClient, seed):
    resp = await client.get(f"/v3/build/{seed.last_build_id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["@href"] == f"/v3/build/{seed.last_build_id}"
    assert data["repository"]["slug"] == "svenfuchs/minimal"


@pytest.mark.asyncio
async def test_find_build_not_found(client: AsyncClient, seed):
    resp = await client.get("/v3/build/999999")
    assert resp.status_code == 404
    assert resp.json()["resource_type"] == "build"


@pytest.mark.asyncio
async def test_builds_by_slug_keeps_encoding_in_links(client: AsyncClient, seed):
    resp = await client.get("/v3/repo/svenfuchs%2Fminimal/builds?limit=1")
    assert resp.status_code == 200
    data = resp.json()
    assert data["@href"] == "/v3/repo/svenfuchs%2Fminimal/builds?limit=1"
    pagination = data["@pagination"]
    assert pagination["next"]["@href"] == "/v3/repo/svenfuchs%2Fminimal/builds?limit=1&offset=1"
    assert pagination["last"]["@href"] == "/v3/repo/svenfuchs%2Fminimal/builds?limit=1&offset=2"
