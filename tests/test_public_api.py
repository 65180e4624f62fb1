"""Visitor-facing linktree view."""

import asyncio

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from linkbio.core import deadline, middleware
from linkbio.core.config import get_settings
from linkbio.core.tasks import TelemetryTasks
from linkbio.services import ab_test_service, resolver_service


async def create_ab_test(owner_client: AsyncClient, linktree: dict) -> dict:
    response = await owner_client.post(
        "/api/ab-tests",
        json={
            "name": "Site headline",
            "linktreeId": linktree["id"],
            "linkId": linktree["links"][0]["id"],
            "variants": [
                {"title": "A", "url": "https://x.com/a"},
                {"title": "B", "url": "https://x.com/b"},
            ],
        },
    )
    assert response.status_code == 201
    return response.json()


async def test_single_link_then_disabled(
    client: AsyncClient,
    owner_client: AsyncClient,
    linktree: dict,
):
    page = await client.get("/api/public/linktrees/me")

    assert page.status_code == 200
    body = page.json()
    assert body["title"] == "Me"
    assert [link["title"] for link in body["links"]] == ["Site"]
    assert body["links"][0]["abTestId"] is None

    link_id = linktree["links"][0]["id"]
    await owner_client.patch(f"/api/linktrees/me/links/{link_id}", json={"enabled": False})

    page = await client.get("/api/public/linktrees/me")
    assert page.json()["links"] == []


async def test_links_sorted_by_order_without_disabled(
    client: AsyncClient,
    owner_client: AsyncClient,
    linktree: dict,
):
    for title, order, enabled in [
        ("Third", 3, True),
        ("Hidden", 1, False),
        ("First", -1, True),
        ("Tied", 0, True),
    ]:
        await owner_client.post(
            "/api/linktrees/me/links",
            json={"title": title, "url": "https://x.com", "order": order, "enabled": enabled},
        )

    page = await client.get("/api/public/linktrees/me")

    # "Site" and "Tied" share order 0; insertion order breaks the tie
    assert [link["title"] for link in page.json()["links"]] == ["First", "Site", "Tied", "Third"]


async def test_missing_and_private_linktrees(
    client: AsyncClient,
    owner_client: AsyncClient,
    other_client: AsyncClient,
    linktree: dict,
):
    assert (await client.get("/api/public/linktrees/nobody")).status_code == 404

    await owner_client.patch("/api/linktrees/me", json={"isPublic": False})

    assert (await client.get("/api/public/linktrees/me")).status_code == 403
    assert (await other_client.get("/api/public/linktrees/me")).status_code == 403

    own_view = await owner_client.get("/api/public/linktrees/me")
    assert own_view.status_code == 200
    assert [link["title"] for link in own_view.json()["links"]] == ["Site"]


async def test_active_test_substitutes_variant_and_counts_impressions(
    client: AsyncClient,
    owner_client: AsyncClient,
    linktree: dict,
    telemetry: TelemetryTasks,
):
    test = await create_ab_test(owner_client, linktree)
    variants = {variant["id"]: variant for variant in test["variants"]}

    for _ in range(4):
        page = await client.get("/api/public/linktrees/me")
        shown = page.json()["links"][0]
        assert shown["abTestId"] == test["id"]
        assert shown["variantId"] in variants
        assert shown["title"] == variants[shown["variantId"]]["title"]
        assert shown["url"] == variants[shown["variantId"]]["url"]
        assert shown["id"] == linktree["links"][0]["id"]

    await telemetry.drain()
    metrics = (await owner_client.get(f"/api/ab-test-metrics/{test['id']}")).json()
    assert sum(item["impressions"] for item in metrics["metrics"]) == 4
    assert sum(item["clicks"] for item in metrics["metrics"]) == 0


async def test_paused_test_shows_original_link(
    client: AsyncClient,
    owner_client: AsyncClient,
    linktree: dict,
):
    test = await create_ab_test(owner_client, linktree)
    await owner_client.patch(f"/api/ab-tests/{test['id']}", json={"status": "paused"})

    shown = (await client.get("/api/public/linktrees/me")).json()["links"][0]

    assert shown["title"] == "Site"
    assert shown["variantId"] is None


async def test_failed_test_lookup_falls_back_to_original(
    client: AsyncClient,
    owner_client: AsyncClient,
    linktree: dict,
    monkeypatch: pytest.MonkeyPatch,
):
    await create_ab_test(owner_client, linktree)

    async def broken_lookup(session, link_ids):
        raise OperationalError("SELECT", {}, Exception("store unavailable"))

    monkeypatch.setattr(ab_test_service, "get_active_tests_for_links", broken_lookup)

    page = await client.get("/api/public/linktrees/me")

    assert page.status_code == 200
    assert page.json()["links"][0]["title"] == "Site"


async def test_failed_impression_does_not_break_page(
    client: AsyncClient,
    owner_client: AsyncClient,
    linktree: dict,
    monkeypatch: pytest.MonkeyPatch,
):
    test = await create_ab_test(owner_client, linktree)

    async def broken_impression(session, test_id, variant_id):
        raise OperationalError("UPDATE", {}, Exception("store unavailable"))

    monkeypatch.setattr(ab_test_service, "record_impression", broken_impression)

    page = await client.get("/api/public/linktrees/me")

    assert page.status_code == 200
    assert page.json()["links"][0]["abTestId"] == test["id"]


async def test_slow_impression_write_does_not_delay_page(
    client: AsyncClient,
    owner_client: AsyncClient,
    linktree: dict,
    telemetry: TelemetryTasks,
    monkeypatch: pytest.MonkeyPatch,
):
    test = await create_ab_test(owner_client, linktree)

    async def slow_impression(session, test_id, variant_id):
        await asyncio.sleep(5)
        return True

    monkeypatch.setattr(ab_test_service, "record_impression", slow_impression)
    # Request deadline far shorter than the write
    monkeypatch.setattr(middleware, "start_deadline", lambda timeout: deadline.start_deadline(0.3))
    monkeypatch.setattr(get_settings(), "telemetry_timeout_seconds", 0.5)
    outcomes = []
    monkeypatch.setattr(
        resolver_service,
        "record_ab_test_event",
        lambda event, outcome: outcomes.append((event, outcome)),
    )

    page = await client.get("/api/public/linktrees/me")

    assert page.status_code == 200
    assert page.json()["links"][0]["abTestId"] == test["id"]
    assert len(telemetry) == 1

    await telemetry.drain()

    # The write hit its own cap rather than being cancelled at shutdown
    assert outcomes == [("impression", "failed")]
    assert len(telemetry) == 0


async def test_page_shows_owner_profile(
    client: AsyncClient,
    owner_client: AsyncClient,
    linktree: dict,
):
    owner = (await client.get("/api/public/linktrees/me")).json()["owner"]
    assert owner == {"name": "owner", "avatarUrl": None}

    await owner_client.put(
        "/api/user/profile",
        json={"name": "Ada", "avatarUrl": "https://x.com/ada.png"},
    )

    owner = (await client.get("/api/public/linktrees/me")).json()["owner"]
    assert owner == {"name": "Ada", "avatarUrl": "https://x.com/ada.png"}
