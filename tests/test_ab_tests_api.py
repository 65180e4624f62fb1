"""A/B test management and the anonymous reporting endpoints."""

from uuid import uuid4

from httpx import AsyncClient

from .test_public_api import create_ab_test


async def test_scenario_metrics_after_impressions_and_click(
    client: AsyncClient,
    owner_client: AsyncClient,
    linktree: dict,
):
    test = await create_ab_test(owner_client, linktree)
    variant_a, variant_b = test["variants"]
    assert (variant_a["impressions"], variant_a["clicks"]) == (0, 0)

    for event_type in ("impression", "impression", "click"):
        response = await client.post(
            f"/api/ab-test-metrics/{test['id']}",
            json={"variantId": variant_a["id"], "type": event_type},
        )
        assert response.status_code == 200
        assert response.json() == {"success": True}

    metrics = (await owner_client.get(f"/api/ab-test-metrics/{test['id']}")).json()

    assert metrics["status"] == "active"
    assert metrics["winner"] is None
    by_title = {item["title"]: item for item in metrics["metrics"]}
    assert (by_title["A"]["impressions"], by_title["A"]["clicks"], by_title["A"]["ctr"]) == (
        2,
        1,
        50.0,
    )
    assert (by_title["B"]["impressions"], by_title["B"]["clicks"], by_title["B"]["ctr"]) == (
        0,
        0,
        0,
    )

    again = (await owner_client.get(f"/api/ab-test-metrics/{test['id']}")).json()
    assert again["metrics"] == metrics["metrics"]


async def test_invalid_metric_type_is_rejected(client: AsyncClient, owner_client, linktree):
    test = await create_ab_test(owner_client, linktree)

    response = await client.post(
        f"/api/ab-test-metrics/{test['id']}",
        json={"variantId": test["variants"][0]["id"], "type": "hover"},
    )

    assert response.status_code == 400


async def test_metric_for_unknown_variant_reports_failure(
    client: AsyncClient,
    owner_client: AsyncClient,
    linktree: dict,
):
    test = await create_ab_test(owner_client, linktree)

    response = await client.post(
        f"/api/ab-test-metrics/{test['id']}",
        json={"variantId": str(uuid4()), "type": "click"},
    )

    assert response.status_code == 200
    assert response.json() == {"success": False}


async def test_fewer_than_two_variants_is_rejected(owner_client: AsyncClient, linktree: dict):
    response = await owner_client.post(
        "/api/ab-tests",
        json={
            "name": "Lonely",
            "linktreeId": linktree["id"],
            "linkId": linktree["links"][0]["id"],
            "variants": [{"title": "Only", "url": "https://x.com/only"}],
        },
    )
    assert response.status_code == 400


async def test_second_active_test_on_link_is_rejected(owner_client: AsyncClient, linktree: dict):
    await create_ab_test(owner_client, linktree)

    response = await owner_client.post(
        "/api/ab-tests",
        json={
            "name": "Again",
            "linktreeId": linktree["id"],
            "linkId": linktree["links"][0]["id"],
            "variants": [
                {"title": "C", "url": "https://x.com/c"},
                {"title": "D", "url": "https://x.com/d"},
            ],
        },
    )
    assert response.status_code == 400


async def test_active_test_lookup_withholds_counters(
    client: AsyncClient,
    owner_client: AsyncClient,
    linktree: dict,
):
    test = await create_ab_test(owner_client, linktree)
    link_id = linktree["links"][0]["id"]

    response = await client.get(f"/api/ab-test-links/{link_id}")

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == test["id"]
    assert body["status"] == "active"
    assert [set(variant) for variant in body["variants"]] == [{"id", "title", "url"}] * 2

    assert (await client.get(f"/api/ab-test-links/{uuid4()}")).status_code == 404


async def test_winner_once_completed(
    client: AsyncClient,
    owner_client: AsyncClient,
    linktree: dict,
):
    test = await create_ab_test(owner_client, linktree)
    variant_a, variant_b = test["variants"]
    for variant_id, event_type in [
        (variant_a["id"], "impression"),
        (variant_a["id"], "impression"),
        (variant_b["id"], "impression"),
        (variant_b["id"], "click"),
    ]:
        await client.post(
            f"/api/ab-test-metrics/{test['id']}",
            json={"variantId": variant_id, "type": event_type},
        )

    completed = await owner_client.patch(f"/api/ab-tests/{test['id']}", json={"status": "completed"})
    assert completed.status_code == 200
    assert completed.json()["endDate"] is not None

    metrics = (await owner_client.get(f"/api/ab-test-metrics/{test['id']}")).json()
    assert metrics["winner"]["title"] == "B"
    assert metrics["winner"]["ctr"] == 100.0

    # Completed tests no longer count
    late = await client.post(
        f"/api/ab-test-metrics/{test['id']}",
        json={"variantId": variant_a["id"], "type": "click"},
    )
    assert late.json() == {"success": False}
    assert (await client.get(f"/api/ab-test-links/{linktree['links'][0]['id']}")).status_code == 404


async def test_list_and_status_validation(owner_client: AsyncClient, linktree: dict):
    test = await create_ab_test(owner_client, linktree)

    listed = await owner_client.get("/api/ab-tests")
    assert [item["id"] for item in listed.json()] == [test["id"]]

    bad = await owner_client.patch(f"/api/ab-tests/{test['id']}", json={"status": "archived"})
    assert bad.status_code == 400


async def test_owner_only_operations(
    client: AsyncClient,
    owner_client: AsyncClient,
    other_client: AsyncClient,
    linktree: dict,
):
    test = await create_ab_test(owner_client, linktree)

    assert (await client.get("/api/ab-tests")).status_code == 401
    assert (await client.get(f"/api/ab-test-metrics/{test['id']}")).status_code == 401
    assert (
        await client.patch(f"/api/ab-tests/{test['id']}", json={"status": "paused"})
    ).status_code == 401

    assert (await other_client.get("/api/ab-tests")).json() == []
    assert (await other_client.get(f"/api/ab-test-metrics/{test['id']}")).status_code == 403
    assert (
        await other_client.patch(f"/api/ab-tests/{test['id']}", json={"status": "paused"})
    ).status_code == 403

    foreign = await other_client.post(
        "/api/ab-tests",
        json={
            "name": "Hijack",
            "linktreeId": linktree["id"],
            "linkId": linktree["links"][0]["id"],
            "variants": [
                {"title": "C", "url": "https://x.com/c"},
                {"title": "D", "url": "https://x.com/d"},
            ],
        },
    )
    assert foreign.status_code == 403
    assert (await owner_client.get(f"/api/ab-test-metrics/{uuid4()}")).status_code == 404
