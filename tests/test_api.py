from decimal import Decimal

import pytest


@pytest.fixture
def seeded(client):
    shop = client.post("/shops", json={"code": "up", "name": "Uptown"}).json()
    lot = client.post(
        "/perfume/bulk",
        json={"name": "Rose Garden", "remaining_volume_ml": 10000, "cost_per_ml": "0.03"},
    ).json()
    sizes = {}
    for size_ml in (30, 50, 100):
        response = client.post(
            "/perfume/bottle-sizes",
            json={"size_ml": size_ml, "bottle_cost": "2.00", "available_count": 200},
        )
        assert response.status_code == 201
        sizes[size_ml] = response.json()
    return {"shop": shop, "lot": lot, "sizes": sizes}


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_shop_lifecycle(client):
    created = client.post("/shops", json={"code": "dt", "name": "Downtown", "location": "Main St"})
    assert created.status_code == 201
    assert created.json()["code"] == "DT"

    duplicate = client.post("/shops", json={"code": "DT", "name": "Other"})
    assert duplicate.status_code == 409

    archived = client.delete(f"/shops/{created.json()['id']}")
    assert archived.json()["is_active"] is False
    assert client.get("/shops").json() == []
    assert len(client.get("/shops", params={"include_inactive": True}).json()) == 1


def test_bottle_endpoint(client, seeded):
    response = client.post(
        "/perfume/bottle",
        json={
            "lot_id": seeded["lot"]["id"],
            "component_size": 50,
            "units_requested": 100,
            "shop_id": seeded["shop"]["id"],
        },
        headers={"X-Actor-Id": "42"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["sku"] == "PERF-ROSEGARD-50ML"
    assert Decimal(body["total_cost"]) == Decimal("350.00")
    assert Decimal(body["selling_price"]) == Decimal("25000.00")
    assert body["remaining_volume_ml"] == 5000
    assert body["remaining_components"] == 100

    history = client.get("/perfume/bottling/history", params={"lot_id": seeded["lot"]["id"]}).json()
    assert len(history) == 1
    assert history[0]["lot_name"] == "Rose Garden"
    assert history[0]["size_ml"] == 50
    assert history[0]["actor_id"] == 42

    sizes = {item["size_ml"]: item for item in client.get("/perfume/bottle-sizes").json()}
    assert sizes[50]["used_quantity"] == 100
    assert sizes[30]["used_quantity"] == 0


def test_bottle_error_responses(client, seeded):
    base = {"lot_id": seeded["lot"]["id"], "component_size": 50, "shop_id": seeded["shop"]["id"]}

    too_many = client.post("/perfume/bottle", json={**base, "units_requested": 500})
    assert too_many.status_code == 409
    assert too_many.json()["code"] == "insufficient_component_stock"

    invalid = client.post("/perfume/bottle", json={**base, "units_requested": 0})
    assert invalid.status_code == 400
    assert invalid.json()["code"] == "validation_error"

    odd_size = client.post("/perfume/bottle", json={**base, "component_size": 75, "units_requested": 1})
    assert odd_size.status_code == 422
    assert odd_size.json()["code"] == "invalid_configuration"

    missing_lot = client.post("/perfume/bottle", json={**base, "lot_id": 9999, "units_requested": 1})
    assert missing_lot.status_code == 404
    assert missing_lot.json()["detail"] == "Bulk perfume not found"

    bad_actor = client.post("/perfume/bottle", json={**base, "units_requested": 1}, headers={"X-Actor-Id": "abc"})
    assert bad_actor.status_code == 400

    lot = client.get(f"/perfume/bulk/{seeded['lot']['id']}").json()
    assert lot["remaining_volume_ml"] == 10000


def test_bottle_all_sizes_for_every_shop(client, seeded):
    client.post("/shops", json={"code": "dt", "name": "Downtown"})
    response = client.post("/perfume/bottle-all-sizes", json={"lot_id": seeded["lot"]["id"], "shop_id": "all"})

    assert response.status_code == 201
    body = response.json()
    assert len(body["shop_ids"]) == 2
    assert (body["success"], body["failed"]) == (3, 0)
    assert body["remaining_volume_ml"] == 10000 - 2 * 180


def test_bottle_all_bulk_reports_multi_status(client, seeded):
    client.post("/perfume/bulk", json={"name": "Thin Lot", "remaining_volume_ml": 150, "cost_per_ml": "0.05"})
    client.post("/perfume/bulk", json={"name": "Borderline", "remaining_volume_ml": 200, "cost_per_ml": "0.05"})
    client.post("/shops", json={"code": "dt", "name": "Downtown"})

    response = client.post("/perfume/bottle-all-bulk", json={"shop_id": "all"})

    assert response.status_code == 207
    body = response.json()
    assert body["success"] == 3
    assert body["failed"] == 1
    statuses = {(item["lot_name"], item["status"]) for item in body["details"]}
    assert ("Borderline", "skipped") in statuses
    assert all(name != "Thin Lot" for name, _ in statuses)


def test_return_shop_inventory_endpoint(client, seeded):
    client.post(
        "/perfume/bottle",
        json={
            "lot_id": seeded["lot"]["id"],
            "component_size": 100,
            "units_requested": 10,
            "shop_id": seeded["shop"]["id"],
        },
    )

    response = client.post("/perfume/return-shop-inventory")

    assert response.status_code == 200
    body = response.json()
    assert body["items_processed"] == 1
    assert body["volume_recovered_ml"] == 1000
    assert body["components_recovered"] == 10
    assert client.get(f"/perfume/bulk/{seeded['lot']['id']}").json()["remaining_volume_ml"] == 10000


def test_assign_and_unassign_endpoints(client, seeded):
    client.post(
        "/perfume/bottle",
        json={
            "lot_id": seeded["lot"]["id"],
            "component_size": 30,
            "units_requested": 8,
            "shop_id": seeded["shop"]["id"],
        },
    )
    second = client.post("/shops", json={"code": "dt", "name": "Downtown"}).json()

    assigned = client.post("/products/assign-all-to-shop", json={"shop_id": second["id"], "default_quantity": 4})
    assert assigned.status_code == 200
    assert assigned.json()["assigned"] == 1

    unassigned = client.post("/products/unassign-all-from-shop", json={"shop_id": seeded["shop"]["id"]})
    assert unassigned.json()["total_unassigned"] == 1

    missing = client.post("/products/assign-all-to-shop", json={"shop_id": 9999})
    assert missing.status_code == 404


def test_bulk_lot_crud_and_filters(client, seeded):
    client.post(
        "/perfume/bulk",
        json={"name": "Oud Royale", "remaining_volume_ml": 500, "cost_per_ml": "0.10", "category_tag": "Selective"},
    )

    assert [lot["name"] for lot in client.get("/perfume/bulk", params={"search": "oud"}).json()] == ["Oud Royale"]
    assert [lot["name"] for lot in client.get("/perfume/bulk", params={"stock_level": "low"}).json()] == ["Oud Royale"]
    assert [lot["name"] for lot in client.get("/perfume/bulk", params={"category": "selective"}).json()] == [
        "Oud Royale"
    ]

    lot_id = seeded["lot"]["id"]
    patched = client.patch(f"/perfume/bulk/{lot_id}", json={"supplier": "Grasse Co"})
    assert patched.json()["supplier"] == "Grasse Co"
    assert client.patch(f"/perfume/bulk/{lot_id}", json={"name": "  "}).status_code == 400

    client.delete(f"/perfume/bulk/{lot_id}")
    names = [lot["name"] for lot in client.get("/perfume/bulk").json()]
    assert "Rose Garden" not in names
    assert client.get("/perfume/bulk/9999").status_code == 404


def test_bottle_size_rules(client, seeded):
    duplicate = client.post("/perfume/bottle-sizes", json={"size_ml": 50, "bottle_cost": "1.00"})
    assert duplicate.status_code == 400
    unsupported = client.post("/perfume/bottle-sizes", json={"size_ml": 75, "bottle_cost": "1.00"})
    assert unsupported.status_code == 422

    size_id = seeded["sizes"][30]["id"]
    updated = client.patch(f"/perfume/bottle-sizes/{size_id}", json={"label_cost": "0.50"})
    assert Decimal(updated.json()["unit_component_cost"]) == Decimal("2.50")
    archived = client.delete(f"/perfume/bottle-sizes/{size_id}")
    assert archived.json()["is_active"] is False
    assert 30 not in {item["size_ml"] for item in client.get("/perfume/bottle-sizes").json()}


def test_stats(client, seeded):
    client.post(
        "/perfume/bottle",
        json={
            "lot_id": seeded["lot"]["id"],
            "component_size": 50,
            "units_requested": 100,
            "shop_id": seeded["shop"]["id"],
        },
    )

    stats = client.get("/perfume/stats").json()

    assert stats["active_lots"] == 1
    assert stats["total_volume_ml"] == 5000
    assert Decimal(stats["total_value"]) == Decimal("150.00")
    assert stats["conversions_last_30_days"] == 1
    assert stats["units_last_30_days"] == 100
    assert stats["top_lots"][0]["name"] == "Rose Garden"
    assert stats["top_lots"][0]["units_produced"] == 100
