from __future__ import annotations

from fastapi.testclient import TestClient


def test_tables_listed_by_zone_then_number(client: TestClient, waiter_headers) -> None:
    response = client.get("/tables", headers=waiter_headers)

    assert response.status_code == 200
    tables = response.json()["tables"]
    assert [(table["zone"], table["number"]) for table in tables][:4] == [
        ("Section 1", "1"),
        ("Section 1", "2"),
        ("Section 1", "3"),
        ("Section 2", "4"),
    ]
    assert tables[-1]["number"] == "10"
    assert all(table["status"] == "Available" for table in tables)


def test_table_registry_crud(client: TestClient, admin_headers) -> None:
    created = client.post("/tables", headers=admin_headers, json={"number": "11", "zone": "Patio", "seats": 2})
    assert created.status_code == 201
    table = created.json()
    assert table["status"] == "Available"

    duplicate = client.post("/tables", headers=admin_headers, json={"number": "11", "zone": "Patio", "seats": 2})
    assert duplicate.status_code == 400
    assert duplicate.json()["code"] == "DUPLICATE_TABLE_NUMBER"

    updated = client.put(
        f"/tables/{table['tableId']}",
        headers=admin_headers,
        json={"number": "11", "zone": "Patio", "seats": 6, "status": "Booked"},
    )
    assert updated.status_code == 200
    assert updated.json()["seats"] == 6
    assert updated.json()["status"] == "Booked"

    summary = client.get("/tables/stats/summary", headers=admin_headers).json()
    assert summary["totalTables"] == 11
    assert summary["occupiedTables"] == 0
    assert {"key": "Booked", "count": 1} in summary["byStatus"]

    assert client.delete(f"/tables/{table['tableId']}", headers=admin_headers).status_code == 204
    missing = client.get(f"/tables/{table['tableId']}", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["code"] == "TABLE_NOT_FOUND"


def test_table_with_active_order_cannot_be_deleted(
    client: TestClient,
    waiter_headers,
    cashier_headers,
    table_id,
    menu_item_id,
) -> None:
    table = table_id("3")
    order = client.post(
        "/orders",
        headers=waiter_headers,
        json={"tableId": table, "items": [{"menuItemId": menu_item_id("Kopi O"), "quantity": 1}]},
    ).json()

    blocked = client.delete(f"/tables/{table}", headers=waiter_headers)
    assert blocked.status_code == 409
    assert blocked.json()["code"] == "TABLE_IN_USE"
    assert blocked.json()["details"] == {"reason": "HAS_ACTIVE_ORDER"}

    client.post(f"/orders/{order['orderId']}/payment", headers=cashier_headers, json={"paymentMethod": "Cash", "amount": 5})
    assert client.delete(f"/tables/{table}", headers=waiter_headers).status_code == 204

    history = client.get(f"/orders/{order['orderId']}", headers=waiter_headers).json()
    assert history["tableId"] is None
    assert history["status"] == "Completed"


def test_public_menu_is_grouped_and_supports_etags(client: TestClient) -> None:
    response = client.get("/menu/items")

    assert response.status_code == 200
    menu = response.json()
    assert menu["categories"][0]["category"] == "Famous Prata Items"
    assert "Prata Egg" in [item["name"] for item in menu["categories"][0]["items"]]

    etag = response.headers["ETag"]
    assert etag == f'"menu-{menu["version"]}"'
    cached = client.get("/menu/items", headers={"If-None-Match": etag})
    assert cached.status_code == 304


def test_menu_changes_bump_version_and_hide_unavailable_items(
    client: TestClient,
    admin_headers,
    menu_item_id,
) -> None:
    before = client.get("/menu/items").json()
    item = menu_item_id("Ice Kacang")
    category_id = client.get(f"/menu/items/{item}").json()["categoryId"]

    updated = client.put(
        f"/menu/items/{item}",
        headers=admin_headers,
        json={"name": "Ice Kacang", "price": 4.0, "categoryId": category_id, "isAvailable": False},
    )
    assert updated.status_code == 200

    after = client.get("/menu/items").json()
    assert after["version"] != before["version"]
    public_names = {entry["name"] for group in after["categories"] for entry in group["items"]}
    assert "Ice Kacang" not in public_names

    everything = client.get("/menu/items/all", headers=admin_headers).json()["items"]
    assert "Ice Kacang" in {entry["name"] for entry in everything}


def test_category_management(client: TestClient, admin_headers) -> None:
    created = client.post("/menu/categories", headers=admin_headers, json={"name": "Specials", "displayOrder": 9})
    assert created.status_code == 201
    category = created.json()

    duplicate = client.post("/menu/categories", headers=admin_headers, json={"name": "Specials"})
    assert duplicate.status_code == 400
    assert duplicate.json()["code"] == "DUPLICATE_CATEGORY"

    item = client.post(
        "/menu/items",
        headers=admin_headers,
        json={"name": "Murtabak", "price": "6.50", "categoryId": category["categoryId"], "subcategory": "Special"},
    )
    assert item.status_code == 201
    assert item.json()["priceMoney"] == {"amountCents": 650, "currency": "SGD"}
    assert item.json()["categoryName"] == "Specials"

    in_use = client.delete(f"/menu/categories/{category['categoryId']}", headers=admin_headers)
    assert in_use.status_code == 409
    assert in_use.json()["code"] == "CATEGORY_IN_USE"

    assert client.delete(f"/menu/items/{item.json()['itemId']}", headers=admin_headers).status_code == 204
    assert client.delete(f"/menu/categories/{category['categoryId']}", headers=admin_headers).status_code == 204

    names = [entry["name"] for entry in client.get("/menu/categories").json()["categories"]]
    assert "Specials" not in names
    assert names[0] == "Famous Prata Items"


def test_ordered_menu_item_cannot_be_deleted(
    client: TestClient,
    admin_headers,
    waiter_headers,
    table_id,
    menu_item_id,
) -> None:
    item = menu_item_id("Roti John")
    client.post(
        "/orders",
        headers=waiter_headers,
        json={"tableId": table_id("6"), "items": [{"menuItemId": item, "quantity": 1}]},
    )

    response = client.delete(f"/menu/items/{item}", headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["code"] == "MENU_ITEM_IN_USE"
