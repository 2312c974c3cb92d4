"""Integration tests for the BREAD endpoints."""

import pytest

BASE = "/api/v1/database/bread"


async def create_products_bread(client, auth_headers) -> dict:
    response = await client.post(
        BASE,
        json={"name": "products", "display_name_plural": "Goods"},
        headers=auth_headers,
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_requires_browse_database(client, viewer_token, products_table):
    response = await client.get(BASE, headers={"Authorization": f"Bearer {viewer_token}"})

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_prepare(client, auth_headers, products_table):
    response = await client.get(f"{BASE}/products/create", headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["slug"] == "products"
    assert len(body["fields"]) == 6
    assert body["field_options"][0]["key"] == "PRI"


@pytest.mark.asyncio
async def test_store_and_list(client, auth_headers, products_table):
    created = await create_products_bread(client, auth_headers)

    assert created["display_name_plural"] == "Goods"
    assert len(created["rows"]) == 6

    listed = await client.get(BASE, headers=auth_headers)
    assert [item["name"] for item in listed.json()] == ["products"]

    tables = await client.get("/api/v1/database", headers=auth_headers)
    products = next(item for item in tables.json()["items"] if item["name"] == "products")
    assert products["slug"] == "products"
    assert products["data_type_id"] == created["id"]


@pytest.mark.asyncio
async def test_store_twice_conflicts(client, auth_headers, products_table):
    await create_products_bread(client, auth_headers)

    response = await client.post(BASE, json={"name": "products"}, headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["payload"] == {"name": "products"}


@pytest.mark.asyncio
async def test_store_missing_table(client, auth_headers):
    response = await client.post(BASE, json={"name": "missing"}, headers=auth_headers)

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_edit_and_update(client, auth_headers, products_table):
    created = await create_products_bread(client, auth_headers)

    updated = await client.put(
        f"{BASE}/{created['id']}",
        json={"icon": "loaf", "fields": [{"field": "name", "display_name": "Title"}]},
        headers=auth_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["icon"] == "loaf"
    assert updated.json()["display_name_plural"] == "Goods"

    edit = await client.get(f"{BASE}/{created['id']}/edit", headers=auth_headers)
    body = edit.json()
    rows = {row["field"]: row for row in body["data_type"]["rows"]}
    assert rows["name"]["display_name"] == "Title"
    assert body["translations"] == {}
    assert len(body["field_options"]) == 6


@pytest.mark.asyncio
async def test_relationships(client, auth_headers, products_table):
    created = await create_products_bread(client, auth_headers)
    request = {
        "data_type_id": created["id"],
        "relationship_type": "hasMany",
        "table": "products",
        "model": created["model_name"],
        "column": "parent_id",
    }

    first = await client.post(f"{BASE}/relationships", json=request, headers=auth_headers)
    second = await client.post(f"{BASE}/relationships", json=request, headers=auth_headers)

    assert first.status_code == 201
    assert first.json()["field"] == "product_hasmany_product_relationship"
    assert second.json()["field"] == "product_hasmany_product_relationship_1"

    listed = await client.get(f"{BASE}/{created['id']}/relationships", headers=auth_headers)
    assert len(listed.json()) == 2

    deleted = await client.delete(f"{BASE}/relationships/{first.json()['id']}", headers=auth_headers)
    assert deleted.json() == {"id": first.json()["id"], "deleted": True}


@pytest.mark.asyncio
async def test_relationship_to_unknown_model(client, auth_headers, products_table):
    created = await create_products_bread(client, auth_headers)

    response = await client.post(
        f"{BASE}/relationships",
        json={
            "data_type_id": created["id"],
            "relationship_type": "belongsTo",
            "table": "suppliers",
            "model": "app.models.Supplier",
        },
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_target"


@pytest.mark.asyncio
async def test_delete(client, auth_headers, products_table):
    created = await create_products_bread(client, auth_headers)

    response = await client.delete(f"{BASE}/{created['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["removed"]["field_rows"] == 6
    assert response.json()["removed"]["permissions"] == 5
    missing = await client.get(f"{BASE}/{created['id']}/edit", headers=auth_headers)
    assert missing.status_code == 404
