"""Integration tests for the database management endpoints."""

import pytest
from sqlalchemy import text

BASE = "/api/v1/database"


def books_definition() -> dict:
    return {
        "name": "books",
        "columns": [
            {"name": "id", "type": "integer", "nullable": False, "autoincrement": True, "unsigned": True},
            {"name": "title", "type": "string", "nullable": False, "length": 150},
            {"name": "pages", "type": "integer"},
        ],
        "primary_key": {"columns": ["id"]},
        "indexes": [{"columns": ["title"]}],
    }


class TestAuthorization:
    @pytest.mark.asyncio
    async def test_missing_token(self, client):
        response = await client.get(BASE)

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_malformed_header(self, client):
        response = await client.get(BASE, headers={"Authorization": "Token abc"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_without_browse_database(self, client, viewer_token, products_table):
        headers = {"Authorization": f"Bearer {viewer_token}"}

        response = await client.delete(f"{BASE}/products", headers=headers)

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "capability_denied"
        assert body["details"] == {"ability": "browse_database"}

    @pytest.mark.asyncio
    async def test_denied_request_changes_nothing(self, client, viewer_token, schema_manager, products_table):
        headers = {"Authorization": f"Bearer {viewer_token}"}

        await client.delete(f"{BASE}/products", headers=headers)

        assert await schema_manager.table_exists("products")


class TestReadEndpoints:
    @pytest.mark.asyncio
    async def test_list_tables(self, client, auth_headers, products_table):
        response = await client.get(BASE, headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        names = [item["name"] for item in body["items"]]
        assert names == sorted(names)
        assert "products" in names
        assert body["total"] == len(names)

    @pytest.mark.asyncio
    async def test_types(self, client, auth_headers):
        response = await client.get(f"{BASE}/types", headers=auth_headers)

        assert response.status_code == 200
        types = response.json()
        assert types["string"]["supports_length"] is True
        assert types["string"]["sql_type"] == "VARCHAR(255)"
        assert "real" in types

    @pytest.mark.asyncio
    async def test_prepare_create(self, client, auth_headers):
        response = await client.get(f"{BASE}/create", headers=auth_headers)

        body = response.json()
        assert body["action"] == "create"
        assert body["table"]["columns"][0]["name"] == "id"
        assert body["table"]["primary_key"]["columns"] == ["id"]
        assert body["platform"] == "sqlite"

    @pytest.mark.asyncio
    async def test_show_and_edit(self, client, auth_headers, products_table):
        show = await client.get(f"{BASE}/products", headers=auth_headers)
        edit = await client.get(f"{BASE}/products/edit", headers=auth_headers)

        assert show.status_code == 200
        assert [row["field"] for row in show.json()][:2] == ["id", "name"]
        assert edit.json()["action"] == "update"
        assert edit.json()["table"]["name"] == "products"

    @pytest.mark.asyncio
    async def test_show_missing_table(self, client, auth_headers):
        response = await client.get(f"{BASE}/missing", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "schema_not_found"


class TestMutations:
    @pytest.mark.asyncio
    async def test_create_update_and_drop(self, client, auth_headers, schema_manager):
        created = await client.post(BASE, json={"table": books_definition()}, headers=auth_headers)

        assert created.status_code == 201
        assert created.json()["scaffold"] is None
        assert created.json()["table"]["indexes"][0]["name"] == "books_title_index"

        definition = books_definition()
        definition["columns"].append({"name": "isbn", "type": "string", "length": 13})
        updated = await client.put(f"{BASE}/books", json={"table": definition}, headers=auth_headers)

        assert updated.status_code == 200
        assert updated.json()["operations"] == ["add column 'isbn'"]
        assert updated.json()["diff"]["added_columns"] == ["isbn"]

        reordered = await client.post(
            f"{BASE}/books/reorder", json={"column": "isbn", "after": "id"}, headers=auth_headers
        )
        assert reordered.status_code == 200
        assert [c["name"] for c in reordered.json()["table"]["columns"]] == [
            "id", "isbn", "title", "pages"
        ]

        dropped = await client.delete(f"{BASE}/books", headers=auth_headers)
        assert dropped.json() == {"name": "books", "deleted": True, "orphaned_data_type_id": None}
        assert not await schema_manager.table_exists("books")

    @pytest.mark.asyncio
    async def test_invalid_identifier_returns_payload(self, client, auth_headers, schema_manager):
        definition = books_definition()
        definition["name"] = "books; DROP TABLE data_types"

        response = await client.post(BASE, json={"table": definition}, headers=auth_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "invalid_identifier"
        assert body["payload"]["table"]["name"] == "books; DROP TABLE data_types"
        assert await schema_manager.table_exists("data_types")

    @pytest.mark.asyncio
    async def test_existing_table_conflict(self, client, auth_headers, products_table):
        definition = books_definition()
        definition["name"] = "products"

        response = await client.post(BASE, json={"table": definition}, headers=auth_headers)

        assert response.status_code == 409
        assert response.json()["error"] == "table_already_exists"

    @pytest.mark.asyncio
    async def test_failed_update_reports_rollback(self, engine, client, auth_headers, products_table):
        # SQLite only rejects a NOT NULL column without default once rows exist
        async with engine.begin() as conn:
            await conn.execute(text("INSERT INTO products (id, name) VALUES (1, 'Loaf')"))
        edit = await client.get(f"{BASE}/products/edit", headers=auth_headers)
        definition = edit.json()["table"]
        definition["columns"].append({"name": "sku", "type": "string", "nullable": False})

        response = await client.put(f"{BASE}/products", json={"table": definition}, headers=auth_headers)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "schema_update_failed"
        assert body["details"]["rolled_back"] is True
        assert body["details"]["failed_operation"] == "add column 'sku'"
        assert body["payload"]["table"]["columns"][-1]["name"] == "sku"


class TestCrudMetadataFollowsTable:
    @pytest.mark.asyncio
    async def test_rename_rekeys_data_type_and_permissions(self, engine, client, auth_headers, products_table):
        bread = await client.post(f"{BASE}/bread", json={"name": "products"}, headers=auth_headers)
        assert bread.status_code == 201
        edit = await client.get(f"{BASE}/products/edit", headers=auth_headers)
        definition = edit.json()["table"]
        definition["name"] = "goods"

        response = await client.put(f"{BASE}/products", json={"table": definition}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["operations"] == ["rename table 'products' to 'goods'"]
        tables = {item["name"]: item for item in (await client.get(BASE, headers=auth_headers)).json()["items"]}
        assert tables["goods"]["data_type_id"] == bread.json()["id"]
        assert tables["goods"]["slug"] == "goods"
        async with engine.connect() as conn:
            keys = (await conn.execute(text("SELECT key FROM permissions ORDER BY key"))).scalars().all()
        assert keys == sorted(f"{action}_goods" for action in ("browse", "read", "edit", "add", "delete"))

    @pytest.mark.asyncio
    async def test_rename_keeps_custom_slug(self, client, auth_headers, products_table):
        await client.post(f"{BASE}/bread", json={"name": "products", "slug": "shop"}, headers=auth_headers)
        edit = await client.get(f"{BASE}/products/edit", headers=auth_headers)
        definition = edit.json()["table"]
        definition["name"] = "goods"

        await client.put(f"{BASE}/products", json={"table": definition}, headers=auth_headers)

        tables = {item["name"]: item for item in (await client.get(BASE, headers=auth_headers)).json()["items"]}
        assert tables["goods"]["slug"] == "shop"

    @pytest.mark.asyncio
    async def test_drop_reports_orphaned_data_type(self, client, auth_headers, products_table):
        bread = await client.post(f"{BASE}/bread", json={"name": "products"}, headers=auth_headers)

        response = await client.delete(f"{BASE}/products", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            "name": "products",
            "deleted": True,
            "orphaned_data_type_id": bread.json()["id"],
        }
        removed = await client.delete(f"{BASE}/bread/{bread.json()['id']}", headers=auth_headers)
        assert removed.status_code == 200


@pytest.mark.asyncio
async def test_table_hooks_fire_with_correlation_id(app, client, auth_headers):
    from breadbase.core.hooks import HookEvent

    seen = []
    app.state.hook_registry.register(
        HookEvent.ON_TABLE_AFTER_CREATE,
        lambda event, data, context: seen.append((data["name"], context.request_id, context.user_id)),
        filters={"table": "books"},
    )

    response = await client.post(
        BASE,
        json={"table": books_definition()},
        headers={**auth_headers, "X-Correlation-ID": "cid_books"},
    )

    assert response.status_code == 201
    assert response.headers["X-Correlation-ID"] == "cid_books"
    assert seen == [("books", "cid_books", "operator")]
