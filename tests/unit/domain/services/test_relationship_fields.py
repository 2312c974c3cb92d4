"""Unit tests for relationship field naming and target checks."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from breadbase.domain.entities.relationship import RelationshipRequest
from breadbase.domain.exceptions import InvalidTarget, NotFound
from breadbase.domain.services.relationship_service import RelationshipService


@pytest.mark.parametrize(
    "owner, relationship_type, related, expected",
    [
        ("books", "belongsTo", "authors", "book_belongsto_author_relationship"),
        ("posts", "hasMany", "comments", "post_hasmany_comment_relationship"),
        ("users", "belongsToMany", "roles", "user_belongstomany_role_relationship"),
        ("categories", "hasOne", "people", "category_hasone_person_relationship"),
    ],
)
def test_base_field_name(owner, relationship_type, related, expected):
    assert RelationshipService.base_field_name(owner, relationship_type, related) == expected


@pytest.fixture
def service() -> RelationshipService:
    resolver = MagicMock()
    resolver.resolve.return_value = False
    service = RelationshipService(AsyncMock(), model_resolver=resolver)
    service.data_types = AsyncMock()
    service.data_rows = AsyncMock()
    return service


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "taken, expected",
    [
        (set(), "book_belongsto_author_relationship"),
        ({"book_belongsto_author_relationship"}, "book_belongsto_author_relationship_1"),
        (
            {"book_belongsto_author_relationship", "book_belongsto_author_relationship_1"},
            "book_belongsto_author_relationship_2",
        ),
        ({"book_belongsto_author_relationship_1"}, "book_belongsto_author_relationship"),
    ],
)
async def test_derive_field_name_suffixes(service, taken, expected):
    service.data_rows.field_names_with_prefix.return_value = taken

    assert await service.derive_field_name("books", "belongsTo", "authors") == expected


@pytest.mark.asyncio
async def test_unknown_owner(service):
    service.data_types.get_by_id.return_value = None
    request = RelationshipRequest(1, "belongsTo", "authors", "app.models.Author")

    with pytest.raises(NotFound):
        await service.add_relationship(request)


@pytest.mark.asyncio
async def test_unresolvable_model_is_rejected(service):
    service.data_types.get_by_id.return_value = SimpleNamespace(id=1, name="books")
    service.data_types.list_all.return_value = [SimpleNamespace(model_name="app.models.Book")]
    request = RelationshipRequest(1, "belongsTo", "authors", "app.models.Author")

    with pytest.raises(InvalidTarget) as exc_info:
        await service.add_relationship(request)

    assert "app.models.Author" in exc_info.value.message
    service.data_rows.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_model_of_registered_data_type_is_accepted(service):
    service.data_types.get_by_id.return_value = SimpleNamespace(id=1, name="books")
    service.data_types.list_all.return_value = [SimpleNamespace(model_name="app.models.Author")]
    service.data_rows.field_names_with_prefix.return_value = set()
    service.data_rows.max_order.return_value = 4
    service.data_rows.create.side_effect = lambda row: row
    request = RelationshipRequest(
        1, "belongsTo", "authors", "app.models.Author", column_belongs_to="author_id", label="name"
    )

    row = await service.add_relationship(request)

    assert row.field == "book_belongsto_author_relationship"
    assert row.type == "relationship"
    assert row.order == 5
    assert row.details["column"] == "author_id"
    service.session.commit.assert_awaited_once()
