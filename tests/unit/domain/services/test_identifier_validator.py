"""Unit tests for IdentifierValidator."""

import pytest

from breadbase.domain.exceptions import InvalidIdentifier
from breadbase.domain.services import Identifier, IdentifierValidator


class TestIdentifierValidator:
    """Tests for schema object name validation."""

    @pytest.mark.parametrize("name", ["products", "_tmp", "order_items2", "A"])
    def test_valid_names_are_returned_unchanged(self, name: str) -> None:
        validator = IdentifierValidator()

        result = validator.validate(name)

        assert result == name
        assert isinstance(result, Identifier)

    @pytest.mark.parametrize(
        "name",
        [
            "2fast",
            "drop table",
            "name;--",
            "quote'd",
            'double"quote',
            "../etc",
            "dash-ed",
            "tab\tname",
        ],
    )
    def test_unsafe_characters_are_rejected(self, name: str) -> None:
        with pytest.raises(InvalidIdentifier) as exc_info:
            IdentifierValidator().validate(name)

        assert exc_info.value.name == name

    def test_empty_name_is_rejected(self) -> None:
        with pytest.raises(InvalidIdentifier, match="required"):
            IdentifierValidator().validate("")

    def test_non_string_is_rejected(self) -> None:
        with pytest.raises(InvalidIdentifier, match="string"):
            IdentifierValidator().validate(42)

    def test_length_limit(self) -> None:
        validator = IdentifierValidator(max_length=8)

        assert validator.validate("a" * 8) == "a" * 8
        with pytest.raises(InvalidIdentifier, match="at most 8"):
            validator.validate("a" * 9)

    def test_identifier_is_revalidated_against_a_shorter_limit(self) -> None:
        long_name = IdentifierValidator(max_length=64).validate("a" * 20)

        with pytest.raises(InvalidIdentifier):
            IdentifierValidator(max_length=10).validate(long_name)

    def test_validate_many_fails_on_first_invalid(self) -> None:
        validator = IdentifierValidator()

        assert validator.validate_many(["a", "b"]) == ["a", "b"]
        with pytest.raises(InvalidIdentifier) as exc_info:
            validator.validate_many(["a", "b c", "1d"])
        assert exc_info.value.name == "b c"

    def test_is_valid(self) -> None:
        validator = IdentifierValidator()

        assert validator.is_valid("users") is True
        assert validator.is_valid("users; drop") is False

    def test_error_payload(self) -> None:
        with pytest.raises(InvalidIdentifier) as exc_info:
            IdentifierValidator().validate("bad name")

        data = exc_info.value.with_payload({"name": "bad name"}).to_dict()
        assert data["error"] == "invalid_identifier"
        assert data["details"]["name"] == "bad name"
        assert data["payload"] == {"name": "bad name"}
