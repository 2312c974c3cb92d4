"""Identifier validation for schema object names.

Every table, column, index and constraint name passes through
IdentifierValidator before it reaches DDL construction. The DDL builder
only accepts Identifier instances, so an unvalidated string cannot be
interpolated into a statement.
"""

import re
from collections.abc import Iterable

from breadbase.domain.exceptions import InvalidIdentifier

# Letters, digits and underscores, not starting with a digit
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

DEFAULT_MAX_LENGTH = 64


class Identifier(str):
    """A validated schema object name.

    Only IdentifierValidator creates instances; construct one through
    ``IdentifierValidator.validate``.
    """

    __slots__ = ()


class IdentifierValidator:
    """Validator for schema object names.

    Args:
        max_length: Maximum identifier length for the target platform.
        pattern: Safe-character pattern. Must reject whitespace, quotes
            and path separators.
    """

    def __init__(
        self,
        max_length: int = DEFAULT_MAX_LENGTH,
        pattern: re.Pattern[str] = IDENTIFIER_PATTERN,
    ) -> None:
        self.max_length = max_length
        self.pattern = pattern

    def validate(self, raw: object) -> Identifier:
        """Validate a raw name and return it as an Identifier.

        Args:
            raw: The candidate name.

        Returns:
            The same name, unchanged, as an Identifier.

        Raises:
            InvalidIdentifier: If the name is empty, too long or contains
                characters outside the safe pattern.
        """
        if isinstance(raw, Identifier) and len(raw) <= self.max_length:
            return raw

        if not isinstance(raw, str):
            raise InvalidIdentifier(raw, "identifier must be a string")

        if not raw:
            raise InvalidIdentifier(raw, "identifier is required")

        if len(raw) > self.max_length:
            raise InvalidIdentifier(
                raw, f"identifier must be at most {self.max_length} characters"
            )

        if not self.pattern.fullmatch(raw):
            raise InvalidIdentifier(
                raw,
                "identifier must start with a letter or underscore and contain "
                "only letters, digits and underscores",
            )

        return Identifier(raw)

    def validate_many(self, names: Iterable[object]) -> list[Identifier]:
        """Validate every name in order, failing on the first invalid one."""
        return [self.validate(name) for name in names]

    def is_valid(self, raw: object) -> bool:
        try:
            self.validate(raw)
        except InvalidIdentifier:
            return False
        return True
