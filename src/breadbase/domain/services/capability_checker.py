"""Capability checks run before listing or mutating schema and CRUD metadata."""

from typing import Any, Protocol

from breadbase.core.logging import get_logger
from breadbase.domain.exceptions import CapabilityDenied

logger = get_logger(__name__)

BROWSE_DATABASE = "browse_database"
WILDCARD = "*"


class CapabilityChecker(Protocol):
    async def check(self, principal: Any, ability: str) -> None:
        """Raise CapabilityDenied unless ``principal`` holds ``ability``."""
        ...


class ClaimsCapabilityChecker:
    """Checks abilities against a principal's ``permissions`` claim.

    The principal is either a mapping of token claims or an object with a
    ``permissions`` attribute. A ``*`` entry grants every ability.
    """

    async def check(self, principal: Any, ability: str) -> None:
        if isinstance(principal, dict):
            permissions = principal.get("permissions") or []
        else:
            permissions = getattr(principal, "permissions", None) or []

        if WILDCARD in permissions or ability in permissions:
            return

        logger.warning(
            "Capability denied",
            ability=ability,
            principal=getattr(principal, "user_id", None),
        )
        raise CapabilityDenied(ability)


class AllowAllCapabilityChecker:
    """Grants everything. Used by the CLI, which runs with operator rights."""

    async def check(self, principal: Any, ability: str) -> None:
        return None
