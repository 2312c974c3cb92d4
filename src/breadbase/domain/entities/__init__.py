"""Domain entities for BreadBase.

Plain dataclasses describing tables, relationship requests and hook
values, free of database and web framework imports.
"""

from breadbase.domain.entities.hook_context import HookContext, HookResult
from breadbase.domain.entities.relationship import RelationshipRequest
from breadbase.domain.entities.table import (
    Column,
    ForeignKey,
    Index,
    PrimaryKey,
    Table,
    TableDefinition,
)

__all__ = [
    "Column",
    "ForeignKey",
    "HookContext",
    "HookResult",
    "Index",
    "PrimaryKey",
    "RelationshipRequest",
    "Table",
    "TableDefinition",
]
