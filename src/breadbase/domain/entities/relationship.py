"""Relationship field request entity."""

from dataclasses import dataclass
from typing import Any

RELATIONSHIP_TYPES = ("hasOne", "hasMany", "belongsTo", "belongsToMany")

# Relationship types whose join column is held by the owning table
BELONGS_TO_TYPES = ("belongsTo", "belongsToMany")


@dataclass
class RelationshipRequest:
    """A request to add a relationship field to a data type.

    Attributes:
        data_type_id: Owning data type.
        relationship_type: hasOne, hasMany, belongsTo or belongsToMany.
        table: Related table.
        model: Model identifier of the related table.
        column: Join column for hasOne / hasMany.
        column_belongs_to: Join column for belongsTo / belongsToMany.
        key: Key column on the related table.
        label: Column of the related table shown as the label.
        pivot_table: Pivot table for belongsToMany.
    """

    data_type_id: int
    relationship_type: str
    table: str
    model: str
    column: str | None = None
    column_belongs_to: str | None = None
    key: str = "id"
    label: str | None = None
    pivot_table: str | None = None

    def __post_init__(self) -> None:
        if self.relationship_type not in RELATIONSHIP_TYPES:
            raise ValueError(
                f"relationship_type must be one of {', '.join(RELATIONSHIP_TYPES)}"
            )

    @property
    def join_column(self) -> str | None:
        if self.relationship_type in BELONGS_TO_TYPES:
            return self.column_belongs_to
        return self.column

    def details(self) -> dict[str, Any]:
        """Serialized details stored on the relationship row."""
        return {
            "model": self.model,
            "table": self.table,
            "type": self.relationship_type,
            "column": self.join_column,
            "key": self.key,
            "label": self.label,
            "pivot_table": self.pivot_table,
            "pivot": "1" if self.relationship_type == "belongsToMany" else "0",
        }
