"""Repository implementations for BreadBase's metadata tables."""

from breadbase.infrastructure.persistence.repositories.data_row_repository import (
    DataRowRepository,
)
from breadbase.infrastructure.persistence.repositories.data_type_repository import (
    DataTypeRepository,
)
from breadbase.infrastructure.persistence.repositories.permission_repository import (
    BREAD_ACTIONS,
    PermissionRepository,
    permission_keys_for,
)
from breadbase.infrastructure.persistence.repositories.translation_repository import (
    TranslationRepository,
)

__all__ = [
    "BREAD_ACTIONS",
    "DataRowRepository",
    "DataTypeRepository",
    "PermissionRepository",
    "TranslationRepository",
    "permission_keys_for",
]
