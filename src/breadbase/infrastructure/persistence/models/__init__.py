"""SQLAlchemy models for BreadBase's own metadata tables.

All models inherit from the Base class defined in database.py and are
created on application startup in development mode.
"""

from breadbase.infrastructure.persistence.models.data_row import DataRowModel
from breadbase.infrastructure.persistence.models.data_type import DataTypeModel
from breadbase.infrastructure.persistence.models.permission import PermissionModel
from breadbase.infrastructure.persistence.models.translation import TranslationModel

__all__ = [
    "DataRowModel",
    "DataTypeModel",
    "PermissionModel",
    "TranslationModel",
]
