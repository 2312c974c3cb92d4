"""Domain services for BreadBase.

Only the services without infrastructure dependencies are re-exported
here. The schema, CRUD and relationship services are imported from their
own modules.
"""

from breadbase.domain.services.capability_checker import (
    BROWSE_DATABASE,
    AllowAllCapabilityChecker,
    CapabilityChecker,
    ClaimsCapabilityChecker,
)
from breadbase.domain.services.identifier_validator import (
    Identifier,
    IdentifierValidator,
)
from breadbase.domain.services.model_resolver import ImportModelResolver, ModelResolver
from breadbase.domain.services.name_inflector import NameInflector
from breadbase.domain.services.schema_lock import (
    LocalSchemaLock,
    NullSchemaLock,
    SchemaLock,
    build_schema_lock,
)

__all__ = [
    "AllowAllCapabilityChecker",
    "BROWSE_DATABASE",
    "CapabilityChecker",
    "ClaimsCapabilityChecker",
    "Identifier",
    "IdentifierValidator",
    "ImportModelResolver",
    "LocalSchemaLock",
    "ModelResolver",
    "NameInflector",
    "NullSchemaLock",
    "SchemaLock",
    "build_schema_lock",
]
