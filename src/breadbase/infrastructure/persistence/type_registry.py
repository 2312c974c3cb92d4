"""Portable column types and their SQLAlchemy counterparts per dialect.

The registry maps the small vocabulary of portable type names used in
table definitions ("integer", "string", ...) onto SQLAlchemy type classes
and back. Dialect-specific extras are added once per registry by
``register_custom_types``.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import sqlalchemy as sa
from sqlalchemy.dialects import mysql, postgresql, registry as dialect_registry
from sqlalchemy.engine import Dialect
from sqlalchemy.exc import CompileError

from breadbase.core.logging import get_logger
from breadbase.domain.exceptions import UnsupportedType

logger = get_logger(__name__)

NUMBERS = "Numbers"
STRINGS = "Strings"
DATE_AND_TIME = "Date and Time"
LISTS = "Lists"
BINARY = "Binary"
NETWORK = "Network"
GEOMETRY = "Geometry"

DEFAULT_STRING_LENGTH = 255
DEFAULT_DECIMAL_PRECISION = 10
DEFAULT_DECIMAL_SCALE = 0

MYSQL_DIALECTS = ("mysql", "mariadb")


@dataclass(frozen=True)
class TypeSpec:
    """A registered portable type.

    Attributes:
        name: Portable type name.
        type_class: SQLAlchemy type class the name maps to.
        category: Display group for the UI type picker.
        supports_length: Whether a length option applies.
        supports_precision: Whether precision/scale options apply.
        supports_unsigned: Whether the unsigned flag applies.
        default_length: Length used when none is given.
    """

    name: str
    type_class: type[sa.types.TypeEngine]
    category: str
    supports_length: bool = False
    supports_precision: bool = False
    supports_unsigned: bool = False
    default_length: int | None = None


BASE_TYPES: tuple[TypeSpec, ...] = (
    TypeSpec("integer", sa.Integer, NUMBERS, supports_unsigned=True),
    TypeSpec("smallint", sa.SmallInteger, NUMBERS, supports_unsigned=True),
    TypeSpec("bigint", sa.BigInteger, NUMBERS, supports_unsigned=True),
    TypeSpec("decimal", sa.Numeric, NUMBERS, supports_precision=True, supports_unsigned=True),
    TypeSpec("float", sa.Float, NUMBERS, supports_unsigned=True),
    TypeSpec("boolean", sa.Boolean, NUMBERS),
    TypeSpec(
        "string", sa.String, STRINGS, supports_length=True, default_length=DEFAULT_STRING_LENGTH
    ),
    TypeSpec("text", sa.Text, STRINGS),
    TypeSpec("date", sa.Date, DATE_AND_TIME),
    TypeSpec("datetime", sa.DateTime, DATE_AND_TIME),
    TypeSpec("time", sa.Time, DATE_AND_TIME),
    TypeSpec("json", sa.JSON, LISTS),
    TypeSpec("binary", sa.LargeBinary, BINARY, supports_length=True),
)

CUSTOM_TYPES: dict[str, tuple[TypeSpec, ...]] = {
    "sqlite": (
        TypeSpec("real", sa.REAL, NUMBERS),
    ),
    "postgresql": (
        TypeSpec("jsonb", postgresql.JSONB, LISTS),
        TypeSpec("inet", postgresql.INET, NETWORK),
        TypeSpec("uuid", postgresql.UUID, STRINGS),
        TypeSpec("tsvector", postgresql.TSVECTOR, STRINGS),
    ),
    "mysql": (
        TypeSpec("tinyint", mysql.TINYINT, NUMBERS, supports_unsigned=True),
        TypeSpec("mediumint", mysql.MEDIUMINT, NUMBERS, supports_unsigned=True),
        TypeSpec("mediumtext", mysql.MEDIUMTEXT, STRINGS),
        TypeSpec("longtext", mysql.LONGTEXT, STRINGS),
        TypeSpec("year", mysql.YEAR, DATE_AND_TIME),
    ),
}
CUSTOM_TYPES["mariadb"] = CUSTOM_TYPES["mysql"]

# Unsigned variants, only meaningful where the dialect has them
MYSQL_UNSIGNED_CLASSES: dict[str, type[sa.types.TypeEngine]] = {
    "integer": mysql.INTEGER,
    "smallint": mysql.SMALLINT,
    "bigint": mysql.BIGINT,
    "decimal": mysql.DECIMAL,
    "float": mysql.FLOAT,
    "tinyint": mysql.TINYINT,
    "mediumint": mysql.MEDIUMINT,
}


class TypeRegistry:
    """Two-way mapping between portable type names and SQLAlchemy types.

    Example:
        registry = TypeRegistry("sqlite")
        column_type = registry.to_platform_type("string", length=100)
        registry.from_platform_type(column_type)  # "string"
    """

    def __init__(self, dialect: str) -> None:
        self.dialect = dialect
        self._types: dict[str, TypeSpec] = {}
        self._classes: dict[type, str] = {}
        self._custom_types_registered = False
        for spec in BASE_TYPES:
            self.register(spec)

    def register(self, spec: TypeSpec) -> None:
        """Register a portable type.

        Raises:
            ValueError: If the name or the SQLAlchemy class is already taken.
        """
        if spec.name in self._types:
            raise ValueError(f"Type '{spec.name}' is already registered")
        if spec.type_class in self._classes:
            raise ValueError(
                f"Type class {spec.type_class.__name__} is already registered "
                f"as '{self._classes[spec.type_class]}'"
            )
        self._types[spec.name] = spec
        self._classes[spec.type_class] = spec.name

    def register_custom_types(self) -> None:
        """Register the dialect's extra types. Later calls do nothing."""
        if self._custom_types_registered:
            return

        custom = CUSTOM_TYPES.get(self.dialect, ())
        for spec in custom:
            self.register(spec)
        self._custom_types_registered = True

        logger.debug(
            "Custom types registered",
            dialect=self.dialect,
            types=[spec.name for spec in custom],
        )

    def has_type(self, name: str) -> bool:
        return name in self._types

    def get_spec(self, name: str) -> TypeSpec:
        spec = self._types.get(name)
        if spec is None:
            raise UnsupportedType(name, self.dialect)
        return spec

    @property
    def type_names(self) -> list[str]:
        return list(self._types)

    def to_platform_type(
        self,
        name: str,
        *,
        length: int | None = None,
        precision: int | None = None,
        scale: int | None = None,
        unsigned: bool = False,
    ) -> sa.types.TypeEngine:
        """Build the SQLAlchemy type instance for a portable type name.

        Raises:
            UnsupportedType: If the name is not registered.
        """
        spec = self.get_spec(name)
        type_class = spec.type_class
        kwargs: dict[str, Any] = {}

        if spec.supports_length:
            length = length or spec.default_length
            if length:
                kwargs["length"] = length

        if spec.supports_precision:
            kwargs["precision"] = precision or DEFAULT_DECIMAL_PRECISION
            kwargs["scale"] = scale if scale is not None else DEFAULT_DECIMAL_SCALE

        if unsigned and spec.supports_unsigned and self.dialect in MYSQL_DIALECTS:
            type_class = MYSQL_UNSIGNED_CLASSES.get(name, type_class)
            kwargs["unsigned"] = True

        return type_class(**kwargs)

    def from_platform_type(self, column_type: sa.types.TypeEngine | type) -> str:
        """Return the portable name for a SQLAlchemy type.

        Walks the type's class hierarchy and returns the first registered
        class, so dialect subclasses such as ``sqlite.DATETIME`` resolve to
        their generic portable type.

        Raises:
            UnsupportedType: If no class in the hierarchy is registered.
        """
        type_class = column_type if isinstance(column_type, type) else type(column_type)
        for candidate in type_class.__mro__:
            name = self._classes.get(candidate)
            if name is not None:
                return name
        raise UnsupportedType(type_class.__name__, self.dialect)

    def get_platform_types(self) -> dict[str, dict[str, Any]]:
        """Describe every registered type for display.

        Returns:
            Mapping of portable name to category, SQL rendering for this
            dialect and supported options.
        """
        self.register_custom_types()
        dialect = self._load_dialect()

        types: dict[str, dict[str, Any]] = {}
        for name, spec in self._types.items():
            types[name] = {
                "name": name,
                "category": spec.category,
                "sql_type": self._render(name, dialect),
                "supports_length": spec.supports_length,
                "supports_precision": spec.supports_precision,
                "supports_unsigned": spec.supports_unsigned,
                "default_length": spec.default_length,
            }
        return types

    def _load_dialect(self) -> Dialect | None:
        try:
            return dialect_registry.load(self.dialect)()
        except sa.exc.NoSuchModuleError:
            logger.warning("Unknown dialect, rendering generic SQL types", dialect=self.dialect)
            return None

    def _render(self, name: str, dialect: Dialect | None) -> str:
        column_type = self.to_platform_type(name)
        try:
            return str(column_type.compile(dialect=dialect))
        except CompileError:
            return type(column_type).__name__.upper()


@lru_cache
def get_type_registry(dialect: str) -> TypeRegistry:
    """Get the process-wide type registry for a dialect.

    The registry is built and its custom types registered on first use.
    """
    registry = TypeRegistry(dialect)
    registry.register_custom_types()
    return registry
