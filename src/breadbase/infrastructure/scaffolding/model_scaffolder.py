"""Model and migration scaffolding for newly created tables.

Renders a SQLAlchemy declarative model module and an alembic migration
module from a Table definition. Scaffolding is best-effort: it runs
after the table exists, and a failure is reported, never rolled back.
"""

import os
from dataclasses import dataclass, field
from typing import Any

from alembic.util import rev_id
from jinja2 import Environment, StrictUndefined, TemplateError

from breadbase.core.logging import get_logger
from breadbase.domain.entities.table import Column, Table
from breadbase.domain.services.name_inflector import NameInflector
from breadbase.infrastructure.persistence.type_registry import TypeRegistry, get_type_registry

logger = get_logger(__name__)

MODEL_TEMPLATE = '''"""{{ class_name }} model."""

{% for module in python_modules %}
import {{ module }}
{% endfor %}
import sqlalchemy as sa
{% for module in dialect_modules %}
from sqlalchemy.dialects import {{ module }}
{% endfor %}
from sqlalchemy.orm import Mapped, mapped_column

from {{ base_module }} import Base


class {{ class_name }}(Base):
    """SQLAlchemy model for the {{ table_name }} table."""

    __tablename__ = "{{ table_name }}"

{% for column in columns %}
    {{ column.name }}: Mapped[{{ column.python_type }}] = mapped_column({{ column.arguments }})
{% endfor %}
'''

MIGRATION_TEMPLATE = '''"""{{ message }}

Revision ID: {{ revision }}
Revises: {{ down_revision }}
Create Date: {{ create_date }}
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
{% for module in dialect_modules %}
from sqlalchemy.dialects import {{ module }}
{% endfor %}

revision: str = "{{ revision }}"
down_revision: Union[str, None] = {{ down_revision_literal }}
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
{% for line in upgrade_lines %}
    {{ line }}
{% endfor %}


def downgrade() -> None:
{% for line in downgrade_lines %}
    {{ line }}
{% endfor %}
'''

PYTHON_TYPES = {
    "integer": "int",
    "smallint": "int",
    "bigint": "int",
    "tinyint": "int",
    "mediumint": "int",
    "year": "int",
    "decimal": "decimal.Decimal",
    "float": "float",
    "real": "float",
    "boolean": "bool",
    "date": "datetime.date",
    "datetime": "datetime.datetime",
    "time": "datetime.time",
    "json": "dict",
    "jsonb": "dict",
    "binary": "bytes",
}


@dataclass
class ScaffoldResult:
    """Files written, and errors hit, while scaffolding one table."""

    files: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {"files": self.files, "errors": self.errors}


class ModelScaffolder:
    """Writes model and migration modules for a table.

    Args:
        models_path: Directory receiving model modules.
        migrations_path: Directory receiving migration modules.
        type_registry: Type registry of the target dialect.
        base_module: Module the generated models import ``Base`` from.
    """

    def __init__(
        self,
        models_path: str,
        migrations_path: str,
        type_registry: TypeRegistry | None = None,
        base_module: str = "app.models.base",
    ) -> None:
        self.models_path = models_path
        self.migrations_path = migrations_path
        self.type_registry = type_registry or get_type_registry("sqlite")
        self.base_module = base_module
        self.env = Environment(
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def scaffold(self, table: Table, model: bool = True, migration: bool = True) -> ScaffoldResult:
        """Write the requested files, collecting failures instead of raising."""
        result = ScaffoldResult()
        steps = []
        if model:
            steps.append(("model", self.write_model))
        if migration:
            steps.append(("migration", self.write_migration))

        for kind, write in steps:
            try:
                result.files.append(write(table))
            except (OSError, TemplateError, ValueError) as e:
                logger.warning(
                    "Scaffolding failed",
                    table_name=table.name,
                    kind=kind,
                    error=str(e),
                )
                result.errors.append(f"{kind}: {e}")
        return result

    def render_type(self, column: Column) -> str:
        """Python source building the column's SQLAlchemy type."""
        column_type = self.type_registry.to_platform_type(
            column.type,
            length=column.length,
            precision=column.precision,
            scale=column.scale,
            unsigned=column.unsigned,
        )
        spec = self.type_registry.get_spec(column.type)
        arguments = []
        if spec.supports_length and getattr(column_type, "length", None):
            arguments.append(f"length={column_type.length}")
        if spec.supports_precision:
            arguments.append(f"precision={column_type.precision}")
            arguments.append(f"scale={column_type.scale}")
        if getattr(column_type, "unsigned", False):
            arguments.append("unsigned=True")
        return f"{self._type_prefix(type(column_type))}{type(column_type).__name__}({', '.join(arguments)})"

    def render_column_arguments(self, column: Column, table: Table, with_name: bool) -> str:
        pk_columns = table.primary_key.columns if table.primary_key else []
        parts = [repr(column.name)] if with_name else []
        parts.append(self.render_type(column))
        if column.name in pk_columns:
            parts.append("primary_key=True")
            if column.autoincrement:
                parts.append("autoincrement=True")
        else:
            parts.append(f"nullable={column.nullable}")
        if column.default is not None:
            parts.append(f"server_default={self._render_default(column.default)}")
        if column.comment:
            parts.append(f"comment={column.comment!r}")
        return ", ".join(parts)

    def render_model(self, table: Table) -> str:
        columns = [
            {
                "name": column.name,
                "python_type": self._python_type(column),
                "arguments": self.render_column_arguments(column, table, with_name=False),
            }
            for column in table.columns
        ]
        return self.env.from_string(MODEL_TEMPLATE).render(
            class_name=NameInflector.studly(NameInflector.singular(table.name)),
            table_name=table.name,
            base_module=self.base_module,
            columns=columns,
            python_modules=self._python_modules(table),
            dialect_modules=self._dialect_modules(table),
        )

    def render_migration(
        self,
        table: Table,
        revision: str,
        down_revision: str | None = None,
        create_date: str = "",
    ) -> str:
        return self.env.from_string(MIGRATION_TEMPLATE).render(
            message=f"create {table.name} table",
            revision=revision,
            down_revision=down_revision,
            down_revision_literal=repr(down_revision),
            create_date=create_date,
            upgrade_lines=self._create_table_op_lines(table),
            downgrade_lines=[f"op.drop_table({table.name!r})"],
            dialect_modules=self._dialect_modules(table),
        )

    def write_model(self, table: Table) -> str:
        filepath = os.path.join(self.models_path, f"{NameInflector.singular(table.name).lower()}.py")
        self._write(filepath, self.render_model(table))
        logger.info("Model scaffolded", table_name=table.name, path=filepath)
        return filepath

    def write_migration(self, table: Table) -> str:
        revision = rev_id()
        filepath = os.path.join(self.migrations_path, f"{revision}_create_{table.name}_table.py")
        self._write(filepath, self.render_migration(table, revision))
        logger.info("Migration scaffolded", table_name=table.name, revision=revision, path=filepath)
        return filepath

    def _create_table_op_lines(self, table: Table) -> list[str]:
        lines = [f"op.create_table({table.name!r},"]
        for column in table.columns:
            arguments = self.render_column_arguments(column, table, with_name=True)
            lines.append(f"    sa.Column({arguments}),")
        for fk in table.foreign_keys:
            remote = [f"{fk.foreign_table}.{c}" for c in fk.foreign_columns]
            options = f", name={fk.name!r}" if fk.name else ""
            if fk.on_delete:
                options += f", ondelete={fk.on_delete!r}"
            if fk.on_update:
                options += f", onupdate={fk.on_update!r}"
            lines.append(f"    sa.ForeignKeyConstraint({fk.columns!r}, {remote!r}{options}),")
        lines.append(")")
        for index in table.indexes:
            lines.append(
                f"op.create_index({index.name!r}, {table.name!r}, {index.columns!r}, "
                f"unique={index.unique})"
            )
        return lines

    def _python_type(self, column: Column) -> str:
        python_type = PYTHON_TYPES.get(column.type, "str")
        return f"{python_type} | None" if column.nullable else python_type

    def _python_modules(self, table: Table) -> list[str]:
        modules = set()
        for column in table.columns:
            python_type = PYTHON_TYPES.get(column.type, "str")
            if "." in python_type:
                modules.add(python_type.split(".", 1)[0])
        return sorted(modules)

    def _dialect_modules(self, table: Table) -> list[str]:
        modules = set()
        for column in table.columns:
            rendered = self.render_type(column)
            if not rendered.startswith("sa."):
                modules.add(rendered.split(".", 1)[0])
        return sorted(modules)

    @staticmethod
    def _type_prefix(type_class: type) -> str:
        module = type_class.__module__
        if module.startswith("sqlalchemy.dialects."):
            return f"{module.split('.')[2]}."
        return "sa."

    @staticmethod
    def _render_default(value: Any) -> str:
        if isinstance(value, bool):
            return f"sa.text('{1 if value else 0}')"
        if isinstance(value, (int, float)):
            return f"sa.text({str(value)!r})"
        return repr(str(value))

    @staticmethod
    def _write(filepath: str, content: str) -> None:
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        if os.path.exists(filepath):
            raise ValueError(f"Refusing to overwrite existing file {filepath}")
        with open(filepath, "w") as f:
            f.write(content)
