"""Resolution of model identifiers named by relationship fields."""

import inspect
import pkgutil
from collections.abc import Iterable
from typing import Protocol

from breadbase.core.config import get_settings


class ModelResolver(Protocol):
    def resolve(self, model: str) -> bool:
        """Whether ``model`` names a known model type."""
        ...


class ImportModelResolver:
    """Resolves dotted paths (``app.models.Author``) to importable classes.

    Only paths inside ``namespace`` are imported; anything else is
    rejected before its module is loaded.

    Args:
        namespace: Module prefix models live under. Defaults to the
            ``models_namespace`` setting.
        known_models: Extra model names accepted without importing, such as
            scaffolded models that are not on the import path.
    """

    def __init__(self, namespace: str | None = None, known_models: Iterable[str] = ()) -> None:
        self.namespace = (namespace or get_settings().models_namespace).strip(".")
        self.known_models = set(known_models)

    def in_namespace(self, model: str) -> bool:
        return model.startswith((f"{self.namespace}.", f"{self.namespace}:"))

    def resolve(self, model: str) -> bool:
        if not model:
            return False
        if model in self.known_models:
            return True
        if not self.in_namespace(model):
            return False
        try:
            target = pkgutil.resolve_name(model)
        except (ImportError, AttributeError, ValueError):
            return False
        return inspect.isclass(target)
