"""Unit tests for ImportModelResolver."""

from unittest.mock import patch

from breadbase.core.config import get_settings
from breadbase.domain.services import ImportModelResolver

MODELS = "breadbase.infrastructure.persistence.models"


def test_resolves_importable_class():
    resolver = ImportModelResolver(namespace=MODELS)

    assert resolver.resolve(f"{MODELS}.DataTypeModel")
    assert resolver.resolve(f"{MODELS}:DataRowModel")


def test_rejects_missing_and_non_class_targets():
    resolver = ImportModelResolver(namespace="breadbase")

    assert not resolver.resolve("")
    assert not resolver.resolve(f"{MODELS}.Missing")
    # A function, not a model class
    assert not resolver.resolve("breadbase.core.config.get_settings")


def test_rejects_path_outside_namespace_without_importing():
    resolver = ImportModelResolver(namespace="app.models")

    with patch("breadbase.domain.services.model_resolver.pkgutil.resolve_name") as resolve_name:
        assert not resolver.resolve("collections.OrderedDict")
        assert not resolver.resolve(f"{MODELS}.DataTypeModel")
        # Sharing the prefix is not enough
        assert not resolver.resolve("app.modelsevil.Author")

    resolve_name.assert_not_called()


def test_namespace_defaults_to_settings():
    assert ImportModelResolver().namespace == get_settings().models_namespace


def test_known_models_are_accepted_without_import():
    resolver = ImportModelResolver(known_models=["vendor.models.Author"])

    assert resolver.resolve("vendor.models.Author")
