"""Code scaffolding for generated tables."""

from breadbase.infrastructure.scaffolding.model_scaffolder import ModelScaffolder, ScaffoldResult

__all__ = ["ModelScaffolder", "ScaffoldResult"]
