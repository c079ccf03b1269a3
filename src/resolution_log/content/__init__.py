"""Content and display metadata consumed by the resolution log pipeline."""

from .context import ContentContext, DiffContext
from .models import (
    ActionDefinition,
    AssetInfo,
    DisplayMetadata,
    EffectDefinition,
    EvaluatorDefinition,
    RoundingMode,
    StepDefinition,
)

__all__ = [
    "ActionDefinition",
    "AssetInfo",
    "ContentContext",
    "DiffContext",
    "DisplayMetadata",
    "EffectDefinition",
    "EvaluatorDefinition",
    "RoundingMode",
    "StepDefinition",
]
