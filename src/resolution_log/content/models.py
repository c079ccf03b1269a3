"""Validated content and display metadata records.

These records are supplied by the content registries and the session layer.
They are immutable once constructed: build a new record instead of
mutating an existing one.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RoundingMode(str, Enum):
    """Rounding applied to percent values before display."""

    UP = "up"
    DOWN = "down"
    NEAREST = "nearest"


class ContentModel(BaseModel):
    """Base for content records: frozen, accepts camelCase or snake_case keys."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class DisplayMetadata(ContentModel):
    """Display metadata for a resource, stat, building, development or population."""

    key: str = Field(description="Registry key (e.g., 'gold', 'absorption')")
    label: str = Field(description="Human-readable label (e.g., 'Gold')")
    icon: str = Field(default="", description="Icon glyph, empty when none")
    display_as_percent: bool = Field(default=False, description="Render values as percentages")
    rounding: RoundingMode = Field(default=RoundingMode.NEAREST, description="Percent rounding mode")

    @property
    def name(self) -> str:
        """The label, or the registry key when the label is blank."""
        return self.label.strip() or self.key

    @property
    def display(self) -> str:
        """Icon and name joined by a space, or just the name."""
        return f"{self.icon} {self.name}" if self.icon else self.name


class AssetInfo(ContentModel):
    """Icon and label for a generic game concept (land, slot, passive)."""

    icon: str = ""
    label: str


class EvaluatorDefinition(ContentModel):
    """An evaluator that multiplies its nested effects (e.g., per development)."""

    type: str
    params: dict[str, Any] = Field(default_factory=dict)


class EffectDefinition(ContentModel):
    """One node of a resolved effect tree."""

    type: str | None = None
    method: str | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    evaluator: EvaluatorDefinition | None = None
    effects: list["EffectDefinition"] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)


class StepDefinition(ContentModel):
    """A resolved action or phase step: an id and its effect tree."""

    id: str
    title: str | None = None
    icon: str = ""
    effects: list[EffectDefinition] = Field(default_factory=list)


class ActionDefinition(ContentModel):
    """Content definition of an action."""

    id: str
    name: str
    icon: str = ""
    system: bool = False
    effects: list[EffectDefinition] = Field(default_factory=list)

    @property
    def label(self) -> str:
        """Headline label used for sub-action lines."""
        return " ".join(part for part in (self.icon, self.name) if part).strip()

    def as_step(self) -> StepDefinition:
        """View this action as a resolved step for attribution."""
        return StepDefinition(id=self.id, title=self.name, icon=self.icon, effects=self.effects)
