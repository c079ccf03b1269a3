"""Input schema for rendering a single resolution from a JSON scenario."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .content.context import ContentContext, DiffContext
from .content.models import ActionDefinition, StepDefinition
from .engine.resolution import PlayerRef
from .engine.types import ActionLogLineDescriptor, ActionTrace, LineKind


class ScenarioModel(BaseModel):
    """Base for scenario records: accepts camelCase or snake_case keys."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class LineDefinition(ScenarioModel):
    """A content line with explicit depth and kind."""

    text: str
    depth: int = Field(default=1, ge=0)
    kind: LineKind = LineKind.EFFECT
    ref_id: str | None = None

    def to_descriptor(self) -> ActionLogLineDescriptor:
        return ActionLogLineDescriptor(text=self.text, depth=self.depth, kind=self.kind, ref_id=self.ref_id)


class TraceDefinition(ScenarioModel):
    """A nested action execution."""

    id: str
    before: dict[str, Any] = Field(default_factory=dict)
    after: dict[str, Any] = Field(default_factory=dict)

    def to_trace(self) -> ActionTrace:
        return ActionTrace(id=self.id, before=self.before, after=self.after)


class PlayerDefinition(ScenarioModel):
    """Player the resolution belongs to."""

    id: str
    name: str

    def to_ref(self) -> PlayerRef:
        return PlayerRef(id=self.id, name=self.name)


class Scenario(ScenarioModel):
    """Everything needed to render one action or phase resolution.

    Exactly one of ``action_id`` and ``phase`` is expected; when both are
    given the action wins.
    """

    metadata: dict[str, Any] = Field(default_factory=dict, description="Display metadata registries")
    actions: list[ActionDefinition] = Field(default_factory=list, description="Known action definitions")
    action_id: str | None = Field(default=None, description="Acting action id")
    phase: StepDefinition | None = Field(default=None, description="Phase step being resolved")
    content_lines: list[str | LineDefinition] = Field(default_factory=list, description="Headline first")
    before: dict[str, Any] = Field(default_factory=dict)
    after: dict[str, Any] = Field(default_factory=dict)
    traces: list[TraceDefinition] = Field(default_factory=list)
    costs: dict[str, float] = Field(default_factory=dict)
    resource_keys: list[str] | None = None
    player: PlayerDefinition | None = None

    def diff_context(self) -> DiffContext:
        return DiffContext.from_mapping(self.metadata)

    def content_context(self) -> ContentContext:
        return ContentContext.from_definitions(self.actions)

    def lines(self) -> list[str | ActionLogLineDescriptor]:
        return [line if isinstance(line, str) else line.to_descriptor() for line in self.content_lines]
