"""The finalized presentation unit of one action or phase step."""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Literal

from .types import ActionLogLineDescriptor


class SourceKind(str, Enum):
    """What produced a resolution."""

    ACTION = "action"
    PHASE = "phase"


@dataclass(frozen=True)
class PlayerRef:
    """Identity of the player a resolution belongs to."""

    id: str
    name: str


@dataclass(frozen=True)
class ResolutionActionMeta:
    """Identity of the acting action."""

    id: str
    name: str
    icon: str | None = None


@dataclass(frozen=True)
class ResolutionSourceDetail:
    """Detailed source of a resolution."""

    kind: SourceKind
    label: str
    icon: str | None = None
    id: str | None = None
    name: str | None = None


ResolutionSource = Literal["action", "phase"] | ResolutionSourceDetail


@dataclass(frozen=True)
class ActionResolution:
    """One resolution as shown to players or stored in the log.

    Instances are immutable; revealing lines returns a new resolution.
    """

    lines: tuple[str, ...]
    source: ResolutionSource
    visible_lines: tuple[str, ...] = ()
    timeline: tuple[ActionLogLineDescriptor, ...] = ()
    visible_timeline: tuple[ActionLogLineDescriptor, ...] = ()
    summaries: tuple[str, ...] = ()
    player: PlayerRef | None = None
    action: ResolutionActionMeta | None = None
    actor_label: str | None = None
    require_acknowledgement: bool = True
    is_complete: bool = False

    @property
    def headline(self) -> str | None:
        return self.lines[0] if self.lines else None

    def reveal_next(self) -> "ActionResolution":
        """Return a copy with one more line (and matching timeline entry) visible."""
        if len(self.visible_lines) >= len(self.lines):
            return self
        count = len(self.visible_lines) + 1
        return replace(
            self,
            visible_lines=self.lines[:count],
            visible_timeline=self.timeline[:count],
            is_complete=count == len(self.lines),
        )

    def reveal_all(self) -> "ActionResolution":
        """Return a copy with every line visible."""
        return replace(
            self,
            visible_lines=self.lines,
            visible_timeline=self.timeline,
            is_complete=bool(self.lines),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {
            "lines": list(self.lines),
            "visible_lines": list(self.visible_lines),
            "timeline": [_descriptor_dict(line) for line in self.timeline],
            "visible_timeline": [_descriptor_dict(line) for line in self.visible_timeline],
            "summaries": list(self.summaries),
            "source": _source_value(self.source),
            "require_acknowledgement": self.require_acknowledgement,
            "is_complete": self.is_complete,
        }
        if self.player is not None:
            result["player"] = {"id": self.player.id, "name": self.player.name}
        if self.action is not None:
            result["action"] = {"id": self.action.id, "name": self.action.name, "icon": self.action.icon}
        if self.actor_label is not None:
            result["actor_label"] = self.actor_label
        return result


def _descriptor_dict(line: ActionLogLineDescriptor) -> dict[str, Any]:
    result: dict[str, Any] = {"text": line.text, "depth": line.depth, "kind": line.kind.value}
    if line.ref_id is not None:
        result["ref_id"] = line.ref_id
    return result


def _source_value(source: ResolutionSource) -> str | dict[str, Any]:
    if isinstance(source, str):
        return source
    result: dict[str, Any] = {"kind": source.kind.value, "label": source.label}
    for name in ("icon", "id", "name"):
        value = getattr(source, name)
        if value is not None:
            result[name] = value
    return result


def is_phase_source(source: ResolutionSource | None) -> bool:
    """Check whether a source describes a phase step."""
    if source is None:
        return False
    if isinstance(source, str):
        return source == "phase"
    return source.kind == SourceKind.PHASE


def resolve_phase_identifier(source: ResolutionSource | None) -> str | None:
    """Stable identity of a phase source: its id, else its label."""
    if not is_phase_source(source):
        return None
    if isinstance(source, str):
        return source
    return (source.id or "").strip() or (source.label or "").strip() or None


def resolve_actor_label(
    label: str | None,
    source: ResolutionSource,
    action: ResolutionActionMeta | None,
) -> str | None:
    """Pick the label naming who or what acted.

    An explicit label wins; action sources fall back to the action name;
    phase sources have no implicit actor.
    """
    trimmed = (label or "").strip()
    if trimmed:
        return trimmed
    action_name = (action.name if action else "").strip() or None
    if isinstance(source, str):
        return action_name if source == "action" else None
    if source.kind == SourceKind.ACTION:
        return (source.name or "").strip() or action_name
    return None


def create_resolution(
    lines: Iterable[str],
    *,
    timeline: Iterable[ActionLogLineDescriptor] = (),
    summaries: Iterable[str] = (),
    player: PlayerRef | None = None,
    action: ResolutionActionMeta | None = None,
    source: ResolutionSource | None = None,
    actor_label: str | None = None,
    require_acknowledgement: bool = True,
) -> ActionResolution | None:
    """Assemble a resolution, or None when there is nothing to show.

    Blank lines are dropped. Without an explicit source, a resolution with
    action metadata is an action resolution and anything else a phase one.
    """
    entries = tuple(line for line in lines if line and line.strip())
    if not entries:
        return None
    resolved_source: ResolutionSource = source if source is not None else ("action" if action else "phase")
    return ActionResolution(
        lines=entries,
        source=resolved_source,
        timeline=tuple(line for line in timeline if line.text.strip()),
        summaries=tuple(summaries),
        player=player,
        action=action,
        actor_label=resolve_actor_label(actor_label, resolved_source, action),
        require_acknowledgement=require_acknowledgement,
    )
