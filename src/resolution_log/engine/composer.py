"""Resolution composer - runs the full pipeline for one action or phase step."""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..config import Settings, get_settings
from ..content.context import ContentContext, DiffContext
from ..content.models import ActionDefinition, EffectDefinition, StepDefinition
from ..utils.formatting import format_number
from .dedup import allowed_summaries, filter_action_diff_changes, filter_change_tree
from .diff import diff_step_snapshots
from .render import (
    build_action_log_timeline,
    build_develop_action_log_timeline,
    format_timeline_lines,
)
from .resolution import (
    ActionResolution,
    PlayerRef,
    ResolutionActionMeta,
    ResolutionSourceDetail,
    SourceKind,
    create_resolution,
)
from .snapshots import snapshot_player
from .subactions import append_sub_action_changes
from .types import ActionDiffChange, ActionLogLineDescriptor, ActionTrace, LineKind

if TYPE_CHECKING:
    from .logging import ResolutionLogger

logger = logging.getLogger(__name__)

LineEntry = str | ActionLogLineDescriptor


@dataclass(frozen=True)
class ActionResolutionResult:
    """Intermediate artefacts of one composed resolution."""

    messages: tuple[ActionLogLineDescriptor, ...]
    timeline: tuple[ActionLogLineDescriptor, ...]
    log_lines: tuple[str, ...]
    summaries: tuple[str, ...]
    tree: tuple[ActionDiffChange, ...]
    headline: str | None = None


def ensure_timeline_lines(entries: Iterable[LineEntry]) -> list[ActionLogLineDescriptor]:
    """Turn content lines into descriptors.

    The first non-blank plain string is the headline when nothing precedes
    it; later strings are effects at depth 1. Blank strings are dropped and
    descriptors pass through.
    """
    lines: list[ActionLogLineDescriptor] = []
    for entry in entries:
        if isinstance(entry, ActionLogLineDescriptor):
            lines.append(entry)
            continue
        text = entry.strip()
        if not text:
            continue
        if not lines:
            lines.append(ActionLogLineDescriptor(text=text, depth=0, kind=LineKind.HEADLINE))
        else:
            lines.append(ActionLogLineDescriptor(text=text, depth=1, kind=LineKind.EFFECT))
    return lines


def build_action_cost_lines(
    costs: Mapping[str, float | None],
    before_resources: Mapping[str, float],
    context: DiffContext,
) -> list[ActionLogLineDescriptor]:
    """One cost-detail line per non-zero cost, in the order costs were given."""
    lines: list[ActionLogLineDescriptor] = []
    for key, amount in costs.items():
        if not amount:
            continue
        metadata = context.resource(key)
        icon = f"{metadata.icon} " if metadata.icon else ""
        before = before_resources.get(key, 0)
        value_range = f"({format_number(before)}→{format_number(before - amount)})"
        lines.append(
            ActionLogLineDescriptor(
                text=f"{icon}{metadata.name} -{format_number(amount)} {value_range}",
                depth=2,
                kind=LineKind.COST_DETAIL,
            )
        )
    return lines


def insert_cost_lines(
    messages: list[ActionLogLineDescriptor],
    cost_lines: Sequence[ActionLogLineDescriptor],
    settings: Settings | None = None,
) -> None:
    """Insert the cost header and its details right after the headline."""
    if not cost_lines:
        return
    settings = settings or get_settings()
    header = ActionLogLineDescriptor(text=settings.cost_header_text, depth=1, kind=LineKind.COST)
    messages[1:1] = [header, *cost_lines]


def _compose(
    messages: list[ActionLogLineDescriptor],
    step: StepDefinition | Iterable[EffectDefinition] | None,
    before: Any,
    after: Any,
    traces: Iterable[ActionTrace],
    content: ContentContext,
    diff_context: DiffContext,
    resource_keys: Iterable[str] | None,
    settings: Settings,
) -> ActionResolutionResult:
    keys = list(resource_keys) if resource_keys is not None else None
    sub_lines = append_sub_action_changes(
        traces, content, diff_context, keys, messages, settings=settings
    )
    diff = diff_step_snapshots(snapshot_player(before), snapshot_player(after), step, diff_context, keys, settings)

    summaries = filter_action_diff_changes(diff.summaries, messages, sub_lines)
    tree = filter_change_tree(diff.tree, allowed_summaries(summaries))

    if any(summary.startswith(settings.developed_keyword) for summary in summaries):
        timeline = build_develop_action_log_timeline(messages, tree, settings)
    else:
        timeline = build_action_log_timeline(messages, tree)

    return ActionResolutionResult(
        messages=tuple(messages),
        timeline=tuple(timeline),
        log_lines=tuple(format_timeline_lines(timeline, settings)),
        summaries=tuple(summaries),
        tree=tuple(tree),
        headline=messages[0].text if messages else None,
    )


def build_action_resolution(
    content_lines: Iterable[LineEntry],
    before: Any,
    after: Any,
    content: ContentContext,
    diff_context: DiffContext,
    *,
    step: StepDefinition | Iterable[EffectDefinition] | None = None,
    traces: Iterable[ActionTrace] = (),
    costs: Mapping[str, float | None] | None = None,
    resource_keys: Iterable[str] | None = None,
    settings: Settings | None = None,
) -> ActionResolutionResult:
    """Compose the resolution of a player action.

    Args:
        content_lines: Resolved content lines, headline first
        before: Player state before the action (raw or snapshot)
        after: Player state after the action (raw or snapshot)
        content: Content lookups for sub-action definitions
        diff_context: Metadata lookups for the diff engine
        step: Resolved effect description used for attribution
        traces: Nested action executions
        costs: Resources paid, keyed by resource
        resource_keys: Resources to compare (None compares all)
        settings: Rendering settings (defaults to the cached settings)

    Returns:
        ActionResolutionResult with messages, timeline, plain lines and summaries
    """
    settings = settings or get_settings()
    before_snapshot = snapshot_player(before)
    messages = ensure_timeline_lines(content_lines)
    insert_cost_lines(
        messages,
        build_action_cost_lines(costs or {}, before_snapshot.resources, diff_context),
        settings,
    )
    return _compose(messages, step, before_snapshot, after, traces, content, diff_context, resource_keys, settings)


def build_phase_resolution(
    content_lines: Iterable[LineEntry],
    before: Any,
    after: Any,
    content: ContentContext,
    diff_context: DiffContext,
    *,
    step: StepDefinition | Iterable[EffectDefinition] | None = None,
    traces: Iterable[ActionTrace] = (),
    resource_keys: Iterable[str] | None = None,
    settings: Settings | None = None,
) -> ActionResolutionResult:
    """Compose the resolution of a phase step; phases pay no costs."""
    settings = settings or get_settings()
    messages = ensure_timeline_lines(content_lines)
    return _compose(messages, step, before, after, traces, content, diff_context, resource_keys, settings)


class ResolutionComposer:
    """Builds finished resolutions and optionally records them in a log."""

    def __init__(
        self,
        content: ContentContext,
        diff_context: DiffContext,
        resource_keys: Iterable[str] | None = None,
        settings: Settings | None = None,
        log: "ResolutionLogger | None" = None,
    ) -> None:
        self.content = content
        self.diff_context = diff_context
        self.resource_keys = list(resource_keys) if resource_keys is not None else None
        self.settings = settings or get_settings()
        self.log = log

    def compose_action(
        self,
        action_id: str,
        content_lines: Iterable[LineEntry],
        before: Any,
        after: Any,
        traces: Iterable[ActionTrace] = (),
        costs: Mapping[str, float | None] | None = None,
        player: PlayerRef | None = None,
        actor_label: str | None = None,
        require_acknowledgement: bool = True,
    ) -> ActionResolution | None:
        """Compose and finalize the resolution of one action.

        An action missing from the content context still resolves; its
        changes are simply not attributed to any source.
        """
        definition = self.content.get_action(action_id)
        if definition is None:
            logger.debug("No definition for action %s; resolving without attribution", action_id)
        result = build_action_resolution(
            content_lines,
            before,
            after,
            self.content,
            self.diff_context,
            step=definition.as_step() if definition else None,
            traces=traces,
            costs=costs,
            resource_keys=self.resource_keys,
            settings=self.settings,
        )
        resolution = create_resolution(
            result.log_lines,
            timeline=result.timeline,
            summaries=result.summaries,
            player=player,
            action=_action_meta(action_id, definition),
            source="action",
            actor_label=actor_label,
            require_acknowledgement=require_acknowledgement,
        )
        self._record(resolution, player)
        return resolution

    def compose_phase(
        self,
        step: StepDefinition,
        content_lines: Iterable[LineEntry],
        before: Any,
        after: Any,
        traces: Iterable[ActionTrace] = (),
        player: PlayerRef | None = None,
        require_acknowledgement: bool = False,
    ) -> ActionResolution | None:
        """Compose and finalize the resolution of one phase step."""
        result = build_phase_resolution(
            content_lines,
            before,
            after,
            self.content,
            self.diff_context,
            step=step,
            traces=traces,
            resource_keys=self.resource_keys,
            settings=self.settings,
        )
        source = ResolutionSourceDetail(
            kind=SourceKind.PHASE,
            label=step.title or step.id,
            icon=step.icon or None,
            id=step.id,
        )
        resolution = create_resolution(
            result.log_lines,
            timeline=result.timeline,
            summaries=result.summaries,
            player=player,
            source=source,
            require_acknowledgement=require_acknowledgement,
        )
        self._record(resolution, player)
        return resolution

    def _record(self, resolution: ActionResolution | None, player: PlayerRef | None) -> None:
        if self.log is None or resolution is None:
            return
        self.log.add_resolution(resolution, player)


def _action_meta(action_id: str, definition: ActionDefinition | None) -> ResolutionActionMeta:
    if definition is None:
        return ResolutionActionMeta(id=action_id, name=action_id)
    return ResolutionActionMeta(id=definition.id, name=definition.name, icon=definition.icon or None)
