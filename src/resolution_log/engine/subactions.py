"""Sub-action integration - nests the diffs of triggered actions under their headline lines."""

import logging
from collections.abc import Iterable, MutableSequence

from ..config import Settings, UnmatchedTracePolicy, get_settings
from ..content.context import ContentContext, DiffContext
from ..content.models import ActionDefinition
from .dedup import normalize_line
from .diff import diff_step_snapshots
from .render import changes_to_descriptors
from .snapshots import snapshot_player
from .types import ActionDiffChange, ActionLogLineDescriptor, ActionTrace, LineKind

logger = logging.getLogger(__name__)


def find_sub_action_line(
    messages: MutableSequence[ActionLogLineDescriptor],
    trace_id: str,
    label: str,
) -> int | None:
    """Index of the sub-action line for a trace.

    Matches on ``ref_id`` or, failing that, the normalized
    "{icon} {name}" label.
    """
    normalized_label = normalize_line(label)
    for index, line in enumerate(messages):
        if line.kind != LineKind.SUBACTION:
            continue
        if line.ref_id == trace_id:
            return index
        if normalized_label and normalize_line(line.text) == normalized_label:
            return index
    return None


def append_sub_action_changes(
    traces: Iterable[ActionTrace],
    content: ContentContext,
    diff_context: DiffContext,
    resource_keys: Iterable[str] | None,
    messages: MutableSequence[ActionLogLineDescriptor],
    policy: UnmatchedTracePolicy | None = None,
    settings: Settings | None = None,
) -> list[str]:
    """Diff each trace and splice its summaries beneath its sub-action line.

    ``messages`` is modified in place. Traces whose action is unknown or
    whose diff is empty contribute nothing. When several traces share one
    sub-action line, each trace's lines go after those of earlier traces,
    so nested changes read in resolution order.

    Args:
        traces: Nested action executions, in resolution order
        content: Content lookups for action definitions
        diff_context: Metadata lookups for the diff engine
        resource_keys: Resources to compare (None compares all)
        messages: Parent resolution lines being assembled
        policy: What to do when no sub-action line matches
        settings: Rendering settings (defaults to the cached settings)

    Returns:
        All nested summaries produced, for root-level deduplication
    """
    settings = settings or get_settings()
    policy = policy or settings.unmatched_trace_policy
    keys = list(resource_keys) if resource_keys is not None else None
    sub_lines: list[str] = []

    for trace in traces:
        action = content.get_action(trace.id)
        if action is None:
            logger.debug("Skipping trace for unknown action %s", trace.id)
            continue

        diff = diff_step_snapshots(
            snapshot_player(trace.before),
            snapshot_player(trace.after),
            action.as_step(),
            diff_context,
            keys,
            settings,
        )
        if not diff:
            continue
        sub_lines.extend(diff.summaries)

        label = action.label or trace.id
        index = find_sub_action_line(messages, trace.id, label)
        if index is None:
            _handle_unmatched(trace, action, label, diff.tree, messages, policy)
            continue

        depth = messages[index].depth + 1
        position = _end_of_nested_lines(messages, index)
        messages[position:position] = changes_to_descriptors(diff.tree, depth)

    return sub_lines


def _end_of_nested_lines(messages: MutableSequence[ActionLogLineDescriptor], index: int) -> int:
    """Position just past the lines already nested under ``messages[index]``."""
    depth = messages[index].depth
    position = index + 1
    while position < len(messages) and messages[position].depth > depth:
        position += 1
    return position


def _handle_unmatched(
    trace: ActionTrace,
    action: ActionDefinition,
    label: str,
    changes: Iterable[ActionDiffChange],
    messages: MutableSequence[ActionLogLineDescriptor],
    policy: UnmatchedTracePolicy,
) -> None:
    if policy == UnmatchedTracePolicy.DISCARD:
        logger.debug("No sub-action line for %s; discarding its changes", action.id)
        return
    # With no headline yet the sub-action line leads the log.
    depth = 1 if messages else 0
    messages.append(ActionLogLineDescriptor(text=label, depth=depth, kind=LineKind.SUBACTION, ref_id=trace.id))
    messages.extend(changes_to_descriptors(changes, depth=depth + 1))
