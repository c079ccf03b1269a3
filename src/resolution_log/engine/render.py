"""Log renderer - turns timelines into marked, indented lines."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from ..config import Settings, get_settings
from .timeline import TimelineItem
from .types import ActionDiffChange, ActionLogLineDescriptor, LineKind

ChangeLike = ActionDiffChange | str


@dataclass(frozen=True)
class RenderedLine:
    """One presentation line for UI consumption."""

    key: str
    text: str
    depth: int
    indent: int
    marker: str
    kind: LineKind


def marker_for_depth(depth: int, settings: Settings | None = None) -> str:
    """Marker shown before a line: none at depth 0, primary at 1, nested below."""
    settings = settings or get_settings()
    if depth <= 0:
        return ""
    if depth == 1:
        return settings.primary_marker
    return settings.nested_marker


def render_timeline(items: Iterable[TimelineItem], settings: Settings | None = None) -> list[RenderedLine]:
    """Convert flattened timeline items into presentation lines."""
    settings = settings or get_settings()
    lines: list[RenderedLine] = []
    for item in items:
        descriptor = item.node.descriptor
        lines.append(
            RenderedLine(
                key=item.key,
                text=descriptor.text,
                depth=descriptor.depth,
                indent=item.indent if descriptor.depth > 0 else 0,
                marker=marker_for_depth(descriptor.depth, settings),
                kind=descriptor.kind,
            )
        )
    return lines


def format_log_line(descriptor: ActionLogLineDescriptor, settings: Settings | None = None) -> str:
    """Format one line as plain text.

    Depth 0 is bare, depth 1 gets the bullet, deeper lines get the arrow
    indented by ``indent_width`` spaces per level below 1.
    """
    settings = settings or get_settings()
    marker = marker_for_depth(descriptor.depth, settings)
    if not marker:
        return descriptor.text
    padding = " " * (settings.indent_width * max(descriptor.depth - 1, 0))
    return f"{padding}{marker} {descriptor.text}"


def format_timeline_lines(
    descriptors: Iterable[ActionLogLineDescriptor],
    settings: Settings | None = None,
) -> list[str]:
    """Format a timeline as plain text lines for text-only log stores."""
    settings = settings or get_settings()
    return [format_log_line(descriptor, settings) for descriptor in descriptors if descriptor.text.strip()]


def _as_change(change: ChangeLike) -> ActionDiffChange:
    return ActionDiffChange(summary=change) if isinstance(change, str) else change


def changes_to_descriptors(changes: Iterable[ChangeLike], depth: int = 1) -> list[ActionLogLineDescriptor]:
    """Flatten a change forest into effect lines, children one level deeper."""
    descriptors: list[ActionLogLineDescriptor] = []
    for change in changes:
        node = _as_change(change)
        if not node.summary.strip():
            continue
        descriptors.append(ActionLogLineDescriptor(text=node.summary, depth=depth, kind=LineKind.EFFECT))
        descriptors.extend(changes_to_descriptors(node.children, depth + 1))
    return descriptors


def build_action_log_timeline(
    messages: Sequence[ActionLogLineDescriptor],
    changes: Iterable[ChangeLike],
) -> list[ActionLogLineDescriptor]:
    """Messages followed by the diff forest nested at depth 1."""
    return [*messages, *changes_to_descriptors(changes, depth=1)]


def find_developed_change(
    changes: Iterable[ChangeLike],
    settings: Settings | None = None,
) -> ActionDiffChange | None:
    """First root change that starts with the 'Developed' keyword."""
    settings = settings or get_settings()
    for change in changes:
        node = _as_change(change)
        if node.summary.startswith(settings.developed_keyword):
            return node
    return None


def build_develop_action_log_timeline(
    messages: Sequence[ActionLogLineDescriptor],
    changes: Iterable[ChangeLike],
    settings: Settings | None = None,
) -> list[ActionLogLineDescriptor]:
    """Timeline for development actions.

    The 'Developed ...' change becomes the headline and the action's own
    headline is dropped; everything else is nested beneath. Its children, if
    any, take its place among the remaining changes.
    """
    settings = settings or get_settings()
    nodes = [_as_change(change) for change in changes]
    developed = find_developed_change(nodes, settings)
    if developed is None:
        return build_action_log_timeline(messages, nodes)

    remaining: list[ActionDiffChange] = []
    for node in nodes:
        if node is developed:
            remaining.extend(node.children)
        else:
            remaining.append(node)

    headline = ActionLogLineDescriptor(text=developed.summary, depth=0, kind=LineKind.HEADLINE)
    return [headline, *messages[1:], *changes_to_descriptors(remaining, depth=1)]


def format_action_log_lines(
    messages: Sequence[ActionLogLineDescriptor],
    changes: Iterable[ChangeLike],
    settings: Settings | None = None,
) -> list[str]:
    """Plain text form of :func:`build_action_log_timeline`."""
    return format_timeline_lines(build_action_log_timeline(messages, changes), settings)


def format_develop_action_log_lines(
    messages: Sequence[ActionLogLineDescriptor],
    changes: Iterable[ChangeLike],
    settings: Settings | None = None,
) -> list[str]:
    """Plain text form of :func:`build_develop_action_log_timeline`."""
    return format_timeline_lines(build_develop_action_log_timeline(messages, changes, settings), settings)
