"""Split a resolution timeline into 'Cost' and 'Effects' sections."""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from ..config import Settings, get_settings
from .timeline import TimelineNode, TimelineTree, build_timeline_tree
from .types import ActionLogLineDescriptor, LineKind

SECTION_KIND = "section"

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class TimelineEntry:
    """A sectioned timeline entry; ``kind`` is a LineKind or 'section'."""

    key: str
    text: str
    level: int
    kind: LineKind | str


def normalize_headline(value: str) -> str:
    """Collapse whitespace and case-fold for headline comparison."""
    return _WHITESPACE.sub(" ", value.strip()).casefold()


def _entry(node: TimelineNode, key: str, level: int) -> TimelineEntry:
    return TimelineEntry(key=key, text=node.descriptor.text, level=level, kind=node.descriptor.kind)


def collect_cost_entries(tree: TimelineTree) -> list[TimelineEntry]:
    """Entries for every cost-detail line beneath a cost header."""
    entries: list[TimelineEntry] = []
    cost_index = 0

    def collect_detail(node: TimelineNode, key: str, level: int) -> None:
        entries.append(_entry(node, key, level))
        for position, child in enumerate(tree.children_of(node.index)):
            collect_detail(child, f"{key}-{position}", level + 1)

    def visit(node: TimelineNode) -> None:
        nonlocal cost_index
        if node.descriptor.kind == LineKind.COST:
            base_key = f"cost-{cost_index}"
            cost_index += 1
            for position, child in enumerate(tree.children_of(node.index)):
                if child.descriptor.kind == LineKind.COST_DETAIL:
                    collect_detail(child, f"{base_key}-detail-{position}", 0)
                else:
                    visit(child)
            return
        for child in tree.children_of(node.index):
            visit(child)

    for root in tree.root_nodes():
        visit(root)
    return entries


def collect_effect_entries(tree: TimelineTree, skip_headlines: Iterable[str] = ()) -> list[TimelineEntry]:
    """Entries for every non-cost line, skipping headlines that repeat the action label."""
    skip = {normalized for headline in skip_headlines if (normalized := normalize_headline(headline))}
    entries: list[TimelineEntry] = []

    def visit(node: TimelineNode, key: str) -> None:
        kind = node.descriptor.kind
        skipped_headline = kind == LineKind.HEADLINE and normalize_headline(node.descriptor.text) in skip
        if not skipped_headline and kind not in (LineKind.COST, LineKind.COST_DETAIL):
            entries.append(_entry(node, key, node.level))
        for position, child in enumerate(tree.children_of(node.index)):
            visit(child, f"{key}-{position}")

    for position, root in enumerate(tree.root_nodes()):
        visit(root, f"effect-{position}")
    return entries


def adjust_entry_levels(entries: list[TimelineEntry]) -> list[TimelineEntry]:
    """Shift levels so the shallowest entry sits at level 0."""
    if not entries:
        return entries
    minimum = min(entry.level for entry in entries)
    return [replace(entry, level=entry.level - minimum) for entry in entries]


def _combined_headline(action_icon: str | None, action_name: str | None) -> str | None:
    icon = (action_icon or "").strip()
    name = (action_name or "").strip()
    if not icon or not name:
        return None
    return _WHITESPACE.sub(" ", f"{icon} {name}").strip()


def build_resolution_timeline_entries(
    descriptors: Sequence[ActionLogLineDescriptor],
    action_icon: str | None = None,
    action_name: str | None = None,
    headline_labels: Iterable[str] = (),
    settings: Settings | None = None,
) -> list[TimelineEntry]:
    """Build sectioned entries for a resolution card.

    Args:
        descriptors: Resolution timeline
        action_icon: Acting action's icon; with ``action_name`` forms a headline to skip
        action_name: Acting action's name
        headline_labels: Further headline texts to skip
        settings: Rendering settings (defaults to the cached settings)

    Returns:
        A cost section (if any cost was paid) then an effects section
    """
    settings = settings or get_settings()
    tree = build_timeline_tree(descriptors)
    entries: list[TimelineEntry] = []

    cost_entries = adjust_entry_levels(collect_cost_entries(tree))
    if cost_entries:
        entries.append(TimelineEntry(key="section-cost", text=settings.cost_section_text, level=0, kind=SECTION_KIND))
        entries.extend(replace(entry, level=entry.level + 1) for entry in cost_entries)

    skip = [label for label in headline_labels if label and label.strip()]
    combined = _combined_headline(action_icon, action_name)
    if combined:
        skip.insert(0, combined)
    effect_entries = adjust_entry_levels(collect_effect_entries(tree, skip))
    if effect_entries:
        entries.append(
            TimelineEntry(key="section-effects", text=settings.effects_section_text, level=0, kind=SECTION_KIND)
        )
        entries.extend(replace(entry, level=entry.level + 1) for entry in effect_entries)

    return entries
