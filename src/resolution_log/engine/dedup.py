"""Duplicate suppression for diff lines.

Lines are compared after normalization, which strips a trailing
parenthetical (usually the before→after range) so two renderings of the
same logical change compare equal.
"""

import re
from collections.abc import Collection, Iterable
from dataclasses import dataclass

from .types import ActionDiffChange, ActionLogLineDescriptor

_TRAILING_PARENTHETICAL = re.compile(r"\s*\([^)]*\)\s*$")


def normalize_line(text: str) -> str:
    """Trim a line and strip one trailing parenthetical group."""
    trimmed = text.strip()
    if not trimmed:
        return ""
    return _TRAILING_PARENTHETICAL.sub("", trimmed, count=1)


def filter_action_diff_changes(
    changes: Iterable[str],
    messages: Iterable[ActionLogLineDescriptor],
    sub_lines: Iterable[str],
) -> list[str]:
    """Drop root summaries already shown as a message or a sub-action line."""
    seen = {normalized for line in messages if (normalized := normalize_line(line.text))}
    seen.update(normalize_line(line) for line in sub_lines)
    return [line for line in changes if normalize_line(line) not in seen]


@dataclass(frozen=True)
class Kept:
    """The node survived filtering, with its filtered children."""

    node: ActionDiffChange


@dataclass(frozen=True)
class Promoted:
    """The node was elided; its surviving descendants take its place."""

    nodes: tuple[ActionDiffChange, ...]


FilterOutcome = Kept | Promoted


def filter_change_node(change: ActionDiffChange, allowed: Collection[str]) -> FilterOutcome:
    """Filter one node against the set of allowed normalized summaries."""
    children = filter_change_tree(change.children, allowed)
    if normalize_line(change.summary) in allowed:
        return Kept(ActionDiffChange(summary=change.summary, meta=change.meta, children=tuple(children)))
    return Promoted(tuple(children))


def filter_change_tree(changes: Iterable[ActionDiffChange], allowed: Collection[str]) -> list[ActionDiffChange]:
    """Filter a change forest, promoting the children of elided nodes.

    Args:
        changes: Root changes to filter
        allowed: Normalized summaries that may be shown

    Returns:
        New forest; the input is not modified
    """
    filtered: list[ActionDiffChange] = []
    for change in changes:
        match filter_change_node(change, allowed):
            case Kept(node=node):
                filtered.append(node)
            case Promoted(nodes=nodes):
                filtered.extend(nodes)
    return filtered


def allowed_summaries(summaries: Iterable[str]) -> frozenset[str]:
    """Normalize surviving summaries into an allowed set for tree filtering."""
    return frozenset(normalize_line(summary) for summary in summaries)
