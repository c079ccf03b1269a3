"""Timeline builder - rebuilds a tree from depth-annotated lines and flattens it again."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .types import ActionLogLineDescriptor

logger = logging.getLogger(__name__)


@dataclass
class TimelineNode:
    """A timeline line in the arena; relations are arena indices."""

    index: int
    descriptor: ActionLogLineDescriptor
    parent: int | None = None
    children: list[int] = field(default_factory=list)
    level: int = 0  # Tree level, independent of the descriptor's depth

    @property
    def depth(self) -> int:
        return self.descriptor.depth


@dataclass
class TimelineTree:
    """Arena of timeline nodes with the indices of its roots."""

    nodes: list[TimelineNode] = field(default_factory=list)
    roots: list[int] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, index: int) -> TimelineNode:
        return self.nodes[index]

    def children_of(self, index: int) -> list[TimelineNode]:
        return [self.nodes[child] for child in self.nodes[index].children]

    def root_nodes(self) -> list[TimelineNode]:
        return [self.nodes[root] for root in self.roots]


@dataclass(frozen=True)
class TimelineItem:
    """A flattened node ready for rendering."""

    node: TimelineNode
    indent: int
    key: str


def build_timeline_tree(descriptors: Iterable[ActionLogLineDescriptor] | None) -> TimelineTree:
    """Build a tree from a flat, ordered sequence of lines.

    A line's parent is the nearest preceding line with a strictly smaller
    depth. A line with no such predecessor becomes an additional root.

    Args:
        descriptors: Lines in display order

    Returns:
        TimelineTree arena
    """
    tree = TimelineTree()
    stack: list[int] = []

    for descriptor in descriptors or ():
        while stack and tree.nodes[stack[-1]].depth >= descriptor.depth:
            stack.pop()

        index = len(tree.nodes)
        node = TimelineNode(index=index, descriptor=descriptor)
        if stack:
            parent = tree.nodes[stack[-1]]
            node.parent = parent.index
            node.level = parent.level + 1
            parent.children.append(index)
        else:
            if descriptor.depth > 0:
                logger.debug("Timeline line %r at depth %d has no parent", descriptor.text, descriptor.depth)
            tree.roots.append(index)

        tree.nodes.append(node)
        stack.append(index)

    return tree


def find_section_base_depth(tree: TimelineTree, roots: Sequence[int] | None = None) -> int:
    """Minimum depth among the given roots (all roots when omitted)."""
    indices = tree.roots if roots is None else roots
    if not indices:
        return 0
    return min(tree.nodes[index].depth for index in indices)


def collect_timeline_items(
    tree: TimelineTree,
    roots: Sequence[int] | None = None,
    base_depth: int | None = None,
) -> list[TimelineItem]:
    """Flatten a tree (or a section of it) pre-order.

    Indentation is re-baselined so the shallowest root of the section sits
    at indent 0. Keys are path-like ('0', '0-1', '0-1-0') and stable for a
    given tree.

    Args:
        tree: Timeline arena
        roots: Root indices to render; defaults to all roots
        base_depth: Depth rendered at indent 0; defaults to the section minimum

    Returns:
        Items in traversal order
    """
    indices = list(tree.roots if roots is None else roots)
    base = find_section_base_depth(tree, indices) if base_depth is None else base_depth
    items: list[TimelineItem] = []

    # Explicit stack of (node index, key) in reverse order for pre-order output
    pending = [(index, str(position)) for position, index in enumerate(indices)]
    pending.reverse()
    while pending:
        index, key = pending.pop()
        node = tree.nodes[index]
        items.append(TimelineItem(node=node, indent=max(node.depth - base, 0), key=key))
        for position in range(len(node.children) - 1, -1, -1):
            pending.append((node.children[position], f"{key}-{position}"))
    return items
