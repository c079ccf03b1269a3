"""Type definitions for the resolution log pipeline."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class LineKind(str, Enum):
    """Kinds of timeline lines."""

    HEADLINE = "headline"  # Depth 0, one per resolution
    GROUP = "group"
    SUBACTION = "subaction"  # Placeholder for a nested action's own lines
    EFFECT = "effect"
    COST = "cost"
    COST_DETAIL = "cost-detail"


@dataclass(frozen=True)
class LandSnapshot:
    """Snapshot of a single land and its developments."""

    id: str
    slots_max: int = 0
    slots_used: int = 0
    developments: tuple[str, ...] = ()


@dataclass(frozen=True)
class PlayerSnapshot:
    """Immutable snapshot of one player's state at an instant.

    Mappings are read-only proxies over containers owned by the snapshot,
    so a snapshot can never observe later changes to the live state.
    """

    resources: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    stats: Mapping[str, float] = field(default_factory=lambda: MappingProxyType({}))
    buildings: frozenset[str] = frozenset()
    lands: tuple[LandSnapshot, ...] = ()
    passives: tuple[str, ...] = ()

    def find_land(self, land_id: str) -> LandSnapshot | None:
        """Get a land by id."""
        for land in self.lands:
            if land.id == land_id:
                return land
        return None

    def total_slots(self) -> int:
        """Total slot capacity across all lands."""
        return sum(land.slots_max for land in self.lands)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "resources": dict(self.resources),
            "stats": dict(self.stats),
            "buildings": sorted(self.buildings),
            "lands": [
                {
                    "id": land.id,
                    "slots_max": land.slots_max,
                    "slots_used": land.slots_used,
                    "developments": list(land.developments),
                }
                for land in self.lands
            ],
            "passives": list(self.passives),
        }


@dataclass(frozen=True)
class ActionDiffChange:
    """One summarized change; children break it down by cause."""

    summary: str
    meta: Mapping[str, Any] | None = None
    children: tuple["ActionDiffChange", ...] = ()

    def walk(self) -> list["ActionDiffChange"]:
        """This node followed by all descendants, pre-order."""
        nodes = [self]
        for child in self.children:
            nodes.extend(child.walk())
        return nodes


@dataclass(frozen=True)
class DiffResult:
    """Output of the diff engine in both tree and flat form."""

    tree: tuple[ActionDiffChange, ...] = ()
    summaries: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.tree)

    def __len__(self) -> int:
        return len(self.summaries)

    @classmethod
    def from_tree(cls, tree: list[ActionDiffChange] | tuple[ActionDiffChange, ...]) -> "DiffResult":
        """Build a result whose summaries are the pre-order flattening of the tree."""
        summaries = tuple(node.summary for root in tree for node in root.walk())
        return cls(tree=tuple(tree), summaries=summaries)


@dataclass(frozen=True)
class ActionLogLineDescriptor:
    """A single timeline line with its nesting depth."""

    text: str
    depth: int
    kind: LineKind = LineKind.EFFECT
    ref_id: str | None = None


@dataclass(frozen=True)
class ActionTrace:
    """A nested action execution with its own before/after raw state."""

    id: str
    before: Any
    after: Any
