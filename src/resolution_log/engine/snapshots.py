"""Capture immutable player snapshots from live or raw state."""

from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from .types import LandSnapshot, PlayerSnapshot


def _field(source: Any, *names: str) -> Any:
    """Read the first present field from a mapping or attribute object."""
    for name in names:
        if isinstance(source, Mapping):
            if name in source:
                return source[name]
        elif hasattr(source, name):
            return getattr(source, name)
    return None


def _numbers(values: Any) -> MappingProxyType:
    if not values:
        return MappingProxyType({})
    return MappingProxyType({str(key): value for key, value in dict(values).items()})


def _passive_id(passive: Any) -> str:
    if isinstance(passive, str):
        return passive
    identifier = _field(passive, "id")
    return str(identifier) if identifier is not None else str(passive)


def snapshot_land(land: Any) -> LandSnapshot:
    """Create a snapshot of a single land."""
    developments: Iterable[str] = _field(land, "developments") or ()
    return LandSnapshot(
        id=str(_field(land, "id")),
        slots_max=int(_field(land, "slots_max", "slotsMax") or 0),
        slots_used=int(_field(land, "slots_used", "slotsUsed") or 0),
        developments=tuple(developments),
    )


def snapshot_player(state: Any) -> PlayerSnapshot:
    """Create a snapshot from a live player state or a raw state mapping.

    Each call allocates fresh containers, so later changes to ``state`` never
    leak into a previously captured snapshot.

    Args:
        state: Player state object or mapping (camelCase or snake_case keys)

    Returns:
        PlayerSnapshot holding resources, stats, buildings, lands and passives
    """
    if isinstance(state, PlayerSnapshot):
        return state
    return PlayerSnapshot(
        resources=_numbers(_field(state, "resources")),
        stats=_numbers(_field(state, "stats")),
        buildings=frozenset(_field(state, "buildings") or ()),
        lands=tuple(snapshot_land(land) for land in _field(state, "lands") or ()),
        passives=tuple(_passive_id(passive) for passive in _field(state, "passives") or ()),
    )
