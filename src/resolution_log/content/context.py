"""Lookup surfaces handed to the diff engine and the sub-action integrator."""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .models import ActionDefinition, AssetInfo, DisplayMetadata, EvaluatorDefinition

logger = logging.getLogger(__name__)

DEFAULT_LAND = AssetInfo(icon="🗺️", label="Land")
DEFAULT_SLOT = AssetInfo(icon="🧩", label="Development Slot")
DEFAULT_PASSIVE = AssetInfo(icon="♾️", label="Passive")

EvaluatorHook = Callable[[EvaluatorDefinition], float]

CATEGORIES = ("resources", "stats", "buildings", "developments", "populations", "passives")


def _fallback(key: str) -> DisplayMetadata:
    return DisplayMetadata(key=key, label=key)


def _metadata_map(entries: Mapping[str, Any] | None) -> dict[str, DisplayMetadata]:
    """Validate a key -> metadata mapping, filling in the key when it is omitted."""
    result: dict[str, DisplayMetadata] = {}
    for key, entry in (entries or {}).items():
        if isinstance(entry, DisplayMetadata):
            result[key] = entry
            continue
        result[key] = DisplayMetadata.model_validate({"key": key, **entry})
    return result


@dataclass
class DiffContext:
    """Metadata lookups used while diffing snapshots.

    Every lookup is total: an unknown key falls back to the raw key as label
    with an empty icon, so a line is always emitted.
    """

    resources: dict[str, DisplayMetadata] = field(default_factory=dict)
    stats: dict[str, DisplayMetadata] = field(default_factory=dict)
    buildings: dict[str, DisplayMetadata] = field(default_factory=dict)
    developments: dict[str, DisplayMetadata] = field(default_factory=dict)
    populations: dict[str, DisplayMetadata] = field(default_factory=dict)
    passives: dict[str, DisplayMetadata] = field(default_factory=dict)
    land: AssetInfo = DEFAULT_LAND
    slot: AssetInfo = DEFAULT_SLOT
    passive: AssetInfo = DEFAULT_PASSIVE

    # Counts evaluators (e.g., number of farms) against live game state
    evaluate: EvaluatorHook | None = None

    # Evaluator target ("development:farm", "population") -> modifying passive ids
    evaluation_mods: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def resource(self, key: str) -> DisplayMetadata:
        """Get resource metadata, falling back to stats then the raw key."""
        return self.resources.get(key) or self.stats.get(key) or _fallback(key)

    def stat(self, key: str) -> DisplayMetadata:
        """Get stat metadata, falling back to resources then the raw key."""
        return self.stats.get(key) or self.resources.get(key) or _fallback(key)

    def building(self, key: str) -> DisplayMetadata:
        return self.buildings.get(key) or _fallback(key)

    def development(self, key: str) -> DisplayMetadata:
        return self.developments.get(key) or _fallback(key)

    def population(self, key: str) -> DisplayMetadata:
        return self.populations.get(key) or _fallback(key)

    def passive_metadata(self, key: str) -> DisplayMetadata:
        return self.passives.get(key) or _fallback(key)

    def modifier_icons(self, evaluator: EvaluatorDefinition) -> str:
        """Icons of the passives modifying an evaluator, in registration order.

        The evaluator's target is "{type}:{id}" when it names an id and its
        bare type otherwise.
        """
        identifier = evaluator.params.get("id")
        target = f"{evaluator.type}:{identifier}" if "id" in evaluator.params else evaluator.type
        icons = []
        for passive_id in self.evaluation_mods.get(target, ()):
            icons.append(self.passive_metadata(passive_id).icon or self.passive.icon)
        return "".join(icons)

    def evaluate_count(self, evaluator: EvaluatorDefinition) -> int | None:
        """Evaluate how many times an evaluator applies.

        Returns None when no hook is configured or the hook fails, in which
        case attribution shows the evaluator icon once.
        """
        if self.evaluate is None:
            return None
        try:
            raw = float(self.evaluate(evaluator))
        except (KeyError, LookupError, TypeError, ValueError) as exc:
            logger.debug("Evaluator %s could not be counted: %s", evaluator.type, exc)
            return None
        if raw <= 0:
            return 0
        return max(1, round(raw))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], evaluate: EvaluatorHook | None = None) -> "DiffContext":
        """Build a context from plain mappings.

        Registries are validated in a fixed order; nothing is resolved lazily.
        """
        registries = {name: _metadata_map(data.get(name)) for name in CATEGORIES}
        assets: dict[str, AssetInfo] = {}
        for name, default in (("land", DEFAULT_LAND), ("slot", DEFAULT_SLOT), ("passive", DEFAULT_PASSIVE)):
            raw = data.get(name)
            assets[name] = AssetInfo.model_validate(raw) if raw is not None else default
        raw_mods = data.get("evaluation_mods", data.get("evaluationMods")) or {}
        evaluation_mods = {target: tuple(passive_ids) for target, passive_ids in raw_mods.items()}
        return cls(**registries, **assets, evaluate=evaluate, evaluation_mods=evaluation_mods)


@dataclass
class ContentContext:
    """Content lookups for action definitions."""

    actions: dict[str, ActionDefinition] = field(default_factory=dict)

    def get_action(self, action_id: str) -> ActionDefinition | None:
        """Get an action definition by id, or None if unknown."""
        return self.actions.get(action_id)

    @classmethod
    def from_definitions(cls, definitions: Iterable[ActionDefinition | Mapping[str, Any]]) -> "ContentContext":
        """Build a content context from definitions or plain mappings."""
        actions: dict[str, ActionDefinition] = {}
        for definition in definitions:
            action = (
                definition
                if isinstance(definition, ActionDefinition)
                else ActionDefinition.model_validate(definition)
            )
            actions[action.id] = action
        return cls(actions=actions)
