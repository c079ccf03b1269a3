"""Diff engine - compares two player snapshots and describes what changed."""

from collections.abc import Iterable, Mapping
from dataclasses import replace

from ..config import Settings, get_settings
from ..content.context import DiffContext
from ..content.models import DisplayMetadata, EffectDefinition, StepDefinition
from ..utils.formatting import format_delta, format_number, format_value, signed_number
from .sources import SourceContribution, collect_resource_sources, find_percent_breakdown, join_source_icons
from .types import ActionDiffChange, DiffResult, PlayerSnapshot

EPSILON = 1e-6


def _is_meaningful(delta: float) -> bool:
    return abs(delta) > EPSILON


def _join(*parts: str) -> str:
    return " ".join(part for part in parts if part)


def _union_keys(*mappings: Iterable[str]) -> list[str]:
    """Keys of all mappings, de-duplicated in first-seen order."""
    return list(dict.fromkeys(key for mapping in mappings for key in mapping))


def _describe_value_change(
    metadata: DisplayMetadata,
    before: float,
    after: float,
    contributions: list[SourceContribution] | None,
) -> ActionDiffChange:
    delta = after - before
    change = format_delta(delta, metadata)
    value_range = f"({format_value(before, metadata)}→{format_value(after, metadata)})"
    summary = _join(metadata.icon, metadata.name, change, value_range)
    children: tuple[ActionDiffChange, ...] = ()
    if contributions:
        summary = f"{summary} ({metadata.icon}{change} from {join_source_icons(contributions)})"
        if len({contribution.icons for contribution in contributions}) > 1:
            children = tuple(_describe_contribution(metadata, contribution) for contribution in contributions)
    return ActionDiffChange(summary=summary, meta={"key": metadata.key}, children=children)


def _describe_contribution(metadata: DisplayMetadata, contribution: SourceContribution) -> ActionDiffChange:
    if contribution.amount is None:
        summary = f"{metadata.icon} from {contribution.label}".strip()
    else:
        summary = f"{metadata.icon}{format_delta(contribution.amount, metadata)} from {contribution.label}"
    return ActionDiffChange(summary=summary, meta={"key": metadata.key, "source": contribution.label})


def append_resource_changes(
    before: PlayerSnapshot,
    after: PlayerSnapshot,
    resource_keys: Iterable[str],
    context: DiffContext,
    sources: dict[str, list[SourceContribution]] | None = None,
) -> list[ActionDiffChange]:
    """Describe every resource whose value changed."""
    changes: list[ActionDiffChange] = []
    for key in resource_keys:
        previous = before.resources.get(key, 0)
        current = after.resources.get(key, 0)
        if not _is_meaningful(current - previous):
            continue
        metadata = context.resource(key)
        changes.append(_describe_value_change(metadata, previous, current, (sources or {}).get(key)))
    return changes


def append_stat_changes(
    before: PlayerSnapshot,
    after: PlayerSnapshot,
    context: DiffContext,
    sources: dict[str, list[SourceContribution]] | None = None,
    breakdowns: Mapping[str, ActionDiffChange] | None = None,
) -> list[ActionDiffChange]:
    """Describe every stat whose value changed, honouring percent display.

    A stat with an entry in ``breakdowns`` is described by that entry.
    """
    changes: list[ActionDiffChange] = []
    for key in _union_keys(before.stats, after.stats):
        previous = before.stats.get(key, 0)
        current = after.stats.get(key, 0)
        if not _is_meaningful(current - previous):
            continue
        if breakdowns and key in breakdowns:
            changes.append(breakdowns[key])
            continue
        metadata = context.stat(key)
        changes.append(_describe_value_change(metadata, previous, current, (sources or {}).get(key)))
    return changes


def _current_value(snapshot: PlayerSnapshot, key: str) -> float:
    return snapshot.resources.get(key, snapshot.stats.get(key, 0))


def append_percent_breakdown_changes(
    before: PlayerSnapshot,
    after: PlayerSnapshot,
    step: StepDefinition | Iterable[EffectDefinition] | None,
    context: DiffContext,
    sources: dict[str, list[SourceContribution]] | None = None,
) -> list[ActionDiffChange]:
    """Describe stats grown by a per-population percentage.

    Only increases of stats shown as plain numbers get a breakdown. The
    line reads base plus population count times percent equals total, e.g.
    "⚔️ Army Strength +4 (8→12) (⚔️8 + (🎖️2 × 📈25%) = ⚔️12)". Population
    counts and the percent are read from ``after``.

    Args:
        before: Snapshot taken before the step's effects were applied
        after: Snapshot taken after the step's effects were applied
        step: Resolved step or effect list naming the percent effects
        context: Metadata lookups
        sources: Attribution collected for the same step

    Returns:
        One change per stat with a breakdown, in stat order
    """
    changes: list[ActionDiffChange] = []
    if step is None:
        return changes
    for key in _union_keys(before.stats, after.stats):
        previous = before.stats.get(key, 0)
        current = after.stats.get(key, 0)
        metadata = context.stat(key)
        if current - previous <= EPSILON or metadata.display_as_percent:
            continue
        breakdown = find_percent_breakdown(step, key)
        if breakdown is None:
            continue
        count = _current_value(after, breakdown.role)
        percent_metadata = context.stat(breakdown.percent_stat)
        percent = format_value(_current_value(after, breakdown.percent_stat), percent_metadata)
        role_icon = context.population(breakdown.role).icon
        suffix = (
            f" ({metadata.icon}{format_value(previous, metadata)}"
            f" + ({role_icon}{format_number(count)} × {percent_metadata.icon}{percent})"
            f" = {metadata.icon}{format_value(current, metadata)})"
        )
        node = _describe_value_change(metadata, previous, current, (sources or {}).get(key))
        changes.append(
            replace(node, summary=f"{node.summary}{suffix}", meta={**node.meta, "breakdown": breakdown.role})
        )
    return changes


def append_building_changes(
    before: PlayerSnapshot,
    after: PlayerSnapshot,
    context: DiffContext,
) -> list[ActionDiffChange]:
    """Describe buildings present after but not before."""
    changes: list[ActionDiffChange] = []
    for building_id in sorted(after.buildings - before.buildings):
        label = context.building(building_id).display
        changes.append(ActionDiffChange(summary=f"{label} built", meta={"building": building_id}))
    return changes


def append_land_changes(
    before: PlayerSnapshot,
    after: PlayerSnapshot,
    context: DiffContext,
    developed_keyword: str = "Developed",
) -> list[ActionDiffChange]:
    """Describe new lands, new developments and the net slot change.

    Slot capacity brought in by brand-new lands is not counted in the slot
    line; the new land line already accounts for it.
    """
    changes: list[ActionDiffChange] = []
    new_land_slots = 0
    for land in after.lands:
        previous = before.find_land(land.id)
        if previous is None:
            new_land_slots += land.slots_max
            summary = _join(context.land.icon, "New", context.land.label)
            changes.append(ActionDiffChange(summary=summary, meta={"land": land.id}))
            continue
        for development in land.developments:
            if development in previous.developments:
                continue
            label = context.development(development).display
            changes.append(
                ActionDiffChange(
                    summary=f"{developed_keyword} {label}",
                    meta={"land": land.id, "development": development},
                )
            )

    before_slots = before.total_slots()
    slot_delta = after.total_slots() - new_land_slots - before_slots
    if slot_delta != 0:
        slot_range = f"({before_slots}→{before_slots + slot_delta})"
        summary = _join(context.slot.icon, context.slot.label, signed_number(slot_delta), slot_range)
        changes.append(ActionDiffChange(summary=summary, meta={"slots": slot_delta}))
    return changes


def append_passive_changes(
    before: PlayerSnapshot,
    after: PlayerSnapshot,
    context: DiffContext,
) -> list[ActionDiffChange]:
    """Describe passives that were removed.

    Added passives are narrated by their own enter effects, so they are not
    repeated here.
    """
    remaining = set(after.passives)
    changes: list[ActionDiffChange] = []
    for passive_id in before.passives:
        if passive_id in remaining:
            continue
        metadata = context.passive_metadata(passive_id)
        label = _join(metadata.icon or context.passive.icon, metadata.name)
        changes.append(ActionDiffChange(summary=f"{label} removed", meta={"passive": passive_id}))
    return changes


def diff_step_snapshots(
    before: PlayerSnapshot,
    after: PlayerSnapshot,
    step: StepDefinition | Iterable[EffectDefinition] | None,
    context: DiffContext,
    resource_keys: Iterable[str] | None = None,
    settings: Settings | None = None,
) -> DiffResult:
    """Compare two snapshots and describe every change.

    Categories are emitted in a fixed order: resources, stats, buildings,
    lands and developments, removed passives. Neither snapshot is modified.

    Args:
        before: Snapshot taken before the step's effects were applied
        after: Snapshot taken after the step's effects were applied
        step: Resolved step or effect list, used for attribution and percent breakdowns
        context: Metadata lookups
        resource_keys: Resources to compare; defaults to keys of both snapshots
        settings: Rendering settings (defaults to the cached settings)

    Returns:
        DiffResult with the change tree and its flattened summaries
    """
    settings = settings or get_settings()
    keys = list(resource_keys) if resource_keys is not None else _union_keys(before.resources, after.resources)
    sources = collect_resource_sources(step, context)

    tree: list[ActionDiffChange] = []
    tree.extend(append_resource_changes(before, after, keys, context, sources))
    breakdowns = {
        change.meta["key"]: change for change in append_percent_breakdown_changes(before, after, step, context, sources)
    }
    tree.extend(append_stat_changes(before, after, context, sources, breakdowns))
    tree.extend(append_building_changes(before, after, context))
    tree.extend(append_land_changes(before, after, context, settings.developed_keyword))
    tree.extend(append_passive_changes(before, after, context))
    return DiffResult.from_tree(tree)
