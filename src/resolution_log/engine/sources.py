"""Attribution of resource changes to the sources that produced them."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from ..content.context import DiffContext
from ..content.models import EffectDefinition, EvaluatorDefinition, StepDefinition

RESOURCE_EFFECT = "resource"
STAT_EFFECT = "stat"
PERCENT_METHOD = "add_pct"


@dataclass(frozen=True)
class SourceContribution:
    """Icons of one contributing source and the amount it added, if known.

    ``mods`` holds the icons of passives modifying the source's evaluator.
    """

    icons: str
    amount: float | None = None
    mods: str = ""

    @property
    def label(self) -> str:
        return f"{self.icons}+{self.mods}" if self.mods else self.icons


@dataclass(frozen=True)
class PercentBreakdown:
    """A stat grown by a percentage of another stat, once per population member."""

    role: str
    percent_stat: str


def _evaluator_icon(evaluator: EvaluatorDefinition, context: DiffContext) -> str:
    params = evaluator.params
    match evaluator.type:
        case "development":
            identifier = params.get("id")
            return context.development(identifier).icon if identifier else ""
        case "population":
            role = params.get("role")
            return context.population(role).icon or role if role else ""
        case "building":
            identifier = params.get("id")
            return context.building(identifier).icon if identifier else ""
        case "land":
            return context.land.icon
        case _:
            return ""


def _meta_icons(source: Mapping[str, Any], context: DiffContext) -> str:
    """Icons for a resource effect's ``meta.source`` record."""
    identifier = source.get("id")
    match source.get("type"):
        case "population":
            icon = context.population(identifier).icon or identifier if identifier else ""
            count = source.get("count")
            if not icon or count is None:
                return icon
            try:
                raw = float(count)
            except (TypeError, ValueError):
                return icon
            if raw <= 0:
                return ""
            return icon * max(1, round(raw))
        case "development":
            return context.development(identifier).icon if identifier else ""
        case "building":
            return context.building(identifier).icon if identifier else ""
        case "land":
            return context.land.icon
        case _:
            return ""


def _amount(effect: EffectDefinition, multiplier: int) -> float | None:
    raw = effect.params.get("amount")
    if isinstance(raw, bool) or not isinstance(raw, int | float):
        return None
    if effect.method == "remove":
        raw = -raw
    return raw * multiplier


def _resource_key(effect: EffectDefinition) -> str | None:
    key = effect.params.get("key")
    return key if isinstance(key, str) else None


def _iter_effects(step: StepDefinition | Iterable[EffectDefinition] | None) -> list[EffectDefinition]:
    if step is None:
        return []
    if isinstance(step, StepDefinition):
        return list(step.effects)
    return list(step)


def collect_resource_sources(
    step: StepDefinition | Iterable[EffectDefinition] | None,
    context: DiffContext,
) -> dict[str, list[SourceContribution]]:
    """Collect per-resource attribution from a resolved effect tree.

    An evaluator wrapping a resource effect contributes the evaluator's icon,
    repeated by its evaluated count when the context can count it, plus the
    icons of any passives modifying that evaluator. A bare resource effect
    contributes the icon named by its ``meta.source``.

    Args:
        step: Resolved step or effect list; None yields no attribution
        context: Diff context providing icons, modifiers and evaluator counts

    Returns:
        Mapping of resource key to its contributions, in effect order
    """
    sources: dict[str, list[SourceContribution]] = {}

    def add(key: str, contribution: SourceContribution) -> None:
        if contribution.icons or contribution.mods:
            sources.setdefault(key, []).append(contribution)

    def visit(effects: list[EffectDefinition]) -> None:
        for effect in effects:
            if effect.evaluator is not None and effect.effects:
                inner = next((e for e in effect.effects if e.type == RESOURCE_EFFECT), None)
                key = _resource_key(inner) if inner else None
                if inner is None or key is None:
                    continue
                count = context.evaluate_count(effect.evaluator)
                icon = _evaluator_icon(effect.evaluator, context)
                if count == 0:
                    continue
                add(
                    key,
                    SourceContribution(
                        icons=icon * (count or 1),
                        amount=_amount(inner, count or 1),
                        mods=context.modifier_icons(effect.evaluator),
                    ),
                )
                continue
            if effect.type == RESOURCE_EFFECT:
                key = _resource_key(effect)
                source = effect.meta.get("source")
                if key is not None and isinstance(source, Mapping):
                    add(key, SourceContribution(icons=_meta_icons(source, context), amount=_amount(effect, 1)))
                continue
            if effect.type is None and effect.effects:
                visit(effect.effects)

    visit(_iter_effects(step))
    return sources


def join_source_icons(contributions: list[SourceContribution]) -> str:
    """Concatenate the icons of all contributions, then their modifiers after a "+"."""
    icons = "".join(contribution.icons for contribution in contributions)
    mods = "".join(contribution.mods for contribution in contributions)
    return f"{icons}+{mods}" if mods else icons


def find_percent_breakdown(
    step: StepDefinition | Iterable[EffectDefinition] | None,
    key: str,
) -> PercentBreakdown | None:
    """Find the percent growth effect behind a stat, if any.

    Walks the effect tree depth first, remembering the role of the nearest
    enclosing population evaluator. The first ``add_pct`` stat effect on
    ``key`` that names a percent stat and sits under such an evaluator wins.
    """

    def walk(effects: Iterable[EffectDefinition], current_role: str | None) -> PercentBreakdown | None:
        for effect in effects:
            role = current_role
            if effect.evaluator is not None and effect.evaluator.type == "population":
                candidate = effect.evaluator.params.get("role")
                if isinstance(candidate, str):
                    role = candidate
            if effect.type == STAT_EFFECT and effect.method == PERCENT_METHOD:
                percent_stat = effect.params.get("percentStat", effect.params.get("percent_stat"))
                if effect.params.get("key") == key and isinstance(percent_stat, str) and role is not None:
                    return PercentBreakdown(role=role, percent_stat=percent_stat)
            nested = walk(effect.effects, role)
            if nested is not None:
                return nested
        return None

    return walk(_iter_effects(step), None)
