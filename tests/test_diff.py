"""Tests for the diff engine."""

import copy
from dataclasses import replace

from resolution_log.content.models import DisplayMetadata, EffectDefinition, StepDefinition
from resolution_log.engine.diff import diff_step_snapshots
from resolution_log.engine.snapshots import snapshot_player
from resolution_log.engine.sources import PercentBreakdown, collect_resource_sources, find_percent_breakdown

FARM_INCOME = {
    "evaluator": {"type": "development", "params": {"id": "farm"}},
    "effects": [{"type": "resource", "method": "add", "params": {"key": "gold", "amount": 2}}],
}

COUNCIL_INCOME = {
    "type": "resource",
    "method": "add",
    "params": {"key": "gold", "amount": 1},
    "meta": {"source": {"type": "population", "id": "council"}},
}

LEGION_GROWTH = {
    "evaluator": {"type": "population", "params": {"role": "legion"}},
    "effects": [
        {"type": "stat", "method": "add_pct", "params": {"key": "armyStrength", "percentStat": "growth"}},
    ],
}


def make_step(*effects):
    return StepDefinition(id="step", effects=[EffectDefinition.model_validate(effect) for effect in effects])


def diff(before, after, context, step=None, settings=None):
    return diff_step_snapshots(snapshot_player(before), snapshot_player(after), step, context, settings=settings)


def growth_context(diff_context):
    return replace(
        diff_context,
        stats={
            **diff_context.stats,
            "armyStrength": DisplayMetadata(key="armyStrength", label="Army Strength", icon="⚔️"),
            "growth": DisplayMetadata(key="growth", label="Growth", icon="📈", display_as_percent=True),
        },
        populations={**diff_context.populations, "legion": DisplayMetadata(key="legion", label="Legion", icon="🎖️")},
    )


def army(strength, growth=0.25, legion=2):
    return {"resources": {"legion": legion}, "stats": {"armyStrength": strength, "growth": growth}}


class TestResourceChanges:
    """Tests for resource lines and their attribution."""

    def test_single_source_attribution(self, diff_context, make_state, settings):
        """Test a gold gain attributed to one evaluator icon."""
        result = diff(make_state(gold=10), make_state(gold=12), diff_context, make_step(FARM_INCOME), settings)

        assert result.summaries == ("🪙 Gold +2 (10→12) (🪙+2 from 🌾)",)
        assert result.tree[0].children == ()
        assert result.tree[0].meta == {"key": "gold"}

    def test_unattributed_change(self, diff_context, make_state, settings):
        """Test a resource change with no effect description."""
        result = diff(make_state(gold=10), make_state(gold=7), diff_context, settings=settings)

        assert result.summaries == ("🪙 Gold -3 (10→7)",)

    def test_evaluator_count_repeats_icon(self, diff_context, make_state, settings):
        """Test that an evaluated count repeats the source icon and scales the amount."""
        context = replace(diff_context, evaluate=lambda evaluator: 2)

        result = diff(make_state(gold=10), make_state(gold=14), context, make_step(FARM_INCOME), settings)

        assert result.summaries == ("🪙 Gold +4 (10→14) (🪙+4 from 🌾🌾)",)

    def test_zero_count_evaluator_is_not_attributed(self, diff_context, make_state, settings):
        """Test that an evaluator counting zero contributes nothing."""
        context = replace(diff_context, evaluate=lambda evaluator: 0)

        result = diff(make_state(gold=10), make_state(gold=12), context, make_step(FARM_INCOME), settings)

        assert result.summaries == ("🪙 Gold +2 (10→12)",)

    def test_failing_evaluator_falls_back_to_single_icon(self, diff_context, make_state, settings):
        """Test that an evaluator hook error shows the icon once."""

        def broken(evaluator):
            raise KeyError(evaluator.type)

        context = replace(diff_context, evaluate=broken)

        result = diff(make_state(gold=10), make_state(gold=12), context, make_step(FARM_INCOME), settings)

        assert result.summaries == ("🪙 Gold +2 (10→12) (🪙+2 from 🌾)",)

    def test_multiple_sources_get_children(self, diff_context, make_state, settings):
        """Test that distinct contributors are broken down as child nodes."""
        step = make_step(FARM_INCOME, COUNCIL_INCOME)

        result = diff(make_state(gold=10), make_state(gold=13), diff_context, step, settings)

        root = result.tree[0]
        assert root.summary == "🪙 Gold +3 (10→13) (🪙+3 from 🌾👑)"
        assert [child.summary for child in root.children] == ["🪙+2 from 🌾", "🪙+1 from 👑"]
        assert result.summaries == (root.summary, "🪙+2 from 🌾", "🪙+1 from 👑")

    def test_passive_modifiers_follow_source_icons(self, diff_context, make_state, settings):
        """Test that passives modifying an evaluator are credited after a plus."""
        context = replace(diff_context, evaluation_mods={"development:farm": ("blessing",)})

        result = diff(make_state(gold=10), make_state(gold=12), context, make_step(FARM_INCOME), settings)

        assert result.summaries == ("🪙 Gold +2 (10→12) (🪙+2 from 🌾+✨)",)

    def test_passive_modifiers_in_contributor_children(self, diff_context, make_state, settings):
        """Test that modifiers stay with their own contributor in the breakdown."""
        context = replace(diff_context, evaluation_mods={"development:farm": ("blessing", "curse")})
        step = make_step(FARM_INCOME, COUNCIL_INCOME)

        result = diff(make_state(gold=10), make_state(gold=13), context, step, settings)

        root = result.tree[0]
        assert root.summary == "🪙 Gold +3 (10→13) (🪙+3 from 🌾👑+✨♾️)"
        assert [child.summary for child in root.children] == ["🪙+2 from 🌾+✨♾️", "🪙+1 from 👑"]

    def test_blank_label_falls_back_to_key(self, diff_context, settings):
        """Test that metadata with an empty label still names its subject."""
        wood = DisplayMetadata(key="wood", label="")
        context = replace(diff_context, resources={**diff_context.resources, "wood": wood})

        result = diff({"resources": {"wood": 1}}, {"resources": {"wood": 2}}, context, settings=settings)

        assert result.summaries == ("wood +1 (1→2)",)

    def test_unknown_resource_uses_raw_key(self, diff_context, settings):
        """Test that a resource without metadata renders its key and no icon."""
        result = diff({"resources": {"wood": 0}}, {"resources": {"wood": 1}}, diff_context, settings=settings)

        assert result.summaries == ("wood +1 (0→1)",)

    def test_resource_keys_limit_comparison(self, diff_context, settings):
        """Test that only the requested resources are compared."""
        before = snapshot_player({"resources": {"gold": 1, "happiness": 1}})
        after = snapshot_player({"resources": {"gold": 2, "happiness": 2}})

        result = diff_step_snapshots(before, after, None, diff_context, ["happiness"], settings)

        assert result.summaries == ("😊 Happiness +1 (1→2)",)


class TestOtherCategories:
    """Tests for stats, buildings, lands and passives."""

    def test_percent_stat(self, diff_context, make_state, settings):
        """Test that a percent-displayed stat renders percentages."""
        result = diff(make_state(), make_state(stats={"absorption": 0.5}), diff_context, settings=settings)

        assert result.summaries == ("🌀 Absorption +50% (0%→50%)",)

    def test_building_built(self, diff_context, make_state, settings):
        """Test a new building."""
        result = diff(make_state(), make_state(buildings=["town_hall"]), diff_context, settings=settings)

        assert result.summaries == ("🏛️ Town Hall built",)

    def test_new_land_does_not_count_its_slots(self, diff_context, make_state, make_land, settings):
        """Test that a new land's slots are not repeated as a slot change."""
        before = make_state(lands=[make_land("A")])
        after = make_state(lands=[make_land("A"), make_land("B", slots_max=2)])

        result = diff(before, after, diff_context, settings=settings)

        assert result.summaries == (f"{diff_context.land.icon} New Land",)

    def test_slot_change(self, diff_context, make_state, make_land, settings):
        """Test a slot gained on an existing land."""
        before = make_state(lands=[make_land("A")])
        after = make_state(lands=[make_land("A", slots_max=2)])

        result = diff(before, after, diff_context, settings=settings)

        assert result.summaries == ("🧩 Development Slot +1 (1→2)",)

    def test_new_development(self, diff_context, make_state, make_land, settings):
        """Test a development added to an existing land."""
        before = make_state(lands=[make_land("A")])
        after = make_state(lands=[make_land("A", developments=["watchtower"])])

        result = diff(before, after, diff_context, settings=settings)

        assert result.summaries == ("Developed 🗼 Watchtower",)
        assert result.tree[0].meta == {"land": "A", "development": "watchtower"}

    def test_passive_removed(self, diff_context, make_state, settings):
        """Test that removed passives are reported and added ones are not."""
        before = make_state(passives=["blessing"])
        after = make_state(passives=["curse"])

        result = diff(before, after, diff_context, settings=settings)

        assert result.summaries == ("✨ Blessing removed",)

    def test_unknown_passive_uses_default_icon(self, diff_context, make_state, settings):
        """Test that a passive without metadata is shown with the generic passive icon."""
        result = diff(make_state(passives=["curse"]), make_state(), diff_context, settings=settings)

        assert result.summaries == (f"{diff_context.passive.icon} curse removed",)

    def test_building_with_blank_label(self, diff_context, make_state, settings):
        """Test that a building with an empty label is named by its key."""
        context = replace(diff_context, buildings={"castle": DisplayMetadata(key="castle", label=" ", icon="🏰")})

        result = diff(make_state(), make_state(buildings=["castle"]), context, settings=settings)

        assert result.summaries == ("🏰 castle built",)


class TestPercentBreakdown:
    """Tests for stats grown by a per-population percentage."""

    def test_growth_is_broken_down(self, diff_context, settings):
        """Test the base, count times percent and total breakdown."""
        result = diff(army(8), army(12), growth_context(diff_context), make_step(LEGION_GROWTH), settings)

        assert result.summaries == ("⚔️ Army Strength +4 (8→12) (⚔️8 + (🎖️2 × 📈25%) = ⚔️12)",)
        assert result.tree[0].meta == {"key": "armyStrength", "breakdown": "legion"}

    def test_decrease_has_no_breakdown(self, diff_context, settings):
        """Test that a falling stat is described plainly."""
        result = diff(army(8), army(6), growth_context(diff_context), make_step(LEGION_GROWTH), settings)

        assert result.summaries == ("⚔️ Army Strength -2 (8→6)",)

    def test_without_step_has_no_breakdown(self, diff_context, settings):
        """Test that growth without its effect description is described plainly."""
        result = diff(army(8), army(12), growth_context(diff_context), settings=settings)

        assert result.summaries == ("⚔️ Army Strength +4 (8→12)",)

    def test_percent_stats_are_not_broken_down(self, diff_context, settings):
        """Test that a stat shown as a percentage keeps its plain line."""
        step = make_step(
            {
                "evaluator": {"type": "population", "params": {"role": "legion"}},
                "effects": [{"type": "stat", "method": "add_pct", "params": {"key": "growth", "percentStat": "growth"}}],
            }
        )

        result = diff(army(8, growth=0.25), army(8, growth=0.5), growth_context(diff_context), step, settings)

        assert result.summaries == ("📈 Growth +25% (25%→50%)",)

    def test_find_percent_breakdown(self):
        """Test locating the percent effect and the role of its evaluator."""
        step = make_step({"effects": [LEGION_GROWTH]})

        assert find_percent_breakdown(step, "armyStrength") == PercentBreakdown(role="legion", percent_stat="growth")
        assert find_percent_breakdown(step, "fortificationStrength") is None
        assert find_percent_breakdown(make_step(*LEGION_GROWTH["effects"]), "armyStrength") is None


class TestDiffProperties:
    """Tests for whole-diff guarantees."""

    def test_identical_snapshots_produce_nothing(self, diff_context, make_state, settings):
        """Test that diffing a snapshot with itself is empty."""
        state = make_state(gold=5, stats={"absorption": 0.2}, buildings=["town_hall"], passives=["blessing"])

        result = diff(state, state, diff_context, make_step(FARM_INCOME), settings)

        assert not result
        assert result.summaries == ()

    def test_category_order(self, diff_context, make_state, make_land, settings):
        """Test resources, stats, buildings, lands, then passives."""
        before = make_state(gold=10, passives=["blessing"])
        after = make_state(
            gold=11,
            stats={"fortificationStrength": 2},
            buildings=["town_hall"],
            lands=[make_land("A"), make_land("B")],
        )

        result = diff(before, after, diff_context, settings=settings)

        assert result.summaries == (
            "🪙 Gold +1 (10→11)",
            "🛡️ Fortification Strength +2 (0→2)",
            "🏛️ Town Hall built",
            f"{diff_context.land.icon} New Land",
            "✨ Blessing removed",
        )

    def test_deterministic(self, diff_context, make_state, settings):
        """Test that repeated diffs of the same inputs are identical."""
        before = make_state(gold=10)
        after = make_state(gold=13, buildings=["town_hall"])
        step = make_step(FARM_INCOME, COUNCIL_INCOME)

        assert diff(before, after, diff_context, step, settings) == diff(before, after, diff_context, step, settings)

    def test_inputs_are_not_modified(self, diff_context, make_state, settings):
        """Test that diffing leaves raw states untouched."""
        before = make_state(gold=10)
        after = make_state(gold=12, buildings=["town_hall"])
        originals = copy.deepcopy((before, after))

        diff(before, after, diff_context, make_step(FARM_INCOME), settings)

        assert (before, after) == originals


class TestSourceCollection:
    """Tests for collect_resource_sources."""

    def test_no_step_has_no_sources(self, diff_context):
        """Test that a missing step yields no attribution."""
        assert collect_resource_sources(None, diff_context) == {}

    def test_nested_containers_are_walked(self, diff_context):
        """Test that untyped container effects are searched recursively."""
        step = make_step({"effects": [FARM_INCOME]})

        sources = collect_resource_sources(step, diff_context)

        assert [contribution.icons for contribution in sources["gold"]] == ["🌾"]
        assert sources["gold"][0].amount == 2

    def test_remove_method_negates_amount(self, diff_context):
        """Test that a remove effect contributes a negative amount."""
        effect = dict(COUNCIL_INCOME, method="remove")

        sources = collect_resource_sources(make_step(effect), diff_context)

        assert sources["gold"][0].amount == -1
