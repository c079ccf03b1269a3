"""Tests for player snapshots."""

from types import SimpleNamespace

from resolution_log.engine.snapshots import snapshot_land, snapshot_player
from resolution_log.engine.types import LandSnapshot, PlayerSnapshot


class TestSnapshotPlayer:
    """Tests for snapshot_player."""

    def test_snapshot_from_mapping(self, make_state, make_land):
        """Test capturing every category from a raw state mapping."""
        state = make_state(
            gold=12,
            lands=[make_land("A", slots_max=2, developments=["farm"])],
            stats={"absorption": 0.5},
            buildings=["town_hall"],
            passives=[{"id": "blessing"}, "curse"],
        )

        snapshot = snapshot_player(state)

        assert snapshot.resources == {"gold": 12}
        assert snapshot.stats == {"absorption": 0.5}
        assert snapshot.buildings == frozenset({"town_hall"})
        assert snapshot.lands == (LandSnapshot(id="A", slots_max=2, slots_used=1, developments=("farm",)),)
        assert snapshot.passives == ("blessing", "curse")

    def test_snapshot_from_object(self):
        """Test capturing a live state object with snake_case attributes."""
        land = SimpleNamespace(id="A", slots_max=3, slots_used=0, developments=[])
        state = SimpleNamespace(resources={"gold": 5}, stats={}, buildings=set(), lands=[land], passives=[])

        snapshot = snapshot_player(state)

        assert snapshot.resources["gold"] == 5
        assert snapshot.total_slots() == 3

    def test_snapshot_is_isolated_from_later_mutation(self, make_state):
        """Test that mutating the live state does not leak into a snapshot."""
        state = make_state(gold=10)
        snapshot = snapshot_player(state)

        state["resources"]["gold"] = 99
        state["lands"][0]["developments"].append("farm")
        state["buildings"].append("town_hall")

        assert snapshot.resources["gold"] == 10
        assert snapshot.lands[0].developments == ()
        assert snapshot.buildings == frozenset()

    def test_snapshots_are_fresh_each_call(self, make_state):
        """Test that two snapshots of the same state do not share containers."""
        state = make_state()

        first = snapshot_player(state)
        second = snapshot_player(state)

        assert first == second
        assert first.resources is not second.resources

    def test_snapshot_passes_through_existing_snapshot(self):
        """Test that an existing snapshot is returned unchanged."""
        snapshot = PlayerSnapshot()

        assert snapshot_player(snapshot) is snapshot

    def test_missing_categories_are_empty(self):
        """Test that absent categories produce empty containers."""
        snapshot = snapshot_player({})

        assert snapshot.resources == {}
        assert snapshot.lands == ()
        assert snapshot.passives == ()

    def test_to_dict(self, make_state):
        """Test converting a snapshot to a dictionary."""
        result = snapshot_player(make_state(gold=3, buildings=["town_hall"])).to_dict()

        assert result["resources"] == {"gold": 3}
        assert result["buildings"] == ["town_hall"]
        assert result["lands"][0]["id"] == "A"


class TestSnapshotLand:
    """Tests for snapshot_land."""

    def test_accepts_camel_case_keys(self):
        """Test reading slotsMax/slotsUsed keys."""
        land = snapshot_land({"id": "B", "slotsMax": 2, "slotsUsed": 1, "developments": ["farm"]})

        assert land.slots_max == 2
        assert land.slots_used == 1
        assert land.developments == ("farm",)
