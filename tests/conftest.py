"""Shared fixtures for resolution log tests."""

import pytest

from resolution_log.config import Settings
from resolution_log.content import ContentContext, DiffContext


@pytest.fixture
def settings():
    """Default rendering settings, independent of the environment."""
    return Settings(_env_file=None)


@pytest.fixture
def diff_context():
    """Metadata registries for a small kingdom."""
    return DiffContext.from_mapping(
        {
            "resources": {
                "gold": {"label": "Gold", "icon": "🪙"},
                "happiness": {"label": "Happiness", "icon": "😊"},
            },
            "stats": {
                "fortificationStrength": {"label": "Fortification Strength", "icon": "🛡️"},
                "absorption": {"label": "Absorption", "icon": "🌀", "displayAsPercent": True},
            },
            "buildings": {
                "town_hall": {"label": "Town Hall", "icon": "🏛️"},
            },
            "developments": {
                "farm": {"label": "Farm", "icon": "🌾"},
                "watchtower": {"label": "Watchtower", "icon": "🗼"},
            },
            "populations": {
                "council": {"label": "Council", "icon": "👑"},
            },
            "passives": {
                "blessing": {"label": "Blessing", "icon": "✨"},
            },
        }
    )


@pytest.fixture
def content():
    """Action definitions used by the sub-action scenarios."""
    return ContentContext.from_definitions(
        [
            {"id": "plow", "name": "Plow", "icon": "🚜"},
            {"id": "expand", "name": "Expand", "icon": "🌱"},
            {"id": "till", "name": "Till", "icon": "🌿"},
            {
                "id": "develop",
                "name": "Develop",
                "icon": "🏗️",
            },
            {
                "id": "harvest",
                "name": "Harvest",
                "icon": "🧺",
                "effects": [
                    {
                        "evaluator": {"type": "development", "params": {"id": "farm"}},
                        "effects": [
                            {"type": "resource", "method": "add", "params": {"key": "gold", "amount": 2}},
                        ],
                    }
                ],
            },
        ]
    )


def _land(land_id, slots_max=1, developments=()):
    return {"id": land_id, "slotsMax": slots_max, "slotsUsed": len(developments), "developments": list(developments)}


def _player_state(gold=10, lands=None, stats=None, buildings=(), passives=()):
    return {
        "resources": {"gold": gold},
        "stats": dict(stats or {}),
        "buildings": list(buildings),
        "lands": list(lands if lands is not None else [_land("A")]),
        "passives": list(passives),
    }


@pytest.fixture
def make_land():
    """Factory for raw land records as the rules engine reports them."""
    return _land


@pytest.fixture
def make_state():
    """Factory for raw player state records."""
    return _player_state


@pytest.fixture
def plow_states():
    """States around a Plow that pays 3 gold, expands and tills.

    Returns (before, after, expand trace states, till trace states).
    """
    start = _player_state(gold=10, lands=[_land("A")])
    paid = _player_state(gold=7, lands=[_land("A")])
    expanded = _player_state(gold=7, lands=[_land("A"), _land("B")])
    tilled = _player_state(gold=7, lands=[_land("A"), _land("B", slots_max=2)])
    return start, tilled, (paid, expanded), (expanded, tilled)
