"""Sequential replay of recorded actions (e.g., turns played by an AI opponent)."""

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .composer import LineEntry, ResolutionComposer
from .logging import ResolutionLogger
from .resolution import ActionResolution, PlayerRef
from .types import ActionTrace

logger = logging.getLogger(__name__)

Presenter = Callable[[ActionResolution], Awaitable[None]]


@dataclass
class RecordedAction:
    """An action executed elsewhere, with the state around it."""

    action_id: str
    player: PlayerRef
    turn: int
    sequence: int  # Order within the turn
    content_lines: list[LineEntry] = field(default_factory=list)
    before: Any = None
    after: Any = None
    traces: list[ActionTrace] = field(default_factory=list)
    costs: Mapping[str, float | None] = field(default_factory=dict)


def fallback_line(action_id: str) -> str:
    """Log line used when a recorded action cannot be rendered."""
    return f"AI played {action_id}"


def _build(entry: RecordedAction, composer: ResolutionComposer) -> ActionResolution | None:
    if entry.before is None or entry.after is None:
        logger.debug("Recorded action %s has no state", entry.action_id)
        return None
    if composer.content.get_action(entry.action_id) is None:
        logger.debug("Recorded action %s is not in the content context", entry.action_id)
        return None
    return composer.compose_action(
        entry.action_id,
        entry.content_lines,
        entry.before,
        entry.after,
        traces=entry.traces,
        costs=entry.costs,
        player=entry.player,
    )


async def replay_recorded_actions(
    entries: Iterable[RecordedAction],
    composer: ResolutionComposer,
    present: Presenter,
    log: ResolutionLogger | None = None,
) -> list[ActionResolution]:
    """Present recorded actions one at a time, in (turn, sequence) order.

    Each resolution is fully presented before the next one is built. An
    action that cannot be rendered is logged as a single fallback line.

    Args:
        entries: Recorded actions, in any order
        composer: Composer used to build each resolution
        present: Coroutine that shows a resolution and returns once it is acknowledged
        log: Log sink receiving presented resolutions and fallback lines

    Returns:
        Resolutions that were presented, in presentation order
    """
    presented: list[ActionResolution] = []
    for entry in sorted(entries, key=lambda e: (e.turn, e.sequence)):
        resolution = _build(entry, composer)
        if resolution is None:
            if log is not None:
                log.add_text(fallback_line(entry.action_id), entry.player)
            continue
        await present(resolution)
        presented.append(resolution)
        if log is not None:
            log.add_resolution(resolution, entry.player)
    return presented
