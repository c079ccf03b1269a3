"""Game log sink for finished resolutions.

Keeps an ordered, bounded list of resolutions as players would see them
in the game log:
- Resolutions are stored complete and non-blocking
- Consecutive reports of the same phase step are merged
- Entries beyond the configured limit are trimmed
- Players can be renamed after the fact
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from ..config import Settings, get_settings
from .resolution import (
    ActionResolution,
    PlayerRef,
    ResolutionSourceDetail,
    create_resolution,
    is_phase_source,
    resolve_phase_identifier,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass
class LogEntry:
    """A single log entry holding one resolution."""

    id: int
    time: str
    player_id: str
    resolution: ActionResolution

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "time": self.time,
            "player_id": self.player_id,
            "resolution": self.resolution.to_dict(),
        }


@dataclass
class ResolutionLog:
    """Ordered log of resolutions for one game session."""

    entries: list[LogEntry] = field(default_factory=list)
    overflowed: bool = False  # Set once entries have been trimmed

    def __len__(self) -> int:
        return len(self.entries)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "overflowed": self.overflowed,
            "entries": [entry.to_dict() for entry in self.entries],
        }

    def get_entries_for_player(self, player_id: str) -> list[LogEntry]:
        """Get all entries for a specific player."""
        return [e for e in self.entries if e.player_id == player_id]

    def format_readable(self) -> str:
        """Format the log in a human-readable format."""
        lines: list[str] = ["=== Game Log ==="]
        if self.overflowed:
            lines.append("(older entries trimmed)")

        for entry in self.entries:
            player = entry.resolution.player
            name = player.name if player else entry.player_id
            lines.append("")
            lines.append(f"[{entry.time}] {name}")
            lines.extend(f"  {line}" for line in entry.resolution.lines)

        return "\n".join(lines)


def should_merge_phase_resolution(previous: LogEntry, resolution: ActionResolution, player_id: str) -> bool:
    """Check whether a resolution continues the previous entry's phase step.

    Merging requires the same player, phase source details with the same
    identity on both sides, and the new lines extending the previous ones.
    A bare "phase" source string carries no identity and never merges.
    """
    if previous.player_id != player_id:
        return False
    sources = (previous.resolution.source, resolution.source)
    if not all(isinstance(source, ResolutionSourceDetail) and is_phase_source(source) for source in sources):
        return False
    previous_identity = resolve_phase_identifier(sources[0])
    if previous_identity is None or previous_identity != resolve_phase_identifier(sources[1]):
        return False
    previous_lines = previous.resolution.lines
    return resolution.lines[: len(previous_lines)] == previous_lines


def clone_resolution(resolution: ActionResolution, player: PlayerRef) -> ActionResolution:
    """Copy of a resolution as stored in the log: fully visible and non-blocking."""
    return replace(
        resolution.reveal_all(),
        is_complete=True,
        require_acknowledgement=False,
        player=player,
    )


class ResolutionLogger:
    """Writer for a ResolutionLog.

    Usage:
        log = ResolutionLogger(default_player=PlayerRef(id="A", name="Alice"))
        log.add_resolution(resolution)
        log.add_text("AI played expand")
        print(log.get_log().format_readable())
    """

    def __init__(
        self,
        default_player: PlayerRef | None = None,
        settings: Settings | None = None,
        clock: Clock = datetime.now,
    ) -> None:
        """Initialize an empty log.

        Args:
            default_player: Player credited when a resolution names none
            settings: Log settings (defaults to the cached settings)
            clock: Source of entry timestamps
        """
        self.default_player = default_player
        self.settings = settings or get_settings()
        self._clock = clock
        self._log = ResolutionLog()
        self._next_id = 0

    def get_log(self) -> ResolutionLog:
        """Get the complete log."""
        return self._log

    def clear(self) -> None:
        """Clear all log entries."""
        self._log.entries.clear()
        self._log.overflowed = False
        self._next_id = 0

    def _timestamp(self) -> str:
        return self._clock().strftime("%H:%M:%S")

    def add_resolution(self, resolution: ActionResolution, player: PlayerRef | None = None) -> LogEntry | None:
        """Append a resolution, merging it into the last entry when it continues the same phase.

        Args:
            resolution: Finished resolution
            player: Player to credit; defaults to the resolution's player, then the default player

        Returns:
            The new or merged entry, or None when no player could be resolved
        """
        resolved = player or resolution.player or self.default_player
        if resolved is None:
            logger.debug("Dropping resolution %r with no player", resolution.headline)
            return None

        snapshot = clone_resolution(resolution, resolved)
        entries = self._log.entries
        if entries and should_merge_phase_resolution(entries[-1], snapshot, resolved.id):
            merged = replace(entries[-1], time=self._timestamp(), resolution=snapshot)
            entries[-1] = merged
            return merged

        entry = LogEntry(id=self._next_id, time=self._timestamp(), player_id=resolved.id, resolution=snapshot)
        self._next_id += 1
        entries.append(entry)
        self._trim()
        return entry

    def add_text(self, lines: str | Iterable[str], player: PlayerRef | None = None) -> LogEntry | None:
        """Append plain text lines as an action entry."""
        entries = [lines] if isinstance(lines, str) else list(lines)
        resolution = create_resolution(entries, source="action", require_acknowledgement=False)
        if resolution is None:
            return None
        return self.add_resolution(resolution, player)

    def _trim(self) -> None:
        limit = self.settings.max_log_entries
        excess = len(self._log.entries) - limit
        if excess > 0:
            del self._log.entries[:excess]
            self._log.overflowed = True
            logger.debug("Trimmed %d log entries", excess)

    def rename_players(self, names: Mapping[str, str]) -> int:
        """Update player names on existing entries.

        Args:
            names: Player id to current name

        Returns:
            Number of entries changed
        """
        changed = 0
        for index, entry in enumerate(self._log.entries):
            player = entry.resolution.player
            if player is None:
                continue
            name = names.get(player.id)
            if not name or name == player.name:
                continue
            resolution = replace(entry.resolution, player=replace(player, name=name))
            self._log.entries[index] = replace(entry, resolution=resolution)
            changed += 1
        return changed
