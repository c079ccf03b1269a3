"""Resolution engine module - snapshots, diffs, deduplication, timelines and rendering."""

from .composer import (
    ActionResolutionResult,
    ResolutionComposer,
    build_action_cost_lines,
    build_action_resolution,
    build_phase_resolution,
    ensure_timeline_lines,
)
from .dedup import filter_action_diff_changes, filter_change_tree, normalize_line
from .diff import diff_step_snapshots
from .logging import LogEntry, ResolutionLog, ResolutionLogger
from .render import (
    RenderedLine,
    build_action_log_timeline,
    build_develop_action_log_timeline,
    format_action_log_lines,
    format_develop_action_log_lines,
    format_timeline_lines,
    render_timeline,
)
from .replay import RecordedAction, replay_recorded_actions
from .resolution import (
    ActionResolution,
    PlayerRef,
    ResolutionActionMeta,
    ResolutionSourceDetail,
    SourceKind,
    create_resolution,
)
from .sections import TimelineEntry, build_resolution_timeline_entries
from .snapshots import snapshot_player
from .subactions import append_sub_action_changes
from .timeline import TimelineTree, build_timeline_tree, collect_timeline_items
from .types import (
    ActionDiffChange,
    ActionLogLineDescriptor,
    ActionTrace,
    DiffResult,
    LandSnapshot,
    LineKind,
    PlayerSnapshot,
)

__all__ = [
    "snapshot_player",
    "PlayerSnapshot",
    "LandSnapshot",
    "diff_step_snapshots",
    "DiffResult",
    "ActionDiffChange",
    "append_sub_action_changes",
    "ActionTrace",
    "normalize_line",
    "filter_action_diff_changes",
    "filter_change_tree",
    "build_timeline_tree",
    "collect_timeline_items",
    "TimelineTree",
    "ActionLogLineDescriptor",
    "LineKind",
    "RenderedLine",
    "render_timeline",
    "format_timeline_lines",
    "build_action_log_timeline",
    "build_develop_action_log_timeline",
    "format_action_log_lines",
    "format_develop_action_log_lines",
    "TimelineEntry",
    "build_resolution_timeline_entries",
    "ensure_timeline_lines",
    "build_action_cost_lines",
    "build_action_resolution",
    "build_phase_resolution",
    "ActionResolutionResult",
    "ResolutionComposer",
    "ActionResolution",
    "PlayerRef",
    "ResolutionActionMeta",
    "ResolutionSourceDetail",
    "SourceKind",
    "create_resolution",
    "ResolutionLog",
    "ResolutionLogger",
    "LogEntry",
    "RecordedAction",
    "replay_recorded_actions",
]
