"""Entry point for rendering a resolution log from a scenario file."""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from resolution_log.config import get_settings
from resolution_log.engine.composer import ResolutionComposer
from resolution_log.engine.resolution import ActionResolution
from resolution_log.scenario import Scenario

logger = logging.getLogger("resolution_log")


def render_scenario(scenario: Scenario) -> ActionResolution | None:
    """Build the resolution described by a scenario."""
    composer = ResolutionComposer(
        scenario.content_context(),
        scenario.diff_context(),
        resource_keys=scenario.resource_keys,
    )
    player = scenario.player.to_ref() if scenario.player else None
    traces = [trace.to_trace() for trace in scenario.traces]
    if scenario.action_id is not None or scenario.phase is None:
        return composer.compose_action(
            scenario.action_id or "",
            scenario.lines(),
            scenario.before,
            scenario.after,
            traces=traces,
            costs=scenario.costs,
            player=player,
        )
    return composer.compose_phase(
        scenario.phase,
        scenario.lines(),
        scenario.before,
        scenario.after,
        traces=traces,
        player=player,
    )


def main(argv: list[str] | None = None) -> int:
    """Render a scenario and print its log lines."""
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(prog="resolution-log", description=__doc__)
    parser.add_argument("scenario", type=Path, help="Path to a JSON scenario file")
    args = parser.parse_args(argv)

    try:
        data = json.loads(args.scenario.read_text(encoding="utf-8"))
        scenario = Scenario.model_validate(data)
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Could not read scenario %s: %s", args.scenario, e)
        return 1
    except ValidationError as e:
        logger.error("Invalid scenario %s:\n%s", args.scenario, e)
        return 1

    resolution = render_scenario(scenario)
    if resolution is None:
        logger.info("Nothing to report")
        return 0

    for line in resolution.lines:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
