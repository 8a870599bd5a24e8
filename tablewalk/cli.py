"""tablewalk command line: run a scenario from a markdown document.

    tablewalk world.md --scenario "Generate World" --seed beep1
    tablewalk world.md --format json --max-steps 200
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from tablewalk.config import load_config
from tablewalk.errors import TablewalkError
from tablewalk.journey import Journey
from tablewalk.markdown import load_markdown_file
from tablewalk.rng import SeededRNG

logger = logging.getLogger(__name__)


def _parse_seed(raw: int | str | None) -> int | str | None:
    """Digit-only seeds are integer seeds; anything else hashes as a string."""
    if isinstance(raw, str) and raw.isdigit():
        return int(raw)
    return raw


def _format_tags(tags: dict[str, int | float]) -> str:
    return ", ".join(f"{name}:{value}" for name, value in tags.items())


def format_text(journey: Journey) -> str:
    """One line per step: roll, table / entry and the tags after that step."""
    lines = []
    for step in journey.path:
        lines.append(f"{step.roll:>4}  {step.table_name} / {step.entry}  [{_format_tags(step.tags)}]")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tablewalk",
        description="Roll a journey through the tables and scenarios of a markdown document",
    )
    parser.add_argument("document", type=Path, help="Markdown file with tables and scenarios")
    parser.add_argument("--scenario", default=None,
                        help="Scenario to run (default: the first one in the document)")
    parser.add_argument("--seed", default=None,
                        help="Seed for reproducible journeys (default: random)")
    parser.add_argument("--max-steps", type=int, default=None,
                        help="Abort runs longer than this many steps (0: no cap)")
    parser.add_argument("--format", dest="output_format", choices=["text", "json"], default=None,
                        help="Output format (default: text)")
    parser.add_argument("--config", type=Path, default=None,
                        help="JSON config file")
    parser.add_argument("--log-level", default=None,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging level (default: WARNING)")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except TablewalkError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=args.log_level or config.log_level,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.max_steps is None:
        max_steps = config.max_steps
    else:
        max_steps = args.max_steps or None
    seed = _parse_seed(args.seed if args.seed is not None else config.seed)
    output_format = args.output_format or config.output_format

    try:
        document = load_markdown_file(args.document, max_steps=max_steps)
        scenario = document.scenario(args.scenario)
        rng = SeededRNG(seed)
        scenario.rng = rng
        journey = scenario.run()
    except (TablewalkError, KeyError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    logger.info("scenario %r produced %d steps", scenario.name, len(journey.path))
    if output_format == "json":
        payload = {"scenario": scenario.name, "seed": rng.seed, **journey.to_dict()}
        print(json.dumps(payload, indent=2))
    else:
        print(format_text(journey))
    return 0


if __name__ == "__main__":
    sys.exit(main())
