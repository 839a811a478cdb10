"""
Console entry point.

Usage:
    rolloutscorer                              # run one cycle with env settings
    rolloutscorer --environment Production     # open a review pull request
    rolloutscorer --config scoring.yaml        # alternate scoring config

Exit codes follow rolloutscorer.core.errors.ExitCode.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Sequence

from rolloutscorer.config import Settings, get_settings
from rolloutscorer.core.errors import ExitCode, main_with_error_handling
from rolloutscorer.db.session import dispose_engine, init_engine
from rolloutscorer.logging import configure_logging
from rolloutscorer.workers.handler import run_cycle, summarize


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rolloutscorer", description="Score stabilized rollouts and publish scorecards"
    )
    parser.add_argument(
        "--environment",
        help="Deployment environment; only 'Production' opens a review pull request",
    )
    parser.add_argument("--config", help="Path to the scoring configuration YAML")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO)")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.environment:
        overrides["deployment_environment"] = args.environment
    if args.config:
        overrides["scoring_config_path"] = args.config
    return settings.model_copy(update=overrides) if overrides else settings


async def _run(settings: Settings) -> dict:
    init_engine(settings)
    try:
        return summarize(await run_cycle(settings))
    finally:
        await dispose_engine()


@main_with_error_handling()
def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level.upper())
    settings = apply_overrides(get_settings(), args)

    summary = asyncio.run(_run(settings))
    print(json.dumps(summary, indent=2))
    return ExitCode.SUCCESS


if __name__ == "__main__":
    raise SystemExit(main())
