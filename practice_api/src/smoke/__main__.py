"""
Command line entry point.

Usage:
    python -m practice_api.src.smoke [--authenticated] [--start-server] [--json]
"""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

import structlog

from practice_api.src.config import get_settings
from practice_api.src.smoke.runner import (
    ServerProcess,
    SmokeAuthError,
    render_summary,
    run_anonymous,
    run_authenticated,
)
from shared.logging import configure_logging
from shared.metrics import SmokeMetrics

logger = structlog.get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m practice_api.src.smoke",
        description="Check every feature endpoint group in parallel.",
    )
    parser.add_argument(
        "--authenticated",
        action="store_true",
        help="log in (registering the smoke account if needed) before checking",
    )
    parser.add_argument(
        "--start-server",
        action="store_true",
        help="start the API under uvicorn when it is not already healthy",
    )
    parser.add_argument("--base-url", help="server root, overrides PRACTICE_API_SMOKE_BASE_URL")
    parser.add_argument("--json", action="store_true", help="print the summary as JSON")
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.base_url:
        settings = settings.model_copy(update={"smoke_base_url": args.base_url.rstrip("/")})

    metrics = SmokeMetrics()
    runner = run_authenticated if args.authenticated else run_anonymous
    title = "AUTHENTICATED SMOKE TEST SUMMARY" if args.authenticated else "SMOKE TEST SUMMARY"

    try:
        if args.start_server:
            async with ServerProcess(settings):
                summary = await runner(settings, metrics)
        else:
            summary = await runner(settings, metrics)
    except SmokeAuthError as e:
        logger.error("smoke_authentication_failed", error=str(e))
        print(f"Authentication failed: {e}", file=sys.stderr)
        return 1
    except RuntimeError as e:
        logger.error("smoke_server_unavailable", error=str(e))
        print(str(e), file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print(render_summary(summary, title))
    return summary.exit_code


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(log_level=args.log_level, json_logs=False)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
