"""Command-line entry point for pod triage.

Usage:
    uv run podtriage                 # One triage run, digest printed to stdout
    uv run podtriage --no-email      # Same, without sending the email
    uv run podtriage --schedule      # Run on TRIAGE_SCHEDULE_CRON until interrupted
"""

import argparse
import asyncio
import logging
import sys

from prometheus_client import start_http_server
from pydantic import ValidationError

from podtriage.cluster.client import FetchError
from podtriage.config import get_settings
from podtriage.report.generator import run_triage
from podtriage.report.scheduler import start_scheduler, stop_scheduler


async def _run_once(send_email: bool) -> int:
    """Run one triage pass and print the digest. Returns the process exit code."""
    try:
        report = await run_triage("manual", send_email=send_email)
    except FetchError as e:
        print(f"Failed to fetch pods: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Triage run failed: {e}", file=sys.stderr)
        return 1
    print(report.digest)
    return 0


async def _run_scheduled() -> int:
    """Serve metrics and run triage on the configured cron until cancelled."""
    settings = get_settings()
    if not start_scheduler():
        print("TRIAGE_SCHEDULE_CRON is not set; nothing to schedule.", file=sys.stderr)
        return 1
    _ = start_http_server(settings.metrics_port)
    print(f"Scheduler running (cron: {settings.triage_schedule_cron}), metrics on :{settings.metrics_port}")
    try:
        await asyncio.Event().wait()
    finally:
        stop_scheduler()
    return 0


def main() -> None:
    """Parse args, validate configuration, and run."""
    parser = argparse.ArgumentParser(description="Triage unhealthy Kubernetes pods and email a report")
    parser.add_argument("--schedule", action="store_true", help="Run on TRIAGE_SCHEDULE_CRON until interrupted")
    parser.add_argument("--no-email", action="store_true", help="Do not email the digest")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at INFO level")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        _ = get_settings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        print("Check KUBE_API_SERVER, KUBE_TOKEN and OPENAI_API_KEY are set.", file=sys.stderr)
        sys.exit(1)

    try:
        if args.schedule:
            code = asyncio.run(_run_scheduled())
        else:
            code = asyncio.run(_run_once(send_email=not args.no_email))
    except KeyboardInterrupt:
        print("\nStopped.")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
