"""
Run the injury report automation engine from the command line.

Usage:
    python run.py sweep                               # One escalation sweep
    python run.py trigger SUB-123                     # Run ON_SUBMIT automations
    python run.py trigger SUB-123 --kind ON_STATUS_CHANGE
    python run.py scheduler                           # Periodic sweeps until interrupted
"""
import argparse
import asyncio

from injury_automation.config.settings import settings
from injury_automation.domain.enums import TriggerKind
from injury_automation.engine import AutomationRunner, EscalationSweeper
from injury_automation.repositories.mongo_client import create_indexes, close_connection
from injury_automation.scheduler import start_scheduler, stop_scheduler
from injury_automation.utils.logger import setup_logging, get_logger

logger = get_logger(__name__)


def run_sweep(args: argparse.Namespace) -> None:
    result = EscalationSweeper().run_escalation_sweep()
    print(f"Automations checked:  {result.automations_checked}")
    print(f"Submissions checked:  {result.submissions_checked}")
    print(f"Escalations fired:    {result.escalations_fired}")
    print(f"Failures:             {result.failures}")


def run_trigger(args: argparse.Namespace) -> None:
    AutomationRunner().trigger(args.submission_id, TriggerKind(args.kind))
    print(f"Automations run for {args.submission_id} ({args.kind})")


async def _serve_scheduler() -> None:
    start_scheduler()
    try:
        # Sleep until cancelled; the scheduler runs on this loop
        await asyncio.Event().wait()
    finally:
        stop_scheduler()


def run_scheduler(args: argparse.Namespace) -> None:
    try:
        create_indexes()
    except Exception as e:
        logger.error(f"Failed to create indexes: {e}")

    print(f"Starting escalation scheduler (every {settings.escalation_sweep_interval_minutes} minutes)...")
    try:
        asyncio.run(_serve_scheduler())
    except KeyboardInterrupt:
        print("Scheduler stopped")


def main():
    parser = argparse.ArgumentParser(description="Injury report automation engine")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sweep_parser = subparsers.add_parser("sweep", help="Run one escalation sweep")
    sweep_parser.set_defaults(func=run_sweep)

    trigger_parser = subparsers.add_parser("trigger", help="Run automations for a submission")
    trigger_parser.add_argument("submission_id", type=str, help="Submission ID")
    trigger_parser.add_argument(
        "--kind",
        type=str,
        choices=[k.value for k in TriggerKind],
        default=TriggerKind.ON_SUBMIT.value,
        help="Trigger kind (default: ON_SUBMIT)"
    )
    trigger_parser.set_defaults(func=run_trigger)

    scheduler_parser = subparsers.add_parser("scheduler", help="Run escalation sweeps periodically")
    scheduler_parser.set_defaults(func=run_scheduler)

    args = parser.parse_args()

    setup_logging()
    try:
        args.func(args)
    finally:
        close_connection()


if __name__ == "__main__":
    main()
