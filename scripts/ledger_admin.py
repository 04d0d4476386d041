"""Maintenance commands for the notification and credit ledgers."""

from __future__ import annotations

import argparse
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from careerzone.application.use_cases.credits import CreditLedger
from careerzone.config import get_settings
from careerzone.infrastructure.database import SessionLocal, initialize_database
from careerzone.infrastructure.retention import NotificationRetentionSweeper
from careerzone.infrastructure.security import create_access_token


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""

    parser = argparse.ArgumentParser(
        description="Maintenance tasks for the CareerZone ledger service.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    token = subparsers.add_parser("token", help="Print a bearer token for a user id")
    token.add_argument("user_id")
    token.add_argument(
        "--minutes",
        type=int,
        default=60,
        help="Token lifetime in minutes (default: 60)",
    )

    purge = subparsers.add_parser("purge", help="Delete notifications past retention")
    purge.add_argument(
        "--retention-days",
        type=int,
        default=None,
        help="Override NOTIFICATION_RETENTION_DAYS for this run",
    )

    verify = subparsers.add_parser(
        "verify", help="Replay an actor's credit history against the stored balance"
    )
    verify.add_argument("actor_ids", nargs="+")
    return parser.parse_args()


def _purge(retention_days: int | None) -> None:
    settings = get_settings()
    sweeper = NotificationRetentionSweeper(
        SessionLocal,
        retention_days=retention_days or settings.notification_retention_days,
        interval_seconds=0,
    )
    print(f"Deleted {sweeper.sweep_once()} expired notifications")


def _verify(actor_ids: list[str]) -> None:
    failed = []
    with SessionLocal() as session:
        ledger = CreditLedger(session)
        for actor_id in actor_ids:
            consistent = ledger.verify_history(actor_id)
            print(f"  {actor_id}: {'ok' if consistent else 'MISMATCH'} (balance {ledger.get_balance(actor_id)})")
            if not consistent:
                failed.append(actor_id)
    if failed:
        raise SystemExit(f"Ledger mismatch for: {', '.join(failed)}")


def main() -> None:
    args = parse_args()

    if args.command == "token":
        print(create_access_token(args.user_id, timedelta(minutes=args.minutes)))
        return

    initialize_database()
    try:
        if args.command == "purge":
            _purge(args.retention_days)
        else:
            _verify(args.actor_ids)
    except SQLAlchemyError as exc:
        raise SystemExit(f"Database error: {exc}") from exc


if __name__ == "__main__":
    main()
