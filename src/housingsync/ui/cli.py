from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from housingsync.app import (
    approve_apartment,
    approve_key,
    build_unit_of_work_factory,
    reject_key,
    review_campaign,
)
from housingsync.config import Backend, ConfigurationError, configure_logging
from housingsync.domain.reconciliation import changesets_to_dicts

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Review housing update form responses")
    parser.add_argument(
        "--backend",
        choices=[backend.value for backend in Backend],
        help="Storage backend (defaults to HOUSINGSYNC_BACKEND, then sqlite)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    review = subparsers.add_parser("review", help="Print pending changes as JSON")
    review.add_argument("--campaign", required=True, help="Campaign key of the form responses")

    approve = subparsers.add_parser("approve", help="Apply one change")
    approve.add_argument("--campaign", required=True, help="Campaign key of the form responses")
    approve.add_argument("--key", required=True, help="Change key from the review output")

    reject = subparsers.add_parser("reject", help="Dismiss one change for good")
    reject.add_argument("--campaign", required=True, help="Campaign key of the form responses")
    reject.add_argument("--key", required=True, help="Change key from the review output")

    approve_all = subparsers.add_parser(
        "approve-all", help="Apply every field change proposed for one apartment"
    )
    approve_all.add_argument(
        "--campaign", required=True, help="Campaign key of the form responses"
    )
    approve_all.add_argument("--apartment", required=True, help="Apartment ID")

    return parser.parse_args(list(argv))


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))  # noqa: T201


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    # argparse exits with status 2 on usage errors
    parsed_args = _parse_args(args_list)
    try:
        backend = Backend(parsed_args.backend) if parsed_args.backend else None
        factory = build_unit_of_work_factory(backend)
        if parsed_args.command == "review":
            changesets = review_campaign(parsed_args.campaign, unit_of_work_factory=factory)
            _print_json(changesets_to_dicts(changesets))
        elif parsed_args.command == "approve":
            target = approve_key(
                parsed_args.campaign, parsed_args.key, unit_of_work_factory=factory
            )
            log.info("Approved %s", target.key)
        elif parsed_args.command == "reject":
            target = reject_key(
                parsed_args.campaign, parsed_args.key, unit_of_work_factory=factory
            )
            log.info("Rejected %s", target.reject_marker)
        elif parsed_args.command == "approve-all":
            report = approve_apartment(
                parsed_args.campaign, parsed_args.apartment, unit_of_work_factory=factory
            )
            _print_json({"applied": report.applied, "failed": report.failed})
            if not report.ok:
                sys.exit(1)
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during review")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
