from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from membersync.app import (
    create_membership,
    delete_membership,
    read_membership,
    update_membership,
)
from membersync.config import ConfigurationError, configure_logging
from membersync.domain.errors import (
    AmbiguousDeclarationError,
    PartialApplyError,
    UnresolvedMembersError,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from membersync.domain.model import MembershipSnapshot

log = logging.getLogger(__name__)


def _add_members_arguments(
    parser: argparse.ArgumentParser,
    *,
    names_flag: str = "--name",
    identifiers_flag: str = "--id",
    required: bool = True,
    help_suffix: str = "",
) -> None:
    group = parser.add_mutually_exclusive_group(required=required)
    group.add_argument(
        names_flag,
        dest=names_flag.lstrip("-").replace("-", "_") + "s",
        action="append",
        metavar="NAME",
        help=f"Member name{help_suffix} (repeatable)",
    )
    group.add_argument(
        identifiers_flag,
        dest=identifiers_flag.lstrip("-").replace("-", "_") + "s",
        action="append",
        metavar="ID",
        help=f"Member identifier{help_suffix} (repeatable)",
    )


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile group membership with the authority")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log remote calls and retry decisions",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Add the declared members to a group")
    create.add_argument("--group", type=str, required=True, help="Group handle")
    _add_members_arguments(create)

    read = subparsers.add_parser("read", help="Report the current membership of a group")
    read.add_argument("--group", type=str, required=True, help="Group handle")
    _add_members_arguments(
        read,
        names_flag="--record-name",
        identifiers_flag="--record-id",
        required=False,
        help_suffix=" from the local record",
    )

    update = subparsers.add_parser("update", help="Move a group from one declaration to another")
    update.add_argument("--group", type=str, required=True, help="Group handle")
    _add_members_arguments(
        update,
        names_flag="--old-name",
        identifiers_flag="--old-id",
        help_suffix=" of the previous declaration",
    )
    _add_members_arguments(update)

    delete = subparsers.add_parser("delete", help="Remove the declared members from a group")
    delete.add_argument("--group", type=str, required=True, help="Group handle")
    _add_members_arguments(delete)

    return parser.parse_args(list(argv))


def _emit(snapshot: MembershipSnapshot) -> None:
    sys.stdout.write(json.dumps(snapshot.as_dict(), sort_keys=True) + "\n")


def _run_command(parsed_args: argparse.Namespace) -> MembershipSnapshot:
    command = parsed_args.command
    if command == "create":
        return create_membership(
            parsed_args.group,
            names=parsed_args.names,
            identifiers=parsed_args.ids,
        )
    if command == "read":
        return read_membership(
            parsed_args.group,
            record_names=parsed_args.record_names,
            record_identifiers=parsed_args.record_ids,
        )
    if command == "update":
        return update_membership(
            parsed_args.group,
            old_names=parsed_args.old_names,
            old_identifiers=parsed_args.old_ids,
            names=parsed_args.names,
            identifiers=parsed_args.ids,
        )
    if command == "delete":
        return delete_membership(
            parsed_args.group,
            names=parsed_args.names,
            identifiers=parsed_args.ids,
        )
    raise ValueError(f"Unsupported command: {command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        snapshot = _run_command(parsed_args)
    except (ValueError, AmbiguousDeclarationError, ConfigurationError):
        log.exception("CLI validation error")
        sys.exit(2)
    except (UnresolvedMembersError, PartialApplyError) as exc:
        log.exception("Membership %s finished with errors", parsed_args.command)
        if exc.snapshot is not None:
            _emit(exc.snapshot)
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during %s", parsed_args.command)
        sys.exit(1)

    _emit(snapshot)


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
