from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from dotenv import load_dotenv

from dogrula.app import (
    add_report_support,
    approve,
    classify_query,
    create_blacklist_entry,
    create_business,
    escalate_report,
    init_database,
    reject,
    resolve_query,
    search_directory,
    submit_application,
    submit_report,
    update_blacklist_entry,
    update_business,
    update_report,
)
from dogrula.config import ConfigurationError, configure_logging
from dogrula.domain.errors import DirectoryError, ValidationError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

PAYLOAD_COMMANDS = {
    "submit-application": submit_application,
    "submit-report": submit_report,
    "create-business": create_business,
    "create-blacklist": create_blacklist_entry,
}
UPDATE_COMMANDS = {
    "update-report": update_report,
    "update-business": update_business,
    "update-blacklist": update_blacklist_entry,
}


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify businesses against the directory")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create the database tables")

    classify = subparsers.add_parser("classify", help="Show how a query would be interpreted")
    classify.add_argument("query", help="Name, phone, handle, profile URL or website")
    classify.add_argument("--hint", help="Expected query type, e.g. phone or instagram_url")

    resolve = subparsers.add_parser("resolve", help="Look a query up: verified, blacklist or none")
    resolve.add_argument("query")
    resolve.add_argument("--hint")
    resolve.add_argument("--limit", type=int, help="Maximum verified matches (defaults to config)")

    search = subparsers.add_parser("search", help="Free-text directory search")
    search.add_argument("query")
    search.add_argument("--limit", type=int, help="Maximum results (defaults to config)")
    search.add_argument(
        "--by-rating",
        action="store_true",
        help="Order by internal, then external rating instead of recency",
    )

    approve_cmd = subparsers.add_parser("approve", help="Promote an application to a business")
    approve_cmd.add_argument("application_id")

    reject_cmd = subparsers.add_parser("reject", help="Reject a pending application")
    reject_cmd.add_argument("application_id")
    reject_cmd.add_argument("--reason")

    support = subparsers.add_parser("support", help="Endorse a report once per fingerprint")
    support.add_argument("report_id")
    support.add_argument("fingerprint")

    escalate = subparsers.add_parser("escalate", help="Move a report to the blacklist")
    escalate.add_argument("report_id")

    for name, handler in PAYLOAD_COMMANDS.items():
        command = subparsers.add_parser(name, help=handler.__doc__ or name.replace("-", " "))
        command.add_argument(
            "payload",
            help="JSON object, or @path to a file containing one",
        )

    for name, handler in UPDATE_COMMANDS.items():
        command = subparsers.add_parser(name, help=handler.__doc__ or name.replace("-", " "))
        command.add_argument("record_id")
        command.add_argument("payload", help="JSON object with the fields to change, or @path")

    return parser.parse_args(argv)


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid id: {value!r}", fields={"id": "invalid"}) from exc


def _load_payload(raw: str) -> dict[str, Any]:
    text = Path(raw[1:]).read_text(encoding="utf-8") if raw.startswith("@") else raw
    try:
        loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Payload is not valid JSON: {exc.msg}") from exc
    if not isinstance(loaded, dict):
        raise ValidationError("Payload must be a JSON object")
    return loaded


def _to_jsonable(value: object) -> object:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            field.name: _to_jsonable(getattr(value, field.name))
            for field in dataclasses.fields(value)
        }
    if isinstance(value, list | tuple | frozenset | set):
        return [_to_jsonable(item) for item in value]
    return value


def _emit(value: object) -> None:
    print(json.dumps(_to_jsonable(value), default=str, ensure_ascii=False, indent=2))  # noqa: T201


def _run(args: argparse.Namespace) -> object:  # noqa: PLR0911
    command = args.command
    if command == "init-db":
        init_database()
        return {"initialised": True}
    if command == "classify":
        return classify_query(args.query, args.hint)
    if command == "resolve":
        return resolve_query(args.query, args.hint, args.limit)
    if command == "search":
        return search_directory(args.query, limit=args.limit, by_rating=args.by_rating)
    if command == "approve":
        return approve(_parse_uuid(args.application_id))
    if command == "reject":
        return reject(_parse_uuid(args.application_id), args.reason)
    if command == "support":
        return add_report_support(_parse_uuid(args.report_id), args.fingerprint)
    if command == "escalate":
        return escalate_report(_parse_uuid(args.report_id))
    if command in PAYLOAD_COMMANDS:
        return PAYLOAD_COMMANDS[command](_load_payload(args.payload))
    if command in UPDATE_COMMANDS:
        return UPDATE_COMMANDS[command](_parse_uuid(args.record_id), _load_payload(args.payload))
    raise ValueError(f"Unsupported command: {command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        _emit(_run(parsed_args))
    except ValidationError as exc:
        log.error("Invalid input: %s %s", exc, exc.fields or "")  # noqa: TRY400
        sys.exit(2)
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except DirectoryError as exc:
        log.error("%s: %s", type(exc).__name__, exc)  # noqa: TRY400
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
