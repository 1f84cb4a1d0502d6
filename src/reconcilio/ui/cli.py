from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv

from reconcilio.adapters.jsonl import iter_payloads, record_payload
from reconcilio.app import derive_payload_key, ingest_payloads, visit_payloads
from reconcilio.config import configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from reconcilio.domain.reconciliation import VisitResult

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile observed entity records")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    key = subparsers.add_parser("key", help="Print the canonical key of a record")
    key.add_argument("--kind", type=str, required=True, help="Entity kind, e.g. adobject")
    key.add_argument("--scope", type=str, required=True, help="Namespace scope (domain, tenant)")
    key.add_argument("--subtype", type=str, help="Kind subtype, e.g. aduser")
    key.add_argument("--strong", type=str, help="Strong identifier")
    key.add_argument("--weak", type=str, help="Weak identifier")

    visit = subparsers.add_parser(
        "visit",
        help="Fold one JSON record into another and print the result",
    )
    visit.add_argument("existing", type=Path, help="JSON file holding the existing record")
    visit.add_argument("visiting", type=Path, help="JSON file holding the visiting record")
    visit.add_argument("--actor", type=str, help="Name recorded on history entries")

    ingest = subparsers.add_parser(
        "ingest",
        help="Reconcile a JSONL stream of observations into the database",
    )
    ingest.add_argument("path", type=str, help="JSONL file, or '-' for stdin")
    ingest.add_argument("--actor", type=str, help="Name recorded on history entries")

    return parser.parse_args(list(argv))


def _load_json(path: Path) -> dict[str, Any]:
    try:
        loaded = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"{path}: invalid JSON ({exc})") from exc
    if not isinstance(loaded, dict):
        raise ValueError(f"{path}: expected a JSON object")
    return loaded  # pyright: ignore[reportUnknownVariableType]


def _visit_output(result: VisitResult) -> str:
    payload = {
        "outcome": result.outcome.value,
        "reason": result.match.reason.value,
        "previous_key": result.previous_key,
        "key": result.record.key,
        "changed": list(result.report.changed),
        "violations": [violation.field for violation in result.report.violations],
        "record": record_payload(result.record).model_dump(mode="json", exclude_none=True),
    }
    return json.dumps(payload, indent=2)


def _run(args: argparse.Namespace) -> None:
    if args.command == "key":
        payload = {
            "kind": args.kind,
            "scope": args.scope,
            "subtype": args.subtype,
            "strong": args.strong,
            "weak": args.weak,
        }
        sys.stdout.write(derive_payload_key(payload) + "\n")
    elif args.command == "visit":
        result = visit_payloads(
            _load_json(args.existing),
            _load_json(args.visiting),
            actor=args.actor,
        )
        sys.stdout.write(_visit_output(result) + "\n")
    elif args.command == "ingest":
        if args.path == "-":
            result = ingest_payloads(
                (payload for _, payload in iter_payloads(sys.stdin)), actor=args.actor
            )
        else:
            with Path(args.path).open(encoding="utf-8") as handle:
                result = ingest_payloads(
                    (payload for _, payload in iter_payloads(handle)), actor=args.actor
                )
        log.info("Ingested %d observations into %d records", result.processed, len(result.keys))
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=parsed_args.log_level)

    try:
        _run(parsed_args)
    except ValueError:
        log.exception("Validation error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
