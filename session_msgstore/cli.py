"""Inspect or reset a file-backed session store.

Usage:
    session-msgstore info /var/lib/msgstore FIX.4.4-SENDER-TARGET
    session-msgstore dump /var/lib/msgstore FIX.4.4-SENDER-TARGET --begin 10 --end 20
    session-msgstore reset /var/lib/msgstore FIX.4.4-SENDER-TARGET --yes
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from .exceptions import MessageStoreError
from .local import FileStore
from .logging_utils import configure_structured_logging
from .sequence_cache import MAX_SEQ_NUM


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="session-msgstore",
        description="Inspect or reset a file-backed session message store",
    )
    parser.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("info", "Show creation time and sequence numbers"),
        ("dump", "Print stored messages"),
        ("reset", "Wipe the session history and counters"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("directory", type=Path, help="Storage directory")
        sub.add_argument("session_id", help="Session identifier")
        if name == "dump":
            sub.add_argument("--begin", type=int, default=1, help="First sequence number")
            sub.add_argument("--end", type=int, default=MAX_SEQ_NUM, help="Last sequence number")
        if name == "reset":
            sub.add_argument("--yes", action="store_true", help="Confirm the reset")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    if args.json_logs:
        configure_structured_logging(logging.DEBUG)

    if args.command == "reset" and not args.yes:
        print("Refusing to reset without --yes", file=sys.stderr)
        return 2

    try:
        with FileStore.open(args.session_id, args.directory) as store:
            if args.command == "info":
                print(
                    json.dumps(
                        {
                            "session_id": store.session_id,
                            "creation_time": store.creation_time().isoformat(),
                            "next_sender_seq_num": store.next_sender_seq_num(),
                            "next_target_seq_num": store.next_target_seq_num(),
                        }
                    )
                )
            elif args.command == "dump":
                for seq_num, message in store.iter_messages(args.begin, args.end):
                    print(f"{seq_num}\t{message.decode('utf-8', errors='replace')}")
            else:
                store.reset()
                print(f"Reset session {store.session_id}")
    except MessageStoreError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
