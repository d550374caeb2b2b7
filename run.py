import argparse
import logging
import os
import sys

from multilog.commands import CommandDispatcher
from multilog.engine import Engine

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "WARNING").upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Read insert/delete/find commands from stdin and apply them to a data file."
    )
    parser.add_argument(
        "--data-file",
        default="storage.db",
        help="Path of the data file (created if missing, default: storage.db)",
    )
    parser.add_argument(
        "--sync-writes",
        action="store_true",
        help="fsync the data file after every write",
    )
    parser.add_argument(
        "--truncate-garbage",
        action="store_true",
        help="Drop unreadable trailing bytes found when opening the data file",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    with Engine(
        args.data_file,
        sync_writes=args.sync_writes,
        truncate_garbage=args.truncate_garbage,
    ) as engine:
        dispatcher = CommandDispatcher(engine)
        count = dispatcher.run(sys.stdin, sys.stdout)
        logger.info(f"Executed {count} commands against {engine.file_path}")
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass
