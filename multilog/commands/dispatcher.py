import logging
from collections.abc import Iterable
from typing import Callable, TextIO

from multilog.commands.command import Command, CommandKind, parse_commands, tokenize
from multilog.engine.engine import Engine

logger = logging.getLogger(__name__)

# Rendered by find when a key has no live values
NO_DATA = "null"


def render_values(values: list[int] | None) -> str:
    """Render a find result as space separated values, or the no-data token."""
    if not values:
        return NO_DATA
    return " ".join(str(v) for v in values)


class CommandDispatcher:
    """Applies parsed commands to an Engine and renders find results."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.handlers: dict[CommandKind, Callable[[Command], str | None]] = {
            CommandKind.INSERT: self._insert,
            CommandKind.DELETE: self._delete,
            CommandKind.FIND: self._find,
        }

    def _insert(self, command: Command) -> None:
        if not self.engine.insert(command.key, command.value):
            logger.debug(f"Already present: {command}")

    def _delete(self, command: Command) -> None:
        if not self.engine.delete(command.key, command.value):
            logger.debug(f"Nothing to delete: {command}")

    def _find(self, command: Command) -> str:
        return render_values(self.engine.find(command.key))

    def dispatch(self, command: Command) -> str | None:
        """
        Execute one command.

        Invalid arguments (oversized keys, values outside int32) are
        logged and the command is skipped.

        Returns:
            The output line for find, None for insert and delete.
        """
        logger.debug(f"--> {command}")
        try:
            return self.handlers[command.kind](command)
        except ValueError as e:
            logger.warning(f"Skipping {command}: {e}")
            return None

    def run(self, lines: Iterable[str], out: TextIO) -> int:
        """
        Execute every command in an input stream.

        Args:
            lines: Input lines, e.g. a text file or sys.stdin.
            out: Stream receiving one line per find command.

        Returns:
            The number of commands executed.
        """
        count = 0
        for command in parse_commands(tokenize(lines)):
            result = self.dispatch(command)
            if result is not None:
                out.write(result + "\n")
            count += 1
        out.flush()
        return count
