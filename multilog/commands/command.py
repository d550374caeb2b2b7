import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

# ASCII decimal integer with optional sign, nothing else
INTEGER_TOKEN = re.compile(r"[+-]?[0-9]+")


def parse_int(token: str) -> int:
    """Parse a strict ASCII integer token, raising ValueError otherwise."""
    if not INTEGER_TOKEN.fullmatch(token):
        raise ValueError(f"not an integer: {token!r}")
    return int(token)


class CommandKind(str, Enum):
    INSERT = "insert"
    DELETE = "delete"
    FIND = "find"


# Number of positional arguments each command takes
ARITY = {
    CommandKind.INSERT: 2,
    CommandKind.DELETE: 2,
    CommandKind.FIND: 1,
}


@dataclass
class Command:
    kind: CommandKind
    key: str
    value: int | None = None

    def __str__(self) -> str:
        if self.value is None:
            return f"{self.kind.value} {self.key}"
        return f"{self.kind.value} {self.key} {self.value}"


def tokenize(lines: Iterable[str]) -> Iterator[str]:
    """Split a line-oriented input stream into whitespace separated tokens."""
    for line in lines:
        yield from line.split()


def parse_commands(tokens: Iterable[str]) -> Iterator[Command]:
    """
    Parse a token stream into commands.

    If the first token is an integer it is taken as the number of
    commands to read; reading stops after that many. Unknown command
    words and commands with a non-integer value are logged and skipped.

    Args:
        tokens: Whitespace separated tokens.

    Yields:
        Parsed commands, in input order.
    """
    tokens = iter(tokens)
    first = next(tokens, None)
    if first is None:
        return

    limit: int | None = None
    pending: str | None = first
    try:
        limit = parse_int(first)
        pending = None
    except ValueError:
        pass

    seen = 0
    while limit is None or seen < limit:
        word = pending if pending is not None else next(tokens, None)
        pending = None
        if word is None:
            break

        seen += 1
        try:
            kind = CommandKind(word)
        except ValueError:
            logger.warning(f"Skipping unknown command: {word!r}")
            continue

        args = [next(tokens, None) for _ in range(ARITY[kind])]
        if None in args:
            logger.warning(f"Missing arguments for {kind.value}, stopping")
            break

        if kind == CommandKind.FIND:
            yield Command(kind=kind, key=args[0])
            continue

        try:
            value = parse_int(args[1])
        except ValueError:
            logger.warning(f"Skipping {kind.value} {args[0]}: value {args[1]!r} is not an integer")
            continue

        yield Command(kind=kind, key=args[0], value=value)
