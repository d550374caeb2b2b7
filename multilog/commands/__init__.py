"""
Text command surface: insert <key> <value>, delete <key> <value>, find <key>.
"""

from multilog.commands.command import Command, CommandKind, parse_commands, tokenize
from multilog.commands.dispatcher import NO_DATA, CommandDispatcher, render_values

__all__ = [
    "Command",
    "CommandDispatcher",
    "CommandKind",
    "NO_DATA",
    "parse_commands",
    "render_values",
    "tokenize",
]
