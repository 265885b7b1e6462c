"""
Voice command routing.

A recognised phrase maps to exactly one Command by substring match against
a fixed-priority keyword table. Phrases can contain more than one keyword
("play it again, then stop"); the first row that matches wins.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Tuple


class Command(str, Enum):
    PLAY = "play"
    CONTINUE = "continue"
    REPEAT = "repeat"
    START_OVER = "start_over"
    STOP = "stop"
    NONE = "none"


# Priority order. Must not be reordered.
PRIORITY: Tuple[Command, ...] = (
    Command.PLAY,
    Command.CONTINUE,
    Command.REPEAT,
    Command.START_OVER,
    Command.STOP,
)

DEFAULT_KEYWORDS: Dict[Command, Tuple[str, ...]] = {
    Command.PLAY: ("play",),
    Command.CONTINUE: ("continue",),
    Command.REPEAT: ("repeat",),
    Command.START_OVER: ("start over",),
    Command.STOP: ("stop",),
}


def normalize_phrase(phrase: str) -> str:
    return (phrase or "").strip().lower()


class CommandRouter:
    """
    Fixed-priority keyword table.

    Extra keywords extend a command's set but never change the order in
    which commands are checked.
    """

    def __init__(self, extra_keywords: Optional[Mapping[Command, Iterable[str]]] = None):
        table: Dict[Command, Tuple[str, ...]] = dict(DEFAULT_KEYWORDS)
        for command, words in (extra_keywords or {}).items():
            if command not in table:
                raise ValueError(f"Cannot add keywords for {command!r}")
            cleaned = tuple(normalize_phrase(w) for w in words if normalize_phrase(w))
            table[command] = table[command] + tuple(w for w in cleaned if w not in table[command])
        self._table: Tuple[Tuple[Command, Tuple[str, ...]], ...] = tuple(
            (command, table[command]) for command in PRIORITY
        )

    @property
    def table(self) -> Tuple[Tuple[Command, Tuple[str, ...]], ...]:
        return self._table

    def route(self, phrase: str) -> Command:
        """Phrase must already be lower-cased and trimmed."""
        for command, keywords in self._table:
            if any(keyword in phrase for keyword in keywords):
                return command
        return Command.NONE
