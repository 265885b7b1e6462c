"""
Typed capability signals and the single-threaded queue that carries them.

Capabilities (speech synthesis, speech recognition, the voice list) never call
the controller directly. They post one of the signals below and the
controller handles them strictly in arrival order.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .voices import Voice


@dataclass(frozen=True)
class PhraseRecognized:
    text: str
    is_final: bool = True


@dataclass(frozen=True)
class RecognitionErrored:
    code: str
    message: str = ""


@dataclass(frozen=True)
class RecognitionEnded:
    """The engine's listening session is over (after stop, error or timeout)."""


@dataclass(frozen=True)
class UtteranceEnded:
    utterance_id: int


@dataclass(frozen=True)
class VoicesChanged:
    voices: tuple["Voice", ...] = field(default_factory=tuple)


Signal = Union[PhraseRecognized, RecognitionErrored, RecognitionEnded, UtteranceEnded, VoicesChanged]


class SignalQueue:
    """
    FIFO of capability signals.

    `post` never blocks and is safe to call from inside a handler; signals
    posted while one is being handled are processed after it.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Signal] = asyncio.Queue()

    def post(self, signal: Signal) -> None:
        self._queue.put_nowait(signal)

    def pop(self) -> Signal | None:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    async def get(self) -> Signal:
        return await self._queue.get()

    def __len__(self) -> int:
        return self._queue.qsize()
