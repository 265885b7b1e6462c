"""
Capability boundary: what the narration core needs from the audio runtime.

Implementations post their asynchronous outcomes (utterance end, recognised
phrase, recognition error/end, voice list changes) onto the SignalQueue they
were given; the methods here only issue requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from .voices import Voice


@dataclass(frozen=True)
class Utterance:
    """One dispatched unit of speech output."""

    utterance_id: int
    text: str
    rate: float
    voice: Optional[Voice] = None
    kind: str = "segment"  # "segment" | "prompt"
    segment_index: Optional[int] = None


class SpeechSynthesizer(Protocol):
    def speak(self, utterance: Utterance) -> None:
        """Queue an utterance; UtteranceEnded(utterance_id) is posted when it finishes."""

    def cancel(self) -> None:
        """Drop the current and all queued utterances immediately."""

    def voices(self) -> Sequence[Voice]:
        """Voices known right now (may be empty until VoicesChanged arrives)."""


class RecognitionEngine(Protocol):
    """Continuous, final-results-only speech recognition."""

    def start(self, locale: str) -> None:
        ...

    def stop(self) -> None:
        """Request the session to end; RecognitionEnded follows."""


class Microphone(Protocol):
    def acquire(self) -> None:
        """Obtain the input device. Raises PermissionError when refused."""

    def release(self) -> None:
        ...
