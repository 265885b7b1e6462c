"""
Sequential narration of a segment list.

Each segment is followed by a fixed prompt utterance; once the prompt has
finished the player waits in AWAITING_COMMAND for the controller to call
advance(), repeat(), restart() or stop().

Only one utterance is in flight at a time. A new one is dispatched after the
previous one's UtteranceEnded arrived, or after it was cancelled. End signals
for anything other than the in-flight utterance are ignored, so a cancelled
utterance can never resume narration.
"""

from __future__ import annotations

import itertools
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple

from logging_setup import get_logger, Component
from .capabilities import SpeechSynthesizer, Utterance
from .rate import RateController
from .voices import VoiceCatalog


class PlayerState(str, Enum):
    IDLE = "idle"
    SPEAKING_SEGMENT = "speaking_segment"
    SPEAKING_PROMPT = "speaking_prompt"
    AWAITING_COMMAND = "awaiting_command"


class NarrationPlayer:
    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        rate: RateController,
        voices: VoiceCatalog,
        prompt: str,
        *,
        on_awaiting_command: Optional[Callable[[], None]] = None,
        on_state_changed: Optional[Callable[[PlayerState, PlayerState], None]] = None,
        on_dispatch: Optional[Callable[[Utterance], None]] = None,
    ):
        self.synthesizer = synthesizer
        self.rate = rate
        self.voices = voices
        self.prompt = prompt
        self.on_awaiting_command = on_awaiting_command
        self.on_state_changed = on_state_changed
        self.on_dispatch = on_dispatch
        self.logger = get_logger(Component.PLAYER)

        self._segments: Tuple[str, ...] = ()
        self._cursor = 0
        self._state = PlayerState.IDLE
        self._ids = itertools.count(1)
        self._in_flight: Optional[Utterance] = None

    # --- Read-only state ---

    @property
    def state(self) -> PlayerState:
        return self._state

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def segments(self) -> Tuple[str, ...]:
        return self._segments

    @property
    def in_flight(self) -> Optional[Utterance]:
        return self._in_flight

    # --- Session ---

    def load(self, segments: Sequence[str], session_id: Optional[str] = None) -> None:
        """Replace the segment list; stops anything playing and rewinds."""
        self.stop()
        self._segments = tuple(segments)
        self._cursor = 0
        self.logger = self.logger.with_session(session_id)
        self.logger.debug("Segments loaded", segment_count=len(self._segments))

    def unload(self) -> None:
        self.stop()
        self._segments = ()
        self._cursor = 0

    # --- Transitions ---

    def play(self, from_index: int = 0) -> bool:
        """
        Speak segments[from_index:] one per turn.

        Returns False (and stays IDLE) when from_index is outside the list.
        """
        if not 0 <= from_index < len(self._segments):
            self.logger.info(
                "Nothing to play",
                from_index=from_index,
                segment_count=len(self._segments),
            )
            self._cancel_in_flight()
            self._cursor = min(max(from_index, 0), len(self._segments))
            self._set_state(PlayerState.IDLE)
            return False

        self._cancel_in_flight()
        self._cursor = from_index
        self._speak_segment()
        return True

    def advance(self) -> bool:
        """Move to the next segment; past the last one the player goes IDLE."""
        if self._cursor >= len(self._segments):
            self._set_state(PlayerState.IDLE)
            return False

        self._cancel_in_flight()
        self._cursor += 1
        if self._cursor >= len(self._segments):
            self.logger.info("Narration finished", segment_count=len(self._segments))
            self._set_state(PlayerState.IDLE)
            return False

        self._speak_segment()
        return True

    def repeat(self) -> bool:
        """Replay the current segment; the cursor does not move."""
        if self._cursor >= len(self._segments):
            self._set_state(PlayerState.IDLE)
            return False

        self._cancel_in_flight()
        self._speak_segment()
        return True

    def restart(self) -> bool:
        return self.play(0)

    def stop(self) -> None:
        """Cancel current and queued speech. Safe to call in any state."""
        self.synthesizer.cancel()
        if self._in_flight is not None:
            self.logger.debug("Cancelled in-flight utterance", utterance_id=self._in_flight.utterance_id)
        self._in_flight = None
        self._set_state(PlayerState.IDLE)

    # --- Capability signals ---

    def on_utterance_ended(self, utterance_id: int) -> None:
        finished = self._in_flight
        if finished is None or finished.utterance_id != utterance_id:
            self.logger.debug("Ignoring stale utterance end", utterance_id=utterance_id)
            return

        self._in_flight = None
        if finished.kind == "segment":
            self._dispatch(self.prompt, kind="prompt", segment_index=finished.segment_index)
            self._set_state(PlayerState.SPEAKING_PROMPT)
        else:
            self._set_state(PlayerState.AWAITING_COMMAND)
            if self.on_awaiting_command is not None:
                self.on_awaiting_command()

    # --- Internals ---

    def _speak_segment(self) -> None:
        self._dispatch(self._segments[self._cursor], kind="segment", segment_index=self._cursor)
        self._set_state(PlayerState.SPEAKING_SEGMENT)

    def _dispatch(self, text: str, *, kind: str, segment_index: Optional[int]) -> None:
        # Rate and voice are read now, not when the segments were built.
        utterance = Utterance(
            utterance_id=next(self._ids),
            text=text,
            rate=self.rate.rate,
            voice=self.voices.selected,
            kind=kind,
            segment_index=segment_index,
        )
        self._in_flight = utterance
        self.logger.debug(
            "Dispatching utterance",
            utterance_id=utterance.utterance_id,
            kind=kind,
            segment_index=segment_index,
            rate=utterance.rate,
            voice=utterance.voice.name if utterance.voice else None,
        )
        self.synthesizer.speak(utterance)
        if self.on_dispatch is not None:
            self.on_dispatch(utterance)

    def _cancel_in_flight(self) -> None:
        if self._in_flight is not None:
            self.synthesizer.cancel()
            self._in_flight = None

    def _set_state(self, new_state: PlayerState) -> None:
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        if self.on_state_changed is not None:
            self.on_state_changed(old_state, new_state)
