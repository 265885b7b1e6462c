"""
Narration orchestrator.

Wires recognised phrases through the CommandRouter into NarrationPlayer
transitions and keeps listening and prompted speech from overlapping:
before any transition that speaks, the recognizer is stopped, and it is only
started again once the player reports AWAITING_COMMAND (the prompt has
finished).

All capability signals go through one SignalQueue and are handled here in
arrival order; nothing else mutates player or recognizer state.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from logging_setup import get_logger, Component as LogComponent
from observability.events import Component as ObsComponent, EventEmitter, Severity, pii_marker
from recipes.models import RecipeDetail
from .capabilities import Microphone, RecognitionEngine, SpeechSynthesizer, Utterance
from .commands import Command, CommandRouter, normalize_phrase
from .config import NarrationConfig
from .errors import NarrationError, get_user_message
from .phrases import Phrasebook, load_phrasebook
from .player import NarrationPlayer, PlayerState
from .rate import RateController
from .recognizer import CommandRecognizer, RecognitionState
from .segments import build_segments
from .signals import (
    PhraseRecognized,
    RecognitionEnded,
    RecognitionErrored,
    Signal,
    SignalQueue,
    UtteranceEnded,
    VoicesChanged,
)
from .voices import Voice, VoiceCatalog


@dataclass
class NarrationSession:
    """One play-through of a segment list, from play until stop/teardown."""

    session_id: str
    segments: Tuple[str, ...]
    created_at: datetime
    recipe_name: Optional[str] = None
    ended_at: Optional[datetime] = None
    end_reason: Optional[str] = None

    def end(self, reason: str) -> None:
        self.ended_at = datetime.now(timezone.utc)
        self.end_reason = reason


@dataclass
class LoadedContent:
    """Segments built from the current recipe, reused by every play."""

    segments: Tuple[str, ...]
    recipe_name: Optional[str] = None
    categories: List[str] = field(default_factory=list)


class NarrationController:
    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        engine: Optional[RecognitionEngine],
        microphone: Optional[Microphone] = None,
        *,
        signals: Optional[SignalQueue] = None,
        config: Optional[NarrationConfig] = None,
        phrasebook: Optional[Phrasebook] = None,
        emitter: Optional[EventEmitter] = None,
    ):
        config = config or NarrationConfig()
        self.config = config
        self.signals = signals if signals is not None else SignalQueue()
        self.phrasebook = phrasebook or load_phrasebook(config.phrasebook)
        self.emitter = emitter or EventEmitter(ObsComponent.NARRATION)
        self.logger = get_logger(LogComponent.NARRATION)

        # Device-level id used for events outside any narration session.
        self.device_id = f"device_{uuid.uuid4().hex[:12]}"

        self.rate = RateController(config.initial_rate)
        self.voices = VoiceCatalog(synthesizer.voices())
        self.router = CommandRouter(self.phrasebook.keywords)
        self.player = NarrationPlayer(
            synthesizer,
            self.rate,
            self.voices,
            self.phrasebook.prompt,
            on_awaiting_command=self._on_awaiting_command,
            on_state_changed=self._on_player_state_changed,
            on_dispatch=self._on_utterance_dispatched,
        )
        self.recognizer = CommandRecognizer(
            engine,
            microphone,
            locale=config.recognition_locale,
            max_restarts=config.recognition_max_restarts,
            on_fatal=self._on_recognition_fatal,
            on_state_changed=self._on_recognition_state_changed,
            on_restart=self._on_recognition_restarted,
        )

        self.content: Optional[LoadedContent] = None
        self.session: Optional[NarrationSession] = None
        self.notifications: List[Dict[str, Any]] = []
        self._reported_categories: set[str] = set()
        self._opened = False

    # --- Lifecycle ---

    @property
    def event_session_id(self) -> str:
        return self.session.session_id if self.session else self.device_id

    def open(self) -> None:
        """Start listening for commands (or report why voice commands are unavailable)."""
        if self._opened:
            return
        self._opened = True
        self.logger.info("Narration controller opened", locale=self.config.recognition_locale)
        if self.recognizer.check_support():
            self.recognizer.start()

    def close(self) -> None:
        """Tear down: stop speech, stop listening, release the microphone."""
        self.player.stop()
        self.recognizer.close()
        self._end_session("teardown")
        self._opened = False
        self.logger.info("Narration controller closed")

    def load_segments(
        self,
        segments: Sequence[str],
        recipe_name: Optional[str] = None,
        categories: Sequence[str] = (),
    ) -> None:
        """Set the content that the next play will narrate. Stops current narration."""
        if self.session is not None:
            self.player.stop()
            self._end_session("content_replaced")
        self.player.unload()
        self.content = LoadedContent(
            segments=tuple(segments),
            recipe_name=recipe_name,
            categories=list(categories),
        )
        self.logger.info("Content loaded", recipe=recipe_name, segment_count=len(self.content.segments))

    def load_recipe(self, detail: RecipeDetail) -> Tuple[str, ...]:
        segments = build_segments(detail.recipe, self.phrasebook)
        self.load_segments(segments, recipe_name=detail.recipe.name, categories=detail.categories)
        return segments

    # --- Exposed operations ---

    def play_recipe(self) -> bool:
        return self.execute(Command.PLAY, source="ui")

    def stop_narration(self) -> None:
        self.execute(Command.STOP, source="ui")

    def increase_rate(self) -> float:
        rate = self.rate.increase()
        self.logger.info("Rate increased", rate=rate)
        return rate

    def decrease_rate(self) -> float:
        rate = self.rate.decrease()
        self.logger.info("Rate decreased", rate=rate)
        return rate

    def select_voice(self, locale: str, gender_hint: str) -> Optional[Voice]:
        voice = self.voices.select(locale, gender_hint)
        self.emitter.emit(
            "narration.voice.selected",
            self.event_session_id,
            severity=Severity.INFO,
            locale=locale,
            gender_hint=gender_hint,
            voice=voice.name if voice else None,
        )
        return voice

    def snapshot(self) -> Dict[str, Any]:
        """Observable state for display."""
        selected = self.voices.selected
        return {
            "session_id": self.session.session_id if self.session else None,
            "recipe_name": self.content.recipe_name if self.content else None,
            "categories": list(self.content.categories) if self.content else [],
            "segment_count": len(self.player.segments),
            "cursor": self.player.cursor,
            "player_state": self.player.state.value,
            "rate": self.rate.rate,
            "recognition_state": self.recognizer.state.value,
            "recognition_disabled": self.recognizer.disabled,
            "selected_voice": selected.to_dict() if selected else None,
            "voices": [v.to_dict() for v in self.voices.voices],
            "notifications": list(self.notifications),
        }

    # --- Command dispatch ---

    def execute(self, command: Command, source: str = "voice") -> bool:
        """
        Apply one command. Returns True when it led to speech output.
        """
        if command == Command.NONE:
            return False

        self.logger.info("Executing command", command=command.value, source=source)

        if command == Command.STOP:
            self.player.stop()
            self.recognizer.stop()
            self._end_session("stopped")
            return False

        # Anything that speaks: stop listening until the next prompt has finished.
        self.recognizer.stop()

        if command == Command.PLAY:
            spoke = self._start_session()
        elif command == Command.CONTINUE:
            spoke = self.player.advance()
        elif command == Command.REPEAT:
            spoke = self.player.repeat()
        else:
            spoke = self.player.restart()

        if not spoke:
            # Nothing left to say; keep listening so "play" / "start over" still work.
            self.recognizer.start()
        return spoke

    # --- Signal handling ---

    def handle(self, signal: Signal) -> None:
        if isinstance(signal, UtteranceEnded):
            self.player.on_utterance_ended(signal.utterance_id)
        elif isinstance(signal, PhraseRecognized):
            self._on_phrase(signal)
        elif isinstance(signal, RecognitionErrored):
            self.recognizer.on_error(signal.code, signal.message)
        elif isinstance(signal, RecognitionEnded):
            self.recognizer.on_end()
        elif isinstance(signal, VoicesChanged):
            self.voices.refresh(signal.voices)
        else:
            self.logger.warning("Unknown signal", signal_type=type(signal).__name__)

    def process_pending(self) -> int:
        """Handle queued signals (and any they cause) until the queue is empty."""
        handled = 0
        while True:
            signal = self.signals.pop()
            if signal is None:
                return handled
            self.handle(signal)
            handled += 1

    async def run(self) -> None:
        """Dispatch loop; runs until cancelled."""
        while True:
            signal = await self.signals.get()
            try:
                self.handle(signal)
            except Exception:
                self.logger.exception("Signal handling failed", signal_type=type(signal).__name__)

    def _on_phrase(self, signal: PhraseRecognized) -> None:
        text = self.recognizer.on_result(signal.text, signal.is_final)
        if text is None:
            return
        phrase = normalize_phrase(text)
        command = self.router.route(phrase)
        self.logger.debug_pii("Phrase recognised", phrase=phrase)
        self.emitter.emit(
            "narration.command.routed",
            self.event_session_id,
            severity=Severity.INFO,
            pii=pii_marker("phrase"),
            phrase=phrase,
            command=command.value,
        )
        self.execute(command, source="voice")

    # --- Session bookkeeping ---

    def _start_session(self) -> bool:
        if self.content is None or not self.content.segments:
            self.logger.warning("Play requested with no recipe loaded")
            self.player.stop()
            return False

        self._end_session("replayed")
        self.session = NarrationSession(
            session_id=f"narr_{uuid.uuid4().hex[:12]}",
            segments=self.content.segments,
            created_at=datetime.now(timezone.utc),
            recipe_name=self.content.recipe_name,
        )
        self.player.load(self.session.segments, session_id=self.session.session_id)
        self.emitter.emit(
            "narration.session.started",
            self.session.session_id,
            severity=Severity.INFO,
            recipe_name=self.session.recipe_name,
            segment_count=len(self.session.segments),
        )
        return self.player.play(0)

    def _end_session(self, reason: str) -> None:
        session = self.session
        if session is None:
            return
        session.end(reason)
        self.session = None
        self.emitter.emit(
            "narration.session.ended",
            session.session_id,
            severity=Severity.INFO,
            reason=reason,
            cursor=self.player.cursor,
        )

    # --- Component callbacks ---

    def _on_awaiting_command(self) -> None:
        self.recognizer.start()

    def _on_player_state_changed(self, old: PlayerState, new: PlayerState) -> None:
        self.emitter.state_changed(
            self.event_session_id,
            "narration.player",
            old.value,
            new.value,
            cursor=self.player.cursor,
        )

    def _on_utterance_dispatched(self, utterance: Utterance) -> None:
        self.emitter.emit(
            "narration.utterance.dispatched",
            self.event_session_id,
            severity=Severity.DEBUG,
            correlation_id=f"utt_{utterance.utterance_id}",
            utterance_id=utterance.utterance_id,
            kind=utterance.kind,
            segment_index=utterance.segment_index,
            text_length=len(utterance.text),
            rate=utterance.rate,
            voice=utterance.voice.name if utterance.voice else None,
        )

    def _on_recognition_state_changed(self, old: RecognitionState, new: RecognitionState) -> None:
        self.emitter.state_changed(self.event_session_id, "recognition", old.value, new.value)

    def _on_recognition_restarted(self, reason: str) -> None:
        self.emitter.emit(
            "recognition.restarted",
            self.event_session_id,
            severity=Severity.INFO,
            reason=reason,
        )

    def _on_recognition_fatal(self, error: NarrationError) -> None:
        self.notify(error.category, detail=str(error))

    def notify(self, category: str, detail: Optional[str] = None) -> bool:
        """One-shot user notification per category. Returns False if already reported."""
        if category in self._reported_categories:
            self.logger.debug("Notification already reported", category=category)
            return False
        self._reported_categories.add(category)
        message = get_user_message(category)
        self.notifications.append({"category": category, "message": message})
        self.emitter.notification_raised(self.event_session_id, category, message, detail=detail)
        return True
