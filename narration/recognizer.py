"""
Continuous command recognition with automatic recovery.

State machine:

    IDLE --start()--> LISTENING --transient error--> RECOVERING
    RECOVERING --engine end observed--> LISTENING
    any --stop() / fatal error--> IDLE

The engine is never started while its previous session is still open: a
restart (after a transient error, or a start() right after a stop()) waits in
RECOVERING until RecognitionEnded arrives.

Permission and unsupported errors disable recognition for the session. Other
fatal errors leave the recognizer IDLE until start() is called again.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional

from logging_setup import get_logger, Component
from .capabilities import Microphone, RecognitionEngine
from .errors import (
    ErrorCategory,
    NarrationError,
    PermissionDenied,
    RecognitionFailed,
    RecognitionUnsupported,
    classify_recognition_error,
    error_for_code,
)


class RecognitionState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    RECOVERING = "recovering"


class CommandRecognizer:
    def __init__(
        self,
        engine: Optional[RecognitionEngine],
        microphone: Optional[Microphone] = None,
        *,
        locale: str = "en-US",
        max_restarts: int = 5,
        on_fatal: Optional[Callable[[NarrationError], None]] = None,
        on_state_changed: Optional[Callable[[RecognitionState, RecognitionState], None]] = None,
        on_restart: Optional[Callable[[str], None]] = None,
    ):
        self.engine = engine
        self.microphone = microphone
        self.locale = locale
        self.max_restarts = max_restarts
        self.on_fatal = on_fatal
        self.on_state_changed = on_state_changed
        self.on_restart = on_restart
        self.logger = get_logger(Component.RECOGNIZER)

        self._state = RecognitionState.IDLE
        self._disabled = False
        self._mic_acquired = False
        self._engine_active = False
        self._stop_requested = False
        # Consecutive engine ends that nobody asked for.
        self._unsolicited_restarts = 0

    @property
    def state(self) -> RecognitionState:
        return self._state

    @property
    def disabled(self) -> bool:
        """True once a permission/unsupported error switched voice commands off."""
        return self._disabled

    def check_support(self) -> bool:
        """Report Fatal-Unsupported up front when there is no engine."""
        if self.engine is None and not self._disabled:
            self._fail(RecognitionUnsupported("Speech recognition is not available in this runtime"))
        return self.engine is not None

    def start(self) -> bool:
        """
        Begin continuous listening.

        No-op when already LISTENING/RECOVERING. Returns False when recognition
        is unavailable for this session.
        """
        if self._disabled:
            self.logger.debug("Recognition disabled; start ignored")
            return False
        if self.engine is None:
            self.check_support()
            return False
        if self._state != RecognitionState.IDLE:
            return True

        if not self._mic_acquired:
            if self.microphone is not None:
                try:
                    self.microphone.acquire()
                except PermissionError as e:
                    self._fail(PermissionDenied(f"Microphone access denied: {e}"))
                    return False
            self._mic_acquired = True
            self.logger.info("Microphone access granted")

        if self._engine_active:
            # Previous engine session still closing; start once its end arrives.
            self._set_state(RecognitionState.RECOVERING)
            return True

        self._start_engine()
        self._set_state(RecognitionState.LISTENING)
        return True

    def stop(self) -> None:
        """End listening. Idempotent."""
        if self._state == RecognitionState.IDLE:
            return
        self._request_engine_stop()
        self._set_state(RecognitionState.IDLE)

    def close(self) -> None:
        """Stop and release the microphone (session teardown)."""
        self.stop()
        if self._mic_acquired and self.microphone is not None:
            self.microphone.release()
            self.logger.debug("Microphone released")
        self._mic_acquired = False

    # --- Capability signals ---

    def on_result(self, text: str, is_final: bool = True) -> Optional[str]:
        """Return the phrase if it should be routed, else None."""
        if not is_final:
            return None
        if self._state != RecognitionState.LISTENING:
            self.logger.debug("Ignoring result while not listening", state=self._state.value)
            return None
        self._unsolicited_restarts = 0
        return text

    def on_error(self, code: str, message: str = "") -> None:
        if self._state == RecognitionState.IDLE:
            self.logger.debug("Ignoring recognition error while idle", code=code)
            return

        category = classify_recognition_error(code)
        if category == ErrorCategory.TRANSIENT:
            self.logger.info("Transient recognition error; restarting after engine end", code=code)
            self._unsolicited_restarts = 0
            self._request_engine_stop()
            self._set_state(RecognitionState.RECOVERING)
            return

        self.logger.warning("Recognition error", code=code, category=category, detail=message)
        self._request_engine_stop()
        self._fail(error_for_code(code))

    def on_end(self) -> None:
        self._engine_active = False
        self._stop_requested = False

        if self._state == RecognitionState.RECOVERING:
            self._start_engine()
            self._set_state(RecognitionState.LISTENING)
            if self.on_restart is not None:
                self.on_restart("recovered")
        elif self._state == RecognitionState.LISTENING:
            # Engine ended on its own while we still want to listen.
            if self._unsolicited_restarts >= self.max_restarts:
                self._fail(RecognitionFailed(
                    f"Recognition ended {self._unsolicited_restarts + 1} times in a row",
                    code="restart-limit",
                ))
                return
            self._unsolicited_restarts += 1
            self.logger.info("Recognition ended unexpectedly; restarting", attempt=self._unsolicited_restarts)
            self._start_engine()
            if self.on_restart is not None:
                self.on_restart("unsolicited_end")

    # --- Internals ---

    def _start_engine(self) -> None:
        self.engine.start(self.locale)
        self._engine_active = True
        self._stop_requested = False

    def _request_engine_stop(self) -> None:
        if self._engine_active and not self._stop_requested:
            self.engine.stop()
            self._stop_requested = True

    def _fail(self, error: NarrationError) -> None:
        if isinstance(error, (PermissionDenied, RecognitionUnsupported)):
            self._disabled = True
        self._set_state(RecognitionState.IDLE)
        self.logger.error("Recognition unavailable", category=error.category, error=str(error))
        if self.on_fatal is not None:
            self.on_fatal(error)

    def _set_state(self, new_state: RecognitionState) -> None:
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        if self.on_state_changed is not None:
            self.on_state_changed(old_state, new_state)
