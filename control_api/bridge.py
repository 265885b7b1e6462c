"""
WebSocket capability bridge.

The audio devices live on the connected client (typically a browser page
using the Web Speech API). The server side implements the narration
capability protocols by sending commands to that client, and turns the
client's messages back into narration signals.

Server -> client:
    {"type": "speak", "utterance_id", "text", "rate", "voice", "kind"}
    {"type": "cancel"}
    {"type": "recognition.start", "locale"}
    {"type": "recognition.stop"}
    {"type": "microphone.release"}

Client -> server:
    {"type": "hello", "voices": [...], "microphone": "granted"|"denied", "recognition": bool}
    {"type": "utterance.end", "utterance_id"}
    {"type": "recognition.result", "transcript", "is_final"}
    {"type": "recognition.error", "error", "message"}
    {"type": "recognition.end"}
    {"type": "voices.changed", "voices": [...]}
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel, Field

from logging_setup import get_logger, Component
from narration.capabilities import Utterance
from narration.signals import (
    PhraseRecognized,
    RecognitionEnded,
    RecognitionErrored,
    Signal,
    UtteranceEnded,
    VoicesChanged,
)
from narration.voices import Voice


logger = get_logger(Component.BRIDGE)


class ClientHello(BaseModel):
    voices: List[Dict[str, Any]] = Field(default_factory=list)
    microphone: str = "granted"
    recognition: bool = True

    @property
    def microphone_granted(self) -> bool:
        return self.microphone.lower() == "granted"

    def voice_list(self) -> List[Voice]:
        return [Voice.from_dict(v) for v in self.voices]


class BridgeChannel:
    """Outbound command queue drained by the WebSocket writer task."""

    def __init__(self) -> None:
        self.outbox: asyncio.Queue[Dict[str, Any]] = asyncio.Queue()
        self.closed = False

    def send(self, message: Dict[str, Any]) -> None:
        if self.closed:
            logger.debug("Dropping message on closed bridge", message_type=message.get("type"))
            return
        self.outbox.put_nowait(message)

    def close(self) -> None:
        self.closed = True


class RemoteSynthesizer:
    def __init__(self, channel: BridgeChannel, voices: Sequence[Voice] = ()):
        self.channel = channel
        self._voices = list(voices)

    def speak(self, utterance: Utterance) -> None:
        self.channel.send({
            "type": "speak",
            "utterance_id": utterance.utterance_id,
            "text": utterance.text,
            "rate": utterance.rate,
            "voice": utterance.voice.name if utterance.voice else None,
            "kind": utterance.kind,
        })

    def cancel(self) -> None:
        self.channel.send({"type": "cancel"})

    def voices(self) -> List[Voice]:
        return list(self._voices)


class RemoteRecognitionEngine:
    def __init__(self, channel: BridgeChannel):
        self.channel = channel

    def start(self, locale: str) -> None:
        self.channel.send({"type": "recognition.start", "locale": locale})

    def stop(self) -> None:
        self.channel.send({"type": "recognition.stop"})


class RemoteMicrophone:
    """Grant state is reported by the client in its hello message."""

    def __init__(self, channel: BridgeChannel, granted: bool):
        self.channel = channel
        self.granted = granted

    def acquire(self) -> None:
        if not self.granted:
            raise PermissionError("microphone access denied by client")

    def release(self) -> None:
        self.channel.send({"type": "microphone.release"})


def parse_client_message(data: Any) -> Optional[Signal]:
    """
    Convert a client message into a narration signal.

    Returns None for messages that carry no signal (e.g. a repeated hello).
    Raises ValueError for malformed messages.
    """
    if not isinstance(data, Mapping):
        raise ValueError("Bridge messages must be JSON objects")
    message_type = data.get("type")
    if message_type == "utterance.end":
        try:
            return UtteranceEnded(utterance_id=int(data["utterance_id"]))
        except (KeyError, TypeError, ValueError):
            raise ValueError("utterance.end requires an integer utterance_id")
    if message_type == "recognition.result":
        transcript = data.get("transcript")
        if not isinstance(transcript, str):
            raise ValueError("recognition.result requires a transcript string")
        return PhraseRecognized(text=transcript, is_final=bool(data.get("is_final", True)))
    if message_type == "recognition.error":
        return RecognitionErrored(code=str(data.get("error", "")), message=str(data.get("message", "")))
    if message_type == "recognition.end":
        return RecognitionEnded()
    if message_type == "voices.changed":
        voices = data.get("voices") or []
        if not isinstance(voices, list) or not all(isinstance(v, Mapping) for v in voices):
            raise ValueError("voices.changed requires a list of voice objects")
        return VoicesChanged(voices=tuple(Voice.from_dict(v) for v in voices))
    if message_type == "hello":
        return None
    raise ValueError(f"Unknown message type: {message_type}")
