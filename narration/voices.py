"""Synthesis voice catalog and (locale, gender) voice selection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional

from logging_setup import get_logger, Component


logger = get_logger(Component.VOICES)


@dataclass(frozen=True)
class Voice:
    name: str
    locale: str
    default: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Voice":
        """Build from a provider listing entry ({name, lang|locale, default})."""
        return cls(
            name=str(data.get("name", "")),
            locale=str(data.get("locale") or data.get("lang") or ""),
            default=bool(data.get("default", False)),
        )

    def to_dict(self) -> dict:
        return {"name": self.name, "locale": self.locale, "default": self.default}


class VoiceCatalog:
    """
    Available voices plus the currently selected one.

    The selection is stored by name only and looked up again in the current
    listing, so a refresh that drops the voice also drops the selection.
    """

    def __init__(self, voices: Iterable[Voice] = ()):
        self._voices: List[Voice] = list(voices)
        self._selected_name: Optional[str] = None

    @property
    def voices(self) -> List[Voice]:
        return list(self._voices)

    @property
    def selected(self) -> Optional[Voice]:
        if self._selected_name is None:
            return None
        for voice in self._voices:
            if voice.name == self._selected_name:
                return voice
        return None

    def refresh(self, voices: Iterable[Voice]) -> None:
        """Replace the catalog (call on the provider's voice-list-changed signal)."""
        self._voices = list(voices)
        logger.debug(
            "Voice catalog refreshed",
            voice_count=len(self._voices),
            selected=self._selected_name,
            selected_available=self.selected is not None,
        )

    def select(self, locale: str, gender_hint: str) -> Optional[Voice]:
        """
        Pick a voice for (locale, gender_hint) and remember it.

        First voice with an exact locale match whose name contains gender_hint
        (case-insensitive); otherwise the first catalog entry; None when the
        catalog is empty. Never raises.
        """
        hint = (gender_hint or "").lower()
        match = next(
            (v for v in self._voices if v.locale == locale and hint in v.name.lower()),
            None,
        )
        voice = match or (self._voices[0] if self._voices else None)

        if voice is None:
            logger.warning("No voice available", locale=locale, gender_hint=gender_hint)
            return None

        if match is None:
            logger.info(
                "No voice matched; using catalog default",
                locale=locale,
                gender_hint=gender_hint,
                fallback=voice.name,
            )
        self._selected_name = voice.name
        return voice
