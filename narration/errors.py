"""
Error taxonomy for narration and command recognition.

Engine error codes are mapped to stable categories without crashing. Only
transient categories have a local recovery; every other category becomes a
one-shot user notification and the session degrades to speech output only.
"""
from typing import Optional


class ErrorCategory:
    """Stable error categories."""

    # Recognition
    TRANSIENT = "recognition.transient"
    PERMISSION_DENIED = "recognition.permission_denied"
    UNSUPPORTED = "recognition.unsupported"
    RECOGNITION_FAILED = "recognition.failed"

    # Recipe data provider
    FETCH_FAILED = "recipe.fetch_failed"


# Engine codes follow the Web Speech API error names.
TRANSIENT_CODES = frozenset({"no-speech", "audio-capture"})
PERMISSION_CODES = frozenset({"not-allowed", "service-not-allowed"})
UNSUPPORTED_CODES = frozenset({"language-not-supported", "unsupported"})


class NarrationError(Exception):
    """Base class for narration errors."""

    category: str = ErrorCategory.RECOGNITION_FAILED

    def __init__(self, message: str, *, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class PermissionDenied(NarrationError):
    """Microphone or recognition access was refused."""

    category = ErrorCategory.PERMISSION_DENIED


class RecognitionUnsupported(NarrationError):
    """The runtime has no speech recognition capability."""

    category = ErrorCategory.UNSUPPORTED


class RecognitionFailed(NarrationError):
    """A recognition error with no automatic recovery."""

    category = ErrorCategory.RECOGNITION_FAILED


class RecipeFetchError(NarrationError):
    """Recipe or category data could not be fetched."""

    category = ErrorCategory.FETCH_FAILED

    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def classify_recognition_error(code: str) -> str:
    """Map a recognition engine error code to an ErrorCategory."""
    code = (code or "").strip().lower()
    if code in TRANSIENT_CODES:
        return ErrorCategory.TRANSIENT
    if code in PERMISSION_CODES:
        return ErrorCategory.PERMISSION_DENIED
    if code in UNSUPPORTED_CODES:
        return ErrorCategory.UNSUPPORTED
    return ErrorCategory.RECOGNITION_FAILED


def error_for_code(code: str) -> NarrationError:
    """Build the exception reported upward for a non-transient engine error."""
    category = classify_recognition_error(code)
    if category == ErrorCategory.PERMISSION_DENIED:
        return PermissionDenied(f"Speech recognition not allowed ({code})", code=code)
    if category == ErrorCategory.UNSUPPORTED:
        return RecognitionUnsupported(f"Speech recognition unsupported ({code})", code=code)
    return RecognitionFailed(f"Speech recognition error: {code}", code=code)


def get_user_message(category: str) -> str:
    """Short notice shown to the user for an error category."""
    messages = {
        ErrorCategory.PERMISSION_DENIED: "Microphone access was denied. Voice commands are off; use the buttons instead.",
        ErrorCategory.UNSUPPORTED: "Voice commands are not supported here. Narration will still play.",
        ErrorCategory.RECOGNITION_FAILED: "Voice commands stopped working. Use the buttons or try again.",
        ErrorCategory.FETCH_FAILED: "The recipe could not be loaded. Please try again.",
    }
    return messages.get(category, "Something went wrong.")
