"""
Tests for error taxonomy and classification.
"""
import pytest

from narration.errors import (
    ErrorCategory,
    NarrationError,
    PermissionDenied,
    RecipeFetchError,
    RecognitionFailed,
    RecognitionUnsupported,
    classify_recognition_error,
    error_for_code,
    get_user_message,
)


@pytest.mark.parametrize("code,category", [
    ("no-speech", ErrorCategory.TRANSIENT),
    ("audio-capture", ErrorCategory.TRANSIENT),
    (" No-Speech ", ErrorCategory.TRANSIENT),
    ("not-allowed", ErrorCategory.PERMISSION_DENIED),
    ("service-not-allowed", ErrorCategory.PERMISSION_DENIED),
    ("language-not-supported", ErrorCategory.UNSUPPORTED),
    ("network", ErrorCategory.RECOGNITION_FAILED),
    ("aborted", ErrorCategory.RECOGNITION_FAILED),
    ("", ErrorCategory.RECOGNITION_FAILED),
])
def test_classify_recognition_error(code, category):
    assert classify_recognition_error(code) == category


def test_error_for_code_types():
    assert isinstance(error_for_code("not-allowed"), PermissionDenied)
    assert isinstance(error_for_code("language-not-supported"), RecognitionUnsupported)

    failed = error_for_code("network")
    assert isinstance(failed, RecognitionFailed)
    assert failed.code == "network"
    assert failed.category == ErrorCategory.RECOGNITION_FAILED


def test_recipe_fetch_error_carries_status():
    error = RecipeFetchError("Recipe not found", status=404)
    assert isinstance(error, NarrationError)
    assert error.status == 404
    assert error.category == ErrorCategory.FETCH_FAILED


def test_user_messages():
    for category in (
        ErrorCategory.PERMISSION_DENIED,
        ErrorCategory.UNSUPPORTED,
        ErrorCategory.RECOGNITION_FAILED,
        ErrorCategory.FETCH_FAILED,
    ):
        assert get_user_message(category) != get_user_message("unknown")
    assert get_user_message("unknown") == "Something went wrong."
