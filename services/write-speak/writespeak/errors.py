"""
Error taxonomy for the handwriting-to-speech pipeline.
None of these are fatal: callers recover to a stable state and notify the user.
"""
from typing import Optional


class WriteSpeakError(Exception):
    code = "error"

    def __init__(self, message: str = "", code: Optional[str] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        if code:
            self.code = code


class InputError(WriteSpeakError):
    """Rejected user input: blank manual text, non-image upload."""
    code = "input_error"


class RecognitionError(WriteSpeakError):
    code = "recognition_error"


class ServiceUnavailable(RecognitionError):
    """Network, auth, timeout, non-2xx or malformed response."""
    code = "service_unavailable"


class NoTextFound(RecognitionError):
    """The service answered but extracted no non-whitespace text."""
    code = "no_text_found"


class PlaybackError(WriteSpeakError):
    code = "playback_error"


class AuthError(WriteSpeakError):
    code = "auth_error"
