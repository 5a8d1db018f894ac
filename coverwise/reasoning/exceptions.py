"""Errors raised by the resolution pipeline."""
from typing import Optional

from coverwise.models.enums import ErrorClass
from coverwise.models.generation import GenerationFailure

_USER_MESSAGES = {
    ErrorClass.UNAUTHORIZED: "Missing or invalid Gemini API key. Set GEMINI_API_KEY and restart.",
    ErrorClass.RATE_LIMITED: "Gemini rate limit reached (429). Wait a minute and try again.",
    ErrorClass.NOT_FOUND: (
        "No available Gemini model supports generateContent for this API version. "
        "Set GEMINI_MODEL and restart."
    ),
    ErrorClass.EMPTY_OUTPUT: "Analysis failed. The AI returned an empty response. Please try again.",
    ErrorClass.MALFORMED_JSON: "AI returned invalid data format. Please try again.",
    ErrorClass.OTHER: "Analysis failed. Please try again.",
}

_ACCESS_DENIED_MESSAGE = (
    "Gemini access denied (403). Check API key restrictions and enabled model access."
)


class MalformedJsonError(Exception):
    """Model text could not be parsed as a JSON object."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        self.raw_text = raw_text


class GenerationError(Exception):
    """A classified, caller-facing generation failure."""

    def __init__(self, failure: GenerationFailure):
        super().__init__(failure.describe())
        self.failure = failure

    @classmethod
    def of(
        cls,
        error_class: ErrorClass,
        message: Optional[str] = None,
        model: Optional[str] = None,
        http_status: Optional[int] = None,
    ) -> "GenerationError":
        return cls(GenerationFailure(
            error_class=error_class,
            model=model,
            http_status=http_status,
            message=message,
        ))

    @property
    def error_class(self) -> ErrorClass:
        return self.failure.error_class

    @property
    def user_message(self) -> str:
        """Short, human-readable explanation suitable for display."""
        if self.failure.error_class == ErrorClass.NOT_FOUND and self.failure.http_status == 403:
            return _ACCESS_DENIED_MESSAGE
        return _USER_MESSAGES[self.failure.error_class]
