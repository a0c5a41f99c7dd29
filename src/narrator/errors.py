"""
Job-level failures surfaced to the user with a machine-readable code.
"""

AUDIO_TOO_LARGE = "AUDIO_TOO_LARGE"
INVALID_FORMAT = "INVALID_FORMAT"
NO_AUDIO_INPUT = "NO_AUDIO_INPUT"
AUDIO_URL_NOT_FOUND = "AUDIO_URL_NOT_FOUND"
TRANSCRIPTION_FAILED = "TRANSCRIPTION_FAILED"
GENERATION_FAILED = "GENERATION_FAILED"
VIDEO_GENERATION_FAILED = "VIDEO_GENERATION_FAILED"
TIMEOUT = "TIMEOUT"


class PipelineError(RuntimeError):
    """A collaborator or input failure that ends the current job."""

    def __init__(self, code: str, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        out = {"error": self.message, "code": self.code}
        if self.details:
            out["details"] = self.details
        return out
