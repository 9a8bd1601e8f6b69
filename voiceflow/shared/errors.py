"""Exception hierarchy for the voice-to-invoice pipeline.

Only TranscriptionError and ExtractionTimeoutError reach callers of the public
operations. Everything else is raised inside a stage and absorbed by its fallback.
"""


class VoiceFlowError(Exception):
    """Base error. `retryable` tells the caller whether repeating the request may help."""

    retryable: bool = False

    def __init__(self, message: str, *, retryable: bool | None = None) -> None:
        super().__init__(message)
        self.message = message
        if retryable is not None:
            self.retryable = retryable


class TranscriptionError(VoiceFlowError):
    """Speech-to-text provider unreachable or rejected the audio."""

    retryable = True


class ExtractionError(VoiceFlowError):
    """A single extraction stage failed; the orchestrator moves to the next one."""


class ProviderUnavailableError(ExtractionError):
    """Stage is disabled or has no credential configured."""


class ProviderRequestError(ExtractionError):
    """Transport or API failure after the stage's own retries."""


class MalformedProviderOutputError(ExtractionError):
    """Model output was not a JSON object matching the transaction shape."""


class ExtractionTimeoutError(VoiceFlowError):
    """The extraction chain did not finish before its deadline."""

    retryable = True


class QRGenerationError(VoiceFlowError):
    pass


class DueDateParseError(VoiceFlowError):
    pass
