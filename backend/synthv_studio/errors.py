"""Failure taxonomy for generation runs.

Everything raised below the orchestrator boundary is a `GenerationError`, so
callers can catch one type and still tell the causes apart.
"""

from __future__ import annotations


class GenerationError(Exception):
    """Base class for every failure a generation run can end with."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def user_message(self) -> str:
        return self.message


class ValidationError(GenerationError):
    """Request rejected before any network call was made."""

    def __init__(self, message: str, needs_credential: bool = False):
        super().__init__(message)
        self.needs_credential = needs_credential


class EmptyBatchError(ValidationError):
    def __init__(self, message: str = "Add a prompt to at least one segment before generating."):
        super().__init__(message)


class RemoteError(GenerationError):
    """Submission failed or the service reported a failed operation."""


class OperationTimeoutError(GenerationError):
    """Polling gave up before the remote operation reported completion."""

    def __init__(self, attempts: int, elapsed_seconds: float):
        super().__init__(
            f"Generation timed out after {attempts} status checks "
            f"(~{int(elapsed_seconds)}s). Please try again."
        )
        self.attempts = attempts
        self.elapsed_seconds = elapsed_seconds


class MissingResultError(GenerationError):
    def __init__(self, message: str = "Video generation succeeded, but no download link was found."):
        super().__init__(message)


class FetchError(GenerationError):
    """Download of a generated asset failed."""

    def __init__(self, status: int | None, message: str | None = None):
        if message is None:
            message = f"Failed to download video file. Status: {status}"
        super().__init__(message)
        self.status = status
