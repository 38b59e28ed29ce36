"""Error taxonomy for capture, recording, codec and exchange failures."""

from __future__ import annotations


class InterviewClientError(RuntimeError):
    """Base class for every failure raised by the interview client."""


class DeviceUnsupportedError(InterviewClientError):
    """Raised when the host cannot record audio at all."""


class PermissionDeniedError(InterviewClientError):
    """Raised when access to the microphone is refused."""


class EmptyRecordingError(InterviewClientError):
    """Raised when a finalized recording contains no audio bytes."""


class MalformedPayloadError(InterviewClientError):
    """Raised when encoded audio text cannot be decoded."""


class ExchangeError(InterviewClientError):
    """Base class for failures of the turn exchange with the remote service."""


class NetworkError(ExchangeError):
    """Transport-level failure: unreachable, timed out, or aborted."""


class ServiceError(ExchangeError):
    """Non-success status or structurally invalid reply from the service."""

    def __init__(self, status: int, detail: str | None = None) -> None:
        self.status = status
        self.detail = detail
        message = f"Interview service returned status {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
