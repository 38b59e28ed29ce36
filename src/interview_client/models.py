from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NewType

EncodedPayload = NewType("EncodedPayload", str)


class RecordingStatus(str, Enum):
    INACTIVE = "inactive"
    RECORDING = "recording"


class TurnState(str, Enum):
    """Lifecycle states of a session turn controller."""

    AWAITING_PERMISSION = "awaiting_permission"
    IDLE = "idle"
    RECORDING = "recording"
    PROCESSING = "processing"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class AudioClip:
    """Finalized, immutable unit of audio tagged with its MIME kind."""

    data: bytes
    mime_kind: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class TurnRequest:
    session_id: str
    user_audio: EncodedPayload


@dataclass(frozen=True, slots=True)
class TurnResponse:
    audio_output: EncodedPayload
    text_output: str


@dataclass(frozen=True, slots=True)
class TurnResult:
    """Outputs published by the controller for one completed turn."""

    turn_index: int
    user_clip: AudioClip
    reply_text: str
    reply_audio: AudioClip
