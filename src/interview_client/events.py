"""Ordered recording events and the reduction that turns them into a clip."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from interview_client.models import AudioClip


@dataclass(frozen=True, slots=True)
class ChunkAvailable:
    data: bytes


@dataclass(frozen=True, slots=True)
class StopRequested:
    pass


RecordingEvent = ChunkAvailable | StopRequested


def assemble_clip(events: Iterable[RecordingEvent], mime_kind: str) -> AudioClip:
    """Concatenate chunk bytes in arrival order up to the first stop event.

    Zero-length chunks are dropped. Events after the stop are never applied.
    """
    chunks: list[bytes] = []
    for event in events:
        if isinstance(event, StopRequested):
            break
        if event.data:
            chunks.append(event.data)
    return AudioClip(data=b"".join(chunks), mime_kind=mime_kind)
