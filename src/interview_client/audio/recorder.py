"""Turns a live stream into discrete, finalized audio clips."""

from __future__ import annotations

import logging
from collections import deque

from interview_client.audio import codec
from interview_client.audio.stream import MediaStreamHandle
from interview_client.errors import EmptyRecordingError
from interview_client.events import ChunkAvailable, RecordingEvent, StopRequested, assemble_clip
from interview_client.models import AudioClip, RecordingStatus

DEFAULT_RECORDING_MIME_KIND = "audio/wav"
RAW_PCM_MIME_KIND = "audio/L16;rate=16000;channels=1"


class RecordingHandle:
    """Event log of one recording, fed by stream chunk deliveries."""

    def __init__(self, stream: MediaStreamHandle) -> None:
        self.stream = stream
        self.events: deque[RecordingEvent] = deque()
        self.finalized = False
        self.stopping = False

    def on_chunk(self, chunk: bytes) -> None:
        if self.finalized:
            return
        self.events.append(ChunkAvailable(data=bytes(chunk)))

    def detach(self) -> None:
        self.stream.remove_listener(self.on_chunk)


class Recorder:
    """Records one clip at a time from a media stream.

    Streams deliver raw PCM16. With a WAV ``mime_kind`` the finalized clip is
    wrapped in a RIFF header carrying ``sample_rate`` and ``channels``; any
    other kind keeps the bytes exactly as delivered.
    """

    def __init__(
        self,
        mime_kind: str = DEFAULT_RECORDING_MIME_KIND,
        *,
        sample_rate: int = 16_000,
        channels: int = 1,
        logger: logging.Logger | None = None,
    ) -> None:
        self._mime_kind = mime_kind
        self._sample_rate = sample_rate
        self._channels = channels
        self._logger = logger or logging.getLogger("interview_client.audio.recorder")
        self._status = RecordingStatus.INACTIVE
        self._current: RecordingHandle | None = None

    @property
    def status(self) -> RecordingStatus:
        return self._status

    @property
    def mime_kind(self) -> str:
        return self._mime_kind

    def start(self, stream: MediaStreamHandle) -> RecordingHandle:
        """Begin buffering chunks. Returns the active handle if already recording."""
        if self._status == RecordingStatus.RECORDING and self._current is not None:
            self._logger.debug("recorder_start_ignored", extra={"reason": "already_recording"})
            return self._current

        handle = RecordingHandle(stream)
        stream.add_listener(handle.on_chunk)
        self._current = handle
        self._status = RecordingStatus.RECORDING
        self._logger.info("recorder_started", extra={"mime_kind": self._mime_kind})
        return handle

    async def stop(self, handle: RecordingHandle | None = None) -> AudioClip | None:
        """Finalize the active recording.

        Returns ``None`` when nothing is recording. Raises ``EmptyRecordingError``
        when the finalized clip has no bytes.
        """
        current = self._current
        if self._status != RecordingStatus.RECORDING or current is None:
            self._logger.debug("recorder_stop_ignored", extra={"reason": "inactive"})
            return None
        if current.stopping or (handle is not None and handle is not current):
            self._logger.debug("recorder_stop_ignored", extra={"reason": "stale_handle"})
            return None
        current.stopping = True

        # Chunks captured before the stop signal may still be queued on the loop.
        await current.stream.flush()
        if current.finalized:
            return None
        current.detach()
        current.events.append(StopRequested())
        current.finalized = True

        self._current = None
        self._status = RecordingStatus.INACTIVE

        clip = assemble_clip(current.events, self._mime_kind)
        chunk_count = sum(1 for event in current.events if isinstance(event, ChunkAvailable) and event.data)
        self._logger.info("recorder_stopped", extra={"size": clip.size, "chunks": chunk_count})
        if clip.size == 0:
            raise EmptyRecordingError("Recording produced no audio data.")
        if codec.is_wav(self._mime_kind):
            clip = AudioClip(
                data=codec.pcm_to_wav(clip.data, sample_rate=self._sample_rate, channels=self._channels),
                mime_kind=self._mime_kind,
            )
        return clip

    def abandon(self) -> None:
        """Drop the active recording without finalizing it."""
        current = self._current
        if current is None:
            return
        current.detach()
        current.finalized = True
        current.events.clear()
        self._current = None
        self._status = RecordingStatus.INACTIVE
        self._logger.info("recorder_abandoned")
