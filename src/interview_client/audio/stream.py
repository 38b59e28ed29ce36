"""Live audio stream handles owned by the capture gateway."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

ChunkListener = Callable[[bytes], None]

logger = logging.getLogger("interview_client.audio.stream")


class AudioTrack:
    """One capture track; ``stop_callback`` releases the underlying device."""

    def __init__(self, label: str, stop_callback: Callable[[], None] | None = None) -> None:
        self.label = label
        self._stop_callback = stop_callback
        self._live = True

    @property
    def live(self) -> bool:
        return self._live

    def stop(self) -> None:
        if not self._live:
            return
        self._live = False
        if self._stop_callback is not None:
            self._stop_callback()


class MediaStreamHandle:
    """Fan-out of captured chunks to listeners on the event loop thread.

    Device callbacks running on foreign threads must use ``emit_threadsafe`` so
    chunks reach listeners in capture order on the loop.
    """

    def __init__(self, tracks: list[AudioTrack], loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._tracks = list(tracks)
        self._listeners: list[ChunkListener] = []
        self._loop = loop

    @property
    def tracks(self) -> list[AudioTrack]:
        return list(self._tracks)

    @property
    def active(self) -> bool:
        return any(track.live for track in self._tracks)

    def bind_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    def add_track(self, track: AudioTrack) -> None:
        self._tracks.append(track)

    def add_listener(self, listener: ChunkListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ChunkListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, chunk: bytes) -> None:
        """Deliver a chunk to current listeners. Must run on the loop thread."""
        if not self.active:
            return
        for listener in list(self._listeners):
            listener(chunk)

    def emit_threadsafe(self, chunk: bytes) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("stream_chunk_dropped", extra={"reason": "no_loop", "size": len(chunk)})
            return
        loop.call_soon_threadsafe(self.emit, chunk)

    async def flush(self) -> None:
        """Let chunk deliveries already scheduled on the loop run."""
        await asyncio.sleep(0)

    def stop(self) -> None:
        """Stop every track. Safe to call repeatedly."""
        for track in self._tracks:
            track.stop()
        self._listeners.clear()
