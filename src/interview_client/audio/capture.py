"""Microphone acquisition and release."""

from __future__ import annotations

import logging
from typing import Protocol

from interview_client.audio.stream import MediaStreamHandle
from interview_client.errors import DeviceUnsupportedError, PermissionDeniedError


class MicrophoneBackend(Protocol):
    """Opens a live capture stream on some audio host."""

    async def open(self) -> MediaStreamHandle:
        """Return a live stream or raise DeviceUnsupportedError/PermissionDeniedError."""


class CaptureDeviceGateway:
    """Acquires and releases the microphone for one controller."""

    def __init__(self, backend: MicrophoneBackend, *, logger: logging.Logger | None = None) -> None:
        self._backend = backend
        self._logger = logger or logging.getLogger("interview_client.audio.capture")
        self._permission_granted = False

    @property
    def permission_granted(self) -> bool:
        return self._permission_granted

    async def acquire(self) -> MediaStreamHandle:
        try:
            handle = await self._backend.open()
        except DeviceUnsupportedError:
            self._logger.error("capture_device_unsupported")
            raise
        except PermissionDeniedError:
            self._logger.warning("capture_permission_denied")
            raise
        self._permission_granted = True
        self._logger.info("capture_acquired", extra={"tracks": len(handle.tracks)})
        return handle

    def release(self, handle: MediaStreamHandle | None) -> None:
        if handle is None:
            return
        was_active = handle.active
        handle.stop()
        if was_active:
            self._logger.info("capture_released")
