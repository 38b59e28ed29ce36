"""Microphone backend powered by ``sounddevice``."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from interview_client.audio.stream import AudioTrack, MediaStreamHandle
from interview_client.errors import DeviceUnsupportedError, PermissionDeniedError

logger = logging.getLogger("interview_client.audio.sounddevice")

_INSTALL_HINT = "Install extras with: pip install 'interview-client[audio]'"


def _import_sounddevice() -> Any:
    try:
        import sounddevice as sd
    except (ImportError, OSError) as exc:  # pragma: no cover - import guard
        raise DeviceUnsupportedError(f"Audio capture backend unavailable. {_INSTALL_HINT}") from exc
    return sd


def list_input_devices() -> list[dict[str, Any]]:
    """Return PortAudio devices that expose at least one input channel."""
    sd = _import_sounddevice()
    devices = []
    for index, info in enumerate(sd.query_devices()):
        if info.get("max_input_channels", 0) <= 0:
            continue
        devices.append(
            {
                "index": index,
                "name": str(info.get("name", "")),
                "channels": int(info.get("max_input_channels", 0)),
                "default_samplerate": float(info.get("default_samplerate", 0.0)),
            }
        )
    return devices


def _resolve_device(sd: Any, device: str | int | None) -> int | None:
    if device is None or isinstance(device, int):
        return device
    text = device.strip()
    if not text or text.lower() in {"default", "auto"}:
        return None
    if text.isdigit():
        return int(text)
    lowered = text.lower()
    for index, info in enumerate(sd.query_devices()):
        if info.get("max_input_channels", 0) <= 0:
            continue
        if lowered in str(info.get("name", "")).lower():
            return index
    raise DeviceUnsupportedError(f"No input device found matching name '{device}'.")


@dataclass(slots=True)
class SoundDeviceMicrophone:
    """Opens a PCM16 ``sd.RawInputStream`` and forwards blocks to the event loop."""

    sample_rate: int = 16_000
    channels: int = 1
    block_size: int = 1024
    device: str | int | None = None

    async def open(self) -> MediaStreamHandle:
        sd = _import_sounddevice()
        try:
            has_input = any(info.get("max_input_channels", 0) > 0 for info in sd.query_devices())
        except sd.PortAudioError as exc:
            raise DeviceUnsupportedError(f"Audio host is not usable: {exc}") from exc
        if not has_input:
            raise DeviceUnsupportedError("No audio input device is available on this host.")

        device = _resolve_device(sd, self.device)
        loop = asyncio.get_running_loop()
        handle = MediaStreamHandle([], loop=loop)

        def _callback(indata, frames, time_info, status) -> None:
            if status:
                logger.debug("input_stream_status", extra={"status": str(status)})
            if frames <= 0 or indata is None:
                return
            # PortAudio reuses the buffer; copy before leaving the callback.
            handle.emit_threadsafe(bytes(indata))

        try:
            sd.check_input_settings(
                device=device,
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
            )
        except (sd.PortAudioError, ValueError) as exc:
            raise DeviceUnsupportedError(f"Input device rejected settings: {exc}") from exc

        try:
            stream = sd.RawInputStream(
                samplerate=float(self.sample_rate),
                channels=self.channels,
                dtype="int16",
                blocksize=self.block_size,
                device=device,
                callback=_callback,
            )
            stream.start()
        except sd.PortAudioError as exc:
            raise PermissionDeniedError(f"Microphone access was refused: {exc}") from exc

        def _stop_stream() -> None:
            try:
                stream.stop()
            finally:
                stream.close()

        label = f"input:{device if device is not None else 'default'}"
        handle.add_track(AudioTrack(label=label, stop_callback=_stop_stream))
        logger.info(
            "input_stream_started",
            extra={"sample_rate": self.sample_rate, "channels": self.channels, "block_size": self.block_size},
        )
        return handle
