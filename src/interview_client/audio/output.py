"""Playback and storage of reply audio clips."""

from __future__ import annotations

import io
import logging
import wave
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from interview_client.audio.codec import is_wav
from interview_client.models import AudioClip

logger = logging.getLogger("interview_client.audio.output")

_EXTENSIONS: dict[str, str] = {
    "audio/wav": ".wav",
    "audio/x-wav": ".wav",
    "audio/wave": ".wav",
    "audio/webm": ".webm",
    "audio/ogg": ".ogg",
    "audio/mpeg": ".mp3",
    "audio/l16": ".pcm",
}


def base_mime(mime_kind: str) -> str:
    return mime_kind.split(";", 1)[0].strip().lower()


def mime_parameters(mime_kind: str) -> dict[str, str]:
    params: dict[str, str] = {}
    for part in mime_kind.split(";")[1:]:
        if "=" in part:
            key, value = part.split("=", 1)
            params[key.strip().lower()] = value.strip()
    return params


def extension_for(mime_kind: str) -> str:
    return _EXTENSIONS.get(base_mime(mime_kind), ".bin")


class AudioOutputDevice(Protocol):
    """Interface for a speaker or other sink of reply clips."""

    def play(self, clip: AudioClip) -> None:
        """Render the reply clip."""


@dataclass(slots=True)
class ReplyPlaybackConfig:
    enabled: bool = True


class ReplyPlaybackService:
    """Sends published reply clips to an output device when playback is enabled."""

    def __init__(self, output_device: AudioOutputDevice, config: ReplyPlaybackConfig | None = None) -> None:
        self._output_device = output_device
        self._config = config or ReplyPlaybackConfig()

    def play(self, clip: AudioClip | None) -> bool:
        if not self._config.enabled or clip is None or clip.size == 0:
            return False
        self._output_device.play(clip)
        return True


class FileAudioOutput:
    """Writes each clip to ``directory`` as ``reply-<n><ext>``."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory).expanduser()
        self._directory.mkdir(parents=True, exist_ok=True)
        self._count = 0
        self.written: list[Path] = []

    def play(self, clip: AudioClip) -> None:
        self._count += 1
        target = self._directory / f"reply-{self._count:03d}{extension_for(clip.mime_kind)}"
        target.write_bytes(clip.data)
        self.written.append(target)
        logger.info("reply_written", extra={"path": str(target), "size": clip.size})


class SoundDeviceAudioOutput:
    """Speaker playback of WAV and raw PCM16 clips via ``sounddevice``.

    Undecodable clips raise ``ValueError`` and device failures raise
    ``RuntimeError``, so a host loop can report them and keep going.
    """

    def __init__(self, *, device: str | int | None = None, default_sample_rate: int = 16_000) -> None:
        try:
            import numpy as np
            import sounddevice as sd
        except (ImportError, OSError) as exc:  # pragma: no cover - import guard
            raise RuntimeError(
                "Audio output backend unavailable. Install extras with: pip install 'interview-client[audio]'"
            ) from exc
        self._np = np
        self._sd = sd
        self._device = device
        self._default_sample_rate = default_sample_rate

    def play(self, clip: AudioClip) -> None:
        kind = base_mime(clip.mime_kind)
        if is_wav(kind):
            try:
                with wave.open(io.BytesIO(clip.data), "rb") as reader:
                    sample_width = reader.getsampwidth()
                    channels = reader.getnchannels()
                    sample_rate = reader.getframerate()
                    frames = reader.readframes(reader.getnframes())
            except (wave.Error, EOFError) as exc:
                raise ValueError(f"Reply audio is not a readable WAV file: {exc}") from exc
            if sample_width != 2:
                raise ValueError("Only 16-bit WAV replies can be played.")
        elif kind == "audio/l16":
            params = mime_parameters(clip.mime_kind)
            channels = int(params.get("channels", "1"))
            sample_rate = int(params.get("rate", str(self._default_sample_rate)))
            frames = clip.data
        else:
            raise ValueError(f"Cannot play reply audio of kind {clip.mime_kind!r}; save it to a file instead.")

        pcm = self._np.frombuffer(frames, dtype="<i2")
        if channels > 1:
            pcm = pcm.reshape(-1, channels)
        try:
            self._sd.play(pcm, samplerate=sample_rate, device=self._device)
            self._sd.wait()
        except self._sd.PortAudioError as exc:
            raise RuntimeError(f"Reply playback failed: {exc}") from exc
