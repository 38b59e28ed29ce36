"""Binary/text conversion of audio clips for transport."""

from __future__ import annotations

import base64
import binascii
import io
import wave

from interview_client.errors import MalformedPayloadError
from interview_client.models import AudioClip, EncodedPayload

WAV_MIME_KINDS = frozenset({"audio/wav", "audio/x-wav", "audio/wave"})


def is_wav(mime_kind: str) -> bool:
    return mime_kind.split(";", 1)[0].strip().lower() in WAV_MIME_KINDS


def pcm_to_wav(pcm: bytes, *, sample_rate: int, channels: int, sample_width: int = 2) -> bytes:
    """Wrap raw little-endian PCM in a RIFF/WAVE container."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as writer:
        writer.setnchannels(channels)
        writer.setsampwidth(sample_width)
        writer.setframerate(sample_rate)
        writer.writeframes(pcm)
    return buffer.getvalue()


def strip_metadata(text: str) -> str:
    """Drop a ``data:<mime>;base64,`` prefix, if present."""
    if text.startswith("data:") and "," in text:
        return text.split(",", 1)[1]
    return text


def to_data_url(clip: AudioClip) -> str:
    data = base64.b64encode(clip.data).decode("ascii")
    return f"data:{clip.mime_kind};base64,{data}"


def encode(clip: AudioClip) -> EncodedPayload:
    return EncodedPayload(strip_metadata(to_data_url(clip)))


def decode(payload: str, mime_kind: str) -> AudioClip:
    text = strip_metadata(payload.strip())
    try:
        data = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedPayloadError(f"Reply audio is not valid base64: {exc}") from exc
    if not data:
        raise MalformedPayloadError("Reply audio payload is empty.")
    return AudioClip(data=data, mime_kind=mime_kind)
