from __future__ import annotations

import sys
from pathlib import Path

import pytest

from fakes import FakeOutput, fake_numpy, fake_sounddevice
from interview_client.audio import codec
from interview_client.audio.output import (
    FileAudioOutput,
    ReplyPlaybackConfig,
    ReplyPlaybackService,
    SoundDeviceAudioOutput,
    extension_for,
    mime_parameters,
)
from interview_client.models import AudioClip


def test_file_output_names_files_by_mime_kind(tmp_path: Path) -> None:
    output = FileAudioOutput(tmp_path / "replies")

    output.play(AudioClip(data=b"wav", mime_kind="audio/wav"))
    output.play(AudioClip(data=b"webm", mime_kind="audio/webm;codecs=opus"))

    assert [path.name for path in output.written] == ["reply-001.wav", "reply-002.webm"]
    assert output.written[1].read_bytes() == b"webm"


def test_playback_service_respects_enabled_flag() -> None:
    device = FakeOutput()
    clip = AudioClip(data=b"reply", mime_kind="audio/wav")

    assert ReplyPlaybackService(device, ReplyPlaybackConfig(enabled=False)).play(clip) is False
    assert ReplyPlaybackService(device).play(None) is False
    assert ReplyPlaybackService(device).play(clip) is True
    assert device.played == [clip]


def test_mime_helpers() -> None:
    assert extension_for("audio/L16;rate=16000;channels=1") == ".pcm"
    assert extension_for("application/octet-stream") == ".bin"
    assert mime_parameters("audio/L16; rate=16000; channels=1") == {"rate": "16000", "channels": "1"}


@pytest.fixture
def speaker(monkeypatch):
    sd = fake_sounddevice()
    monkeypatch.setitem(sys.modules, "sounddevice", sd)
    monkeypatch.setitem(sys.modules, "numpy", fake_numpy())
    return sd


def test_speaker_plays_wav_reply(speaker) -> None:
    wav = codec.pcm_to_wav(b"\x01\x00\x02\x00" * 2, sample_rate=22_050, channels=2)

    SoundDeviceAudioOutput(device="speakers").play(AudioClip(data=wav, mime_kind="audio/wav"))

    samples, sample_rate, device = speaker.played[0]
    assert samples.data == b"\x01\x00\x02\x00" * 2
    assert samples.shape == (-1, 2)
    assert (sample_rate, device) == (22_050, "speakers")


def test_speaker_rejects_reply_that_is_not_wav(speaker) -> None:
    output = SoundDeviceAudioOutput()

    with pytest.raises(ValueError, match="not a readable WAV"):
        output.play(AudioClip(data=b"\x1aE\xdf\xa3webm-cluster", mime_kind="audio/wav"))
    with pytest.raises(ValueError, match="save it to a file"):
        output.play(AudioClip(data=b"\x1aE\xdf\xa3", mime_kind="audio/webm"))
    assert speaker.played == []


def test_speaker_failure_is_runtime_error(speaker) -> None:
    speaker.play_error = speaker.PortAudioError("Device unavailable")

    with pytest.raises(RuntimeError, match="playback failed"):
        SoundDeviceAudioOutput().play(AudioClip(data=b"\x00\x00", mime_kind="audio/L16;rate=16000"))
