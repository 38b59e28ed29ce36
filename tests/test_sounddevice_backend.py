from __future__ import annotations

import asyncio
import sys

import pytest

from fakes import fake_sounddevice
from interview_client.audio.sounddevice_backend import SoundDeviceMicrophone, _resolve_device, list_input_devices
from interview_client.errors import DeviceUnsupportedError, PermissionDeniedError


@pytest.fixture
def sd(monkeypatch):
    module = fake_sounddevice()
    monkeypatch.setitem(sys.modules, "sounddevice", module)
    return module


def test_missing_backend_is_unsupported(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "sounddevice", None)

    with pytest.raises(DeviceUnsupportedError, match="interview-client\\[audio\\]"):
        asyncio.run(SoundDeviceMicrophone().open())
    with pytest.raises(DeviceUnsupportedError):
        list_input_devices()


def test_host_without_input_device_is_unsupported(sd) -> None:
    sd.devices = [{"name": "HDMI Output", "max_input_channels": 0}]

    with pytest.raises(DeviceUnsupportedError, match="No audio input device"):
        asyncio.run(SoundDeviceMicrophone().open())
    assert sd.streams == []


def test_rejected_input_settings_are_unsupported(sd) -> None:
    sd.settings_error = sd.PortAudioError("Invalid sample rate")

    with pytest.raises(DeviceUnsupportedError, match="rejected settings"):
        asyncio.run(SoundDeviceMicrophone(sample_rate=12345).open())


def test_stream_refused_by_host_is_permission_denied(sd) -> None:
    sd.stream_error = sd.PortAudioError("Device unavailable")

    with pytest.raises(PermissionDeniedError):
        asyncio.run(SoundDeviceMicrophone().open())


def test_open_forwards_device_blocks_and_stop_closes_stream(sd) -> None:
    async def _run():
        handle = await SoundDeviceMicrophone(device="usb", block_size=256).open()
        received: list[bytes] = []
        handle.add_listener(received.append)
        stream = sd.streams[-1]
        stream.callback(b"\x01\x00\x02\x00", 2, None, None)
        stream.callback(b"", 0, None, None)
        await handle.flush()
        handle.stop()
        handle.stop()
        return handle, received, stream

    handle, received, stream = asyncio.run(_run())
    assert received == [b"\x01\x00\x02\x00"]
    assert stream.kwargs["device"] == 1
    assert stream.kwargs["dtype"] == "int16"
    assert stream.kwargs["blocksize"] == 256
    assert stream.started and stream.stopped and stream.closed
    assert handle.active is False
    assert handle.tracks[0].label == "input:1"


def test_resolve_device_accepts_index_name_and_default(sd) -> None:
    assert _resolve_device(sd, None) is None
    assert _resolve_device(sd, 3) == 3
    assert _resolve_device(sd, "default") is None
    assert _resolve_device(sd, " 2 ") == 2
    assert _resolve_device(sd, "microphone") == 1
    with pytest.raises(DeviceUnsupportedError, match="HDMI"):
        _resolve_device(sd, "HDMI")


def test_list_input_devices_skips_output_only_devices(sd) -> None:
    assert list_input_devices() == [
        {"index": 1, "name": "USB Microphone", "channels": 1, "default_samplerate": 16000.0},
    ]
