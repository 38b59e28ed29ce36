"""Capture, recording, encoding and playback of audio clips."""

from .capture import CaptureDeviceGateway, MicrophoneBackend
from .output import AudioOutputDevice, FileAudioOutput, ReplyPlaybackConfig, ReplyPlaybackService
from .recorder import DEFAULT_RECORDING_MIME_KIND, Recorder, RecordingHandle
from .stream import AudioTrack, MediaStreamHandle

__all__ = [
    "AudioOutputDevice",
    "AudioTrack",
    "CaptureDeviceGateway",
    "DEFAULT_RECORDING_MIME_KIND",
    "FileAudioOutput",
    "MediaStreamHandle",
    "MicrophoneBackend",
    "Recorder",
    "RecordingHandle",
    "ReplyPlaybackConfig",
    "ReplyPlaybackService",
]
