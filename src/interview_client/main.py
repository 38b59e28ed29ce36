"""CLI startup entrypoint for the interview client."""

from __future__ import annotations

import asyncio
import mimetypes
from pathlib import Path

import typer
from rich import print

from interview_client.audio import codec
from interview_client.audio.capture import CaptureDeviceGateway, MicrophoneBackend
from interview_client.audio.output import (
    AudioOutputDevice,
    FileAudioOutput,
    ReplyPlaybackConfig,
    ReplyPlaybackService,
    extension_for,
)
from interview_client.audio.recorder import Recorder
from interview_client.cli import ConsoleTelemetry, run_push_to_talk
from interview_client.config import settings
from interview_client.controller import SessionTurnController
from interview_client.errors import DeviceUnsupportedError, ExchangeError, MalformedPayloadError
from interview_client.exchange import TurnExchanger
from interview_client.models import AudioClip
from interview_client.telemetry.logging import configure_logging

app = typer.Typer(help="Interview client: record answers and exchange them with the interview service")


def _build_backend() -> MicrophoneBackend:
    from interview_client.audio.sounddevice_backend import SoundDeviceMicrophone

    return SoundDeviceMicrophone(
        sample_rate=settings.sample_rate,
        channels=settings.channels,
        block_size=settings.block_size,
        device=settings.input_device,
    )


def _build_exchanger() -> TurnExchanger:
    return TurnExchanger(settings.service_url, timeout_seconds=settings.request_timeout_seconds)


def _build_output(reply_dir: str | None) -> AudioOutputDevice:
    if reply_dir:
        return FileAudioOutput(reply_dir)
    from interview_client.audio.output import SoundDeviceAudioOutput

    return SoundDeviceAudioOutput(device=settings.output_device, default_sample_rate=settings.sample_rate)


def _build_controller(session_id: str | None, questions: int | None) -> SessionTurnController:
    return SessionTurnController(
        gateway=CaptureDeviceGateway(_build_backend()),
        recorder=Recorder(
            settings.recording_mime_kind,
            sample_rate=settings.sample_rate,
            channels=settings.channels,
        ),
        exchanger=_build_exchanger(),
        session_id=session_id,
        reply_mime_kind=settings.reply_mime_kind,
        question_count=questions,
        telemetry=ConsoleTelemetry(),
        max_exchange_retries=settings.max_exchange_retries,
        retry_delay_seconds=settings.retry_delay_seconds,
        owns_exchanger=True,
    )


@app.command("show-config")
def show_config() -> None:
    """Show runtime configuration."""
    print(settings.model_dump())


@app.command()
def devices() -> None:
    """List audio input devices."""
    from interview_client.audio.sounddevice_backend import list_input_devices

    try:
        print({"input_devices": list_input_devices()})
    except DeviceUnsupportedError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)


@app.command()
def run(
    session_id: str = typer.Option(None, help="Interview session identifier"),
    questions: int = typer.Option(None, help="Number of questions, shown as progress"),
    reply_dir: str = typer.Option(None, help="Write reply audio files here instead of playing them"),
    no_playback: bool = typer.Option(False, help="Do not play or store reply audio"),
) -> None:
    """Answer interview questions with push-to-talk recording."""
    configure_logging(settings.log_level)
    effective_session = session_id or settings.session_id

    playback: ReplyPlaybackService | None = None
    if not no_playback and settings.playback_enabled:
        try:
            output = _build_output(reply_dir or settings.reply_dir)
        except RuntimeError as exc:
            print({"error": str(exc)})
            raise typer.Exit(code=1)
        playback = ReplyPlaybackService(output, ReplyPlaybackConfig(enabled=True))

    async def _run() -> tuple[int, bool]:
        async with _build_controller(effective_session, questions) as controller:
            turns = await run_push_to_talk(controller, playback=playback)
            return turns, controller.permission_granted

    turns, granted = asyncio.run(_run())
    if not granted:
        raise typer.Exit(code=1)
    print({"turns_completed": turns})


@app.command("submit-file")
def submit_file(
    path: Path = typer.Argument(..., help="Pre-recorded answer audio"),
    session_id: str = typer.Option(None, help="Interview session identifier"),
    mime_kind: str = typer.Option(None, help="MIME kind of the answer; guessed from the file name by default"),
    out: Path = typer.Option(None, help="Where to write the reply audio"),
) -> None:
    """Send one pre-recorded answer and print the reply transcript."""
    effective_session = session_id or settings.session_id
    if not effective_session:
        raise typer.BadParameter("Provide --session-id or set INTERVIEW_CLIENT_SESSION_ID")
    if not path.exists():
        raise typer.BadParameter(f"Answer file not found: {path}")
    data = path.read_bytes()
    if not data:
        raise typer.BadParameter(f"Answer file is empty: {path}")

    kind = mime_kind or mimetypes.guess_type(path.name)[0] or settings.recording_mime_kind
    clip = AudioClip(data=data, mime_kind=kind)

    async def _run() -> AudioClip:
        async with _build_exchanger() as exchanger:
            response = await exchanger.submit(effective_session, codec.encode(clip))
        print({"reply": response.text_output})
        return codec.decode(response.audio_output, settings.reply_mime_kind)

    try:
        reply = asyncio.run(_run())
    except (ExchangeError, MalformedPayloadError) as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)

    target = out or path.with_name(f"{path.stem}-reply{extension_for(reply.mime_kind)}")
    target.write_bytes(reply.data)
    print({"reply_audio": str(target), "size": reply.size})


if __name__ == "__main__":
    app()
