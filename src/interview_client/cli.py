"""Push-to-talk host loop over a session turn controller."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from rich.console import Console

from interview_client.audio.output import ReplyPlaybackService
from interview_client.controller import SessionTurnController
from interview_client.models import TurnState

Prompt = Callable[[str], Awaitable[str]]

_FINISH_WORDS = {"q", "quit", "done", "exit"}

_USER_MESSAGES: dict[str, str] = {
    "device_unsupported": "Audio recording is not supported on this host",
    "permission_denied": "Microphone access was denied",
    "recording_empty": "Nothing was recorded; please answer again",
    "session_id_missing": "No session id configured; the answer was not sent",
    "turn_failed": "The answer could not be processed; please answer again",
}


class ConsoleTelemetry:
    """Shows user-relevant session events on a rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        message = _USER_MESSAGES.get(event_name)
        if message is None:
            return
        detail = payload.get("error")
        self._console.print(f"[bold red]{message}[/bold red]" + (f" ({detail})" if detail else ""))


async def console_prompt(message: str) -> str:
    return await asyncio.to_thread(input, message)


async def run_push_to_talk(
    controller: SessionTurnController,
    *,
    prompt: Prompt = console_prompt,
    playback: ReplyPlaybackService | None = None,
    console: Console | None = None,
) -> int:
    """Drive turns until the user finishes or the question count is reached.

    Returns the number of replies received.
    """
    console = console or Console()
    if not await controller.request_permission():
        return controller.turns_completed

    while controller.state != TurnState.DONE:
        total = controller.question_count
        number = controller.turns_completed + 1
        label = f"Question {number}/{total}" if total else f"Question {number}"
        answer = await prompt(f"{label}: press Enter to start answering (q to finish) ")
        if answer.strip().lower() in _FINISH_WORDS:
            controller.mark_done()
            break
        if not controller.start_recording():
            continue

        await prompt("Recording... press Enter to finish ")
        result = await controller.stop_recording()
        if result is None:
            continue

        console.print({"turn": result.turn_index, "reply": result.reply_text})
        if playback is not None:
            try:
                await asyncio.to_thread(playback.play, result.reply_audio)
            except (RuntimeError, ValueError) as exc:
                console.print({"playback_error": str(exc)})

        if total and controller.turns_completed >= total:
            controller.mark_done()

    console.print({"interview": "received", "turns": controller.turns_completed})
    return controller.turns_completed
