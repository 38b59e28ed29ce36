"""State machine driving permission, recording and turn exchange for one session."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from interview_client.audio import codec
from interview_client.audio.capture import CaptureDeviceGateway
from interview_client.audio.recorder import Recorder, RecordingHandle
from interview_client.audio.stream import MediaStreamHandle
from interview_client.errors import (
    DeviceUnsupportedError,
    EmptyRecordingError,
    ExchangeError,
    InterviewClientError,
    MalformedPayloadError,
    NetworkError,
    PermissionDeniedError,
)
from interview_client.exchange import TurnExchanger
from interview_client.models import AudioClip, EncodedPayload, RecordingStatus, TurnResponse, TurnResult, TurnState
from interview_client.telemetry.logging import LoggingTelemetry, Telemetry


class SessionTurnController:
    """Owns the microphone stream of one interview session and runs its turns.

    States move ``AWAITING_PERMISSION -> IDLE -> RECORDING -> PROCESSING -> IDLE``
    until ``mark_done`` moves the controller to the terminal ``DONE`` state.
    Per-turn failures are reported and never leave the controller outside
    ``IDLE``/``DONE``.
    """

    def __init__(
        self,
        gateway: CaptureDeviceGateway,
        recorder: Recorder,
        exchanger: TurnExchanger,
        *,
        session_id: str | None = None,
        reply_mime_kind: str = "audio/wav",
        question_count: int | None = None,
        telemetry: Telemetry | None = None,
        max_exchange_retries: int = 0,
        retry_delay_seconds: float = 0.5,
        owns_exchanger: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self._gateway = gateway
        self._recorder = recorder
        self._exchanger = exchanger
        self._session_id = session_id or None
        self._reply_mime_kind = reply_mime_kind
        self._question_count = question_count
        self._telemetry = telemetry or LoggingTelemetry()
        self._max_exchange_retries = max(0, max_exchange_retries)
        self._retry_delay_seconds = retry_delay_seconds
        self._owns_exchanger = owns_exchanger
        self._logger = logger or logging.getLogger("interview_client.controller")

        self._state = TurnState.AWAITING_PERMISSION
        self._stream: MediaStreamHandle | None = None
        self._recording: RecordingHandle | None = None
        self._exchange_in_flight = False
        self._done_requested = False
        self._device_unsupported = False
        self._closed = False

        self._reply_text: str | None = None
        self._reply_audio: AudioClip | None = None
        self._last_recording: AudioClip | None = None
        self._last_error: InterviewClientError | None = None
        self._turns_completed = 0

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def permission_granted(self) -> bool:
        return self._gateway.permission_granted and self._stream is not None

    @property
    def recording_status(self) -> RecordingStatus:
        return self._recorder.status

    @property
    def exchange_in_flight(self) -> bool:
        return self._exchange_in_flight

    @property
    def reply_text(self) -> str | None:
        return self._reply_text

    @property
    def reply_audio(self) -> AudioClip | None:
        return self._reply_audio

    @property
    def last_recording(self) -> AudioClip | None:
        return self._last_recording

    @property
    def last_error(self) -> InterviewClientError | None:
        return self._last_error

    @property
    def turns_completed(self) -> int:
        return self._turns_completed

    @property
    def question_count(self) -> int | None:
        return self._question_count

    @property
    def closed(self) -> bool:
        return self._closed

    async def request_permission(self) -> bool:
        """Acquire the microphone. A second call replaces and releases the held stream."""
        if self._closed or self._device_unsupported:
            return False
        if self._state not in (TurnState.AWAITING_PERMISSION, TurnState.IDLE):
            self._logger.debug("permission_request_ignored", extra={"state": self._state.value})
            return False

        try:
            stream = await self._gateway.acquire()
        except DeviceUnsupportedError as exc:
            self._device_unsupported = True
            self._report("device_unsupported", exc)
            return False
        except PermissionDeniedError as exc:
            self._report("permission_denied", exc)
            return False

        if self._closed:
            self._gateway.release(stream)
            return False

        previous, self._stream = self._stream, stream
        if previous is not None and previous is not stream:
            self._gateway.release(previous)
        if self._state == TurnState.AWAITING_PERMISSION:
            self._state = TurnState.IDLE
        self._last_error = None
        self._emit("permission_granted", {"replaced": previous is not None})
        return True

    def start_recording(self) -> bool:
        if self._closed or self._state != TurnState.IDLE or self._stream is None:
            self._logger.debug("start_recording_ignored", extra={"state": self._state.value})
            return False

        self._recording = self._recorder.start(self._stream)
        self._state = TurnState.RECORDING
        self._emit("recording_started", {"turn_index": self._turns_completed + 1})
        return True

    async def stop_recording(self) -> TurnResult | None:
        """Finalize the current answer and exchange it with the service."""
        if self._state != TurnState.RECORDING:
            self._logger.debug("stop_recording_ignored", extra={"state": self._state.value})
            return None

        self._state = TurnState.PROCESSING
        handle, self._recording = self._recording, None
        try:
            clip = await self._recorder.stop(handle)
        except EmptyRecordingError as exc:
            self._report("recording_empty", exc)
            self._finish_processing()
            return None

        if clip is None:
            self._finish_processing()
            return None
        self._last_recording = clip
        return await self._process(clip)

    async def process_clip(self, clip: AudioClip) -> TurnResult | None:
        """Encode ``clip``, exchange it and publish the reply.

        Accepted only while idle. Only one exchange may be outstanding, so
        calls made while a turn is processing are rejected.
        """
        if self._exchange_in_flight or self._state == TurnState.PROCESSING:
            self._emit("exchange_rejected", {"reason": "exchange_in_flight"})
            return None
        if self._closed or self._state != TurnState.IDLE:
            self._logger.debug("process_clip_ignored", extra={"state": self._state.value})
            return None

        self._state = TurnState.PROCESSING
        return await self._process(clip)

    async def _process(self, clip: AudioClip) -> TurnResult | None:
        try:
            if self._closed:
                return None
            payload = codec.encode(clip)
            if not self._session_id:
                self._logger.warning("session_id_missing", extra={"clip_size": clip.size})
                self._emit("session_id_missing", {"clip_size": clip.size})
                return None

            self._exchange_in_flight = True
            try:
                response = await self._submit(self._session_id, payload)
                reply_audio = codec.decode(response.audio_output, self._reply_mime_kind)
            except (ExchangeError, MalformedPayloadError) as exc:
                self._report("turn_failed", exc)
                return None
            finally:
                self._exchange_in_flight = False

            if self._closed:
                self._logger.info("reply_discarded", extra={"reason": "controller_closed"})
                return None
            return self._publish(clip, response, reply_audio)
        finally:
            self._finish_processing()

    def mark_done(self) -> None:
        """Enter the terminal state; deferred while an exchange is processing."""
        if self._state == TurnState.DONE:
            return
        self._done_requested = True
        if self._state == TurnState.PROCESSING:
            self._logger.info("done_deferred", extra={"reason": "processing"})
            return
        if self._state == TurnState.RECORDING:
            self._recorder.abandon()
            self._recording = None
        self._enter_done()

    async def close(self) -> None:
        """Release the microphone and drop any active recording. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._recorder.status == RecordingStatus.RECORDING:
            self._recorder.abandon()
        self._recording = None
        stream, self._stream = self._stream, None
        self._gateway.release(stream)
        if self._owns_exchanger:
            await self._exchanger.aclose()
        self._logger.info("controller_closed", extra={"state": self._state.value})

    async def __aenter__(self) -> "SessionTurnController":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _submit(self, session_id: str, payload: EncodedPayload) -> TurnResponse:
        max_attempts = self._max_exchange_retries + 1
        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._exchanger.submit(session_id, payload)
            except NetworkError as exc:
                self._logger.warning(
                    "exchange_network_error",
                    extra={"attempt": attempt, "max_attempts": max_attempts, "error": str(exc)},
                )
                if attempt >= max_attempts:
                    raise
            await asyncio.sleep(self._retry_delay_seconds)

    def _publish(self, clip: AudioClip, response: TurnResponse, reply_audio: AudioClip) -> TurnResult:
        self._turns_completed += 1
        self._reply_text = response.text_output
        self._reply_audio = reply_audio
        self._last_error = None
        result = TurnResult(
            turn_index=self._turns_completed,
            user_clip=clip,
            reply_text=response.text_output,
            reply_audio=reply_audio,
        )
        self._emit(
            "reply_published",
            {"turn_index": result.turn_index, "reply_size": reply_audio.size, "text_chars": len(result.reply_text)},
        )
        return result

    def _finish_processing(self) -> None:
        if self._state != TurnState.PROCESSING:
            return
        if self._done_requested:
            self._enter_done()
        else:
            self._state = TurnState.IDLE

    def _enter_done(self) -> None:
        self._state = TurnState.DONE
        self._emit("session_done", {"turns_completed": self._turns_completed})

    def _report(self, event_name: str, exc: InterviewClientError) -> None:
        self._last_error = exc
        self._logger.warning(event_name, extra={"error_type": type(exc).__name__, "error": str(exc)})
        payload: dict[str, Any] = {"error": str(exc), "error_type": type(exc).__name__}
        status = getattr(exc, "status", None)
        if status is not None:
            payload["status"] = status
        self._emit(event_name, payload)

    def _emit(self, event_name: str, payload: dict[str, Any]) -> None:
        self._telemetry.emit(event_name, payload)
