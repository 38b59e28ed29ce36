"""One-request-per-turn exchange with the remote interview service."""

from __future__ import annotations

import logging

import httpx
from pydantic import BaseModel, ValidationError

from interview_client.errors import NetworkError, ServiceError
from interview_client.models import EncodedPayload, TurnRequest, TurnResponse

DEFAULT_SERVICE_URL = "http://127.0.0.1:8000/interview_loop"


class TurnRequestBody(BaseModel):
    session_id: str
    user_audio: str


class TurnResponseBody(BaseModel):
    audio_output: str
    text_output: str


class TurnExchanger:
    """Posts one encoded answer and parses one spoken reply.

    The exchanger keeps no per-call state; callers are responsible for not
    submitting concurrently for the same session.
    """

    def __init__(
        self,
        url: str = DEFAULT_SERVICE_URL,
        *,
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout_seconds,
            headers={"Content-Type": "application/json"},
        )
        self._logger = logger or logging.getLogger("interview_client.exchange")

    @property
    def url(self) -> str:
        return self._url

    async def submit(self, session_id: str, payload: EncodedPayload) -> TurnResponse:
        request = TurnRequest(session_id=session_id, user_audio=payload)
        body = TurnRequestBody(session_id=request.session_id, user_audio=request.user_audio)
        self._logger.info(
            "exchange_started",
            extra={"session_id": session_id, "payload_chars": len(payload), "url": self._url},
        )
        try:
            response = await self._client.post(self._url, json=body.model_dump())
        except httpx.TimeoutException as exc:
            raise NetworkError(f"Interview service timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"Interview service unreachable: {exc}") from exc
        except httpx.RequestError as exc:
            # Undecodable bodies and redirect loops surface here.
            raise NetworkError(f"Interview service request failed: {exc}") from exc

        if not response.is_success:
            self._logger.warning("exchange_rejected_by_service", extra={"status": response.status_code})
            raise ServiceError(response.status_code)

        try:
            parsed = TurnResponseBody.model_validate_json(response.content)
        except ValidationError as exc:
            raise ServiceError(response.status_code, f"invalid reply structure ({exc.error_count()} errors)") from exc

        self._logger.info(
            "exchange_completed",
            extra={"status": response.status_code, "text_chars": len(parsed.text_output)},
        )
        return TurnResponse(audio_output=EncodedPayload(parsed.audio_output), text_output=parsed.text_output)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "TurnExchanger":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
