"""Telemetry sinks for user-visible reports and logging setup."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from rich.logging import RichHandler


class Telemetry(Protocol):
    """Reports session events such as failed turns or published replies."""

    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        """Publish telemetry event to the configured sink."""


class LoggingTelemetry:
    """Forwards telemetry events to a standard logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("interview_client.telemetry")

    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        self._logger.info(event_name, extra={"telemetry": payload})


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
