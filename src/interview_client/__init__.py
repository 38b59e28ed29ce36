"""Interview client: capture spoken answers and exchange them with a remote interview service."""

__version__ = "0.1.0"

from .controller import SessionTurnController
from .models import AudioClip, RecordingStatus, TurnResult, TurnState

__all__ = ["AudioClip", "RecordingStatus", "SessionTurnController", "TurnResult", "TurnState"]
