"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class FacingMode(str, Enum):
    FRONT = "user"
    BACK = "environment"

    def opposite(self) -> "FacingMode":
        return FacingMode.FRONT if self is FacingMode.BACK else FacingMode.BACK


class CameraState(str, Enum):
    CLOSED = "CLOSED"
    STARTING = "STARTING"
    LIVE = "LIVE"


class AnalysisState(str, Enum):
    IDLE = "IDLE"
    REQUESTING = "REQUESTING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class Speaker(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class AcquiredImage:
    mime_type: str
    data: bytes
    captured_at: datetime
    source: str = "file"
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class AnalysisResult:
    text: str
    timestamp: datetime

    @property
    def display_timestamp(self) -> str:
        return self.timestamp.strftime("%Y-%m-%d %H:%M:%S")


@dataclass(frozen=True)
class AnalysisError:
    code: str
    message: str


@dataclass(frozen=True)
class Turn:
    speaker: Speaker
    text: str
