"""Protocol interfaces used by the camera, analysis and chat components."""

from __future__ import annotations

from typing import Any, Protocol

from models import FacingMode


class VideoStream(Protocol):
    facing_mode: FacingMode

    def read_frame(self) -> Any: ...

    def stop(self) -> None: ...


class CameraDevice(Protocol):
    def open(self, facing_mode: FacingMode) -> VideoStream: ...


class InferenceClient(Protocol):
    def generate(self, parts: list[dict]) -> dict: ...
