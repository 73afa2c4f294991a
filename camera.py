"""Camera device adapter backed by OpenCV."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from errors import DEVICE_UNAVAILABLE, PERMISSION_DENIED, AppError
from models import FacingMode

try:
    import cv2
except Exception:  # pragma: no cover
    cv2 = None  # type: ignore

logger = logging.getLogger(__name__)


def _default_index(facing_mode: FacingMode) -> int:
    return 1 if facing_mode is FacingMode.FRONT else 0


class OpenCvVideoStream:
    """One open ``cv2.VideoCapture`` handle."""

    def __init__(self, capture: Any, facing_mode: FacingMode, index: int) -> None:
        self.facing_mode = facing_mode
        self.index = index
        self._capture = capture
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._capture is not None

    def read_frame(self) -> Any:
        """Return the current frame as an RGB array at native resolution."""
        with self._lock:
            if self._capture is None:
                raise AppError(DEVICE_UNAVAILABLE, "stream is stopped")
            ok, frame = self._capture.read()
            if not ok or frame is None:
                raise AppError(DEVICE_UNAVAILABLE, f"failed to read frame from camera {self.index}")
            return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def stop(self) -> None:
        with self._lock:
            if self._capture is None:
                return
            self._capture.release()
            self._capture = None
        logger.debug("camera %d released", self.index)


class OpenCvCameraDevice:
    def __init__(
        self,
        index_for: Optional[Callable[[FacingMode], int]] = None,
        backend: Optional[int] = None,
    ) -> None:
        self._index_for = index_for or _default_index
        self._backend = backend

    def open(self, facing_mode: FacingMode) -> OpenCvVideoStream:
        if cv2 is None:
            raise AppError(DEVICE_UNAVAILABLE, "opencv is not installed")
        index = self._index_for(facing_mode)
        try:
            if self._backend is None:
                capture = cv2.VideoCapture(index)
            else:
                capture = cv2.VideoCapture(index, self._backend)
        except PermissionError as exc:
            # most backends report an OS-level denial only as isOpened() == False below
            raise AppError(PERMISSION_DENIED, str(exc)) from exc

        if not capture.isOpened():
            capture.release()
            logger.warning(
                "camera %d not opened (backend %s); access denied or no such device",
                index,
                self._backend if self._backend is not None else "auto",
            )
            raise AppError(DEVICE_UNAVAILABLE, f"camera {index} could not be opened")

        logger.info("camera %d opened for %s", index, facing_mode.value)
        return OpenCvVideoStream(capture, facing_mode, index)
