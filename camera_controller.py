"""Live camera session lifecycle: start, switch, capture, stop."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

from errors import DEVICE_UNAVAILABLE, AppError, user_message
from image_source import ImageSource
from interfaces import CameraDevice, VideoStream
from models import AcquiredImage, CameraState, FacingMode

logger = logging.getLogger(__name__)

StateCallback = Callable[[CameraState, CameraState], None]
ErrorCallback = Callable[[str, str], None]


class CameraController:
    """Owns at most one open device handle at any time.

    Every transition into ``CLOSED`` or ``STARTING`` releases the current
    handle first, and device opens are serialized behind ``_device_lock``, so
    a new handle is never requested while another is still held.
    """

    def __init__(
        self,
        device: CameraDevice,
        image_source: ImageSource,
        executor: Optional[Executor] = None,
        on_state_change: Optional[StateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._device = device
        self._image_source = image_source
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="camera")
        self._owns_executor = executor is None
        self._on_state_change = on_state_change
        self._on_error = on_error

        self._lock = threading.RLock()
        self._device_lock = threading.Lock()
        self._state = CameraState.CLOSED
        self._facing_mode = FacingMode.BACK
        self._session_id = 0
        self._stream: Optional[VideoStream] = None
        self._last_error: Optional[tuple[str, str]] = None

    @property
    def state(self) -> CameraState:
        return self._state

    @property
    def facing_mode(self) -> FacingMode:
        return self._facing_mode

    @property
    def stream(self) -> Optional[VideoStream]:
        return self._stream

    @property
    def last_error(self) -> Optional[tuple[str, str]]:
        return self._last_error

    def start(self, facing_mode: FacingMode = FacingMode.BACK) -> Future:
        """Request a live stream; resolves to the state the attempt ended in."""
        with self._lock:
            self._release_stream()
            self._session_id += 1
            session_id = self._session_id
            self._facing_mode = facing_mode
            self._last_error = None
            self._transition(CameraState.STARTING)
            return self._executor.submit(self._open, session_id, facing_mode)

    def switch(self) -> Optional[Future]:
        with self._lock:
            if self._state != CameraState.LIVE:
                logger.info("switch ignored while %s", self._state.value)
                return None
            target = self._facing_mode.opposite()
            self.stop()
            return self.start(target)

    def capture(self) -> Optional[AcquiredImage]:
        """Sample the live frame into the image source and close the session.

        Returns ``None`` without side effects when no live stream exists.
        """
        with self._lock:
            if self._state != CameraState.LIVE or self._stream is None:
                logger.info("capture rejected while %s", self._state.value)
                return None
            try:
                frame = self._stream.read_frame()
            except AppError as exc:
                self.stop()
                self._report(exc.code, exc.message)
                return None
            except Exception as exc:
                self.stop()
                self._report(DEVICE_UNAVAILABLE, str(exc))
                return None
            self.stop()

        try:
            return self._image_source.load_from_frame(frame)
        except AppError as exc:
            self._report(exc.code, exc.message)
            return None

    def read_preview(self) -> Any:
        """Return the latest frame for rendering, or ``None`` when not live."""
        with self._lock:
            if self._state != CameraState.LIVE or self._stream is None:
                return None
            try:
                return self._stream.read_frame()
            except Exception as exc:
                logger.debug("preview frame unavailable: %s", exc)
                return None

    def stop(self) -> None:
        with self._lock:
            self._session_id += 1
            self._release_stream()
            self._transition(CameraState.CLOSED)

    def shutdown(self) -> None:
        self.stop()
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def _open(self, session_id: int, facing_mode: FacingMode) -> CameraState:
        with self._device_lock:
            with self._lock:
                if session_id != self._session_id:
                    return self._state
            try:
                stream = self._device.open(facing_mode)
            except AppError as exc:
                return self._open_failed(session_id, exc.code, exc.message)
            except Exception as exc:
                logger.exception("camera open failed")
                return self._open_failed(session_id, DEVICE_UNAVAILABLE, str(exc))

            with self._lock:
                if session_id != self._session_id:
                    # stopped or restarted while the device was opening
                    self._safe_stop(stream)
                    return self._state
                self._stream = stream
                self._transition(CameraState.LIVE)
                return self._state

    def _open_failed(self, session_id: int, code: str, message: str) -> CameraState:
        with self._lock:
            if session_id != self._session_id:
                return self._state
            self._transition(CameraState.CLOSED)
            self._report(code, message)
            return self._state

    def _release_stream(self) -> None:
        stream = self._stream
        self._stream = None
        if stream is not None:
            self._safe_stop(stream)

    def _safe_stop(self, stream: VideoStream) -> None:
        try:
            stream.stop()
        except Exception:  # pragma: no cover - defensive
            logger.exception("failed to stop camera stream")

    def _report(self, code: str, message: str) -> None:
        text = user_message(code, message)
        self._last_error = (code, text)
        logger.warning("camera error %s: %s", code, message or text)
        if self._on_error:
            self._on_error(code, text)

    def _transition(self, to_state: CameraState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        logger.debug("camera %s -> %s", from_state.value, to_state.value)
        self._state = to_state
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
