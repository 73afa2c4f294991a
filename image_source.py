"""Image acquisition from local files and camera frames."""

from __future__ import annotations

import io
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

import numpy as np
from PIL import Image

from errors import INVALID_IMAGE, AppError
from models import AcquiredImage

logger = logging.getLogger(__name__)

JPEG_QUALITY = 92


class OutcomeHolder(Protocol):
    def clear_outcome(self) -> None: ...


class ImageSource:
    """Holds the current still image and invalidates stale analysis on every load."""

    def __init__(
        self,
        pipeline: Optional[OutcomeHolder] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._pipeline = pipeline
        self._clock = clock
        self._lock = threading.Lock()
        self._current: Optional[AcquiredImage] = None

    @property
    def current(self) -> Optional[AcquiredImage]:
        return self._current

    def load_from_file(self, data: bytes) -> AcquiredImage:
        """Validate raw file bytes and make them the current image."""
        if not data:
            raise AppError(INVALID_IMAGE, "empty file")
        try:
            with Image.open(io.BytesIO(data)) as img:
                fmt = img.format
                width, height = img.size
                img.verify()
        except Exception as exc:
            # Pillow signals bad input with several unrelated types, e.g. DecompressionBombError
            raise AppError(INVALID_IMAGE, str(exc)) from exc

        mime_type = Image.MIME.get(fmt or "")
        if not mime_type:
            raise AppError(INVALID_IMAGE, f"unsupported image format: {fmt}")

        image = AcquiredImage(
            mime_type=mime_type,
            data=bytes(data),
            captured_at=self._clock(),
            source="file",
            width=width,
            height=height,
        )
        return self._replace(image)

    def load_from_path(self, path: Path | str) -> AcquiredImage:
        try:
            data = Path(path).read_bytes()
        except OSError as exc:
            raise AppError(INVALID_IMAGE, str(exc)) from exc
        return self.load_from_file(data)

    def load_from_frame(self, frame: Any) -> AcquiredImage:
        """Encode an RGB (or grayscale) frame buffer as JPEG and make it current."""
        try:
            array = np.asarray(frame)
            if array.size == 0 or array.ndim not in (2, 3):
                raise ValueError(f"unexpected frame shape {array.shape}")
            if array.dtype != np.uint8:
                array = np.clip(array, 0, 255).astype(np.uint8)
            img = Image.fromarray(array)
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            buf = io.BytesIO()
            img.save(buf, format="JPEG", quality=JPEG_QUALITY)
        except (TypeError, ValueError, OSError) as exc:
            raise AppError(INVALID_IMAGE, str(exc)) from exc

        image = AcquiredImage(
            mime_type="image/jpeg",
            data=buf.getvalue(),
            captured_at=self._clock(),
            source="camera",
            width=img.width,
            height=img.height,
        )
        return self._replace(image)

    def _replace(self, image: AcquiredImage) -> AcquiredImage:
        with self._lock:
            self._current = image
        logger.info(
            "acquired %s image from %s (%dx%d, %d bytes)",
            image.mime_type,
            image.source,
            image.width,
            image.height,
            len(image.data),
        )
        if self._pipeline is not None:
            self._pipeline.clear_outcome()
        return image
