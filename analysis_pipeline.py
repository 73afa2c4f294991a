"""State-machine based image analysis requests."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Optional, Union

from errors import EMPTY_RESPONSE, NO_IMAGE, TRANSPORT_FAILURE, AppError, user_message
from inference_client import extract_text, image_part, text_part
from interfaces import InferenceClient
from models import AcquiredImage, AnalysisError, AnalysisResult, AnalysisState
from prompts import ANALYSIS_INSTRUCTION

logger = logging.getLogger(__name__)

Outcome = Union[AnalysisResult, AnalysisError, None]
StateCallback = Callable[[AnalysisState, AnalysisState], None]
ErrorCallback = Callable[[str, str], None]


class AnalysisPipeline:
    def __init__(
        self,
        client: InferenceClient,
        executor: Optional[Executor] = None,
        clock: Callable[[], datetime] = datetime.now,
        on_state_change: Optional[StateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._client = client
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="analysis"
        )
        self._owns_executor = executor is None
        self._clock = clock
        self._on_state_change = on_state_change
        self._on_error = on_error

        self._lock = threading.RLock()
        self._state = AnalysisState.IDLE
        self._request_id = 0
        self._pending: Optional[Future] = None
        self._result: Optional[AnalysisResult] = None
        self._error: Optional[AnalysisError] = None

    @property
    def state(self) -> AnalysisState:
        return self._state

    @property
    def result(self) -> Optional[AnalysisResult]:
        return self._result

    @property
    def error(self) -> Optional[AnalysisError]:
        return self._error

    def analyze(self, image: Optional[AcquiredImage]) -> Future:
        """Submit ``image`` for analysis.

        Returns a future resolving to the ``AnalysisResult`` or
        ``AnalysisError`` the request ended with, or ``None`` when the request
        was cancelled or superseded.  Calling again while a request is in
        flight returns the in-flight future instead of issuing a second one;
        the ``image`` passed to that call is ignored.  To analyze a different
        image, load it through the image source (which discards the in-flight
        request) or ``cancel()`` first.
        """
        with self._lock:
            if self._state == AnalysisState.REQUESTING and self._pending is not None:
                logger.info("analysis already in flight, ignoring re-entry")
                return self._pending

            self._request_id += 1
            self._result = None
            self._error = None

            if image is None:
                error = self._fail(NO_IMAGE, "")
                done: Future = Future()
                done.set_result(error)
                return done

            request_id = self._request_id
            self._transition(AnalysisState.REQUESTING)
            self._pending = self._executor.submit(self._run, request_id, image)
            return self._pending

    def cancel(self) -> None:
        """Discard the in-flight request, if any, and return to idle."""
        with self._lock:
            if self._state != AnalysisState.REQUESTING:
                return
            logger.info("analysis request %d cancelled", self._request_id)
            self._request_id += 1
            self._pending = None
            self._transition(AnalysisState.IDLE)

    def clear_outcome(self) -> None:
        """Drop any result, error or in-flight request for the previous image."""
        with self._lock:
            self._request_id += 1
            self._pending = None
            self._result = None
            self._error = None
            self._transition(AnalysisState.IDLE)

    def shutdown(self) -> None:
        self.cancel()
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def _run(self, request_id: int, image: AcquiredImage) -> Outcome:
        parts = [text_part(ANALYSIS_INSTRUCTION), image_part(image)]
        try:
            body = self._client.generate(parts)
        except AppError as exc:
            return self._complete_failure(request_id, exc.code, exc.message)
        except Exception as exc:
            logger.exception("unexpected failure during analysis")
            return self._complete_failure(request_id, TRANSPORT_FAILURE, str(exc))

        text = extract_text(body)
        if not text.strip():
            return self._complete_failure(request_id, EMPTY_RESPONSE, "")

        with self._lock:
            if not self._is_current(request_id):
                return None
            self._result = AnalysisResult(text=text, timestamp=self._clock())
            self._pending = None
            self._transition(AnalysisState.SUCCEEDED)
            return self._result

    def _complete_failure(self, request_id: int, code: str, message: str) -> Outcome:
        with self._lock:
            if not self._is_current(request_id):
                logger.debug("dropping failure of superseded request %d", request_id)
                return None
            self._pending = None
            return self._fail(code, message)

    def _is_current(self, request_id: int) -> bool:
        return request_id == self._request_id and self._state == AnalysisState.REQUESTING

    def _fail(self, code: str, message: str) -> AnalysisError:
        self._error = AnalysisError(code=code, message=user_message(code, message))
        self._transition(AnalysisState.FAILED)
        if self._on_error:
            self._on_error(code, self._error.message)
        return self._error

    def _transition(self, to_state: AnalysisState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        logger.debug("analysis %s -> %s", from_state.value, to_state.value)
        self._state = to_state
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
