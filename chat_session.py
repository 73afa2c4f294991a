"""Conversation transcript and question/answer round trips."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Optional

from errors import AppError
from inference_client import extract_text, text_part
from interfaces import InferenceClient
from models import Speaker, Turn
from prompts import FALLBACK_TECHNICAL, FALLBACK_UNPROCESSED, GREETING, wrap_question

logger = logging.getLogger(__name__)

TurnCallback = Callable[[Turn], None]
PendingCallback = Callable[[bool], None]


class ChatSession:
    """Append-only transcript with at most one question awaiting a reply.

    The remote endpoint only ever sees the current question; earlier turns
    stay local and exist for display.
    """

    def __init__(
        self,
        client: InferenceClient,
        executor: Optional[Executor] = None,
        on_turn: Optional[TurnCallback] = None,
        on_pending_change: Optional[PendingCallback] = None,
    ) -> None:
        self._client = client
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="chat")
        self._owns_executor = executor is None
        self._on_turn = on_turn
        self._on_pending_change = on_pending_change

        self._lock = threading.RLock()
        self._transcript: list[Turn] = []
        self._pending = False
        self._draft = ""
        self._session_id = 0

    @property
    def transcript(self) -> tuple[Turn, ...]:
        with self._lock:
            return tuple(self._transcript)

    @property
    def pending(self) -> bool:
        return self._pending

    @property
    def draft(self) -> str:
        return self._draft

    def set_draft(self, text: str) -> None:
        with self._lock:
            self._draft = text

    def initialize(self) -> None:
        with self._lock:
            self._session_id += 1
            self._transcript = []
            self._draft = ""
            self._set_pending(False)
            self._append(Turn(Speaker.ASSISTANT, GREETING))

    def send(self, user_text: Optional[str] = None) -> Optional[Future]:
        """Append the user's turn and request a reply.

        Uses the draft buffer when ``user_text`` is omitted.  Returns ``None``
        for blank input or while a reply is still pending; otherwise a future
        resolving to the assistant turn that was appended.
        """
        with self._lock:
            text = self._draft if user_text is None else user_text
            if not text.strip():
                return None
            if self._pending:
                logger.info("reply pending, ignoring new message")
                return None

            self._append(Turn(Speaker.USER, text))
            self._draft = ""
            self._set_pending(True)
            return self._executor.submit(self._ask, self._session_id, text)

    def shutdown(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def _ask(self, session_id: int, question: str) -> Optional[Turn]:
        try:
            body = self._client.generate([text_part(wrap_question(question))])
        except AppError as exc:
            logger.warning("question failed: %s", exc)
            reply = FALLBACK_TECHNICAL
        except Exception:
            logger.exception("unexpected failure while asking question")
            reply = FALLBACK_TECHNICAL
        else:
            reply = extract_text(body)
            if not reply.strip():
                reply = FALLBACK_UNPROCESSED

        with self._lock:
            if session_id != self._session_id:
                return None
            turn = Turn(Speaker.ASSISTANT, reply)
            self._append(turn)
            self._set_pending(False)
            return turn

    def _append(self, turn: Turn) -> None:
        self._transcript.append(turn)
        if self._on_turn:
            self._on_turn(turn)

    def _set_pending(self, pending: bool) -> None:
        if self._pending == pending:
            return
        self._pending = pending
        if self._on_pending_change:
            self._on_pending_change(pending)
