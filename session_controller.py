"""State-machine based session orchestration."""

from __future__ import annotations

import logging
import threading
from functools import partial
from queue import Queue
from typing import Callable, Optional

from errors import (
    AUTHORIZATION_DENIED,
    AUTHORIZATION_NOT_DETERMINED,
    AUTHORIZATION_RESTRICTED,
    CAPABILITY_UNAVAILABLE,
    CAPTURE_START_FAILURE,
    RECOGNITION_ERROR,
    UnknownAuthorizationStatusError,
    message_for,
)
from interfaces import Authorizer, Recorder, RecognizerAdapter
from models import AudioFrame, AuthorizationStatus, RecognitionEvent, RecognitionKind, SessionState

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionState, SessionState], None]
TextCallback = Callable[[Optional[str]], None]
ErrorCallback = Callable[[str, str], None]

_AUTHORIZATION_FAILURES = {
    AuthorizationStatus.DENIED: AUTHORIZATION_DENIED,
    AuthorizationStatus.RESTRICTED: AUTHORIZATION_RESTRICTED,
    AuthorizationStatus.NOT_DETERMINED: AUTHORIZATION_NOT_DETERMINED,
}


class SessionController:
    """Owns the recognition session and the two capabilities behind it.

    Every reaction (authorization result, recognition event, availability
    change, user toggle) runs under one re-entrant lock, so ``state``,
    ``recognized_text`` and ``is_processing`` only change one caller at a
    time. Callbacks carry the session id they were issued for and are
    dropped once that session is over.
    """

    def __init__(
        self,
        authorizer: Authorizer,
        recorder: Recorder,
        recognizer: RecognizerAdapter,
        locale: str = "en-US",
        queue_maxsize: int = 50,
        on_state_change: Optional[StateCallback] = None,
        on_text: Optional[TextCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._authorizer = authorizer
        self._recorder = recorder
        self._recognizer = recognizer
        self._locale = locale
        self._queue_maxsize = queue_maxsize
        self._on_state_change = on_state_change
        self._on_text = on_text
        self._on_error = on_error

        self._lock = threading.RLock()
        self._state = SessionState.IDLE
        self._session_id = 0
        self._recognized_text: Optional[str] = None
        self._is_processing = False
        self._audio_queue: Optional[Queue[AudioFrame | None]] = None

        self._recognizer.subscribe_availability(self._handle_availability)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def recognized_text(self) -> Optional[str]:
        return self._recognized_text

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    @property
    def locale(self) -> str:
        return self._locale

    def set_locale(self, locale: str) -> None:
        """Locale used from the next session on."""
        with self._lock:
            self._locale = locale

    def toggle(self) -> None:
        with self._lock:
            idle = self._state == SessionState.IDLE
        if idle:
            self.request_start()
        else:
            self.request_stop()

    def request_start(self) -> None:
        with self._lock:
            if self._state != SessionState.IDLE:
                return
            self._session_id += 1
            session_id = self._session_id
            self._transition(SessionState.AWAITING_AUTHORIZATION)

        # Outside the lock: the authorizer may answer from another thread
        # while this call is still returning.
        try:
            self._authorizer.request_authorization(
                partial(self._handle_authorization, session_id)
            )
        except UnknownAuthorizationStatusError:
            raise
        except Exception as exc:
            logger.exception("authorization request failed")
            with self._lock:
                if self._is_current(session_id, SessionState.AWAITING_AUTHORIZATION):
                    self._fail(CAPABILITY_UNAVAILABLE, str(exc))

    def request_stop(self) -> None:
        with self._lock:
            if self._state == SessionState.IDLE:
                return
            logger.info("stopping session %d", self._session_id)
            self._stop_locked()

    # ------------------------------------------------------------------
    # Capability callbacks
    # ------------------------------------------------------------------

    def _handle_authorization(self, session_id: int, status: AuthorizationStatus) -> None:
        with self._lock:
            if not self._is_current(session_id, SessionState.AWAITING_AUTHORIZATION):
                logger.debug("ignoring late authorization %s for session %d", status, session_id)
                return
            if status == AuthorizationStatus.AUTHORIZED:
                self._activate()
                return
            code = _AUTHORIZATION_FAILURES.get(status)
            if code is None:
                self._stop_locked()
                raise UnknownAuthorizationStatusError(status)
            logger.warning("speech recognition not authorized: %s", status)
            self._fail(code)

    def _handle_recognition_event(self, session_id: int, event: RecognitionEvent) -> None:
        with self._lock:
            if not self._is_current(session_id, SessionState.ACTIVE):
                return
            kind = event.kind
            if kind == RecognitionKind.PARTIAL.value:
                self._set_text(event.text)
                return
            if kind == RecognitionKind.FINAL.value:
                self._set_text(event.text)
                self._stop_locked()
                return
            if kind == RecognitionKind.ERROR.value:
                self._fail(event.code or RECOGNITION_ERROR, event.message)

    def _handle_availability(self, available: bool) -> None:
        if available:
            logger.info("speech recognition available")
            return
        logger.warning("speech recognition unavailable")
        with self._lock:
            if self._state == SessionState.IDLE:
                self._set_text(message_for(CAPABILITY_UNAVAILABLE))
                return
            self._fail(CAPABILITY_UNAVAILABLE)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _activate(self) -> None:
        if not self._recognizer.available:
            self._fail(CAPABILITY_UNAVAILABLE, "recognizer reports unavailable")
            return

        session_id = self._session_id
        self._audio_queue = Queue(maxsize=self._queue_maxsize)
        on_event = partial(self._handle_recognition_event, session_id)
        try:
            self._recognizer.start(self._locale, self._audio_queue, on_event)
        except Exception as exc:
            logger.exception("recognizer failed to start")
            self._fail(CAPABILITY_UNAVAILABLE, str(exc))
            return
        if not self._is_current(session_id, SessionState.AWAITING_AUTHORIZATION):
            # the recognizer already failed the session while starting
            return
        try:
            self._recorder.start(self._audio_queue)
        except Exception as exc:
            logger.exception("audio capture failed to start")
            self._fail(CAPTURE_START_FAILURE, str(exc))
            return

        self._is_processing = True
        self._transition(SessionState.ACTIVE)
        logger.info("session %d active (locale=%s)", self._session_id, self._locale)

    def _fail(self, code: str, detail: str = "") -> None:
        message = message_for(code)
        logger.warning("session %d failed: %s %s", self._session_id, code, detail)
        self._transition(SessionState.FAILED)
        self._set_text(message)
        if self._on_error:
            self._on_error(code, detail or message)
        self._stop_locked()

    def _stop_locked(self) -> None:
        self._release()
        self._is_processing = False
        self._transition(SessionState.IDLE)

    def _release(self) -> None:
        self._safe_stop(self._recognizer, "recognizer")
        self._safe_stop(self._recorder, "recorder")
        self._audio_queue = None

    def _safe_stop(self, capability: Recorder | RecognizerAdapter, name: str) -> None:
        try:
            capability.stop()
        except Exception as exc:
            logger.warning("%s stop failed: %s", name, exc)

    def _is_current(self, session_id: int, state: SessionState) -> bool:
        return session_id == self._session_id and self._state == state

    def _set_text(self, text: Optional[str]) -> None:
        self._recognized_text = text
        if self._on_text:
            self._on_text(text)

    def _transition(self, to_state: SessionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
