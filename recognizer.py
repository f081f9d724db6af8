"""Live speech recognition adapter on the DashScope realtime ASR API.

Each ``start`` opens one ``dashscope.audio.asr.Recognition`` stream and a
worker thread that feeds it the PCM frames arriving on the session queue.
Sentence updates flow back through ``on_event`` as partial results; the end
of a sentence (or of the stream) is reported once as the final result.
"""

from __future__ import annotations

import logging
import os
import threading
from queue import Empty, Queue
from typing import Any, Callable, Optional

import dashscope
from dashscope.audio.asr import Recognition, RecognitionCallback, RecognitionResult

from errors import AUTH_FAILED, NETWORK_ERROR, RECOGNITION_ERROR
from interfaces import AvailabilityListener
from models import AudioFrame, RecognitionEvent, RecognitionKind

logger = logging.getLogger(__name__)

EventCallback = Callable[[RecognitionEvent], None]


def language_hints_for(locale: str) -> list[str]:
    """Map a locale such as ``pt-BR`` or ``pt_BR`` to DashScope language hints."""
    language = locale.replace("_", "-").split("-")[0].strip().lower()
    return [language] if language else []


def classify_error(message: str) -> str:
    low = message.lower()
    if "401" in low or "auth" in low or "api key" in low or "apikey" in low:
        return AUTH_FAILED
    if "timeout" in low or "network" in low or "connection" in low or "websocket" in low:
        return NETWORK_ERROR
    return RECOGNITION_ERROR


def _sentence_of(result: Any) -> Optional[dict]:
    sentence = result.get_sentence()
    if isinstance(sentence, list):
        sentence = sentence[-1] if sentence else None
    if isinstance(sentence, dict):
        return sentence
    return None


class _RecognitionTask(RecognitionCallback):
    """One recognition stream: feeds audio and relays its callbacks."""

    def __init__(
        self,
        adapter: "DashscopeRecognizerAdapter",
        audio_queue: Queue[AudioFrame | None],
        on_event: EventCallback,
    ) -> None:
        super().__init__()
        self.recognition: Optional[Recognition] = None
        self._adapter = adapter
        self._audio_queue = audio_queue
        self._on_event = on_event
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._finished = False
        self._latest_text = ""
        self._thread: Optional[threading.Thread] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def run(self, recognition: Recognition) -> None:
        self.recognition = recognition
        recognition.start()
        self._thread = threading.Thread(target=self._feed, name="asr-feed", daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        self._cancelled.set()

    # ------------------------------------------------------------------
    # Feeding
    # ------------------------------------------------------------------

    def _feed(self) -> None:
        sent = 0
        while not self._cancelled.is_set():
            try:
                frame = self._audio_queue.get(timeout=0.2)
            except Empty:
                continue
            if frame is None:  # Sentinel
                break
            try:
                self.recognition.send_audio_frame(frame.pcm16_bytes)
            except Exception as exc:
                if not self._cancelled.is_set():
                    logger.warning("sending audio failed after %d frames: %s", sent, exc)
                    self._emit_error(str(exc))
                break
            sent += 1

        try:
            self.recognition.stop()
        except Exception as exc:
            logger.debug("recognition stop raised: %s", exc)
        logger.debug("feed finished after %d frames", sent)

    # ------------------------------------------------------------------
    # RecognitionCallback
    # ------------------------------------------------------------------

    def on_open(self) -> None:
        logger.debug("recognition stream opened")
        self._adapter._set_available(True)

    def on_close(self) -> None:
        logger.debug("recognition stream closed")

    def on_complete(self) -> None:
        self._emit_final(self._latest_text)

    def on_error(self, result: RecognitionResult) -> None:
        message = str(getattr(result, "message", "") or result)
        if self._cancelled.is_set():
            return
        if classify_error(message) == NETWORK_ERROR:
            logger.warning("recognition connection lost: %s", message)
            self._finish()
            self._adapter._set_available(False, force=True)
            return
        self._emit_error(message)

    def on_event(self, result: RecognitionResult) -> None:
        sentence = _sentence_of(result)
        if sentence is None:
            return
        text = str(sentence.get("text", ""))
        if RecognitionResult.is_sentence_end(sentence):
            self._emit_final(text)
            return
        if not text:
            return
        self._latest_text = text
        self._emit(RecognitionEvent(kind=RecognitionKind.PARTIAL.value, text=text))

    # ------------------------------------------------------------------
    # Emitting
    # ------------------------------------------------------------------

    def _finish(self) -> bool:
        with self._lock:
            if self._finished:
                return False
            self._finished = True
            return True

    def _emit(self, event: RecognitionEvent) -> None:
        if self._cancelled.is_set() or self._finished:
            return
        self._on_event(event)

    def _emit_final(self, text: str) -> None:
        if self._cancelled.is_set() or not self._finish():
            return
        self._latest_text = text
        self._on_event(RecognitionEvent(kind=RecognitionKind.FINAL.value, text=text))

    def _emit_error(self, message: str) -> None:
        if self._cancelled.is_set() or not self._finish():
            return
        self._on_event(
            RecognitionEvent(
                kind=RecognitionKind.ERROR.value,
                code=classify_error(message),
                message=message,
            )
        )


class DashscopeRecognizerAdapter:
    def __init__(
        self,
        api_key: str,
        model: str = "paraformer-realtime-v2",
        sample_rate: int = 16000,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._sample_rate = sample_rate
        self._task: Optional[_RecognitionTask] = None
        self._listeners: list[AvailabilityListener] = []
        self._listeners_lock = threading.Lock()
        self._last_available = True

    @property
    def api_key(self) -> str:
        return self._api_key or os.getenv("DASHSCOPE_API_KEY", "")

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def set_api_key(self, key: str) -> None:
        self._api_key = key

    def subscribe_availability(self, listener: AvailabilityListener) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def start(
        self,
        locale: str,
        audio_queue: Queue[AudioFrame | None],
        on_event: EventCallback,
    ) -> None:
        if self._task is not None and not self._task.cancelled:
            return
        api_key = self.api_key
        if not api_key:
            raise RuntimeError("No API key configured")
        dashscope.api_key = api_key
        task = _RecognitionTask(self, audio_queue, on_event)
        recognition = Recognition(
            model=self._model,
            callback=task,
            format="pcm",
            sample_rate=self._sample_rate,
            language_hints=language_hints_for(locale),
        )
        self._task = task
        try:
            task.run(recognition)
        except Exception:
            self._task = None
            raise
        logger.info("recognition started: model=%s locale=%s", self._model, locale)

    def stop(self) -> None:
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()

    def _set_available(self, available: bool, force: bool = False) -> None:
        with self._listeners_lock:
            if available == self._last_available and not force:
                return
            self._last_available = available
            listeners = list(self._listeners)
        for listener in listeners:
            listener(available)
