"""Microphone capture adapter."""

from __future__ import annotations

import logging
import threading
import time
from queue import Full, Queue
from typing import Any, Optional

import numpy as np

from models import AudioFrame

try:
    import sounddevice as sd
except Exception:  # pragma: no cover - PortAudio missing
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


class SoundDeviceRecorder:
    """Pushes int16 PCM blocks from an input stream onto the session queue.

    The format is fixed when ``start`` opens the stream; ``stop`` closes it
    and puts a ``None`` sentinel on the queue so the consumer can finish.
    """

    def __init__(
        self,
        sample_rate: int = 16000,
        channels: int = 1,
        chunk_ms: int = 100,
        device: Optional[int | str] = None,
    ) -> None:
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_ms = chunk_ms
        self.device = device
        self._stream: Any = None
        self._running = False
        self._lock = threading.Lock()
        self.dropped_chunks = 0
        self._audio_queue: Queue[AudioFrame | None] | None = None

    @property
    def blocksize(self) -> int:
        return int(self.sample_rate * (self.chunk_ms / 1000.0))

    @property
    def running(self) -> bool:
        return self._running

    def start(self, audio_queue: Queue[AudioFrame | None]) -> None:
        with self._lock:
            if self._running:
                return
            if sd is None:
                raise RuntimeError("sounddevice is not installed")
            self._audio_queue = audio_queue
            self.dropped_chunks = 0
            stream = sd.InputStream(
                samplerate=self.sample_rate,
                channels=self.channels,
                dtype="int16",
                blocksize=self.blocksize,
                device=self.device,
                callback=self._on_audio,
            )
            try:
                stream.start()
            except Exception:
                stream.close()
                self._audio_queue = None
                raise
            self._stream = stream
            self._running = True
            logger.info(
                "capture started: %d Hz, %d ch, %d ms blocks",
                self.sample_rate,
                self.channels,
                self.chunk_ms,
            )

    def stop(self) -> None:
        with self._lock:
            if self._running:
                self._running = False
                if self._stream is not None:
                    self._stream.stop()
                    self._stream.close()
                    self._stream = None
                if self.dropped_chunks:
                    logger.warning("capture dropped %d chunks", self.dropped_chunks)
            self._emit_sentinel()
            self._audio_queue = None

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if status:
            logger.debug("capture status: %s", status)
        queue = self._audio_queue
        if not self._running or queue is None:
            return
        frame = AudioFrame(
            pcm16_bytes=np.asarray(indata, dtype=np.int16).tobytes(),
            sample_rate=self.sample_rate,
            channels=self.channels,
            timestamp_ms=int(time.time() * 1000),
        )
        try:
            queue.put_nowait(frame)
        except Full:
            self.dropped_chunks += 1

    def _emit_sentinel(self) -> None:
        if self._audio_queue is None:
            return
        try:
            self._audio_queue.put_nowait(None)
        except Full:
            pass
