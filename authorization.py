"""Authorization check for microphone capture and the recognition service."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from interfaces import AuthorizationCallback
from models import AuthorizationStatus

try:
    import sounddevice as sd
except Exception:  # pragma: no cover - PortAudio missing
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


class MicrophoneAuthorizer:
    """Decides whether a session may start, answering on a worker thread.

    ``RESTRICTED`` when there is no audio backend at all, ``DENIED`` when the
    input device refuses the capture format, ``NOT_DETERMINED`` when no
    recognition credentials are configured yet.
    """

    def __init__(
        self,
        has_credentials: Callable[[], bool],
        sample_rate: int = 16000,
        channels: int = 1,
        device: int | str | None = None,
    ) -> None:
        self._has_credentials = has_credentials
        self._sample_rate = sample_rate
        self._channels = channels
        self._device = device

    def request_authorization(self, callback: AuthorizationCallback) -> None:
        threading.Thread(
            target=lambda: callback(self.check()),
            name="authorization",
            daemon=True,
        ).start()

    def check(self) -> AuthorizationStatus:
        if sd is None:
            return AuthorizationStatus.RESTRICTED
        try:
            sd.check_input_settings(
                device=self._device,
                channels=self._channels,
                dtype="int16",
                samplerate=self._sample_rate,
            )
        except Exception as exc:
            logger.warning("microphone not usable: %s", exc)
            return AuthorizationStatus.DENIED
        if not self._has_credentials():
            return AuthorizationStatus.NOT_DETERMINED
        return AuthorizationStatus.AUTHORIZED
