"""Protocol interfaces used by SessionController."""

from __future__ import annotations

from queue import Queue
from typing import Callable, Protocol

from models import AudioFrame, AuthorizationStatus, RecognitionEvent

AuthorizationCallback = Callable[[AuthorizationStatus], None]
AvailabilityListener = Callable[[bool], None]


class Authorizer(Protocol):
    def request_authorization(self, callback: AuthorizationCallback) -> None: ...


class Recorder(Protocol):
    def start(self, audio_queue: Queue[AudioFrame | None]) -> None: ...

    def stop(self) -> None: ...


class RecognizerAdapter(Protocol):
    @property
    def available(self) -> bool: ...

    def start(
        self,
        locale: str,
        audio_queue: Queue[AudioFrame | None],
        on_event: Callable[[RecognitionEvent], None],
    ) -> None: ...

    def stop(self) -> None: ...

    def subscribe_availability(self, listener: AvailabilityListener) -> None: ...


class ConfigStore(Protocol):
    def get_api_key(self) -> str: ...

    def set_api_key(self, key: str) -> None: ...

    def get_locale(self) -> str: ...

    def set_locale(self, locale: str) -> None: ...

    def get_model(self) -> str: ...

    def get_hotkey(self) -> str: ...

    def get_log_level(self) -> str: ...
