"""Global toggle hotkey based on pynput."""

from __future__ import annotations

import threading
from typing import Callable, Optional

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore


class GlobalHotkeyAdapter:
    """Fires ``on_toggle`` once per press of the configured key.

    Key names use pynput's ``str(key)`` form, e.g. ``Key.f9``. Auto-repeat
    while the key is held does not fire again.
    """

    def __init__(self, hotkey_name: str = "Key.f9") -> None:
        self._hotkey_name = hotkey_name
        self._listener: Optional[object] = None
        self._pressed = False
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self._hotkey_name)

    def start(self, on_toggle: Callable[[], None]) -> None:
        if not self.enabled:
            return
        if keyboard is None:
            raise RuntimeError("pynput is not installed")

        def _on_press(key: object) -> None:
            if str(key) != self._hotkey_name:
                return
            with self._lock:
                if self._pressed:
                    return
                self._pressed = True
            on_toggle()

        def _on_release(key: object) -> None:
            if str(key) != self._hotkey_name:
                return
            with self._lock:
                self._pressed = False

        self._listener = keyboard.Listener(on_press=_on_press, on_release=_on_release)
        self._listener.start()

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None
