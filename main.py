"""Application entrypoint."""

from __future__ import annotations

import logging
import sys
import threading
from typing import Optional

from authorization import MicrophoneAuthorizer
from config import JsonConfigStore
from errors import UnknownAuthorizationStatusError
from hotkey import GlobalHotkeyAdapter
from models import SessionState
from recognizer import DashscopeRecognizerAdapter
from recorder import SoundDeviceRecorder
from session_controller import SessionController
from window import TranscriptWindow

try:
    from PySide6.QtCore import QObject, Signal
    from PySide6.QtGui import QAction
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenuBar, QMessageBox
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)


class UIBridge(QObject):
    text_signal = Signal(object)  # str | None
    state_signal = Signal(str, str)  # from_state, to_state
    toggle_signal = Signal()
    abort_signal = Signal(int)  # exit code


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.config_store = JsonConfigStore()
        configure_logging(self.config_store.get_log_level())

        self.ui = UIBridge()
        self.ui.text_signal.connect(self._on_text_ui)
        self.ui.state_signal.connect(self._on_state_change_ui)
        self.ui.toggle_signal.connect(self._toggle)
        self.ui.abort_signal.connect(self.app.exit)
        threading.excepthook = self._on_thread_exception

        self.recognizer = DashscopeRecognizerAdapter(
            api_key=self.config_store.get_api_key(),
            model=self.config_store.get_model(),
        )
        self.controller = SessionController(
            authorizer=MicrophoneAuthorizer(has_credentials=lambda: self.recognizer.available),
            recorder=SoundDeviceRecorder(),
            recognizer=self.recognizer,
            locale=self.config_store.get_locale(),
            on_state_change=self._on_state_change,
            on_text=self._on_text,
        )
        self.hotkey = GlobalHotkeyAdapter(hotkey_name=self.config_store.get_hotkey())

        self.window = TranscriptWindow(on_toggle=self._toggle)
        self._setup_menu()
        self.window.show()

    def _setup_menu(self) -> None:
        menu_bar = QMenuBar(self.window)
        menu = menu_bar.addMenu("Settings")

        api_action = QAction("Set API Key", menu)
        api_action.triggered.connect(self._set_api_key)
        menu.addAction(api_action)

        locale_action = QAction("Set Locale", menu)
        locale_action.triggered.connect(self._set_locale)
        menu.addAction(locale_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.window.layout().setMenuBar(menu_bar)

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "API Key", "DashScope API Key")
        if not ok:
            return
        self.config_store.set_api_key(value)
        self.recognizer.set_api_key(value)
        QMessageBox.information(None, "Saved", "API Key saved and applied.")

    def _set_locale(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Locale", "Recognition locale, e.g. en-US or pt-BR", text=self.controller.locale
        )
        if not ok or not value:
            return
        self.config_store.set_locale(value)
        self.controller.set_locale(value)

    def _on_thread_exception(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_type is not None and issubclass(args.exc_type, UnknownAuthorizationStatusError):
            logger.critical("aborting: %s", args.exc_value)
            self.ui.abort_signal.emit(1)
            return
        threading.__excepthook__(args)

    def _toggle(self) -> None:
        self.controller.toggle()

    # ------------------------------------------------------------------
    # Controller callbacks (any thread → emit signals for UI thread)
    # ------------------------------------------------------------------

    def _on_state_change(self, from_state: SessionState, to_state: SessionState) -> None:
        logger.debug("session %s -> %s", from_state.value, to_state.value)
        self.ui.state_signal.emit(from_state.value, to_state.value)

    def _on_text(self, text: Optional[str]) -> None:
        self.ui.text_signal.emit(text)

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_text_ui(self, text: Optional[str]) -> None:
        self.window.set_text(text)

    def _on_state_change_ui(self, from_state: str, to_state: str) -> None:
        if to_state == SessionState.AWAITING_AUTHORIZATION.value:
            self.window.set_waiting()
        else:
            self.window.set_processing(self.controller.is_processing)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            self.hotkey.start(on_toggle=self.ui.toggle_signal.emit)
        except Exception as exc:
            logger.warning("hotkey disabled: %s", exc)
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.controller.request_stop()
        self.app.quit()


def main() -> int:
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
