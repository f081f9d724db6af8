"""Main window: recognized text and the start/stop toggle."""

from __future__ import annotations

from typing import Callable, Optional

try:
    from PySide6.QtCore import Qt, QSize
    from PySide6.QtWidgets import QLabel, QPushButton, QVBoxLayout, QWidget
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QSize = None  # type: ignore
    QLabel = object  # type: ignore
    QPushButton = object  # type: ignore
    QVBoxLayout = object  # type: ignore
    QWidget = object  # type: ignore

PROMPT_TEXT = "Click to start"

_BUTTON_IDLE = (
    "QPushButton { border-radius: 50px; font-size: 18px; color: white;"
    " background: #888888; }"
)
_BUTTON_ACTIVE = (
    "QPushButton { border-radius: 50px; font-size: 18px; color: white;"
    " background: #2D7FF9; }"
)


class TranscriptWindow(QWidget):
    def __init__(self, on_toggle: Callable[[], None]) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowTitle("Recognize Speech")
        self.setMinimumWidth(420)

        self._label = QLabel(PROMPT_TEXT)
        self._label.setWordWrap(True)
        self._label.setAlignment(Qt.AlignCenter)
        self._label.setStyleSheet("font-size: 20px; font-weight: 600; padding: 16px;")

        self._button = QPushButton("Start")
        self._button.setFixedSize(QSize(100, 100))
        self._button.setStyleSheet(_BUTTON_IDLE)
        self._button.clicked.connect(on_toggle)

        layout = QVBoxLayout()
        layout.setSpacing(50)
        layout.setContentsMargins(24, 48, 24, 48)
        layout.addWidget(self._label)
        layout.addWidget(self._button, alignment=Qt.AlignCenter)
        self.setLayout(layout)

    def set_text(self, text: Optional[str]) -> None:
        self._label.setText(text if text is not None else PROMPT_TEXT)

    def set_processing(self, processing: bool) -> None:
        self._button.setText("Stop" if processing else "Start")
        self._button.setStyleSheet(_BUTTON_ACTIVE if processing else _BUTTON_IDLE)

    def set_waiting(self) -> None:
        self._button.setText("...")
