from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

import hotkey
from hotkey import GlobalHotkeyAdapter


@patch("hotkey.keyboard")
def test_press_toggles_once_until_released(mock_keyboard: MagicMock) -> None:
    toggles: list[int] = []
    adapter = GlobalHotkeyAdapter(hotkey_name="Key.f9")
    adapter.start(on_toggle=lambda: toggles.append(1))

    kwargs = mock_keyboard.Listener.call_args.kwargs
    on_press, on_release = kwargs["on_press"], kwargs["on_release"]

    on_press("Key.f9")
    on_press("Key.f9")  # auto-repeat
    on_release("Key.f9")
    on_press("Key.f9")
    on_press("Key.f8")

    assert len(toggles) == 2
    adapter.stop()
    mock_keyboard.Listener.return_value.stop.assert_called_once()


@patch("hotkey.keyboard")
def test_empty_hotkey_disables_listener(mock_keyboard: MagicMock) -> None:
    adapter = GlobalHotkeyAdapter(hotkey_name="")
    adapter.start(on_toggle=lambda: None)

    mock_keyboard.Listener.assert_not_called()
    adapter.stop()


def test_start_raises_without_pynput(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(hotkey, "keyboard", None)

    with pytest.raises(RuntimeError, match="pynput is not installed"):
        GlobalHotkeyAdapter().start(on_toggle=lambda: None)
