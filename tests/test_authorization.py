from __future__ import annotations

import threading
from unittest.mock import MagicMock, patch

import authorization
from authorization import MicrophoneAuthorizer
from models import AuthorizationStatus


@patch("authorization.sd")
def test_authorized_when_device_and_credentials_ok(mock_sd: MagicMock) -> None:
    authorizer = MicrophoneAuthorizer(has_credentials=lambda: True)

    assert authorizer.check() == AuthorizationStatus.AUTHORIZED
    kwargs = mock_sd.check_input_settings.call_args.kwargs
    assert kwargs["dtype"] == "int16"
    assert kwargs["samplerate"] == 16000


@patch("authorization.sd")
def test_denied_when_device_rejects_settings(mock_sd: MagicMock) -> None:
    mock_sd.check_input_settings.side_effect = Exception("Invalid input device")
    authorizer = MicrophoneAuthorizer(has_credentials=lambda: True)

    assert authorizer.check() == AuthorizationStatus.DENIED


@patch("authorization.sd")
def test_not_determined_without_credentials(mock_sd: MagicMock) -> None:
    authorizer = MicrophoneAuthorizer(has_credentials=lambda: False)

    assert authorizer.check() == AuthorizationStatus.NOT_DETERMINED


def test_restricted_without_audio_backend(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(authorization, "sd", None)
    authorizer = MicrophoneAuthorizer(has_credentials=lambda: True)

    assert authorizer.check() == AuthorizationStatus.RESTRICTED


@patch("authorization.sd")
def test_request_answers_on_worker_thread(mock_sd: MagicMock) -> None:
    authorizer = MicrophoneAuthorizer(has_credentials=lambda: True)
    answered = threading.Event()
    seen: list[tuple[AuthorizationStatus, threading.Thread]] = []

    def callback(status: AuthorizationStatus) -> None:
        seen.append((status, threading.current_thread()))
        answered.set()

    authorizer.request_authorization(callback)

    assert answered.wait(timeout=2.0)
    status, thread = seen[0]
    assert status == AuthorizationStatus.AUTHORIZED
    assert thread is not threading.main_thread()
