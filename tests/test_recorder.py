"""Tests for SoundDeviceRecorder."""

from __future__ import annotations

from queue import Queue
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from models import AudioFrame
from recorder import SoundDeviceRecorder


def _block(n_samples: int = 1600) -> np.ndarray:
    """A silent int16 block shaped like a sounddevice callback buffer."""
    return np.zeros((n_samples, 1), dtype=np.int16)


# ---------------------------------------------------------------
# Start / stop
# ---------------------------------------------------------------

@patch("recorder.sd")
def test_start_opens_int16_stream(mock_sd: MagicMock) -> None:
    mock_stream = MagicMock()
    mock_sd.InputStream.return_value = mock_stream

    recorder = SoundDeviceRecorder(sample_rate=16000, channels=1, chunk_ms=100)
    q: Queue[AudioFrame | None] = Queue()
    recorder.start(q)

    kwargs = mock_sd.InputStream.call_args.kwargs
    assert kwargs["samplerate"] == 16000
    assert kwargs["dtype"] == "int16"
    assert kwargs["blocksize"] == 1600
    mock_stream.start.assert_called_once()
    assert recorder.running is True

    recorder.stop()
    mock_stream.stop.assert_called_once()
    mock_stream.close.assert_called_once()
    assert q.get_nowait() is None


@patch("recorder.sd")
def test_start_is_idempotent(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder()
    q: Queue[AudioFrame | None] = Queue()
    recorder.start(q)
    recorder.start(q)

    assert mock_sd.InputStream.call_count == 1
    recorder.stop()


@patch("recorder.sd")
def test_stop_twice_emits_one_sentinel(mock_sd: MagicMock) -> None:
    mock_stream = MagicMock()
    mock_sd.InputStream.return_value = mock_stream

    recorder = SoundDeviceRecorder()
    q: Queue[AudioFrame | None] = Queue()
    recorder.start(q)
    recorder.stop()
    recorder.stop()

    assert q.get_nowait() is None
    assert q.empty()
    mock_stream.close.assert_called_once()


def test_stop_without_start_is_safe() -> None:
    recorder = SoundDeviceRecorder()
    recorder.stop()
    assert recorder.running is False


@patch("recorder.sd")
def test_stream_start_failure_closes_stream(mock_sd: MagicMock) -> None:
    mock_stream = MagicMock()
    mock_stream.start.side_effect = RuntimeError("device busy")
    mock_sd.InputStream.return_value = mock_stream

    recorder = SoundDeviceRecorder()
    with pytest.raises(RuntimeError, match="device busy"):
        recorder.start(Queue())

    mock_stream.close.assert_called_once()
    assert recorder.running is False


def test_start_raises_without_sounddevice(monkeypatch) -> None:  # noqa: ANN001
    import recorder as rec_mod
    monkeypatch.setattr(rec_mod, "sd", None)

    recorder = SoundDeviceRecorder()
    with pytest.raises(RuntimeError, match="sounddevice is not installed"):
        recorder.start(Queue())


# ---------------------------------------------------------------
# Audio callback
# ---------------------------------------------------------------

@patch("recorder.sd")
def test_callback_pushes_audio_frames(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder(sample_rate=16000, channels=1, chunk_ms=100)
    q: Queue[AudioFrame | None] = Queue(maxsize=50)
    recorder.start(q)

    recorder._on_audio(_block(1600), frames=1600, time_info=None, status=None)

    frame = q.get_nowait()
    assert isinstance(frame, AudioFrame)
    assert frame.sample_rate == 16000
    assert frame.channels == 1
    assert len(frame.pcm16_bytes) == 1600 * 2

    recorder.stop()


@patch("recorder.sd")
def test_queue_full_increments_dropped_chunks(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder()
    q: Queue[AudioFrame | None] = Queue(maxsize=1)
    recorder.start(q)

    recorder._on_audio(_block(), frames=1600, time_info=None, status=None)
    assert recorder.dropped_chunks == 0

    recorder._on_audio(_block(), frames=1600, time_info=None, status=None)
    assert recorder.dropped_chunks == 1

    recorder.stop()


@patch("recorder.sd")
def test_callback_after_stop_is_noop(mock_sd: MagicMock) -> None:
    mock_sd.InputStream.return_value = MagicMock()

    recorder = SoundDeviceRecorder()
    q: Queue[AudioFrame | None] = Queue()
    recorder.start(q)
    recorder.stop()
    q.get_nowait()  # sentinel

    recorder._on_audio(_block(), frames=1600, time_info=None, status=None)
    assert q.empty()
