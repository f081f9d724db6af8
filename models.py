"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SessionState(str, Enum):
    IDLE = "IDLE"
    AWAITING_AUTHORIZATION = "AWAITING_AUTHORIZATION"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"


class AuthorizationStatus(str, Enum):
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"
    NOT_DETERMINED = "not_determined"


class RecognitionKind(str, Enum):
    PARTIAL = "partial"
    FINAL = "final"
    ERROR = "error"


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0


@dataclass
class RecognitionEvent:
    kind: str
    text: str = ""
    code: str = ""
    message: str = ""

    @property
    def is_final(self) -> bool:
        return self.kind == RecognitionKind.FINAL.value
