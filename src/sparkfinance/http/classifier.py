"""Classify stock-provider payloads into a typed result."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# HTTP-200 fields the provider uses to report quota exhaustion.
QUOTA_FIELDS = ("Note", "Information")
ERROR_FIELD = "Error Message"


@dataclass(frozen=True)
class ProviderOk:
    payload: dict[str, Any]


@dataclass(frozen=True)
class QuotaExceeded:
    message: str


@dataclass(frozen=True)
class ProviderFailure:
    message: str


ProviderResult = ProviderOk | QuotaExceeded | ProviderFailure


def classify_payload(payload: Any) -> ProviderResult:
    if not isinstance(payload, dict):
        return ProviderFailure(f"Unexpected payload type {type(payload).__name__}")
    for field_name in QUOTA_FIELDS:
        message = payload.get(field_name)
        if message:
            return QuotaExceeded(str(message))
    if payload.get(ERROR_FIELD):
        return ProviderFailure(str(payload[ERROR_FIELD]))
    return ProviderOk(payload)
