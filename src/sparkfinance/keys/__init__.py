"""API key rotation."""

from .rotation import ApiKeyManager, ApiKeySlot, ApiKeyState, KeyUsage

__all__ = ["ApiKeyManager", "ApiKeySlot", "ApiKeyState", "KeyUsage"]
