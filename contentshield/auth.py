"""
API key authentication.

Keys come from CONTENTSHIELD_API_KEYS (comma-separated) and are kept only
as SHA-256 hashes. With no keys configured, auth is off (dev mode).
"""

from __future__ import annotations

import hashlib
import hmac
import os
import secrets
from typing import Iterable, Optional

from fastapi import HTTPException, Security
from fastapi.security import APIKeyHeader

API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)


def _digest(key: str) -> str:
    return hashlib.sha256(key.encode()).hexdigest()


class APIKeyStore:
    """Set of accepted key hashes."""

    def __init__(self, raw_keys: Iterable[str] = ()):
        self._hashes = {_digest(k.strip()) for k in raw_keys if k.strip()}

    @classmethod
    def from_env(cls) -> "APIKeyStore":
        return cls(os.getenv("CONTENTSHIELD_API_KEYS", "").split(","))

    @property
    def enabled(self) -> bool:
        return bool(self._hashes)

    def add(self, key: str) -> None:
        self._hashes.add(_digest(key))

    def discard(self, key: str) -> None:
        self._hashes.discard(_digest(key))

    def verify(self, key: Optional[str]) -> bool:
        if not key:
            return False
        candidate = _digest(key)
        return any(hmac.compare_digest(candidate, h) for h in self._hashes)


key_store = APIKeyStore.from_env()


async def require_api_key(
    api_key: Optional[str] = Security(API_KEY_HEADER),
) -> Optional[str]:
    """FastAPI dependency. Returns a short key id for logging, None in dev mode."""
    if not key_store.enabled:
        return None
    if not api_key:
        raise HTTPException(status_code=401, detail="Missing API key. Include X-API-Key header.")
    if not key_store.verify(api_key):
        raise HTTPException(status_code=403, detail="Invalid API key.")
    return _digest(api_key)[:12]


def generate_api_key() -> str:
    """New random key for provisioning."""
    return f"cs_{secrets.token_urlsafe(32)}"
