from __future__ import annotations
import base64
import hashlib
import json
from typing import Any, Dict

from cryptography.fernet import Fernet, InvalidToken

from .config import settings


class InvalidSignedToken(Exception):
    """Raised when a signed token is tampered with or expired."""


def _derive_fernet_key(secret: str) -> bytes:
    """Derive a urlsafe base64-encoded 32-byte key from an arbitrary secret string."""
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


def _get_cipher() -> Fernet:
    return Fernet(_derive_fernet_key(settings.SECRET_KEY))


def create_signed_token(payload: Dict[str, Any]) -> str:
    """Encrypt a JSON-serializable dict into a timestamped Fernet token."""
    token = _get_cipher().encrypt(json.dumps(payload).encode("utf-8"))
    return token.decode("utf-8")


def read_signed_token(token: str, max_age_seconds: int) -> Dict[str, Any]:
    """Decrypt a token created by ``create_signed_token``.

    Raises InvalidSignedToken if the token is invalid or older than
    ``max_age_seconds``.
    """
    if not token:
        raise InvalidSignedToken("Empty token")
    try:
        plaintext = _get_cipher().decrypt(token.encode("utf-8"), ttl=max_age_seconds)
    except InvalidToken as e:
        raise InvalidSignedToken("Invalid or expired token") from e
    return json.loads(plaintext.decode("utf-8"))
