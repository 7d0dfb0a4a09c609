# pdf_overlay/logic/encryption.py
from __future__ import annotations

from cryptography.fernet import Fernet, InvalidToken

from core.settings.logic.settings_manager import SettingsManager

_NAMESPACE = "signatures"
_KEY_FIELD = "fernet_key"


def _fernet(sm: SettingsManager) -> Fernet:
    """
    Fernet instance for the session key; the key (Fernet.generate_key(), base64
    text) is created on first use and kept in the settings slot.
    """
    key = sm.get(_NAMESPACE, _KEY_FIELD, None)
    if not key:
        key = Fernet.generate_key().decode("ascii")
        sm.set(_NAMESPACE, _KEY_FIELD, key)
    return Fernet(key.encode("ascii"))


def encrypt_bytes(sm: SettingsManager, data: bytes) -> bytes:
    return _fernet(sm).encrypt(data)


def decrypt_bytes(sm: SettingsManager, token: bytes) -> bytes:
    """
    Decrypts with the session key. Plain PNG/JPEG/GIF content (stored while
    encryption was switched off) is accepted as-is; otherwise InvalidToken.
    """
    try:
        return _fernet(sm).decrypt(token)
    except InvalidToken:
        if token[:8] == b"\x89PNG\r\n\x1a\n" or token[:3] in (b"\xff\xd8\xff", b"GIF"):
            return token
        raise


def forget_key(sm: SettingsManager) -> None:
    sm.remove(_NAMESPACE, _KEY_FIELD)
