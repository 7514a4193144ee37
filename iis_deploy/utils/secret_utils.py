"""Secret handling utilities

Passwords are kept in mutable buffers so they can be zeroed once they have
been encoded for a child process. The encoded form is base64 over the
UTF-16-LE bytes of the password, which is what PowerShell's
``[Text.Encoding]::Unicode`` decodes on the script side.
"""

import base64
from typing import Optional, Union

SECRET_ENCODING = "utf-16-le"


def zero_buffer(buffer: bytearray) -> None:
    """Overwrite a buffer in place with zero bytes"""
    for i in range(len(buffer)):
        buffer[i] = 0


class SecretBuffer:
    """Mutable container for a password

    The value never appears in ``repr``/``str``. ``clear()`` zeroes the
    underlying storage; a cleared buffer can no longer be encoded.
    """

    __slots__ = ("_buffer", "_cleared")

    def __init__(self, value: Union[str, bytes, bytearray, None] = None):
        if value is None:
            value = ""
        if isinstance(value, str):
            self._buffer = bytearray(value.encode(SECRET_ENCODING))
        else:
            self._buffer = bytearray(value)
        self._cleared = False

    @classmethod
    def coerce(cls, value: Union['SecretBuffer', str, None]) -> Optional['SecretBuffer']:
        """Wrap plain strings, pass buffers through"""
        if value is None or isinstance(value, SecretBuffer):
            return value
        return cls(value)

    @property
    def cleared(self) -> bool:
        return self._cleared

    def __len__(self) -> int:
        return len(self._buffer)

    def __bool__(self) -> bool:
        return not self._cleared and len(self._buffer) > 0

    def copy(self) -> 'SecretBuffer':
        """Independent copy, so one stage can consume it without affecting another"""
        if self._cleared:
            raise ValueError("Secret has already been cleared")
        return SecretBuffer(self._buffer)

    def clear(self) -> None:
        """Zero the stored bytes"""
        zero_buffer(self._buffer)
        self._cleared = True

    def reveal(self) -> str:
        """Return the plain text value (only for interactive re-entry checks)"""
        if self._cleared:
            raise ValueError("Secret has already been cleared")
        return bytes(self._buffer).decode(SECRET_ENCODING)

    def encode_base64(self) -> str:
        """Encode without clearing; see encode_transient() for the consuming form"""
        if self._cleared:
            raise ValueError("Secret has already been cleared")
        working = bytearray(self._buffer)
        try:
            return base64.b64encode(working).decode("ascii")
        finally:
            zero_buffer(working)

    def __repr__(self) -> str:
        state = "cleared" if self._cleared else "***"
        return f"SecretBuffer({state})"

    __str__ = __repr__


def encode_transient(secret: Union[SecretBuffer, str, None]) -> Optional[str]:
    """Encode a secret for process transmission and zero it

    The supplied buffer is consumed: after this call it is cleared, so the
    caller must hand over a copy if it needs the value again.

    Args:
        secret: Password buffer (plain strings are wrapped first)

    Returns:
        Base64 of the UTF-16-LE bytes, or None when no secret was given
    """
    secret = SecretBuffer.coerce(secret)
    if secret is None:
        return None
    if not secret.cleared and len(secret) == 0:
        secret.clear()
        return None
    try:
        return secret.encode_base64()
    finally:
        secret.clear()


def decode_secret(encoded: str) -> str:
    """Inverse of encode_transient, used by script stubs and diagnostics"""
    return base64.b64decode(encoded).decode(SECRET_ENCODING)
