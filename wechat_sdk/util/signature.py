"""
Signing helpers for JS-SDK configuration.
"""

import hashlib
import secrets
import string
import time

_LETTERS = string.ascii_letters + string.digits


def random_str(length: int) -> str:
    """Random alphanumeric string, used as a nonce."""
    return "".join(secrets.choice(_LETTERS) for _ in range(length))


def signature(*params: str) -> str:
    """SHA-1 hex digest of the params sorted and concatenated."""
    h = hashlib.sha1()
    for p in sorted(params):
        h.update(p.encode("utf-8"))
    return h.hexdigest()


def current_timestamp() -> int:
    return int(time.time())
