"""
Signed OAuth state values.

The state carries the Discord user id through the Strava redirect round trip
as ``"{owner_id}:{signature}"`` where the signature is the unpadded base64url
HMAC-SHA256 of the owner id.
"""

from __future__ import annotations

import base64
import hmac
from hashlib import sha256

from strava_relay.core.errors import ConfigurationError, InvalidStateError

_SEPARATOR = ":"


def _signature(owner_id: str, secret: bytes) -> str:
    digest = hmac.new(secret, owner_id.encode("utf-8"), sha256).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


class OAuthStateSigner:
    """Sign and verify OAuth state values to guard against tampering."""

    def __init__(self, secret_key: str | None) -> None:
        self._secret_key = secret_key.encode("utf-8") if secret_key else None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(secret_key=***)"

    def _key(self) -> bytes:
        if self._secret_key is None:
            raise ConfigurationError("State signing secret is not configured.")
        return self._secret_key

    def sign(self, owner_id: str) -> str:
        return f"{owner_id}{_SEPARATOR}{_signature(owner_id, self._key())}"

    def verify(self, state: str) -> str:
        """Return the owner id bound to ``state`` or raise ``InvalidStateError``.

        Every failure raises the same error so callers cannot tell a malformed
        token from a forged one.
        """
        key = self._key()
        owner_id, separator, provided = (state or "").partition(_SEPARATOR)
        if not separator or not owner_id or not provided:
            raise InvalidStateError()
        expected = _signature(owner_id, key)
        if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
            raise InvalidStateError()
        return owner_id


def sign_state(owner_id: str, secret: str) -> str:
    return OAuthStateSigner(secret).sign(owner_id)


def verify_state(state: str, secret: str) -> str:
    return OAuthStateSigner(secret).verify(state)


__all__ = ["OAuthStateSigner", "sign_state", "verify_state"]
