"""Small helpers shared by the webhook route and the services."""

from __future__ import annotations

import hashlib
import hmac
from html import escape

from gitdeploy.errors import AuthenticationError

# shake_* digests need an explicit length and cannot back an HMAC hexdigest.
SUPPORTED_ALGORITHMS = frozenset(
    name.lower() for name in hashlib.algorithms_available if not name.lower().startswith("shake")
)

_TRUTHY_OFF = {"", "0", "false", "no", "off"}


def is_truthy(value: str | None) -> bool:
    """Query-flag truthiness: present and not one of ``0/false/no/off``."""
    if value is None:
        return False
    return value.strip().lower() not in _TRUTHY_OFF


def verify_signature(secret: str, body: bytes, signature_header: str | None) -> None:
    """
    Verify a webhook HMAC signature of the form ``algorithm=hexdigest``.

    Raises
    ------
    AuthenticationError
        If the header is missing, the algorithm is unknown to ``hashlib``,
        or the digest does not match.
    """
    if not signature_header:
        raise AuthenticationError("HTTP header 'X-Hub-Signature' is missing.")
    algo, _, digest = signature_header.partition("=")
    algo = algo.strip().lower()
    if algo not in SUPPORTED_ALGORITHMS:
        raise AuthenticationError(f"Hash algorithm '{algo}' is not supported.")
    try:
        mac = hmac.new(secret.encode(), msg=body, digestmod=algo).hexdigest()
    except ValueError as exc:
        # listed by hashlib but disabled in the linked OpenSSL build
        raise AuthenticationError(f"Hash algorithm '{algo}' is not supported.") from exc
    if not hmac.compare_digest(mac.encode(), digest.strip().lower().encode()):
        raise AuthenticationError("Hook secret does not match.")


def nl2br(text: str) -> str:
    """HTML-escape ``text`` and turn its line breaks into ``<br>`` tags."""
    normalized = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    return "<br>\n".join(escape(line, quote=False) for line in normalized.split("\n"))
