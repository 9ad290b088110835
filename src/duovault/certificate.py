"""Role-grant certificates — Ed25519 JWT validation with anti-replay.

A role authority signs a short-lived JWT naming an identity (``sub``) and
the roles it holds (``roles``). ``RoleRegistry.grant_from_certificate``
verifies it here and records the grant.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Any

logger = logging.getLogger(__name__)

ROLE_CERTIFICATE_PROTOCOL = "duovault-role-grant-01"


def normalize_public_key(raw: str) -> str:
    """Accept a bare base64 key string or full PEM and return valid PEM."""
    stripped = raw.strip()
    if stripped.startswith("-----"):
        return stripped
    return f"-----BEGIN PUBLIC KEY-----\n{stripped}\n-----END PUBLIC KEY-----"


class CertificateError(Exception):
    """Raised when a role certificate fails validation."""


class _JTIStore:
    """Thread-safe in-memory JTI (JWT ID) store for anti-replay protection."""

    def __init__(self) -> None:
        self._seen: dict[str, float] = {}  # jti -> expiry timestamp
        self._lock = threading.Lock()

    def check_and_record(self, jti: str, exp: float) -> bool:
        """Record a JTI. Returns True if new, False if already seen (replay)."""
        self._cleanup()
        with self._lock:
            if jti in self._seen:
                return False
            self._seen[jti] = exp
            return True

    def _cleanup(self) -> None:
        now = time.time()
        with self._lock:
            self._seen = {j: e for j, e in self._seen.items() if e > now}


# Module-level singleton — shared across all calls within one process.
_jti_store = _JTIStore()


def verify_role_certificate(token: str, public_key_pem: str) -> dict[str, Any]:
    """Verify an authority-signed Ed25519 role-grant JWT.

    Args:
        token: The JWT string.
        public_key_pem: The authority's Ed25519 public key, bare base64 or PEM.

    Returns:
        Dict with ``identity``, ``roles`` (list of str) and ``jti``.

    Raises:
        CertificateError: On invalid, expired, tampered, replayed or
            incomplete certificates.
    """
    try:
        import jwt
        from cryptography.hazmat.primitives.serialization import load_pem_public_key
    except ImportError as e:
        raise CertificateError(
            f"Missing dependency for certificate verification: {e}. "
            "Install with: pip install 'PyJWT[crypto]'"
        ) from e

    pem = normalize_public_key(public_key_pem)
    try:
        public_key = load_pem_public_key(pem.encode())
    except (ValueError, TypeError) as e:
        raise CertificateError(f"Invalid authority public key: {e}") from e

    try:
        claims = jwt.decode(token, public_key, algorithms=["EdDSA"])
    except jwt.ExpiredSignatureError as e:
        raise CertificateError("Certificate has expired.") from e
    except jwt.InvalidSignatureError as e:
        raise CertificateError("Certificate signature is invalid — possible tampering.") from e
    except jwt.DecodeError as e:
        raise CertificateError(f"Certificate could not be decoded: {e}") from e
    except jwt.InvalidTokenError as e:
        raise CertificateError(f"Invalid certificate: {e}") from e

    jti = claims.get("jti")
    if not jti:
        raise CertificateError("Certificate missing jti claim.")

    exp = claims.get("exp")
    if not exp:
        raise CertificateError("Certificate missing exp claim.")

    if claims.get("protocol") != ROLE_CERTIFICATE_PROTOCOL:
        raise CertificateError(
            f"Unsupported protocol {claims.get('protocol')!r}; "
            f"expected {ROLE_CERTIFICATE_PROTOCOL!r}."
        )

    identity = claims.get("sub")
    if not identity:
        raise CertificateError("Certificate missing sub claim.")

    roles = claims.get("roles")
    if not isinstance(roles, list) or not roles or not all(isinstance(r, str) for r in roles):
        raise CertificateError("Certificate roles claim must be a non-empty list of strings.")

    # Anti-replay last: a rejected certificate leaves its jti unused
    if not _jti_store.check_and_record(jti, float(exp)):
        raise CertificateError(f"Certificate replay detected — jti {jti} already used.")

    return {"identity": identity, "roles": list(roles), "jti": jti}


def reset_jti_store() -> None:
    """Reset the JTI store — for testing only."""
    global _jti_store
    _jti_store = _JTIStore()


def issue_role_certificate(
    private_key: Any,
    identity: str,
    roles: list[str],
    *,
    ttl_secs: int = 600,
    jti: str | None = None,
) -> str:
    """Sign a role-grant certificate with an Ed25519 private key.

    Authority-side counterpart of ``verify_role_certificate``.
    """
    import jwt

    now = int(time.time())
    claims = {
        "sub": identity,
        "roles": list(roles),
        "protocol": ROLE_CERTIFICATE_PROTOCOL,
        "jti": jti or uuid.uuid4().hex,
        "iat": now,
        "exp": now + ttl_secs,
    }
    return jwt.encode(claims, private_key, algorithm="EdDSA")
