# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives live here.  No other
module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. Secret-at-rest encryption                (AES-256-GCM, used for TOTP seeds)
3. Session tokens                           (PyJWT / HS256, ``TokenService``)

Tokens are stateless: validity is decided by signature and ``exp`` alone,
nothing is stored server-side and there is no revocation list.  Sensitive
operations (password change, account deletion, 2FA disable) therefore
re-check the current password instead of trusting a token's freshness.
"""

import base64
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt as _jwt        # PyJWT
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps

from core.config import Settings, settings
from core.errors import InvalidToken, TokenExpired

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------
# passlib embeds a fresh random salt inside every hash string, so two users
# with the same password never share a stored value.
# ---------------------------------------------------------------------------

_PASSWORD_ROUNDS = 600_000


def hash_password(plain: str) -> str:
    """One-way, salted hash of *plain*.  Returns the full passlib string."""
    return _pbkdf2.using(rounds=_PASSWORD_ROUNDS).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Constant-time check of *plain* against a hash from :func:`hash_password`.
    A malformed stored hash counts as a mismatch.
    """
    if not plain or not stored_hash:
        return False
    try:
        return _pbkdf2.verify(plain, stored_hash)
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# 2.  AES-256-GCM – secrets at rest
# ---------------------------------------------------------------------------


def _master_key(cfg: Settings) -> bytes:
    # Length is validated when settings load
    return base64.b64decode(cfg.master_encryption_key)


def encrypt_secret(plaintext: str, cfg: Settings = settings) -> str:
    """
    Encrypt *plaintext* with a fresh 96-bit nonce.

    Returns ``base64(nonce || ciphertext || tag)`` so a single column holds
    everything needed for decryption.
    """
    nonce = secrets.token_bytes(12)
    ct_and_tag = AESGCM(_master_key(cfg)).encrypt(nonce, plaintext.encode("utf-8"), None)
    return base64.b64encode(nonce + ct_and_tag).decode("ascii")


def decrypt_secret(blob: str, cfg: Settings = settings) -> str:
    """
    Reverse :func:`encrypt_secret`.  Raises ``ValueError`` when the blob was
    tampered with or encrypted under another key.
    """
    raw = base64.b64decode(blob)
    nonce, ct_and_tag = raw[:12], raw[12:]
    try:
        plaintext = AESGCM(_master_key(cfg)).decrypt(nonce, ct_and_tag, None)
    except Exception as exc:
        raise ValueError("Decryption failed – data may be tampered") from exc
    return plaintext.decode("utf-8")


# ---------------------------------------------------------------------------
# 3.  Session tokens
# ---------------------------------------------------------------------------

_ALGORITHM = "HS256"
_PENDING_CLAIM = "2fa_pending"


@dataclass(frozen=True)
class TokenClaims:
    principal_id: int
    role: str
    email: str
    pending_second_factor: bool = False


class TokenService:
    """
    Issue and verify signed, time-limited session tokens.

    Two kinds exist: a full session (``pending_second_factor=False``) and a
    short-lived pending token handed out between the password check and the
    TOTP check.  The pending flag is part of the signed payload, so a client
    cannot strip it.
    """

    def __init__(self, secret_key: str, session_ttl: timedelta, pending_ttl: timedelta):
        if not secret_key:
            raise ValueError("TokenService requires a signing key")
        self._key = secret_key
        self.session_ttl = session_ttl
        self.pending_ttl = pending_ttl

    @classmethod
    def from_settings(cls, cfg: Settings) -> "TokenService":
        return cls(
            cfg.secret_key,
            session_ttl=timedelta(minutes=cfg.access_token_expire_minutes),
            pending_ttl=timedelta(minutes=cfg.pending_token_expire_minutes),
        )

    def issue(
        self,
        claims: TokenClaims,
        ttl: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Sign *claims*.  *ttl* defaults to the session or pending lifetime
        depending on the claims; *now* exists so tests can back-date tokens.
        """
        if ttl is None:
            ttl = self.pending_ttl if claims.pending_second_factor else self.session_ttl
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(claims.principal_id),
            "role": claims.role,
            "email": claims.email,
            "iat": issued_at,
            "exp": issued_at + ttl,
        }
        if claims.pending_second_factor:
            payload[_PENDING_CLAIM] = True
        return _jwt.encode(payload, self._key, algorithm=_ALGORITHM)

    def issue_session(self, principal_id: int, role: str, email: str) -> str:
        return self.issue(TokenClaims(principal_id, role, email))

    def issue_pending(self, principal_id: int, role: str, email: str) -> str:
        return self.issue(TokenClaims(principal_id, role, email, pending_second_factor=True))

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate *token*.

        Raises ``TokenExpired`` when the signature is good but ``exp`` has
        passed, and ``InvalidToken`` for everything else (bad signature,
        garbage, missing claims).  Callers rely on the distinction.
        """
        try:
            payload = _jwt.decode(
                token,
                self._key,
                algorithms=[_ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except _jwt.ExpiredSignatureError as exc:
            raise TokenExpired(cause=str(exc))
        except _jwt.InvalidTokenError as exc:
            raise InvalidToken(cause=str(exc))

        try:
            principal_id = int(payload["sub"])
            role = payload["role"]
            email = payload["email"]
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidToken(cause=f"malformed claims: {exc}")

        return TokenClaims(
            principal_id=principal_id,
            role=role,
            email=email,
            pending_second_factor=bool(payload.get(_PENDING_CLAIM, False)),
        )


_token_service: Optional[TokenService] = None


def get_token_service() -> TokenService:
    """FastAPI dependency / accessor for the process-wide ``TokenService``."""
    global _token_service
    if _token_service is None:
        _token_service = TokenService.from_settings(settings)
    return _token_service
