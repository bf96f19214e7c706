"""
Password hashing and bearer-token issuance.

Passwords are hashed with bcrypt at ``settings.BCRYPT_ROUNDS``.  Hashing is
deliberately slow, so async callers run it in a worker thread
(``asyncio.to_thread``) and never while a database transaction is open.

Bearer tokens are HS256 JWTs carrying ``sub`` (the user id as a string),
``iat``, ``nbf`` (= ``iat``), ``exp``, ``iss`` and a random ``jti``.  There is
no revocation list: a token is accepted until it expires.
"""
import functools
import time
import uuid
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from conduit.config import settings
from conduit.errors import TokenExpired, TokenInvalid

ALGORITHM = "HS256"
ISSUER = "conduit-api"

_DECODE_OPTIONS = {
    "require_iat": True,
    "require_nbf": True,
    "require_exp": True,
    "require_iss": True,
    "require_sub": True,
    "require_jti": True,
}


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

def hash_password(password: str, rounds: int | None = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode(), salt).decode()


@functools.cache
def _dummy_password_hash() -> str:
    return hash_password(uuid.uuid4().hex)


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Constant-time comparison of *password* against a stored bcrypt hash.

    Returns False (instead of raising) for malformed hashes and for
    passwords bcrypt refuses to process.  With no stored hash the password
    is still checked against a throwaway one and False is returned, so an
    unknown account takes as long as a wrong password.
    """
    known = password_hash is not None
    try:
        matched = bcrypt.checkpw(password.encode(), (password_hash if known else _dummy_password_hash()).encode())
    except ValueError:
        return False
    return known and matched


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

def create_access_token(
    user_id: int,
    secret_key: str | None = None,
    expires_in: timedelta | None = None,
    issued_at: datetime | None = None,
) -> str:
    issued_at = issued_at or datetime.now(timezone.utc)
    expires_in = expires_in or timedelta(seconds=settings.JWT_EXPIRY_SECONDS)
    claims = {
        "sub": str(user_id),
        "iat": issued_at,
        "nbf": issued_at,
        "exp": issued_at + expires_in,
        "iss": ISSUER,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, secret_key or settings.JWT_SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str, secret_keys: Sequence[str] | None = None) -> int:
    """
    Verify *token* and return the user id it was issued for.

    *secret_keys* are tried in order, so a rotated-out secret can stay
    valid for a grace period by listing it after the current one.

    Raises ``TokenExpired`` for an expired token and ``TokenInvalid`` for
    anything else: bad signature, wrong issuer, missing claims, a token that
    is not yet valid, or a subject that is not a user id.
    """
    keys = list(secret_keys or [settings.JWT_SECRET_KEY])
    claims = None
    for key in keys:
        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=[ALGORITHM],
                issuer=ISSUER,
                options=_DECODE_OPTIONS,
            )
            break
        except ExpiredSignatureError as exc:
            raise TokenExpired() from exc
        except JWTError:
            continue
    if claims is None:
        raise TokenInvalid()

    if claims["iat"] > time.time():
        raise TokenInvalid()
    try:
        user_id = int(claims["sub"])
    except (TypeError, ValueError) as exc:
        raise TokenInvalid() from exc
    if user_id <= 0:
        raise TokenInvalid()
    return user_id
