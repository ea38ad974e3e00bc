"""
auth/tokens.py -- JWT, password hashing, and login verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the username (sub), role names, issuer, issue time and expiry.
       Verification returns None on any failure -- the token filter turns
       that into NOT_LOGGED_IN.

  Passwords: bcrypt, used directly. The _DUMMY_HASH constant enables timing
       equalization in authenticate_user() so response time does not reveal
       whether a username exists.

  Bearer prefix: the issued header value and the login response body both
       carry TOKEN_PREFIX + jwt. extract_bearer() strips the prefix again on
       the way in.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from auth.models import Principal
from core.config import get_settings
from core.errors import AccountForbiddenError, LoginFailedError, UserLoginError

if TYPE_CHECKING:
    from auth.models import User, UserLookup

logger = logging.getLogger("smartplatform.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes of its input.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed stored hash counts as a mismatch.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Computed once at module load so the first failed login is not measurably
# slower than the rest.
_DUMMY_HASH: str = hash_password("smartplatform_timing_dummy")


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def token_lifetime(remember_me: bool = False) -> int:
    """Seconds until a freshly issued token expires."""
    return _settings.remember_expire_seconds if remember_me else _settings.token_expire_seconds


def create_access_token(username: str, roles: list[str] | tuple[str, ...], remember_me: bool = False) -> str:
    """Encode a signed JWT for username carrying its role names.

    Returns the bare JWT; callers that write it to a header prepend
    TOKEN_PREFIX (see bearer_value()).
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": username,
        "roles": list(roles),
        "iss": _settings.token_issuer,
        "iat": now,
        "exp": now + timedelta(seconds=token_lifetime(remember_me)),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and verify a JWT. Returns the payload dict or None on any failure.

    Expired, forged, wrong-issuer and claim-less tokens all come back as None.
    """
    try:
        payload = jwt.decode(
            token,
            _settings.secret_key,
            algorithms=[_ALGORITHM],
            issuer=_settings.token_issuer,
        )
    except JWTError:
        return None
    if not payload.get("sub") or not isinstance(payload.get("roles"), list):
        return None
    return payload


def bearer_value(token: str) -> str:
    return f"{_settings.token_prefix}{token}"


def extract_bearer(header_value: str | None) -> str | None:
    """Return the raw token from an Authorization header value, or None."""
    if not header_value or not header_value.startswith(_settings.token_prefix):
        return None
    token = header_value[len(_settings.token_prefix) :].strip()
    return token or None


def principal_from_header(header_value: str | None) -> Principal | None:
    """Verify a bearer header and rebuild the caller's identity from its claims."""
    token = extract_bearer(header_value)
    if token is None:
        return None
    payload = decode_access_token(token)
    if payload is None:
        return None
    return Principal(username=payload["sub"], roles=tuple(payload["roles"]))


# ---------------------------------------------------------------------------
# User authentication (constant-time)
# ---------------------------------------------------------------------------


def authenticate_user(lookup: UserLookup, username: str, password: str) -> User:
    """Verify a username/password login and return the User.

    Raises:
        UserLoginError:        unknown username or wrong password (merged so
                               callers cannot enumerate accounts).
        AccountForbiddenError: disabled account, whatever password was sent.
                               The enabled flag is checked before the
                               password.
        LoginFailedError:      the lookup itself failed.

    Always runs bcrypt whether or not the user exists.
    """
    try:
        user = lookup.get_by_username(username)
    except Exception as exc:
        logger.exception("User lookup failed for %r", username)
        raise LoginFailedError("user lookup failed") from exc

    if user is None:
        # Equalize timing -- do NOT return early before running bcrypt
        verify_password(password, _DUMMY_HASH)
        raise UserLoginError("unknown user")
    if not user.enabled:
        raise AccountForbiddenError("account disabled")
    if not verify_password(password, user.hashed_password):
        raise UserLoginError("bad credentials")
    return user
