"""
Identity service: password hashing, signed bearer tokens and the
``require_auth`` / ``require_admin`` view decorators.

Tokens are HS256 JWTs carrying ``userId`` and ``email`` plus ``iat`` and
``exp`` claims. The admin role is not stored on users; it is membership of
the configured ``ADMIN_EMAILS`` allow-list.
"""
from __future__ import annotations

import functools
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional

import jwt
from flask import current_app, g, request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import AuthError, ConflictError, ForbiddenError
from .models import User

logger = logging.getLogger(__name__)

JWT_ALG = "HS256"
PASSWORD_HASH_METHOD = "scrypt"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

# Compared against when the email is unknown so both failure paths hash once.
_DUMMY_HASH = generate_password_hash("memorial-dummy-password", method=PASSWORD_HASH_METHOD)


@dataclass(frozen=True)
class Identity:
    user_id: int
    email: str


def hash_password(password: str) -> str:
    return generate_password_hash(password, method=PASSWORD_HASH_METHOD)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def sign_token(user: User, secret: str, ttl_hours: int) -> str:
    now = int(time.time())
    payload = {
        "userId": user.id,
        "email": user.email,
        "iat": now,
        "exp": now + ttl_hours * 3600,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALG)


def decode_token(token: str, secret: str) -> Identity:
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALG], options={"require": ["exp"]})
    except jwt.PyJWTError:
        raise AuthError("Invalid or expired token", code="INVALID_TOKEN")
    user_id = payload.get("userId")
    email = payload.get("email")
    if not isinstance(user_id, int) or not isinstance(email, str):
        raise AuthError("Invalid or expired token", code="INVALID_TOKEN")
    return Identity(user_id=user_id, email=email)


class IdentityService:
    """Registers users and issues/verifies their credentials."""

    def __init__(self, session, secret: str, ttl_hours: int = 24):
        self.session = session
        self.secret = secret
        self.ttl_hours = ttl_hours

    def _find_user(self, email: str) -> Optional[User]:
        return self.session.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def _issue(self, user: User) -> Dict[str, Any]:
        return {
            "user": {"id": user.id, "email": user.email},
            "token": sign_token(user, self.secret, self.ttl_hours),
        }

    def register(self, email: str, password: str) -> Dict[str, Any]:
        if self._find_user(email) is not None:
            raise ConflictError("Email already registered", code="EMAIL_IN_USE")
        user = User(email=email, password_hash=hash_password(password))
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("Email already registered", code="EMAIL_IN_USE")
        logger.info("Registered user %s", user.id)
        return self._issue(user)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = self._find_user(email)
        if user is None:
            verify_password(_DUMMY_HASH, password)
            raise AuthError(INVALID_CREDENTIALS_MESSAGE, code="INVALID_CREDENTIALS")
        if not verify_password(user.password_hash, password):
            raise AuthError(INVALID_CREDENTIALS_MESSAGE, code="INVALID_CREDENTIALS")
        return self._issue(user)

    def verify(self, authorization: Optional[str]) -> Identity:
        if not authorization:
            raise AuthError("Missing authorization token", code="NO_TOKEN")
        scheme, _, token = authorization.partition(" ")
        if scheme != "Bearer" or not token.strip():
            raise AuthError("Invalid token format", code="INVALID_TOKEN")
        return decode_token(token.strip(), self.secret)


def authorize_admin(identity: Optional[Identity], admin_emails: FrozenSet[str]) -> Identity:
    if identity is None:
        raise AuthError("Authentication required", code="UNAUTHORIZED")
    if identity.email.lower() not in admin_emails:
        raise ForbiddenError("Admin access required")
    return identity


def identity_service(session=None) -> IdentityService:
    from .db import get_session
    return IdentityService(
        session if session is not None else get_session(),
        current_app.config["JWT_SECRET"],
        current_app.config["TOKEN_TTL_HOURS"],
    )


def current_identity() -> Optional[Identity]:
    return g.get("identity")


def optional_identity() -> Optional[Identity]:
    """Identity for a valid bearer token, or None; never raises."""
    header = request.headers.get("Authorization")
    if not header:
        return None
    try:
        return identity_service().verify(header)
    except AuthError:
        return None


def require_auth(view):
    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        g.identity = identity_service().verify(request.headers.get("Authorization"))
        return view(*args, **kwargs)
    return wrapper


def require_admin(view):
    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        authorize_admin(current_identity(), current_app.config["ADMIN_EMAILS"])
        return view(*args, **kwargs)
    return require_auth(wrapper)
