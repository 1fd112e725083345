"""
RLS Notes: Auth Session Provider
==================================

What:  Resolves the caller's auth session from a signed cookie, refreshes its
       access token when it is about to expire, and writes the (possibly
       refreshed) session back onto every response.
How:   The cookie holds a JSON-serialized AuthSession signed with
       itsdangerous.URLSafeTimedSerializer. Tokens live in `auth_sessions`;
       refreshing rotates both tokens in one transaction.
Who:   `require_auth_session` is resolved by every note route before any
       data access; `commit_auth_session` is applied to every response that
       passed session resolution.

Session flow per request:
    Cookie ──load──▶ AuthSession ──expiring?──▶ store.refresh() ──▶ AuthSession'
                          │                                            │
                          └──────────────── passed to NoteService ─────┘
                                                   │
    Set-Cookie ◀──commit── same AuthSession value ◀┘

The session value is threaded explicitly: the route passes it into the
service and commits that same value, so a refreshed token is the only token
used for the rest of the request.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from pydantic import BaseModel, ValidationError
from sqlalchemy import or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.requests import Request
from starlette.responses import Response

from rlsnotes.config import settings
from rlsnotes.database import async_session_factory
from rlsnotes.exceptions import AuthenticationError, DatabaseError
from rlsnotes.models.auth_session import AuthSessionRecord

logger = logging.getLogger(__name__)


class AuthSession(BaseModel):
    """The credential carried by the session cookie."""

    access_token: str
    refresh_token: str
    user_id: str
    email: str
    expires_at: datetime

    @classmethod
    def from_record(cls, record: AuthSessionRecord) -> "AuthSession":
        return cls(
            access_token=record.access_token,
            refresh_token=record.refresh_token,
            user_id=record.user_id,
            email=record.email,
            expires_at=record.expires_at,
        )

    def expires_within(self, seconds: int, now: Optional[datetime] = None) -> bool:
        """True if the access token is expired or expires in the next `seconds`."""
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at - timedelta(seconds=seconds) <= now


# ══════════════════════════════════════════════════════════════════════════
# Cookie Codec
# ══════════════════════════════════════════════════════════════════════════


class SessionCookie:
    """
    Signs and verifies the session cookie value.

    A tampered, expired or malformed cookie loads as None: to the caller it
    is the same as having no cookie at all.
    """

    SALT = "auth-session"

    def __init__(self, secret: str, max_age: int):
        self._serializer = URLSafeTimedSerializer(secret, salt=self.SALT)
        self.max_age = max_age

    def dump(self, auth_session: AuthSession) -> str:
        return self._serializer.dumps(auth_session.model_dump(mode="json"))

    def load(self, value: str) -> Optional[AuthSession]:
        try:
            payload = self._serializer.loads(value, max_age=self.max_age)
        except SignatureExpired:
            logger.info("Session cookie signature expired")
            return None
        except BadSignature:
            logger.warning("Session cookie failed signature check")
            return None

        try:
            return AuthSession.model_validate(payload)
        except ValidationError:
            logger.warning("Session cookie payload is malformed")
            return None


session_cookie = SessionCookie(settings.session_secret, settings.session_max_age)


# ══════════════════════════════════════════════════════════════════════════
# Token Store
# ══════════════════════════════════════════════════════════════════════════


def _new_token() -> str:
    return secrets.token_urlsafe(32)


class AuthSessionStore:
    """
    Issues and rotates token pairs in `auth_sessions`.

    Refresh rotates BOTH tokens. The rotated-out refresh token stays valid
    for `reuse_interval` seconds and resolves to the current pair, so
    concurrent requests that carried the same cookie all succeed. After that
    window it is rejected like any unknown token.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        access_token_ttl: int,
        reuse_interval: int = 0,
    ):
        self._session_factory = session_factory
        self._access_token_ttl = access_token_ttl
        self._reuse_interval = reuse_interval

    def _expiry(self) -> datetime:
        return datetime.now(timezone.utc) + timedelta(seconds=self._access_token_ttl)

    def _within_reuse_interval(self, refreshed_at: Optional[datetime]) -> bool:
        if refreshed_at is None:
            return False
        if refreshed_at.tzinfo is None:
            refreshed_at = refreshed_at.replace(tzinfo=timezone.utc)
        age = datetime.now(timezone.utc) - refreshed_at
        return age <= timedelta(seconds=self._reuse_interval)

    async def create(self, user_id: str, email: str) -> AuthSession:
        """Issue a new session for an already-authenticated user."""
        record = AuthSessionRecord(
            user_id=user_id,
            email=email,
            access_token=_new_token(),
            refresh_token=_new_token(),
            expires_at=self._expiry(),
        )
        async with self._session_factory() as db:
            try:
                db.add(record)
                await db.commit()
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error("Could not create auth session for user %s: %s", user_id, str(e))
                raise DatabaseError(
                    message="Could not start a session. Please try again.",
                    context={"user_id": user_id},
                )

        logger.info("Created auth session for user %s", user_id)
        return AuthSession.from_record(record)

    async def refresh(self, refresh_token: str) -> AuthSession:
        """
        Rotate the token pair identified by `refresh_token`.

        A token rotated out less than `reuse_interval` seconds ago returns
        the current session unchanged.

        Raises:
            AuthenticationError: The refresh token is unknown (used outside
                                 the reuse window, revoked, or forged)
            DatabaseError:       The store failed
        """
        async with self._session_factory() as db:
            try:
                result = await db.execute(
                    select(AuthSessionRecord)
                    .where(
                        or_(
                            AuthSessionRecord.refresh_token == refresh_token,
                            AuthSessionRecord.previous_refresh_token == refresh_token,
                        )
                    )
                    .with_for_update()
                )
                record = result.scalar_one_or_none()
                if record is None:
                    raise AuthenticationError("Your session has expired. Please sign in again.")

                if record.refresh_token != refresh_token:
                    if not self._within_reuse_interval(record.refreshed_at):
                        logger.warning(
                            "Rotated refresh token replayed for user %s", record.user_id
                        )
                        raise AuthenticationError(
                            "Your session has expired. Please sign in again."
                        )
                    current = AuthSession.from_record(record)
                    await db.rollback()
                    logger.info(
                        "Reused rotated refresh token for user %s within %ds",
                        current.user_id,
                        self._reuse_interval,
                    )
                    return current

                record.previous_refresh_token = refresh_token
                record.refreshed_at = datetime.now(timezone.utc)
                record.access_token = _new_token()
                record.refresh_token = _new_token()
                record.expires_at = self._expiry()
                await db.commit()
            except AuthenticationError:
                await db.rollback()
                raise
            except SQLAlchemyError as e:
                await db.rollback()
                logger.error("Auth session refresh failed: %s", str(e))
                raise DatabaseError(message="Could not refresh your session. Please try again.")

        logger.info("Refreshed auth session for user %s", record.user_id)
        return AuthSession.from_record(record)


session_store = AuthSessionStore(
    async_session_factory,
    settings.access_token_ttl,
    reuse_interval=settings.refresh_token_reuse_interval,
)


def get_session_store() -> AuthSessionStore:
    """FastAPI dependency returning the process-wide session store."""
    return session_store


# ══════════════════════════════════════════════════════════════════════════
# Request / Response Helpers
# ══════════════════════════════════════════════════════════════════════════


async def require_auth_session(
    request: Request,
    store: AuthSessionStore = Depends(get_session_store),
) -> AuthSession:
    """
    Resolve the request's auth session or fail with AuthenticationError.

    Usable as a FastAPI dependency or called directly when the route must
    run another check first (the delete action checks the method before
    reading the session).
    """
    value = request.cookies.get(settings.session_cookie_name)
    auth_session = session_cookie.load(value) if value else None
    if auth_session is None:
        raise AuthenticationError()

    if auth_session.expires_within(settings.access_token_refresh_threshold):
        logger.debug("Access token for user %s is expiring; refreshing", auth_session.user_id)
        auth_session = await store.refresh(auth_session.refresh_token)

    return auth_session


def commit_auth_session(response: Response, auth_session: AuthSession) -> Response:
    """Serialize `auth_session` into the response's Set-Cookie header."""
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_cookie.dump(auth_session),
        max_age=settings.session_max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return response


def clear_auth_session(response: Response) -> Response:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return response
