"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator

import jwt
from fastapi import BackgroundTasks, Depends, Request
from sqlalchemy.orm import Session

from casecore.core.errors import Forbidden, Unauthenticated
from casecore.core.identity import Identity, identity_from_claims
from casecore.core.security import decode_access_token
from casecore.db.session import SessionLocal
from casecore.services.notification_service import (
    CascadeNotifier,
    DatabaseNotifier,
    LifecycleEvent,
    dispatch,
)


# Cookie and header names
COOKIE_NAME = "caf_session"
BEARER_PREFIX = "Bearer "


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _extract_token(request: Request) -> str | None:
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.startswith(BEARER_PREFIX):
        return header[len(BEARER_PREFIX):].strip() or None
    return None


def get_identity(request: Request) -> Identity:
    """
    Build the caller's Identity from the session cookie or bearer token.

    Raises:
        Unauthenticated: no token, invalid/expired token, or malformed claims
    """
    token = _extract_token(request)
    if not token:
        raise Unauthenticated()
    try:
        claims = decode_access_token(token)
    except jwt.InvalidTokenError:
        raise Unauthenticated("Invalid session")
    return identity_from_claims(claims)


def get_staff_identity(identity: Identity = Depends(get_identity)) -> Identity:
    """Identity for the staff application. Clients are turned away."""
    if identity.is_client:
        raise Forbidden("Clients use the client portal")
    return identity


def get_client_identity(identity: Identity = Depends(get_identity)) -> Identity:
    """Identity for the client portal."""
    if not identity.is_client:
        raise Forbidden("Client portal is for clients only")
    return identity


def get_cascade_notifier() -> CascadeNotifier:
    """The notifier that actually delivers events. Overridden in tests."""
    return DatabaseNotifier()


class BackgroundNotifier:
    """Defers delivery to a FastAPI background task, after the response."""

    def __init__(self, background_tasks: BackgroundTasks, inner: CascadeNotifier):
        self._background_tasks = background_tasks
        self._inner = inner

    def notify(self, event: LifecycleEvent) -> None:
        self._background_tasks.add_task(dispatch, self._inner, event)


def get_notifier(
    background_tasks: BackgroundTasks,
    inner: CascadeNotifier = Depends(get_cascade_notifier),
) -> CascadeNotifier:
    return BackgroundNotifier(background_tasks, inner)
