"""Shared API dependencies for authentication and messaging services."""

from typing import Annotated

from fastapi import BackgroundTasks, Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from threadline.core.security import decode_subject
from threadline.db.session import get_db
from threadline.models import User
from threadline.services.broadcaster import BroadcastTransport, DeliveryBroadcaster, get_transport
from threadline.services.ledger import MessageLedger
from threadline.services.read_state import ReadStateMachine

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    user_id = decode_subject(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]


def get_transport_dep() -> BroadcastTransport:
    """Return the shared broadcast transport."""
    return get_transport()


def get_broadcaster(
    background_tasks: BackgroundTasks,
    transport: Annotated[BroadcastTransport, Depends(get_transport_dep)],
    socket_id: Annotated[str | None, Header(alias="X-Socket-ID")] = None,
) -> DeliveryBroadcaster:
    """Build a broadcaster that publishes after the response and skips the caller's socket."""
    return DeliveryBroadcaster(
        transport,
        socket_id=socket_id,
        scheduler=background_tasks.add_task,
    )


BroadcasterDep = Annotated[DeliveryBroadcaster, Depends(get_broadcaster)]


def get_ledger(db: SessionDep, broadcaster: BroadcasterDep) -> MessageLedger:
    """Return a ledger bound to the request's session and broadcaster."""
    return MessageLedger(db, broadcaster)


LedgerDep = Annotated[MessageLedger, Depends(get_ledger)]


def get_read_state(ledger: LedgerDep) -> ReadStateMachine:
    """Return the read-state machine for the request."""
    return ReadStateMachine(ledger)


ReadStateDep = Annotated[ReadStateMachine, Depends(get_read_state)]
