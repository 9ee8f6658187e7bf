# src/threadline/api/v1/endpoints/messages.py
"""Direct message endpoints for the Threadline API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from threadline.api.v1.dependencies import (
    CurrentUserDep,
    LedgerDep,
    ReadStateDep,
    SessionDep,
)
from threadline.schemas.message import (
    ConversationPartner,
    ConversationSummary,
    DeleteResponse,
    MarkReadResponse,
    MessageCreate,
    MessageResponse,
    ShareFailureResponse,
    SharePostRequest,
    SharePostResponse,
)
from threadline.services.conversations import list_contacts, list_conversations
from threadline.services.errors import (
    MessagingError,
    NotFoundError,
    SelfActionError,
    UnauthorizedError,
    ValidationError,
)
from threadline.services.sharing import share_post

router = APIRouter(prefix="/messages", tags=["messages"])

_STATUS_BY_ERROR: tuple[tuple[type[MessagingError], int], ...] = (
    (SelfActionError, status.HTTP_403_FORBIDDEN),
    (UnauthorizedError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def _http_error(exc: MessagingError) -> HTTPException:
    """Translate a messaging error into the matching HTTP response."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.detail)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.detail)


@router.post("/", status_code=status.HTTP_201_CREATED, response_model=MessageResponse)
async def send_message(
    payload: MessageCreate,
    current_user: CurrentUserDep,
    ledger: LedgerDep,
) -> MessageResponse:
    """Send a direct message, optionally with media or a shared post."""
    try:
        message = ledger.send(
            current_user.id,
            payload.receiver_id,
            payload.message,
            images=payload.images,
            videos=payload.videos,
            shared_post_id=payload.shared_post_id,
        )
    except MessagingError as exc:
        raise _http_error(exc) from exc
    return MessageResponse.model_validate(message)


@router.get("/conversations", response_model=list[ConversationSummary])
async def get_conversations(
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[ConversationSummary]:
    """List the current user's conversations, most recent first."""
    return list_conversations(db, current_user.id)


@router.get("/contacts", response_model=list[ConversationPartner])
async def get_contacts(
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[ConversationPartner]:
    """List users the current user can start a conversation with."""
    return [ConversationPartner.model_validate(user) for user in list_contacts(db, current_user.id)]


@router.get("/thread/{partner_id}", response_model=list[MessageResponse])
async def get_thread(
    partner_id: int,
    current_user: CurrentUserDep,
    ledger: LedgerDep,
) -> list[MessageResponse]:
    """Return the thread with a partner, oldest first, marking their messages read."""
    try:
        messages = ledger.fetch_thread(current_user.id, partner_id)
    except MessagingError as exc:
        raise _http_error(exc) from exc
    return [MessageResponse.model_validate(message) for message in messages]


@router.post("/thread/{partner_id}/read", response_model=MarkReadResponse)
async def mark_thread_read(
    partner_id: int,
    current_user: CurrentUserDep,
    read_state: ReadStateDep,
) -> MarkReadResponse:
    """Mark a partner's messages as read and notify them."""
    try:
        updated = read_state.mark_read(current_user.id, partner_id)
    except MessagingError as exc:
        raise _http_error(exc) from exc
    return MarkReadResponse(updated=updated)


@router.post("/share", response_model=SharePostResponse)
async def share_post_with_users(
    payload: SharePostRequest,
    current_user: CurrentUserDep,
    ledger: LedgerDep,
) -> SharePostResponse:
    """Share a post with several users; self-targets are skipped."""
    try:
        result = share_post(
            ledger,
            payload.post_id,
            current_user.id,
            payload.user_ids,
            payload.message,
        )
    except MessagingError as exc:
        raise _http_error(exc) from exc

    return SharePostResponse(
        success=True,
        message=result.summary,
        shared_count=result.shared_count,
        messages=[MessageResponse.model_validate(message) for message in result.messages],
        failures=[
            ShareFailureResponse(user_id=failure.user_id, error=failure.error)
            for failure in result.failures
        ],
    )


@router.delete("/{message_id}", response_model=DeleteResponse)
async def delete_message(
    message_id: int,
    current_user: CurrentUserDep,
    ledger: LedgerDep,
) -> DeleteResponse:
    """Delete a message the current user sent."""
    try:
        deleted = ledger.delete_message(message_id, current_user.id)
    except MessagingError as exc:
        raise _http_error(exc) from exc
    return DeleteResponse(deleted=deleted)
