from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, Response

from counsel_service.api.deps import CurrentPrincipal, UoWDep
from counsel_service.api.v1.schemas.message import (
    MarkReadRequest,
    MarkReadResponse,
    MessageResponse,
    SendMessageRequest,
    UnreadCountResponse,
)
from counsel_service.application.dto.message import SendMessageDTO
from counsel_service.application.dto.pagination import MessageCursor
from counsel_service.services import message_service

router = APIRouter(prefix="/api/v1/messages", tags=["messages"])

NEXT_CURSOR_HEADER = "X-Next-Cursor"


@router.get("/appointments/{appointment_id}", response_model=list[MessageResponse])
async def list_messages(
    appointment_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
    response: Response,
    cursor: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
) -> list[MessageResponse]:
    views = await message_service.list_messages(principal, appointment_id, cursor, limit, uow)
    if len(views) == limit:
        response.headers[NEXT_CURSOR_HEADER] = MessageCursor.after(views[-1].message).encode()
    return [MessageResponse.from_view(v) for v in views]


@router.post("", response_model=MessageResponse, status_code=201)
async def send_message(
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> MessageResponse:
    dto = SendMessageDTO(
        appointment_id=body.appointment_id,
        content=body.content,
        message_type=body.message_type,
        attachments=[a.model_dump() for a in body.attachments],
        client_msg_id=body.client_msg_id,
    )
    view, _created = await message_service.send_message(principal, dto, uow)
    return MessageResponse.from_view(view)


@router.patch("/read", response_model=MarkReadResponse)
async def mark_read(
    body: MarkReadRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> MarkReadResponse:
    modified = await message_service.mark_read(principal, body.appointment_id, uow)
    return MarkReadResponse(modified_count=modified)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(principal: CurrentPrincipal, uow: UoWDep) -> UnreadCountResponse:
    count = await message_service.unread_count(principal, uow)
    return UnreadCountResponse(
        unread_count=count,
        user_type=principal.user_type.value,
        user_id=principal.user_id,
    )
