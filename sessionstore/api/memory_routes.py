from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response

from sessionstore.auth import require_admin_token
from sessionstore.deps import get_services
from sessionstore.errors import SessionStoreError, bad_request, not_found
from sessionstore.logging_config import get_logger
from sessionstore.models import ConversationContext, ConversationSummary, PauseRecord
from sessionstore.schemas import (
    BulkActionRequest,
    BulkActionResponse,
    PauseRequest,
    UserStatusResponse,
)
from sessionstore.services import SessionServices

logger = get_logger("api.admin")

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin_token)],
)


@router.get("/users/{user_id}/memory", response_model=ConversationContext)
async def get_user_memory(
    user_id: str,
    services: SessionServices = Depends(get_services),
) -> ConversationContext:
    """
    Return the stored conversation context of a chat.
    """
    context = await services.contexts.get_context(user_id)
    if context is None:
        raise not_found(f"No conversation context stored for '{user_id}'")
    return context


@router.delete("/users/{user_id}/memory", status_code=status.HTTP_204_NO_CONTENT)
async def clear_user_memory(
    user_id: str,
    services: SessionServices = Depends(get_services),
) -> Response:
    await services.contexts.clear_context(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/users/{user_id}/pause", response_model=PauseRecord)
async def pause_user(
    user_id: str,
    payload: PauseRequest | None = None,
    services: SessionServices = Depends(get_services),
) -> PauseRecord:
    payload = payload or PauseRequest()
    return await services.pause_gate.pause(user_id, payload.duration_ms)


@router.post("/users/{user_id}/resume", status_code=status.HTTP_204_NO_CONTENT)
async def resume_user(
    user_id: str,
    services: SessionServices = Depends(get_services),
) -> Response:
    await services.pause_gate.resume(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/users/{user_id}/status", response_model=UserStatusResponse)
async def get_user_status(
    user_id: str,
    services: SessionServices = Depends(get_services),
) -> UserStatusResponse:
    pause = await services.pause_gate.get_pause(user_id)
    return UserStatusResponse(
        user_id=user_id,
        is_paused=await services.pause_gate.is_paused(user_id),
        pause=pause,
        rate_limit=await services.rate_limiter.get_status(user_id),
        user_state=await services.user_states.get_state(user_id),
    )


@router.post("/global/pause", response_model=PauseRecord)
async def pause_all_chats(
    payload: PauseRequest | None = None,
    services: SessionServices = Depends(get_services),
) -> PauseRecord:
    payload = payload or PauseRequest()
    return await services.pause_gate.pause_all(payload.duration_ms)


@router.post("/global/resume", status_code=status.HTTP_204_NO_CONTENT)
async def resume_all_chats(services: SessionServices = Depends(get_services)) -> Response:
    await services.pause_gate.resume_all()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/bulk", response_model=BulkActionResponse)
async def bulk_action(
    payload: BulkActionRequest,
    services: SessionServices = Depends(get_services),
) -> BulkActionResponse:
    """
    Apply one action to many chats. Per-chat failures are counted, not raised.
    """
    if payload.action == "clear_memory" and not payload.user_ids:
        cleared = await services.contexts.clear_all_contexts()
        return BulkActionResponse(
            action=payload.action,
            total=cleared,
            success_count=cleared,
            message=f"Cleared memory for {cleared} users",
        )
    if not payload.user_ids:
        raise bad_request(f"user_ids are required for {payload.action}")

    success_count = 0
    for user_id in payload.user_ids:
        try:
            if payload.action == "clear_memory":
                await services.contexts.clear_context(user_id)
            elif payload.action == "pause_users":
                await services.pause_gate.pause(user_id, payload.duration_ms)
            else:
                await services.pause_gate.resume(user_id)
        except SessionStoreError as exc:
            logger.warning("Bulk %s failed for user=%s: %s", payload.action, user_id, exc)
            continue
        success_count += 1

    verb = {
        "clear_memory": "Cleared memory for",
        "pause_users": "Paused",
        "resume_users": "Resumed",
    }[payload.action]
    total = len(payload.user_ids)
    return BulkActionResponse(
        action=payload.action,
        total=total,
        success_count=success_count,
        message=f"{verb} {success_count}/{total} users",
    )


@router.get("/conversations", response_model=List[ConversationSummary])
async def list_conversations(
    limit: int = Query(50, ge=1, le=500),
    services: SessionServices = Depends(get_services),
) -> List[ConversationSummary]:
    return await services.conversations.list_conversations(limit)


__all__ = ["router"]
