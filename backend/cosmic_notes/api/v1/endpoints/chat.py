from __future__ import annotations

import json

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from cosmic_notes.api.v1.schemas.chat import ChatRequest  # noqa: TCH001
from cosmic_notes.core.schemas.auth import AuthUser  # noqa: TCH001
from cosmic_notes.core.services.agent_service import AgentService, describe_focus
from cosmic_notes.core.services.cluster_service import ClusterService  # noqa: TCH001
from cosmic_notes.core.services.note_service import NoteService  # noqa: TCH001
from cosmic_notes.dependencies import get_agent_service, get_cluster_service, get_current_user, get_note_service
from cosmic_notes.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _sse(event: dict) -> str:
    return f"event: {event.get('type', 'message')}\ndata: {json.dumps(event)}\n\n"


@router.post("/stream")
async def chat_with_assistant_stream(
    payload: ChatRequest,
    current_user: AuthUser = Depends(get_current_user),
    agent: AgentService = Depends(get_agent_service),
    notes: NoteService = Depends(get_note_service),
    clusters: ClusterService = Depends(get_cluster_service),
):
    """Stream tool calls and the assistant's answer as server-sent events.

    With `note_id` or `cluster_id` the conversation is about that note or
    cluster; an unknown id is a 404 before the stream starts.
    """
    focus = None
    if payload.note_id is not None:
        focus = describe_focus(note=await notes.get_note(payload.note_id))
    elif payload.cluster_id is not None:
        focus = describe_focus(cluster=await clusters.get_cluster(payload.cluster_id))

    async def event_iterator():
        try:
            async for evt in agent.chat_stream(
                user_id=current_user.id,
                message=payload.message,
                previous_response_id=payload.previous_response_id,
                focus=focus,
            ):
                yield _sse(evt)
        except Exception as err:
            logger.error(
                "Chat stream failed: %s",
                err,
                extra={"user_id": str(current_user.id), "error_type": type(err).__name__},
            )
            yield _sse({"type": "error", "message": "Streaming failed."})

    return StreamingResponse(event_iterator(), media_type="text/event-stream", headers=_SSE_HEADERS)
