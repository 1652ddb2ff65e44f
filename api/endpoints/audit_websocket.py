"""WebSocket relay for the voice-driven AI readiness audit."""

import json
from typing import Any, Dict, Optional

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from api.config.settings import settings
from api.dependencies import get_document_store, get_report_requester
from api.services.document_store import DocumentStore
from audit.models import CallStatus, ParticipantProfile
from audit.orchestrator import SessionOrchestrator
from audit.report_requester import ReportRequester
from audit.session_adapter import RelayedVoiceSession, SessionEvent

logger = structlog.get_logger()
router = APIRouter()


class WebSocketNotifier:
    """Pushes status, toast and redirect frames to the browser."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    async def status(self, status: CallStatus) -> None:
        await self.websocket.send_json({"type": "status", "status": status.value})

    async def notify(self, level: str, message: str) -> None:
        await self.websocket.send_json({"type": "toast", "level": level, "message": message})

    async def redirect(self, path: str) -> None:
        await self.websocket.send_json({"type": "redirect", "path": path})


def profile_from_payload(data: Dict[str, Any]) -> Optional[ParticipantProfile]:
    """Build the participant profile from a ``start`` frame."""
    user_id = str(data.get("userId") or "").strip()
    if not user_id:
        return None
    return ParticipantProfile(
        user_id=user_id,
        interview_id=data.get("interviewId"),
        user_name=data.get("userName") or "",
        role=data.get("jobTitle") or "Professional",
        department=data.get("department") or "",
        seniority=data.get("seniority") or "",
        location=data.get("location") or "",
    )


@router.websocket("/ws/audit")
async def audit_websocket(
    websocket: WebSocket,
    store: DocumentStore = Depends(get_document_store),
    requester: ReportRequester = Depends(get_report_requester),
):
    """WebSocket endpoint for one audit session.

    Protocol:
    - Client sends: {"type": "start", "userId": "...", "jobTitle": "...", ...}
    - Server sends: {"type": "start-call", "assistantId": "...", "variableValues": {...},
      "maxDurationSeconds": N}; the browser starts the voice SDK with it
    - Client forwards SDK events: {"type": "event", "event": "message", "data": {...}}
    - Client sends: {"type": "disconnect"} when the user ends the call
    - Server sends: {"type": "stop-call"} to end the voice call
    - Server sends: {"type": "status", "status": "ACTIVE"} on every state change
    - Server sends: {"type": "toast", "level": "info|success|error", "message": "..."}
    - Server sends: {"type": "redirect", "path": "/"} once processing is done
    """
    await websocket.accept()

    orchestrator = SessionOrchestrator(
        session=RelayedVoiceSession(websocket.send_json),
        requester=requester,
        store=store,
        notifier=WebSocketNotifier(websocket),
        collection=settings.INTERVIEWS_COLLECTION,
        dashboard_path=settings.DASHBOARD_PATH,
    )
    await websocket.send_json({"type": "status", "status": orchestrator.status.value})

    try:
        while True:
            try:
                data = await websocket.receive_json()
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue

            if not isinstance(data, dict):
                await websocket.send_json({"type": "error", "message": "Expected a JSON object"})
                continue

            msg_type = data.get("type")

            if msg_type == "start":
                profile = profile_from_payload(data)
                if profile is None:
                    await websocket.send_json({"type": "error", "message": "userId is required"})
                    continue
                structlog.contextvars.bind_contextvars(user_id=profile.user_id)
                await orchestrator.start(profile)

            elif msg_type == "disconnect":
                await orchestrator.disconnect()

            elif msg_type == "event":
                await orchestrator.handle_event(SessionEvent.from_payload(data))

            else:
                await websocket.send_json(
                    {"type": "error", "message": f"Unknown message type: {msg_type}"}
                )

    except WebSocketDisconnect:
        logger.info(
            "Audit WebSocket disconnected",
            status=orchestrator.status.value,
            message_count=len(orchestrator.messages),
            interview_id=orchestrator.document_id,
        )
