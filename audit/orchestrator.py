"""Session orchestrator: the audit lifecycle state machine.

INACTIVE -> CONNECTING -> ACTIVE -> FINISHED -> PROCESSING -> redirect

ACTIVE also moves to FINISHED on an explicit disconnect, and an adapter
error drops any state back to INACTIVE. PROCESSING is entered at most once
per session and only when the transcript holds enough substantive answers.
"""

from typing import Any, Dict, Optional, Protocol

import structlog

from audit.config import settings
from audit.errors import ConfigurationError, TransportError
from audit.models import CallStatus, ParticipantProfile
from audit.pipeline import build_audit_document, completion_phrase_observed, has_enough_content
from audit.report_requester import ReportRequester
from audit.session_adapter import (
    CALL_END,
    CALL_START,
    ERROR,
    SessionEvent,
    SessionEventAdapter,
    VoiceSession,
)

logger = structlog.get_logger()

MSG_PROCESSING = "Processing your interview data..."
MSG_PROCESSED = "Interview processed successfully!"
MSG_PROCESS_FAILED = "Failed to process interview. Please try again later."
MSG_NOT_CONFIGURED = "Assistant ID not set. Please try later."
MSG_START_FAILED = "Could not start the audit call. Please try again."
MSG_SESSION_ERROR = "The audit call was interrupted. Please start again."

BUSY_STATES = frozenset({CallStatus.CONNECTING, CallStatus.ACTIVE, CallStatus.PROCESSING})


class Notifier(Protocol):
    """User-facing side effects of the state machine."""

    async def status(self, status: CallStatus) -> None: ...

    async def notify(self, level: str, message: str) -> None: ...

    async def redirect(self, path: str) -> None: ...


class DocumentSink(Protocol):
    def add(self, collection: str, doc: Dict[str, Any]) -> str: ...


class SessionOrchestrator:
    """Drives one audit session from start to redirect."""

    def __init__(
        self,
        session: VoiceSession,
        requester: ReportRequester,
        store: DocumentSink,
        notifier: Notifier,
        collection: str = "interviews",
        dashboard_path: str = "/",
        assistant_id: Optional[str] = None,
        max_duration_seconds: Optional[int] = None,
    ):
        self.adapter = SessionEventAdapter(session, listener=self._on_lifecycle)
        self.requester = requester
        self.store = store
        self.notifier = notifier
        self.collection = collection
        self.dashboard_path = dashboard_path
        self.assistant_id = settings.VAPI_ASSISTANT_ID if assistant_id is None else assistant_id
        self.max_duration_seconds = max_duration_seconds or settings.VAPI_MAX_DURATION_SECONDS

        self.status = CallStatus.INACTIVE
        self.profile: Optional[ParticipantProfile] = None
        self.interview_completed = False
        self.document_id: Optional[str] = None
        self._processing = False

    @property
    def messages(self):
        return self.adapter.messages

    async def start(self, profile: ParticipantProfile) -> bool:
        """Begin a new session. Ignored while one is already running."""
        if self.status in BUSY_STATES:
            logger.info("Start ignored, session busy", status=self.status.value)
            return False

        self.profile = profile
        self.interview_completed = False
        self.document_id = None
        self._processing = False
        await self._set_status(CallStatus.CONNECTING)

        params = {
            "variableValues": profile.variable_values(),
            "maxDurationSeconds": self.max_duration_seconds,
        }
        try:
            await self.adapter.start(self.assistant_id, params)
        except ConfigurationError as e:
            logger.error("Audit start rejected", error=str(e), user_id=profile.user_id)
            await self._set_status(CallStatus.INACTIVE)
            await self._deliver("notify", "error", MSG_NOT_CONFIGURED)
            return False
        except TransportError as e:
            logger.error("Audit start failed", error=str(e), user_id=profile.user_id)
            await self._set_status(CallStatus.INACTIVE)
            await self._deliver("notify", "error", MSG_START_FAILED)
            return False

        logger.info("Audit session connecting", user_id=profile.user_id)
        return True

    async def disconnect(self) -> None:
        """User-initiated end of the call."""
        if self.status == CallStatus.ACTIVE:
            await self.adapter.stop()
            await self._finish()
        elif self.status == CallStatus.CONNECTING:
            await self.adapter.stop()
            await self._set_status(CallStatus.INACTIVE)

    async def handle_event(self, event: SessionEvent) -> None:
        await self.adapter.handle(event)

    async def _on_lifecycle(self, signal: str) -> None:
        if signal == CALL_START:
            if self.status == CallStatus.CONNECTING:
                await self._set_status(CallStatus.ACTIVE)
        elif signal == CALL_END:
            if self.status == CallStatus.ACTIVE:
                await self._finish()
            elif self.status == CallStatus.CONNECTING:
                await self._set_status(CallStatus.INACTIVE)
        elif signal == ERROR:
            if self._processing:
                return
            await self._set_status(CallStatus.INACTIVE)
            await self._deliver("notify", "error", MSG_SESSION_ERROR)

    async def _finish(self) -> None:
        await self._set_status(CallStatus.FINISHED)
        await self.process()

    async def process(self) -> bool:
        """FINISHED -> PROCESSING, then persist and redirect.

        Returns False when the guard rejects the transition.
        """
        if self._processing or self.status != CallStatus.FINISHED:
            return False

        messages = list(self.adapter.messages)
        if not has_enough_content(messages):
            logger.info(
                "Session too short, not persisting",
                message_count=len(messages),
                user_id=self.profile.user_id if self.profile else None,
            )
            return False

        # Set before the first await
        self._processing = True
        self.interview_completed = completion_phrase_observed(messages)

        try:
            await self._set_status(CallStatus.PROCESSING)
            await self._deliver("notify", "info", MSG_PROCESSING)

            document = await build_audit_document(
                self.profile,
                messages,
                self.requester,
                completion_observed=self.interview_completed,
            )
            self.document_id = self.store.add(self.collection, document.to_document())

            logger.info(
                "Interview persisted",
                interview_id=self.document_id,
                user_id=self.profile.user_id,
                finalized=document.finalized,
            )
            await self._deliver("notify", "success", MSG_PROCESSED)
        except Exception as e:
            logger.error("Failed to process interview", error=str(e), error_type=type(e).__name__)
            await self._deliver("notify", "error", MSG_PROCESS_FAILED)
        finally:
            await self._deliver("redirect", self.dashboard_path)

        return True

    async def _set_status(self, status: CallStatus) -> None:
        if status == self.status:
            return
        logger.debug("Session status", previous=self.status.value, status=status.value)
        self.status = status
        await self._deliver("status", status)

    async def _deliver(self, action: str, *args: Any) -> None:
        """Call the notifier, logging failures instead of raising.

        The browser may disconnect at any point; the session still runs
        through extraction and persistence without it.
        """
        try:
            await getattr(self.notifier, action)(*args)
        except Exception as e:
            logger.warning(
                "Notifier call failed",
                action=action,
                error=str(e),
                error_type=type(e).__name__,
                status=self.status.value,
            )
