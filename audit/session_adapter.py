"""Bridge between a real-time voice session and the transcript log.

The voice SDK runs in the browser. It forwards its events here as
``{"event": <name>, "data": {...}}`` frames and receives ``start-call`` /
``stop-call`` commands back, so the session object on this side is a thin
relay over the connection.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Protocol

import structlog

from audit.errors import AuditError, ConfigurationError, TransportError
from audit.models import Message, Role

logger = structlog.get_logger()

CALL_START = "call-start"
CALL_END = "call-end"
MESSAGE = "message"
SPEECH_START = "speech-start"
SPEECH_END = "speech-end"
ERROR = "error"

SESSION_EVENTS = frozenset({CALL_START, CALL_END, MESSAGE, SPEECH_START, SPEECH_END, ERROR})

# Signals passed on to the lifecycle listener
LIFECYCLE_EVENTS = frozenset({CALL_START, CALL_END, ERROR})

LifecycleListener = Callable[[str], Awaitable[None]]


@dataclass(frozen=True)
class SessionEvent:
    """One event emitted by the voice session."""

    name: str
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "SessionEvent":
        data = payload.get("data")
        return cls(
            name=str(payload.get("event") or ""),
            data=dict(data) if isinstance(data, Mapping) else {},
        )

    @property
    def is_final_transcript(self) -> bool:
        return (
            self.name == MESSAGE
            and self.data.get("type") == "transcript"
            and self.data.get("transcriptType") == "final"
        )

    @property
    def error_message(self) -> str:
        error = self.data.get("error", self.data.get("message"))
        if isinstance(error, Mapping):
            error = error.get("message") or error.get("errorMsg")
        return str(error or "Voice session error")


class VoiceSession(Protocol):
    """External real-time voice session."""

    async def start(self, assistant_id: str, params: Dict[str, Any]) -> None: ...

    async def stop(self) -> None: ...


class RelayedVoiceSession:
    """Voice session driven through a browser connection.

    ``send`` is any coroutine that delivers a JSON-serializable frame,
    usually ``websocket.send_json``.
    """

    def __init__(self, send: Callable[[Dict[str, Any]], Awaitable[None]]):
        self.send = send

    async def start(self, assistant_id: str, params: Dict[str, Any]) -> None:
        await self.send({"type": "start-call", "assistantId": assistant_id, **params})

    async def stop(self) -> None:
        await self.send({"type": "stop-call"})


class SessionEventAdapter:
    """Normalizes voice session events into an ordered Message log."""

    def __init__(self, session: VoiceSession, listener: Optional[LifecycleListener] = None):
        self.session = session
        self.listener = listener
        self.messages: List[Message] = []
        self.is_speaking = False
        self.active = False
        self.ended = False
        self.last_error: Optional[str] = None
        self._running = False

    async def start(self, assistant_id: str, params: Dict[str, Any]) -> None:
        """Begin a new voice session with a fresh transcript.

        Raises:
            ConfigurationError: The assistant identifier is empty.
            TransportError: The underlying session could not be started.
        """
        if not assistant_id or not assistant_id.strip():
            raise ConfigurationError("Voice assistant identifier is not configured")

        self.messages = []
        self.is_speaking = False
        self.active = False
        self.ended = False
        self.last_error = None

        try:
            await self.session.start(assistant_id, params)
        except AuditError:
            raise
        except Exception as e:
            raise TransportError(f"Voice session failed to start: {e}") from e

        self._running = True
        logger.info("Voice session requested", assistant_id=assistant_id)

    async def stop(self) -> None:
        """Request termination of the underlying session. Idempotent."""
        if not self._running:
            return
        self._running = False
        self.is_speaking = False
        try:
            await self.session.stop()
        except Exception as e:
            logger.warning("Voice session stop failed", error=str(e))

    async def handle(self, event: SessionEvent) -> None:
        """Apply one session event, in delivery order."""
        if event.name == CALL_START:
            self.active = True
        elif event.name == MESSAGE:
            if event.is_final_transcript:
                self.append_message(event.data.get("role"), event.data.get("transcript"))
            return
        elif event.name == CALL_END:
            self.active = False
            self.ended = True
            self.is_speaking = False
            self._running = False
        elif event.name == SPEECH_START:
            self.is_speaking = True
            return
        elif event.name == SPEECH_END:
            self.is_speaking = False
            return
        elif event.name == ERROR:
            self.last_error = event.error_message
            self.active = False
            logger.error("Voice session error", error=self.last_error)
            await self.stop()
        else:
            logger.debug("Ignoring unknown session event", event=event.name)
            return

        if self.listener is not None:
            await self.listener(event.name)

    def append_message(self, role: Any, content: Any) -> bool:
        """Append one final transcript entry.

        Unknown roles and blank text are skipped, as is an exact repeat
        of the previous entry.
        """
        if role not in {r.value for r in Role} or not isinstance(content, str):
            return False
        content = content.strip()
        if not content:
            return False

        message = Message(role=role, content=content)
        if self.messages and self.messages[-1] == message:
            logger.debug("Dropping duplicate transcript entry", role=role)
            return False

        self.messages.append(message)
        return True
