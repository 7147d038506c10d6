"""Stream session controller.

Owns the connection lifecycle of one discovery feed: start, stop, reset and
latched auto-start. Every start creates a fresh ``_Session`` (state, seen-key
set, line buffer, task). The read loop only ever writes into the session
object it was started with, so a cancelled loop that is still draining cannot
touch the state of a newer session.
"""
from __future__ import annotations

import asyncio
import uuid
from typing import Any, Callable

from loguru import logger

from species_stream.models.events import TERMINAL_KINDS
from species_stream.models.schemas import SessionSnapshot
from species_stream.profiles import StreamProfile, get_profile
from species_stream.services import logger as log_service
from species_stream.streaming.extractor import parse_record
from species_stream.streaming.reassembler import LineReassembler
from species_stream.streaming.router import EventRouter
from species_stream.streaming.state import SessionState
from species_stream.tools.transport import HttpStreamTransport, StreamTransport, TransportError

Listener = Callable[[SessionState], None]


class _Session:
    def __init__(self) -> None:
        self.id = str(uuid.uuid4())
        self.state = SessionState()
        self.reassembler = LineReassembler()
        self.task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self.task is not None and not self.task.done()


class StreamSession:
    """Consume one discovery profile's stream into a deduplicated catalog.

    Control operations never raise for stream failures: transport errors and
    producer error events end up in ``state.error``; cancellation leaves it
    untouched.
    """

    def __init__(
        self,
        profile: StreamProfile | str,
        *,
        transport: StreamTransport | None = None,
        auto_start: bool = False,
    ):
        self.profile = get_profile(profile) if isinstance(profile, str) else profile
        self.transport = transport or HttpStreamTransport()
        self.auto_start = auto_start
        self._router = EventRouter(self.profile)
        self._session = _Session()
        self._auto_started = False
        self._listeners: list[Listener] = []

    async def __aenter__(self) -> "StreamSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # --- observation ---

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def session_id(self) -> str:
        return self._session.id

    @property
    def task(self) -> asyncio.Task[None] | None:
        return self._session.task

    def snapshot(self) -> SessionSnapshot:
        return self.state.to_snapshot(profile=self.profile.name, session_id=self.session_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every applied event. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, session: _Session) -> None:
        if session is not self._session:
            return
        for listener in list(self._listeners):
            try:
                listener(session.state)
            except Exception:
                logger.exception(f"Stream listener {listener!r} failed")

    # --- control ---

    async def start(self, **params: Any) -> None:
        """Run a session to its end. No-op while another session is streaming."""
        task = self.launch(**params)
        if task is None:
            return
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            self.stop()
            raise

    def launch(self, **params: Any) -> asyncio.Task[None] | None:
        """Start a session in the background and return its task."""
        if self.state.is_streaming:
            logger.debug(f"{self.profile.name} stream already running; ignoring start")
            return None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"Cannot start {self.profile.name} stream without a running event loop")
            return None

        session = _Session()
        session.task = loop.create_task(
            self._drive(session, params),
            name=f"{self.profile.name}-stream-{session.id[:8]}",
        )
        session.state.is_streaming = True
        self._session = session
        return session.task

    def stop(self) -> None:
        session = self._session
        if session.running:
            session.state.cancelled = True
            session.task.cancel()
        session.state.is_streaming = False

    def reset(self) -> None:
        self.stop()
        self._session = _Session()
        self._auto_started = False

    def maybe_auto_start(self, **params: Any) -> asyncio.Task[None] | None:
        """Launch once, the first time the profile's precondition holds."""
        if not self.auto_start or self._auto_started:
            return None
        state = self.state
        if state.is_streaming or state.is_complete:
            return None
        if not self.profile.ready(params):
            return None

        logger.info(f"Auto-starting {self.profile.name} stream")
        task = self.launch(**params)
        self._auto_started = task is not None
        return task

    async def aclose(self) -> None:
        task = self._session.task
        self.stop()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    # --- read loop ---

    async def _drive(self, session: _Session, params: dict[str, Any]) -> None:
        state = session.state
        log_service.log_session(session.id, self.profile.name, "started", {"params": params})
        try:
            request = self.profile.build_request(params)
            async with self.transport.open(request) as chunks:
                async for chunk in chunks:
                    if state.cancelled:
                        break
                    if self._consume(session, chunk):
                        break
            if session.reassembler.pending.strip():
                logger.debug(f"Dropping incomplete trailing line: {session.reassembler.pending[:120]}")
        except asyncio.CancelledError:
            if not state.cancelled:
                raise
            logger.debug(f"{self.profile.name} stream {session.id} cancelled")
        except TransportError as exc:
            if not state.cancelled:
                logger.warning(f"{self.profile.name} stream failed: {exc}")
                state.fail(str(exc))
        except Exception as exc:
            logger.exception(f"{self.profile.name} stream crashed: {exc}")
            state.fail(str(exc) or type(exc).__name__)
        finally:
            state.is_streaming = False
            log_service.log_session(
                session.id,
                self.profile.name,
                _outcome(state),
                {
                    "previously_known": len(state.previously_known),
                    "newly_discovered": len(state.newly_discovered),
                    "error": state.error,
                },
            )
            self._notify(session)

    def _consume(self, session: _Session, chunk: str) -> bool:
        """Apply every complete line in ``chunk``. Returns True on a terminal event."""
        for line in session.reassembler.feed(chunk):
            event = parse_record(line)
            if event is None:
                continue
            kind = self._router.dispatch(session.state, event)
            if kind is None:
                continue
            self._notify(session)
            if kind in TERMINAL_KINDS:
                log_service.log_stream_event(
                    session.id,
                    kind.value,
                    session.state.error or session.state.status_message,
                )
                return True
        return False


def _outcome(state: SessionState) -> str:
    if state.error is not None:
        return "failed"
    if state.cancelled:
        return "cancelled"
    if state.is_complete:
        return "completed"
    return "ended"
