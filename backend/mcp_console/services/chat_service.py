"""
Chat message processing: persist the user turn, replay the session history to the session's provider,
persist the assistant turn.

Updates to one conversation are linearizable: a per-session asyncio.Lock is held from the user write
to the assistant write, so two sends to the same session run one after the other (in arrival order)
while other sessions proceed independently. The user turn is never rolled back: if generation fails,
the caller gets the error and the user message stays stored.
"""
import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass

from mcp_console.core.constants import ROLE_ASSISTANT, ROLE_USER
from mcp_console.core.errors import CompletionFailed, EmptyContent, SessionNotFound
from mcp_console.services.completion import DEFAULT_TEMPERATURE, CompletionMessage, generate_completion
from mcp_console.services.storage import ChatMessageRecord, Store

logger = logging.getLogger(__name__)

DEFAULT_COMPLETION_TIMEOUT_SECONDS = 60.0

# generate(provider_id, model, messages) -> text
CompletionFn = Callable[[int, str, list[CompletionMessage]], Awaitable[str]]


@dataclass(frozen=True)
class ProcessedExchange:
    user_message: ChatMessageRecord
    assistant_message: ChatMessageRecord


class SessionLocks:
    """One asyncio.Lock per session id, created on demand and dropped when nobody holds or waits on it."""

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, session_id: int) -> AsyncIterator[None]:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        self._users[session_id] = self._users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[session_id] -= 1
            if self._users[session_id] == 0:
                del self._users[session_id]
                del self._locks[session_id]

    def __len__(self) -> int:
        return len(self._locks)


def to_completion_messages(history: list[ChatMessageRecord]) -> list[CompletionMessage]:
    """Stored messages -> neutral completion messages; tool_name becomes the correlation name."""
    return [CompletionMessage(role=m.role, content=m.content, name=m.tool_name or None) for m in history]


class MessageProcessor:
    def __init__(
        self,
        store: Store,
        generate: CompletionFn | None = None,
        *,
        timeout_seconds: float = DEFAULT_COMPLETION_TIMEOUT_SECONDS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> None:
        self._store = store
        self.generate: CompletionFn = generate or self._generate_with_adapter
        self._timeout = timeout_seconds
        self._temperature = temperature
        self.locks = SessionLocks()

    async def _generate_with_adapter(self, provider_id: int, model: str, messages: list[CompletionMessage]) -> str:
        return await generate_completion(self._store, provider_id, model, messages, temperature=self._temperature)

    async def process_user_message(self, session_id: int, content: str) -> ProcessedExchange:
        """
        Store the user message, generate and store the assistant reply, return both records.
        Raises SessionNotFound, provider configuration errors, or CompletionFailed (also on timeout).
        """
        if not content or not content.strip():
            raise EmptyContent()
        async with self.locks.hold(session_id):
            session = self._store.get_chat_session(session_id)
            if session is None:
                raise SessionNotFound(session_id)

            user_message = self._store.create_chat_message(session_id, ROLE_USER, content)
            history = self._store.get_chat_messages(session_id)
            messages = to_completion_messages(history)

            try:
                text = await asyncio.wait_for(
                    self.generate(session.provider_id, session.model, messages),
                    timeout=self._timeout,
                )
            except asyncio.TimeoutError as e:
                logger.warning("Completion timed out after %ss for session %s", self._timeout, session_id)
                raise CompletionFailed(f"Completion timed out after {self._timeout:g}s", cause=e) from e

            assistant_message = self._store.create_chat_message(session_id, ROLE_ASSISTANT, text or "")

        logger.info(
            "Processed message for session %s (user=%s assistant=%s, %s history messages)",
            session_id, user_message.id, assistant_message.id, len(history),
        )
        return ProcessedExchange(user_message=user_message, assistant_message=assistant_message)
