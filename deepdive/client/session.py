"""Client-side conversation state: optimistic messages and the polling loop."""

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, List, Optional

import httpx

from ..models.conversation import ConversationDetailResponse, ConversationStatus
from ..models.session import ContentBlock, SessionEntry
from ..utils.logger import get_app_logger
from .api_client import ApiError, ResearchApiClient

MAX_POST_COMPLETION_POLLS = 10

RefreshListener = Callable[["ResearchSession"], Awaitable[None]]


@dataclass
class PendingMessage:
    """A sent message not yet seen in the server transcript."""

    content: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.utcnow)


def get_user_message_text(entry: SessionEntry) -> str:
    """Text of a user entry: its text blocks joined with newlines."""
    return entry.text()


def has_pending_match(pending: PendingMessage, server_messages: List[SessionEntry]) -> bool:
    """
    Check whether the server transcript already contains a pending message.

    Entries annotated with a correlation id only match the pending message
    carrying that id. Entries without one fall back to exact text equality.
    """
    for message in server_messages:
        if message.type != "user":
            continue
        if message.client_message_id:
            if message.client_message_id == pending.id:
                return True
            continue
        if get_user_message_text(message) == pending.content:
            return True
    return False


def reconcile_pending(
    pending: List[PendingMessage], server_messages: List[SessionEntry]
) -> List[PendingMessage]:
    """Pending messages that are still missing from the server transcript."""
    return [p for p in pending if not has_pending_match(p, server_messages)]


class ResearchSession:
    """
    State of the conversation currently shown to the user.

    One instance drives one polling loop. Switching conversations (``load`` or
    ``start_new``) invalidates responses of requests already in flight.
    """

    def __init__(
        self,
        api: ResearchApiClient,
        poll_interval: float = 2.0,
        max_post_completion_polls: int = MAX_POST_COMPLETION_POLLS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.api = api
        self.poll_interval = poll_interval
        self.max_post_completion_polls = max_post_completion_polls
        self.clock = clock
        self.logger = get_app_logger()

        self.conversation_id: Optional[str] = None
        self.title: Optional[str] = None
        self.server_messages: List[SessionEntry] = []
        self.pending: List[PendingMessage] = []
        self.status = ConversationStatus.IDLE
        self.error_message: Optional[str] = None
        self.refresh_count = 0
        self.post_completion_polls = 0
        self.run_started_at: Optional[float] = None

        self._generation = 0
        self._listeners: List[RefreshListener] = []

    def add_refresh_listener(self, listener: RefreshListener):
        """Register a coroutine called after every applied poll."""
        self._listeners.append(listener)

    def _reset(self, conversation_id: Optional[str]):
        self._generation += 1
        self.conversation_id = conversation_id
        self.title = None
        self.server_messages = []
        self.pending = []
        self.status = ConversationStatus.IDLE
        self.error_message = None
        self.post_completion_polls = 0
        self.run_started_at = None

    # === State transitions ===

    def should_poll(self) -> bool:
        if not self.conversation_id:
            return False
        if self.status.is_terminal:
            return bool(self.pending) and self.post_completion_polls < self.max_post_completion_polls
        return self.status == ConversationStatus.RUNNING

    def apply_detail(self, detail: ConversationDetailResponse):
        """Apply one poll response to the session state."""
        self.server_messages = detail.messages
        self.title = detail.title
        if detail.messages:
            self.pending = reconcile_pending(self.pending, detail.messages)

        if detail.status.is_terminal:
            self.post_completion_polls += 1
            self.run_started_at = None

        self.status = detail.status
        self.error_message = detail.error_message
        self.refresh_count += 1

    def elapsed(self) -> float:
        """Seconds since the current run was submitted (0 when idle)."""
        if self.run_started_at is None:
            return 0.0
        return max(self.clock() - self.run_started_at, 0.0)

    def combined_messages(self) -> List[SessionEntry]:
        """Server transcript followed by pending messages rendered as user entries."""
        parent = self.server_messages[-1].uuid if self.server_messages else None
        pending_entries = [
            SessionEntry(
                uuid=p.id,
                type="user",
                contents=[ContentBlock(type="text", text=p.content)],
                timestamp=p.timestamp,
                parent_uuid=parent,
                client_message_id=p.id,
            )
            for p in self.pending
        ]
        return list(self.server_messages) + pending_entries

    # === Network ===

    async def poll_once(self) -> bool:
        """
        Fetch the conversation once and apply it.

        Returns:
            True if the response was applied, False on error or stale response
        """
        conversation_id = self.conversation_id
        generation = self._generation
        if not conversation_id:
            return False

        try:
            detail = await self.api.get_conversation(conversation_id)
        except (ApiError, httpx.HTTPError) as e:
            self.logger.warning(f"Polling error for {conversation_id}: {e}")
            return False

        if generation != self._generation or conversation_id != self.conversation_id:
            self.logger.debug(f"Discarding stale response for {conversation_id}")
            return False

        self.apply_detail(detail)
        for listener in list(self._listeners):
            try:
                await listener(self)
            except Exception:
                self.logger.exception("Refresh listener failed")
        return True

    async def run_until_settled(self):
        """Poll every ``poll_interval`` seconds until polling is no longer needed."""
        while self.should_poll():
            await asyncio.sleep(self.poll_interval)
            await self.poll_once()

    async def submit(self, content: str) -> bool:
        """
        Send a message with an optimistic pending entry.

        Returns:
            True if the server accepted the message. On failure the pending
            entry is dropped and ``error_message`` holds the server's error text.
        """
        self.error_message = None
        self.post_completion_polls = 0
        self.run_started_at = self.clock()

        pending = PendingMessage(content=content)
        self.pending.append(pending)
        generation = self._generation

        try:
            response = await self.api.send_message(
                content,
                conversation_id=self.conversation_id,
                client_message_id=pending.id,
            )
        except (ApiError, httpx.HTTPError) as e:
            self.pending = [p for p in self.pending if p.id != pending.id]
            self.error_message = e.message if isinstance(e, ApiError) else (str(e) or "Failed to send message")
            self.run_started_at = None
            return False

        if generation == self._generation:
            self.conversation_id = response.conversation_id
            self.status = ConversationStatus.RUNNING
        return True

    async def load(self, conversation_id: str) -> bool:
        """
        Switch to an existing conversation and fetch it once.

        Returns:
            True if the conversation was fetched. A failed fetch is not retried;
            ``error_message`` holds the reason.
        """
        self._reset(conversation_id)
        generation = self._generation
        try:
            detail = await self.api.get_conversation(conversation_id)
        except (ApiError, httpx.HTTPError) as e:
            self.logger.warning(f"Failed to load conversation {conversation_id}: {e}")
            if generation == self._generation:
                self.error_message = e.message if isinstance(e, ApiError) else (str(e) or "Failed to load conversation")
            return False

        if generation != self._generation:
            return False
        self.server_messages = detail.messages
        self.title = detail.title
        self.status = detail.status
        self.error_message = detail.error_message
        return True

    def start_new(self):
        """Forget the current conversation; the next submit creates a new one."""
        self._reset(None)
