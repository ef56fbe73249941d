"""Transcript sync service, based on watchfiles (async native).

Copies the agent's session file from its volume into the conversation store
whenever it changes, annotating user entries with client correlation ids.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, List, Optional, Set

from watchfiles import awatch

from .conversation_store import ConversationStore
from ..models.session import SessionEntry
from ..sandbox.base import BaseSandbox
from ..utils.transcript import attach_client_ids, load_transcript

logger = logging.getLogger(__name__)


class TranscriptSync:
    """Keeps stored transcripts of running conversations up to date."""

    def __init__(self, sandbox: BaseSandbox, store: ConversationStore):
        self.sandbox = sandbox
        self.store = store
        self._active: Dict[str, str] = {}  # volume_id -> conversation_id
        self._locks: Dict[str, asyncio.Lock] = {}  # conversation_id -> sync lock
        self._lock_users: Dict[str, int] = {}
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @asynccontextmanager
    async def _sync_lock(self, conversation_id: str):
        # Locks only live while a sync holds or waits for them
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        self._lock_users[conversation_id] = self._lock_users.get(conversation_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[conversation_id] -= 1
            if not self._lock_users[conversation_id]:
                del self._lock_users[conversation_id]
                del self._locks[conversation_id]

    async def sync(self, conversation_id: str, volume_id: Optional[str]) -> List[SessionEntry]:
        """
        Re-read the agent transcript of a conversation and store it.

        Args:
            conversation_id: Conversation ID
            volume_id: Volume holding the agent session

        Returns:
            The stored transcript (unchanged if no session file exists yet)
        """
        if not volume_id:
            return self.store.get_messages(conversation_id)

        async with self._sync_lock(conversation_id):
            transcript_path = self.sandbox.find_transcript(volume_id)
            if transcript_path is None:
                return self.store.get_messages(conversation_id)

            entries = await load_transcript(transcript_path)
            attach_client_ids(entries, self.store.get_inputs(conversation_id))
            count = self.store.save_messages(conversation_id, entries)
            logger.debug(f"[TranscriptSync] synced {count} entries for {conversation_id}")
            return entries

    def activate(self, volume_id: str, conversation_id: str):
        """Start following transcript changes on a volume."""
        self._active[volume_id] = conversation_id
        logger.info(f"[TranscriptSync] following volume {volume_id} ({conversation_id})")

    def deactivate(self, volume_id: str):
        """Stop following a volume."""
        if self._active.pop(volume_id, None) is not None:
            logger.info(f"[TranscriptSync] stopped following volume {volume_id}")

    def is_active(self, volume_id: str) -> bool:
        return volume_id in self._active

    @property
    def watching(self) -> bool:
        """True while the file watch loop is running."""
        return self._task is not None and not self._task.done()

    def start(self):
        """Start the watch loop if the sandbox exposes a local watch root."""
        root = self.sandbox.watch_root
        if root is None:
            logger.info("[TranscriptSync] sandbox has no watch root, file watching disabled")
            return
        Path(root).mkdir(parents=True, exist_ok=True)
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._watch_loop(Path(root)))
        logger.info(f"[TranscriptSync] watching {root}")

    async def stop(self):
        """Cancel the watch loop."""
        if self._stop_event:
            self._stop_event.set()
        if self._task:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        self._active.clear()
        logger.info("[TranscriptSync] stopped")

    def _volumes_for_changes(self, changes) -> Set[str]:
        volumes = set()
        for _change_type, changed_path in changes:
            if not changed_path.endswith(".jsonl"):
                continue
            volume_id = self.sandbox.volume_for_path(Path(changed_path))
            if volume_id in self._active:
                volumes.add(volume_id)
        return volumes

    async def _watch_loop(self, root: Path):
        try:
            async for changes in awatch(root, stop_event=self._stop_event):
                # One sync per volume per batch of changes
                for volume_id in self._volumes_for_changes(changes):
                    conversation_id = self._active.get(volume_id)
                    if conversation_id is None:
                        continue
                    try:
                        await self.sync(conversation_id, volume_id)
                    except Exception:
                        logger.exception(f"[TranscriptSync] sync failed for {conversation_id}")
        except asyncio.CancelledError:
            logger.debug(f"[TranscriptSync] watch loop cancelled for: {root}")
        except Exception:
            logger.exception(f"[TranscriptSync] watch loop error for: {root}")
