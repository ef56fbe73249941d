"""Applies agent run outcomes to conversation records."""

from ..db import ConversationRepository, DatabaseConnection
from ..models.conversation import ConversationStatus
from ..sandbox.base import AgentResult
from ..utils.logger import get_app_logger
from .transcripts import TranscriptSync


class AgentRunHandler:
    """Called by the sandbox when an agent run ends."""

    def __init__(self, db_conn: DatabaseConnection, transcript_sync: TranscriptSync):
        self.db_conn = db_conn
        self.transcript_sync = transcript_sync
        self.logger = get_app_logger()

    async def on_exit(self, result: AgentResult) -> None:
        """
        Sync the final transcript, then mark the conversation completed or error.

        Results from a sandbox that is no longer the conversation's current one
        are ignored.
        """
        repo = ConversationRepository(self.db_conn.conn)
        conversation = repo.get(result.conversation_id)
        if conversation is None:
            self.logger.warning(f"Agent finished for unknown conversation {result.conversation_id}")
            return

        if conversation.sandbox_id != result.sandbox_id:
            self.logger.warning(
                f"Ignoring result of stale sandbox {result.sandbox_id} "
                f"(conversation {conversation.id} is on {conversation.sandbox_id})"
            )
            return

        try:
            await self.transcript_sync.sync(conversation.id, result.volume_id)
        except Exception:
            self.logger.exception(f"Final transcript sync failed for {conversation.id}")
        finally:
            self.transcript_sync.deactivate(result.volume_id)

        updates = {
            "status": (ConversationStatus.COMPLETED if result.succeeded else ConversationStatus.ERROR).value,
            "error_message": result.error,
        }
        if result.session_id:
            updates["session_id"] = result.session_id

        if repo.update(conversation.id, updates):
            self.logger.info(f"Conversation {conversation.id} -> {updates['status']}")
        else:
            self.logger.error(f"Failed to record agent result for {conversation.id}")
