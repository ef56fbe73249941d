"""Services package."""

from .conversation_store import ConversationStore
from .transcripts import TranscriptSync
from .agent_runs import AgentRunHandler

__all__ = ["ConversationStore", "TranscriptSync", "AgentRunHandler"]
