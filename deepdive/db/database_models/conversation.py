"""Conversation database model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class ConversationDO:
    """Conversation data object - maps to conversations table."""

    id: str
    title: Optional[str] = None
    status: str = "idle"
    volume_id: Optional[str] = None
    sandbox_id: Optional[str] = None
    session_id: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
