"""Conversation API models."""

from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field

from .session import SessionEntry


class ConversationStatus(str, Enum):
    """Lifecycle status of a conversation."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ConversationStatus.COMPLETED, ConversationStatus.ERROR)


class SendMessageRequest(BaseModel):
    """Request model for sending a message (creates the conversation if needed)."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: Optional[str] = Field(None, alias="conversationId", description="Existing conversation ID")
    content: str = Field("", description="Message text")
    client_message_id: Optional[str] = Field(
        None, alias="clientMessageId", max_length=200, description="Client-generated correlation id"
    )


class SendMessageResponse(BaseModel):
    """Response model for a sent message."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(alias="conversationId", description="Conversation ID")
    status: ConversationStatus = Field(description="Conversation status after the send")
    client_message_id: Optional[str] = Field(None, alias="clientMessageId", description="Correlation id of the input")


class ConversationSummary(BaseModel):
    """Sidebar projection of a conversation."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Conversation ID")
    title: Optional[str] = Field(None, description="Conversation title")
    status: ConversationStatus = Field(description="Conversation status")
    created_at: datetime = Field(alias="createdAt", description="Creation timestamp")
    updated_at: datetime = Field(alias="updatedAt", description="Last update timestamp")


class ConversationListResponse(BaseModel):
    """Response model for listing conversations."""

    conversations: List[ConversationSummary] = Field(description="Most recently updated conversations")


class ConversationDetailResponse(BaseModel):
    """Response model for conversation detail, consumed by the polling loop."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Conversation ID")
    title: Optional[str] = Field(None, description="Conversation title")
    status: ConversationStatus = Field(description="Conversation status")
    messages: List[SessionEntry] = Field(default_factory=list, description="Synced agent transcript")
    error_message: Optional[str] = Field(None, alias="errorMessage", description="Error message if any")
    created_at: datetime = Field(alias="createdAt", description="Creation timestamp")
    updated_at: datetime = Field(alias="updatedAt", description="Last update timestamp")


class StatusUpdateRequest(BaseModel):
    """Request model for agents reporting their own progress."""

    model_config = ConfigDict(populate_by_name=True)

    status: ConversationStatus = Field(description="New conversation status")
    session_id: Optional[str] = Field(None, alias="sessionId", description="Agent session continuation token")
    error_message: Optional[str] = Field(None, alias="errorMessage", description="Error message if any")
