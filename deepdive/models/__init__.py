"""Pydantic models for API request/response."""

from .conversation import (
    ConversationStatus,
    SendMessageRequest,
    SendMessageResponse,
    ConversationSummary,
    ConversationListResponse,
    ConversationDetailResponse,
    StatusUpdateRequest,
)
from .session import (
    ContentBlock,
    SessionEntry,
    FileInfo,
    FileListResponse,
    FileContentResponse,
)

__all__ = [
    "ConversationStatus",
    "SendMessageRequest",
    "SendMessageResponse",
    "ConversationSummary",
    "ConversationListResponse",
    "ConversationDetailResponse",
    "StatusUpdateRequest",
    "ContentBlock",
    "SessionEntry",
    "FileInfo",
    "FileListResponse",
    "FileContentResponse",
]
