"""Python client: API wrapper, polling session and report delivery."""

from .api_client import ApiError, ResearchApiClient
from .session import (
    PendingMessage,
    ResearchSession,
    get_user_message_text,
    has_pending_match,
    reconcile_pending,
)
from .reports import ReportDelivery

__all__ = [
    "ApiError",
    "ResearchApiClient",
    "PendingMessage",
    "ResearchSession",
    "get_user_message_text",
    "has_pending_match",
    "reconcile_pending",
    "ReportDelivery",
]
