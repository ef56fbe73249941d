"""Database models (Data Objects) - map to database tables."""

from .conversation import ConversationDO

__all__ = ["ConversationDO"]
