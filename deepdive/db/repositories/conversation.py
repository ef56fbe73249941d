"""Conversation repository for database operations."""

from datetime import datetime
from typing import Optional, List, Dict, Any

import duckdb

from ..database_models.conversation import ConversationDO
from ...utils.logger import get_app_logger


_COLUMNS = "id, title, status, volume_id, sandbox_id, session_id, error_message, created_at, updated_at"

# Columns that update() is allowed to touch
UPDATABLE_FIELDS = ("title", "status", "volume_id", "sandbox_id", "session_id", "error_message", "updated_at")


def _row_to_do(row) -> ConversationDO:
    return ConversationDO(
        id=row[0],
        title=row[1],
        status=row[2],
        volume_id=row[3],
        sandbox_id=row[4],
        session_id=row[5],
        error_message=row[6],
        created_at=row[7],
        updated_at=row[8],
    )


class ConversationRepository:
    """Repository for Conversation CRUD operations."""

    def __init__(self, conn: duckdb.DuckDBPyConnection):
        """
        Initialize repository with database connection.

        Args:
            conn: DuckDB connection instance
        """
        self.conn = conn
        self.logger = get_app_logger()

    def create(self, conversation: ConversationDO) -> bool:
        """
        Create a new conversation record.

        Args:
            conversation: ConversationDO instance

        Returns:
            True if successful, False otherwise
        """
        try:
            self.conn.execute(f"""
                INSERT INTO conversations ({_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, [
                conversation.id,
                conversation.title,
                conversation.status,
                conversation.volume_id,
                conversation.sandbox_id,
                conversation.session_id,
                conversation.error_message,
                conversation.created_at,
                conversation.updated_at,
            ])
            self.conn.commit()
            self.logger.info(f"Created conversation record: {conversation.id}")
            return True
        except Exception as e:
            self.logger.error(f"Failed to create conversation: {e}")
            return False

    def get(self, conversation_id: str) -> Optional[ConversationDO]:
        """
        Get conversation by ID.

        Args:
            conversation_id: Conversation ID

        Returns:
            ConversationDO instance or None
        """
        try:
            result = self.conn.execute(f"""
                SELECT {_COLUMNS}
                FROM conversations
                WHERE id = ?
            """, [conversation_id]).fetchone()

            return _row_to_do(result) if result else None
        except Exception as e:
            self.logger.error(f"Failed to get conversation {conversation_id}: {e}")
            return None

    def list_recent(self, limit: int = 50) -> List[ConversationDO]:
        """
        List the most recently updated conversations.

        Args:
            limit: Maximum number of conversations to return

        Returns:
            List of ConversationDO instances, newest update first
        """
        try:
            results = self.conn.execute(f"""
                SELECT {_COLUMNS}
                FROM conversations
                ORDER BY updated_at DESC
                LIMIT ?
            """, [limit]).fetchall()

            return [_row_to_do(row) for row in results]
        except Exception as e:
            self.logger.error(f"Failed to list conversations: {e}")
            return []

    def list_by_status(self, status: str) -> List[ConversationDO]:
        """List conversations in the given status."""
        try:
            results = self.conn.execute(f"""
                SELECT {_COLUMNS}
                FROM conversations
                WHERE status = ?
                ORDER BY updated_at DESC
            """, [status]).fetchall()

            return [_row_to_do(row) for row in results]
        except Exception as e:
            self.logger.error(f"Failed to list {status} conversations: {e}")
            return []

    def update(self, conversation_id: str, updates: Dict[str, Any]) -> bool:
        """
        Update conversation fields.

        ``updated_at`` is bumped automatically unless given explicitly.

        Args:
            conversation_id: Conversation ID
            updates: Dictionary of fields to update

        Returns:
            True if successful, False otherwise
        """
        unknown = set(updates) - set(UPDATABLE_FIELDS)
        if unknown:
            self.logger.error(f"Refusing to update unknown conversation fields: {sorted(unknown)}")
            return False

        updates = dict(updates)
        updates.setdefault("updated_at", datetime.utcnow())

        set_clauses = []
        params = []
        for name in UPDATABLE_FIELDS:
            if name in updates:
                set_clauses.append(f"{name} = ?")
                params.append(updates[name])
        params.append(conversation_id)

        try:
            self.conn.execute(
                f"UPDATE conversations SET {', '.join(set_clauses)} WHERE id = ?",
                params
            )
            self.conn.commit()
            return True
        except Exception as e:
            self.logger.error(f"Failed to update conversation {conversation_id}: {e}")
            return False
