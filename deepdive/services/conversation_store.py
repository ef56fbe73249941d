"""Conversation file storage service.

Keeps two JSONL files per conversation:
  data/conversations/{id[:2]}/{id}.inputs.jsonl    - every message the user sent
  data/conversations/{id[:2]}/{id}.messages.jsonl  - last synced agent transcript
"""

import json
from datetime import datetime
from pathlib import Path
from typing import List, Dict, Any, Optional

from ..models.session import SessionEntry
from ..utils.jsonl_parser import parse_jsonl_line


class ConversationStore:
    """File-based storage for conversation inputs and synced transcripts."""

    def __init__(self, base_path: str = "./data/conversations"):
        self.base_path = Path(base_path)

    def _get_inputs_path(self, conversation_id: str) -> Path:
        return self.base_path / conversation_id[:2] / f"{conversation_id}.inputs.jsonl"

    def _get_messages_path(self, conversation_id: str) -> Path:
        return self.base_path / conversation_id[:2] / f"{conversation_id}.messages.jsonl"

    def _read_records(self, file_path: Path) -> List[Dict[str, Any]]:
        if not file_path.exists():
            return []

        records = []
        with open(file_path, "r", encoding="utf-8") as f:
            for line in f:
                record = parse_jsonl_line(line)
                if record is not None:
                    records.append(record)
        return records

    def add_input(
        self,
        conversation_id: str,
        content: str,
        client_message_id: str,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Record a message the user sent to a conversation.

        Args:
            conversation_id: Conversation ID
            content: Message text exactly as submitted
            client_message_id: Client correlation id for the message
            metadata: Optional metadata

        Returns:
            The input record that was added
        """
        file_path = self._get_inputs_path(conversation_id)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        input_record = {
            "client_message_id": client_message_id,
            "content": content,
            "timestamp": datetime.utcnow().isoformat(),
            "metadata": metadata or {}
        }

        with open(file_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(input_record, ensure_ascii=False) + "\n")

        return input_record

    def remove_input(self, conversation_id: str, client_message_id: str) -> bool:
        """
        Drop an input that never reached the agent.

        Returns:
            True if a record was removed
        """
        file_path = self._get_inputs_path(conversation_id)
        records = self._read_records(file_path)
        kept = [r for r in records if r.get("client_message_id") != client_message_id]
        if len(kept) == len(records):
            return False

        with open(file_path, "w", encoding="utf-8") as f:
            for record in kept:
                f.write(json.dumps(record, ensure_ascii=False) + "\n")
        return True

    def get_inputs(self, conversation_id: str) -> List[Dict[str, Any]]:
        """Get all inputs of a conversation in the order they were sent."""
        return self._read_records(self._get_inputs_path(conversation_id))

    def save_messages(self, conversation_id: str, messages: List[SessionEntry]) -> int:
        """
        Save a synced transcript (full overwrite).

        Args:
            conversation_id: Conversation ID
            messages: Transcript entries

        Returns:
            Number of messages written
        """
        file_path = self._get_messages_path(conversation_id)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a sibling file and swap it in so readers never see a partial transcript
        tmp_path = file_path.with_suffix(".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            for msg in messages:
                f.write(msg.model_dump_json(by_alias=True) + "\n")
        tmp_path.replace(file_path)

        return len(messages)

    def get_messages(self, conversation_id: str) -> List[SessionEntry]:
        """Get the last synced transcript (chronological order)."""
        return [
            SessionEntry.model_validate(record)
            for record in self._read_records(self._get_messages_path(conversation_id))
        ]

    def has_messages(self, conversation_id: str) -> bool:
        """Check if a transcript has been synced for the conversation."""
        return self._get_messages_path(conversation_id).exists()
