"""Claude Code transcript conversion.

The agent writes one JSON object per line into its session file. Only ``user``
and ``assistant`` entries are kept; queue operations, summaries and meta
entries are dropped.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..models.session import ContentBlock, SessionEntry
from .jsonl_parser import JSONLParser


TRANSCRIPT_ENTRY_TYPES = ("user", "assistant")


def _parse_timestamp(value: Any) -> datetime:
    """Parse an ISO timestamp into naive UTC, falling back to now."""
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return datetime.utcnow()
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        # tool_result content is usually a list of text blocks
        texts = [b.get("text") for b in value if isinstance(b, dict) and b.get("type") == "text"]
        if texts and all(isinstance(t, str) for t in texts):
            return "\n".join(texts)
    return json.dumps(value, ensure_ascii=False)


def _convert_block(block: Dict[str, Any]) -> Optional[ContentBlock]:
    block_type = block.get("type", "")
    if block_type == "text":
        return ContentBlock(type="text", text=block.get("text", ""))
    if block_type == "tool_use":
        tool_input = block.get("input")
        return ContentBlock(
            type="tool_use",
            name=block.get("name"),
            input=tool_input if isinstance(tool_input, dict) else {"value": tool_input},
            tool_use_id=block.get("id"),
        )
    if block_type == "tool_result":
        return ContentBlock(
            type="tool_result",
            tool_use_id=block.get("tool_use_id"),
            content=_stringify(block.get("content", "")),
        )
    if block_type == "thinking":
        # Hidden reasoning is not part of the visible transcript
        return None
    return ContentBlock(type=block_type or "unknown", content=json.dumps(block, ensure_ascii=False))


def convert_raw_entry(raw: Dict[str, Any]) -> Optional[SessionEntry]:
    """
    Convert one raw transcript line into a SessionEntry.

    Args:
        raw: Parsed JSON object from the session file

    Returns:
        SessionEntry, or None for entries that are not part of the visible transcript
    """
    entry_type = raw.get("type")
    if entry_type not in TRANSCRIPT_ENTRY_TYPES or raw.get("isMeta"):
        return None

    message = raw.get("message") or {}
    content = message.get("content", "")
    if isinstance(content, str):
        contents = [ContentBlock(type="text", text=content)]
    elif isinstance(content, list):
        contents = [
            converted
            for converted in (_convert_block(b) for b in content if isinstance(b, dict))
            if converted is not None
        ]
    else:
        contents = []

    timestamp_raw = raw.get("timestamp", "")
    return SessionEntry(
        uuid=raw.get("uuid") or f"{entry_type}-{timestamp_raw}",
        type=entry_type,
        contents=contents,
        timestamp=_parse_timestamp(timestamp_raw),
        parent_uuid=raw.get("parentUuid"),
        session_id=raw.get("sessionId"),
        model=message.get("model") if entry_type == "assistant" else None,
    )


async def load_transcript(file_path: Union[str, Path]) -> List[SessionEntry]:
    """Read and convert a whole session file; a missing file yields no entries."""
    records = await JSONLParser(str(file_path)).read_all_lines()
    entries = []
    for record in records:
        entry = convert_raw_entry(record)
        if entry is not None:
            entries.append(entry)
    return entries


def attach_client_ids(entries: List[SessionEntry], inputs: List[Dict[str, Any]]) -> List[SessionEntry]:
    """
    Annotate user entries with the correlation id of the input that produced them.

    Inputs are consumed in order, so two identical messages map to two
    distinct entries instead of both matching the first one.

    Args:
        entries: Transcript entries in chronological order
        inputs: Input records in the order they were sent

    Returns:
        The same entries, annotated in place
    """
    cursor = 0
    for entry in entries:
        if entry.type != "user" or cursor >= len(inputs):
            continue
        text = entry.text().strip()
        if not text:
            continue
        for index in range(cursor, len(inputs)):
            if str(inputs[index].get("content", "")).strip() == text:
                entry.client_message_id = inputs[index].get("client_message_id")
                cursor = index + 1
                break
    return entries
