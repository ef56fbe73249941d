"""Session transcript and workspace file models."""

from datetime import datetime
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, ConfigDict, Field


class ContentBlock(BaseModel):
    """Single content block within a session entry."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = Field(description="Block type: text, tool_use, tool_result, ...")
    text: Optional[str] = Field(None, description="Text content (text blocks)")
    name: Optional[str] = Field(None, description="Tool name (tool_use blocks)")
    input: Optional[Dict[str, Any]] = Field(None, description="Tool input (tool_use blocks)")
    tool_use_id: Optional[str] = Field(None, alias="toolUseId", description="Tool call this result answers")
    content: Optional[str] = Field(None, description="Tool result content (tool_result blocks)")


class SessionEntry(BaseModel):
    """
    One user or assistant entry of the agent transcript.

    Entries are read from the agent's Claude Code session file; they are never
    generated by the server except for the ``client_message_id`` annotation.
    """

    model_config = ConfigDict(populate_by_name=True)

    uuid: str = Field(description="Unique identifier for this entry")
    type: str = Field(description="Entry type: user or assistant")
    contents: List[ContentBlock] = Field(default_factory=list, description="Content blocks")
    timestamp: datetime = Field(description="Entry timestamp")
    parent_uuid: Optional[str] = Field(None, alias="parentUuid", description="Parent entry UUID")
    session_id: Optional[str] = Field(None, alias="sessionId", description="Agent session this entry belongs to")
    model: Optional[str] = Field(None, description="Model used for assistant entries")
    client_message_id: Optional[str] = Field(
        None, alias="clientMessageId", description="Correlation id of the input that produced this user entry"
    )

    def text(self) -> str:
        """Text blocks of this entry joined with newlines."""
        return "\n".join(block.text for block in self.contents if block.type == "text" and block.text)


class FileInfo(BaseModel):
    """A file or directory inside a sandbox workspace."""

    name: str = Field(description="Base name")
    path: str = Field(description="Path from the workspace root, starting with /")
    type: str = Field(description="file or directory")
    size: Optional[int] = Field(None, description="Size in bytes (files only)")
    children: Optional[List["FileInfo"]] = Field(None, description="Nested entries (tree listings)")


class FileListResponse(BaseModel):
    """Response model for workspace listings."""

    path: str = Field(description="Listed directory")
    files: List[FileInfo] = Field(description="Directory entries")


class FileContentResponse(BaseModel):
    """Response model for a single workspace file."""

    path: str = Field(description="File path")
    content: str = Field(description="File content (UTF-8)")
