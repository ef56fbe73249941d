"""Shared fixtures."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from deepdive.db import DatabaseConnection
from deepdive.sandbox import AgentResult, BaseSandbox, SandboxError
from deepdive.services import ConversationStore


class TranscriptBuilder:
    """Builds Claude Code style session files."""

    def __init__(self, session_id: str = "sess-1"):
        self.session_id = session_id
        self.lines: List[Dict[str, Any]] = []
        self._counter = 0

    def _next(self, entry_type: str, message: Dict[str, Any], **extra) -> Dict[str, Any]:
        self._counter += 1
        parent = self.lines[-1].get("uuid") if self.lines else None
        line = {
            "type": entry_type,
            "uuid": f"{entry_type}-{self._counter}",
            "parentUuid": parent,
            "sessionId": self.session_id,
            "timestamp": f"2026-01-01T00:00:{self._counter:02d}.000Z",
            "message": message,
        }
        line.update(extra)
        self.lines.append(line)
        return line

    def user(self, content, **extra):
        return self._next("user", {"role": "user", "content": content}, **extra)

    def assistant(self, text: Optional[str] = None, tools: Optional[List[Dict[str, Any]]] = None):
        blocks = []
        if text is not None:
            blocks.append({"type": "text", "text": text})
        for index, tool in enumerate(tools or []):
            blocks.append({
                "type": "tool_use",
                "id": f"toolu_{self._counter}_{index}",
                "name": tool["name"],
                "input": tool.get("input", {}),
            })
        return self._next("assistant", {"role": "assistant", "model": "claude-sonnet", "content": blocks})

    def raw(self, line: Dict[str, Any]):
        self.lines.append(line)
        return line

    def write(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            for line in self.lines:
                f.write(json.dumps(line) + "\n")
        return path


class FakeSandbox(BaseSandbox):
    """In-process sandbox: volumes are directories, launches are only recorded."""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.launches: List[Dict] = []
        self.volumes: List[str] = []
        self.fail_volume = False
        self.fail_launch = False
        self._callbacks = {}
        self._counter = 0

    async def create_volume(self, conversation_id: str) -> str:
        if self.fail_volume:
            raise SandboxError("volume quota exceeded")
        self._counter += 1
        volume_id = f"vol-{self._counter}"
        (self.base_dir / volume_id / "workspace").mkdir(parents=True)
        self.volumes.append(volume_id)
        return volume_id

    def workspace_dir(self, volume_id: str) -> Optional[Path]:
        workspace = self.base_dir / volume_id / "workspace"
        return workspace if workspace.is_dir() else None

    def transcript_path(self, volume_id: str) -> Path:
        return self.base_dir / volume_id / "session.jsonl"

    def find_transcript(self, volume_id: str) -> Optional[Path]:
        path = self.transcript_path(volume_id)
        return path if path.exists() else None

    async def launch_agent(self, volume_id, conversation_id, message, session_id=None, on_exit=None) -> str:
        if self.fail_launch:
            raise SandboxError("agent image unavailable")
        self._counter += 1
        sandbox_id = f"sbx-{self._counter}"
        self.launches.append({
            "sandbox_id": sandbox_id,
            "volume_id": volume_id,
            "conversation_id": conversation_id,
            "message": message,
            "session_id": session_id,
        })
        self._callbacks[sandbox_id] = on_exit
        return sandbox_id

    async def finish(self, sandbox_id: str, session_id: Optional[str] = "sess-1", error: Optional[str] = None):
        """Simulate the agent of a launch exiting."""
        launch = next(l for l in self.launches if l["sandbox_id"] == sandbox_id)
        result = AgentResult(
            sandbox_id=sandbox_id,
            volume_id=launch["volume_id"],
            conversation_id=launch["conversation_id"],
            exit_code=0 if error is None else 1,
            session_id=session_id,
            error=error,
        )
        await self._callbacks[sandbox_id](result)

    async def shutdown(self) -> None:
        pass


@pytest.fixture
def transcript():
    """Provide a fresh TranscriptBuilder."""
    return TranscriptBuilder()


@pytest.fixture
def db_conn(tmp_path):
    """Provide a fresh database connection."""
    db = DatabaseConnection(str(tmp_path / "test.db"))
    yield db
    db.close()


@pytest.fixture
def store(tmp_path):
    """Provide a ConversationStore under tmp_path."""
    return ConversationStore(str(tmp_path / "conversations"))


@pytest.fixture
def sandbox(tmp_path):
    """Provide a FakeSandbox under tmp_path."""
    return FakeSandbox(tmp_path / "volumes")
