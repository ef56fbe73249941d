"""Sandbox base class - volumes and agent runs."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional


class SandboxError(RuntimeError):
    """Raised when a volume cannot be created or an agent cannot be launched."""


@dataclass
class AgentResult:
    """Outcome of one agent run, reported to the on_exit callback."""

    sandbox_id: str
    volume_id: str
    conversation_id: str
    exit_code: Optional[int] = None
    session_id: Optional[str] = None
    output: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


AgentExitCallback = Callable[[AgentResult], Awaitable[None]]


class BaseSandbox(ABC):
    """Sandbox platform client: persistent volumes plus one agent process per message."""

    # === Volumes ===
    @abstractmethod
    async def create_volume(self, conversation_id: str) -> str:
        """
        Create a persistent volume for a conversation.

        Returns:
            volume_id

        Raises:
            SandboxError: If the volume cannot be created
        """

    @abstractmethod
    def workspace_dir(self, volume_id: str) -> Optional[Path]:
        """Local directory holding the agent's workspace, or None if unknown."""

    @abstractmethod
    def find_transcript(self, volume_id: str) -> Optional[Path]:
        """Most recent agent session file on the volume, or None."""

    @property
    def watch_root(self) -> Optional[Path]:
        """Directory to watch for transcript changes; None disables watching."""
        return None

    def volume_for_path(self, path: Path) -> Optional[str]:
        """Volume id owning a changed file under watch_root."""
        return None

    # === Agent runs ===
    @abstractmethod
    async def launch_agent(
        self,
        volume_id: str,
        conversation_id: str,
        message: str,
        session_id: Optional[str] = None,
        on_exit: Optional[AgentExitCallback] = None,
    ) -> str:
        """
        Launch the research agent bound to a volume. Does not wait for it.

        Args:
            volume_id: Volume to mount as the agent workspace
            conversation_id: Conversation the run belongs to
            message: User message passed to the agent
            session_id: Agent session to resume, if any
            on_exit: Coroutine called with the AgentResult once the run ends

        Returns:
            sandbox_id

        Raises:
            SandboxError: If the agent cannot be started
        """

    @abstractmethod
    async def shutdown(self) -> None:
        """Stop all in-flight agent runs."""
