"""Local sandbox: volumes are directories, agents are Claude Code subprocesses."""

import asyncio
import json
import os
import shlex
import shutil
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .base import AgentExitCallback, AgentResult, BaseSandbox, SandboxError
from .prompts import build_system_prompt
from ..utils.logger import get_app_logger


class LocalSandbox(BaseSandbox):
    """
    Sandbox backed by the local filesystem.

    Volume layout::

        {base_dir}/{volume_id}/volume.json   - owner conversation
        {base_dir}/{volume_id}/workspace/    - agent working directory
        {base_dir}/{volume_id}/claude/       - CLAUDE_CONFIG_DIR (session transcripts)
    """

    def __init__(self, settings):
        self.base_dir = Path(settings.sandbox_base_dir).resolve()
        self.agent_command: List[str] = shlex.split(settings.agent_command)
        self.agent_model: Optional[str] = settings.agent_model
        self.api_key: Optional[str] = settings.anthropic_api_key
        self.timeout: int = settings.agent_timeout
        self.logger = get_app_logger()

        self._runs: Dict[str, asyncio.Task] = {}
        self._processes: Dict[str, asyncio.subprocess.Process] = {}

    def _volume_dir(self, volume_id: str) -> Path:
        return self.base_dir / volume_id

    def _claude_dir(self, volume_id: str) -> Path:
        return self._volume_dir(volume_id) / "claude"

    # === Volumes ===

    async def create_volume(self, conversation_id: str) -> str:
        volume_id = f"vol-{uuid.uuid4().hex[:12]}"
        volume_dir = self._volume_dir(volume_id)
        try:
            (volume_dir / "workspace").mkdir(parents=True)
            self._claude_dir(volume_id).mkdir(parents=True)
            (volume_dir / "volume.json").write_text(json.dumps({
                "volume_id": volume_id,
                "conversation_id": conversation_id,
                "created_at": datetime.utcnow().isoformat(),
            }), encoding="utf-8")
        except OSError as e:
            raise SandboxError(f"Failed to create volume: {e}") from e

        self.logger.info(f"[LocalSandbox] Created volume {volume_id} for conversation {conversation_id}")
        return volume_id

    def workspace_dir(self, volume_id: str) -> Optional[Path]:
        workspace = self._volume_dir(volume_id) / "workspace"
        return workspace if workspace.is_dir() else None

    def find_transcript(self, volume_id: str) -> Optional[Path]:
        # One conversation per volume: the newest session file holds the whole
        # history, including runs resumed under a new session id.
        projects_dir = self._claude_dir(volume_id) / "projects"
        if not projects_dir.exists():
            return None

        candidates = [p for p in projects_dir.glob("*/*.jsonl") if p.is_file()]
        if not candidates:
            return None
        return max(candidates, key=lambda p: p.stat().st_mtime)

    @property
    def watch_root(self) -> Optional[Path]:
        return self.base_dir

    def volume_for_path(self, path: Path) -> Optional[str]:
        try:
            relative = Path(path).resolve().relative_to(self.base_dir)
        except ValueError:
            return None
        return relative.parts[0] if relative.parts else None

    # === Agent runs ===

    def _build_command(self, conversation_id: str, message: str, session_id: Optional[str]) -> List[str]:
        cmd = list(self.agent_command)
        if self.agent_model:
            cmd.extend(["--model", self.agent_model])
        cmd.extend(["--append-system-prompt", build_system_prompt(conversation_id)])
        if session_id:
            cmd.extend(["--resume", session_id])
        # Messages starting with "-" must not be parsed as options
        cmd.extend(["--", message])
        return cmd

    async def launch_agent(
        self,
        volume_id: str,
        conversation_id: str,
        message: str,
        session_id: Optional[str] = None,
        on_exit: Optional[AgentExitCallback] = None,
    ) -> str:
        workspace = self.workspace_dir(volume_id)
        if workspace is None:
            raise SandboxError(f"Volume not found: {volume_id}")

        if not self.agent_command or shutil.which(self.agent_command[0]) is None:
            raise SandboxError(f"Agent command not found in PATH: {self.agent_command[:1]}")

        env = {**os.environ, "CLAUDE_CONFIG_DIR": str(self._claude_dir(volume_id))}
        if self.api_key:
            env["ANTHROPIC_API_KEY"] = self.api_key

        cmd = self._build_command(conversation_id, message, session_id)
        self.logger.info(
            f"[LocalSandbox] Launching agent: volume={volume_id}, conversation={conversation_id}, "
            f"resume={session_id or '-'}"
        )

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(workspace),
                env=env,
            )
        except OSError as e:
            raise SandboxError(f"Failed to start agent: {e}") from e

        sandbox_id = f"sbx-{uuid.uuid4().hex[:12]}"
        self._processes[sandbox_id] = process
        self._runs[sandbox_id] = asyncio.create_task(
            self._wait_for_exit(sandbox_id, volume_id, conversation_id, process, on_exit)
        )
        return sandbox_id

    async def _wait_for_exit(
        self,
        sandbox_id: str,
        volume_id: str,
        conversation_id: str,
        process: asyncio.subprocess.Process,
        on_exit: Optional[AgentExitCallback],
    ) -> None:
        result = AgentResult(sandbox_id=sandbox_id, volume_id=volume_id, conversation_id=conversation_id)
        try:
            try:
                stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
                result.exit_code = process.returncode
                result.error = f"Agent timed out after {self.timeout}s"
            else:
                result.exit_code = process.returncode
                parse_agent_output(result, stdout.decode("utf-8", errors="replace"),
                                   stderr.decode("utf-8", errors="replace"))

            if result.succeeded:
                self.logger.info(f"[LocalSandbox] Agent {sandbox_id} finished: session_id={result.session_id}")
            else:
                self.logger.error(f"[LocalSandbox] Agent {sandbox_id} failed: {result.error}")

            if on_exit is not None:
                try:
                    await on_exit(result)
                except Exception:
                    self.logger.exception(f"[LocalSandbox] on_exit callback failed for {sandbox_id}")
        finally:
            self._processes.pop(sandbox_id, None)
            self._runs.pop(sandbox_id, None)

    async def shutdown(self) -> None:
        for sandbox_id, process in list(self._processes.items()):
            if process.returncode is None:
                self.logger.info(f"[LocalSandbox] Killing agent {sandbox_id}")
                process.kill()
        tasks = list(self._runs.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._runs.clear()
        self._processes.clear()


def parse_agent_output(result: AgentResult, stdout: str, stderr: str) -> AgentResult:
    """
    Fill an AgentResult from the agent's ``--output-format json`` result.

    Args:
        result: Result to update (exit_code already set)
        stdout: Agent standard output
        stderr: Agent standard error

    Returns:
        The updated result
    """
    payload = None
    for line in reversed(stdout.strip().splitlines()):
        try:
            candidate = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(candidate, dict):
            payload = candidate
            break

    if payload is not None:
        result.session_id = payload.get("session_id") or None
        result.output = payload.get("result")
        if payload.get("is_error"):
            result.error = str(payload.get("result") or payload.get("subtype") or "Agent reported an error")

    if result.exit_code not in (0, None) and result.error is None:
        detail = stderr.strip() or stdout.strip() or "no output"
        result.error = f"Agent exited with code {result.exit_code}: {detail[-500:]}"
    elif payload is None and result.error is None:
        result.error = "Agent produced no result"

    return result
