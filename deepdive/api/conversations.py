"""Conversation REST API routes."""

import uuid
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import settings
from ..db import ConversationRepository, DatabaseConnection
from ..db.database_models import ConversationDO
from ..models.conversation import (
    ConversationDetailResponse,
    ConversationListResponse,
    ConversationStatus,
    ConversationSummary,
    SendMessageRequest,
    SendMessageResponse,
    StatusUpdateRequest,
)
from ..models.session import FileContentResponse, FileListResponse, SessionEntry
from ..sandbox import BaseSandbox, SandboxError
from ..services import AgentRunHandler, ConversationStore, TranscriptSync
from ..utils.logger import get_app_logger
from ..utils.workspace import (
    WorkspaceFileTooLarge,
    WorkspacePathError,
    list_workspace,
    read_workspace_file,
)

router = APIRouter(prefix="/api/conversations", tags=["Conversations"])

logger = get_app_logger()

TITLE_MAX_LENGTH = 100

# Database connection (set by main.py)
db_conn: DatabaseConnection = None
# Conversation inputs and synced transcripts (set by main.py)
conv_store: ConversationStore = None
# Sandbox client (set by main.py)
sandbox: BaseSandbox = None
# Transcript sync service (set by main.py)
transcript_sync: TranscriptSync = None
# Agent completion handler (set by main.py)
run_handler: AgentRunHandler = None


def get_conversation_repo() -> ConversationRepository:
    """Dependency to get conversation repository."""
    if db_conn is None:
        raise HTTPException(status_code=500, detail="Database not initialized")
    return ConversationRepository(db_conn.conn)


def get_conv_store() -> ConversationStore:
    """Dependency to get conversation store."""
    if conv_store is None:
        raise HTTPException(status_code=500, detail="Conversation store not initialized")
    return conv_store


def get_sandbox() -> BaseSandbox:
    """Dependency to get the sandbox client."""
    if sandbox is None or transcript_sync is None or run_handler is None:
        raise HTTPException(status_code=500, detail="Sandbox not initialized")
    return sandbox


def _get_or_404(repo: ConversationRepository, conversation_id: str) -> ConversationDO:
    conversation = repo.get(conversation_id)
    if not conversation:
        raise HTTPException(status_code=404, detail="Conversation not found")
    return conversation


def _to_summary(conv: ConversationDO) -> ConversationSummary:
    return ConversationSummary(
        id=conv.id,
        title=conv.title,
        status=conv.status,
        created_at=conv.created_at,
        updated_at=conv.updated_at,
    )


@router.get("", response_model=ConversationListResponse)
async def list_conversations(repo: ConversationRepository = Depends(get_conversation_repo)):
    """List the most recently updated conversations."""
    conversations = repo.list_recent(settings.conversation_list_limit)
    return ConversationListResponse(conversations=[_to_summary(c) for c in conversations])


@router.post("", response_model=SendMessageResponse)
async def send_message(
    request: SendMessageRequest,
    repo: ConversationRepository = Depends(get_conversation_repo),
    store: ConversationStore = Depends(get_conv_store),
    sb: BaseSandbox = Depends(get_sandbox),
):
    """
    Send a message, creating the conversation on first use.

    Launches the research agent and returns immediately; completion is
    discovered by polling the conversation detail.
    """
    content = request.content
    if not content or not content.strip():
        raise HTTPException(status_code=400, detail="Message content is required")

    if request.conversation_id:
        conversation = _get_or_404(repo, request.conversation_id)
        # Not atomic: two concurrent sends can both pass this check
        if conversation.status == ConversationStatus.RUNNING.value:
            raise HTTPException(status_code=409, detail="Conversation is already running")
    else:
        now = datetime.utcnow()
        conversation = ConversationDO(
            id=str(uuid.uuid4()),
            title=content.strip()[:TITLE_MAX_LENGTH],
            status=ConversationStatus.IDLE.value,
            created_at=now,
            updated_at=now,
        )
        if not repo.create(conversation):
            raise HTTPException(status_code=500, detail="Failed to create conversation")

    client_message_id = request.client_message_id or str(uuid.uuid4())
    try:
        if not conversation.volume_id:
            volume_id = await sb.create_volume(conversation.id)
            if not repo.update(conversation.id, {"volume_id": volume_id}):
                raise HTTPException(status_code=500, detail="Failed to store volume")
            conversation.volume_id = volume_id

        # Recorded before launch so an agent is never started for an unrecorded message
        store.add_input(conversation.id, content, client_message_id)
        try:
            sandbox_id = await sb.launch_agent(
                volume_id=conversation.volume_id,
                conversation_id=conversation.id,
                message=content,
                session_id=conversation.session_id,
                on_exit=run_handler.on_exit,
            )
        except SandboxError:
            store.remove_input(conversation.id, client_message_id)
            raise

        # No await from here on: the run's exit callback must see the new sandbox_id
        updated = repo.update(conversation.id, {
            "status": ConversationStatus.RUNNING.value,
            "sandbox_id": sandbox_id,
            "error_message": None,
        })
        if not updated:
            raise HTTPException(status_code=500, detail="Failed to update conversation")

        transcript_sync.activate(conversation.volume_id, conversation.id)
    except HTTPException:
        raise
    except SandboxError as e:
        logger.exception(f"Failed to start agent for conversation {conversation.id}")
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.exception(f"Failed to send message to conversation {conversation.id}")
        raise HTTPException(status_code=500, detail=str(e) or "Internal server error")

    logger.info(f"Conversation {conversation.id} running on sandbox {sandbox_id}")

    return SendMessageResponse(
        conversation_id=conversation.id,
        status=ConversationStatus.RUNNING,
        client_message_id=client_message_id,
    )


@router.get("/{conversation_id}", response_model=ConversationDetailResponse)
async def get_conversation(
    conversation_id: str,
    repo: ConversationRepository = Depends(get_conversation_repo),
    store: ConversationStore = Depends(get_conv_store),
):
    """Get conversation status, synced transcript and error message."""
    conversation = _get_or_404(repo, conversation_id)

    messages: List[SessionEntry]
    needs_sync = conversation.volume_id and transcript_sync is not None and (
        not store.has_messages(conversation.id)
        or (conversation.status == ConversationStatus.RUNNING.value and not transcript_sync.watching)
    )
    if needs_sync:
        messages = await transcript_sync.sync(conversation.id, conversation.volume_id)
    else:
        messages = store.get_messages(conversation.id)

    return ConversationDetailResponse(
        id=conversation.id,
        title=conversation.title,
        status=conversation.status,
        messages=messages,
        error_message=conversation.error_message,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
    )


@router.post("/{conversation_id}/status", response_model=ConversationSummary)
async def update_status(
    conversation_id: str,
    request: StatusUpdateRequest,
    repo: ConversationRepository = Depends(get_conversation_repo),
):
    """Status callback for agents running on a remote sandbox platform."""
    conversation = _get_or_404(repo, conversation_id)

    updates = {"status": request.status.value, "error_message": request.error_message}
    if request.session_id:
        updates["session_id"] = request.session_id
    if not repo.update(conversation_id, updates):
        raise HTTPException(status_code=500, detail="Failed to update conversation")

    if conversation.volume_id and transcript_sync is not None:
        await transcript_sync.sync(conversation_id, conversation.volume_id)
        if request.status.is_terminal:
            transcript_sync.deactivate(conversation.volume_id)

    logger.info(f"Conversation {conversation_id} reported status {request.status.value}")
    return _to_summary(repo.get(conversation_id))


def _get_workspace(repo: ConversationRepository, sb: BaseSandbox, conversation_id: str):
    conversation = _get_or_404(repo, conversation_id)
    if not conversation.volume_id:
        raise HTTPException(status_code=404, detail="Conversation has no workspace")
    workspace = sb.workspace_dir(conversation.volume_id)
    if workspace is None:
        raise HTTPException(status_code=404, detail="Workspace not found")
    return workspace


@router.get("/{conversation_id}/files", response_model=FileListResponse)
async def list_files(
    conversation_id: str,
    path: str = Query("/", description="Directory to list"),
    tree: bool = Query(False, description="Include nested children"),
    repo: ConversationRepository = Depends(get_conversation_repo),
    sb: BaseSandbox = Depends(get_sandbox),
):
    """List the agent workspace (one level, or the whole tree)."""
    workspace = _get_workspace(repo, sb, conversation_id)
    try:
        files = list_workspace(workspace, path, recursive=tree)
    except WorkspacePathError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return FileListResponse(path=path, files=files)


@router.get("/{conversation_id}/files/{file_path:path}", response_model=FileContentResponse)
async def get_file(
    conversation_id: str,
    file_path: str,
    repo: ConversationRepository = Depends(get_conversation_repo),
    sb: BaseSandbox = Depends(get_sandbox),
):
    """Read one workspace file."""
    workspace = _get_workspace(repo, sb, conversation_id)
    path = "/" + file_path.lstrip("/")
    try:
        content = read_workspace_file(workspace, path, settings.max_file_bytes)
    except WorkspacePathError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except WorkspaceFileTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e))
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return FileContentResponse(path=path, content=content)
