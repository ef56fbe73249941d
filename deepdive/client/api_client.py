"""HTTP client for the conversation API."""

from typing import List, Optional

import httpx

from ..models.conversation import (
    ConversationDetailResponse,
    ConversationSummary,
    SendMessageResponse,
)
from ..models.session import FileInfo


class ApiError(Exception):
    """Non-2xx response from the server, carrying its error text."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _raise_for_error(response: httpx.Response):
    if response.is_success:
        return
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        message = str(body["error"])
    else:
        message = f"HTTP {response.status_code}"
    raise ApiError(response.status_code, message)


class ResearchApiClient:
    """Thin async wrapper over ``/api/conversations``."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Server URL (e.g. http://127.0.0.1:7788)
            timeout: Request timeout in seconds
            transport: Optional transport, used by tests
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def close(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def list_conversations(self) -> List[ConversationSummary]:
        response = await self._client.get("/api/conversations")
        _raise_for_error(response)
        return [ConversationSummary.model_validate(c) for c in response.json().get("conversations", [])]

    async def send_message(
        self,
        content: str,
        conversation_id: Optional[str] = None,
        client_message_id: Optional[str] = None,
    ) -> SendMessageResponse:
        """
        Send a message; creates a conversation when conversation_id is None.

        Raises:
            ApiError: 400 empty message, 404 unknown conversation, 409 already running
        """
        payload = {"content": content}
        if conversation_id:
            payload["conversationId"] = conversation_id
        if client_message_id:
            payload["clientMessageId"] = client_message_id
        response = await self._client.post("/api/conversations", json=payload)
        _raise_for_error(response)
        return SendMessageResponse.model_validate(response.json())

    async def get_conversation(self, conversation_id: str) -> ConversationDetailResponse:
        response = await self._client.get(f"/api/conversations/{conversation_id}")
        _raise_for_error(response)
        return ConversationDetailResponse.model_validate(response.json())

    async def list_files(self, conversation_id: str, path: str = "/", tree: bool = True) -> List[FileInfo]:
        response = await self._client.get(
            f"/api/conversations/{conversation_id}/files",
            params={"path": path, "tree": "true" if tree else "false"},
        )
        _raise_for_error(response)
        return [FileInfo.model_validate(f) for f in response.json().get("files", [])]

    async def get_file_content(self, conversation_id: str, path: str) -> str:
        """Fetch a workspace file; ``path`` starts with ``/``."""
        response = await self._client.get(f"/api/conversations/{conversation_id}/files/{path.lstrip('/')}")
        _raise_for_error(response)
        return response.json()["content"]
