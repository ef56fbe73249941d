"""Report delivery: find finished reports and export them to local files."""

import asyncio
from pathlib import Path
from typing import List, Optional, Set, Union

import aiofiles
import httpx

from ..models.conversation import ConversationStatus
from ..models.session import FileInfo
from ..reports.discovery import find_report_files
from ..reports.export import ExportFormat, export_filename, render_export
from ..utils.logger import get_app_logger
from .api_client import ApiError, ResearchApiClient


class ReportDelivery:
    """
    Offers the reports of a completed conversation for download.

    Register ``on_refresh`` as a ResearchSession refresh listener. State is
    reset whenever the session switches to another conversation.
    """

    def __init__(self, api: ResearchApiClient, output_dir: Union[str, Path] = "."):
        self.api = api
        self.output_dir = Path(output_dir)
        self.logger = get_app_logger()

        self.conversation_id: Optional[str] = None
        self.reports: List[FileInfo] = []
        self.visible = False
        self.dismissed = False
        self.downloading: Set[str] = set()
        self.downloaded: Set[str] = set()

    @staticmethod
    def download_key(file: FileInfo, fmt: ExportFormat) -> str:
        return f"{file.path}:{ExportFormat(fmt).value}"

    def reset(self, conversation_id: Optional[str]):
        self.conversation_id = conversation_id
        self.reports = []
        self.visible = False
        self.dismissed = False
        self.downloading.clear()
        self.downloaded.clear()

    def dismiss(self):
        self.visible = False
        self.dismissed = True

    async def on_refresh(self, session) -> None:
        if session.conversation_id != self.conversation_id:
            self.reset(session.conversation_id)
        if session.status != ConversationStatus.COMPLETED or self.dismissed or not self.conversation_id:
            return
        await self.refresh_reports()

    async def refresh_reports(self) -> List[FileInfo]:
        """Search the workspace tree for reports; keeps the previous list on failure."""
        if not self.conversation_id:
            return self.reports
        try:
            files = await self.api.list_files(self.conversation_id, "/", tree=True)
        except (ApiError, httpx.HTTPError) as e:
            self.logger.debug(f"Could not list workspace of {self.conversation_id}: {e}")
            return self.reports

        found = find_report_files(files)
        if found:
            self.reports = found
            self.visible = True
        return self.reports

    async def download(self, file: FileInfo, fmt: ExportFormat) -> Optional[Path]:
        """
        Fetch a report and write it in the given format to the output directory.

        Returns:
            Path of the written file, or None if the export failed or is already running
        """
        key = self.download_key(file, fmt)
        if key in self.downloading or not self.conversation_id:
            return None

        self.downloading.add(key)
        try:
            content = await self.api.get_file_content(self.conversation_id, file.path)
            data = await asyncio.to_thread(render_export, content, fmt)

            self.output_dir.mkdir(parents=True, exist_ok=True)
            target = self.output_dir / export_filename(file.name, fmt)
            async with aiofiles.open(target, "wb") as f:
                await f.write(data)

            self.downloaded.add(key)
            self.logger.info(f"Exported {file.path} as {target}")
            return target
        except Exception:
            self.logger.exception(f"Failed to export {file.path} as {ExportFormat(fmt).value}")
            return None
        finally:
            self.downloading.discard(key)
