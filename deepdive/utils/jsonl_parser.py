"""JSONL file parser utility."""

import json
import os
from typing import Optional, List, Dict, Any
import aiofiles

from .logger import get_app_logger


class JSONLParser:
    """Parser for JSONL (JSON Lines) files such as agent transcripts."""

    def __init__(self, file_path: str):
        """
        Initialize the JSONL parser.

        Args:
            file_path: Path to the JSONL file
        """
        self.file_path = str(file_path)
        self.logger = get_app_logger()

    async def read_all_lines(self) -> List[Dict[str, Any]]:
        """
        Read all lines from the file.

        Returns:
            List of parsed JSON objects from all lines
        """
        if not os.path.exists(self.file_path):
            return []

        async with aiofiles.open(self.file_path, mode='r', encoding='utf-8', errors='replace') as f:
            content = await f.read()

        return self._parse_lines(content.splitlines())

    def _parse_lines(self, lines: List[str]) -> List[Dict[str, Any]]:
        records = []
        for line in lines:
            data = parse_jsonl_line(line)
            if data is None:
                if line.strip():
                    self.logger.debug(f"Skipped malformed JSONL line in {self.file_path}")
                continue
            records.append(data)
        return records


def parse_jsonl_line(line: str) -> Optional[Dict[str, Any]]:
    """
    Parse a single JSONL line.

    Args:
        line: A single line of JSON

    Returns:
        Parsed JSON object, or None if the line is blank, malformed or not an object
    """
    line = line.strip()
    if not line:
        return None

    try:
        data = json.loads(line)
    except json.JSONDecodeError:
        return None

    return data if isinstance(data, dict) else None
