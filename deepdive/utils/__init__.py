"""Utilities package."""

from .logger import get_app_logger, setup_logger, init_app_logger
from .jsonl_parser import JSONLParser, parse_jsonl_line

__all__ = [
    "get_app_logger",
    "setup_logger",
    "init_app_logger",
    "JSONLParser",
    "parse_jsonl_line",
]
