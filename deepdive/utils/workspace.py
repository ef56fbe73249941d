"""Sandbox workspace browsing helpers."""

from pathlib import Path
from typing import List, Union

from ..models.session import FileInfo


class WorkspacePathError(ValueError):
    """Raised when a requested path points outside the workspace."""


class WorkspaceFileTooLarge(ValueError):
    """Raised when a workspace file exceeds the configured size limit."""


def resolve_workspace_path(root: Union[str, Path], path: str) -> Path:
    """
    Map a workspace path ("/out/report.md") onto the volume directory.

    Raises:
        WorkspacePathError: If the path escapes the workspace root
    """
    root_path = Path(root).resolve()
    target = (root_path / path.lstrip("/")).resolve()
    if target != root_path and root_path not in target.parents:
        raise WorkspacePathError(f"Path is outside the workspace: {path}")
    return target


def _to_workspace_path(root: Path, target: Path) -> str:
    relative = target.relative_to(root).as_posix()
    return "/" if relative == "." else f"/{relative}"


def _describe(root: Path, entry: Path, recursive: bool) -> FileInfo:
    if entry.is_dir():
        return FileInfo(
            name=entry.name,
            path=_to_workspace_path(root, entry),
            type="directory",
            children=_list_dir(root, entry, recursive) if recursive else None,
        )
    return FileInfo(
        name=entry.name,
        path=_to_workspace_path(root, entry),
        type="file",
        size=entry.stat().st_size,
    )


def _list_dir(root: Path, directory: Path, recursive: bool) -> List[FileInfo]:
    # Directories first, then files, each alphabetically
    entries = sorted(directory.iterdir(), key=lambda p: (not p.is_dir(), p.name.lower()))
    return [_describe(root, entry, recursive) for entry in entries if not entry.is_symlink()]


def list_workspace(root: Union[str, Path], path: str = "/", recursive: bool = False) -> List[FileInfo]:
    """
    List a workspace directory.

    Args:
        root: Workspace root directory on disk
        path: Directory to list, relative to the workspace root
        recursive: Include nested children (tree view)

    Returns:
        FileInfo entries of the directory

    Raises:
        WorkspacePathError: If the path escapes the workspace
        FileNotFoundError: If the directory does not exist
    """
    root_path = Path(root).resolve()
    target = resolve_workspace_path(root_path, path)
    if not target.is_dir():
        raise FileNotFoundError(f"Directory not found: {path}")
    return _list_dir(root_path, target, recursive)


def read_workspace_file(root: Union[str, Path], path: str, max_bytes: int) -> str:
    """
    Read a workspace file as UTF-8 text.

    Raises:
        WorkspacePathError: If the path escapes the workspace
        FileNotFoundError: If the file does not exist
        WorkspaceFileTooLarge: If the file is bigger than max_bytes
    """
    target = resolve_workspace_path(root, path)
    if not target.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    if target.stat().st_size > max_bytes:
        raise WorkspaceFileTooLarge(f"File is larger than {max_bytes} bytes: {path}")
    # newline="" keeps the bytes exactly as the agent wrote them
    with open(target, "r", encoding="utf-8", errors="replace", newline="") as f:
        return f.read()
