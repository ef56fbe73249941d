"""Tests for workspace browsing helpers."""

import pytest

from deepdive.utils.workspace import (
    WorkspaceFileTooLarge,
    WorkspacePathError,
    list_workspace,
    read_workspace_file,
    resolve_workspace_path,
)


@pytest.fixture
def workspace(tmp_path):
    root = tmp_path / "workspace"
    (root / "output" / "charts").mkdir(parents=True)
    (root / "output" / "final_report.md").write_text("# Report\n", encoding="utf-8")
    (root / "output" / "charts" / "a.csv").write_text("x,y\n", encoding="utf-8")
    (root / "notes.txt").write_text("notes", encoding="utf-8")
    (root / "Zeta").mkdir()
    return root


class TestResolveWorkspacePath:
    """SUT: resolve_workspace_path"""

    def test_inside(self, workspace):
        assert resolve_workspace_path(workspace, "/output/final_report.md") == \
            (workspace / "output" / "final_report.md").resolve()

    def test_root(self, workspace):
        assert resolve_workspace_path(workspace, "/") == workspace.resolve()

    @pytest.mark.parametrize("path", ["/../secret", "../../etc/passwd", "/output/../../x"])
    def test_traversal(self, workspace, path):
        with pytest.raises(WorkspacePathError):
            resolve_workspace_path(workspace, path)


class TestListWorkspace:
    """SUT: list_workspace"""

    def test_directories_first(self, workspace):
        entries = list_workspace(workspace, "/")
        assert [e.name for e in entries] == ["output", "Zeta", "notes.txt"]
        assert entries[0].type == "directory"
        assert entries[0].children is None
        assert entries[2].size == 5

    def test_tree(self, workspace):
        entries = list_workspace(workspace, "/output", recursive=True)
        assert [e.path for e in entries] == ["/output/charts", "/output/final_report.md"]
        assert [c.path for c in entries[0].children] == ["/output/charts/a.csv"]

    def test_missing_directory(self, workspace):
        with pytest.raises(FileNotFoundError):
            list_workspace(workspace, "/nope")

    def test_file_is_not_a_directory(self, workspace):
        with pytest.raises(FileNotFoundError):
            list_workspace(workspace, "/notes.txt")


class TestReadWorkspaceFile:
    """SUT: read_workspace_file"""

    def test_read(self, workspace):
        assert read_workspace_file(workspace, "/output/final_report.md", 1024) == "# Report\n"

    def test_keeps_newlines(self, workspace):
        (workspace / "crlf.md").write_bytes(b"line one\r\nline two\r\n")
        assert read_workspace_file(workspace, "/crlf.md", 1024) == "line one\r\nline two\r\n"

    def test_too_large(self, workspace):
        with pytest.raises(WorkspaceFileTooLarge):
            read_workspace_file(workspace, "/notes.txt", 4)

    def test_missing(self, workspace):
        with pytest.raises(FileNotFoundError):
            read_workspace_file(workspace, "/output", 1024)

    def test_traversal(self, workspace):
        with pytest.raises(WorkspacePathError):
            read_workspace_file(workspace, "/../../etc/passwd", 1024)
