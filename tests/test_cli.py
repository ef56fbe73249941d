"""Tests for the command line interface."""

from datetime import datetime, timedelta

from click.testing import CliRunner

from deepdive import cli as cli_module
from deepdive.cli import cli, time_ago
from deepdive.models.conversation import ConversationStatus, ConversationSummary


NOW = datetime(2026, 1, 10, 12, 0, 0)


class TestTimeAgo:
    """SUT: time_ago"""

    def test_just_now(self):
        assert time_ago(NOW - timedelta(seconds=30), NOW) == "just now"

    def test_minutes(self):
        assert time_ago(NOW - timedelta(minutes=5), NOW) == "5m ago"

    def test_hours(self):
        assert time_ago(NOW - timedelta(hours=3, minutes=59), NOW) == "3h ago"

    def test_days(self):
        assert time_ago(NOW - timedelta(days=2, hours=1), NOW) == "2d ago"


class TestHistoryCommand:
    """SUT: history"""

    def test_lists_conversations(self, monkeypatch):
        async def fake_fetch():
            return [ConversationSummary(
                id="conv-1",
                title="Cursor vs Windsurf",
                status=ConversationStatus.COMPLETED,
                created_at=datetime.utcnow(),
                updated_at=datetime.utcnow(),
            )]

        monkeypatch.setattr(cli_module, "_fetch_history", fake_fetch)
        result = CliRunner().invoke(cli, ["history"])

        assert result.exit_code == 0
        assert "Cursor vs Windsurf" in result.output
        assert "conv-1" in result.output

    def test_empty(self, monkeypatch):
        async def fake_fetch():
            return []

        monkeypatch.setattr(cli_module, "_fetch_history", fake_fetch)
        result = CliRunner().invoke(cli, ["history"])

        assert result.exit_code == 0
        assert "No conversations yet" in result.output
