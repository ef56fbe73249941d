"""Tests for the simulated progress indicator."""

import pytest
from datetime import datetime

from deepdive.models.session import ContentBlock, SessionEntry
from deepdive.services.progress import (
    FUN_FACTS,
    STAGES,
    current_stage,
    current_stage_index,
    extract_tool_stats,
    fun_fact,
    progress_percent,
)


def _assistant(*tools) -> SessionEntry:
    return SessionEntry(
        uuid="a",
        type="assistant",
        timestamp=datetime(2026, 1, 1),
        contents=[ContentBlock(type="tool_use", name=name, input=tool_input) for name, tool_input in tools],
    )


class TestStages:
    """SUT: current_stage_index"""

    def test_initializing_at_zero(self):
        assert current_stage(0).label == "Initializing"

    @pytest.mark.parametrize("elapsed,label", [
        (7.9, "Initializing"),
        (8, "Searching Reddit"),
        (24, "Searching Reddit"),
        (25, "Collecting Data"),
        (50, "Analyzing Feedback"),
        (80, "Building Comparison"),
        (110, "Generating Report"),
        (10_000, "Generating Report"),
    ])
    def test_thresholds(self, elapsed, label):
        """The current stage is the last one whose threshold has passed."""
        assert current_stage(elapsed).label == label

    def test_six_ordered_stages(self):
        thresholds = [s.threshold for s in STAGES]
        assert thresholds == [0, 8, 25, 50, 80, 110]

    def test_negative_elapsed(self):
        assert current_stage_index(-5) == 0


class TestProgressPercent:
    """SUT: progress_percent"""

    def test_zero(self):
        assert progress_percent(0) == 0

    def test_stage_boundaries(self):
        """Each stage starts at its share of the bar."""
        assert progress_percent(8) == pytest.approx(100 / 6)
        assert progress_percent(25) == pytest.approx(200 / 6)

    def test_final_stage(self):
        """The final stage fills from 85 to 95 over a minute."""
        assert progress_percent(110) == pytest.approx(85)
        assert progress_percent(140) == pytest.approx(90)
        assert progress_percent(170) == pytest.approx(95)
        assert progress_percent(100_000) == pytest.approx(95)

    def test_monotonic_and_capped(self):
        """Non-decreasing in elapsed time and never above 95."""
        previous = -1.0
        for tenth in range(0, 3000):
            value = progress_percent(tenth / 10)
            assert value >= previous
            assert value <= 95
            previous = value


class TestFunFacts:
    """SUT: fun_fact"""

    def test_cycles_every_six_seconds(self):
        assert fun_fact(0) == FUN_FACTS[0]
        assert fun_fact(5.9) == FUN_FACTS[0]
        assert fun_fact(6) == FUN_FACTS[1]
        assert fun_fact(6 * len(FUN_FACTS)) == FUN_FACTS[0]

    def test_offset(self):
        assert fun_fact(0, offset=3) == FUN_FACTS[3]


class TestExtractToolStats:
    """SUT: extract_tool_stats"""

    def test_counts_and_activities(self):
        messages = [_assistant(
            ("WebSearch", {"query": "cursor vs windsurf reddit"}),
            ("WebFetch", {"url": "https://www.reddit.com/r/ChatGPTCoding/comments/abc"}),
            ("WebFetch", {"url": "https://example.com/review"}),
            ("Write", {"file_path": "output/cursor_report.md", "content": "..."}),
        )]
        stats = extract_tool_stats(messages)

        assert stats.search_count == 1
        assert stats.fetch_count == 2
        assert stats.thread_count == 1
        assert stats.write_count == 1
        assert stats.activities == [
            'Searching: "cursor vs windsurf reddit"',
            "Reading Reddit thread...",
            "Fetching web data...",
            "Writing report...",
        ]

    def test_keeps_last_five(self):
        messages = [_assistant(*[("WebSearch", {"query": f"q{i}"}) for i in range(8)])]
        stats = extract_tool_stats(messages)
        assert stats.search_count == 8
        assert stats.activities == [f'Searching: "q{i}"' for i in range(3, 8)]

    def test_read_and_bash(self):
        stats = extract_tool_stats([_assistant(("Read", {"file_path": "x"}), ("Bash", {"command": "ls"}))])
        assert stats.activities == ["Reading file...", "Running command..."]

    def test_ignores_incomplete_and_user_entries(self):
        """Tools without their key input and non-assistant entries are skipped."""
        user = _assistant(("WebSearch", {"query": "x"}))
        user.type = "user"
        stats = extract_tool_stats([
            user,
            _assistant(("WebSearch", {}), ("WebFetch", {"prompt": "x"}), ("Glob", {"pattern": "*"})),
        ])
        assert stats.search_count == 0
        assert stats.fetch_count == 0
        assert stats.activities == []
