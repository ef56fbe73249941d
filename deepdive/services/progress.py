"""Simulated research progress.

Cosmetic only: the stage is derived from wall-clock time since the message
was sent, and the activity feed from tool calls found in the transcript. It
says nothing reliable about how far the agent actually is.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, NamedTuple

from ..models.session import SessionEntry


class ProgressStage(NamedTuple):
    id: str
    label: str
    description: str
    threshold: int  # seconds since submission


STAGES: List[ProgressStage] = [
    ProgressStage("boot", "Initializing", "Setting up analysis environment", 0),
    ProgressStage("search", "Searching Reddit", "Scanning subreddits for relevant discussions", 8),
    ProgressStage("collect", "Collecting Data", "Gathering reviews, comparisons, and feedback", 25),
    ProgressStage("analyze", "Analyzing Feedback", "Cross-verifying information from multiple sources", 50),
    ProgressStage("compare", "Building Comparison", "Evaluating features, pricing, and performance", 80),
    ProgressStage("report", "Generating Report", "Compiling deep-dive analysis with charts", 110),
]

FUN_FACTS: List[str] = [
    "Reddit has 1.7 billion monthly visits, the world's largest focus group.",
    "The average Redditor spends 10+ minutes per visit reading threads.",
    "r/technology has 15M+ subscribers discussing AI tools daily.",
    "Reddit comments often contain more honest reviews than official review sites.",
    "AI tool subreddits grew 300%+ in the last 2 years.",
    "Cross-referencing 3+ Reddit threads increases insight accuracy by 4x.",
    "Power users on Reddit often post detailed comparisons with real benchmarks.",
    "Reddit's upvote system naturally surfaces the most helpful reviews.",
    "Most AI tool pain points are first reported on Reddit before any blog.",
    "Pricing changes are usually discussed on Reddit within hours of announcement.",
    "The best tool comparisons come from users who've tried both products.",
    "Reddit threads from 6+ months ago help identify long-standing issues vs new bugs.",
]

FUN_FACT_INTERVAL = 6  # seconds per fact
MAX_PROGRESS = 95.0
FINAL_STAGE_START = 85.0
FINAL_STAGE_FILL_SECONDS = 60
MAX_ACTIVITIES = 5


def current_stage_index(elapsed: float) -> int:
    """Index of the last stage whose threshold has passed."""
    for index in range(len(STAGES) - 1, -1, -1):
        if elapsed >= STAGES[index].threshold:
            return index
    return 0


def current_stage(elapsed: float) -> ProgressStage:
    return STAGES[current_stage_index(elapsed)]


def progress_percent(elapsed: float) -> float:
    """
    Progress bar value for the given seconds since submission.

    Non-final stages fill linearly up to the next stage's share of the bar.
    The final stage creeps from 85 towards 95 over a minute and stays there
    until the run finishes.
    """
    index = current_stage_index(elapsed)
    stage = STAGES[index]

    if index == len(STAGES) - 1:
        fill = min(max(elapsed - stage.threshold, 0) / FINAL_STAGE_FILL_SECONDS, 1)
        return FINAL_STAGE_START + fill * (MAX_PROGRESS - FINAL_STAGE_START)

    next_stage = STAGES[index + 1]
    span = next_stage.threshold - stage.threshold
    fraction = min(max(elapsed - stage.threshold, 0) / span, 1)
    base = index / len(STAGES) * 100
    return min(base + fraction / len(STAGES) * 100, MAX_PROGRESS)


def fun_fact(elapsed: float, offset: int = 0) -> str:
    """Fun fact to show at the given elapsed time, starting from ``offset``."""
    return FUN_FACTS[(offset + int(max(elapsed, 0) // FUN_FACT_INTERVAL)) % len(FUN_FACTS)]


@dataclass
class ToolStats:
    """Counts of recognised tool calls plus the most recent activity lines."""

    search_count: int = 0
    thread_count: int = 0
    fetch_count: int = 0
    write_count: int = 0
    activities: List[str] = field(default_factory=list)


def extract_tool_stats(messages: Iterable[SessionEntry]) -> ToolStats:
    """
    Summarise agent activity from the tool_use blocks of assistant entries.

    Args:
        messages: Transcript entries

    Returns:
        ToolStats with at most the last five activities
    """
    stats = ToolStats()
    activities = []

    for message in messages:
        if message.type != "assistant":
            continue
        for block in message.contents:
            if block.type != "tool_use":
                continue
            tool_input = block.input or {}

            if block.name == "WebSearch" and "query" in tool_input:
                stats.search_count += 1
                activities.append(f'Searching: "{tool_input["query"]}"')
            elif block.name == "WebFetch" and "url" in tool_input:
                stats.fetch_count += 1
                if "reddit.com" in str(tool_input["url"]):
                    stats.thread_count += 1
                    activities.append("Reading Reddit thread...")
                else:
                    activities.append("Fetching web data...")
            elif block.name == "Write" and "file_path" in tool_input:
                stats.write_count += 1
                activities.append("Writing report...")
            elif block.name == "Read":
                activities.append("Reading file...")
            elif block.name == "Bash":
                activities.append("Running command...")

    stats.activities = activities[-MAX_ACTIVITIES:]
    return stats
