"""Command line interface: run the server, start research and browse history."""

import asyncio
import random
import sys
from datetime import datetime
from typing import List, Optional

import click
import httpx
from rich.console import Console, Group
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from .client import ApiError, ReportDelivery, ResearchApiClient, ResearchSession
from .config import settings
from .models.conversation import ConversationStatus, ConversationSummary
from .models.session import SessionEntry
from .reports.export import ExportFormat
from .services.progress import STAGES, current_stage_index, extract_tool_stats, fun_fact, progress_percent

console = Console()

HISTORY_REFRESH_SECONDS = 10

STATUS_STYLES = {
    "completed": ("✔", "green"),
    "running": ("⟳", "dark_orange"),
    "error": ("✖", "red"),
    "idle": ("○", "grey50"),
}


def time_ago(moment: datetime, now: Optional[datetime] = None) -> str:
    """Sidebar style relative time: just now, 5m ago, 3h ago, 2d ago."""
    now = now or datetime.utcnow()
    minutes = int((now - moment).total_seconds() // 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"


def _status_text(status: ConversationStatus) -> Text:
    icon, style = STATUS_STYLES.get(status.value, STATUS_STYLES["idle"])
    return Text(icon, style=style)


def _history_table(conversations: List[ConversationSummary]) -> Table:
    table = Table(title="History", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Title")
    table.add_column("Updated", justify="right")
    table.add_column("ID", style="dim")
    for conv in conversations:
        table.add_row(_status_text(conv.status), conv.title or "Untitled", time_ago(conv.updated_at), conv.id)
    return table


def _progress_panel(session: ResearchSession, fact_offset: int) -> Panel:
    elapsed = session.elapsed()
    stage_index = current_stage_index(elapsed)
    stats = extract_tool_stats(session.server_messages)

    stages = Table.grid(padding=(0, 1))
    for index, stage in enumerate(STAGES):
        if index < stage_index:
            marker, style = "✔", "green"
        elif index == stage_index:
            marker, style = "▸", "bold dark_orange"
        else:
            marker, style = "·", "grey50"
        stages.add_row(Text(marker, style=style), Text(stage.label, style=style), Text(stage.description, style="dim"))

    counts = Text(
        f"{stats.search_count} searches  {stats.thread_count} threads  "
        f"{stats.fetch_count} pages  {stats.write_count} files written  {int(elapsed)}s",
        style="cyan",
    )
    activities = Text("\n".join(stats.activities) or "Waiting for the agent...", style="dim")
    fact = Text(f"💡 {fun_fact(elapsed, fact_offset)}", style="italic")

    percent = progress_percent(elapsed)
    body = Group(
        stages,
        ProgressBar(total=100, completed=percent, width=50),
        counts,
        activities,
        fact,
    )
    return Panel(body, title=f"Researching... {percent:.0f}%", border_style="dark_orange")


def _print_entry(entry: SessionEntry):
    if entry.type == "user":
        console.print(Panel(entry.text(), title="You", border_style="blue"))
        return
    text = entry.text()
    if text:
        console.print(Markdown(text))
    for block in entry.contents:
        if block.type == "tool_use":
            console.print(Text(f"  ⚙ {block.name}", style="dim"))


def _print_transcript(messages: List[SessionEntry]):
    for entry in messages:
        _print_entry(entry)


@click.group()
def cli():
    """Reddit Deep-Dive Analyst - research AI tools through Reddit discussions."""
    pass


@cli.command("serve")
@click.option("--host", default=None, help="Host address to serve on.")
@click.option("--port", default=None, type=int, help="Port to serve on.")
@click.option("--reload", is_flag=True, help="Reload the server on changes.")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "deepdive.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload or settings.debug,
    )


async def _run_research(
    message: str,
    conversation_id: Optional[str],
    output: str,
    formats: List[str],
    download: bool,
) -> int:
    async with ResearchApiClient(settings.api_base_url) as api:
        session = ResearchSession(api, poll_interval=settings.poll_interval)
        delivery = ReportDelivery(api, output)
        session.add_refresh_listener(delivery.on_refresh)

        if conversation_id and not await session.load(conversation_id):
            console.print(f"[red]Error: {session.error_message}[/]")
            return 1

        if not await session.submit(message):
            console.print(f"[red]Error: {session.error_message}[/]")
            return 1
        console.print(f"[dim]Conversation {session.conversation_id}[/]")

        fact_offset = random.randrange(1000)
        with Live(_progress_panel(session, fact_offset), console=console, refresh_per_second=2) as live:
            while session.should_poll():
                await asyncio.sleep(session.poll_interval)
                await session.poll_once()
                live.update(_progress_panel(session, fact_offset))

        _print_transcript(session.server_messages)

        if session.status == ConversationStatus.ERROR:
            console.print(f"[red]Research failed: {session.error_message or 'unknown error'}[/]")
            return 1

        if not download:
            return 0

        reports = delivery.reports or await delivery.refresh_reports()
        if not reports:
            console.print("[yellow]No report found in the workspace.[/]")
            return 0

        for report in reports:
            for fmt in formats:
                target = await delivery.download(report, ExportFormat(fmt))
                if target:
                    console.print(f"[green]Saved {target}[/]")
                else:
                    console.print(f"[yellow]Could not export {report.path} as {fmt}[/]")
        return 0


@cli.command("research")
@click.argument("message")
@click.option("--conversation", "conversation_id", default=None, help="Continue an existing conversation.")
@click.option("--output", "-o", default=".", type=click.Path(file_okay=False), help="Directory for exported reports.")
@click.option(
    "--format",
    "-f",
    "formats",
    multiple=True,
    type=click.Choice([f.value for f in ExportFormat]),
    default=("pdf", "md"),
    show_default=True,
    help="Export format, repeatable.",
)
@click.option("--no-download", is_flag=True, help="Do not export reports when the run completes.")
def research(message: str, conversation_id: Optional[str], output: str, formats, no_download: bool):
    """Ask the research agent a question and follow its progress."""
    try:
        exit_code = asyncio.run(_run_research(message, conversation_id, output, list(formats), not no_download))
    except KeyboardInterrupt:
        console.print("[yellow]Stopped following the conversation; the agent keeps running.[/]")
        exit_code = 130
    sys.exit(exit_code)


async def _fetch_history() -> List[ConversationSummary]:
    async with ResearchApiClient(settings.api_base_url) as api:
        return await api.list_conversations()


async def _watch_history():
    with Live(console=console, refresh_per_second=1) as live:
        while True:
            conversations = await _fetch_history()
            live.update(_history_table(conversations))
            if not any(c.status == ConversationStatus.RUNNING for c in conversations):
                return
            await asyncio.sleep(HISTORY_REFRESH_SECONDS)


@cli.command("history")
@click.option("--watch", is_flag=True, help="Keep refreshing while a conversation is running.")
def history(watch: bool):
    """List recent conversations."""
    try:
        if watch:
            asyncio.run(_watch_history())
            return
        conversations = asyncio.run(_fetch_history())
    except (ApiError, httpx.HTTPError) as e:
        console.print(f"[red]Error: {e}[/]")
        sys.exit(1)

    if not conversations:
        console.print("[dim]No conversations yet.[/]")
        return
    console.print(_history_table(conversations))


async def _fetch_conversation(conversation_id: str):
    async with ResearchApiClient(settings.api_base_url) as api:
        return await api.get_conversation(conversation_id)


@cli.command("show")
@click.argument("conversation_id")
def show(conversation_id: str):
    """Print the transcript of a conversation."""
    try:
        detail = asyncio.run(_fetch_conversation(conversation_id))
    except (ApiError, httpx.HTTPError) as e:
        console.print(f"[red]Error: {e}[/]")
        sys.exit(1)

    console.print(Panel(
        Text.assemble(_status_text(detail.status), f" {detail.status.value}  ", (detail.title or "Untitled", "bold")),
        subtitle=conversation_id,
    ))
    _print_transcript(detail.messages)
    if detail.error_message:
        console.print(f"[red]{detail.error_message}[/]")


if __name__ == "__main__":
    cli()
