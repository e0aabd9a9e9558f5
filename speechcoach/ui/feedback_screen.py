"""Terminal rendering of recordings, transcripts and feedback."""

import logging
from typing import Any, Dict, Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models.audio import RecordingState, RecordingStats
from ..models.feedback import Feedback, Transcript

logger = logging.getLogger(__name__)


class FeedbackScreen:
    """Rich console views for the speech practice flow."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def recording_panel(self, stats: RecordingStats, topic: Optional[str] = None,
                        limit_seconds: Optional[int] = None) -> Panel:
        """Live panel shown while the microphone is open."""
        is_recording = stats.state is RecordingState.RECORDING
        status_text = "● RECORDING" if is_recording else "■ STOPPED"
        status_style = "bold red" if is_recording else "bold yellow"

        table = Table(show_header=False, box=None)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="white")
        if topic:
            table.add_row("Topic", topic)
        minutes, seconds = divmod(stats.elapsed_seconds, 60)
        table.add_row("Elapsed", f"{minutes}:{seconds:02d}")
        table.add_row("Chunks", str(stats.total_chunks))
        table.add_row("Size", f"{stats.total_bytes / 1024:.1f} KB")
        table.add_row("Format", stats.mime_type or "-")

        peak_bar = "█" * int(stats.peak_level * 20)
        table.add_row("Peak Level", f"{peak_bar:<20} {stats.peak_level:.3f}")

        return Panel(
            Group(Text(status_text, style=status_style), table),
            title="SpeechCoach",
            subtitle=f"Enter to stop, stops at {limit_seconds}s" if limit_seconds else "Enter to stop",
            border_style="bright_blue",
        )

    def show_transcript(self, transcript: Transcript) -> None:
        self.console.print(Panel(Text(transcript.text or "(empty)"), title="Transcript", border_style="green"))

    def show_feedback(self, feedback: Feedback) -> None:
        if feedback.grammar_feedback:
            self.console.print(_bullet_table("Grammar", feedback.grammar_feedback, "magenta"))
        if feedback.expression_suggestions:
            self.console.print(_bullet_table("Better Expressions", feedback.expression_suggestions, "cyan"))
        self.console.print(Panel(Text(feedback.overall_comment or "-"), title="Overall", border_style="blue"))

    def show_text(self, title: str, text: str) -> None:
        self.console.print(Panel(Text(text), title=title, border_style="green"))

    def show_settings(self, settings: Dict[str, Any]) -> None:
        table = Table(title="Settings", header_style="bold magenta")
        table.add_column("Key", style="cyan")
        table.add_column("Value", style="white")
        for key, value in settings.items():
            table.add_row(key, Text("-" if value is None else str(value)))
        self.console.print(table)

    def show_error(self, message: str) -> None:
        self.console.print(Text.assemble(("Error: ", "bold red"), message))

    def show_notice(self, message: str) -> None:
        self.console.print(Text(message, style="yellow"))


def _bullet_table(title: str, items, style: str) -> Table:
    table = Table(title=title, show_header=False, title_style=f"bold {style}")
    table.add_column("#", style="dim", width=3)
    table.add_column("Suggestion")
    for i, item in enumerate(items, 1):
        table.add_row(str(i), Text(item))
    return table
