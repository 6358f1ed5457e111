"""Rich rendering of capture-gate outcomes and scoring responses."""

import logging
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..errors import SpeechGateError, user_message
from ..models.scoring import ScoreLevel, SpeechValidationResponse
from ..models.validation import ValidationOutcome

logger = logging.getLogger(__name__)

LEVEL_STYLES = {
    ScoreLevel.EXCELLENT: "bold green",
    ScoreLevel.GOOD: "green",
    ScoreLevel.ACCEPTABLE: "cyan",
    ScoreLevel.NEEDS_IMPROVEMENT: "yellow",
    ScoreLevel.POOR: "red",
}


class ResultScreen:
    """Prints recording results to the terminal."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def show_outcome(self, outcome: ValidationOutcome, duration: Optional[float] = None,
                     peak_amplitude: Optional[float] = None) -> None:
        """Show the capture-time gate decision."""
        if outcome.accepted:
            self.console.print("✅ Recording accepted", style="bold green")
            if outcome.output_location:
                self.console.print(f"File: {outcome.output_location}")
        else:
            self.console.print(f"❌ Recording rejected: {outcome.reason.value}", style="bold red")
            self.console.print(user_message(outcome.reason), style="yellow")

        if duration is not None:
            self.console.print(f"Duration: {duration:.2f}s")
        if peak_amplitude is not None:
            peak_bar = "█" * int(peak_amplitude * 20)
            self.console.print(f"Peak: |{peak_bar:<20}| {peak_amplitude:.3f}")

    def show_response(self, response: SpeechValidationResponse) -> None:
        """Show a scoring response with word analysis."""
        validation = response.validation
        style = LEVEL_STYLES[validation.score_level]
        verdict = "PASSED" if validation.passed else "NOT PASSED"

        summary = Table(show_header=False, box=None)
        summary.add_row("Expected", validation.expected_text)
        summary.add_row("Heard", validation.transcription or "(nothing)")
        summary.add_row("Score", f"{validation.score_percentage}% ({validation.score_level.display_name})")
        summary.add_row("Language", response.details.language_info.detected or "unknown")
        self.console.print(Panel(summary, title=f"🎯 {verdict}", border_style=style))

        self.console.print(response.feedback.overall, style=style)
        for suggestion in response.feedback.suggestions:
            self.console.print(f"  • {suggestion}")

        analysis = response.details.word_analysis
        if analysis and analysis.alignment:
            words = Table(title="Word analysis", show_header=True, header_style="bold magenta")
            words.add_column("#", justify="right")
            words.add_column("Expected")
            words.add_column("Spoken")
            words.add_column("Result")
            for item in analysis.alignment:
                words.add_row(str(item.position), item.expected, item.spoken or "", item.type)
            self.console.print(words)

        self.console.print(response.progression.message, style="bold" if response.progression.can_proceed else "")

    def show_error(self, error: SpeechGateError) -> None:
        retry = " (you can retry)" if error.retryable else ""
        self.console.print(f"❌ {error.user_message}{retry}", style="bold red")
        logger.debug(f"Displayed error {error.code}: {error}")
