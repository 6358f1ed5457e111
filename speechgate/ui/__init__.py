"""Terminal rendering for the CLI."""

from .result_screen import ResultScreen

__all__ = ["ResultScreen"]
