"""Unified CLI for skillmeter.

    skillmeter track start ...        # Open a tracking session
    skillmeter track end ...          # Close it with the outcome
    skillmeter track analyze ...      # Extract metrics from a transcript
    skillmeter insights score ...     # Composite score and trend
    skillmeter insights check ...     # Pre-call warning and alternatives
    skillmeter insights report ...    # Markdown performance report
    skillmeter insights suggest ...   # Improvement suggestions
    skillmeter insights best          # Top-scoring skills
    skillmeter insights overview      # All skills at a glance
    skillmeter insights export ...    # JSON export of metrics and calls
    skillmeter -v ...                 # Any command, with debug logging
"""

from typing import Annotated

import typer

from skillmeter.cli import insights, track
from skillmeter.logging import set_level

app = typer.Typer(
    name="skillmeter",
    help="skillmeter: performance telemetry for agent skills",
    no_args_is_help=True,
)


@app.callback()
def root(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug output to stderr"),
    ] = False,
) -> None:
    """skillmeter: performance telemetry for agent skills"""
    if verbose:
        set_level("DEBUG")


app.add_typer(track.app)
app.add_typer(insights.app)


def main() -> None:
    """Main entry point for the skillmeter CLI."""
    app()


if __name__ == "__main__":
    main()
