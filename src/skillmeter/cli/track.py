"""Session tracking commands.

Sessions opened here are looked up in the metrics database itself, since
`track start` and `track end` run as separate processes.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer

from skillmeter.errors import SkillmeterError
from skillmeter.telemetry import (
    MetricsStore,
    SessionTracker,
    StoreSessionMap,
    TrackingResult,
    analyze_conversation,
)

app = typer.Typer(
    name="track",
    help="Start and end skill tracking sessions",
    no_args_is_help=True,
)

DbOption = Annotated[
    Path | None,
    typer.Option("--db", help="Path to the metrics database"),
]


def _tracker(db: Path | None) -> SessionTracker:
    store = MetricsStore(db)
    return SessionTracker(store, StoreSessionMap(store))


@app.command("start")
def start(
    skill: Annotated[str, typer.Argument(help="Name of the skill being called")],
    question: Annotated[
        str,
        typer.Option("--question", "-q", help="The user's question"),
    ] = "",
    context: Annotated[
        str,
        typer.Option("--context", "-c", help="Summary of the context"),
    ] = "",
    db: DbOption = None,
) -> None:
    """Open a tracking session and print its ID."""
    try:
        session_id = _tracker(db).start_tracking(skill, question, context)
    except SkillmeterError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    typer.echo(session_id)


@app.command("end")
def end(
    session_id: Annotated[str, typer.Argument(help="Session ID printed by 'track start'")],
    success_rate: Annotated[
        float,
        typer.Option("--success-rate", "-s", min=0.0, max=1.0, help="Outcome between 0 and 1"),
    ],
    turns: Annotated[
        int,
        typer.Option("--turns", "-t", min=0, help="Conversational exchanges consumed"),
    ],
    follow_ups: Annotated[
        int,
        typer.Option("--follow-ups", min=0, help="Follow-up questions asked"),
    ] = 0,
    accepted: Annotated[
        int,
        typer.Option("--accepted", min=0, help="Suggestions the user accepted"),
    ] = 0,
    rating: Annotated[
        float | None,
        typer.Option("--rating", "-r", help="User rating (1-5)"),
    ] = None,
    db: DbOption = None,
) -> None:
    """Close a tracking session with its outcome."""
    result = TrackingResult(
        success_rate=success_rate,
        turns=turns,
        follow_up_questions=follow_ups,
        accepted_suggestions=accepted,
        user_rating=rating,
    )
    try:
        _tracker(db).end_tracking(session_id, result)
    except SkillmeterError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    typer.echo(f"Recorded result for session {session_id}")


@app.command("analyze")
def analyze(
    transcript: Annotated[
        Path,
        typer.Argument(help="Transcript file, one 'user:'/'assistant:' message per line"),
    ],
) -> None:
    """Extract tracking metrics from a conversation transcript."""
    if not transcript.exists():
        typer.echo(f"Transcript not found: {transcript}", err=True)
        raise typer.Exit(1)

    messages = [line for line in transcript.read_text(encoding="utf-8").splitlines() if line.strip()]
    typer.echo(json.dumps(analyze_conversation(messages).to_dict(), indent=2))
