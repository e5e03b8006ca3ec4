"""Skill insight commands: scores, warnings, reports, and exports."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer

from skillmeter.analysis import SkillAdvisor, SkillScorer
from skillmeter.analysis.advisor import trend_emoji
from skillmeter.config import get_metrics_db_path
from skillmeter.io import write_file
from skillmeter.outcome import Absent, Present
from skillmeter.telemetry import MetricsStore, SessionTracker

app = typer.Typer(
    name="insights",
    help="Skill scores, warnings and reports",
    no_args_is_help=True,
)

DbOption = Annotated[
    Path | None,
    typer.Option("--db", help="Path to the metrics database"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output results as JSON"),
]


def _open_store(db: Path | None) -> MetricsStore:
    """Open an existing metrics database, exiting if there is none yet."""
    db_path = db if db is not None else get_metrics_db_path()
    if not db_path.exists():
        typer.echo("No metrics recorded yet.", err=True)
        typer.echo("Run 'skillmeter track start' to begin tracking skills.", err=True)
        raise typer.Exit(1)
    return MetricsStore(db_path)


@app.command("score")
def score(
    skill: Annotated[str, typer.Argument(help="Skill to score")],
    db: DbOption = None,
    json_output: JsonOption = False,
) -> None:
    """Show the composite score and trend of a skill."""
    scorer = SkillScorer(_open_store(db))

    match scorer.evaluate(skill):
        case Absent(reason=reason):
            typer.echo(reason, err=True)
            raise typer.Exit(1)
        case Present(value=s):
            if json_output:
                typer.echo(json.dumps(s.to_dict(), indent=2))
                return
            typer.echo(f"\nSkill: {s.skill_name}")
            typer.echo(f"  Score: {s.overall_score}/100")
            typer.echo(f"  Trend: {trend_emoji(s.trend)} {s.trend}")
            typer.echo(f"  Success rate: {s.success_rate * 100:.1f}%")
            typer.echo(f"  Satisfaction: {s.user_satisfaction:.1f}/5.0")
            typer.echo(f"  Efficiency: {s.efficiency * 100:.1f}%")


@app.command("check")
def check(
    skill: Annotated[str, typer.Argument(help="Skill about to be called")],
    context: Annotated[
        str,
        typer.Option("--context", "-c", help="Context of the call"),
    ] = "",
    db: DbOption = None,
    json_output: JsonOption = False,
) -> None:
    """Warn if a skill is performing poorly and suggest alternatives."""
    suggestion = SkillAdvisor(_open_store(db)).check_before_call(skill, context)

    if json_output:
        typer.echo(json.dumps(suggestion.to_dict(), indent=2, ensure_ascii=False))
        return

    if not suggestion.should_suggest:
        typer.echo(f"No concerns for {skill}.")
        return

    typer.echo(suggestion.message)
    if suggestion.alternatives:
        typer.echo("Alternatives:")
        for alternative in suggestion.alternatives:
            typer.echo(f"  - {alternative}")


@app.command("report")
def report(
    skill: Annotated[str, typer.Argument(help="Skill to report on")],
    db: DbOption = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the report to a file instead of stdout"),
    ] = None,
) -> None:
    """Render a Markdown performance report."""
    markdown = SkillAdvisor(_open_store(db)).generate_report(skill)
    if output is None:
        typer.echo(markdown)
        return
    write_file(output, markdown)
    typer.echo(f"Wrote report to {output}")


@app.command("suggest")
def suggest(
    skill: Annotated[str, typer.Argument(help="Skill to analyze")],
    db: DbOption = None,
    json_output: JsonOption = False,
) -> None:
    """List improvement suggestions for a skill."""
    suggestions = SkillAdvisor(_open_store(db)).generate_improvement_suggestions(skill)

    if json_output:
        typer.echo(json.dumps({"skill": skill, "suggestions": suggestions}, indent=2))
        return

    if not suggestions:
        typer.echo(f"No suggestions for {skill}.")
        return
    for i, s in enumerate(suggestions, 1):
        typer.echo(f"{i}. {s}")


@app.command("best")
def best(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, help="Number of skills to show"),
    ] = 3,
    db: DbOption = None,
    json_output: JsonOption = False,
) -> None:
    """Show the top-scoring skills."""
    scores = SkillScorer(_open_store(db)).get_best_skills(limit)

    if json_output:
        typer.echo(json.dumps([s.to_dict() for s in scores], indent=2))
        return

    if not scores:
        typer.echo("No scored skills yet.")
        return
    for i, s in enumerate(scores, 1):
        typer.echo(f"{i}. {s.skill_name} ({s.overall_score}/100, {s.trend})")


@app.command("overview")
def overview(
    db: DbOption = None,
    json_output: JsonOption = False,
) -> None:
    """Summarize every tracked skill."""
    store = _open_store(db)
    scorer = SkillScorer(store)
    all_metrics = store.get_all_metrics()

    rows = []
    for m in all_metrics:
        s = scorer.calculate_score(m.skill_name)
        rows.append(
            {
                "skill": m.skill_name,
                "calls": m.total_calls,
                "open": store.count_open_calls(m.skill_name),
                "success_rate": m.avg_success_rate,
                "score": s.overall_score if s else None,
                "trend": s.trend if s else None,
            }
        )

    if json_output:
        typer.echo(json.dumps({"skills": rows, "open_calls": store.count_open_calls()}, indent=2))
        return

    if not rows:
        typer.echo("No skill results recorded yet.")
        return

    typer.echo("\nSkill Performance")
    typer.echo("-" * 60)
    typer.echo(f"{'Skill':<25} {'Calls':>6} {'Open':>5} {'Success':>9} {'Score':>6}  Trend")
    typer.echo("-" * 60)
    for row in sorted(rows, key=lambda r: r["score"] or 0, reverse=True):
        score_text = str(row["score"]) if row["score"] is not None else "-"
        typer.echo(
            f"{row['skill']:<25} {row['calls']:>6} {row['open']:>5} "
            f"{row['success_rate'] * 100:>8.1f}% {score_text:>6}  {row['trend'] or '-'}"
        )
    typer.echo()


@app.command("export")
def export(
    skill: Annotated[str, typer.Argument(help="Skill to export")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Destination JSON file"),
    ] = None,
    db: DbOption = None,
) -> None:
    """Export a skill's metrics and recent calls to JSON.

    Skills without results, or a database that does not exist yet, export
    zeroed metrics.
    """
    path = SessionTracker(MetricsStore(db)).export_metrics_to_json(skill, output)
    typer.echo(f"Exported {skill} to {path}")
