"""
mathdrill: adaptive arithmetic practice in the terminal.

Commands:
- mathdrill topics            - List available topics
- mathdrill practice TOPIC    - Run a practice session
- mathdrill progress          - Show, export or reset aggregated progress
- mathdrill settings TOPIC    - Show stored settings for a topic
"""
from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from config import Settings, get_settings
from src.practice.controller import SessionController, SessionPhase, SubmissionStatus
from src.practice.errors import PracticeError, UnknownTopicError
from src.practice.ledger import ProblemRecord, ReviewNavigator, SessionSummary
from src.practice.problem_source import Step
from src.practice.progress import ProgressStore
from src.practice.settings_store import SessionSettings, SettingsStore
from src.topics import get_source, list_topics

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="mathdrill",
    help="Adaptive math practice sessions",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "revealed": "bold yellow",
    "info": "bold cyan",
    "dim": "dim",
}


def configure_logging(settings: Settings) -> None:
    """Route loguru output to stderr and, optionally, a rotating log file."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="1 MB", retention=3)


# =============================================================================
# Rendering
# =============================================================================


def _fmt(values: tuple[Any, ...]) -> str:
    return ", ".join("-" if v is None else str(v) for v in values) or "-"


def _outcome_label(record: ProblemRecord) -> tuple[str, str]:
    if record.overall_correct:
        return "Correct", STYLES["correct"]
    if record.was_revealed:
        return "Revealed", STYLES["revealed"]
    if record.timed_out:
        return "Time's up", STYLES["incorrect"]
    return "Incorrect", STYLES["incorrect"]


def render_problem(controller: SessionController) -> None:
    problem = controller.problem
    state = controller.state
    step_two = controller.current_step is Step.SECOND
    prompt = problem.second_step_prompt if step_two else problem.prompt

    lines = [f"[bold]{prompt}[/bold]"]
    if step_two:
        lines.append("[dim]Step 2: calculate the final result.[/dim]")
    elif problem.slots > 1:
        lines.append(f"[dim]Enter {problem.slots} values separated by commas.[/dim]")

    left = controller.attempts_left
    lines.append(
        f"[dim]Attempts left: {'unlimited' if left is None else left}"
        f"  •  Level {state.current_difficulty}"
        f"  •  Streak {state.consecutive_correct_streak}[/dim]"
    )
    remaining = controller.time_remaining()
    if remaining is not None:
        lines.append(f"[yellow]Time left: {remaining:.0f}s[/yellow]")

    console.print(
        Panel(
            "\n".join(lines),
            title=f"[bold cyan]Problem {state.completed_count + 1}/{state.target_problem_count}[/bold cyan]",
            border_style="cyan",
        )
    )


def render_record(record: ProblemRecord, title: str | None = None) -> None:
    label, style = _outcome_label(record)
    lines = [record.problem.prompt]
    for index, answers in enumerate(record.answers_given):
        step_name = "Result" if index == 1 else "Answer"
        lines.append(f"{step_name}: {_fmt(answers)}")
    if not record.overall_correct:
        lines.append(f"[green]Correct: {' | '.join(_fmt(a) for a in record.correct_answers)}[/green]")
    lines.append(
        f"[dim]Attempts {'/'.join(str(n) for n in record.attempts_used)}"
        f"  •  {record.time_spent_seconds:.1f}s"
        f"  •  Level {record.difficulty_at_generation}[/dim]"
    )
    console.print(
        Panel("\n".join(lines), title=title or f"[{style}]{label}[/{style}]", border_style=style.split()[-1])
    )


def render_summary(summary: SessionSummary) -> None:
    table = Table(title="Session Results", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Problems", str(summary.total))
    table.add_row("Correct", f"[green]{summary.correct}[/green]")
    table.add_row("Revealed", f"[yellow]{summary.revealed}[/yellow]")
    table.add_row("Timed out", str(summary.timed_out))
    table.add_row("Accuracy", f"{summary.accuracy:.1f}%")
    table.add_row("Avg time", f"{summary.average_time_seconds:.1f}s")
    table.add_row("Avg attempts", f"{summary.average_attempts:.1f}")
    table.add_row("Final level", str(summary.final_difficulty))
    console.print(table)


# =============================================================================
# Interactive Loop
# =============================================================================


def review_history(controller: SessionController) -> None:
    navigator: ReviewNavigator | None = controller.enter_review()
    if navigator is None:
        console.print("[dim]Nothing to review yet.[/dim]")
        return
    try:
        while True:
            render_record(navigator.current, title=f"Review {navigator.position}")
            choice = Prompt.ask("[dim]'n' next, 'p' previous, 'q' back[/dim]", default="q").strip().lower()
            if choice == "n":
                navigator.next()
            elif choice == "p":
                navigator.prev()
            else:
                break
    finally:
        controller.exit_review()


def run_session(controller: SessionController) -> bool:
    """Drive a controller from the terminal. Returns False if the user quit early."""
    scheduler = controller.scheduler

    while not controller.is_complete:
        if controller.phase is SessionPhase.ACTIVE:
            render_problem(controller)
            raw = Prompt.ask("Answer ('r' reveal, 'h' history, 'q' quit)", default="", show_default=False)
            scheduler.run_pending()
            if controller.phase is not SessionPhase.ACTIVE:
                continue

            command = raw.strip().lower()
            if command == "q":
                return False
            if command == "h":
                review_history(controller)
                continue
            if command == "r":
                if controller.reveal_answer() is None:
                    console.print("[dim]Reveal is only available for the blanks.[/dim]")
                continue

            result = controller.submit_answer([part for part in raw.split(",")])
            if result.status is SubmissionStatus.INVALID_INPUT:
                for message in result.slot_errors:
                    if message:
                        console.print(f"[yellow]{message}[/yellow]")
            elif result.status is SubmissionStatus.RETRY:
                marks = " ".join("✓" if ok else "✗" for ok in result.per_slot_correct)
                console.print(f"[red]Incorrect. Try again.[/red] [dim]{marks}[/dim]")
            elif result.status is SubmissionStatus.ADVANCED_TO_SECOND_STEP:
                console.print("[green]Correct! Now calculate the final result.[/green]")
            elif result.leveled_up:
                console.print(f"[bold magenta]Level up! Difficulty is now {controller.difficulty}.[/bold magenta]")

        elif controller.phase is SessionPhase.SHOWING_OUTCOME:
            record = controller.last_record
            if record is not None:
                render_record(record)
            if controller.auto_advance_armed:
                wait = scheduler.seconds_until_next()
                if wait:
                    time.sleep(wait)
                scheduler.run_pending()
                continue

            choice = Prompt.ask("[dim]Enter to continue, 'h' history, 'q' quit[/dim]", default="", show_default=False)
            choice = choice.strip().lower()
            if choice == "q":
                return False
            if choice == "h":
                review_history(controller)
                continue
            controller.advance()

    return True


# =============================================================================
# Commands
# =============================================================================


@app.command()
def topics() -> None:
    """List available practice topics."""
    table = Table(title="Topics")
    table.add_column("Topic", style="cyan")
    table.add_column("Levels", justify="right")
    for name in list_topics():
        table.add_row(name, str(get_source(name).max_difficulty))
    console.print(table)


@app.command()
def practice(
    topic: Annotated[str, typer.Argument(help="Topic to practice")],
    count: Annotated[Optional[int], typer.Option("--count", "-n", min=1, help="Number of problems")] = None,
    difficulty: Annotated[Optional[int], typer.Option("--difficulty", "-d", min=1, help="Starting level")] = None,
    max_attempts: Annotated[
        Optional[int], typer.Option("--max-attempts", "-a", min=0, help="Attempts per step (0 = unlimited)")
    ] = None,
    time_limit: Annotated[
        Optional[int], typer.Option("--time-limit", "-t", min=0, help="Seconds per problem (0 = no limit)")
    ] = None,
    adaptive: Annotated[Optional[bool], typer.Option("--adaptive/--no-adaptive", help="Adaptive difficulty")] = None,
    compensation: Annotated[
        Optional[bool], typer.Option("--compensation/--no-compensation", help="Add a problem per miss")
    ] = None,
    auto_continue: Annotated[
        Optional[bool], typer.Option("--auto-continue/--no-auto-continue", help="Advance automatically")
    ] = None,
    save: Annotated[bool, typer.Option("--save", help="Store these settings for the topic")] = False,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed for problem generation")] = None,
) -> None:
    """
    Run a practice session.

    Examples:
        mathdrill practice multiplication
        mathdrill practice fractions -n 5 -a 3
        mathdrill practice distributive --compensation --auto-continue
    """
    app_settings = get_settings()
    try:
        source = get_source(topic, seed=seed)
    except UnknownTopicError as e:
        console.print(f"[red]{e}[/red] Available: {', '.join(list_topics())}")
        raise typer.Exit(1)

    store = SettingsStore(app_settings.data_dir, defaults=app_settings.session_defaults())
    overrides = {
        "problem_count": count,
        "difficulty": difficulty,
        "max_attempts": max_attempts,
        "time_limit_seconds": time_limit,
        "adaptive_difficulty_enabled": adaptive,
        "compensation_enabled": compensation,
        "auto_continue_enabled": auto_continue,
    }
    stored = store.load(source.topic)
    session_settings = stored.model_copy(update={k: v for k, v in overrides.items() if v is not None})
    session_settings = SessionSettings.model_validate(session_settings.model_dump())
    if save:
        store.save(source.topic, session_settings)
        console.print(f"[dim]Saved settings for {source.topic}.[/dim]")

    progress = ProgressStore(app_settings.data_dir, user_id=app_settings.user_id)

    try:
        controller = SessionController(source, session_settings)
    except PracticeError as e:
        console.print(f"[red]Could not start session: {e}[/red]")
        raise typer.Exit(1)

    progress.attach(controller.events)
    console.print(
        Panel(
            f"[bold cyan]{source.topic.upper()}[/bold cyan]\n"
            f"Problems: {session_settings.problem_count}  •  Level: {controller.difficulty}  •  "
            f"Attempts: {session_settings.max_attempts or 'unlimited'}",
            title="Practice",
            border_style="cyan",
        )
    )

    try:
        finished = run_session(controller)
    except PracticeError as e:
        logger.error(f"Session aborted: {e}")
        console.print(f"[red]Session aborted: {e}[/red]")
        raise typer.Exit(1)
    finally:
        controller.close()

    if not finished:
        console.print("[yellow]Session ended early.[/yellow]")
    render_summary(controller.summary())


@app.command()
def progress(
    export: Annotated[Optional[Path], typer.Option("--export", "-e", help="Write progress as CSV")] = None,
    reset: Annotated[bool, typer.Option("--reset", help="Clear all stored progress")] = False,
) -> None:
    """Show aggregated progress across sessions."""
    app_settings = get_settings()
    store = ProgressStore(app_settings.data_dir, user_id=app_settings.user_id)

    if reset:
        store.reset()
        console.print("[yellow]Progress reset.[/yellow]")
        return

    if export is not None:
        export.write_text(store.export_csv(), encoding="utf-8")
        console.print(f"[green]Exported progress to {export}[/green]")
        return

    data = store.progress
    if not data.topics:
        console.print("[dim]No progress recorded yet.[/dim]")
        return

    table = Table(title=f"Progress • {data.streak_days}-day streak")
    table.add_column("Topic", style="cyan")
    table.add_column("Done", justify="right")
    table.add_column("Correct", justify="right")
    table.add_column("Rate", justify="right")
    table.add_column("Avg time", justify="right")
    table.add_column("Level", justify="right")
    table.add_column("Last practiced")
    for item in data.topics.values():
        table.add_row(
            item.topic,
            str(item.total_completed),
            str(item.correct_answers),
            f"{item.success_rate:.1f}%",
            f"{item.average_time:.1f}s",
            str(item.difficulty_level),
            item.last_practiced,
        )
    console.print(table)


@app.command()
def settings(topic: Annotated[str, typer.Argument(help="Topic name")]) -> None:
    """Show the stored session settings for a topic."""
    app_settings = get_settings()
    try:
        source = get_source(topic)
    except UnknownTopicError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    store = SettingsStore(app_settings.data_dir, defaults=app_settings.session_defaults())
    current = store.load(source.topic)
    table = Table(title=f"Settings • {source.topic}")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", justify="right")
    for name, value in current.model_dump().items():
        table.add_row(name, str(value))
    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    configure_logging(get_settings())
    app()


if __name__ == "__main__":
    main()
