"""Interactive CLI application."""
import logging
import os
from datetime import datetime, timedelta

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Prompt, IntPrompt

from exam_coach.config import load_config
from exam_coach.db import init_db, DEFAULT_DB_PATH
from exam_coach.engine import Engine
from exam_coach.errors import EngineError, PreconditionViolatedError
from exam_coach.models import CONFIDENCE_LEVELS, ERROR_TYPES, FLASHCARD_QUALITIES, PERFORMANCE_BUCKETS
from exam_coach.seed import seed_all, is_seeded
from exam_coach.study import (
    apply_suggestion, get_exam_date, get_subjects, record_study_session, set_exam_date,
)
from exam_coach.flashcards import get_due_cards, record_flashcard_result
from exam_coach.dashboard import (
    get_insights, get_prediction, get_priority_rows, get_review_stats, get_subject_scores,
    get_tier_summary,
)
from exam_coach.review import battle_attempt, complete_review, get_available_topics, refresh_unlocks

console = Console()
logger = logging.getLogger(__name__)

LEVEL_COLORS = {"critical": "red", "important": "yellow", "moderate": "green", "undefined": "grey50"}
SEVERITY_COLORS = {"critical": "bold red", "high": "red", "medium": "yellow", "low": "dim"}


def show_welcome():
    console.print(Panel(
        "[bold]Exam Coach[/bold]\n[dim]Adaptive study planner[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("dashboard", "Readiness tiers + priorities"),
        ("battle", "Review an unlocked topic"),
        ("flashcards", "Flashcard drill"),
        ("log", "Log a study session"),
        ("suggestions", "Weight suggestions"),
        ("predict", "Performance forecast"),
        ("insights", "Study insights"),
        ("exam", "Set exam date"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def cmd_dashboard(db_path: str, engine: Engine):
    now = datetime.now()
    exam_date = get_exam_date(db_path)
    header = f"Exam: {exam_date:%Y-%m-%d}" if exam_date else "No exam date set"
    console.print(Panel(f"[bold]{header}[/bold]", title="Readiness Dashboard", border_style="blue"))

    tiers = "  ".join(
        f"[{row['color']}]{row['label']}: {row['count']}[/{row['color']}]"
        for row in get_tier_summary(db_path, engine)
    )
    console.print(f"\n  {tiers}\n")

    table = Table(title="Subjects")
    table.add_column("Subject", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Status")
    for s in get_subject_scores(db_path, engine):
        accuracy = f"{s['accuracy']}%" if s["accuracy"] is not None else "-"
        table.add_row(s["name"], str(s["weight"] or "-"), accuracy, f"[{s['color']}]{s['label']}[/{s['color']}]")
    console.print(table)

    table = Table(title="Top Priorities")
    table.add_column("Topic", style="cyan")
    table.add_column("Subject")
    table.add_column("Score", justify="right")
    table.add_column("Level")
    for row in get_priority_rows(db_path, engine, now):
        color = LEVEL_COLORS[row["level"]]
        name = row["topic"] + (" [dim](locked)[/dim]" if row["locked"] else "")
        score = f"{row['score']:.2f}" if row["score"] is not None else "-"
        table.add_row(name, row["subject"], score, f"[{color}]{row['level']}[/{color}]")
    console.print(table)

    stats = get_review_stats(db_path, engine, now)
    console.print(f"\n  Topics: [bold]{stats['total']}[/bold]  |  "
                  f"Locked: [bold]{stats['locked']}[/bold]  |  "
                  f"Available: [bold]{stats['available']}[/bold]  |  "
                  f"Reviews: [bold]{stats['total_reviews']}[/bold]")


def cmd_battle(db_path: str, engine: Engine):
    now = datetime.now()
    unlocked = refresh_unlocks(db_path, engine, now)
    if unlocked:
        console.print(f"[green]{len(unlocked)} topic(s) unlocked for review.[/green]")
    topics = get_available_topics(db_path, engine, now)
    if not topics:
        console.print("[yellow]Every topic is locked right now. Come back later![/yellow]")
        return
    for t in topics:
        tier = engine.classify_readiness(t)
        console.print(f"  [cyan]{t.id}[/cyan]) {t.name} [dim]({tier.value}, cycle {t.current_review_cycle})[/dim]")
    topic_id = IntPrompt.ask("Select topic", choices=[str(t.id) for t in topics])
    count = IntPrompt.ask("How many questions did you solve?", default=10)

    attempts = []
    for i in range(1, count + 1):
        correct = Prompt.ask(f"Q{i} correct?", choices=["y", "n"], default="y") == "y"
        confidence = Prompt.ask("Confidence", choices=list(CONFIDENCE_LEVELS), default="certeza")
        error_type = None
        if not correct:
            error_type = Prompt.ask("Error type", choices=list(ERROR_TYPES), default="nao_definido")
        attempts.append(battle_attempt(topic_id, correct, confidence, error_type, xp_earned=10 if correct else 0))

    try:
        topic = complete_review(db_path, engine, topic_id, attempts, datetime.now())
    except PreconditionViolatedError as e:
        console.print(f"[red]{e}[/red]")
        return
    tier = engine.classify_readiness(topic)
    right = sum(1 for a in attempts if a.is_correct)
    console.print(f"[bold]Score: {right}/{count}[/bold]  Tier: [bold]{tier.value}[/bold]")
    if topic.is_blocked:
        console.print(f"[dim]Next review: {topic.next_review_date:%Y-%m-%d} (cycle {topic.current_review_cycle})[/dim]")
    else:
        console.print("[green]Mastered! Topic stays unlocked.[/green]")


def cmd_flashcards(db_path: str, engine: Engine):
    console.print("\n[bold]Flashcard Drill[/bold]")
    cards = get_due_cards(db_path, datetime.now(), limit=15)
    if not cards:
        console.print("[yellow]No flashcards due right now![/yellow]")
        return
    console.print(f"\n[bold]Flashcard Session[/bold] ({len(cards)} cards)\n")
    for i, card in enumerate(cards, 1):
        console.print(Panel(card.front, title=f"Card {i}/{len(cards)}", border_style="cyan"))
        Prompt.ask("[dim]Press Enter to reveal answer[/dim]")
        console.print(Panel(card.back, border_style="green"))
        quality = Prompt.ask("How was it?", choices=list(FLASHCARD_QUALITIES), default="good")
        updated = record_flashcard_result(db_path, card.id, quality, datetime.now(), engine.config)
        console.print(f"[dim]Next in {updated.interval_days} day(s)[/dim]\n")


def cmd_log(db_path: str, engine: Engine):
    subjects = get_subjects(db_path)
    if not subjects:
        console.print("[yellow]No subjects yet.[/yellow]")
        return
    for s in subjects:
        console.print(f"  [cyan]{s.id}[/cyan]) {s.name}")
    subject_id = IntPrompt.ask("Subject", choices=[str(s.id) for s in subjects])
    subject = next(s for s in subjects if s.id == subject_id)
    topic = None
    if subject.topics:
        for t in subject.topics:
            console.print(f"  [cyan]{t.id}[/cyan]) {t.name}")
        topic_id = IntPrompt.ask("Topic (0 = whole subject)", default=0)
        topic = next((t.name for t in subject.topics if t.id == topic_id), None)
    duration = IntPrompt.ask("Minutes studied", default=60)
    performance = Prompt.ask("Performance", choices=list(PERFORMANCE_BUCKETS), default="medium")
    start = datetime.now() - timedelta(minutes=duration)
    record_study_session(db_path, subject.name, start, duration, performance, topic=topic)
    console.print("[green]Session logged.[/green]")


def cmd_suggestions(db_path: str, engine: Engine):
    suggestions = engine.generate_weight_suggestions(get_subjects(db_path), get_exam_date(db_path), datetime.now())
    if not suggestions:
        console.print("[green]Weights look balanced. No suggestions.[/green]")
        return
    table = Table(title="Weight Suggestions")
    table.add_column("#", justify="right")
    table.add_column("Subject", style="cyan")
    table.add_column("Change", justify="right")
    table.add_column("Impact")
    table.add_column("Why")
    for i, s in enumerate(suggestions, 1):
        table.add_row(str(i), s.subject_name, f"{s.current_weight} → {s.suggested_weight}", s.impact, s.message)
    console.print(table)
    pick = IntPrompt.ask("Apply which suggestion? (0 = none)", default=0)
    if 1 <= pick <= len(suggestions):
        updated = apply_suggestion(db_path, suggestions[pick - 1])
        console.print(f"[green]{updated.name} weight is now {updated.weight}.[/green]")


def cmd_predict(db_path: str, engine: Engine):
    p = get_prediction(db_path, engine, datetime.now())
    if p.insufficient_data:
        console.print("[yellow]Not enough study history yet; showing neutral estimates.[/yellow]")
    console.print(Panel(
        f"Expected exam score: [bold]{p.exam_performance}%[/bold]\n"
        f"Goal probability: [bold]{p.goal_achievement_probability:.0%}[/bold]\n"
        f"Recommended study: [bold]{p.recommended_study_time}h/day[/bold]\n"
        f"Confidence: [bold]{p.confidence_level:.0%}[/bold]",
        title="Forecast", border_style="blue",
    ))
    if p.time_to_mastery:
        table = Table(title="Per Subject")
        table.add_column("Subject", style="cyan")
        table.add_column("Hours to mastery", justify="right")
        table.add_column("Improvement potential", justify="right")
        for subject, hours in p.time_to_mastery.items():
            gain = p.weakness_improvement.get(subject)
            table.add_row(subject, str(hours), f"{gain}%/h" if gain is not None else "-")
        console.print(table)


def cmd_insights(db_path: str, engine: Engine):
    found = get_insights(db_path, engine, datetime.now())
    if not found:
        console.print("[green]No insights yet. Keep studying![/green]")
        return
    for insight in found:
        style = SEVERITY_COLORS.get(insight.severity, "white")
        body = insight.description + (f"\n[dim]{insight.suggestion}[/dim]" if insight.suggestion else "")
        console.print(Panel(body, title=f"[{style}]{insight.title}[/{style}]", border_style="cyan"))


def cmd_exam(db_path: str, engine: Engine):
    raw = Prompt.ask("Exam date (YYYY-MM-DD, blank to clear)", default="")
    if not raw.strip():
        set_exam_date(db_path, None)
        console.print("[dim]Exam date cleared.[/dim]")
        return
    try:
        exam_date = datetime.strptime(raw.strip(), "%Y-%m-%d")
    except ValueError:
        console.print(f"[red]Not a date: {raw}[/red]")
        return
    set_exam_date(db_path, exam_date)
    console.print(f"[green]Exam date set to {exam_date:%Y-%m-%d}.[/green]")


COMMANDS = {
    "dashboard": cmd_dashboard,
    "battle": cmd_battle,
    "flashcards": cmd_flashcards,
    "log": cmd_log,
    "suggestions": cmd_suggestions,
    "predict": cmd_predict,
    "insights": cmd_insights,
    "exam": cmd_exam,
}


def configure_logging():
    level = logging.DEBUG if os.environ.get("EXAM_COACH_DEBUG") == "1" else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main():
    configure_logging()
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(db_path)
    if first_run:
        console.print("[green]Ready![/green]\n")
    engine = Engine(load_config(db_path))

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="dashboard").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]Good luck on your exam![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(db_path, engine)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except EngineError as e:
            console.print(f"[red]Error: {e}[/red]")
        except Exception as e:
            logger.exception("Command %s failed", choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
