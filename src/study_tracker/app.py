"""Interactive CLI application."""
import sqlite3
from datetime import date

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from study_tracker.db import init_db, DEFAULT_DB_PATH
from study_tracker.errors import StudyTrackerError
from study_tracker.logging_config import configure_logging
from study_tracker.models import SUBJECTS
from study_tracker.progress import get_study_progress
from study_tracker.records import calculate_study_minutes, create_study_record, get_study_stats
from study_tracker.reviews import (
    complete_review_stage, get_review_items, get_today_tasks_for_user,
)
from study_tracker.schedule import classify_result, is_overdue, stage_label
from study_tracker.settings import (
    get_allow_out_of_order_completion, set_allow_out_of_order_completion,
)
from study_tracker.stats import get_cached_review_stats, get_grade_rankings
from study_tracker.users import (
    create_user, get_current_user_id, get_user, list_users, set_current_user,
)

console = Console()

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """Raised when the user types q/menu inside a session to go back to the menu."""


def session_prompt(text: str, **kwargs) -> str:
    answer = Prompt.ask(text, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(text: str, choices: list[str] | None = None, **kwargs) -> int:
    while True:
        answer = session_prompt(text, **kwargs)
        try:
            value = int(answer)
        except ValueError:
            console.print("[red]Please enter a number.[/red]")
            continue
        if choices and str(value) not in choices:
            console.print(f"[red]Choose one of: {', '.join(choices)}[/red]")
            continue
        return value


def show_welcome():
    console.print(Panel(
        "[bold]Study Tracker[/bold]\n[dim]Log sessions, review on a 1/3/7/14/30 day schedule[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("today", "Today's review tasks"),
        ("review", "Work through today's reviews"),
        ("record", "Log a study session"),
        ("items", "All review items"),
        ("progress", "Progress by subject"),
        ("ranking", "Grade rankings"),
        ("settings", "Scheduler settings"),
        ("user", "Switch or create user"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def require_user(db_path: str) -> str:
    user_id = get_current_user_id(db_path)
    if user_id and get_user(db_path, user_id):
        return user_id
    console.print("[yellow]No user selected.[/yellow]")
    return cmd_user(db_path)


def tasks_table(tasks: list) -> Table:
    table = Table(title=f"Today's Tasks ({date.today().isoformat()})")
    table.add_column("Subject", style="cyan")
    table.add_column("Unit")
    table.add_column("Stage")
    table.add_column("Scheduled", justify="right")
    table.add_column("Status")
    for task in tasks:
        item = task.review_item
        status = (
            f"[red]{task.days_past_due} day(s) overdue[/red]" if task.is_overdue
            else "[green]Due today[/green]"
        )
        table.add_row(
            item.subject, item.unit,
            f"{task.stage} ({stage_label(task.stage)})",
            task.scheduled_date.isoformat(), status,
        )
    return table


def cmd_today(db_path: str):
    user_id = require_user(db_path)
    tasks = get_today_tasks_for_user(db_path, user_id)
    if not tasks:
        console.print("[green]Nothing due today.[/green]")
        return
    console.print(tasks_table(tasks))


def run_review_session(db_path: str, tasks: list) -> int:
    """Prompt for an understanding score per task; returns how many were completed."""
    if not tasks:
        console.print("[green]Nothing due today.[/green]")
        return 0
    done = 0
    console.print(f"\n[bold]Review Session[/bold] - {len(tasks)} tasks [dim](q to stop)[/dim]\n")
    for i, task in enumerate(tasks, 1):
        item = task.review_item
        console.print(Panel(
            f"[bold]{item.unit}[/bold]\n{item.content}",
            title=f"Task {i}/{len(tasks)} - {item.subject}, stage {task.stage} ({stage_label(task.stage)})",
            border_style="red" if task.is_overdue else "cyan",
        ))
        understanding = session_int_prompt(
            "Understanding (0-100)", choices=[str(n) for n in range(101)],
        )
        updated = complete_review_stage(db_path, item.id, task.stage, understanding)
        label = classify_result(understanding)
        color = "green" if label == "success" else "yellow"
        console.print(f"[{color}]{label.capitalize()}[/{color}]", end="")
        if updated.is_completed:
            console.print(" - [bold]all five reviews done![/bold]\n")
        else:
            console.print(f" - next: stage {updated.current_stage} on "
                          f"{updated.progress[updated.current_stage - 1].scheduled_date.isoformat()}\n")
        done += 1
    return done


def cmd_review(db_path: str):
    user_id = require_user(db_path)
    tasks = get_today_tasks_for_user(db_path, user_id)
    try:
        done = run_review_session(db_path, tasks)
    except SessionExitRequested:
        console.print("[dim]Review paused.[/dim]")
        return
    if done:
        stats = get_cached_review_stats(db_path, user_id)
        console.print(f"Completed {done} review(s). Average understanding: "
                      f"[bold]{stats.average_understanding:.1f}[/bold]")


def cmd_record(db_path: str):
    user_id = require_user(db_path)
    try:
        subject = session_prompt("Subject", choices=list(SUBJECTS))
        study_date = session_prompt("Study date (YYYY-MM-DD)", default=date.today().isoformat())
        start_time = session_prompt("Start time (HH:MM)")
        end_time = session_prompt("End time (HH:MM)")
        content = session_prompt("What did you study?")
        details = session_prompt("Details", default="")
        memo = session_prompt("Memo", default="")
    except SessionExitRequested:
        console.print("[dim]Record cancelled.[/dim]")
        return
    should_review = Confirm.ask("Add to review list?", default=True)
    record = create_study_record(
        db_path, user_id,
        study_date=study_date,
        subject=subject,
        study_minutes=calculate_study_minutes(start_time, end_time),
        start_time=start_time,
        end_time=end_time,
        content=content,
        details=details,
        memo=memo,
        should_review=should_review,
    )
    console.print(f"[green]Saved {record.study_minutes} min of {record.subject}.[/green]")


def cmd_items(db_path: str):
    user_id = require_user(db_path)
    items = get_review_items(db_path, user_id)
    if not items:
        console.print("[yellow]No review items yet. Use 'record' to add one.[/yellow]")
        return
    today = date.today()
    table = Table(title="Review Items")
    table.add_column("Subject", style="cyan")
    table.add_column("Unit")
    for stage in range(1, 6):
        table.add_column(str(stage), justify="center")
    for item in items:
        cells = []
        for p in item.progress:
            if p.is_completed:
                cells.append(f"[green]{p.understanding}[/green]")
            elif is_overdue(p, today):
                cells.append(f"[red]{p.scheduled_date.strftime('%m-%d')}[/red]")
            else:
                cells.append(f"[dim]{p.scheduled_date.strftime('%m-%d')}[/dim]")
        table.add_row(item.subject, item.unit, *cells)
    console.print(table)


def cmd_progress(db_path: str):
    user_id = require_user(db_path)
    table = Table(title="Progress by Subject")
    table.add_column("Subject", style="cyan")
    table.add_column("Units", justify="right")
    table.add_column("Mastered", justify="right")
    table.add_column("Pending", justify="right")
    table.add_column("Overdue", justify="right")
    table.add_column("Avg", justify="right")
    table.add_column("Minutes", justify="right")
    table.add_column("Last Study")
    for p in get_study_progress(db_path, user_id):
        if not p.total_units and not p.pending_reviews:
            continue
        table.add_row(
            p.subject, str(p.total_units), str(p.completed_units), str(p.pending_reviews),
            f"[red]{p.overdue_reviews}[/red]" if p.overdue_reviews else "0",
            f"{p.average_understanding:.1f}", str(p.total_study_time),
            p.last_study_date.isoformat() if p.last_study_date else "-",
        )
    console.print(table)
    stats = get_study_stats(db_path, user_id)
    console.print(f"Study time: [bold]{stats.total_hours}h[/bold] total, "
                  f"[bold]{stats.weekly_hours}h[/bold] this week")
    console.print("  " + "  ".join(f"{d['date'][5:]} {d['hours']}h" for d in stats.recent_days))


def cmd_ranking(db_path: str):
    rankings = get_grade_rankings(db_path)
    if not rankings:
        console.print("[yellow]No reviews completed yet.[/yellow]")
        return
    for grade in sorted(rankings):
        table = Table(title=f"Grade {grade}")
        table.add_column("#", justify="right")
        table.add_column("Name", style="cyan")
        table.add_column("Avg Understanding", justify="right")
        table.add_column("Reviews", justify="right")
        for rank, entry in enumerate(rankings[grade], 1):
            table.add_row(str(rank), entry["user_name"],
                          f"{entry['average_understanding']}", str(entry["total_reviews"]))
        console.print(table)


def cmd_settings(db_path: str):
    current = get_allow_out_of_order_completion(db_path)
    console.print(f"Out-of-order stage completion: [bold]{'on' if current else 'off'}[/bold]")
    if Confirm.ask("Toggle?", default=False):
        set_allow_out_of_order_completion(db_path, not current)
        console.print(f"[green]Now {'off' if current else 'on'}.[/green]")


def cmd_user(db_path: str) -> str:
    users = list_users(db_path)
    for i, user in enumerate(users, 1):
        console.print(f"  [cyan]{i}[/cyan]) {user.display_name}" + (f" [dim]({user.grade})[/dim]" if user.grade else ""))
    choices = [str(i) for i in range(1, len(users) + 1)] + ["new"]
    choice = Prompt.ask("Select user", choices=choices, default="new" if not users else "1")
    if choice == "new":
        name = Prompt.ask("Display name")
        grade = Prompt.ask("Grade", default="") or None
        user = create_user(db_path, name, grade=grade)
    else:
        user = users[int(choice) - 1]
    set_current_user(db_path, user.id)
    console.print(f"[green]Hello, {user.display_name}![/green]")
    return user.id


def main():
    configure_logging()
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="today").strip().lower()
        try:
            if choice == "today":
                cmd_today(db_path)
            elif choice == "review":
                cmd_review(db_path)
            elif choice == "record":
                cmd_record(db_path)
            elif choice == "items":
                cmd_items(db_path)
            elif choice == "progress":
                cmd_progress(db_path)
            elif choice == "ranking":
                cmd_ranking(db_path)
            elif choice == "settings":
                cmd_settings(db_path)
            elif choice == "user":
                cmd_user(db_path)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Keep it up![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except (StudyTrackerError, ValueError, sqlite3.Error) as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
