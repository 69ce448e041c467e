"""Interactive CLI application."""
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Prompt, IntPrompt

from jlpt_planner.bank import load_bank
from jlpt_planner.carryover import ensure_carryover_for_today, log_practice_event, mark_carryover_cleared
from jlpt_planner.clock import SystemClock
from jlpt_planner.config import configure_logging, get_settings
from jlpt_planner.db import SqliteStore
from jlpt_planner.models import LEVELS, SKILLS
from jlpt_planner.plan import generate_next_week, resolve_today, start_first_week
from jlpt_planner.progress import mastery_percent, record_set_answer
from jlpt_planner.promotion import latest_entry, load_promotion_state
from jlpt_planner.roadmap import day_status, find_set, load_roadmap
from jlpt_planner.weakness import rank_skills
from jlpt_planner.weekly_check import (
    answer_weekly_check, build_weekly_check_session, complete_weekly_check,
    load_used_ids, load_weekly_check_session, save_weekly_check_session,
)

console = Console()

STATUS_COLORS = {"finish": "green", "in_progress": "yellow", "todo": "dim"}


def show_welcome():
    console.print(Panel(
        "[bold]JLPT Adaptive Practice[/bold]\n[dim]Weekly roadmap and level tracking[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("start", "Set goal and build week 1"),
        ("today", "Today's plan"),
        ("roadmap", "This week's 7 days"),
        ("practice", "Work through a practice set"),
        ("check", "Day 7 weekly check"),
        ("next", "Generate next week"),
        ("status", "Level, streak and history"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def ask_question(question) -> bool:
    """Show one question and return whether it was answered correctly."""
    console.print(f"[bold]{question.prompt}[/bold]\n")
    for i, choice in enumerate(question.choices, 1):
        console.print(f"  [cyan]{i})[/cyan] {choice}")
    answer = Prompt.ask("\nYour answer", choices=[str(i) for i in range(1, len(question.choices) + 1)])
    is_correct = int(answer) - 1 == question.correct_index
    if is_correct:
        console.print("[green]Correct![/green]")
    else:
        console.print(f"[red]Incorrect.[/red] Answer: [green]{question.choices[question.correct_index]}[/green]")
    if question.explanation:
        console.print(f"[dim]{question.explanation}[/dim]")
    console.print()
    return is_correct


def cmd_start(store, bank, clock):
    console.print("\n[bold]Setup[/bold]")
    goal = Prompt.ask("Goal level", choices=list(LEVELS), default="N3")
    estimate = Prompt.ask("Diagnostic level", choices=list(LEVELS) + ["none"], default="none")
    rates = {}
    for skill in SKILLS:
        rates[skill] = IntPrompt.ask(f"Diagnostic {skill} score (%)", default=50)
    roadmap = start_first_week(
        store, bank, clock, goal, estimate=None if estimate == "none" else estimate, rates=rates,
    )
    level = roadmap.days[0].practice_level
    console.print(f"[green]Week {roadmap.week_id} ready at {level}, starting {roadmap.days[0].date_iso}.[/green]")


def cmd_today(store, clock):
    plan = resolve_today(store, clock)
    if plan is None:
        console.print("[yellow]No roadmap yet. Use 'start' first.[/yellow]")
        return
    header = f"{plan.week_id} - Day [bold]{plan.day_index}[/bold] ({plan.date_iso})"
    header += f"\n[cyan]Level {plan.practice_level}[/cyan] [dim](goal {plan.goal_level})[/dim]"
    console.print(Panel(header, title="Today's Plan"))
    if plan.is_weekly_check_day:
        console.print("[bold]Weekly check day.[/bold] Use 'check' to take the 30-question check.")
        return

    carryover = ensure_carryover_for_today(store, clock)
    if not carryover.cleared:
        console.print(f"[yellow]{len(carryover.qids)} question(s) from yesterday to clear first.[/yellow]")

    table = Table(title="Sets")
    table.add_column("Set", style="cyan")
    table.add_column("Questions", justify="right")
    table.add_column("Mastered", justify="right")
    for practice_set in plan.sets:
        done = "[green]done[/green]" if practice_set.progress.finished else f"{mastery_percent(practice_set.progress)}%"
        table.add_row(practice_set.set_id, str(len(practice_set.question_ids)), done)
    console.print(table)
    console.print("  " + "  |  ".join(
        f"{skill}: [bold]{plan.allocation[skill]}[/bold] sets / {plan.question_counts[skill]} q" for skill in SKILLS
    ))


def cmd_roadmap(store):
    roadmap = load_roadmap(store)
    if roadmap is None:
        console.print("[yellow]No roadmap yet. Use 'start' first.[/yellow]")
        return
    table = Table(title=f"Roadmap {roadmap.week_id}")
    table.add_column("Day", justify="right")
    table.add_column("Date")
    table.add_column("Focus")
    table.add_column("Vocab", justify="right")
    table.add_column("Grammar", justify="right")
    table.add_column("Reading", justify="right")
    table.add_column("Status")
    for day in roadmap.days:
        if day.is_weekly_check_day:
            table.add_row(str(day.day_index), day.date_iso, "[magenta]Weekly check[/magenta]", "", "", "", "")
            continue
        status = day_status(day)
        allocation = day.allocation or {}
        table.add_row(
            str(day.day_index), day.date_iso, day.focus_skill,
            *(str(allocation.get(skill, 0)) for skill in SKILLS),
            f"[{STATUS_COLORS[status]}]{status}[/{STATUS_COLORS[status]}]",
        )
    console.print(table)


def run_carryover(store, bank, clock):
    carryover = ensure_carryover_for_today(store, clock)
    if carryover.cleared:
        return
    console.print(f"\n[bold]Yesterday's mistakes[/bold] - {len(carryover.qids)} questions\n")
    all_correct = True
    for qid in carryover.qids:
        question = bank.get(qid)
        if question is None:
            continue
        correct = ask_question(question)
        log_practice_event(store, clock, qid, correct, skill=question.skill, set_id="carryover")
        all_correct = all_correct and correct
    if all_correct:
        mark_carryover_cleared(store, clock)
        console.print("[green]Carryover cleared![/green]\n")
    else:
        console.print("[yellow]Some are still wrong; they'll come back next time.[/yellow]\n")


def cmd_practice(store, bank, clock, settings):
    plan = resolve_today(store, clock)
    if plan is None:
        console.print("[yellow]No roadmap yet. Use 'start' first.[/yellow]")
        return
    if plan.is_weekly_check_day:
        console.print("[yellow]Today is the weekly check. Use 'check'.[/yellow]")
        return
    run_carryover(store, bank, clock)

    open_sets = [s.set_id for s in plan.sets if not s.progress.finished]
    if not open_sets:
        console.print("[green]All of today's sets are done![/green]")
        return
    set_id = Prompt.ask("Set", choices=open_sets, default=open_sets[0])
    practice_set = find_set(load_roadmap(store), set_id, plan.day_index)
    console.print(f"\n[bold]{set_id}[/bold] - {practice_set.progress.total} questions at {practice_set.level_tag}\n")

    progress = practice_set.progress
    while not progress.finished and progress.remaining:
        qid = progress.remaining[0]
        question = bank.get(qid)
        if question is None:
            console.print(f"[red]Question {qid} missing from the bank; stopping.[/red]")
            return
        correct = ask_question(question)
        log_practice_event(
            store, clock, qid, correct, skill=question.skill, set_id=set_id,
            limit=settings.practice_log_limit,
        )
        progress = record_set_answer(store, set_id, qid, correct, clock, plan.day_index)
        if progress is None:
            return
        console.print(f"[dim]Mastered {len(progress.mastered)}/{progress.total}[/dim]\n")
        if not progress.finished and Prompt.ask("Continue?", choices=["y", "n"], default="y") == "n":
            break
    if progress.finished:
        console.print(f"[green]{set_id} complete![/green]")


def cmd_check(store, bank, clock, settings):
    plan = resolve_today(store, clock)
    if plan is None:
        console.print("[yellow]No roadmap yet. Use 'start' first.[/yellow]")
        return
    session = load_weekly_check_session(store)
    if session is None or session.week_id != plan.week_id:
        session = build_weekly_check_session(
            bank, plan.week_id, plan.goal_level, plan.practice_level, clock,
            used_ids=load_used_ids(store),
        )
        save_weekly_check_session(store, session)
    console.print(Panel(
        f"{len(session.questions)} questions at [bold]{session.level}[/bold] and one level up",
        title=f"Weekly Check {session.week_id}",
    ))

    for i, ref in enumerate(session.questions, 1):
        if ref.id in session.answers:
            continue
        question = bank.get(ref.id)
        if question is None:
            continue
        console.print(f"[dim]{i}/{len(session.questions)} - {ref.skill}[/dim]")
        answer_weekly_check(session, ref.id, ask_question(question))
        save_weekly_check_session(store, session)

    state, entry = complete_weekly_check(store, session, bank, clock, history_limit=settings.history_limit)
    table = Table(title="Weekly Check Result")
    table.add_column("Skill", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Rate", justify="right")
    for skill in SKILLS:
        score = entry.by_skill[skill]
        color = "green" if score.rate >= 90 else "red"
        table.add_row(skill, f"{score.correct}/{score.total}", f"[{color}]{score.rate}%[/{color}]")
    console.print(table)
    console.print(f"\n  Total: [bold]{entry.correct}/{entry.total} ({entry.rate}%)[/bold]  |  "
                  f"Streak: [bold]{entry.promotion_streak_after_save}[/bold]")
    if entry.promoted:
        console.print(f"\n  [green]Promoted to {state.current_practice_level}![/green]")


def cmd_next(store, bank, clock):
    force = Prompt.ask("Force even if this week hasn't started?", choices=["y", "n"], default="n") == "y"
    result = generate_next_week(store, bank, clock, force=force)
    if result.skipped:
        console.print(f"[yellow]Skipped: {result.roadmap.week_id} hasn't started yet.[/yellow]")
        return
    console.print(Panel(
        f"[bold]{result.roadmap.week_id}[/bold] from {result.roadmap.days[0].date_iso}\n"
        f"Level {result.practice_level}  |  {result.shape.kind} (rates from {result.source})",
        title="Next Week", border_style="green",
    ))


def cmd_status(store):
    roadmap = load_roadmap(store)
    state = load_promotion_state(store, roadmap.goal_level if roadmap else "N5")
    console.print(Panel(
        f"Goal [bold]{state.goal_level}[/bold]  |  Practice level [bold]{state.current_practice_level}[/bold]"
        f"  |  Streak [bold]{state.promotion_streak}[/bold]/3",
        title="Promotion", border_style="blue",
    ))
    entry = latest_entry(state)
    if entry is None:
        console.print("[dim]No weekly checks yet.[/dim]")
        return

    console.print("\n[bold]Weakest first:[/bold]")
    for skill, rate in rank_skills({s: entry.by_skill[s].rate / 100 for s in SKILLS}):
        console.print(f"  {skill:<8} {rate * 100:.0f}%")

    table = Table(title="History")
    table.add_column("Week")
    table.add_column("Level")
    table.add_column("Rate", justify="right")
    table.add_column("90% all", justify="center")
    table.add_column("Streak", justify="right")
    table.add_column("Promoted")
    for h in state.history[-8:]:
        table.add_row(
            h.week_id, h.level, f"{h.rate}%",
            "[green]yes[/green]" if h.all_skills_passed_90 else "[red]no[/red]",
            str(h.promotion_streak_after_save),
            f"[green]{h.current_practice_level_after_save}[/green]" if h.promoted else "",
        )
    console.print(table)


def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    store = SqliteStore(settings.db_path)
    bank = load_bank(settings.bank_path)
    clock = SystemClock()

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="today").strip().lower()
        try:
            if choice == "start":
                cmd_start(store, bank, clock)
            elif choice == "today":
                cmd_today(store, clock)
            elif choice == "roadmap":
                cmd_roadmap(store)
            elif choice == "practice":
                cmd_practice(store, bank, clock, settings)
            elif choice == "check":
                cmd_check(store, bank, clock, settings)
            elif choice == "next":
                cmd_next(store, bank, clock)
            elif choice == "status":
                cmd_status(store)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]頑張って![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
