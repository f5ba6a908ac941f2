"""
Main CLI application using Typer.
"""

import logging
import sys
from decimal import Decimal
from pathlib import Path
from typing import Annotated, List, NoReturn, Optional, Sequence, Tuple

import pendulum
import typer
from pendulum import Date
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..adapters.lesson_api_client import LessonAPIClient
from ..adapters.memory_store import InMemoryLessonStore
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import LessonPlannerError
from ..domain.finance import calculate_commission, calculate_net_amount, calculate_vat
from ..domain.models import (
    Biweekly,
    DateRange,
    Frequency,
    LessonTime,
    Monthly,
    RecurrenceRule,
    ScheduleRequest,
    Weekday,
    Weekly,
    WeeklyMultiple,
    day_name,
)
from ..domain.recurrence import expand, list_national_holidays
from ..domain.schedule_builder import ScheduleBuilder
from ..services.lesson_scheduler import LessonSchedulerService

app = typer.Typer(
    name="lessonplanner",
    help="Plan recurring lessons and compute payment breakdowns",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]


def _setup_logging(config: AppConfig) -> None:
    """Configure logging from the config's log level."""
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """
    Load the config file, falling back to defaults when no file exists.

    An explicitly given path must exist.
    """
    if config_file is not None:
        config = AppConfig.load_from_yaml(config_file)
    else:
        default_path = get_default_config_path()
        config = AppConfig.load_from_yaml(default_path) if default_path.exists() else AppConfig()

    _setup_logging(config)
    return config


def _parse_date(value: str, label: str) -> Date:
    try:
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    except ValueError as e:
        raise ValueError(f"Could not parse {label} '{value}' (expected YYYY-MM-DD): {e}") from e


def _build_rule(rule: str, weekdays: Sequence[int], day: Optional[int]) -> RecurrenceRule:
    """Translate the --rule/--weekday/--day options into a recurrence rule."""
    rule = rule.lower()

    if rule in ("weekly", "biweekly"):
        if len(weekdays) != 1:
            raise ValueError(f"A {rule} rule needs exactly one --weekday")
        return Weekly(weekdays[0]) if rule == "weekly" else Biweekly(weekdays[0])

    if rule == "multiple":
        return WeeklyMultiple(frozenset(weekdays))

    if rule == "monthly":
        if day is None:
            raise ValueError("A monthly rule needs --day")
        return Monthly(day)

    raise ValueError(f"Unknown rule '{rule}'. Use weekly, multiple, biweekly or monthly.")


def _print_dates(title: str, dates: Sequence[Date]) -> None:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Date", style="bold")
    table.add_column("Day")

    for idx, lesson_date in enumerate(dates, 1):
        table.add_row(
            str(idx),
            lesson_date.format("DD.MM.YYYY"),
            day_name(Weekday.of(lesson_date)),
        )

    console.print()
    console.print(table)


def _print_breakdown(title: str, rows: Sequence[Tuple[str, Decimal]]) -> None:
    table = Table(title=title, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Amount", justify="right")

    for label, value in rows:
        table.add_row(label, f"{value:,.2f}")

    console.print()
    console.print(table)
    console.print()


def _fail(error: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    raise typer.Exit(1)


@app.command()
def dates(
    start: Annotated[str, typer.Option("--start", help="Start date (YYYY-MM-DD)")],
    end: Annotated[str, typer.Option("--end", help="End date (YYYY-MM-DD)")],
    rule: Annotated[str, typer.Option("--rule", "-r", help="weekly, multiple, biweekly or monthly")] = "weekly",
    weekday: Annotated[Optional[List[int]], typer.Option("--weekday", "-w", help="1=Monday ... 7=Sunday; repeat for several days")] = None,
    day: Annotated[Optional[int], typer.Option("--day", "-d", help="Day of month for monthly rules")] = None,
):
    """
    List the dates a recurring lesson falls on.

    Examples:

        lessonplanner dates --start 2024-09-02 --end 2024-12-27 -w 2

        lessonplanner dates --start 2024-09-02 --end 2024-12-27 -r multiple -w 1 -w 3 -w 5

        lessonplanner dates --start 2024-09-02 --end 2025-06-30 -r monthly -d 15
    """
    try:
        date_range = DateRange(start=_parse_date(start, "start date"), end=_parse_date(end, "end date"))
        recurrence = _build_rule(rule, weekday or [], day)
        occurrences = expand(date_range, recurrence)
    except ValueError as e:
        _fail(e)

    if not occurrences:
        console.print("[yellow]⚠ No dates in this range.[/yellow]")
        return

    _print_dates(f"{rule.capitalize()} lessons {date_range}", occurrences)
    console.print(f"\n[bold green]✓ {len(occurrences)} date(s)[/bold green]\n")


@app.command()
def schedule(
    course: Annotated[str, typer.Option("--course", help="Course id")],
    start: Annotated[str, typer.Option("--start", help="Start date (YYYY-MM-DD)")],
    end: Annotated[str, typer.Option("--end", help="End date (YYYY-MM-DD)")],
    weekday: Annotated[List[int], typer.Option("--weekday", "-w", help="1=Monday ... 7=Sunday; repeat for several days")],
    start_time: Annotated[str, typer.Option("--from", help="Lesson start (HH:mm)")],
    end_time: Annotated[str, typer.Option("--to", help="Lesson end (HH:mm)")],
    frequency: Annotated[str, typer.Option("--frequency", "-f", help="weekly, biweekly or monthly")] = "weekly",
    instructor: Annotated[Optional[str], typer.Option("--instructor", help="Instructor id")] = None,
    student: Annotated[Optional[str], typer.Option("--student", help="Student id for one-on-one lessons")] = None,
    season: Annotated[Optional[str], typer.Option("--season", help="Season id. Defaults to the configured season")] = None,
    institution: Annotated[Optional[str], typer.Option("--institution", help="Institution id. Defaults to the configured institution")] = None,
    notes: Annotated[str, typer.Option("--notes", help="Notes shown on every lesson")] = "",
    created_by: Annotated[Optional[str], typer.Option("--created-by", help="User creating the schedule")] = None,
    skip_holidays: Annotated[Optional[bool], typer.Option("--skip-holidays/--keep-holidays", help="Leave out public holidays. Defaults to the config")] = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Preview the timetable without calling the API.")] = False,
    config_file: ConfigOption = None,
):
    """
    Generate a course timetable and store one lesson per date.

    Examples:

        lessonplanner schedule --course c1 --start 2024-09-02 --end 2024-12-27 -w 1 -w 3 --from 10:00 --to 11:30

        lessonplanner schedule --course c1 --student s1 --start 2024-09-02 --end 2024-12-27 -w 6 -f biweekly --from 14:00 --to 15:00 --dry-run
    """
    try:
        config = _load_config(config_file)

        request = ScheduleRequest(
            course_id=course,
            date_range=DateRange(start=_parse_date(start, "start date"), end=_parse_date(end, "end date")),
            days_of_week=[Weekday(day) for day in weekday],
            lesson_time=LessonTime(start_time, end_time),
            season_id=season or config.season_id,
            institution_id=institution or config.institution_id,
            instructor_id=instructor,
            student_id=student,
            frequency=Frequency(frequency.lower()),
            skip_holidays=config.schedule.skip_holidays if skip_holidays is None else skip_holidays,
            notes=notes,
            created_by=created_by,
        )

        if dry_run:
            console.print("[yellow]⚠  DRY RUN: lessons are not sent to the API[/yellow]")
            store = InMemoryLessonStore()
        else:
            store = LessonAPIClient(
                base_url=config.api.base_url,
                token=config.api.token,
                timeout=config.api.timeout_seconds,
            )

        service = LessonSchedulerService(
            store=store,
            builder=ScheduleBuilder(holidays=config.schedule.holidays()),
        )
        result = service.generate_schedule(request)

    except (FileNotFoundError, ValueError, LessonPlannerError) as e:
        _fail(e)

    if not result.count:
        console.print(
            "[yellow]⚠ No lessons generated.[/yellow]\n"
            "Check the weekdays and the date range."
        )
        return

    _print_dates(
        f"Course {course} {request.lesson_time}",
        [pendulum.parse(lesson_date).date() for lesson_date in result.lesson_dates],
    )
    console.print(f"\n[bold green]✓ {result.count} lesson(s) scheduled[/bold green]")
    if result.enrollment_created:
        console.print(f"[green]✓ Student {student} enrolled in course {course}[/green]")
    if result.skipped_days:
        console.print("[yellow]Some matching days were left out (holidays or frequency).[/yellow]")
    console.print()


@app.command()
def vat(
    amount: Annotated[float, typer.Argument(help="Net amount")],
    rate: Annotated[Optional[float], typer.Option("--rate", help="VAT rate in percent. Defaults to the config")] = None,
    config_file: ConfigOption = None,
):
    """
    Add VAT to an amount.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    vat_rate = config.finance.vat_rate if rate is None else rate
    breakdown = calculate_vat(amount, vat_rate)
    _print_breakdown(
        f"VAT {vat_rate:g}%",
        [("Amount", breakdown.amount), ("VAT", breakdown.vat), ("Total", breakdown.total)],
    )


@app.command()
def commission(
    amount: Annotated[float, typer.Argument(help="Amount charged")],
    rate: Annotated[Optional[float], typer.Option("--rate", help="Commission rate in percent")] = None,
    installments: Annotated[int, typer.Option("--installments", "-i", help="Look up the card rate for this many installments")] = 1,
    config_file: ConfigOption = None,
):
    """
    Add card commission to an amount.
    """
    try:
        config = _load_config(config_file)
        commission_rate = config.finance.commission_rate_for(installments) if rate is None else rate
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    breakdown = calculate_commission(amount, commission_rate)
    _print_breakdown(
        f"Commission {commission_rate:g}%",
        [("Amount", breakdown.amount), ("Commission", breakdown.commission), ("Total", breakdown.total)],
    )


@app.command()
def net(
    gross: Annotated[float, typer.Argument(help="Gross amount paid by the student")],
    commission_rate: Annotated[Optional[float], typer.Option("--commission-rate", help="Commission rate in percent")] = None,
    installments: Annotated[Optional[int], typer.Option("--installments", "-i", help="Look up the card rate for this many installments")] = None,
    vat_rate: Annotated[Optional[float], typer.Option("--vat-rate", help="VAT rate in percent. Defaults to the config")] = None,
    invoiced: Annotated[bool, typer.Option("--invoiced", help="The payment is invoiced, so VAT is deducted")] = False,
    config_file: ConfigOption = None,
):
    """
    Show what remains of a payment after commission and VAT.

    Without --commission-rate or --installments no commission is deducted.
    """
    try:
        config = _load_config(config_file)
        if commission_rate is None:
            commission_rate = config.finance.commission_rate_for(installments) if installments else 0
    except (FileNotFoundError, ValueError) as e:
        _fail(e)

    effective_vat_rate = config.finance.vat_rate if vat_rate is None else vat_rate
    breakdown = calculate_net_amount(gross, commission_rate, effective_vat_rate, invoiced)
    _print_breakdown(
        "Net amount" + (" (invoiced)" if invoiced else ""),
        [
            ("Gross", breakdown.gross_amount),
            (f"Commission {commission_rate:g}%", breakdown.commission),
            (f"VAT {effective_vat_rate:g}%", breakdown.vat),
            ("Net", breakdown.net_amount),
        ],
    )


@app.command()
def holidays(
    year: Annotated[int, typer.Argument(help="Year to list")],
):
    """
    List the fixed-date national holidays of a year.

    Ramadan and Sacrifice feasts move every year and are not listed.
    """
    _print_dates(f"National holidays {year}", sorted(list_national_holidays(year)))
    console.print("\n[dim]Lunar holidays are not included; add them as extra_holidays in the config.[/dim]\n")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]lessonplanner[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
