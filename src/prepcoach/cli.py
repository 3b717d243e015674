"""CLI interface using Typer."""

from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from prepcoach.config import Settings, get_settings, reload_settings
from prepcoach.db import get_db
from prepcoach.engine.models import WeightSample
from prepcoach.engine.peak_week import generate_peak_week, peak_week_active
from prepcoach.engine.trend import project_trajectory, weekly_averages
from prepcoach.tracking.models import (
    BodyCompositionEntry,
    ClientProfile,
    NutritionLogEntry,
    TrainingLogEntry,
)
from prepcoach.tracking.queries import (
    BodyCompositionQueries,
    ClientQueries,
    NutritionLogQueries,
    TrainingLogQueries,
)
from prepcoach.tracking.service import (
    ClientNotFoundError,
    SqliteClientRepository,
    get_nutrition_suggestion,
    record_body_composition,
)

app = typer.Typer(
    help="Nutrition auto-adjustment and competition prep for coached clients",
    no_args_is_help=True,
)
console = Console()

client_app = typer.Typer(help="Manage clients and their nutrition targets")
weight_app = typer.Typer(help="Log body composition and view weight trends")
nutrition_app = typer.Typer(help="Log daily nutrition adherence")
training_app = typer.Typer(help="Log training sessions and rest days")
config_app = typer.Typer(help="Show or create the configuration file")

app.add_typer(client_app, name="client")
app.add_typer(weight_app, name="weight")
app.add_typer(nutrition_app, name="nutrition")
app.add_typer(training_app, name="training")
app.add_typer(config_app, name="config")

STATUS_STYLES = {
    "insufficient_data": "dim",
    "on_track": "green",
    "plateau": "yellow",
    "off_track": "red",
}

SAFETY_STYLES = {
    "normal": "green",
    "aggressive": "yellow",
    "extreme": "red",
}


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict, file=None) -> None:
    """Output JSON response to stdout or file."""
    json_str = json.dumps(response, indent=2, ensure_ascii=False)
    if file:
        file.write(json_str)
    else:
        print(json_str)


def ensure_tables() -> None:
    """Ensure tables exist (idempotent)."""
    get_db().initialize_schema()


def fail(command: str, message: str, json_output: bool) -> None:
    """Report an error and exit with status 1."""
    if json_output:
        output_json({"success": False, "command": command, "errors": [message]})
    else:
        console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def parse_date_option(value: Optional[str], option: str) -> date:
    """Parse a YYYY-MM-DD option, defaulting to today."""
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError:
        console.print(f"[red]Invalid {option} '{value}'. Use YYYY-MM-DD.[/red]")
        raise typer.Exit(1)


def _optional_date(value: Optional[str], option: str) -> Optional[date]:
    return parse_date_option(value, option) if value else None


def _fmt(value: Any, suffix: str = "") -> str:
    if value is None:
        return "-"
    if isinstance(value, float):
        return f"{value:g}{suffix}"
    return f"{value}{suffix}"


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Configure logging before any command runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


@client_app.callback()
def client_callback() -> None:
    """Ensure tables exist before any client command."""
    ensure_tables()


@weight_app.callback()
def weight_callback() -> None:
    """Ensure tables exist before any weight command."""
    ensure_tables()


@nutrition_app.callback()
def nutrition_callback() -> None:
    """Ensure tables exist before any nutrition command."""
    ensure_tables()


@training_app.callback()
def training_callback() -> None:
    """Ensure tables exist before any training command."""
    ensure_tables()


def render_targets_table(client: ClientProfile) -> Table:
    table = Table(title="Current Targets", show_header=True)
    table.add_column("Target", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Calories", _fmt(client.calories_target, " kcal"))
    table.add_row("Protein", _fmt(client.protein_target, " g"))
    table.add_row("Carbs", _fmt(client.carbs_target, " g"))
    table.add_row("Fat", _fmt(client.fat_target, " g"))
    if client.carbs_cycling_enabled:
        table.add_row("Carbs (training day)", _fmt(client.carbs_training_day, " g"))
        table.add_row("Carbs (rest day)", _fmt(client.carbs_rest_day, " g"))
    return table


def render_suggestion(suggestion: dict[str, Any]) -> None:
    """Print a suggestion dict with Rich."""
    style = STATUS_STYLES.get(suggestion["status"], "white")
    header = f"{suggestion['statusEmoji']} [bold {style}]{suggestion['statusLabel']}[/bold {style}]"
    body = [suggestion["message"]]
    if suggestion.get("weeklyWeightChangeRate") is not None:
        body.append(
            f"Trend: {suggestion['weeklyWeightChangeRate']:+.2f} kg/week "
            f"({suggestion['weeklyWeightChangePercent']:+.2f}%/week)"
        )
    if suggestion.get("estimatedTDEE") is not None:
        body.append(f"Estimated TDEE: {suggestion['estimatedTDEE']} kcal")
    if suggestion.get("dietDurationWeeks") is not None:
        body.append(f"Diet duration: {suggestion['dietDurationWeeks']} weeks")
    console.print(Panel("\n".join(body), title=header, expand=False))

    rows = [
        ("Calories", "suggestedCalories", "caloriesDelta", " kcal"),
        ("Protein", "suggestedProtein", "proteinDelta", " g"),
        ("Carbs", "suggestedCarbs", "carbsDelta", " g"),
        ("Fat", "suggestedFat", "fatDelta", " g"),
        ("Carbs (training day)", "suggestedCarbsTrainingDay", None, " g"),
        ("Carbs (rest day)", "suggestedCarbsRestDay", None, " g"),
    ]
    changed = [row for row in rows if suggestion.get(row[1]) is not None]
    if changed:
        table = Table(title="Suggested Targets")
        table.add_column("Target", style="cyan")
        table.add_column("New", justify="right", style="bold")
        table.add_column("Change", justify="right")
        for label, key, delta_key, unit in changed:
            delta = f"{suggestion[delta_key]:+d}" if delta_key else ""
            table.add_row(label, f"{suggestion[key]}{unit}", delta)
        console.print(table)
        auto = "[green]yes[/green]" if suggestion["autoApply"] else "[yellow]no[/yellow]"
        console.print(f"Auto-apply: {auto}")
    elif suggestion["status"] != "insufficient_data":
        console.print("[dim]No target changes suggested.[/dim]")

    deadline = suggestion.get("deadlineInfo")
    if deadline:
        level = deadline["safetyLevel"]
        table = Table(title="Goal Deadline")
        table.add_column("", style="cyan")
        table.add_column("", justify="right")
        table.add_row("Weight to lose", f"{deadline['weightToLose']:g} kg")
        table.add_row("Days left", str(deadline["daysLeft"]))
        table.add_row(
            "Required daily deficit",
            f"[{SAFETY_STYLES[level]}]{deadline['requiredDailyDeficit']} kcal ({level})[/]",
        )
        table.add_row("Cardio", f"{deadline['suggestedCardioMinutes']} min/day")
        table.add_row("Steps", f"{deadline['suggestedDailySteps']:,}/day")
        table.add_row("Predicted weight", _fmt(deadline["predictedCompWeight"], " kg"))
        console.print(table)
        console.print(f"[dim]{deadline['cardioNote']}[/dim]")

    if suggestion.get("peakWeekPlan"):
        console.print(render_peak_week(suggestion["peakWeekPlan"]))

    for warning in suggestion.get("warnings", []):
        console.print(f"[yellow]⚠ {warning}[/yellow]")


def render_peak_week(plan: list[dict[str, Any]]) -> Table:
    table = Table(title="Peak Week")
    table.add_column("Date", style="cyan")
    table.add_column("Day")
    table.add_column("Phase")
    table.add_column("Carbs", justify="right")
    table.add_column("Protein", justify="right")
    table.add_column("Fat", justify="right")
    table.add_column("kcal", justify="right")
    table.add_column("Water", justify="right", style="blue")
    for day in plan:
        table.add_row(
            day["date"],
            day["label"],
            day["phase"],
            f"{day['carbs']}g",
            f"{day['protein']}g",
            f"{day['fat']}g",
            str(day["calories"]),
            f"{day['water'] / 1000:.1f}L",
        )
    return table


# ============================================================================
# Client Commands
# ============================================================================


@client_app.command("create")
def client_create(
    client_id: str = typer.Argument(..., help="Unique client ID"),
    name: str = typer.Option(..., "--name", "-n", help="Client name"),
    gender: str = typer.Option(..., "--gender", "-g", help="male or female"),
    goal: str = typer.Option("cut", "--goal", help="cut, bulk or maintain"),
    diet_start: Optional[str] = typer.Option(None, "--diet-start", help="Diet start date (YYYY-MM-DD)"),
    target_weight: Optional[float] = typer.Option(None, "--target-weight", help="Target weight (kg)"),
    competition_date: Optional[str] = typer.Option(
        None, "--competition-date", help="Competition / target date (YYYY-MM-DD)"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Create a client."""
    try:
        client = ClientProfile(
            client_id=client_id,
            name=name,
            gender=gender.lower(),
            goal_type=goal.lower(),
            diet_start_date=_optional_date(diet_start, "--diet-start"),
            target_weight=target_weight,
            competition_date=_optional_date(competition_date, "--competition-date"),
        )
    except ValueError as e:
        fail("client create", str(e), json_output)

    with get_db().get_connection() as conn:
        if ClientQueries.get_client(conn, client_id) is not None:
            fail("client create", f"Client '{client_id}' already exists", json_output)
        ClientQueries.create_client(conn, client)

    if json_output:
        output_json({
            "success": True,
            "command": "client create",
            "data": {"client_id": client.client_id, "name": client.name},
            "human_summary": f"Created client {client.name} ({client.client_id})",
        })
    else:
        console.print(f"[green]Created client:[/green] {client.name} ({client.client_id})")


@client_app.command("list")
def client_list(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List all clients."""
    with get_db().get_connection() as conn:
        clients = ClientQueries.list_clients(conn)

    if json_output:
        output_json({
            "success": True,
            "command": "client list",
            "data": {
                "clients": [
                    {"client_id": c.client_id, "name": c.name, "goal_type": c.goal_type}
                    for c in clients
                ]
            },
            "human_summary": f"{len(clients)} clients",
        })
        return

    if not clients:
        console.print("No clients found")
        return

    table = Table(title="Clients")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Goal")
    table.add_column("Competition")
    table.add_column("Calories", justify="right")
    for c in clients:
        table.add_row(
            c.client_id,
            c.name,
            c.goal_type,
            c.competition_date.isoformat() if c.competition_date else "-",
            _fmt(c.calories_target),
        )
    console.print(table)


@client_app.command("show")
def client_show(
    client_id: str = typer.Argument(..., help="Client ID"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show a client's goal and current targets."""
    with get_db().get_connection() as conn:
        client = ClientQueries.get_client(conn, client_id)
    if client is None:
        fail("client show", f"Client not found: {client_id}", json_output)

    if json_output:
        output_json({
            "success": True,
            "command": "client show",
            "data": {
                "client_id": client.client_id,
                "name": client.name,
                "gender": client.gender,
                "goal_type": client.goal_type,
                "diet_start_date": client.diet_start_date.isoformat() if client.diet_start_date else None,
                "target_weight": client.target_weight,
                "competition_date": client.competition_date.isoformat() if client.competition_date else None,
                "targets": {
                    "calories": client.calories_target,
                    "protein": client.protein_target,
                    "carbs": client.carbs_target,
                    "fat": client.fat_target,
                    "carbs_training_day": client.carbs_training_day,
                    "carbs_rest_day": client.carbs_rest_day,
                },
            },
            "human_summary": f"{client.name}: {client.goal_type}",
        })
        return

    console.print(f"[bold]{client.name}[/bold] ({client.client_id}), {client.gender}, goal: {client.goal_type}")
    if client.diet_start_date:
        console.print(f"Diet started: {client.diet_start_date.isoformat()}")
    if client.target_weight is not None or client.competition_date:
        console.print(
            f"Target: {_fmt(client.target_weight, ' kg')} by "
            f"{client.competition_date.isoformat() if client.competition_date else '-'}"
        )
    console.print(render_targets_table(client))


@client_app.command("set-goal")
def client_set_goal(
    client_id: str = typer.Argument(..., help="Client ID"),
    goal: str = typer.Option(..., "--goal", help="cut, bulk or maintain"),
    diet_start: Optional[str] = typer.Option(None, "--diet-start", help="Diet start date (YYYY-MM-DD)"),
    target_weight: Optional[float] = typer.Option(None, "--target-weight", help="Target weight (kg)"),
    competition_date: Optional[str] = typer.Option(
        None, "--competition-date", help="Competition / target date (YYYY-MM-DD)"
    ),
) -> None:
    """Replace a client's goal, diet start date and deadline."""
    db = get_db()
    with db.get_connection() as conn:
        client = ClientQueries.get_client(conn, client_id)
        if client is None:
            fail("client set-goal", f"Client not found: {client_id}", False)
        if goal.lower() not in ("cut", "bulk", "maintain"):
            fail("client set-goal", f"goal must be cut, bulk or maintain, got '{goal}'", False)
        ClientQueries.update_goal(
            conn,
            client_id,
            goal.lower(),
            _optional_date(diet_start, "--diet-start"),
            target_weight,
            _optional_date(competition_date, "--competition-date"),
        )
    console.print(f"[green]Updated goal for {client_id}:[/green] {goal.lower()}")


@client_app.command("set-targets")
def client_set_targets(
    client_id: str = typer.Argument(..., help="Client ID"),
    calories: Optional[float] = typer.Option(None, "--calories", help="Daily calories"),
    protein: Optional[float] = typer.Option(None, "--protein", help="Protein (g)"),
    carbs: Optional[float] = typer.Option(None, "--carbs", help="Carbs (g)"),
    fat: Optional[float] = typer.Option(None, "--fat", help="Fat (g)"),
    carbs_training_day: Optional[float] = typer.Option(
        None, "--carbs-training-day", help="Training-day carbs (g), enables carb cycling"
    ),
    carbs_rest_day: Optional[float] = typer.Option(
        None, "--carbs-rest-day", help="Rest-day carbs (g), enables carb cycling"
    ),
) -> None:
    """Set nutrition targets manually. Only the options given are changed."""
    targets = {
        "calories": calories,
        "protein": protein,
        "carbs": carbs,
        "fat": fat,
        "carbs_training_day": carbs_training_day,
        "carbs_rest_day": carbs_rest_day,
    }
    targets = {k: v for k, v in targets.items() if v is not None}
    if not targets:
        fail("client set-targets", "No targets given", False)
    negative = [k for k, v in targets.items() if v < 0]
    if negative:
        fail("client set-targets", f"Targets must not be negative: {', '.join(negative)}", False)

    with get_db().get_connection() as conn:
        if ClientQueries.get_client(conn, client_id) is None:
            fail("client set-targets", f"Client not found: {client_id}", False)
        written = ClientQueries.update_targets(conn, client_id, targets)
    console.print(f"[green]Updated:[/green] {', '.join(written)}")


# ============================================================================
# Weight / Body Composition Commands
# ============================================================================


@weight_app.command("add")
def weight_add(
    weight: Optional[float] = typer.Argument(None, help="Weight in kg"),
    client_id: str = typer.Option(..., "--client", "-c", help="Client ID"),
    date_str: Optional[str] = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"),
    height: Optional[float] = typer.Option(None, "--height", help="Height (cm)"),
    body_fat: Optional[float] = typer.Option(None, "--body-fat", help="Body fat (%)"),
    muscle_mass: Optional[float] = typer.Option(None, "--muscle-mass", help="Muscle mass (kg)"),
    visceral_fat: Optional[float] = typer.Option(None, "--visceral-fat", help="Visceral fat level"),
    bmi: Optional[float] = typer.Option(None, "--bmi", help="BMI"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Record body composition and re-run the nutrition engine."""
    today = date.today()
    measured_at = parse_date_option(date_str, "--date")
    try:
        entry = BodyCompositionEntry(
            client_id=client_id,
            date=measured_at,
            height=height,
            weight=weight,
            body_fat=body_fat,
            muscle_mass=muscle_mass,
            visceral_fat=visceral_fat,
            bmi=bmi,
        )
        result = record_body_composition(
            SqliteClientRepository(get_db()), client_id, entry, today, get_settings()
        )
    except (ClientNotFoundError, ValueError) as e:
        fail("weight add", str(e), json_output)

    adjusted = result["nutritionAdjusted"]
    if json_output:
        summary = f"Recorded {_fmt(weight, ' kg')} on {measured_at.isoformat()}"
        if adjusted["adjusted"]:
            summary += f"; updated {', '.join(adjusted['fields'])}"
        output_json({
            "success": True,
            "command": "weight add",
            "data": result,
            "human_summary": summary,
        })
        return

    console.print(f"[green]Recorded:[/green] {_fmt(weight, ' kg')} on {measured_at.isoformat()}")
    if result["suggestion"]:
        render_suggestion(result["suggestion"])
    if adjusted["adjusted"]:
        console.print(f"[green]Targets updated automatically:[/green] {', '.join(adjusted['fields'])}")
    elif result["error"]:
        console.print("[yellow]Record saved, but the nutrition engine failed (see log).[/yellow]")
    else:
        console.print(f"[dim]{result['debug']}[/dim]")


@weight_app.command("list")
def weight_list(
    client_id: str = typer.Option(..., "--client", "-c", help="Client ID"),
    days: int = typer.Option(30, "--days", "-d", help="Number of days to show"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List body composition history."""
    today = date.today()
    with get_db().get_connection() as conn:
        history = BodyCompositionQueries.get_history(
            conn, client_id, start_date=today - timedelta(days=days), end_date=today
        )

    if json_output:
        output_json({
            "success": True,
            "command": "weight list",
            "data": {"entries": [e.to_dict() for e in history]},
            "human_summary": f"{len(history)} entries over {days} days",
        })
        return

    if not history:
        console.print("No body composition records found")
        return

    table = Table(title=f"Body Composition (last {days} days)")
    table.add_column("Date", style="cyan")
    table.add_column("Weight", justify="right")
    table.add_column("Body fat", justify="right")
    table.add_column("Muscle", justify="right")
    table.add_column("BMI", justify="right")
    table.add_column("", justify="right")

    prev_weight = None
    for entry in history:
        delta = ""
        if prev_weight is not None and entry.weight is not None:
            delta = f"{entry.weight - prev_weight:+.1f}"
        if entry.weight is not None:
            prev_weight = entry.weight
        table.add_row(
            entry.date.isoformat(),
            _fmt(entry.weight),
            _fmt(entry.body_fat, "%"),
            _fmt(entry.muscle_mass),
            _fmt(entry.bmi),
            delta,
        )
    console.print(table)


@weight_app.command("trend")
def weight_trend(
    client_id: str = typer.Option(..., "--client", "-c", help="Client ID"),
    days: int = typer.Option(30, "--days", "-d", help="Days of history to analyze"),
    ahead: int = typer.Option(14, "--ahead", "-a", help="Days to project forward"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show weekly averages and the projected weight trajectory."""
    today = date.today()
    with get_db().get_connection() as conn:
        history = BodyCompositionQueries.get_history(
            conn, client_id, start_date=today - timedelta(days=days), end_date=today
        )

    samples = [WeightSample(date=e.date, weight=e.weight) for e in history if e.weight is not None]
    weekly = weekly_averages(samples, today, get_settings().tracking.weeks)
    trajectory = project_trajectory(samples, ahead)

    if not trajectory:
        if json_output:
            output_json({"success": False, "command": "weight trend", "errors": ["Not enough data for trend analysis"]})
        else:
            console.print("[yellow]Not enough data for trend analysis[/yellow]")
        raise typer.Exit(1)

    if json_output:
        output_json({
            "success": True,
            "command": "weight trend",
            "data": {
                "weekly_weights": [w.to_dict() for w in weekly],
                "projection": [{"date": d.isoformat(), "weight": round(w, 2)} for d, w in trajectory],
            },
            "human_summary": f"Projected {trajectory[-1][1]:.1f} kg on {trajectory[-1][0].isoformat()}",
        })
        return

    table = Table(title="Weekly Averages")
    table.add_column("Week", style="cyan")
    table.add_column("Average", justify="right")
    for w in weekly:
        table.add_row("this week" if w.week == 0 else f"{w.week} ago", f"{w.avg_weight:.2f}")
    console.print(table)

    end_day, end_weight = trajectory[-1]
    console.print(
        f"[blue]Projection:[/blue] {end_weight:.1f} kg on {end_day.isoformat()} "
        f"({ahead} days after the last record)"
    )


# ============================================================================
# Nutrition / Training Logging Commands
# ============================================================================


@nutrition_app.command("log")
def nutrition_log(
    client_id: str = typer.Option(..., "--client", "-c", help="Client ID"),
    date_str: Optional[str] = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"),
    compliant: Optional[bool] = typer.Option(
        None, "--compliant/--not-compliant", help="Whether the day followed the plan"
    ),
    calories: Optional[float] = typer.Option(None, "--calories", help="Calories eaten"),
    protein: Optional[float] = typer.Option(None, "--protein", help="Protein (g)"),
    carbs: Optional[float] = typer.Option(None, "--carbs", help="Carbs (g)"),
    fat: Optional[float] = typer.Option(None, "--fat", help="Fat (g)"),
) -> None:
    """Log a day of nutrition."""
    log_date = parse_date_option(date_str, "--date")
    with get_db().get_connection() as conn:
        if ClientQueries.get_client(conn, client_id) is None:
            fail("nutrition log", f"Client not found: {client_id}", False)
        NutritionLogQueries.log_day(
            conn,
            NutritionLogEntry(
                client_id=client_id,
                date=log_date,
                compliant=compliant,
                calories=calories,
                protein_grams=protein,
                carbs_grams=carbs,
                fat_grams=fat,
            ),
        )
    status = {True: "compliant", False: "not compliant", None: "no compliance mark"}[compliant]
    console.print(f"[green]Logged nutrition:[/green] {log_date.isoformat()} ({status})")


@training_app.command("log")
def training_log(
    training_type: str = typer.Argument("strength", help="Session type, or 'rest' for a rest day"),
    client_id: str = typer.Option(..., "--client", "-c", help="Client ID"),
    date_str: Optional[str] = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD, default: today)"),
) -> None:
    """Log a training session or rest day."""
    log_date = parse_date_option(date_str, "--date")
    with get_db().get_connection() as conn:
        if ClientQueries.get_client(conn, client_id) is None:
            fail("training log", f"Client not found: {client_id}", False)
        TrainingLogQueries.log_session(
            conn, TrainingLogEntry(client_id=client_id, date=log_date, training_type=training_type)
        )
    console.print(f"[green]Logged training:[/green] {training_type} on {log_date.isoformat()}")


# ============================================================================
# Suggestion Commands
# ============================================================================


@app.command()
def suggest(
    client_id: str = typer.Option(..., "--client", "-c", help="Client ID"),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Reference date (YYYY-MM-DD, default: today)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Analyse progress and suggest nutrition targets (nothing is changed)."""
    ensure_tables()
    today = parse_date_option(as_of, "--as-of")
    try:
        result = get_nutrition_suggestion(
            SqliteClientRepository(get_db()), client_id, today, get_settings()
        )
    except ClientNotFoundError as e:
        fail("suggest", str(e), json_output)

    if json_output:
        suggestion = result["suggestion"]
        output_json({
            "success": True,
            "command": "suggest",
            "data": result,
            "human_summary": f"{suggestion['statusLabel']}: {suggestion['message']}",
        })
        return

    render_suggestion(result["suggestion"])


@app.command("peak-week")
def peak_week(
    client_id: str = typer.Option(..., "--client", "-c", help="Client ID"),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Reference date (YYYY-MM-DD, default: today)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the 7-day peak-week plan for a client's competition."""
    ensure_tables()
    today = parse_date_option(as_of, "--as-of")
    with get_db().get_connection() as conn:
        client = ClientQueries.get_client(conn, client_id)
        if client is None:
            fail("peak-week", f"Client not found: {client_id}", json_output)
        weight = BodyCompositionQueries.get_latest_weight(conn, client_id, on_or_before=today)

    if client.competition_date is None:
        fail("peak-week", "Client has no competition date set", json_output)
    if weight is None:
        fail("peak-week", "No weight records found", json_output)

    plan = [day.to_dict() for day in generate_peak_week(weight, client.competition_date)]
    active = peak_week_active(client.competition_date, today, get_settings().engine.peak_week_days)

    if json_output:
        output_json({
            "success": True,
            "command": "peak-week",
            "data": {"active": active, "body_weight": weight, "plan": plan},
            "human_summary": f"Peak week ending {client.competition_date.isoformat()}",
        })
        return

    if not active:
        days_out = (client.competition_date - today).days
        console.print(
            f"[yellow]Peak week is not active yet ({days_out} days out); preview only.[/yellow]"
        )
    console.print(render_peak_week(plan))
    for day in plan:
        if day["date"] == today.isoformat():
            console.print(f"[bold]Today ({day['label']}):[/bold]")
            console.print(f"  Sodium: {day['sodiumNote']}")
            console.print(f"  Fiber: {day['fiberNote']}")
            console.print(f"  Training: {day['trainingNote']}")


# ============================================================================
# Config Commands
# ============================================================================


@config_app.command("show")
def config_show() -> None:
    """Print the active configuration."""
    console.print(yaml.dump(get_settings().to_dict(), default_flow_style=False, sort_keys=False))


@config_app.command("init")
def config_init(
    path: Optional[Path] = typer.Option(None, "--path", help="Where to write config.yaml"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write a config file with default values."""
    target = path or Path.home() / ".prepcoach" / "config.yaml"
    if target.exists() and not force:
        console.print(f"[yellow]{target} already exists. Use --force to overwrite.[/yellow]")
        raise typer.Exit(1)
    Settings().save(target)
    if path is None:
        reload_settings()
    console.print(f"[green]Wrote default configuration to[/green] {target}")


if __name__ == "__main__":
    app()
