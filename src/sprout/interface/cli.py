"""Sprout CLI - simulate gradings and inspect review logs."""

import asyncio
import json
import logging
import random
import sys
import time
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError

from sprout.application.config import AppConfig, resolve_config
from sprout.application.queue_builder import shuffle_within_time_window
from sprout.application.scheduling import grade
from sprout.application.stats import ReviewStatsService
from sprout.domain.constants import MS_DAY, MS_MINUTE
from sprout.domain.scheduling.models import CardState, Rating
from sprout.infrastructure.adapters import YamlReviewLogRepository

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="sprout: FSRS spaced-repetition scheduler.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Inspect sprout configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def _level_for(verbose: int) -> int:
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_steps(raw: str | None) -> tuple[int, ...] | None:
    """'10,1440' -> (10, 1440). An empty string means no steps."""
    if raw is None:
        return None
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    try:
        return tuple(int(p) for p in parts)
    except ValueError:
        typer.secho(f"Invalid step list: {raw!r}", fg="red", err=True)
        raise typer.Exit(2) from None


def _load_config(scheduler_overrides: dict[str, Any] | None = None) -> AppConfig:
    try:
        return resolve_config({"scheduler": scheduler_overrides or None})
    except ValidationError as e:
        typer.secho(f"Invalid configuration:\n{e}", fg="red", err=True)
        raise typer.Exit(2) from None


def _pass_rating(config: AppConfig) -> Rating:
    return Rating[config.pass_rating.upper()]


def _service(log_file: Path, config: AppConfig) -> ReviewStatsService:
    return ReviewStatsService(
        YamlReviewLogRepository(log_file),
        config.scheduler,
        pass_rating=_pass_rating(config),
    )


def _run(coro):
    try:
        return asyncio.run(coro)
    except FileNotFoundError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from None


def _format_delay(ms: int) -> str:
    if ms < MS_DAY:
        return f"{ms // MS_MINUTE}m"
    return f"{ms / MS_DAY:g}d"


def _fmt(value: float | None, fmt: str = ".3f") -> str:
    return "-" if value is None else format(value, fmt)


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for sprout."""
    logging.getLogger().setLevel(_level_for(verbose))


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def simulate(
    ratings: Annotated[
        list[str], typer.Argument(help="Ratings to apply in order: again/hard/good/easy/pass/fail.")
    ],
    steps: Annotated[
        str | None, typer.Option(help="Learning steps in minutes, comma separated.")
    ] = None,
    relearn_steps: Annotated[
        str | None, typer.Option(help="Relearning steps in minutes, comma separated.")
    ] = None,
    retention: Annotated[float | None, typer.Option(help="Target retention.")] = None,
    fuzz: Annotated[bool, typer.Option("--fuzz/--no-fuzz", help="Spread intervals.")] = False,
    start: Annotated[int, typer.Option(help="Epoch ms of the first grading.")] = 0,
):
    """[bold green]Simulate[/bold green] a fresh card graded at each due time."""
    config = _load_config(
        {
            "learning_steps_minutes": _parse_steps(steps),
            "relearning_steps_minutes": _parse_steps(relearn_steps),
            "request_retention": retention,
            "enable_fuzz": fuzz or None,
        }
    )

    now = start
    card = CardState.new_card("simulated", now)
    for i, raw in enumerate(ratings, start=1):
        try:
            result = grade(card, raw, now, config.scheduler, _pass_rating(config))
        except ValueError as e:
            typer.secho(str(e), fg="red", err=True)
            raise typer.Exit(2) from None

        card = result.next_state
        typer.echo(
            f"#{i} {raw.lower():<5} {result.metrics.stage_before.label:>10} -> "
            f"{card.stage.label:<10} due=+{_format_delay(result.due_at - now):<6} "
            f"S={card.stability_days:.2f}d D={card.difficulty:.2f} "
            f"R={_fmt(result.metrics.retrievability_now)}"
        )
        now = result.due_at


@app.command()
def replay(
    log_file: Annotated[Path, typer.Argument(help="Review log (YAML or JSON).")],
    card: Annotated[str, typer.Option("--card", "-c", help="Card id to replay.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Rebuild a card's state history from the review log."""
    config = _load_config()
    timeline = _run(_service(log_file, config).get_timeline(card))

    if json_output:
        rows = [
            {"at": s.at, "rating": s.rating.name.lower(), "state": s.state.to_dict()}
            for s in timeline.snapshots
        ]
        typer.echo(json.dumps(rows, indent=2))
        return

    if not timeline.snapshots:
        typer.secho(f"No usable entries for card {card}.", fg="yellow")
        return

    for s in timeline.snapshots:
        typer.echo(
            f"{s.at}  {s.rating.name.lower():<5} {s.state.stage.label:<10} "
            f"S={s.state.stability_days:.2f}d D={s.state.difficulty:.2f} "
            f"ivl={s.state.scheduled_days}d due={s.state.due}"
        )


@app.command()
def curve(
    log_file: Annotated[Path, typer.Argument(help="Review log (YAML or JSON).")],
    card: Annotated[str, typer.Option("--card", "-c", help="Card id.")],
    days: Annotated[int, typer.Option(min=1, help="Days to project.")] = 30,
):
    """Project a card's forgetting curve from its last review."""
    config = _load_config()
    points = _run(_service(log_file, config).get_forgetting_curve(card, days))

    if not points:
        typer.secho(f"No usable entries for card {card}.", fg="yellow")
        return

    for p in points:
        typer.echo(f"day {p.day:>4}  R={p.retrievability:.4f}")


@app.command()
def queue(
    log_file: Annotated[Path, typer.Argument(help="Review log (YAML or JSON).")],
    now: Annotated[
        int | None, typer.Option(help="Reference time in epoch ms. Defaults to the clock.")
    ] = None,
    seed: Annotated[int | None, typer.Option(help="Shuffle seed for a reproducible order.")] = None,
):
    """Print today's due cards, shuffled within due-time windows."""
    config = _load_config()
    ref = now if now is not None else int(time.time() * 1000)
    due = _run(_service(log_file, config).get_due_cards(ref))

    if not due:
        typer.secho("No cards due.", fg="yellow")
        return

    ordered = shuffle_within_time_window(
        due,
        window_ms=config.timeline_window_minutes * MS_MINUTE,
        rng=random.Random(seed),
    )
    for item in ordered:
        typer.echo(f"{item.card_id}  due={item.due}")


@app.command()
def stats(
    log_file: Annotated[Path, typer.Argument(help="Review log (YAML or JSON).")],
    now: Annotated[
        int | None, typer.Option(help="Reference time in epoch ms. Defaults to the clock.")
    ] = None,
    weak: Annotated[bool, typer.Option("--weak", help="Only show weak cards.")] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Per-card metrics computed from the review log."""
    config = _load_config()
    service = _service(log_file, config)
    ref = now if now is not None else int(time.time() * 1000)

    if weak:
        rows = _run(service.get_weak_cards(ref))
    else:
        rows = _run(service.get_enriched_stats(ref))

    if json_output:
        out = []
        for r in rows:
            d = dict(vars(r))
            d["stage"] = r.stage.value
            out.append(d)
        typer.echo(json.dumps(out, indent=2))
        return

    if not rows:
        typer.secho("No cards found.", fg="yellow")
        return

    for r in rows:
        typer.echo(
            f"{r.card_id:<16} {r.stage.label:<10} reps={r.reps:<3} lapses={r.lapses:<3} "
            f"S={_fmt(r.stability, '.2f')} D={_fmt(r.difficulty, '.2f')} "
            f"R={_fmt(r.current_retrievability)} overdue={_fmt(r.days_overdue, 'd')}"
        )


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = _load_config()
    typer.echo(json.dumps(config.model_dump(mode="json"), indent=2))
