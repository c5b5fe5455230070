"""
Main CLI application using Typer.

Provides an operator/developer surface over the metering engine: scripted
session simulation and one-off rate and season-pass checks. Every command
can emit JSON with ``--json``.
"""

from __future__ import annotations

import json
import sys
from decimal import Decimal
from typing import Optional

import typer

from streammeter.domain.money import format_amount
from streammeter.domain.rates import Quality, RateResolver
from streammeter.domain.season_pass import matches_pass_domain
from streammeter.infra.exceptions import MeterError
from streammeter.infra.logging import configure_logging
from streammeter.infra.settings import settings
from streammeter.runtime.session_controller import MeterSnapshot, SessionController
from streammeter.runtime.ticks import PlaybackTickSource

app = typer.Typer(help="StreamMeter pay-per-second metering CLI")


def _format_json_output(result: dict) -> str:
    return json.dumps(result, indent=2)


def _format_human_output(snapshot: MeterSnapshot) -> str:
    lines = [
        f"session:        {snapshot.session_id}",
        f"playing:        {'yes' if snapshot.is_playing else 'no'}",
        f"balance:        {format_amount(snapshot.balance)}",
        f"total paid:     {format_amount(snapshot.total_paid)}",
        f"effective rate: {format_amount(snapshot.effective_rate)}/s ({snapshot.quality.value})",
        f"season pass:    {'active' if snapshot.has_season_pass else 'none'}",
        f"autopilot:      {snapshot.autopilot_state.value}",
        "watched:        "
        + (", ".join(f"[{start}-{end}]" for start, end in snapshot.watched_segments) or "-"),
    ]
    return "\n".join(lines)


def _parse_range(text: str) -> range:
    start_text, _, end_text = text.partition("-")
    start = int(start_text)
    end = int(end_text) if end_text else start
    if start < 0 or end < start:
        raise ValueError(f"invalid range: {text!r}")
    return range(start, end + 1)


def _fail(message: str, json_output: bool) -> None:
    if json_output:
        typer.echo(_format_json_output({"status": "error", "errors": [message]}))
    else:
        typer.echo(f"Error: {message}", err=True)
    sys.exit(1)


@app.command("simulate")
def simulate(
    seconds: int = typer.Option(10, "--seconds", "-n", help="Number of seconds to play"),
    start: int = typer.Option(0, "--start", help="Playback position to start from"),
    balance: Optional[float] = typer.Option(None, "--balance", "-b", help="Opening balance"),
    rate: Optional[float] = typer.Option(None, "--rate", "-r", help="Creator base rate per second"),
    quality: str = typer.Option(settings.default_quality, "--quality", "-q", help="480p, 720p, 1080p or 4k"),
    viewer: Optional[str] = typer.Option(None, "--viewer", help="Viewer identity (ENS name)"),
    pass_domain: Optional[str] = typer.Option(None, "--pass-domain", help="Creator season pass domain"),
    min_balance: Optional[float] = typer.Option(None, "--min-balance", help="Autopilot threshold"),
    autopilot: bool = typer.Option(False, "--autopilot/--no-autopilot", help="Enable low-balance autopilot"),
    refill: Optional[float] = typer.Option(None, "--refill", help="Amount credited when the refill prompt opens"),
    replay: Optional[str] = typer.Option(None, "--replay", help="Seconds to re-deliver afterwards, e.g. 2-4"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for engine logs"),
):
    """
    Play a scripted session through the engine and print the final state.
    """
    configure_logging(level=log_level)
    if seconds < 0 or start < 0:
        _fail("--seconds and --start must be non-negative", json_output)

    prompts: list[Decimal] = []
    try:
        controller = SessionController(
            session_id="cli",
            initial_balance=balance,
            on_refill_prompt=prompts.append,
        )
    except MeterError as e:
        _fail(str(e), json_output)
        return

    if rate is not None and controller.set_base_rate(rate) is None:
        _fail(f"invalid base rate: {rate}", json_output)
    if controller.set_quality(quality) is None:
        _fail(f"unknown quality: {quality}", json_output)
    controller.configure_autopilot(enabled=autopilot, min_balance=min_balance)
    if viewer or pass_domain:
        controller.validate_season_pass(viewer, pass_domain)

    try:
        replay_range = _parse_range(replay) if replay else range(0)
    except ValueError as e:
        _fail(str(e), json_output)
        return

    source = PlaybackTickSource()
    controller.attach(source)
    controller.start_session()

    for position in range(start, start + seconds):
        if not controller.is_playing:
            break
        source.report_position(float(position))
        if prompts and refill is not None:
            prompts.clear()
            controller.report_top_up(refill)

    for position in replay_range:
        source.report_position(float(position))

    snapshot = controller.snapshot()
    if json_output:
        result = {"status": "ok", **snapshot.to_dict()}
        typer.echo(_format_json_output(result))
    else:
        typer.echo(_format_human_output(snapshot))


@app.command("rate")
def effective_rate(
    base_rate: float = typer.Argument(..., help="Base rate per second"),
    quality: str = typer.Option(settings.default_quality, "--quality", "-q"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Print the effective per-second rate for a base rate and quality."""
    try:
        parsed = Quality.parse(quality)
        resolver = RateResolver(settings.default_rate)
        resolver.set_base_rate(base_rate)
        value = resolver.effective_rate(quality=parsed)
    except (MeterError, ValueError) as e:
        _fail(str(e), json_output)
        return

    if json_output:
        typer.echo(_format_json_output({
            "status": "ok",
            "base_rate": str(resolver.base_rate),
            "quality": parsed.value,
            "multiplier": str(parsed.multiplier),
            "effective_rate": str(value),
        }))
    else:
        typer.echo(f"{format_amount(value)}/s at {parsed.value} (x{parsed.multiplier})")


@app.command("check-pass")
def check_pass(
    viewer: str = typer.Argument(..., help="Viewer identity (ENS name)"),
    pass_domain: str = typer.Argument(..., help="Creator season pass domain"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
):
    """Check whether a viewer identity holds a creator's season pass."""
    active = matches_pass_domain(viewer, pass_domain)
    if json_output:
        typer.echo(_format_json_output({"status": "ok", "has_season_pass": active}))
    else:
        typer.echo("✓ season pass" if active else "✗ no season pass")


def cli() -> None:
    app()
