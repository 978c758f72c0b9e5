from __future__ import annotations

import json

import click
from flask import current_app
from flask.cli import AppGroup

from .errors import SantaError
from .extensions import db
from .services import roster

santa_cli = AppGroup("santa", help="Organizer commands for the gift draw.")


def _fail(e: SantaError):
    raise click.ClickException(e.message)


@santa_cli.command("init-db")
def init_db():
    """Create all tables (use `flask db upgrade` once migrations exist)."""
    db.create_all()
    click.echo("Database tables created.")


@santa_cli.command("seed")
@click.argument("roster_file", type=click.File("r", encoding="utf-8"))
def seed(roster_file):
    """Load an event, participants and exclusions from a JSON roster."""
    try:
        data = json.load(roster_file)
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Invalid JSON roster: {e}")
    try:
        counts = roster.seed_roster(data)
    except SantaError as e:
        _fail(e)
    click.echo(
        f"Seeded {counts['events']} event(s), {counts['participants']} participant(s), "
        f"{counts['exclusions']} exclusion(s)."
    )


@santa_cli.command("create-event")
@click.argument("name")
@click.option("--year", type=int, required=True)
@click.option("--inactive", is_flag=True, help="Create without activating it.")
def create_event(name, year, inactive):
    try:
        event = roster.create_event(name, year, active=not inactive)
    except SantaError as e:
        _fail(e)
    click.echo(f"Created event {event.name} ({event.year}).")


@santa_cli.command("add-participant")
@click.argument("name")
@click.option("--email", default=None)
@click.option("--alias", "aliases", multiple=True, help="Alternative name accepted on lookup.")
def add_participant(name, email, aliases):
    try:
        p = roster.add_participant(name, email, aliases)
    except SantaError as e:
        _fail(e)
    click.echo(f"Added {p.name}.")


@santa_cli.command("remove-participant")
@click.argument("name")
def remove_participant(name):
    """Delete a participant, their exclusions and any draw they were part of."""
    try:
        removed = roster.delete_participant(name)
    except SantaError as e:
        _fail(e)
    click.echo(f"Removed {removed}.")


@santa_cli.command("exclude")
@click.argument("name_a")
@click.argument("name_b")
@click.option("--reason", default=None)
def exclude(name_a, name_b, reason):
    """Forbid NAME_A and NAME_B from drawing each other."""
    try:
        rule = roster.add_exclusion(name_a, name_b, reason)
    except SantaError as e:
        _fail(e)
    click.echo(f"Excluded {rule.participant1.name} / {rule.participant2.name}.")


@santa_cli.command("draw")
def draw():
    """Perform the active event's draw now instead of on the first lookup."""
    event = roster.active_event()
    if event is None:
        raise click.ClickException("No active event found.")
    service = current_app.extensions["giftdraw"]["draw_service"]
    try:
        rows = service.ensure_draw(event)
    except SantaError as e:
        _fail(e)
    click.echo(f"Draw for {event.name} ({event.year}) holds {len(rows)} assignment(s).")


@santa_cli.command("reset-draw")
@click.confirmation_option(prompt="Discard the active event's draw?")
def reset_draw():
    try:
        deleted = roster.reset_draw()
    except SantaError as e:
        _fail(e)
    click.echo(f"Removed {deleted} assignment(s).")


@santa_cli.command("status")
def status():
    event = roster.active_event()
    repository = current_app.extensions["giftdraw"]["repository"]
    if event is None:
        click.echo("No active event.")
    else:
        drawn = len(repository.draw_results(event.id))
        click.echo(f"Active event: {event.name} ({event.year}), draw {'done' if drawn else 'pending'}.")
    names = repository.participant_names()
    click.echo(f"{len(names)} participant(s): {', '.join(names)}")
    click.echo(f"{len(repository.exclusion_pairs())} exclusion rule(s).")
