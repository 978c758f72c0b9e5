from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger

from ..errors import NoActiveEvent, RosterError
from ..extensions import db
from ..models import DrawResult, Event, ExclusionRule, Participant
from .matching import find_participant, name_conflicts, normalize_name


def _clean_names(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    cleaned: list[str] = []
    for value in values or ():
        value = " ".join((value or "").split())
        if value and normalize_name(value) not in seen:
            seen.add(normalize_name(value))
            cleaned.append(value)
    return cleaned


def _require_participant(name: str) -> Participant:
    p = find_participant(Participant.query.all(), name)
    if p is None:
        raise RosterError(f"No such participant: {name}")
    return p


def _existing_exclusion(a: Participant, b: Participant) -> Optional[ExclusionRule]:
    return ExclusionRule.query.filter(
        ((ExclusionRule.participant1_id == a.id) & (ExclusionRule.participant2_id == b.id))
        | ((ExclusionRule.participant1_id == b.id) & (ExclusionRule.participant2_id == a.id))
    ).first()


def active_event() -> Optional[Event]:
    return Event.query.filter_by(is_active=True).order_by(Event.created_at.desc(), Event.id.desc()).first()


def create_event(name: str, year: int, active: bool = True) -> Event:
    name = (name or "").strip()
    if not name:
        raise RosterError("Event name is required.")

    if active:
        Event.query.filter_by(is_active=True).update({"is_active": False}, synchronize_session=False)

    event = Event(name=name, year=int(year), is_active=active)
    db.session.add(event)
    db.session.commit()
    logger.info("Created event {} ({}), active={}", event.name, event.year, active)
    return event


def add_participant(name: str, email: str | None = None, alternative_names: Iterable[str] = ()) -> Participant:
    name = " ".join((name or "").split())
    if not name:
        raise RosterError("Name is required.")

    aliases = [a for a in _clean_names(alternative_names) if normalize_name(a) != normalize_name(name)]
    taken = name_conflicts(Participant.query.all(), [name, *aliases])
    if taken:
        raise RosterError("Already used by another participant: " + ", ".join(sorted(taken)))

    p = Participant(name=name, email=(email or "").strip() or None, alternative_names=aliases)
    db.session.add(p)
    db.session.commit()
    logger.info("Added participant {}", p.name)
    return p


def delete_participant(name: str) -> str:
    """Deletes the participant and returns their display name."""
    p = _require_participant(name)
    display_name = p.name

    # A draw that involved this person is no longer a full permutation; drop it whole.
    touched = {
        row.event_id
        for row in DrawResult.query.filter(
            (DrawResult.participant_id == p.id) | (DrawResult.draws_for_id == p.id)
        ).all()
    }
    if touched:
        DrawResult.query.filter(DrawResult.event_id.in_(touched)).delete(synchronize_session=False)
        logger.warning("Cleared draws for events {} after deleting {}", sorted(touched), display_name)

    ExclusionRule.query.filter(
        (ExclusionRule.participant1_id == p.id) | (ExclusionRule.participant2_id == p.id)
    ).delete(synchronize_session=False)

    db.session.delete(p)
    db.session.commit()
    logger.info("Deleted participant {}", display_name)
    return display_name


def add_exclusion(name_a: str, name_b: str, reason: str | None = None) -> ExclusionRule:
    a = _require_participant(name_a)
    b = _require_participant(name_b)
    if a.id == b.id:
        raise RosterError("A participant cannot be excluded from themselves.")

    if _existing_exclusion(a, b):
        raise RosterError(f"{a.name} and {b.name} are already excluded.")

    rule = ExclusionRule(participant1_id=a.id, participant2_id=b.id, reason=(reason or "").strip() or None)
    db.session.add(rule)
    db.session.commit()
    logger.info("Excluded pair {} / {}", a.name, b.name)
    return rule


def reset_draw(event: Event | None = None) -> int:
    event = event or active_event()
    if event is None:
        raise NoActiveEvent()

    deleted = DrawResult.query.filter_by(event_id=event.id).delete(synchronize_session=False)
    db.session.commit()
    logger.info("Reset draw for event {} ({} rows removed)", event.id, deleted)
    return deleted


def seed_roster(data: dict) -> dict[str, int]:
    """
    Idempotently load an event, participants and exclusions from a mapping:

        {"event": {"name": "...", "year": 2025},
         "participants": [{"name": "...", "email": "...", "alternative_names": [...]}],
         "exclusions": [{"between": ["A", "B"], "reason": "..."}]}

    Existing participants are updated in place; nothing is deleted.
    """
    if not isinstance(data, dict):
        raise RosterError("Roster must be a JSON object.")

    counts = {"events": 0, "participants": 0, "exclusions": 0}

    event_data = data.get("event")
    if event_data:
        if not isinstance(event_data, dict):
            raise RosterError("Event must be an object with a name and a year.")
        name = event_data.get("name")
        name = name.strip() if isinstance(name, str) else ""
        try:
            year = int(event_data.get("year"))
        except (TypeError, ValueError):
            year = None
        if not name or year is None:
            raise RosterError("Event needs a name and a numeric year.")
        current = active_event()
        if current is None or current.name != name or current.year != year:
            create_event(name, year)
            counts["events"] += 1

    for entry in data.get("participants") or []:
        if isinstance(entry, str):
            entry = {"name": entry}
        if not isinstance(entry, dict):
            raise RosterError(f"Participant entries must be names or objects, got {entry!r}.")
        name = entry.get("name") or ""
        existing = next(
            (p for p in Participant.query.all() if normalize_name(p.name) == normalize_name(name)),
            None,
        )
        if existing is None:
            add_participant(name, entry.get("email"), entry.get("alternative_names") or ())
            counts["participants"] += 1
            continue

        aliases = [
            a
            for a in _clean_names([*(existing.alternative_names or []), *(entry.get("alternative_names") or [])])
            if normalize_name(a) != normalize_name(existing.name)
        ]
        taken = name_conflicts(Participant.query.all(), aliases, ignore=existing)
        if taken:
            raise RosterError("Already used by another participant: " + ", ".join(sorted(taken)))
        existing.alternative_names = aliases
        if entry.get("email"):
            existing.email = entry["email"].strip()
        db.session.commit()

    for entry in data.get("exclusions") or []:
        between = entry.get("between") if isinstance(entry, dict) else None
        if not isinstance(between, list) or len(between) != 2:
            raise RosterError("Each exclusion needs exactly two names in 'between'.")
        if _existing_exclusion(_require_participant(between[0]), _require_participant(between[1])):
            continue
        add_exclusion(between[0], between[1], entry.get("reason"))
        counts["exclusions"] += 1

    logger.info("Seeded roster: {}", counts)
    return counts
