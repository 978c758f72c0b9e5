from __future__ import annotations

from typing import Iterable, Optional


def normalize_name(value) -> str:
    if not isinstance(value, str):
        return ""
    return " ".join(value.split()).casefold()


def _aliases(participant) -> list[str]:
    return list(getattr(participant, "alternative_names", None) or [])


def find_participant(participants: Iterable, name: str) -> Optional[object]:
    """
    Returns the participant whose display name or alias matches ``name``
    (case-insensitive). A display-name match beats an alias match.
    """
    wanted = normalize_name(name)
    if not wanted:
        return None

    people = list(participants)
    for p in people:
        if normalize_name(p.name) == wanted:
            return p
    for p in people:
        if any(normalize_name(alias) == wanted for alias in _aliases(p)):
            return p
    return None


def name_conflicts(participants: Iterable, names: Iterable[str], ignore=None) -> set[str]:
    """Which of ``names`` are already claimed (as a name or alias) by someone other than ``ignore``."""
    taken: set[str] = set()
    for p in participants:
        if ignore is not None and p is ignore:
            continue
        taken.add(normalize_name(p.name))
        taken.update(normalize_name(a) for a in _aliases(p))
    return {n for n in names if normalize_name(n) in taken}
