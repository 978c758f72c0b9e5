from __future__ import annotations

import random
from typing import Hashable, Iterable, Sequence

from loguru import logger

from ..errors import InfeasibleExclusions, InsufficientParticipants

DEFAULT_MAX_ATTEMPTS = 1000


def build_exclusion_map(
    participant_ids: Sequence[Hashable],
    exclusions: Iterable[tuple[Hashable, Hashable]],
) -> dict[int, set[int]]:
    """
    Map each participant index to the indexes it may not be paired with.

    Rules are symmetric, so both directions are inserted. A rule naming
    someone who is not in ``participant_ids`` is skipped.
    """
    index = {pid: i for i, pid in enumerate(participant_ids)}
    excluded: dict[int, set[int]] = {i: set() for i in range(len(participant_ids))}
    for a, b in exclusions:
        ia, ib = index.get(a), index.get(b)
        if ia is None or ib is None:
            continue
        excluded[ia].add(ib)
        excluded[ib].add(ia)
    return excluded


def is_valid_permutation(shuffled: Sequence[int], excluded: dict[int, set[int]]) -> bool:
    for i, j in enumerate(shuffled):
        if i == j or j in excluded[i]:
            return False
    return True


def _blocked_participants(participant_ids: Sequence[Hashable], excluded: dict[int, set[int]]) -> list:
    n = len(participant_ids)
    return [participant_ids[i] for i in range(n) if len(excluded[i] | {i}) >= n]


def generate_assignment(
    participant_ids: Sequence[Hashable],
    exclusions: Iterable[tuple[Hashable, Hashable]] = (),
    rng: random.Random | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> list[tuple[Hashable, Hashable]]:
    """
    Draw a giver -> recipient pairing by rejection sampling.

    Shuffles the index sequence and keeps the first permutation with no
    fixed point and no excluded edge. Gives up after ``max_attempts``
    shuffles with :class:`InfeasibleExclusions` instead of looping forever.

    Returns ``(giver, recipient)`` tuples in the order of ``participant_ids``.
    """
    participants = list(participant_ids)
    if len(participants) < 2:
        raise InsufficientParticipants(len(participants))
    if len(set(participants)) != len(participants):
        raise ValueError("Participant ids must be unique.")
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1.")

    rng = rng or random.Random()
    excluded = build_exclusion_map(participants, exclusions)
    shuffled = list(range(len(participants)))

    for attempt in range(1, max_attempts + 1):
        rng.shuffle(shuffled)
        if is_valid_permutation(shuffled, excluded):
            logger.debug("Draw for {} participants found on attempt {}", len(participants), attempt)
            return [(participants[i], participants[j]) for i, j in enumerate(shuffled)]

    blocked = _blocked_participants(participants, excluded)
    logger.warning(
        "No valid draw for {} participants after {} attempts (blocked: {})",
        len(participants),
        max_attempts,
        blocked,
    )
    raise InfeasibleExclusions(max_attempts, blocked)
