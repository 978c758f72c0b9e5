from __future__ import annotations

import random
import threading
from contextlib import contextmanager
from typing import Hashable, Iterator

from loguru import logger

from ..errors import AssignmentMissing, NoActiveEvent, ParticipantNotFound
from .draw import DEFAULT_MAX_ATTEMPTS, generate_assignment


class SingleFlight:
    """Hands out one lock per key so only one caller runs a guarded section per key."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Hashable, threading.Lock] = {}

    @contextmanager
    def lock_for(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
        with lock:
            yield


class DrawService:
    """
    Compute-once, serve-many lookups for the active event.

    The draw for an event is generated lazily on the first lookup and never
    again: later lookups read the persisted rows.
    """

    def __init__(self, repository, max_attempts: int = DEFAULT_MAX_ATTEMPTS, rng: random.Random | None = None):
        self.repository = repository
        self.max_attempts = max_attempts
        self.rng = rng
        self.single_flight = SingleFlight()

    def ensure_draw(self, event) -> list:
        results = self.repository.draw_results(event.id)
        if results:
            return results

        with self.single_flight.lock_for(event.id):
            # Another request may have finished the draw while we waited.
            results = self.repository.draw_results(event.id)
            if results:
                return results

            participant_ids = [p.id for p in self.repository.participants()]
            pairs = generate_assignment(
                participant_ids,
                self.repository.exclusion_pairs(),
                rng=self.rng,
                max_attempts=self.max_attempts,
            )
            if self.repository.save_draw(event.id, pairs):
                logger.info("Draw for event {} performed with {} participants", event.id, len(pairs))
            return self.repository.draw_results(event.id)

    def check_result(self, name: str) -> str:
        event = self.repository.active_event()
        if event is None:
            logger.error("Lookup attempted with no active event")
            raise NoActiveEvent()

        participant = self.repository.find_participant(name)
        if participant is None:
            logger.info("Lookup for unknown name {!r}", name)
            raise ParticipantNotFound(name)

        results = self.ensure_draw(event)
        row = next((r for r in results if r.participant_id == participant.id), None)
        if row is None:
            logger.error("Event {} has no draw row for participant {}", event.id, participant.id)
            raise AssignmentMissing(participant.id, event.id)

        recipient = self.repository.participant(row.draws_for_id)
        if recipient is None:
            logger.error("Draw row for participant {} points at missing participant {}", participant.id, row.draws_for_id)
            raise AssignmentMissing(participant.id, event.id)
        return recipient.name

    def participant_names(self) -> list[str]:
        return self.repository.participant_names()
