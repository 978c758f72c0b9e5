from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError

from .models import DrawResult, Event, ExclusionRule, Participant
from .services.matching import find_participant


class SantaRepository:
    """
    Read/write access to events, participants, exclusions and draw results.

    Built once by the app factory around the Flask-SQLAlchemy scoped session.
    """

    def __init__(self, session):
        self.session = session

    def active_event(self) -> Optional[Event]:
        return (
            self.session.query(Event)
            .filter_by(is_active=True)
            .order_by(Event.created_at.desc(), Event.id.desc())
            .first()
        )

    def participants(self) -> list[Participant]:
        return self.session.query(Participant).order_by(Participant.id.asc()).all()

    def participant(self, participant_id: int) -> Optional[Participant]:
        return self.session.get(Participant, participant_id)

    def find_participant(self, name: str) -> Optional[Participant]:
        return find_participant(self.participants(), name)

    def participant_names(self) -> list[str]:
        return sorted((p.name for p in self.participants()), key=str.casefold)

    def exclusion_pairs(self) -> list[tuple[int, int]]:
        return [rule.as_pair() for rule in self.session.query(ExclusionRule).all()]

    def draw_results(self, event_id: int) -> list[DrawResult]:
        return self.session.query(DrawResult).filter_by(event_id=event_id).all()

    def save_draw(self, event_id: int, pairs: Iterable[tuple[int, int]]) -> bool:
        """
        Writes every pair in one transaction. Returns False (after rolling
        back) when the event already has rows written by someone else.
        """
        self.session.add_all(
            DrawResult(event_id=event_id, participant_id=giver, draws_for_id=recipient)
            for giver, recipient in pairs
        )
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.info("Draw for event {} was already persisted by another writer", event_id)
            return False
        return True
