from datetime import datetime
from .extensions import db


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    draw_results = db.relationship("DrawResult", back_populates="event", lazy="dynamic")

    def __repr__(self) -> str:
        return f"<Event {self.id} {self.name!r} {self.year}>"


class Participant(db.Model):
    __tablename__ = "participants"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False)
    email = db.Column(db.String(255), nullable=True)

    # Case-insensitive aliases accepted on lookup ("Kasia" for "Katarzyna").
    alternative_names = db.Column(db.JSON, default=list, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Participant {self.id} {self.name!r}>"


class ExclusionRule(db.Model):
    """
    Undirected constraint: neither participant may draw the other.
    """
    __tablename__ = "exclusion_rules"
    id = db.Column(db.Integer, primary_key=True)

    participant1_id = db.Column(db.Integer, db.ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    participant2_id = db.Column(db.Integer, db.ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    reason = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    participant1 = db.relationship("Participant", foreign_keys=[participant1_id])
    participant2 = db.relationship("Participant", foreign_keys=[participant2_id])

    def as_pair(self) -> tuple[int, int]:
        return self.participant1_id, self.participant2_id


class DrawResult(db.Model):
    """
    One row per giver per event. The full set for an event is written in a
    single transaction; the unique constraints make a second writer fail.
    """
    __tablename__ = "draw_results"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    participant_id = db.Column(db.Integer, db.ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    draws_for_id = db.Column(db.Integer, db.ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    event = db.relationship("Event", back_populates="draw_results")
    participant = db.relationship("Participant", foreign_keys=[participant_id])
    draws_for = db.relationship("Participant", foreign_keys=[draws_for_id])

    __table_args__ = (
        db.UniqueConstraint("event_id", "participant_id", name="uq_draw_results_event_giver"),
        db.UniqueConstraint("event_id", "draws_for_id", name="uq_draw_results_event_recipient"),
    )
