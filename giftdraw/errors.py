from __future__ import annotations


class SantaError(RuntimeError):
    """Base for domain errors. ``status_code`` is what the API answers with."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class DrawError(SantaError):
    """The draw cannot be performed with the current roster (an organizer problem)."""


class InsufficientParticipants(DrawError):
    def __init__(self, count: int):
        super().__init__(f"Need at least 2 participants to perform the draw (have {count}).")
        self.count = count


class InfeasibleExclusions(DrawError):
    def __init__(self, attempts: int, blocked: list | None = None):
        message = f"Could not find a valid draw after {attempts} attempts; the exclusion rules may be too restrictive."
        if blocked:
            message += " No allowed recipient for: " + ", ".join(str(b) for b in blocked) + "."
        super().__init__(message)
        self.attempts = attempts
        self.blocked = list(blocked or [])


class ParticipantNotFound(SantaError):
    status_code = 404
    default_message = "You are not on the participant list."

    def __init__(self, name: str):
        super().__init__()
        self.name = name


class AssignmentMissing(SantaError):
    default_message = "Draw result not found for user."

    def __init__(self, participant_id: int, event_id: int):
        super().__init__()
        self.participant_id = participant_id
        self.event_id = event_id


class NoActiveEvent(SantaError):
    default_message = "No active event found."


class RosterError(SantaError):
    status_code = 400
