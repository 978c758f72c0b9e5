import random
import threading
import time
from dataclasses import dataclass, field

import pytest

from giftdraw.errors import AssignmentMissing, NoActiveEvent, ParticipantNotFound
from giftdraw.services import results
from giftdraw.services.matching import find_participant
from giftdraw.services.results import DrawService, SingleFlight


@dataclass
class FakeEvent:
    id: int


@dataclass
class FakePerson:
    id: int
    name: str
    alternative_names: list = field(default_factory=list)


@dataclass
class FakeRow:
    participant_id: int
    draws_for_id: int


class InMemoryRepository:
    def __init__(self, names, exclusions=(), event=FakeEvent(1)):
        self.people = [FakePerson(i + 1, name) for i, name in enumerate(names)]
        self.exclusions = list(exclusions)
        self.event = event
        self.rows = {}
        self.saves = 0

    def active_event(self):
        return self.event

    def participants(self):
        return list(self.people)

    def participant(self, participant_id):
        return next((p for p in self.people if p.id == participant_id), None)

    def find_participant(self, name):
        return find_participant(self.people, name)

    def participant_names(self):
        return sorted(p.name for p in self.people)

    def exclusion_pairs(self):
        return list(self.exclusions)

    def draw_results(self, event_id):
        return list(self.rows.get(event_id, []))

    def save_draw(self, event_id, pairs):
        self.saves += 1
        if self.rows.get(event_id):
            return False
        self.rows[event_id] = [FakeRow(g, r) for g, r in pairs]
        return True


FIVE = ["Anna", "Marek", "Kasia", "Piotr", "Zofia"]


def test_five_participants_form_a_permutation():
    service = DrawService(InMemoryRepository(FIVE), rng=random.Random(11))
    drawn = {name: service.check_result(name) for name in FIVE}
    assert drawn["Anna"] in {"Marek", "Kasia", "Piotr", "Zofia"}
    assert sorted(drawn.values()) == sorted(FIVE)
    assert all(giver != recipient for giver, recipient in drawn.items())


def test_lookup_is_idempotent():
    repo = InMemoryRepository(FIVE)
    service = DrawService(repo, rng=random.Random(5))
    first = service.check_result("Kasia")
    assert service.check_result("kasia") == first
    assert service.check_result("Kasia") == first
    assert repo.saves == 1


def test_two_participants_draw_each_other():
    service = DrawService(InMemoryRepository(["A", "B"]))
    assert service.check_result("A") == "B"
    assert service.check_result("B") == "A"


def test_existing_rows_skip_generation(monkeypatch):
    repo = InMemoryRepository(["A", "B", "C"])
    repo.rows[1] = [FakeRow(1, 3), FakeRow(2, 1), FakeRow(3, 2)]

    def boom(*args, **kwargs):
        raise AssertionError("draw must not be regenerated")

    monkeypatch.setattr(results, "generate_assignment", boom)
    assert DrawService(repo).check_result("A") == "C"


def test_unknown_name():
    repo = InMemoryRepository(FIVE)
    with pytest.raises(ParticipantNotFound):
        DrawService(repo).check_result("Zzz")
    assert repo.saves == 0


def test_no_active_event():
    with pytest.raises(NoActiveEvent):
        DrawService(InMemoryRepository(FIVE, event=None)).check_result("Anna")


def test_missing_row_for_known_participant_is_internal_fault():
    repo = InMemoryRepository(["A", "B", "C"])
    repo.rows[1] = [FakeRow(2, 3), FakeRow(3, 2)]
    with pytest.raises(AssignmentMissing):
        DrawService(repo).check_result("A")


def test_losing_writer_reads_the_winners_draw():
    class RacingRepository(InMemoryRepository):
        winner = [FakeRow(1, 2), FakeRow(2, 3), FakeRow(3, 1)]

        def save_draw(self, event_id, pairs):
            self.saves += 1
            self.rows[event_id] = list(self.winner)
            return False

    repo = RacingRepository(["A", "B", "C"])
    assert DrawService(repo).check_result("C") == "A"


def test_concurrent_first_lookups_draw_once(monkeypatch):
    calls = []
    real_generate = results.generate_assignment

    def counting_generate(*args, **kwargs):
        calls.append(1)
        return real_generate(*args, **kwargs)

    class SlowRepository(InMemoryRepository):
        def save_draw(self, event_id, pairs):
            time.sleep(0.05)
            return super().save_draw(event_id, pairs)

    monkeypatch.setattr(results, "generate_assignment", counting_generate)
    repo = SlowRepository(FIVE)
    service = DrawService(repo)
    barrier = threading.Barrier(8)
    answers = []

    def lookup():
        barrier.wait()
        answers.append(service.check_result("Anna"))

    threads = [threading.Thread(target=lookup) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert repo.saves == 1
    assert len(set(answers)) == 1


def test_single_flight_serializes_same_key():
    flight = SingleFlight()
    inside = []
    overlap = []

    def work():
        with flight.lock_for("event-1"):
            inside.append(1)
            overlap.append(len(inside))
            time.sleep(0.01)
            inside.pop()

    threads = [threading.Thread(target=work) for _ in range(5)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert overlap == [1] * 5


def test_single_flight_keys_are_independent():
    flight = SingleFlight()
    with flight.lock_for(1):
        acquired = threading.Event()

        def other():
            with flight.lock_for(2):
                acquired.set()

        t = threading.Thread(target=other)
        t.start()
        assert acquired.wait(timeout=1)
        t.join()
