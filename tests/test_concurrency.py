"""Concurrent writers against a file-backed SQLite ledger must be serialized."""

from __future__ import annotations

import threading
import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from conftest import OWNER, DEV, ALICE, BOB, mint
from core.access_control import AccessControlManager
from core.ledger import CarLedger
from core.minting import MintingManager
from core.race import RaceManager
from database import Base, enable_sqlite_write_lock
from services.randomness import RandomnessSource


class SlowRandomness(RandomnessSource):
    """Holds each draw open for a while and records how many overlap."""

    def __init__(self, value: int, delay: float = 0.2):
        self.value = value
        self.delay = delay
        self.inside = 0
        self.max_inside = 0
        self._lock = threading.Lock()

    def next_value(self, upper: int, *seed) -> int:
        with self._lock:
            self.inside += 1
            self.max_inside = max(self.max_inside, self.inside)
        time.sleep(self.delay)
        with self._lock:
            self.inside -= 1
        return self.value % upper


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_write_lock(engine)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = factory()
    AccessControlManager.initialize(session, OWNER, DEV)
    session.close()

    yield factory
    engine.dispose()


def _run_in_threads(factory, jobs):
    errors = []

    def worker(job):
        session = factory()
        try:
            job(session)
        except Exception as e:  # collected for the assertion below
            errors.append(e)
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=(job,)) for job in jobs]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return errors


def test_concurrent_challenges_do_not_lose_updates(file_sessions):
    session = file_sessions()
    mint(session, ALICE)
    mint(session, BOB)
    mint(session, ALICE)
    session.close()

    rolls = SlowRandomness(0)
    errors = _run_in_threads(file_sessions, [
        lambda db: RaceManager.challenge(db, ALICE, 0, 1, rolls),
        lambda db: RaceManager.challenge(db, ALICE, 2, 1, rolls),
    ])

    assert errors == []
    assert rolls.max_inside == 1

    session = file_sessions()
    assert AccessControlManager.get_state(session).race_nonce == 2
    assert CarLedger.get_car(session, 1).loss_count == 2
    assert CarLedger.get_car(session, 0).win_count == 1
    assert CarLedger.get_car(session, 2).win_count == 1
    session.close()


def test_concurrent_mints_get_distinct_ids(file_sessions):
    rolls = SlowRandomness(99)
    errors = _run_in_threads(file_sessions, [
        lambda db: MintingManager.choose_rarity_car(db, ALICE, rolls),
        lambda db: MintingManager.choose_rarity_car(db, BOB, rolls),
    ])

    assert errors == []

    session = file_sessions()
    assert CarLedger.total_supply(session) == 2
    assert sorted(CarLedger.get_cars_by_owner(session, ALICE) + CarLedger.get_cars_by_owner(session, BOB)) == [0, 1]
    assert AccessControlManager.get_state(session).creation_counter == 2
    session.close()
