from __future__ import annotations

from typing import Iterable, List

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from database import Base, Settings, get_settings
from core.access_control import AccessControlManager
from core.minting import MintingManager
from services.randomness import RandomnessSource

OWNER = "0x" + "ee" * 20
DEV = "0x" + "de" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
CAROL = "0x" + "c0" * 20
ZERO = "0x" + "00" * 20


class SequenceRandomness(RandomnessSource):
    """Replays a fixed list of values; the seed is ignored."""

    def __init__(self, values: Iterable[int]):
        self._values: List[int] = list(values)
        self.calls = 0

    def next_value(self, upper: int, *seed) -> int:
        if self.calls >= len(self._values):
            raise RuntimeError("SequenceRandomness exhausted")
        value = self._values[self.calls]
        self.calls += 1
        return value % upper


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    AccessControlManager.initialize(session, OWNER, DEV)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def settings(monkeypatch) -> Settings:
    """The cached settings object; tests flip flags with monkeypatch.setattr."""
    current = get_settings()
    for name, value in {
        "enforce_pause": False,
        "clear_approval_on_transfer": False,
        "require_race_target": False,
        "race_cooldown_seconds": 0,
        "race_victory_probability": 65,
    }.items():
        monkeypatch.setattr(current, name, value)
    return current


def mint(db: Session, owner: str, roll: int = 99):
    """Mint one car with a fixed rarity roll (99 -> Bronze)."""
    return MintingManager.choose_rarity_car(db, owner, SequenceRandomness([roll]))
