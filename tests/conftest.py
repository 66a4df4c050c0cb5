"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Callable, Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.crypto.keys import KeyPair, generate_keypair
from src.db.schema import Base
from src.ledger.entries import LogEntry
from src.tictactoe.recorder import GameRecorder

PLAYER_X = "DOGE"
PLAYER_O = "PEPE"

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="session")
def keypair() -> KeyPair:
    """RSA key generation is slow-ish: one keypair for the whole test session."""
    return generate_keypair()


class FakeClock:
    """Deterministic millisecond timestamps."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        self.now += 250
        return self.now


def play(moves: list[tuple[int, int] | tuple[int, int, str]]) -> GameRecorder:
    """Start a game and feed it (row, col) or (row, col, player_id) attempts."""
    recorder = GameRecorder(PLAYER_X, PLAYER_O, clock=FakeClock())
    recorder.start()
    for move in moves:
        recorder.attempt_move(*move)
    return recorder


# X wins on the top row; includes a wrong-turn and an occupied-cell rejection
SCENARIO_X_WINS: list[tuple[int, int] | tuple[int, int, str]] = [
    (0, 0),
    (1, 0, PLAYER_X),  # wrong turn: X moves again
    (0, 0, PLAYER_O),  # occupied
    (1, 1),
    (0, 1),
    (2, 2),
    (0, 2),
]

# X O X / X O O / O X X: board full, no line
SCENARIO_DRAW: list[tuple[int, int] | tuple[int, int, str]] = [
    (0, 0),
    (0, 1),
    (0, 2),
    (1, 1),
    (1, 0),
    (1, 2),
    (2, 1),
    (2, 0),
    (2, 2),
]


@pytest.fixture
def won_log() -> list[LogEntry]:
    return list(play(SCENARIO_X_WINS).log)


@pytest.fixture
def drawn_log() -> list[LogEntry]:
    return list(play(SCENARIO_DRAW).log)


@pytest.fixture
def play_game() -> Callable[[list[tuple[int, int] | tuple[int, int, str]]], GameRecorder]:
    return play
