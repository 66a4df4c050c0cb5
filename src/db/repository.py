"""Protocol repository (SQLAlchemy implementation in sql_repository.py, in-memory mock in the tests)"""

from typing import Protocol
from uuid import UUID

from src.core.models import GameSessionModel


class SessionRepository(Protocol):
    """Persistence layer orchestration: custody of per-game keypairs and player ids."""

    def get_session(self, game_id: UUID) -> GameSessionModel | None:
        """Get session by ID, if record exists."""
        ...

    def create_session(self, session: GameSessionModel) -> tuple[GameSessionModel, UUID]:
        """Store new session and return the stored data + newly created game ID."""
        ...

    def mark_verified(self, game_id: UUID) -> bool:
        """
        Close an open session after its log was accepted, and erase its private key.
        Returns False if the session does not exist or was already verified (first success wins).
        """
        ...

    def delete_session(self, game_id: UUID) -> GameSessionModel | None:
        """Remove a session's record."""
        ...
