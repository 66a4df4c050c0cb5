"""Implementation of (Session)Repository using SQLAlchemy"""

from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from src.core.models import GameSessionModel
from src.core.shared_types import SessionStatus
from src.db.schema import DBGameSession, utc_now


class SQLSessionRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_session(self, game_id: UUID) -> GameSessionModel | None:
        """Get session by ID, if record exists."""
        session_db = self._fetch_session(game_id)
        if session_db:
            return self._to_model(session_db)
        return None

    def create_session(self, session: GameSessionModel) -> tuple[GameSessionModel, UUID]:
        """Store new session and return the stored data + newly created game ID."""

        new_id = uuid4()
        session_db = DBGameSession(
            id=new_id,
            player_x_id=session.player_x_id,
            player_o_id=session.player_o_id,
            public_key_pem=session.public_key_pem,
            private_key_pem=session.private_key_pem,
            status=session.status,
        )
        self.db.add(session_db)
        self.db.commit()
        self.db.refresh(session_db)
        return self._to_model(session_db), new_id

    def mark_verified(self, game_id: UUID) -> bool:
        """Single conditional UPDATE, so that of two racing submissions only one can succeed."""
        statement = (
            update(DBGameSession)
            .where(DBGameSession.id == game_id)
            .where(DBGameSession.status == SessionStatus.OPEN.value)
            .values(
                status=SessionStatus.VERIFIED.value,
                private_key_pem=None,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(statement)
        self.db.commit()
        return result.rowcount == 1

    def delete_session(self, game_id: UUID) -> GameSessionModel | None:
        """Remove a session's record."""
        session_db = self._fetch_session(game_id)
        if not session_db:
            return None
        session_model = self._to_model(session_db)
        self.db.delete(session_db)
        self.db.commit()
        return session_model

    def _fetch_session(self, game_id: UUID) -> DBGameSession | None:
        query = select(DBGameSession).where(DBGameSession.id == game_id)
        return self.db.scalar(query)

    def _to_model(self, session_db: DBGameSession) -> GameSessionModel:
        """Convert SQLAlchemy model to data transfer model."""
        return GameSessionModel(
            player_x_id=session_db.player_x_id,
            player_o_id=session_db.player_o_id,
            public_key_pem=session_db.public_key_pem,
            private_key_pem=session_db.private_key_pem,
            status=session_db.status,
        )
