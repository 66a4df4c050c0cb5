"""Orchestration of communication from API router to the verification pipeline and persistence layer (and the reverse direction)."""

import logging
from uuid import UUID

from src.api.models import (
    CreateGameRequest,
    CreateGameResponse,
    SubmissionResponse,
    SubmitLogRequest,
)
from src.core.exceptions import (
    FsmMismatchError,
    HashChainBrokenError,
    KeyUnavailableError,
    SessionAlreadyVerifiedError,
    SessionNotFoundError,
)
from src.core.models import GameSessionModel
from src.core.shared_types import FailureReason, SessionStatus, SubmissionStatus
from src.crypto.envelope import open_envelope
from src.crypto.keys import generate_keypair
from src.db.repository import SessionRepository
from src.ledger.hash_chain import check_chain
from src.verification.replay import replay_game

logger = logging.getLogger(__name__)


class VerificationService:
    """Orchestration of layers for creating game sessions and verifying their submitted logs."""

    def __init__(self, repository: SessionRepository) -> None:
        self.repo = repository

    # -- API routes logic ---
    def create_game(self, request: CreateGameRequest) -> CreateGameResponse:
        """Client requested a new game: generate the session keypair and hand out the public half."""

        keypair = generate_keypair()
        session = GameSessionModel(
            player_x_id=request.player_x_id,
            player_o_id=request.player_o_id,
            public_key_pem=keypair.public_key_pem,
            private_key_pem=keypair.private_key_pem,
            status=SessionStatus.OPEN,
        )
        stored_session, game_id = self.repo.create_session(session)
        logger.info("New game created with ID: %s", game_id)

        return CreateGameResponse(game_id=game_id, public_key=stored_session.public_key_pem)

    def submit_log(self, request: SubmitLogRequest) -> SubmissionResponse:
        """
        Verify a submitted (encrypted) game log.

        ----
        1. fetch the session's private key and player ids
        2. decrypt and parse the log
        3. verify the hash chain
        4. replay the game with the FSM
        5. close the session (first successful submission wins)

        Steps 3 and 4 end in a `verification_failed` response. Anything before that raises.
        """
        logger.info("Received log submission for gameId: %s", request.game_id)

        session = self._fetch_open_session(request.game_id)
        private_key_pem = session.private_key_pem
        if not private_key_pem:
            raise KeyUnavailableError(f"Key not found for game {request.game_id}.")

        game_log = open_envelope(request.to_envelope(), private_key_pem)
        logger.info("Successfully decrypted log for gameId: %s", request.game_id)

        try:
            check_chain(game_log)
        except HashChainBrokenError as exc:
            return self._failure(FailureReason.HASH_CHAIN_BROKEN, exc)

        try:
            replay_game(game_log, session.player_x_id, session.player_o_id)
        except FsmMismatchError as exc:
            return self._failure(FailureReason.FSM_MISMATCH, exc)

        if not self.repo.mark_verified(request.game_id):
            raise SessionAlreadyVerifiedError(
                f"Game {request.game_id} was verified by another submission."
            )

        return SubmissionResponse(
            status=SubmissionStatus.VERIFIED,
            message="Log successfully decrypted and all integrity checks passed.",
        )

    def delete_game(self, game_id: UUID) -> None:
        """Discard a session (and its key material) altogether, whatever its status."""
        if self.repo.delete_session(game_id) is None:
            raise SessionNotFoundError(f"Game session with {game_id=} not found.")
        logger.info("Game session %s deleted", game_id)

    # -- Internal helpers --
    def _fetch_open_session(self, game_id: UUID) -> GameSessionModel:
        """Attempt to find the session in the repository and raise error if it cannot be used anymore."""
        session = self.repo.get_session(game_id)
        if session is None:
            raise SessionNotFoundError(f"Game session with {game_id=} not found.")
        if session.status == SessionStatus.VERIFIED:
            raise SessionAlreadyVerifiedError(f"Game session with {game_id=} was already verified.")
        return session

    def _failure(
        self, reason: FailureReason, exc: HashChainBrokenError | FsmMismatchError
    ) -> SubmissionResponse:
        return SubmissionResponse(
            status=SubmissionStatus.VERIFICATION_FAILED,
            reason=reason,
            message=f"{exc} ({exc.reason})",
            failed_sequence=exc.sequence,
        )
