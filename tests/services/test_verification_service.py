"""Unit tests for src/services/verification_service.py"""

from typing import Generator
from uuid import UUID, uuid4

import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from src.core.exceptions import (
    DecryptionError,
    KeyUnavailableError,
    MalformedLogError,
    SessionAlreadyVerifiedError,
    SessionNotFoundError,
)
from src.core.models import GameSessionModel
from src.core.shared_types import FailureReason, SessionStatus, SubmissionStatus
from src.crypto.envelope import EncryptedEnvelope, encrypt_log
from src.crypto.keys import OAEP_PADDING, KeyPair, load_public_key
from src.ledger.entries import LogEntry
from src.services.verification_service import (
    CreateGameRequest,
    CreateGameResponse,
    SubmissionResponse,
    SubmitLogRequest,
    VerificationService,
)

X_ID = "DOGE"
O_ID = "PEPE"


# --- MOCK DEPENDENCIES ----
class MockRepository:
    """Mock the SessionRepository using a dictionary of session models."""

    def __init__(self) -> None:
        self._sessions: dict[UUID, GameSessionModel] = {}

    def create_session(self, session: GameSessionModel) -> tuple[GameSessionModel, UUID]:
        game_id = uuid4()
        self._sessions[game_id] = session
        return session, game_id

    def get_session(self, game_id: UUID) -> GameSessionModel | None:
        return self._sessions.get(game_id)

    def mark_verified(self, game_id: UUID) -> bool:
        session = self._sessions.get(game_id)
        if session is None or session.status != SessionStatus.OPEN:
            return False
        session.status = SessionStatus.VERIFIED
        session.private_key_pem = None
        return True

    def delete_session(self, game_id: UUID) -> GameSessionModel | None:
        return self._sessions.pop(game_id, None)

    def clear(self) -> None:
        """Clear the repository (useful in between tests)"""
        self._sessions.clear()


@pytest.fixture
def mock_repository() -> Generator[MockRepository, None, None]:
    """Ensures to clear the repository between tests"""
    repo = MockRepository()
    try:
        yield repo
    finally:
        repo.clear()


@pytest.fixture
def seeded_game(mock_repository: MockRepository, keypair: KeyPair) -> UUID:
    """A session with the shared test keypair, so that no key has to be generated per test."""
    _, game_id = mock_repository.create_session(
        GameSessionModel(
            player_x_id=X_ID,
            player_o_id=O_ID,
            public_key_pem=keypair.public_key_pem,
            private_key_pem=keypair.private_key_pem,
        )
    )
    return game_id


def submission(game_id: UUID, log: list[LogEntry], public_key_pem: str) -> SubmitLogRequest:
    return SubmitLogRequest.from_envelope(game_id, encrypt_log(log, public_key_pem))


# --- SERVICE - CREATE GAME ----
def test_create_game(mock_repository: MockRepository) -> None:
    """Keypair gets generated, public half returned, private half persisted only."""
    service = VerificationService(mock_repository)
    response = service.create_game(CreateGameRequest(player_x_id="alice", player_o_id="bob"))

    assert isinstance(response, CreateGameResponse)
    assert isinstance(response.game_id, UUID)
    assert response.public_key.startswith("-----BEGIN PUBLIC KEY-----")
    assert "PRIVATE" not in response.model_dump_json()

    stored = mock_repository.get_session(response.game_id)
    assert stored is not None
    assert stored.player_x_id == "alice"
    assert stored.player_o_id == "bob"
    assert stored.public_key_pem == response.public_key
    assert stored.private_key_pem is not None
    assert stored.status == SessionStatus.OPEN


def test_create_game_defaults_player_ids(mock_repository: MockRepository) -> None:
    service = VerificationService(mock_repository)
    response = service.create_game(CreateGameRequest())
    stored = mock_repository.get_session(response.game_id)
    assert stored is not None
    assert (stored.player_x_id, stored.player_o_id) == (X_ID, O_ID)


# --- SERVICE - SUBMIT LOG: VERIFIED ----
@pytest.mark.parametrize("log_fixture", ["won_log", "drawn_log"])
def test_honest_log_is_verified(
    mock_repository: MockRepository,
    seeded_game: UUID,
    keypair: KeyPair,
    log_fixture: str,
    request: pytest.FixtureRequest,
) -> None:
    log = request.getfixturevalue(log_fixture)
    service = VerificationService(mock_repository)
    response = service.submit_log(submission(seeded_game, log, keypair.public_key_pem))

    assert response == SubmissionResponse(
        status=SubmissionStatus.VERIFIED,
        message="Log successfully decrypted and all integrity checks passed.",
    )
    stored = mock_repository.get_session(seeded_game)
    assert stored is not None
    assert stored.status == SessionStatus.VERIFIED
    assert stored.private_key_pem is None


def test_full_round_trip_through_create_game(mock_repository: MockRepository, won_log: list[LogEntry]) -> None:
    service = VerificationService(mock_repository)
    created = service.create_game(CreateGameRequest())
    response = service.submit_log(submission(created.game_id, won_log, created.public_key))
    assert response.status == SubmissionStatus.VERIFIED


def test_second_submission_is_refused(
    mock_repository: MockRepository, seeded_game: UUID, keypair: KeyPair, won_log: list[LogEntry]
) -> None:
    service = VerificationService(mock_repository)
    request = submission(seeded_game, won_log, keypair.public_key_pem)
    service.submit_log(request)

    with pytest.raises(SessionAlreadyVerifiedError):
        service.submit_log(request)


def test_lost_race_is_refused(
    mock_repository: MockRepository, seeded_game: UUID, keypair: KeyPair, won_log: list[LogEntry]
) -> None:
    """Another submission closed the session while this one was being verified."""
    service = VerificationService(mock_repository)
    request = submission(seeded_game, won_log, keypair.public_key_pem)
    mock_repository.mark_verified = lambda game_id: False  # type: ignore[method-assign]

    with pytest.raises(SessionAlreadyVerifiedError):
        service.submit_log(request)


# --- SERVICE - SUBMIT LOG: VERIFICATION FAILED ----
def test_broken_chain_is_reported(
    mock_repository: MockRepository, seeded_game: UUID, keypair: KeyPair, won_log: list[LogEntry]
) -> None:
    won_log[3] = won_log[3].model_copy(update={"client_timestamp": 0})
    service = VerificationService(mock_repository)
    response = service.submit_log(submission(seeded_game, won_log, keypair.public_key_pem))

    assert response.status == SubmissionStatus.VERIFICATION_FAILED
    assert response.reason == FailureReason.HASH_CHAIN_BROKEN
    assert response.failed_sequence == 3
    assert "entry_hash_mismatch" in response.message


def test_fsm_mismatch_is_reported(
    mock_repository: MockRepository, seeded_game: UUID, keypair: KeyPair, won_log: list[LogEntry]
) -> None:
    truncated = won_log[:-1]
    service = VerificationService(mock_repository)
    response = service.submit_log(submission(seeded_game, truncated, keypair.public_key_pem))

    assert response.status == SubmissionStatus.VERIFICATION_FAILED
    assert response.reason == FailureReason.FSM_MISMATCH
    assert "missing_terminal_event" in response.message


def test_failed_verification_keeps_session_open(
    mock_repository: MockRepository, seeded_game: UUID, keypair: KeyPair, won_log: list[LogEntry]
) -> None:
    """The client may resubmit a fresh, correct log after a failure."""
    service = VerificationService(mock_repository)
    service.submit_log(submission(seeded_game, won_log[:-1], keypair.public_key_pem))

    stored = mock_repository.get_session(seeded_game)
    assert stored is not None
    assert stored.status == SessionStatus.OPEN

    response = service.submit_log(submission(seeded_game, won_log, keypair.public_key_pem))
    assert response.status == SubmissionStatus.VERIFIED


def test_players_come_from_the_session(
    mock_repository: MockRepository, keypair: KeyPair, won_log: list[LogEntry]
) -> None:
    """A log played by other player ids than the session's does not replay."""
    _, game_id = mock_repository.create_session(
        GameSessionModel("someone", "else", keypair.public_key_pem, keypair.private_key_pem)
    )
    service = VerificationService(mock_repository)
    response = service.submit_log(submission(game_id, won_log, keypair.public_key_pem))
    assert response.reason == FailureReason.FSM_MISMATCH


# --- SERVICE - SUBMIT LOG: ERRORS ----
def test_unknown_session(mock_repository: MockRepository, keypair: KeyPair, won_log: list[LogEntry]) -> None:
    service = VerificationService(mock_repository)
    with pytest.raises(SessionNotFoundError):
        service.submit_log(submission(uuid4(), won_log, keypair.public_key_pem))


def test_missing_private_key(
    mock_repository: MockRepository, seeded_game: UUID, keypair: KeyPair, won_log: list[LogEntry]
) -> None:
    stored = mock_repository.get_session(seeded_game)
    assert stored is not None
    stored.private_key_pem = None

    service = VerificationService(mock_repository)
    with pytest.raises(KeyUnavailableError):
        service.submit_log(submission(seeded_game, won_log, keypair.public_key_pem))


def test_log_for_another_key(
    mock_repository: MockRepository, won_log: list[LogEntry], keypair: KeyPair
) -> None:
    """Encrypted for the wrong session's public key."""
    service = VerificationService(mock_repository)
    created = service.create_game(CreateGameRequest())
    with pytest.raises(DecryptionError):
        service.submit_log(submission(created.game_id, won_log, keypair.public_key_pem))


def test_corrupted_in_transit(
    mock_repository: MockRepository, seeded_game: UUID, keypair: KeyPair, won_log: list[LogEntry]
) -> None:
    envelope = encrypt_log(won_log, keypair.public_key_pem)
    corrupted = EncryptedEnvelope(
        encrypted_log=bytes([envelope.encrypted_log[0] ^ 0xFF]) + envelope.encrypted_log[1:],
        encrypted_key=envelope.encrypted_key,
        iv=envelope.iv,
    )
    service = VerificationService(mock_repository)
    with pytest.raises(DecryptionError):
        service.submit_log(SubmitLogRequest.from_envelope(seeded_game, corrupted))

    # nothing was accepted
    stored = mock_repository.get_session(seeded_game)
    assert stored is not None
    assert stored.status == SessionStatus.OPEN


def test_decrypted_garbage(mock_repository: MockRepository, seeded_game: UUID, keypair: KeyPair) -> None:
    """Authentic envelope, but the content is not a game log."""
    aes_key = AESGCM.generate_key(bit_length=256)
    iv = b"\x01" * 12
    envelope = EncryptedEnvelope(
        encrypted_log=AESGCM(aes_key).encrypt(iv, b'[{"sequence": "zero"}]', None),
        encrypted_key=load_public_key(keypair.public_key_pem).encrypt(aes_key, OAEP_PADDING),
        iv=iv,
    )
    service = VerificationService(mock_repository)
    with pytest.raises(MalformedLogError):
        service.submit_log(SubmitLogRequest.from_envelope(seeded_game, envelope))



# --- SERVICE - DELETE GAME ----
def test_delete_game_discards_session(
    mock_repository: MockRepository, seeded_game: UUID, keypair: KeyPair, won_log: list[LogEntry]
) -> None:
    service = VerificationService(mock_repository)
    service.delete_game(seeded_game)

    assert mock_repository.get_session(seeded_game) is None
    with pytest.raises(SessionNotFoundError):
        service.submit_log(submission(seeded_game, won_log, keypair.public_key_pem))


def test_delete_verified_game(
    mock_repository: MockRepository, seeded_game: UUID, keypair: KeyPair, won_log: list[LogEntry]
) -> None:
    service = VerificationService(mock_repository)
    service.submit_log(submission(seeded_game, won_log, keypair.public_key_pem))
    service.delete_game(seeded_game)
    assert mock_repository.get_session(seeded_game) is None


def test_delete_unknown_game(mock_repository: MockRepository) -> None:
    service = VerificationService(mock_repository)
    with pytest.raises(SessionNotFoundError):
        service.delete_game(uuid4())
