"""
Custom exceptions.

Everything derives from GameError so that callers can catch one top-level type,
while the service/API layer maps the specific subclasses to distinct outcomes.
"""

from typing import Optional


class GameError(Exception):
    """Top-level exception for this application."""


# --- REQUESTS ---
class InvalidRequestError(GameError):
    """Request is missing required fields or carries values that cannot be interpreted."""


# --- GAMEPLAY ---
class GameStateError(GameError):
    """Operation is not allowed in the current state of the game."""


class GameOverError(GameStateError):
    """A move was attempted after the game already ended."""


# --- SESSIONS ---
class SessionError(GameError):
    """Problems with the server-side custody record of a game session."""


class SessionNotFoundError(SessionError):
    """No session record exists for the given id."""


class SessionAlreadyVerifiedError(SessionError):
    """The session's log was already accepted once. Its private key is gone."""


class KeyUnavailableError(SessionError):
    """Session record exists but its private key is missing or unusable."""


# --- ENVELOPE ---
class EnvelopeError(GameError):
    """Hybrid encryption envelope could not be built or opened."""


class EncryptionError(EnvelopeError):
    pass


class DecryptionError(EnvelopeError):
    """RSA-OAEP or AES-GCM step failed. No plaintext is ever attached."""


# --- LOGS ---
class LogError(GameError):
    """Problems with the structure of a game log."""


class CanonicalizationError(LogError):
    """Value cannot be represented in canonical form."""


class MalformedLogError(LogError):
    """Decrypted text does not parse into a list of log entries."""


# --- VERIFICATION ---
class VerificationError(GameError):
    """A submitted log failed verification."""

    def __init__(self, reason: str, message: str, sequence: Optional[int] = None) -> None:
        super().__init__(message)
        self.reason = reason
        self.sequence = sequence


class HashChainBrokenError(VerificationError):
    """Chain linkage or entry hash does not hold at `sequence`."""


class FsmMismatchError(VerificationError):
    """Replaying the log with the FSM does not reproduce what the log claims."""
