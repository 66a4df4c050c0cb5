"""
Type definitions used across layers
"""

from enum import StrEnum


class Cell(StrEnum):
    EMPTY = ""
    X = "X"
    O = "O"  # noqa: E741


class FsmState(StrEnum):
    PLAYER_X_TURN = "PLAYER_X_TURN"
    PLAYER_O_TURN = "PLAYER_O_TURN"
    GAME_OVER_X_WINS = "GAME_OVER_X_WINS"
    GAME_OVER_O_WINS = "GAME_OVER_O_WINS"
    GAME_OVER_DRAW = "GAME_OVER_DRAW"

    @property
    def is_terminal(self) -> bool:
        return self.name.startswith("GAME_OVER")


class EventKind(StrEnum):
    GAME_CREATED = "GAME_CREATED"
    PLAYER_MOVE_VALIDATED = "PLAYER_MOVE_VALIDATED"
    PLAYER_MOVE_REJECTED = "PLAYER_MOVE_REJECTED"
    GAME_WON = "GAME_WON"
    GAME_DRAWN = "GAME_DRAWN"

    @property
    def is_game_ended(self) -> bool:
        return self in (EventKind.GAME_WON, EventKind.GAME_DRAWN)


class SessionStatus(StrEnum):
    OPEN = "open"
    VERIFIED = "verified"


class SubmissionStatus(StrEnum):
    VERIFIED = "verified"
    VERIFICATION_FAILED = "verification_failed"


class FailureReason(StrEnum):
    HASH_CHAIN_BROKEN = "hash_chain_broken"
    FSM_MISMATCH = "fsm_mismatch"
