"""
Server-side replay of a game log.

The log is re-derived from scratch with the same FSM the client used. A log that claims a move was valid, a state,
a board or a final outcome that the FSM does not reproduce is rejected. The first disagreement ends the replay.
"""

import logging
from enum import StrEnum
from typing import Any, NoReturn, Optional, Sequence

from src.core.exceptions import FsmMismatchError
from src.core.shared_types import EventKind
from src.ledger.canonical import sha256_hex
from src.ledger.entries import LogEntry
from src.tictactoe.fsm import GameState, MoveAttempt, get_initial_game_state, transition

logger = logging.getLogger(__name__)


class ReplayViolation(StrEnum):
    MALFORMED_MOVE = "malformed_move"
    MOVE_REJECTED = "move_rejected"
    STATE_MISMATCH = "state_mismatch"
    BOARD_MISMATCH = "board_mismatch"
    MISSING_TERMINAL_EVENT = "missing_terminal_event"
    FINAL_STATE_MISMATCH = "final_state_mismatch"


def replay_game(log: Sequence[LogEntry], player_x_id: str, player_o_id: str) -> GameState:
    """
    Re-simulate every validated move in ascending sequence order and return the final state.

    ----
    Per PLAYER_MOVE_VALIDATED entry:
    1. the server FSM must also accept the move
    2. the resulting FSM state must equal the recorded `fsmState`
    3. the hash of the resulting board must equal the hash of the recorded `boardState`

    Afterwards the last entry of the log must be a game-ended event whose `fsmState` is the replayed final state.
    """
    state = get_initial_game_state(player_x_id, player_o_id)

    validated_moves = (
        entry for entry in log if entry.event_type == EventKind.PLAYER_MOVE_VALIDATED
    )
    for entry in sorted(validated_moves, key=lambda e: e.sequence):
        move = _move_from_entry(entry)
        result = transition(state, move)

        if not result.is_valid_move or result.new_board is None:
            _mismatch(
                ReplayViolation.MOVE_REJECTED,
                entry,
                f"Move recorded as valid was rejected by the server FSM: {result.error}",
            )

        if result.new_state != entry.fsm_state:
            _mismatch(
                ReplayViolation.STATE_MISMATCH,
                entry,
                f"FSM state mismatch: expected {result.new_state}, found {entry.fsm_state}.",
            )

        if sha256_hex(result.new_board) != sha256_hex(entry.board_state):
            _mismatch(ReplayViolation.BOARD_MISMATCH, entry, "FSM board state mismatch.")

        state = state.advance(result)

    final_entry = log[-1] if log else None
    if final_entry is None or not final_entry.event_type.is_game_ended:
        _mismatch(
            ReplayViolation.MISSING_TERMINAL_EVENT,
            final_entry,
            "Final log entry is not a game over event.",
        )
    if final_entry.fsm_state != state.current_state:
        _mismatch(
            ReplayViolation.FINAL_STATE_MISMATCH,
            final_entry,
            f"Final state mismatch: server reached {state.current_state}, client reported {final_entry.fsm_state}.",
        )

    logger.info("FSM gameplay successfully verified, final state %s.", state.current_state)
    return state


def verify_gameplay(log: Sequence[LogEntry], player_x_id: str, player_o_id: str) -> bool:
    try:
        replay_game(log, player_x_id, player_o_id)
    except FsmMismatchError:
        return False
    return True


def _move_from_entry(entry: LogEntry) -> MoveAttempt:
    """Read the recorded move. Index and id types are checked later by the FSM itself."""
    move: Any = entry.event_data.get("move")
    if not isinstance(move, dict) or "rowIndex" not in move or "colIndex" not in move:
        _mismatch(ReplayViolation.MALFORMED_MOVE, entry, "Validated move entry carries no move.")
    return MoveAttempt(
        row_index=move["rowIndex"],
        col_index=move["colIndex"],
        player_id=entry.event_data.get("playerId"),
    )


def _mismatch(violation: ReplayViolation, entry: Optional[LogEntry], message: str) -> NoReturn:
    sequence = entry.sequence if entry is not None else None
    logger.error("FSM replay failed at sequence %s: %s (%s)", sequence, violation, message)
    raise FsmMismatchError(reason=violation, message=message, sequence=sequence)
