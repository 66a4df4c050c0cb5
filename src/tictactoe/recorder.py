"""
Authoring side of the log protocol.

The GameRecorder is what a client runs while the game is played: every move attempt goes through the FSM,
the local state is advanced, and an entry describing the outcome (with the state AFTER the event) is appended to the hash chain.
When a move ends the game, the game-ended entry is appended as well and the log can be sealed for submission.
"""

import logging
import time
from typing import Any, Callable, Optional

from src.core.exceptions import GameOverError, GameStateError
from src.core.shared_types import Cell, EventKind, FsmState
from src.crypto.envelope import EncryptedEnvelope, encrypt_log
from src.ledger.entries import GameLog, LogEntry
from src.ledger.hash_chain import append_entry
from src.tictactoe.board import board_to_wire
from src.tictactoe.fsm import (
    TURN_SYMBOL,
    GameState,
    MoveAttempt,
    TransitionResult,
    get_initial_game_state,
    transition,
)

logger = logging.getLogger(__name__)


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


class GameRecorder:
    """Plays one game locally and keeps its hash-chained activity log."""

    def __init__(
        self,
        player_x_id: str,
        player_o_id: str,
        clock: Callable[[], int] = epoch_millis,
    ) -> None:
        self.state: GameState = get_initial_game_state(player_x_id, player_o_id)
        self._log: GameLog = []
        self._clock = clock

    @property
    def log(self) -> tuple[LogEntry, ...]:
        return tuple(self._log)

    @property
    def is_over(self) -> bool:
        return self.state.current_state.is_terminal

    @property
    def is_sealable(self) -> bool:
        return bool(self._log) and self._log[-1].event_type.is_game_ended

    def start(self) -> LogEntry:
        if self._log:
            raise GameStateError("Game log was already started.")
        return self._record(
            EventKind.GAME_CREATED,
            {"playerX": self.state.player_x_id, "playerO": self.state.player_o_id},
        )

    def attempt_move(
        self, row_index: int, col_index: int, player_id: Optional[str] = None
    ) -> TransitionResult:
        """
        Attempt a move for `player_id` (default: whoever's turn it is) and log the outcome.

        Rejected attempts are logged too; they do not change the board.
        """
        if not self._log:
            raise GameStateError("Call start() before making moves.")
        if self.is_over:
            raise GameOverError(f"Game is already over: {self.state.current_state}.")

        mover = player_id if player_id is not None else self.state.turn_player
        symbol = TURN_SYMBOL[self.state.current_state]
        result = transition(self.state, MoveAttempt(row_index, col_index, mover))

        # update the state BEFORE logging: entries snapshot the state after the event
        self.state = self.state.advance(result)

        move = {"rowIndex": row_index, "colIndex": col_index}
        if result.is_valid_move:
            self._record(
                EventKind.PLAYER_MOVE_VALIDATED,
                {"playerId": mover, "move": move, "symbolPlaced": symbol.value},
            )
        else:
            logger.warning("Invalid move by %s: %s", mover, result.error)
            self._record(
                EventKind.PLAYER_MOVE_REJECTED,
                {"playerId": mover, "attemptedMove": move, "reason": result.error},
            )

        if self.is_over:
            self._record_game_end()
        return result

    def seal(self, public_key_pem: str) -> EncryptedEnvelope:
        """Encrypt the finished log for the server."""
        if not self.is_sealable:
            raise GameStateError("Only a finished game log can be sealed.")
        return encrypt_log(self._log, public_key_pem)

    def _record_game_end(self) -> None:
        final_state = self.state.current_state
        if final_state == FsmState.GAME_OVER_DRAW:
            self._record(EventKind.GAME_DRAWN, {})
            return
        winner = Cell.X if final_state == FsmState.GAME_OVER_X_WINS else Cell.O
        self._record(EventKind.GAME_WON, {"winningPlayerId": self.state.player_for(winner)})

    def _record(self, event_type: EventKind, event_data: dict[str, Any]) -> LogEntry:
        return append_entry(
            self._log,
            event_type=event_type,
            event_data=event_data,
            board_state=board_to_wire(self.state.board),
            fsm_state=self.state.current_state.value,
            client_timestamp=self._clock(),
        )
