"""
Finite state machine with the rules of Tic-Tac-Toe.

`transition` is a pure function: client and server run the very same code on the same inputs and must reach the same result.
No floating point, no randomness, no locale dependent formatting, and the input state is never mutated.
"""

from dataclasses import dataclass, replace
from typing import Optional, Self

from src.core.shared_types import Cell, FsmState
from src.tictactoe.board import Board, empty_board, has_won, is_full, is_within_bounds, place

GAME_ALREADY_OVER = "Game is already over."
CELL_UNAVAILABLE = "Invalid move: cell is occupied or out of bounds."

TURN_SYMBOL: dict[FsmState, Cell] = {
    FsmState.PLAYER_X_TURN: Cell.X,
    FsmState.PLAYER_O_TURN: Cell.O,
}
NEXT_TURN: dict[FsmState, FsmState] = {
    FsmState.PLAYER_X_TURN: FsmState.PLAYER_O_TURN,
    FsmState.PLAYER_O_TURN: FsmState.PLAYER_X_TURN,
}
WIN_STATE: dict[Cell, FsmState] = {
    Cell.X: FsmState.GAME_OVER_X_WINS,
    Cell.O: FsmState.GAME_OVER_O_WINS,
}


@dataclass(frozen=True)
class MoveAttempt:
    row_index: int
    col_index: int
    player_id: str


@dataclass(frozen=True)
class TransitionResult:
    new_state: FsmState
    is_valid_move: bool
    new_board: Optional[Board] = None  # only for valid moves
    error: Optional[str] = None  # only for invalid moves


@dataclass(frozen=True)
class GameState:
    current_state: FsmState
    board: Board
    player_x_id: str
    player_o_id: str

    def player_for(self, symbol: Cell) -> str:
        return self.player_x_id if symbol == Cell.X else self.player_o_id

    @property
    def turn_player(self) -> Optional[str]:
        """Id of the player to move, None once the game is over."""
        symbol = TURN_SYMBOL.get(self.current_state)
        return self.player_for(symbol) if symbol else None

    def advance(self, result: TransitionResult) -> Self:
        """New state after a transition. Invalid moves leave the board untouched."""
        if not result.is_valid_move or result.new_board is None:
            return replace(self, current_state=result.new_state)
        return replace(self, current_state=result.new_state, board=result.new_board)


def get_initial_game_state(player_x_id: str, player_o_id: str) -> GameState:
    """X always opens."""
    return GameState(
        current_state=FsmState.PLAYER_X_TURN,
        board=empty_board(),
        player_x_id=player_x_id,
        player_o_id=player_o_id,
    )


def transition(state: GameState, move: MoveAttempt) -> TransitionResult:
    """
    Apply a move attempt to the game state.

    ----
    1. Terminal states accept nothing.
    2. Only the player whose turn it is may move.
    3. The target must be an empty cell on the board.
    4. Place the mover's symbol on a copy of the board, then check win (8 lines) and draw (board full).
    """
    current_state = state.current_state

    if current_state.is_terminal:
        return TransitionResult(current_state, is_valid_move=False, error=GAME_ALREADY_OVER)

    symbol = TURN_SYMBOL[current_state]
    if move.player_id != state.player_for(symbol):
        return TransitionResult(
            current_state,
            is_valid_move=False,
            error=f"Not player {symbol}'s turn.",
        )

    if (
        not is_within_bounds(move.row_index, move.col_index)
        or state.board[move.row_index][move.col_index] != Cell.EMPTY
    ):
        return TransitionResult(current_state, is_valid_move=False, error=CELL_UNAVAILABLE)

    new_board = place(state.board, move.row_index, move.col_index, symbol)

    if has_won(new_board, symbol):
        return TransitionResult(WIN_STATE[symbol], is_valid_move=True, new_board=new_board)
    if is_full(new_board):
        return TransitionResult(
            FsmState.GAME_OVER_DRAW, is_valid_move=True, new_board=new_board
        )
    return TransitionResult(NEXT_TURN[current_state], is_valid_move=True, new_board=new_board)
