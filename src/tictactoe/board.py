"""The 3x3 board. Immutable: every placement returns a new board."""

from src.core.shared_types import Cell

BOARD_SIZE = 3

Board = tuple[tuple[Cell, ...], ...]

# 3 rows, 3 columns, 2 diagonals
WIN_LINES: tuple[tuple[tuple[int, int], ...], ...] = (
    ((0, 0), (0, 1), (0, 2)),
    ((1, 0), (1, 1), (1, 2)),
    ((2, 0), (2, 1), (2, 2)),
    ((0, 0), (1, 0), (2, 0)),
    ((0, 1), (1, 1), (2, 1)),
    ((0, 2), (1, 2), (2, 2)),
    ((0, 0), (1, 1), (2, 2)),
    ((0, 2), (1, 1), (2, 0)),
)


def empty_board() -> Board:
    return tuple(tuple(Cell.EMPTY for _ in range(BOARD_SIZE)) for _ in range(BOARD_SIZE))


def is_within_bounds(row_index: object, col_index: object) -> bool:
    """Only plain integers count as indices (booleans and floats never address a cell)."""
    return all(
        type(index) is int and 0 <= index < BOARD_SIZE for index in (row_index, col_index)
    )


def place(board: Board, row_index: int, col_index: int, cell: Cell) -> Board:
    return tuple(
        tuple(
            cell if (r, c) == (row_index, col_index) else current
            for c, current in enumerate(row)
        )
        for r, row in enumerate(board)
    )


def has_won(board: Board, cell: Cell) -> bool:
    return any(all(board[r][c] == cell for r, c in line) for line in WIN_LINES)


def is_full(board: Board) -> bool:
    return all(cell != Cell.EMPTY for row in board for cell in row)


def board_to_wire(board: Board) -> list[list[str]]:
    """Plain nested lists of strings, as stored in log entries."""
    return [[cell.value for cell in row] for row in board]

