"""
Generalized N×N K-in-a-row game environment.

This module provides the game logic for a configurable board size and win condition.
Cells hold 0 (empty), 1 (player 1, X) or 2 (player 2, O).
"""

from enum import IntEnum
from typing import List, Optional, Sequence, Tuple

import numpy as np


EMPTY = 0
PLAYER_ONE = 1
PLAYER_TWO = 2


class VictoryCheck(IntEnum):
    """Result of checking the board after a move."""
    ONGOING = -1
    DRAW = 0
    WIN = 1


class Outcome(IntEnum):
    """Terminal outcome of a game."""
    DRAW = 0
    PLAYER1_WIN = 1
    PLAYER2_WIN = 2


def other_player(player: int) -> int:
    return player % 2 + 1


def check_victory(last_move: Sequence[int], in_a_row: int, board: np.ndarray) -> VictoryCheck:
    """
    Check whether the most recent move ended the game.

    Only lines through the last move are inspected: horizontal, vertical and
    both diagonals.

    Args:
        last_move: (row, col) of the most recent move
        in_a_row: Number of consecutive marks needed to win
        board: Square board holding the last move

    Returns:
        WIN if the last mover completed a line, DRAW if the board is now full,
        ONGOING otherwise
    """
    row, col = int(last_move[0]), int(last_move[1])
    n = board.shape[0]
    player = board[row, col]

    for dr, dc in ((1, 0), (0, 1), (1, 1), (-1, 1)):
        length = 1
        for sign in (1, -1):
            r, c = row + sign * dr, col + sign * dc
            while 0 <= r < n and 0 <= c < n and board[r, c] == player:
                length += 1
                r += sign * dr
                c += sign * dc
        if length >= in_a_row:
            return VictoryCheck.WIN

    if np.any(board == EMPTY):
        return VictoryCheck.ONGOING
    return VictoryCheck.DRAW


def swap_sides(board: np.ndarray) -> np.ndarray:
    """Return a copy of the board with player 1 and player 2 marks exchanged."""
    swapped = board.copy()
    swapped[board == PLAYER_ONE] = PLAYER_TWO
    swapped[board == PLAYER_TWO] = PLAYER_ONE
    return swapped


class GameEnv:
    """N×N board with K-in-a-row win condition."""

    def __init__(self, n: int = 3, k: int = 3):
        """
        Initialize the game environment.

        Args:
            n: Board size (N×N)
            k: Number of consecutive pieces needed to win
        """
        if k > n:
            raise ValueError(f"K ({k}) cannot be greater than N ({n})")
        if n < 1:
            raise ValueError(f"N must be at least 1, got {n}")
        if k < 1:
            raise ValueError(f"K must be at least 1, got {k}")

        self.n = n
        self.k = k
        self.board = np.zeros((n, n), dtype=np.int8)
        self.current_player = PLAYER_ONE
        self.move_count = 0
        self.game_over = False
        self.winner: Optional[int] = None

    def reset(self) -> np.ndarray:
        """Reset the game to initial state."""
        self.board = np.zeros((self.n, self.n), dtype=np.int8)
        self.current_player = PLAYER_ONE
        self.move_count = 0
        self.game_over = False
        self.winner = None
        return self.board.copy()

    def get_legal_moves(self) -> List[Tuple[int, int]]:
        """
        Get all legal moves (empty positions).

        Returns:
            List of (row, col) tuples representing empty positions
        """
        if self.game_over:
            return []
        empty_positions = np.argwhere(self.board == EMPTY)
        return [(int(row), int(col)) for row, col in empty_positions]

    def apply_move(self, row: int, col: int) -> Tuple[np.ndarray, VictoryCheck, bool]:
        """
        Apply a move for the current player.

        Args:
            row: Row index (0-indexed)
            col: Column index (0-indexed)

        Returns:
            Tuple of (new_board_state, result, done)

        Raises:
            ValueError: If move is illegal
        """
        if self.game_over:
            raise ValueError("Game is already over")

        if row < 0 or row >= self.n or col < 0 or col >= self.n:
            raise ValueError(f"Move ({row}, {col}) is out of bounds for {self.n}×{self.n} board")

        if self.board[row, col] != EMPTY:
            raise ValueError(f"Position ({row}, {col}) is already occupied")

        self.board[row, col] = self.current_player
        self.move_count += 1

        result = check_victory((row, col), self.k, self.board)
        if result == VictoryCheck.WIN:
            self.game_over = True
            self.winner = self.current_player
        elif result == VictoryCheck.DRAW:
            self.game_over = True
        else:
            self.current_player = other_player(self.current_player)

        return self.board.copy(), result, self.game_over

    def outcome(self) -> Optional[Outcome]:
        """Outcome of a finished game, None while the game is still running."""
        if not self.game_over:
            return None
        if self.winner is None:
            return Outcome.DRAW
        return Outcome(self.winner)

    def get_board(self, perspective: Optional[int] = None) -> np.ndarray:
        """
        Get a copy of the board, optionally from one player's point of view.

        Args:
            perspective: None for the raw board, otherwise the player (1 or 2)
                         whose marks should appear as 1

        Returns:
            Board copy; with perspective=2 the marks of both players are swapped
        """
        if perspective is None or perspective == PLAYER_ONE:
            return self.board.copy()
        if perspective == PLAYER_TWO:
            return swap_sides(self.board)
        raise ValueError(f"Unknown player {perspective}")

    def clone(self) -> 'GameEnv':
        """
        Create a deep copy of the current game state.

        Returns:
            New GameEnv instance with identical state
        """
        new_env = GameEnv(self.n, self.k)
        new_env.board = self.board.copy()
        new_env.current_player = self.current_player
        new_env.move_count = self.move_count
        new_env.game_over = self.game_over
        new_env.winner = self.winner
        return new_env

    def render(self) -> str:
        """
        Render the board as a string for display.

        Returns:
            String representation of the board
        """
        symbols = {EMPTY: '.', PLAYER_ONE: 'X', PLAYER_TWO: 'O'}
        lines = [f"Turn {self.move_count}"]

        col_header = '  ' + ' '.join(str(i) for i in range(self.n))
        lines.append(col_header)
        lines.append('  ' + '-' * (2 * self.n - 1))

        for i, row in enumerate(self.board):
            row_str = f"{i}|" + ' '.join(symbols[int(cell)] for cell in row)
            lines.append(row_str)

        return '\n'.join(lines)

    def print_board(self) -> None:
        print(self.render())

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return f"GameEnv(n={self.n}, k={self.k}, player={self.current_player}, moves={self.move_count})"
