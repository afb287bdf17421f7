"""
Exhaustive game-tree search player.

Searches the full tree below the current position and returns a move with the
best guaranteed result. Positions are memoised on the board contents, so a 3x3
game is searched once per process.
"""

from functools import lru_cache
from typing import Optional, Tuple

import numpy as np

from tictac_nn.env.game_env import VictoryCheck, check_victory, other_player
from tictac_nn.players.base import Move, Player


@lru_cache(maxsize=None)
def _cached_value(cells: Tuple[int, ...], n: int, player: int, in_a_row: int) -> int:
    board = np.array(cells, dtype=np.int8).reshape(n, n)
    best = -1
    for row, col in np.argwhere(board == 0):
        board[row, col] = player
        result = check_victory((row, col), in_a_row, board)
        if result == VictoryCheck.DRAW:
            return 0
        if result == VictoryCheck.WIN:
            return 1
        best = max(best, -_cached_value(tuple(board.reshape(-1).tolist()), n, other_player(player), in_a_row))
        board[row, col] = 0
    return best


def negamax_value(board: np.ndarray, player: int, in_a_row: int) -> int:
    """
    Value of a position for the player about to move, under optimal play.

    Args:
        board: Square board with 0 empty, 1 and 2 for the players' marks
        player: Player to move (1 or 2)
        in_a_row: Marks in a row needed to win

    Returns:
        1 if the player to move wins, 0 for a draw, -1 for a loss
    """
    board = np.asarray(board)
    return _cached_value(tuple(board.reshape(-1).tolist()), board.shape[0], player, in_a_row)


class MinimaxPlayer(Player):
    """Player that plays optimally by searching the whole game tree."""

    def __init__(self, in_a_row: int, player_number: int, name: str = "Minmax",
                 rng: Optional[np.random.Generator] = None):
        """
        Args:
            in_a_row: Marks in a row needed to win
            player_number: Which player this is (1 or 2); the board is read raw
            name: Player name for display
            rng: Random number generator for the opening move
        """
        super().__init__(name)
        if player_number not in (1, 2):
            raise ValueError(f"Player number must be 1 or 2, got {player_number}")
        self.in_a_row = in_a_row
        self.player_number = player_number
        self.rng = rng if rng is not None else np.random.default_rng()

    def get_move(self, board: np.ndarray) -> Move:
        board = np.asarray(board)
        empty = np.argwhere(board == 0)
        if len(empty) == 0:
            raise ValueError("No legal moves available")

        # Any opening square is fine on an empty board; skip the full search
        if len(empty) == board.size:
            row, col = empty[self.rng.integers(len(empty))]
            return int(row), int(col)

        best_value = -2
        best_move = None
        opponent = other_player(self.player_number)
        for row, col in empty:
            next_board = board.copy()
            next_board[row, col] = self.player_number
            if check_victory((row, col), self.in_a_row, next_board) != VictoryCheck.ONGOING:
                return int(row), int(col)

            value = -negamax_value(next_board, opponent, self.in_a_row)
            if value > best_value:
                best_value = value
                best_move = (int(row), int(col))

        return best_move

    def __repr__(self) -> str:
        return f"MinimaxPlayer(in_a_row={self.in_a_row}, player_number={self.player_number})"
