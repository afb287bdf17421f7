"""
Random player that selects moves uniformly at random from legal moves.

This player serves as a baseline for evaluating the performance of trained agents.
"""

from typing import Optional

import numpy as np

from tictac_nn.players.base import Move, Player


class RandomPlayer(Player):
    """A player that makes completely random moves."""

    def __init__(self, name: str = "Random Player", rng: Optional[np.random.Generator] = None):
        """
        Initialize the random player.

        Args:
            name: Player name for display
            rng: Random number generator
        """
        super().__init__(name)
        self.rng = rng if rng is not None else np.random.default_rng()

    def get_move(self, board: np.ndarray) -> Move:
        """
        Select a random legal move from the board.

        Args:
            board: Square board (0 = empty)

        Returns:
            (row, col) of the selected move
        """
        legal_moves = np.argwhere(np.asarray(board) == 0)

        if len(legal_moves) == 0:
            raise ValueError("No legal moves available")

        row, col = legal_moves[self.rng.integers(len(legal_moves))]
        return int(row), int(col)

    def __repr__(self) -> str:
        return "RandomPlayer()"
