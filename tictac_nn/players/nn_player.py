"""
Neural network player.

The network sees the board with its own marks as the mover, produces a
distribution over all squares, and the player samples from that distribution
after conditioning it on the empty squares.
"""

from pathlib import Path
from typing import Optional, Union

import numpy as np

from tictac_nn.net.network import NeuralNetwork, format_input
from tictac_nn.players.base import Move, Player


def sample_move(distribution: np.ndarray, board_size: int, rand: float) -> Move:
    """
    Inverse-CDF sample from a distribution over the board squares.

    Args:
        distribution: Probabilities, one per square in row-major order
        board_size: Board width used to map the index back to (row, col)
        rand: Uniform number in [0, 1)

    Returns:
        (row, col) of the first square whose cumulative probability exceeds rand
    """
    cumulative = np.cumsum(distribution)
    idx = int(np.searchsorted(cumulative, rand, side='right'))
    if idx >= len(distribution):
        # Rounding left the total just below rand; take the last square with mass
        idx = int(np.flatnonzero(distribution)[-1])
    return idx // board_size, idx % board_size


class NeuralNetPlayer(Player):
    """Player that samples its moves from a policy network."""

    is_nn = True

    def __init__(self, network: Optional[NeuralNetwork] = None, name: str = "Neural network",
                 rng: Optional[np.random.Generator] = None):
        """
        Args:
            network: Policy network; must be set before the first move
            name: Player name for display
            rng: Random number generator used for sampling
        """
        super().__init__(name)
        self.network = network
        self.rng = rng if rng is not None else np.random.default_rng()

    def load_weights(self, filename: Union[str, Path]) -> None:
        """Replace the network with the one stored in a weights file."""
        if self.network is None:
            self.network = NeuralNetwork.from_file(filename)
        else:
            self.network.load_from_file(filename)

    def move_distribution(self, board: np.ndarray) -> np.ndarray:
        """
        Network output conditioned on legal moves.

        Args:
            board: Own-side board (1 = this player, 2 = opponent, 0 = empty)

        Returns:
            Probabilities over all squares, zero on occupied squares
        """
        if self.network is None:
            raise RuntimeError("Neural network not initialized.")

        board = np.asarray(board)
        output = self.network.feed_forward(format_input(board))
        output[board.reshape(-1) != 0] = 0.0
        return output / output.sum()

    def get_move(self, board: np.ndarray) -> Move:
        board = np.asarray(board)
        distribution = self.move_distribution(board)
        return sample_move(distribution, board.shape[0], self.rng.random())

    def __repr__(self) -> str:
        return f"NeuralNetPlayer({self.network!r})"
