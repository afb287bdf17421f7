from typing import Tuple

import numpy as np


Move = Tuple[int, int]


class Player:
    """A move source: given a board, return a legal (row, col)."""

    # Network-driven players get the board with their own marks as 1
    is_nn = False

    def __init__(self, name: str = "Player"):
        self.name = name

    def get_move(self, board: np.ndarray) -> Move:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.name
