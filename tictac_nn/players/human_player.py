from typing import Callable

import numpy as np

from tictac_nn.players.base import Move, Player


class HumanPlayer(Player):
    """Player that asks for moves on the console."""

    def __init__(self, name: str = "Human", input_fn: Callable[[str], str] = input):
        """
        Initialize human player.

        Args:
            name: Player name for display
            input_fn: Line reader, `input` unless a test swaps it out
        """
        super().__init__(name)
        self.input_fn = input_fn

    def get_move(self, board: np.ndarray) -> Move:
        """
        Read a move as two integers and reprompt until it is legal.

        Args:
            board: Square board (0 = empty)

        Returns:
            (row, col) tuple of selected move
        """
        board = np.asarray(board)
        n = board.shape[0]

        while True:
            move_input = self.input_fn(f"\n{self.name}, enter your move as 'row col' in the range 0-{n - 1}: ")
            parts = move_input.strip().split()

            try:
                row, col = int(parts[0]), int(parts[1])
            except (IndexError, ValueError):
                print("Please enter two integers separated by space (e.g., '0 1')")
                continue

            if len(parts) == 2 and 0 <= row < n and 0 <= col < n and board[row, col] == 0:
                return row, col
            print("Illegal move.")
