"""
Match runner: two move sources playing K-in-a-row on a GameEnv.

Network-driven players always get the board from their own side, so the
network sees itself as the same player whether it moves first or second.
"""

from tictac_nn.env.game_env import GameEnv, Outcome, PLAYER_ONE
from tictac_nn.net.network import format_input
from tictac_nn.players.base import Move, Player
from tictac_nn.trainer.game_record import GameRecord


class TicTacToe:
    """A board size, a win length and the two players of a game."""

    def __init__(self, dim: int, in_a_row: int, player1: Player, player2: Player):
        """
        Args:
            dim: Board size
            in_a_row: Marks in a row needed to win
            player1: Moves first (X)
            player2: Moves second (O)
        """
        self.env = GameEnv(dim, in_a_row)
        self.dim = dim
        self.in_a_row = in_a_row
        self.player1 = player1
        self.player2 = player2

    @property
    def players(self):
        return (self.player1, self.player2)

    def _player(self, number: int) -> Player:
        return self.player1 if number == PLAYER_ONE else self.player2

    def _request_move(self, number: int) -> Move:
        player = self._player(number)
        perspective = number if player.is_nn else None
        return player.get_move(self.env.get_board(perspective))

    def play(self, show: bool = False) -> Outcome:
        """
        Play one game from an empty board.

        Args:
            show: Print the board after every move

        Returns:
            Outcome of the game
        """
        self.env.reset()
        while not self.env.game_over:
            row, col = self._request_move(self.env.current_player)
            self.env.apply_move(row, col)
            if show:
                self.env.print_board()
        return self.env.outcome()

    def recorded_play(self, show: bool = False) -> GameRecord:
        """
        Play one game and record every move for training.

        Returns:
            GameRecord with the own-side input before each move, the moves,
            the mover of each move and the outcome
        """
        moves, boards, playing_as = [], [], []

        self.env.reset()
        while not self.env.game_over:
            number = self.env.current_player
            move = self._request_move(number)

            boards.append(format_input(self.env.get_board(number)))
            moves.append(move)
            playing_as.append(number)

            self.env.apply_move(*move)
            if show:
                self.env.print_board()

        return GameRecord(moves, boards, playing_as, self.env.outcome())

    def nn_players(self):
        return [p for p in self.players if p.is_nn]

    def __repr__(self) -> str:
        return f"TicTacToe(dim={self.dim}, in_a_row={self.in_a_row}, p1={self.player1.name}, p2={self.player2.name})"
