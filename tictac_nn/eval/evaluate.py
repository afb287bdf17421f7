"""
Evaluate players by running many games and counting outcomes.
"""

from pathlib import Path
from typing import Optional, Tuple, Union

from tqdm import tqdm

from tictac_nn.env.game_env import Outcome
from tictac_nn.game import TicTacToe


def show_games(game: TicTacToe, p1_file: Optional[Union[str, Path]] = None,
               p2_file: Optional[Union[str, Path]] = None, num: int = 10000,
               display: bool = False) -> Tuple[int, int, int]:
    """
    Run a number of games and print the outcome counts.

    Args:
        game: TicTacToe match runner
        p1_file: Weights for player 1, if it is a network player; None keeps its current network
        p2_file: Weights for player 2, if it is a network player; None keeps its current network
        num: Number of games to run
        display: Print every board during play

    Returns:
        (player 1 wins, draws, player 2 wins)
    """
    for number, (player, weights) in enumerate(((game.player1, p1_file), (game.player2, p2_file)), start=1):
        if weights is None:
            continue
        if not player.is_nn:
            raise ValueError(f"Player {number} ({player.name}) is not a neural network player")
        player.load_weights(weights)

    p1_wins = 0
    p2_wins = 0
    games = range(num) if display else tqdm(range(num), desc="Playing evaluation games")
    for _ in games:
        outcome = game.play(display)
        if outcome == Outcome.PLAYER1_WIN:
            p1_wins += 1
        elif outcome == Outcome.PLAYER2_WIN:
            p2_wins += 1

    draws = num - p1_wins - p2_wins
    print(f"Player 1 wins:{p1_wins}, draws: {draws}, player 2 wins: {p2_wins}")
    return p1_wins, draws, p2_wins
