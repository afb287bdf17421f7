"""Move sources."""

from .base import Move, Player
from .human_player import HumanPlayer
from .minimax_player import MinimaxPlayer, negamax_value
from .nn_player import NeuralNetPlayer, sample_move
from .random_player import RandomPlayer

__all__ = [
    'Move',
    'Player',
    'HumanPlayer',
    'MinimaxPlayer',
    'NeuralNetPlayer',
    'RandomPlayer',
    'negamax_value',
    'sample_move',
]
