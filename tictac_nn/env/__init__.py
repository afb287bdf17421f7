"""Game environment."""

from .game_env import (
    EMPTY,
    PLAYER_ONE,
    PLAYER_TWO,
    GameEnv,
    Outcome,
    VictoryCheck,
    check_victory,
    other_player,
    swap_sides,
)

__all__ = [
    'EMPTY',
    'PLAYER_ONE',
    'PLAYER_TWO',
    'GameEnv',
    'Outcome',
    'VictoryCheck',
    'check_victory',
    'other_player',
    'swap_sides',
]
