from dataclasses import dataclass
from typing import Iterator, Sequence, Tuple

import numpy as np

from tictac_nn.env.game_env import Outcome


@dataclass(frozen=True, eq=False)
class GameRecord:
    """
    Recorded history of one played game, used as a source of training samples.

    boards[i] is the network input for the position before moves[i], seen from
    the side of playing_as[i], the player (1 or 2) who made that move.
    """
    moves: Tuple[Tuple[int, int], ...]
    boards: Tuple[np.ndarray, ...]
    playing_as: Tuple[int, ...]
    outcome: Outcome

    def __init__(self, moves: Sequence[Tuple[int, int]], boards: Sequence[np.ndarray],
                 playing_as: Sequence[int], outcome: Outcome):
        if not len(moves) == len(boards) == len(playing_as):
            raise ValueError(
                f"Game record lists differ in length: {len(moves)} moves, "
                f"{len(boards)} boards, {len(playing_as)} players"
            )
        object.__setattr__(self, 'moves', tuple((int(r), int(c)) for r, c in moves))
        object.__setattr__(self, 'boards', tuple(np.array(b, dtype=np.float64) for b in boards))
        object.__setattr__(self, 'playing_as', tuple(int(p) for p in playing_as))
        object.__setattr__(self, 'outcome', Outcome(outcome))

    def __len__(self) -> int:
        return len(self.moves)

    def steps(self) -> Iterator[Tuple[np.ndarray, Tuple[int, int], int]]:
        """Yield (board, move, player) for every recorded move."""
        return zip(self.boards, self.moves, self.playing_as)
