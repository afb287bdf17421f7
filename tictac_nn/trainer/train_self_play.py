"""
Self-play training for the tic-tac-toe policy network.

Training runs in batches. Each batch plays a number of recorded games, then
every recorded (board, move) pair contributes the gradient of the move's
negative log probability, signed by the outcome of its game for the player who
made it:
- moves by the eventual winner are reinforced (positive modifier)
- moves by the eventual loser are discouraged (negative modifier)
- moves in drawn games get the draw modifier; a draw modifier of 0.0 keeps
  drawn games out of the batch altogether

The summed gradient is applied as one gradient descent step normalised by the
number of moves, the weights are saved, and network-driven players reload them
so later batches are played with the updated policy.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from tictac_nn.config import Config, player_layers, trainer_layers
from tictac_nn.env.game_env import Outcome
from tictac_nn.game import TicTacToe
from tictac_nn.net.gradient import Gradient
from tictac_nn.net.network import Backprop, NeuralNetwork
from tictac_nn.players import HumanPlayer, MinimaxPlayer, NeuralNetPlayer, Player, RandomPlayer
from tictac_nn.trainer.game_record import GameRecord


@dataclass
class BatchStats:
    """Outcome counts of the games in one training batch."""
    batch: int
    player1_wins: int
    draws: int
    player2_wins: int
    moves: int

    def summary(self) -> str:
        return (f"{self.batch} player 1 wins:{self.player1_wins}, draws: {self.draws}, "
                f"player 2 wins: {self.player2_wins}")


def collect_batch(game: TicTacToe, batch_size: int, draw_mod: float) -> List[GameRecord]:
    """
    Play recorded games until batch_size of them are usable for training.

    Args:
        game: TicTacToe match runner
        batch_size: Number of games to collect
        draw_mod: Draw modifier; when exactly 0.0, drawn games are skipped

    Returns:
        List of batch_size game records
    """
    records = []
    while len(records) < batch_size:
        record = game.recorded_play()
        if record.outcome != Outcome.DRAW or draw_mod != 0.0:
            records.append(record)
    return records


def learning_direction(record: GameRecord, index: int, positive_mod: float,
                       negative_mod: float, draw_mod: float) -> float:
    """
    Signed scalar applied to the gradient of one recorded move.

    Args:
        record: Game the move belongs to
        index: Position of the move in the record

    Returns:
        positive_mod if the mover won, negative_mod if the mover lost,
        draw_mod if the game was drawn
    """
    if record.outcome == Outcome.DRAW:
        return draw_mod
    if record.playing_as[index] == int(record.outcome):
        return positive_mod
    return negative_mod


def accumulate_batch_gradient(network: NeuralNetwork, records: Sequence[GameRecord],
                              positive_mod: float, negative_mod: float, draw_mod: float,
                              board_size: int) -> Tuple[Gradient, int]:
    """
    Sum the signed per-move gradients of a batch of games.

    Args:
        network: Network being trained
        records: Recorded games
        positive_mod: Direction for moves by the winner
        negative_mod: Direction for moves by the loser
        draw_mod: Direction for moves in drawn games
        board_size: Board width, used to flatten (row, col) to an output index

    Returns:
        (summed gradient, number of moves folded into it)
    """
    grad = network.initialize_gradient()
    num_moves = 0

    for record in records:
        for i, (board, (row, col), _) in enumerate(record.steps()):
            direction = learning_direction(record, i, positive_mod, negative_mod, draw_mod)
            grad.add_to_gradient(network.get_gradient(board, row * board_size + col), direction)
            num_moves += 1

    return grad, num_moves


def count_outcomes(records: Sequence[GameRecord]) -> Tuple[int, int, int]:
    """Return (player 1 wins, draws, player 2 wins) over a batch."""
    p1_wins = sum(1 for r in records if r.outcome == Outcome.PLAYER1_WIN)
    p2_wins = sum(1 for r in records if r.outcome == Outcome.PLAYER2_WIN)
    return p1_wins, len(records) - p1_wins - p2_wins, p2_wins


def history_to_dict(history: Sequence[BatchStats]) -> dict:
    """Column-oriented view of the batch history, as saved to JSON."""
    return {
        'batches': [s.batch for s in history],
        'player1_wins': [s.player1_wins for s in history],
        'draws': [s.draws for s in history],
        'player2_wins': [s.player2_wins for s in history],
        'moves': [s.moves for s in history],
    }


def save_history(history: Sequence[BatchStats], path: Union[str, Path]) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, 'w') as f:
        json.dump(history_to_dict(history), f, indent=2)


def train(game: TicTacToe, weights_file: Optional[Union[str, Path]] = None, batch_size: int = 500,
          num_batches: int = 200, learning_rate: float = 0.1,
          positive_mod: float = Config.POSITIVE_MOD, negative_mod: float = Config.NEGATIVE_MOD,
          draw_mod: float = Config.DRAW_MOD, layer_sizes: Optional[Sequence[int]] = None,
          backprop: Backprop = Backprop.OUTPUT_ONLY, save_file: Optional[Union[str, Path]] = None,
          history_file: Optional[Union[str, Path]] = None, verbose: bool = True,
          rng: Optional[np.random.Generator] = None) -> List[BatchStats]:
    """
    Train a policy network by playing recorded games with the given players.

    Args:
        game: TicTacToe match runner holding the players
        weights_file: Weights to start from; None starts from a random network.
            Network players load these weights too.
        batch_size: Games per gradient step
        num_batches: Number of gradient steps
        learning_rate: Step size
        positive_mod: Direction for moves by the winner
        negative_mod: Direction for moves by the loser
        draw_mod: Direction for moves in drawn games (0.0 skips draws)
        layer_sizes: Network shape for a fresh network, [d*d, 20, 20, d*d] by default
        backprop: Delta propagation mode of the trained network
        save_file: Where to save the weights after each batch; defaults to
            weights_file, or Config.WEIGHTS_PATH when training from scratch
        history_file: Optional JSON file updated with the batch history
        verbose: Print one line of outcome counts per batch
        rng: Random number generator for the initial weights

    Returns:
        Outcome counts per batch
    """
    if batch_size < 1 or num_batches < 0:
        raise ValueError(f"Invalid schedule: batch_size={batch_size}, num_batches={num_batches}")

    if layer_sizes is None:
        layer_sizes = trainer_layers(game.dim)
    network = NeuralNetwork(layer_sizes, backprop=backprop, rng=rng)

    if weights_file is not None:
        for player in game.nn_players():
            player.load_weights(weights_file)
        network.load_from_file(weights_file)
    if save_file is None:
        save_file = weights_file if weights_file is not None else Config.WEIGHTS_PATH

    if network.input_dim != game.dim * game.dim or network.output_dim != game.dim * game.dim:
        raise ValueError(
            f"Network shape {network.layer_sizes} does not fit a {game.dim}x{game.dim} board"
        )

    history = []
    for batch in range(1, num_batches + 1):
        records = collect_batch(game, batch_size, draw_mod)

        grad, num_moves = accumulate_batch_gradient(
            network, records, positive_mod, negative_mod, draw_mod, game.dim
        )
        network.gradient_step(grad, learning_rate, num_moves)
        network.save_to_file(save_file)

        for player in game.nn_players():
            player.load_weights(save_file)

        p1_wins, draws, p2_wins = count_outcomes(records)
        stats = BatchStats(batch, p1_wins, draws, p2_wins, num_moves)
        history.append(stats)
        if verbose:
            print(stats.summary())
        if history_file is not None:
            save_history(history, history_file)

    return history


@dataclass
class TrainingStage:
    """One entry of a training schedule."""
    player1: str
    player2: str
    batch_size: int
    num_batches: int
    learning_rate: float
    positive_mod: float = Config.POSITIVE_MOD
    negative_mod: float = Config.NEGATIVE_MOD
    draw_mod: float = Config.DRAW_MOD


def make_player(kind: str, number: int, board_size: int, in_a_row: int,
                rng: Optional[np.random.Generator] = None) -> Player:
    """
    Build a player from its schedule name.

    Args:
        kind: 'nn', 'random', 'human' or 'minmax'
        number: Player number (1 or 2)
    """
    if kind == 'nn':
        return NeuralNetPlayer(NeuralNetwork(player_layers(board_size), rng=rng), rng=rng)
    if kind == 'random':
        return RandomPlayer(rng=rng)
    if kind == 'human':
        return HumanPlayer(f"Player {number}")
    if kind == 'minmax':
        return MinimaxPlayer(in_a_row, number, rng=rng)
    raise ValueError(f"Unknown player type: {kind}")


def run_schedule(stages: Sequence[TrainingStage], weights_file: Optional[Union[str, Path]] = None,
                 board_size: int = Config.BOARD_SIZE, in_a_row: int = Config.IN_A_ROW,
                 save_file: Union[str, Path] = Config.WEIGHTS_PATH,
                 history_file: Optional[Union[str, Path]] = None, verbose: bool = True,
                 rng: Optional[np.random.Generator] = None) -> List[BatchStats]:
    """
    Run training stages back to back, each continuing from the previous weights.

    Args:
        stages: Stages in order
        weights_file: Weights for the first stage, None for a random start
        save_file: Weights file written by every stage and read by the next

    Returns:
        Concatenated batch history, numbered across stages
    """
    if rng is None:
        rng = np.random.default_rng()

    history: List[BatchStats] = []
    start = weights_file
    for number, stage in enumerate(stages, start=1):
        if verbose:
            print(f"\n{'='*60}")
            print(f"STAGE {number}/{len(stages)}: {stage.player1} vs {stage.player2}, "
                  f"{stage.num_batches} batches of {stage.batch_size}, lr={stage.learning_rate}")
            print(f"{'='*60}")

        game = TicTacToe(
            board_size, in_a_row,
            make_player(stage.player1, 1, board_size, in_a_row, rng),
            make_player(stage.player2, 2, board_size, in_a_row, rng),
        )
        stage_history = train(
            game, start, stage.batch_size, stage.num_batches, stage.learning_rate,
            stage.positive_mod, stage.negative_mod, stage.draw_mod,
            save_file=save_file, verbose=verbose, rng=rng,
        )
        offset = len(history)
        history.extend(
            BatchStats(s.batch + offset, s.player1_wins, s.draws, s.player2_wins, s.moves)
            for s in stage_history
        )
        if history_file is not None:
            save_history(history, history_file)
        start = save_file

    return history

