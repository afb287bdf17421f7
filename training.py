#!/usr/bin/env python3
"""
Train the tic-tac-toe policy network with the fixed schedule from Config.

The network alternates between moving first and second against a random
opponent, with large batches and a large step first and smaller ones later,
then plays evaluation games against a random player from both sides.
"""

import numpy as np

from tictac_nn.config import Config
from tictac_nn.eval.evaluate import show_games
from tictac_nn.game import TicTacToe
from tictac_nn.players import NeuralNetPlayer, RandomPlayer
from tictac_nn.trainer.train_self_play import TrainingStage, history_to_dict, run_schedule
from tictac_nn.visualize import plot_training_progress


def main():
    rng = np.random.default_rng()
    stages = [TrainingStage(*stage) for stage in Config.TRAINING_SCHEDULE]

    history = run_schedule(
        stages,
        save_file=Config.WEIGHTS_PATH,
        history_file=Config.HISTORY_PATH,
        rng=rng,
    )
    plot_training_progress(history_to_dict(history), Config.PLOT_PATH)

    n, k = Config.BOARD_SIZE, Config.IN_A_ROW
    print(f"\n{'='*60}")
    print("EVALUATION vs RANDOM PLAYER")
    print(f"{'='*60}")
    show_games(TicTacToe(n, k, NeuralNetPlayer(rng=rng), RandomPlayer(rng=rng)),
               Config.WEIGHTS_PATH, None, Config.EVAL_GAMES)
    show_games(TicTacToe(n, k, RandomPlayer(rng=rng), NeuralNetPlayer(rng=rng)),
               None, Config.WEIGHTS_PATH, Config.EVAL_GAMES)


if __name__ == '__main__':
    main()
