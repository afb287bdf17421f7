"""
Plot the outcome history of a training run.

The history is the column dict written by the trainer (batches,
player1_wins, draws, player2_wins, moves).
"""
import os

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd


def history_frame(history: dict, window: int = 10) -> pd.DataFrame:
    """
    Per-batch outcome rates with a rolling mean.

    Args:
        history: Column dict of the batch history
        window: Batches in the rolling mean

    Returns:
        DataFrame indexed by batch with rate columns in percent
    """
    df = pd.DataFrame(history).set_index('batches')
    games = df['player1_wins'] + df['draws'] + df['player2_wins']
    for column in ('player1_wins', 'draws', 'player2_wins'):
        rate = 100.0 * df[column] / games
        df[f'{column}_rate'] = rate
        df[f'{column}_smooth'] = rate.rolling(window, min_periods=1).mean()
    df['moves_per_game'] = df['moves'] / games
    return df


def plot_training_progress(history: dict, save_path: str = "training_progress.png", window: int = 10) -> str:
    """
    Plot win/draw/loss rates and game length per batch.

    Args:
        history: Column dict of the batch history
        save_path: Path to save the plot
        window: Batches in the rolling mean

    Returns:
        Path of the saved image
    """
    df = history_frame(history, window)

    fig, axes = plt.subplots(1, 2, figsize=(14, 5))
    fig.suptitle('Self-Play Training Progress', fontsize=16, fontweight='bold')

    ax1 = axes[0]
    ax1.plot(df.index, df['player1_wins_smooth'], label='Player 1 (X) wins', color='blue', linewidth=2)
    ax1.plot(df.index, df['player2_wins_smooth'], label='Player 2 (O) wins', color='red', linewidth=2)
    ax1.plot(df.index, df['draws_smooth'], label='Draws', color='green', linewidth=2)
    ax1.set_xlabel('Batch', fontsize=12)
    ax1.set_ylabel('Rate (%)', fontsize=12)
    ax1.set_title(f'Game Outcomes ({window}-batch mean)', fontsize=14, fontweight='bold')
    ax1.legend(loc='best')
    ax1.grid(True, alpha=0.3)
    ax1.set_ylim([0, 100])

    ax2 = axes[1]
    ax2.plot(df.index, df['moves_per_game'], color='purple', linewidth=2)
    ax2.set_xlabel('Batch', fontsize=12)
    ax2.set_ylabel('Moves per game', fontsize=12)
    ax2.set_title('Game Length', fontsize=14, fontweight='bold')
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    directory = os.path.dirname(os.path.abspath(save_path))
    os.makedirs(directory, exist_ok=True)
    plt.savefig(save_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    print(f"\nTraining progress plot saved: {save_path}")
    return save_path
