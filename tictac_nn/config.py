class Config:
    # Board geometry (3x3 tic-tac-toe, 3 in a row wins)
    BOARD_SIZE = 3
    IN_A_ROW = 3

    # Network shapes, expressed as hidden widths; input and output are board_size**2
    TRAINER_HIDDEN = [20, 20]  # network trained by the self-play loop
    PLAYER_HIDDEN = [20]  # fresh network handed to a neural network player

    # Leaky ReLU slope on the negative domain: f(z) = z if z > 0 else RELU_NEG_COEFF * z
    RELU_NEG_COEFF = 0.3

    WEIGHTS_PATH = "weights.txt"
    HISTORY_PATH = "output_tictac/training_history.json"
    PLOT_PATH = "output_tictac/training_progress.png"

    # Outcome modifiers (learning direction applied to each recorded move)
    POSITIVE_MOD = 1.0
    NEGATIVE_MOD = -1.0
    DRAW_MOD = 0.5  # 0.0 drops drawn games from the batch entirely

    # Training schedule: (first mover, second mover, batch size, batches, learning rate)
    # Stage 1 starts from a random network, every later stage continues from WEIGHTS_PATH.
    # Large batches and a large step first, then smaller steps.
    TRAINING_SCHEDULE = [
        ("random", "nn", 500, 200, 0.1),
        ("nn", "random", 500, 200, 0.1),
        ("random", "nn", 300, 1000, 0.01),
        ("nn", "random", 300, 1000, 0.01),
        ("random", "nn", 100, 1000, 0.001),
        ("nn", "random", 100, 1000, 0.001),
    ]

    EVAL_GAMES = 10000


def trainer_layers(board_size: int = Config.BOARD_SIZE):
    """Layer sizes of the network trained by the self-play loop."""
    cells = board_size * board_size
    return [cells] + list(Config.TRAINER_HIDDEN) + [cells]


def player_layers(board_size: int = Config.BOARD_SIZE):
    """Layer sizes of the fresh network a neural network player starts with."""
    cells = board_size * board_size
    return [cells] + list(Config.PLAYER_HIDDEN) + [cells]
