"""
Fully connected policy network with hand-written backpropagation.

Hidden layers use a sigmoid (or leaky ReLU) activation and the output layer is
always a softmax over the board squares. The loss for a single sample is the
negative log probability of the move that was played, and gradients are
computed in closed form for that loss.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np

from tictac_nn.config import Config
from tictac_nn.net.gradient import Gradient


class Activation(Enum):
    """Activation kind of a layer. Values are the tags used in weights files."""
    SIGMOID = "Sigmoid"
    LEAKY_RELU = "ReLU"
    SOFTMAX = "Softmax"


class Backprop(Enum):
    """
    How deltas travel below the output layer.

    OUTPUT_ONLY: the delta passed down from each layer is a zero buffer, so
        only the softmax layer receives a non-zero gradient.
    FULL: deltas are propagated through every hidden layer.
    """
    OUTPUT_ONLY = "output_only"
    FULL = "full"


class Layer:
    """Weights and biases of one fully connected layer."""

    def __init__(self, num_nodes: int, input_dim: int, activation: Activation,
                 rng: Optional[np.random.Generator] = None):
        """
        Create a layer with standard Gaussian weights and biases.

        Args:
            num_nodes: Number of neurons (output width)
            input_dim: Input width, the previous layer's num_nodes
            activation: Activation kind
            rng: Random number generator
        """
        if num_nodes < 1 or input_dim < 1:
            raise ValueError(f"Layer dimensions must be positive, got {num_nodes}x{input_dim}")
        if rng is None:
            rng = np.random.default_rng()

        self.num_nodes = num_nodes
        self.input_dim = input_dim
        self.activation = Activation(activation)
        self.weights = rng.standard_normal((num_nodes, input_dim))
        self.biases = rng.standard_normal(num_nodes)

    @classmethod
    def from_arrays(cls, weights: np.ndarray, biases: np.ndarray, activation: Activation) -> 'Layer':
        """Wrap existing weight and bias arrays in a layer."""
        weights = np.asarray(weights, dtype=np.float64)
        biases = np.asarray(biases, dtype=np.float64)
        if weights.ndim != 2 or biases.shape != (weights.shape[0],):
            raise ValueError(f"Bias shape {biases.shape} does not match weight shape {weights.shape}")
        layer = cls.__new__(cls)
        layer.num_nodes, layer.input_dim = weights.shape
        layer.activation = Activation(activation)
        layer.weights = weights.copy()
        layer.biases = biases.copy()
        return layer

    def __repr__(self) -> str:
        return f"Layer({self.num_nodes}, {self.input_dim}, {self.activation.value})"


def format_input(board: np.ndarray) -> np.ndarray:
    """
    Convert an own-side board into network input.

    Args:
        board: Square board where 1 marks the mover, 2 the opponent and 0 empty

    Returns:
        Flat float vector (row-major) with -1.0 for the mover, 1.0 for the
        opponent and 0.0 for empty squares
    """
    board = np.asarray(board)
    valid = (board == 0) | (board == 1) | (board == 2)
    if not np.all(valid):
        bad = board[~valid][0]
        raise ValueError(f"Board formatting mismatch, unexpected cell value {bad}")

    out = np.zeros(board.size)
    flat = board.reshape(-1)
    out[flat == 1] = -1.0
    out[flat == 2] = 1.0
    return out


def _check_width(layer: Layer, x: np.ndarray) -> None:
    if x.shape != (layer.input_dim,):
        raise ValueError(
            f"Input of shape {x.shape} does not match layer input dimension {layer.input_dim}"
        )


class NeuralNetwork:
    """
    Stack of fully connected layers ending in a softmax.

    The network maps a formatted board to a probability distribution over the
    board squares. Training uses plain mini-batch gradient descent on gradients
    summed over many recorded moves.
    """

    def __init__(self, layer_sizes: Sequence[int],
                 hidden_activation: Activation = Activation.SIGMOID,
                 backprop: Backprop = Backprop.OUTPUT_ONLY,
                 rng: Optional[np.random.Generator] = None):
        """
        Build a randomly initialised network.

        Args:
            layer_sizes: [input_dim, hidden_1, ..., output_dim]; e.g. [9, 20, 9]
                         is 9 inputs, a hidden layer of 20 and 9 outputs
            hidden_activation: Activation of every non-output layer
            backprop: Delta propagation mode used by get_gradient
            rng: Random number generator for the initial weights
        """
        if len(layer_sizes) < 2:
            raise ValueError(f"Need at least an input and an output size, got {list(layer_sizes)}")
        hidden_activation = Activation(hidden_activation)
        if hidden_activation == Activation.SOFTMAX:
            raise ValueError("Softmax is reserved for the output layer")
        if rng is None:
            rng = np.random.default_rng()

        self.backprop = Backprop(backprop)
        self.layers: List[Layer] = []
        for i in range(len(layer_sizes) - 2):
            self.layers.append(Layer(layer_sizes[i + 1], layer_sizes[i], hidden_activation, rng))
        self.layers.append(Layer(layer_sizes[-1], layer_sizes[-2], Activation.SOFTMAX, rng))

    @classmethod
    def from_file(cls, filename: Union[str, Path],
                  backprop: Backprop = Backprop.OUTPUT_ONLY) -> 'NeuralNetwork':
        """Create a network from a weights file."""
        network = cls.__new__(cls)
        network.backprop = Backprop(backprop)
        network.layers = []
        network.load_from_file(filename)
        return network

    @property
    def input_dim(self) -> int:
        return self.layers[0].input_dim

    @property
    def output_dim(self) -> int:
        return self.layers[-1].num_nodes

    @property
    def layer_sizes(self) -> List[int]:
        return [self.layers[0].input_dim] + [layer.num_nodes for layer in self.layers]

    # ---------- forward pass ----------

    def activate(self, layer: Layer, x: np.ndarray) -> np.ndarray:
        """
        Compute the activations of one layer.

        Args:
            layer: Layer to evaluate
            x: Input vector of length layer.input_dim

        Returns:
            Activation vector of length layer.num_nodes
        """
        x = np.asarray(x, dtype=np.float64)
        _check_width(layer, x)
        z = layer.weights @ x + layer.biases

        if layer.activation == Activation.SOFTMAX:
            e = np.exp(z - z.max())
            return e / e.sum()
        if layer.activation == Activation.LEAKY_RELU:
            return np.where(z > 0.0, z, Config.RELU_NEG_COEFF * z)
        return 1.0 / (1.0 + np.exp(-z))

    def feed_forward(self, x: np.ndarray) -> np.ndarray:
        """Run the whole network on one input vector."""
        for layer in self.layers:
            x = self.activate(layer, x)
        return x

    def __call__(self, x: np.ndarray) -> np.ndarray:
        return self.feed_forward(x)

    # ---------- backward pass ----------

    def initialize_gradient(self) -> Gradient:
        """Zeroed gradient with this network's shapes."""
        return Gradient.zeros_like(self)

    def get_gradient(self, x: np.ndarray, output_number: int) -> Gradient:
        """
        Gradient of -log(p[output_number]) with respect to every weight and bias.

        Args:
            x: Input vector
            output_number: Index of the output whose log probability is the loss

        Returns:
            Gradient holding one entry per layer
        """
        if not 0 <= output_number < self.output_dim:
            raise ValueError(f"Output index {output_number} out of range for {self.output_dim} outputs")

        x = np.asarray(x, dtype=np.float64)
        activations = []
        out = x
        for layer in self.layers:
            out = self.activate(layer, out)
            activations.append(out)

        grad = Gradient()
        last = len(self.layers) - 1

        # Softmax output with log-probability loss
        a = activations[last]
        prev = activations[last - 1] if last > 0 else x
        dz = a.copy()
        dz[output_number] -= 1.0
        grad.weights[last] = np.outer(dz, prev)
        bias = a.copy()
        bias[output_number] = 1.0 - a[output_number]
        grad.biases[last] = bias

        delta = np.zeros(self.layers[last].num_nodes)
        delta[output_number] = -1.0 / a[output_number]

        for l in range(last - 1, -1, -1):
            layer = self.layers[l]
            a = activations[l]
            prev = activations[l - 1] if l > 0 else x

            if self.backprop == Backprop.FULL:
                delta = self._activation_derivative(l, activations).T @ delta
            else:
                delta = np.zeros(layer.num_nodes)

            if layer.activation == Activation.LEAKY_RELU:
                local = delta * np.where(a > 0.0, 1.0, Config.RELU_NEG_COEFF)
            else:
                local = delta * a * (1.0 - a)
            grad.weights[l] = np.outer(local, prev)
            grad.biases[l] = local

        return grad

    def _activation_derivative(self, l: int, activations: List[np.ndarray]) -> np.ndarray:
        """
        Jacobian of layer l+1 activations with respect to layer l activations.

        Entry [r, i] is d a_{l+1, r} / d a_{l, i}.
        """
        successor = self.layers[l + 1]
        a = activations[l + 1]
        w = successor.weights

        if successor.activation == Activation.SOFTMAX:
            jacobian = np.diag(a) - np.outer(a, a)
            return jacobian @ w
        if successor.activation == Activation.LEAKY_RELU:
            return np.where(a > 0.0, 1.0, Config.RELU_NEG_COEFF)[:, None] * w
        return (a * (1.0 - a))[:, None] * w

    def gradient_step(self, grad: Gradient, learning_rate: float, batch_size: float) -> None:
        """
        Take one gradient descent step in place.

        Args:
            grad: Summed (not normalised) gradient over the batch
            learning_rate: Step size
            batch_size: Number of samples summed into grad
        """
        if batch_size <= 0:
            raise ValueError(f"Batch size must be positive, got {batch_size}")
        if grad.layer_indices != list(range(len(self.layers))):
            raise ValueError(
                f"Gradient covers layers {grad.layer_indices}, network has {len(self.layers)}"
            )
        for index, layer in enumerate(self.layers):
            if grad.weights[index].shape != layer.weights.shape or grad.biases[index].shape != layer.biases.shape:
                raise ValueError(f"Gradient shape mismatch at layer {index}")

        for index, layer in enumerate(self.layers):
            layer.weights -= learning_rate * grad.weights[index] / batch_size
            layer.biases -= learning_rate * grad.biases[index] / batch_size

    # ---------- persistence ----------

    def save_to_file(self, filename: Union[str, Path]) -> None:
        """
        Save the layers in the plain text weights format.

        One value per line: layer count, then per layer num_nodes, input_dim,
        activation tag, and for each neuron its weights followed by its bias.
        """
        path = Path(filename)
        if path.parent != Path(''):
            path.parent.mkdir(parents=True, exist_ok=True)

        lines = [str(len(self.layers))]
        for layer in self.layers:
            lines.append(str(layer.num_nodes))
            lines.append(str(layer.input_dim))
            lines.append(layer.activation.value)
            for i in range(layer.num_nodes):
                lines.extend(repr(float(w)) for w in layer.weights[i])
                lines.append(repr(float(layer.biases[i])))

        with open(path, 'w') as f:
            f.write('\n'.join(lines) + '\n')

    def load_from_file(self, filename: Union[str, Path]) -> None:
        """
        Replace the layers with those stored in a weights file.

        Raises:
            ValueError: If the file is missing, truncated or malformed
        """
        try:
            with open(filename, 'r') as f:
                tokens = [line.strip() for line in f]
        except OSError as e:
            raise ValueError(f"Could not read weights file '{filename}': {e}") from e

        while tokens and tokens[-1] == '':
            tokens.pop()
        reader = iter(tokens)

        def next_token(what: str) -> str:
            try:
                return next(reader)
            except StopIteration:
                raise ValueError(f"Weights file '{filename}' ended while reading {what}") from None

        def next_int(what: str) -> int:
            token = next_token(what)
            try:
                value = int(token)
            except ValueError:
                raise ValueError(f"Weights file '{filename}': expected integer {what}, got {token!r}") from None
            if value < 1:
                raise ValueError(f"Weights file '{filename}': {what} must be positive, got {value}")
            return value

        def next_float(what: str) -> float:
            token = next_token(what)
            try:
                return float(token)
            except ValueError:
                raise ValueError(f"Weights file '{filename}': expected number for {what}, got {token!r}") from None

        layers = []
        num_layers = next_int("layer count")
        for l in range(num_layers):
            num_nodes = next_int(f"node count of layer {l}")
            input_dim = next_int(f"input dimension of layer {l}")
            tag = next_token(f"activation of layer {l}")
            try:
                activation = Activation(tag)
            except ValueError:
                raise ValueError(f"Weights file '{filename}': unknown activation {tag!r} in layer {l}") from None

            weights = np.empty((num_nodes, input_dim))
            biases = np.empty(num_nodes)
            for i in range(num_nodes):
                for j in range(input_dim):
                    weights[i, j] = next_float(f"weight [{l}][{i}][{j}]")
                biases[i] = next_float(f"bias [{l}][{i}]")
            layers.append(Layer.from_arrays(weights, biases, activation))

        if next(reader, None) is not None:
            raise ValueError(f"Weights file '{filename}' has data after the last layer")
        for l in range(1, len(layers)):
            if layers[l].input_dim != layers[l - 1].num_nodes:
                raise ValueError(
                    f"Weights file '{filename}': layer {l} expects {layers[l].input_dim} inputs "
                    f"but layer {l - 1} has {layers[l - 1].num_nodes} nodes"
                )
        if layers[-1].activation != Activation.SOFTMAX:
            raise ValueError(f"Weights file '{filename}': output layer must be Softmax")
        if any(layer.activation == Activation.SOFTMAX for layer in layers[:-1]):
            raise ValueError(f"Weights file '{filename}': Softmax is only allowed on the output layer")

        self.layers = layers

    def __repr__(self) -> str:
        kinds = ", ".join(layer.activation.value for layer in self.layers)
        return f"NeuralNetwork(sizes={self.layer_sizes}, activations=[{kinds}], backprop={self.backprop.value})"
