"""
Per-layer gradient container.

Holds one weight-delta matrix and one bias-delta vector per layer index and
supports signed, in-place accumulation of other gradients of the same shape.
"""

from typing import Dict, List

import numpy as np


class Gradient:
    """Weight and bias deltas keyed by layer index."""

    def __init__(self):
        self.weights: Dict[int, np.ndarray] = {}
        self.biases: Dict[int, np.ndarray] = {}

    @classmethod
    def zeros_like(cls, network) -> 'Gradient':
        """
        Create a zeroed gradient matching the structure of a network.

        Args:
            network: NeuralNetwork whose layers define the shapes

        Returns:
            Gradient with one zero matrix and one zero vector per layer
        """
        grad = cls()
        for index, layer in enumerate(network.layers):
            grad.weights[index] = np.zeros((layer.num_nodes, layer.input_dim))
            grad.biases[index] = np.zeros(layer.num_nodes)
        return grad

    @property
    def layer_indices(self) -> List[int]:
        return sorted(self.weights)

    def add_to_gradient(self, other: 'Gradient', learning_direction: float) -> None:
        """
        Add another gradient, scaled by a signed direction, to this one.

        Args:
            other: Gradient with the same layer set and shapes
            learning_direction: Usually 1.0 or -1.0; any scalar is accepted

        Raises:
            ValueError: If the layer sets or any shapes differ
        """
        if set(other.weights) != set(self.weights) or set(other.biases) != set(self.biases):
            raise ValueError(
                f"Gradient layer mismatch: {sorted(self.weights)} vs {sorted(other.weights)}"
            )
        for index in self.weights:
            if other.weights[index].shape != self.weights[index].shape:
                raise ValueError(
                    f"Weight gradient shape mismatch at layer {index}: "
                    f"{self.weights[index].shape} vs {other.weights[index].shape}"
                )
            if other.biases[index].shape != self.biases[index].shape:
                raise ValueError(
                    f"Bias gradient shape mismatch at layer {index}: "
                    f"{self.biases[index].shape} vs {other.biases[index].shape}"
                )

        for index in self.weights:
            self.weights[index] += other.weights[index] * learning_direction
            self.biases[index] += other.biases[index] * learning_direction

    def copy(self) -> 'Gradient':
        grad = Gradient()
        grad.weights = {index: w.copy() for index, w in self.weights.items()}
        grad.biases = {index: b.copy() for index, b in self.biases.items()}
        return grad

    def __repr__(self) -> str:
        shapes = ", ".join(f"{i}: {self.weights[i].shape}" for i in self.layer_indices)
        return f"Gradient({shapes})"
