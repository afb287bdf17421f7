"""Policy network and its gradients."""

from .gradient import Gradient
from .network import Activation, Backprop, Layer, NeuralNetwork, format_input

__all__ = ['Activation', 'Backprop', 'Gradient', 'Layer', 'NeuralNetwork', 'format_input']
