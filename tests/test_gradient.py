"""
Unit tests for the Gradient accumulator.
"""

import sys
import unittest
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from tictac_nn.net.gradient import Gradient
from tictac_nn.net.network import Backprop, NeuralNetwork


def assert_gradients_close(test, a, b):
    test.assertEqual(a.layer_indices, b.layer_indices)
    for index in a.layer_indices:
        np.testing.assert_allclose(a.weights[index], b.weights[index], rtol=1e-12, atol=1e-15)
        np.testing.assert_allclose(a.biases[index], b.biases[index], rtol=1e-12, atol=1e-15)


class TestGradient(unittest.TestCase):

    def setUp(self):
        self.network = NeuralNetwork([9, 6, 9], backprop=Backprop.FULL, rng=np.random.default_rng(2))
        self.g1 = self.network.get_gradient(np.linspace(-1, 1, 9), 3)
        self.g2 = self.network.get_gradient(np.array([1.0, 0, 0, 0, -1.0, 0, 0, 0, 1.0]), 7)

    def test_zeros_like(self):
        grad = Gradient.zeros_like(self.network)

        self.assertEqual(grad.layer_indices, [0, 1])
        self.assertEqual(grad.weights[0].shape, (6, 9))
        self.assertEqual(grad.biases[1].shape, (9,))
        self.assertFalse(any(np.any(w) for w in grad.weights.values()))
        assert_gradients_close(self, grad, self.network.initialize_gradient())

    def test_accumulate_scales_by_direction(self):
        acc = self.network.initialize_gradient()
        acc.add_to_gradient(self.g1, -0.5)

        for index in acc.layer_indices:
            np.testing.assert_allclose(acc.weights[index], -0.5 * self.g1.weights[index])
            np.testing.assert_allclose(acc.biases[index], -0.5 * self.g1.biases[index])

    def test_accumulation_order_does_not_matter(self):
        forward = self.network.initialize_gradient()
        forward.add_to_gradient(self.g1, 1.0)
        forward.add_to_gradient(self.g2, 1.0)

        backward = self.network.initialize_gradient()
        backward.add_to_gradient(self.g2, 1.0)
        backward.add_to_gradient(self.g1, 1.0)

        assert_gradients_close(self, forward, backward)

    def test_accumulating_a_sum_equals_accumulating_parts(self):
        summed = self.g1.copy()
        summed.add_to_gradient(self.g2, 1.0)

        at_once = self.network.initialize_gradient()
        at_once.add_to_gradient(summed, -1.0)

        in_parts = self.network.initialize_gradient()
        in_parts.add_to_gradient(self.g1, -1.0)
        in_parts.add_to_gradient(self.g2, -1.0)

        assert_gradients_close(self, at_once, in_parts)

    def test_opposite_directions_cancel(self):
        acc = self.network.initialize_gradient()
        acc.add_to_gradient(self.g1, 1.0)
        acc.add_to_gradient(self.g1, -1.0)

        assert_gradients_close(self, acc, self.network.initialize_gradient())

    def test_other_gradient_is_not_modified(self):
        before = self.g1.copy()
        acc = self.network.initialize_gradient()
        acc.add_to_gradient(self.g1, 3.0)

        assert_gradients_close(self, self.g1, before)

    def test_copy_is_independent(self):
        copy = self.g1.copy()
        copy.weights[0][:] = 0.0
        self.assertTrue(np.any(self.g1.weights[0]))

    def test_shape_mismatch(self):
        other = NeuralNetwork([9, 5, 9], rng=np.random.default_rng(0)).initialize_gradient()
        with self.assertRaises(ValueError):
            self.network.initialize_gradient().add_to_gradient(other, 1.0)

    def test_layer_set_mismatch(self):
        other = NeuralNetwork([9, 6, 6, 9], rng=np.random.default_rng(0)).initialize_gradient()
        with self.assertRaises(ValueError):
            self.network.initialize_gradient().add_to_gradient(other, 1.0)

    def test_repr(self):
        self.assertIn('Gradient', repr(self.g1))


if __name__ == '__main__':
    unittest.main()
