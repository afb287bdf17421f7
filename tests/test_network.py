"""
Unit tests for the policy network.

Tests cover:
- Forward pass for the three activation kinds
- Closed-form gradients of the output layer
- Output-only and full delta propagation (checked against torch autograd)
- Gradient descent steps
- Weights file round trip and malformed files
"""

import os
import sys
import tempfile
import unittest
from pathlib import Path

import numpy as np
import torch

sys.path.insert(0, str(Path(__file__).parent.parent))

from tictac_nn.config import Config
from tictac_nn.net.network import Activation, Backprop, Layer, NeuralNetwork, format_input


def make_network(sizes, hidden=Activation.SIGMOID, backprop=Backprop.OUTPUT_ONLY, seed=0):
    return NeuralNetwork(sizes, hidden_activation=hidden, backprop=backprop,
                         rng=np.random.default_rng(seed))


def torch_gradients(network, x, target):
    """Autograd gradients of -log softmax[target] for the same weights."""
    weights = [torch.tensor(layer.weights, dtype=torch.float64, requires_grad=True) for layer in network.layers]
    biases = [torch.tensor(layer.biases, dtype=torch.float64, requires_grad=True) for layer in network.layers]

    out = torch.tensor(x, dtype=torch.float64)
    for layer, w, b in zip(network.layers, weights, biases):
        z = w @ out + b
        if layer.activation == Activation.SOFTMAX:
            out = torch.softmax(z, dim=0)
        elif layer.activation == Activation.LEAKY_RELU:
            out = torch.where(z > 0, z, Config.RELU_NEG_COEFF * z)
        else:
            out = torch.sigmoid(z)

    loss = -torch.log(out[target])
    loss.backward()
    return [w.grad.numpy() for w in weights], [b.grad.numpy() for b in biases]


class TestConstruction(unittest.TestCase):
    """Test layer stacking."""

    def test_layer_shapes(self):
        network = make_network([9, 20, 20, 9])

        self.assertEqual(len(network.layers), 3)
        self.assertEqual([l.weights.shape for l in network.layers], [(20, 9), (20, 20), (9, 20)])
        self.assertEqual([l.biases.shape for l in network.layers], [(20,), (20,), (9,)])
        self.assertEqual(network.layer_sizes, [9, 20, 20, 9])

    def test_output_layer_is_softmax(self):
        network = make_network([9, 5, 9], hidden=Activation.LEAKY_RELU)

        self.assertEqual(network.layers[0].activation, Activation.LEAKY_RELU)
        self.assertEqual(network.layers[-1].activation, Activation.SOFTMAX)

    def test_single_layer_network(self):
        network = make_network([4, 3])
        self.assertEqual(len(network.layers), 1)
        self.assertEqual(network.layers[0].activation, Activation.SOFTMAX)

    def test_invalid_construction(self):
        with self.assertRaises(ValueError):
            NeuralNetwork([9])
        with self.assertRaises(ValueError):
            NeuralNetwork([9, 9], hidden_activation=Activation.SOFTMAX)
        with self.assertRaises(ValueError):
            NeuralNetwork([9, 0, 9])

    def test_seeded_networks_match(self):
        a = make_network([9, 4, 9], seed=7)
        b = make_network([9, 4, 9], seed=7)
        for la, lb in zip(a.layers, b.layers):
            np.testing.assert_array_equal(la.weights, lb.weights)
            np.testing.assert_array_equal(la.biases, lb.biases)


class TestForward(unittest.TestCase):
    """Test forward evaluation."""

    def test_softmax_sums_to_one(self):
        network = make_network([9, 20, 20, 9])
        rng = np.random.default_rng(1)
        for _ in range(20):
            out = network.feed_forward(rng.normal(size=9) * 3)
            self.assertAlmostEqual(out.sum(), 1.0, places=12)
            self.assertTrue(np.all(out > 0))

    def test_softmax_formula(self):
        layer = Layer.from_arrays(np.eye(3), np.array([0.0, 1.0, -1.0]), Activation.SOFTMAX)
        x = np.array([0.5, 0.0, 2.0])
        z = x + layer.biases
        expected = np.exp(z) / np.exp(z).sum()

        np.testing.assert_allclose(make_network([3, 3]).activate(layer, x), expected)

    def test_sigmoid_formula(self):
        layer = Layer.from_arrays(np.array([[1.0, -2.0]]), np.array([0.5]), Activation.SIGMOID)
        x = np.array([1.0, 1.0])

        out = make_network([2, 2]).activate(layer, x)

        self.assertAlmostEqual(out[0], 1.0 / (1.0 + np.exp(0.5)))

    def test_leaky_relu(self):
        """f(z) = z for z > 0, k*z otherwise, continuous at 0."""
        network = make_network([1, 1])
        for z in [-5.0, -1.0, -1e-9, 0.0, 1e-9, 0.7, 4.0]:
            layer = Layer.from_arrays(np.array([[1.0]]), np.array([0.0]), Activation.LEAKY_RELU)
            out = network.activate(layer, np.array([z]))[0]
            expected = z if z > 0 else Config.RELU_NEG_COEFF * z
            self.assertEqual(out, expected)
        self.assertEqual(Config.RELU_NEG_COEFF, 0.3)

    def test_input_width_mismatch_is_fatal(self):
        network = make_network([9, 5, 9])
        with self.assertRaises(ValueError):
            network.feed_forward(np.zeros(8))
        with self.assertRaises(ValueError):
            network.feed_forward(np.zeros(10))

    def test_forward_is_pure(self):
        network = make_network([9, 5, 9])
        x = np.linspace(-1, 1, 9)
        before = [l.weights.copy() for l in network.layers]

        np.testing.assert_array_equal(network(x), network.feed_forward(x))
        for w, layer in zip(before, network.layers):
            np.testing.assert_array_equal(w, layer.weights)


class TestFormatInput(unittest.TestCase):
    """Test board formatting."""

    def test_values(self):
        board = np.array([[1, 0, 2], [0, 0, 0], [2, 1, 0]])
        np.testing.assert_array_equal(
            format_input(board), [-1.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0, -1.0, 0.0]
        )

    def test_bad_cell(self):
        with self.assertRaises(ValueError):
            format_input(np.array([[0, 3], [0, 0]]))


class TestOutputGradient(unittest.TestCase):
    """Test the closed-form softmax layer gradient."""

    def setUp(self):
        self.network = make_network([9, 6, 9])
        self.x = np.array([-1.0, 0.0, 1.0, 0.0, -1.0, 0.0, 0.0, 1.0, 0.0])
        self.target = 4

    def test_weight_gradient(self):
        grad = self.network.get_gradient(self.x, self.target)
        hidden = self.network.activate(self.network.layers[0], self.x)
        a = self.network.feed_forward(self.x)

        for i in range(9):
            coeff = a[i] - 1.0 if i == self.target else a[i]
            np.testing.assert_allclose(grad.weights[1][i], coeff * hidden)

    def test_bias_gradient(self):
        grad = self.network.get_gradient(self.x, self.target)
        a = self.network.feed_forward(self.x)

        for i in range(9):
            expected = 1.0 - a[i] if i == self.target else a[i]
            self.assertAlmostEqual(grad.biases[1][i], expected)

    def test_single_layer_uses_raw_input(self):
        network = make_network([9, 9])
        grad = network.get_gradient(self.x, 2)
        a = network.feed_forward(self.x)

        np.testing.assert_allclose(grad.weights[0][2], (a[2] - 1.0) * self.x)

    def test_target_out_of_range(self):
        with self.assertRaises(ValueError):
            self.network.get_gradient(self.x, 9)
        with self.assertRaises(ValueError):
            self.network.get_gradient(self.x, -1)

    def test_gradient_shapes(self):
        network = make_network([9, 20, 20, 9])
        grad = network.get_gradient(self.x, 0)

        self.assertEqual(grad.layer_indices, [0, 1, 2])
        for index, layer in enumerate(network.layers):
            self.assertEqual(grad.weights[index].shape, layer.weights.shape)
            self.assertEqual(grad.biases[index].shape, layer.biases.shape)


class TestOutputOnlyBackprop(unittest.TestCase):
    """Hidden layers receive a zero delta in the default mode."""

    def test_hidden_gradients_are_zero(self):
        network = make_network([9, 20, 20, 9])
        x = np.array([-1.0, 1.0, 0.0, 0.0, -1.0, 0.0, 1.0, 0.0, 0.0])

        grad = network.get_gradient(x, 8)

        for index in (0, 1):
            self.assertFalse(np.any(grad.weights[index]))
            self.assertFalse(np.any(grad.biases[index]))
        self.assertTrue(np.any(grad.weights[2]))

    def test_leaky_hidden_gradients_are_zero(self):
        network = make_network([9, 7, 9], hidden=Activation.LEAKY_RELU)
        grad = network.get_gradient(np.ones(9), 0)

        self.assertFalse(np.any(grad.weights[0]))
        self.assertFalse(np.any(grad.biases[0]))


class TestFullBackprop(unittest.TestCase):
    """Full delta propagation agrees with autograd."""

    def check_against_autograd(self, network, x, target):
        grad = network.get_gradient(x, target)
        w_ref, b_ref = torch_gradients(network, x, target)
        last = len(network.layers) - 1

        for index in range(len(network.layers)):
            np.testing.assert_allclose(grad.weights[index], w_ref[index], rtol=1e-9, atol=1e-12)

        for index in range(last):
            np.testing.assert_allclose(grad.biases[index], b_ref[index], rtol=1e-9, atol=1e-12)

        # Output biases: a_i off target, 1 - a_t (the negated derivative) at the target
        others = np.arange(network.output_dim) != target
        np.testing.assert_allclose(grad.biases[last][others], b_ref[last][others], rtol=1e-9, atol=1e-12)
        self.assertAlmostEqual(grad.biases[last][target], -b_ref[last][target])

    def test_sigmoid_two_hidden_layers(self):
        network = make_network([9, 20, 20, 9], backprop=Backprop.FULL)
        x = np.array([-1.0, 1.0, 0.0, 0.0, -1.0, 0.0, 1.0, 0.0, 0.0])
        for target in (0, 2, 8):
            self.check_against_autograd(network, x, target)

    def test_sigmoid_one_hidden_layer(self):
        network = make_network([9, 12, 9], backprop=Backprop.FULL, seed=3)
        self.check_against_autograd(network, np.linspace(-1, 1, 9), 5)

    def test_leaky_relu_hidden_layers(self):
        network = make_network([9, 15, 10, 9], hidden=Activation.LEAKY_RELU,
                               backprop=Backprop.FULL, seed=5)
        x = np.array([1.0, -1.0, 0.0, 1.0, 0.0, -1.0, 0.0, 0.0, 1.0])
        for target in (1, 7):
            self.check_against_autograd(network, x, target)

    def test_output_layer_matches_output_only_mode(self):
        full = make_network([9, 8, 9], backprop=Backprop.FULL, seed=11)
        partial = make_network([9, 8, 9], backprop=Backprop.OUTPUT_ONLY, seed=11)
        x = np.linspace(-1, 1, 9)

        g_full = full.get_gradient(x, 3)
        g_partial = partial.get_gradient(x, 3)

        np.testing.assert_array_equal(g_full.weights[1], g_partial.weights[1])
        np.testing.assert_array_equal(g_full.biases[1], g_partial.biases[1])


class TestGradientStep(unittest.TestCase):
    """Test gradient descent."""

    def test_zero_learning_rate(self):
        network = make_network([9, 20, 20, 9], backprop=Backprop.FULL)
        before = [(l.weights.copy(), l.biases.copy()) for l in network.layers]
        grad = network.get_gradient(np.ones(9), 3)

        network.gradient_step(grad, 0.0, 5)

        for (w, b), layer in zip(before, network.layers):
            np.testing.assert_array_equal(w, layer.weights)
            np.testing.assert_array_equal(b, layer.biases)

    def test_step_formula(self):
        network = make_network([9, 4, 9])
        before = [(l.weights.copy(), l.biases.copy()) for l in network.layers]
        grad = network.initialize_gradient()
        grad.weights[1][:] = 2.0
        grad.biases[1][:] = -4.0

        network.gradient_step(grad, 0.5, 4)

        np.testing.assert_allclose(network.layers[1].weights, before[1][0] - 0.25)
        np.testing.assert_allclose(network.layers[1].biases, before[1][1] + 0.5)
        np.testing.assert_array_equal(network.layers[0].weights, before[0][0])

    def test_step_increases_target_probability(self):
        network = make_network([9, 20, 9])
        x = np.linspace(-1, 1, 9)
        before = network.feed_forward(x)[6]

        network.gradient_step(network.get_gradient(x, 6), 0.5, 1)

        self.assertGreater(network.feed_forward(x)[6], before)

    def test_mismatched_gradient(self):
        network = make_network([9, 4, 9])
        other = make_network([9, 5, 9])
        with self.assertRaises(ValueError):
            network.gradient_step(other.initialize_gradient(), 0.1, 1)
        with self.assertRaises(ValueError):
            network.gradient_step(make_network([9, 9]).initialize_gradient(), 0.1, 1)

    def test_nonpositive_batch_size(self):
        network = make_network([9, 9])
        with self.assertRaises(ValueError):
            network.gradient_step(network.initialize_gradient(), 0.1, 0)


class TestPersistence(unittest.TestCase):
    """Test the weights file format."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "weights.txt")

    def tearDown(self):
        self.tmpdir.cleanup()

    def write(self, text):
        with open(self.path, 'w') as f:
            f.write(text)

    def test_round_trip(self):
        network = make_network([9, 20, 20, 9])
        network.save_to_file(self.path)

        loaded = NeuralNetwork.from_file(self.path)

        self.assertEqual(loaded.layer_sizes, network.layer_sizes)
        for a, b in zip(network.layers, loaded.layers):
            self.assertEqual(a.activation, b.activation)
            np.testing.assert_array_equal(a.weights, b.weights)
            np.testing.assert_array_equal(a.biases, b.biases)

    def test_round_trip_leaky(self):
        network = make_network([4, 3, 4], hidden=Activation.LEAKY_RELU)
        network.save_to_file(self.path)

        loaded = NeuralNetwork.from_file(self.path)

        self.assertEqual(loaded.layers[0].activation, Activation.LEAKY_RELU)
        np.testing.assert_array_equal(loaded.feed_forward(np.ones(4)), network.feed_forward(np.ones(4)))

    def test_file_layout(self):
        layer = Layer.from_arrays(np.array([[0.5, -1.0], [2.0, 0.25]]), np.array([1.5, -3.0]), Activation.SOFTMAX)
        network = make_network([2, 2])
        network.layers = [layer]
        network.save_to_file(self.path)

        with open(self.path) as f:
            lines = f.read().splitlines()

        self.assertEqual(lines, ['1', '2', '2', 'Softmax', '0.5', '-1.0', '1.5', '2.0', '0.25', '-3.0'])

    def test_reads_java_style_numbers(self):
        self.write("1\n2\n1\nSoftmax\n1.0E-5\n0.5\n-2.0\n3\n")

        network = NeuralNetwork.from_file(self.path)

        np.testing.assert_array_equal(network.layers[0].weights, [[1e-5], [-2.0]])
        np.testing.assert_array_equal(network.layers[0].biases, [0.5, 3.0])

    def test_load_replaces_topology(self):
        make_network([9, 20, 9]).save_to_file(self.path)
        network = make_network([9, 20, 20, 9])

        network.load_from_file(self.path)

        self.assertEqual(network.layer_sizes, [9, 20, 9])

    def test_missing_file(self):
        with self.assertRaises(ValueError):
            NeuralNetwork.from_file(os.path.join(self.tmpdir.name, "missing.txt"))

    def test_truncated_file(self):
        make_network([9, 5, 9]).save_to_file(self.path)
        with open(self.path) as f:
            lines = f.read().splitlines()
        self.write('\n'.join(lines[:-3]) + '\n')

        with self.assertRaises(ValueError):
            NeuralNetwork.from_file(self.path)

    def test_malformed_files(self):
        cases = [
            "x\n",
            "1\n2\n1\nSoftmax\n0.1\nabc\n0.2\n0.3\n",
            "1\n1\n1\nTanh\n0.1\n0.2\n",
            "1\n1\n1\nSoftmax\n0.1\n0.2\n0.3\n",  # trailing data
            "1\n1\n1\nSigmoid\n0.1\n0.2\n",  # output layer not softmax
            "2\n2\n1\nSigmoid\n0\n0\n0\n0\n1\n3\nSoftmax\n0\n0\n0\n0\n",  # broken chain
            "0\n",
        ]
        for text in cases:
            with self.subTest(text=text):
                self.write(text)
                with self.assertRaises(ValueError):
                    NeuralNetwork.from_file(self.path)


if __name__ == '__main__':
    unittest.main()
