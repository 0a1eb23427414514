"""
Neural network building blocks for scalargrad.

Neurons, layers and multi-layer perceptrons built purely by composing
Value operations. Every weight and bias is a leaf Value.
"""

import numpy as np
from scalargrad.engine import Value, zero_grad


class Module:
    """
    Base class for all neural network modules.

    Provides common functionality for managing parameters and gradients.
    """

    def zero_grad(self):
        """
        Reset all gradients to zero.

        Call this before each backward pass: gradients accumulate across
        backward passes otherwise.
        """
        zero_grad(self.parameters())

    def parameters(self):
        """
        Return a list of all trainable parameters (weights and biases).

        Override this in subclasses to return actual parameters.
        """
        return []


def _uniform_init(rng):
    rng = rng if rng is not None else np.random.default_rng()
    return lambda: rng.uniform(-1.0, 1.0)


class Neuron(Module):
    """
    A single neuron: output = activation(w1*x1 + ... + wn*xn + b)

    Args:
        nin: Number of inputs
        nonlin: If True, apply ReLU activation (default: True)
        init: Optional zero-argument callable producing each initial weight.
              Defaults to uniform(-1, 1) draws from `rng`.
        rng: Optional numpy Generator used by the default initializer

    Example:
        >>> n = Neuron(3, nonlin=False, init=lambda: 1.0)
        >>> y = n([1.0, 2.0, 3.0])  # y.data = 6.0
    """

    def __init__(self, nin, nonlin=True, init=None, rng=None):
        init = init if init is not None else _uniform_init(rng)
        self.w = [Value(init()) for _ in range(nin)]
        self.b = Value(0.0)
        self.nonlin = nonlin

    def __call__(self, x):
        act = self.b
        for wi, xi in zip(self.w, x):
            act = act + wi * xi
        return act.relu() if self.nonlin else act

    def parameters(self):
        return self.w + [self.b]

    def __repr__(self):
        return f"{'ReLU' if self.nonlin else 'Linear'}Neuron({len(self.w)})"


class Layer(Module):
    """
    A fully-connected layer of `nout` independent neurons over the same inputs.

    Args:
        nin: Number of input features
        nout: Number of output features (neurons)
        nonlin: If True, every neuron applies ReLU (default: True)
        init: Optional weight initializer, see Neuron
        rng: Optional numpy Generator used by the default initializer
    """

    def __init__(self, nin, nout, nonlin=True, init=None, rng=None):
        if init is None:
            init = _uniform_init(rng)
        self.neurons = [Neuron(nin, nonlin=nonlin, init=init) for _ in range(nout)]

    def __call__(self, x):
        return [n(x) for n in self.neurons]

    def parameters(self):
        return [p for n in self.neurons for p in n.parameters()]

    def __repr__(self):
        return f"Layer of [{', '.join(str(n) for n in self.neurons)}]"


class MLP(Module):
    """
    Multi-Layer Perceptron: a sequence of fully-connected layers.

    All layers use ReLU except the last one, which is linear. Suitable for
    the hinge loss used by the training driver.

    Args:
        nin: Number of input features
        nouts: List of output sizes for each layer
               Example: [16, 16, 1] creates 3 layers: input→16→16→1
        init: Optional weight initializer, see Neuron
        rng: Optional numpy Generator used by the default initializer

    Example:
        >>> mlp = MLP(2, [16, 16, 1])
        >>> scores = mlp([0.5, -1.0])  # list with one Value
        >>> mlp.zero_grad()  # Reset gradients
        >>> scores[0].backward()  # Compute gradients
        >>> # Update parameters (SGD)
        >>> for p in mlp.parameters():
        ...     p.data -= learning_rate * p.grad
    """

    def __init__(self, nin, nouts, init=None, rng=None):
        if init is None:
            init = _uniform_init(rng)
        sizes = [nin] + list(nouts)
        self.layers = [
            Layer(sizes[i], sizes[i + 1], nonlin=i != len(nouts) - 1, init=init)
            for i in range(len(nouts))
        ]

    def __call__(self, x):
        """
        Forward pass: pass input through all layers sequentially.

        Args:
            x: Sequence of numbers or Values, one per input feature

        Returns:
            list: One output Value per neuron of the last layer
        """
        x = [xi if isinstance(xi, Value) else Value(xi) for xi in x]
        for layer in self.layers:
            x = layer(x)
        return x

    def parameters(self):
        """Return all trainable parameters from all layers."""
        return [p for layer in self.layers for p in layer.parameters()]

    def __repr__(self):
        return f"MLP of [{', '.join(str(layer) for layer in self.layers)}]"
