import logging

import numpy as np

logger = logging.getLogger(__name__)


class _Leaf:
    """Backward rule of a leaf node: nothing to propagate."""

    tag = ''
    __slots__ = ()

    def __call__(self, out):
        pass


class _Add:
    """d(a+b)/da = 1, d(a+b)/db = 1"""

    tag = 'add'
    __slots__ = ('a', 'b')

    def __init__(self, a, b):
        self.a = a
        self.b = b

    def __call__(self, out):
        self.a.grad += out.grad
        self.b.grad += out.grad


class _Mul:
    """d(a*b)/da = b, d(a*b)/db = a"""

    tag = 'mul'
    __slots__ = ('a', 'b')

    def __init__(self, a, b):
        self.a = a
        self.b = b

    def __call__(self, out):
        self.a.grad += self.b.data * out.grad
        self.b.grad += self.a.data * out.grad


class _Pow:
    """d(x^n)/dx = n * x^(n-1), the exponent is a constant."""

    tag = 'pow'
    __slots__ = ('a', 'exponent')

    def __init__(self, a, exponent):
        self.a = a
        self.exponent = exponent

    def __call__(self, out):
        n = self.exponent
        with np.errstate(all='ignore'):
            self.a.grad += n * self.a.data ** (n - 1) * out.grad


class _Tanh:
    """d(tanh(x))/dx = 1 - tanh(x)^2, using the cached forward result."""

    tag = 'tanh'
    __slots__ = ('a', 't')

    def __init__(self, a, t):
        self.a = a
        self.t = t

    def __call__(self, out):
        self.a.grad += (1 - self.t ** 2) * out.grad


class _Relu:
    """d(relu(x))/dx = 1 if relu(x) > 0, else 0 (including x == 0)."""

    tag = 'relu'
    __slots__ = ('a',)

    def __init__(self, a):
        self.a = a

    def __call__(self, out):
        if out.data > 0:
            self.a.grad += out.grad


_LEAF = _Leaf()


class Value:
    """
    Wraps a single scalar and tracks operations for automatic differentiation.

    The Value class is the core of the autograd engine. It stores a double
    precision number and its gradient, and builds a computational graph by
    recording, for every operation, the operands it consumed and the rule
    that pushes gradient back to them.

    Values compare and hash by identity: two Values holding the same number
    are still different nodes of the graph.

    Gradients accumulate. Calling backward() twice, or on two expressions
    that share leaves, adds up the contributions; reset them with
    zero_grad() (or Module.zero_grad()) before a fresh pass.

    Example:
        >>> x = Value(2.0)
        >>> y = Value(3.0)
        >>> z = x * y + x
        >>> z.backward()  # Compute gradients
        >>> print(x.grad)  # dz/dx = y + 1 = 4.0
    """

    # Let numpy scalars on the left hand side defer to our reflected operators
    __array_ufunc__ = None

    def __init__(self, data, _children=(), _op='', name=""):
        """
        Initialize a Value object.

        Args:
            data: The numerical data (a single int or float)
            _children: Operand Values this one was computed from (internal use for autograd)
            _op: String describing the operation that created this Value (internal)
            name: Optional name for debugging and visualization
        """
        self.data = np.float64(data)
        assert np.ndim(self.data) == 0, "Value only wraps a single scalar"

        # Accumulated d(root)/d(self), starts at zero
        self.grad = np.float64(0.0)

        # Optional name for debugging
        self.name = name

        # Internal variables for building the computational graph
        self._backward = _LEAF
        self._prev = tuple(dict.fromkeys(_children))  # distinct operands, first-seen order
        self._op = _op

    @property
    def value(self):
        return self.data

    @value.setter
    def value(self, data):
        self.data = np.float64(data)

    @property
    def gradient(self):
        return self.grad

    @gradient.setter
    def gradient(self, grad):
        self.grad = np.float64(grad)

    @property
    def operands(self):
        """The distinct Values this one was computed from (empty for leaves)."""
        return self._prev

    @property
    def op(self):
        """Tag of the operation that produced this Value ('' for leaves)."""
        return self._op

    @property
    def rule(self):
        """The backward rule object attached to this Value."""
        return self._backward

    @staticmethod
    def _lift(other):
        return other if isinstance(other, Value) else Value(other)

    def _record(self, data, children, rule):
        out = Value(data, children, rule.tag)
        out._backward = rule
        return out

    def __add__(self, other):
        """
        Addition: supports Value + Value and Value + number.

        A plain number is wrapped in a fresh leaf Value, which receives (and
        nobody reads) a gradient like any other operand.

        Example:
            >>> a = Value(-4.0)
            >>> b = Value(2.0)
            >>> c = a + b  # c.data = -2.0
        """
        other = self._lift(other)
        with np.errstate(all='ignore'):
            data = self.data + other.data
        return self._record(data, (self, other), _Add(self, other))

    def __mul__(self, other):
        """
        Multiplication: d(a*b)/da = b, d(a*b)/db = a.

        Example:
            >>> a = Value(3.0)
            >>> b = Value(4.0)
            >>> c = a * b  # c.data = 12.0
        """
        other = self._lift(other)
        with np.errstate(all='ignore'):
            data = self.data * other.data
        return self._record(data, (self, other), _Mul(self, other))

    def __pow__(self, other):
        """
        Power operation: raises Value to a constant integer power.

        The exponent is not part of the graph and gets no gradient.
        A zero base with a negative exponent gives inf, which propagates.

        Example:
            >>> x = Value(-4.0)
            >>> y = x ** 3  # y.data = -64.0
        """
        assert isinstance(other, (int, np.integer)) and not isinstance(other, bool), \
            "Only supporting integer powers"
        other = int(other)
        with np.errstate(all='ignore'):
            data = self.data ** other
        return self._record(data, (self,), _Pow(self, other))

    def pow(self, exponent):
        """Same as self ** exponent."""
        return self ** exponent

    def tanh(self):
        """
        Hyperbolic tangent activation, squashes input to (-1, 1).

        Example:
            >>> x = Value(0.0)
            >>> y = x.tanh()  # y.data = 0.0
        """
        t = np.tanh(self.data)
        return self._record(t, (self,), _Tanh(self, t))

    def relu(self):
        """
        ReLU (Rectified Linear Unit) activation: max(0, x)

        Gradient only flows where the output is strictly positive, so an
        input of exactly zero receives no gradient.

        Example:
            >>> x = Value(-1.0)
            >>> y = x.relu()  # y.data = 0.0
        """
        # nan is not < 0 and passes through
        data = np.float64(0.0) if self.data < 0 else self.data
        return self._record(data, (self,), _Relu(self))

    def topological_sort(self):
        """Return every Value reachable from this one, operands before their consumers."""
        return topological_sort(self)

    def backward(self):
        """
        Perform backpropagation: compute gradients for all Values in the graph.

        Seeds this Value's gradient with 1 (d self / d self), then applies the
        chain rule to every reachable Value in reverse topological order. By
        the time a Value's rule runs, every consumer has already added its
        contribution to that Value's gradient, so shared sub-expressions are
        summed over all paths.

        Gradients of the other Values are not reset first.

        Example:
            >>> x = Value(2.0)
            >>> y = x * 3 + 1
            >>> y.backward()
            >>> print(x.grad)  # dy/dx = 3.0
        """
        topo = topological_sort(self)
        logger.debug("backward over %d nodes", len(topo))

        self.grad = np.float64(1.0)
        with np.errstate(all='ignore'):
            for v in reversed(topo):
                v._backward(v)

    # Derived operations (use the basic operations defined above)

    def __neg__(self):
        """Negation: -x = -1 * x"""
        out = self * -1
        out._op = 'neg'
        return out

    def __radd__(self, other):
        """Right addition: other + self (when other is not a Value)"""
        return self._lift(other) + self

    def __sub__(self, other):
        """Subtraction: a - b = a + (-b)"""
        out = self + (-self._lift(other))
        out._op = 'sub'
        return out

    def __rsub__(self, other):
        """Right subtraction: other - self"""
        return self._lift(other) - self

    def __rmul__(self, other):
        """Right multiplication: other * self (when other is not a Value)"""
        return self._lift(other) * self

    def __truediv__(self, other):
        """Division: a / b = a * b^(-1)"""
        out = self * self._lift(other) ** -1
        out._op = 'div'
        return out

    def __rtruediv__(self, other):
        """Right division: other / self"""
        return self._lift(other) / self

    def __repr__(self):
        """Return a readable string representation of the Value."""
        name_str = f"'{self.name}' " if self.name else ""
        op_str = f" from {self._op}" if self._op else ""
        return f"Value({name_str}data={self.data:.4f}, grad={self.grad:.4f}{op_str})"


def topological_sort(root):
    """
    Order the graph below `root` so that every operand comes before the Values
    computed from it.

    Depth-first post-order with a visited set keyed by identity: a Value is
    appended only once all of its operands have been appended, and each
    reachable Value (root included) appears exactly once. The walk uses an
    explicit stack, so long chains don't run into the recursion limit.

    The graph must be acyclic. The documented operators can't build a cycle.

    Args:
        root: The Value to start from

    Returns:
        list: Reachable Values in topological order, `root` last
    """
    topo = []
    visited = {root}
    stack = [(root, iter(root._prev))]
    while stack:
        v, children = stack[-1]
        for child in children:
            if child not in visited:
                visited.add(child)
                stack.append((child, iter(child._prev)))
                break
        else:
            stack.pop()
            topo.append(v)
    return topo


def zero_grad(values):
    """Reset the gradient of every Value in `values` to zero."""
    for v in values:
        v.grad = np.float64(0.0)
