"""
scalargrad: a minimal reverse-mode autograd engine over scalar values.

This package provides automatic differentiation for building and training
small neural networks from scratch.
"""

from scalargrad.engine import Value, topological_sort, zero_grad
from scalargrad import nn
from scalargrad.utils import draw_dot

__version__ = "0.1.0"
__all__ = ["Value", "topological_sort", "zero_grad", "nn", "draw_dot"]
