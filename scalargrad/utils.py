"""
Visualization utilities for scalargrad computational graphs.

This module renders the graph recorded by Value objects, showing every
value with its gradient and the operation that produced it.
"""

from graphviz import Digraph

from scalargrad.engine import topological_sort


def _label(v):
    text = f"data {v.data:.4f} | grad {v.grad:.4f}"
    return f"{v.name}\\n{text}" if v.name else text


def trace(root):
    """
    Trace the computational graph starting from a root Value node.

    Args:
        root: A Value object representing the output of a computation

    Returns:
        tuple: (nodes, edges) where:
            - nodes: set of all Value objects in the graph
            - edges: set of (operand, result) tuples

    Example:
        >>> from scalargrad.engine import Value
        >>> x = Value(2.0)
        >>> y = Value(3.0)
        >>> z = x * y + x
        >>> nodes, edges = trace(z)
        >>> len(nodes)  # x, y, x*y and z
        4
    """
    nodes, edges = set(), set()
    stack = [root]
    while stack:
        v = stack.pop()
        if v in nodes:
            continue
        nodes.add(v)
        for child in v.operands:
            edges.add((child, v))
            stack.append(child)
    return nodes, edges


def draw_dot(root, format='svg', rankdir='LR'):
    """
    Visualize the computational graph of a Value object as a directed graph.

    Creates a Graphviz diagram showing:
    - One box per Value: its name (when set), data and gradient
    - One ellipse per operation (add, mul, relu, etc.), feeding its result
    - Edges from every operand into the operation that consumed it

    Args:
        root: A Value object (typically the loss) to visualize from
        format: Output format ('svg', 'png', 'pdf', etc.)
        rankdir: Graph direction - 'LR' (left-right) or 'TB' (top-bottom)

    Returns:
        Digraph: A graphviz Digraph object that can be rendered or displayed

    Example:
        >>> x = Value(2.0, name='x')
        >>> z = x * -3.0
        >>> z.backward()
        >>> draw_dot(z).render('computation_graph')  # Saves as SVG

    Note:
        Rendering needs the Graphviz binaries (apt install graphviz or
        brew install graphviz); building the Digraph does not.
    """
    assert rankdir in ['LR', 'TB'], "rankdir must be 'LR' (left-right) or 'TB' (top-bottom)"

    dot = Digraph(format=format, graph_attr={'rankdir': rankdir})

    # Operands come first, so the DOT source follows evaluation order
    for v in topological_sort(root):
        uid = str(id(v))
        dot.node(name=uid, label=_label(v), shape='box')
        if not v.op:
            continue

        op_id = f'{uid}-{v.op}'
        dot.node(name=op_id, label=v.op, shape='ellipse')
        dot.edge(op_id, uid)
        for child in v.operands:
            dot.edge(str(id(child)), op_id)

    return dot
