"""
Training driver: fits an MLP binary classifier with a max-margin loss and
plain SGD.

Run from the command line:

    scalargrad-train 100 moons.png --data data.json --hidden 16 16
"""

import argparse
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np

from scalargrad.nn import MLP

logger = logging.getLogger(__name__)


@dataclass
class Dataset:
    """Feature rows `x` and labels `y` in {-1, +1}."""

    x: np.ndarray
    y: np.ndarray

    def __post_init__(self):
        self.x = np.asarray(self.x, dtype=float)
        self.y = np.asarray(self.y, dtype=float)
        if self.x.ndim != 2 or self.y.ndim != 1 or len(self.x) != len(self.y):
            raise ValueError(
                f"expected x of shape (n, d) and y of shape (n,), got {self.x.shape} and {self.y.shape}"
            )

    def __len__(self) -> int:
        return len(self.y)

    def __repr__(self) -> str:
        return f"Dataset(x: {self.x.shape[0]}x{self.x.shape[1]}, y: {len(self.y)})"


@dataclass
class TrainConfig:
    """Hyperparameters of a training run."""

    steps: int = 100
    alpha: float = 1e-4
    hidden: List[int] = field(default_factory=lambda: [16, 16])
    seed: Optional[int] = None


def load_dataset(path) -> Dataset:
    """
    Read a JSON file of the form {"x": [[...], ...], "y": [...]}.

    Labels are expected in {0, 1} and are rescaled to {-1, +1}.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"data file not found: {path}")
    with path.open() as f:
        raw = json.load(f)
    try:
        x, y = raw["x"], raw["y"]
    except (KeyError, TypeError) as exc:
        raise ValueError(f"{path}: expected an object with 'x' and 'y' keys") from exc
    y = np.asarray(y, dtype=float)
    if not np.isin(y, (0.0, 1.0)).all():
        raise ValueError(f"{path}: labels must be 0 or 1")
    return Dataset(x=x, y=2 * y - 1)


def make_moons(n_samples=100, noise=0.1, rng=None) -> Dataset:
    """Two interleaving half circles, labels in {-1, +1}."""
    rng = rng if rng is not None else np.random.default_rng()
    n_out = n_samples // 2
    n_in = n_samples - n_out

    t_out = np.linspace(0, np.pi, n_out)
    t_in = np.linspace(0, np.pi, n_in)
    x = np.vstack([
        np.column_stack([np.cos(t_out), np.sin(t_out)]),
        np.column_stack([1 - np.cos(t_in), 0.5 - np.sin(t_in)]),
    ])
    x += rng.normal(scale=noise, size=x.shape)
    y = np.concatenate([-np.ones(n_out), np.ones(n_in)])
    return Dataset(x=x, y=y)


def loss(model, data: Dataset, alpha=1e-4):
    """
    Max-margin loss over the whole dataset plus L2 regularization.

    Returns:
        tuple: (total loss Value, accuracy as a fraction in [0, 1])
    """
    scores = [model(row)[0] for row in data.x]

    losses = [(1 + -yi * score).relu() for yi, score in zip(data.y, scores)]
    data_loss = sum(losses) * (1.0 / len(losses))
    reg_loss = alpha * sum(p * p for p in model.parameters())
    total_loss = data_loss + reg_loss

    accuracy = np.mean([(yi > 0) == (score.data > 0) for yi, score in zip(data.y, scores)])
    return total_loss, float(accuracy)


def learning_rate(step, total):
    """Linear decay from 1.0 down to 0.1 over `total` steps."""
    return 1.0 - 0.9 * step / total


def train(model, data: Dataset, config: TrainConfig):
    """
    Run `config.steps` full-batch SGD steps on `model`.

    Returns:
        list: One (loss, accuracy, learning_rate) tuple per step
    """
    history = []
    for k in range(config.steps):
        total_loss, accuracy = loss(model, data, alpha=config.alpha)
        model.zero_grad()
        total_loss.backward()

        lr = learning_rate(k, config.steps)
        for p in model.parameters():
            p.data -= lr * p.grad

        logger.info("step %d loss %.6f accuracy %.1f%% learning rate %.4f",
                    k, total_loss.data, accuracy * 100, lr)
        history.append((float(total_loss.data), accuracy, lr))
    return history


def render_dataset(data: Dataset, path):
    """Scatter plot of both classes, saved to `path`."""
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots()
    try:
        for label, name in ((1, "A"), (-1, "B")):
            pts = data.x[data.y == label]
            ax.scatter(pts[:, 0], pts[:, 1], s=12, label=name)
        ax.legend()
        fig.savefig(path)
    finally:
        plt.close(fig)


def parse_args(argv: Optional[Sequence[str]] = None):
    parser = argparse.ArgumentParser(description="Train an MLP classifier with scalargrad.")
    parser.add_argument("steps", type=int, nargs="?", default=100, help="Number of training steps")
    parser.add_argument("render_path", nargs="?", default=None, help="Input data render path")
    parser.add_argument("--data", type=Path, default=None,
                        help="JSON file with 'x' rows and 0/1 'y' labels (default: generated moons)")
    parser.add_argument("--hidden", type=int, nargs="+", default=[16, 16], help="Hidden layer sizes")
    parser.add_argument("--alpha", type=float, default=1e-4, help="L2 regularization strength")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def run(argv: Optional[Sequence[str]] = None) -> MLP:
    """Parse `argv`, load or generate the data, train a fresh MLP and return it."""
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(name)s %(levelname)s %(message)s")

    config = TrainConfig(steps=args.steps, alpha=args.alpha, hidden=args.hidden, seed=args.seed)
    rng = np.random.default_rng(config.seed)

    data = load_dataset(args.data) if args.data is not None else make_moons(100, noise=0.1, rng=rng)
    if args.render_path:
        try:
            render_dataset(data, args.render_path)
        except (OSError, RuntimeError, ValueError) as exc:
            logger.warning("could not plot the data: %s", exc)
    logger.info("data: %s", data)

    model = MLP(data.x.shape[1], config.hidden + [1], rng=rng)
    logger.info("model: %s (%d parameters)", model, len(model.parameters()))
    train(model, data, config)
    return model


def main(argv: Optional[Sequence[str]] = None):
    run(argv)


if __name__ == "__main__":
    main()
