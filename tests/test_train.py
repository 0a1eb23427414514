import json
import logging

import numpy as np
import pytest

from scalargrad.nn import MLP
from scalargrad.train import (
    Dataset,
    TrainConfig,
    learning_rate,
    load_dataset,
    loss,
    main,
    make_moons,
    render_dataset,
    run,
    train,
)


def test_dataset_rejects_mismatched_lengths():
    with pytest.raises(ValueError):
        Dataset(x=[[0.0, 1.0]], y=[1.0, -1.0])


def test_load_dataset_rescales_labels(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"x": [[0.0, 1.0], [1.0, 0.0]], "y": [0, 1]}))
    data = load_dataset(path)
    assert data.x.shape == (2, 2)
    assert data.y.tolist() == [-1.0, 1.0]
    assert repr(data) == "Dataset(x: 2x2, y: 2)"


def test_load_dataset_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_dataset(tmp_path / "nope.json")


def test_load_dataset_missing_keys(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"x": [[0.0, 1.0]]}))
    with pytest.raises(ValueError):
        load_dataset(path)


def test_make_moons():
    data = make_moons(30, noise=0.0, rng=np.random.default_rng(0))
    assert data.x.shape == (30, 2)
    assert sorted(set(data.y.tolist())) == [-1.0, 1.0]
    assert (data.y == -1).sum() == 15


def test_learning_rate_schedule():
    assert learning_rate(0, 100) == 1.0
    assert learning_rate(50, 100) == pytest.approx(0.55)


def test_loss_and_accuracy():
    data = Dataset(x=[[1.0], [-1.0]], y=[1.0, -1.0])
    model = MLP(1, [1], init=lambda: 2.0)
    # scores 2 and -2: both margins satisfied, only regularization remains
    total, accuracy = loss(model, data, alpha=0.5)
    assert accuracy == 1.0
    assert total.data == pytest.approx(0.5 * (2.0 ** 2 + 0.0 ** 2))


def test_loss_hinge_term():
    data = Dataset(x=[[1.0]], y=[-1.0])
    model = MLP(1, [1], init=lambda: 0.5)
    total, accuracy = loss(model, data, alpha=0.0)
    # relu(1 + 0.5)
    assert total.data == pytest.approx(1.5)
    assert accuracy == 0.0


def test_train_reduces_loss(caplog):
    rng = np.random.default_rng(0)
    data = make_moons(20, noise=0.05, rng=rng)
    model = MLP(2, [8, 1], rng=rng)
    config = TrainConfig(steps=15, alpha=1e-4)

    with caplog.at_level(logging.INFO, logger="scalargrad.train"):
        history = train(model, data, config)

    assert len(history) == 15
    losses = [h[0] for h in history]
    assert min(losses[1:]) < losses[0]
    assert history[0][2] == 1.0
    assert "step 0 loss" in caplog.text


def test_run_with_data_file(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"x": [[0.0, 1.0], [1.0, 0.0], [0.5, 0.5]], "y": [0, 1, 1]}))
    model = run(["3", "--data", str(path), "--hidden", "4", "--seed", "1"])
    assert isinstance(model, MLP)
    assert len(model.parameters()) == (2 + 1) * 4 + (4 + 1)


def test_main_returns_success_status():
    # console scripts exit with whatever main returns
    assert not main(["1", "--hidden", "2", "--seed", "0"])


def test_dataset_rejects_column_labels():
    with pytest.raises(ValueError):
        Dataset(x=[[0.0], [1.0]], y=[[1.0], [-1.0]])


def test_load_dataset_rejects_other_labels(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(json.dumps({"x": [[0.0], [1.0]], "y": [0, 2]}))
    with pytest.raises(ValueError):
        load_dataset(path)


def test_render_dataset(tmp_path):
    path = tmp_path / "moons.png"
    render_dataset(make_moons(10, rng=np.random.default_rng(0)), path)
    assert path.is_file()
    assert path.stat().st_size > 0


def test_plot_failure_does_not_stop_training(tmp_path, caplog):
    path = tmp_path / "missing_dir" / "moons.png"
    with caplog.at_level(logging.INFO, logger="scalargrad.train"):
        model = run(["2", str(path), "--hidden", "2", "--seed", "0"])

    assert isinstance(model, MLP)
    assert not path.exists()
    assert "could not plot the data" in caplog.text
    assert "step 1 loss" in caplog.text
