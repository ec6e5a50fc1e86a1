import numpy as np
import pytest

from paddlenet.core.errors import DimensionMismatch
from paddlenet.core.network import FeedForwardNetwork


def test_feed_forward_is_pure():
    net = FeedForwardNetwork(layer_dims=[6, 4, 1], seed=3)
    x = np.linspace(-1.0, 1.0, 6)
    weights_before = [w.copy() for w in net.weights]
    first = net.feed_forward(x)
    second = net.feed_forward(x)
    assert first.shape == (1,)
    assert np.array_equal(first, second)
    for before, after in zip(weights_before, net.weights):
        assert np.array_equal(before, after)


def test_construction_is_seeded_and_non_degenerate():
    a = FeedForwardNetwork(layer_dims=[5, 3, 1], seed=1)
    b = FeedForwardNetwork(layer_dims=[5, 3, 1], seed=1)
    c = FeedForwardNetwork(layer_dims=[5, 3, 1], seed=2)
    assert all(np.array_equal(x, y) for x, y in zip(a.weights, b.weights))
    assert not np.array_equal(a.weights[0], c.weights[0])
    hidden_columns = a.weights[0].T
    assert not np.allclose(hidden_columns[0], hidden_columns[1])
    assert a.parameter_count() == 5 * 3 + 3 + 3 * 1 + 1


@pytest.mark.parametrize("dims", [[1], [], [3, 0, 1]])
def test_invalid_shapes_are_rejected(dims):
    with pytest.raises(ValueError):
        FeedForwardNetwork(layer_dims=dims)


def test_dimension_mismatch_on_input_and_target():
    net = FeedForwardNetwork(layer_dims=[6, 4, 1])
    with pytest.raises(DimensionMismatch):
        net.feed_forward(np.zeros(5))
    with pytest.raises(DimensionMismatch):
        net.back_propagate(np.zeros(7), [0.5])
    with pytest.raises(DimensionMismatch):
        net.back_propagate(np.zeros(6), [0.5, 0.5])


@pytest.mark.parametrize("seed", range(8))
def test_single_step_reduces_error(seed):
    rng = np.random.default_rng(seed)
    depth = int(rng.integers(1, 3))
    dims = [int(rng.integers(2, 7))] + [int(rng.integers(2, 7)) for _ in range(depth)] + [1]
    net = FeedForwardNetwork(layer_dims=dims, learning_rate=0.01, seed=seed)
    x = rng.uniform(-1.0, 1.0, dims[0])
    target = np.array([rng.uniform(-0.9, 0.9)])

    before = abs(net.feed_forward(x)[0] - target[0])
    net.back_propagate(x, target)
    after = abs(net.feed_forward(x)[0] - target[0])
    assert after < before


def test_repeated_steps_fit_a_single_example():
    net = FeedForwardNetwork(layer_dims=[6, 4, 1], learning_rate=0.1, seed=0)
    x = np.zeros(6)
    for _ in range(500):
        net.back_propagate(x, [0.5])
    assert net.feed_forward(x)[0] == pytest.approx(0.5, abs=0.01)


def test_save_load_round_trip_is_bit_exact(tmp_path):
    net = FeedForwardNetwork(layer_dims=[6, 4, 1], learning_rate=0.05, seed=11)
    x = np.linspace(0.0, 1.0, 6)
    for _ in range(10):
        net.back_propagate(x, [0.25])
    path = tmp_path / "models" / "net.npz"
    net.save(path)

    restored = FeedForwardNetwork(layer_dims=[6, 4, 1], seed=99)
    assert restored.load(path) is True
    for a, b in zip(net.weights + net.biases, restored.weights + restored.biases):
        assert np.array_equal(a, b)
    probe = np.random.default_rng(0).uniform(-1.0, 1.0, 6)
    assert np.array_equal(net.feed_forward(probe), restored.feed_forward(probe))


def test_load_missing_file_returns_false(tmp_path):
    net = FeedForwardNetwork(layer_dims=[2, 1])
    assert net.load(tmp_path / "missing.npz") is False


def test_load_rejects_other_shapes(tmp_path):
    path = tmp_path / "net.npz"
    FeedForwardNetwork(layer_dims=[6, 4, 1]).save(path)
    with pytest.raises(DimensionMismatch):
        FeedForwardNetwork(layer_dims=[6, 5, 1]).load(path)


def test_load_keeps_configured_learning_rate(tmp_path):
    path = tmp_path / "net.npz"
    FeedForwardNetwork(layer_dims=[6, 4, 1], learning_rate=0.01, seed=1).save(path)
    resumed = FeedForwardNetwork(layer_dims=[6, 4, 1], learning_rate=0.5, seed=2)
    assert resumed.load(path) is True
    assert resumed.learning_rate == 0.5
    assert resumed.describe().learning_rate == 0.5


def test_row_vector_input_is_accepted():
    net = FeedForwardNetwork(layer_dims=[6, 4, 1], seed=3)
    x = np.linspace(-1.0, 1.0, 6)
    assert np.array_equal(net.feed_forward(x.reshape(1, 6)), net.feed_forward(x))


@pytest.mark.parametrize("shape", [(2, 3), (6, 1), (1, 2, 3)])
def test_multi_dimensional_input_is_rejected(shape):
    net = FeedForwardNetwork(layer_dims=[6, 4, 1])
    with pytest.raises(DimensionMismatch):
        net.feed_forward(np.zeros(shape))
    with pytest.raises(DimensionMismatch):
        net.back_propagate(np.zeros(shape), [0.5])
