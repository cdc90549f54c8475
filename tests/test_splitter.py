import numpy as np
import pytest

from textree import GiniSplitter, RandomSplitter, gini_impurity


def _five_rows():
    """One feature that separates the labels at 3."""
    X = np.array([[1.0], [5.0], [2.0], [6.0], [3.0]])
    y = np.array([False, True, False, True, False])
    return X, y


def test_gini_impurity_values():
    assert gini_impurity(1, 4) == pytest.approx(0.375)
    assert gini_impurity(2, 4) == pytest.approx(0.5)
    assert gini_impurity(0, 7) == 0.0
    assert gini_impurity(7, 7) == 0.0
    assert gini_impurity(0, 0) == 0.0


def test_gini_impurity_range():
    for size in range(1, 30):
        for count in range(size + 1):
            g = gini_impurity(count, size)
            assert 0.0 <= g <= 0.5
            assert (g == 0.0) == (count in (0, size))


def test_shape_mismatch_raises():
    with pytest.raises(ValueError):
        GiniSplitter(np.zeros((3, 2)), [True, False])
    with pytest.raises(ValueError):
        GiniSplitter(np.zeros(3), [True, False, True])


def test_majority_label_ties_to_false():
    assert GiniSplitter(np.zeros((4, 1)), [True, True, False, False]).label is False
    assert GiniSplitter(np.zeros((3, 1)), [True, True, False]).label is True
    assert GiniSplitter(np.zeros((0, 1)), []).label is False


def test_small_node_is_not_split():
    X = np.array([[0.0], [0.0], [1.0], [1.0]])
    y = np.array([False, False, True, True])
    assert GiniSplitter(X, y, min_samples_split=5).split() is None
    assert GiniSplitter(X, y, min_samples_split=4).split() is not None


def test_pure_or_constant_node_is_not_split():
    assert GiniSplitter(np.arange(6.0).reshape(6, 1), [True] * 6).split() is None
    assert GiniSplitter(np.ones((6, 2)), [True, False] * 3).split() is None


def test_best_split_and_children_keep_row_order():
    X, y = _five_rows()
    result = GiniSplitter(X, y).split()
    assert result.feature_index == 0
    assert result.threshold == 3.0
    assert result.gain == pytest.approx(0.48)
    assert result.left.matrix[:, 0].tolist() == [1.0, 2.0, 3.0]
    assert result.right.matrix[:, 0].tolist() == [5.0, 6.0]
    assert result.left.labels.tolist() == [False, False, False]
    assert result.right.labels.tolist() == [True, True]
    assert result.left.impurity == result.right.impurity == 0.0
    assert result.left.original_size == 5


def test_threshold_ties_pick_the_smallest_value():
    X = np.array([[1.0], [2.0], [3.0], [4.0]])
    y = np.array([False, True, True, False])
    candidate = GiniSplitter(X, y, min_samples_split=2).best_threshold(0)
    assert candidate.threshold == 1.0
    assert candidate.gain == pytest.approx(0.5 - 0.75 * (4 / 9))


def test_feature_ties_pick_the_lowest_index():
    X, y = _five_rows()
    X = np.hstack([np.zeros((5, 1)), X, X])
    result = GiniSplitter(X, y).split()
    assert result.feature_index == 1


def test_information_gain_matches_search():
    rng = np.random.RandomState(3)
    X = rng.rand(40, 4)
    y = rng.rand(40) > 0.5
    splitter = GiniSplitter(X, y)
    best = splitter.best_split()
    assert splitter.information_gain(best.feature_index, best.threshold) == pytest.approx(best.gain)
    for j in range(4):
        for t in X[:, j]:
            assert splitter.information_gain(j, t) <= best.gain + 1e-12


def test_gain_is_scaled_by_share_of_training_rows():
    X = np.array([[0.0], [1.0]])
    y = np.array([False, True])
    params = dict(min_samples_split=2, min_impurity_decrease=0.01)
    # gain 0.5 on 2 of 50 rows: 0.02 >= 0.01
    assert GiniSplitter(X, y, original_size=50, **params).split() is not None
    # gain 0.5 on 2 of 1000 rows: 0.001 < 0.01
    assert GiniSplitter(X, y, original_size=1000, **params).split() is None


def test_parallel_search_matches_sequential():
    rng = np.random.RandomState(0)
    X = rng.rand(60, 9)
    y = rng.rand(60) > 0.4
    a = GiniSplitter(X, y).best_split()
    b = GiniSplitter(X, y, n_jobs=3).best_split()
    assert a == b


def test_random_splitter_respects_depth():
    rng = np.random.RandomState(1)
    X = rng.rand(30, 3)
    y = rng.rand(30) > 0.5
    assert RandomSplitter(X, y, depth=0).split() is None
    result = RandomSplitter(X, y, depth=1, random_state=0).split()
    assert result.left.size + result.right.size == 30
    assert result.left.split() is None and result.right.split() is None
    assert np.isnan(result.gain)
