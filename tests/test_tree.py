import copy

import numpy as np
import pytest
from sklearn.base import clone
from sklearn.exceptions import NotFittedError

from textree import GiniTreeClassifier, RandomSplitter


def _stump_dataset():
    """Four rows separated by a single threshold."""
    X = np.array([[0.0], [0.0], [1.0], [1.0]])
    y = np.array([False, False, True, True])
    return X, y


def _random_dataset(seed=0, n=200, d=5):
    rng = np.random.RandomState(seed)
    X = rng.rand(n, d)
    y = X[:, 0] + 0.3 * rng.rand(n) > 0.6
    return X, y


def _deep_tree(seed=0):
    X, y = _random_dataset(seed)
    return GiniTreeClassifier(min_samples_split=2, min_impurity_decrease=0.0).fit(X, y)


def _walk(node, path=()):
    yield path, node
    if not node.is_leaf:
        yield from _walk(node.left, path + ("L",))
        yield from _walk(node.right, path + ("R",))


def _snapshot(clf):
    return [(path, node.label, node.n_samples, node.is_leaf) for path, node in _walk(clf.tree_)]


def test_stump_export_text():
    X, y = _stump_dataset()
    clf = GiniTreeClassifier(min_samples_split=2).fit(X, y)
    assert clf.export_text() == "if X[0] <= 0.0000:\n  Predict False | n=2\nelse:\n  Predict True | n=2"
    assert clf.export_text(feature_names=["free"], class_names=["ham", "spam"]).splitlines()[1] == (
        "  Predict ham | n=2"
    )
    assert clf.score(X, y) == 1.0


def test_print_tree(capsys):
    X, y = _stump_dataset()
    GiniTreeClassifier(min_samples_split=2).fit(X, y).print_tree(feature_names=["free"])
    out = capsys.readouterr().out
    assert out.startswith("if free <= 0.0000:")
    assert "else:" in out


def test_predict_and_proba():
    X, y = _random_dataset()
    clf = GiniTreeClassifier().fit(X, y)
    pred = clf.predict(X)
    assert pred.dtype == bool
    proba = clf.predict_proba(X)
    assert proba.shape == (len(X), 2)
    assert np.allclose(proba.sum(axis=1), 1.0)
    assert np.array_equal(pred, proba[:, 1] > 0.5)
    assert np.array_equal(clf.classes_, [False, True])


def test_node_bookkeeping():
    clf = _deep_tree()
    for _, node in _walk(clf.tree_):
        neg, pos = node.value
        assert neg + pos == node.n_samples
        assert node.label == (2 * pos > node.n_samples)
        if not node.is_leaf:
            assert node.left.n_samples + node.right.n_samples == node.n_samples
            assert node.gain > 0


def test_rules_export():
    X, y = _stump_dataset()
    clf = GiniTreeClassifier(min_samples_split=2).fit(X, y)
    assert clf.predict_rule(X[[0, 2]]) == ["X[0] <= 0.0000", "X[0] > 0.0000"]
    rules = clf.export_rules(feature_names=["free"], class_names=["ham", "spam"])
    assert rules == ["free <= 0.0000 => ham", "free > 0.0000 => spam"]
    assert all("=>" in r for r in _deep_tree().export_rules())


def test_not_fitted_raises():
    clf = GiniTreeClassifier()
    with pytest.raises(NotFittedError):
        clf.predict(np.zeros((1, 1)))
    with pytest.raises(NotFittedError):
        clf.export_text()
    with pytest.raises(NotFittedError):
        clf.prune(3)


def test_wrong_feature_count_raises():
    X, y = _stump_dataset()
    clf = GiniTreeClassifier(min_samples_split=2).fit(X, y)
    with pytest.raises(ValueError):
        clf.predict(np.zeros((2, 3)))


def test_empty_and_single_label_training_sets():
    clf = GiniTreeClassifier().fit(np.zeros((0, 3)), [])
    assert clf.tree_.is_leaf and clf.tree_.label is False and clf.tree_.n_samples == 0
    assert clf.predict(np.ones((2, 3))).tolist() == [False, False]
    assert clf.predict_proba(np.ones((1, 3))).tolist() == [[0.5, 0.5]]

    clf = GiniTreeClassifier().fit(np.arange(12.0).reshape(6, 2), [True] * 6)
    assert clf.get_n_nodes() == 1
    assert clf.predict([[100.0, -1.0]]).tolist() == [True]


def test_max_depth():
    X, y = _random_dataset()
    clf = GiniTreeClassifier(max_depth=2, min_impurity_decrease=0.0).fit(X, y)
    assert clf.get_depth() <= 2
    assert clf.get_n_leaves() <= 4


def test_build_from_random_splitter():
    X, y = _random_dataset()
    clf = GiniTreeClassifier().build(RandomSplitter(X, y, depth=3, random_state=0))
    assert clf.get_depth() <= 3
    assert clf.predict(X).shape == (len(X),)


def test_prune_zero_is_a_no_op():
    clf = _deep_tree()
    before = _snapshot(clf)
    assert clf.prune(0) == 0
    assert _snapshot(clf) == before


def test_prune_leaves_no_small_internal_node():
    for n in (2, 5, 10, 40, 1000):
        clf = _deep_tree()
        clf.prune(n)
        for _, node in _walk(clf.tree_):
            if not node.is_leaf:
                assert node.n_samples >= n


def test_prune_keeps_labels_and_counts():
    clf = _deep_tree()
    before = {path: (node.label, node.n_samples) for path, node in _walk(clf.tree_)}
    n_nodes = clf.get_n_nodes()
    removed = clf.prune(20)
    assert removed > 0
    assert clf.get_n_nodes() < n_nodes
    for path, node in _walk(clf.tree_):
        assert before[path] == (node.label, node.n_samples)


def test_prune_is_idempotent_for_smaller_thresholds():
    base = _deep_tree()
    for n1, n2 in [(10, 10), (10, 3), (30, 1), (50, 0)]:
        clf = copy.deepcopy(base)
        clf.prune(n1)
        once = _snapshot(clf)
        assert clf.prune(n2) == 0
        assert _snapshot(clf) == once


def test_prune_is_monotone():
    base = _deep_tree()
    sizes = []
    for n in (0, 5, 10, 20, 50, 100, 500):
        clf = copy.deepcopy(base)
        clf.prune(n)
        sizes.append(clf.get_n_nodes())
    assert sizes == sorted(sizes, reverse=True)
    assert sizes[-1] == 1


def test_clone_keeps_params():
    clf = GiniTreeClassifier(min_samples_split=7, max_depth=3)
    params = clone(clf).get_params()
    assert params["min_samples_split"] == 7
    assert params["max_depth"] == 3


def test_graphviz_export(tmp_path):
    pytest.importorskip("graphviz")
    X, y = _stump_dataset()
    clf = GiniTreeClassifier(min_samples_split=2).fit(X, y)
    source = clf.export_graphviz(feature_names=["free"], class_names=["ham", "spam"])
    assert "free <= 0.0000" in source
    # dot format does not need the graphviz binary
    out_path = clf.export_graphviz(str(tmp_path / "tree"), format="dot")
    assert out_path.endswith(".dot")
    assert (tmp_path / "tree.dot").exists()
