# -*- coding: utf-8 -*-
"""
textree.tree
============

This module implements a binary decision tree classifier grown by greedy
Gini-impurity splitting over real-valued design matrices.  Trees are built
top-down from a :class:`~textree.splitter.Splitter`; every node remembers the
number of training rows that reached it and their majority label, which is
what a node predicts once it has been pruned into a leaf.

In addition to training and prediction the classifier provides sample-count
pruning, rule tracing, rule export, pretty printing of the tree and Graphviz
export.

The module also contains the :class:`TreeNode` class which holds the data
for each node in the tree (internal or leaf).
"""

# -----------------------------------------------------------------------------

from __future__ import annotations

import logging

import numpy as np
from sklearn.base import BaseEstimator, ClassifierMixin
from sklearn.exceptions import NotFittedError

from .splitter import MIN_IMPURITY_DECREASE, MIN_SIZE_SPLIT, GiniSplitter, Splitter

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Node
# -----------------------------------------------------------------------------
class TreeNode:
    """A single node in a decision tree.

    A node is a leaf exactly when it has no children; internal nodes always
    have both.

    Attributes
    ----------
    label : bool
        Majority label of the training rows that reached the node.
    n_samples : int
        Number of training rows that reached the node.
    value : tuple[int, int]
        Counts of negative and positive rows.
    impurity : float
        Gini impurity of those rows.
    feature_index : int or None
        Feature tested by an internal node; ``None`` for leaves.
    threshold : float or None
        Rows with ``x[feature_index] <= threshold`` go left.
    gain : float or None
        Information gain of the split.
    left, right : TreeNode or None
        Children of an internal node.
    """

    def __init__(self, *, label: bool, n_samples: int, value: tuple[int, int] = (0, 0),
                 impurity: float = 0.0):
        self.label: bool = bool(label)
        self.n_samples: int = int(n_samples)
        self.value: tuple[int, int] = value
        self.impurity: float = float(impurity)
        self.feature_index: int | None = None
        self.threshold: float | None = None
        self.gain: float | None = None
        self.left: TreeNode | None = None
        self.right: TreeNode | None = None

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    def make_leaf(self) -> None:
        """Drop the children; the node keeps predicting its majority label."""
        self.left = None
        self.right = None
        self.feature_index = None
        self.threshold = None
        self.gain = None

    def __repr__(self) -> str:
        if self.is_leaf:
            return f"TreeNode(label={self.label}, n_samples={self.n_samples})"
        return (f"TreeNode(X[{self.feature_index}] <= {self.threshold}, "
                f"label={self.label}, n_samples={self.n_samples})")


def _iter_nodes(root: TreeNode):
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        if not node.is_leaf:
            stack.append(node.right)
            stack.append(node.left)


# -----------------------------------------------------------------------------
# Classifier
# -----------------------------------------------------------------------------
class GiniTreeClassifier(ClassifierMixin, BaseEstimator):
    """
    Binary decision tree classifier using Gini impurity.

    At each node the split ``x[j] <= t`` with the largest information gain
    over all features ``j`` and all observed values ``t`` is chosen.  A node
    becomes a leaf when it has fewer than ``min_samples_split`` rows, when no
    split improves impurity, or when the best gain weighted by the fraction
    of training rows at the node is below ``min_impurity_decrease``.

    Parameters
    ----------
    min_samples_split : int, default=5
        Minimum number of training rows required to split a node.
    min_impurity_decrease : float, default=0.001
        Minimum gain, weighted by ``n_node_samples / n_samples``, for a split
        to be kept.  Splits deep in the tree that only act on a small share of
        the data are rejected.
    max_depth : int or None, default=None
        Maximum depth of the tree.  If ``None`` the depth is unbounded.
    n_jobs : int or None, default=None
        Number of threads used for the per-feature split search.

    Attributes
    ----------
    tree_ : TreeNode
        Root of the fitted tree.
    classes_ : ndarray of shape (2,)
        ``[False, True]``.
    n_features_in_ : int
        Number of columns seen during ``fit``.

    Notes
    -----
    - The API follows scikit-learn estimator conventions for ``fit``,
      ``predict`` and ``predict_proba``.
    - :meth:`prune` mutates the fitted tree in place.
    """

    def __init__(
        self,
        *,
        min_samples_split: int = MIN_SIZE_SPLIT,
        min_impurity_decrease: float = MIN_IMPURITY_DECREASE,
        max_depth: int | None = None,
        n_jobs: int | None = None,
    ):
        self.min_samples_split = min_samples_split
        self.min_impurity_decrease = min_impurity_decrease
        self.max_depth = max_depth
        self.n_jobs = n_jobs

    def fit(self, X, y):
        """Grow a tree on the design matrix ``X`` and boolean labels ``y``."""
        splitter = GiniSplitter(
            X, y,
            min_samples_split=self.min_samples_split,
            min_impurity_decrease=self.min_impurity_decrease,
            n_jobs=self.n_jobs,
        )
        return self.build(splitter)

    def build(self, splitter: Splitter):
        """Grow a tree from a prepared root ``splitter``.

        Parameters
        ----------
        splitter : Splitter
            Holds the training rows and decides every split.

        Returns
        -------
        self
        """
        self.classes_ = np.array([False, True])
        self.n_features_in_ = splitter.n_features
        self.tree_ = self._build_tree(splitter, depth=0)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Built tree with %d nodes (%d leaves, depth %d) from %d samples",
                self.get_n_nodes(), self.get_n_leaves(), self.get_depth(), splitter.size,
            )
        return self

    # ------------------------------------------------------------------
    # Tree construction
    # ------------------------------------------------------------------
    def _build_tree(self, splitter: Splitter, depth: int) -> TreeNode:
        """
        Recursively build a subtree from the rows held by ``splitter``.

        The splitter and the row subsets it creates are only referenced by
        this call, so they are released once both children are built.
        """
        node = TreeNode(
            label=splitter.label,
            n_samples=splitter.size,
            value=(splitter.size - splitter.n_positive, splitter.n_positive),
            impurity=splitter.impurity,
        )
        # Honour max_depth parameter
        if self.max_depth is not None and depth >= int(self.max_depth):
            return node
        result = splitter.split()
        if result is None:
            return node
        node.feature_index = int(result.feature_index)
        node.threshold = float(result.threshold)
        node.gain = float(result.gain)
        node.left = self._build_tree(result.left, depth + 1)
        node.right = self._build_tree(result.right, depth + 1)
        return node

    # ------------------------------------------------------------------
    # Prediction
    # ------------------------------------------------------------------
    def _check_fitted(self) -> None:
        if getattr(self, "tree_", None) is None:
            raise NotFittedError("Estimator not fitted. Call fit(...) first.")

    def _validate_X(self, X) -> np.ndarray:
        X = np.asarray(X, dtype=float)
        if X.ndim != 2:
            raise ValueError(f"Expected a 2-dimensional array, got shape {X.shape}")
        if X.shape[1] != self.n_features_in_:
            raise ValueError(
                f"X has {X.shape[1]} features, but the tree was fitted with {self.n_features_in_}"
            )
        return X

    def _leaf(self, x) -> TreeNode:
        node = self.tree_
        while not node.is_leaf:
            node = node.left if x[node.feature_index] <= node.threshold else node.right
        return node

    def predict(self, X):
        """
        Predict the label of each row of ``X``.

        Each row follows ``x[feature_index] <= threshold`` to the left child
        and otherwise to the right child until a leaf is reached; the leaf's
        majority label is the prediction.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)

        Returns
        -------
        ndarray of shape (n_samples,), dtype bool

        Raises
        ------
        NotFittedError
            If the estimator has not been fitted.
        """
        self._check_fitted()
        X = self._validate_X(X)
        return np.array([self._leaf(x).label for x in X], dtype=bool)

    def predict_proba(self, X):
        """Class frequencies ``[P(False), P(True)]`` of the leaf reached by
        each row.  Leaves without training rows give ``[0.5, 0.5]``."""
        self._check_fitted()
        X = self._validate_X(X)
        proba = np.empty((X.shape[0], 2), dtype=float)
        for i, x in enumerate(X):
            leaf = self._leaf(x)
            if leaf.n_samples <= 0:
                proba[i] = 0.5
            else:
                proba[i] = np.asarray(leaf.value, dtype=float) / leaf.n_samples
        return proba

    def predict_rule(self, X, feature_names=None):
        """
        Return the decision rule (antecedent) followed by each row.

        Parameters
        ----------
        X : array-like of shape (n_samples, n_features)
        feature_names : list[str], optional
            Names for the features; defaults to ``X[i]``.

        Returns
        -------
        list[str]
            One conjunction of conditions per row, ``"<root>"`` for a tree
            that is a single leaf.
        """
        self._check_fitted()
        X = self._validate_X(X)
        return [self._trace_rule(x, feature_names) for x in X]

    # ------------------------------------------------------------------
    # Pruning
    # ------------------------------------------------------------------
    def prune(self, n: int) -> int:
        """
        Collapse every internal node that received fewer than ``n`` training
        rows into a leaf predicting its majority label.

        Nodes are visited bottom-up.  Since a child never holds more rows
        than its parent, every internal node left afterwards has at least
        ``n`` rows, and pruning again with the same or a smaller ``n`` changes
        nothing.

        Parameters
        ----------
        n : int
            Minimum number of training rows an internal node must have kept.

        Returns
        -------
        int
            Number of internal nodes removed from the tree.
        """
        self._check_fitted()
        before = self.get_n_nodes() - self.get_n_leaves()
        self._prune_node(self.tree_, int(n))
        removed = before - (self.get_n_nodes() - self.get_n_leaves())
        logger.info("Pruned %d internal nodes with fewer than %d samples", removed, n)
        return removed

    def _prune_node(self, node: TreeNode, n: int) -> None:
        if node.is_leaf:
            return
        self._prune_node(node.left, n)
        self._prune_node(node.right, n)
        if node.n_samples < n:
            node.make_leaf()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def get_depth(self) -> int:
        """Length of the longest root-to-leaf path."""
        self._check_fitted()
        depth = 0
        stack = [(self.tree_, 0)]
        while stack:
            node, d = stack.pop()
            depth = max(depth, d)
            if not node.is_leaf:
                stack.append((node.left, d + 1))
                stack.append((node.right, d + 1))
        return depth

    def get_n_leaves(self) -> int:
        self._check_fitted()
        return sum(1 for node in _iter_nodes(self.tree_) if node.is_leaf)

    def get_n_nodes(self) -> int:
        self._check_fitted()
        return sum(1 for _ in _iter_nodes(self.tree_))

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def export_rules(self, *, feature_names=None, class_names=None):
        """
        Export all decision rules in the tree as a list of human-readable strings.

        Each rule has the form ``<antecedent> => <predicted class>`` where the
        antecedent is a conjunction of conditions from root to leaf.

        Parameters
        ----------
        feature_names : list[str], optional
            Names for the input features.
        class_names : list[str], optional
            Names for ``False`` and ``True``, in that order.

        Returns
        -------
        list[str]
            List of rule strings, left branches first.
        """
        self._check_fitted()
        rules: list[str] = []
        self._collect_rules(self.tree_, [], rules, feature_names, class_names)
        return rules

    def export_text(self, feature_names=None, class_names=None, decimals: int = 4) -> str:
        """
        Render the tree as indented text.

        Internal nodes print their rule followed by the left subtree, an
        ``else:`` line and the right subtree, each indented two spaces.
        Leaves print their label and training row count::

            if X[3] <= 0.1823:
              Predict False | n=3
            else:
              Predict True | n=2

        Parameters
        ----------
        feature_names : list[str], optional
            Alternative names for the features.
        class_names : list[str], optional
            Names for ``False`` and ``True``, in that order.
        decimals : int, default=4
            Digits printed for thresholds.

        Returns
        -------
        str
        """
        self._check_fitted()
        lines: list[str] = []
        self._format_node(self.tree_, "", feature_names, class_names, decimals, lines)
        return "\n".join(lines)

    def print_tree(self, feature_names=None, class_names=None, decimals: int = 4):
        """Pretty-print the decision tree to ``stdout`` (see :meth:`export_text`)."""
        print(self.export_text(feature_names, class_names, decimals))

    def export_graphviz(self, filename: str | None = None, *, feature_names=None,
                        class_names=None, format: str = "png") -> str:
        """
        Export the tree structure in Graphviz format.

        When requesting a DOT file (``format='dot'``) no external Graphviz
        binary is required; the DOT source is written directly to disk.  For
        other formats this method invokes the system ``dot`` command.

        Parameters
        ----------
        filename : str or None, default=None
            Basename of the output file (the extension is determined by
            ``format``).  If None, the DOT source code is returned as a string
            and no file is written.
        feature_names : list[str], optional
            Custom names for the input features.
        class_names : list[str], optional
            Names for ``False`` and ``True``.
        format : str, default="png"
            Desired output format for Graphviz.

        Returns
        -------
        str
            Path to the written file, or the DOT source code if filename is None.

        Raises
        ------
        RuntimeError
            If the ``graphviz`` package is not installed.
        """
        self._check_fitted()
        try:
            import graphviz
        except ImportError:
            raise RuntimeError("Graphviz is required for export_graphviz but not installed.")
        dot = graphviz.Digraph(format=format)
        self._add_graph_nodes(dot, self.tree_, "0", feature_names, class_names)

        if filename is None:
            return dot.source
        if format.lower() == "dot":
            path = f"{filename}.dot"
            dot.save(path)
            return path
        dot.render(filename, cleanup=True)
        return f"{filename}.{format}"

    # ------------------------------------------------------------------
    # Rule tracing / Graphviz / printing helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _feature_name(index: int, fn) -> str:
        if fn is not None and 0 <= index < len(fn):
            return str(fn[index])
        return f"X[{index}]"

    @staticmethod
    def _class_name(label: bool, cn) -> str:
        return str(cn[int(label)]) if cn is not None else str(label)

    def _trace_rule(self, x, fn=None) -> str:
        parts = []
        node = self.tree_
        while not node.is_leaf:
            name = self._feature_name(node.feature_index, fn)
            if x[node.feature_index] <= node.threshold:
                parts.append(f"{name} <= {node.threshold:.4f}")
                node = node.left
            else:
                parts.append(f"{name} > {node.threshold:.4f}")
                node = node.right
        return " AND ".join(parts) if parts else "<root>"

    def _collect_rules(self, node: TreeNode, parts, rules, fn, cn):
        if node.is_leaf:
            body = " AND ".join(parts) if parts else "<root>"
            rules.append(f"{body} => {self._class_name(node.label, cn)}")
            return
        name = self._feature_name(node.feature_index, fn)
        left = f"{name} <= {node.threshold:.4f}"
        right = f"{name} > {node.threshold:.4f}"
        self._collect_rules(node.left, parts + [left], rules, fn, cn)
        self._collect_rules(node.right, parts + [right], rules, fn, cn)

    def _add_graph_nodes(self, dot, node: TreeNode, name: str, fn, cn):
        if node.is_leaf:
            dot.node(name, f"class={self._class_name(node.label, cn)}\nvalue={list(node.value)}",
                     shape="box", style="filled", color="lightgrey")
            return
        label = f"{self._feature_name(node.feature_index, fn)} <= {node.threshold:.4f}"
        dot.node(name, label, shape="ellipse", style="filled", color="lightblue")
        l_id, r_id = name + "L", name + "R"
        self._add_graph_nodes(dot, node.left, l_id, fn, cn)
        self._add_graph_nodes(dot, node.right, r_id, fn, cn)
        dot.edge(name, l_id, label="True")
        dot.edge(name, r_id, label="False")

    def _format_node(self, node: TreeNode, indent, fn, cn, decimals, lines):
        if node.is_leaf:
            lines.append(f"{indent}Predict {self._class_name(node.label, cn)} | n={node.n_samples}")
            return
        name = self._feature_name(node.feature_index, fn)
        lines.append(f"{indent}if {name} <= {node.threshold:.{decimals}f}:")
        self._format_node(node.left, indent + "  ", fn, cn, decimals, lines)
        lines.append(f"{indent}else:")
        self._format_node(node.right, indent + "  ", fn, cn, decimals, lines)
