# textree/__init__.py
"""
textree: BM25+ text vectorization and Gini decision trees (scikit-learn style).

Exports:
    - BM25Vectorizer, LSAVectorizer
    - GiniTreeClassifier
    - TextClassifier
"""
from .bow import BagOfWords, Preprocessor
from .classifier import TextClassifier
from .datasets import load_corpus
from .splitter import GiniSplitter, RandomSplitter, Splitter, SplitResult, gini_impurity
from .stemmer import PorterStemmer, stem
from .tokenizer import Tokenizer, tokenize
from .tree import GiniTreeClassifier, TreeNode
from .vectorizer import BM25Vectorizer, CorpusStatistics, LSAVectorizer

__all__ = [
    "BM25Vectorizer",
    "LSAVectorizer",
    "CorpusStatistics",
    "GiniTreeClassifier",
    "TreeNode",
    "TextClassifier",
    "Splitter",
    "SplitResult",
    "GiniSplitter",
    "RandomSplitter",
    "gini_impurity",
    "BagOfWords",
    "Preprocessor",
    "Tokenizer",
    "tokenize",
    "PorterStemmer",
    "stem",
    "load_corpus",
]
__version__ = "0.1.0"
