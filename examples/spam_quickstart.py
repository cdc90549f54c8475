import logging
import sys
from time import perf_counter

from textree import BM25Vectorizer, TextClassifier, load_corpus

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

path = sys.argv[1] if len(sys.argv) > 1 else "spam.tsv"
labels, messages = load_corpus(path)
print(f"{len(messages)} messages, {labels.mean():.1%} positive")

clf = TextClassifier(
    BM25Vectorizer(min_df=0.002, max_df=0.05),
    min_samples_split=5, min_impurity_decrease=0.001,
)

t0 = perf_counter(); clf.fit(messages, labels); print(f"fit: {perf_counter()-t0:.3f} s")
print(f"Training accuracy: {clf.score(messages, labels):.4f}")

clf.prune(10)
print(f"Training accuracy after prune(10): {clf.score(messages, labels):.4f}")
clf.print_tree()
