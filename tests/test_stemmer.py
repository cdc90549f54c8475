import pytest

from textree import PorterStemmer, stem


@pytest.mark.parametrize(
    "word, expected",
    [
        ("caresses", "caress"),
        ("ponies", "poni"),
        ("ties", "ti"),
        ("caress", "caress"),
        ("cats", "cat"),
        ("feed", "feed"),
        ("agreed", "agre"),
        ("plastered", "plaster"),
        ("motoring", "motor"),
        ("sing", "sing"),
        ("conflated", "conflat"),
        ("hopping", "hop"),
        ("falling", "fall"),
        ("filing", "file"),
        ("happy", "happi"),
        ("relational", "relat"),
        ("hopeful", "hope"),
        ("goodness", "good"),
        ("money", "monei"),
        ("coffee", "coffe"),
        ("possibly", "possibl"),
        ("terribly", "terribl"),
        ("archaeology", "archaeolog"),
    ],
)
def test_porter_examples(word, expected):
    assert stem(word) == expected


@pytest.mark.parametrize("word", ["", "a", "at", "is", "'s"])
def test_short_words_unchanged(word):
    assert stem(word) == word


def test_stemmer_is_deterministic_with_and_without_cache():
    cached = PorterStemmer()
    uncached = PorterStemmer(cache_size=0)
    words = ["generalizations", "oscillators", "happiness", "running", "relational"]
    assert [cached(w) for w in words] == [uncached.stem(w) for w in words]
    assert [cached(w) for w in words] == [stem(w) for w in words]
